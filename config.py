"""Environment-driven settings."""

import os

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")
PORT = int(os.getenv("PORT", 8000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

SLOT_GRANULARITY_MINUTES = int(os.getenv("SLOT_GRANULARITY_MINUTES", 30))
BOOKING_HORIZON_DAYS = int(os.getenv("BOOKING_HORIZON_DAYS", 60))
SNAPSHOT_POLL_SECONDS = float(os.getenv("SNAPSHOT_POLL_SECONDS", 30))
BOOKING_SETTLE_SECONDS = float(os.getenv("BOOKING_SETTLE_SECONDS", 2))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
