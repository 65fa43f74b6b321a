"""Errors raised by the availability engine and its data boundary."""


class AvailabilityError(Exception):
    """Base class for availability errors."""


class ConfigurationMissing(AvailabilityError):
    """The vendor has no working-hours configuration at all."""


class DataFetchFailure(AvailabilityError):
    """Reading the snapshot from the backing store failed."""

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable


class InvalidAssignment(AvailabilityError):
    """An assignment references a service or staff member outside the bundle."""


class InvalidBookingDate(AvailabilityError):
    """The requested date is before today."""


class SlotUnavailable(AvailabilityError):
    """The requested start time no longer survives the conflict check."""

    def __init__(self, message: str, conflicts=None):
        super().__init__(message)
        self.conflicts = list(conflicts or [])
