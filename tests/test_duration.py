"""
Tests for availability/duration.py

Duration label parsing and bundle totals.
"""

import pytest

from availability.duration import (
    DEFAULT_DURATION_MINUTES,
    parse_duration,
    per_staff_duration,
    reserved_slots,
    total_duration,
)
from tests.factories import any_staff, service, specific


class TestParseDuration:

    @pytest.mark.parametrize("label, expected", [
        ("30 min", 30),
        ("45 mins", 45),
        ("1 hour", 60),
        ("2 hours", 120),
        ("1 hour 30 min", 90),
        ("1h 30m", 90),
        ("1.5 hours", 90),
        ("90", 90),
        (45, 45),
    ])
    def test_recognized_labels(self, label, expected):
        assert parse_duration(label) == expected

    @pytest.mark.parametrize("label", ["tbd", "", None, "0 min", 0, -15, "soon"])
    def test_unrecognized_labels_default_to_an_hour(self, label):
        assert parse_duration(label) == DEFAULT_DURATION_MINUTES == 60


class TestTotals:

    def test_total_duration_sums_bundle(self):
        bundle = [service("cut", "30 min"), service("color", "1 hour"), service("misc", "tbd")]
        assert total_duration(bundle) == 150

    def test_per_staff_duration_groups_any_available_under_none(self):
        services = {
            "cut": service("cut", 30),
            "color": service("color", 60),
            "nails": service("nails", 45),
        }
        assignments = [specific("cut", "s1"), specific("color", "s1"), any_staff("nails")]

        assert per_staff_duration(assignments, services) == {"s1": 90, None: 45}

    def test_reserved_slots_rounds_up(self):
        assert reserved_slots(45, 30) == 2
        assert reserved_slots(60, 30) == 2
        assert reserved_slots(61, 30) == 3
