"""
Tests for availability/blocked.py
"""

from datetime import timedelta

from availability.blocked import is_blocked
from schemas import AnyAvailable
from tests.factories import MONDAY, staff


class TestIsBlocked:

    def setup_method(self):
        self.staff = staff("s1", blocked=[(MONDAY, "09:00", "09:30")])

    def test_instant_inside_block(self):
        assert is_blocked(self.staff, MONDAY, 9 * 60)
        assert is_blocked(self.staff, MONDAY, 9 * 60 + 29)

    def test_block_end_is_exclusive(self):
        assert not is_blocked(self.staff, MONDAY, 9 * 60 + 30)

    def test_other_date_not_blocked(self):
        assert not is_blocked(self.staff, MONDAY + timedelta(days=1), 9 * 60)

    def test_range_touching_block_end_is_free(self):
        assert not is_blocked(self.staff, MONDAY, 9 * 60 + 30, 10 * 60 + 30)

    def test_range_overlapping_block(self):
        assert is_blocked(self.staff, MONDAY, 8 * 60 + 30, 9 * 60 + 30)

    def test_range_ending_at_block_start_is_free(self):
        assert not is_blocked(self.staff, MONDAY, 8 * 60, 9 * 60)

    def test_any_available_is_never_blocked(self):
        assert not is_blocked(None, MONDAY, 9 * 60)
        assert not is_blocked(AnyAvailable(), MONDAY, 9 * 60, 10 * 60)
