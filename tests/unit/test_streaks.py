"""Unit tests for sleep streak calculation."""

from dataclasses import dataclass
from datetime import date, timedelta

from lilo.sleep.streaks import calculate_streak

MIN_HOURS = 6.0
MON = date(2026, 3, 2)
TUE = MON + timedelta(days=1)
WED = MON + timedelta(days=2)


@dataclass
class Night:
    wake_date: date
    hours: float


def nights(*pairs: tuple[date, float]) -> list[Night]:
    return [Night(d, h) for d, h in pairs]


class TestLiveness:
    """A streak is only alive if the latest night is today or yesterday."""

    def test_no_entries(self):
        assert calculate_streak([], MIN_HOURS, today=WED) == 0

    def test_latest_today(self):
        assert calculate_streak(nights((WED, 7)), MIN_HOURS, today=WED) == 1

    def test_latest_yesterday(self):
        assert calculate_streak(nights((TUE, 7)), MIN_HOURS, today=WED) == 1

    def test_latest_two_days_ago_is_dead(self):
        entries = nights((MON, 9), (MON - timedelta(days=1), 9))
        assert calculate_streak(entries, MIN_HOURS, today=WED) == 0

    def test_future_dated_latest_is_dead(self):
        assert calculate_streak(nights((WED + timedelta(days=3), 8)), MIN_HOURS, today=WED) == 0


class TestCounting:
    """Walking back from the latest night."""

    def test_two_good_nights_ending_today(self):
        entries = nights((MON, 8), (TUE, 8))
        assert calculate_streak(entries, MIN_HOURS, today=TUE) == 2

    def test_short_latest_night_resets_to_zero(self):
        entries = nights((MON, 8), (TUE, 8), (WED, 3))
        assert calculate_streak(entries, MIN_HOURS, today=WED) == 0

    def test_short_night_in_the_middle_stops_count(self):
        entries = nights((MON, 8), (TUE, 4), (WED, 8))
        assert calculate_streak(entries, MIN_HOURS, today=WED) == 1

    def test_exactly_threshold_counts(self):
        entries = nights((TUE, 6.0), (WED, 6.0))
        assert calculate_streak(entries, MIN_HOURS, today=WED) == 2

    def test_calendar_gap_stops_count(self):
        entries = nights((MON - timedelta(days=2), 9), (TUE, 9), (WED, 9))
        assert calculate_streak(entries, MIN_HOURS, today=WED) == 2

    def test_input_order_does_not_matter(self):
        ordered = nights((MON, 7), (TUE, 7), (WED, 7))
        shuffled = [ordered[1], ordered[2], ordered[0]]
        assert calculate_streak(shuffled, MIN_HOURS, today=WED) == 3

    def test_streak_crosses_week_boundaries(self):
        start = WED - timedelta(days=13)
        entries = [Night(start + timedelta(days=i), 7.5) for i in range(14)]
        assert calculate_streak(entries, MIN_HOURS, today=WED) == 14

    def test_streak_never_exceeds_entry_count(self):
        entries = nights((MON, 8), (TUE, 8), (WED, 8))
        assert calculate_streak(entries, MIN_HOURS, today=WED) <= len(entries)

    def test_threshold_is_configurable(self):
        entries = nights((TUE, 7), (WED, 7))
        assert calculate_streak(entries, 8.0, today=WED) == 0
        assert calculate_streak(entries, 7.0, today=WED) == 2
