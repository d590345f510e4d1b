"""Tests for cadence arithmetic."""

import random

from intime.cadence import (
    CadenceStatus,
    Elapsed,
    cycle_percent,
    days_until_due,
    elapsed_since,
    read_cadence,
    status,
)
from intime.models import DAY_MS, HOUR_MS, MINUTE_MS, Friend

NOW = 1_700_000_000_000


def ago(days: float) -> float:
    return NOW - days * DAY_MS


class TestElapsed:
    def test_never_met(self):
        assert elapsed_since(None, NOW) == Elapsed(0, 0, 0, 0)

    def test_floor_decomposition(self):
        last = NOW - (2 * DAY_MS + 3 * HOUR_MS + 4 * MINUTE_MS + 59_999)
        e = elapsed_since(last, NOW)
        assert (e.days, e.hours, e.minutes) == (2, 3, 4)
        assert e.total_minutes == 2 * 1440 + 3 * 60 + 4

    def test_just_now(self):
        assert elapsed_since(NOW - 30_000, NOW) == Elapsed(0, 0, 0, 0)


class TestDaysUntilDue:
    def test_never_met_is_never_due(self):
        assert days_until_due(None, 14, NOW) == 14

    def test_never_met_fractional_cadence_rounds_up(self):
        assert days_until_due(None, 10.5, NOW) == 11
        assert read_cadence(Friend(name="Ana", cadence_days=10.5), NOW).days_until_due == 11

    def test_counts_down(self):
        assert days_until_due(ago(10), 14, NOW) == 4
        assert days_until_due(ago(10.5), 14, NOW) == 4

    def test_due_today(self):
        assert days_until_due(ago(14), 14, NOW) == 0
        assert days_until_due(ago(14.5), 14, NOW) == 0

    def test_negative_when_overdue(self):
        assert days_until_due(ago(16), 14, NOW) == -2


class TestStatus:
    def test_never_met_is_fresh(self):
        assert status(None, 7, NOW) == CadenceStatus.FRESH

    def test_bands(self):
        assert status(ago(5), 10, NOW) == CadenceStatus.FRESH
        assert status(ago(6), 10, NOW) == CadenceStatus.APPROACHING
        assert status(ago(8.9), 10, NOW) == CadenceStatus.APPROACHING
        assert status(ago(9), 10, NOW) == CadenceStatus.OVERDUE
        assert status(ago(30), 10, NOW) == CadenceStatus.OVERDUE

    def test_just_under_threshold(self):
        assert status(ago(6) + 1, 10, NOW) == CadenceStatus.FRESH


class TestCyclePercent:
    def test_capped(self):
        assert cycle_percent(None, 14, NOW) == 0.0
        assert cycle_percent(ago(7), 14, NOW) == 50.0
        assert cycle_percent(ago(40), 14, NOW) == 100.0


class TestReading:
    def test_never_met(self):
        r = read_cadence(Friend(name="Ana", cadence_days=21), NOW)
        assert r.days_until_due == 21
        assert r.status == CadenceStatus.FRESH
        assert r.cycle_percent == 0.0

    def test_matches_individual_functions(self):
        f = Friend(name="Ana", cadence_days=14, last_meeting_date=ago(12.25))
        r = read_cadence(f, NOW)
        assert r.elapsed == elapsed_since(f.last_meeting_date, NOW)
        assert r.days_until_due == days_until_due(f.last_meeting_date, 14, NOW)
        assert r.status == status(f.last_meeting_date, 14, NOW)
        assert r.cycle_percent == cycle_percent(f.last_meeting_date, 14, NOW)

    def test_status_and_due_agree_fuzz(self):
        rng = random.Random(1234)
        for _ in range(5000):
            cadence = rng.choice([rng.randint(1, 120), rng.uniform(0.5, 120)])
            last = NOW - rng.uniform(0, 400) * DAY_MS
            r = read_cadence(
                Friend(name="x", cadence_days=cadence, last_meeting_date=last),
                NOW,
            )
            if r.days_until_due < 0:
                assert r.status == CadenceStatus.OVERDUE
            if r.status == CadenceStatus.FRESH:
                assert r.days_until_due > 0
            if r.status != CadenceStatus.OVERDUE:
                assert r.days_until_due >= 0
