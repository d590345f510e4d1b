"""Cadence arithmetic. How long since we met, and how close are we to due."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from intime.models import DAY_MS, HOUR_MS, MINUTE_MS, Friend

# Umbrales en % del ciclo
APPROACHING_PCT = 60.0
OVERDUE_PCT = 90.0


class CadenceStatus(str, Enum):
    FRESH = "fresh"
    APPROACHING = "approaching"
    OVERDUE = "overdue"


@dataclass(frozen=True)
class Elapsed:
    days: int = 0
    hours: int = 0
    minutes: int = 0
    total_minutes: int = 0


@dataclass(frozen=True)
class CadenceReading:
    """Everything a view needs about one friend's timer, taken at one instant."""

    elapsed: Elapsed
    days_until_due: int
    status: CadenceStatus
    cycle_percent: float


def elapsed_days(last_meeting: float | None, now: float) -> float:
    """Fractional days since `last_meeting`. 0.0 when never met."""
    if last_meeting is None:
        return 0.0
    return (now - last_meeting) / DAY_MS


def elapsed_since(last_meeting: float | None, now: float) -> Elapsed:
    """Floor decomposition of `now - last_meeting` into days/hours/minutes."""
    if last_meeting is None:
        return Elapsed()
    delta = now - last_meeting
    return Elapsed(
        days=int(delta // DAY_MS),
        hours=int((delta % DAY_MS) // HOUR_MS),
        minutes=int((delta % HOUR_MS) // MINUTE_MS),
        total_minutes=int(delta // MINUTE_MS),
    )


def _days_until_due(days: float, cadence_days: float) -> int:
    return math.ceil(cadence_days - days)


def _status(days: float, cadence_days: float) -> CadenceStatus:
    pct = days / cadence_days * 100
    if pct < APPROACHING_PCT:
        return CadenceStatus.FRESH
    if pct < OVERDUE_PCT:
        return CadenceStatus.APPROACHING
    return CadenceStatus.OVERDUE


def days_until_due(last_meeting: float | None, cadence_days: float,
                   now: float) -> int:
    """Days left in the cycle. Negative = overdue by that many days.

    A friend never met is never due: returns `cadence_days`, rounded up.
    """
    if last_meeting is None:
        return _days_until_due(0.0, cadence_days)
    return _days_until_due(elapsed_days(last_meeting, now), cadence_days)


def status(last_meeting: float | None, cadence_days: float,
           now: float) -> CadenceStatus:
    """Three-band status: <60% fresh, <90% approaching, otherwise overdue."""
    if last_meeting is None:
        return CadenceStatus.FRESH
    return _status(elapsed_days(last_meeting, now), cadence_days)


def cycle_percent(last_meeting: float | None, cadence_days: float,
                  now: float) -> float:
    """Progress through the current cycle, capped at 100."""
    if last_meeting is None:
        return 0.0
    return min(100.0, elapsed_days(last_meeting, now) / cadence_days * 100)


def read_cadence(friend: Friend, now: float) -> CadenceReading:
    """All timer values for `friend`, derived from one elapsed-days sample."""
    last = friend.last_meeting_date
    cadence = friend.cadence_days
    if last is None:
        return CadenceReading(
            elapsed=Elapsed(),
            days_until_due=_days_until_due(0.0, cadence),
            status=CadenceStatus.FRESH,
            cycle_percent=0.0,
        )

    days = elapsed_days(last, now)
    return CadenceReading(
        elapsed=elapsed_since(last, now),
        days_until_due=_days_until_due(days, cadence),
        status=_status(days, cadence),
        cycle_percent=min(100.0, days / cadence * 100),
    )
