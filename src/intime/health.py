"""Health score. Regular, on-cadence meetings make a healthy relationship."""

from __future__ import annotations

import math
from typing import Iterable

from intime.cadence import days_until_due
from intime.models import DAY_MS, Friend, Meeting, Snapshot

NEUTRAL_SCORE = 50
HISTORY_WINDOW = 10
ATTENTION_DAYS = 3


def meeting_gaps(meetings: list[Meeting]) -> list[int]:
    """Whole-day gaps between consecutive meetings (already sorted)."""
    return [
        int((b.timestamp - a.timestamp) // DAY_MS)
        for a, b in zip(meetings, meetings[1:])
    ]


def health_score(friend: Friend, meetings: Iterable[Meeting]) -> int:
    """Puntuación de consistencia, ~0-100.

    Mezcla cuatro componentes:
        consistency      (40%) baja varianza de los gaps
        streak stability (30%) racha, hasta 30 puntos
        gap score        (20%) cercanía del gap medio a la cadencia
        multiplier bonus (+0..20) sin ponderar

    No se recorta a 100: un multiplicador alto puede pasar de 100.
    """
    if friend.total_meetings < 2:
        return NEUTRAL_SCORE

    own = sorted(
        (m for m in meetings if m.friend_id == friend.id),
        key=lambda m: m.timestamp,
    )[-HISTORY_WINDOW:]
    if len(own) < 2:
        return NEUTRAL_SCORE

    gaps = meeting_gaps(own)
    avg_gap = sum(gaps) / len(gaps)
    variance = sum((g - avg_gap) ** 2 for g in gaps) / len(gaps)

    consistency = max(0.0, 100 - (variance / max(avg_gap, 1)) * 50)
    streak_stability = min(friend.streak_count * 3, 30)
    cadence = friend.cadence_days
    gap_score = max(0.0, 100 - (abs(avg_gap - cadence) / cadence) * 100)
    multiplier_bonus = (friend.multiplier - 1.0) * 10

    return _round_half_up(
        consistency * 0.4
        + streak_stability * 0.3
        + gap_score * 0.2
        + multiplier_bonus
    )


def _round_half_up(value: float) -> int:
    # round() is banker's rounding; scores round .5 upwards
    return math.floor(value + 0.5)


# ── Aggregates (active friends only) ───────────────────────────────────


def overall_health(snapshot: Snapshot) -> int:
    """Mean score across active friends. 0 with no active friends."""
    active = snapshot.active_friends()
    if not active:
        return 0
    total = sum(health_score(f, snapshot.meetings) for f in active)
    return _round_half_up(total / len(active))


def rank_by_health(snapshot: Snapshot) -> list[tuple[Friend, int]]:
    scored = [(f, health_score(f, snapshot.meetings))
              for f in snapshot.active_friends()]
    scored.sort(key=lambda x: x[1], reverse=True)
    return scored


def due_order(snapshot: Snapshot, now: float) -> list[Friend]:
    """Active friends, most due first."""
    return sorted(
        snapshot.active_friends(),
        key=lambda f: days_until_due(f.last_meeting_date, f.cadence_days, now),
    )


def needing_attention(snapshot: Snapshot, now: float,
                      within_days: int = ATTENTION_DAYS) -> list[Friend]:
    return [
        f for f in due_order(snapshot, now)
        if days_until_due(f.last_meeting_date, f.cadence_days, now) <= within_days
    ]
