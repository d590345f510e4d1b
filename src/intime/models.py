"""Core data models. A Friend carries a cadence. A Meeting never changes."""

from __future__ import annotations

import random
import string
import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum

DAY_MS = 86_400_000
HOUR_MS = 3_600_000
MINUTE_MS = 60_000

MAX_ACTIVE_FRIENDS = 10
MAX_NOTE_LENGTH = 200
DEFAULT_CADENCE_DAYS = 14
MAX_MULTIPLIER = 3.0
MULTIPLIER_STEP = 0.1
SUMMARY_INTERVALS = (7, 15, 30, 45, 60, 90)


def now_ms() -> int:
    """Wall clock in epoch milliseconds. Only used as a default clock."""
    return int(time.time() * 1000)


def new_id(now: float | None = None) -> str:
    """`<ms>-<9 base36 chars>`, same shape as ids in existing backups."""
    stamp = int(now if now is not None else now_ms())
    alphabet = string.ascii_lowercase + string.digits
    return f"{stamp}-{''.join(random.choices(alphabet, k=9))}"


def multiplier_for(streak_count: int) -> float:
    """The multiplier is a pure function of the streak. Capped at 3.0."""
    return min(MAX_MULTIPLIER, 1.0 + streak_count * MULTIPLIER_STEP)


class RelationshipTier(str, Enum):
    CLOSE = "close"
    CASUAL = "casual"


class Theme(str, Enum):
    AUTO = "auto"
    LIGHT = "light"
    DARK = "dark"


@dataclass(frozen=True)
class Friend:
    """Una relación con cadencia. Cada cambio produce un Friend nuevo."""

    name: str
    cadence_days: int = DEFAULT_CADENCE_DAYS
    relationship_tier: RelationshipTier = RelationshipTier.CLOSE
    last_meeting_date: float | None = None   # epoch ms, None = never met
    streak_count: int = 0
    total_meetings: int = 0
    is_archived: bool = False
    created_at: float = field(default_factory=now_ms)
    updated_at: float = field(default_factory=now_ms)
    id: str = field(default_factory=new_id)

    @property
    def multiplier(self) -> float:
        return multiplier_for(self.streak_count)

    @property
    def is_active(self) -> bool:
        return not self.is_archived

    def touched(self, now: float, **changes) -> Friend:
        """Copy with `changes` applied and updated_at bumped."""
        return replace(self, updated_at=now, **changes)


@dataclass(frozen=True)
class Meeting:
    """Un encuentro. Append-only: se crea, nunca se edita."""

    friend_id: str
    timestamp: float
    note: str | None = None
    created_at: float | None = None
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        if self.created_at is None:
            object.__setattr__(self, "created_at", self.timestamp)


@dataclass(frozen=True)
class Settings:
    theme: Theme = Theme.AUTO
    notifications_enabled: bool = True
    daily_summary_interval: int = 30
    threshold_alerts_enabled: bool = True
    has_completed_onboarding: bool = False


@dataclass(frozen=True)
class Snapshot:
    """Estado completo: friends + meetings + settings. Se reemplaza, no se muta."""

    friends: tuple[Friend, ...] = ()
    meetings: tuple[Meeting, ...] = ()
    settings: Settings = field(default_factory=Settings)

    @classmethod
    def empty(cls) -> Snapshot:
        return cls()

    def friend(self, friend_id: str) -> Friend | None:
        for f in self.friends:
            if f.id == friend_id:
                return f
        return None

    def active_friends(self) -> list[Friend]:
        return [f for f in self.friends if f.is_active]

    def meetings_for(self, friend_id: str) -> list[Meeting]:
        """A friend's meetings, newest first."""
        own = [m for m in self.meetings if m.friend_id == friend_id]
        own.sort(key=lambda m: m.timestamp, reverse=True)
        return own

    def with_friend(self, friend: Friend) -> Snapshot:
        """Replace the friend with the same id."""
        friends = tuple(friend if f.id == friend.id else f for f in self.friends)
        return replace(self, friends=friends)


@dataclass
class Trace:
    """Una operación registrada (observabilidad, opt-in)."""

    operation: str
    input_text: str = ""
    output_text: str = ""
    source: str = ""            # friend id, when the operation has one
    duration_ms: float | None = None
    metadata: dict = field(default_factory=dict)
    created_at: float = field(default_factory=time.time)
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
