"""Undo buffer. One slot: the last deleted friend, for a few seconds."""

from __future__ import annotations

from dataclasses import dataclass

from intime.models import Friend, Meeting

DEFAULT_UNDO_TTL = 5000  # ms


@dataclass(frozen=True)
class PendingDelete:
    friend: Friend
    meetings: tuple[Meeting, ...]
    deleted_at: float
    ttl: float = DEFAULT_UNDO_TTL

    def expired(self, now: float) -> bool:
        return now - self.deleted_at > self.ttl


class UndoBuffer:
    """Empty, or holding exactly one reversible delete.

    A new delete replaces whatever was held; it never queues.
    """

    def __init__(self, ttl: float = DEFAULT_UNDO_TTL) -> None:
        self.ttl = ttl
        self._pending: PendingDelete | None = None

    def hold(self, friend: Friend, meetings: tuple[Meeting, ...],
             now: float) -> PendingDelete:
        self._pending = PendingDelete(friend, tuple(meetings), now, self.ttl)
        return self._pending

    def peek(self, now: float) -> PendingDelete | None:
        """What undo would restore right now, without consuming it."""
        if self._pending is not None and self._pending.expired(now):
            self._pending = None
        return self._pending

    def take(self, now: float) -> PendingDelete | None:
        pending = self.peek(now)
        self._pending = None
        return pending

    def clear(self) -> None:
        self._pending = None

    def __bool__(self) -> bool:
        return self._pending is not None

    def __repr__(self) -> str:
        held = self._pending.friend.id if self._pending else None
        return f"UndoBuffer(holding={held!r})"
