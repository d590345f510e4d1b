"""Error taxonomy. Every rejected operation leaves the snapshot untouched."""

from __future__ import annotations


class IntimeError(Exception):
    """Base class for everything the engine rejects on purpose."""


# ── Roster ─────────────────────────────────────────────────────────────


class FriendLimitError(IntimeError, ValueError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"Friend limit reached ({limit} max)")
        self.limit = limit


class InvalidFriendError(IntimeError, ValueError):
    pass


class InvalidMeetingError(IntimeError, ValueError):
    pass


class FriendNotFoundError(IntimeError, KeyError):
    def __init__(self, friend_id: str) -> None:
        super().__init__(friend_id)
        self.friend_id = friend_id

    def __str__(self) -> str:
        return f"Friend not found: {self.friend_id}"


# ── Backup import ──────────────────────────────────────────────────────


class BackupError(IntimeError, ValueError):
    """An import candidate was rejected. `reason` is user-facing."""

    reason = "Invalid backup file"

    def __init__(self, detail: str = "") -> None:
        super().__init__(f"{self.reason}: {detail}" if detail else self.reason)
        self.detail = detail


class BackupParseError(BackupError):
    reason = "Could not read file"


class BackupTooLargeError(BackupError):
    reason = "Backup file is too large"


class BackupShapeError(BackupError):
    reason = "Invalid backup file"


class BackupRecordError(BackupError):
    reason = "Backup file contains corrupted records"


# ── Persistence ────────────────────────────────────────────────────────


class PersistenceWarning(RuntimeWarning):
    """Saving failed; the session continues in memory only."""
