"""intime: relationship cadence tracker. Streaks, health, backups."""

from intime.cadence import CadenceReading, CadenceStatus, Elapsed
from intime.errors import (
    BackupError,
    BackupParseError,
    BackupRecordError,
    BackupShapeError,
    BackupTooLargeError,
    FriendLimitError,
    FriendNotFoundError,
    IntimeError,
    InvalidFriendError,
    InvalidMeetingError,
    PersistenceWarning,
)
from intime.keeper import Keeper
from intime.models import Friend, Meeting, RelationshipTier, Settings, Snapshot, Theme, Trace
from intime.storage import Storage

__version__ = "0.1.0"
__all__ = [
    "Keeper", "Storage",
    "Friend", "Meeting", "Settings", "Snapshot", "Trace",
    "RelationshipTier", "Theme", "CadenceStatus", "CadenceReading", "Elapsed",
    "IntimeError", "FriendLimitError", "FriendNotFoundError",
    "InvalidFriendError", "InvalidMeetingError",
    "BackupError", "BackupParseError", "BackupTooLargeError",
    "BackupShapeError", "BackupRecordError", "PersistenceWarning",
]
