"""Backup export/import. Export is self-describing, import is all-or-nothing."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from intime.errors import (
    BackupParseError,
    BackupRecordError,
    BackupShapeError,
    BackupTooLargeError,
)
from intime.models import Friend, Meeting, RelationshipTier, Settings, Snapshot, Theme
from intime.schemas import BackupFile, FriendRecord, MeetingRecord, SettingsRecord

BACKUP_VERSION = "2.1.0"
MAX_BACKUP_BYTES = 5 * 1024 * 1024  # 5 MiB


# ── Export ─────────────────────────────────────────────────────────────


def _friend_record(f: Friend) -> FriendRecord:
    return FriendRecord(
        id=f.id,
        name=f.name,
        relationship_tier=f.relationship_tier,
        cadence_days=f.cadence_days,
        last_meeting_date=f.last_meeting_date,
        streak_count=f.streak_count,
        multiplier=f.multiplier,
        total_meetings=f.total_meetings,
        is_archived=f.is_archived,
        created_at=f.created_at,
        updated_at=f.updated_at,
    )


def _meeting_record(m: Meeting) -> MeetingRecord:
    return MeetingRecord(
        id=m.id,
        friend_id=m.friend_id,
        timestamp=m.timestamp,
        note=m.note,
        created_at=m.created_at,
    )


def export_bundle(snapshot: Snapshot, now: float) -> dict[str, Any]:
    """Serialize `snapshot` plus version tag and export time."""
    s = snapshot.settings
    bundle = BackupFile(
        version=BACKUP_VERSION,
        exported_at=now,
        friends=[_friend_record(f) for f in snapshot.friends],
        meetings=[_meeting_record(m) for m in snapshot.meetings],
        settings=SettingsRecord(
            theme=s.theme,
            notifications_enabled=s.notifications_enabled,
            daily_summary_interval=s.daily_summary_interval,
            threshold_alerts_enabled=s.threshold_alerts_enabled,
            has_completed_onboarding=s.has_completed_onboarding,
        ),
    )
    return bundle.model_dump(mode="json", by_alias=True)


def dumps(bundle: dict[str, Any]) -> str:
    return json.dumps(bundle, indent=2, ensure_ascii=False)


def backup_filename(now: float) -> str:
    day = datetime.fromtimestamp(now / 1000, tz=timezone.utc).date()
    return f"in-time-backup-{day.isoformat()}.json"


# ── Import ─────────────────────────────────────────────────────────────


def parse_backup(raw: bytes | str) -> Any:
    """Raw file contents -> parsed JSON value. Does not check the shape."""
    size = len(raw.encode("utf-8")) if isinstance(raw, str) else len(raw)
    if size > MAX_BACKUP_BYTES:
        raise BackupTooLargeError(f"{size} bytes (max {MAX_BACKUP_BYTES})")
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8-sig")
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise BackupParseError(str(exc)) from exc


def _check_shape(candidate: Any) -> None:
    if not isinstance(candidate, dict):
        raise BackupShapeError("top level must be an object")
    for key in ("friends", "meetings"):
        if not isinstance(candidate.get(key), list):
            raise BackupShapeError(f"'{key}' must be a list")
    if not isinstance(candidate.get("settings"), dict):
        raise BackupShapeError("'settings' must be an object")


def _describe(exc: ValidationError) -> str:
    err = exc.errors()[0]
    path = ""
    for part in err["loc"]:
        path += f"[{part}]" if isinstance(part, int) else (f".{part}" if path else str(part))
    msg = f"{path}: {err['msg']}" if path else err["msg"]
    return f"{msg} ({exc.error_count()} problem(s))"


def validate_backup(candidate: Any) -> BackupFile:
    """Check an import candidate. Raises BackupShapeError / BackupRecordError.

    Meetings pointing at unknown friends are accepted as they are.
    """
    _check_shape(candidate)
    try:
        return BackupFile.model_validate(candidate)
    except ValidationError as exc:
        raise BackupRecordError(_describe(exc)) from exc


def to_snapshot(backup: BackupFile, now: float) -> Snapshot:
    """Build the replacement Snapshot. Onboarding is marked as done."""
    friends = tuple(
        Friend(
            id=r.id,
            name=r.name,
            relationship_tier=RelationshipTier(r.relationship_tier),
            cadence_days=r.cadence_days,
            last_meeting_date=r.last_meeting_date,
            streak_count=r.streak_count,
            total_meetings=r.total_meetings,
            is_archived=r.is_archived,
            created_at=r.created_at if r.created_at is not None else now,
            updated_at=r.updated_at if r.updated_at is not None else now,
        )
        for r in backup.friends
    )
    meetings = tuple(
        Meeting(
            id=r.id,
            friend_id=r.friend_id,
            timestamp=r.timestamp,
            note=r.note,
            created_at=r.created_at,
        )
        for r in backup.meetings
    )
    s = backup.settings
    settings = Settings(
        theme=Theme(s.theme),
        notifications_enabled=s.notifications_enabled,
        daily_summary_interval=s.daily_summary_interval,
        threshold_alerts_enabled=s.threshold_alerts_enabled,
        has_completed_onboarding=True,
    )
    return Snapshot(friends=friends, meetings=meetings, settings=settings)


def load_backup(raw: bytes | str | Any, now: float) -> Snapshot:
    """Parse + validate + build. Either a complete Snapshot or an exception.

    `raw` is file contents (bytes / str) or an already parsed candidate.
    """
    candidate = parse_backup(raw) if isinstance(raw, (bytes, str)) else raw
    return to_snapshot(validate_backup(candidate), now)
