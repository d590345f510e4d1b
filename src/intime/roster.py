"""Friend roster transforms. Snapshot in, new Snapshot out."""

from __future__ import annotations

from dataclasses import fields, replace

from intime.errors import FriendLimitError, FriendNotFoundError, InvalidFriendError
from intime.models import (
    DEFAULT_CADENCE_DAYS,
    MAX_ACTIVE_FRIENDS,
    SUMMARY_INTERVALS,
    Friend,
    Meeting,
    RelationshipTier,
    Settings,
    Snapshot,
    Theme,
    new_id,
)


def _clean_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise InvalidFriendError("Name is required")
    return name


def _check_cadence(cadence_days: int) -> int:
    if isinstance(cadence_days, bool) or not isinstance(cadence_days, int):
        raise InvalidFriendError(f"Cadence must be a whole number of days: {cadence_days!r}")
    if cadence_days < 1:
        raise InvalidFriendError(f"Cadence must be at least 1 day: {cadence_days}")
    return cadence_days


def _require(snapshot: Snapshot, friend_id: str) -> Friend:
    friend = snapshot.friend(friend_id)
    if friend is None:
        raise FriendNotFoundError(friend_id)
    return friend


def _check_capacity(snapshot: Snapshot) -> None:
    if len(snapshot.active_friends()) >= MAX_ACTIVE_FRIENDS:
        raise FriendLimitError(MAX_ACTIVE_FRIENDS)


def add_friend(snapshot: Snapshot, name: str, now: float,
               cadence_days: int = DEFAULT_CADENCE_DAYS,
               relationship_tier: str | RelationshipTier = RelationshipTier.CLOSE,
               ) -> tuple[Snapshot, Friend]:
    friend = Friend(
        name=_clean_name(name),
        cadence_days=_check_cadence(cadence_days),
        relationship_tier=RelationshipTier(relationship_tier),
        created_at=now,
        updated_at=now,
        id=new_id(now),
    )
    _check_capacity(snapshot)
    return replace(snapshot, friends=snapshot.friends + (friend,)), friend


def edit_friend(snapshot: Snapshot, friend_id: str, now: float,
                name: str | None = None,
                cadence_days: int | None = None,
                relationship_tier: str | RelationshipTier | None = None,
                ) -> tuple[Snapshot, Friend]:
    """Change profile fields. Streak and meeting history are not touched."""
    friend = _require(snapshot, friend_id)
    changes: dict = {}
    if name is not None:
        changes["name"] = _clean_name(name)
    if cadence_days is not None:
        changes["cadence_days"] = _check_cadence(cadence_days)
    if relationship_tier is not None:
        changes["relationship_tier"] = RelationshipTier(relationship_tier)

    updated = friend.touched(now, **changes)
    return snapshot.with_friend(updated), updated


def set_archived(snapshot: Snapshot, friend_id: str, archived: bool,
                 now: float) -> tuple[Snapshot, Friend]:
    """Archive (soft delete) or bring back a friend.

    Bringing one back counts against the active-friend limit.
    """
    friend = _require(snapshot, friend_id)
    if friend.is_archived == archived:
        return snapshot, friend
    if not archived:
        _check_capacity(snapshot)
    updated = friend.touched(now, is_archived=archived)
    return snapshot.with_friend(updated), updated


def remove_friend(snapshot: Snapshot, friend_id: str,
                  ) -> tuple[Snapshot, Friend, tuple[Meeting, ...]]:
    """Hard delete. Cascades to the friend's meetings.

    Returns what was removed so the caller can offer an undo.
    """
    friend = _require(snapshot, friend_id)
    removed = tuple(m for m in snapshot.meetings if m.friend_id == friend_id)
    new_snapshot = replace(
        snapshot,
        friends=tuple(f for f in snapshot.friends if f.id != friend_id),
        meetings=tuple(m for m in snapshot.meetings if m.friend_id != friend_id),
    )
    return new_snapshot, friend, removed


def restore_friend(snapshot: Snapshot, friend: Friend,
                   meetings: tuple[Meeting, ...]) -> Snapshot:
    """Append back a removed friend and its meetings, exactly as they were."""
    return replace(
        snapshot,
        friends=snapshot.friends + (friend,),
        meetings=snapshot.meetings + tuple(meetings),
    )


_SETTINGS_FIELDS = {f.name for f in fields(Settings)}


def update_settings(snapshot: Snapshot, **changes) -> Snapshot:
    unknown = set(changes) - _SETTINGS_FIELDS
    if unknown:
        raise TypeError(f"Unknown settings: {', '.join(sorted(unknown))}")
    if "theme" in changes:
        changes["theme"] = Theme(changes["theme"])
    interval = changes.get("daily_summary_interval")
    if interval is not None and interval not in SUMMARY_INTERVALS:
        raise ValueError(f"daily_summary_interval must be one of {SUMMARY_INTERVALS}")
    return replace(snapshot, settings=replace(snapshot.settings, **changes))
