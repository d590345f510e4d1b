"""Streaks. Meeting on cadence extends the streak, meeting late restarts it."""

from __future__ import annotations

from dataclasses import replace

from intime.errors import FriendNotFoundError, InvalidMeetingError
from intime.models import DAY_MS, MAX_NOTE_LENGTH, Friend, Meeting, Snapshot, new_id


def days_since_last(friend: Friend, now: float) -> int:
    if friend.last_meeting_date is None:
        return 0
    return int((now - friend.last_meeting_date) // DAY_MS)


def next_streak(friend: Friend, now: float) -> int:
    """Streak after a meeting at `now`.

    First meeting ever -> 1. Gap <= cadence (inclusive) -> streak + 1.
    Gap > cadence -> 1: meeting always counts, even when late.
    """
    if friend.last_meeting_date is None:
        return 1
    if days_since_last(friend, now) <= friend.cadence_days:
        return friend.streak_count + 1
    return 1


def clean_note(note: str | None) -> str | None:
    if note is None:
        return None
    note = note.strip()
    if not note:
        return None
    if len(note) > MAX_NOTE_LENGTH:
        raise InvalidMeetingError(
            f"Note is too long ({len(note)} > {MAX_NOTE_LENGTH} characters)"
        )
    return note


def log_meeting(snapshot: Snapshot, friend_id: str, now: float,
                note: str | None = None) -> tuple[Snapshot, Meeting]:
    """Record a meeting. Returns the new snapshot and the Meeting appended.

    Friend and meeting list change together in one new Snapshot value;
    `snapshot` itself is left as it was.
    """
    friend = snapshot.friend(friend_id)
    if friend is None:
        raise FriendNotFoundError(friend_id)

    meeting = Meeting(
        friend_id=friend_id,
        timestamp=now,
        note=clean_note(note),
        created_at=now,
        id=new_id(now),
    )
    updated = friend.touched(
        now,
        last_meeting_date=now,
        streak_count=next_streak(friend, now),
        total_meetings=friend.total_meetings + 1,
    )
    new_snapshot = replace(
        snapshot.with_friend(updated),
        meetings=snapshot.meetings + (meeting,),
    )
    return new_snapshot, meeting
