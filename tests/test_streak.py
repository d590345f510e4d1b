"""Tests for the streak / multiplier transition."""

import random

import pytest

from intime.errors import FriendNotFoundError, InvalidMeetingError
from intime.models import DAY_MS, HOUR_MS, Friend, Snapshot, multiplier_for
from intime.streak import log_meeting, next_streak

T0 = 1_700_000_000_000


@pytest.fixture
def snapshot():
    return Snapshot(friends=(Friend(name="Ana", cadence_days=14, id="ana"),))


def ana(snap: Snapshot) -> Friend:
    return snap.friend("ana")


class TestTransition:
    def test_first_meeting(self, snapshot):
        snap, meeting = log_meeting(snapshot, "ana", T0)
        f = ana(snap)
        assert f.streak_count == 1
        assert f.multiplier == pytest.approx(1.1)
        assert f.total_meetings == 1
        assert f.last_meeting_date == T0
        assert f.updated_at == T0
        assert meeting.timestamp == T0
        assert meeting.friend_id == "ana"
        assert snap.meetings == (meeting,)

    def test_documented_scenario(self, snapshot):
        snap, _ = log_meeting(snapshot, "ana", T0)
        snap, _ = log_meeting(snap, "ana", T0 + 10 * DAY_MS)
        assert ana(snap).streak_count == 2
        assert ana(snap).multiplier == pytest.approx(1.2)

        snap, _ = log_meeting(snap, "ana", T0 + 30 * DAY_MS)
        assert ana(snap).streak_count == 1
        assert ana(snap).multiplier == pytest.approx(1.1)
        assert ana(snap).total_meetings == 3

    def test_boundary_is_inclusive(self, snapshot):
        snap, _ = log_meeting(snapshot, "ana", T0)
        snap, _ = log_meeting(snap, "ana", T0 + 14 * DAY_MS)
        assert ana(snap).streak_count == 2

    def test_partial_day_is_floored(self, snapshot):
        snap, _ = log_meeting(snapshot, "ana", T0)
        snap, _ = log_meeting(snap, "ana", T0 + 14 * DAY_MS + 23 * HOUR_MS)
        assert ana(snap).streak_count == 2

    def test_one_day_late_resets(self, snapshot):
        snap, _ = log_meeting(snapshot, "ana", T0)
        snap, _ = log_meeting(snap, "ana", T0 + 14 * DAY_MS)
        snap, _ = log_meeting(snap, "ana", T0 + 29 * DAY_MS)
        assert ana(snap).streak_count == 1

    def test_multiplier_caps_at_three(self, snapshot):
        snap = snapshot
        for day in range(25):
            snap, _ = log_meeting(snap, "ana", T0 + day * DAY_MS)
        assert ana(snap).streak_count == 25
        assert ana(snap).multiplier == 3.0

    def test_next_streak_first_meeting_ignores_old_count(self):
        f = Friend(name="Ana", streak_count=7)
        assert next_streak(f, T0) == 1


class TestAtomicity:
    def test_previous_snapshot_untouched(self, snapshot):
        new, _ = log_meeting(snapshot, "ana", T0)
        assert ana(snapshot).total_meetings == 0
        assert snapshot.meetings == ()
        assert new is not snapshot

    def test_unknown_friend(self, snapshot):
        with pytest.raises(FriendNotFoundError):
            log_meeting(snapshot, "nobody", T0)

    def test_note_too_long_changes_nothing(self, snapshot):
        with pytest.raises(InvalidMeetingError):
            log_meeting(snapshot, "ana", T0, note="x" * 201)
        assert ana(snapshot).total_meetings == 0

    def test_note_kept(self, snapshot):
        snap, meeting = log_meeting(snapshot, "ana", T0, note="  coffee  ")
        assert meeting.note == "coffee"
        _, blank = log_meeting(snap, "ana", T0 + 1, note="   ")
        assert blank.note is None

    def test_other_friends_untouched(self):
        bob = Friend(name="Bob", id="bob", streak_count=4, total_meetings=4)
        snap = Snapshot(friends=(Friend(name="Ana", id="ana"), bob))
        snap, _ = log_meeting(snap, "ana", T0)
        assert snap.friend("bob") == bob


class TestInvariants:
    def test_random_sequences(self, snapshot):
        rng = random.Random(42)
        snap = snapshot
        now = T0
        for _ in range(300):
            before = ana(snap)
            now += rng.uniform(0, 30) * DAY_MS
            snap, _ = log_meeting(snap, "ana", now)
            after = ana(snap)
            assert after.total_meetings == before.total_meetings + 1
            assert after.last_meeting_date == now
            assert after.streak_count >= 1
            assert after.multiplier == min(3.0, 1.0 + after.streak_count * 0.1)
            assert after.multiplier == multiplier_for(after.streak_count)
        assert len(snap.meetings) == 300
