"""Keeper: the core class. Owns the live snapshot, persists every change."""

from __future__ import annotations

import sqlite3
import time
import warnings
from pathlib import Path
from typing import Any, Callable

from intime import backup, roster, streak
from intime.cadence import CadenceReading, read_cadence
from intime.errors import FriendNotFoundError, PersistenceWarning
from intime.health import due_order, health_score, needing_attention, overall_health, rank_by_health
from intime.models import DEFAULT_CADENCE_DAYS, Friend, Meeting, RelationshipTier, Snapshot, Trace, now_ms
from intime.storage import Storage
from intime.undo import DEFAULT_UNDO_TTL, PendingDelete, UndoBuffer

# Type: zero-arg callable returning epoch milliseconds
Clock = Callable[[], float]


class Keeper:
    """Un tracker persistente. Un archivo SQLite = un snapshot.

    API:
        keeper.add_friend(name)         : empezar a seguir a alguien
        keeper.log_meeting(friend_id)   : nos vimos, racha al día
        keeper.delete_friend(id)        : borrar (con undo)
        keeper.undo_delete()            : deshacer el último borrado
        keeper.export() / import_backup : copia de seguridad
        keeper.reading(id) / health(id) : valores derivados, calculados al leer
        keeper.traces()                 : consultar trazas de operaciones

    Every mutation builds a new Snapshot and swaps it in, then writes it
    through storage. A file that cannot be opened or a failed write warns
    once and the keeper goes on in memory only.
    """

    def __init__(self, path: str | Path = "intime.db",
                 clock: Clock = now_ms,
                 undo_ttl: float = DEFAULT_UNDO_TTL,
                 enable_traces: bool = False,
                 _storage: Any = None) -> None:
        self._clock = clock
        self._enable_traces = enable_traces
        self._undo = UndoBuffer(ttl=undo_ttl)
        self._memory_only = False
        self._storage = _storage
        loaded = None
        try:
            if self._storage is None:
                self._storage = Storage(path)
            loaded = self._storage.load()
        except (sqlite3.Error, OSError, ValueError) as exc:
            # Leave the file alone; it may still be recoverable by hand
            self._go_memory_only(exc, stacklevel=3)
        self._snapshot = loaded or Snapshot.empty()

    # ── state ──────────────────────────────────────────────────────────

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def memory_only(self) -> bool:
        """True once storage has failed; nothing more is written this session."""
        return self._memory_only

    def friend(self, friend_id: str) -> Friend:
        found = self._snapshot.friend(friend_id)
        if found is None:
            raise FriendNotFoundError(friend_id)
        return found

    def _now(self, now: float | None) -> float:
        return self._clock() if now is None else now

    def _go_memory_only(self, exc: Exception, stacklevel: int) -> None:
        self._memory_only = True
        warnings.warn(
            f"intime: storage unavailable ({exc}); changes are kept in memory "
            "for this session only.",
            PersistenceWarning,
            stacklevel=stacklevel,
        )

    def _commit(self, new_snapshot: Snapshot, stacklevel: int = 4) -> None:
        """Swap in `new_snapshot` and save it.

        `stacklevel` is for the PersistenceWarning: 4 reaches the caller of
        a public method that calls `_commit` itself.
        """
        self._snapshot = new_snapshot
        if self._memory_only:
            return
        try:
            self._storage.save(new_snapshot)
        except (sqlite3.Error, OSError) as exc:
            self._go_memory_only(exc, stacklevel)

    # ── friends ────────────────────────────────────────────────────────

    def add_friend(self, name: str,
                   cadence_days: int = DEFAULT_CADENCE_DAYS,
                   relationship_tier: str | RelationshipTier = RelationshipTier.CLOSE,
                   now: float | None = None) -> Friend:
        t0 = time.time()
        now = self._now(now)
        new_snapshot, friend = roster.add_friend(
            self._snapshot, name, now,
            cadence_days=cadence_days,
            relationship_tier=relationship_tier,
        )
        self._commit(new_snapshot)
        self._trace("add_friend", name, friend.id, friend.id, t0)
        return friend

    def edit_friend(self, friend_id: str, name: str | None = None,
                    cadence_days: int | None = None,
                    relationship_tier: str | RelationshipTier | None = None,
                    now: float | None = None) -> Friend:
        t0 = time.time()
        new_snapshot, friend = roster.edit_friend(
            self._snapshot, friend_id, self._now(now),
            name=name, cadence_days=cadence_days,
            relationship_tier=relationship_tier,
        )
        self._commit(new_snapshot)
        self._trace("edit_friend", friend_id, friend.name, friend_id, t0)
        return friend

    def archive_friend(self, friend_id: str, now: float | None = None) -> Friend:
        return self._set_archived(friend_id, True, now)

    def unarchive_friend(self, friend_id: str, now: float | None = None) -> Friend:
        return self._set_archived(friend_id, False, now)

    def _set_archived(self, friend_id: str, archived: bool,
                      now: float | None) -> Friend:
        t0 = time.time()
        new_snapshot, friend = roster.set_archived(
            self._snapshot, friend_id, archived, self._now(now),
        )
        if new_snapshot is not self._snapshot:
            self._commit(new_snapshot, stacklevel=5)
        self._trace("archive" if archived else "unarchive",
                    friend_id, str(friend.is_archived), friend_id, t0)
        return friend

    def delete_friend(self, friend_id: str, now: float | None = None) -> PendingDelete:
        """Delete a friend and its meetings. Undo stays possible for a while."""
        t0 = time.time()
        now = self._now(now)
        new_snapshot, friend, removed = roster.remove_friend(self._snapshot, friend_id)
        self._commit(new_snapshot)
        pending = self._undo.hold(friend, removed, now)
        self._trace("delete_friend", friend_id,
                    f"{len(removed)} meetings", friend_id, t0)
        return pending

    def pending_undo(self, now: float | None = None) -> PendingDelete | None:
        return self._undo.peek(self._now(now))

    def undo_delete(self, now: float | None = None) -> Friend | None:
        """Put back the last deleted friend. None if nothing to undo."""
        t0 = time.time()
        pending = self._undo.take(self._now(now))
        if pending is None:
            return None
        self._commit(roster.restore_friend(
            self._snapshot, pending.friend, pending.meetings,
        ))
        self._trace("undo_delete", pending.friend.id,
                    f"{len(pending.meetings)} meetings", pending.friend.id, t0)
        return pending.friend

    # ── meetings ───────────────────────────────────────────────────────

    def log_meeting(self, friend_id: str, note: str | None = None,
                    now: float | None = None) -> Meeting:
        """Nos vimos. Append the meeting and move the streak, together."""
        t0 = time.time()
        new_snapshot, meeting = streak.log_meeting(
            self._snapshot, friend_id, self._now(now), note=note,
        )
        self._commit(new_snapshot)
        self._trace("log_meeting", note or "",
                    f"streak={new_snapshot.friend(friend_id).streak_count}",
                    friend_id, t0)
        return meeting

    def meetings(self, friend_id: str) -> list[Meeting]:
        """History for one friend, newest first."""
        return self._snapshot.meetings_for(friend_id)

    # ── derived values (pull-based, computed at read time) ─────────────

    def reading(self, friend_id: str, now: float | None = None) -> CadenceReading:
        return read_cadence(self.friend(friend_id), self._now(now))

    def health(self, friend_id: str) -> int:
        return health_score(self.friend(friend_id), self._snapshot.meetings)

    def overall_health(self) -> int:
        return overall_health(self._snapshot)

    def ranking(self) -> list[tuple[Friend, int]]:
        return rank_by_health(self._snapshot)

    def due_order(self, now: float | None = None) -> list[Friend]:
        return due_order(self._snapshot, self._now(now))

    def needing_attention(self, now: float | None = None) -> list[Friend]:
        return needing_attention(self._snapshot, self._now(now))

    # ── settings ───────────────────────────────────────────────────────

    def update_settings(self, **changes) -> None:
        self._commit(roster.update_settings(self._snapshot, **changes))

    def complete_onboarding(self) -> None:
        self._commit(roster.update_settings(
            self._snapshot, has_completed_onboarding=True,
        ))

    # ── backup ─────────────────────────────────────────────────────────

    def export(self, now: float | None = None) -> dict:
        """`{version, exportedAt, friends, meetings, settings}`, JSON-ready."""
        t0 = time.time()
        bundle = backup.export_bundle(self._snapshot, self._now(now))
        self._trace("export", "", f"{len(bundle['friends'])} friends", "", t0)
        return bundle

    def export_json(self, now: float | None = None) -> str:
        return backup.dumps(self.export(now))

    def export_to(self, directory: str | Path, now: float | None = None) -> Path:
        """Write a dated backup file into `directory`. Returns its path."""
        now = self._now(now)
        target = Path(directory) / backup.backup_filename(now)
        target.write_text(self.export_json(now), encoding="utf-8")
        return target

    def import_backup(self, raw: bytes | str | dict,
                      now: float | None = None) -> Snapshot:
        """Replace the whole snapshot with a backup. Nothing changes on error.

        The caller is expected to have asked the user first: the previous
        snapshot is not kept anywhere.
        """
        return self._import(raw, now)

    def import_file(self, path: str | Path, now: float | None = None) -> Snapshot:
        return self._import(Path(path).read_bytes(), now)

    def _import(self, raw: bytes | str | dict, now: float | None) -> Snapshot:
        t0 = time.time()
        new_snapshot = backup.load_backup(raw, self._now(now))
        self._undo.clear()
        self._commit(new_snapshot, stacklevel=5)
        self._trace("import", "",
                    f"{len(new_snapshot.friends)} friends, "
                    f"{len(new_snapshot.meetings)} meetings", "", t0)
        return new_snapshot

    def reset(self) -> None:
        """Borrar todo. Back to an empty, not-onboarded snapshot."""
        t0 = time.time()
        self._undo.clear()
        self._commit(Snapshot.empty())
        self._trace("reset", "", "", "", t0)

    # ── traces (observability) ─────────────────────────────────────────

    def _trace(self, operation: str, input_text: str,
               output_text: str, source: str, t0: float) -> None:
        """Registra un trace si enable_traces=True."""
        if not self._enable_traces or self._memory_only:
            return
        duration_ms = (time.time() - t0) * 1000
        trace = Trace(
            operation=operation,
            input_text=str(input_text)[:500],
            output_text=str(output_text)[:500],
            source=source or "",
            duration_ms=duration_ms,
        )
        self._storage.save_trace(trace)

    def traces(self, operation: str | None = None,
               source: str | None = None,
               limit: int = 100) -> list[Trace]:
        """Consulta trazas de operaciones."""
        if self._storage is None:
            return []
        return self._storage.load_traces(
            operation=operation, source=source, limit=limit,
        )

    # ── utilidades ─────────────────────────────────────────────────────

    @property
    def count(self) -> int:
        """Cuántos amigos activos hay."""
        return len(self._snapshot.active_friends())

    def close(self) -> None:
        if self._storage is not None:
            self._storage.close()

    def __enter__(self) -> Keeper:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return (f"Keeper(friends={self.count}, "
                f"meetings={len(self._snapshot.meetings)})")
