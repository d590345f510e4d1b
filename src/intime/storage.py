"""SQLite storage. Un archivo = un snapshot."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import asdict
from pathlib import Path

from intime.models import Friend, Meeting, RelationshipTier, Settings, Snapshot, Theme, Trace


class Storage:
    """SQLite backend. Zero config. Portable.

    Persistence capability for the Keeper: `load()` the last snapshot,
    `save(snapshot)` the whole thing in one transaction.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.conn = sqlite3.connect(str(self.path))
        try:
            self.conn.execute("PRAGMA journal_mode=WAL")
            self._init_schema()
        except sqlite3.Error:
            self.conn.close()
            raise

    def _init_schema(self) -> None:
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS friends (
                id TEXT PRIMARY KEY,
                position INTEGER NOT NULL,
                name TEXT NOT NULL,
                relationship_tier TEXT NOT NULL DEFAULT 'close',
                cadence_days NUMERIC NOT NULL,
                last_meeting_date NUMERIC,
                streak_count INTEGER NOT NULL DEFAULT 0,
                total_meetings INTEGER NOT NULL DEFAULT 0,
                is_archived INTEGER NOT NULL DEFAULT 0,
                created_at NUMERIC NOT NULL,
                updated_at NUMERIC NOT NULL
            );

            CREATE TABLE IF NOT EXISTS meetings (
                id TEXT PRIMARY KEY,
                position INTEGER NOT NULL,
                friend_id TEXT NOT NULL,
                timestamp NUMERIC NOT NULL,
                note TEXT,
                created_at NUMERIC NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_meetings_friend
                ON meetings(friend_id, timestamp);

            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS traces (
                id TEXT PRIMARY KEY,
                operation TEXT NOT NULL,
                input_text TEXT NOT NULL DEFAULT '',
                output_text TEXT NOT NULL DEFAULT '',
                source TEXT NOT NULL DEFAULT '',
                duration_ms REAL,
                metadata TEXT NOT NULL DEFAULT '{}',
                created_at REAL NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_traces_operation
                ON traces(operation);
            CREATE INDEX IF NOT EXISTS idx_traces_created
                ON traces(created_at DESC);
            CREATE INDEX IF NOT EXISTS idx_traces_source
                ON traces(source);
        """)
        self.conn.commit()

    # ── Snapshot ───────────────────────────────────────────────────────

    def load(self) -> Snapshot | None:
        """Last saved snapshot, or None if nothing was ever saved."""
        rows = self.conn.execute("SELECT key, value FROM settings").fetchall()
        if not rows:
            return None
        settings = self._rows_to_settings(rows)

        friends = self.conn.execute(
            """SELECT id, name, relationship_tier, cadence_days,
                      last_meeting_date, streak_count, total_meetings,
                      is_archived, created_at, updated_at
               FROM friends ORDER BY position"""
        ).fetchall()
        meetings = self.conn.execute(
            """SELECT id, friend_id, timestamp, note, created_at
               FROM meetings ORDER BY position"""
        ).fetchall()
        return Snapshot(
            friends=tuple(self._row_to_friend(r) for r in friends),
            meetings=tuple(self._row_to_meeting(r) for r in meetings),
            settings=settings,
        )

    def save(self, snapshot: Snapshot) -> None:
        """Replace everything stored with `snapshot`. All or nothing."""
        with self.conn:
            self.conn.execute("DELETE FROM friends")
            self.conn.execute("DELETE FROM meetings")
            self.conn.execute("DELETE FROM settings")
            self.conn.executemany(
                """INSERT INTO friends
                   (id, position, name, relationship_tier, cadence_days,
                    last_meeting_date, streak_count, total_meetings,
                    is_archived, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        f.id, i, f.name, f.relationship_tier.value,
                        f.cadence_days, f.last_meeting_date, f.streak_count,
                        f.total_meetings, int(f.is_archived),
                        f.created_at, f.updated_at,
                    )
                    for i, f in enumerate(snapshot.friends)
                ],
            )
            self.conn.executemany(
                """INSERT INTO meetings
                   (id, position, friend_id, timestamp, note, created_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                [
                    (m.id, i, m.friend_id, m.timestamp, m.note, m.created_at)
                    for i, m in enumerate(snapshot.meetings)
                ],
            )
            data = asdict(snapshot.settings)
            data["theme"] = snapshot.settings.theme.value
            self.conn.executemany(
                "INSERT INTO settings (key, value) VALUES (?, ?)",
                [(k, json.dumps(v)) for k, v in data.items()],
            )

    # ── Traces ─────────────────────────────────────────────────────────

    def save_trace(self, trace: Trace) -> None:
        self.conn.execute(
            """INSERT INTO traces
               (id, operation, input_text, output_text, source,
                duration_ms, metadata, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                trace.id, trace.operation, trace.input_text,
                trace.output_text, trace.source, trace.duration_ms,
                json.dumps(trace.metadata), trace.created_at,
            ),
        )
        self.conn.commit()

    def load_traces(self, operation: str | None = None,
                    source: str | None = None,
                    limit: int = 100) -> list[Trace]:
        query = "SELECT * FROM traces WHERE 1=1"
        params: list = []
        if operation is not None:
            query += " AND operation = ?"
            params.append(operation)
        if source is not None:
            query += " AND source = ?"
            params.append(source)
        query += " ORDER BY created_at DESC LIMIT ?"
        params.append(limit)
        rows = self.conn.execute(query, params).fetchall()
        return [self._row_to_trace(r) for r in rows]

    # ── Close ──────────────────────────────────────────────────────────

    def close(self) -> None:
        self.conn.close()

    # ── Row mappers ────────────────────────────────────────────────────

    @staticmethod
    def _row_to_friend(row: tuple) -> Friend:
        return Friend(
            id=row[0],
            name=row[1],
            relationship_tier=RelationshipTier(row[2]),
            cadence_days=row[3],
            last_meeting_date=row[4],
            streak_count=row[5],
            total_meetings=row[6],
            is_archived=bool(row[7]),
            created_at=row[8],
            updated_at=row[9],
        )

    @staticmethod
    def _row_to_meeting(row: tuple) -> Meeting:
        return Meeting(
            id=row[0],
            friend_id=row[1],
            timestamp=row[2],
            note=row[3],
            created_at=row[4],
        )

    @staticmethod
    def _rows_to_settings(rows: list[tuple]) -> Settings:
        data = {k: json.loads(v) for k, v in rows}
        defaults = asdict(Settings())
        merged = {k: data.get(k, default) for k, default in defaults.items()}
        merged["theme"] = Theme(merged["theme"])
        return Settings(**merged)

    @staticmethod
    def _row_to_trace(row: tuple) -> Trace:
        return Trace(
            id=row[0],
            operation=row[1],
            input_text=row[2],
            output_text=row[3],
            source=row[4],
            duration_ms=row[5],
            metadata=json.loads(row[6]),
            created_at=row[7],
        )
