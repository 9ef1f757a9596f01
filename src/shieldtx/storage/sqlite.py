"""SQLite implementation of the SubmissionStore protocol."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from shieldtx.models.records import ActivityRecord, SubmissionRecord

SCHEMA = """
-- One row per withdrawal submission, direct or relayed
CREATE TABLE IF NOT EXISTS submissions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    mode TEXT NOT NULL,
    tree_id INTEGER NOT NULL,
    recipient TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending',
    tx_hash TEXT,
    reason TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_submissions_status ON submissions(status);

-- Activity log
CREATE TABLE IF NOT EXISTS activity_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_type TEXT NOT NULL,
    submission_id INTEGER,
    message TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_activity_created ON activity_log(created_at);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteSubmissionStore:
    """SQLite-backed implementation of the SubmissionStore protocol."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    # ── Submissions ────────────────────────────────────────

    async def create_submission(self, mode: str, tree_id: int, recipient: str) -> int:
        now = _now()
        cur = await self.db.execute(
            "INSERT INTO submissions (mode, tree_id, recipient, status, created_at, updated_at)"
            " VALUES (?, ?, ?, 'pending', ?, ?)",
            (mode, tree_id, recipient, now, now),
        )
        await self.db.commit()
        return cur.lastrowid

    async def finish_submission(
        self,
        submission_id: int,
        status: str,
        tx_hash: str | None = None,
        reason: str | None = None,
    ) -> None:
        await self.db.execute(
            "UPDATE submissions SET status=?, tx_hash=?, reason=?, updated_at=? WHERE id=?",
            (status, tx_hash, reason, _now(), submission_id),
        )
        await self.db.commit()

    async def get_submission(self, submission_id: int) -> SubmissionRecord | None:
        async with self.db.execute(
            "SELECT * FROM submissions WHERE id=?", (submission_id,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_submission(row) if row else None

    async def get_recent_submissions(self, limit: int = 20) -> list[SubmissionRecord]:
        async with self.db.execute(
            "SELECT * FROM submissions ORDER BY id DESC LIMIT ?", (limit,)
        ) as cur:
            return [_row_to_submission(row) async for row in cur]

    # ── Activity log ───────────────────────────────────────

    async def log_activity(
        self,
        event_type: str,
        message: str,
        submission_id: int | None = None,
    ) -> None:
        await self.db.execute(
            "INSERT INTO activity_log (event_type, submission_id, message, created_at)"
            " VALUES (?, ?, ?, ?)",
            (event_type, submission_id, message, _now()),
        )
        await self.db.commit()

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        async with self.db.execute(
            "SELECT * FROM activity_log ORDER BY id DESC LIMIT ?", (limit,)
        ) as cur:
            return [
                ActivityRecord(
                    id=row["id"],
                    event_type=row["event_type"],
                    submission_id=row["submission_id"],
                    message=row["message"],
                    created_at=row["created_at"],
                )
                async for row in cur
            ]


def _row_to_submission(row: aiosqlite.Row) -> SubmissionRecord:
    return SubmissionRecord(
        id=row["id"],
        mode=row["mode"],
        tree_id=row["tree_id"],
        recipient=row["recipient"],
        status=row["status"],
        tx_hash=row["tx_hash"],
        reason=row["reason"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
