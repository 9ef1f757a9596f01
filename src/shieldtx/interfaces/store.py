"""SubmissionStore protocol - journal of submissions and activity."""

from __future__ import annotations

from typing import Protocol

from shieldtx.models.records import ActivityRecord, SubmissionRecord


class SubmissionStore(Protocol):
    """Persists submission history for the CLI and for post-mortems."""

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        ...

    async def close(self) -> None:
        ...

    # ── Submissions ────────────────────────────────────────

    async def create_submission(self, mode: str, tree_id: int, recipient: str) -> int:
        """Insert a pending submission and return its id."""
        ...

    async def finish_submission(
        self,
        submission_id: int,
        status: str,
        tx_hash: str | None = None,
        reason: str | None = None,
    ) -> None:
        ...

    async def get_submission(self, submission_id: int) -> SubmissionRecord | None:
        ...

    async def get_recent_submissions(self, limit: int = 20) -> list[SubmissionRecord]:
        ...

    # ── Activity log ───────────────────────────────────────

    async def log_activity(
        self,
        event_type: str,
        message: str,
        submission_id: int | None = None,
    ) -> None:
        ...

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        ...
