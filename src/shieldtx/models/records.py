"""Journal record types for submission history."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SubmissionRecord:
    """A withdrawal submission as persisted in the journal."""

    id: int
    mode: str  # "direct" | "relayed"
    tree_id: int
    recipient: str
    status: str = "pending"  # pending | success | failed
    tx_hash: str | None = None
    reason: str | None = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class ActivityRecord:
    """A single activity log entry."""

    id: int
    event_type: str
    submission_id: int | None
    message: str
    created_at: str
