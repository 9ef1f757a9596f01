"""Submission journal storage."""

from shieldtx.storage.sqlite import SQLiteSubmissionStore

__all__ = ["SQLiteSubmissionStore"]
