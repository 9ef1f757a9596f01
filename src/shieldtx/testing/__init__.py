"""Integration-test collaborators (local node harness)."""
