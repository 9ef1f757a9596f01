"""Exception taxonomy for shieldtx components."""

from __future__ import annotations


class ShieldTxError(Exception):
    """Base class for all shieldtx errors."""


class NetworkError(ShieldTxError):
    """RPC or channel failure. Never retried internally."""


class ProtocolError(ShieldTxError):
    """A message envelope did not match the expected tagged union."""


class NoteError(ShieldTxError):
    """A serialized note could not be parsed."""


class DispatchError(ShieldTxError):
    """The runtime rejected an extrinsic after inclusion.

    ``reason`` is the decoded ``"<section>.<name>"`` or ``"<type>.<subtype>"``
    string, or the raw dispatch error type when nothing better is known.
    """

    def __init__(self, reason: str, tx_hash: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.tx_hash = tx_hash


class RelayError(ShieldTxError):
    """The relayer reported a failed withdrawal."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ProofGenerationError(ShieldTxError):
    """The proving worker reported a failure for one job."""


class WorkerTerminatedError(ShieldTxError):
    """A proof was requested from a worker that has been destroyed."""
