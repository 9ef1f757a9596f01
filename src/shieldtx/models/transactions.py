"""On-chain submission models: call paths, status updates, outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class MethodPath:
    """Pallet section + call name, e.g. ``MethodPath("balances", "transfer")``."""

    section: str
    method: str

    def __str__(self) -> str:
        return f"{self.section}.{self.method}"


@dataclass(frozen=True)
class EventRecord:
    """A runtime event triggered by the watched extrinsic."""

    section: str  # lower-case pallet name, e.g. "system"
    method: str  # e.g. "ExtrinsicSuccess"
    data: Any = None


@dataclass(frozen=True)
class ExtrinsicStatus:
    """One update from an extrinsic's status subscription.

    ``events`` is only populated once the extrinsic is in a block.
    """

    status: str  # "ready", "broadcast", "inBlock", "finalized", ...
    tx_hash: str
    block_hash: str | None = None
    events: list[EventRecord] = field(default_factory=list)

    @property
    def is_in_block(self) -> bool:
        return self.status == "inBlock"

    @property
    def is_finalized(self) -> bool:
        return self.status == "finalized"


@dataclass(frozen=True)
class ModuleError:
    index: int
    error: int


@dataclass(frozen=True)
class DispatchErrorInfo:
    """Structured dispatch error taken from an ``ExtrinsicFailed`` event."""

    type: str  # "Module", "Token", "BadOrigin", "Arithmetic", ...
    module: ModuleError | None = None
    detail: str | None = None  # subtype for Token/Arithmetic/Transactional errors

    @property
    def is_module(self) -> bool:
        return self.module is not None

    @property
    def is_token(self) -> bool:
        return self.type == "Token"


@dataclass(frozen=True)
class MetaError:
    """A module error resolved through chain metadata."""

    section: str
    name: str
    docs: str = ""


class OutcomeStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class TransactionOutcome:
    """Lifecycle value for one submission, direct or relayed.

    Exactly one terminal outcome (success xor failed) is produced per
    submission. Pending values are transient progress reports.
    """

    status: OutcomeStatus
    tx_hash: str | None = None
    reason: str | None = None
    detail: str | None = None  # e.g. "inBlock", "connected"

    @classmethod
    def success(cls, tx_hash: str) -> TransactionOutcome:
        return cls(OutcomeStatus.SUCCESS, tx_hash=tx_hash)

    @classmethod
    def failed(cls, reason: str, tx_hash: str | None = None) -> TransactionOutcome:
        return cls(OutcomeStatus.FAILED, tx_hash=tx_hash, reason=reason)

    @classmethod
    def pending(cls, detail: str | None = None) -> TransactionOutcome:
        return cls(OutcomeStatus.PENDING, detail=detail)

    @property
    def is_terminal(self) -> bool:
        return self.status is not OutcomeStatus.PENDING

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS
