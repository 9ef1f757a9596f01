"""Relayer wire models: inbound messages, outbound commands, capabilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class ChainFamily(str, Enum):
    """First-level key of every outbound relayer command."""

    SUBSTRATE = "substrate"
    EVM = "evm"


class RelayState(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FINALIZED = "finalized"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in (RelayState.FINALIZED, RelayState.ERRORED)


# ── Inbound messages ──────────────────────────────────────
#
# The relayer sends JSON objects with exactly one populated top-level key.
# Each variant below carries an explicit ``kind`` discriminant.


@dataclass(frozen=True)
class NetworkStatus:
    """Connectivity report ("connecting", "connected", ...). Never an outcome."""

    status: str
    kind: str = field(default="network", init=False)


@dataclass(frozen=True)
class RelayerFault:
    """Connection-level ``{error: string}`` message."""

    message: str
    kind: str = field(default="error", init=False)


@dataclass(frozen=True)
class WithdrawProgress:
    """``{withdraw: {connecting | connected: ...}}`` - non-terminal."""

    stage: str
    detail: str = ""
    kind: str = field(default="withdraw_progress", init=False)


@dataclass(frozen=True)
class WithdrawFinalized:
    tx_hash: str
    kind: str = field(default="withdraw_finalized", init=False)


@dataclass(frozen=True)
class WithdrawErrored:
    reason: str
    kind: str = field(default="withdraw_errored", init=False)


RelayerMessage = Union[
    NetworkStatus, RelayerFault, WithdrawProgress, WithdrawFinalized, WithdrawErrored
]


# ── Outbound commands ─────────────────────────────────────


@dataclass(frozen=True)
class MixerRelayTx:
    """Substrate mixer withdrawal relayed on the caller's behalf.

    Addresses are SS58-encoded; byte fields go over the wire as integer arrays.
    """

    chain: str
    tree_id: int
    proof: bytes = field(repr=False)
    root: bytes
    nullifier_hash: bytes
    recipient: str
    relayer: str
    fee: int
    refund: int


@dataclass(frozen=True)
class AnchorRelayTx:
    """EVM anchor withdrawal. Hex fields are 32-byte padded ``0x`` strings."""

    chain: str
    contract: str
    proof: str = field(repr=False)
    fee: str
    nullifier_hash: str
    recipient: str
    refund: str
    relayer: str
    refresh_commitment: str
    roots: bytes


@dataclass(frozen=True)
class RelayerCommand:
    """``{<family>: {<name>: <payload>}}`` envelope."""

    family: ChainFamily
    name: str
    payload: dict


# ── Capabilities (HTTP info endpoint) ─────────────────────


@dataclass
class EventsWatcher:
    enabled: bool = False
    polling_interval: int = 0  # ms


@dataclass
class LinkedAnchor:
    chain: str
    address: str


@dataclass
class RelayedContract:
    contract: str
    address: str
    deployed_at: int = 0
    events_watcher: EventsWatcher = field(default_factory=EventsWatcher)
    size: float = 0
    withdraw_fee_percentage: float = 0.0
    linked_anchors: list[LinkedAnchor] = field(default_factory=list)


@dataclass
class RelayedChainConfig:
    """Relayer setup for one chain: signing account, fee beneficiary, contracts."""

    account: str
    beneficiary: str | None = None
    contracts: list[RelayedContract] = field(default_factory=list)


@dataclass
class Capabilities:
    has_ip_service: bool = False
    substrate: dict[str, RelayedChainConfig] = field(default_factory=dict)
    evm: dict[str, RelayedChainConfig] = field(default_factory=dict)

    def chains(self, family: ChainFamily) -> dict[str, RelayedChainConfig]:
        return self.substrate if family is ChainFamily.SUBSTRATE else self.evm

    def supports(self, family: ChainFamily, chain: str) -> bool:
        return chain in self.chains(family)
