"""Data models for shieldtx."""

from shieldtx.models.config import ChainConfig, ClientConfig, ProvingConfig, RelayerConfig
from shieldtx.models.note import Note
from shieldtx.models.proving import Leaf, ProofInput, ProofRequest, ProofResult
from shieldtx.models.records import ActivityRecord, SubmissionRecord
from shieldtx.models.relayer import (
    AnchorRelayTx,
    Capabilities,
    ChainFamily,
    MixerRelayTx,
    NetworkStatus,
    RelayedChainConfig,
    RelayedContract,
    RelayerCommand,
    RelayerFault,
    RelayerMessage,
    RelayState,
    WithdrawErrored,
    WithdrawFinalized,
    WithdrawProgress,
)
from shieldtx.models.transactions import (
    DispatchErrorInfo,
    EventRecord,
    ExtrinsicStatus,
    MetaError,
    MethodPath,
    ModuleError,
    OutcomeStatus,
    TransactionOutcome,
)

__all__ = [
    "ChainConfig", "ClientConfig", "ProvingConfig", "RelayerConfig",
    "Note",
    "Leaf", "ProofInput", "ProofRequest", "ProofResult",
    "ActivityRecord", "SubmissionRecord",
    "AnchorRelayTx", "Capabilities", "ChainFamily", "MixerRelayTx",
    "NetworkStatus", "RelayedChainConfig", "RelayedContract", "RelayerCommand",
    "RelayerFault", "RelayerMessage", "RelayState", "WithdrawErrored",
    "WithdrawFinalized", "WithdrawProgress",
    "DispatchErrorInfo", "EventRecord", "ExtrinsicStatus", "MetaError",
    "MethodPath", "ModuleError", "OutcomeStatus", "TransactionOutcome",
]
