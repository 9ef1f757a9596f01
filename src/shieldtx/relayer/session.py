"""Relay session state machine for one relayed withdrawal."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from shieldtx.models.relayer import (
    NetworkStatus,
    RelayerFault,
    RelayerMessage,
    RelayState,
    WithdrawErrored,
    WithdrawFinalized,
    WithdrawProgress,
)
from shieldtx.models.transactions import TransactionOutcome

log = logging.getLogger(__name__)


@dataclass
class RelaySession:
    """Tracks Connecting -> Connected -> Finalized | Errored.

    Once terminal, further messages are recorded nowhere and change nothing.
    A connection-level ``error`` message is held as ``pending_error``: it
    becomes the terminal failure unless a ``withdraw`` message supersedes it
    (see ``settle_pending_error``).
    """

    state: RelayState = RelayState.CONNECTING
    tx_hash: str | None = None
    reason: str | None = None
    network: str | None = None
    pending_error: str | None = None
    history: list[RelayerMessage] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def apply(self, message: RelayerMessage) -> RelayState:
        if self.is_terminal:
            log.debug("Ignoring %s after terminal state %s", message.kind, self.state.value)
            return self.state
        self.history.append(message)

        if isinstance(message, NetworkStatus):
            self.network = message.status
            self._track_connectivity(message.status)
        elif isinstance(message, WithdrawProgress):
            self._track_connectivity(message.stage)
        elif isinstance(message, WithdrawFinalized):
            self.pending_error = None
            self.tx_hash = message.tx_hash
            self.state = RelayState.FINALIZED
        elif isinstance(message, WithdrawErrored):
            self.pending_error = None
            self.reason = message.reason
            self.state = RelayState.ERRORED
        elif isinstance(message, RelayerFault):
            self.pending_error = message.message
        return self.state

    def settle_pending_error(self) -> bool:
        """Promote a held ``error`` message to the terminal failure."""
        if self.is_terminal or self.pending_error is None:
            return False
        self.reason = self.pending_error
        self.pending_error = None
        self.state = RelayState.ERRORED
        return True

    def outcome(self) -> TransactionOutcome:
        if self.state is RelayState.FINALIZED:
            return TransactionOutcome.success(self.tx_hash or "")
        if self.state is RelayState.ERRORED:
            return TransactionOutcome.failed(self.reason or "")
        return TransactionOutcome.pending(self.state.value)

    def _track_connectivity(self, status: str) -> None:
        if status == RelayState.CONNECTED.value:
            self.state = RelayState.CONNECTED
        elif status == RelayState.CONNECTING.value:
            self.state = RelayState.CONNECTING
