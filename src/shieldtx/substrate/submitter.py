"""Direct extrinsic submission with dispatch-error decoding."""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Sequence

from shieldtx.errors import DispatchError, NetworkError
from shieldtx.interfaces.chain import ChainClient
from shieldtx.models.transactions import (
    ExtrinsicStatus,
    MethodPath,
    OutcomeStatus,
    TransactionOutcome,
)
from shieldtx.substrate.dispatch import describe_dispatch_error, parse_dispatch_error

log = logging.getLogger(__name__)

SYSTEM_SECTION = "system"
EXTRINSIC_FAILED = "ExtrinsicFailed"
EXTRINSIC_SUCCESS = "ExtrinsicSuccess"

UNITS_PER_TOKEN = 1_000_000_000_000


def currency_to_unit_i128(amount: int) -> int:
    """Whole tokens -> base units (12 decimals)."""
    return amount * UNITS_PER_TOKEN


class TransactionSubmitter:
    """Signs, submits and tracks extrinsics until they settle.

    Settlement happens only on an explicit ``System.ExtrinsicSuccess`` or
    ``System.ExtrinsicFailed`` event observed on an in-block or finalized
    status. Reaching a block without either event keeps the outcome pending.
    """

    def __init__(self, chain: ChainClient) -> None:
        self._chain = chain

    async def watch(
        self,
        path: MethodPath,
        params: Sequence[Any] | dict[str, Any],
        signer: Any,
    ) -> AsyncIterator[TransactionOutcome]:
        """Yield pending outcomes, then exactly one terminal outcome."""
        async with self._chain.watch_extrinsic(path, params, signer) as statuses:
            async for status in statuses:
                outcome = self._evaluate(status)
                yield outcome
                if outcome.is_terminal:
                    return
        raise NetworkError(f"{path}: status stream ended before the extrinsic settled")

    async def submit(
        self,
        path: MethodPath,
        params: Sequence[Any] | dict[str, Any],
        signer: Any,
    ) -> str:
        """Submit and wait for settlement.

        Returns the extrinsic hash, raises DispatchError with the decoded
        reason, or NetworkError on transport failure.
        """
        log.info("Submitting %s", path)
        async with aclosing(self.watch(path, params, signer)) as outcomes:
            async for outcome in outcomes:
                if outcome.status is OutcomeStatus.SUCCESS:
                    log.info("%s succeeded (tx=%s)", path, (outcome.tx_hash or "?")[:18])
                    return outcome.tx_hash or ""
                if outcome.status is OutcomeStatus.FAILED:
                    log.warning("%s failed: %s", path, outcome.reason)
                    raise DispatchError(outcome.reason or "", tx_hash=outcome.tx_hash)
                log.debug("%s status: %s", path, outcome.detail)
        raise NetworkError(f"{path}: no outcome produced")

    def _evaluate(self, status: ExtrinsicStatus) -> TransactionOutcome:
        if not (status.is_in_block or status.is_finalized):
            return TransactionOutcome.pending(status.status)

        for event in status.events:
            if event.section != SYSTEM_SECTION:
                continue
            if event.method == EXTRINSIC_FAILED:
                info = parse_dispatch_error(event.data)
                reason = describe_dispatch_error(info, self._chain.registry)
                return TransactionOutcome.failed(reason, tx_hash=status.tx_hash)
            if event.method == EXTRINSIC_SUCCESS:
                return TransactionOutcome.success(status.tx_hash)

        return TransactionOutcome.pending(status.status)


async def transfer_balance(
    submitter: TransactionSubmitter,
    source: Any,
    receivers: Sequence[str],
    amount: int = 1000,
) -> list[str]:
    """Fund each receiver with ``amount`` whole tokens, one transfer at a time."""
    hashes = []
    for address in receivers:
        tx_hash = await submitter.submit(
            MethodPath("balances", "transfer"),
            [address, str(currency_to_unit_i128(amount))],
            source,
        )
        hashes.append(tx_hash)
    return hashes
