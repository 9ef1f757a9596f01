"""Withdrawal service - wires leaves, proving and submission together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from shieldtx.errors import DispatchError, NetworkError, ShieldTxError
from shieldtx.interfaces.store import SubmissionStore
from shieldtx.models.config import ClientConfig
from shieldtx.models.proving import ProofRequest, ProofResult
from shieldtx.models.relayer import ChainFamily, MixerRelayTx
from shieldtx.models.transactions import MethodPath, TransactionOutcome
from shieldtx.proving.backend import load_backend
from shieldtx.proving.coordinator import ProvingCoordinator
from shieldtx.relayer.client import RelayerClient
from shieldtx.relayer.info import fetch_capabilities
from shieldtx.relayer.session import RelaySession
from shieldtx.storage.sqlite import SQLiteSubmissionStore
from shieldtx.substrate.chain import SubstrateChainClient, load_keypair
from shieldtx.substrate.leaves import HttpLeafRpc, LeafFetcher
from shieldtx.substrate.submitter import TransactionSubmitter

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class WithdrawalRequest:
    note: str
    recipient: str
    leaf_index: int
    fee: int = 0
    refund: int = 0
    relayer: str = ""  # relayer account; looked up from the relayer, or our own for direct


class WithdrawalService:
    """Runs one shielded withdrawal end to end.

    fetch leaves -> prove in the worker -> submit directly or via relayer.
    Every submission is journaled; failures are not retried.
    """

    def __init__(
        self,
        cfg: ClientConfig,
        fetcher: LeafFetcher,
        prover: ProvingCoordinator,
        store: SubmissionStore,
        submitter: TransactionSubmitter | None = None,
        relayer: RelayerClient | None = None,
        signer: Any = None,
    ) -> None:
        if submitter is None and relayer is None:
            raise ValueError("need a submitter or a relayer")
        self._cfg = cfg
        self.fetcher = fetcher
        self.prover = prover
        self.store = store
        self.submitter = submitter
        self.relayer = relayer
        self.signer = signer
        self._closers: list[Callable[[], Any]] = []

    @classmethod
    def from_config(cls, cfg: ClientConfig) -> WithdrawalService:
        """Build real components. Connects to the node when submitting directly."""
        if not cfg.proving.backend:
            raise ValueError("no proving backend configured")

        leaf_rpc = HttpLeafRpc(cfg.chain.http_rpc_url)
        prover = ProvingCoordinator(load_backend(cfg.proving.backend), cfg.proving.start_method)
        store = SQLiteSubmissionStore(cfg.db_path)

        submitter = relayer = signer = chain = None
        if cfg.relayer.endpoint:
            relayer = RelayerClient(cfg.relayer.endpoint, error_grace=cfg.relayer.error_grace)
        else:
            if not cfg.chain.keypair_uri:
                raise ValueError("direct submission needs a keypair (SHIELDTX_SEED)")
            chain = SubstrateChainClient(cfg.chain.ws_url, cfg.chain.wait_for_finalization)
            submitter = TransactionSubmitter(chain)
            signer = load_keypair(cfg.chain.keypair_uri)

        service = cls(cfg, LeafFetcher(leaf_rpc), prover, store, submitter, relayer, signer)
        service._closers.append(leaf_rpc.close)
        if chain is not None:
            service._closers.append(chain.close)
        return service

    async def initialize(self) -> None:
        await self.store.initialize()

    async def aclose(self) -> None:
        await self.prover.aclose()
        for close in self._closers:
            result = close()
            if result is not None:
                await result
        await self.store.close()

    @property
    def mode(self) -> str:
        return "relayed" if self.relayer is not None else "direct"

    async def withdraw(
        self,
        req: WithdrawalRequest,
        proving_key: bytes,
        on_update: Callable[[RelaySession], None] | None = None,
    ) -> TransactionOutcome:
        tree_id = self._cfg.chain.tree_id
        sid = await self.store.create_submission(self.mode, tree_id, req.recipient)
        log.info("Withdrawal %d: %s submission from tree %d", sid, self.mode, tree_id)

        try:
            relayer_account = req.relayer or await self._relayer_account()
            leaves = await self.fetcher.fetch_leaves(tree_id)
            await self.store.log_activity(
                "leaves_fetched", f"{len(leaves)} leaves from tree {tree_id}", sid,
            )

            proof = await self.prover.prove(
                ProofRequest(
                    note=req.note,
                    relayer=relayer_account,
                    recipient=req.recipient,
                    leaves=leaves,
                    leaf_index=req.leaf_index,
                    fee=req.fee,
                    refund=req.refund,
                    proving_key=proving_key,
                )
            )
            await self.store.log_activity("proof_generated", "Proof generated", sid)

            if self.relayer is not None:
                outcome = await self._relay(proof, req, relayer_account, on_update)
            else:
                outcome = await self._submit_direct(proof, req, relayer_account)

        except (ShieldTxError, ValueError) as exc:
            await self.store.finish_submission(sid, "failed", reason=str(exc))
            await self.store.log_activity("withdraw_error", str(exc), sid)
            raise

        await self.store.finish_submission(sid, outcome.status.value, outcome.tx_hash, outcome.reason)
        if outcome.ok:
            await self.store.log_activity("withdraw_finalized", f"tx {outcome.tx_hash}", sid)
        else:
            await self.store.log_activity("withdraw_failed", outcome.reason or "", sid)
        return outcome

    async def _relayer_account(self) -> str:
        if self.relayer is None:
            return self.signer.ss58_address
        caps = await fetch_capabilities(self.relayer.endpoint)
        chain = caps.chains(ChainFamily.SUBSTRATE).get(self._cfg.chain.chain_name)
        if chain is None:
            raise NetworkError(f"relayer does not support chain {self._cfg.chain.chain_name}")
        return chain.account

    async def _relay(
        self,
        proof: ProofResult,
        req: WithdrawalRequest,
        relayer_account: str,
        on_update: Callable[[RelaySession], None] | None,
    ) -> TransactionOutcome:
        assert self.relayer is not None
        tx = MixerRelayTx(
            chain=self._cfg.chain.chain_name,
            tree_id=self._cfg.chain.tree_id,
            proof=proof.proof,
            root=proof.root,
            nullifier_hash=proof.nullifier_hash,
            recipient=req.recipient,
            relayer=relayer_account,
            fee=req.fee,
            refund=req.refund,
        )
        return await self.relayer.relay_withdraw(tx, on_update=on_update)

    async def _submit_direct(
        self, proof: ProofResult, req: WithdrawalRequest, relayer_account: str
    ) -> TransactionOutcome:
        assert self.submitter is not None
        params = [
            self._cfg.chain.tree_id,
            f"0x{proof.proof.hex()}",
            f"0x{proof.root.hex()}",
            f"0x{proof.nullifier_hash.hex()}",
            req.recipient,
            relayer_account,
            req.fee,
            req.refund,
        ]
        try:
            tx_hash = await self.submitter.submit(
                MethodPath(self._cfg.chain.mixer_section, "withdraw"), params, self.signer,
            )
        except DispatchError as exc:
            return TransactionOutcome.failed(exc.reason, tx_hash=exc.tx_hash)
        return TransactionOutcome.success(tx_hash)
