"""Relayer wire protocol: inbound message parsing and outbound command encoding."""

from __future__ import annotations

import json
from typing import Any

from shieldtx.errors import ProtocolError
from shieldtx.models.relayer import (
    AnchorRelayTx,
    ChainFamily,
    MixerRelayTx,
    NetworkStatus,
    RelayerCommand,
    RelayerFault,
    RelayerMessage,
    WithdrawErrored,
    WithdrawFinalized,
    WithdrawProgress,
)

_TOP_LEVEL_KEYS = ("withdraw", "error", "network")
_WITHDRAW_PROGRESS_KEYS = ("connecting", "connected")


def _single_key(obj: Any, allowed: tuple[str, ...], where: str) -> tuple[str, Any]:
    if not isinstance(obj, dict):
        raise ProtocolError(f"{where}: expected an object, got {type(obj).__name__}")
    present = [k for k, v in obj.items() if v is not None]
    if len(present) != 1:
        raise ProtocolError(f"{where}: expected exactly one key, got {sorted(present)}")
    key = present[0]
    if key not in allowed:
        raise ProtocolError(f"{where}: unexpected key {key!r}")
    return key, obj[key]


def parse_message(raw: str | bytes | dict) -> RelayerMessage:
    """Turn one inbound relayer frame into a tagged message."""
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise ProtocolError(f"relayer sent invalid JSON: {exc}") from exc

    key, value = _single_key(raw, _TOP_LEVEL_KEYS, "relayer message")

    if key == "network":
        return NetworkStatus(status=str(value))
    if key == "error":
        return RelayerFault(message=str(value))

    stage, payload = _single_key(
        value, ("finalized", "errored") + _WITHDRAW_PROGRESS_KEYS, "withdraw message"
    )
    if stage == "finalized":
        if not isinstance(payload, dict) or "txHash" not in payload:
            raise ProtocolError("withdraw.finalized without txHash")
        return WithdrawFinalized(tx_hash=str(payload["txHash"]))
    if stage == "errored":
        if not isinstance(payload, dict) or "reason" not in payload:
            raise ProtocolError("withdraw.errored without reason")
        return WithdrawErrored(reason=str(payload["reason"]))
    return WithdrawProgress(stage=stage, detail=str(payload))


# ── Outbound ──────────────────────────────────────────────


def buffer_to_fixed(value: bytes | int, length: int = 32) -> str:
    """``0x``-prefixed hex, left-padded to ``length`` bytes."""
    digits = value.hex() if isinstance(value, (bytes, bytearray)) else format(value, "x")
    return "0x" + digits.rjust(length * 2, "0")


def mixer_command(tx: MixerRelayTx) -> RelayerCommand:
    return RelayerCommand(
        family=ChainFamily.SUBSTRATE,
        name="mixer",
        payload={
            "chain": tx.chain,
            "id": tx.tree_id,
            "proof": list(tx.proof),
            "root": list(tx.root),
            "nullifierHash": list(tx.nullifier_hash),
            "recipient": tx.recipient,
            "relayer": tx.relayer,
            "fee": tx.fee,
            "refund": tx.refund,
        },
    )


def anchor_command(tx: AnchorRelayTx) -> RelayerCommand:
    return RelayerCommand(
        family=ChainFamily.EVM,
        name="anchor",
        payload={
            "chain": tx.chain,
            "contract": tx.contract,
            "proof": tx.proof,
            "fee": tx.fee,
            "nullifierHash": tx.nullifier_hash,
            "recipient": tx.recipient,
            "refund": tx.refund,
            "relayer": tx.relayer,
            "refreshCommitment": tx.refresh_commitment,
            "roots": list(tx.roots),
        },
    )


def encode_command(command: RelayerCommand) -> dict:
    return {command.family.value: {command.name: command.payload}}
