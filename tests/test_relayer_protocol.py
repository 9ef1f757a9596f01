"""Relayer message parsing and command encoding."""

from __future__ import annotations

import pytest

from shieldtx.errors import ProtocolError
from shieldtx.models.relayer import (
    AnchorRelayTx,
    MixerRelayTx,
    NetworkStatus,
    RelayerFault,
    WithdrawErrored,
    WithdrawFinalized,
    WithdrawProgress,
)
from shieldtx.relayer.protocol import (
    anchor_command,
    buffer_to_fixed,
    encode_command,
    mixer_command,
    parse_message,
)


# ── Inbound ───────────────────────────────────────────────────────


def test_parse_finalized():
    message = parse_message('{"withdraw": {"finalized": {"txHash": "0xabc"}}}')
    assert message == WithdrawFinalized(tx_hash="0xabc")
    assert message.kind == "withdraw_finalized"


def test_parse_errored():
    message = parse_message(b'{"withdraw": {"errored": {"reason": "insufficient funds"}}}')
    assert isinstance(message, WithdrawErrored)
    assert message.reason == "insufficient funds"


@pytest.mark.parametrize("stage", ["connecting", "connected"])
def test_parse_withdraw_progress(stage):
    message = parse_message({"withdraw": {stage: {}}})
    assert isinstance(message, WithdrawProgress)
    assert message.stage == stage


def test_parse_network_and_error():
    assert parse_message({"network": "connected"}) == NetworkStatus(status="connected")
    assert parse_message({"error": "bad proof"}) == RelayerFault(message="bad proof")


def test_null_keys_are_ignored():
    message = parse_message({"withdraw": None, "error": None, "network": "connecting"})
    assert isinstance(message, NetworkStatus)


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[]",
        {},
        {"network": "connected", "error": "x"},
        {"unknown": 1},
        {"withdraw": {"finalized": {}}},
        {"withdraw": {"errored": "nope"}},
        {"withdraw": {"exploded": {}}},
    ],
)
def test_parse_rejects_malformed(raw):
    with pytest.raises(ProtocolError):
        parse_message(raw)


# ── Outbound ──────────────────────────────────────────────────────


def test_buffer_to_fixed():
    assert buffer_to_fixed(b"\x01\x02", 4) == "0x00000102"
    assert buffer_to_fixed(255) == "0x" + "0" * 62 + "ff"
    assert len(buffer_to_fixed(b"\xff" * 32)) == 66


def test_mixer_command_shape():
    tx = MixerRelayTx(
        chain="localnode",
        tree_id=0,
        proof=b"\x01\x02",
        root=b"\x03",
        nullifier_hash=b"\x04",
        recipient="5bob",
        relayer="5relayer",
        fee=10,
        refund=0,
    )
    wire = encode_command(mixer_command(tx))

    assert wire == {
        "substrate": {
            "mixer": {
                "chain": "localnode",
                "id": 0,
                "proof": [1, 2],
                "root": [3],
                "nullifierHash": [4],
                "recipient": "5bob",
                "relayer": "5relayer",
                "fee": 10,
                "refund": 0,
            }
        }
    }


def test_anchor_command_shape():
    tx = AnchorRelayTx(
        chain="ganache",
        contract="0xanchor",
        proof="0xproof",
        fee="0x00",
        nullifier_hash="0xnull",
        recipient="0xbob",
        refund="0x00",
        relayer="0xrelayer",
        refresh_commitment="0x" + "00" * 32,
        roots=b"\x01\x02",
    )
    wire = encode_command(anchor_command(tx))

    payload = wire["evm"]["anchor"]
    assert payload["contract"] == "0xanchor"
    assert payload["nullifierHash"] == "0xnull"
    assert payload["roots"] == [1, 2]
    assert list(wire) == ["evm"]
