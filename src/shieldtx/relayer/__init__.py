"""Relayed submission: wire protocol, session state machine, websocket client."""

from shieldtx.relayer.client import RelayerClient
from shieldtx.relayer.info import fetch_capabilities, withdraw_fee
from shieldtx.relayer.protocol import (
    anchor_command,
    buffer_to_fixed,
    encode_command,
    mixer_command,
    parse_message,
)
from shieldtx.relayer.session import RelaySession

__all__ = [
    "RelayerClient",
    "RelaySession",
    "anchor_command",
    "buffer_to_fixed",
    "encode_command",
    "fetch_capabilities",
    "mixer_command",
    "parse_message",
    "withdraw_fee",
]
