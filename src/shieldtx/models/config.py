"""Configuration models for the client."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ChainConfig:
    ws_url: str = "ws://127.0.0.1:9944"
    http_rpc_url: str = "http://127.0.0.1:9933"
    chain_name: str = "localnode"
    tree_id: int = 0
    mixer_section: str = "mixerBn254"
    wait_for_finalization: bool = False
    keypair_uri: str = ""  # loaded from env var SHIELDTX_SEED


@dataclass
class RelayerConfig:
    endpoint: str = ""  # empty = submit directly on-chain
    error_grace: float = 5.0  # seconds to wait for a withdraw message after {error}


@dataclass
class ProvingConfig:
    backend: str = ""  # "package.module:attribute"
    proving_key_path: str = ""
    start_method: str = "spawn"


@dataclass
class ClientConfig:
    """Complete client configuration."""

    log_level: str = "info"
    chain: ChainConfig = field(default_factory=ChainConfig)
    relayer: RelayerConfig = field(default_factory=RelayerConfig)
    proving: ProvingConfig = field(default_factory=ProvingConfig)
    db_path: str = "~/.shieldtx/journal.db"
