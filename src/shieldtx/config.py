"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from shieldtx.models.config import ChainConfig, ClientConfig, ProvingConfig, RelayerConfig


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "SHIELDTX_",
) -> ClientConfig:
    """Load client configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (SHIELDTX_SEED, etc.)
        2. TOML config file
        3. Defaults from ClientConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = ClientConfig()

    # ── Client section ─────────────────────────────────────
    client = raw.get("client", {})
    if v := client.get("log_level"):
        cfg.log_level = str(v)

    # ── Chain section ──────────────────────────────────────
    chain = raw.get("chain", {})
    cfg.chain = ChainConfig(
        ws_url=str(chain.get("ws_url", cfg.chain.ws_url)),
        http_rpc_url=str(chain.get("http_rpc_url", cfg.chain.http_rpc_url)),
        chain_name=str(chain.get("chain_name", cfg.chain.chain_name)),
        tree_id=int(chain.get("tree_id", cfg.chain.tree_id)),
        mixer_section=str(chain.get("mixer_section", cfg.chain.mixer_section)),
        wait_for_finalization=bool(
            chain.get("wait_for_finalization", cfg.chain.wait_for_finalization)
        ),
        keypair_uri=str(chain.get("keypair_uri", "")),
    )

    # ── Relayer section ────────────────────────────────────
    relayer = raw.get("relayer", {})
    cfg.relayer = RelayerConfig(
        endpoint=str(relayer.get("endpoint", "")),
        error_grace=float(relayer.get("error_grace", cfg.relayer.error_grace)),
    )

    # ── Proving section ────────────────────────────────────
    proving = raw.get("proving", {})
    cfg.proving = ProvingConfig(
        backend=str(proving.get("backend", "")),
        proving_key_path=str(proving.get("proving_key_path", "")),
        start_method=str(proving.get("start_method", cfg.proving.start_method)),
    )

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)

    # ── Environment variable overrides (highest priority) ──
    if seed := os.environ.get(f"{env_prefix}SEED"):
        cfg.chain.keypair_uri = seed
    if ws := os.environ.get(f"{env_prefix}WS_URL"):
        cfg.chain.ws_url = ws
    if rpc := os.environ.get(f"{env_prefix}HTTP_RPC_URL"):
        cfg.chain.http_rpc_url = rpc
    if endpoint := os.environ.get(f"{env_prefix}RELAYER"):
        cfg.relayer.endpoint = endpoint
    if backend := os.environ.get(f"{env_prefix}PROVING_BACKEND"):
        cfg.proving.backend = backend

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())
    if cfg.proving.proving_key_path:
        cfg.proving.proving_key_path = str(Path(cfg.proving.proving_key_path).expanduser())

    return cfg
