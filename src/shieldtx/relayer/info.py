"""Relayer capabilities, fetched over HTTP from ``/api/v1/info``."""

from __future__ import annotations

import logging

import httpx

from shieldtx.errors import NetworkError
from shieldtx.models.relayer import (
    Capabilities,
    EventsWatcher,
    LinkedAnchor,
    RelayedChainConfig,
    RelayedContract,
)

log = logging.getLogger(__name__)


def _parse_contract(raw: dict) -> RelayedContract:
    watcher = raw.get("eventsWatcher") or {}
    return RelayedContract(
        contract=raw.get("contract", ""),
        address=raw.get("address", ""),
        deployed_at=int(raw.get("deployedAt") or 0),
        events_watcher=EventsWatcher(
            enabled=bool(watcher.get("enabled", False)),
            polling_interval=int(watcher.get("pollingInterval") or 0),
        ),
        size=raw.get("size") or 0,
        withdraw_fee_percentage=float(raw.get("withdrawFeePercentage") or 0),
        linked_anchors=[
            LinkedAnchor(chain=a.get("chain", ""), address=a.get("address", ""))
            for a in raw.get("linkedAnchors") or []
        ],
    )


def _parse_chains(raw: dict | None) -> dict[str, RelayedChainConfig]:
    chains = {}
    for name, cfg in (raw or {}).items():
        chains[name] = RelayedChainConfig(
            account=cfg.get("account", ""),
            beneficiary=cfg.get("beneficiary"),
            contracts=[_parse_contract(c) for c in cfg.get("contracts") or []],
        )
    return chains


def parse_capabilities(data: dict) -> Capabilities:
    return Capabilities(
        has_ip_service=bool(data.get("hasIpService", False)),
        substrate=_parse_chains(data.get("substrate")),
        evm=_parse_chains(data.get("evm")),
    )


async def fetch_capabilities(
    endpoint: str,
    timeout: float = 10,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Capabilities:
    url = f"{endpoint.rstrip('/')}/api/v1/info"
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            data = resp.json()
    except httpx.HTTPError as exc:
        raise NetworkError(f"relayer info {url}: {exc}") from exc

    caps = parse_capabilities(data)
    log.debug(
        "Relayer %s supports %d substrate / %d evm chains",
        endpoint, len(caps.substrate), len(caps.evm),
    )
    return caps


def withdraw_fee(amount: int, percentage: float) -> int:
    """Relayer fee for withdrawing ``amount`` at ``percentage`` (0.05 = 5%)."""
    return int(amount * percentage)
