"""Tier 2 fixtures: a real standalone node on localhost."""

from __future__ import annotations

import os

import httpx
import pytest

from shieldtx.substrate.chain import SubstrateChainClient, load_keypair
from shieldtx.substrate.leaves import HttpLeafRpc
from shieldtx.substrate.submitter import TransactionSubmitter
from shieldtx.testing.node import LocalNodeHarness, NodeOptions

WS_URL = os.environ.get("SHIELDTX_WS_URL", "ws://127.0.0.1:9944")
HTTP_URL = os.environ.get("SHIELDTX_HTTP_RPC_URL", "http://127.0.0.1:9933")


def _node_reachable(url: str) -> bool:
    try:
        r = httpx.post(
            url,
            json={"jsonrpc": "2.0", "id": 1, "method": "system_health", "params": []},
            timeout=3,
        )
        return r.status_code == 200
    except httpx.HTTPError:
        return False


@pytest.fixture(scope="session")
def node_available():
    """Check if a local node is running. Skip tier2 tests if not."""
    if not _node_reachable(HTTP_URL):
        pytest.skip(f"Standalone node not available at {HTTP_URL}")
    return True


@pytest.fixture
async def harness_node():
    """Start a fresh node through docker when SHIELDTX_NODE_HARNESS=docker."""
    if os.environ.get("SHIELDTX_NODE_HARNESS") != "docker":
        pytest.skip("Set SHIELDTX_NODE_HARNESS=docker to start a node")
    harness = LocalNodeHarness(ready_timeout=120)
    handle = await harness.start(NodeOptions(authority="alice", mode="docker"))
    yield handle
    await harness.stop(handle)


@pytest.fixture
async def leaf_rpc(node_available):
    rpc = HttpLeafRpc(HTTP_URL)
    yield rpc
    await rpc.close()


@pytest.fixture
def chain_client(node_available):
    client = SubstrateChainClient(WS_URL)
    yield client
    client.close()


@pytest.fixture
def submitter(chain_client):
    return TransactionSubmitter(chain_client)


@pytest.fixture
def alice():
    return load_keypair("//Alice")
