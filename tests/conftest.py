"""Shared fixtures for shieldtx tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from shieldtx.models.config import ChainConfig, ClientConfig, ProvingConfig, RelayerConfig
from shieldtx.storage.sqlite import SQLiteSubmissionStore

from tests.mocks import MockChainClient, MockLeafSource, StubRegistry

ALICE = "5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY"
BOB = "5FHneW46xGXgs5mUiveU4sbTyGBzmstUspZC92UhjJM694ty"
RELAYER_ACCOUNT = "5FLSigC9HGRKVhB9FiEo4Y3koPsNmBmLJbpXg2mp1hXcS59Y"

CHAIN_NAME = "localnode"
TREE_ID = 0


def pytest_configure(config):
    """Add chain info to the report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Chain"] = CHAIN_NAME
    meta["Tree"] = str(TREE_ID)
    meta["Recipient"] = BOB


def make_test_config(**overrides) -> ClientConfig:
    """Build a ClientConfig suitable for testing."""
    defaults = dict(
        log_level="debug",
        chain=ChainConfig(
            ws_url="ws://127.0.0.1:9944",
            http_rpc_url="http://127.0.0.1:9933",
            chain_name=CHAIN_NAME,
            tree_id=TREE_ID,
            keypair_uri="//Alice",
        ),
        relayer=RelayerConfig(endpoint="", error_grace=0.2),
        proving=ProvingConfig(backend="tests.mocks:StubBackend"),
        db_path=":memory:",
    )
    defaults.update(overrides)
    return ClientConfig(**defaults)


@pytest.fixture
def test_config():
    return make_test_config()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteSubmissionStore."""
    s = SQLiteSubmissionStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def leaf_source():
    """A tree holding 711 leaves: one full page and one partial page."""
    return MockLeafSource(total=711)


@pytest.fixture
def registry():
    return StubRegistry()


@pytest.fixture
def chain(registry):
    return MockChainClient(registry=registry)
