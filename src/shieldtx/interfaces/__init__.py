"""Protocol interfaces for all shieldtx components."""

from shieldtx.interfaces.chain import ChainClient, MetadataRegistry
from shieldtx.interfaces.harness import NodeHarness
from shieldtx.interfaces.leaves import LeafSource
from shieldtx.interfaces.proving import ProvingBackend
from shieldtx.interfaces.store import SubmissionStore

__all__ = [
    "ChainClient", "MetadataRegistry",
    "NodeHarness",
    "LeafSource",
    "ProvingBackend",
    "SubmissionStore",
]
