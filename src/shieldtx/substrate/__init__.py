"""Substrate integration components."""

from shieldtx.substrate.chain import SubstrateChainClient, SubstrateMetadataRegistry, load_keypair
from shieldtx.substrate.leaves import PAGE_SIZE, HttpLeafRpc, LeafFetcher
from shieldtx.substrate.submitter import TransactionSubmitter

__all__ = [
    "PAGE_SIZE",
    "HttpLeafRpc",
    "LeafFetcher",
    "SubstrateChainClient",
    "SubstrateMetadataRegistry",
    "TransactionSubmitter",
    "load_keypair",
]
