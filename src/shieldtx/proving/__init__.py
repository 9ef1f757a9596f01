"""Proof generation offloaded to an isolated worker process."""

from shieldtx.proving.backend import load_backend, read_proving_key
from shieldtx.proving.coordinator import ProvingCoordinator

__all__ = ["ProvingCoordinator", "load_backend", "read_proving_key"]
