"""ProvingBackend protocol - the opaque proof-generation primitive."""

from __future__ import annotations

from typing import Protocol

from shieldtx.models.note import Note
from shieldtx.models.proving import ProofInput, ProofResult


class ProvingBackend(Protocol):
    """Generates a zero-knowledge proof.

    Runs inside the worker process, so implementations must be picklable and
    may block for as long as proof generation takes.
    """

    def generate_proof(self, note: Note, proof_input: ProofInput) -> ProofResult:
        ...
