"""Proof request/result models exchanged with the proving worker."""

from __future__ import annotations

from dataclasses import dataclass, field

# Leaves are opaque fixed-size commitments, index order = on-chain insertion order.
Leaf = bytes


@dataclass(frozen=True)
class ProofRequest:
    """Everything the worker needs to build one withdrawal proof."""

    note: str  # serialized webb:// note
    relayer: str
    recipient: str
    leaves: list[Leaf]
    leaf_index: int
    fee: int
    refund: int
    proving_key: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if not 0 <= self.leaf_index < len(self.leaves):
            raise ValueError(
                f"leaf_index {self.leaf_index} out of range for {len(self.leaves)} leaves"
            )
        if not self.proving_key:
            raise ValueError("proving_key must not be empty")
        if self.fee < 0 or self.refund < 0:
            raise ValueError("fee and refund must be non-negative")


@dataclass(frozen=True)
class ProofInput:
    """Native proof-input structure handed to the proving backend.

    Numeric fields are decimal strings and the proving key is hex without a
    ``0x`` prefix, matching what the proof primitive expects.
    """

    leaves: list[Leaf]
    relayer: str
    recipient: str
    leaf_index: str
    fee: str
    refund: str
    pk: str = field(repr=False)

    @classmethod
    def from_request(cls, request: ProofRequest) -> ProofInput:
        return cls(
            leaves=list(request.leaves),
            relayer=request.relayer,
            recipient=request.recipient,
            leaf_index=str(request.leaf_index),
            fee=str(request.fee),
            refund=str(request.refund),
            pk=request.proving_key.hex(),
        )


@dataclass(frozen=True)
class ProofResult:
    """Output of one proof job."""

    proof: bytes
    root: bytes
    nullifier_hash: bytes
