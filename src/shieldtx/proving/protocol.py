"""Proving worker wire protocol.

Every envelope carries an explicit ``kind`` discriminant. Proof jobs and their
responses share a correlation ``id`` so several jobs can be outstanding on one
worker at a time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from shieldtx.models.proving import ProofRequest, ProofResult

PROOF = "proof"
DESTROY = "destroy"
ERROR = "error"


@dataclass(frozen=True)
class ProofJob:
    id: int
    request: ProofRequest
    kind: str = field(default=PROOF, init=False)


@dataclass(frozen=True)
class Destroy:
    kind: str = field(default=DESTROY, init=False)


@dataclass(frozen=True)
class ProofDone:
    id: int
    result: ProofResult
    kind: str = field(default=PROOF, init=False)


@dataclass(frozen=True)
class ProofFailed:
    id: int
    error: str
    kind: str = field(default=ERROR, init=False)


WorkerRequest = Union[ProofJob, Destroy]
WorkerResponse = Union[ProofDone, ProofFailed]
