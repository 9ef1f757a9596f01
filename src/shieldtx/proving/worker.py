"""Proving worker - runs in its own process, reachable only through a pipe."""

from __future__ import annotations

import logging
from multiprocessing.connection import Connection

from shieldtx.interfaces.proving import ProvingBackend
from shieldtx.models.note import Note
from shieldtx.models.proving import ProofInput
from shieldtx.proving.protocol import (
    DESTROY,
    PROOF,
    ProofDone,
    ProofFailed,
    ProofJob,
    WorkerResponse,
)

log = logging.getLogger(__name__)


def handle_job(job: ProofJob, backend: ProvingBackend) -> WorkerResponse:
    """Deserialize the note, build the proof input and run the backend."""
    try:
        note = Note.deserialize(job.request.note)
        proof_input = ProofInput.from_request(job.request)
        result = backend.generate_proof(note, proof_input)
    except Exception as exc:
        log.error("Proof job %d failed: %s", job.id, exc)
        return ProofFailed(id=job.id, error=f"{type(exc).__name__}: {exc}")
    return ProofDone(id=job.id, result=result)


def run_worker(conn: Connection, backend: ProvingBackend) -> None:
    """Serve proof jobs until ``destroy`` arrives or the parent goes away."""
    try:
        while True:
            try:
                message = conn.recv()
            except EOFError:
                break

            if message.kind == DESTROY:
                break
            if message.kind == PROOF:
                conn.send(handle_job(message, backend))
            else:
                log.warning("Ignoring unknown worker message kind %r", message.kind)
    finally:
        conn.close()
