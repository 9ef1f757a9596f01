"""Proving worker protocol and coordinator lifecycle."""

from __future__ import annotations

import asyncio
import threading
import time
from multiprocessing import Pipe

import pytest

from shieldtx.errors import ProofGenerationError, WorkerTerminatedError
from shieldtx.models.note import Note
from shieldtx.models.proving import ProofInput
from shieldtx.proving.backend import load_backend, read_proving_key
from shieldtx.proving.coordinator import ProvingCoordinator
from shieldtx.proving.protocol import ERROR, PROOF, Destroy, ProofJob
from shieldtx.proving.worker import handle_job, run_worker

from tests.factories import make_note, make_proof_request
from tests.mocks import FailingBackend, RecordingBackend, SlowBackend, StubBackend, expected_result


def _expected(request):
    return expected_result(Note.deserialize(request.note), ProofInput.from_request(request))


# ── Request validation ────────────────────────────────────────────


def test_leaf_index_must_be_in_range():
    with pytest.raises(ValueError, match="out of range"):
        make_proof_request(leaf_count=3, leaf_index=3)


def test_proving_key_required():
    with pytest.raises(ValueError, match="proving_key"):
        make_proof_request(proving_key=b"")


def test_negative_fee_rejected():
    with pytest.raises(ValueError):
        make_proof_request(fee=-1)


# ── Worker job handling (in-process) ──────────────────────────────


def test_handle_job_builds_native_input():
    backend = RecordingBackend()
    request = make_proof_request(leaf_index=2, fee=15, refund=3, proving_key=b"\x0a\xbc")

    response = handle_job(ProofJob(id=7, request=request), backend)

    assert response.kind == PROOF
    assert response.id == 7
    note, proof_input = backend.calls[0]
    assert note.protocol == "mixer"
    assert proof_input.leaf_index == "2"
    assert proof_input.fee == "15"
    assert proof_input.refund == "3"
    assert proof_input.pk == "0abc"
    assert proof_input.leaves == request.leaves
    assert proof_input.relayer == "5relayer"
    assert proof_input.recipient == "5recipient"


def test_handle_job_reports_backend_failure():
    response = handle_job(ProofJob(id=3, request=make_proof_request()), FailingBackend())

    assert response.kind == ERROR
    assert response.id == 3
    assert "RuntimeError" in response.error
    assert "constraint system" in response.error


def test_handle_job_reports_bad_note():
    request = make_proof_request(note="webb://v1:mixer/broken")
    response = handle_job(ProofJob(id=1, request=request), StubBackend())

    assert response.kind == ERROR
    assert "NoteError" in response.error


def test_run_worker_serves_until_destroy():
    parent, child = Pipe()
    thread = threading.Thread(target=run_worker, args=(child, StubBackend()))
    thread.start()

    request = make_proof_request()
    parent.send(ProofJob(id=1, request=request))
    response = parent.recv()
    parent.send(Destroy())
    thread.join(timeout=5)

    assert response.kind == PROOF
    assert response.result == _expected(request)
    assert not thread.is_alive()
    parent.close()


# ── Coordinator (spawned worker) ──────────────────────────────────


async def test_prove_returns_result():
    request = make_proof_request()
    async with ProvingCoordinator(StubBackend()) as prover:
        result = await prover.prove(request)
        assert prover.pending_jobs == 0

    assert result == _expected(request)


async def test_concurrent_jobs_are_correlated():
    requests = [make_proof_request(leaf_count=5, leaf_index=i) for i in range(4)]
    async with ProvingCoordinator(StubBackend()) as prover:
        results = await asyncio.gather(*(prover.prove(r) for r in requests))

    assert results == [_expected(r) for r in requests]
    assert len({r.proof for r in results}) == 4


async def test_worker_failure_rejects_job():
    async with ProvingCoordinator(FailingBackend()) as prover:
        with pytest.raises(ProofGenerationError, match="constraint system"):
            await prover.prove(make_proof_request())
        # The worker keeps serving after a failed job.
        assert prover.is_running


async def test_prove_after_destroy_raises():
    prover = ProvingCoordinator(StubBackend())
    await prover.start()
    await prover.aclose()

    assert not prover.is_running
    with pytest.raises(WorkerTerminatedError):
        await prover.prove(make_proof_request())


async def test_destroy_is_idempotent():
    prover = ProvingCoordinator(StubBackend())
    await prover.start()
    prover.destroy()
    prover.destroy()
    await prover.aclose()


async def test_destroy_abandons_in_flight_job():
    """An outstanding proof neither resolves nor rejects after destroy."""
    prover = ProvingCoordinator(SlowBackend(seconds=60))
    await prover.start()

    task = asyncio.create_task(prover.prove(make_proof_request()))
    while prover.pending_jobs == 0:
        await asyncio.sleep(0.01)

    await prover.aclose()
    await asyncio.sleep(0.2)

    assert not task.done()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


async def test_destroy_with_queued_jobs_returns_promptly():
    """Large jobs queued behind a busy worker stay unsettled and never block destroy."""
    prover = ProvingCoordinator(SlowBackend(seconds=60))
    await prover.start()

    busy = asyncio.create_task(prover.prove(make_proof_request()))
    await asyncio.sleep(0.5)
    queued = [
        asyncio.create_task(prover.prove(make_proof_request(leaf_count=40_000, leaf_index=i)))
        for i in range(3)
    ]
    while prover.pending_jobs < 4:
        await asyncio.sleep(0.01)

    started = time.monotonic()
    prover.destroy()
    assert time.monotonic() - started < 1.0

    await asyncio.wait_for(prover.aclose(), timeout=10)
    await asyncio.sleep(0.2)

    tasks = [busy, *queued]
    assert not any(t.done() for t in tasks)
    for t in tasks:
        t.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


async def test_start_method_is_configurable():
    request = make_proof_request()
    async with ProvingCoordinator(StubBackend(), start_method="spawn") as prover:
        assert await prover.prove(request) == _expected(request)


# ── Backend loading ───────────────────────────────────────────────


def test_load_backend_instantiates_class():
    backend = load_backend("tests.mocks:StubBackend")
    assert isinstance(backend, StubBackend)


def test_load_backend_rejects_non_backend():
    with pytest.raises(TypeError):
        load_backend("tests.factories:TX_HASH")


def test_read_proving_key(tmp_path):
    path = tmp_path / "proving_key.bin"
    path.write_bytes(b"\x01\x02\x03")
    assert read_proving_key(path) == b"\x01\x02\x03"


def test_note_factory_parses():
    assert Note.deserialize(make_note(protocol="anchor")).protocol == "anchor"
