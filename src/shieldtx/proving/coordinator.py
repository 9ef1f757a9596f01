"""Proving coordinator - runs proof jobs in an isolated worker process."""

from __future__ import annotations

import asyncio
import itertools
import logging
import multiprocessing
from multiprocessing.connection import Connection
from multiprocessing.process import BaseProcess

from shieldtx.errors import ProofGenerationError, WorkerTerminatedError
from shieldtx.interfaces.proving import ProvingBackend
from shieldtx.models.proving import ProofRequest, ProofResult
from shieldtx.proving.protocol import PROOF, ProofJob
from shieldtx.proving.worker import run_worker

log = logging.getLogger(__name__)


class ProvingCoordinator:
    """Owns one proving worker process for its whole lifetime.

    Jobs are correlated by id, so ``prove()`` may be awaited concurrently;
    the worker itself computes one proof at a time.

    ``destroy()`` terminates the worker unconditionally. Jobs still in flight
    are abandoned: their ``prove()`` calls never settle. Callers needing a
    timeout must bound ``prove()`` themselves and destroy the worker.
    """

    def __init__(self, backend: ProvingBackend, start_method: str = "spawn") -> None:
        self._backend = backend
        self._ctx = multiprocessing.get_context(start_method)
        self._process: BaseProcess | None = None
        self._conn: Connection | None = None
        self._reader: asyncio.Task | None = None
        self._send_lock = asyncio.Lock()
        self._pending: dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)
        self._destroyed = False

    @property
    def is_running(self) -> bool:
        return self._process is not None and not self._destroyed

    @property
    def pending_jobs(self) -> int:
        return sum(1 for fut in self._pending.values() if not fut.done())

    async def __aenter__(self) -> ProvingCoordinator:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def start(self) -> None:
        """Spawn the worker. Idempotent until the worker is destroyed."""
        if self._destroyed:
            raise WorkerTerminatedError("proving worker has been destroyed")
        if self._process is not None:
            return

        parent_conn, child_conn = self._ctx.Pipe()
        self._process = self._ctx.Process(
            target=run_worker,
            args=(child_conn, self._backend),
            name="shieldtx-prover",
            daemon=True,
        )
        self._process.start()
        # Only the child may hold this end, so its exit shows up as EOF here.
        child_conn.close()
        self._conn = parent_conn
        self._reader = asyncio.create_task(self._read_responses(), name="prover-reader")
        log.info("Proving worker started (pid=%s)", self._process.pid)

    async def prove(self, request: ProofRequest) -> ProofResult:
        """Send a ``proof`` job and wait for its response."""
        if self._destroyed:
            raise WorkerTerminatedError("proving worker has been destroyed")
        await self.start()
        assert self._conn is not None

        loop = asyncio.get_running_loop()
        job = ProofJob(id=next(self._ids), request=request)
        fut: asyncio.Future = loop.create_future()
        self._pending[job.id] = fut

        sent = False
        async with self._send_lock:
            # destroy() may have run while this job waited for the pipe.
            if not self._destroyed and self._conn is not None:
                try:
                    await loop.run_in_executor(None, self._conn.send, job)
                    sent = True
                except (OSError, ValueError) as exc:
                    if not self._destroyed:
                        self._pending.pop(job.id, None)
                        raise ProofGenerationError(
                            f"could not reach proving worker: {exc}"
                        ) from exc

        if sent:
            log.info(
                "Proof job %d sent (%d leaves, leaf_index=%d)",
                job.id, len(request.leaves), request.leaf_index,
            )
        else:
            log.info("Proof job %d abandoned: worker destroyed before it was sent", job.id)
        try:
            return await fut
        finally:
            self._pending.pop(job.id, None)

    def destroy(self) -> None:
        """Terminate the worker. Outstanding jobs are abandoned, not failed."""
        if self._destroyed:
            return
        self._destroyed = True
        if self._process is None:
            return

        # No ``destroy`` message: a busy worker leaves the pipe full and the
        # send would block the loop until the current proof finishes.
        self._process.terminate()
        log.info("Proving worker destroyed (%d job(s) abandoned)", self.pending_jobs)

    async def aclose(self) -> None:
        """Destroy the worker and wait for the process and reader to finish."""
        self.destroy()
        if self._reader is not None:
            await self._reader
            self._reader = None
        if self._process is not None:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._process.join, 5)
        # A send blocked on the dead worker's pipe fails with EPIPE and frees the lock.
        async with self._send_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    async def _read_responses(self) -> None:
        assert self._conn is not None
        loop = asyncio.get_running_loop()

        while True:
            try:
                message = await loop.run_in_executor(None, self._conn.recv)
            except (EOFError, OSError):
                break

            fut = self._pending.get(message.id)
            if fut is None or fut.done():
                log.warning("Dropping response for unknown proof job %d", message.id)
                continue
            if message.kind == PROOF:
                log.info("Proof job %d completed", message.id)
                fut.set_result(message.result)
            else:
                fut.set_exception(ProofGenerationError(message.error))

        if not self._destroyed:
            # Worker died on its own: fail what it was holding.
            log.error("Proving worker exited unexpectedly")
            self._destroyed = True
            for fut in self._pending.values():
                if not fut.done():
                    fut.set_exception(ProofGenerationError("proving worker exited unexpectedly"))
