"""substrate-interface adapter: extrinsic status subscriptions and error metadata."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Sequence

from substrateinterface import ExtrinsicReceipt, Keypair, SubstrateInterface

from shieldtx.errors import NetworkError, ShieldTxError
from shieldtx.models.transactions import EventRecord, ExtrinsicStatus, MetaError, MethodPath

log = logging.getLogger(__name__)

# Statuses after which the node will send nothing more for this extrinsic.
_ABORT_STATUSES = ("dropped", "invalid", "usurped", "finalityTimeout")

_DONE = object()


def load_keypair(uri: str) -> Keypair:
    """Dev URIs (``//Alice``) or a mnemonic with an optional derivation path."""
    return Keypair.create_from_uri(uri.strip())


def _pallet_name(section: str) -> str:
    return section[:1].upper() + section[1:]


def _section_name(pallet: str) -> str:
    return pallet[:1].lower() + pallet[1:]


class SubstrateMetadataRegistry:
    """Module error lookup backed by the runtime metadata."""

    def __init__(self, substrate: SubstrateInterface) -> None:
        self._substrate = substrate

    def find_meta_error(self, module_index: int, error_index: int) -> MetaError:
        if self._substrate.metadata is None:
            self._substrate.init_runtime()
        metadata = self._substrate.metadata

        pallet = next(
            (p for p in metadata.pallets if p.value["index"] == module_index), None
        )
        if pallet is None:
            raise LookupError(f"no pallet with index {module_index}")

        error = metadata.get_module_error(module_index=module_index, error_index=error_index)
        if error is None:
            raise LookupError(f"no error {error_index} in pallet {pallet.name}")
        return MetaError(section=pallet.name, name=error.name, docs=" ".join(error.docs or []))


class SubstrateChainClient:
    """Submits signed extrinsics through a SubstrateInterface connection.

    substrate-interface is blocking, so each subscription runs on an executor
    thread and hands status updates to the event loop through a queue.

    The websocket underneath is not thread-safe: subscriptions on one client
    hold ``_lock`` from signing until they settle, so concurrent submissions
    run one after another. Use one client per submitter for parallelism.
    """

    def __init__(
        self,
        url: str = "ws://127.0.0.1:9944",
        wait_for_finalization: bool = False,
        substrate: SubstrateInterface | None = None,
    ) -> None:
        self._substrate = substrate or SubstrateInterface(url=url)
        self._wait_for_finalization = wait_for_finalization
        self._registry = SubstrateMetadataRegistry(self._substrate)
        self._lock = threading.Lock()

    @property
    def registry(self) -> SubstrateMetadataRegistry:
        return self._registry

    @property
    def substrate(self) -> SubstrateInterface:
        return self._substrate

    def close(self) -> None:
        self._substrate.close()

    @asynccontextmanager
    async def watch_extrinsic(
        self,
        path: MethodPath,
        params: Sequence[Any] | dict[str, Any],
        signer: Keypair,
    ) -> AsyncIterator[AsyncIterator[ExtrinsicStatus]]:
        """Submit and stream status updates until the context exits.

        Leaving early stops delivery at once, but the executor thread stays
        in ``rpc_request`` (still holding the client lock) until the node
        sends one more status for this extrinsic.
        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        released = threading.Event()

        def emit(item: object) -> None:
            if released.is_set():
                return
            # The loop may already be closed if the caller went away.
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(queue.put_nowait, item)

        def run() -> None:
            try:
                with self._lock:
                    self._subscribe(path, params, signer, emit, released)
            except ShieldTxError as exc:
                emit(exc)
            except Exception as exc:
                log.error("Submission of %s failed: %s", path, exc)
                emit(NetworkError(f"{path}: {exc}"))
            finally:
                emit(_DONE)

        loop.run_in_executor(None, run)
        try:
            yield _drain(queue)
        finally:
            # Unsubscribing from here would use the websocket from a second
            # thread. The worker thread unsubscribes on the next status instead.
            released.set()

    # ── Blocking side (executor thread) ────────────────────

    def _named_params(
        self, path: MethodPath, params: Sequence[Any] | dict[str, Any]
    ) -> dict[str, Any]:
        if isinstance(params, dict):
            return dict(params)
        call_function = self._substrate.get_metadata_call_function(
            _pallet_name(path.section), path.method
        )
        if call_function is None:
            raise ShieldTxError(f"unknown call {path}")
        names = [f["name"] for f in call_function.value["fields"]]
        if len(names) != len(params):
            raise ShieldTxError(f"{path} takes {len(names)} parameters, got {len(params)}")
        return dict(zip(names, params))

    def _subscribe(
        self,
        path: MethodPath,
        params: Sequence[Any] | dict[str, Any],
        signer: Keypair,
        emit: Callable[[object], None],
        released: threading.Event,
    ) -> None:
        call = self._substrate.compose_call(
            call_module=_pallet_name(path.section),
            call_function=path.method,
            call_params=self._named_params(path, params),
        )
        extrinsic = self._substrate.create_signed_extrinsic(call=call, keypair=signer)
        tx_hash = f"0x{extrinsic.extrinsic_hash.hex()}"
        settle_on = "finalized" if self._wait_for_finalization else "inBlock"
        last: dict[str, Any] = {}

        def handler(message: dict, update_nr: int, subscription_id: str) -> dict | None:
            result = message["params"]["result"]
            if isinstance(result, dict):
                ((status, value),) = result.items()
            else:
                status, value = result, None

            if status == settle_on or status in _ABORT_STATUSES or released.is_set():
                last.update(status=status, block_hash=value)
                return last  # non-None ends the subscription
            emit(ExtrinsicStatus(status=status, tx_hash=tx_hash, block_hash=value))
            return None

        log.debug("Watching %s (tx=%s)", path, tx_hash[:18])
        self._substrate.rpc_request(
            "author_submitAndWatchExtrinsic", [str(extrinsic.data)], result_handler=handler,
        )

        status = last.get("status")
        if status in _ABORT_STATUSES:
            raise NetworkError(f"{path}: extrinsic {status}")
        if status != settle_on:
            return  # released by the caller

        block_hash = last["block_hash"]
        receipt = ExtrinsicReceipt(
            substrate=self._substrate, extrinsic_hash=tx_hash, block_hash=block_hash,
        )
        events = []
        for event in receipt.triggered_events:
            value = event.value["event"] if "event" in event.value else event.value
            events.append(
                EventRecord(
                    section=_section_name(value["module_id"]),
                    method=value["event_id"],
                    data=value.get("attributes"),
                )
            )
        emit(ExtrinsicStatus(status=status, tx_hash=tx_hash, block_hash=block_hash, events=events))


async def _drain(queue: asyncio.Queue) -> AsyncIterator[ExtrinsicStatus]:
    while True:
        item = await queue.get()
        if item is _DONE:
            return
        if isinstance(item, Exception):
            raise item
        yield item
