"""Relayer websocket client - drives one relayed withdrawal to a terminal state."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

import aiohttp

from shieldtx.errors import NetworkError, ProtocolError, RelayError
from shieldtx.models.relayer import MixerRelayTx, RelayerCommand
from shieldtx.models.transactions import TransactionOutcome
from shieldtx.relayer.protocol import encode_command, mixer_command, parse_message
from shieldtx.relayer.session import RelaySession

log = logging.getLogger(__name__)

_CLOSED = (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED)


def ws_endpoint(endpoint: str) -> str:
    """``http(s)://host`` -> ``ws(s)://host/ws``; websocket URLs pass through."""
    url = endpoint.rstrip("/")
    if url.startswith("https://"):
        url = "wss://" + url[len("https://"):]
    elif url.startswith("http://"):
        url = "ws://" + url[len("http://"):]
    if not url.endswith("/ws"):
        url += "/ws"
    return url


class RelayerClient:
    """Submits commands to a relayer over a fresh websocket per submission.

    No timeout is applied while waiting for progress: a stalled relayer shows
    up only as silence, so callers bound ``relay()`` themselves.
    """

    def __init__(
        self,
        endpoint: str,
        error_grace: float = 5.0,
        http: aiohttp.ClientSession | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._ws_url = ws_endpoint(endpoint)
        self._error_grace = error_grace
        self._http = http

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def relay_withdraw(
        self,
        tx: MixerRelayTx,
        on_update: Callable[[RelaySession], None] | None = None,
    ) -> TransactionOutcome:
        return await self.relay(mixer_command(tx), on_update=on_update)

    async def submit_withdraw(
        self,
        tx: MixerRelayTx,
        on_update: Callable[[RelaySession], None] | None = None,
    ) -> str:
        """Relay ``tx`` and return its hash, or raise RelayError with the relayer's reason."""
        outcome = await self.relay_withdraw(tx, on_update=on_update)
        if not outcome.ok:
            raise RelayError(outcome.reason or "")
        return outcome.tx_hash or ""

    async def relay(
        self,
        command: RelayerCommand,
        on_update: Callable[[RelaySession], None] | None = None,
    ) -> TransactionOutcome:
        """Send ``command`` and return its single terminal outcome.

        Raises NetworkError if the channel fails before a terminal state.
        Frames that do not parse as relayer messages are logged and skipped.
        """
        session = RelaySession()
        http = self._http or aiohttp.ClientSession()
        log.info("Relaying %s/%s via %s", command.family.value, command.name, self._ws_url)

        try:
            try:
                ws = await http.ws_connect(self._ws_url)
            except (aiohttp.ClientError, OSError) as exc:
                raise NetworkError(f"relayer connect to {self._ws_url} failed: {exc}") from exc

            async with ws:
                try:
                    await ws.send_json(encode_command(command))
                except (aiohttp.ClientError, ConnectionError) as exc:
                    raise NetworkError(f"relayer send failed: {exc}") from exc
                await self._consume(ws, session, on_update)
        finally:
            if self._http is None:
                await http.close()

        outcome = session.outcome()
        if outcome.ok:
            log.info("Relayed withdraw finalized (tx=%s)", (outcome.tx_hash or "?")[:18])
        else:
            log.warning("Relayed withdraw errored: %s", outcome.reason)
        return outcome

    async def _consume(
        self,
        ws: aiohttp.ClientWebSocketResponse,
        session: RelaySession,
        on_update: Callable[[RelaySession], None] | None,
    ) -> None:
        loop = asyncio.get_running_loop()
        # Fixed when the error arrives; later frames do not extend it.
        deadline: float | None = None

        while not session.is_terminal:
            timeout = None
            if session.pending_error is None:
                deadline = None
            else:
                if deadline is None:
                    deadline = loop.time() + self._error_grace
                timeout = deadline - loop.time()
                if timeout <= 0:
                    # receive(timeout=0) would mean "no timeout" to aiohttp.
                    session.settle_pending_error()
                    _notify(on_update, session)
                    break
            try:
                frame = await ws.receive(timeout=timeout)
            except asyncio.TimeoutError:
                session.settle_pending_error()
                _notify(on_update, session)
                break

            if frame.type == aiohttp.WSMsgType.TEXT:
                try:
                    message = parse_message(frame.data)
                except ProtocolError as exc:
                    log.warning("Skipping unparseable relayer frame: %s", exc)
                    continue
            elif frame.type in _CLOSED or frame.type == aiohttp.WSMsgType.ERROR:
                if session.settle_pending_error():
                    _notify(on_update, session)
                    break
                raise NetworkError(
                    f"relayer closed the channel in state {session.state.value}"
                )
            else:
                continue

            log.debug("Relayer message: %s", message)
            session.apply(message)
            _notify(on_update, session)


def _notify(on_update: Callable[[RelaySession], None] | None, session: RelaySession) -> None:
    if on_update is not None:
        on_update(session)
