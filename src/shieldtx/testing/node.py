"""Local Substrate node harness for integration tests.

Lives outside the core: nothing in shieldtx spawns node processes except
this module, and tests reach a node only through the handle it returns.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from dataclasses import dataclass, field

from substrateinterface import SubstrateInterface

log = logging.getLogger(__name__)

STANDALONE_IMAGE = "ghcr.io/webb-tools/protocol-substrate-standalone-node:edge"


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@dataclass
class NodePorts:
    ws: int = 0
    http: int = 0
    p2p: int = 0

    def allocate(self) -> NodePorts:
        return NodePorts(
            ws=self.ws or _free_port(),
            http=self.http or _free_port(),
            p2p=self.p2p or _free_port(),
        )


@dataclass
class NodeOptions:
    authority: str = "alice"
    mode: str = "docker"  # "docker" | "host"
    image: str = STANDALONE_IMAGE
    node_path: str = ""  # binary for host mode
    force_pull: bool = False
    ports: NodePorts = field(default_factory=NodePorts)
    enable_logging: bool = False


@dataclass
class NodeHandle:
    options: NodeOptions
    ports: NodePorts
    process: asyncio.subprocess.Process | None = None

    @property
    def ws_url(self) -> str:
        return f"ws://127.0.0.1:{self.ports.ws}"

    @property
    def http_url(self) -> str:
        return f"http://127.0.0.1:{self.ports.http}"

    def rpc(self) -> SubstrateInterface:
        return SubstrateInterface(url=self.ws_url)


class LocalNodeHarness:
    """Runs a standalone node via docker or a locally built binary."""

    def __init__(self, ready_timeout: float = 60) -> None:
        self._ready_timeout = ready_timeout

    async def start(self, options: NodeOptions) -> NodeHandle:
        ports = options.ports.allocate()
        node_args = [
            "--tmp",
            "--rpc-cors", "all",
            "--rpc-methods=unsafe",
            "--ws-external",
            f"--{options.authority}",
        ]

        if options.mode == "docker":
            if options.force_pull:
                await self._run("docker", "pull", options.image)
            program = "docker"
            args = [
                "run", "--rm",
                "--name", f"{options.authority}-node-{ports.ws}",
                "-p", f"{ports.ws}:9944",
                "-p", f"{ports.http}:9933",
                "-p", f"{ports.p2p}:30333",
                options.image,
                "webb-standalone-node",
                *node_args,
            ]
        else:
            if not options.node_path:
                raise ValueError("host mode needs node_path")
            program = options.node_path
            args = [
                *node_args,
                f"--ws-port={ports.ws}",
                f"--rpc-port={ports.http}",
                f"--port={ports.p2p}",
            ]

        output = None if options.enable_logging else asyncio.subprocess.DEVNULL
        process = await asyncio.create_subprocess_exec(
            program, *args, stdout=output, stderr=output,
        )
        handle = NodeHandle(options=options, ports=ports, process=process)
        log.info("Started %s node (%s) ws=%d", options.authority, options.mode, ports.ws)

        try:
            await asyncio.wait_for(self._wait_ready(handle), timeout=self._ready_timeout)
        except asyncio.TimeoutError:
            await self.stop(handle)
            raise
        return handle

    async def stop(self, handle: NodeHandle) -> None:
        if handle.options.mode == "docker":
            await self._run(
                "docker", "stop", f"{handle.options.authority}-node-{handle.ports.ws}",
            )
        process = handle.process
        if process is not None and process.returncode is None:
            process.terminate()
            await process.wait()
        log.info("Stopped %s node", handle.options.authority)

    async def _wait_ready(self, handle: NodeHandle) -> None:
        while True:
            try:
                _, writer = await asyncio.open_connection("127.0.0.1", handle.ports.ws)
            except OSError:
                await asyncio.sleep(0.5)
                continue
            writer.close()
            await writer.wait_closed()
            return

    @staticmethod
    async def _run(*cmd: str) -> None:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        await proc.wait()
