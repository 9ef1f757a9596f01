"""NodeHarness protocol - starts and stops local chain nodes for integration tests."""

from __future__ import annotations

from typing import Protocol

from shieldtx.testing.node import NodeHandle, NodeOptions


class NodeHarness(Protocol):
    async def start(self, options: NodeOptions) -> NodeHandle:
        ...

    async def stop(self, handle: NodeHandle) -> None:
        ...
