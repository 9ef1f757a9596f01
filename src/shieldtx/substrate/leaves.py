"""Merkle tree leaf retrieval - paged ``mt_getLeaves`` RPC over HTTP."""

from __future__ import annotations

import itertools
import logging

import httpx

from shieldtx.errors import NetworkError
from shieldtx.interfaces.leaves import LeafSource
from shieldtx.models.proving import Leaf

log = logging.getLogger(__name__)

PAGE_SIZE = 511


def _decode_leaf(raw: object) -> Leaf:
    """Leaves arrive as ``0x`` hex strings or raw byte arrays."""
    if isinstance(raw, str):
        return bytes.fromhex(raw.removeprefix("0x"))
    if isinstance(raw, list):
        return bytes(raw)
    raise NetworkError(f"unexpected leaf encoding: {type(raw).__name__}")


class HttpLeafRpc:
    """JSON-RPC client for the node's ``mt_getLeaves`` method."""

    def __init__(
        self,
        rpc_url: str = "http://127.0.0.1:9933",
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._rpc_url = rpc_url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._ids = itertools.count(1)

    async def get_leaves(self, tree_id: int, from_index: int, to_index: int) -> list[Leaf]:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": "mt_getLeaves",
            "params": [tree_id, from_index, to_index],
        }
        try:
            resp = await self._client.post(self._rpc_url, json=payload)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPError as exc:
            raise NetworkError(f"mt_getLeaves({tree_id}, {from_index}, {to_index}): {exc}") from exc

        if "error" in body:
            err = body["error"]
            raise NetworkError(f"mt_getLeaves RPC error {err.get('code')}: {err.get('message')}")
        return [_decode_leaf(item) for item in body.get("result") or []]

    async def close(self) -> None:
        await self._client.aclose()


class LeafFetcher:
    """Reads every leaf of a tree, one page at a time.

    Pages are requested strictly in sequence: ``[0, 511)``, ``[511, 1022)``,
    ... until the first empty page. Partial results are not cached, so a
    failed page aborts the whole fetch and a retry starts again from 0.
    """

    def __init__(self, source: LeafSource, page_size: int = PAGE_SIZE) -> None:
        self._source = source
        self._page_size = page_size

    async def fetch_leaves(self, tree_id: int) -> list[Leaf]:
        leaves: list[Leaf] = []
        start, end = 0, self._page_size
        pages = 0

        while True:
            page = await self._source.get_leaves(tree_id, start, end)
            pages += 1
            if not page:
                break
            leaves.extend(page)
            log.debug("Tree %d: page [%d, %d) returned %d leaves", tree_id, start, end, len(page))
            start, end = end, end + self._page_size

        log.info("Fetched %d leaves for tree %d in %d requests", len(leaves), tree_id, pages)
        return leaves
