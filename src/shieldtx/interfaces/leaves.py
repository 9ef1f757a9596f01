"""LeafSource protocol - paged access to a merkle tree's leaves."""

from __future__ import annotations

from typing import Protocol

from shieldtx.models.proving import Leaf


class LeafSource(Protocol):
    """Leaf RPC: returns leaves ``[from_index, to_index)``; empty = end of data."""

    async def get_leaves(self, tree_id: int, from_index: int, to_index: int) -> list[Leaf]:
        ...
