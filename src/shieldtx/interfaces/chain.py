"""Chain client protocols - extrinsic status subscriptions and error metadata."""

from __future__ import annotations

from typing import Any, AsyncContextManager, AsyncIterator, Protocol, Sequence

from shieldtx.models.transactions import ExtrinsicStatus, MetaError, MethodPath


class MetadataRegistry(Protocol):
    """Resolves module dispatch errors to readable names."""

    def find_meta_error(self, module_index: int, error_index: int) -> MetaError:
        """Raise if the module or error is unknown."""
        ...


class ChainClient(Protocol):
    """Signs and submits extrinsics, exposing their status stream."""

    @property
    def registry(self) -> MetadataRegistry:
        ...

    def watch_extrinsic(
        self,
        path: MethodPath,
        params: Sequence[Any] | dict[str, Any],
        signer: Any,
    ) -> AsyncContextManager[AsyncIterator[ExtrinsicStatus]]:
        """Acquire a status subscription for a freshly submitted extrinsic.

        The subscription is released when the context exits, on every path.
        Transport failures surface as ``NetworkError`` from the iterator.
        """
        ...
