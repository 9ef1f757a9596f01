"""Dispatch error decoding for ``System.ExtrinsicFailed`` events."""

from __future__ import annotations

import logging
from typing import Any

from shieldtx.errors import ProtocolError
from shieldtx.interfaces.chain import MetadataRegistry
from shieldtx.models.transactions import DispatchErrorInfo, ModuleError

log = logging.getLogger(__name__)


def _error_index(raw: Any) -> int:
    """Module error indices come as ints, or as 4-byte hex/bytes whose first byte is the index."""
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        raw = bytes.fromhex(raw.removeprefix("0x"))
    if isinstance(raw, (bytes, bytearray, list)) and len(raw) > 0:
        return int(raw[0])
    raise ProtocolError(f"unrecognized module error index: {raw!r}")


def _module_error(value: Any) -> ModuleError:
    if isinstance(value, dict):
        return ModuleError(index=int(value["index"]), error=_error_index(value["error"]))
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return ModuleError(index=int(value[0]), error=_error_index(value[1]))
    raise ProtocolError(f"unrecognized module error: {value!r}")


def parse_dispatch_error(data: Any) -> DispatchErrorInfo:
    """Normalize the ``ExtrinsicFailed`` payload into a DispatchErrorInfo.

    Accepts the named-attribute form ``{"dispatch_error": ..., "dispatch_info": ...}``,
    the positional form ``[dispatch_error, dispatch_info]``, or a bare dispatch
    error (``"BadOrigin"``, ``{"Token": "Frozen"}``, ``{"Module": {...}}``).
    """
    if isinstance(data, dict) and "dispatch_error" in data:
        data = data["dispatch_error"]
    elif isinstance(data, (list, tuple)) and data:
        data = data[0]

    if isinstance(data, str):
        return DispatchErrorInfo(type=data)

    if isinstance(data, dict) and len(data) == 1:
        ((kind, value),) = data.items()
        if kind == "Module":
            return DispatchErrorInfo(type=kind, module=_module_error(value))
        detail = None
        if isinstance(value, str):
            detail = value
        elif isinstance(value, dict) and len(value) == 1:
            detail = next(iter(value))
        return DispatchErrorInfo(type=kind, detail=detail)

    raise ProtocolError(f"unrecognized dispatch error: {data!r}")


def describe_dispatch_error(info: DispatchErrorInfo, registry: MetadataRegistry) -> str:
    """Format a dispatch error as ``"<section>.<name>"`` or ``"<type>.<subtype>"``.

    If the metadata lookup for a module error fails, the raw type tag is used.
    """
    message = info.type

    if info.module is not None:
        try:
            meta = registry.find_meta_error(info.module.index, info.module.error)
        except Exception as exc:
            log.warning(
                "Metadata lookup failed for module error %d/%d: %s",
                info.module.index, info.module.error, exc,
            )
            return message
        return f"{meta.section}.{meta.name}"

    if info.is_token and info.detail:
        return f"{info.type}.{info.detail}"

    return message
