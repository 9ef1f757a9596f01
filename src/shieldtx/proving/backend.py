"""Loading of the proving backend and proving key from configuration."""

from __future__ import annotations

import importlib
import inspect
from pathlib import Path

from shieldtx.interfaces.proving import ProvingBackend


def load_backend(spec: str) -> ProvingBackend:
    """Import ``"package.module:attribute"``; classes are instantiated with no arguments."""
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"backend must look like 'package.module:attribute', got {spec!r}")

    target = getattr(importlib.import_module(module_name), attr)
    backend = target() if inspect.isclass(target) else target
    if not callable(getattr(backend, "generate_proof", None)):
        raise TypeError(f"{spec} has no generate_proof()")
    return backend


def read_proving_key(path: str | Path) -> bytes:
    data = Path(path).expanduser().read_bytes()
    if not data:
        raise ValueError(f"proving key file {path} is empty")
    return data
