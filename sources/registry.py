from __future__ import annotations

import importlib
from typing import Any, Dict


_REGISTRY: Dict[str, Any] = {}

# Modules that register the built-in acquisition kinds on import.
_BUILTIN_MODULES = (
    "sources.connections",
    "sources.activities",
    "sources.company_employees",
)


def _load_builtins() -> None:
    for module in _BUILTIN_MODULES:
        importlib.import_module(module)


def register(name: str, factory) -> None:
    _REGISTRY[name] = factory


def get_source(name: str, **kwargs):
    _load_builtins()
    if name not in _REGISTRY:
        raise KeyError(f"Unknown source: {name}")
    return _REGISTRY[name](**kwargs)


def available_sources() -> Dict[str, Any]:
    _load_builtins()
    return dict(_REGISTRY)
