"""Rule property resolution for Plex media catalogs."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS = {
    "PropertyEvaluator": "ruleprops.services.evaluator",
    "PlexApiClient": "ruleprops.services.plex",
    "PropertyCatalog": "ruleprops.properties",
    "default_catalog": "ruleprops.properties",
    "UNKNOWN": "ruleprops.models",
    "is_unknown": "ruleprops.models",
}

__all__ = list(_EXPORTS)


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        module = import_module(_EXPORTS[name])
        return getattr(module, name)
    raise AttributeError(f"module 'ruleprops' has no attribute {name}")
