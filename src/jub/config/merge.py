"""Layering of jub configuration.

Layers, lowest priority first: the user's ``config.yaml``, the project's
``jub.yaml``, then ``JUB_*`` environment variables. Entries under ``env:``
merge by variable name, so a project can add ``$dist`` or redefine ``$lib``
while keeping every other variable the user defined.
"""

from __future__ import annotations

from typing import Any


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return base overlaid with override, without mutating either.

    Sections present in both (``env``, ``watch``, ``logging``) merge key by
    key. A None in override leaves the base value alone. Scalars and lists
    are replaced outright.
    """
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = merged.get(key)
        merged[key] = (
            deep_merge(current, value)
            if isinstance(current, dict) and isinstance(value, dict)
            else value
        )
    return merged


def merge_configs(*layers: dict[str, Any]) -> dict[str, Any]:
    """Merge layers from lowest to highest priority. Empty layers are skipped."""
    merged: dict[str, Any] = {}
    for layer in filter(None, layers):
        merged = deep_merge(merged, layer)
    return merged
