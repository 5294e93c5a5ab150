"""Entry point discovery for external pipeline collaborators."""

from __future__ import annotations

from importlib import metadata
from typing import Iterable, Type, TypeVar

RENDERERS_GROUP = "shapegen.renderers"
OPENAPI_GROUP = "shapegen.openapi"
PROTO_GROUP = "shapegen.proto"
RESOLVERS_GROUP = "shapegen.resolvers"
TRANSFORMERS_GROUP = "shapegen.transformers"

T = TypeVar("T")


class PluginError(RuntimeError):
    """Raised when a named plugin is missing or does not have the expected type."""


def load_plugin(group: str, name: str, expected: Type[T]) -> T:
    """Load the entry point ``name`` from ``group`` and coerce it to an instance."""
    for entry in iter_entry_points(group):
        if entry.name != name:
            continue
        try:
            loaded = entry.load()
        except Exception as exc:
            raise PluginError(f"Failed to load {group} entry point '{name}': {exc}") from exc
        return coerce_plugin(loaded, expected, label=f"{group}:{name}")

    available = sorted({entry.name for entry in iter_entry_points(group)})
    hint = f" Available: {', '.join(available)}" if available else ""
    raise PluginError(f"No {group} entry point named '{name}'.{hint}")


def coerce_plugin(obj: object, expected: Type[T], *, label: str) -> T:
    if isinstance(obj, expected):
        return obj
    if isinstance(obj, type) and issubclass(obj, expected):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, expected):
            return instance
    raise PluginError(f"Entry point {label} must provide a {expected.__name__} subclass or factory")


def iter_entry_points(group: str) -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=group)


__all__ = [
    "OPENAPI_GROUP",
    "PROTO_GROUP",
    "PluginError",
    "RENDERERS_GROUP",
    "RESOLVERS_GROUP",
    "TRANSFORMERS_GROUP",
    "coerce_plugin",
    "iter_entry_points",
    "load_plugin",
]
