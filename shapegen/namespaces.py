"""Selects the namespaces a run is allowed to generate."""

from __future__ import annotations

from typing import AbstractSet, Optional, Set

from .models import Model

SYSTEM_PREFIXES = ("aws.", "smithy.")

LIBRARY_NAMESPACES = frozenset(
    {
        "alloy",
        "alloy.common",
        "alloy.proto",
        "shapegen.api",
        "shapegen.meta",
        "smithytranslate",
    }
)


def resolve_namespaces(
    model: Model,
    allowed: Optional[AbstractSet[str]],
    excluded: Optional[AbstractSet[str]],
    already_generated: AbstractSet[str],
) -> Set[str]:
    """Return the namespaces eligible for generation.

    With ``allowed`` set only those namespaces are considered. Otherwise every
    model namespace is a candidate except the built-in system namespaces and the
    namespaces owned by supporting libraries. Exclusions and namespaces already
    generated upstream are removed in both modes.
    """
    namespaces = model.namespaces()
    skipped = set(excluded or ()) | set(already_generated)

    if allowed is not None:
        return (namespaces & set(allowed)) - skipped

    return {
        namespace
        for namespace in namespaces
        if not is_system_namespace(namespace)
        and not is_library_namespace(namespace)
        and namespace not in skipped
    }


def is_system_namespace(namespace: str) -> bool:
    return namespace.startswith(SYSTEM_PREFIXES)


def is_library_namespace(namespace: str) -> bool:
    return any(
        namespace == owned or namespace.startswith(owned + ".")
        for owned in LIBRARY_NAMESPACES
    )


__all__ = [
    "LIBRARY_NAMESPACES",
    "SYSTEM_PREFIXES",
    "is_library_namespace",
    "is_system_namespace",
    "resolve_namespaces",
]
