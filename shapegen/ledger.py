"""Reads generation manifests left in the model by upstream artifacts."""

from __future__ import annotations

from collections import Counter
from typing import Any, List, Mapping, Set

from .logging import get_logger
from .models import GenerationManifest, Model

MANIFEST_METADATA_KEY = "shapegenGenerated"

_logger = get_logger("ledger")


class LedgerError(RuntimeError):
    """Raised when generation manifests are malformed or inconsistent."""


class DuplicateManifestNamespace(LedgerError):
    """Two upstream manifests claim to have generated the same namespace."""

    def __init__(self, namespace: str, count: int) -> None:
        super().__init__(
            f"Multiple artifact manifests ({count}) indicate containing generated code "
            f"for namespace {namespace}"
        )
        self.namespace = namespace
        self.count = count


def manifests_from_model(model: Model) -> List[GenerationManifest]:
    """Extract every generation manifest recorded in the model metadata."""
    raw = model.metadata.get(MANIFEST_METADATA_KEY)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise LedgerError(f"Metadata '{MANIFEST_METADATA_KEY}' must be a list")

    manifests: List[GenerationManifest] = []
    for index, item in enumerate(raw):
        manifests.append(_parse_manifest(item, index))
    return manifests


def scan_manifests(model: Model) -> Set[str]:
    """Return the namespaces already generated upstream.

    Raises ``DuplicateManifestNamespace`` when a namespace is claimed by more
    than one manifest; generation must not proceed in that case.
    """
    manifests = manifests_from_model(model)
    counts: Counter[str] = Counter(
        namespace for manifest in manifests for namespace in manifest.namespaces
    )
    for namespace in sorted(counts):
        if counts[namespace] > 1:
            raise DuplicateManifestNamespace(namespace, counts[namespace])

    _logger.debug(
        "Found %d generation manifests covering %d namespaces", len(manifests), len(counts)
    )
    return set(counts)


def _parse_manifest(item: Any, index: int) -> GenerationManifest:
    if not isinstance(item, Mapping):
        raise LedgerError(f"Manifest #{index} in '{MANIFEST_METADATA_KEY}' must be an object")
    namespaces = item.get("namespaces", [])
    if not isinstance(namespaces, list) or not all(isinstance(ns, str) for ns in namespaces):
        raise LedgerError(f"Manifest #{index} 'namespaces' must be a list of strings")
    version = item.get("version")
    # Repeats inside a single manifest are the same artifact, not a collision.
    unique = tuple(dict.fromkeys(namespaces))
    return GenerationManifest(namespaces=unique, version=str(version) if version is not None else None)


__all__ = [
    "DuplicateManifestNamespace",
    "LedgerError",
    "MANIFEST_METADATA_KEY",
    "manifests_from_model",
    "scan_manifests",
]
