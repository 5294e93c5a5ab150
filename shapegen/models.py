"""Core data models shared across shapegen components."""

from __future__ import annotations

import copy
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set, Tuple

SMITHY_VERSION = "2.0"


class ModelMergeError(ValueError):
    """Raised when two model documents disagree on a shape or metadata key."""


@dataclass(frozen=True)
class ShapeId:
    """Absolute shape identifier such as ``example.weather#City$name``."""

    namespace: str
    name: str
    member: Optional[str] = None

    @classmethod
    def parse(cls, value: str) -> "ShapeId":
        namespace, sep, rest = value.partition("#")
        if not sep or not namespace or not rest:
            raise ValueError(f"Invalid absolute shape id: {value!r}")
        name, _, member = rest.partition("$")
        return cls(namespace=namespace, name=name, member=member or None)

    def __str__(self) -> str:
        base = f"{self.namespace}#{self.name}"
        return f"{base}${self.member}" if self.member else base


class Model:
    """Read-only view over a resolved set of shapes and model metadata.

    Shapes are kept in their JSON AST form keyed by absolute shape id, which is
    all the orchestration layer needs: it only looks at namespaces and metadata
    and hands the model itself to the external pipelines.
    """

    def __init__(
        self,
        shapes: Optional[Mapping[str, Mapping[str, Any]]] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._shapes: Dict[str, Dict[str, Any]] = {
            key: dict(value) for key, value in (shapes or {}).items()
        }
        self._metadata: Dict[str, Any] = dict(metadata or {})

    @classmethod
    def from_json_ast(cls, document: Mapping[str, Any]) -> "Model":
        shapes = document.get("shapes") or {}
        metadata = document.get("metadata") or {}
        if not isinstance(shapes, Mapping) or not isinstance(metadata, Mapping):
            raise ValueError("JSON AST 'shapes' and 'metadata' must be objects")
        for key in shapes:
            ShapeId.parse(key)
        return cls(shapes=shapes, metadata=metadata)

    @property
    def metadata(self) -> Mapping[str, Any]:
        return self._metadata

    def shape_ids(self) -> Iterator[ShapeId]:
        for key in self._shapes:
            yield ShapeId.parse(key)

    def namespaces(self) -> Set[str]:
        return {shape_id.namespace for shape_id in self.shape_ids()}

    def shape(self, shape_id: ShapeId | str) -> Optional[Mapping[str, Any]]:
        return self._shapes.get(str(shape_id))

    def shapes(self) -> Dict[str, Dict[str, Any]]:
        """Return a deep copy of the shape table."""
        return copy.deepcopy(self._shapes)

    def merge(self, other: "Model") -> "Model":
        """Combine two models; lists in metadata are concatenated."""
        shapes = self.shapes()
        for key, node in other._shapes.items():
            existing = shapes.get(key)
            if existing is not None and existing != node:
                raise ModelMergeError(f"Conflicting definitions for shape {key}")
            shapes[key] = copy.deepcopy(node)

        metadata = copy.deepcopy(self._metadata)
        for key, value in other._metadata.items():
            if key not in metadata:
                metadata[key] = copy.deepcopy(value)
            elif isinstance(metadata[key], list) and isinstance(value, list):
                metadata[key] = metadata[key] + copy.deepcopy(value)
            elif metadata[key] != value:
                raise ModelMergeError(f"Conflicting metadata values for key {key!r}")
        return Model(shapes=shapes, metadata=metadata)

    def to_json_ast(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {"smithy": SMITHY_VERSION}
        if self._metadata:
            document["metadata"] = copy.deepcopy(self._metadata)
        document["shapes"] = {key: copy.deepcopy(self._shapes[key]) for key in sorted(self._shapes)}
        return document

    def __len__(self) -> int:
        return len(self._shapes)

    def __repr__(self) -> str:
        return f"Model(shapes={len(self._shapes)}, metadata_keys={sorted(self._metadata)})"


@dataclass(frozen=True)
class GenerationManifest:
    """Namespaces an upstream artifact already generated code for."""

    namespaces: Tuple[str, ...]
    version: Optional[str] = None


@dataclass(frozen=True)
class RenderedUnit:
    """Output of the source renderer for one logical file."""

    namespace: str
    name: str
    content: str


@dataclass(frozen=True)
class ApiDescription:
    """API-description document produced for a single service."""

    service_namespace: str
    service_name: str
    document: str


@dataclass(frozen=True)
class CompiledSchema:
    """Binary-schema file reported at a path relative to the resource output."""

    path: str
    contents: str


class CodegenEntry(ABC):
    """An artifact destined for ``path``.

    The two variants are ``FromMemory`` and ``FromDisk``; both materialise
    themselves through :meth:`write`, overwriting whatever is at ``path``.
    """

    path: Path

    @abstractmethod
    def write(self) -> Path:
        """Write the entry to its destination and return the destination."""


@dataclass(frozen=True)
class FromMemory(CodegenEntry):
    path: Path
    content: str

    def write(self) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.content, encoding="utf-8")
        return self.path


@dataclass(frozen=True)
class FromDisk(CodegenEntry):
    path: Path
    source: Path

    def write(self) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(self.source, self.path)
        return self.path


@dataclass(frozen=True)
class CodegenResult:
    """Ordered source and resource entries produced by one generation run."""

    sources: Tuple[CodegenEntry, ...] = field(default_factory=tuple)
    resources: Tuple[CodegenEntry, ...] = field(default_factory=tuple)

    def entries(self) -> List[CodegenEntry]:
        return [*self.sources, *self.resources]
