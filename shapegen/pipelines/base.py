"""Contracts for the external generation pipelines."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AbstractSet, Iterable, Optional

from ..loader import Classpath
from ..models import ApiDescription, CompiledSchema, Model, RenderedUnit


class SourceRenderer(ABC):
    """Lowers one namespace of the model and renders it as source files."""

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Extension of rendered files, e.g. ``py`` (a leading dot is ignored)."""

    @abstractmethod
    def render(self, model: Model, namespace: str) -> Iterable[RenderedUnit]:
        """Render every unit belonging to ``namespace``."""


class ApiDescriptionConverter(ABC):
    """Produces one API-description document per service in the model."""

    @abstractmethod
    def convert(
        self,
        model: Model,
        allowed_namespaces: Optional[AbstractSet[str]],
        classpath: Classpath,
    ) -> Iterable[ApiDescription]:
        """Convert the services of ``model``, limited to ``allowed_namespaces`` when given."""


class BinarySchemaCompiler(ABC):
    """Compiles the model into binary-schema definition files."""

    @abstractmethod
    def compile(self, model: Model) -> Iterable[CompiledSchema]:
        """Return compiled units with paths relative to the resource output."""
