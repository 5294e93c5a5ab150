"""Runs the source, resource, API-description and binary-schema pipelines."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import AbstractSet, List, Tuple

from ..config import CodegenArgs, ConfigError
from ..loader import Classpath
from ..logging import get_logger
from ..models import CodegenEntry, FromMemory, Model, RenderedUnit
from . import resources
from .base import ApiDescriptionConverter, BinarySchemaCompiler, SourceRenderer


class PipelineFanOut:
    """Fans a model out to every enabled pipeline and collects their entries.

    The namespaces handed to :meth:`run` must already have passed the ledger
    check; nothing here re-validates them, so the per-namespace renders share
    no state and may run on a thread pool.
    """

    def __init__(
        self,
        renderer: SourceRenderer | None = None,
        openapi: ApiDescriptionConverter | None = None,
        proto: BinarySchemaCompiler | None = None,
    ) -> None:
        self.renderer = renderer
        self.openapi = openapi
        self.proto = proto
        self.logger = get_logger("fanout")

    def run(
        self,
        model: Model,
        namespaces: AbstractSet[str],
        args: CodegenArgs,
        classpath: Classpath,
    ) -> Tuple[List[CodegenEntry], List[CodegenEntry]]:
        """Return ``(sources, resources)`` in a deterministic order.

        Resources are the resource manifest entries, then API descriptions,
        then binary schemas. The resource manifest only exists alongside
        generated sources.
        """
        self._check_collaborators(args)

        sources: List[CodegenEntry] = []
        manifest_entries: List[CodegenEntry] = []
        if not args.skip_sources:
            units = self.render_units(model, namespaces, max_workers=args.max_workers)
            sources = [
                FromMemory(path=source_path(args.output, unit, self.renderer.file_extension), content=unit.content)
                for unit in units
            ]
            if not args.skip_resources:
                generated = sorted({unit.namespace for unit in units})
                manifest_entries = resources.produce(args.resource_output, args.specs, generated)

        api_entries = [] if args.skip_openapi else self.api_descriptions(model, args, classpath)
        proto_entries = [] if args.skip_proto else self.binary_schemas(model, args)

        self.logger.info(
            "Fan-out produced %d sources, %d manifest, %d API description and %d binary schema entries",
            len(sources),
            len(manifest_entries),
            len(api_entries),
            len(proto_entries),
        )
        return sources, [*manifest_entries, *api_entries, *proto_entries]

    def render_units(
        self, model: Model, namespaces: AbstractSet[str], *, max_workers: int = 1
    ) -> List[RenderedUnit]:
        ordered = sorted(namespaces)
        if max_workers > 1 and len(ordered) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                batches = list(pool.map(lambda ns: self._render_namespace(model, ns), ordered))
        else:
            batches = [self._render_namespace(model, namespace) for namespace in ordered]
        return [unit for batch in batches for unit in batch]

    def api_descriptions(self, model: Model, args: CodegenArgs, classpath: Classpath) -> List[CodegenEntry]:
        entries: List[CodegenEntry] = []
        for description in self.openapi.convert(model, args.allowed_namespaces, classpath):
            name = f"{description.service_namespace}.{description.service_name}.json"
            entries.append(FromMemory(path=args.resource_output / name, content=description.document))
        return entries

    def binary_schemas(self, model: Model, args: CodegenArgs) -> List[CodegenEntry]:
        return [
            FromMemory(path=args.resource_output / compiled.path, content=compiled.contents)
            for compiled in self.proto.compile(model)
        ]

    def _render_namespace(self, model: Model, namespace: str) -> List[RenderedUnit]:
        units = list(self.renderer.render(model, namespace))
        self.logger.debug("Rendered %d units for namespace %s", len(units), namespace)
        return units

    def _check_collaborators(self, args: CodegenArgs) -> None:
        missing = []
        if not args.skip_sources and self.renderer is None:
            missing.append("source renderer (or skip sources)")
        if not args.skip_openapi and self.openapi is None:
            missing.append("API-description converter (or skip openapi)")
        if not args.skip_proto and self.proto is None:
            missing.append("binary-schema compiler (or skip proto)")
        if missing:
            raise ConfigError(f"Missing pipeline collaborators: {'; '.join(missing)}")


def source_path(output: Path, unit: RenderedUnit, extension: str) -> Path:
    """Namespace segments become directories, ``<name>.<extension>`` the file."""
    directory = output.joinpath(*unit.namespace.split("."))
    return directory / f"{unit.name}.{extension.lstrip('.')}"


__all__ = ["PipelineFanOut", "source_path"]
