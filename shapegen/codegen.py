"""Entry points tying loading, selection, fan-out and commit together."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Set

from .artifacts import commit, unify
from .config import CodegenArgs, DumpModelArgs, ProjectConfig
from .ledger import scan_manifests
from .loader import Classpath, DependencyResolver, ModelLoader
from .logging import get_logger
from .models import CodegenResult, Model
from .namespaces import resolve_namespaces
from .pipelines import ApiDescriptionConverter, BinarySchemaCompiler, PipelineFanOut, SourceRenderer
from .plugins import OPENAPI_GROUP, PROTO_GROUP, RENDERERS_GROUP, RESOLVERS_GROUP, load_plugin
from .transformers import flatten_mixins


class Codegen:
    """Coordinates one generation run over the configured collaborators."""

    def __init__(
        self,
        loader: ModelLoader | None = None,
        renderer: SourceRenderer | None = None,
        openapi: ApiDescriptionConverter | None = None,
        proto: BinarySchemaCompiler | None = None,
    ) -> None:
        self.loader = loader or ModelLoader()
        self.fanout = PipelineFanOut(renderer=renderer, openapi=openapi, proto=proto)
        self.logger = get_logger("codegen")

    @classmethod
    def from_config(cls, config: ProjectConfig) -> "Codegen":
        """Build an instance whose collaborators come from named entry points."""
        plugins = config.plugins
        return cls(
            loader=_configured_loader(config),
            renderer=load_plugin(RENDERERS_GROUP, plugins.renderer, SourceRenderer) if plugins.renderer else None,
            openapi=load_plugin(OPENAPI_GROUP, plugins.openapi, ApiDescriptionConverter) if plugins.openapi else None,
            proto=load_plugin(PROTO_GROUP, plugins.proto, BinarySchemaCompiler) if plugins.proto else None,
        )

    @classmethod
    def for_dump_model(cls, config: ProjectConfig) -> "Codegen":
        """Build an instance for loading only; no pipeline plugins are imported."""
        return cls(loader=_configured_loader(config))

    def generate(self, args: CodegenArgs) -> CodegenResult:
        classpath, model = self.loader.load(
            args.specs,
            args.dependencies,
            args.repositories,
            args.transformers,
            args.discover_models,
            args.local_jars,
        )
        return self.generate_from_model(model, args, classpath)

    def generate_from_model(
        self, model: Model, args: CodegenArgs, classpath: Classpath | None = None
    ) -> CodegenResult:
        # Must succeed before any pipeline runs.
        already_generated = scan_manifests(model)
        namespaces = resolve_namespaces(
            model,
            args.allowed_namespaces,
            args.excluded_namespaces,
            already_generated,
        )
        self.logger.info(
            "Selected %d namespaces for generation (%d already generated upstream)",
            len(namespaces),
            len(already_generated),
        )
        self.logger.debug("Eligible namespaces: %s", ", ".join(sorted(namespaces)) or "(none)")
        sources, resources = self.fanout.run(model, namespaces, args, classpath or Classpath())
        return unify(sources, resources)

    def write(self, result: CodegenResult) -> Set[Path]:
        return commit(result)

    def dump_model(self, args: DumpModelArgs) -> str:
        """Load the model without discovery and pretty-print it with mixins flattened."""
        _, model = self.loader.load(
            args.specs,
            args.dependencies,
            args.repositories,
            args.transformers,
            False,
            args.local_jars,
        )
        return json.dumps(flatten_mixins(model).to_json_ast(), indent=4)


def _configured_loader(config: ProjectConfig) -> ModelLoader:
    name = config.plugins.resolver
    resolver = load_plugin(RESOLVERS_GROUP, name, DependencyResolver) if name else None
    return ModelLoader(resolver=resolver)


def generate(args: CodegenArgs, **collaborators) -> CodegenResult:
    return Codegen(**collaborators).generate(args)


def write(result: CodegenResult) -> Set[Path]:
    return commit(result)


def dump_model(args: DumpModelArgs, **collaborators) -> str:
    return Codegen(**collaborators).dump_model(args)


__all__ = ["Codegen", "dump_model", "generate", "write"]
