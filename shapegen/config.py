"""Configuration records and loading for shapegen (shapegen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Sequence

import yaml

CONFIG_FILENAME = "shapegen.yml"

SKIP_CHOICES = ("sources", "resources", "openapi", "proto")


class ConfigError(RuntimeError):
    """Raised when configuration is invalid or incomplete."""


@dataclass(frozen=True)
class CodegenArgs:
    """Everything a generation run needs.

    ``allowed_namespaces`` switches the namespace resolver from open mode to
    allow-list mode. ``skip_openapi`` and ``skip_proto`` toggle the
    API-description and binary-schema pipelines.
    """

    specs: Sequence[Path] = ()
    output: Path = Path("generated/src")
    resource_output: Path = Path("generated/resources")
    dependencies: Sequence[str] = ()
    repositories: Sequence[str] = ()
    transformers: Sequence[str] = ()
    allowed_namespaces: Optional[FrozenSet[str]] = None
    excluded_namespaces: Optional[FrozenSet[str]] = None
    skip_sources: bool = False
    skip_resources: bool = False
    skip_openapi: bool = False
    skip_proto: bool = False
    discover_models: bool = False
    local_jars: Sequence[Path] = ()
    max_workers: int = 1


@dataclass(frozen=True)
class DumpModelArgs:
    """Inputs for loading and printing a model without generating anything."""

    specs: Sequence[Path] = ()
    dependencies: Sequence[str] = ()
    repositories: Sequence[str] = ()
    transformers: Sequence[str] = ()
    local_jars: Sequence[Path] = ()


@dataclass
class PluginConfig:
    """Entry point names for the external pipeline collaborators."""

    renderer: Optional[str] = None
    openapi: Optional[str] = None
    proto: Optional[str] = None
    resolver: Optional[str] = None


@dataclass
class ProjectConfig:
    """Represents the settings defined in shapegen.yml."""

    root: Path
    codegen: CodegenArgs = field(default_factory=CodegenArgs)
    plugins: PluginConfig = field(default_factory=PluginConfig)

    def dump_model_args(self) -> DumpModelArgs:
        return DumpModelArgs(
            specs=self.codegen.specs,
            dependencies=self.codegen.dependencies,
            repositories=self.codegen.repositories,
            transformers=self.codegen.transformers,
            local_jars=self.codegen.local_jars,
        )


def load_config(config_path: Path) -> ProjectConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    defaults = CodegenArgs(
        output=root / CodegenArgs.output,
        resource_output=root / CodegenArgs.resource_output,
    )
    if not config_file.exists():
        return ProjectConfig(root=root, codegen=defaults)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    namespaces = _as_dict(data.get("namespaces"))
    skip = set(_as_str_list(data.get("skip")))
    unknown = skip.difference(SKIP_CHOICES)
    if unknown:
        raise ConfigError(
            f"Unknown skip targets: {', '.join(sorted(unknown))} "
            f"(expected any of {', '.join(SKIP_CHOICES)})"
        )

    max_workers = data.get("max_workers", 1)
    if not isinstance(max_workers, int) or isinstance(max_workers, bool) or max_workers < 1:
        raise ConfigError("max_workers must be a positive integer")

    codegen = replace(
        defaults,
        specs=tuple(root / item for item in _as_str_list(data.get("specs"))),
        dependencies=tuple(_as_str_list(data.get("dependencies"))),
        repositories=tuple(_as_str_list(data.get("repositories"))),
        transformers=tuple(_as_str_list(data.get("transformers"))),
        allowed_namespaces=_as_namespace_set(namespaces.get("allowed")),
        excluded_namespaces=_as_namespace_set(namespaces.get("excluded")),
        skip_sources="sources" in skip,
        skip_resources="resources" in skip,
        skip_openapi="openapi" in skip,
        skip_proto="proto" in skip,
        discover_models=bool(data.get("discover_models", False)),
        local_jars=tuple(root / item for item in _as_str_list(data.get("local_jars"))),
        max_workers=max_workers,
    )
    output = _as_str(data.get("output"))
    if output:
        codegen = replace(codegen, output=root / output)
    resource_output = _as_str(data.get("resource_output"))
    if resource_output:
        codegen = replace(codegen, resource_output=root / resource_output)

    plugin_data = _as_dict(data.get("plugins"))
    plugins = PluginConfig(
        renderer=_as_str(plugin_data.get("renderer")),
        openapi=_as_str(plugin_data.get("openapi")),
        proto=_as_str(plugin_data.get("proto")),
        resolver=_as_str(plugin_data.get("resolver")),
    )

    return ProjectConfig(root=root, codegen=codegen, plugins=plugins)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


def _as_namespace_set(value: Any) -> Optional[FrozenSet[str]]:
    if value is None:
        return None
    return frozenset(_as_str_list(value))


__all__ = [
    "CONFIG_FILENAME",
    "CodegenArgs",
    "ConfigError",
    "DumpModelArgs",
    "PluginConfig",
    "ProjectConfig",
    "SKIP_CHOICES",
    "load_config",
]
