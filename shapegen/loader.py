"""Loads JSON AST model files, model archives and discovered models."""

from __future__ import annotations

import json
import sys
import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .logging import get_logger
from .models import Model, ModelMergeError
from .transformers import apply_transformers, discover_transformers

MANIFEST_DIR = "META-INF/smithy"
MANIFEST_PATH = f"{MANIFEST_DIR}/manifest"

_IDL_SUFFIX = ".smithy"
_AST_SUFFIX = ".json"


class ModelLoadError(RuntimeError):
    """Raised when model sources cannot be read or combined."""


@dataclass(frozen=True)
class Classpath:
    """Archives visible to the external pipelines while they run."""

    archives: Tuple[Path, ...] = ()


class DependencyResolver(ABC):
    """Turns dependency coordinates into local model archives."""

    @abstractmethod
    def resolve(self, coordinates: Sequence[str], repositories: Sequence[str]) -> List[Path]:
        """Download or locate the archives for ``coordinates``."""


class ModelLoader:
    """Assembles one model from spec files, archives and the search path."""

    def __init__(
        self,
        resolver: DependencyResolver | None = None,
        search_path: Optional[Sequence[str]] = None,
    ) -> None:
        self.resolver = resolver
        self._search_path = search_path
        self.logger = get_logger("loader")

    def load(
        self,
        specs: Sequence[Path],
        dependencies: Sequence[str],
        repositories: Sequence[str],
        transformers: Sequence[str],
        discover_models: bool,
        local_jars: Sequence[Path],
    ) -> Tuple[Classpath, Model]:
        transformer_chain = discover_transformers(transformers)

        candidates: List[Path] = [Path(jar) for jar in local_jars]
        if dependencies:
            if self.resolver is None:
                raise ModelLoadError(
                    "Dependencies were requested but no dependency resolver is configured"
                )
            resolved = self.resolver.resolve(list(dependencies), list(repositories))
            self.logger.debug("Resolved %d dependencies to %d archives", len(dependencies), len(resolved))
            candidates.extend(Path(path) for path in resolved)

        # Keyed by resolved location; the same archive or file is only read once.
        loaded: Dict[Path, None] = {}
        archives: List[Path] = []
        model = Model()
        for archive in candidates:
            if not _first_visit(loaded, archive):
                continue
            archives.append(archive)
            model = self._merge(model, self._load_archive(archive), str(archive))

        if discover_models:
            for location in self._discoverable_locations():
                if not _first_visit(loaded, location):
                    self.logger.debug("Skipping %s, already loaded", location)
                    continue
                model = self._merge(model, self._load_location(location, loaded), str(location))

        for spec in specs:
            for path in _expand_spec(Path(spec)):
                if _first_visit(loaded, path):
                    model = self._merge(model, _load_ast_file(path), str(path))

        self.logger.info(
            "Loaded model with %d shapes across %d namespaces",
            len(model),
            len(model.namespaces()),
        )
        return Classpath(archives=tuple(archives)), apply_transformers(model, transformer_chain)

    def _discoverable_locations(self) -> Iterable[Path]:
        entries = self._search_path if self._search_path is not None else sys.path
        for entry in entries:
            path = Path(entry or ".")
            if path.is_dir() and (path / MANIFEST_PATH).is_file():
                yield path
            elif path.is_file() and zipfile.is_zipfile(path):
                with zipfile.ZipFile(path) as archive:
                    if MANIFEST_PATH in archive.namelist():
                        yield path

    def _load_location(self, location: Path, loaded: Dict[Path, None]) -> Model:
        if location.is_dir():
            base = location / MANIFEST_DIR
            model = Model()
            for name in _manifest_names((location / MANIFEST_PATH).read_text(encoding="utf-8")):
                path = base / name
                if not _first_visit(loaded, path):
                    continue
                model = self._merge(model, _load_ast_file(path), str(path))
            return model
        return self._load_archive(location)

    def _load_archive(self, archive_path: Path) -> Model:
        try:
            archive = zipfile.ZipFile(archive_path)
        except (OSError, zipfile.BadZipFile) as exc:
            raise ModelLoadError(f"Cannot open model archive {archive_path}: {exc}") from exc

        with archive:
            if MANIFEST_PATH not in archive.namelist():
                self.logger.debug("Archive %s has no model manifest", archive_path)
                return Model()
            manifest = archive.read(MANIFEST_PATH).decode("utf-8")
            model = Model()
            for name in _manifest_names(manifest):
                member = str(PurePosixPath(MANIFEST_DIR) / name)
                label = f"{archive_path}!{member}"
                _reject_idl(label)
                try:
                    payload = archive.read(member)
                except KeyError as exc:
                    raise ModelLoadError(f"Manifest entry {label} is missing from the archive") from exc
                model = self._merge(model, _parse_ast(payload.decode("utf-8"), label), label)
            return model

    @staticmethod
    def _merge(model: Model, other: Model, label: str) -> Model:
        try:
            return model.merge(other)
        except ModelMergeError as exc:
            raise ModelLoadError(f"Cannot merge {label}: {exc}") from exc


def _first_visit(loaded: Dict[Path, None], path: Path) -> bool:
    key = path.resolve()
    if key in loaded:
        return False
    loaded[key] = None
    return True


def _manifest_names(text: str) -> List[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def _expand_spec(path: Path) -> List[Path]:
    if path.is_dir():
        return sorted(
            candidate
            for candidate in path.rglob("*")
            if candidate.is_file() and candidate.suffix == _AST_SUFFIX
        )
    if not path.exists():
        raise ModelLoadError(f"Spec path does not exist: {path}")
    return [path]


def _reject_idl(label: str) -> None:
    if label.endswith(_IDL_SUFFIX):
        raise ModelLoadError(f"{label}: IDL model files are not supported, provide the JSON AST form")


def _load_ast_file(path: Path) -> Model:
    _reject_idl(str(path))
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ModelLoadError(f"Cannot read model file {path}: {exc}") from exc
    return _parse_ast(text, str(path))


def _parse_ast(text: str, label: str) -> Model:
    try:
        document: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ModelLoadError(f"{label} is not valid JSON: {exc}") from exc
    if not isinstance(document, Mapping):
        raise ModelLoadError(f"{label} must contain a JSON object")
    try:
        return Model.from_json_ast(document)
    except ValueError as exc:
        raise ModelLoadError(f"{label}: {exc}") from exc


__all__ = [
    "Classpath",
    "DependencyResolver",
    "MANIFEST_DIR",
    "MANIFEST_PATH",
    "ModelLoadError",
    "ModelLoader",
]
