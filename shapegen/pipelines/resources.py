"""Resource manifest packaged next to generated sources."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Sequence, Tuple

from .. import __version__
from ..ledger import MANIFEST_METADATA_KEY
from ..loader import MANIFEST_DIR
from ..models import SMITHY_VERSION, CodegenEntry, FromDisk, FromMemory

TRACKING_FILENAME = "shapegen.tracking.json"
MANIFEST_FILENAME = "manifest"

_MODEL_SUFFIXES = {".json"}


def produce(
    resource_output: Path,
    specs: Sequence[Path],
    generated_namespaces: Sequence[str],
) -> List[CodegenEntry]:
    """Build the entries that let downstream runs discover this run's output.

    The input specs are copied under ``META-INF/smithy``, a tracking model
    records the generated namespaces in the metadata the ledger reads, and a
    manifest indexes both. With no specs and no namespaces the result is still
    the manifest and the tracking file, each nearly empty.
    """
    folder = resource_output / MANIFEST_DIR
    spec_entries: List[CodegenEntry] = []
    names: List[str] = []
    for source, relative in _spec_files(specs):
        names.append(relative)
        spec_entries.append(FromDisk(path=folder / relative, source=source))

    tracking = {
        "smithy": SMITHY_VERSION,
        "metadata": {
            MANIFEST_METADATA_KEY: [
                {"version": __version__, "namespaces": sorted(set(generated_namespaces))}
            ]
        },
    }
    names.append(TRACKING_FILENAME)

    return [
        *spec_entries,
        FromMemory(path=folder / TRACKING_FILENAME, content=json.dumps(tracking, indent=4) + "\n"),
        FromMemory(path=folder / MANIFEST_FILENAME, content="\n".join(names) + "\n"),
    ]


def _spec_files(specs: Sequence[Path]) -> List[Tuple[Path, str]]:
    files: List[Tuple[Path, str]] = []
    for spec in specs:
        spec = Path(spec)
        if spec.is_dir():
            for candidate in sorted(spec.rglob("*")):
                if candidate.is_file() and candidate.suffix in _MODEL_SUFFIXES:
                    files.append((candidate, candidate.relative_to(spec).as_posix()))
        else:
            files.append((spec, spec.name))
    return files


__all__ = ["MANIFEST_FILENAME", "TRACKING_FILENAME", "produce"]
