"""Fan-in of pipeline entries and the filesystem commit."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Set

from .logging import get_logger
from .models import CodegenEntry, CodegenResult

_logger = get_logger("artifacts")


def unify(sources: Iterable[CodegenEntry], resources: Iterable[CodegenEntry]) -> CodegenResult:
    """Wrap pipeline outputs into a result.

    Entries are not deduplicated: pipelines configured to target the same path
    will overwrite each other at commit time.
    """
    return CodegenResult(sources=tuple(sources), resources=tuple(resources))


def commit(result: CodegenResult) -> Set[Path]:
    """Write every entry, sources first, and return the destination paths.

    The first failing entry aborts the commit and its error propagates.
    """
    written: List[Path] = []
    for entry in result.entries():
        try:
            written.append(entry.write())
        except OSError:
            _logger.error(
                "Commit aborted at %s after writing %d of %d entries",
                entry.path,
                len(written),
                len(result.entries()),
            )
            raise
    _logger.info("Wrote %d generated files", len(written))
    return set(written)


__all__ = ["commit", "unify"]
