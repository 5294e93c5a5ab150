"""Generation pipelines and their external collaborator contracts."""

from .base import ApiDescriptionConverter, BinarySchemaCompiler, SourceRenderer
from .fanout import PipelineFanOut, source_path

__all__ = [
    "ApiDescriptionConverter",
    "BinarySchemaCompiler",
    "PipelineFanOut",
    "SourceRenderer",
    "source_path",
]
