"""Multi-target code generation orchestrator for shape models."""

__version__ = "0.1.0"

from .artifacts import commit, unify
from .codegen import Codegen, dump_model, generate, write
from .config import CodegenArgs, ConfigError, DumpModelArgs, load_config
from .ledger import DuplicateManifestNamespace, LedgerError, scan_manifests
from .loader import Classpath, ModelLoader, ModelLoadError
from .models import CodegenEntry, CodegenResult, FromDisk, FromMemory, Model, RenderedUnit, ShapeId
from .namespaces import resolve_namespaces

__all__ = [
    "Classpath",
    "Codegen",
    "CodegenArgs",
    "CodegenEntry",
    "CodegenResult",
    "ConfigError",
    "DumpModelArgs",
    "DuplicateManifestNamespace",
    "FromDisk",
    "FromMemory",
    "LedgerError",
    "Model",
    "ModelLoadError",
    "ModelLoader",
    "RenderedUnit",
    "ShapeId",
    "__version__",
    "commit",
    "dump_model",
    "generate",
    "load_config",
    "resolve_namespaces",
    "scan_manifests",
    "unify",
    "write",
]
