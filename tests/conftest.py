from __future__ import annotations

from pathlib import Path

import pytest

from shapegen.config import CodegenArgs
from tests._fixtures.model_builder import ModelBuilder


@pytest.fixture
def model_builder(tmp_path: Path) -> ModelBuilder:
    """Provide a model file writer rooted at the pytest tmp_path."""
    return ModelBuilder(tmp_path)


@pytest.fixture
def codegen_args(tmp_path: Path) -> CodegenArgs:
    """Arguments writing under tmp_path with every pipeline enabled."""
    return CodegenArgs(
        output=tmp_path / "out" / "src",
        resource_output=tmp_path / "out" / "resources",
    )
