"""Tests for shapegen.pipelines.fanout."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from shapegen.config import CodegenArgs, ConfigError
from shapegen.loader import Classpath
from shapegen.models import FromMemory, RenderedUnit
from shapegen.pipelines import PipelineFanOut, source_path
from tests._fixtures.collaborators import (
    ExplodingRenderer,
    RecordingCompiler,
    RecordingConverter,
    RecordingRenderer,
)
from tests._fixtures.model_builder import build_model


def _fanout(**overrides) -> PipelineFanOut:
    collaborators = {
        "renderer": RecordingRenderer(),
        "openapi": RecordingConverter(),
        "proto": RecordingCompiler(),
    }
    collaborators.update(overrides)
    return PipelineFanOut(**collaborators)


def test_source_path_uses_namespace_directories(tmp_path: Path) -> None:
    unit = RenderedUnit(namespace="example.weather", name="City", content="")

    assert source_path(tmp_path, unit, ".py") == tmp_path / "example" / "weather" / "City.py"
    assert source_path(tmp_path, unit, "scala") == tmp_path / "example" / "weather" / "City.scala"


def test_namespaces_render_in_lexicographic_order(codegen_args: CodegenArgs) -> None:
    renderer = RecordingRenderer()
    fanout = _fanout(renderer=renderer)

    sources, _ = fanout.run(build_model(["c", "a.z", "b"]), {"c", "a.z", "b"}, codegen_args, Classpath())

    assert renderer.calls == ["a.z", "b", "c"]
    assert [entry.path for entry in sources] == [
        codegen_args.output / "a" / "z" / "unit0_a_z.py",
        codegen_args.output / "b" / "unit0_b.py",
        codegen_args.output / "c" / "unit0_c.py",
    ]
    assert all(isinstance(entry, FromMemory) for entry in sources)


def test_multiple_units_per_namespace_are_all_emitted(codegen_args: CodegenArgs) -> None:
    fanout = _fanout(renderer=RecordingRenderer(units_per_namespace=3))

    sources, _ = fanout.run(build_model(["a"]), {"a"}, codegen_args, Classpath())

    assert [entry.path.name for entry in sources] == ["unit0_a.py", "unit1_a.py", "unit2_a.py"]


def test_resources_are_ordered_manifest_then_openapi_then_proto(codegen_args: CodegenArgs) -> None:
    fanout = _fanout()

    _, resources = fanout.run(build_model(["a"]), {"a"}, codegen_args, Classpath())

    names = [entry.path.relative_to(codegen_args.resource_output).as_posix() for entry in resources]
    assert names == [
        "META-INF/smithy/shapegen.tracking.json",
        "META-INF/smithy/manifest",
        "example.api.Weather.json",
        "example/api/weather.proto",
    ]


def test_resource_order_is_deterministic_across_runs(codegen_args: CodegenArgs) -> None:
    model = build_model(["b", "a", "c"])
    args = replace(codegen_args, max_workers=4)

    first = _fanout().run(model, {"b", "a", "c"}, args, Classpath())
    second = _fanout().run(model, {"c", "b", "a"}, args, Classpath())

    assert first == second


def test_thread_pool_rendering_matches_sequential_output(codegen_args: CodegenArgs) -> None:
    namespaces = {f"ns{index:02d}" for index in range(12)}
    model = build_model(namespaces)

    sequential, _ = _fanout().run(model, namespaces, codegen_args, Classpath())
    parallel, _ = _fanout().run(model, namespaces, replace(codegen_args, max_workers=4), Classpath())

    assert parallel == sequential


def test_openapi_receives_allowed_namespaces_and_classpath(codegen_args: CodegenArgs) -> None:
    converter = RecordingConverter()
    classpath = Classpath(archives=(Path("dep.jar"),))
    args = replace(codegen_args, allowed_namespaces=frozenset({"a"}))

    _fanout(openapi=converter).run(build_model(["a", "b"]), {"a"}, args, classpath)

    assert converter.calls == [(frozenset({"a"}), classpath)]


def test_disabled_sources_skip_the_resource_manifest(codegen_args: CodegenArgs) -> None:
    renderer = RecordingRenderer()
    args = replace(codegen_args, skip_sources=True, skip_proto=True)

    sources, resources = _fanout(renderer=renderer).run(build_model(["a"]), {"a"}, args, Classpath())

    assert sources == []
    assert renderer.calls == []
    assert [entry.path.name for entry in resources] == ["example.api.Weather.json"]


def test_skip_resources_keeps_sources(codegen_args: CodegenArgs) -> None:
    args = replace(codegen_args, skip_resources=True, skip_openapi=True, skip_proto=True)

    sources, resources = _fanout().run(build_model(["a"]), {"a"}, args, Classpath())

    assert len(sources) == 1
    assert resources == []


def test_side_pipelines_run_once_over_whole_model(codegen_args: CodegenArgs) -> None:
    compiler = RecordingCompiler(paths=["a.proto", "b/c.proto"])
    converter = RecordingConverter(services=[("a", "One"), ("b", "Two")])

    _, resources = _fanout(openapi=converter, proto=compiler).run(
        build_model(["a", "b"]), {"a", "b"}, codegen_args, Classpath()
    )

    assert compiler.calls == 1
    assert len(converter.calls) == 1
    assert [entry.path.name for entry in resources[2:]] == ["a.One.json", "b.Two.json", "a.proto", "c.proto"]


def test_missing_collaborator_is_a_config_error(codegen_args: CodegenArgs) -> None:
    fanout = PipelineFanOut(renderer=RecordingRenderer())

    with pytest.raises(ConfigError, match="API-description"):
        fanout.run(build_model(["a"]), {"a"}, codegen_args, Classpath())


def test_render_failures_propagate(codegen_args: CodegenArgs) -> None:
    with pytest.raises(RuntimeError, match="cannot render a"):
        _fanout(renderer=ExplodingRenderer()).run(build_model(["a"]), {"a"}, codegen_args, Classpath())
