"""Tests for shapegen.loader."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import pytest

from shapegen.ledger import scan_manifests
from shapegen.loader import Classpath, DependencyResolver, ModelLoader, ModelLoadError
from tests._fixtures.model_builder import ModelBuilder, manifests_metadata, shapes_for


class StaticResolver(DependencyResolver):
    """Resolver returning pre-built archives and recording requests."""

    def __init__(self, archives: Sequence[Path]) -> None:
        self.archives = list(archives)
        self.calls: List[tuple[list[str], list[str]]] = []

    def resolve(self, coordinates: Sequence[str], repositories: Sequence[str]) -> List[Path]:
        self.calls.append((list(coordinates), list(repositories)))
        return self.archives


def _load(loader: ModelLoader, **overrides):
    params = {
        "specs": [],
        "dependencies": [],
        "repositories": [],
        "transformers": [],
        "discover_models": False,
        "local_jars": [],
    }
    params.update(overrides)
    return loader.load(**params)


def test_loads_spec_files_and_directories(model_builder: ModelBuilder) -> None:
    single = model_builder.write_spec("single.json", shapes_for(["a"]))
    model_builder.write_spec("dir/one.json", shapes_for(["b"]))
    model_builder.write_spec("dir/nested/two.json", shapes_for(["c"]))

    classpath, model = _load(ModelLoader(), specs=[single, model_builder.root / "dir"])

    assert classpath == Classpath()
    assert model.namespaces() == {"a", "b", "c"}


def test_idl_files_are_rejected(model_builder: ModelBuilder) -> None:
    idl = model_builder.root / "service.smithy"
    idl.write_text("namespace example\n", encoding="utf-8")

    with pytest.raises(ModelLoadError, match="IDL"):
        _load(ModelLoader(), specs=[idl])


def test_missing_spec_path_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ModelLoadError, match="does not exist"):
        _load(ModelLoader(), specs=[tmp_path / "missing.json"])


def test_invalid_json_is_reported_with_path(model_builder: ModelBuilder) -> None:
    broken = model_builder.root / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    with pytest.raises(ModelLoadError, match="broken.json"):
        _load(ModelLoader(), specs=[broken])


def test_local_archives_are_loaded_through_their_manifest(model_builder: ModelBuilder) -> None:
    jar = model_builder.write_archive(
        "upstream.jar",
        {
            "upstream.json": {"smithy": "2.0", "shapes": shapes_for(["upstream"])},
            "tracking.json": {"smithy": "2.0", "metadata": manifests_metadata(["upstream"])},
        },
    )

    classpath, model = _load(ModelLoader(), local_jars=[jar])

    assert classpath.archives == (jar,)
    assert model.namespaces() == {"upstream"}
    assert scan_manifests(model) == {"upstream"}


def test_manifests_from_several_archives_accumulate(model_builder: ModelBuilder) -> None:
    first = model_builder.write_archive(
        "first.jar", {"t.json": {"smithy": "2.0", "metadata": manifests_metadata(["z"])}}
    )
    second = model_builder.write_archive(
        "second.jar", {"t.json": {"smithy": "2.0", "metadata": manifests_metadata(["z"])}}
    )

    _, model = _load(ModelLoader(), local_jars=[first, second])

    assert len(model.metadata["shapegenGenerated"]) == 2


def test_archive_reached_twice_is_loaded_once(model_builder: ModelBuilder) -> None:
    jar = model_builder.write_archive(
        "upstream.jar",
        {
            "upstream.json": {"smithy": "2.0", "shapes": shapes_for(["upstream"])},
            "tracking.json": {"smithy": "2.0", "metadata": manifests_metadata(["upstream"])},
        },
    )
    resolver = StaticResolver([jar])
    loader = ModelLoader(resolver=resolver, search_path=[str(jar)])

    classpath, model = _load(
        loader,
        local_jars=[jar, jar],
        dependencies=["com.example:upstream:1.0"],
        discover_models=True,
    )

    assert classpath.archives == (jar,)
    assert len(model.metadata["shapegenGenerated"]) == 1
    assert scan_manifests(model) == {"upstream"}


def test_spec_given_twice_is_loaded_once(model_builder: ModelBuilder) -> None:
    spec = model_builder.write_spec(
        "dir/model.json", shapes_for(["z"]), metadata=manifests_metadata(["z"])
    )

    _, model = _load(ModelLoader(), specs=[spec, model_builder.root / "dir"])

    assert scan_manifests(model) == {"z"}


def test_directory_walk_ignores_idl_files(model_builder: ModelBuilder) -> None:
    model_builder.write_spec("dir/one.json", shapes_for(["one"]))
    (model_builder.root / "dir" / "other.smithy").write_text("namespace other\n", encoding="utf-8")

    _, model = _load(ModelLoader(), specs=[model_builder.root / "dir"])

    assert model.namespaces() == {"one"}


def test_dependencies_require_a_resolver() -> None:
    with pytest.raises(ModelLoadError, match="resolver"):
        _load(ModelLoader(), dependencies=["com.example:models:1.0"])


def test_dependencies_are_resolved_into_the_classpath(model_builder: ModelBuilder) -> None:
    jar = model_builder.write_archive(
        "dep.jar", {"dep.json": {"smithy": "2.0", "shapes": shapes_for(["dep"])}}
    )
    resolver = StaticResolver([jar])

    classpath, model = _load(
        ModelLoader(resolver=resolver),
        dependencies=["com.example:models:1.0"],
        repositories=["https://repo.example.com"],
    )

    assert resolver.calls == [(["com.example:models:1.0"], ["https://repo.example.com"])]
    assert classpath.archives == (jar,)
    assert model.namespaces() == {"dep"}


def test_discovery_scans_search_path_only_when_enabled(tmp_path: Path) -> None:
    location = tmp_path / "site"
    smithy_dir = location / "META-INF" / "smithy"
    smithy_dir.mkdir(parents=True)
    (smithy_dir / "found.json").write_text(
        '{"smithy": "2.0", "shapes": {"found#Thing": {"type": "string"}}}', encoding="utf-8"
    )
    (smithy_dir / "manifest").write_text("found.json\n", encoding="utf-8")
    loader = ModelLoader(search_path=[str(location), str(tmp_path / "nothing-here")])

    _, without = _load(loader, discover_models=False)
    _, with_discovery = _load(loader, discover_models=True)

    assert without.namespaces() == set()
    assert with_discovery.namespaces() == {"found"}


def test_named_transformers_are_applied(model_builder: ModelBuilder) -> None:
    spec = model_builder.write_spec(
        "mixins.json",
        {
            "a#Base": {
                "type": "structure",
                "members": {"id": {"target": "smithy.api#String"}},
                "traits": {"smithy.api#mixin": {}},
            },
            "a#User": {"type": "structure", "mixins": [{"target": "a#Base"}]},
        },
    )

    _, model = _load(ModelLoader(), specs=[spec], transformers=["flatten-mixins"])

    assert model.shape("a#Base") is None
    assert model.shape("a#User") == {
        "type": "structure",
        "members": {"id": {"target": "smithy.api#String"}},
    }


def test_unknown_transformer_is_rejected() -> None:
    with pytest.raises(ValueError, match="no-such-transformer"):
        _load(ModelLoader(), transformers=["no-such-transformer"])
