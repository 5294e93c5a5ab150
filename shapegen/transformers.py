"""Model transformers applied after loading and before generation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Sequence, Set

from .models import Model
from .plugins import TRANSFORMERS_GROUP, PluginError, coerce_plugin, iter_entry_points

MIXIN_TRAIT = "smithy.api#mixin"


class ModelTransformer(ABC):
    """Contract for named, pure model-to-model rewrites."""

    name: str

    @abstractmethod
    def transform(self, model: Model) -> Model:
        """Return a new model; the input must not be mutated."""


class FlattenMixins(ModelTransformer):
    """Copies mixin members and traits into their users and drops mixin shapes."""

    name = "flatten-mixins"

    def transform(self, model: Model) -> Model:
        return flatten_mixins(model)


def flatten_mixins(model: Model) -> Model:
    shapes = model.shapes()
    flattened: Dict[str, Dict[str, Any]] = {}

    def _resolve(key: str, visiting: Set[str]) -> Dict[str, Any]:
        if key in flattened:
            return flattened[key]
        if key in visiting:
            raise ValueError(f"Mixin cycle detected at {key}")
        node = shapes[key]
        members: Dict[str, Any] = {}
        traits: Dict[str, Any] = {}
        for ref in node.get("mixins") or []:
            target = ref.get("target") if isinstance(ref, Mapping) else ref
            if target not in shapes:
                raise ValueError(f"Shape {key} uses unknown mixin {target}")
            parent = _resolve(target, visiting | {key})
            members.update(parent.get("members", {}))
            traits.update({k: v for k, v in parent.get("traits", {}).items() if k != MIXIN_TRAIT})

        result = {k: v for k, v in node.items() if k != "mixins"}
        members.update(node.get("members", {}))
        traits.update(node.get("traits", {}))
        if members:
            result["members"] = members
        if traits:
            result["traits"] = traits
        flattened[key] = result
        return result

    kept = {
        key: _resolve(key, set())
        for key, node in shapes.items()
        if MIXIN_TRAIT not in (node.get("traits") or {})
    }
    return Model(shapes=kept, metadata=model.metadata)


_BUILTIN_FACTORIES: Dict[str, Callable[[], ModelTransformer]] = {
    FlattenMixins.name: FlattenMixins,
}


def discover_transformers(names: Sequence[str]) -> List[ModelTransformer]:
    """Instantiate transformers in the requested order."""
    if not names:
        return []

    factories: Dict[str, Callable[[], ModelTransformer]] = dict(_BUILTIN_FACTORIES)
    for entry in iter_entry_points(TRANSFORMERS_GROUP):
        if entry.name in factories:
            continue

        def _factory(entry=entry) -> ModelTransformer:
            try:
                loaded = entry.load()
            except Exception as exc:
                raise PluginError(f"Failed to load transformer entry point '{entry.name}': {exc}") from exc
            return coerce_plugin(loaded, ModelTransformer, label=f"{TRANSFORMERS_GROUP}:{entry.name}")

        factories[entry.name] = _factory

    missing = [name for name in names if name not in factories]
    if missing:
        raise ValueError(f"Unknown transformers requested: {', '.join(missing)}")
    return [factories[name]() for name in names]


def apply_transformers(model: Model, transformers: Sequence[ModelTransformer]) -> Model:
    for transformer in transformers:
        model = transformer.transform(model)
    return model


__all__ = [
    "FlattenMixins",
    "MIXIN_TRAIT",
    "ModelTransformer",
    "apply_transformers",
    "discover_transformers",
    "flatten_mixins",
]
