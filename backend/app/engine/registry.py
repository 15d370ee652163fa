"""Stage registry — every grid stage is a standalone function registered via decorator.

Usage:
    @transform(id="T2.01", layer=Layer.CLASSIFICATION, dependencies=["T1.01"], tags={"raster"})
    def majority_vote(ctx: GridContext) -> None:
        ctx.cell_features = vote(ctx.samples, ctx.config.tolerance)

Adding a stage = creating one file with the decorator under ``app/engine/layerN``.
"""

from __future__ import annotations

import enum
import importlib
import logging
import pkgutil
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from app.engine.context import GridContext

logger = logging.getLogger(__name__)

LAYER_PACKAGES = ("layer0", "layer1", "layer2", "layer3")


class Layer(enum.IntEnum):
    RASTER = 0
    SAMPLING = 1
    CLASSIFICATION = 2
    SYMBOLS = 3


@dataclass
class TransformSpec:
    id: str
    layer: Layer
    fn: Callable[["GridContext"], None]
    dependencies: list[str] = field(default_factory=list)
    tags: set[str] = field(default_factory=set)
    description: str = ""


class TransformRegistry:
    """Registry of grid stages."""

    def __init__(self) -> None:
        self._transforms: dict[str, TransformSpec] = {}

    def register(self, spec: TransformSpec) -> None:
        if spec.id in self._transforms:
            raise ValueError(f"Duplicate transform ID: {spec.id}")
        self._transforms[spec.id] = spec
        logger.debug("Registered stage %s (%s)", spec.id, spec.layer.name)

    def get(self, transform_id: str) -> TransformSpec:
        return self._transforms[transform_id]

    def get_layer(self, layer: Layer) -> list[TransformSpec]:
        specs = [s for s in self._transforms.values() if s.layer == layer]
        return sorted(specs, key=lambda s: s.id)

    def with_tag(self, tag: str) -> list[TransformSpec]:
        return sorted((s for s in self._transforms.values() if tag in s.tags), key=lambda s: s.id)

    def all(self) -> list[TransformSpec]:
        return sorted(self._transforms.values(), key=lambda s: (s.layer, s.id))

    def resolve_order(self, requested_ids: set[str] | None = None) -> list[TransformSpec]:
        """Topological sort respecting dependencies. If requested_ids is None, order all.

        Dependencies outside the requested set are ignored rather than pulled
        in, so gated-off alternatives (e.g. the point classifier) stay off.
        """
        pool = self._transforms
        if requested_ids is not None:
            unknown = requested_ids - pool.keys()
            if unknown:
                raise KeyError(f"Unknown stage IDs: {sorted(unknown)}")
            pool = {k: v for k, v in pool.items() if k in requested_ids}

        # Kahn's algorithm, ties broken by (layer, id)
        in_degree: dict[str, int] = {
            tid: sum(1 for dep in spec.dependencies if dep in pool) for tid, spec in pool.items()
        }
        ready = sorted((tid for tid, d in in_degree.items() if d == 0), key=lambda t: (pool[t].layer, t))
        ordered: list[TransformSpec] = []

        while ready:
            tid = ready.pop(0)
            ordered.append(pool[tid])
            for other_id, other_spec in pool.items():
                if tid in other_spec.dependencies:
                    in_degree[other_id] -= 1
                    if in_degree[other_id] == 0:
                        ready.append(other_id)
            ready.sort(key=lambda t: (pool[t].layer, t))

        if len(ordered) != len(pool):
            missing = set(pool.keys()) - {s.id for s in ordered}
            raise ValueError(f"Circular dependency detected among: {missing}")

        return ordered

    @property
    def count(self) -> int:
        return len(self._transforms)


# Module-level default registry
_registry = TransformRegistry()


def get_registry() -> TransformRegistry:
    return _registry


def transform(
    *,
    id: str,
    layer: Layer,
    dependencies: list[str] | None = None,
    tags: set[str] | None = None,
    description: str = "",
):
    """Decorator to register a stage function on the default registry."""

    def decorator(fn: Callable[["GridContext"], None]):
        spec = TransformSpec(
            id=id,
            layer=layer,
            fn=fn,
            dependencies=dependencies or [],
            tags=tags or set(),
            description=description,
        )
        _registry.register(spec)
        return fn

    return decorator


def load_transforms() -> TransformRegistry:
    """Import every ``app.engine.layerN`` module so the @transform decorators fire."""
    for layer_name in LAYER_PACKAGES:
        package = importlib.import_module(f"app.engine.{layer_name}")
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            importlib.import_module(f"{package.__name__}.{module_name}")
    return _registry
