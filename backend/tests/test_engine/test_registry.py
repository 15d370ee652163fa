"""Tests for the stage registry."""

import pytest

from app.engine.context import GridContext
from app.engine.registry import Layer, TransformRegistry, TransformSpec, load_transforms


def _noop(ctx: GridContext) -> None:
    pass


def test_register_and_get():
    reg = TransformRegistry()
    spec = TransformSpec(id="T0.01", layer=Layer.RASTER, fn=_noop)
    reg.register(spec)
    assert reg.get("T0.01") is spec
    assert reg.count == 1


def test_duplicate_id_rejected():
    reg = TransformRegistry()
    reg.register(TransformSpec(id="T0.01", layer=Layer.RASTER, fn=_noop))
    with pytest.raises(ValueError, match="Duplicate"):
        reg.register(TransformSpec(id="T0.01", layer=Layer.RASTER, fn=_noop))


def test_get_layer():
    reg = TransformRegistry()
    reg.register(TransformSpec(id="T0.01", layer=Layer.RASTER, fn=_noop))
    reg.register(TransformSpec(id="T1.01", layer=Layer.SAMPLING, fn=_noop))
    layer0 = reg.get_layer(Layer.RASTER)
    assert len(layer0) == 1
    assert layer0[0].id == "T0.01"


def test_with_tag():
    reg = TransformRegistry()
    reg.register(TransformSpec(id="T2.01", layer=Layer.CLASSIFICATION, fn=_noop, tags={"raster"}))
    reg.register(TransformSpec(id="T2.02", layer=Layer.CLASSIFICATION, fn=_noop, tags={"point"}))
    assert [s.id for s in reg.with_tag("point")] == ["T2.02"]


def test_resolve_order_with_deps():
    reg = TransformRegistry()
    reg.register(TransformSpec(id="T1.01", layer=Layer.SAMPLING, fn=_noop, dependencies=["T0.01"]))
    reg.register(TransformSpec(id="T0.01", layer=Layer.RASTER, fn=_noop))
    ids = [s.id for s in reg.resolve_order(None)]
    assert ids == ["T0.01", "T1.01"]


def test_resolve_order_ignores_deps_outside_request():
    reg = TransformRegistry()
    reg.register(TransformSpec(id="T2.01", layer=Layer.CLASSIFICATION, fn=_noop))
    reg.register(TransformSpec(id="T2.02", layer=Layer.CLASSIFICATION, fn=_noop))
    reg.register(TransformSpec(id="T3.01", layer=Layer.SYMBOLS, fn=_noop, dependencies=["T2.01", "T2.02"]))
    ids = [s.id for s in reg.resolve_order({"T2.02", "T3.01"})]
    assert ids == ["T2.02", "T3.01"]


def test_resolve_order_unknown_id():
    reg = TransformRegistry()
    with pytest.raises(KeyError):
        reg.resolve_order({"T9.99"})


def test_resolve_order_cycle():
    reg = TransformRegistry()
    reg.register(TransformSpec(id="T0.01", layer=Layer.RASTER, fn=_noop, dependencies=["T0.02"]))
    reg.register(TransformSpec(id="T0.02", layer=Layer.RASTER, fn=_noop, dependencies=["T0.01"]))
    with pytest.raises(ValueError, match="Circular"):
        reg.resolve_order(None)


def test_load_transforms_registers_all_stages():
    reg = load_transforms()
    assert {s.id for s in reg.all()} == {"T0.01", "T1.01", "T2.01", "T2.02", "T3.01", "T3.02"}
    assert reg.get("T3.01").layer == Layer.SYMBOLS
