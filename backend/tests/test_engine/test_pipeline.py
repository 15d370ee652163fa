"""Tests for the pipeline orchestrator."""

from __future__ import annotations

import asyncio

from app.engine.color_keys import allocate_color_keys
from app.engine.config import GridConfig
from app.engine.context import GridContext
from app.engine.pipeline import Pipeline, create_pipeline
from app.engine.registry import Layer, TransformRegistry, TransformSpec
from app.engine.viewport import Viewport


def _ctx(**options) -> GridContext:
    return GridContext(
        viewport=Viewport.from_bounds((0, 0, 10, 10), 100, 100),
        config=GridConfig(**options),
    )


def test_pipeline_runs_transforms():
    reg = TransformRegistry()
    results = []

    def t1(ctx: GridContext) -> None:
        results.append("t1")

    def t2(ctx: GridContext) -> None:
        results.append("t2")

    reg.register(TransformSpec(id="T0.01", layer=Layer.RASTER, fn=t1))
    reg.register(TransformSpec(id="T1.01", layer=Layer.SAMPLING, fn=t2, dependencies=["T0.01"]))

    ctx = Pipeline(registry=reg).run(_ctx())

    assert results == ["t1", "t2"]
    assert ctx.completed_transforms == {"T0.01", "T1.01"}


def test_pipeline_handles_errors():
    reg = TransformRegistry()

    def fail(ctx: GridContext) -> None:
        raise ValueError("test error")

    reg.register(TransformSpec(id="T0.01", layer=Layer.RASTER, fn=fail))
    reg.register(TransformSpec(id="T1.01", layer=Layer.SAMPLING, fn=lambda ctx: None, dependencies=["T0.01"]))

    ctx = Pipeline(registry=reg).run(_ctx())

    assert "test error" in ctx.errors["T0.01"]
    assert ctx.errors["T1.01"] == "skipped: dependency T0.01 failed"
    assert not ctx.completed_transforms


def test_async_run_yields_between_layers():
    reg = TransformRegistry()
    events = []

    reg.register(TransformSpec(id="T0.01", layer=Layer.RASTER, fn=lambda ctx: events.append("raster")))
    reg.register(
        TransformSpec(id="T1.01", layer=Layer.SAMPLING, fn=lambda ctx: events.append("sample"), dependencies=["T0.01"])
    )

    async def scenario() -> None:
        async def other() -> None:
            events.append("other")

        task = asyncio.create_task(other())
        await Pipeline(registry=reg).run_async(_ctx())
        await task

    asyncio.run(scenario())
    assert events == ["raster", "other", "sample"]


def test_plan_gates_on_method():
    pipeline = create_pipeline()

    raster_plan = [s.id for s in pipeline.plan(_ctx(show_geojson=False))]
    assert raster_plan == ["T0.01", "T1.01", "T2.01", "T3.01"]

    point_plan = [s.id for s in pipeline.plan(_ctx(method="point", show_geojson=True))]
    assert point_plan == ["T2.02", "T3.01", "T3.02"]


def test_symbol_stage_requires_resolver():
    ctx = _ctx(show_geojson=False)
    ctx.color_keys = allocate_color_keys([])
    create_pipeline().run(ctx)

    assert ctx.resolver is None
    assert "T2.01" in ctx.completed_transforms
    assert "resolver" in ctx.errors["T3.01"]
    assert ctx.grid == []
