"""Pipeline orchestrator — runs grid stages in dependency order with method gating."""

from __future__ import annotations

import asyncio
import logging
import time

from app.engine.context import GridContext
from app.engine.registry import TransformRegistry, TransformSpec, get_registry, load_transforms

logger = logging.getLogger(__name__)


class Pipeline:
    """Orchestrates one rasterize-then-sample pass."""

    def __init__(self, registry: TransformRegistry | None = None) -> None:
        self.registry = registry or get_registry()

    def plan(self, ctx: GridContext) -> list[TransformSpec]:
        """Stages to run for this context, in execution order."""
        skip_ids = self._adaptive_gate(ctx)
        requested = {s.id for s in self.registry.all()} - skip_ids
        return self.registry.resolve_order(requested)

    def run(self, ctx: GridContext) -> GridContext:
        """Run every stage synchronously."""
        start = time.perf_counter()
        ordered = self.plan(ctx)
        logger.info("Pipeline: %d stages queued", len(ordered))

        for spec in ordered:
            self._run_stage(spec, ctx)

        self._log_summary(ctx, ordered, start)
        return ctx

    async def run_async(self, ctx: GridContext) -> GridContext:
        """Run every stage, yielding to the event loop at each layer boundary.

        The raster layer finishes and the loop drains pending work before any
        sampling stage reads the surface.
        """
        start = time.perf_counter()
        ordered = self.plan(ctx)
        logger.info("Pipeline (async): %d stages queued", len(ordered))

        current_layer = None
        for spec in ordered:
            if current_layer is not None and spec.layer != current_layer:
                await asyncio.sleep(0)
            current_layer = spec.layer
            self._run_stage(spec, ctx)

        self._log_summary(ctx, ordered, start)
        return ctx

    def _run_stage(self, spec: TransformSpec, ctx: GridContext) -> None:
        blocked = [dep for dep in spec.dependencies if dep in ctx.errors]
        if blocked:
            ctx.errors[spec.id] = f"skipped: dependency {blocked[0]} failed"
            logger.debug("  %s skipped (%s failed)", spec.id, blocked[0])
            return

        t0 = time.perf_counter()
        try:
            spec.fn(ctx)
            ctx.completed_transforms.add(spec.id)
            elapsed = (time.perf_counter() - t0) * 1000
            logger.debug("  %s completed in %.1fms", spec.id, elapsed)
        except Exception as e:
            ctx.errors[spec.id] = str(e)
            logger.warning("  %s FAILED: %s", spec.id, e)

    def _log_summary(self, ctx: GridContext, ordered: list[TransformSpec], start: float) -> None:
        total = (time.perf_counter() - start) * 1000
        rows, cols = ctx.shape
        logger.info(
            "Pipeline complete: %d/%d stages, %d×%d grid in %.0fms",
            len(ctx.completed_transforms),
            len(ordered),
            rows,
            cols,
            total,
        )

    def _adaptive_gate(self, ctx: GridContext) -> set[str]:
        """Determine which stages to skip based on the layer options.

        - ``method="point"`` skips the raster stages, ``"raster"`` skips the point stage
        - outlines only run when ``show_geojson`` is set
        """
        skip: set[str] = set()

        if ctx.config.method == "point":
            skip.update(s.id for s in self.registry.with_tag("raster"))
        else:
            skip.update(s.id for s in self.registry.with_tag("point"))

        if not ctx.config.show_geojson:
            skip.update(s.id for s in self.registry.with_tag("outlines"))

        return skip


def create_pipeline() -> Pipeline:
    """Factory for a pipeline over the default registry with all stages loaded."""
    return Pipeline(registry=load_transforms())
