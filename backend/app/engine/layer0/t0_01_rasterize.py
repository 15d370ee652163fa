"""T0.01 — Feature raster. ★★★ PRIMARY — ALWAYS FIRST (raster method)

Flat-fill every feature with its color key into an offscreen RGB surface the
size of the padded viewport. Background stays the reserved key.
"""

from __future__ import annotations

from app.engine.context import GridContext
from app.engine.errors import RasterUnavailableError
from app.engine.registry import Layer, transform
from app.utils.rasterizer import rasterize_features


@transform(
    id="T0.01",
    layer=Layer.RASTER,
    tags={"raster"},
    description="Rasterize features flat-filled with their color keys",
)
def rasterize(ctx: GridContext) -> None:
    if ctx.color_keys is None:
        raise RasterUnavailableError("no color keys allocated for this pass")

    width, height = ctx.raster_size
    ctx.raster = rasterize_features(ctx.features, ctx.color_keys, ctx.viewport, width, height)
