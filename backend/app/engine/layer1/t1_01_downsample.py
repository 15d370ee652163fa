"""T1.01 — Nearest downsample.

One nearest-neighbour resize of the raster to ``samples_per_cell`` samples
per cell edge, trading precision for speed versus reading every raw pixel.
"""

from __future__ import annotations

from app.engine.context import GridContext
from app.engine.errors import RasterUnavailableError
from app.engine.registry import Layer, transform
from app.utils.rasterizer import downsample


@transform(
    id="T1.01",
    layer=Layer.SAMPLING,
    dependencies=["T0.01"],
    tags={"raster"},
    description="Downscale the raster to per-cell samples",
)
def nearest_downsample(ctx: GridContext) -> None:
    if ctx.raster is None:
        raise RasterUnavailableError("raster surface not drawn yet")

    rows, cols = ctx.shape
    n = ctx.samples_per_cell
    ctx.samples = downsample(ctx.raster, cols * n, rows * n)
