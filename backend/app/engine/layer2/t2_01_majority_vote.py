"""T2.01 — Majority vote. ★★★ PRIMARY

Per cell: histogram of sampled color keys, most frequent feature wins
(first to reach the max count on ties), and a cell whose background share
reaches ``tolerance`` is empty whatever won.
"""

from __future__ import annotations

from app.engine.context import GridContext
from app.engine.errors import RasterUnavailableError
from app.engine.registry import Layer, transform
from app.utils.rasterizer import cell_blocks, majority_vote


@transform(
    id="T2.01",
    layer=Layer.CLASSIFICATION,
    dependencies=["T1.01"],
    tags={"raster"},
    description="Classify cells by majority vote over sampled color keys",
)
def majority_vote_cells(ctx: GridContext) -> None:
    if ctx.samples is None or ctx.color_keys is None:
        raise RasterUnavailableError("no samples to classify")

    indices = ctx.color_keys.index_raster(ctx.samples)
    blocks = cell_blocks(indices, ctx.samples_per_cell)
    ctx.cell_features = majority_vote(blocks, ctx.config.tolerance)
