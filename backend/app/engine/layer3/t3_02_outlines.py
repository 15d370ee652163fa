"""T3.02 — Feature outlines (show_geojson).

Pixel-space rings of every feature touching the viewport, for surfaces that
draw the raw GeoJSON under the grid. Purely presentational.
"""

from __future__ import annotations

from app.engine.context import GridContext
from app.engine.registry import Layer, transform
from app.utils.geometry import outline_rings, project_geometry


@transform(
    id="T3.02",
    layer=Layer.SYMBOLS,
    tags={"outlines"},
    description="Project feature outlines to viewport pixels",
)
def feature_outlines(ctx: GridContext) -> None:
    bounds = ctx.viewport.geo_bounds(ctx.cell_size)
    outlines = []
    for feature in ctx.features:
        if not feature.intersects_bbox(bounds):
            continue
        outlines.extend(outline_rings(project_geometry(feature.geometry, ctx.viewport)))
    ctx.outlines = outlines
