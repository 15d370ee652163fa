"""T2.02 — Point in polygon (point method).

Fallback classifier: each cell takes the topmost feature whose geometry
contains the cell centre, later features sitting on top as in the raster.
Envelopes prefilter the features to those overlapping the viewport. Cost
grows with cells × features, unlike the raster path.
"""

from __future__ import annotations

import logging

import numpy as np
import shapely

from app.engine.context import GridContext
from app.engine.registry import Layer, transform
from app.utils.rasterizer import EMPTY_INDEX

logger = logging.getLogger(__name__)


@transform(
    id="T2.02",
    layer=Layer.CLASSIFICATION,
    tags={"point"},
    description="Classify cells by point-in-polygon on cell centres",
)
def point_in_polygon(ctx: GridContext) -> None:
    rows, cols = ctx.shape
    size = ctx.cell_size

    xs, ys = np.meshgrid(np.arange(cols) * size + size / 2, np.arange(rows) * size + size / 2)
    centers = ctx.viewport.projection.unproject(np.column_stack([xs.ravel(), ys.ravel()]))
    lng, lat = centers[:, 0], centers[:, 1]

    result = np.full(rows * cols, EMPTY_INDEX, dtype=np.int64)
    bounds = ctx.viewport.geo_bounds(size)
    candidates = [f for f in ctx.features if f.intersects_bbox(bounds)]

    for feature in reversed(candidates):
        open_cells = result == EMPTY_INDEX
        if not open_cells.any():
            break
        west, south, east, north = feature.bbox
        in_env = open_cells & (lng >= west) & (lng <= east) & (lat >= south) & (lat <= north)
        if not in_env.any():
            continue
        idx = np.flatnonzero(in_env)
        hit = shapely.intersects_xy(feature.geometry, lng[idx], lat[idx])
        result[idx[hit]] = feature.index

    logger.debug("Point classifier: %d/%d features in viewport", len(candidates), len(ctx.features))
    ctx.cell_features = result.reshape(rows, cols)
