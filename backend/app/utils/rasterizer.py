"""Rasterization utilities — color-keyed feature fill, nearest downscale, cell voting, grid to text."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray
from PIL import Image
from shapely.geometry import Polygon
from skimage.draw import polygon as draw_polygon

from app.engine.color_keys import BACKGROUND_KEY, ColorKeyMap, key_to_rgb, pack_rgb
from app.engine.context import FeatureData
from app.engine.viewport import Viewport
from app.utils.geometry import polygon_parts, project_geometry

logger = logging.getLogger(__name__)

# ── Named constants ──

# Background cell marker in index rasters and cell grids.
EMPTY_INDEX = -1

# skimage.draw.polygon tests integer pixel coordinates; shifting by half a
# pixel tests pixel centres, so pixel i covers [i, i + 1).
_PIXEL_CENTER = 0.5

# Samples voted per chunk; a chunk holds whole cells, at least one.
_VOTE_CHUNK_SAMPLES = 1 << 20


def new_raster(width: int, height: int) -> NDArray[np.uint8]:
    """Blank RGB surface filled with the background key."""
    raster = np.zeros((height, width, 3), dtype=np.uint8)
    if BACKGROUND_KEY:
        raster[...] = key_to_rgb(BACKGROUND_KEY)
    return raster


def fill_polygon(raster: NDArray[np.uint8], polygon: Polygon, rgb: tuple[int, int, int]) -> int:
    """Flat-fill a pixel-space polygon (holes cut out) into ``raster``.

    No antialiasing: a pixel takes the fill color when its centre is inside
    the exterior ring and outside every interior ring.

    Returns:
        Number of pixels written.
    """
    height, width = raster.shape[:2]
    minx, miny, maxx, maxy = polygon.bounds

    x0 = max(int(np.floor(minx)), 0)
    y0 = max(int(np.floor(miny)), 0)
    x1 = min(int(np.ceil(maxx)) + 1, width)
    y1 = min(int(np.ceil(maxy)) + 1, height)
    if x0 >= x1 or y0 >= y1:
        return 0

    mask = np.zeros((y1 - y0, x1 - x0), dtype=bool)

    ext = np.asarray(polygon.exterior.coords)
    if len(ext) < 3:
        return 0
    rr, cc = draw_polygon(ext[:, 1] - y0 - _PIXEL_CENTER, ext[:, 0] - x0 - _PIXEL_CENTER, shape=mask.shape)
    mask[rr, cc] = True

    for interior in polygon.interiors:
        hole = np.asarray(interior.coords)
        if len(hole) < 3:
            continue
        rr, cc = draw_polygon(hole[:, 1] - y0 - _PIXEL_CENTER, hole[:, 0] - x0 - _PIXEL_CENTER, shape=mask.shape)
        mask[rr, cc] = False

    raster[y0:y1, x0:x1][mask] = rgb
    return int(mask.sum())


def rasterize_features(
    features: Sequence[FeatureData],
    color_keys: ColorKeyMap[FeatureData],
    viewport: Viewport,
    width: int,
    height: int,
) -> NDArray[np.uint8]:
    """Draw every feature flat-filled with its color key.

    Features are painted in dataset order; later ones cover earlier ones.
    Geometry is projected to device pixels (viewport pixels × pixel ratio).
    Only polygonal parts have area; points and lines leave no pixels.
    """
    raster = new_raster(width, height)
    drawn = 0

    for feature in features:
        projected = project_geometry(feature.geometry, viewport, scale=viewport.pixel_ratio)
        minx, miny, maxx, maxy = projected.bounds
        if maxx < 0 or maxy < 0 or minx > width or miny > height:
            continue

        rgb = color_keys.rgb_for(feature.index)
        pixels = 0
        for part in polygon_parts(projected):
            pixels += fill_polygon(raster, part, rgb)
        if pixels:
            drawn += 1

    logger.debug("Rasterized %d/%d features onto %d×%d", drawn, len(features), width, height)
    return raster


def downsample(raster: NDArray[np.uint8], width: int, height: int) -> NDArray[np.int64]:
    """One nearest-neighbour resize of the raster, returned as packed color keys.

    Nearest keeps every sample an exact key; any smoothing filter would blend
    neighbouring keys into colors that belong to no feature.
    """
    image = Image.fromarray(raster)
    small = image.resize((width, height), resample=Image.Resampling.NEAREST)
    return pack_rgb(np.asarray(small))


def cell_blocks(samples: NDArray[np.int64], per_side: int) -> NDArray[np.int64]:
    """Regroup a ``(rows*n, cols*n)`` sample array into ``(rows, cols, n*n)``.

    Samples inside a cell stay in row-major order.
    """
    total_rows, total_cols = samples.shape
    rows, cols = total_rows // per_side, total_cols // per_side
    blocks = samples[: rows * per_side, : cols * per_side].reshape(rows, per_side, cols, per_side)
    return blocks.transpose(0, 2, 1, 3).reshape(rows, cols, per_side * per_side)


def majority_vote(blocks: NDArray[np.int64], tolerance: float) -> NDArray[np.int64]:
    """Pick one feature index per cell from its samples.

    Args:
        blocks: ``(rows, cols, samples)`` feature indices, ``EMPTY_INDEX`` for background.
        tolerance: fraction of background samples at which the cell is empty.

    Rules, per cell:
        - background never wins unless it is the only value present;
        - among the most frequent feature indices, the first one to reach
          that count while scanning samples row-major wins;
        - ``background_count >= samples * tolerance`` forces the cell empty.

    Returns:
        ``(rows, cols)`` array of feature indices, ``EMPTY_INDEX`` for empty cells.
    """
    rows, cols, n_samples = blocks.shape
    flat = blocks.reshape(rows * cols, n_samples)
    result = np.full(rows * cols, EMPTY_INDEX, dtype=np.int64)
    if n_samples == 0:
        return result.reshape(rows, cols)

    threshold = n_samples * tolerance
    chunk_cells = max(1, _VOTE_CHUNK_SAMPLES // n_samples)

    for start in range(0, flat.shape[0], chunk_cells):
        chunk = flat[start : start + chunk_cells]
        n_cells = chunk.shape[0]

        # Stable sort groups equal values into runs; within a run positions
        # stay ascending, so the run's last entry is the value's last occurrence.
        order = np.argsort(chunk, axis=1, kind="stable")
        values = np.take_along_axis(chunk, order, axis=1)

        run_start = np.ones_like(values, dtype=bool)
        run_start[:, 1:] = values[:, 1:] != values[:, :-1]
        run_end = np.ones_like(values, dtype=bool)
        run_end[:, :-1] = run_start[:, 1:]

        run_id = np.cumsum(run_start.ravel()) - 1
        run_length = np.bincount(run_id)[run_id].reshape(n_cells, n_samples)

        counts = np.where(run_end & (values != EMPTY_INDEX), run_length, 0)
        best = counts.max(axis=1)

        # A value reaches its final count at its last occurrence.
        contender = (counts == best[:, None]) & (counts > 0)
        reach = np.where(contender, order, n_samples)
        winner = values[np.arange(n_cells), reach.argmin(axis=1)]

        background = (chunk == EMPTY_INDEX).sum(axis=1)
        empty = (best == 0) | (background >= threshold)
        result[start : start + n_cells] = np.where(empty, EMPTY_INDEX, winner)

    return result.reshape(rows, cols)


def symbols_to_text(grid: Sequence[Sequence[str]]) -> str:
    """Rows joined by line breaks, cells with no separator."""
    return "\n".join("".join(row) for row in grid)
