"""GridContext — the mutable state of one sample pass, flowing through all stages.

Per-feature data → FeatureData
Per-pass results → GridContext.* (raster, samples, cell_features, grid)

Each pass owns its context, so a pass never reads a raster drawn by another.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray
from shapely.geometry.base import BaseGeometry

from app.engine.color_keys import ColorKeyMap
from app.engine.config import GridConfig
from app.engine.symbols import SymbolResolver
from app.engine.viewport import Viewport


@dataclass
class FeatureData:
    """One input feature, ready for rasterization."""

    index: int
    # The caller's GeoJSON feature, handed untouched to symbol callbacks
    source: Mapping[str, Any]
    geometry: BaseGeometry
    # Geographic envelope: (west, south, east, north)
    bbox: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)

    @property
    def properties(self) -> Mapping[str, Any]:
        return self.source.get("properties") or {}

    @property
    def id(self) -> Any:
        return self.source.get("id", self.index)

    def intersects_bbox(self, bounds: tuple[float, float, float, float]) -> bool:
        west, south, east, north = bounds
        return not (
            self.bbox[2] < west or self.bbox[0] > east or self.bbox[3] < south or self.bbox[1] > north
        )


@dataclass
class GridContext:
    """Shared state for one rasterize-then-sample pass."""

    viewport: Viewport
    config: GridConfig
    features: list[FeatureData] = field(default_factory=list)
    color_keys: ColorKeyMap[FeatureData] | None = None
    resolver: SymbolResolver | None = None

    # --- Layer 0: raster surface (height, width, 3) uint8, black background ---
    raster: NDArray[np.uint8] | None = None

    # --- Layer 1: nearest-neighbour samples as packed color keys ---
    samples: NDArray[np.int64] | None = None

    # --- Layer 2: feature index per cell, -1 = empty ---
    cell_features: NDArray[np.int64] | None = None

    # --- Layer 3: symbols ---
    grid: list[list[str]] = field(default_factory=list)
    outlines: list[list[tuple[float, float]]] = field(default_factory=list)

    # --- Pass metadata ---
    completed_transforms: set[str] = field(default_factory=set)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def cell_size(self) -> int:
        return self.config.size

    @property
    def shape(self) -> tuple[int, int]:
        """``(rows, cols)`` of the output grid."""
        return self.viewport.grid_shape(self.config.size)

    @property
    def samples_per_cell(self) -> int:
        return self.config.samples_per_cell(self.viewport.pixel_ratio)

    @property
    def raster_size(self) -> tuple[int, int]:
        """``(width, height)`` of the padded raster in device pixels."""
        rows, cols = self.shape
        ratio = self.viewport.pixel_ratio
        return int(round(cols * self.cell_size * ratio)), int(round(rows * self.cell_size * ratio))

    @property
    def num_features(self) -> int:
        return len(self.features)

    def feature(self, index: int) -> FeatureData | None:
        if 0 <= index < len(self.features):
            return self.features[index]
        return None
