"""Grid configuration — per-layer options controlling sampling and display."""

from __future__ import annotations

import dataclasses
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from app.engine.color_keys import DEFAULT_STRIDE
from app.engine.errors import GridConfigError
from app.engine.symbols import DEFAULT_EMOJI, EMPTY

METHODS = ("raster", "point")

# camelCase names accepted for compatibility with Leaflet.Emoji option objects.
_ALIASES = {
    "emptyEmoji": "empty_emoji",
    "emptyValue": "empty_emoji",
    "showGeoJSON": "show_geojson",
    "colorKeyStride": "color_key_stride",
}


@dataclass
class GridConfig:
    """Options of one emoji layer."""

    # Cell edge length in CSS pixels
    size: int = 18
    # Symbol configuration: constant, callable or lookup mapping
    emoji: Any = DEFAULT_EMOJI
    # Symbol for cells with no feature
    empty_emoji: str = EMPTY
    # Raw pixels per sample along each axis
    resolution: int = 4
    # Fraction of background samples at which a cell is forced empty
    tolerance: float = 0.5
    # Also emit pixel-space feature outlines with the grid
    show_geojson: bool = True
    # "raster" (color-key rasterization) or "point" (cell-centre point-in-polygon)
    method: str = "raster"
    # Optional shapely simplification tolerance in degrees, applied on load
    simplify: float | None = None
    # Color key spacing between consecutive features
    color_key_stride: int = DEFAULT_STRIDE

    def __post_init__(self) -> None:
        if isinstance(self.size, bool) or not isinstance(self.size, (int, float)):
            raise GridConfigError(f"size must be a number, got {self.size!r}")
        if not math.isfinite(self.size) or round(self.size) < 1:
            raise GridConfigError(f"size must round to at least one pixel, got {self.size!r}")
        self.size = int(round(self.size))
        if isinstance(self.resolution, bool) or not isinstance(self.resolution, int) or self.resolution <= 0:
            raise GridConfigError(f"resolution must be a positive integer, got {self.resolution!r}")
        if isinstance(self.tolerance, bool) or not isinstance(self.tolerance, (int, float)):
            raise GridConfigError(f"tolerance must be a number, got {self.tolerance!r}")
        if not 0.0 <= self.tolerance <= 1.0:
            raise GridConfigError(f"tolerance must be within [0, 1], got {self.tolerance!r}")
        if self.method not in METHODS:
            raise GridConfigError(f"method must be one of {METHODS}, got {self.method!r}")
        if self.simplify is not None and self.simplify < 0:
            raise GridConfigError(f"simplify must be >= 0, got {self.simplify!r}")
        if self.color_key_stride <= 0:
            raise GridConfigError(f"color_key_stride must be positive, got {self.color_key_stride!r}")

    def samples_per_cell(self, pixel_ratio: float = 1.0) -> int:
        """Samples along one cell edge: the edge in whole ``resolution`` units, at least one."""
        return max(1, round(self.size * pixel_ratio / self.resolution))

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None = None, **defaults: Any) -> GridConfig:
        """Build from a Leaflet-style options mapping; unknown keys are an error."""
        fields = {f.name for f in dataclasses.fields(cls)}
        merged = dict(defaults)
        for key, value in (options or {}).items():
            name = _ALIASES.get(key, key)
            if name not in fields:
                raise GridConfigError(f"unknown option {key!r}")
            merged[name] = value
        return cls(**merged)
