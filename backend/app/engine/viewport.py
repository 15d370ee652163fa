"""Viewport — pixel rectangle plus the projection between pixels and lng/lat.

Pixel coordinates are CSS pixels relative to the viewport's top-left corner,
x to the right, y down. The device pixel ratio only scales the raster.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

import numpy as np
from numpy.typing import NDArray

from app.engine.errors import GridConfigError

# Leaflet's EPSG:3857 latitude clamp and tile size.
_MAX_MERCATOR_LAT = 85.0511287798
_TILE_SIZE = 256


class Projection(Protocol):
    def project(self, coords: NDArray[np.float64]) -> NDArray[np.float64]:
        """Nx2 (lng, lat) → Nx2 (x, y) viewport pixels."""
        ...

    def unproject(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        """Nx2 (x, y) viewport pixels → Nx2 (lng, lat)."""
        ...


@dataclass(frozen=True)
class LinearProjection:
    """Equirectangular mapping of ``(west, south, east, north)`` onto the viewport."""

    west: float
    south: float
    east: float
    north: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.east <= self.west or self.north <= self.south:
            raise GridConfigError(f"degenerate bounds {self.bounds}")

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        return (self.west, self.south, self.east, self.north)

    def project(self, coords: NDArray[np.float64]) -> NDArray[np.float64]:
        coords = np.asarray(coords, dtype=np.float64)
        out = np.empty_like(coords)
        out[:, 0] = (coords[:, 0] - self.west) / (self.east - self.west) * self.width
        out[:, 1] = (self.north - coords[:, 1]) / (self.north - self.south) * self.height
        return out

    def unproject(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        points = np.asarray(points, dtype=np.float64)
        out = np.empty_like(points)
        out[:, 0] = self.west + points[:, 0] / self.width * (self.east - self.west)
        out[:, 1] = self.north - points[:, 1] / self.height * (self.north - self.south)
        return out


@dataclass(frozen=True)
class WebMercatorProjection:
    """Spherical Mercator at a Leaflet zoom level, centred on ``(lat, lng)``."""

    lat: float
    lng: float
    zoom: float
    width: float
    height: float

    @property
    def scale(self) -> float:
        return _TILE_SIZE * 2.0**self.zoom

    def _world(self, lng: NDArray[np.float64], lat: NDArray[np.float64]) -> tuple[NDArray, NDArray]:
        lat = np.clip(lat, -_MAX_MERCATOR_LAT, _MAX_MERCATOR_LAT)
        x = self.scale * (lng + 180.0) / 360.0
        sin = np.sin(np.radians(lat))
        y = self.scale * (0.5 - np.log((1 + sin) / (1 - sin)) / (4 * math.pi))
        return x, y

    def _origin(self) -> tuple[float, float]:
        cx, cy = self._world(np.array([self.lng]), np.array([self.lat]))
        return float(cx[0]) - self.width / 2, float(cy[0]) - self.height / 2

    def project(self, coords: NDArray[np.float64]) -> NDArray[np.float64]:
        coords = np.asarray(coords, dtype=np.float64)
        x, y = self._world(coords[:, 0], coords[:, 1])
        ox, oy = self._origin()
        return np.column_stack([x - ox, y - oy])

    def unproject(self, points: NDArray[np.float64]) -> NDArray[np.float64]:
        points = np.asarray(points, dtype=np.float64)
        ox, oy = self._origin()
        x = points[:, 0] + ox
        y = points[:, 1] + oy
        lng = x / self.scale * 360.0 - 180.0
        lat = np.degrees(2 * np.arctan(np.exp(math.pi * (1 - 2 * y / self.scale))) - math.pi / 2)
        return np.column_stack([lng, lat])


@dataclass(frozen=True)
class Viewport:
    """Current map view: size in CSS pixels, pixel ratio, projection."""

    width: float
    height: float
    projection: Projection
    pixel_ratio: float = 1.0

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise GridConfigError(f"viewport must have a positive size, got {self.width}×{self.height}")
        if self.pixel_ratio <= 0:
            raise GridConfigError(f"pixel_ratio must be positive, got {self.pixel_ratio}")

    @classmethod
    def from_bounds(
        cls,
        bounds: tuple[float, float, float, float],
        width: float,
        height: float,
        pixel_ratio: float = 1.0,
    ) -> Viewport:
        west, south, east, north = bounds
        return cls(
            width=width,
            height=height,
            projection=LinearProjection(west, south, east, north, width, height),
            pixel_ratio=pixel_ratio,
        )

    @classmethod
    def from_center(
        cls,
        center: tuple[float, float],
        zoom: float,
        width: float,
        height: float,
        pixel_ratio: float = 1.0,
    ) -> Viewport:
        lat, lng = center
        return cls(
            width=width,
            height=height,
            projection=WebMercatorProjection(lat, lng, zoom, width, height),
            pixel_ratio=pixel_ratio,
        )

    def grid_shape(self, size: int) -> tuple[int, int]:
        """``(rows, cols)`` of a grid of ``size``-pixel cells covering the viewport."""
        return math.ceil(self.height / size), math.ceil(self.width / size)

    def geo_bounds(self, size: int) -> tuple[float, float, float, float]:
        """``(west, south, east, north)`` of the padded grid area."""
        rows, cols = self.grid_shape(size)
        corners = np.array([[0.0, 0.0], [cols * size, 0.0], [0.0, rows * size], [cols * size, rows * size]])
        lnglat = self.projection.unproject(corners)
        return (
            float(lnglat[:, 0].min()),
            float(lnglat[:, 1].min()),
            float(lnglat[:, 0].max()),
            float(lnglat[:, 1].max()),
        )
