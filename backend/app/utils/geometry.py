"""Leaf-node geometry helpers: GeoJSON loading and pixel projection. No pipeline imports."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

import numpy as np
import shapely
from numpy.typing import NDArray
from shapely.errors import ShapelyError
from shapely.geometry import GeometryCollection, MultiPolygon, Polygon, shape
from shapely.geometry.base import BaseGeometry

from app.engine.context import FeatureData
from app.engine.errors import GridConfigError
from app.engine.viewport import Viewport

logger = logging.getLogger(__name__)


def iter_geojson_features(geojson: Any) -> list[Mapping[str, Any]]:
    """Normalise a FeatureCollection, a list of Features or one Feature to a list."""
    if isinstance(geojson, Mapping):
        kind = geojson.get("type")
        if kind == "FeatureCollection" or "features" in geojson:
            features = geojson.get("features")
            if not isinstance(features, Sequence) or isinstance(features, str):
                raise GridConfigError("FeatureCollection 'features' must be a list")
            return list(features)
        if kind == "Feature":
            return [geojson]
        raise GridConfigError(f"expected a GeoJSON Feature or FeatureCollection, got type {kind!r}")
    if isinstance(geojson, Sequence) and not isinstance(geojson, (str, bytes)):
        return list(geojson)
    raise GridConfigError(f"expected GeoJSON data, got {type(geojson).__name__}")


def load_features(geojson: Any, simplify: float | None = None) -> list[FeatureData]:
    """Build FeatureData for every feature that has a usable geometry.

    Features without geometry are skipped; geometries shapely cannot build
    are logged and skipped. Indices are dense over the kept features.
    """
    features: list[FeatureData] = []
    skipped = 0

    for raw in iter_geojson_features(geojson):
        if not isinstance(raw, Mapping) or not raw.get("geometry"):
            skipped += 1
            continue
        try:
            geom = shape(raw["geometry"])
        except (ShapelyError, ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning("Skipping feature with invalid geometry: %s", e)
            skipped += 1
            continue
        if geom.is_empty:
            skipped += 1
            continue
        if simplify:
            geom = geom.simplify(simplify, preserve_topology=False)
            if geom.is_empty:
                skipped += 1
                continue

        features.append(
            FeatureData(
                index=len(features),
                source=raw,
                geometry=geom,
                bbox=tuple(float(v) for v in geom.bounds),
            )
        )

    logger.info("Loaded %d features (%d skipped)", len(features), skipped)
    return features


def project_geometry(geom: BaseGeometry, viewport: Viewport, scale: float = 1.0) -> BaseGeometry:
    """Project lng/lat geometry into viewport pixels, times ``scale``."""

    def _to_pixels(coords: NDArray[np.float64]) -> NDArray[np.float64]:
        return viewport.projection.project(coords) * scale

    return shapely.transform(geom, _to_pixels)


def polygon_parts(geom: BaseGeometry) -> Iterator[Polygon]:
    """Yield every Polygon inside a (Multi)Polygon or GeometryCollection."""
    if isinstance(geom, Polygon):
        if not geom.is_empty:
            yield geom
    elif isinstance(geom, (MultiPolygon, GeometryCollection)):
        for part in geom.geoms:
            yield from polygon_parts(part)


def outline_rings(geom: BaseGeometry) -> list[list[tuple[float, float]]]:
    """Exterior and interior rings of every polygon part, as coordinate lists."""
    rings: list[list[tuple[float, float]]] = []
    for poly in polygon_parts(geom):
        rings.append([(float(x), float(y)) for x, y in poly.exterior.coords])
        for interior in poly.interiors:
            rings.append([(float(x), float(y)) for x, y in interior.coords])
    return rings
