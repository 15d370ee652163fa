"""Shared test fixtures."""

from __future__ import annotations

import pytest

from app.engine.viewport import Viewport


def square(west: float, south: float, east: float, north: float) -> list[list[list[float]]]:
    return [[[west, south], [east, south], [east, north], [west, north], [west, south]]]


def polygon_feature(coordinates, **properties) -> dict:
    return {
        "type": "Feature",
        "properties": properties,
        "geometry": {"type": "Polygon", "coordinates": coordinates},
    }


def collection(*features: dict) -> dict:
    return {"type": "FeatureCollection", "features": list(features)}


# Whole world split into a west (A) and an east (B) half
HALVES_GEOJSON = collection(
    polygon_feature(square(-180, -90, 0, 90), name="A"),
    polygon_feature(square(0, -90, 180, 90), name="B"),
)

HALVES_EMOJI = {"property": "name", "values": {"A": "A", "B": "B"}}

# One water body covering exactly the top-left cell of a 36×36 px view of (0,0)-(36,36)
WATER_GEOJSON = collection(polygon_feature(square(0, 18, 18, 36), **{"class": "water"}))

EMPTY_GEOJSON = collection()

# 90×90 px square with a 30×30 px hole in the middle, on a (0,0)-(90,90) view
DONUT_GEOJSON = collection(
    polygon_feature(
        square(0, 0, 90, 90) + [[[30, 30], [30, 60], [60, 60], [60, 30], [30, 30]]],
        kind="donut",
    )
)


@pytest.fixture
def world_viewport() -> Viewport:
    return Viewport.from_bounds((-180, -90, 180, 90), 360, 180)


@pytest.fixture
def square_viewport() -> Viewport:
    return Viewport.from_bounds((0, 0, 36, 36), 36, 36)
