"""Tests for rasterization, downsampling and the per-cell majority vote."""

from __future__ import annotations

import numpy as np
import pytest
from shapely.geometry import Polygon, box

from app.engine.color_keys import allocate_color_keys, pack_rgb
from app.engine.viewport import Viewport
from app.utils.geometry import load_features
from app.utils.rasterizer import (
    EMPTY_INDEX,
    cell_blocks,
    downsample,
    fill_polygon,
    majority_vote,
    new_raster,
    rasterize_features,
    symbols_to_text,
)
from tests.conftest import collection, polygon_feature, square

A, B = 0, 1
_ = EMPTY_INDEX


def vote(samples: list[int], tolerance: float) -> int:
    blocks = np.array(samples, dtype=np.int64).reshape(1, 1, -1)
    return int(majority_vote(blocks, tolerance)[0, 0])


def scan_vote(samples: list[int], tolerance: float) -> int:
    """Cell vote by a plain row-major scan, one sample at a time."""
    counts: dict[int, int] = {}
    best, winner = 0, EMPTY_INDEX
    for s in samples:
        if s == EMPTY_INDEX:
            continue
        counts[s] = counts.get(s, 0) + 1
        if counts[s] > best:
            best, winner = counts[s], s
    if samples.count(EMPTY_INDEX) >= len(samples) * tolerance:
        return EMPTY_INDEX
    return winner


# ── Rasterization ──


def test_fill_polygon_covers_pixel_centres():
    raster = new_raster(12, 12)
    written = fill_polygon(raster, box(0, 0, 12, 12), (0, 0, 10))
    assert written == 144
    assert (pack_rgb(raster) == 10).all()


def test_fill_polygon_cuts_holes():
    raster = new_raster(12, 12)
    donut = Polygon(
        [(0, 0), (12, 0), (12, 12), (0, 12)],
        holes=[[(4, 4), (8, 4), (8, 8), (4, 8)]],
    )
    assert fill_polygon(raster, donut, (0, 0, 10)) == 144 - 16
    keys = pack_rgb(raster)
    assert (keys[4:8, 4:8] == 0).all()
    assert keys[0, 0] == keys[11, 11] == 10


def test_fill_polygon_clips_to_raster():
    raster = new_raster(10, 10)
    assert fill_polygon(raster, box(-50, -50, 5, 5), (0, 0, 10)) == 25
    assert fill_polygon(raster, box(20, 20, 30, 30), (0, 0, 20)) == 0


def test_rasterize_later_features_paint_over_earlier():
    features = load_features(
        collection(
            polygon_feature(square(0, 0, 10, 10), name="under"),
            polygon_feature(square(0, 0, 5, 10), name="over"),
        )
    )
    keys = allocate_color_keys(features)
    viewport = Viewport.from_bounds((0, 0, 10, 10), 10, 10)
    raster = rasterize_features(features, keys, viewport, 10, 10)
    index = keys.index_raster(pack_rgb(raster))
    assert (index[:, :5] == 1).all()
    assert (index[:, 5:] == 0).all()


def test_rasterize_ignores_points_and_lines():
    features = load_features(
        collection(
            {"type": "Feature", "properties": {}, "geometry": {"type": "Point", "coordinates": [5, 5]}},
            {
                "type": "Feature",
                "properties": {},
                "geometry": {"type": "LineString", "coordinates": [[0, 0], [10, 10]]},
            },
        )
    )
    keys = allocate_color_keys(features)
    raster = rasterize_features(features, keys, Viewport.from_bounds((0, 0, 10, 10), 10, 10), 10, 10)
    assert not raster.any()


# ── Downsampling ──


def test_downsample_is_nearest_and_keeps_exact_keys():
    raster = new_raster(8, 8)
    raster[:, :4] = (0, 0, 10)
    raster[:, 4:] = (0, 0, 20)
    samples = downsample(raster, 2, 2)
    assert samples.tolist() == [[10, 20], [10, 20]]


def test_cell_blocks_row_major():
    samples = np.arange(16, dtype=np.int64).reshape(4, 4)
    blocks = cell_blocks(samples, 2)
    assert blocks.shape == (2, 2, 4)
    assert blocks[0, 0].tolist() == [0, 1, 4, 5]
    assert blocks[1, 1].tolist() == [10, 11, 14, 15]


# ── Majority vote ──


@pytest.mark.parametrize(
    "background, expected",
    [(7, A), (8, _), (9, _)],
)
def test_empty_gate_at_threshold(background, expected):
    samples = [_] * background + [A] * (16 - background)
    assert vote(samples, 0.5) == expected


def test_background_never_wins_against_features():
    assert vote([_, _, _, B], 1.0) == B


def test_all_background_is_empty():
    assert vote([_, _, _, _], 1.0) == _


def test_zero_tolerance_empties_every_cell():
    assert vote([A, A, A, A], 0.0) == _


def test_tie_goes_to_first_value_reaching_max():
    # both reach 2; B gets there at sample 2, A at sample 3
    assert vote([A, B, B, A], 1.0) == B
    assert vote([B, A, A, B], 1.0) == A
    # lowest value does not win by itself
    assert vote([B, B, A, A], 1.0) == B


def test_plurality_wins():
    assert vote([A, B, B, 2, B, A, _, _, _], 0.5) == B


def test_vote_over_many_cells():
    rng = np.random.default_rng(7)
    blocks = rng.integers(-1, 3, size=(70, 90, 9))
    result = majority_vote(blocks, 0.5)
    assert result.shape == (70, 90)
    for r, c in [(0, 0), (35, 45), (69, 89)]:
        assert result[r, c] == scan_vote(blocks[r, c].tolist(), 0.5)


def test_symbols_to_text():
    assert symbols_to_text([["a", "b"], ["c", "d"]]) == "ab\ncd"


@pytest.mark.parametrize("per_side", [32, 64])
def test_vote_large_cells_matches_scan(per_side):
    rng = np.random.default_rng(per_side)
    # few features and plenty of background so ties and the gate both occur
    blocks = rng.choice([-1, -1, 0, 1, 2, 3], size=(3, 4, per_side * per_side)).astype(np.int64)
    for tolerance in (0.3, 0.5, 1.0):
        result = majority_vote(blocks, tolerance)
        for r in range(3):
            for c in range(4):
                assert result[r, c] == scan_vote(blocks[r, c].tolist(), tolerance)


def test_vote_large_cell_tie():
    samples = [_] * 1024
    samples[10:20] = [B] * 10
    samples[500:510] = [A] * 10
    samples[600] = B  # B reaches 11 first
    samples[700] = A
    assert vote(samples, 1.0) == B == scan_vote(samples, 1.0)


def test_vote_many_cells_with_large_blocks_stays_chunked():
    # more samples than one chunk holds
    blocks = np.full((40, 40, 1024), A, dtype=np.int64)
    blocks[:, :, :512] = EMPTY_INDEX
    assert (majority_vote(blocks, 0.6) == A).all()
    assert (majority_vote(blocks, 0.5) == EMPTY_INDEX).all()
