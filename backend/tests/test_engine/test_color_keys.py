"""Tests for color key allocation and decoding."""

import numpy as np
import pytest

from app.engine.color_keys import (
    BACKGROUND_KEY,
    allocate_color_keys,
    key_capacity,
    key_to_rgb,
    pack_rgb,
    rgb_to_key,
)
from app.engine.errors import ColorSpaceExhaustedError


def test_keys_are_distinct_and_never_background():
    keys = allocate_color_keys(list(range(1000)))
    assert len(set(keys.keys)) == 1000
    assert BACKGROUND_KEY not in keys.keys


def test_key_roundtrip_to_feature():
    features = [f"f{i}" for i in range(500)]
    keys = allocate_color_keys(features)
    for i, feature in enumerate(features):
        r, g, b = keys.rgb_for(i)
        assert keys.feature_for(rgb_to_key(r, g, b)) == feature


def test_background_and_unknown_keys_decode_to_nothing():
    keys = allocate_color_keys(["a", "b"], stride=10)
    assert keys.index_for(BACKGROUND_KEY) == -1
    assert keys.index_for(15) == -1  # between two keys
    assert keys.index_for(30) == -1  # past the last feature
    assert keys.feature_for(20) == "b"


def test_index_raster_matches_scalar_lookup():
    keys = allocate_color_keys(["a", "b", "c"])
    packed = np.array([[0, 10, 20], [30, 40, 7]], dtype=np.int64)
    expected = [[keys.index_for(int(k)) for k in row] for row in packed]
    assert keys.index_raster(packed).tolist() == expected == [[-1, 0, 1], [2, -1, -1]]


def test_pack_rgb_matches_key_to_rgb():
    key = 0x12AB7F
    pixels = np.array([[key_to_rgb(key)]], dtype=np.uint8)
    assert pack_rgb(pixels)[0, 0] == key


def test_capacity_limit_raises():
    with pytest.raises(ColorSpaceExhaustedError):
        allocate_color_keys(list(range(11)), capacity=10)
    assert len(allocate_color_keys(list(range(10)), capacity=10)) == 10


def test_stride_capacity():
    assert key_capacity(1) == (1 << 24) - 1
    assert key_capacity(1 << 23) == 1
    with pytest.raises(ColorSpaceExhaustedError):
        allocate_color_keys(["a", "b"], stride=1 << 23)
    with pytest.raises(ValueError):
        key_capacity(0)


def test_key_for_out_of_range():
    keys = allocate_color_keys(["a"])
    with pytest.raises(IndexError):
        keys.key_for(1)
