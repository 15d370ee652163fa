"""Color key allocation — one unique synthetic fill color per feature.

Keys are packed 24-bit RGB integers (``r << 16 | g << 8 | b``). Feature ``i``
gets ``(i + 1) * stride``, so key ``0`` (black) stays reserved for the
background and the reverse lookup is plain arithmetic instead of a dict.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

import numpy as np
from numpy.typing import NDArray

from app.engine.errors import ColorSpaceExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

BACKGROUND_KEY = 0

# 8 bits per channel, 3 channels.
_KEY_SPACE = (1 << 24) - 1

# +10 per feature keeps neighbouring keys apart on the low channel.
DEFAULT_STRIDE = 10


def key_to_rgb(key: int) -> tuple[int, int, int]:
    """Unpack a 24-bit key into an ``(r, g, b)`` triple."""
    return ((key >> 16) & 0xFF, (key >> 8) & 0xFF, key & 0xFF)


def rgb_to_key(r: int, g: int, b: int) -> int:
    return (int(r) << 16) | (int(g) << 8) | int(b)


def pack_rgb(pixels: NDArray[np.uint8]) -> NDArray[np.int64]:
    """Pack an ``(..., 3)`` uint8 array into integer keys."""
    px = pixels.astype(np.int64)
    return (px[..., 0] << 16) | (px[..., 1] << 8) | px[..., 2]


def key_capacity(stride: int = DEFAULT_STRIDE) -> int:
    """Number of features that fit in the key space at ``stride``."""
    if stride <= 0:
        raise ValueError(f"stride must be positive, got {stride}")
    return _KEY_SPACE // stride


@dataclass(frozen=True)
class ColorKeyMap(Generic[T]):
    """Bijection between features and their color keys for one dataset."""

    features: tuple[T, ...]
    stride: int = DEFAULT_STRIDE

    def __len__(self) -> int:
        return len(self.features)

    def key_for(self, index: int) -> int:
        if not 0 <= index < len(self.features):
            raise IndexError(f"feature index {index} out of range")
        return (index + 1) * self.stride

    def rgb_for(self, index: int) -> tuple[int, int, int]:
        return key_to_rgb(self.key_for(index))

    @property
    def keys(self) -> list[int]:
        return [(i + 1) * self.stride for i in range(len(self.features))]

    def index_for(self, key: int) -> int:
        """Feature index for ``key``, or -1 for background / unknown keys."""
        if key == BACKGROUND_KEY or key % self.stride:
            return -1
        index = key // self.stride - 1
        if index >= len(self.features):
            return -1
        return index

    def feature_for(self, key: int) -> T | None:
        index = self.index_for(key)
        return None if index < 0 else self.features[index]

    def index_raster(self, keys: NDArray[np.int64]) -> NDArray[np.int64]:
        """Vectorised :meth:`index_for` over an array of packed keys."""
        keys = np.asarray(keys, dtype=np.int64)
        index = keys // self.stride - 1
        valid = (keys != BACKGROUND_KEY) & (keys % self.stride == 0) & (index < len(self.features))
        return np.where(valid, index, -1)


def allocate_color_keys(
    features: Sequence[T],
    stride: int = DEFAULT_STRIDE,
    capacity: int | None = None,
) -> ColorKeyMap[T]:
    """Assign every feature a distinct non-background key.

    Raises:
        ColorSpaceExhaustedError: more features than ``capacity`` (by default
            the whole 24-bit space divided by ``stride``).
    """
    limit = key_capacity(stride)
    if capacity is not None:
        limit = min(limit, capacity)

    if len(features) > limit:
        raise ColorSpaceExhaustedError(
            f"{len(features)} features exceed the color key capacity of {limit} at stride {stride}"
        )

    logger.debug("Allocated %d color keys (stride %d, capacity %d)", len(features), stride, limit)
    return ColorKeyMap(features=tuple(features), stride=stride)
