"""EmojiLayer — owns one dataset and produces a symbol grid per viewport.

Usage:
    layer = EmojiLayer(geojson, {"size": 18, "emoji": {"property": "class", "values": {...}}})
    grid = layer.render(Viewport.from_center((46.16, -1.35), 14, 800, 600))
    print(layer.copy_grid())

Inside an event loop, ``await layer.refresh(viewport)`` on every pan/zoom
settle; a pass overtaken by a newer refresh or ``update()`` is discarded.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import numpy as np
from numpy.typing import NDArray

from app.engine.color_keys import ColorKeyMap, allocate_color_keys
from app.engine.config import GridConfig
from app.engine.context import FeatureData, GridContext
from app.engine.grid import EmojiGrid
from app.engine.pipeline import Pipeline, create_pipeline
from app.engine.shortcodes import ShortcodeTable, default_shortcodes
from app.engine.symbols import SymbolResolver, build_resolver
from app.engine.viewport import Viewport
from app.utils.geometry import load_features

logger = logging.getLogger(__name__)


class EmojiLayer:
    """Grid engine for one dataset and one set of options."""

    def __init__(
        self,
        geojson: Any,
        options: Mapping[str, Any] | GridConfig | None = None,
        *,
        shortcodes: ShortcodeTable | None = None,
        pipeline: Pipeline | None = None,
        key_capacity: int | None = None,
    ) -> None:
        self.config = options if isinstance(options, GridConfig) else GridConfig.from_options(options)
        self.shortcodes = shortcodes or default_shortcodes()
        self.resolver: SymbolResolver = build_resolver(
            self.config.emoji, self.config.empty_emoji, self.shortcodes
        )
        self.pipeline = pipeline or create_pipeline()
        self._key_capacity = key_capacity

        self._features: list[FeatureData] = []
        self._color_keys: ColorKeyMap[FeatureData] | None = None
        self._generation = 0
        self._grid: EmojiGrid | None = None
        self._context: GridContext | None = None
        self._viewport: Viewport | None = None
        self._errors: dict[str, str] = {}

        self.update(geojson)

    # ── Dataset ──

    @property
    def features(self) -> list[FeatureData]:
        return self._features

    @property
    def color_keys(self) -> ColorKeyMap[FeatureData] | None:
        return self._color_keys

    def update(self, geojson: Any) -> None:
        """Replace the dataset and its color keys, then redraw the last viewport.

        Passes still in flight are discarded.

        Raises:
            GridConfigError: the data is not GeoJSON.
            ColorSpaceExhaustedError: too many features for the color key stride.
        """
        features = load_features(geojson, simplify=self.config.simplify)
        color_keys = allocate_color_keys(
            features, stride=self.config.color_key_stride, capacity=self._key_capacity
        )
        self._features = features
        self._color_keys = color_keys
        self._generation += 1
        logger.info("Emoji layer dataset updated: %d features", len(features))

        if self._viewport is not None:
            self.render(self._viewport)

    # ── Sample passes ──

    def new_context(self, viewport: Viewport) -> GridContext:
        return GridContext(
            viewport=viewport,
            config=self.config,
            features=self._features,
            color_keys=self._color_keys,
            resolver=self.resolver,
        )

    def render(self, viewport: Viewport) -> EmojiGrid | None:
        """Run one synchronous pass. Returns None when the pass failed."""
        self._viewport = viewport
        self._generation += 1
        generation = self._generation
        ctx = self.pipeline.run(self.new_context(viewport))
        return self._publish(ctx, generation)

    async def refresh(self, viewport: Viewport) -> EmojiGrid | None:
        """Run one pass cooperatively: rasterize, let the loop drain, then sample.

        Returns None when the pass failed or a newer refresh/update superseded it.
        """
        self._viewport = viewport
        self._generation += 1
        generation = self._generation
        ctx = await self.pipeline.run_async(self.new_context(viewport))
        return self._publish(ctx, generation)

    def _publish(self, ctx: GridContext, generation: int) -> EmojiGrid | None:
        if generation != self._generation:
            logger.debug("Discarding stale pass %d (current %d)", generation, self._generation)
            return None

        self._errors = dict(ctx.errors)
        if "T3.01" not in ctx.completed_transforms:
            logger.warning("Sample pass failed, keeping previous grid: %s", ctx.errors)
            return None

        self._grid = EmojiGrid.from_rows(ctx.grid, ctx.cell_size)
        self._context = ctx
        return self._grid

    # ── Output ──

    @property
    def last_context(self) -> GridContext | None:
        return self._context

    @property
    def last_errors(self) -> dict[str, str]:
        """Stage errors of the most recent current pass."""
        return self._errors

    @property
    def raster(self) -> NDArray[np.uint8] | None:
        return self._context.raster if self._context is not None else None

    def get_grid(self) -> EmojiGrid | None:
        return self._grid

    def copy_grid(self) -> str:
        """Grid as copy-pastable text: rows on separate lines, no column separator."""
        return self._grid.text if self._grid is not None else ""

    def on_remove(self) -> None:
        """Drop the displayed grid and the raster; the dataset stays with the caller."""
        self._generation += 1
        self._grid = None
        self._context = None
        self._viewport = None
