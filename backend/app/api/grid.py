"""POST /api/grid — classify a GeoJSON dataset into an emoji grid for one viewport."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from app.config import Settings
from app.dependencies import get_settings, get_shortcodes
from app.engine.config import GridConfig
from app.engine.emoji_layer import EmojiLayer
from app.engine.errors import ColorSpaceExhaustedError, GridConfigError
from app.engine.shortcodes import ShortcodeTable
from app.engine.viewport import Viewport
from app.models.requests import GridRequest
from app.models.responses import GridResponse
from app.utils.preview import render_preview

logger = logging.getLogger(__name__)

router = APIRouter()


def _build_layer(
    req: GridRequest, settings: Settings, shortcodes: ShortcodeTable
) -> tuple[EmojiLayer, Viewport]:
    """Layer + viewport for a request; configuration problems become HTTP 422."""
    try:
        config = GridConfig.from_options(
            req.options.to_layer_options(),
            size=settings.default_cell_size,
            resolution=settings.default_resolution,
            tolerance=settings.default_tolerance,
            color_key_stride=settings.color_key_stride,
        )
        layer = EmojiLayer(req.geojson, config, shortcodes=shortcodes)
        viewport = req.viewport.to_viewport()
    except (GridConfigError, ColorSpaceExhaustedError) as e:
        logger.info("Rejected grid request: %s", e)
        raise HTTPException(status_code=422, detail=str(e)) from e
    return layer, viewport


@router.post("/grid", response_model=GridResponse)
async def grid(
    req: GridRequest,
    settings: Settings = Depends(get_settings),
    shortcodes: ShortcodeTable = Depends(get_shortcodes),
) -> GridResponse:
    start = time.perf_counter()

    layer, viewport = _build_layer(req, settings, shortcodes)
    result = await layer.refresh(viewport)

    elapsed = (time.perf_counter() - start) * 1000
    ctx = layer.last_context

    if result is None or ctx is None:
        return GridResponse(
            features=len(layer.features),
            processing_time_ms=round(elapsed, 1),
            errors=layer.last_errors,
        )

    rows, cols = result.shape
    return GridResponse(
        grid=result.to_lists(),
        text=result.text,
        rows=rows,
        cols=cols,
        cell_size=result.cell_size,
        features=len(layer.features),
        outlines=ctx.outlines,
        processing_time_ms=round(elapsed, 1),
        errors=ctx.errors,
    )


@router.post("/grid/preview")
async def grid_preview(
    req: GridRequest,
    settings: Settings = Depends(get_settings),
    shortcodes: ShortcodeTable = Depends(get_shortcodes),
) -> Response:
    layer, viewport = _build_layer(req, settings, shortcodes)
    if await layer.refresh(viewport) is None or layer.last_context is None:
        raise HTTPException(status_code=500, detail=f"sample pass failed: {layer.last_errors}")
    return Response(content=render_preview(layer.last_context), media_type="image/png")
