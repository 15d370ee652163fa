"""GET /api/shortcodes/{name} — resolve an emoji shortcode."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_shortcodes
from app.engine.shortcodes import ShortcodeTable
from app.models.responses import ShortcodeResponse

router = APIRouter()


@router.get("/shortcodes/{name}", response_model=ShortcodeResponse)
async def shortcode(name: str, table: ShortcodeTable = Depends(get_shortcodes)) -> ShortcodeResponse:
    code = name if name.startswith(":") else f":{name}:"
    emoji = table.lookup(code)
    if emoji is None:
        raise HTTPException(status_code=404, detail=f"unknown shortcode {code}")
    return ShortcodeResponse(shortcode=code, emoji=emoji)
