"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    transforms_registered: int = 0


class GridResponse(BaseModel):
    grid: list[list[str]] = Field(default_factory=list)
    text: str = ""
    rows: int = 0
    cols: int = 0
    cell_size: int = 0
    features: int = 0
    outlines: list[list[tuple[float, float]]] = Field(default_factory=list)
    processing_time_ms: float = 0.0
    errors: dict[str, str] = Field(default_factory=dict)


class ShortcodeResponse(BaseModel):
    shortcode: str
    emoji: str
