"""API request models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.engine.viewport import Viewport


class ViewportModel(BaseModel):
    width: float = Field(..., gt=0, description="Viewport width in CSS pixels")
    height: float = Field(..., gt=0, description="Viewport height in CSS pixels")
    pixel_ratio: float = Field(default=1.0, gt=0, description="Device pixel ratio")
    bounds: tuple[float, float, float, float] | None = Field(
        default=None, description="(west, south, east, north), equirectangular"
    )
    center: tuple[float, float] | None = Field(default=None, description="(lat, lng), Web Mercator")
    zoom: float | None = Field(default=None, description="Leaflet zoom level, with center")

    @model_validator(mode="after")
    def _check_projection(self) -> ViewportModel:
        if self.bounds is None and (self.center is None or self.zoom is None):
            raise ValueError("viewport needs 'bounds' or 'center' and 'zoom'")
        if self.bounds is not None and self.center is not None:
            raise ValueError("viewport takes 'bounds' or 'center', not both")
        return self

    def to_viewport(self) -> Viewport:
        if self.bounds is not None:
            return Viewport.from_bounds(self.bounds, self.width, self.height, self.pixel_ratio)
        return Viewport.from_center(self.center, self.zoom, self.width, self.height, self.pixel_ratio)


class GridOptions(BaseModel):
    """JSON subset of the layer options; callables cannot travel over the wire."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    size: int | None = Field(default=None, gt=0, description="Cell edge in pixels")
    emoji: str | dict[str, Any] = Field(default="❓", description="Constant symbol or lookup config")
    empty_emoji: str | None = Field(default=None, alias="emptyEmoji")
    tolerance: float | None = Field(default=None, ge=0.0, le=1.0)
    resolution: int | None = Field(default=None, gt=0)
    show_geojson: bool = Field(default=False, alias="showGeoJSON")
    method: Literal["raster", "point"] = "raster"
    simplify: float | None = Field(default=None, ge=0.0)

    def to_layer_options(self) -> dict[str, Any]:
        """Options for EmojiLayer, leaving unset fields to the settings defaults."""
        return self.model_dump(exclude_none=True)


class GridRequest(BaseModel):
    geojson: dict[str, Any] = Field(..., description="GeoJSON FeatureCollection or Feature")
    viewport: ViewportModel
    options: GridOptions = Field(default_factory=GridOptions)
