"""Engine exceptions."""

from __future__ import annotations


class GridError(Exception):
    """Base class for every error raised by the grid engine."""


class GridConfigError(GridError, ValueError):
    """Invalid layer options or input dataset. Raised at construction time."""


class SymbolConfigError(GridConfigError):
    """The ``emoji`` option matches none of the constant / function / lookup modes."""


class ColorSpaceExhaustedError(GridError):
    """More features than the color key space can hold at the chosen stride."""


class RasterUnavailableError(GridError):
    """A sample pass ran before a raster surface was drawn."""
