"""PNG preview of a sample pass: color-key raster beside the classified cells.

Emoji glyphs depend on the fonts installed, so the right panel paints each
cell with its winning feature's key color instead of drawing the symbol.
"""

from __future__ import annotations

import io

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from numpy.typing import NDArray

from app.engine.color_keys import key_to_rgb
from app.engine.context import GridContext

BG = "#0f0f1a"
TEXT = "#eee"
OUTLINE = "#e94560"
GRID_LINE = "#333344"


def cell_color_image(ctx: GridContext) -> NDArray[np.uint8]:
    """``(rows, cols, 3)`` image of the per-cell winners in their key colors."""
    rows, cols = ctx.shape
    image = np.zeros((rows, cols, 3), dtype=np.uint8)
    if ctx.cell_features is None or ctx.color_keys is None:
        return image
    for (r, c), index in np.ndenumerate(ctx.cell_features):
        if index >= 0:
            image[r, c] = key_to_rgb(ctx.color_keys.key_for(int(index)))
    return image


def render_preview(ctx: GridContext, dpi: int = 100) -> bytes:
    """Render the pass to PNG bytes."""
    rows, cols = ctx.shape
    size = ctx.cell_size
    width, height = cols * size, rows * size

    fig, (ax_raster, ax_cells) = plt.subplots(1, 2, figsize=(2 * max(width, 1) / dpi + 1, max(height, 1) / dpi + 1))
    fig.patch.set_facecolor(BG)

    if ctx.raster is not None:
        ax_raster.imshow(ctx.raster, extent=(0, width, height, 0), interpolation="nearest")
    for ring in ctx.outlines:
        xs, ys = zip(*ring)
        ax_raster.plot(xs, ys, color=OUTLINE, linewidth=0.6)
    ax_raster.set_title("raster", color=TEXT, fontsize=9)

    ax_cells.imshow(cell_color_image(ctx), extent=(0, width, height, 0), interpolation="nearest")
    for x in range(0, width + 1, size):
        ax_cells.axvline(x, color=GRID_LINE, linewidth=0.3)
    for y in range(0, height + 1, size):
        ax_cells.axhline(y, color=GRID_LINE, linewidth=0.3)
    ax_cells.set_title(f"cells {rows}×{cols}", color=TEXT, fontsize=9)

    for ax in (ax_raster, ax_cells):
        ax.set_xlim(0, width)
        ax.set_ylim(height, 0)
        ax.set_xticks([])
        ax.set_yticks([])

    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=dpi, facecolor=BG, bbox_inches="tight")
    plt.close(fig)
    return buf.getvalue()
