"""T3.01 — Symbol resolution. ★★★ ALWAYS LAST

Map each cell's feature (or None) through the layer's symbol resolver and
assemble the rows of the output grid.
"""

from __future__ import annotations

from app.engine.context import GridContext
from app.engine.registry import Layer, transform


@transform(
    id="T3.01",
    layer=Layer.SYMBOLS,
    dependencies=["T2.01", "T2.02"],
    tags={"always"},
    description="Resolve one symbol per cell",
)
def resolve_symbols(ctx: GridContext) -> None:
    if ctx.cell_features is None:
        raise ValueError("cells were not classified")

    if ctx.resolver is None:
        raise ValueError("no symbol resolver for this pass")
    resolver = ctx.resolver

    # Resolve each distinct feature once; callbacks may be expensive.
    cache: dict[int, str] = {}
    grid: list[list[str]] = []
    for row in ctx.cell_features:
        line = []
        for index in row:
            index = int(index)
            symbol = cache.get(index)
            if symbol is None:
                feature = ctx.feature(index)
                symbol = resolver.resolve(feature.source if feature is not None else None)
                cache[index] = symbol
            line.append(symbol)
        grid.append(line)

    ctx.grid = grid
