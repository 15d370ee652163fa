"""EmojiGrid — the finished 2D symbol grid handed to presentation surfaces."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from app.utils.rasterizer import symbols_to_text


@dataclass(frozen=True)
class EmojiGrid:
    rows: tuple[tuple[str, ...], ...]
    cell_size: int

    @classmethod
    def from_rows(cls, rows: list[list[str]], cell_size: int) -> EmojiGrid:
        return cls(rows=tuple(tuple(r) for r in rows), cell_size=cell_size)

    @property
    def shape(self) -> tuple[int, int]:
        """``(rows, cols)``."""
        return len(self.rows), len(self.rows[0]) if self.rows else 0

    @property
    def text(self) -> str:
        return symbols_to_text(self.rows)

    def cell(self, row: int, col: int) -> str:
        return self.rows[row][col]

    def column(self, col: int) -> list[str]:
        return [r[col] for r in self.rows]

    def to_lists(self) -> list[list[str]]:
        return [list(r) for r in self.rows]

    def __iter__(self) -> Iterator[tuple[str, ...]]:
        return iter(self.rows)

    def __str__(self) -> str:
        return self.text
