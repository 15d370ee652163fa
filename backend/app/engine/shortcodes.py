"""Emoji shortcode table — ``:name:`` → emoji string.

The table is a read-only lookup service injected into the symbol resolver,
not a module global. The bundled data file maps each shortcode to its list of
code points; ``:flag_xx:`` codes missing from the table are composed from
regional indicator symbols.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

_DATA_FILE = Path(__file__).resolve().parent.parent / "data" / "shortcodes.json"

_SHORTCODE_RE = re.compile(r"^:[a-z0-9_+\-]+:$")
_FLAG_RE = re.compile(r"^:flag_([a-z]{2}):$")

# U+1F1E6 REGIONAL INDICATOR SYMBOL LETTER A
_REGIONAL_INDICATOR_A = 0x1F1E6


class ShortcodeTable:
    """Immutable shortcode → emoji lookup."""

    def __init__(self, codepoints: Mapping[str, list[int]]) -> None:
        self._table = {code: "".join(chr(cp) for cp in cps) for code, cps in codepoints.items()}

    @classmethod
    def from_file(cls, path: Path | str) -> ShortcodeTable:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        logger.debug("Loaded %d shortcodes from %s", len(data), path)
        return cls(data)

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and self.lookup(code) is not None

    def lookup(self, code: str) -> str | None:
        """Emoji for ``code``, or None when the shortcode is unknown."""
        emoji = self._table.get(code)
        if emoji is not None:
            return emoji
        flag = _FLAG_RE.match(code)
        if flag:
            return "".join(chr(_REGIONAL_INDICATOR_A + ord(ch) - ord("a")) for ch in flag.group(1))
        return None

    def get(self, symbol: str) -> str:
        """Resolve ``symbol`` if it is a known shortcode, else return it unchanged."""
        if not isinstance(symbol, str) or not _SHORTCODE_RE.match(symbol):
            return symbol
        emoji = self.lookup(symbol)
        return symbol if emoji is None else emoji


@lru_cache(maxsize=1)
def default_shortcodes() -> ShortcodeTable:
    """Bundled shortcode table, loaded once."""
    return ShortcodeTable.from_file(_DATA_FILE)
