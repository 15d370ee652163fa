"""Symbol resolution — feature (or None) → displayable symbol.

Three strategies, picked once from the shape of the ``emoji`` option:

    "🏠"                                   → ConstantSymbol
    lambda feature: ...                    → FunctionSymbol
    {"property": "class", "values": {...}} → LookupSymbol (discrete)
    {"property": "hdi", "classes": {"breaks": [...], "emojis": [...]}}
                                           → LookupSymbol (binned)

Shortcodes are substituted here, at construction, never per cell.
"""

from __future__ import annotations

import bisect
import logging
import numbers
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from app.engine.errors import SymbolConfigError
from app.engine.shortcodes import ShortcodeTable, default_shortcodes

logger = logging.getLogger(__name__)

# U+3000 IDEOGRAPHIC SPACE: blank but as wide as an emoji in most fonts.
EMPTY = "　"

DEFAULT_EMOJI = "❓"

Feature = Mapping[str, Any]


class SymbolResolver(Protocol):
    def resolve(self, feature: Feature | None) -> str: ...


@dataclass(frozen=True)
class ConstantSymbol:
    symbol: str
    empty: str = EMPTY

    def resolve(self, feature: Feature | None) -> str:
        return self.symbol if feature is not None else self.empty


@dataclass(frozen=True)
class FunctionSymbol:
    fn: Callable[[Feature | None], str | None]
    empty: str = EMPTY

    def resolve(self, feature: Feature | None) -> str:
        symbol = self.fn(feature)
        if symbol is None:
            return self.empty
        return symbol


@dataclass(frozen=True)
class LookupSymbol:
    """Property-driven lookup, either discrete ``values`` or numeric ``breaks``."""

    property: str
    values: Mapping[Any, str] | None = None
    breaks: tuple[float, ...] = ()
    symbols: tuple[str, ...] = ()
    default: str | None = None
    empty_value: str | None = None
    empty: str = EMPTY
    _fallback: str = field(init=False, repr=False, default=EMPTY)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_fallback", self.default if self.default is not None else self.empty)

    def resolve(self, feature: Feature | None) -> str:
        if feature is None:
            return self.empty_value if self.empty_value is not None else self.empty

        properties = feature.get("properties") or {}
        if not isinstance(properties, Mapping):
            return self._fallback
        value = properties.get(self.property)
        if value is None:
            return self._fallback

        if self.values is not None:
            return self._match_value(value)
        return self._match_class(value)

    def _match_value(self, value: Any) -> str:
        try:
            symbol = self.values.get(value)
        except TypeError:
            # unhashable property value
            symbol = None
        if symbol is None:
            symbol = self.values.get(str(value))
        return symbol if symbol else self._fallback

    def _match_class(self, value: Any) -> str:
        if isinstance(value, bool) or not isinstance(value, (numbers.Real, str)):
            return self._fallback
        try:
            number = float(value)
        except ValueError:
            return self._fallback
        if number != number:
            return self._fallback
        # first break strictly greater than the value
        return self.symbols[bisect.bisect_right(self.breaks, number)]


def build_resolver(
    emoji: Any,
    empty: str = EMPTY,
    shortcodes: ShortcodeTable | None = None,
) -> SymbolResolver:
    """Build the resolution strategy for an ``emoji`` option.

    Raises:
        SymbolConfigError: ``emoji`` matches no mode, or a lookup table is malformed.
    """
    table = shortcodes or default_shortcodes()
    empty = _symbol(table, empty, "empty symbol")

    if isinstance(emoji, str):
        return ConstantSymbol(symbol=table.get(emoji), empty=empty)
    if callable(emoji):
        return FunctionSymbol(fn=emoji, empty=empty)
    if isinstance(emoji, Mapping):
        return _build_lookup(emoji, empty, table)

    raise SymbolConfigError(
        f"emoji must be a symbol, a callable or a lookup mapping, got {type(emoji).__name__}"
    )


def _build_lookup(config: Mapping[str, Any], empty: str, table: ShortcodeTable) -> LookupSymbol:
    prop = config.get("property")
    values = config.get("values")
    classes = config.get("classes")

    if not isinstance(prop, str) or not prop:
        raise SymbolConfigError("lookup emoji config needs a non-empty 'property'")
    if values is None and classes is None:
        raise SymbolConfigError("lookup emoji config needs 'values' or 'classes'")
    if values is not None and classes is not None:
        raise SymbolConfigError("lookup emoji config takes 'values' or 'classes', not both")

    default = config.get("defaultValue", config.get("default_value"))
    empty_value = config.get("emptyValue", config.get("empty_value"))
    if default is not None:
        default = _symbol(table, default, "defaultValue")
    if empty_value is not None:
        empty_value = _symbol(table, empty_value, "emptyValue")

    if values is not None:
        if not isinstance(values, Mapping):
            raise SymbolConfigError("'values' must map property values to symbols")
        resolved = {key: _symbol(table, sym, f"values[{key!r}]") for key, sym in values.items()}
        logger.debug("Lookup symbols on %r: %d values", prop, len(resolved))
        return LookupSymbol(
            property=prop,
            values=resolved,
            default=default,
            empty_value=empty_value,
            empty=empty,
        )

    breaks, symbols = _parse_classes(classes, table)
    logger.debug("Lookup symbols on %r: %d classes", prop, len(symbols))
    return LookupSymbol(
        property=prop,
        breaks=breaks,
        symbols=symbols,
        default=default,
        empty_value=empty_value,
        empty=empty,
    )


def _parse_classes(classes: Any, table: ShortcodeTable) -> tuple[tuple[float, ...], tuple[str, ...]]:
    if not isinstance(classes, Mapping):
        raise SymbolConfigError("'classes' must be a mapping with 'breaks' and 'emojis'")
    breaks = classes.get("breaks")
    emojis = classes.get("emojis")
    if not isinstance(breaks, (list, tuple)) or not isinstance(emojis, (list, tuple)):
        raise SymbolConfigError("'classes' needs 'breaks' and 'emojis' lists")
    if not breaks:
        raise SymbolConfigError("'classes.breaks' must not be empty")
    if len(emojis) != len(breaks) + 1:
        raise SymbolConfigError(
            f"'classes' needs one more emoji than breaks ({len(breaks)} breaks, {len(emojis)} emojis)"
        )
    if any(isinstance(b, bool) or not isinstance(b, numbers.Real) for b in breaks):
        raise SymbolConfigError("'classes.breaks' must be numbers")
    numeric = tuple(float(b) for b in breaks)
    if any(a > b for a, b in zip(numeric, numeric[1:])):
        raise SymbolConfigError("'classes.breaks' must be sorted ascending")

    symbols = tuple(_symbol(table, sym, f"classes.emojis[{i}]") for i, sym in enumerate(emojis))
    return numeric, symbols


def _symbol(table: ShortcodeTable, value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise SymbolConfigError(f"{where} must be a string symbol, got {type(value).__name__}")
    return table.get(value)
