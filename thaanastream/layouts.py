"""Keyboard layout tables and the layout registry."""

from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional

from thaanastream.errors import UnknownLayoutError


class LayoutTable:
    """Immutable symbol -> glyph mapping.

    Symbols without a mapping pass through unchanged, so an empty table is
    the identity layout. Tables are swapped wholesale, never edited.
    """

    __slots__ = ("name", "_map")

    def __init__(self, mapping: Mapping[str, str], name: str = "custom") -> None:
        self.name = name
        self._map: Mapping[str, str] = MappingProxyType(dict(mapping))

    def glyph(self, symbol: str) -> str:
        return self._map.get(symbol, symbol)

    def __getitem__(self, symbol: str) -> str:
        return self.glyph(symbol)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._map

    def __len__(self) -> int:
        return len(self._map)

    def __iter__(self) -> Iterator[str]:
        return iter(self._map)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._map)

    def __repr__(self) -> str:
        return f"LayoutTable(name={self.name!r}, size={len(self._map)})"


# Standard Dhivehi phonetic keyboard.
STANDARD_CHAR_MAP: Dict[str, str] = {
    # akuru
    "h": "ހ", "S": "ށ", "n": "ނ", "r": "ރ",
    "b": "ބ", "L": "ޅ", "k": "ކ", "w": "އ",
    "v": "ވ", "m": "މ", "f": "ފ", "d": "ދ",
    "t": "ތ", "l": "ލ", "g": "ގ", "N": "ޏ",
    "s": "ސ", "D": "ޑ", "z": "ޒ", "T": "ޓ",
    "y": "ޔ", "p": "ޕ", "j": "ޖ", "c": "ޗ",
    "X": "ޘ", "H": "ޙ", "K": "ޚ", "J": "ޛ",
    "R": "ޜ", "C": "ޝ", "B": "ޞ", "M": "ޟ",
    "Y": "ޠ", "Z": "ޡ", "W": "ޢ", "G": "ޣ",
    "Q": "ޤ", "V": "ޥ",
    # fili
    "a": "ަ", "A": "ާ", "i": "ި", "I": "ީ",
    "u": "ު", "U": "ޫ", "e": "ެ", "E": "ޭ",
    "o": "ޮ", "O": "ޯ", "q": "ް",
    # symbols
    "x": "×", "P": "÷", "F": "ﷲ",
    ",": "،", ";": "؛", "?": "؟",
    # mirrored brackets for right-to-left text
    "<": ">", ">": "<", "[": "]", "]": "[",
    "(": ")", ")": "(", "{": "}", "}": "{",
}

STANDARD = LayoutTable(STANDARD_CHAR_MAP, name="standard")
IDENTITY = LayoutTable({}, name="identity")


class LayoutRegistry:
    """Registry of named layouts.

    Usage:
        registry = LayoutRegistry()
        registry.register(STANDARD)
        table = registry.get("standard")
    """

    def __init__(self) -> None:
        self._layouts: Dict[str, LayoutTable] = {}

    def register(self, table: LayoutTable) -> None:
        self._layouts[table.name] = table

    def get(self, name: str) -> LayoutTable:
        try:
            return self._layouts[name]
        except KeyError:
            raise UnknownLayoutError(name) from None

    def find(self, name: str) -> Optional[LayoutTable]:
        return self._layouts.get(name)

    @property
    def names(self) -> List[str]:
        return sorted(self._layouts)

    def __contains__(self, name: object) -> bool:
        return name in self._layouts


def create_default_registry() -> LayoutRegistry:
    """Create a registry with all built-in layouts."""
    registry = LayoutRegistry()
    registry.register(STANDARD)
    registry.register(IDENTITY)
    return registry
