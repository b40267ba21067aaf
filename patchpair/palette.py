"""Session color palette as immutable snapshots.

add()/remove() return a new Palette; nothing is mutated in place, so the UI
swaps its reference and redraws.
"""
from __future__ import annotations

import re
from typing import NamedTuple, Tuple

from .config import INITIAL_COLORS, MORE_COLORS

_HEX_RE = re.compile(r'^#?([0-9a-fA-F]{6})$')


class PaletteColor(NamedTuple):
    name: str
    hex: str


def normalize_color(value) -> str:
    """Canonical '#rrggbb' token from '#RRGGBB', 'rrggbb' or an (r, g, b) tuple."""
    if isinstance(value, (tuple, list)):
        if len(value) != 3 or any(int(c) < 0 or int(c) > 255 for c in value):
            raise ValueError(f"invalid RGB color {value!r}")
        return '#{:02x}{:02x}{:02x}'.format(*(int(c) for c in value))
    m = _HEX_RE.match(str(value).strip())
    if not m:
        raise ValueError(f"invalid hex color {value!r}")
    return '#' + m.group(1).lower()


def color_to_rgb(token) -> Tuple[int, int, int]:
    h = normalize_color(token)[1:]
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def color_to_bgr(token) -> Tuple[int, int, int]:
    r, g, b = color_to_rgb(token)
    return b, g, r


def color_id(token) -> str:
    """Filename-safe identifier: the hex digits without '#'."""
    return normalize_color(token)[1:]


class Palette:
    def __init__(self, colors=None):
        if colors is None:
            colors = [PaletteColor(n, normalize_color(h)) for n, h in INITIAL_COLORS]
        self._colors = tuple(PaletteColor(c[0], normalize_color(c[1])) for c in colors)

    @property
    def colors(self):
        return self._colors

    def __iter__(self):
        return iter(self._colors)

    def __len__(self):
        return len(self._colors)

    def __contains__(self, token):
        try:
            token = normalize_color(token)
        except ValueError:
            return False
        return any(c.hex == token for c in self._colors)

    def __eq__(self, other):
        return isinstance(other, Palette) and other._colors == self._colors

    def __repr__(self):
        return f"Palette({list(self._colors)!r})"

    def hexes(self):
        return [c.hex for c in self._colors]

    def name_of(self, token):
        token = normalize_color(token)
        for c in self._colors:
            if c.hex == token:
                return c.name
        return token

    def add(self, token, name=None) -> 'Palette':
        """New palette with the color appended (named 'Color #n' by default)."""
        token = normalize_color(token)
        if token in self:
            return self
        if name is None:
            name = f"Color #{len(self._colors) + 1}"
        return Palette(self._colors + (PaletteColor(name, token),))

    def remove(self, token) -> 'Palette':
        token = normalize_color(token)
        return Palette(c for c in self._colors if c.hex != token)

    def fallback_after_remove(self, token):
        """Color to select after removing `token`, or None if nothing is left."""
        token = normalize_color(token)
        for c in self._colors:
            if c.hex != token:
                return c.hex
        return None

    def suggestions(self):
        """Preset extra colors not yet in the palette."""
        return [h for h in MORE_COLORS if h not in self]
