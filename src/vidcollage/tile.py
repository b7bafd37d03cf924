"""Tile descriptors and the tile-spec mini-grammar.

A tile spec places one source video into a rectangle of the output canvas:

    path@WIDTHxHEIGHT+XOFFSET+YOFFSET

e.g. ``clip.mp4@320x240+10+20``. The path is split off at the first '@',
so '@' cannot appear in a path; 'x' and '+' may. Every geometry field is
mandatory and must be a plain decimal integer.
"""

import re
from dataclasses import dataclass, replace


_INT_RE = re.compile(r"[0-9]+")


class MalformedTileSpec(ValueError):
    """A tile spec is missing a field or has a non-integer geometry field."""

    def __init__(self, token: str, reason: str):
        self.token = token
        self.reason = reason
        super().__init__(f"Malformed tile description '{token}': {reason}")


@dataclass(frozen=True)
class Rect:
    """Pixel rectangle on the output canvas (top-left origin)."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


@dataclass(frozen=True)
class Tile:
    """One source video and the canvas rectangle it is painted into.

    frame_count stays 0 until the source is probed; probing returns a new
    Tile via with_frame_count() rather than mutating this one.
    """

    source_path: str
    rect: Rect
    frame_count: int = 0

    def with_frame_count(self, frame_count: int) -> "Tile":
        return replace(self, frame_count=frame_count)


def _parse_int(value: str, field: str, token: str) -> int:
    if not value:
        raise MalformedTileSpec(token, f"missing {field}")
    if not _INT_RE.fullmatch(value):
        raise MalformedTileSpec(
            token, f"{field} must be a non-negative integer, got '{value}'"
        )
    return int(value)


def parse_tile_spec(token: str) -> Tile:
    """Parse 'path@WxH+X+Y' into a Tile (frame_count unset).

    Delimiters are consumed in fixed order: '@', 'x', '+', '+'.

    Raises:
        MalformedTileSpec: A delimiter or field is missing, a geometry
            field is not an integer, width/height is zero, or there is
            trailing text after the y offset.
    """
    path, sep, geometry = token.partition("@")
    if not sep or not path:
        raise MalformedTileSpec(token, "expected 'path@WxH+X+Y'")
    if not geometry:
        raise MalformedTileSpec(token, "missing geometry after '@'")

    width_str, sep, rest = geometry.partition("x")
    if not sep:
        raise MalformedTileSpec(token, "missing 'x' between width and height")

    fields = rest.split("+")
    if len(fields) < 3:
        missing = "x offset" if len(fields) == 1 else "y offset"
        raise MalformedTileSpec(token, f"missing {missing}")
    if len(fields) > 3:
        raise MalformedTileSpec(
            token, f"unexpected text after y offset: '+{'+'.join(fields[3:])}'"
        )
    height_str, x_str, y_str = fields

    width = _parse_int(width_str, "width", token)
    height = _parse_int(height_str, "height", token)
    x = _parse_int(x_str, "x offset", token)
    y = _parse_int(y_str, "y offset", token)

    if width == 0 or height == 0:
        raise MalformedTileSpec(token, "width and height must be positive")

    return Tile(source_path=path, rect=Rect(x, y, width, height))


def format_tile_spec(tile: Tile) -> str:
    """Render a Tile back into its canonical 'path@WxH+X+Y' form."""
    r = tile.rect
    return f"{tile.source_path}@{r.width}x{r.height}+{r.x}+{r.y}"
