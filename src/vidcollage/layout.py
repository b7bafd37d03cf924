"""Layout resolver — canvas size and composite length from a tile set.

The canvas is the bounding box of every tile rectangle anchored at the
origin, so every tile is inside the canvas by construction. The composite
runs as long as its longest source.
"""

from dataclasses import dataclass
from typing import Iterable

from .tile import Tile


@dataclass(frozen=True)
class Layout:
    canvas_width: int
    canvas_height: int
    total_frames: int

    @property
    def size(self) -> tuple[int, int]:
        """(width, height), the order encoders expect."""
        return (self.canvas_width, self.canvas_height)


def resolve_layout(tiles: Iterable[Tile]) -> Layout:
    """Compute canvas extent and total frame count over all tiles.

    canvas_width  = max(x + width)
    canvas_height = max(y + height)
    total_frames  = max(frame_count)

    Raises:
        ValueError: No tiles given.
    """
    tiles = list(tiles)
    if not tiles:
        raise ValueError("Cannot resolve a layout with no tiles")

    return Layout(
        canvas_width=max(t.rect.right for t in tiles),
        canvas_height=max(t.rect.bottom for t in tiles),
        total_frames=max(t.frame_count for t in tiles),
    )
