"""Compositor — the per-frame loop that builds the collage.

Every output frame is assembled on one shared canvas:

  ┌───────────────┬───────────────┐
  │ tile 0        │ tile 1        │   tiles are painted in input order,
  │  (a.mp4)   ┌──┴───────┐       │   so where rectangles overlap the
  │            │ tile 2   │       │   later tile wins (tile 2 here)
  └────────────┤  (c.mp4) ├───────┘
               └──────────┘

Sources have ragged lengths. A tile whose source has run out is skipped,
and because the canvas is not cleared between frames (unless asked to),
its region keeps showing the last frame it painted.
"""

import sys
from contextlib import ExitStack
from pathlib import Path
from typing import Callable, Sequence

import numpy as np
from PIL import Image

from .fourcc import validate_codec, validate_fps
from .layout import Layout, resolve_layout
from .source import TileSource, probe_tiles
from .tile import Rect, Tile
from .writer import CollageWriter


# ── Pixel helpers ──────────────────────────────────────────────────

def resize_frame(frame: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resize an HxWx3 frame to exactly width x height (bicubic)."""
    if frame.shape[1] == width and frame.shape[0] == height:
        return frame
    img = Image.fromarray(frame)
    return np.asarray(img.resize((width, height), Image.BICUBIC))


def paint_tile(canvas: np.ndarray, frame: np.ndarray, rect: Rect) -> None:
    """Resize frame to rect and copy it into the canvas in place."""
    canvas[rect.y:rect.bottom, rect.x:rect.right] = resize_frame(
        frame, rect.width, rect.height,
    )


# ── Progress ───────────────────────────────────────────────────────

class ProgressPrinter:
    """Print '...10%...20%' as the loop crosses each tenth of the run."""

    def __init__(self, total_frames: int):
        self.total_frames = total_frames
        self.decade = 0

    def update(self, frame_index: int) -> None:
        if self.total_frames <= 0:
            return
        reached = frame_index * 10 // self.total_frames
        while self.decade < reached:
            self.decade += 1
            print(f"...{self.decade * 10}%", end="", flush=True)

    def finish(self) -> None:
        print("...100%", flush=True)


# ── Frame loop ─────────────────────────────────────────────────────

def composite_frames(
    tiles: Sequence[Tile],
    sources: Sequence,
    layout: Layout,
    write_frame: Callable[[np.ndarray], None],
    clear_each_frame: bool = False,
    background: tuple[int, int, int] = (0, 0, 0),
    progress: ProgressPrinter | None = None,
) -> int:
    """Run the compositing loop for layout.total_frames frames.

    Args:
        tiles: Probed tiles. Index order is paint order: tiles[i] is
            painted after (on top of) tiles[j] for every j < i.
        sources: One decoder per tile, same order, each with
            read_next_frame() -> ndarray | None. An entry may be None for
            a tile with frame_count 0.
        layout: Canvas size and frame count from resolve_layout().
        write_frame: Receives the full canvas once per output frame. The
            same buffer is passed every time.
        clear_each_frame: Fill the canvas with `background` before each
            frame. Off by default: uncovered and exhausted regions keep
            their last painted pixels.
        background: RGB fill for the initial canvas (and per-frame clear).
        progress: Optional progress reporter.

    Returns:
        Number of frames written (always layout.total_frames).
    """
    if len(sources) != len(tiles):
        raise ValueError(
            f"Got {len(sources)} sources for {len(tiles)} tiles"
        )

    canvas = np.empty((layout.canvas_height, layout.canvas_width, 3), dtype=np.uint8)
    canvas[:] = background

    # A source that ends before its probed frame count is treated as
    # finished from that frame on.
    ended = [source is None for source in sources]

    for frame_index in range(layout.total_frames):
        if clear_each_frame:
            canvas[:] = background

        for i, tile in enumerate(tiles):
            if ended[i] or frame_index >= tile.frame_count:
                continue
            frame = sources[i].read_next_frame()
            if frame is None:
                ended[i] = True
                print(
                    f"Warning: {tile.source_path} ended after {frame_index} "
                    f"of {tile.frame_count} frames",
                    file=sys.stderr,
                )
                continue
            paint_tile(canvas, frame, tile.rect)

        if progress is not None:
            progress.update(frame_index)
        write_frame(canvas)

    if progress is not None:
        progress.finish()
    return layout.total_frames


# ── End-to-end driver ──────────────────────────────────────────────

def plan_collage(
    tiles: Sequence[Tile],
    exact_frame_count: bool = False,
    allow_missing: bool = False,
) -> tuple[tuple[Tile, ...], Layout]:
    """Probe all sources and resolve the layout, without decoding."""
    probed = probe_tiles(tiles, exact=exact_frame_count, allow_missing=allow_missing)
    return probed, resolve_layout(probed)


def render_collage(
    tiles: Sequence[Tile],
    output_path: str | Path,
    codec: str = "xvid",
    fps: int = 30,
    verbose: bool = False,
    clear_each_frame: bool = False,
    background: tuple[int, int, int] = (0, 0, 0),
    allow_missing: bool = False,
    exact_frame_count: bool = False,
) -> Layout:
    """Probe, lay out, decode, composite and encode the collage.

    The writer and every opened source are released on all exit paths,
    including a writer that fails to open and errors mid-loop.

    Returns:
        The resolved layout (canvas size and frames written).

    Raises:
        InvalidCodec, InvalidFps: Bad output settings.
        SourceError: A source cannot be probed or opened.
        WriterError: The output cannot be opened or written.
    """
    validate_codec(codec)
    validate_fps(fps)

    tiles, layout = plan_collage(
        tiles, exact_frame_count=exact_frame_count, allow_missing=allow_missing,
    )
    if verbose:
        print(
            f"Calculated final composite size "
            f"{layout.canvas_width}x{layout.canvas_height}, "
            f"{layout.total_frames} frames"
        )

    with ExitStack() as stack:
        sources = [
            stack.enter_context(TileSource(tile.source_path))
            if tile.frame_count > 0 else None
            for tile in tiles
        ]
        writer = stack.enter_context(
            CollageWriter(output_path, codec, fps, layout.size)
        )
        if verbose:
            print(f"Writing to: {output_path} ({codec}, {fps}fps)")
        composite_frames(
            tiles, sources, layout, writer.write_frame,
            clear_each_frame=clear_each_frame,
            background=background,
            progress=ProgressPrinter(layout.total_frames) if verbose else None,
        )

    if verbose:
        print(f"Done: {output_path}")
    return layout
