"""Source probing and sequential decoding for tile videos.

Probing uses moviepy's ffmpeg header parser (frame count = duration × fps,
the same estimate container metadata gives) or, when exactness matters,
a full decode count through imageio-ffmpeg. Decoding streams raw rgb24
frames from an ffmpeg subprocess via imageio-ffmpeg; frames are read in
order, never seeked.
"""

import subprocess
import sys
from pathlib import Path
from typing import Iterable

import imageio_ffmpeg
import numpy as np
from moviepy.video.io.ffmpeg_reader import ffmpeg_parse_infos

from .tile import Tile


class SourceError(RuntimeError):
    """A tile's source video cannot be opened or has no video stream."""


def _looks_like_local_file(path: str | Path) -> bool:
    """False for URLs and printf-style image sequences (img_%03d.png)."""
    text = str(path)
    return "://" not in text and "%" not in text


def probe_frame_count(path: str | Path, exact: bool = False) -> int:
    """Return the number of frames in a video.

    Args:
        path: Source video path.
        exact: If True, decode the whole stream and count frames. Slower,
            but immune to containers with wrong duration metadata.

    Raises:
        SourceError: Missing local file, unreadable container or URL, or
            no video stream.
    """
    if _looks_like_local_file(path) and not Path(path).exists():
        raise SourceError(f"Source video not found: {path}")

    try:
        if exact:
            nframes, _ = imageio_ffmpeg.count_frames_and_secs(str(path))
            return int(nframes)
        infos = ffmpeg_parse_infos(str(path))
    except (
        OSError, RuntimeError, ValueError, KeyError, IndexError,
        subprocess.CalledProcessError,
    ) as e:
        raise SourceError(f"Could not probe source video {path}: {e}") from e

    if not infos.get("video_found"):
        raise SourceError(f"No video stream in {path}")
    return int(infos.get("video_n_frames") or 0)


def probe_tiles(
    tiles: Iterable[Tile],
    exact: bool = False,
    allow_missing: bool = False,
) -> tuple[Tile, ...]:
    """Probe every tile's source, in input order, and fill in frame counts.

    With allow_missing, a source that fails to probe becomes a zero-frame
    tile (never painted) and a warning is printed instead of raising.

    Returns:
        New tiles, same order, each carrying its probed frame_count.
    """
    probed = []
    for i, tile in enumerate(tiles):
        try:
            count = probe_frame_count(tile.source_path, exact=exact)
        except SourceError as e:
            if not allow_missing:
                raise
            print(f"Warning: tile {i} contributes no frames: {e}", file=sys.stderr)
            count = 0
        probed.append(tile.with_frame_count(count))
    return tuple(probed)


class TileSource:
    """Sequential rgb24 frame reader for one source video.

    Use as a context manager so the ffmpeg subprocess is released on every
    exit path:

        with TileSource("clip.mp4") as src:
            frame = src.read_next_frame()   # HxWx3 uint8, or None at end
    """

    def __init__(self, path: str | Path):
        self.path = str(path)
        self.size: tuple[int, int] | None = None
        self.frames_read = 0
        self._frames = None

    def open(self) -> "TileSource":
        reader = imageio_ffmpeg.read_frames(self.path, pix_fmt="rgb24")
        try:
            meta = next(reader)
        except (OSError, RuntimeError, StopIteration) as e:
            reader.close()
            raise SourceError(f"Could not open source video {self.path}: {e}") from e
        self.size = tuple(meta["size"])
        self._frames = reader
        return self

    def read_next_frame(self) -> np.ndarray | None:
        """Decode the next frame, or return None once the stream has ended.

        A truncated or corrupt trailing frame also ends the stream.
        """
        if self._frames is None:
            return None
        try:
            raw = next(self._frames)
        except (StopIteration, RuntimeError):
            self.close()
            return None
        w, h = self.size
        self.frames_read += 1
        return np.frombuffer(raw, dtype=np.uint8).reshape(h, w, 3)

    def close(self) -> None:
        if self._frames is not None:
            self._frames.close()
            self._frames = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
