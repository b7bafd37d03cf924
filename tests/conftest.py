"""Shared test fixtures for vidcollage tests."""

import subprocess

import numpy as np
import pytest
import imageio_ffmpeg

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


@pytest.fixture
def make_video(tmp_path):
    """Factory for small solid-color test videos made with ffmpeg.

    make_video("a.mp4", color="red", frames=10) writes a 64x48, 10fps
    H.264 clip with exactly `frames` frames and returns its path.
    """
    def _make(name, color="blue", size=(64, 48), frames=10, fps=10):
        out = tmp_path / name
        w, h = size
        subprocess.run(
            [
                _FFMPEG, "-y",
                "-f", "lavfi", "-i", f"color=c={color}:s={w}x{h}:r={fps}",
                "-frames:v", str(frames),
                "-c:v", "libx264", "-crf", "18", "-pix_fmt", "yuv420p",
                str(out),
            ],
            check=True,
            capture_output=True,
        )
        return out
    return _make


@pytest.fixture
def read_video():
    """Decode a whole video into (meta, [HxWx3 uint8 frames])."""
    def _read(path):
        reader = imageio_ffmpeg.read_frames(str(path))
        meta = next(reader)
        w, h = meta["size"]
        frames = [
            np.frombuffer(raw, dtype=np.uint8).reshape(h, w, 3) for raw in reader
        ]
        return meta, frames
    return _read
