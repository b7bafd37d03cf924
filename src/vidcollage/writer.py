"""Output encoder — streams canvas frames into an ffmpeg subprocess."""

from pathlib import Path

import imageio_ffmpeg
import numpy as np

from .fourcc import EVEN_SIZE_ENCODERS, encoder_for, stream_tag_params


class WriterError(RuntimeError):
    """The output video could not be opened or written."""


class CollageWriter:
    """Encode rgb24 frames of a fixed size to a video file.

    The FOURCC picks the ffmpeg encoder (see fourcc.FOURCC_ENCODERS).
    Frames are written at exactly `size`; no macro-block padding or
    rescaling is applied.
    """

    def __init__(self, path: str | Path, codec: str, fps: int, size: tuple[int, int]):
        self.path = str(path)
        self.codec = codec
        self.fps = fps
        self.size = size
        self.frames_written = 0
        self._gen = None

    def open(self) -> "CollageWriter":
        encoder = encoder_for(self.codec)
        if encoder is None:
            raise WriterError(
                f"Failed to open video writer: no encoder for FOURCC '{self.codec}'"
            )
        parent = Path(self.path).parent
        if not parent.is_dir():
            raise WriterError(
                f"Failed to open video writer: directory does not exist: {parent}"
            )

        encoder_name, pix_fmt_out = encoder
        w, h = self.size
        if encoder_name in EVEN_SIZE_ENCODERS and (w % 2 or h % 2):
            raise WriterError(
                f"Failed to open video writer: {self.codec} ({encoder_name}) "
                f"needs even frame dimensions, canvas is {w}x{h}"
            )

        gen = imageio_ffmpeg.write_frames(
            self.path,
            self.size,
            pix_fmt_in="rgb24",
            pix_fmt_out=pix_fmt_out,
            fps=self.fps,
            codec=encoder_name,
            macro_block_size=1,
            output_params=stream_tag_params(self.codec, self.path),
            ffmpeg_log_level="error",
        )
        try:
            gen.send(None)  # start ffmpeg
        except (OSError, RuntimeError) as e:
            raise WriterError(
                f"Failed to open video writer, check filename, codec, and fps: {e}"
            ) from e
        self._gen = gen
        return self

    def write_frame(self, frame: np.ndarray) -> None:
        """Encode one HxWx3 uint8 frame matching the writer size."""
        if self._gen is None:
            raise WriterError("Video writer is not open")
        h, w = frame.shape[:2]
        if (w, h) != tuple(self.size):
            raise WriterError(
                f"Frame is {w}x{h}, writer expects {self.size[0]}x{self.size[1]}"
            )
        try:
            self._gen.send(np.ascontiguousarray(frame))
        except (OSError, RuntimeError) as e:
            raise WriterError(f"Failed to encode frame {self.frames_written}: {e}") from e
        self.frames_written += 1

    def close(self, check_output: bool = True) -> None:
        """Flush and finalize the file. Safe to call more than once.

        ffmpeg may reject the encoder setup only once input ends, without
        a non-zero exit reaching us, so a written run that leaves no
        output bytes is reported as a failure.
        """
        if self._gen is None:
            return
        gen, self._gen = self._gen, None
        try:
            gen.close()
        except (OSError, RuntimeError) as e:
            raise WriterError(f"Failed to finalize {self.path}: {e}") from e

        if check_output and self.frames_written > 0:
            out = Path(self.path)
            if not out.is_file() or out.stat().st_size == 0:
                raise WriterError(
                    f"Failed to open video writer, check filename, codec, and fps: "
                    f"ffmpeg wrote nothing to {self.path}"
                )

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        # An error already in flight takes precedence over the output check.
        self.close(check_output=exc_type is None)
