"""FOURCC codec identifiers and their ffmpeg encoder settings.

The command line takes a four-character code (www.fourcc.org) for the
output codec. Encoding goes through ffmpeg, so each code maps to an
ffmpeg encoder name and output pixel format. For AVI outputs the code
itself is also written as the stream tag so players see the requested
FOURCC.
"""

from pathlib import Path


class InvalidCodec(ValueError):
    """Codec string is not exactly four characters."""


class InvalidFps(ValueError):
    """Output frame rate is not a positive integer."""


# FOURCC (upper case) → (ffmpeg encoder, output pixel format).
FOURCC_ENCODERS = {
    "XVID": ("mpeg4", "yuv420p"),
    "DIVX": ("mpeg4", "yuv420p"),
    "DX50": ("mpeg4", "yuv420p"),
    "FMP4": ("mpeg4", "yuv420p"),
    "MP4V": ("mpeg4", "yuv420p"),
    "MJPG": ("mjpeg", "yuvj420p"),
    "H264": ("libx264", "yuv420p"),
    "X264": ("libx264", "yuv420p"),
    "AVC1": ("libx264", "yuv420p"),
    "HEVC": ("libx265", "yuv420p"),
    "H265": ("libx265", "yuv420p"),
    "X265": ("libx265", "yuv420p"),
    "HVC1": ("libx265", "yuv420p"),
    "VP80": ("libvpx", "yuv420p"),
    "VP90": ("libvpx-vp9", "yuv420p"),
    "FFV1": ("ffv1", "yuv420p"),
    "MPG1": ("mpeg1video", "yuv420p"),
    "PIM1": ("mpeg1video", "yuv420p"),
    "MPG2": ("mpeg2video", "yuv420p"),
}

# Encoders that refuse odd frame widths or heights.
EVEN_SIZE_ENCODERS = {
    "libx264", "libx265", "libvpx", "libvpx-vp9", "mpeg1video", "mpeg2video",
}

# Containers whose stream header carries a FOURCC tag we can set freely.
_TAGGED_CONTAINERS = {".avi"}


def validate_codec(codec: str) -> str:
    """Return the codec as given if it is a 4-character code.

    Raises:
        InvalidCodec: Length is not 4.
    """
    if len(codec) != 4:
        raise InvalidCodec(
            f"Codec must be a FOURCC identifier (www.fourcc.org), got '{codec}'"
        )
    return codec


def validate_fps(fps: int) -> int:
    """Return fps if it is at least 1.

    Raises:
        InvalidFps: fps < 1.
    """
    if fps < 1:
        raise InvalidFps(f"FPS must be a positive integer, got {fps}")
    return fps


def encoder_for(codec: str) -> tuple[str, str] | None:
    """Look up (ffmpeg encoder, pixel format) for a FOURCC, case-insensitive."""
    return FOURCC_ENCODERS.get(codec.upper())


def stream_tag_params(codec: str, output_path: str | Path) -> list[str]:
    """Extra ffmpeg output params that stamp the FOURCC on the stream.

    Only containers that accept arbitrary tags get one; mp4/mkv pick
    their own tag from the encoder.
    """
    if Path(output_path).suffix.lower() in _TAGGED_CONTAINERS:
        return ["-vtag", codec.upper()]
    return []
