"""Command-line entry point for vidcollage.

Usage:
    # Three clips side by side, 24fps Motion-JPEG
    vidcollage -c MJPG -f 24 -o wall.avi \
        a.mp4@100x100+0+0 b.mp4@100x100+100+0 c.mp4@100x100+200+0

    # Tiles and output settings from a YAML layout manifest
    vidcollage --layout wall.yaml -v

    # Probe sources and print the layout without encoding
    vidcollage --validate a.mp4@320x240+0+0 b.mp4@320x240+320+0

Every failure exits with status 1 after a one-line diagnostic on stderr.
"""

import argparse
import sys

from .common import parse_hex_color
from .compositor import plan_collage, render_collage
from .fourcc import validate_codec, validate_fps
from .manifest import load_layout_manifest
from .source import SourceError
from .tile import MalformedTileSpec, format_tile_spec, parse_tile_spec
from .writer import WriterError


DEFAULT_CODEC = "xvid"
DEFAULT_FPS = 30
DEFAULT_OUTPUT = "composite.avi"

_EPILOG = """\
tile_spec := video_filename@WxH+X+Y

Tiles are painted in the order given; where rectangles overlap, later
tiles cover earlier ones. The output canvas is the bounding box of all
tiles and runs as long as the longest source.
"""


class _CollageArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with exit status 1."""

    def error(self, message):
        print(f"{self.prog}: error: {message}", file=sys.stderr)
        self.print_help(sys.stderr)
        sys.exit(1)


def _color_arg(value: str) -> tuple[int, int, int]:
    try:
        return parse_hex_color(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def _build_parser() -> argparse.ArgumentParser:
    parser = _CollageArgumentParser(
        prog="vidcollage",
        usage="%(prog)s [options] tile_spec [tile_spec ...]",
        description="Composite several videos into one, each in its own tile.",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument(
        "tiles", nargs="*", metavar="tile_spec",
        help="Source video and placement, path@WxH+X+Y",
    )
    parser.add_argument(
        "-c", "--codec", default=None,
        help=f"Output video codec FOURCC (default: {DEFAULT_CODEC.upper()})",
    )
    parser.add_argument(
        "-f", "--fps", type=int, default=None,
        help=f"Output frames per second (default: {DEFAULT_FPS})",
    )
    parser.add_argument(
        "-o", "--output", default=None,
        help=f"Output filename (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Echo tiles and print progress",
    )
    parser.add_argument(
        "-h", "--help", action="store_true",
        help="This help info",
    )
    parser.add_argument(
        "--layout", default=None,
        help="YAML layout manifest with tiles and output settings",
    )
    parser.add_argument(
        "--clear-each-frame", action="store_true",
        help="Reset the canvas to the background color before every frame",
    )
    parser.add_argument(
        "--background", type=_color_arg, default=None,
        help="Canvas fill color as #RRGGBB (default: #000000)",
    )
    parser.add_argument(
        "--allow-missing", action="store_true",
        help="Treat sources that cannot be opened as empty tiles instead of failing",
    )
    parser.add_argument(
        "--exact-frame-count", action="store_true",
        help="Count source frames by decoding instead of trusting metadata",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Probe sources and print the layout, don't encode",
    )
    return parser


def _fail(message: str, parser: argparse.ArgumentParser | None = None):
    print(message, file=sys.stderr)
    if parser is not None:
        parser.print_help(sys.stderr)
    sys.exit(1)


def main(args=None):
    parser = _build_parser()
    # Options may appear between tile specs, as with getopt permutation.
    parsed = parser.parse_intermixed_args(args)

    if parsed.help:
        parser.print_help()
        sys.exit(1)

    tiles = []
    settings = {}
    if parsed.layout:
        try:
            manifest = load_layout_manifest(parsed.layout)
        except (OSError, ValueError) as e:
            _fail(f"Invalid layout manifest {parsed.layout}: {e}")
        tiles.extend(manifest["tiles"])
        settings = manifest["output"]

    for token in parsed.tiles:
        try:
            tiles.append(parse_tile_spec(token))
        except MalformedTileSpec as e:
            _fail(str(e), parser)

    if parsed.verbose:
        for i, tile in enumerate(tiles):
            print(f"Adding tile {i}: {format_tile_spec(tile)}")

    if not tiles:
        _fail("No tile specs given", parser)

    # CLI flags override manifest settings, which override defaults.
    codec = parsed.codec if parsed.codec is not None else settings.get("codec", DEFAULT_CODEC)
    fps = parsed.fps if parsed.fps is not None else settings.get("fps", DEFAULT_FPS)
    output = parsed.output if parsed.output is not None else settings.get("path", DEFAULT_OUTPUT)
    background = (
        parsed.background if parsed.background is not None
        else settings.get("background", (0, 0, 0))
    )
    clear_each_frame = parsed.clear_each_frame or settings.get("clear_each_frame", False)

    try:
        validate_codec(codec)
        validate_fps(fps)
    except ValueError as e:
        _fail(str(e))

    if parsed.validate:
        try:
            probed, layout = plan_collage(
                tiles,
                exact_frame_count=parsed.exact_frame_count,
                allow_missing=parsed.allow_missing,
            )
        except SourceError as e:
            _fail(str(e))
        print(
            f"Layout valid: {len(probed)} tiles, canvas "
            f"{layout.canvas_width}x{layout.canvas_height}, "
            f"{layout.total_frames} frames"
        )
        for i, tile in enumerate(probed):
            print(f"  {i}: {format_tile_spec(tile)} — {tile.frame_count} frames")
        return

    try:
        render_collage(
            tiles, output,
            codec=codec,
            fps=fps,
            verbose=parsed.verbose,
            clear_each_frame=clear_each_frame,
            background=background,
            allow_missing=parsed.allow_missing,
            exact_frame_count=parsed.exact_frame_count,
        )
    except (SourceError, WriterError) as e:
        _fail(str(e))


if __name__ == "__main__":
    main()
