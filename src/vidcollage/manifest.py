"""Layout manifest loader — tile placements and output settings from YAML.

Layout manifest schema:
  paths:                                 # optional ${name} substitutions
    clips: "/data/clips"
  output:                                # optional, CLI flags win
    path: "${clips}/wall.avi"
    codec: MJPG
    fps: 24
    background: "#101010"
    clear_each_frame: false
  tiles:
    - "${clips}/a.mp4@320x240+0+0"       # tile spec string, or
    - path: "${clips}/b.mp4"             # mapping form
      size: [320, 240]
      position: [320, 0]

Tiles keep their listed order, which is also their paint order.
"""

from pathlib import Path

import yaml

from .common import parse_hex_color, resolve_path_vars
from .tile import Rect, Tile, parse_tile_spec


_OUTPUT_KEYS = {"path", "codec", "fps", "background", "clear_each_frame"}


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _int_pair(entry: dict, key: str, prefix: str) -> tuple[int, int]:
    value = entry.get(key)
    if value is None:
        raise ValueError(f"{prefix}: missing required field '{key}'")
    if not isinstance(value, (list, tuple)) or len(value) != 2 or not all(
        _is_int(v) for v in value
    ):
        raise ValueError(f"{prefix}: '{key}' must be a list of two integers, got {value!r}")
    return value[0], value[1]


def _parse_tile_entry(entry, index: int, paths: dict[str, str]) -> Tile:
    """Parse one tile entry — either a spec string or a mapping."""
    prefix = f"Tile {index}"

    if isinstance(entry, str):
        return parse_tile_spec(resolve_path_vars(entry, paths))

    if not isinstance(entry, dict):
        raise ValueError(f"{prefix}: expected a tile spec string or a mapping")
    if "path" not in entry:
        raise ValueError(f"{prefix}: missing required field 'path'")

    width, height = _int_pair(entry, "size", prefix)
    x, y = _int_pair(entry, "position", prefix)
    if width <= 0 or height <= 0:
        raise ValueError(f"{prefix}: size must be positive, got {width}x{height}")
    if x < 0 or y < 0:
        raise ValueError(f"{prefix}: position must be non-negative, got ({x}, {y})")

    path = resolve_path_vars(str(entry["path"]), paths)
    return Tile(source_path=path, rect=Rect(x, y, width, height))


def _parse_output(raw: dict, paths: dict[str, str]) -> dict:
    if not isinstance(raw, dict):
        raise ValueError("Layout manifest: 'output' must be a mapping")
    unknown = set(raw) - _OUTPUT_KEYS
    if unknown:
        raise ValueError(
            f"Layout manifest: unknown output field(s): {', '.join(sorted(unknown))}"
        )

    output = {}
    if "path" in raw:
        output["path"] = resolve_path_vars(str(raw["path"]), paths)
    if "codec" in raw:
        output["codec"] = str(raw["codec"])
    if "fps" in raw:
        if not _is_int(raw["fps"]):
            raise ValueError(f"Layout manifest: output.fps must be an integer, got {raw['fps']!r}")
        output["fps"] = raw["fps"]
    if "background" in raw:
        output["background"] = parse_hex_color(str(raw["background"]))
    if "clear_each_frame" in raw:
        if not isinstance(raw["clear_each_frame"], bool):
            raise ValueError("Layout manifest: output.clear_each_frame must be true or false")
        output["clear_each_frame"] = raw["clear_each_frame"]
    return output


def load_layout_manifest(manifest_path: str | Path) -> dict:
    """Load and validate a layout manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Resolve ${path} variables in tile paths and output.path.
      3. Parse each tile (spec string or mapping) into a Tile.
      4. Validate output settings.

    Codec and fps ranges are not checked here; they are validated after
    CLI overrides are merged in.

    Returns:
        {"tiles": [Tile, ...], "output": {setting: value}}

    Raises:
        ValueError: Missing/invalid fields (MalformedTileSpec for bad
            tile spec strings).
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError("Layout manifest: expected a mapping at the top level")
    if "tiles" not in raw:
        raise ValueError("Layout manifest: missing required 'tiles' field")
    if not isinstance(raw["tiles"], list) or not raw["tiles"]:
        raise ValueError("Layout manifest: 'tiles' must be a non-empty list")

    paths = raw.get("paths") or {}
    if not isinstance(paths, dict):
        raise ValueError("Layout manifest: 'paths' must be a mapping")

    tiles = [
        _parse_tile_entry(entry, i, paths) for i, entry in enumerate(raw["tiles"])
    ]
    output = _parse_output(raw.get("output") or {}, paths)
    return {"tiles": tiles, "output": output}
