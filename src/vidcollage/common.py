"""vidcollage.common — small helpers shared by the CLI and manifests.

Contains: hex color parsing for the canvas background and ${var}
path resolution for layout manifests.
"""

import re


_HEX_DIGITS = "0123456789abcdefABCDEF"


# ── Color utilities ────────────────────────────────────────────────

def parse_hex_color(hex_str: str) -> tuple[int, int, int]:
    """Convert '#RRGGBB' or 'RRGGBB' string to (R, G, B) tuple.

    Raises:
        ValueError: Not six hex digits.
    """
    digits = hex_str.strip().lstrip("#")
    if len(digits) != 6 or not all(c in _HEX_DIGITS for c in digits):
        raise ValueError(f"Invalid color: '{hex_str}'. Expected '#RRGGBB'.")
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return str(paths[key])
    return re.sub(r"\$\{(\w+)\}", _replace, text)
