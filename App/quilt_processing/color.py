"""Color space helpers shared by the quantizer and tessellators.

AIDEV-NOTE: Distances are plain Euclidean in raw RGB. No perceptual color
space is used, so similar-looking dark shades can land in different
clusters while visibly different light shades may merge.
"""

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from models import Color

# Perceptual luma weights for R, G, B (not linear light)
LUMA_WEIGHTS = (0.299, 0.587, 0.114)


def color_distance(c1: "Color", c2: "Color") -> float:
    """Euclidean distance between two RGB colors."""
    dr = c1[0] - c2[0]
    dg = c1[1] - c2[1]
    db = c1[2] - c2[2]
    return math.sqrt(dr * dr + dg * dg + db * db)


def find_closest_index(color: "Color", palette: "list[Color]") -> int:
    """Index of the palette entry nearest to ``color``.

    Ties resolve to the lowest index. Returns -1 for an empty palette.
    """
    best_index = -1
    best_dist = math.inf
    for i, candidate in enumerate(palette):
        dist = color_distance(color, candidate)
        if dist < best_dist:
            best_dist = dist
            best_index = i
    return best_index


def find_closest_color(color: "Color", palette: "list[Color]") -> "Color":
    """Nearest palette entry, or ``color`` itself when the palette is empty."""
    index = find_closest_index(color, palette)
    if index < 0:
        return color
    return palette[index]


def hex_to_rgb(value: str) -> "Color":
    """Parse ``#rrggbb`` or ``#rgb`` into an RGB tuple.

    Raises:
        ValueError: If the string is not a hex color
    """
    s = value.strip().lstrip("#")
    if len(s) == 3:
        s = "".join(c * 2 for c in s)
    if len(s) != 6:
        raise ValueError(f"Not a hex color: {value!r}")
    return (int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16))


def rgb_to_css(color: "Color") -> str:
    r, g, b = color
    return f"rgb({r},{g},{b})"

