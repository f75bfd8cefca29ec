"""Utility functions for image decoding, pixel math and polygon geometry.

AIDEV-NOTE: This module contains helpers shared across the pipeline:
decoding caller-supplied images into RGB pixel arrays, rounding and
nearest-neighbor assignment, and the polygon routines (clipping, area,
point-in-polygon) used by the voronoi builder.
"""

import io
import math
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image

from errors import InvalidInputError

if TYPE_CHECKING:
    from models import Color, Point

# Largest tolerated gap between neighboring voronoi cells after clipping,
# in canvas pixels. Clipped vertices are snapped to the canvas so the
# only remaining error is float rounding in the intersections.
CLIP_EPSILON = 1e-6


# --- Image decoding ---


def load_image(file_path: str | Path) -> Image.Image:
    """Load and validate an image file.

    Args:
        file_path: Path to image file (PNG, JPG, etc.)

    Returns:
        PIL Image in RGB mode

    Raises:
        InvalidInputError: If file cannot be loaded or is invalid
    """
    try:
        with Image.open(file_path) as image:
            image.load()
            # AIDEV-NOTE: Always convert to RGB, alpha is ignored downstream
            return image.convert("RGB")
    except Exception as e:
        raise InvalidInputError("image", f"failed to load image: {e}") from e


def decode_image_bytes(raw: bytes) -> Image.Image:
    """Decode encoded image bytes (PNG, JPEG, ...) into an RGB image.

    Raises:
        InvalidInputError: If the bytes are empty or not a decodable image
    """
    if not raw:
        raise InvalidInputError("image", "no image data")
    try:
        with Image.open(io.BytesIO(raw)) as image:
            image.load()
            return image.convert("RGB")
    except Exception as e:
        raise InvalidInputError("image", f"failed to decode image: {e}") from e


def image_from_buffer(
    data: bytes, width: int, height: int, mode: str = "RGBA"
) -> Image.Image:
    """Wrap a raw pixel buffer (RGB or RGBA, row-major) as an RGB image.

    Raises:
        InvalidInputError: If dimensions, mode or buffer length are invalid
    """
    if mode not in ("RGB", "RGBA"):
        raise InvalidInputError("mode", f"expected 'RGB' or 'RGBA', got {mode!r}")
    if width < 1:
        raise InvalidInputError("width", f"must be >= 1, got {width}")
    if height < 1:
        raise InvalidInputError("height", f"must be >= 1, got {height}")

    expected = width * height * len(mode)
    if len(data) != expected:
        raise InvalidInputError(
            "buffer",
            f"expected {expected} bytes for {width}x{height} {mode}, got {len(data)}",
        )
    return Image.frombytes(mode, (width, height), bytes(data)).convert("RGB")


def image_to_array(image: Image.Image) -> np.ndarray:
    """RGB pixel array of shape (height, width, 3), dtype uint8."""
    return np.asarray(image.convert("RGB"), dtype=np.uint8)


def get_color(pixels: np.ndarray, x: int, y: int) -> "Color":
    """Get RGB color at a pixel location, clamped to the image bounds."""
    height, width = pixels.shape[:2]
    x = min(max(int(x), 0), width - 1)
    y = min(max(int(y), 0), height - 1)
    r, g, b = pixels[y, x][:3]
    return (int(r), int(g), int(b))


# --- Numeric helpers ---


def round_half_up(values):
    """Round halves away from zero for non-negative values (2.5 -> 3)."""
    return np.floor(np.asarray(values, dtype=np.float64) + 0.5)


def nearest_indices(
    points: np.ndarray, centers: np.ndarray, chunk_size: int = 4096
) -> np.ndarray:
    """Index of the nearest center for every point (squared Euclidean).

    Ties go to the lowest center index. Points are processed in chunks to
    bound the size of the distance matrix.

    Raises:
        ValueError: If there are no centers
    """
    points = np.asarray(points, dtype=np.float64)
    centers = np.asarray(centers, dtype=np.float64)
    if len(centers) == 0:
        raise ValueError("nearest_indices needs at least one center")

    result = np.empty(len(points), dtype=np.intp)
    for start in range(0, len(points), chunk_size):
        block = points[start : start + chunk_size]
        d2 = ((block[:, None, :] - centers[None, :, :]) ** 2).sum(axis=2)
        result[start : start + len(block)] = np.argmin(d2, axis=1)
    return result


# --- Polygon geometry ---


def polygon_area(polygon: "list[Point]") -> float:
    """Polygon area using the shoelace formula."""
    if len(polygon) < 3:
        return 0.0

    area = 0.0
    n = len(polygon)
    for i in range(n):
        x1, y1 = polygon[i]
        x2, y2 = polygon[(i + 1) % n]
        area += x1 * y2 - x2 * y1
    return abs(area) / 2.0


def point_in_polygon(x: float, y: float, polygon: "list[Point]") -> bool:
    """Ray casting point-in-polygon test."""
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def points_in_polygon(
    xs: np.ndarray, ys: np.ndarray, polygon: "list[Point]"
) -> np.ndarray:
    """Vectorized ray casting test over arrays of coordinates."""
    inside = np.zeros(np.shape(xs), dtype=bool)
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        j = i
        # Horizontal edges never cross a horizontal ray
        if yi == yj:
            continue
        crosses = (yi > ys) != (yj > ys)
        x_cross = (xj - xi) * (ys - yi) / (yj - yi) + xi
        inside ^= crosses & (xs < x_cross)
    return inside


def clip_polygon_to_rect(
    polygon: "list[Point]", width: float, height: float
) -> "list[Point]":
    """Clip a polygon to the rectangle [0, width] x [0, height].

    Uses Sutherland-Hodgman, clipping sequentially against the four
    half-planes. The result keeps the input winding.

    AIDEV-NOTE: Output vertices are snapped into the rectangle so float
    error in the intersections can never push a vertex outside the canvas.
    """
    output = [(float(x), float(y)) for x, y in polygon]

    # (axis, boundary value, keep side >= boundary)
    half_planes = (
        (0, 0.0, True),
        (0, float(width), False),
        (1, 0.0, True),
        (1, float(height), False),
    )

    for axis, value, keep_above in half_planes:
        if not output:
            break

        clipped = []
        prev = output[-1]
        prev_in = _inside(prev, axis, value, keep_above)
        for cur in output:
            cur_in = _inside(cur, axis, value, keep_above)
            if cur_in:
                if not prev_in:
                    clipped.append(_intersect(prev, cur, axis, value))
                clipped.append(cur)
            elif prev_in:
                clipped.append(_intersect(prev, cur, axis, value))
            prev, prev_in = cur, cur_in
        output = clipped

    snapped = [
        (min(max(x, 0.0), float(width)), min(max(y, 0.0), float(height)))
        for x, y in output
    ]
    return _drop_repeated_vertices(snapped)


def _inside(p: "Point", axis: int, value: float, keep_above: bool) -> bool:
    return p[axis] >= value if keep_above else p[axis] <= value


def _intersect(p1: "Point", p2: "Point", axis: int, value: float) -> "Point":
    t = (value - p1[axis]) / (p2[axis] - p1[axis])
    if axis == 0:
        return (value, p1[1] + t * (p2[1] - p1[1]))
    return (p1[0] + t * (p2[0] - p1[0]), value)


def _drop_repeated_vertices(polygon: "list[Point]") -> "list[Point]":
    result: "list[Point]" = []
    for p in polygon:
        if result and math.isclose(p[0], result[-1][0], abs_tol=CLIP_EPSILON) and (
            math.isclose(p[1], result[-1][1], abs_tol=CLIP_EPSILON)
        ):
            continue
        result.append(p)
    while (
        len(result) > 1
        and math.isclose(result[0][0], result[-1][0], abs_tol=CLIP_EPSILON)
        and math.isclose(result[0][1], result[-1][1], abs_tol=CLIP_EPSILON)
    ):
        result.pop()
    return result
