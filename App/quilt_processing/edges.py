"""Edge detection used to anchor voronoi seeds on image contours.

AIDEV-NOTE: Canny-style pipeline without the Gaussian pre-blur:
luma grayscale -> 3x3 Sobel -> non-maximum suppression -> hysteresis.
Thresholds are ratios of the strongest response, so the detector adapts to
low-contrast images. The result is a list of edge pixel coordinates rather
than a full map since the seed generator only samples from it.
"""

import logging
from collections import deque
from dataclasses import dataclass, field

import numpy as np

from .color import LUMA_WEIGHTS

logger = logging.getLogger(__name__)

HIGH_THRESHOLD_RATIO = 0.15
LOW_THRESHOLD_RATIO = 0.05


@dataclass(frozen=True)
class EdgeData:
    """Per-pixel gradient data plus the extracted edge pixels."""

    magnitude: np.ndarray  # (height, width) float32, zero on the border
    direction: np.ndarray  # (height, width) float32, radians from atan2(gy, gx)
    gray: np.ndarray  # (height, width) float32 luma
    edge_pixels: "list[tuple[int, int]]" = field(default_factory=list)  # (x, y)

    @property
    def width(self) -> int:
        return self.magnitude.shape[1]

    @property
    def height(self) -> int:
        return self.magnitude.shape[0]


def to_grayscale(pixels: np.ndarray) -> np.ndarray:
    """Luma grayscale (0.299 R + 0.587 G + 0.114 B) as float32."""
    rgb = pixels[..., :3].astype(np.float32)
    return (rgb @ np.asarray(LUMA_WEIGHTS, dtype=np.float32)).astype(np.float32)


def compute_gradients(pixels: np.ndarray) -> EdgeData:
    """Sobel gradient magnitude and direction for every interior pixel.

    Border pixels have no full 3x3 neighbourhood and are left at zero.
    """
    gray = to_grayscale(pixels)
    height, width = gray.shape
    magnitude = np.zeros((height, width), dtype=np.float32)
    direction = np.zeros((height, width), dtype=np.float32)

    if height < 3 or width < 3:
        return EdgeData(magnitude=magnitude, direction=direction, gray=gray)

    g = gray.astype(np.float64)
    # Kernels: gx = [-1 0 1; -2 0 2; -1 0 1], gy = [-1 -2 -1; 0 0 0; 1 2 1]
    gx = (g[:-2, 2:] + 2 * g[1:-1, 2:] + g[2:, 2:]) - (
        g[:-2, :-2] + 2 * g[1:-1, :-2] + g[2:, :-2]
    )
    gy = (g[2:, :-2] + 2 * g[2:, 1:-1] + g[2:, 2:]) - (
        g[:-2, :-2] + 2 * g[:-2, 1:-1] + g[:-2, 2:]
    )

    magnitude[1:-1, 1:-1] = np.sqrt(gx * gx + gy * gy)
    direction[1:-1, 1:-1] = np.arctan2(gy, gx)
    return EdgeData(magnitude=magnitude, direction=direction, gray=gray)


def non_max_suppression(magnitude: np.ndarray, direction: np.ndarray) -> np.ndarray:
    """Thin edges to single-pixel ridges.

    The gradient direction is quantized into 0/45/90/135 degree bins and a
    pixel survives only if its magnitude is >= both neighbors along the
    perpendicular of that direction.
    """
    height, width = magnitude.shape
    result = np.zeros_like(magnitude)
    if height < 3 or width < 3:
        return result

    m = magnitude
    center = m[1:-1, 1:-1]
    angle = np.degrees(direction[1:-1, 1:-1].astype(np.float64)) % 180.0

    bin_0 = (angle < 22.5) | (angle >= 157.5)
    bin_45 = (angle >= 22.5) & (angle < 67.5)
    bin_90 = (angle >= 67.5) & (angle < 112.5)
    bin_135 = (angle >= 112.5) & (angle < 157.5)
    bins = [bin_0, bin_45, bin_90, bin_135]

    # AIDEV-NOTE: Neighbors are taken along the perpendicular of the gradient
    # bin: a horizontal gradient compares up/down, a vertical one left/right.
    left, right = m[1:-1, :-2], m[1:-1, 2:]
    up, down = m[:-2, 1:-1], m[2:, 1:-1]
    up_left, up_right = m[:-2, :-2], m[:-2, 2:]
    down_left, down_right = m[2:, :-2], m[2:, 2:]

    neighbor_1 = np.select(bins, [up, up_right, left, up_left])
    neighbor_2 = np.select(bins, [down, down_left, right, down_right])

    keep = (center >= neighbor_1) & (center >= neighbor_2)
    result[1:-1, 1:-1] = np.where(keep, center, 0)
    return result


def extract_edge_pixels(
    magnitude: np.ndarray,
    high_ratio: float = HIGH_THRESHOLD_RATIO,
    low_ratio: float = LOW_THRESHOLD_RATIO,
) -> "list[tuple[int, int]]":
    """Hysteresis thresholding.

    Pixels >= high_ratio * max seed an 8-connected flood fill that absorbs
    every connected pixel >= low_ratio * max.

    Returns:
        Edge pixel (x, y) coordinates: strong pixels in row-major order,
        followed by weak pixels in the order the flood fill reached them.
        Empty if the magnitude map is all zero.
    """
    height, width = magnitude.shape
    max_mag = float(magnitude.max()) if magnitude.size else 0.0
    if max_mag <= 0.0:
        return []

    high = max_mag * high_ratio
    low = max_mag * low_ratio

    strong = magnitude >= high
    weak = magnitude >= low
    visited = strong.copy()

    ys, xs = np.nonzero(strong)
    edge_pixels = [(int(x), int(y)) for y, x in zip(ys, xs)]
    queue = deque(edge_pixels)

    while queue:
        x, y = queue.popleft()
        for dy in (-1, 0, 1):
            ny = y + dy
            if ny < 0 or ny >= height:
                continue
            for dx in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                nx = x + dx
                if nx < 0 or nx >= width:
                    continue
                if visited[ny, nx] or not weak[ny, nx]:
                    continue
                visited[ny, nx] = True
                edge_pixels.append((nx, ny))
                queue.append((nx, ny))

    return edge_pixels


def detect_edges(pixels: np.ndarray) -> EdgeData:
    """Full edge detection: gradients, thinning and hysteresis.

    Args:
        pixels: RGB array of shape (height, width, 3)

    Returns:
        EdgeData with raw Sobel magnitude/direction and the edge pixel list
    """
    gradients = compute_gradients(pixels)
    thinned = non_max_suppression(gradients.magnitude, gradients.direction)
    edge_pixels = extract_edge_pixels(thinned)
    logger.debug("Detected %d edge pixels", len(edge_pixels))
    return EdgeData(
        magnitude=gradients.magnitude,
        direction=gradients.direction,
        gray=gradients.gray,
        edge_pixels=edge_pixels,
    )
