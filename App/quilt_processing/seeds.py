"""Seed placement for voronoi tessellation.

AIDEV-NOTE: Concentrating seeds on detected contours makes voronoi cell
boundaries run along visual edges of the source, so the stitching lines
follow the subject's silhouette. Remaining seeds fill the interior.
"""

import logging
import math
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from models import Point

    from .edges import EdgeData

logger = logging.getLogger(__name__)

EDGE_SEED_RATIO = 0.6  # share of seeds placed on edges
EDGE_SPACING_FACTOR = 0.5  # min edge-seed spacing as a fraction of avg cell size
FILL_TO_EDGE_FACTOR = 0.8  # fill seeds keep this fraction of spacing from edge seeds
FILL_TO_FILL_FACTOR = 0.6  # ... and this fraction from each other
FILL_ATTEMPTS_PER_SEED = 20


def generate_seeds(
    width: int,
    height: int,
    num_seeds: int,
    edge_data: "EdgeData | None" = None,
    edge_weighted: bool = True,
    rng: np.random.Generator | None = None,
) -> "list[Point]":
    """Place voronoi seed points on the canvas.

    Args:
        width: Canvas width in pixels
        height: Canvas height in pixels
        num_seeds: Requested seed count
        edge_data: Edge detector output (required for edge weighting)
        edge_weighted: Anchor seeds on contours when edge data is given
        rng: Seedable random source, fresh entropy if None

    Returns:
        List of (x, y) seed points inside the canvas. Uniform placement
        enforces no spacing and may cluster. Edge-weighted placement may
        return fewer than num_seeds when rejection sampling runs out of
        attempts.
    """
    rng = rng if rng is not None else np.random.default_rng()
    if num_seeds <= 0:
        return []

    if not edge_weighted or edge_data is None:
        return [
            (float(rng.random() * width), float(rng.random() * height))
            for _ in range(num_seeds)
        ]

    num_edge_seeds = math.floor(num_seeds * EDGE_SEED_RATIO)
    avg_cell_size = math.sqrt((width * height) / num_seeds)
    min_edge_distance = avg_cell_size * EDGE_SPACING_FACTOR

    edge_seeds = sample_edge_points(
        edge_data.edge_pixels, num_edge_seeds, min_edge_distance, rng
    )

    # AIDEV-NOTE: The fill target is the fixed 40% share. An edge-seed
    # shortfall (e.g. an image with no contours) is not topped up.
    num_fill_seeds = num_seeds - num_edge_seeds
    fill_seeds = place_fill_seeds(
        width,
        height,
        num_fill_seeds,
        edge_seeds,
        min_edge_distance * FILL_TO_EDGE_FACTOR,
        min_edge_distance * FILL_TO_FILL_FACTOR,
        rng,
    )

    seeds = edge_seeds + fill_seeds
    logger.info(
        "Voronoi seeds: %d on edges, %d fill, %d total",
        len(edge_seeds),
        len(fill_seeds),
        len(seeds),
    )
    return seeds


def sample_edge_points(
    edge_pixels: "list[tuple[int, int]]",
    target_count: int,
    min_distance: float,
    rng: np.random.Generator,
) -> "list[Point]":
    """Shuffle edge pixels, then greedily accept well-spaced ones."""
    if not edge_pixels or target_count <= 0:
        return []

    min_d2 = min_distance * min_distance
    sampled: "list[Point]" = []
    for index in rng.permutation(len(edge_pixels)):
        if len(sampled) >= target_count:
            break
        x, y = edge_pixels[int(index)]
        if _is_clear(x, y, sampled, min_d2):
            sampled.append((float(x), float(y)))
    return sampled


def place_fill_seeds(
    width: int,
    height: int,
    count: int,
    edge_seeds: "list[Point]",
    edge_clearance: float,
    fill_clearance: float,
    rng: np.random.Generator,
) -> "list[Point]":
    """Rejection-sample fill seeds away from edge seeds and each other.

    Gives up after FILL_ATTEMPTS_PER_SEED * count candidates; any shortfall
    is accepted silently.
    """
    if count <= 0:
        return []

    edge_d2 = edge_clearance * edge_clearance
    fill_d2 = fill_clearance * fill_clearance
    fill_seeds: "list[Point]" = []
    max_attempts = count * FILL_ATTEMPTS_PER_SEED
    attempts = 0

    while len(fill_seeds) < count and attempts < max_attempts:
        attempts += 1
        x = float(rng.random() * width)
        y = float(rng.random() * height)
        if _is_clear(x, y, edge_seeds, edge_d2) and _is_clear(x, y, fill_seeds, fill_d2):
            fill_seeds.append((x, y))

    if len(fill_seeds) < count:
        logger.debug(
            "Fill seeding stopped after %d attempts with %d of %d seeds",
            attempts,
            len(fill_seeds),
            count,
        )
    return fill_seeds


def _is_clear(x: float, y: float, points: "list[Point]", min_d2: float) -> bool:
    for px, py in points:
        dx = x - px
        dy = y - py
        if dx * dx + dy * dy < min_d2:
            return False
    return True
