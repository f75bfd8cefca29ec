"""Lloyd relaxation of voronoi seeds.

AIDEV-NOTE: Approximates a centroidal voronoi tessellation by repeatedly
moving each seed to the centroid of the pixels nearest to it. More
iterations trade organic cell shapes for evenly sized cells. Pixels are
sampled on a coarse lattice capped near MAX_SAMPLES so the cost does not
grow with canvas size.
"""

import math
from typing import TYPE_CHECKING

import numpy as np

from .utils import nearest_indices

if TYPE_CHECKING:
    from models import Point

MAX_SAMPLES = 50_000


def sample_step(width: int, height: int) -> int:
    """Lattice stride so roughly MAX_SAMPLES pixels are visited."""
    return max(1, math.floor(math.sqrt((width * height) / MAX_SAMPLES)))


def relax_seeds(
    seeds: "list[Point]", width: int, height: int, iterations: int
) -> "list[Point]":
    """Move seeds toward the centroids of their voronoi regions.

    Args:
        seeds: Seed points; never mutated
        width: Canvas width in pixels
        height: Canvas height in pixels
        iterations: Number of Lloyd steps, 0 returns ``seeds`` unchanged

    Returns:
        Relaxed seed list, same length and order as the input. A seed with
        no assigned samples keeps its previous position.
    """
    if iterations <= 0 or not seeds:
        return seeds

    step = sample_step(width, height)
    xs, ys = np.meshgrid(
        np.arange(0, width, step, dtype=np.float64),
        np.arange(0, height, step, dtype=np.float64),
    )
    samples = np.column_stack((xs.ravel(), ys.ravel()))

    current = np.asarray(seeds, dtype=np.float64).reshape(-1, 2)
    n = len(current)

    for _ in range(iterations):
        labels = nearest_indices(samples, current)
        counts = np.bincount(labels, minlength=n)
        sum_x = np.bincount(labels, weights=samples[:, 0], minlength=n)
        sum_y = np.bincount(labels, weights=samples[:, 1], minlength=n)

        updated = current.copy()
        assigned = counts > 0
        updated[assigned, 0] = sum_x[assigned] / counts[assigned]
        updated[assigned, 1] = sum_y[assigned] / counts[assigned]
        current = updated

    return [(float(x), float(y)) for x, y in current]
