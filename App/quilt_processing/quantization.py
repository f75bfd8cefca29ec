"""Color quantization for reducing a color set to a small fabric palette.

AIDEV-NOTE: k-means with k-means++ seeding. Centroids are kept as integer
RGB values (channel-wise rounded mean) so every palette entry is a real
Color. Centroids never share a value, so palette entries are unique.
Randomness comes only from the injected numpy Generator, so a fixed
seed gives a reproducible palette.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from .utils import nearest_indices, round_half_up

if TYPE_CHECKING:
    from models import Color

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 20
CONVERGENCE_DISTANCE = 1.0  # max centroid move (RGB units) to stop early


@dataclass(frozen=True)
class QuantizationResult:
    """Palette plus the mapping from every input color to its palette entry."""

    palette: "list[Color]"
    assignment: "dict[Color, Color]"

    def __len__(self) -> int:
        return len(self.palette)


def quantize_colors(
    colors: "list[Color]",
    num_colors: int,
    rng: np.random.Generator | None = None,
) -> QuantizationResult:
    """Reduce a list of colors to ``num_colors`` representatives.

    Args:
        colors: Input colors (duplicates allowed, they weight the clusters)
        num_colors: Requested palette size k
        rng: Seedable random source, fresh entropy if None

    Returns:
        QuantizationResult. The palette holds exactly
        min(num_colors, distinct input colors) unique entries. Empty input
        gives an empty result.

    Raises:
        ValueError: If num_colors < 1
    """
    if num_colors < 1:
        raise ValueError(f"num_colors must be >= 1, got {num_colors}")
    if len(colors) == 0:
        return QuantizationResult(palette=[], assignment={})

    rng = rng if rng is not None else np.random.default_rng()
    data = np.asarray(colors, dtype=np.int64).reshape(-1, 3)

    centroids = _seed_centroids(data, num_colors, rng)

    for iteration in range(MAX_ITERATIONS):
        labels = nearest_indices(data, centroids)

        converged = True
        for i in range(len(centroids)):
            members = data[labels == i]
            # Empty cluster keeps its last known position
            if len(members) == 0:
                continue
            new_centroid = round_half_up(members.mean(axis=0))
            # Centroids stay unique: a mean landing on another centroid is skipped
            others = np.delete(centroids, i, axis=0)
            if np.any(np.all(others == new_centroid, axis=1)):
                continue
            if np.linalg.norm(new_centroid - centroids[i]) > CONVERGENCE_DISTANCE:
                converged = False
            centroids[i] = new_centroid

        if converged:
            logger.debug("k-means converged after %d iterations", iteration + 1)
            break

    palette: "list[Color]" = [
        (int(centroid[0]), int(centroid[1]), int(centroid[2])) for centroid in centroids
    ]

    unique = np.unique(data, axis=0)
    palette_array = np.asarray(palette, dtype=np.float64)
    nearest = nearest_indices(unique, palette_array)
    assignment = {
        (int(r), int(g), int(b)): palette[int(idx)]
        for (r, g, b), idx in zip(unique, nearest)
    }

    return QuantizationResult(palette=palette, assignment=assignment)


def _seed_centroids(
    data: np.ndarray, k: int, rng: np.random.Generator
) -> np.ndarray:
    """k-means++ seeding.

    AIDEV-NOTE: First centroid is uniform over the input, each next one is
    drawn with probability proportional to squared distance from the nearest
    chosen centroid. Already-chosen colors have zero weight, so seeding stops
    early once every distinct color is a centroid.
    """
    n = len(data)
    first = data[int(rng.integers(n))].astype(np.float64)
    centroids = [first]
    d2 = ((data - first) ** 2).sum(axis=1).astype(np.float64)

    while len(centroids) < k:
        total = d2.sum()
        if total <= 0:
            break
        idx = int(rng.choice(n, p=d2 / total))
        centroid = data[idx].astype(np.float64)
        centroids.append(centroid)
        d2 = np.minimum(d2, ((data - centroid) ** 2).sum(axis=1))

    return np.array(centroids, dtype=np.float64)
