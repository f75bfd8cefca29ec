import math

import numpy as np

from quilt_processing.edges import EdgeData, detect_edges
from quilt_processing.seeds import (
    EDGE_SEED_RATIO,
    FILL_TO_FILL_FACTOR,
    generate_seeds,
    place_fill_seeds,
    sample_edge_points,
)


def _inside(seeds, width, height):
    return all(0 <= x <= width and 0 <= y <= height for x, y in seeds)


def _min_pairwise(points):
    best = math.inf
    for i, (ax, ay) in enumerate(points):
        for bx, by in points[i + 1 :]:
            best = min(best, math.hypot(ax - bx, ay - by))
    return best


def test_uniform_seeds_count_and_bounds(rng):
    seeds = generate_seeds(200, 100, 50, edge_weighted=False, rng=rng)
    assert len(seeds) == 50
    assert _inside(seeds, 200, 100)


def test_no_edge_data_falls_back_to_uniform(rng):
    seeds = generate_seeds(50, 50, 12, edge_data=None, edge_weighted=True, rng=rng)
    assert len(seeds) == 12


def test_zero_seeds():
    assert generate_seeds(10, 10, 0) == []


def test_seeded_generation_is_deterministic(step_pixels):
    edge_data = detect_edges(step_pixels)
    a = generate_seeds(20, 20, 8, edge_data, True, np.random.default_rng(3))
    b = generate_seeds(20, 20, 8, edge_data, True, np.random.default_rng(3))
    assert a == b


def test_edge_points_respect_spacing(rng):
    edge_pixels = [(x, 50) for x in range(100)]
    points = sample_edge_points(edge_pixels, 30, 10.0, rng)
    assert 0 < len(points) <= 30
    assert _min_pairwise(points) >= 10.0
    assert all(p in [(float(x), 50.0) for x, _ in edge_pixels] for p in points)


def test_edge_points_capped_by_target(rng):
    edge_pixels = [(x, y) for x in range(0, 100, 5) for y in range(0, 100, 5)]
    assert len(sample_edge_points(edge_pixels, 4, 1.0, rng)) == 4
    assert sample_edge_points([], 4, 1.0, rng) == []


def test_fill_seeds_keep_clearance(rng):
    edge_seeds = [(50.0, 50.0)]
    fill = place_fill_seeds(100, 100, 20, edge_seeds, 15.0, 8.0, rng)
    assert 0 < len(fill) <= 20
    assert _inside(fill, 100, 100)
    for x, y in fill:
        assert math.hypot(x - 50, y - 50) >= 15.0
    assert len(fill) < 2 or _min_pairwise(fill) >= 8.0


def test_fill_seeding_gives_up_silently(rng):
    # Clearance larger than the canvas leaves room for a single seed
    fill = place_fill_seeds(10, 10, 5, [], 0.0, 50.0, rng)
    assert len(fill) == 1


def test_edge_weighted_seeds_anchor_on_contours():
    pixels = np.zeros((100, 100, 3), dtype=np.uint8)
    pixels[:, 50:] = 255
    edge_data = detect_edges(pixels)
    num_seeds = 20

    seeds = generate_seeds(100, 100, num_seeds, edge_data, True, np.random.default_rng(11))
    assert 0 < len(seeds) <= num_seeds
    assert _inside(seeds, 100, 100)

    on_edge = [s for s in seeds if s[0] in (49.0, 50.0)]
    assert 0 < len(on_edge) <= math.floor(num_seeds * 0.6)

    min_distance = 0.5 * math.sqrt(100 * 100 / num_seeds)
    assert _min_pairwise(on_edge) >= min_distance


def _no_edges(size):
    return EdgeData(
        magnitude=np.zeros((size, size), dtype=np.float32),
        direction=np.zeros((size, size), dtype=np.float32),
        gray=np.zeros((size, size), dtype=np.float32),
    )


def test_fill_share_is_fixed_when_there_are_no_edges(rng):
    seeds = generate_seeds(100, 100, 10, _no_edges(100), True, rng)
    # No edge seeds, and fill seeds are capped at their own 40% share
    assert 0 < len(seeds) <= 10 - math.floor(10 * EDGE_SEED_RATIO)
    min_distance = 0.5 * math.sqrt(100 * 100 / 10)
    assert len(seeds) < 2 or _min_pairwise(seeds) >= min_distance * FILL_TO_FILL_FACTOR


def test_edge_shortfall_is_not_topped_up():
    seeds = generate_seeds(200, 200, 50, _no_edges(200), True, np.random.default_rng(0))
    assert 0 < len(seeds) <= 20
