"""Voronoi tessellation built from a Bowyer-Watson Delaunay triangulation.

AIDEV-NOTE: Cells are the duals of the triangulation: the circumcenters of
the triangles around a seed, ordered by angle, form that seed's cell.
Adjacent cells share exact edges derived from the same triangles, so the
tessellation has no pixel-grid artifacts and no gaps beyond float rounding
(see utils.CLIP_EPSILON). Triangulation is O(n^2) in the seed count; the
caller bounds the number of seeds.
"""

import logging
import math
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from models import (
    DISPLAY_CELL_SIZE,
    VORONOI_FABRIC_SPAN_MM,
    Cell,
    Design,
    FabricSummary,
    PolygonGeometry,
    ShapeType,
    StitchMeta,
)

from .color import find_closest_color
from .utils import (
    clip_polygon_to_rect,
    get_color,
    points_in_polygon,
    polygon_area,
    round_half_up,
)

if TYPE_CHECKING:
    from models import Color, Point

logger = logging.getLogger(__name__)

SUPER_TRIANGLE_MARGIN = 10  # multiples of the larger canvas dimension
DEGENERATE_DETERMINANT = 1e-10

Triangle = tuple[int, int, int]


@dataclass(frozen=True)
class Triangulation:
    """Bowyer-Watson output over the seeds plus the super-triangle.

    ``points`` holds the seeds followed by the three super-triangle
    vertices; triangles index into it.
    """

    points: "list[Point]"
    triangles: "list[Triangle]"
    num_seeds: int

    def is_super_vertex(self, index: int) -> bool:
        return index >= self.num_seeds

    @property
    def delaunay_triangles(self) -> "list[Triangle]":
        """Triangles of the seeds alone (none touching the super-triangle)."""
        return [
            t for t in self.triangles if not any(self.is_super_vertex(v) for v in t)
        ]


def super_triangle(width: float, height: float) -> "list[Point]":
    """A triangle enclosing the canvas with a generous margin."""
    margin = max(width, height) * SUPER_TRIANGLE_MARGIN
    return [
        (-margin, -margin),
        (width + margin * 2, -margin),
        (width / 2, height + margin * 2),
    ]


def circumcenter(p1: "Point", p2: "Point", p3: "Point") -> "Point | None":
    """Center of the circle through three points, None if collinear."""
    ax, ay = p1
    bx, by = p2
    cx, cy = p3

    d = 2 * (ax * (by - cy) + bx * (cy - ay) + cx * (ay - by))
    if abs(d) < DEGENERATE_DETERMINANT:
        return None

    a2 = ax * ax + ay * ay
    b2 = bx * bx + by * by
    c2 = cx * cx + cy * cy
    ux = (a2 * (by - cy) + b2 * (cy - ay) + c2 * (ay - by)) / d
    uy = (a2 * (cx - bx) + b2 * (ax - cx) + c2 * (bx - ax)) / d
    return (ux, uy)


def in_circumcircle(p: "Point", p1: "Point", p2: "Point", p3: "Point") -> bool:
    """True if ``p`` lies strictly inside the circumcircle of p1, p2, p3.

    AIDEV-NOTE: The incircle determinant is positive for an inside point
    only when the triangle is counter-clockwise, so its sign is flipped by
    the triangle orientation. Points exactly on the circle are outside.
    """
    ax, ay = p1[0] - p[0], p1[1] - p[1]
    bx, by = p2[0] - p[0], p2[1] - p[1]
    cx, cy = p3[0] - p[0], p3[1] - p[1]

    det = (
        (ax * ax + ay * ay) * (bx * cy - cx * by)
        - (bx * bx + by * by) * (ax * cy - cx * ay)
        + (cx * cx + cy * cy) * (ax * by - bx * ay)
    )
    orient = (p1[0] - p3[0]) * (p2[1] - p3[1]) - (p1[1] - p3[1]) * (p2[0] - p3[0])
    return det > 0 if orient > 0 else det < 0


def _triangle_edges(t: Triangle) -> "list[tuple[int, int]]":
    a, b, c = t
    return [(a, b), (b, c), (c, a)]


def bowyer_watson(seeds: "list[Point]", width: float, height: float) -> Triangulation:
    """Incremental Delaunay triangulation of ``seeds``.

    Each seed is inserted by removing every triangle whose circumcircle
    contains it and re-triangulating the cavity boundary to the new point.
    A seed that lands on an existing vertex finds no such triangle and is
    left out of the triangulation.
    """
    n = len(seeds)
    points = [(float(x), float(y)) for x, y in seeds] + super_triangle(width, height)
    triangles: "list[Triangle]" = [(n, n + 1, n + 2)]

    for i in range(n):
        p = points[i]
        bad = [
            t
            for t in triangles
            if in_circumcircle(p, points[t[0]], points[t[1]], points[t[2]])
        ]
        if not bad:
            logger.debug("Seed %d coincides with an existing vertex, skipped", i)
            continue

        # Cavity boundary: edges that belong to exactly one bad triangle
        edge_counts = Counter(
            (min(a, b), max(a, b)) for t in bad for a, b in _triangle_edges(t)
        )
        boundary = [
            (a, b)
            for t in bad
            for a, b in _triangle_edges(t)
            if edge_counts[(min(a, b), max(a, b))] == 1
        ]

        bad_set = set(bad)
        triangles = [t for t in triangles if t not in bad_set]
        # Directed boundary edges keep each new triangle's winding
        triangles.extend((a, b, i) for a, b in boundary)

    return Triangulation(points=points, triangles=triangles, num_seeds=n)


def delaunay_triangulation(
    seeds: "list[Point]", width: float, height: float
) -> "list[Triangle]":
    """Delaunay triangles over the seeds, super-triangle triangles discarded."""
    return bowyer_watson(seeds, width, height).delaunay_triangles


def voronoi_polygons(triangulation: Triangulation) -> "list[list[Point]]":
    """Unclipped voronoi cell for every seed (empty when degenerate).

    AIDEV-NOTE: Triangles touching the super-triangle are used here. They
    close the fan around seeds on the convex hull, whose cells would
    otherwise be cut short and leave gaps along the canvas border. Their
    circumcenters lie far outside the canvas and are removed by clipping.
    """
    points = triangulation.points
    incident: "dict[int, list[Triangle]]" = defaultdict(list)
    for t in triangulation.triangles:
        for v in t:
            if not triangulation.is_super_vertex(v):
                incident[v].append(t)

    cells: "list[list[Point]]" = []
    for i in range(triangulation.num_seeds):
        tris = incident.get(i, [])
        if len(tris) < 3:
            cells.append([])
            continue

        centers = []
        for a, b, c in tris:
            center = circumcenter(points[a], points[b], points[c])
            if center is not None:
                centers.append(center)
        if len(centers) < 3:
            cells.append([])
            continue

        sx, sy = points[i]
        centers.sort(key=lambda q: math.atan2(q[1] - sy, q[0] - sx))
        cells.append(centers)

    return cells


def build_voronoi(
    seeds: "list[Point]", width: float, height: float
) -> "list[list[Point]]":
    """Voronoi cell polygons clipped to the canvas, one per seed.

    Args:
        seeds: Seed points inside the canvas
        width: Canvas width
        height: Canvas height

    Returns:
        List aligned with ``seeds``. Degenerate seeds (duplicates, or cells
        that clip away to nothing) get an empty polygon. Every vertex of a
        non-empty polygon satisfies 0 <= x <= width and 0 <= y <= height.
    """
    if not seeds:
        return []

    triangulation = bowyer_watson(seeds, width, height)
    polygons = []
    for i, raw in enumerate(voronoi_polygons(triangulation)):
        clipped = clip_polygon_to_rect(raw, width, height) if raw else []
        if len(clipped) < 3:
            if raw:
                logger.debug("Voronoi cell %d clipped to nothing", i)
            clipped = []
        polygons.append(clipped)
    return polygons


def sample_polygon_color(
    polygon: "list[Point]", pixels: np.ndarray, palette: "list[Color]"
) -> "Color":
    """Nearest palette color to the mean of the pixels inside ``polygon``.

    Scans the polygon's bounding box with a ray casting test. Slivers that
    enclose no pixel fall back to the pixel nearest the bounding-box center.
    """
    height, width = pixels.shape[:2]
    xs = [p[0] for p in polygon]
    ys = [p[1] for p in polygon]

    min_x = max(0, math.floor(min(xs)))
    min_y = max(0, math.floor(min(ys)))
    max_x = min(width - 1, math.ceil(max(xs)))
    max_y = min(height - 1, math.ceil(max(ys)))

    count = 0
    if min_x <= max_x and min_y <= max_y:
        grid_x, grid_y = np.meshgrid(
            np.arange(min_x, max_x + 1, dtype=np.float64),
            np.arange(min_y, max_y + 1, dtype=np.float64),
        )
        mask = points_in_polygon(grid_x, grid_y, polygon)
        count = int(mask.sum())

    if count == 0:
        logger.debug("No pixels inside polygon, sampling bounding-box center")
        average = get_color(
            pixels, math.floor((min_x + max_x) / 2), math.floor((min_y + max_y) / 2)
        )
    else:
        region = pixels[min_y : max_y + 1, min_x : max_x + 1, :3][mask]
        r, g, b = round_half_up(region.mean(axis=0))
        average = (int(r), int(g), int(b))

    return find_closest_color(average, palette)


def build_voronoi_design(
    seeds: "list[Point]",
    pixels: np.ndarray,
    palette: "list[Color]",
    num_seeds: int,
    cell_size_mm: float,
    seam_allowance_mm: float,
    border_width: float = 0.0,
) -> Design:
    """Tessellate the image around ``seeds`` and assemble a Design.

    Cell polygons stay in source-pixel coordinates; the serializer scales
    them to the output document.
    """
    height, width = pixels.shape[:2]
    polygons = build_voronoi(seeds, width, height)

    cells = []
    for i, polygon in enumerate(polygons):
        if not polygon:
            continue
        cells.append(
            Cell(
                id=f"voronoi-{i}",
                shape_type=ShapeType.VORONOI,
                geometry=PolygonGeometry(
                    points=tuple(polygon),
                    seed=(float(seeds[i][0]), float(seeds[i][1])),
                    area=polygon_area(polygon),
                ),
                color=sample_polygon_color(polygon, pixels, palette),
                stitch=StitchMeta(
                    edges=len(polygon),
                    size_mm=cell_size_mm,
                    seam_allowance_mm=seam_allowance_mm,
                ),
            )
        )

    logger.info("Built %d voronoi cells from %d seeds", len(cells), len(seeds))

    longer = max(width, height)
    grid_side = math.ceil(math.sqrt(num_seeds))
    return Design(
        width=width,
        height=height,
        grid_width=grid_side,
        grid_height=grid_side,
        cell_size=DISPLAY_CELL_SIZE,
        shape_type=ShapeType.VORONOI,
        palette=tuple(palette),
        cells=tuple(cells),
        fabric=FabricSummary(
            total_width_mm=round(width / longer * VORONOI_FABRIC_SPAN_MM),
            total_height_mm=round(height / longer * VORONOI_FABRIC_SPAN_MM),
            cell_size_mm=cell_size_mm,
            seam_allowance_mm=seam_allowance_mm,
        ),
        source_width=width,
        source_height=height,
        border_width=border_width,
    )
