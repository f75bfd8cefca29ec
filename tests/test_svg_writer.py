import re
import xml.etree.ElementTree as ET

import numpy as np
import pytest

from models import Design, FabricSummary, RectGeometry, ShapeType
from quilt_processing.grid import build_grid_design
from quilt_processing.svg_writer import (
    METADATA_ID,
    design_to_svg,
    extract_design_metadata,
    hexagon_points,
    triangle_points,
)
from quilt_processing.voronoi import build_voronoi_design

NS = "{http://www.w3.org/2000/svg}"
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)


def _coords(points):
    return [float(v) for v in re.split(r"[\s,]+", points.strip())]


def _parse(svg_text):
    assert svg_text.startswith("<?xml")
    return ET.fromstring(svg_text.encode("utf-8"))


def _grid_design(shape_type):
    quantized = [[BLACK, WHITE, BLACK], [WHITE, BLACK, WHITE]]
    return build_grid_design(quantized, [BLACK, WHITE], shape_type, 25.0, 6.35)


def _voronoi_design(border_width):
    pixels = np.zeros((100, 200, 3), dtype=np.uint8)
    pixels[:, 100:] = 255
    seeds = [(50.0, 50.0), (150.0, 50.0), (100.0, 20.0)]
    return build_voronoi_design(seeds, pixels, [BLACK, WHITE], 3, 25.0, 6.35, border_width)


def test_pixel_grid_document():
    root = _parse(design_to_svg(_grid_design(ShapeType.PIXEL)))

    assert root.tag == f"{NS}svg"
    assert float(root.get("width")) == 60
    assert float(root.get("height")) == 40
    assert root.get("data-quilt-design") == "true"
    assert root.get("data-shape-type") == "pixel"
    assert root.get("data-cell-count") == "6"

    rects = root.findall(f"{NS}rect")
    assert len(rects) == 6
    first = rects[0]
    assert first.get("fill") == "rgb(0,0,0)"
    assert first.get("data-id") == "shape-0-0"
    assert first.get("data-row") == "0"
    assert first.get("data-col") == "0"
    assert first.get("data-edges") == "4"
    assert float(first.get("data-size-mm")) == 25.0
    assert float(first.get("data-seam-mm")) == 6.35
    assert first.get("data-neighbors") == "shape-0-1,shape-1-0"
    assert float(rects[4].get("x")) == 20
    assert float(rects[4].get("y")) == 20


def test_triangle_and_hexagon_primitives():
    triangles = _parse(design_to_svg(_grid_design(ShapeType.TRIANGLE)))
    polygons = triangles.findall(f"{NS}polygon")
    assert len(polygons) == 6
    assert polygons[0].get("data-edges") == "3"
    assert len(_coords(polygons[0].get("points"))) == 6

    hexagons = _parse(design_to_svg(_grid_design(ShapeType.HEXAGON)))
    polygons = hexagons.findall(f"{NS}polygon")
    assert len(polygons) == 6
    assert polygons[0].get("data-edges") == "6"
    assert len(_coords(polygons[0].get("points"))) == 12


def test_triangles_alternate_up_and_down():
    rect = RectGeometry(x=0, y=0, width=20, height=20)
    assert triangle_points(rect, 0, 0) == [10, 0, 20, 20, 0, 20]
    assert triangle_points(rect, 0, 1) == [0, 0, 20, 0, 10, 20]
    assert triangle_points(rect, 1, 1) == triangle_points(rect, 0, 0)


def test_hexagon_is_inscribed_in_cell():
    rect = RectGeometry(x=20, y=40, width=20, height=20)
    points = hexagon_points(rect)
    xs, ys = points[0::2], points[1::2]
    assert min(xs) >= 20 and max(xs) <= 40
    assert min(ys) >= 40 and max(ys) <= 60
    for x, y in zip(xs, ys):
        assert ((x - 30) ** 2 + (y - 50) ** 2) ** 0.5 == pytest.approx(10, abs=0.01)


def test_voronoi_document_is_scaled_to_fixed_width():
    design = _voronoi_design(border_width=2.0)
    root = _parse(design_to_svg(design))

    assert float(root.get("width")) == 600
    assert float(root.get("height")) == 300
    paths = root.findall(f"{NS}path")
    assert len(paths) == len(design.cells)

    first = paths[0]
    assert first.get("data-id") == "voronoi-0"
    assert first.get("data-seed-x") == "50.0"
    assert first.get("data-seed-y") == "50.0"
    assert first.get("data-area").isdigit()
    assert first.get("stroke") == "#333"
    assert float(first.get("stroke-width")) == 1.0
    assert first.get("stroke-linejoin") == "round"
    assert first.get("d").startswith("M")
    assert first.get("d").rstrip().endswith("Z")


def test_voronoi_without_border():
    root = _parse(design_to_svg(_voronoi_design(border_width=0.0)))
    for path in root.findall(f"{NS}path"):
        assert path.get("stroke") == "none"
        assert path.get("stroke-linejoin") is None


def test_empty_design_is_well_formed():
    design = Design(
        width=0,
        height=0,
        grid_width=0,
        grid_height=0,
        cell_size=20,
        shape_type=ShapeType.PIXEL,
        palette=(),
        cells=(),
        fabric=FabricSummary(0, 0, 25.0, 6.35),
    )
    svg_text = design_to_svg(design)
    root = _parse(svg_text)
    assert root.get("data-cell-count") == "0"
    assert extract_design_metadata(svg_text)["cellCount"] == 0


def test_metadata_block():
    design = _grid_design(ShapeType.PIXEL)
    svg_text = design_to_svg(design)

    root = _parse(svg_text)
    desc = root.find(f"{NS}desc")
    assert desc is not None and desc.get("id") == METADATA_ID

    metadata = extract_design_metadata(svg_text)
    assert metadata["shapeType"] == "pixel"
    assert metadata["gridWidth"] == 3
    assert metadata["gridHeight"] == 2
    assert metadata["cellCount"] == 6
    assert metadata["colorPalette"] == ["#000000", "#ffffff"]
    assert metadata["pieceCounts"] == {"#000000": 3, "#ffffff": 3}
    assert metadata["fabricData"] == {
        "totalWidthMm": 75.0,
        "totalHeightMm": 50.0,
        "cellSizeMm": 25.0,
        "seamAllowanceMm": 6.35,
    }


def test_extract_metadata_without_block():
    plain = '<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10"></svg>'
    assert extract_design_metadata(plain) is None


def test_extract_metadata_rejects_malformed_document():
    with pytest.raises(ValueError):
        extract_design_metadata("<svg><rect></svg>")
