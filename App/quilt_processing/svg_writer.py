"""SVG serialization of quilt designs and metadata extraction.

AIDEV-NOTE: One switch on the design's shape type picks the primitive:
rect / triangle / hexagon for grid designs, closed paths for voronoi.
Stitching metadata rides along as data-* attributes so the document can
be consumed without the Design record. A JSON summary sits in
<desc id="quilt-metadata"> and is read back by extract_design_metadata.
"""

import json
import math
import xml.etree.ElementTree as ET

import svg

from models import (
    VORONOI_OUTPUT_WIDTH,
    Cell,
    Design,
    PolygonGeometry,
    RectGeometry,
    ShapeType,
    rgb_to_hex,
)

from .color import rgb_to_css

METADATA_ID = "quilt-metadata"
VORONOI_STROKE = "#333"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

SVG_NAMESPACE = "http://www.w3.org/2000/svg"


def _num(value: float) -> float | int:
    """Round coordinates to 2 decimals, dropping a trailing .0."""
    rounded = round(float(value), 2)
    return int(rounded) if rounded.is_integer() else rounded


def design_metadata(design: Design) -> dict:
    """Compact summary embedded in the document."""
    return {
        "shapeType": design.shape_type.value,
        "gridWidth": design.grid_width,
        "gridHeight": design.grid_height,
        "cellCount": len(design.cells),
        "colorPalette": [rgb_to_hex(c) for c in design.palette],
        "pieceCounts": {rgb_to_hex(c): n for c, n in design.color_counts().items()},
        "fabricData": {
            "totalWidthMm": design.fabric.total_width_mm,
            "totalHeightMm": design.fabric.total_height_mm,
            "cellSizeMm": design.fabric.cell_size_mm,
            "seamAllowanceMm": design.fabric.seam_allowance_mm,
        },
    }


def triangle_points(rect: RectGeometry, row: int, col: int) -> "list[float]":
    """Flat point list for a triangle alternating up/down across the grid."""
    x, y, w, h = rect.x, rect.y, rect.width, rect.height
    if (row + col) % 2 == 0:
        corners = [(x + w / 2, y), (x + w, y + h), (x, y + h)]
    else:
        corners = [(x, y), (x + w, y), (x + w / 2, y + h)]
    return [_num(v) for point in corners for v in point]


def hexagon_points(rect: RectGeometry) -> "list[float]":
    """Flat point list for a hexagon inscribed in the cell."""
    cx = rect.x + rect.width / 2
    cy = rect.y + rect.height / 2
    radius = rect.width / 2
    points = []
    for i in range(6):
        angle = math.pi / 3 * i - math.pi / 6
        points.extend(
            (_num(cx + radius * math.cos(angle)), _num(cy + radius * math.sin(angle)))
        )
    return points


def _grid_attributes(cell: Cell) -> "dict[str, str]":
    stitch = cell.stitch
    attrs = {"data-id": cell.id}
    if stitch.grid_position is not None:
        attrs["data-row"] = str(stitch.grid_position.row)
        attrs["data-col"] = str(stitch.grid_position.col)
    attrs["data-size-mm"] = str(_num(stitch.size_mm))
    attrs["data-seam-mm"] = str(_num(stitch.seam_allowance_mm))
    attrs["data-edges"] = str(stitch.edges)
    attrs["data-neighbors"] = ",".join(stitch.neighbors)
    return attrs


def _grid_element(cell: Cell) -> svg.Element:
    rect = cell.geometry
    fill = rgb_to_css(cell.color)
    extra = _grid_attributes(cell)

    if cell.shape_type is ShapeType.TRIANGLE:
        pos = cell.stitch.grid_position
        row, col = (pos.row, pos.col) if pos is not None else (0, 0)
        return svg.Polygon(
            points=triangle_points(rect, row, col), fill=fill, extra=extra
        )
    if cell.shape_type is ShapeType.HEXAGON:
        return svg.Polygon(points=hexagon_points(rect), fill=fill, extra=extra)
    return svg.Rect(
        x=_num(rect.x),
        y=_num(rect.y),
        width=_num(rect.width),
        height=_num(rect.height),
        fill=fill,
        extra=extra,
    )


def _voronoi_element(cell: Cell, scale: float, border_width: float) -> svg.Path:
    geometry: PolygonGeometry = cell.geometry
    first, *rest = geometry.points
    d: "list[svg.PathData]" = [svg.M(_num(first[0] * scale), _num(first[1] * scale))]
    d.extend(svg.L(_num(x * scale), _num(y * scale)) for x, y in rest)
    d.append(svg.Z())

    extra = {
        "data-id": cell.id,
        "data-seed-x": f"{geometry.seed[0]:.1f}",
        "data-seed-y": f"{geometry.seed[1]:.1f}",
        "data-area": f"{geometry.area:.0f}",
        "data-edges": str(cell.stitch.edges),
    }
    if border_width > 0:
        return svg.Path(
            d=d,
            fill=rgb_to_css(cell.color),
            stroke=VORONOI_STROKE,
            stroke_width=_num(border_width * 0.5),
            stroke_linejoin="round",
            extra=extra,
        )
    return svg.Path(d=d, fill=rgb_to_css(cell.color), stroke="none", extra=extra)


def design_to_svg(design: Design) -> str:
    """Render a design as a standalone SVG document.

    Args:
        design: Grid or voronoi design

    Returns:
        SVG text with XML declaration. Always well-formed, including for a
        design without cells.
    """
    if design.shape_type is ShapeType.VORONOI:
        scale = VORONOI_OUTPUT_WIDTH / max(design.width, 1)
        doc_width = VORONOI_OUTPUT_WIDTH
        doc_height = _num(design.height * scale)
        elements: "list[svg.Element]" = [
            _voronoi_element(cell, scale, design.border_width) for cell in design.cells
        ]
    else:
        doc_width = design.width
        doc_height = design.height
        elements = [_grid_element(cell) for cell in design.cells]

    metadata = svg.Desc(
        text=json.dumps(design_metadata(design), separators=(",", ":")),
        extra={"id": METADATA_ID},
    )

    document = svg.SVG(
        width=doc_width,
        height=doc_height,
        viewBox=svg.ViewBoxSpec(0, 0, doc_width, doc_height),
        elements=[metadata, *elements],
        extra={
            "data-quilt-design": "true",
            "data-shape-type": design.shape_type.value,
            "data-grid-width": str(design.grid_width),
            "data-grid-height": str(design.grid_height),
            "data-cell-count": str(len(design.cells)),
        },
    )
    return XML_DECLARATION + document.as_str()


def extract_design_metadata(svg_text: str) -> dict | None:
    """Read the embedded metadata block back from an SVG document.

    Returns:
        The metadata dictionary, or None if the document has none

    Raises:
        ValueError: If the document is not well-formed or the block is not JSON
    """
    try:
        root = ET.fromstring(svg_text.encode("utf-8"))
    except ET.ParseError as e:
        raise ValueError(f"Invalid SVG document: {e}") from e

    for desc in root.iter(f"{{{SVG_NAMESPACE}}}desc"):
        if desc.get("id") == METADATA_ID:
            return json.loads(desc.text or "{}")
    return None
