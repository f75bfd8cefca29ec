"""Grid tessellation: downsample an image into square fabric cells.

AIDEV-NOTE: Cells are forced square. Cell width in source pixels is
floor(image_width / grid_width) and the same value is used for the height,
so grid_height = floor(image_height / cell_width). This slightly distorts
the aspect ratio in favour of square fabric pieces; the fabric size math
relies on it, so keep it.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from models import (
    DISPLAY_CELL_SIZE,
    Cell,
    Design,
    FabricSummary,
    GridPosition,
    RectGeometry,
    ShapeType,
    StitchMeta,
)

from .utils import round_half_up

if TYPE_CHECKING:
    from models import Color


@dataclass(frozen=True)
class PixelGrid:
    """Averaged color per grid cell, row-major."""

    colors: "list[list[Color]]"
    cell_width: int  # source pixels per cell side
    cell_height: int

    @property
    def grid_width(self) -> int:
        return len(self.colors[0]) if self.colors else 0

    @property
    def grid_height(self) -> int:
        return len(self.colors)

    def flatten(self) -> "list[Color]":
        return [color for row in self.colors for color in row]


def pixelate_image(pixels: np.ndarray, grid_width: int) -> PixelGrid:
    """Average the image into a grid of ``grid_width`` square cells per row.

    Args:
        pixels: RGB array of shape (height, width, 3)
        grid_width: Number of columns, 1 <= grid_width <= image width

    Returns:
        PixelGrid with the rounded mean color of every cell. Rows that
        would fall partly outside the image are dropped.

    Raises:
        ValueError: If grid_width is not in [1, image width]
    """
    height, width = pixels.shape[:2]
    if grid_width < 1 or grid_width > width:
        raise ValueError(
            f"grid_width must be between 1 and the image width ({width}), got {grid_width}"
        )

    cell_width = width // grid_width
    cell_height = cell_width  # keep cells square
    grid_height = height // cell_width

    if grid_height == 0:
        return PixelGrid(colors=[], cell_width=cell_width, cell_height=cell_height)

    # AIDEV-NOTE: Crop to whole cells, then fold each cell into its own axes
    # so a single sum gives every cell total at once.
    cropped = pixels[: grid_height * cell_height, : grid_width * cell_width, :3]
    blocks = cropped.astype(np.int64).reshape(
        grid_height, cell_height, grid_width, cell_width, 3
    )
    means = blocks.sum(axis=(1, 3)) / float(cell_width * cell_height)
    averaged = round_half_up(means).astype(np.int64)

    colors = [
        [(int(r), int(g), int(b)) for r, g, b in row] for row in averaged
    ]
    return PixelGrid(colors=colors, cell_width=cell_width, cell_height=cell_height)


def grid_neighbors(row: int, col: int, grid_width: int, grid_height: int) -> "list[str]":
    """Ids of the edge-sharing neighbors in top, right, bottom, left order."""
    neighbors = []
    if row > 0:
        neighbors.append(cell_id(row - 1, col))
    if col < grid_width - 1:
        neighbors.append(cell_id(row, col + 1))
    if row < grid_height - 1:
        neighbors.append(cell_id(row + 1, col))
    if col > 0:
        neighbors.append(cell_id(row, col - 1))
    return neighbors


def cell_id(row: int, col: int) -> str:
    return f"shape-{row}-{col}"


def build_grid_design(
    quantized: "list[list[Color]]",
    palette: "list[Color]",
    shape_type: ShapeType,
    cell_size_mm: float,
    seam_allowance_mm: float,
    source_size: "tuple[int, int]" = (0, 0),
) -> Design:
    """Assemble a Design from a grid of palette colors.

    Args:
        quantized: Row-major palette colors, one per cell
        palette: The palette the colors were drawn from
        shape_type: pixel, triangle or hexagon
        cell_size_mm: Real-world size of one finished cell
        seam_allowance_mm: Seam allowance added around each piece
        source_size: (width, height) of the source image in pixels

    Returns:
        Design whose rectangles tile a grid_width x grid_height canvas of
        DISPLAY_CELL_SIZE pixel cells exactly
    """
    grid_height = len(quantized)
    grid_width = len(quantized[0]) if quantized else 0
    size = DISPLAY_CELL_SIZE

    cells = []
    for row in range(grid_height):
        for col in range(grid_width):
            cells.append(
                Cell(
                    id=cell_id(row, col),
                    shape_type=shape_type,
                    geometry=RectGeometry(
                        x=col * size, y=row * size, width=size, height=size
                    ),
                    color=quantized[row][col],
                    stitch=StitchMeta(
                        edges=shape_type.edge_count,
                        size_mm=cell_size_mm,
                        seam_allowance_mm=seam_allowance_mm,
                        neighbors=tuple(
                            grid_neighbors(row, col, grid_width, grid_height)
                        ),
                        grid_position=GridPosition(row=row, col=col),
                    ),
                )
            )

    return Design(
        width=grid_width * size,
        height=grid_height * size,
        grid_width=grid_width,
        grid_height=grid_height,
        cell_size=size,
        shape_type=shape_type,
        palette=tuple(palette),
        cells=tuple(cells),
        fabric=FabricSummary(
            total_width_mm=grid_width * cell_size_mm,
            total_height_mm=grid_height * cell_size_mm,
            cell_size_mm=cell_size_mm,
            seam_allowance_mm=seam_allowance_mm,
        ),
        source_width=source_size[0],
        source_height=source_size[1],
    )
