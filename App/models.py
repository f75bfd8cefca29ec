"""Data models and constants for the quilt pattern generator."""

import math
from collections import Counter
from dataclasses import asdict, dataclass, fields
from enum import Enum
from pathlib import Path

from errors import InvalidSettingsError

# AIDEV-NOTE: Display scale for grid designs. Downstream fabric math assumes
# square cells, so width and height share this size.
DISPLAY_CELL_SIZE = 20  # pixels per grid cell in the vector document
VORONOI_OUTPUT_WIDTH = 600  # fixed vector document width for voronoi designs
VORONOI_FABRIC_SPAN_MM = 1000  # longer image side maps to this many mm

DEFAULT_CELL_SIZE_MM = 25.0  # 1 inch
DEFAULT_SEAM_ALLOWANCE_MM = 6.35  # 1/4 inch

# Configuration file path
CONFIG_FILE = Path.home() / ".quiltpattern_config.json"

Color = tuple[int, int, int]
Point = tuple[float, float]


def rgb_to_hex(color: Color) -> str:
    """Convert an RGB tuple to ``#rrggbb``."""
    r, g, b = color
    return f"#{r:02x}{g:02x}{b:02x}"


class ShapeType(Enum):
    """Cell shapes a design can be emitted with.

    AIDEV-NOTE: pixel/triangle/hexagon all come from the grid tessellator and
    only differ in the emitted primitive. Voronoi has its own pipeline.
    """

    PIXEL = "pixel"
    TRIANGLE = "triangle"
    HEXAGON = "hexagon"
    VORONOI = "voronoi"

    @property
    def is_grid(self) -> bool:
        return self is not ShapeType.VORONOI

    @property
    def edge_count(self) -> int:
        """Edges per piece for grid shapes (voronoi cells vary per cell)."""
        return {ShapeType.PIXEL: 4, ShapeType.TRIANGLE: 3, ShapeType.HEXAGON: 6}.get(
            self, 0
        )


# --- Geometry payloads ---


@dataclass(frozen=True)
class RectGeometry:
    """Axis-aligned cell rectangle in canvas pixels."""

    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class PolygonGeometry:
    """Clipped voronoi cell polygon in canvas pixels.

    AIDEV-NOTE: Vertices are ordered by angle around the seed, so every
    polygon is convex and wound the same way.
    """

    points: "tuple[Point, ...]"
    seed: Point
    area: float


@dataclass(frozen=True)
class GridPosition:
    row: int
    col: int


@dataclass(frozen=True)
class StitchMeta:
    """Per-cell fabrication data."""

    edges: int
    size_mm: float
    seam_allowance_mm: float
    neighbors: "tuple[str, ...]" = ()
    grid_position: GridPosition | None = None
    angle: float = 0.0  # stitch direction in degrees, straight for all shapes


@dataclass(frozen=True)
class Cell:
    """One fabric piece: geometry plus a single palette color."""

    id: str
    shape_type: ShapeType
    geometry: RectGeometry | PolygonGeometry
    color: Color
    stitch: StitchMeta


@dataclass(frozen=True)
class FabricSummary:
    total_width_mm: float
    total_height_mm: float
    cell_size_mm: float
    seam_allowance_mm: float


@dataclass(frozen=True)
class Design:
    """Immutable result of one pipeline run.

    AIDEV-NOTE: Regenerating with other settings builds a new Design.
    Nothing downstream (serializer, CLI) writes back into it.
    """

    width: int  # canvas width in pixels
    height: int  # canvas height in pixels
    grid_width: int
    grid_height: int
    cell_size: int  # display pixels per grid cell
    shape_type: ShapeType
    palette: "tuple[Color, ...]"
    cells: "tuple[Cell, ...]"
    fabric: FabricSummary
    source_width: int = 0
    source_height: int = 0
    border_width: float = 0.0

    def color_counts(self) -> "dict[Color, int]":
        """Number of pieces per palette color, in palette order."""
        counts = Counter(cell.color for cell in self.cells)
        return {color: counts.get(color, 0) for color in self.palette}

    def to_dict(self) -> dict:
        """Plain JSON-friendly record of the design."""
        cells = []
        for cell in self.cells:
            if isinstance(cell.geometry, RectGeometry):
                geometry = asdict(cell.geometry)
            else:
                geometry = {
                    "points": [list(p) for p in cell.geometry.points],
                    "seed": list(cell.geometry.seed),
                    "area": cell.geometry.area,
                }
            stitch = asdict(cell.stitch)
            stitch["neighbors"] = list(cell.stitch.neighbors)
            cells.append(
                {
                    "id": cell.id,
                    "type": cell.shape_type.value,
                    "geometry": geometry,
                    "color": rgb_to_hex(cell.color),
                    "stitch": stitch,
                }
            )

        return {
            "width": self.width,
            "height": self.height,
            "gridWidth": self.grid_width,
            "gridHeight": self.grid_height,
            "cellSize": self.cell_size,
            "shapeType": self.shape_type.value,
            "colorPalette": [rgb_to_hex(c) for c in self.palette],
            "pieceCounts": {
                rgb_to_hex(c): n for c, n in self.color_counts().items()
            },
            "fabricData": asdict(self.fabric),
            "sourceSize": {"width": self.source_width, "height": self.source_height},
            "shapes": cells,
        }


# --- Settings ---

# AIDEV-NOTE: Accept the camelCase keys used by the web front end as well as
# our own snake_case names when loading settings dictionaries.
_SETTINGS_ALIASES = {
    "shapeType": "shape_type",
    "gridWidth": "grid_width",
    "numColors": "num_colors",
    "cellSizeMm": "cell_size_mm",
    "seamAllowanceMm": "seam_allowance_mm",
    "numSeeds": "num_seeds",
    "relaxationIterations": "relaxation_iterations",
    "edgeWeighted": "edge_weighted",
    "borderWidth": "border_width",
    "randomSeed": "random_seed",
}


@dataclass
class QuiltSettings:
    """User settings for one pipeline run."""

    shape_type: ShapeType = ShapeType.PIXEL

    # Grid path
    grid_width: int = 30  # number of columns
    num_colors: int = 6  # palette size (2-10 typical, up to 32)

    # Fabrication scale
    cell_size_mm: float = DEFAULT_CELL_SIZE_MM
    seam_allowance_mm: float = DEFAULT_SEAM_ALLOWANCE_MM

    # Voronoi path
    num_seeds: int = 100  # documented practical range 20-500
    relaxation_iterations: int = 3  # 0-10
    edge_weighted: bool = True
    border_width: float = 1.0  # stroke width, 0 = no border

    # Seed for the injected random source, None = fresh entropy
    random_seed: int | None = None

    def validate(self) -> None:
        """Reject settings before any processing begins.

        Raises:
            InvalidSettingsError: naming the offending field
        """
        if not isinstance(self.shape_type, ShapeType):
            raise InvalidSettingsError(
                "shape_type", f"must be one of {[s.value for s in ShapeType]}"
            )
        _require_int(self.grid_width, "grid_width", minimum=1)
        _require_int(self.num_colors, "num_colors", minimum=1)
        _require_positive(self.cell_size_mm, "cell_size_mm")
        _require_positive(self.seam_allowance_mm, "seam_allowance_mm")
        _require_int(self.num_seeds, "num_seeds", minimum=1)
        _require_int(self.relaxation_iterations, "relaxation_iterations", minimum=0)
        if not isinstance(self.edge_weighted, bool):
            raise InvalidSettingsError("edge_weighted", "must be a boolean")
        if (
            isinstance(self.border_width, bool)
            or not isinstance(self.border_width, (int, float))
            or not math.isfinite(self.border_width)
            or self.border_width < 0
        ):
            raise InvalidSettingsError(
                "border_width", f"must be >= 0, got {self.border_width!r}"
            )
        if self.random_seed is not None:
            _require_int(self.random_seed, "random_seed", minimum=0)

    @classmethod
    def from_dict(cls, data: dict) -> "QuiltSettings":
        """Build settings from a dictionary, ignoring unknown keys.

        Raises:
            InvalidSettingsError: if shape_type is not a known shape
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            name = _SETTINGS_ALIASES.get(key, key)
            if name in known:
                values[name] = value

        shape = values.get("shape_type")
        if shape is not None and not isinstance(shape, ShapeType):
            try:
                values["shape_type"] = ShapeType(str(shape).lower())
            except ValueError as e:
                raise InvalidSettingsError(
                    "shape_type", f"unknown shape {shape!r}"
                ) from e
        return cls(**values)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["shape_type"] = self.shape_type.value
        return data


def _require_int(value, name: str, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidSettingsError(name, f"must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidSettingsError(name, f"must be >= {minimum}, got {value}")


def _require_positive(value, name: str) -> None:
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not math.isfinite(value)
        or value <= 0
    ):
        raise InvalidSettingsError(name, f"must be a positive number, got {value!r}")


@dataclass(frozen=True)
class QuiltResult:
    """Vector document plus the structured design it was rendered from."""

    svg: str
    design: Design
