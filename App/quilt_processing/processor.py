"""Main quilt processor orchestrating the complete pipeline.

AIDEV-NOTE: This module handles the complete pipeline from source image
to quilt pattern. Two paths share the color quantizer:
- grid: pixelate -> quantize -> grid design (pixel/triangle/hexagon)
- voronoi: palette -> edges -> seeds -> relax -> voronoi design
Both end in the SVG serializer. Every call builds its own random source
from settings.random_seed, so nothing is shared between runs.
"""

import logging
import math
from pathlib import Path

import numpy as np
from PIL import Image

from errors import (
    InvalidInputError,
    InvalidSettingsError,
    PipelineStageError,
    QuiltPatternError,
)
from image_generation import ProviderRegistry, generate_base_image
from models import Design, QuiltResult, QuiltSettings, ShapeType

from .edges import detect_edges
from .grid import build_grid_design, pixelate_image
from .quantization import quantize_colors
from .relaxation import relax_seeds
from .seeds import generate_seeds
from .svg_writer import design_to_svg
from .utils import (
    decode_image_bytes,
    image_from_buffer,
    image_to_array,
    load_image,
    round_half_up,
)
from .voronoi import build_voronoi_design

logger = logging.getLogger(__name__)

# Voronoi palettes are quantized from a grid this many times denser
# (by cell count) than the seed count.
VORONOI_PALETTE_OVERSAMPLE = 4


class QuiltProcessor:
    """Turns images into quilt patterns for one set of settings."""

    def __init__(
        self,
        settings: QuiltSettings | None = None,
        registry: ProviderRegistry | None = None,
    ):
        self.settings = settings or QuiltSettings()
        # Without a registry, every provider lookup fails as unknown
        self.registry = registry if registry is not None else ProviderRegistry()

    def load_image(self, file_path: str | Path) -> Image.Image:
        """Load and validate an image file.

        Args:
            file_path: Path to image file (PNG, JPG, etc.)

        Returns:
            PIL Image in RGB mode

        Raises:
            InvalidInputError: If file cannot be loaded or is invalid
        """
        return load_image(file_path)

    def process_file(self, file_path: str | Path) -> QuiltResult:
        """Load an image file and run the pipeline on it."""
        self.settings.validate()
        logger.info("Loading image %s...", file_path)
        return self.process_image(self.load_image(file_path))

    def process_buffer(
        self, data: bytes, width: int, height: int, mode: str = "RGBA"
    ) -> QuiltResult:
        """Run the pipeline on a raw RGB/RGBA pixel buffer."""
        self.settings.validate()
        return self.process_image(image_from_buffer(data, width, height, mode))

    def process_prompt(self, prompt: str, provider: str) -> QuiltResult:
        """Generate a base image from a text prompt, then run the pipeline."""
        self.settings.validate()
        raw = generate_base_image(prompt, provider, self.registry)
        return self.process_image(decode_image_bytes(raw))

    def process_image(self, image: Image.Image) -> QuiltResult:
        """Execute the complete pipeline on a decoded image.

        Args:
            image: Source image; converted to RGB, alpha is ignored

        Returns:
            QuiltResult with the SVG document and the Design it renders

        Raises:
            InvalidInputError: For invalid settings or an unusable image,
                before any processing starts
            PipelineStageError: If a stage fails unexpectedly
        """
        settings = self.settings
        settings.validate()

        width, height = image.size
        if width < 1 or height < 1:
            raise InvalidInputError("image", f"image is empty ({width}x{height})")
        if settings.shape_type.is_grid and settings.grid_width > width:
            raise InvalidSettingsError(
                "grid_width",
                f"must not exceed the image width ({width}), got {settings.grid_width}",
            )

        logger.info(
            "Processing %dx%d image as %s pattern", width, height, settings.shape_type.value
        )
        pixels = image_to_array(image)
        rng = np.random.default_rng(settings.random_seed)

        if settings.shape_type is ShapeType.VORONOI:
            design = self.build_voronoi_design(pixels, rng)
        else:
            design = self.build_grid_design(pixels, rng)

        logger.info("Rendering SVG...")
        svg_text = self._run_stage("serialize", design_to_svg, design)

        logger.info(
            "Pattern complete: %d cells, %d colors", len(design.cells), len(design.palette)
        )
        return QuiltResult(svg=svg_text, design=design)

    def build_grid_design(self, pixels: np.ndarray, rng: np.random.Generator) -> Design:
        """Grid path: pixelate, quantize, then lay out pixel/triangle/hexagon cells."""
        settings = self.settings
        height, width = pixels.shape[:2]

        logger.info("Pixelating to %d columns...", settings.grid_width)
        grid = self._run_stage("pixelate", pixelate_image, pixels, settings.grid_width)
        logger.info("Grid size: %dx%d cells", grid.grid_width, grid.grid_height)

        logger.info("Quantizing colors...")
        result = self._run_stage(
            "quantize", quantize_colors, grid.flatten(), settings.num_colors, rng
        )
        logger.info("Palette has %d colors", len(result.palette))

        quantized = [[result.assignment[color] for color in row] for row in grid.colors]
        return self._run_stage(
            "design",
            build_grid_design,
            quantized,
            result.palette,
            settings.shape_type,
            settings.cell_size_mm,
            settings.seam_allowance_mm,
            (width, height),
        )

    def build_voronoi_design(
        self, pixels: np.ndarray, rng: np.random.Generator
    ) -> Design:
        """Voronoi path: palette, edge detection, seeding, relaxation, tessellation."""
        settings = self.settings
        height, width = pixels.shape[:2]

        logger.info("Quantizing colors...")
        palette = self._run_stage("quantize", self._voronoi_palette, pixels, rng)
        logger.info("Palette has %d colors", len(palette))

        edge_data = None
        if settings.edge_weighted:
            logger.info("Detecting edges...")
            edge_data = self._run_stage("edges", detect_edges, pixels)

        logger.info("Placing %d seeds...", settings.num_seeds)
        seeds = self._run_stage(
            "seeds",
            generate_seeds,
            width,
            height,
            settings.num_seeds,
            edge_data,
            settings.edge_weighted,
            rng,
        )

        if settings.relaxation_iterations > 0:
            logger.info(
                "Relaxing seeds (%d iterations)...", settings.relaxation_iterations
            )
        seeds = self._run_stage(
            "relax", relax_seeds, seeds, width, height, settings.relaxation_iterations
        )

        logger.info("Building voronoi tessellation...")
        return self._run_stage(
            "voronoi",
            build_voronoi_design,
            seeds,
            pixels,
            palette,
            settings.num_seeds,
            settings.cell_size_mm,
            settings.seam_allowance_mm,
            settings.border_width,
        )

    def _voronoi_palette(self, pixels: np.ndarray, rng: np.random.Generator):
        height, width = pixels.shape[:2]
        columns = min(
            math.ceil(math.sqrt(self.settings.num_seeds * VORONOI_PALETTE_OVERSAMPLE)),
            width,
        )
        colors = pixelate_image(pixels, columns).flatten()
        if not colors:
            # Image too flat for a single row of square cells
            r, g, b = round_half_up(pixels[..., :3].reshape(-1, 3).mean(axis=0))
            colors = [(int(r), int(g), int(b))]
        return quantize_colors(colors, self.settings.num_colors, rng).palette

    @staticmethod
    def _run_stage(stage: str, func, *args):
        try:
            return func(*args)
        except QuiltPatternError:
            raise
        except Exception as e:
            logger.error("Stage '%s' failed: %s", stage, e)
            raise PipelineStageError(stage, str(e)) from e


def generate_quilt(
    image: Image.Image, settings: QuiltSettings | None = None
) -> QuiltResult:
    """Convenience wrapper: run one pipeline pass over ``image``."""
    return QuiltProcessor(settings).process_image(image)
