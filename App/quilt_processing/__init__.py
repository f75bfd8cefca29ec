"""Image processing pipeline for image-to-quilt-pattern conversion.

AIDEV-NOTE: This package handles the complete pipeline from a source image
to a quilt pattern. Organized into modular components:
- processor: Main QuiltProcessor orchestrator
- color: RGB distance and nearest-color lookup
- quantization: k-means++ palette reduction
- grid: Grid tessellation and grid designs
- edges: Sobel / non-max suppression / hysteresis edge detection
- seeds: Edge-weighted voronoi seed placement
- relaxation: Lloyd relaxation
- voronoi: Bowyer-Watson triangulation and voronoi cells
- svg_writer: SVG serialization and metadata extraction
- utils: Image decoding, numeric and polygon helpers
"""

from .processor import QuiltProcessor, generate_quilt
from .svg_writer import design_to_svg, extract_design_metadata

__all__ = [
    "QuiltProcessor",
    "design_to_svg",
    "extract_design_metadata",
    "generate_quilt",
]
