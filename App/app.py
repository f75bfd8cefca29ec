"""Quilt pattern generator - command-line entry point."""

import argparse
import json
import logging
import sys
from pathlib import Path

from config_manager import ConfigManager
from errors import InvalidInputError, QuiltPatternError
from models import CONFIG_FILE, QuiltSettings, ShapeType
from quilt_processing import QuiltProcessor

logger = logging.getLogger(__name__)

# Command-line option -> QuiltSettings field
_OVERRIDES = {
    "shape": "shape_type",
    "grid_width": "grid_width",
    "colors": "num_colors",
    "cell_size_mm": "cell_size_mm",
    "seam_mm": "seam_allowance_mm",
    "seeds": "num_seeds",
    "relax": "relaxation_iterations",
    "border_width": "border_width",
    "seed": "random_seed",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quilt-pattern",
        description="Convert an image into a quilt pattern SVG.",
    )
    parser.add_argument("input", help="Source image path (PNG, JPG, ...)")
    parser.add_argument(
        "-o", "--output", default=None, help="Output SVG path (default: INPUT.svg)"
    )
    parser.add_argument(
        "--design-json", default=None, help="Also write the design record as JSON"
    )
    parser.add_argument(
        "--shape",
        choices=[s.value for s in ShapeType],
        default=None,
        help="Cell shape",
    )
    parser.add_argument("--grid-width", type=int, default=None, help="Grid columns")
    parser.add_argument("--colors", type=int, default=None, help="Palette size")
    parser.add_argument(
        "--cell-size-mm", type=float, default=None, help="Finished cell size in mm"
    )
    parser.add_argument("--seam-mm", type=float, default=None, help="Seam allowance in mm")
    parser.add_argument("--seeds", type=int, default=None, help="Voronoi seed count")
    parser.add_argument(
        "--relax", type=int, default=None, help="Lloyd relaxation iterations"
    )
    parser.add_argument(
        "--no-edge-weighting",
        action="store_true",
        help="Place voronoi seeds uniformly instead of along edges",
    )
    parser.add_argument(
        "--border-width", type=float, default=None, help="Voronoi border stroke width"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Settings JSON file (default: {CONFIG_FILE} if present)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def resolve_settings(args: argparse.Namespace) -> QuiltSettings:
    """Settings from the config file, overridden by command-line options."""
    settings = ConfigManager(args.config or CONFIG_FILE).load()
    overrides = {
        field: getattr(args, option)
        for option, field in _OVERRIDES.items()
        if getattr(args, option) is not None
    }
    if args.no_edge_weighting:
        overrides["edge_weighted"] = False

    data = settings.to_dict()
    data.update(overrides)
    return QuiltSettings.from_dict(data)


def main(argv: "list[str] | None" = None) -> int:
    """Run the generator.

    Returns:
        0 on success, 2 for input errors, 1 for other failures
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    input_path = Path(args.input)
    output_path = Path(args.output) if args.output else input_path.with_suffix(".svg")

    try:
        settings = resolve_settings(args)
        result = QuiltProcessor(settings).process_file(input_path)
    except InvalidInputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except QuiltPatternError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        output_path.write_text(result.svg, encoding="utf-8")
        if args.design_json:
            with open(args.design_json, "w") as f:
                json.dump(result.design.to_dict(), f, indent=2)
    except OSError as e:
        print(f"Error: could not write output: {e}", file=sys.stderr)
        return 1

    logger.info("Wrote %s (%d pieces)", output_path, len(result.design.cells))
    return 0


if __name__ == "__main__":
    sys.exit(main())
