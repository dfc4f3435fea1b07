"""
Command-line export of a pre-rendered quotation.

Usage:
    quote-export pdf quote.png regions.json --customer "ACME Ltd"
    quote-export long quote.png regions.json --template noir
    quote-export image quote.png regions.json -o out/quote.png
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from quote_toolkit import __version__
from quote_toolkit.exporter import (
    ExportError,
    ExportJob,
    ExportMode,
    ExportOptions,
    background_for_template,
    default_filename,
    export_document,
)
from quote_toolkit.exporter.config import THEME_BACKGROUNDS
from quote_toolkit.exporter.rendering import (
    CompositeRenderBackend,
    ParseError,
    load_render_target,
)

logger = logging.getLogger("quote_toolkit")

MODES = {
    "image": ExportMode.IMAGE,
    "long": ExportMode.LONG_PAGE,
    "pdf": ExportMode.PAGINATED,
}


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="quote-export",
        description="Export a rendered quotation as PNG, long-page PDF or paginated A4 PDF",
    )
    parser.add_argument("mode", choices=sorted(MODES), help="Output kind")
    parser.add_argument("composite", type=Path, help="Rendered quotation image")
    parser.add_argument("regions", type=Path, help="regions.json with named region offsets")
    parser.add_argument("-o", "--output", type=Path, help="Output file (default: derived from --customer)")
    parser.add_argument("--customer", default="", help="Customer name used in the default filename")

    colours = parser.add_mutually_exclusive_group()
    colours.add_argument("--template", choices=sorted(THEME_BACKGROUNDS), help="Quotation template (sets background)")
    colours.add_argument("--background", help="Background colour, e.g. #ffffff")

    parser.add_argument("--scale", type=float, help="Raster oversampling factor (default depends on mode)")
    parser.add_argument("--timeout", type=float, help="Seconds to wait for rendering")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the command line.

    Returns:
        Process exit status (0 on success, 1 on failure)
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    mode = MODES[args.mode]
    if args.background:
        background = args.background
    else:
        background = background_for_template(args.template or "classic")

    output_path = args.output or Path(default_filename(mode, args.customer))

    try:
        job = ExportJob.for_mode(mode, scale=args.scale, background_color=background)
        options = ExportOptions(render_timeout=args.timeout)
    except ValueError as e:
        logger.error(f"Invalid option: {e}")
        return 1

    try:
        target = load_render_target(args.composite, args.regions)
        result = export_document(
            job,
            target,
            CompositeRenderBackend(),
            output_path,
            options=options,
        )
    except (ParseError, ExportError) as e:
        logger.error(f"Export failed: {e}")
        return 1

    for warning in result.warnings:
        logger.warning(warning)
    logger.info(f"Saved {result.output_path} ({result.page_count} page(s))")
    return 0


if __name__ == "__main__":
    sys.exit(main())
