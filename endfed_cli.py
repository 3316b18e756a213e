"""
Command-line front end.

Examples:
    endfed-lengths 40 20 15 10
    endfed-lengths 80 30 40 metric
    endfed-lengths 40 20 15 10 cw --output lengths.html
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import pandas as pd

from band_table import CW_FLAG, METRIC_FLAG, known_bands, parse_band_args
from endfed_chart import render
from endfed_lengths import ChartLayout, build_plot_spec, compute_chart_layout, regions_table
from logging_config import setup_logging

logger = logging.getLogger(__name__)

EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="endfed-lengths",
        description="Chart end-fed wire lengths with high feedpoint impedance for UK amateur bands.",
    )
    parser.add_argument(
        "args",
        nargs="+",
        metavar="BAND|FLAG",
        help=(
            f"Band numbers in meters ({' '.join(str(b) for b in known_bands())}); "
            f"add '{CW_FLAG}' for CW sub-bands and '{METRIC_FLAG}' for meters. "
            "Numbers outside the table are skipped with a warning; other words are an error."
        ),
    )
    parser.add_argument("-o", "--output", help="Write the chart to this HTML file instead of opening it.")
    parser.add_argument("--no-show", action="store_true", help="Only print the table; do not open the chart.")
    parser.add_argument("--debug", action="store_true", help="Verbose logging.")
    return parser


def format_summary(layout: ChartLayout) -> str:
    unit = layout.dist_unit.value
    lines = [
        layout.title,
        f"Axis: {layout.x_range[0]:.2f} - {layout.x_range[1]:.2f} {unit}",
        "Ticks: " + " ".join(f"{t:g}" for t in layout.ticks),
        "",
        pd.DataFrame(regions_table(layout)).to_string(index=False),
    ]
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    opts = parser.parse_args(argv)
    setup_logging(console=True, debug=bool(opts.debug))

    try:
        bands, use_cw, dist_unit = parse_band_args(opts.args)
        spec = build_plot_spec(bands, use_cw=use_cw, dist_unit=dist_unit)
        layout = compute_chart_layout(spec)
    except ValueError as exc:
        logger.error(str(exc))
        return EXIT_USAGE

    print(format_summary(layout))
    if opts.output or not opts.no_show:
        render(layout, output=opts.output, show=not opts.no_show)
    return 0


if __name__ == "__main__":
    sys.exit(main())
