"""Command-line options for the coverage tool."""

from __future__ import annotations

import argparse
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

_UNSIGNED = re.compile(r"\+?[0-9]+")


@dataclass
class Options:
    """Settings for one coverage run."""

    input: Path
    bed: Path | None = None
    chrom_bed: Path | None = None
    threads: int | None = None
    output: Path = Path("coverage.tsv")
    chunk_size: int = 10_000
    svg_output: bool = False
    theme: str | None = None
    show_zero_regions: bool = False
    skip_plotting: bool = False
    skip_multi_plot: bool = False
    log_scale: bool = False
    cramino_output: bool = False
    cramino_output_path: Path | None = None
    genome_size: int | None = None


def _unsigned(text: str) -> int:
    if not _UNSIGNED.fullmatch(text):
        raise argparse.ArgumentTypeError(f"invalid unsigned integer: {text!r}")
    return int(text)


def build_parser() -> argparse.ArgumentParser:
    """The argument parser for the command line."""
    parser = argparse.ArgumentParser(
        prog="bam-coverage",
        description="Calculates per-base coverage from a BAM file",
    )
    parser.add_argument("-i", "--input", dest="input", type=Path, required=True,
                        help="Input BAM file")
    parser.add_argument("-b", "--bed", dest="bed", type=Path,
                        help="BED file with regions to include (chrom, start, end)")
    parser.add_argument("--chrom-bed", dest="chrom_bed", type=Path,
                        help="BED file with full chromosome ranges")
    parser.add_argument("-t", "--threads", dest="threads", type=_unsigned,
                        help="Number of threads to use")
    parser.add_argument("-o", "--output", dest="output", type=Path,
                        default=Path("coverage.tsv"),
                        help="Output file path (default: coverage.tsv)")
    parser.add_argument("-c", "--chunk-size", dest="chunk_size", type=_unsigned,
                        default=10_000,
                        help="Chunk size for parallel processing (default: 10,000)")
    parser.add_argument("--svg", dest="svg_output", action="store_true",
                        help="Use SVG output format for plots instead of PNG")
    parser.add_argument("--theme", dest="theme",
                        help="Color theme for plots [latte, frappe, nord, gruvbox]")
    parser.add_argument("--show-zeros", dest="show_zero_regions", action="store_true",
                        help="Show regions with zero coverage in plots")
    parser.add_argument("--no-plot", dest="skip_plotting", action="store_true",
                        help="Skip plotting (generate only TSV output)")
    parser.add_argument("--no-multi-plot", dest="skip_multi_plot", action="store_true",
                        help="Skip multi-chromosome summary plot")
    parser.add_argument("--log-scale", dest="log_scale", action="store_true",
                        help="Use logarithmic scale for the multi-chromosome plot")
    parser.add_argument("--cramino", dest="cramino_output", action="store_true",
                        help="Generate cramino-like output (in addition to regular output)")
    parser.add_argument("--cramino-output", dest="cramino_output_path", type=Path,
                        help="Path for cramino-like output file")
    parser.add_argument("--genome-size", dest="genome_size", type=_unsigned,
                        help="Genome size in base pairs")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> Options:
    """Parse command-line arguments; invalid arguments exit with status 2."""
    namespace = build_parser().parse_args(argv)
    return Options(**vars(namespace))