"""Command-line entry point: coverage and optional read summary report."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path

from nanocov.coverage import run_coverage
from nanocov.cramino import generate_cramino_output
from nanocov.options import parse_args
from nanocov.readstats import extract_read_stats


def _index_path(bam_path: Path) -> Path:
    return bam_path.with_name(bam_path.stem + ".bam.bai")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the tool and return the process exit status."""
    options = parse_args(argv)
    bam_path = Path(options.input)
    bai_path = _index_path(bam_path)
    if not bai_path.exists():
        print(
            f'BAM index not found at "{bai_path}". '
            f"Please run 'samtools index \"{bam_path}\"' to create it.",
            file=sys.stderr,
        )
        return 1

    try:
        read_stats = extract_read_stats(bam_path)

        if options.cramino_output:
            report_path = options.cramino_output_path or bam_path.with_suffix(".cramino")
            print(f'Generating cramino-like output at "{report_path}"')
            generate_cramino_output(
                bam_path, report_path, read_stats, 0.0, options.genome_size or 0
            )

        run_coverage(options, read_stats)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0