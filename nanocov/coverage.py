"""Per-base coverage counting, TSV output and plotting for a whole run."""

from __future__ import annotations

import os
import sys
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from nanocov.bam import BamReader
from nanocov.bed import parse_bed
from nanocov.coverage_plot import current_theme, plot_per_base_coverage_with_range, set_theme
from nanocov.multi_chrom import plot_all_chromosomes
from nanocov.options import Options
from nanocov.readstats import ReadStats

Coverage = dict[str, dict[int, int]]
Regions = Mapping[str, list[tuple[int, int]]]


def count_region_coverage(
    bam_path: str | os.PathLike[str], chrom: str, start: int, end: int
) -> tuple[Coverage, dict[str, float]]:
    """Count coverage from mapped records overlapping a BED-style region.

    *start* is 0-based and *end* inclusive in 1-based terms. Each record adds
    one count per CIGAR operation, from its 1-based alignment start. Returns
    the counts per reference and the mean count per reference.
    """
    coverage: Coverage = {}
    with BamReader(bam_path) as reader:
        names = [ref.name for ref in reader.header.reference_sequences]
        for record in reader.query(chrom, start + 1, end):
            ref_id = record.reference_sequence_id
            if record.is_unmapped or ref_id is None or record.position is None:
                continue
            name = names[ref_id] if ref_id < len(names) else "unknown"
            counts = coverage.setdefault(name, {})
            for pos in range(record.position, record.position + len(record.cigar)):
                counts[pos] = counts.get(pos, 0) + 1
    averages = {
        name: sum(counts.values()) / len(counts) for name, counts in coverage.items() if counts
    }
    return coverage, averages


def merge_coverage(
    results: Iterable[tuple[Mapping[str, Mapping[int, int]], Mapping[str, float]]],
) -> tuple[Coverage, list[float]]:
    """Sum coverage counts over jobs and collect every job's per-reference averages."""
    merged: Coverage = {}
    averages: list[float] = []
    for coverage, job_averages in results:
        for name, counts in coverage.items():
            entry = merged.setdefault(name, {})
            for pos, count in counts.items():
                entry[pos] = entry.get(pos, 0) + count
        averages.extend(job_averages.values())
    return merged, averages


def write_coverage_tsv(
    coverage: Mapping[str, Mapping[int, int]], output: str | os.PathLike[str]
) -> None:
    """Write coverage as chromosome, position and count, sorted by name then position."""
    with open(output, "w", encoding="utf-8") as handle:
        handle.write("#chromosome\tposition\tcount\n")
        for name in sorted(coverage):
            counts = coverage[name]
            handle.writelines(f"{name}\t{pos}\t{counts[pos]}\n" for pos in sorted(counts))


def _span(regions: list[tuple[int, int]]) -> tuple[int, int]:
    return min(s for s, _ in regions), max(e for _, e in regions)


def plot_range(
    chrom: str,
    coverage: Mapping[int, int],
    bed_regions: Regions | None,
    chrom_bed_regions: Regions | None,
) -> tuple[int, int]:
    """Range to plot for *chrom*: chromosome BED, then region BED, then covered span.

    A BED file that does not name the chromosome gives (0, 0).
    """
    for regions in (chrom_bed_regions, bed_regions):
        if regions is not None:
            spans = regions.get(chrom)
            return _span(spans) if spans else (0, 0)
    if not coverage:
        return 0, 0
    return min(coverage), max(coverage)


def run_coverage(options: Options, read_stats: ReadStats | None) -> None:
    """Compute coverage for the BAM file in *options*, write the TSV and draw plots."""
    with BamReader(options.input) as reader:
        references = reader.header.reference_sequences

    bed_regions = parse_bed(options.bed) if options.bed is not None else None
    chrom_bed_regions = parse_bed(options.chrom_bed) if options.chrom_bed is not None else None

    selected = bed_regions if bed_regions is not None else chrom_bed_regions
    if selected is not None:
        jobs = [(chrom, s, e) for chrom, spans in selected.items() for s, e in spans]
    else:
        jobs = [(ref.name, 0, ref.length) for ref in references]

    with ThreadPoolExecutor(max_workers=options.threads or None) as pool:
        results = list(
            pool.map(lambda job: count_region_coverage(options.input, *job), jobs)
        )
    coverage, averages = merge_coverage(results)

    write_coverage_tsv(coverage, options.output)

    output = Path(options.output)
    stem = output.stem
    out_dir = output.parent

    if averages:
        chrom_coverages: Coverage = {}
        file_format = "svg" if options.svg_output else "png"
        for name in sorted(coverage):
            counts = coverage[name]
            if counts:
                avg = sum(counts.values()) / len(counts)
                print(f"{name} average coverage: {avg:.2f}")
                chrom_coverages[name] = counts
            plot_path = out_dir / f"{stem}.{name}.{file_format}"
            start, end = plot_range(name, counts, bed_regions, chrom_bed_regions)
            if options.theme is not None:
                set_theme(options.theme)
            plot_per_base_coverage_with_range(
                name, counts, plot_path, start, end, read_stats, options.show_zero_regions
            )
        print(f"Global average coverage: {sum(averages) / len(averages):.2f}")

        if len(chrom_coverages) > 1 and not options.skip_plotting and not options.skip_multi_plot:
            plot_path = out_dir / f"{stem}.multi_chrom.png"
            plot_all_chromosomes(
                chrom_coverages, plot_path, options.log_scale, read_stats, current_theme()
            )
            scale = "log scale" if options.log_scale else "linear scale"
            print(f"Generated multi-chromosome plot ({scale}): {plot_path}")
    else:
        print("No coverage data found.")

    names = ", ".join(f'"{name}"' for name in coverage)
    print(f"[DEBUG] Chromosomes in coverage: [{names}]", file=sys.stderr)
    for name, counts in coverage.items():
        print(f"[DEBUG] {name}: {len(counts)} positions", file=sys.stderr)