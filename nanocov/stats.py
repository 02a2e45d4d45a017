"""Summary statistics over coverage values."""

from __future__ import annotations

import statistics
from collections.abc import Iterable, Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class CoverageStats:
    """Mean, median, extremes and sample standard deviation of coverage values."""

    mean: float = 0.0
    median: float = 0.0
    min: float = 0.0
    max: float = 0.0
    stddev: float = 0.0


def _summarize(values: list[float]) -> CoverageStats:
    if not values:
        return CoverageStats()
    values = sorted(values)
    return CoverageStats(
        mean=statistics.fmean(values),
        median=float(statistics.median(values)),
        min=float(values[0]),
        max=float(values[-1]),
        stddev=statistics.stdev(values) if len(values) > 1 else 0.0,
    )


def calculate_coverage_stats(points: Iterable[tuple[int, float]]) -> CoverageStats:
    """Statistics over the coverage values of binned (position, coverage) points."""
    return _summarize([float(y) for _, y in points])


def calculate_per_base_stats(coverage: Mapping[int, int]) -> CoverageStats:
    """Statistics over per-base coverage counts keyed by position."""
    return _summarize([float(v) for v in coverage.values()])


def calculate_chrom_stats(
    chrom_coverage: Mapping[int, int], region_start: int, region_end: int
) -> tuple[float, float, float]:
    """Return (mean, median, covered fraction) for a chromosome.

    The fraction counts covered positions within the inclusive region; the
    mean and median are taken over every covered position.
    """
    if region_end < region_start:
        raise ValueError("region end lies before region start")
    covered = sum(1 for pos in chrom_coverage if region_start <= pos <= region_end)
    region_size = region_end - region_start + 1
    stats = calculate_per_base_stats(chrom_coverage)
    return stats.mean, stats.median, covered / region_size