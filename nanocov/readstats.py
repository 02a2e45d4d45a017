"""Read length and quality statistics."""

from __future__ import annotations

import os
import statistics
from collections.abc import Iterable
from dataclasses import dataclass
from itertools import accumulate

from nanocov.bam import BamReader


@dataclass
class ReadStats:
    """Length and quality summary of a set of reads.

    ``lengths`` holds every read length, sorted longest first.
    """

    n50: int
    mean_len: float
    median_len: float
    mean_qual: float
    median_qual: float
    num_reads: int
    num_bases: int
    lengths: list[int] | None = None


def _n50(ordered: list[int], total: int) -> int:
    threshold = total // 2
    return next((length for length, acc in zip(ordered, accumulate(ordered)) if acc >= threshold), 0)


def summarize_reads(lengths: Iterable[int], qualities: Iterable[float]) -> ReadStats:
    """Summarize read lengths and per-read mean qualities.

    An empty input gives zeros throughout.
    """
    ordered = sorted(lengths, reverse=True)
    quals = list(qualities)
    total = sum(ordered)
    return ReadStats(
        n50=_n50(ordered, total),
        mean_len=total / len(ordered) if ordered else 0.0,
        median_len=float(statistics.median(ordered)) if ordered else 0.0,
        mean_qual=statistics.fmean(quals) if quals else 0.0,
        median_qual=float(statistics.median(quals)) if quals else 0.0,
        num_reads=len(ordered),
        num_bases=total,
        lengths=ordered,
    )


def extract_read_stats(bam_path: str | os.PathLike[str]) -> ReadStats:
    """Read every record of a BAM file and summarize lengths and qualities.

    Reads without quality scores do not contribute to the quality figures.
    """
    lengths: list[int] = []
    qualities: list[float] = []
    with BamReader(bam_path) as reader:
        for record in reader.records():
            lengths.append(len(record.sequence))
            if record.quality_scores:
                qualities.append(sum(record.quality_scores) / len(record.quality_scores))
    return summarize_reads(lengths, qualities)