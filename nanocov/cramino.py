"""Summary reports of read and alignment statistics in a tab-separated layout."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from itertools import accumulate
from pathlib import Path

from nanocov.bam import BamReader
from nanocov.readstats import ReadStats, summarize_reads

_FALLBACK_TIME = "01/01/2000 00:00:00"
_LONG_READ = 25_000
_GIGABASE = 1_000_000_000.0


def _creation_time(path: Path) -> str:
    """Modification time of *path* in UTC as dd/mm/yyyy hh:mm:ss."""
    try:
        mtime = path.stat().st_mtime
    except OSError:
        return _FALLBACK_TIME
    if mtime < 0:
        return _FALLBACK_TIME
    try:
        moment = datetime.fromtimestamp(int(mtime), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        moment = datetime.fromtimestamp(0, tz=timezone.utc)
    return moment.strftime("%d/%m/%Y %H:%M:%S")


def _n75(lengths: list[int] | None) -> int:
    """Length at which the running total of *lengths* reaches three quarters."""
    if not lengths:
        return 0
    threshold = sum(lengths) * 3 // 4
    return next(
        (length for length, acc in zip(lengths, accumulate(lengths)) if acc >= threshold),
        0,
    )


def _long_read_bases(lengths: list[int] | None) -> int:
    return sum(length for length in lengths or () if length > _LONG_READ)


@dataclass
class CraminoOutput:
    """The fields of one summary report."""

    file_name: str
    path: Path
    creation_time: str
    num_alignments: int = 0
    percent_from_total: float = 0.0
    num_reads: int = 0
    yield_gb: float = 0.0
    mean_coverage: float = 0.0
    yield_gb_greater_than_25kb: float = 0.0
    n50: int = 0
    n75: int = 0
    median_length: float = 0.0
    mean_length: float = 0.0

    @classmethod
    def new_empty(cls, path: str | os.PathLike[str]) -> CraminoOutput:
        """A report for *path* with every count and statistic zero."""
        path = Path(path)
        return cls(file_name=path.name, path=path, creation_time=_creation_time(path))

    @classmethod
    def from_read_stats(
        cls,
        path: str | os.PathLike[str],
        read_stats: ReadStats,
        total_coverage: float,
        genome_size: int,
    ) -> CraminoOutput:
        """Build a report from read statistics.

        ``read_stats.lengths`` is taken to be sorted longest first. The mean
        coverage is bases per genome base when *genome_size* is positive,
        otherwise *total_coverage*.
        """
        result = cls.new_empty(path)
        total_bases = read_stats.num_bases
        result.num_alignments = read_stats.num_reads
        result.percent_from_total = 100.0
        result.num_reads = read_stats.num_reads
        result.yield_gb = total_bases / _GIGABASE
        result.mean_coverage = (
            total_bases / genome_size if genome_size > 0 else total_coverage
        )
        result.yield_gb_greater_than_25kb = _long_read_bases(read_stats.lengths) / _GIGABASE
        result.n50 = read_stats.n50
        result.n75 = _n75(read_stats.lengths)
        result.median_length = read_stats.median_len
        result.mean_length = read_stats.mean_len
        return result

    def format(self) -> str:
        """Render the report as tab-separated lines."""
        lines = [
            f"File name\t{self.file_name}",
            f"Number of alignments\t{self.num_alignments}",
            f"% from total alignments\t{self.percent_from_total:.2f}",
            f"Number of reads\t{self.num_reads}",
            f"Yield [Gb]\t{self.yield_gb:.2f}",
            f"Mean coverage\t{self.mean_coverage:.2f}",
            f"Yield [Gb] (>25kb)\t{self.yield_gb_greater_than_25kb:.2f}",
            f"N50\t{self.n50}",
            f"N75\t{self.n75}",
            f"Median length\t{self.median_length:.2f}",
            f"Mean length\t{self.mean_length:.2f}",
            "",
            f"Path\t{self.path}",
            f"Creation time\t{self.creation_time}",
        ]
        return "".join(line + "\n" for line in lines)

    def write_to_file(self, output_path: str | os.PathLike[str]) -> None:
        """Write the rendered report to *output_path*, replacing any existing file."""
        with open(output_path, "w", encoding="utf-8") as handle:
            handle.write(self.format())


@dataclass
class EnhancedReadStats:
    """Read statistics extended with N75 and the full list of read lengths."""

    n50: int
    n75: int
    mean_len: float
    median_len: float
    mean_qual: float
    median_qual: float
    num_reads: int
    num_bases: int
    lengths: list[int] | None = field(default=None)

    @classmethod
    def from_read_stats(cls, stats: ReadStats) -> EnhancedReadStats:
        """Copy the shared fields; N75, counts and lengths are left empty."""
        return cls(
            n50=stats.n50,
            n75=0,
            mean_len=stats.mean_len,
            median_len=stats.median_len,
            mean_qual=stats.mean_qual,
            median_qual=stats.median_qual,
            num_reads=0,
            num_bases=0,
            lengths=None,
        )


def extract_enhanced_read_stats(bam_path: str | os.PathLike[str]) -> EnhancedReadStats:
    """Read every record of a BAM file and compute extended read statistics."""
    lengths: list[int] = []
    qualities: list[float] = []
    with BamReader(bam_path) as reader:
        for record in reader.records():
            lengths.append(len(record.sequence))
            if record.quality_scores:
                qualities.append(sum(record.quality_scores) / len(record.quality_scores))
    stats = summarize_reads(lengths, qualities)
    return EnhancedReadStats(
        n50=stats.n50,
        n75=_n75(stats.lengths),
        mean_len=stats.mean_len,
        median_len=stats.median_len,
        mean_qual=stats.mean_qual,
        median_qual=stats.median_qual,
        num_reads=stats.num_reads,
        num_bases=stats.num_bases,
        lengths=stats.lengths,
    )


def generate_cramino_output(
    bam_path: str | os.PathLike[str],
    output_path: str | os.PathLike[str],
    read_stats: ReadStats | None,
    total_coverage: float,
    genome_size: int,
) -> None:
    """Write a summary report for *bam_path* to *output_path*.

    Given statistics are used as they are; without them the BAM file is read.
    A BAM file without reads gives an all-zero report.
    """
    if read_stats is not None:
        report = CraminoOutput.from_read_stats(bam_path, read_stats, total_coverage, genome_size)
    else:
        enhanced = extract_enhanced_read_stats(bam_path)
        if enhanced.num_reads == 0:
            report = CraminoOutput.new_empty(bam_path)
        else:
            report = CraminoOutput.from_read_stats(
                bam_path, enhanced, total_coverage, genome_size
            )
            report.n75 = enhanced.n75
    report.write_to_file(output_path)