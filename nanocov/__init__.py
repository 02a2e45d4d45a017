"""Per-base coverage, read statistics and coverage plots from BAM files."""

__version__ = "0.1.0"