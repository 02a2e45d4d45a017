"""Formatting and colour helpers for plots."""

from __future__ import annotations

RGB = tuple[int, int, int]


def format_number(num: int) -> str:
    """Format an integer with comma thousands separators, e.g. 1,234,567."""
    return f"{num:,}"


def format_file_size(size_bytes: int) -> str:
    """Format a byte count with B, KB, MB or GB units."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024**2:
        return f"{size_bytes / 1024:.2f} KB"
    if size_bytes < 1024**3:
        return f"{size_bytes / 1024**2:.2f} MB"
    return f"{size_bytes / 1024**3:.2f} GB"


def blend_colors(color1: RGB, color2: RGB, factor: float) -> RGB:
    """Blend two colours; a factor of 0 gives *color1*, 1 gives *color2*."""
    factor = min(max(factor, 0.0), 1.0)
    return tuple(
        min(max(int(a * (1.0 - factor) + b * factor), 0), 255)
        for a, b in zip(color1, color2)
    )


_BIN_SIZES = (
    (100_000_000, 1_000_000),
    (10_000_000, 100_000),
    (1_000_000, 10_000),
    (100_000, 1_000),
    (10_000, 100),
)


def calculate_bin_size(range_size: int) -> int:
    """Choose a plotting bin size in base pairs for a range of *range_size* bases."""
    return next((size for limit, size in _BIN_SIZES if range_size > limit), 1)


def format_bin_size(bin_size: int) -> str:
    """Describe a bin size in bp, kb or Mb."""
    if bin_size >= 1_000_000:
        return f"{bin_size // 1_000_000} Mb"
    if bin_size >= 1_000:
        return f"{bin_size // 1_000} kb"
    return f"{bin_size} bp"