"""Per-base coverage plots for a single chromosome."""

from __future__ import annotations

import math
import os
import sys
from collections.abc import Mapping

from matplotlib.figure import Figure
from matplotlib.patches import Rectangle
from matplotlib.ticker import FuncFormatter, MaxNLocator

from nanocov.formatting import blend_colors, calculate_bin_size, format_bin_size, format_number
from nanocov.readstats import ReadStats
from nanocov.stats import calculate_coverage_stats, calculate_per_base_stats
from nanocov.themes import CATPPUCCIN_LATTE, RGB, ColorTheme, theme_by_name

_WIDTH_PX = 2200
_HEIGHT_PX = 1000
_LEFT_PX = 400
_PLOT_PX = 1400
_DPI = 100

_current_theme: ColorTheme = CATPPUCCIN_LATTE


def set_theme(theme_name: str) -> None:
    """Select the theme used by later plots: latte, frappe, nord or gruvbox.

    Unknown names select latte.
    """
    global _current_theme
    _current_theme = theme_by_name(theme_name)


def current_theme() -> ColorTheme:
    """The theme currently used for plots."""
    return _current_theme


def bin_coverage(
    coverage: Mapping[int, int],
    plot_start: int,
    plot_end: int,
    show_zero_regions: bool,
) -> list[tuple[int, float]]:
    """Average coverage in bins over the inclusive range, sorted by bin start.

    The bin size follows the width of the range. With *show_zero_regions*,
    gaps between covered bins are filled with zero-coverage points.
    """
    bin_size = calculate_bin_size(max(plot_end - plot_start, 0))
    bins: dict[int, tuple[int, int]] = {}
    for pos, count in coverage.items():
        if pos < plot_start or pos > plot_end:
            continue
        start = (pos - plot_start) // bin_size * bin_size + plot_start
        total, n = bins.get(start, (0, 0))
        bins[start] = (total + count, n + 1)
    points = [(start, total / n) for start, (total, n) in sorted(bins.items())]

    if not show_zero_regions or not points:
        return points

    filled: list[tuple[int, float]] = []
    last_pos = plot_start
    for pos, value in points:
        if pos > last_pos + bin_size:
            filled.extend((gap, 0.0) for gap in range(last_pos + bin_size, pos, bin_size))
        filled.append((pos, value))
        last_pos = pos
    return filled


def scale_y_max(y_max: float) -> float:
    """Upper limit of the coverage axis, with headroom above the largest value."""
    if y_max < 3.0:
        return 3.0
    if y_max < 10.0:
        return float(math.ceil(y_max * 1.2))
    if y_max < 100.0:
        return float(math.ceil(y_max * 1.1))
    return float(math.ceil(y_max * 1.05))


def _clamp_unit(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return min(max(value, 0.0), 1.0)


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return math.nan if numerator == 0 else math.copysign(math.inf, numerator)
    return numerator / denominator


def bar_color(y: float, y_max: float, theme: ColorTheme) -> RGB:
    """Bar colour: low blends into primary up to 30% of *y_max*, primary into high from 70%."""
    if y <= y_max * 0.3:
        blend = _clamp_unit(_ratio(y, y_max * 0.3))
        return blend_colors(theme.low, theme.primary, blend)
    if y >= y_max * 0.7:
        blend = _clamp_unit(_ratio(y - y_max * 0.7, y_max * 0.3))
        return blend_colors(theme.primary, theme.high, blend)
    return theme.primary


def _gradient_color(factor: float, theme: ColorTheme) -> RGB:
    if factor < 0.33:
        return blend_colors(theme.low, theme.primary, factor / 0.33)
    if factor > 0.66:
        return blend_colors(theme.primary, theme.high, (factor - 0.66) / 0.34)
    return theme.primary


def _mpl(color: RGB) -> tuple[float, float, float]:
    return tuple(c / 255.0 for c in color)


def _display_float(value: float) -> str:
    return str(int(value)) if value.is_integer() else repr(value)


def plot_per_base_coverage(
    chrom: str,
    coverage: Mapping[int, int],
    output_path: str | os.PathLike[str],
    read_stats: ReadStats | None,
    show_zero_regions: bool,
) -> None:
    """Plot coverage over the span of covered positions.

    Nothing is written when there is no coverage.
    """
    if not coverage:
        print(f"Warning: No coverage data for chromosome {chrom}", file=sys.stderr)
        return
    plot_per_base_coverage_with_range(
        chrom,
        coverage,
        output_path,
        min(coverage),
        max(coverage),
        read_stats,
        show_zero_regions,
    )


def _pixel_axes(fig: Figure, left_px: int, width_px: int, theme: ColorTheme):
    ax = fig.add_axes([left_px / _WIDTH_PX, 0.0, width_px / _WIDTH_PX, 1.0])
    ax.set_xlim(0, width_px)
    ax.set_ylim(_HEIGHT_PX, 0)
    ax.set_facecolor(_mpl(theme.base))
    ax.axis("off")
    return ax


def _draw_stats_box(ax, theme, top, title, labels, values) -> None:
    padding, line_height, box_x = 30, 32, 30
    box_width = 440
    box_height = 6 * line_height + 2 * padding
    ax.add_patch(
        Rectangle((box_x, top), box_width, box_height, facecolor=_mpl(theme.overlay), linewidth=0)
    )
    ax.add_patch(
        Rectangle(
            (box_x, top),
            box_width,
            box_height,
            fill=False,
            edgecolor=_mpl(theme.accent),
            linewidth=3,
        )
    )
    style = {"color": _mpl(theme.text), "fontsize": 17, "fontweight": "bold", "va": "top"}
    ax.text(box_x + padding, top + padding, title, **style)
    for row, (label, value) in enumerate(zip(labels, values), start=1):
        y = top + padding + row * line_height
        ax.text(box_x + padding, y, label, **style)
        ax.text(box_x + box_width - padding - 160, y, value, **style)


def plot_per_base_coverage_with_range(
    chrom: str,
    coverage: Mapping[int, int],
    output_path: str | os.PathLike[str],
    plot_start: int,
    plot_end: int,
    read_stats: ReadStats | None,
    show_zero_regions: bool,
) -> None:
    """Plot binned coverage of *chrom* over an inclusive range, with statistics panels.

    The image format follows the extension of *output_path* (png or svg).
    """
    theme = current_theme()
    bin_size = calculate_bin_size(max(plot_end - plot_start, 0))
    points = bin_coverage(coverage, plot_start, plot_end, show_zero_regions)
    y_max = scale_y_max(max((y for _, y in points), default=0.0))
    print(f"[DEBUG] Max coverage for {chrom}: {_display_float(y_max)}", file=sys.stderr)

    bin_label = format_bin_size(bin_size)
    text_color = _mpl(theme.text)
    base = _mpl(theme.base)

    fig = Figure(figsize=(_WIDTH_PX / _DPI, _HEIGHT_PX / _DPI), dpi=_DPI, facecolor=base)

    # Main chart
    left = (_LEFT_PX + 50 + 75) / _WIDTH_PX
    ax = fig.add_axes([left, 0.1, (_PLOT_PX - 100 - 75) / _WIDTH_PX, 0.78])
    ax.set_facecolor(base)
    ax.set_title(
        f"Chromosome {chrom} Coverage (bin: {bin_label})", fontsize=28, color=text_color
    )
    ax.set_xlabel("Chromosome Position (Mb)", fontsize=18, color=text_color)
    ax.set_ylabel("Coverage", fontsize=18, color=text_color)
    ax.set_xlim(plot_start, max(plot_end, plot_start + 1))
    ax.set_ylim(0.0, y_max)
    ax.xaxis.set_major_locator(MaxNLocator(20))
    ax.xaxis.set_major_formatter(FuncFormatter(lambda x, _: f"{x / 1_000_000:.2f}"))
    ax.yaxis.set_major_formatter(FuncFormatter(lambda y, _: f"{y:.1f}"))
    ax.tick_params(colors=text_color, labelsize=13)
    for spine in ax.spines.values():
        spine.set_color(text_color)
    ax.grid(color=(100 / 255,) * 3, alpha=0.3)

    if points:
        lefts, widths, heights, colors = [], [], [], []
        for (x, y), (next_x, _) in zip(points, points[1:]):
            lefts.append(x)
            widths.append((next_x if next_x > x else x + bin_size) - x)
            heights.append(y)
            colors.append(_mpl(bar_color(y, y_max, theme)))
        last_x, last_y = points[-1]
        lefts.append(last_x)
        widths.append(bin_size)
        heights.append(last_y)
        colors.append(_mpl(bar_color(last_y, y_max, theme)))
        ax.bar(lefts, heights, width=widths, align="edge", color=colors, linewidth=0)

        mean = sum(y for _, y in points) / len(points)
        ax.plot([plot_start, plot_end], [mean, mean], color=_mpl(theme.accent), linewidth=2)

    # Right panel: colour scale
    right = _pixel_axes(fig, _LEFT_PX + _PLOT_PX, _WIDTH_PX - _LEFT_PX - _PLOT_PX, theme)
    padding, box_width, text_offset = 30, 80, 100
    gradient_height = 200
    gradient_start_y = padding + 80 + 3 * 30 + 3 * 15 + 20
    right.text(
        padding,
        gradient_start_y,
        "Coverage Scale",
        color=text_color,
        fontsize=17,
        fontweight="bold",
        va="top",
    )
    for i in range(gradient_height):
        factor = (gradient_height - i) / gradient_height
        y = gradient_start_y + 40 + i
        right.plot(
            [padding, padding + box_width],
            [y, y],
            color=_mpl(_gradient_color(factor, theme)),
            linewidth=1,
        )
    for label, offset in (
        ("High", 0),
        ("Medium", gradient_height // 2),
        ("Low", gradient_height - 20),
    ):
        right.text(
            padding + text_offset,
            gradient_start_y + 40 + offset,
            label,
            color=text_color,
            fontsize=12,
            va="top",
        )

    # Left panel: statistics boxes
    panel = _pixel_axes(fig, 0, _LEFT_PX, theme)
    box_height = 6 * 32 + 2 * 30
    spacing = 40
    top = (_HEIGHT_PX - (3 * box_height + 2 * spacing)) // 2
    middle = top + box_height + spacing
    bottom = middle + box_height + spacing

    if read_stats is not None:
        _draw_stats_box(
            panel,
            theme,
            top,
            "Read Stats",
            ["N50:", "Mean Qual:", "Median Qual:", "Mean Length:", "Median Len:"],
            [
                format_number(read_stats.n50),
                f"{read_stats.mean_qual:.2f}",
                f"{read_stats.median_qual:.2f}",
                format_number(int(read_stats.mean_len)),
                format_number(int(read_stats.median_len)),
            ],
        )

    binned = calculate_coverage_stats(points)
    _draw_stats_box(
        panel,
        theme,
        middle,
        "Coverage Stats",
        ["Mean:", "Median:", "Min:", "Max:", "Bin:"],
        [
            f"{binned.mean:.2f}",
            f"{binned.median:.2f}",
            f"{binned.min:.2f}",
            f"{binned.max:.2f}",
            bin_label,
        ],
    )

    per_base = calculate_per_base_stats(coverage)
    _draw_stats_box(
        panel,
        theme,
        bottom,
        "Per-base Coverage",
        [
            "Per-base Mean:",
            "Per-base Median:",
            "Per-base Min:",
            "Per-base Max:",
            "Per-base Stddev:",
        ],
        [
            f"{per_base.mean:.2f}",
            f"{per_base.median:.2f}",
            f"{per_base.min:.2f}",
            f"{per_base.max:.2f}",
            f"{per_base.stddev:.2f}",
        ],
    )

    fig.savefig(output_path, facecolor=base)