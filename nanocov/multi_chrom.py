"""Overview plot comparing mean coverage across chromosomes."""

from __future__ import annotations

import math
import os
import re
import sys
from collections.abc import Mapping
from functools import cmp_to_key

from matplotlib.figure import Figure

from nanocov.readstats import ReadStats
from nanocov.themes import RGB, ColorTheme

_CANONICAL = frozenset(
    [str(n) for n in range(1, 23)]
    + ["X", "Y", "MT", "M"]
    + [f"chr{n}" for n in range(1, 23)]
    + ["chrX", "chrY", "chrM", "chrMT"]
)
_UNSIGNED = re.compile(r"\+?[0-9]+")
_U32_MAX = 0xFFFF_FFFF
_MITOCHONDRIAL = ("MT", "M")


def _as_u32(text: str) -> int | None:
    if not _UNSIGNED.fullmatch(text):
        return None
    value = int(text)
    return value if value <= _U32_MAX else None


def _strip_chr(name: str) -> str:
    while name.startswith("chr"):
        name = name[3:]
    return name


def _sign(a, b) -> int:
    return (a > b) - (a < b)


def compare_chromosomes(a: str, b: str) -> int:
    """Order chromosome display names: numbers first, then X, Y, and M/MT last.

    Returns a negative, zero or positive number as for a sort comparator.
    """
    a_num, b_num = _as_u32(a), _as_u32(b)
    if a_num is not None and b_num is not None:
        return _sign(a_num, b_num)
    if not a or not b:
        raise ValueError("chromosome names must not be empty")
    a_digit, b_digit = a[0].isnumeric(), b[0].isnumeric()
    if a_digit and not b_digit:
        return -1
    if b_digit and not a_digit:
        return 1
    if (a, b) == ("X", "Y"):
        return -1
    if (a, b) == ("Y", "X"):
        return 1
    if a in _MITOCHONDRIAL:
        return 1
    if b in _MITOCHONDRIAL:
        return -1
    return _sign(a, b)


def chromosome_means(
    chrom_coverages: Mapping[str, Mapping[int, int]],
) -> list[tuple[str, float]]:
    """Mean coverage of each canonical chromosome, in natural chromosome order.

    Names are given without a ``chr`` prefix; chromosomes without coverage
    are left out.
    """
    means: list[tuple[str, float]] = []
    for chrom, coverage in chrom_coverages.items():
        base = _strip_chr(chrom)
        if chrom not in _CANONICAL and base not in _CANONICAL:
            continue
        if not coverage:
            continue
        means.append((base, sum(coverage.values()) / len(coverage)))
    means.sort(key=cmp_to_key(lambda x, y: compare_chromosomes(x[0], y[0])))
    return means


def _to_u8(value: float) -> int:
    if math.isnan(value):
        return 0
    if value <= 0:
        return 0
    if value >= 255:
        return 255
    return int(value)


def _blend(first: RGB, second: RGB, blend: float) -> RGB:
    return tuple(_to_u8(a * (1.0 - blend) + b * blend) for a, b in zip(first, second))


def color_for_coverage(coverage: float, max_coverage: float, theme: ColorTheme) -> RGB:
    """Bar colour for *coverage* relative to the largest coverage shown."""
    if max_coverage == 0:
        rel = math.nan if coverage == 0 else math.copysign(math.inf, coverage)
    else:
        rel = coverage / max_coverage
    if rel < 0.3:
        return _blend(theme.low, theme.primary, rel / 0.3)
    if rel > 0.7:
        return _blend(theme.primary, theme.high, (rel - 0.7) / 0.3)
    return theme.primary


def _mpl(color: RGB) -> tuple[float, float, float]:
    return tuple(c / 255.0 for c in color)


def plot_all_chromosomes(
    chrom_coverages: Mapping[str, Mapping[int, int]],
    output_path: str | os.PathLike[str],
    use_log_scale: bool,
    read_stats: ReadStats | None,
    theme: ColorTheme,
) -> None:
    """Draw a bar chart of mean coverage per canonical chromosome.

    Nothing is written when no canonical chromosome has coverage.
    """
    means = chromosome_means(chrom_coverages)
    if not means:
        print("No coverage data found for canonical chromosomes", file=sys.stderr)
        return

    names = [name for name, _ in means]
    values = [value for _, value in means]
    count = len(means)
    global_mean = sum(values) / count
    max_coverage = max(0.0, *values)
    colors = [_mpl(color_for_coverage(v, max_coverage, theme)) for v in values]
    text_color = _mpl(theme.text)
    accent = _mpl(theme.accent)

    fig = Figure(figsize=(12, 8), dpi=100, facecolor=_mpl(theme.base))
    fig.suptitle(
        "Chromosome Coverage Overview ({})".format(
            "Log Scale" if use_log_scale else "Linear Scale"
        ),
        fontsize=22,
        color=text_color,
        y=0.96,
    )
    ax = fig.add_axes([0.07, 0.17, 0.9, 0.7])
    ax.set_facecolor(_mpl(theme.base))
    positions = list(range(count))

    if use_log_scale:
        positive = [v for v in values if v > 0.0]
        bottom = max(min(positive, default=max_coverage), 0.1)
        ax.set_yscale("log")
        ax.bar(
            positions,
            [v - bottom for v in values],
            width=1.0,
            bottom=bottom,
            align="edge",
            color=colors,
        )
        top = max_coverage * 1.1
        if top > bottom:
            ax.set_ylim(bottom, top)
        ax.set_ylabel("Coverage (log scale)")
        show_mean = global_mean >= bottom
    else:
        ax.bar(positions, values, width=1.0, align="edge", color=colors)
        top = max_coverage * 1.1
        if top > 0.0:
            ax.set_ylim(0.0, top)
        ax.set_ylabel("Mean Coverage")
        show_mean = True

    if show_mean:
        ax.plot([0, count - 1], [global_mean, global_mean], color=accent, linewidth=2)
        ax.text(
            count // 2,
            global_mean * 1.2,
            f"Global Mean: {global_mean:.2f}",
            color=accent,
            fontsize=13,
        )

    ax.set_xlim(0, count)
    ax.set_xticks([p + 0.5 for p in positions])
    ax.set_xticklabels(names)
    ax.set_xlabel("Chromosome")
    ax.grid(axis="y", alpha=0.3)

    max_name, max_cov = max(means, key=lambda item: item[1])
    min_name, min_cov = min(means, key=lambda item: item[1])
    fig.text(
        0.5,
        0.03,
        f"Chromosomes: {count}   |   Global Mean: {global_mean:.2f}   |   "
        f"Max: {max_cov:.2f} ({max_name})   |   Min: {min_cov:.2f} ({min_name})",
        ha="center",
        fontsize=13,
        color=text_color,
    )
    if read_stats is not None:
        fig.text(
            0.5,
            0.07,
            f"N50: {read_stats.n50}   |   Mean Read Length: {read_stats.mean_len:.0f}   |   "
            f"Mean Quality: {read_stats.mean_qual:.2f}",
            ha="center",
            fontsize=13,
            color=text_color,
        )

    fig.savefig(output_path, facecolor=fig.get_facecolor())