import pytest

from nanocov.multi_chrom import (
    chromosome_means,
    color_for_coverage,
    compare_chromosomes,
    plot_all_chromosomes,
)
from nanocov.readstats import summarize_reads
from nanocov.themes import CATPPUCCIN_LATTE, NORD

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def _test_coverages():
    chr1 = {i: 10 + (i % 5) for i in range(100)}
    chr2 = {i: 5 + (i % 3) for i in range(100)}
    chr_x = {i: 2 + (i % 2) for i in range(100)}
    return {"chr1": chr1, "chr2": chr2, "chrX": chr_x}


def test_multi_chromosome_plot_linear(tmp_path):
    out = tmp_path / "multi_chrom_test.png"
    plot_all_chromosomes(_test_coverages(), out, False, None, CATPPUCCIN_LATTE)
    assert out.exists()
    assert out.read_bytes().startswith(PNG_MAGIC)


def test_multi_chromosome_plot_log_scale_with_read_stats(tmp_path):
    out = tmp_path / "multi_chrom_log.png"
    stats = summarize_reads([100, 200, 300], [10.0, 20.0])
    plot_all_chromosomes(_test_coverages(), out, True, stats, NORD)
    assert out.stat().st_size > 0
    assert out.read_bytes().startswith(PNG_MAGIC)


def test_no_canonical_chromosomes_writes_nothing(tmp_path):
    out = tmp_path / "none.png"
    plot_all_chromosomes({"chrUn_1": {1: 5}, "scaffold": {1: 2}}, out, False, None, NORD)
    assert not out.exists()


def test_sort_order_natural():
    names = ["X", "10", "2", "M", "1", "Y", "22"]
    coverages = {name: {0: 1} for name in names}
    ordered = [name for name, _ in chromosome_means(coverages)]
    assert ordered == ["1", "2", "10", "22", "X", "Y", "M"]


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        ("2", "10", -1),
        ("10", "2", 1),
        ("7", "7", 0),
        ("3", "X", -1),
        ("X", "3", 1),
        ("X", "Y", -1),
        ("Y", "X", 1),
        ("MT", "X", 1),
        ("Y", "M", -1),
    ],
)
def test_compare_chromosomes(a, b, expected):
    assert compare_chromosomes(a, b) == expected


def test_compare_empty_name_raises():
    with pytest.raises(ValueError):
        compare_chromosomes("", "X")


def test_chromosome_means_filters_and_sorts():
    coverages = {
        "chr2": {0: 4, 1: 6},
        "chr1": {0: 1, 1: 3},
        "chrUn": {0: 5},
        "chrX": {},
        "Y": {0: 7},
    }
    assert chromosome_means(coverages) == [("1", 2.0), ("2", 5.0), ("Y", 7.0)]


def test_chromosome_means_empty():
    assert chromosome_means({}) == []


def test_color_at_maximum_is_high():
    assert color_for_coverage(10.0, 10.0, CATPPUCCIN_LATTE) == CATPPUCCIN_LATTE.high


def test_color_at_zero_is_low():
    assert color_for_coverage(0.0, 10.0, CATPPUCCIN_LATTE) == CATPPUCCIN_LATTE.low


def test_color_in_middle_is_primary():
    assert color_for_coverage(5.0, 10.0, NORD) == NORD.primary


def test_color_with_zero_maximum_is_primary():
    assert color_for_coverage(0.0, 0.0, NORD) == NORD.primary


def test_color_low_blend_lies_between_low_and_primary():
    color = color_for_coverage(1.5, 10.0, CATPPUCCIN_LATTE)
    for c, low, primary in zip(color, CATPPUCCIN_LATTE.low, CATPPUCCIN_LATTE.primary):
        assert min(low, primary) <= c <= max(low, primary)