import gzip
import struct
from itertools import zip_longest
from pathlib import Path

import pytest

from nanocov.coverage import (
    count_region_coverage,
    merge_coverage,
    plot_range,
    run_coverage,
    write_coverage_tsv,
)
from nanocov.options import Options

_BASES = "=ACMGRSVTWYHKDBN"
_OPS = "MIDNSHP=X"


def _record(ref_id, pos, seq, cigar, flag=0, name=b"read"):
    read_name = name + b"\0"
    cig = b"".join(struct.pack("<I", n << 4 | _OPS.index(op)) for op, n in cigar)
    packed = bytes(
        _BASES.index(hi) << 4 | _BASES.index(lo)
        for hi, lo in zip_longest(seq[::2], seq[1::2], fillvalue="=")
    )
    fixed = struct.pack(
        "<iiBBHHHiiii", ref_id, pos, len(read_name), 60, 0, len(cigar), flag,
        len(seq), -1, -1, 0,
    )
    body = fixed + read_name + cig + packed + bytes([30] * len(seq))
    return struct.pack("<i", len(body)) + body


def _bam(path, references, records):
    text = b"@HD\tVN:1.6\n"
    data = b"BAM\x01" + struct.pack("<i", len(text)) + text + struct.pack("<i", len(references))
    for name, length in references:
        encoded = name.encode() + b"\0"
        data += struct.pack("<i", len(encoded)) + encoded + struct.pack("<i", length)
    data += b"".join(records)
    path.write_bytes(gzip.compress(data))
    return path


@pytest.fixture
def bam(tmp_path):
    return _bam(
        tmp_path / "reads.bam",
        [("chr1", 1000), ("chr2", 500)],
        [
            _record(0, 9, "ACGTA", [("M", 2), ("I", 1), ("M", 2)]),
            _record(0, 10, "ACG", [("M", 3)]),
            _record(0, 9, "ACG", [("M", 3)], flag=4),
            _record(1, 4, "AC", [("M", 2)]),
        ],
    )


def test_count_region_coverage_skips_unmapped(bam):
    coverage, averages = count_region_coverage(bam, "chr1", 0, 1000)
    assert coverage == {"chr1": {10: 1, 11: 2, 12: 1}}
    assert averages["chr1"] == pytest.approx(4 / 3)


def test_count_region_coverage_other_chromosome(bam):
    coverage, averages = count_region_coverage(bam, "chr2", 0, 500)
    assert coverage == {"chr2": {5: 1}}
    assert averages == {"chr2": 1.0}


def test_count_region_coverage_outside_reads(bam):
    assert count_region_coverage(bam, "chr1", 500, 1000) == ({}, {})


def test_count_region_coverage_unknown_chromosome(bam):
    with pytest.raises(ValueError):
        count_region_coverage(bam, "chr9", 0, 100)


def test_count_region_coverage_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        count_region_coverage(tmp_path / "absent.bam", "chr1", 0, 10)


def test_merge_coverage_sums_and_collects():
    merged, averages = merge_coverage([
        ({"chr1": {1: 2, 2: 1}}, {"chr1": 1.5}),
        ({"chr1": {2: 3}, "chr2": {7: 1}}, {"chr1": 3.0, "chr2": 1.0}),
    ])
    assert merged == {"chr1": {1: 2, 2: 4}, "chr2": {7: 1}}
    assert averages == [1.5, 3.0, 1.0]


def test_merge_coverage_empty():
    assert merge_coverage([]) == ({}, [])


def test_write_coverage_tsv_sorted(tmp_path):
    out = tmp_path / "cov.tsv"
    write_coverage_tsv({"chr2": {5: 1}, "chr1": {3: 2, 1: 4}}, out)
    assert out.read_text().splitlines() == [
        "#chromosome\tposition\tcount",
        "chr1\t1\t4",
        "chr1\t3\t2",
        "chr2\t5\t1",
    ]


def test_plot_range_prefers_chrom_bed():
    chrom_bed = {"chr1": [(0, 5000)]}
    bed = {"chr1": [(10, 20), (30, 40)]}
    assert plot_range("chr1", {15: 1}, bed, chrom_bed) == (0, 5000)


def test_plot_range_uses_bed_span():
    bed = {"chr1": [(30, 40), (10, 20)]}
    assert plot_range("chr1", {15: 1}, bed, None) == (10, 40)


def test_plot_range_missing_chromosome():
    assert plot_range("chr2", {15: 1}, {"chr1": [(10, 20)]}, None) == (0, 0)


def test_plot_range_falls_back_to_coverage():
    assert plot_range("chr1", {7: 1, 3: 2, 9: 1}, None, None) == (3, 9)


def test_run_coverage_whole_chromosomes(bam, tmp_path, capsys):
    out = tmp_path / "cov.tsv"
    run_coverage(Options(input=bam, output=out), None)
    lines = out.read_text().splitlines()
    assert lines[0] == "#chromosome\tposition\tcount"
    assert lines[1:] == ["chr1\t10\t1", "chr1\t11\t2", "chr1\t12\t1", "chr2\t5\t1"]
    stdout = capsys.readouterr().out
    assert "chr2 average coverage: 1.00" in stdout
    assert "Global average coverage:" in stdout
    assert "Generated multi-chromosome plot (linear scale)" in stdout
    assert (tmp_path / "cov.chr1.png").stat().st_size > 0
    assert (tmp_path / "cov.multi_chrom.png").exists()


def test_run_coverage_with_bed(bam, tmp_path, capsys):
    bed = tmp_path / "regions.bed"
    bed.write_text("chr2\t0\t100\n")
    out = tmp_path / "cov.tsv"
    run_coverage(Options(input=bam, output=out, bed=bed, svg_output=True), None)
    assert out.read_text().splitlines()[1:] == ["chr2\t5\t1"]
    assert (tmp_path / "cov.chr2.svg").exists()
    assert not (tmp_path / "cov.multi_chrom.png").exists()


def test_run_coverage_without_data(tmp_path, capsys):
    empty = _bam(tmp_path / "empty.bam", [("chr1", 100)], [])
    out = tmp_path / "cov.tsv"
    run_coverage(Options(input=empty, output=out), None)
    assert out.read_text() == "#chromosome\tposition\tcount\n"
    assert "No coverage data found." in capsys.readouterr().out


def test_run_coverage_bad_bed(bam, tmp_path):
    bed = tmp_path / "regions.bed"
    bed.write_text("chr1\tx\t100\n")
    with pytest.raises(ValueError):
        run_coverage(Options(input=bam, output=tmp_path / "cov.tsv", bed=bed), None)