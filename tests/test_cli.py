import gzip
import struct
from itertools import zip_longest

import pytest

from nanocov.cli import main

_BASES = "=ACMGRSVTWYHKDBN"
_OPS = "MIDNSHP=X"

EXPECTED_FIELDS = [
    "File name",
    "Number of alignments",
    "% from total alignments",
    "Number of reads",
    "Yield [Gb]",
    "Mean coverage",
    "Yield [Gb] (>25kb)",
    "N50",
    "N75",
    "Median length",
    "Mean length",
]

NUMERIC_FIELDS = [
    "Number of alignments",
    "Number of reads",
    "Yield [Gb]",
    "Mean coverage",
    "N50",
    "N75",
    "Mean length",
    "Median length",
]


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
    path = _bam(
        tmp_path / "small-test-phased.bam",
        [("chr1", 100_000)],
        [
            _record(0, 99, "A" * 30_000, [("M", 30_000)]),
            _record(0, 199, "ACGTA", [("M", 2), ("I", 1), ("M", 2)]),
        ],
    )
    (tmp_path / "small-test-phased.bam.bai").write_bytes(b"")
    return path


def _fields(text):
    return dict(
        line.split("\t", 1) for line in text.splitlines() if line.strip() and "\t" in line
    )


def test_missing_index(tmp_path, capsys):
    path = _bam(tmp_path / "noindex.bam", [("chr1", 100)], [])
    assert main(["-i", str(path), "-o", str(tmp_path / "cov.tsv")]) == 1
    assert "BAM index not found" in capsys.readouterr().err


def test_runs_and_outputs_file(bam, tmp_path):
    bed = tmp_path / "testbed.bed"
    bed.write_text("chr1\t0\t1000\n")
    out = tmp_path / "coverage.tsv"
    assert main(["-i", str(bam), "-b", str(bed), "-o", str(out)]) == 0
    contents = out.read_text()
    assert "#" in contents
    assert contents.splitlines()[0] == "#chromosome\tposition\tcount"


def test_cramino_output_basic(bam, tmp_path):
    report = tmp_path / "test_cramino_basic.txt"
    args = ["-i", str(bam), "-o", str(tmp_path / "cov.tsv"), "--cramino",
            "--cramino-output", str(report)]
    assert main(args) == 0
    contents = report.read_text()
    for field in ["File name", "Number of alignments", "Number of reads", "Yield [Gb]",
                  "N50", "N75", "Mean length", "Median length", "Path", "Creation time"]:
        assert field in contents
    fields = _fields(contents)
    for field in NUMERIC_FIELDS:
        float(fields[field])
    assert fields["Number of reads"] == "2"
    assert fields["File name"] == "small-test-phased.bam"


def test_cramino_output_with_genome_size(bam, tmp_path):
    report = tmp_path / "test_cramino_genome_size.txt"
    args = ["-i", str(bam), "-o", str(tmp_path / "cov.tsv"), "--cramino",
            "--genome-size", "3000000", "--cramino-output", str(report)]
    assert main(args) == 0
    lines = [line for line in report.read_text().splitlines() if line.startswith("Mean coverage")]
    assert len(lines) == 1
    assert float(lines[0].split()[-1]) > 0.0


def test_cramino_format_consistency(bam, tmp_path):
    report = tmp_path / "test_cramino_format.txt"
    args = ["-i", str(bam), "-o", str(tmp_path / "cov.tsv"), "--cramino",
            "--cramino-output", str(report)]
    assert main(args) == 0
    lines = report.read_text().splitlines()
    assert len(lines) >= len(EXPECTED_FIELDS) + 3
    for line, field in zip(lines, EXPECTED_FIELDS):
        assert line.startswith(field)
    assert lines[len(EXPECTED_FIELDS)] == ""
    assert lines[len(EXPECTED_FIELDS) + 1].startswith("Path")
    assert lines[len(EXPECTED_FIELDS) + 2].startswith("Creation time")


def test_cramino_default_path(bam, tmp_path, capsys):
    assert main(["-i", str(bam), "-o", str(tmp_path / "cov.tsv"), "--cramino"]) == 0
    report = tmp_path / "small-test-phased.cramino"
    assert report.read_text().startswith("File name\tsmall-test-phased.bam\n")
    assert "Generating cramino-like output" in capsys.readouterr().out


def test_unreadable_bam_reports_error(tmp_path, capsys):
    path = tmp_path / "broken.bam"
    path.write_bytes(gzip.compress(b"NOTBAM"))
    (tmp_path / "broken.bam.bai").write_bytes(b"")
    assert main(["-i", str(path), "-o", str(tmp_path / "cov.tsv")]) == 1
    assert "Error:" in capsys.readouterr().err