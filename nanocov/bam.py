"""Reading alignments from BAM files."""

from __future__ import annotations

import gzip
import os
import struct
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

_MAGIC = b"BAM\x01"
_INT32 = struct.Struct("<i")
_FIXED = struct.Struct("<iiBBHHHiiii")
_CIGAR_OPS = "MIDNSHP=X"
_REFERENCE_OPS = frozenset("MDN=X")
_BASES = "=ACMGRSVTWYHKDBN"
_BASE_PAIRS = [_BASES[b >> 4] + _BASES[b & 0x0F] for b in range(256)]
_UNMAPPED_FLAG = 0x4


@dataclass(frozen=True)
class ReferenceSequence:
    """A reference sequence named in the BAM header."""

    name: str
    length: int


@dataclass(frozen=True)
class BamHeader:
    """The SAM header text and reference sequence dictionary of a BAM file."""

    text: str
    reference_sequences: tuple[ReferenceSequence, ...]


@dataclass(frozen=True)
class BamRecord:
    """One alignment record. Positions are 1-based; None marks a missing value."""

    name: str
    flag: int
    reference_sequence_id: int | None
    position: int | None
    mapping_quality: int | None
    cigar: tuple[tuple[str, int], ...]
    sequence: str
    quality_scores: bytes
    mate_reference_sequence_id: int | None
    mate_position: int | None
    template_length: int
    data: bytes

    @property
    def is_unmapped(self) -> bool:
        return bool(self.flag & _UNMAPPED_FLAG)

    @property
    def alignment_end(self) -> int | None:
        """Last reference position covered by the alignment (inclusive)."""
        if self.position is None:
            return None
        span = sum(length for op, length in self.cigar if op in _REFERENCE_OPS)
        return self.position + max(span, 1) - 1


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    try:
        data = stream.read(size)
    except EOFError as exc:
        raise ValueError("unexpected end of BAM data") from exc
    if len(data) != size:
        raise ValueError("unexpected end of BAM data")
    return data


def _read_int32(stream: BinaryIO) -> int:
    return _INT32.unpack(_read_exact(stream, 4))[0]


def _read_header(stream: BinaryIO) -> BamHeader:
    if _read_exact(stream, 4) != _MAGIC:
        raise ValueError("not a BAM file: bad magic number")
    text_length = _read_int32(stream)
    if text_length < 0:
        raise ValueError("invalid header text length")
    text = _read_exact(stream, text_length).rstrip(b"\0").decode("utf-8", errors="replace")
    count = _read_int32(stream)
    if count < 0:
        raise ValueError("invalid reference sequence count")
    references = []
    for _ in range(count):
        name_length = _read_int32(stream)
        if name_length < 1:
            raise ValueError("invalid reference sequence name length")
        name = _read_exact(stream, name_length).rstrip(b"\0").decode("utf-8", errors="replace")
        references.append(ReferenceSequence(name, _read_int32(stream)))
    return BamHeader(text, tuple(references))


def _optional_id(value: int) -> int | None:
    return None if value < 0 else value


def _parse_record(data: bytes) -> BamRecord:
    if len(data) < _FIXED.size:
        raise ValueError("BAM record is too short")
    (ref_id, pos, name_length, mapq, _bin, n_cigar, flag, seq_length,
     mate_ref_id, mate_pos, tlen) = _FIXED.unpack_from(data)
    if seq_length < 0:
        raise ValueError("invalid sequence length")
    offset = _FIXED.size
    name_end = offset + name_length
    cigar_end = name_end + 4 * n_cigar
    seq_end = cigar_end + (seq_length + 1) // 2
    qual_end = seq_end + seq_length
    if qual_end > len(data):
        raise ValueError("BAM record is truncated")

    name = data[offset:name_end].rstrip(b"\0").decode("latin-1")
    cigar = tuple(
        (_CIGAR_OPS[value & 0x0F], value >> 4)
        for (value,) in struct.iter_unpack("<I", data[name_end:cigar_end])
        if (value & 0x0F) < len(_CIGAR_OPS)
    )
    if len(cigar) != n_cigar:
        raise ValueError("invalid CIGAR operation")
    sequence = "".join(_BASE_PAIRS[b] for b in data[cigar_end:seq_end])[:seq_length]
    quality = data[seq_end:qual_end]
    if quality and all(q == 0xFF for q in quality):
        quality = b""

    return BamRecord(
        name=name,
        flag=flag,
        reference_sequence_id=_optional_id(ref_id),
        position=None if pos < 0 else pos + 1,
        mapping_quality=None if mapq == 255 else mapq,
        cigar=cigar,
        sequence=sequence,
        quality_scores=bytes(quality),
        mate_reference_sequence_id=_optional_id(mate_ref_id),
        mate_position=None if mate_pos < 0 else mate_pos + 1,
        template_length=tlen,
        data=bytes(data[qual_end:]),
    )


def _iter_records(stream: BinaryIO) -> Iterator[BamRecord]:
    while True:
        try:
            prefix = stream.read(4)
        except EOFError as exc:
            raise ValueError("unexpected end of BAM data") from exc
        if not prefix:
            return
        if len(prefix) != 4:
            raise ValueError("unexpected end of BAM data")
        block_size = _INT32.unpack(prefix)[0]
        if block_size < 0:
            raise ValueError("invalid record size")
        yield _parse_record(_read_exact(stream, block_size))


class BamReader:
    """Sequential reader over a BGZF-compressed BAM file.

    The header is read on construction and exposed as ``header``.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._stream = gzip.open(self.path, "rb")
        try:
            self.header = _read_header(self._stream)
        except BaseException:
            self._stream.close()
            raise

    def records(self) -> Iterator[BamRecord]:
        """Yield the records following the header, in file order."""
        return _iter_records(self._stream)

    def query(self, chrom: str, start: int, end: int) -> Iterator[BamRecord]:
        """Yield records on *chrom* overlapping the 1-based inclusive range.

        The file is scanned from its start in a separate stream, so this does
        not disturb iteration over ``records()``.
        """
        names = [ref.name for ref in self.header.reference_sequences]
        if chrom not in names:
            raise ValueError(f"reference sequence not found: {chrom}")
        if start < 1 or end < start:
            raise ValueError(f"invalid region {chrom}:{start}-{end}")
        return self._scan(names.index(chrom), start, end)

    def _scan(self, ref_id: int, start: int, end: int) -> Iterator[BamRecord]:
        with gzip.open(self.path, "rb") as stream:
            _read_header(stream)
            for record in _iter_records(stream):
                if record.reference_sequence_id != ref_id or record.position is None:
                    continue
                if record.position <= end and record.alignment_end >= start:
                    yield record

    def close(self) -> None:
        self._stream.close()

    def __enter__(self) -> BamReader:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()