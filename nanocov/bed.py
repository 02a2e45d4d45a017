"""Reading genomic regions from BED files."""

from __future__ import annotations

import os
import re

_UNSIGNED = re.compile(r"\+?[0-9]+")
_U32_MAX = 0xFFFF_FFFF


def _parse_u32(text: str) -> int:
    if not _UNSIGNED.fullmatch(text):
        raise ValueError(f"invalid unsigned integer: {text!r}")
    value = int(text)
    if value > _U32_MAX:
        raise ValueError(f"number too large: {text!r}")
    return value


def parse_bed(path: str | os.PathLike[str]) -> dict[str, list[tuple[int, int]]]:
    """Map each chromosome in a BED file to its (start, end) regions, in file order.

    Comment lines, blank lines and lines with fewer than three fields are
    skipped. A start or end that is not an unsigned 32-bit integer raises
    ValueError.
    """
    regions: dict[str, list[tuple[int, int]]] = {}
    with open(path, encoding="utf-8") as handle:
        for line in handle:
            if line.startswith("#") or not line.strip():
                continue
            fields = line.split()
            if len(fields) < 3:
                continue
            chrom, start, end = fields[0], _parse_u32(fields[1]), _parse_u32(fields[2])
            regions.setdefault(chrom, []).append((start, end))
    return regions