from __future__ import annotations
from pathlib import Path
from typing import Iterator, List, Optional, Tuple
import re
import bamnostic as bn

from .classes import AlignmentRecord
from .errors import DecodeError

BAM_FUNMAP = 0x4

# CIGAR operations in BAM code order
_CIGAR_OPS = "MIDNSHP=X"
# Operations that consume the reference: M, D, N, =, X
_REF_CONSUMING = frozenset("MDN=X")
_CIGAR_RE = re.compile(r"(\d+)([MIDNSHP=X])")


def _cigar_ops(aln) -> List[Tuple[str, int]]:
    """CIGAR as (op_char, length) pairs, from tuples when present, else the string."""
    tuples = getattr(aln, "cigartuples", None) or getattr(aln, "cigar", None)
    if tuples and not isinstance(tuples, str):
        out = []
        for op, length in tuples:
            if isinstance(op, int):
                op = _CIGAR_OPS[op]
            out.append((op, int(length)))
        return out
    cigarstring = getattr(aln, "cigarstring", None)
    if isinstance(tuples, str):
        cigarstring = tuples
    if not cigarstring or cigarstring == "*":
        return []
    return [(op, int(n)) for n, op in _CIGAR_RE.findall(cigarstring)]


def cigar_end_pos(start: int, ops: List[Tuple[str, int]]) -> int:
    """0-based exclusive reference end of an alignment starting at 'start'."""
    pos = start
    for op, length in ops:
        if op in _REF_CONSUMING:
            pos += length
    return pos


def _aln_span(aln) -> Tuple[int, int]:
    start = getattr(aln, "pos", 0) or 0
    end = getattr(aln, "reference_end", None)
    if end is None:
        end = cigar_end_pos(start, _cigar_ops(aln))
    return start, end


def extract_alignment_record(aln) -> AlignmentRecord:
    """Pull the fields needed for classification out of a bamnostic alignment."""
    flags = int(getattr(aln, "flag", 0) or 0)
    is_unmapped = bool(flags & BAM_FUNMAP)
    mapq = int(getattr(aln, "mapq", 0) or 0)

    if is_unmapped:
        return AlignmentRecord(flags, mapq, False, None, None, None)

    chr_: Optional[str] = getattr(aln, "reference_name", None)
    start, end = _aln_span(aln)
    return AlignmentRecord(flags, mapq, True, chr_, start, end)


def iter_alignment_records(bam_path: str | Path) -> Iterator[AlignmentRecord]:
    """
    Stream every record of a BAM file as an AlignmentRecord.

    Any failure to open or decode the file is raised as DecodeError; there is
    no skipping of damaged records.
    """
    try:
        bam = bn.AlignmentFile(str(bam_path), "rb")
    except Exception as e:
        raise DecodeError(f"Could not open BAM: {bam_path}: {e}") from e

    n = 0
    with bam:
        it = iter(bam)
        while True:
            try:
                aln = next(it)
                record = extract_alignment_record(aln)
            except StopIteration:
                break
            except Exception as e:
                raise DecodeError(f"{bam_path}: could not decode record {n + 1:,}: {e}") from e
            n += 1
            yield record


def bam_references(bam_path: str | Path) -> List[str]:
    """Contig names from the BAM header."""
    try:
        with bn.AlignmentFile(str(bam_path), "rb") as bam:
            return list(getattr(bam, "references", []) or [])
    except Exception as e:
        raise DecodeError(f"Could not read BAM header: {bam_path}: {e}") from e
