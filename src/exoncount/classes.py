from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

# Flag defaults as exposed on the command line (paired + proper pair required;
# secondary, QC-fail and supplementary filtered)
DEFAULT_MIN_MAPQ = 35
DEFAULT_REQUIRED_FLAGS = 3
DEFAULT_FILTERED_FLAGS = 2816


# Annotated exon
@dataclass(frozen=True)
class ExonRegion:
    chromosome: str
    start: int  # 0-based inclusive
    end: int    # 0-based exclusive


# Only the alignment fields needed for classification, one per BAM record
@dataclass
class AlignmentRecord:
    """Minimal alignment data handed over by the BAM adapter."""
    __slots__ = ('flags', 'mapping_quality', 'is_mapped', 'chromosome', 'mapped_start', 'mapped_end')
    flags: int
    mapping_quality: int
    is_mapped: bool
    chromosome: Optional[str]
    mapped_start: Optional[int]  # 0-based inclusive
    mapped_end: Optional[int]    # 0-based exclusive


@dataclass(frozen=True)
class FilterConfig:
    min_mapping_quality: int = DEFAULT_MIN_MAPQ
    required_flags: int = DEFAULT_REQUIRED_FLAGS
    filtered_flags: int = DEFAULT_FILTERED_FLAGS


@dataclass
class Counters:
    """
    Running totals of one counting pass.

    'mapped' counts every admitted mapped read, so reads inside exons are
    included in both 'mapped' and 'mapped_exon'.
    """
    mapped: int = 0
    mapped_exon: int = 0
    unmapped: int = 0

    def __add__(self, other: "Counters") -> "Counters":
        if not isinstance(other, Counters):
            return NotImplemented
        return Counters(
            mapped=self.mapped + other.mapped,
            mapped_exon=self.mapped_exon + other.mapped_exon,
            unmapped=self.unmapped + other.unmapped,
        )
