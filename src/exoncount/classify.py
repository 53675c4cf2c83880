from __future__ import annotations
from enum import Enum

from .classes import AlignmentRecord, FilterConfig
from .regions import RegionIndex


class ReadClass(Enum):
    DROPPED = "dropped"
    UNMAPPED = "unmapped"
    MAPPED = "mapped"
    MAPPED_EXON = "mapped_exon"


def is_admitted(record: AlignmentRecord, config: FilterConfig) -> bool:
    """
    Flag and mapping quality filter. All required flags must be set and all
    filtered flags clear; mapping quality only applies to mapped reads.
    """
    flags = record.flags
    if flags & config.required_flags != config.required_flags:
        return False
    if flags & config.filtered_flags != 0:
        return False
    if record.is_mapped and record.mapping_quality < config.min_mapping_quality:
        return False
    return True


def classify(record: AlignmentRecord, index: RegionIndex, config: FilterConfig) -> ReadClass:
    if not is_admitted(record, config):
        return ReadClass.DROPPED
    if not record.is_mapped:
        return ReadClass.UNMAPPED

    # Mapped but without a usable locus, counts as mapped outside exons
    if record.chromosome is None or record.mapped_start is None or record.mapped_end is None:
        return ReadClass.MAPPED

    if index.overlaps(record.chromosome, record.mapped_start, record.mapped_end):
        return ReadClass.MAPPED_EXON
    return ReadClass.MAPPED
