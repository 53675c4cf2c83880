from __future__ import annotations
from pathlib import Path
from typing import Iterable, Optional
import logging
import os
import sys
import psutil

from .bamio import bam_references, iter_alignment_records
from .classes import AlignmentRecord, Counters, FilterConfig
from .classify import ReadClass, classify
from .errors import ConfigurationError, DecodeError, MalformedRegionError
from .gtftools import load_exon_regions
from .regions import RegionIndex


def _make_logger(level: str) -> logging.Logger:
    lvl = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger("exoncount")
    # Configure once
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = logging.Formatter("[%(asctime)s] [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    logger.setLevel(lvl)
    return logger


def _get_memory_usage() -> float:
    process = psutil.Process(os.getpid())
    return process.memory_info().rss / 1024 / 1024 # Current memory usage in MB


def run(
    records: Iterable[AlignmentRecord],
    index: RegionIndex,
    config: FilterConfig,
    *,
    logger: logging.Logger | None = None,
    progress_every: int = 1_000_000,
) -> Counters:
    """
    Classify each record once, in order, and return the totals.

    Reads overlapping an exon count towards both 'mapped' and 'mapped_exon'.
    Dropped reads count towards nothing. Errors raised by the record source
    are not caught here.
    """
    counters = Counters()
    processed = 0
    dropped = 0

    for record in records:
        processed += 1
        if logger and progress_every and processed % progress_every == 0:
            logger.info(f"Processed {processed:,} alignments... (Memory: {_get_memory_usage():.1f} MB)")

        cls = classify(record, index, config)
        if cls is ReadClass.MAPPED_EXON:
            counters.mapped += 1
            counters.mapped_exon += 1
        elif cls is ReadClass.MAPPED:
            counters.mapped += 1
        elif cls is ReadClass.UNMAPPED:
            counters.unmapped += 1
        else:
            dropped += 1

    if logger:
        logger.info(f"Done: processed={processed:,}, dropped={dropped:,}")
    return counters


def _validate_inputs(bam_path: str | Path, gtf_path: str | Path, config: FilterConfig) -> None:
    for label, p in (("BAM", bam_path), ("GTF", gtf_path)):
        if p is None or str(p) == "":
            raise ConfigurationError(f"No {label} file given")
        if not Path(p).is_file():
            raise ConfigurationError(f"{label} file `{p}` not found")
    if config.min_mapping_quality < 0:
        raise ConfigurationError(f"Minimum mapping quality must be >= 0, got {config.min_mapping_quality}")
    if config.required_flags < 0 or config.filtered_flags < 0:
        raise ConfigurationError(
            f"Flag masks must be non-negative, got required={config.required_flags}, "
            f"filtered={config.filtered_flags}"
        )


def _log_contig_mismatch(bam_path: str | Path, index: RegionIndex, logger: logging.Logger) -> None:
    refs = bam_references(bam_path)
    gtf_contigs = set(index.chromosomes)
    bam_contigs = set(refs)
    only_gtf = sorted(gtf_contigs - bam_contigs)
    only_bam = sorted(bam_contigs - gtf_contigs)
    logger.debug(f"BAM references: {refs[:10]}")
    logger.debug(f"Contigs in GTF not in BAM (first 20): {only_gtf[:20]}")
    logger.debug(f"Contigs in BAM not in GTF (first 20): {only_bam[:20]}")
    if not gtf_contigs & bam_contigs:
        logger.warning(
            "No contig names shared between BAM and GTF. Check genome build (chr1 vs 1)."
        )


def count_exon_reads(
    bam_path: str | Path,
    gtf_path: str | Path,
    *,
    config: Optional[FilterConfig] = None,
    log_level: str = "INFO",
    progress_every: int = 1_000_000,
) -> int:
    """
    Count unmapped, mapped and exon-mapped reads of one BAM against the
    exons of a GTF file, print the three totals and return an exit status.
    """
    logger = _make_logger(log_level)
    config = config or FilterConfig()

    logger.debug(f"Python version: {sys.version}")
    logger.debug(f"Starting memory: {_get_memory_usage():.1f} MB")

    try:
        _validate_inputs(bam_path, gtf_path, config)
    except ConfigurationError as e:
        logger.error(str(e))
        return 2

    logger.info(
        f"Filters: min_mapq={config.min_mapping_quality}, "
        f"required_flags={config.required_flags}, filtered_flags={config.filtered_flags}"
    )

    try:
        logger.info(f"Reading GTF file: {gtf_path}")
        regions = load_exon_regions(gtf_path, logger=logger)
        index = RegionIndex.build(regions, logger=logger)
        logger.info(f"Counting {len(index)} exon regions on {len(index.chromosomes)} chromosomes")

        if logger.isEnabledFor(logging.DEBUG):
            _log_contig_mismatch(bam_path, index, logger)

        logger.info(f"Counting reads in {bam_path}")
        counters = run(
            iter_alignment_records(bam_path),
            index,
            config,
            logger=logger,
            progress_every=progress_every,
        )
    except (DecodeError, MalformedRegionError) as e:
        # No partial totals on a broken input
        logger.error(str(e))
        return 1

    print(f"{counters.mapped} total mapped reads")
    print(f"{counters.mapped_exon} exon mapped reads")
    print(f"{counters.unmapped} unmapped reads")

    logger.info(f"Final memory usage: {_get_memory_usage():.1f} MB")
    return 0
