from __future__ import annotations
from pathlib import Path
import gzip
import logging
from typing import List, TextIO

from .classes import ExonRegion


def _open_text_auto(path: str | Path, mode: str = "rt") -> TextIO:
    p = Path(path)
    if p.suffix.lower() == ".gz":
        return gzip.open(p, mode, encoding="utf-8", errors="replace")
    return open(p, mode, encoding="utf-8", errors="replace")


def load_exon_regions(
        gtf_path: str | Path,
        feature: str = "exon",
        logger: logging.Logger | None = None,
) -> List[ExonRegion]:
    """
    Read the exon features of a GTF (.gtf or .gtf.gz) file.

    GTF coordinates are 1-based and inclusive; the returned regions are 0-based
    and half-open, sorted by chromosome, start and end.
    """
    regions: List[ExonRegion] = []
    # Rows that looked like features but had unusable coordinates
    bad_rows = 0

    with _open_text_auto(gtf_path) as fh:
        for line in fh:
            if not line.strip() or line.startswith("#"):
                continue
            cols = line.rstrip("\n").split("\t")
            if len(cols) < 9:
                continue
            if cols[2] != feature:
                continue
            try:
                start = int(cols[3]) - 1
                end = int(cols[4])
            except ValueError:
                bad_rows += 1
                continue
            regions.append(ExonRegion(cols[0], start, end))

    regions.sort(key=lambda r: (r.chromosome, r.start, r.end))

    if logger:
        logger.info(f"GTF loaded: {len(regions)} {feature} features from {gtf_path}")
        if bad_rows:
            logger.warning(f"Skipped {bad_rows} {feature} rows with non-integer coordinates in {gtf_path}")
    return regions
