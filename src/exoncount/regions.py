from __future__ import annotations
from bisect import bisect_left
from typing import Dict, Iterable, List, Tuple
import logging

from .classes import ExonRegion
from .errors import MalformedRegionError


class _ChromRegions:
    """
    Exons of one chromosome sorted by start, with the running maximum of
    their ends. Any region starting before position p that reaches past q is
    found by one binary search, even when exons nest or overlap.
    """
    __slots__ = ("regions", "starts", "max_ends")

    def __init__(self, regions: List[ExonRegion]):
        self.regions = sorted(regions, key=lambda r: (r.start, r.end))
        self.starts = [r.start for r in self.regions]
        self.max_ends: List[int] = []
        running = None
        for r in self.regions:
            running = r.end if running is None or r.end > running else running
            self.max_ends.append(running)

    def overlaps(self, start: int, end: int) -> bool:
        # Regions [c, d) with c < end are the first i entries
        i = bisect_left(self.starts, end)
        return i > 0 and self.max_ends[i - 1] > start


class RegionIndex:
    """Per-chromosome exon lookup, read-only once built."""

    def __init__(self, by_chrom: Dict[str, _ChromRegions], n_regions: int, n_empty: int = 0):
        self._by_chrom = by_chrom
        self._n_regions = n_regions
        self.n_empty = n_empty

    @classmethod
    def build(
            cls,
            regions: Iterable[ExonRegion],
            logger: logging.Logger | None = None,
    ) -> "RegionIndex":
        """
        Group exons by chromosome and prepare them for overlap queries.

        Raises MalformedRegionError for a region ending before it starts.
        Zero-length regions cover no base and are left out of the lookup.
        """
        grouped: Dict[str, List[ExonRegion]] = {}
        n_regions = 0
        n_empty = 0
        for r in regions:
            if r.end < r.start:
                raise MalformedRegionError(
                    f"Exon region {r.chromosome}:{r.start}-{r.end} ends before it starts"
                )
            if r.end == r.start:
                n_empty += 1
                continue
            grouped.setdefault(r.chromosome, []).append(r)
            n_regions += 1

        by_chrom = {chr_: _ChromRegions(regs) for chr_, regs in grouped.items()}

        if logger and n_empty and logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Left out {n_empty} zero-length exon regions")
        return cls(by_chrom, n_regions, n_empty)

    def __len__(self) -> int:
        return self._n_regions

    def __contains__(self, chromosome: str) -> bool:
        return chromosome in self._by_chrom

    @property
    def chromosomes(self) -> List[str]:
        return sorted(self._by_chrom.keys())

    def regions_on(self, chromosome: str) -> Tuple[ExonRegion, ...]:
        chrom = self._by_chrom.get(chromosome)
        return tuple(chrom.regions) if chrom is not None else ()

    def overlaps(self, chromosome: str, start: int, end: int) -> bool:
        """True if [start, end) shares at least one base with an exon on chromosome."""
        if end <= start:
            return False
        chrom = self._by_chrom.get(chromosome)
        if chrom is None:
            return False
        return chrom.overlaps(start, end)
