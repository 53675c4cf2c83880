import pytest

from exoncount.classes import AlignmentRecord


class FakeAlignment:
    """Stand-in for a bamnostic AlignedSegment."""
    def __init__(self, flag=3, mapq=60, reference_name="chr1", pos=0, cigar=None, reference_end=None):
        self.flag = flag
        self.mapq = mapq
        self.reference_name = reference_name
        self.pos = pos
        self.cigar = cigar if cigar is not None else []
        if reference_end is not None:
            self.reference_end = reference_end


class FakeAlignmentFile:
    def __init__(self, alignments, references=("chr1",), fail_at=None):
        self._alignments = list(alignments)
        self.references = list(references)
        self._fail_at = fail_at
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    def __iter__(self):
        for i, aln in enumerate(self._alignments):
            if self._fail_at is not None and i == self._fail_at:
                raise ValueError("truncated BGZF block")
            yield aln

    def close(self):
        self.closed = True


def mapped(chrom, start, end, flags=3, mapq=60):
    return AlignmentRecord(flags, mapq, True, chrom, start, end)


def unmapped(flags=7, mapq=0):
    return AlignmentRecord(flags, mapq, False, None, None, None)


@pytest.fixture
def fake_bam(monkeypatch):
    """Patch bamnostic so that opening any path yields the given alignments."""
    from exoncount import bamio

    def install(alignments, **kw):
        opened = {}

        def fake_alignmentfile(path, mode):
            opened["path"] = path
            opened["mode"] = mode
            return FakeAlignmentFile(alignments, **kw)
        monkeypatch.setattr(bamio.bn, "AlignmentFile", fake_alignmentfile)
        return opened
    return install
