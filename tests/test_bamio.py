import pytest

from exoncount import bamio
from exoncount.classes import AlignmentRecord
from exoncount.errors import DecodeError

from conftest import FakeAlignment


@pytest.mark.parametrize("cigar, end", [
    ([("M", 50)], 150),
    ([("M", 10), ("N", 50), ("M", 10)], 170),
    ([("S", 4), ("M", 45), ("I", 3), ("D", 2), ("H", 5)], 147),
    ([("=", 10), ("X", 1), ("P", 2), ("=", 9)], 120),
])
def test_cigar_end_pos(cigar, end):
    assert bamio.cigar_end_pos(100, cigar) == end


def test_cigar_end_pos_rnaseq():
    assert bamio.cigar_end_pos(61_820_205, [("M", 85), ("N", 24_899), ("M", 16)]) == 61_845_205


def test_cigar_from_bam_op_codes():
    aln = FakeAlignment(pos=100, cigar=[(4, 2), (0, 10), (3, 100), (0, 5)])
    rec = bamio.extract_alignment_record(aln)
    assert (rec.mapped_start, rec.mapped_end) == (100, 215)


def test_cigar_from_string():
    aln = FakeAlignment(pos=100, cigar="5S20M3D10M")
    assert bamio.extract_alignment_record(aln).mapped_end == 133


def test_reference_end_preferred():
    aln = FakeAlignment(pos=100, cigar=[(0, 10)], reference_end=999)
    assert bamio.extract_alignment_record(aln).mapped_end == 999


def test_unmapped_from_flag():
    aln = FakeAlignment(flag=3 | 4, mapq=0, reference_name="chr1", pos=100)
    rec = bamio.extract_alignment_record(aln)
    assert rec == AlignmentRecord(7, 0, False, None, None, None)


def test_iter_alignment_records(fake_bam):
    opened = fake_bam([
        FakeAlignment(flag=3, mapq=60, pos=10, cigar=[(0, 20)]),
        FakeAlignment(flag=7, mapq=0),
    ])
    records = list(bamio.iter_alignment_records("fake.bam"))
    assert opened == {"path": "fake.bam", "mode": "rb"}
    assert records[0] == AlignmentRecord(3, 60, True, "chr1", 10, 30)
    assert not records[1].is_mapped


def test_decode_error_mid_stream(fake_bam):
    fake_bam([FakeAlignment(), FakeAlignment(), FakeAlignment()], fail_at=2)
    it = bamio.iter_alignment_records("broken.bam")
    next(it)
    next(it)
    with pytest.raises(DecodeError, match="record 3"):
        next(it)


def test_open_failure(monkeypatch):
    def fail(path, mode):
        raise OSError("not a BGZF file")
    monkeypatch.setattr(bamio.bn, "AlignmentFile", fail)
    with pytest.raises(DecodeError, match="Could not open BAM"):
        list(bamio.iter_alignment_records("bad.bam"))


def test_bam_references(fake_bam):
    fake_bam([], references=("chr1", "chr2"))
    assert bamio.bam_references("fake.bam") == ["chr1", "chr2"]
