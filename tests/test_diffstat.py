import pytest
from seqdiff.core.scoring import Scoring
from seqdiff.align.alignment import AlignmentMode
from seqdiff.align.distance import LengthMismatchError
from seqdiff.containers.mutations import NotAlignedError
from seqdiff.diffstat import DiffStat


class TestDiffStat:
    def test_distances(self):
        ds = DiffStat(b'GATTACA', 'GACTATA')
        assert ds.levenshtein() == 2
        assert ds.hamming() == 2

    def test_hamming_length_mismatch(self):
        with pytest.raises(LengthMismatchError):
            DiffStat(b'ACGT', b'AGT').hamming()

    def test_no_alignment(self):
        ds = DiffStat(b'ACGT', b'AGT')
        assert ds.alignment is None
        with pytest.raises(NotAlignedError):
            ds.pretty()
        with pytest.raises(NotAlignedError):
            ds.mutations()

    @pytest.mark.parametrize('method, mode', [
        ('pairwise_aligner_global', AlignmentMode.GLOBAL),
        ('pairwise_aligner_local', AlignmentMode.LOCAL),
        ('pairwise_aligner_semiglobal', AlignmentMode.SEMIGLOBAL),
    ])
    def test_aligners_store_result(self, method, mode):
        ds = DiffStat(b'ACGTACGT', b'TTACGTACGTTT', Scoring())
        aln = getattr(ds, method)()
        assert ds.alignment is aln
        assert aln.mode == mode

    def test_last_alignment_wins(self):
        ds = DiffStat(b'ACGT', b'TTACGTTT')
        ds.pairwise_aligner_global()
        local = ds.pairwise_aligner_local()
        assert ds.alignment is local

    def test_pretty(self):
        ds = DiffStat(b'CCGTCCGGCAAGGG', b'AAAAACCGTTGACGGCCAA', Scoring(-1, -1))
        ds.pairwise_aligner_global()
        assert ds.pretty(100) == (
            '-----CCGT--CCGGCAAGGG\n'
            'xxxxx||||xx\\||||\\|++\\\n'
            'AAAAACCGTTGACGGCCA--A\n\n\n'
        )

    def test_mutations(self):
        ds = DiffStat(b'ACGT', b'ACCT')
        ds.pairwise_aligner_semiglobal()
        assert ds.mutations().substitutions == 1
