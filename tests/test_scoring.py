import numpy as np
import pytest
from seqdiff.core.scoring import Scoring, GapPenalty, MatchParams, ScoreMatrix, ConfigurationError
from seqdiff.core.seq import as_symbols, SeqError


class TestGapPenalty:
    def test_valid(self):
        gap = GapPenalty(-5, -1)
        assert gap.open == -5
        assert gap.extend == -1

    @pytest.mark.parametrize('open_, extend', [(0, -1), (-5, 0), (5, -1), (-5, 1)])
    def test_non_negative_rejected(self, open_, extend):
        with pytest.raises(ConfigurationError, match="strictly negative"):
            GapPenalty(open_, extend)

    def test_non_integer_rejected(self):
        with pytest.raises(ConfigurationError, match="integer"):
            GapPenalty(-5.0, -1)

    def test_cost(self):
        gap = GapPenalty(-5, -1)
        assert gap.cost(0) == 0
        assert gap.cost(1) == -6
        assert gap.cost(3) == -8

    def test_of_tuple(self):
        assert GapPenalty.of((-5, -1)) == GapPenalty(-5, -1)
        gap = GapPenalty(-2, -1)
        assert GapPenalty.of(gap) is gap


class TestScoring:
    def test_defaults(self):
        scoring = Scoring()
        assert scoring.gap_open == -5
        assert scoring.gap_extend == -1
        assert scoring.score(b'A', b'A') == 1
        assert scoring.score('A', 'C') == -1
        assert scoring.score(65, 65) == 1

    def test_rejects_bad_gaps(self):
        with pytest.raises(ConfigurationError):
            Scoring(0, -1)
        with pytest.raises(ConfigurationError):
            Scoring(-5, 2)

    def test_from_gap(self):
        scoring = Scoring.from_gap((-3, -2), match=2, mismatch=-3)
        assert scoring.gap == GapPenalty(-3, -2)
        assert scoring.score(b'G', b'G') == 2
        assert scoring.score(b'G', b'T') == -3

    def test_callable_rule(self):
        scoring = Scoring(-5, -1, lambda a, b: 2 if a == b else -2)
        assert scoring.score(b'A', b'A') == 2
        assert scoring.score(b'A', b'T') == -2

    def test_asymmetric_rule_rejected(self):
        with pytest.raises(ConfigurationError, match="symmetric"):
            Scoring(-5, -1, lambda a, b: 1 if a < b else 0)

    def test_non_integer_rule_rejected(self):
        with pytest.raises(ConfigurationError, match="integers"):
            Scoring(-5, -1, lambda a, b: 0.5)

    def test_table_is_read_only(self):
        scoring = Scoring()
        assert scoring.table.shape == (256, 256)
        assert scoring.table.dtype == np.int32
        with pytest.raises(ValueError):
            scoring.table[0, 0] = 5

    def test_score_requires_single_symbol(self):
        with pytest.raises(ValueError, match="single symbol"):
            Scoring().score(b'AC', b'A')


class TestScoreMatrix:
    def test_build(self):
        m = ScoreMatrix.build(b'ACGT', match=2, mismatch=-2)
        assert m.shape == (4, 4)
        assert m(ord('A'), ord('A')) == 2
        assert m(ord('A'), ord('C')) == -2

    def test_blosum62(self):
        scoring = Scoring(-11, -1, ScoreMatrix.blosum62())
        assert scoring.score('W', 'W') == 11
        assert scoring.score('A', 'R') == -1
        # Lower-case symbols score like upper-case ones
        assert scoring.score('w', 'W') == 11
        # Symbols outside the alphabet take the matrix minimum
        assert scoring.score('X', 'A') == -4

    def test_call_pads_once(self, monkeypatch):
        m = ScoreMatrix.build(b'ACGT', match=2, mismatch=-2)
        calls = []
        table = ScoreMatrix.table
        monkeypatch.setattr(ScoreMatrix, 'table', lambda self, *a: calls.append(1) or table(self, *a))
        assert m(ord('A'), ord('A')) == 2
        assert m(ord('C'), ord('G')) == -2
        assert m(ord('g'), ord('G')) == 2
        assert len(calls) == 1

    def test_shape_mismatch(self):
        with pytest.raises(ConfigurationError, match="does not match"):
            ScoreMatrix(np.zeros((3, 3)), b'ACGT')

    def test_duplicate_alphabet(self):
        with pytest.raises(ConfigurationError, match="duplicate"):
            ScoreMatrix(np.zeros((2, 2)), b'AA')

    def test_match_params_table(self):
        table = MatchParams(3, -1).table()
        assert table[10, 10] == 3
        assert table[10, 11] == -1


class TestSymbols:
    def test_inputs(self):
        expected = [65, 67, 71, 84]
        np.testing.assert_array_equal(as_symbols(b'ACGT'), expected)
        np.testing.assert_array_equal(as_symbols('ACGT'), expected)
        np.testing.assert_array_equal(as_symbols(bytearray(b'ACGT')), expected)
        np.testing.assert_array_equal(as_symbols(np.array(expected, dtype=np.int64)), expected)

    def test_read_only(self):
        arr = as_symbols(b'ACGT')
        assert arr.dtype == np.uint8
        assert not arr.flags.writeable

    def test_invalid(self):
        with pytest.raises(SeqError):
            as_symbols(1234)
        with pytest.raises(SeqError, match="ASCII"):
            as_symbols('ACGTé')
        with pytest.raises(SeqError, match="1-D"):
            as_symbols(np.zeros((2, 2), dtype=np.uint8))

    def test_out_of_range_integers_rejected(self):
        with pytest.raises(SeqError, match="0..255"):
            as_symbols(np.array([321, 65]))
        with pytest.raises(SeqError, match="0..255"):
            as_symbols(np.array([-1, 65]))
        np.testing.assert_array_equal(as_symbols(np.array([0, 255], dtype=np.int32)), [0, 255])
        assert len(as_symbols(np.array([], dtype=np.int64))) == 0
