"""
Pairwise alignment with affine gaps (Gotoh) in global, local and semiglobal modes.

The fill kernel keeps three score layers (best, ending in an insertion, ending in a deletion) over two
rolling rows and records one ``uint8`` trace flag per cell, so memory is ``O(m * n)`` bytes and the
scores are ``O(n)``. Ties are broken in a fixed order: diagonal, then insertion, then deletion, and a
gap is only extended when extending strictly beats re-opening it.
"""
from typing import Iterable, Union

import numpy as np

from seqdiff.core.scoring import Scoring
from seqdiff.core.seq import SeqLike, as_symbols
from seqdiff.align.alignment import Alignment, AlignmentMode, AlignmentOperation, operations_from_codes
from seqdiff.utils.resources import RESOURCES, jit


# Constants ------------------------------------------------------------------------------------------------------------
NEG_INF = -1_000_000_000
# Source of the best score, low 3 bits of the trace flag
_TB_START = 0
_TB_MATCH = 1
_TB_SUBST = 2
_TB_INS = 3
_TB_DEL = 4
_TB_MASK = 7
# Gap layer extension bits
_TB_I_EXT = 8
_TB_D_EXT = 16

_GLOBAL = int(AlignmentMode.GLOBAL)
_LOCAL = int(AlignmentMode.LOCAL)
_SEMIGLOBAL = int(AlignmentMode.SEMIGLOBAL)

_OP_MATCH = int(AlignmentOperation.MATCH)
_OP_SUBST = int(AlignmentOperation.SUBST)
_OP_DEL = int(AlignmentOperation.DEL)
_OP_INS = int(AlignmentOperation.INS)
_OP_XCLIP = int(AlignmentOperation.XCLIP)
_OP_YCLIP = int(AlignmentOperation.YCLIP)


# Classes --------------------------------------------------------------------------------------------------------------
class Aligner:
    """
    Pairwise aligner for one scoring policy.

    ``x`` is the reference and ``y`` the query. In global mode both are aligned end to end; in local
    mode the best-scoring pair of substrings is aligned; in semiglobal mode ``x`` is aligned end to end
    against a substring of ``y`` (the unaligned ends of ``y`` are free).

    Args:
        scoring: The scoring policy. Defaults to ``Scoring()``.

    Examples:
        >>> aligner = Aligner(Scoring(-5, -1, match=1, mismatch=-1))
        >>> aln = aligner.global_(b'ACGT', b'AGT')
        >>> aln.score, aln.cigar()
        (-3, b'1=1D2=')
    """
    __slots__ = ('scoring',)

    def __init__(self, scoring: Scoring = None):
        self.scoring = scoring if scoring is not None else Scoring()

    def __repr__(self): return f"Aligner({self.scoring!r})"

    def global_(self, x: SeqLike, y: SeqLike) -> Alignment:
        """Aligns ``x`` and ``y`` end to end."""
        return self.align(x, y, AlignmentMode.GLOBAL)

    def local(self, x: SeqLike, y: SeqLike) -> Alignment:
        """Finds the best-scoring alignment between any substring of ``x`` and any substring of ``y``."""
        return self.align(x, y, AlignmentMode.LOCAL)

    def semiglobal(self, x: SeqLike, y: SeqLike) -> Alignment:
        """Aligns all of ``x`` against the best-scoring substring of ``y``."""
        return self.align(x, y, AlignmentMode.SEMIGLOBAL)

    def align(self, x: SeqLike, y: SeqLike, mode: Union[str, int, AlignmentMode] = AlignmentMode.GLOBAL) -> Alignment:
        """
        Aligns ``x`` (reference) against ``y`` (query).

        Args:
            x: Reference sequence.
            y: Query sequence.
            mode: One of ``'global'``, ``'local'`` or ``'semiglobal'``.

        Returns:
            The Alignment, including clip operations for unaligned ends.
        """
        mode = AlignmentMode.of(mode)
        xs, ys = as_symbols(x), as_symbols(y)
        m, n = len(xs), len(ys)
        trace = np.zeros((m + 1, n + 1), dtype=np.uint8)
        score, xend, yend = _fill_kernel(xs, ys, self.scoring.table, self.scoring.gap_open,
                                         self.scoring.gap_extend, int(mode), trace)
        core, xstart, ystart = _traceback_kernel(trace, xend, yend)
        codes = np.concatenate((
            np.full(xstart, _OP_XCLIP, dtype=np.uint8), np.full(ystart, _OP_YCLIP, dtype=np.uint8), core,
            np.full(m - xend, _OP_XCLIP, dtype=np.uint8), np.full(n - yend, _OP_YCLIP, dtype=np.uint8)
        ))
        return Alignment(int(score), int(xstart), int(xend), int(ystart), int(yend), m, n,
                         operations_from_codes(codes), mode)

    def align_many(self, pairs: Iterable[tuple[SeqLike, SeqLike]],
                   mode: Union[str, int, AlignmentMode] = AlignmentMode.GLOBAL) -> list[Alignment]:
        """
        Aligns many ``(x, y)`` pairs on the shared worker pool.

        The kernels release the GIL when compiled, so pairs are aligned concurrently. Results are
        returned in input order.
        """
        mode = AlignmentMode.of(mode)
        return list(RESOURCES.pool.map(lambda pair: self.align(pair[0], pair[1], mode), pairs))


# Kernels --------------------------------------------------------------------------------------------------------------
@jit(nopython=True, cache=True, nogil=True)
def _fill_kernel(x, y, matrix, gap_open, gap_extend, mode, trace):
    """
    Fills the trace matrix and returns ``(score, end_row, end_col)``.

    A gap of length L scores ``gap_open + gap_extend * L``.
    """
    rows = len(x) + 1
    cols = len(y) + 1
    gap_first = gap_open + gap_extend
    s_prev = np.zeros(cols, dtype=np.int64)
    s_cur = np.zeros(cols, dtype=np.int64)
    i_prev = np.full(cols, NEG_INF, dtype=np.int64)
    i_cur = np.full(cols, NEG_INF, dtype=np.int64)
    if mode == _GLOBAL:
        for c in range(1, cols):
            s_prev[c] = gap_first + (c - 1) * gap_extend
            trace[0, c] = _TB_DEL | (_TB_D_EXT if c > 1 else 0)
    best_score, best_r, best_c = 0, 0, 0
    for r in range(1, rows):
        if mode == _LOCAL:
            s_cur[0] = 0
        else:
            s_cur[0] = gap_first + (r - 1) * gap_extend
            trace[r, 0] = _TB_INS | (_TB_I_EXT if r > 1 else 0)
        running_d = NEG_INF
        char_x = x[r - 1]
        for c in range(1, cols):
            i_ext = i_prev[c] + gap_extend
            i_open = s_prev[c] + gap_first
            if i_ext > i_open:
                i_cur[c] = i_ext; i_bit = _TB_I_EXT
            else:
                i_cur[c] = i_open; i_bit = 0
            d_ext = running_d + gap_extend
            d_open = s_cur[c - 1] + gap_first
            if d_ext > d_open:
                running_d = d_ext; d_bit = _TB_D_EXT
            else:
                running_d = d_open; d_bit = 0
            char_y = y[c - 1]
            best = s_prev[c - 1] + matrix[char_x, char_y]
            source = _TB_MATCH if char_x == char_y else _TB_SUBST
            if i_cur[c] > best: best = i_cur[c]; source = _TB_INS
            if running_d > best: best = running_d; source = _TB_DEL
            if mode == _LOCAL:
                if best < 0: best = 0; source = _TB_START
                if best > best_score: best_score = best; best_r = r; best_c = c
            s_cur[c] = best
            trace[r, c] = source | i_bit | d_bit
        s_prev, s_cur = s_cur, s_prev
        i_prev, i_cur = i_cur, i_prev

    if mode == _LOCAL: return best_score, best_r, best_c
    if mode == _SEMIGLOBAL:
        best_c = cols - 1
        best_score = s_prev[best_c]
        for c in range(cols):
            if s_prev[c] > best_score: best_score = s_prev[c]; best_c = c
        return best_score, rows - 1, best_c
    return s_prev[cols - 1], rows - 1, cols - 1


@jit(nopython=True, cache=True, nogil=True)
def _traceback_kernel(trace, end_r, end_c):
    """Walks the trace back from the end cell; returns ``(operation codes, start_row, start_col)``."""
    r, c = end_r, end_c
    ops = np.empty(r + c, dtype=np.uint8)
    k = 0
    layer = 0  # 0: best, 1: insertion, 2: deletion
    while True:
        flag = trace[r, c]
        if layer == 0:
            source = flag & _TB_MASK
            if source == _TB_START: break
            if source == _TB_MATCH or source == _TB_SUBST:
                ops[k] = _OP_MATCH if source == _TB_MATCH else _OP_SUBST
                k += 1; r -= 1; c -= 1
            elif source == _TB_INS: layer = 1
            else: layer = 2
        elif layer == 1:
            ops[k] = _OP_INS; k += 1
            if not flag & _TB_I_EXT: layer = 0
            r -= 1
        else:
            ops[k] = _OP_DEL; k += 1
            if not flag & _TB_D_EXT: layer = 0
            c -= 1
    return ops[:k][::-1].copy(), r, c
