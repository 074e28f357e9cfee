"""
Module for representing pairwise alignments.
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import Union, Iterator

import numpy as np

from seqdiff.core.seq import SeqLike, as_bytes
from seqdiff.utils.resources import jit


# Classes --------------------------------------------------------------------------------------------------------------
class AlignmentMode(IntEnum):
    """Alignment strategy controlling how terminal gaps are scored."""
    GLOBAL = 0
    LOCAL = 1
    SEMIGLOBAL = 2

    @classmethod
    def of(cls, value: Union[str, int, 'AlignmentMode']) -> 'AlignmentMode':
        """Coerces a mode name (case-insensitive) or value into an AlignmentMode."""
        if isinstance(value, str):
            try: return cls[value.upper()]
            except KeyError: raise ValueError(f'Unknown alignment mode: {value!r}') from None
        return cls(value)


class AlignmentOperation(IntEnum):
    """
    One column of an alignment trace, read from the reference (x) to the query (y).

    ``INS`` is a reference symbol with no query counterpart, ``DEL`` a query symbol with no reference
    counterpart. Clip operations mark a single unaligned symbol at either end of a local or semiglobal
    alignment.
    """
    MATCH = 0
    SUBST = 1
    DEL = 2
    INS = 3
    XCLIP = 4
    YCLIP = 5

    @property
    def is_clip(self) -> bool: return self >= AlignmentOperation.XCLIP
    @property
    def consumes_x(self) -> bool: return self in _X_CONSUMERS
    @property
    def consumes_y(self) -> bool: return self in _Y_CONSUMERS


@dataclass(frozen=True, slots=True, repr=False)
class Alignment:
    """
    The result of one aligner call.

    Coordinates are 0-based half-open: ``x[xstart:xend]`` is aligned against ``y[ystart:yend]``.
    The trace covers both sequences completely; symbols outside the aligned region appear as
    ``XCLIP``/``YCLIP`` operations (prefix clips first, then the aligned core, then suffix clips).

    Attributes:
        score: Total alignment score.
        xstart: Start of the aligned region in the reference (x).
        xend: End of the aligned region in the reference.
        ystart: Start of the aligned region in the query (y).
        yend: End of the aligned region in the query.
        xlen: Length of the reference.
        ylen: Length of the query.
        operations: The ordered operation trace.
        mode: The mode the alignment was computed in.
    """
    score: int
    xstart: int
    xend: int
    ystart: int
    yend: int
    xlen: int
    ylen: int
    operations: tuple[AlignmentOperation, ...]
    mode: AlignmentMode = AlignmentMode.GLOBAL

    def __repr__(self):
        return (f"Alignment(score={self.score}, x={self.xstart}..{self.xend}/{self.xlen}, "
                f"y={self.ystart}..{self.yend}/{self.ylen}, mode={self.mode.name}, length={len(self)})")

    def __len__(self): return len(self.operations)
    def __iter__(self) -> Iterator[AlignmentOperation]: return iter(self.operations)

    @property
    def codes(self) -> np.ndarray:
        """The trace as a ``uint8`` array of operation codes."""
        return np.fromiter(self.operations, dtype=np.uint8, count=len(self.operations))

    @property
    def aligned_length(self) -> int:
        """Number of non-clip operations."""
        return sum(1 for op in self.operations if not op.is_clip)

    def pretty(self, x: SeqLike, y: SeqLike, ncol: int = 100) -> str:
        """
        Renders the alignment as blocks of three rows: reference, markers and query.

        Markers are ``|`` for a match, ``\\`` for a substitution, ``x`` for a deletion (gap in the
        reference row), ``+`` for an insertion (gap in the query row) and a space for clipped symbols.
        Rows are wrapped every ``ncol`` columns and each block is followed by two newlines.

        Args:
            x: The reference sequence the alignment was computed on.
            y: The query sequence the alignment was computed on.
            ncol: Number of columns per block.

        Returns:
            The rendering, or an empty string for an empty trace.

        Examples:
            >>> print(aligner.global_(b'ACGT', b'AGT').pretty(b'ACGT', b'AGT'), end='')
            ACGT
            |+||
            A-GT
        """
        x, y = as_bytes(x), as_bytes(y)
        if len(x) != self.xlen or len(y) != self.ylen:
            raise ValueError(f'Sequences of length ({len(x)}, {len(y)}) do not match the alignment '
                             f'({self.xlen}, {self.ylen})')
        if ncol < 1: raise ValueError(f'Column width must be positive, got {ncol}')
        top, mid, bottom = bytearray(), bytearray(), bytearray()
        xi = yi = 0
        for op in self.operations:
            # Clipped symbols face blanks, gaps face dashes
            pad = _BLANK if op.is_clip else _GAP_GLYPH
            if op.consumes_x:
                top.append(x[xi]); xi += 1
            else:
                top.append(pad)
            if op.consumes_y:
                bottom.append(y[yi]); yi += 1
            else:
                bottom.append(pad)
            mid.append(_MARKERS[op])

        blocks = []
        for start in range(0, len(top), ncol):
            stop = start + ncol
            blocks.append(b'%s\n%s\n%s\n\n\n' % (top[start:stop], mid[start:stop], bottom[start:stop]))
        return b''.join(blocks).decode('latin-1')

    def cigar(self) -> bytes:
        """
        Returns the extended CIGAR of the alignment against the reference (x).

        ``=``/``X`` for matches and substitutions, ``I`` for query-only symbols (``DEL``), ``D`` for
        reference-only symbols (``INS``) and ``S`` for clipped query symbols. Clipped reference symbols
        are not represented; they only move ``xstart``.

        Examples:
            >>> aligner.global_(b'ACGT', b'AGT').cigar()
            b'1=1D2='
        """
        counts, ops = _cigar_rle_kernel(self.codes, _CIGAR_SKIP)
        return b''.join([b'%d' % c + _CIGAR_SYMBOLS[o] for c, o in zip(counts.tolist(), ops.tolist())])


# Constants ------------------------------------------------------------------------------------------------------------
_X_CONSUMERS = frozenset({AlignmentOperation.MATCH, AlignmentOperation.SUBST, AlignmentOperation.INS,
                          AlignmentOperation.XCLIP})
_Y_CONSUMERS = frozenset({AlignmentOperation.MATCH, AlignmentOperation.SUBST, AlignmentOperation.DEL,
                          AlignmentOperation.YCLIP})
OPERATIONS = tuple(AlignmentOperation)
_MARKERS = b'|\\x+  '
_GAP_GLYPH, _BLANK = ord('-'), ord(' ')
_CIGAR_SYMBOLS = (b'=', b'X', b'I', b'D', b'', b'S')
_CIGAR_SKIP = int(AlignmentOperation.XCLIP)


# Functions ------------------------------------------------------------------------------------------------------------
def operations_from_codes(codes: np.ndarray) -> tuple[AlignmentOperation, ...]:
    """Converts an array of operation codes into a tuple of AlignmentOperation."""
    return tuple(OPERATIONS[c] for c in codes.tolist())


@jit(nopython=True, cache=True, nogil=True)
def _cigar_rle_kernel(codes, skip_code):
    n = len(codes)
    counts = np.empty(n, dtype=np.int32); ops = np.empty(n, dtype=np.uint8); idx = 0
    curr_op = 255; curr_count = 0
    for i in range(n):
        op = codes[i]
        if op == skip_code: continue
        if op == curr_op:
            curr_count += 1
        else:
            if curr_count > 0:
                counts[idx] = curr_count; ops[idx] = curr_op; idx += 1
            curr_op = op; curr_count = 1
    if curr_count > 0:
        counts[idx] = curr_count; ops[idx] = curr_op; idx += 1
    return counts[:idx], ops[:idx]
