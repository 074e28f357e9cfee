"""
Whole-sequence distance metrics.
"""
import numpy as np

from seqdiff.core.seq import SeqLike, as_symbols
from seqdiff.utils.resources import jit


# Exceptions -----------------------------------------------------------------------------------------------------------
class DistanceError(ValueError): pass
class LengthMismatchError(DistanceError): pass


# Functions ------------------------------------------------------------------------------------------------------------
def levenshtein(a: SeqLike, b: SeqLike) -> int:
    """
    Unit-cost edit distance: the minimum number of substitutions, insertions and deletions turning
    ``a`` into ``b``.

    Args:
        a: First sequence.
        b: Second sequence.

    Returns:
        The edit distance, 0 if and only if the sequences are equal.

    Examples:
        >>> levenshtein(b'kitten', b'sitting')
        3
    """
    a, b = as_symbols(a), as_symbols(b)
    # Keep the shorter sequence along the row buffer
    if len(a) < len(b): a, b = b, a
    return int(_levenshtein_kernel(a, b))


def hamming(a: SeqLike, b: SeqLike) -> int:
    """
    Number of positions at which two equal-length sequences differ.

    Raises:
        LengthMismatchError: If the sequences differ in length.

    Examples:
        >>> hamming(b'GATTACA', b'GACTATA')
        2
    """
    a, b = as_symbols(a), as_symbols(b)
    if len(a) != len(b):
        raise LengthMismatchError(f'Hamming distance requires equal lengths, got {len(a)} and {len(b)}')
    return int(np.count_nonzero(a != b))


@jit(nopython=True, cache=True, nogil=True)
def _levenshtein_kernel(a, b):
    cols = len(b) + 1
    prev = np.arange(cols, dtype=np.int64)
    curr = np.empty(cols, dtype=np.int64)
    for r in range(1, len(a) + 1):
        curr[0] = r
        char_a = a[r - 1]
        for c in range(1, cols):
            cost = 0 if char_a == b[c - 1] else 1
            best = prev[c - 1] + cost
            if prev[c] + 1 < best: best = prev[c] + 1
            if curr[c - 1] + 1 < best: best = curr[c - 1] + 1
            curr[c] = best
        prev, curr = curr, prev
    return prev[cols - 1]
