"""
Scoring policies: substitution scores and affine gap penalties.

A policy pairs a substitution rule, any callable ``(a: int, b: int) -> int`` over byte values, with a
``GapPenalty``. The rule is tabulated once into a 256x256 lookup matrix so the DP kernels never call
back into Python.
"""
from dataclasses import dataclass
from typing import Union, Callable, Iterable

import numpy as np


# Exceptions -----------------------------------------------------------------------------------------------------------
class ConfigurationError(ValueError): pass


# Constants ------------------------------------------------------------------------------------------------------------
_N_SYMBOLS = 256
_TABLE_DTYPE = np.int32


# Classes --------------------------------------------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class GapPenalty:
    """
    Affine gap penalty.

    A gap of length ``L`` scores ``open + extend * L``: opening charges ``open + extend`` and every
    further column charges ``extend``. Both values must be strictly negative.

    Attributes:
        open: Score for opening a gap.
        extend: Score for each column of a gap.

    Raises:
        ConfigurationError: If either value is not a strictly negative integer.

    Examples:
        >>> GapPenalty(-5, -1).cost(3)
        -8
    """
    open: int
    extend: int

    def __post_init__(self):
        for name in ('open', 'extend'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise ConfigurationError(f'Gap {name} penalty must be an integer, got {value!r}')
            if value >= 0:
                raise ConfigurationError(f'Gap {name} penalty must be strictly negative, got {value}')
            object.__setattr__(self, name, int(value))

    @classmethod
    def of(cls, value: Union['GapPenalty', tuple[int, int]]) -> 'GapPenalty':
        """Coerces an ``(open, extend)`` tuple into a GapPenalty."""
        if isinstance(value, cls): return value
        open_, extend = value
        return cls(open_, extend)

    def cost(self, length: int) -> int:
        """Returns the score of a gap of ``length`` columns (0 for no gap)."""
        return self.open + self.extend * length if length > 0 else 0


@dataclass(frozen=True, slots=True)
class MatchParams:
    """
    Simple match/mismatch scoring rule.

    Examples:
        >>> MatchParams(1, -1)(65, 65)
        1
    """
    match: int = 1
    mismatch: int = -1

    def __call__(self, a: int, b: int) -> int: return self.match if a == b else self.mismatch

    def table(self) -> np.ndarray:
        """Returns the rule as a 256x256 lookup table."""
        table = np.full((_N_SYMBOLS, _N_SYMBOLS), self.mismatch, dtype=_TABLE_DTYPE)
        np.fill_diagonal(table, self.match)
        return table


class ScoreMatrix:
    """
    Represents a substitution matrix over an alphabet of byte symbols.

    Attributes:
        _data (np.ndarray): The raw matrix data.
        _alphabet (bytes): The symbols indexing the rows and columns.

    Examples:
        >>> m = ScoreMatrix.build(b'ACGT', match=2, mismatch=-2)
        >>> m(ord('A'), ord('A'))
        2
    """
    _DTYPE = np.int8
    __slots__ = ('_data', '_alphabet', '_padded')

    def __init__(self, data: Union[np.ndarray, Iterable], alphabet: bytes):
        self._data = np.ascontiguousarray(data, dtype=self._DTYPE)
        if self._data.shape != (len(alphabet), len(alphabet)):
            raise ConfigurationError(f'Matrix shape {self._data.shape} does not match alphabet of {len(alphabet)}')
        if len(set(alphabet)) != len(alphabet): raise ConfigurationError('Alphabet contains duplicate symbols')
        self._data.flags.writeable = False
        self._alphabet = bytes(alphabet)
        self._padded = None

    def __getitem__(self, item): return self._data[item]
    def __array__(self, dtype=None, copy=None): return self._data.astype(dtype, copy=False) if dtype else self._data
    def __repr__(self): return f"ScoreMatrix({self._alphabet.decode('ascii', 'replace')})"
    def __call__(self, a: int, b: int) -> int:
        if self._padded is None: self._padded = self.table()
        return int(self._padded[a, b])
    @property
    def shape(self): return self._data.shape
    @property
    def alphabet(self) -> bytes: return self._alphabet

    @classmethod
    def blosum62(cls):
        """Returns the BLOSUM62 matrix."""
        data = [
            4, 0, -2, -1, -2, 0, -2, -1, -1, -1, -1, -2, -1, -1, -1, 1, 0, 0, -3, -2,
            0, 9, -3, -4, -2, -3, -3, -1, -3, -1, -1, -3, -3, -3, -3, -1, -1, -1, -2, -2,
            -2, -3, 6, 2, -3, -1, -1, -3, -1, -4, -3, 1, -1, 0, -2, 0, -1, -3, -4, -3,
            -1, -4, 2, 5, -3, -2, 0, -3, 1, -3, -2, 0, -1, 2, 0, 0, -1, -2, -3, -2,
            -2, -2, -3, -3, 6, -3, -1, 0, -3, 0, 0, -3, -4, -3, -3, -2, -2, -1, 1, 3,
            0, -3, -1, -2, -3, 6, -2, -4, -2, -4, -3, 0, -2, -2, -2, 0, -2, -3, -2, -3,
            -2, -3, -1, 0, -1, -2, 8, -3, -1, -3, -2, 1, -2, 0, 0, -1, -2, -3, -2, 2,
            -1, -1, -3, -3, 0, -4, -3, 4, -3, 2, 1, -3, -3, -3, -3, -2, -1, 3, -3, -1,
            -1, -3, -1, 1, -3, -2, -1, -3, 5, -2, -3, 2, 0, -3, -3, 1, 0, -3, -1, 2,
            -1, -1, -4, -3, 0, -4, -3, 2, -2, 4, 2, -3, -3, -2, -2, -2, -1, 1, -2, -1,
            -1, -1, -3, -2, 0, -3, -2, 1, -3, 2, 5, -2, -2, 0, -1, -1, -1, 1, -1, -1,
            -2, -3, 1, 0, -3, 0, 1, -3, 2, -3, -2, 6, -2, -4, -4, -1, 0, -3, -1, -3,
            -1, -3, -1, -1, -4, -2, -2, -3, 0, -3, -2, -2, 7, -1, -2, -1, -1, -2, -4, -3,
            -1, -3, 0, 2, -3, -2, 0, -3, -3, -2, 0, -4, -1, 5, 1, 0, -1, -2, -2, -1,
            -1, -3, -2, 0, -3, -2, 0, -3, -3, -2, -1, -4, -2, 1, 5, -1, -1, -3, -3, -2,
            1, -1, 0, 0, -2, 0, -1, -2, 1, -2, -1, -1, -1, 0, -1, 4, 1, -2, -3, -2,
            0, -1, -1, -1, -2, -2, -2, -1, 0, -1, -1, 0, -1, -1, -1, 1, 5, 0, -2, -2,
            0, -1, -3, -2, -1, -3, -3, 3, -3, 1, 1, -3, -2, -2, -3, -2, 0, 4, -3, -1,
            -3, -2, -4, -3, 1, -2, -2, -3, -1, -2, -1, -1, -4, -2, -3, -3, -2, -3, 11, 2,
            -2, -2, -3, -2, 3, -3, 2, -1, 2, -1, -1, -3, -3, -1, -2, -2, -2, -1, 2, 7
        ]
        return cls(np.array(data, dtype=cls._DTYPE).reshape(20, 20), b'ACDEFGHIKLMNPQRSTVWY')

    @classmethod
    def build(cls, alphabet: bytes, match=1, mismatch=-1):
        """Builds a simple match/mismatch matrix."""
        n = len(alphabet)
        M = np.full((n, n), mismatch, dtype=cls._DTYPE)
        np.fill_diagonal(M, match)
        return cls(M, alphabet)

    def table(self, fill_value: int = None) -> np.ndarray:
        """
        Pads the matrix to the full uint8 range (0-255) so kernels can index it by raw byte values.

        Lower-case symbols score like their upper-case counterparts; symbols outside the alphabet score
        ``fill_value`` (the matrix minimum by default).
        """
        if fill_value is None: fill_value = int(np.min(self._data))
        table = np.full((_N_SYMBOLS, _N_SYMBOLS), fill_value, dtype=_TABLE_DTYPE)
        codes = np.frombuffer(self._alphabet, dtype=np.uint8)
        lower = np.frombuffer(self._alphabet.lower(), dtype=np.uint8)
        for rows in (codes, lower):
            for cols in (codes, lower):
                table[np.ix_(rows, cols)] = self._data
        return table


class Scoring:
    """
    The scoring policy used by every aligner: a substitution rule plus an affine ``GapPenalty``.

    The rule may be a ``MatchParams``, a ``ScoreMatrix`` or any plain callable over byte values; it
    must be symmetric. It is tabulated eagerly, so an invalid rule fails at construction.

    Args:
        gap_open: Gap open score (strictly negative).
        gap_extend: Gap extension score (strictly negative).
        match_fn: Substitution rule. Defaults to ``MatchParams(match, mismatch)``.
        match: Match score used when ``match_fn`` is not given.
        mismatch: Mismatch score used when ``match_fn`` is not given.

    Raises:
        ConfigurationError: For non-negative gap penalties or an asymmetric/non-integer rule.

    Examples:
        >>> scoring = Scoring(-5, -1, match=1, mismatch=-1)
        >>> scoring.score(b'A', b'C')
        -1
        >>> Scoring(-5, -1, ScoreMatrix.blosum62()).score('W', 'W')
        11
    """
    __slots__ = ('gap', 'match_fn', '_table')

    def __init__(self, gap_open: int = -5, gap_extend: int = -1, match_fn: Callable[[int, int], int] = None,
                 match: int = 1, mismatch: int = -1):
        self.gap = GapPenalty(gap_open, gap_extend)
        self.match_fn = match_fn if match_fn is not None else MatchParams(match, mismatch)
        self._table = self._tabulate(self.match_fn)
        self._table.flags.writeable = False

    def __repr__(self): return f"Scoring({self.match_fn!r}, gap_open={self.gap.open}, gap_extend={self.gap.extend})"

    @classmethod
    def from_gap(cls, gap: Union[GapPenalty, tuple[int, int]], match_fn: Callable[[int, int], int] = None,
                 match: int = 1, mismatch: int = -1) -> 'Scoring':
        """Creates a policy from a ``GapPenalty`` or an ``(open, extend)`` tuple."""
        gap = GapPenalty.of(gap)
        return cls(gap.open, gap.extend, match_fn, match, mismatch)

    @property
    def table(self) -> np.ndarray:
        """The read-only 256x256 ``int32`` substitution lookup table."""
        return self._table

    @property
    def gap_open(self) -> int: return self.gap.open

    @property
    def gap_extend(self) -> int: return self.gap.extend

    def score(self, a: Union[int, bytes, str], b: Union[int, bytes, str]) -> int:
        """Returns the substitution score of two symbols."""
        return int(self._table[_symbol(a), _symbol(b)])

    @staticmethod
    def _tabulate(match_fn: Callable[[int, int], int]) -> np.ndarray:
        if hasattr(match_fn, 'table'):
            table = np.asarray(match_fn.table(), dtype=_TABLE_DTYPE)
        elif callable(match_fn):
            table = np.empty((_N_SYMBOLS, _N_SYMBOLS), dtype=_TABLE_DTYPE)
            for a in range(_N_SYMBOLS):
                for b in range(_N_SYMBOLS):
                    value = match_fn(a, b)
                    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                        raise ConfigurationError(f'Score function must return integers, got {value!r}')
                    table[a, b] = value
        else:
            raise ConfigurationError(f'Score function must be callable, got {match_fn!r}')
        if not np.array_equal(table, table.T): raise ConfigurationError('Score function must be symmetric')
        return table


# Functions ------------------------------------------------------------------------------------------------------------
def _symbol(value: Union[int, bytes, str]) -> int:
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 1: raise ValueError(f'Expected a single symbol, got {value!r}')
        return value[0]
    if isinstance(value, str):
        if len(value) != 1: raise ValueError(f'Expected a single symbol, got {value!r}')
        return ord(value)
    return int(value)
