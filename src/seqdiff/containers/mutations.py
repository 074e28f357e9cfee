"""Containers for counting the mutation events (substitutions, insertions, deletions) implied by an alignment."""
from dataclasses import dataclass, fields
from typing import Optional, Iterable

from seqdiff.align.alignment import Alignment, AlignmentOperation


# Exceptions -----------------------------------------------------------------------------------------------------------
class MutationError(Exception): pass
class NotAlignedError(MutationError): pass


# Classes --------------------------------------------------------------------------------------------------------------
@dataclass(slots=True)
class MutationStats:
    """
    Accumulator of mutation events.

    ``total`` counts every aligned column, ``mismatches`` every column that is not a match, so
    ``total == matches + mismatches`` and ``mismatches == substitutions + insertions + deletions``
    hold after any sequence of updates.

    Examples:
        >>> stats = MutationStats()
        >>> stats.update(AlignmentOperation.MATCH)
        >>> stats.update(AlignmentOperation.SUBST)
        >>> stats.identity
        0.5
    """
    matches: int = 0
    mismatches: int = 0
    substitutions: int = 0
    insertions: int = 0
    deletions: int = 0
    total: int = 0

    def __add__(self, other: 'MutationStats') -> 'MutationStats':
        if not isinstance(other, MutationStats): return NotImplemented
        return MutationStats(*(getattr(self, f.name) + getattr(other, f.name) for f in fields(self)))

    def __iadd__(self, other: 'MutationStats') -> 'MutationStats':
        if not isinstance(other, MutationStats): return NotImplemented
        for f in fields(self): setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))
        return self

    def __str__(self):
        return (f"matches={self.matches} mismatches={self.mismatches} substitutions={self.substitutions} "
                f"insertions={self.insertions} deletions={self.deletions} total={self.total}")

    @property
    def identity(self) -> float:
        """Fraction of aligned columns that are matches (0 for an empty alignment)."""
        return self.matches / self.total if self.total else 0.0

    def update(self, op: AlignmentOperation):
        """Counts one operation; clip operations are ignored."""
        if op == AlignmentOperation.MATCH:
            self.matches += 1
        elif op == AlignmentOperation.SUBST:
            self.substitutions += 1
            self.mismatches += 1
        elif op == AlignmentOperation.INS:
            self.insertions += 1
            self.mismatches += 1
        elif op == AlignmentOperation.DEL:
            self.deletions += 1
            self.mismatches += 1
        else:
            return
        self.total += 1

    def as_dict(self) -> dict[str, int]: return {f.name: getattr(self, f.name) for f in fields(self)}


class MutationReducer:
    """
    Reduces the last pairwise alignment of a ``DiffStat`` into MutationStats.

    Args:
        diffstat: Any object exposing the last alignment as ``alignment`` (``None`` before aligning).

    Examples:
        >>> ds = DiffStat(b'ACGT', b'ACCT', Scoring())
        >>> _ = ds.pairwise_aligner_global()
        >>> MutationReducer(ds).stats().substitutions
        1
    """
    __slots__ = ('_diffstat',)

    def __init__(self, diffstat):
        self._diffstat = diffstat

    def stats(self) -> MutationStats:
        """
        Raises:
            NotAlignedError: If no pairwise alignment has been run.
        """
        alignment = self._diffstat.alignment
        if alignment is None: raise NotAlignedError('No pairwise alignment has been run yet')
        return reduce_mutations(alignment)


# Functions ------------------------------------------------------------------------------------------------------------
def reduce_mutations(alignment: Optional[Alignment]) -> MutationStats:
    """
    Folds an alignment's operation trace into a MutationStats, left to right.

    Raises:
        NotAlignedError: If ``alignment`` is None.
    """
    if alignment is None: raise NotAlignedError('Cannot reduce mutations without an alignment')
    stats = MutationStats()
    for op in alignment.operations: stats.update(op)
    return stats


def merge_stats(stats: Iterable[MutationStats]) -> MutationStats:
    """Sums several accumulators into a new one."""
    total = MutationStats()
    for s in stats: total += s
    return total
