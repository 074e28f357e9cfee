"""
Pairs a reference and a query sequence with a scoring policy and keeps the last pairwise alignment.
"""
from typing import Optional

from seqdiff.core.scoring import Scoring
from seqdiff.core.seq import SeqLike, as_bytes
from seqdiff.align.alignment import Alignment, AlignmentMode
from seqdiff.align.distance import levenshtein, hamming
from seqdiff.align.pairwise import Aligner
from seqdiff.containers.mutations import MutationStats, NotAlignedError, reduce_mutations


# Classes --------------------------------------------------------------------------------------------------------------
class DiffStat:
    """
    Compares a query sequence against a reference.

    Args:
        reference: The reference (x) sequence.
        query: The query (y) sequence.
        scoring: The scoring policy used by the pairwise aligners. Defaults to ``Scoring()``.

    Examples:
        >>> ds = DiffStat(b'ACGT', b'AGT')
        >>> ds.levenshtein()
        1
        >>> ds.pairwise_aligner_global().score
        -3
    """
    __slots__ = ('reference', 'query', 'scoring', '_aligner', '_alignment')

    def __init__(self, reference: SeqLike, query: SeqLike, scoring: Scoring = None):
        self.reference = as_bytes(reference)
        self.query = as_bytes(query)
        self.scoring = scoring if scoring is not None else Scoring()
        self._aligner = Aligner(self.scoring)
        self._alignment: Optional[Alignment] = None

    def __repr__(self): return f"DiffStat(reference={len(self.reference)}, query={len(self.query)})"

    @property
    def alignment(self) -> Optional[Alignment]:
        """The last pairwise alignment, or None if none has been run."""
        return self._alignment

    def levenshtein(self) -> int: return levenshtein(self.reference, self.query)
    def hamming(self) -> int: return hamming(self.reference, self.query)

    def pairwise_aligner_global(self) -> Alignment: return self._align(AlignmentMode.GLOBAL)
    def pairwise_aligner_local(self) -> Alignment: return self._align(AlignmentMode.LOCAL)
    def pairwise_aligner_semiglobal(self) -> Alignment: return self._align(AlignmentMode.SEMIGLOBAL)

    def mutations(self) -> MutationStats:
        """
        Raises:
            NotAlignedError: If no pairwise alignment has been run.
        """
        return reduce_mutations(self._alignment)

    def pretty(self, ncol: int = 100) -> str:
        """
        Renders the last alignment.

        Raises:
            NotAlignedError: If no pairwise alignment has been run.
        """
        if self._alignment is None: raise NotAlignedError('No pairwise alignment to render')
        return self._alignment.pretty(self.reference, self.query, ncol)

    def _align(self, mode: AlignmentMode) -> Alignment:
        self._alignment = self._aligner.align(self.reference, self.query, mode)
        return self._alignment
