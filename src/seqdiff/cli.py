"""
Command-line entry point: aligns the first record of a query FASTA file against the first record of a
reference FASTA file and reports the score and the mutation statistics.
"""
from argparse import ArgumentParser, ArgumentTypeError, Namespace
from dataclasses import dataclass
from pathlib import Path
import sys
from time import perf_counter
from typing import Optional

from seqdiff import __version__
from seqdiff.core.scoring import Scoring, ConfigurationError
from seqdiff.align.alignment import AlignmentMode
from seqdiff.align.distance import DistanceError
from seqdiff.align.poa import PoaAligner, PoaError
from seqdiff.containers.mutations import MutationError, reduce_mutations
from seqdiff.diffstat import DiffStat
from seqdiff.io import SeqFileError, ParserError
from seqdiff.io.fasta import FastaReader, Record
from seqdiff.utils import Config


# Classes --------------------------------------------------------------------------------------------------------------
@dataclass
class AlignConfig(Config):
    """Options of one ``seqdiff`` run."""
    reference: Path = None
    query: Path = None
    mode: Optional[str] = None
    match: int = 1
    mismatch: int = -1
    gap_open: int = -5
    gap_extend: int = -1
    print_alignment: bool = False
    width: int = 120
    distance: bool = False
    references: Optional[Path] = None

    def scoring(self) -> Scoring:
        return Scoring(self.gap_open, self.gap_extend, match=self.match, mismatch=self.mismatch)


# Functions ------------------------------------------------------------------------------------------------------------
def positive_int(value: str) -> int:
    """Argument type for counts that must be at least 1."""
    number = int(value)
    if number < 1: raise ArgumentTypeError(f'must be a positive integer, got {value}')
    return number


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog='seqdiff', description='Align a query sequence against a reference and '
                                                        'count the mutations between them.')
    parser.add_argument('-r', '--reference', type=Path, required=True, metavar='FILE',
                        help='Reference FASTA file (first record is used)')
    parser.add_argument('-q', '--query', type=Path, required=True, metavar='FILE',
                        help='Query FASTA file, the sequence which will be aligned (first record is used)')
    parser.add_argument('-m', '--mode', choices=[m.name.lower() for m in AlignmentMode],
                        help='Alignment mode (default: semiglobal, or global with --references, '
                             'which only supports global)')
    parser.add_argument('--match', type=int, default=1, help='Match score (default: %(default)s)')
    parser.add_argument('--mismatch', type=int, default=-1, help='Mismatch score (default: %(default)s)')
    parser.add_argument('--gap-open', type=int, default=-5, help='Gap open score, negative (default: %(default)s)')
    parser.add_argument('--gap-extend', type=int, default=-1,
                        help='Gap extend score, negative (default: %(default)s)')
    parser.add_argument('-p', '--print', dest='print_alignment', action='store_true', help='Print the alignment')
    parser.add_argument('-w', '--width', type=positive_int, default=120,
                        help='Columns per block when printing (default: %(default)s)')
    parser.add_argument('-d', '--distance', action='store_true',
                        help='Also report the edit and Hamming distances')
    parser.add_argument('--references', type=Path, metavar='FILE',
                        help='FASTA file of extra references merged into a partial-order graph with the '
                             'reference; the query is aligned globally against the graph')
    parser.add_argument('-v', '--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def first_record(path: Path) -> Record:
    """Returns the first record of a FASTA file."""
    for record in FastaReader.from_file(path): return record
    raise SeqFileError(f'No FASTA records found in {path}')


def run(config: AlignConfig, out=None, err=None):
    """Runs one comparison and writes the report to ``out`` (standard output by default)."""
    out, err = out or sys.stdout, err or sys.stderr
    if config.width < 1: raise ConfigurationError(f'Column width must be positive, got {config.width}')
    if config.references is not None and config.mode not in (None, 'global'):
        raise ConfigurationError(f'Alignment against --references is always global, got mode {config.mode!r}')
    scoring = config.scoring()
    reference, query = first_record(config.reference), first_record(config.query)
    print(f'Reference: {reference.id.decode(errors="replace")} ({len(reference)} bp)', file=err)
    print(f'Query: {query.id.decode(errors="replace")} ({len(query)} bp)', file=err)

    diff = DiffStat(reference.seq, query.seq, scoring)
    start = perf_counter()
    if config.references is not None:
        extra = [r.seq for r in FastaReader.from_file(config.references)]
        poa = PoaAligner(scoring, reference.seq, extra)
        print(f'Graph: {len(poa.graph)} nodes from {len(extra) + 1} sequences', file=err)
        alignment = poa.global_(query.seq)
        rendering = alignment.pretty(reference.seq, query.seq, config.width) if config.print_alignment else None
    else:
        mode = AlignmentMode.of(config.mode or 'semiglobal')
        alignment = getattr(diff, f'pairwise_aligner_{mode.name.lower()}')()
        rendering = diff.pretty(config.width) if config.print_alignment else None
    elapsed = perf_counter() - start

    if rendering is not None: out.write(rendering)
    stats = reduce_mutations(alignment)
    print(f'Score: {alignment.score}', file=out)
    print(f'Mutations: {stats}', file=out)
    print(f'Identity: {stats.identity:.4f}', file=out)
    if config.distance:
        print(f'Levenshtein: {diff.levenshtein()}', file=out)
        if len(reference) == len(query):
            print(f'Hamming: {diff.hamming()}', file=out)
        else:
            print('Hamming: n/a (sequences differ in length)', file=out)
    print(f'time taken: {elapsed:.3f}s', file=err)


def main(argv: list[str] = None) -> int:
    """Console script entry point; returns the exit status."""
    parser = build_parser()
    args: Namespace = parser.parse_args(argv)
    try:
        run(AlignConfig.from_args(args))
    except (ConfigurationError, SeqFileError, ParserError, DistanceError, MutationError, PoaError) as e:
        print(f'{parser.prog}: error: {e}', file=sys.stderr)
        return 1
    return 0
