import warnings

import pytest
from seqdiff.core.scoring import Scoring
from seqdiff.align.alignment import Alignment, AlignmentOperation as Op
from seqdiff.align.poa import PoaAligner, PoaGraph, GraphAlignment, PoaError, PoaSizeError, PoaSizeWarning
from seqdiff.containers.mutations import reduce_mutations
from seqdiff import SeqdiffWarning


@pytest.fixture
def scoring():
    return Scoring(-5, -1, match=1, mismatch=-1)


class TestPoaGraph:
    def test_from_sequence(self):
        g = PoaGraph.from_sequence(b'ACGT')
        assert len(g) == 4
        assert g.n_edges == 3
        assert g.symbols.tobytes() == b'ACGT'
        assert g.successors(0) == [1]
        assert g.predecessors(3) == [2]
        assert g.edge_weight(0, 1) == 1
        assert g.edge_weight(0, 2) == 0

    def test_add_edge_increments(self):
        g = PoaGraph.from_sequence(b'AC')
        g.add_edge(0, 1)
        assert g.edge_weight(0, 1) == 2
        assert g.n_edges == 1

    def test_topological_order(self):
        g = PoaGraph.from_sequence(b'ACGT')
        t = g.add_node(ord('T'))
        g.add_edge(0, t)
        g.add_edge(t, 2)
        order = g.topological_order().tolist()
        assert order.index(0) < order.index(t) < order.index(2)
        assert len(order) == 5

    def test_cycle_detected(self):
        g = PoaGraph.from_sequence(b'AC')
        g.add_edge(1, 0)
        with pytest.raises(PoaError, match="cycle"):
            g.topological_order()

    def test_consensus_single_path(self):
        assert PoaGraph.from_sequence(b'ACGT').consensus() == b'ACGT'

    def test_consensus_heaviest(self):
        g = PoaGraph.from_sequence(b'ACGT')
        t = g.add_node(ord('T'))
        # A -> T -> G branch traversed by two more sequences
        g.add_edge(0, t, 2)
        g.add_edge(t, 2, 2)
        assert g.consensus() == b'ATGT'

    def test_consensus_empty(self):
        assert PoaGraph().consensus() == b''


class TestPoaAligner:
    def test_identical_query(self, scoring):
        poa = PoaAligner(scoring, b'ACGT')
        aln = poa.global_(b'ACGT')
        assert isinstance(aln, GraphAlignment)
        assert aln.score == 4
        assert aln.operations == (Op.MATCH,) * 4
        assert reduce_mutations(aln).mismatches == 0
        assert aln.nodes == (0, 1, 2, 3)
        assert aln.path_symbols == b'ACGT'

    def test_matches_pairwise_on_single_path(self, scoring):
        from seqdiff.align.pairwise import Aligner
        poa = PoaAligner(scoring, b'ACGT')
        aln = poa.global_(b'AGT')
        assert aln.score == Aligner(scoring).global_(b'ACGT', b'AGT').score == -3
        assert aln.operations == (Op.MATCH, Op.INS, Op.MATCH, Op.MATCH)
        assert aln.pretty(None, b'AGT') == 'ACGT\n|+||\nA-GT\n\n\n'

    def test_pretty_keeps_alignment_signature(self, scoring):
        poa = PoaAligner(scoring, b'ACGT', [b'ATGT'])
        aln = poa.global_(b'ATGT')
        # The graph path stands in for x
        assert aln.pretty(b'ACGT', b'ATGT', ncol=100) == aln.pretty(None, b'ATGT') == 'ATGT\n||||\nATGT\n\n\n'

    def test_global_does_not_modify_graph(self, scoring):
        poa = PoaAligner(scoring, b'ACGT')
        poa.global_(b'AGGT')
        assert len(poa.graph) == 4

    def test_add_substitution(self, scoring):
        poa = PoaAligner(scoring, b'ACGT', [b'ATGT'])
        assert len(poa.graph) == 5
        # Both variants now align without mismatches
        assert poa.global_(b'ACGT').score == 4
        assert poa.global_(b'ATGT').score == 4
        assert reduce_mutations(poa.global_(b'ATGT')).mismatches == 0

    def test_add_match_increments_weight(self, scoring):
        poa = PoaAligner(scoring, b'ACGT')
        poa.add(b'ACGT')
        assert len(poa.graph) == 4
        assert poa.graph.edge_weight(0, 1) == 2

    def test_add_deletion_adds_node(self, scoring):
        poa = PoaAligner(scoring, b'AAAATTTT')
        aln = poa.add(b'AAAAGTTTT')
        assert Op.DEL in aln.operations
        assert len(poa.graph) == 9
        assert poa.global_(b'AAAAGTTTT').score == 9
        assert poa.global_(b'AAAATTTT').score == 8

    def test_consensus_follows_majority(self, scoring):
        poa = PoaAligner(scoring, b'ACGT', [b'ATGT', b'ATGT'])
        assert poa.graph.consensus() == b'ATGT'

    def test_empty_references(self, scoring):
        poa = PoaAligner(scoring, b'ACGT', [])
        assert len(poa.graph) == 4
        assert poa.graph.n_edges == 3

    def test_empty_graph(self, scoring):
        poa = PoaAligner(scoring, b'')
        aln = poa.global_(b'ACG')
        assert aln.score == -8
        assert aln.operations == (Op.DEL,) * 3
        assert aln.nodes == ()

    def test_empty_query(self, scoring):
        aln = PoaAligner(scoring, b'ACG').global_(b'')
        assert aln.score == -8
        assert aln.operations == (Op.INS,) * 3


class TestPoaSizeGate:
    def test_max_cells(self, scoring):
        poa = PoaAligner(scoring, b'ACGT' * 10, max_cells=100)
        with pytest.raises(PoaSizeError, match="limit 100"):
            poa.global_(b'ACGT' * 10)
        assert len(poa.graph) == 40

    def test_warn_cells(self, scoring):
        poa = PoaAligner(scoring, b'ACGT' * 5, warn_cells=10)
        with pytest.warns(PoaSizeWarning):
            aln = poa.global_(b'ACGT' * 5)
        assert aln.score == 20

    def test_no_warning_below_threshold(self, scoring):
        poa = PoaAligner(scoring, b'ACGT')
        with warnings.catch_warnings():
            warnings.simplefilter('error', PoaSizeWarning)
            poa.global_(b'ACGT')

    def test_warning_hierarchy(self):
        assert issubclass(PoaSizeWarning, SeqdiffWarning)
        assert issubclass(PoaSizeError, PoaError)
