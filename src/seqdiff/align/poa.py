"""
Partial-order alignment (POA): sequences are aligned globally against a directed acyclic graph of
symbols and merged into it, so the graph accumulates the variation of everything added so far.

The graph is an arena: nodes are dense integer ids indexing a symbol list, with predecessor and
successor lists kept in edge insertion order and one traversal weight per edge.
"""
from collections import deque
from dataclasses import dataclass
from typing import Iterable, Optional
from warnings import warn

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import bellman_ford as _bf

from seqdiff import SeqdiffWarning
from seqdiff.core.scoring import Scoring
from seqdiff.core.seq import SeqLike, as_symbols, as_bytes
from seqdiff.align.alignment import Alignment, AlignmentMode, AlignmentOperation, operations_from_codes
from seqdiff.align.pairwise import (NEG_INF, _TB_MATCH, _TB_SUBST, _TB_INS, _TB_DEL, _TB_MASK, _TB_I_EXT,
                                    _TB_D_EXT, _OP_MATCH, _OP_SUBST, _OP_INS, _OP_DEL)
from seqdiff.utils.resources import jit


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class PoaError(Exception): pass
class PoaSizeError(PoaError): pass
class PoaSizeWarning(SeqdiffWarning): pass


# Classes --------------------------------------------------------------------------------------------------------------
class PoaGraph:
    """
    Directed acyclic graph of sequence symbols.

    Examples:
        >>> g = PoaGraph.from_sequence(b'ACGT')
        >>> len(g), g.n_edges
        (4, 3)
        >>> g.consensus()
        b'ACGT'
    """
    __slots__ = ('_symbols', '_preds', '_succs', '_weights')

    def __init__(self):
        self._symbols: list[int] = []
        self._preds: list[list[int]] = []
        self._succs: list[list[int]] = []
        self._weights: dict[tuple[int, int], int] = {}

    def __len__(self): return len(self._symbols)
    def __repr__(self): return f"PoaGraph(nodes={len(self)}, edges={self.n_edges})"

    @classmethod
    def from_sequence(cls, seq: SeqLike) -> 'PoaGraph':
        """Creates a graph holding ``seq`` as a single path."""
        graph = cls()
        prev = None
        for symbol in as_symbols(seq).tolist():
            node = graph.add_node(symbol)
            if prev is not None: graph.add_edge(prev, node)
            prev = node
        return graph

    @property
    def n_edges(self) -> int: return len(self._weights)

    @property
    def symbols(self) -> np.ndarray:
        """Node symbols indexed by node id."""
        return np.array(self._symbols, dtype=np.uint8)

    def symbol(self, node: int) -> int: return self._symbols[node]
    def predecessors(self, node: int) -> list[int]: return list(self._preds[node])
    def successors(self, node: int) -> list[int]: return list(self._succs[node])
    def edge_weight(self, u: int, v: int) -> int: return self._weights.get((u, v), 0)

    def add_node(self, symbol: int) -> int:
        """Adds a node and returns its id."""
        self._symbols.append(int(symbol))
        self._preds.append([])
        self._succs.append([])
        return len(self._symbols) - 1

    def add_edge(self, u: int, v: int, weight: int = 1):
        """Adds the edge ``u -> v``, or increments its weight if it already exists."""
        if (u, v) in self._weights:
            self._weights[(u, v)] += weight
        else:
            self._weights[(u, v)] = weight
            self._succs[u].append(v)
            self._preds[v].append(u)

    def topological_order(self) -> np.ndarray:
        """
        Returns node ids in topological order (Kahn's algorithm, sources visited in id order).

        Raises:
            PoaError: If the graph contains a cycle.
        """
        in_degree = [len(p) for p in self._preds]
        queue = deque(node for node, degree in enumerate(in_degree) if degree == 0)
        order = []
        while queue:
            node = queue.popleft()
            order.append(node)
            for succ in self._succs[node]:
                in_degree[succ] -= 1
                if in_degree[succ] == 0: queue.append(succ)
        if len(order) != len(self): raise PoaError('Graph contains a cycle')
        return np.array(order, dtype=np.int64)

    def consensus(self) -> bytes:
        """
        Returns the symbols of the heaviest path, the path maximising the summed edge weights.

        The path is found as a shortest path over negated weights from a virtual source linked to
        every source node; among equally heavy paths the one ending at the lowest node id wins.
        """
        n_nodes = len(self)
        if n_nodes == 0: return b''
        start = n_nodes
        rows, cols, data = [], [], []
        for (u, v), weight in self._weights.items():
            rows.append(u); cols.append(v); data.append(-weight)
        for node in range(n_nodes):
            # Exactly one virtual edge starts every path
            if not self._preds[node]: rows.append(start); cols.append(node); data.append(-1)
        matrix = csr_matrix((data, (rows, cols)), shape=(n_nodes + 1, n_nodes + 1), dtype=np.float64)
        dist, predecessors = _bf(matrix, directed=True, indices=start, return_predecessors=True)
        node = int(np.argmin(dist[:n_nodes]))
        path = []
        while node != start and node >= 0:
            path.append(self._symbols[node])
            node = int(predecessors[node])
        return bytes(reversed(path))


@dataclass(frozen=True, slots=True, repr=False)
class GraphAlignment(Alignment):
    """
    An Alignment of a query against a PoaGraph.

    The graph takes the reference (x) role: ``nodes`` lists the graph node consumed by every
    ``MATCH``, ``SUBST`` and ``INS`` operation in trace order and ``path_symbols`` holds their symbols.

    Attributes:
        nodes: Node ids along the aligned graph path.
        path_symbols: The symbols of ``nodes``, used as the reference row when rendering.
    """
    nodes: tuple[int, ...] = ()
    path_symbols: bytes = b''

    def pretty(self, x: Optional[SeqLike], y: SeqLike, ncol: int = 100) -> str:
        """
        Renders the alignment with the visited graph path as the reference row.

        ``x`` is ignored: the graph has no single reference sequence, so ``path_symbols`` stands in for it.
        """
        return Alignment.pretty(self, self.path_symbols, y, ncol)


class PoaAligner:
    """
    Aligns sequences against an evolving partial-order graph.

    The graph is seeded with ``reference`` as a single path; each of ``references`` is then aligned
    globally and merged in. A ``MATCH`` reuses the graph node (incrementing the edge weight),
    ``SUBST`` and ``DEL`` add a node for the query symbol, ``INS`` leaves the graph unchanged.

    Args:
        scoring: The scoring policy.
        reference: Sequence seeding the graph.
        references: Further sequences merged into the graph.
        warn_cells: Emit a PoaSizeWarning when one alignment needs more DP cells than this.
        max_cells: Raise PoaSizeError instead of aligning when more cells than this would be needed.

    Examples:
        >>> poa = PoaAligner(Scoring(-5, -1), b'ACGT')
        >>> poa.global_(b'ACGT').score
        4
    """
    __slots__ = ('scoring', 'graph', 'warn_cells', 'max_cells')

    def __init__(self, scoring: Scoring, reference: SeqLike, references: Iterable[SeqLike] = (),
                 warn_cells: int = 10_000_000, max_cells: int = None):
        self.scoring = scoring
        self.warn_cells = warn_cells
        self.max_cells = max_cells
        self.graph = PoaGraph.from_sequence(reference)
        for seq in references: self.add(seq)

    def __repr__(self): return f"PoaAligner({self.graph!r})"

    def global_(self, query: SeqLike) -> GraphAlignment:
        """
        Aligns ``query`` end to end against the whole graph without modifying it.

        Raises:
            PoaSizeError: If the alignment would need more than ``max_cells`` DP cells.
        """
        y = as_symbols(query)
        n_nodes, n = len(self.graph), len(y)
        cells = n_nodes * n
        if self.max_cells is not None and cells > self.max_cells:
            raise PoaSizeError(f'Aligning {n} symbols against {n_nodes} nodes needs {cells} cells '
                               f'(limit {self.max_cells})')
        if cells > self.warn_cells:
            warn(f'Aligning {n} symbols against {n_nodes} nodes needs {cells} cells', PoaSizeWarning)

        order = self.graph.topological_order()
        rank = np.empty(n_nodes, dtype=np.int64)
        rank[order] = np.arange(n_nodes, dtype=np.int64)
        pred_indptr = np.zeros(n_nodes + 1, dtype=np.int64)
        pred_indices = []
        for r, node in enumerate(order.tolist()):
            # Source nodes hang off the virtual start row, which sits after the last node
            preds = [int(rank[p]) for p in self.graph._preds[node]] or [n_nodes]
            pred_indices.extend(preds)
            pred_indptr[r + 1] = len(pred_indices)
        pred_indices = np.array(pred_indices, dtype=np.int64)
        symbols = self.graph.symbols[order] if n_nodes else np.empty(0, dtype=np.uint8)
        is_sink = np.array([not self.graph._succs[node] for node in order.tolist()], dtype=np.bool_)

        trace = np.zeros((n_nodes + 1, n + 1), dtype=np.uint8)
        m_pred = np.full((n_nodes + 1, n + 1), -1, dtype=np.int64)
        i_pred = np.full((n_nodes + 1, n + 1), -1, dtype=np.int64)
        score, end_row = _poa_fill_kernel(symbols, pred_indptr, pred_indices, is_sink, y, self.scoring.table,
                                          self.scoring.gap_open, self.scoring.gap_extend, trace, m_pred, i_pred)
        codes, rows = _poa_traceback_kernel(trace, m_pred, i_pred, end_row, n)
        nodes = tuple(int(order[r]) for r in rows.tolist() if r >= 0)
        path_symbols = bytes(self.graph._symbols[node] for node in nodes)
        return GraphAlignment(int(score), 0, len(nodes), 0, n, len(nodes), n, operations_from_codes(codes),
                              AlignmentMode.GLOBAL, nodes, path_symbols)

    def add(self, seq: SeqLike) -> GraphAlignment:
        """Aligns ``seq`` against the graph, merges it in and returns the alignment."""
        y = as_bytes(seq)
        aln = self.global_(y)
        self._merge(aln, y)
        return aln

    def _merge(self, aln: GraphAlignment, y: bytes):
        nodes = iter(aln.nodes)
        prev = None
        yi = 0
        for op in aln.operations:
            node = next(nodes) if op.consumes_x else None
            if not op.consumes_y: continue
            if op != AlignmentOperation.MATCH: node = self.graph.add_node(y[yi])
            yi += 1
            if prev is not None: self.graph.add_edge(prev, node)
            prev = node


# Kernels --------------------------------------------------------------------------------------------------------------
@jit(nopython=True, cache=True, nogil=True)
def _poa_fill_kernel(symbols, pred_indptr, pred_indices, is_sink, y, matrix, gap_open, gap_extend,
                     trace, m_pred, i_pred):
    """
    Fills the graph DP in topological rank order and returns ``(score, end_row)``.

    Row ``len(symbols)`` is the virtual start row; the end row is the best-scoring sink in the last
    column (the start row when the graph is empty).
    """
    n_nodes = len(symbols)
    start = n_nodes
    cols = len(y) + 1
    gap_first = gap_open + gap_extend
    S = np.full((n_nodes + 1, cols), NEG_INF, dtype=np.int64)
    I = np.full((n_nodes + 1, cols), NEG_INF, dtype=np.int64)
    S[start, 0] = 0
    for c in range(1, cols):
        S[start, c] = gap_first + (c - 1) * gap_extend
        trace[start, c] = _TB_DEL | (_TB_D_EXT if c > 1 else 0)
    for r in range(n_nodes):
        symbol = symbols[r]
        running_d = NEG_INF
        for c in range(cols):
            i_best = NEG_INF; i_bit = 0; i_src = -1
            for k in range(pred_indptr[r], pred_indptr[r + 1]):
                p = pred_indices[k]
                i_ext = I[p, c] + gap_extend
                i_open = S[p, c] + gap_first
                if i_ext > i_open:
                    value = i_ext; bit = _TB_I_EXT
                else:
                    value = i_open; bit = 0
                if value > i_best: i_best = value; i_bit = bit; i_src = p
            I[r, c] = i_best
            i_pred[r, c] = i_src
            best = i_best
            source = _TB_INS
            d_bit = 0
            if c > 0:
                char_y = y[c - 1]
                m_best = NEG_INF; m_src = -1
                for k in range(pred_indptr[r], pred_indptr[r + 1]):
                    p = pred_indices[k]
                    value = S[p, c - 1] + matrix[symbol, char_y]
                    if value > m_best: m_best = value; m_src = p
                m_pred[r, c] = m_src
                d_ext = running_d + gap_extend
                d_open = S[r, c - 1] + gap_first
                if d_ext > d_open:
                    running_d = d_ext; d_bit = _TB_D_EXT
                else:
                    running_d = d_open
                best = m_best
                source = _TB_MATCH if symbol == char_y else _TB_SUBST
                if i_best > best: best = i_best; source = _TB_INS
                if running_d > best: best = running_d; source = _TB_DEL
            S[r, c] = best
            trace[r, c] = source | i_bit | d_bit

    end_row = start
    end_score = S[start, cols - 1]
    found = False
    for r in range(n_nodes):
        if is_sink[r] and (not found or S[r, cols - 1] > end_score):
            end_score = S[r, cols - 1]; end_row = r; found = True
    return end_score, end_row


@jit(nopython=True, cache=True, nogil=True)
def _poa_traceback_kernel(trace, m_pred, i_pred, end_row, end_col):
    """Returns the operation codes and the graph row consumed by each (-1 for deletions)."""
    start = trace.shape[0] - 1
    r, c = end_row, end_col
    ops = np.empty(start + c, dtype=np.uint8)
    rows = np.empty(start + c, dtype=np.int64)
    k = 0
    layer = 0  # 0: best, 1: insertion, 2: deletion
    while True:
        if r == start:
            while c > 0:
                ops[k] = _OP_DEL; rows[k] = -1; k += 1; c -= 1
            break
        flag = trace[r, c]
        if layer == 0:
            source = flag & _TB_MASK
            if source == _TB_MATCH or source == _TB_SUBST:
                ops[k] = _OP_MATCH if source == _TB_MATCH else _OP_SUBST; rows[k] = r; k += 1
                r = m_pred[r, c]; c -= 1
            elif source == _TB_INS: layer = 1
            else: layer = 2
        elif layer == 1:
            ops[k] = _OP_INS; rows[k] = r; k += 1
            if not flag & _TB_I_EXT: layer = 0
            r = i_pred[r, c]
        else:
            ops[k] = _OP_DEL; rows[k] = -1; k += 1
            if not flag & _TB_D_EXT: layer = 0
            c -= 1
    return ops[:k][::-1].copy(), rows[:k][::-1].copy()
