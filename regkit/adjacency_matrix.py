from typing import Hashable, Iterable

from scipy.sparse import csc_matrix, csr_matrix, identity

from regkit.equality import freeze
from regkit.fsm import EPSILON, Automaton


class AdjacencyMatrixFA:
    def __init__(self, fa: Automaton):
        self.num_sts = len(fa.states)
        self.st_to_idx: dict[Hashable, int] = {st: i for i, st in enumerate(fa.states)}
        self.idx_to_st: dict[int, Hashable] = {i: st for st, i in self.st_to_idx.items()}
        self.start_idx: int = self.st_to_idx[fa.initial_state]
        self.final_idxs: set[int] = {self.st_to_idx[st] for st in fa.accepting_states}
        self.adjacency_matrices: dict[Hashable, csc_matrix] = {}

        edges: dict[Hashable, tuple[list[int], list[int]]] = {}
        for transition in fa.transitions:
            rows, cols = edges.setdefault(transition.symbol, ([], []))
            for to_st in transition.to_states:
                rows.append(self.st_to_idx[transition.from_state])
                cols.append(self.st_to_idx[to_st])

        for symbol, (rows, cols) in edges.items():
            self.adjacency_matrices[symbol] = csc_matrix(
                ([True] * len(rows), (rows, cols)),
                shape=(self.num_sts, self.num_sts),
                dtype=bool,
            )

    def _epsilon_closure(self, front: csr_matrix) -> csr_matrix:
        eps_matrix = self.adjacency_matrices.get(EPSILON)
        if eps_matrix is None:
            return front

        while True:
            new_front = (front + front @ eps_matrix).astype(bool)
            if (new_front != front).nnz == 0:
                return new_front
            front = new_front

    def accepts(self, word: Iterable[Hashable]) -> bool:
        front = csr_matrix(
            ([True], ([0], [self.start_idx])), shape=(1, self.num_sts), dtype=bool
        )
        front = self._epsilon_closure(front)

        for symbol in word:
            symbol = freeze(symbol)
            if symbol is EPSILON or symbol not in self.adjacency_matrices:
                return False
            front = self._epsilon_closure((front @ self.adjacency_matrices[symbol]).astype(bool))
            if front.nnz == 0:
                return False

        return any(front[0, idx] for idx in self.final_idxs)

    def transitive_closure(self) -> csc_matrix:
        res = identity(self.num_sts, dtype=bool, format="csc")

        for matrix in self.adjacency_matrices.values():
            res = res + matrix

        res = res.astype(bool)
        while True:
            new_res = (res @ res).astype(bool)

            if (new_res != res).nnz == 0:
                return res
            res = new_res

    def is_empty(self) -> bool:
        transitive_closure = self.transitive_closure()

        for final_idx in self.final_idxs:
            if transitive_closure[self.start_idx, final_idx]:
                return False
        return True
