"""
Sequential Tree-Reweighted Message Passing (TRW-S) for Potts models.

Minimizes

    E(x) = sum_i D_i(x_i) + sum_{(i,j)} w_ij * [x_i != x_j],   w_ij >= 0

on an explicit graph. Nodes are processed in the order they were added;
each pass sends messages to later nodes (forward) and then to earlier
nodes (backward). Node potentials are reweighted by

    gamma_i = 1 / max(#earlier neighbours, #later neighbours)

which corresponds to covering the graph with monotonic chains.

A labeling is read off sequentially after every iteration and the best one
seen is kept. The lower bound is computed from the reparameterized energy by
splitting every node's potential evenly over its edges; any set of messages
yields a valid bound this way, and the best bound seen is kept.

References:
-----------
[1] Kolmogorov, V. (2006). Convergent tree-reweighted message passing for
    energy minimization. IEEE TPAMI 28(10).
[2] Wainwright, M., Jaakkola, T., & Willsky, A. (2005). MAP estimation via
    agreement on trees: message-passing and linear programming.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..core.grid import DTYPE
from ..errors import BackendError


@dataclass
class TRWSOptions:
    """Options for :meth:`PottsTRWS.minimize`."""

    iter_max: int = 20
    eps: float = 1e-20
    print_iter: int = 5
    print_min_iter: int = 10


def potts_messages(H: np.ndarray, weights: np.ndarray) -> np.ndarray:
    """
    Min-convolution with Potts edges, one row per edge.

    m(x_j) = min_{x_i} H(x_i) + w [x_i != x_j], shifted to have minimum 0.
    """
    with np.errstate(invalid='ignore'):
        m = np.minimum(H, np.min(H, axis=1, keepdims=True) + weights[:, None])
        m -= np.min(m, axis=1, keepdims=True)
    return m


def _concat(chunks: List[np.ndarray], dtype) -> np.ndarray:
    if not chunks:
        return np.zeros(0, dtype=dtype)
    return np.concatenate(chunks).astype(dtype, copy=False)


def _group_edges(keys: np.ndarray, n: int) -> List[np.ndarray]:
    order = np.argsort(keys, kind='stable')
    counts = np.bincount(keys, minlength=n)
    return np.split(order, np.cumsum(counts)[:-1])


class PottsTRWS:
    """
    TRW-S solver for Potts energies on arbitrary graphs.

    Example::

        mrf = PottsTRWS(num_labels=3)
        a = mrf.add_node([0.0, 1.0, 2.0])
        b = mrf.add_node([2.0, 0.0, 1.0])
        mrf.add_edge(a, b, 0.5)
        energy, bound = mrf.minimize(TRWSOptions(iter_max=10))
        labels = [mrf.get_solution(a), mrf.get_solution(b)]
    """

    def __init__(self, num_labels: int):
        if num_labels <= 0:
            raise ValueError(f"num_labels must be positive, got {num_labels}")
        self.num_labels = num_labels
        self._costs: List[np.ndarray] = []
        self._tails: List[np.ndarray] = []
        self._heads: List[np.ndarray] = []
        self._weights: List[np.ndarray] = []
        self._num_edges = 0
        self._solution: Optional[np.ndarray] = None
        self.iterations = 0
        self.converged = False

    @property
    def num_nodes(self) -> int:
        return len(self._costs)

    @property
    def num_edges(self) -> int:
        return self._num_edges

    def add_node(self, costs: Sequence[float]) -> int:
        costs = np.asarray(costs, dtype=DTYPE).reshape(-1)
        if costs.size != self.num_labels:
            raise ValueError(f"Expected {self.num_labels} label costs, got {costs.size}")
        self._costs.append(costs)
        return len(self._costs) - 1

    def add_nodes(self, costs: np.ndarray) -> np.ndarray:
        """Add one node per row of an ``(n, L)`` cost array."""
        costs = np.asarray(costs, dtype=DTYPE).reshape(-1, self.num_labels)
        first = self.num_nodes
        self._costs.extend(costs)
        return np.arange(first, first + costs.shape[0])

    def add_edge(self, i: int, j: int, weight: float) -> None:
        self.add_edges(np.array([i]), np.array([j]), np.array([weight]))

    def add_edges(self, tails: np.ndarray, heads: np.ndarray, weights: np.ndarray) -> None:
        """Add Potts edges with non-negative weights; endpoints must differ."""
        tails = np.asarray(tails, dtype=np.intp).reshape(-1)
        heads = np.asarray(heads, dtype=np.intp).reshape(-1)
        weights = np.asarray(weights, dtype=DTYPE).reshape(-1)
        if not (tails.size == heads.size == weights.size):
            raise ValueError("tails, heads and weights must have the same length")
        if np.any(tails == heads):
            raise ValueError("Self-edges are not allowed")
        if np.any((np.minimum(tails, heads) < 0)
                  | (np.maximum(tails, heads) >= self.num_nodes)):
            raise ValueError("Edge endpoint out of range")
        if not np.all(weights >= 0):
            raise ValueError("Potts edge weights must be non-negative")
        lo = np.minimum(tails, heads)
        hi = np.maximum(tails, heads)
        self._tails.append(lo)
        self._heads.append(hi)
        self._weights.append(weights.copy())
        self._num_edges += weights.size

    def get_solution(self, node: int) -> int:
        if self._solution is None:
            raise BackendError("minimize() has not been run")
        return int(self._solution[node])

    @property
    def solution(self) -> np.ndarray:
        if self._solution is None:
            raise BackendError("minimize() has not been run")
        return self._solution.copy()

    def minimize(self, options: Optional[TRWSOptions] = None) -> Tuple[float, float]:
        """
        Run TRW-S until the bound stops improving or ``iter_max`` is reached.

        Returns:
            Tuple of (energy of the returned labeling, lower bound).

        Raises:
            BackendError: On an empty problem or non-finite messages.
        """
        options = options or TRWSOptions()
        n = self.num_nodes
        if n == 0:
            raise BackendError("No nodes have been added")
        if options.iter_max <= 0:
            raise BackendError(f"Iteration budget must be positive, got {options.iter_max}")

        D = np.vstack(self._costs)
        tails = _concat(self._tails, np.intp)
        heads = _concat(self._heads, np.intp)
        w = _concat(self._weights, DTYPE)
        E = w.size
        L = self.num_labels

        forward = _group_edges(tails, n)
        backward = _group_edges(heads, n)
        deg = np.bincount(tails, minlength=n) + np.bincount(heads, minlength=n)
        gamma = 1.0 / np.maximum(np.maximum(np.bincount(tails, minlength=n),
                                            np.bincount(heads, minlength=n)), 1)

        # msg_head[e]: tail -> head, msg_tail[e]: head -> tail
        msg_head = np.zeros((E, L), dtype=DTYPE)
        msg_tail = np.zeros((E, L), dtype=DTYPE)

        def belief(i):
            theta = D[i].copy()
            if backward[i].size:
                theta += msg_head[backward[i]].sum(axis=0)
            if forward[i].size:
                theta += msg_tail[forward[i]].sum(axis=0)
            return theta

        best_energy = np.inf
        best_labels = None
        best_bound = float(np.sum(np.min(D, axis=1)))
        prev_bound = None
        converged = False

        for iteration in range(1, options.iter_max + 1):
            for i in range(n):
                fe = forward[i]
                if fe.size:
                    H = gamma[i] * belief(i)[None, :] - msg_tail[fe]
                    msg_head[fe] = potts_messages(H, w[fe])

            for i in range(n - 1, -1, -1):
                be = backward[i]
                if be.size:
                    H = gamma[i] * belief(i)[None, :] - msg_head[be]
                    msg_tail[be] = potts_messages(H, w[be])

            if not (np.all(np.isfinite(msg_head)) and np.all(np.isfinite(msg_tail))):
                raise BackendError(f"TRW-S messages became non-finite at iteration {iteration}")

            labels = self._extract_labeling(D, msg_tail, tails, w, forward, backward)
            energy = self._energy(D, tails, heads, w, labels)
            if best_labels is None or energy < best_energy:
                best_energy = energy
                best_labels = labels

            bound = self._lower_bound(D, msg_head, msg_tail, tails, heads, w, deg)
            best_bound = max(best_bound, bound)

            if iteration >= options.print_min_iter and iteration % options.print_iter == 0:
                print(f"iter {iteration}: lower bound = {best_bound:.6f}, "
                      f"energy = {best_energy:.6f}")

            if best_energy - best_bound <= 1e-9 * max(1.0, abs(best_energy)):
                converged = True
                break
            if prev_bound is not None and bound - prev_bound < options.eps:
                converged = True
                break
            prev_bound = bound

        self._solution = best_labels
        self.iterations = iteration
        self.converged = converged
        return float(best_energy), float(min(best_bound, best_energy))

    # ---------- internal helpers ----------

    @staticmethod
    def _extract_labeling(D, msg_tail, tails, w, forward, backward) -> np.ndarray:
        n = D.shape[0]
        labels = np.zeros(n, dtype=np.intp)
        for i in range(n):
            c = D[i].copy()
            if forward[i].size:
                c += msg_tail[forward[i]].sum(axis=0)
            be = backward[i]
            if be.size:
                c += w[be].sum()
                np.subtract.at(c, labels[tails[be]], w[be])
            labels[i] = int(np.argmin(c))
        return labels

    @staticmethod
    def _energy(D, tails, heads, w, labels) -> float:
        unary = np.sum(D[np.arange(D.shape[0]), labels])
        pairwise = np.sum(w[labels[tails] != labels[heads]])
        return float(unary + pairwise)

    @staticmethod
    def _lower_bound(D, msg_head, msg_tail, tails, heads, w, deg) -> float:
        theta = D.copy()
        np.add.at(theta, heads, msg_head)
        np.add.at(theta, tails, msg_tail)

        bound = float(np.sum(np.min(theta[deg == 0], axis=1))) if np.any(deg == 0) else 0.0
        if w.size:
            A = theta[tails] / deg[tails, None] - msg_tail
            B = theta[heads] / deg[heads, None] - msg_head
            with np.errstate(invalid='ignore'):
                pieces = np.minimum(np.min(A + B, axis=1),
                                    np.min(A, axis=1) + np.min(B, axis=1) + w)
            bound += float(np.sum(pieces))
        return bound


__all__ = [
    "TRWSOptions",
    "PottsTRWS",
    "potts_messages",
]
