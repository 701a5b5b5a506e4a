"""
Energy evaluation for labelings.

    E(x) = sum_i U_i(x_i) + sum_{i<j} k(i, j) * [x_i != x_j]

The pairwise sum runs over all unordered pairs of the grid (the fully
connected model), never over self-pairs. This is used to report the energy
achieved by a solver; neither backend calls it inside its own iterations.
"""

from __future__ import annotations

from typing import Optional, Union

import numpy as np

from .costs import PairwiseCost, UnaryCost
from .grid import DTYPE, GridIndex


def lowest_unary_cost(unary: Union[np.ndarray, UnaryCost],
                      num_variables: Optional[int] = None) -> float:
    """Trivial lower bound: sum over variables of the cheapest unary cost.

    Valid for any labeling because pairwise costs are non-negative.

    Args:
        unary: ``(L, M*N)`` table, a flat table together with
            ``num_variables``, or a :class:`UnaryCost`.
        num_variables: Number of variables when ``unary`` is flat.

    Returns:
        The bound (scalar).

    Raises:
        ValueError: If the table is not 2-D and ``num_variables`` is not
            given, or its size is not a multiple of ``num_variables``.
    """
    if isinstance(unary, UnaryCost):
        table = unary.table
    else:
        table = np.asarray(unary)
        if num_variables is not None:
            if num_variables <= 0 or table.size % num_variables != 0:
                raise ValueError(f"Unary table size {table.size} is not a multiple "
                                 f"of num_variables={num_variables}")
            table = table.reshape(-1, num_variables)
        elif table.ndim != 2:
            raise ValueError(f"Expected an (L, M*N) unary table, got shape {table.shape}; "
                             f"pass num_variables for a flat table")
    return float(np.sum(np.min(table.astype(DTYPE), axis=0)))


class EnergyFunctor:
    """
    Total energy of a labeling under the fully connected model.

    Example::

        energy = EnergyFunctor(unary_cost, pairwise_cost, grid)
        e = energy(labels)
    """

    def __init__(self, unary: UnaryCost, pairwise: PairwiseCost, grid: GridIndex):
        self.unary = unary
        self.pairwise = pairwise
        self.grid = grid

    def _flat(self, labeling: np.ndarray) -> np.ndarray:
        labels = np.asarray(labeling).reshape(-1)
        if labels.size != self.grid.num_variables:
            raise ValueError(f"Labeling has {labels.size} entries, "
                             f"expected {self.grid.num_variables}")
        return labels.astype(np.intp)

    def unary_energy(self, labeling: np.ndarray) -> float:
        labels = self._flat(labeling)
        idx = np.arange(labels.size)
        return float(np.sum(self.unary.table[labels, idx].astype(DTYPE)))

    def pairwise_energy(self, labeling: np.ndarray) -> float:
        labels = self._flat(labeling)
        n = labels.size
        total = 0.0
        for i in range(n - 1):
            js = np.arange(i + 1, n)
            js = js[labels[js] != labels[i]]
            if js.size:
                total += float(np.sum(self.pairwise.costs_from(i, js)))
        return total

    def energy(self, labeling: np.ndarray) -> float:
        return self.unary_energy(labeling) + self.pairwise_energy(labeling)

    def __call__(self, labeling: np.ndarray) -> float:
        return self.energy(labeling)

    @staticmethod
    def lower_bound(unary: Union[np.ndarray, UnaryCost]) -> float:
        """See :func:`lowest_unary_cost`."""
        return lowest_unary_cost(unary)


__all__ = [
    "EnergyFunctor",
    "lowest_unary_cost",
]
