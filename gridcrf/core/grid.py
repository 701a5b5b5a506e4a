"""
Grid indexing for labeling problems.

Variables live on an M x N grid and are numbered in row-major order:

    i = row * N + col

The unary table is laid out as ``(L, M*N)`` (one row of costs per label) and
the appearance image as ``(M, N, C)``. ``GridIndex`` translates between all of
these coordinate systems with plain integer arithmetic.

Note:
    Bounds are not checked. Callers are responsible for passing in-range
    indices, exactly like indexing into a flat buffer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np


DTYPE = np.float64
UNARY_DTYPE = np.float32


@dataclass(frozen=True)
class GridIndex:
    """
    Bidirectional mapping between linear indices and grid coordinates.

    Attributes:
        M: Number of rows.
        N: Number of columns.
        C: Number of image channels.
        num_labels: Number of labels L.
    """

    M: int
    N: int
    C: int = 1
    num_labels: int = 1

    @property
    def num_variables(self) -> int:
        return self.M * self.N

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.M, self.N)

    def to_coord(self, i: int) -> Tuple[int, int]:
        """Linear variable index -> (row, col)."""
        return divmod(int(i), self.N)

    def to_linear(self, row: int, col: int) -> int:
        """(row, col) -> linear variable index."""
        return int(row) * self.N + int(col)

    def unary_index(self, i: int, label: int) -> int:
        """Index of (variable, label) in the flattened ``(L, M*N)`` unary table."""
        return int(label) * self.num_variables + int(i)

    def image_index(self, row: int, col: int, channel: int) -> int:
        """Index of (row, col, channel) in the flattened ``(M, N, C)`` image."""
        return (int(row) * self.N + int(col)) * self.C + int(channel)

    def coords(self) -> Tuple[np.ndarray, np.ndarray]:
        """Row and column arrays for all variables, in linear order."""
        idx = np.arange(self.num_variables)
        return idx // self.N, idx % self.N


def label_dtype(num_labels: int) -> np.dtype:
    """Smallest signed integer type used for labelings with ``num_labels`` labels."""
    if num_labels - 1 <= np.iinfo(np.int32).max:
        return np.dtype(np.int32)
    return np.dtype(np.int64)


__all__ = [
    "DTYPE",
    "UNARY_DTYPE",
    "GridIndex",
    "label_dtype",
]
