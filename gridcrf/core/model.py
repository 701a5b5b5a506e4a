"""
Solve-scoped cost model.

Bundles the grid geometry, the unary and pairwise oracles and the energy
functor built from one set of caller arrays. Both solver adapters consume
the same ``CostModel``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Sequence, Tuple

import numpy as np

from ..errors import ConfigurationError
from .costs import PairwiseCost, PairwiseWeights, UnaryCost
from .energy import EnergyFunctor
from .grid import GridIndex


def parse_im_size(im_size: Sequence[int]):
    """Validate ``(M, N, C)`` and return it as a tuple of ints."""
    dims = np.asarray(im_size).reshape(-1)
    if dims.size != 3:
        raise ConfigurationError(f"im_size must contain (M, N, C), got {dims.size} values")
    if not np.all(np.equal(np.mod(dims, 1), 0)):
        raise ConfigurationError(f"im_size must be integral, got {dims.tolist()}")
    M, N, C = (int(d) for d in dims)
    if M <= 0 or N <= 0 or C <= 0:
        raise ConfigurationError(f"Grid dimensions must be positive, got {(M, N, C)}")
    return M, N, C


@dataclass
class Problem:
    """
    Caller-side inputs of one labeling problem.

    Attributes:
        image: ``(M, N, C)`` appearance image, uint8 samples.
        unary: ``(L, M*N)`` float32 unary cost table.
        im_size: ``(M, N, C)``.
        metadata: Free-form information (source file, generator settings).
    """

    image: np.ndarray
    unary: np.ndarray
    im_size: Tuple[int, int, int]
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def num_labels(self) -> int:
        M, N, _ = self.im_size
        return int(np.asarray(self.unary).size // (M * N))


@dataclass
class CostModel:
    """
    Cost model for one solve.

    Attributes:
        grid: Geometry and label count.
        unary: Unary oracle over the caller's table.
        pairwise: Kernel mixture over the caller's image.
        energy: Energy functor combining both.
    """

    grid: GridIndex
    unary: UnaryCost
    pairwise: PairwiseCost
    energy: EnergyFunctor

    @property
    def num_labels(self) -> int:
        return self.grid.num_labels

    @property
    def num_variables(self) -> int:
        return self.grid.num_variables

    @property
    def weights(self) -> PairwiseWeights:
        return self.pairwise.weights

    @classmethod
    def from_arrays(cls, image: np.ndarray, unary: np.ndarray,
                    im_size: Sequence[int], weights: PairwiseWeights) -> 'CostModel':
        """
        Validate caller arrays and build the oracles.

        Args:
            image: Appearance image with ``M*N*C`` samples (``(M, N, C)``).
            unary: Unary table with ``L*M*N`` entries, laid out as ``(L, M*N)``.
            im_size: ``(M, N, C)``.
            weights: Pairwise kernel configuration.

        Raises:
            ConfigurationError: If any size invariant is violated.
        """
        M, N, C = parse_im_size(im_size)
        num_variables = M * N

        image = np.asarray(image)
        if image.size != num_variables * C:
            raise ConfigurationError(
                f"Image has {image.size} samples, expected {M}x{N}x{C}={num_variables * C}"
            )

        unary = np.asarray(unary)
        if unary.size == 0 or unary.size % num_variables != 0:
            raise ConfigurationError(
                f"Unary table size {unary.size} is not a positive multiple of M*N={num_variables}"
            )
        if (not np.issubdtype(unary.dtype, np.number)
                or np.issubdtype(unary.dtype, np.complexfloating)):
            raise ConfigurationError(f"Unary table must be real-valued, got {unary.dtype}")
        if np.any(np.isnan(unary)):
            raise ConfigurationError("Unary table contains NaN")

        grid = GridIndex(M, N, C, unary.size // num_variables)
        unary_cost = UnaryCost(unary, grid)
        pairwise_cost = PairwiseCost(image.reshape(M, N, C), weights, grid)
        return cls(
            grid=grid,
            unary=unary_cost,
            pairwise=pairwise_cost,
            energy=EnergyFunctor(unary_cost, pairwise_cost, grid),
        )


__all__ = [
    "Problem",
    "CostModel",
    "parse_im_size",
]
