"""
Unary and pairwise cost oracles.

The pairwise term is a mixture of two Gaussian kernels with Potts label
compatibility, following Kraehenbuehl & Koltun (2011):

    k(i, j) = w_g * exp(-(dx/gx)^2 - (dy/gy)^2)
            + w_b * exp(-(dx/bx)^2 - (dy/by)^2 - sum_c (dI_c/s_c)^2)

where (dx, dy) is the column/row offset between the two pixels and dI the
difference of their image values. A pair only pays k(i, j) when its labels
disagree.

Both kernels can be written as exp(-||f_i - f_j||^2) for scaled feature
vectors f, which is how the dense backend consumes them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence, Tuple

import numpy as np

from ..errors import ConfigurationError
from .grid import DTYPE, UNARY_DTYPE, GridIndex


@dataclass(frozen=True)
class PairwiseWeights:
    """Kernel weights and standard deviations, fixed for one solve."""

    gaussian_weight: float
    gaussian_x_stddev: float
    gaussian_y_stddev: float
    bilateral_weight: float
    bilateral_x_stddev: float
    bilateral_y_stddev: float
    bilateral_color_stddevs: Tuple[float, ...]

    SCALAR_KEYS = (
        'gaussian_weight',
        'gaussian_x_stddev',
        'gaussian_y_stddev',
        'bilateral_weight',
        'bilateral_x_stddev',
        'bilateral_y_stddev',
    )
    RGB_KEYS = ('bilateral_r_stddev', 'bilateral_g_stddev', 'bilateral_b_stddev')
    COLOR_KEY = 'bilateral_color_stddevs'

    def __post_init__(self):
        object.__setattr__(self, 'bilateral_color_stddevs',
                           tuple(float(s) for s in self.bilateral_color_stddevs))

        for name in ('gaussian_weight', 'bilateral_weight'):
            if not getattr(self, name) >= 0:
                raise ConfigurationError(f"{name} must be non-negative, got {getattr(self, name)}")

        stddevs = {
            'gaussian_x_stddev': self.gaussian_x_stddev,
            'gaussian_y_stddev': self.gaussian_y_stddev,
            'bilateral_x_stddev': self.bilateral_x_stddev,
            'bilateral_y_stddev': self.bilateral_y_stddev,
        }
        for c, s in enumerate(self.bilateral_color_stddevs):
            stddevs[f'bilateral_color_stddevs[{c}]'] = s
        for name, value in stddevs.items():
            if not value > 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")

        if not self.bilateral_color_stddevs:
            raise ConfigurationError("At least one color standard deviation is required")

    @classmethod
    def option_names(cls) -> Tuple[str, ...]:
        return cls.SCALAR_KEYS + cls.RGB_KEYS + (cls.COLOR_KEY,)

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> 'PairwiseWeights':
        """
        Read the weights from an option mapping.

        Color standard deviations are given either as ``bilateral_r_stddev``,
        ``bilateral_g_stddev`` and ``bilateral_b_stddev`` (3-channel images)
        or as a ``bilateral_color_stddevs`` sequence with one entry per channel.

        Raises:
            ConfigurationError: If any value is missing or invalid.
        """
        missing = [k for k in cls.SCALAR_KEYS if k not in options]

        if cls.COLOR_KEY in options:
            colors = options[cls.COLOR_KEY]
            if np.isscalar(colors):
                colors = [colors]
        else:
            missing += [k for k in cls.RGB_KEYS if k not in options]
            colors = [options.get(k) for k in cls.RGB_KEYS]

        if missing:
            raise ConfigurationError(f"Missing pairwise weight options: {', '.join(missing)}")

        try:
            scalars = [float(options[k]) for k in cls.SCALAR_KEYS]
            colors = tuple(float(c) for c in colors)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid pairwise weight option: {e}") from e

        return cls(*scalars, bilateral_color_stddevs=colors)


class UnaryCost:
    """
    Read-only lookup into the ``(L, M*N)`` unary cost table.

    No data is copied when the caller already passes float32 costs.
    """

    def __init__(self, unary: np.ndarray, grid: GridIndex):
        table = np.asarray(unary, dtype=UNARY_DTYPE).reshape(grid.num_labels, grid.num_variables)
        table = table.view()
        table.flags.writeable = False
        self.table = table
        self.grid = grid

    def cost(self, variable: int, label: int) -> float:
        return float(self.table[label, variable])

    def cost_at(self, row: int, col: int, label: int) -> float:
        return float(self.table[label, self.grid.to_linear(row, col)])

    def node_costs(self, variable: int) -> np.ndarray:
        """Costs of all labels for one variable."""
        return self.table[:, variable]

    def __call__(self, variable: int, label: int) -> float:
        return self.cost(variable, label)


class PairwiseCost:
    """
    Pairwise kernel mixture evaluated on pixel coordinates and image values.

    Args:
        image: ``(M, N, C)`` appearance image (any numeric dtype).
        weights: Kernel configuration.
        grid: Grid geometry; ``grid.C`` must match the number of color
            standard deviations.
    """

    def __init__(self, image: np.ndarray, weights: PairwiseWeights, grid: GridIndex):
        if len(weights.bilateral_color_stddevs) != grid.C:
            raise ConfigurationError(
                f"Got {len(weights.bilateral_color_stddevs)} color standard deviations "
                f"for an image with {grid.C} channels"
            )
        self.weights = weights
        self.grid = grid
        self.colors = np.asarray(image, dtype=DTYPE).reshape(grid.num_variables, grid.C)

        rows, cols = grid.coords()
        self._positions = np.stack([cols, rows], axis=1).astype(DTYPE)

    def gaussian_features(self) -> np.ndarray:
        """``(M*N, 2)`` features such that k_g(i, j) = exp(-||f_i - f_j||^2)."""
        w = self.weights
        return self._positions / np.array([w.gaussian_x_stddev, w.gaussian_y_stddev])

    def bilateral_features(self) -> np.ndarray:
        """``(M*N, 2 + C)`` features such that k_b(i, j) = exp(-||f_i - f_j||^2)."""
        w = self.weights
        pos = self._positions / np.array([w.bilateral_x_stddev, w.bilateral_y_stddev])
        col = self.colors / np.asarray(w.bilateral_color_stddevs, dtype=DTYPE)
        return np.hstack([pos, col])

    def cost(self, coord_a: Tuple[int, int], coord_b: Tuple[int, int]) -> float:
        """Kernel value for two (row, col) coordinates."""
        i = self.grid.to_linear(*coord_a)
        j = self.grid.to_linear(*coord_b)
        return float(self.costs_from(i, np.array([j]))[0])

    def __call__(self, coord_a: Tuple[int, int], coord_b: Tuple[int, int]) -> float:
        return self.cost(coord_a, coord_b)

    def costs_from(self, i: int, js: Sequence[int]) -> np.ndarray:
        """Kernel values between variable ``i`` and every variable in ``js``."""
        js = np.asarray(js, dtype=np.intp)
        w = self.weights

        d = self._positions[js] - self._positions[i]
        dx2 = d[:, 0] ** 2
        dy2 = d[:, 1] ** 2
        dc2 = np.sum(((self.colors[js] - self.colors[i])
                      / np.asarray(w.bilateral_color_stddevs, dtype=DTYPE)) ** 2, axis=1)

        gaussian = np.exp(-dx2 / w.gaussian_x_stddev ** 2 - dy2 / w.gaussian_y_stddev ** 2)
        bilateral = np.exp(-dx2 / w.bilateral_x_stddev ** 2
                           - dy2 / w.bilateral_y_stddev ** 2 - dc2)
        return w.gaussian_weight * gaussian + w.bilateral_weight * bilateral

    def max_cost(self) -> float:
        """Upper bound of the kernel mixture over all pairs."""
        return self.weights.gaussian_weight + self.weights.bilateral_weight


__all__ = [
    "PairwiseWeights",
    "UnaryCost",
    "PairwiseCost",
]
