"""
Solve configuration.

Options arrive as a flat mapping, as they did from the MATLAB wrapper::

    options = {
        'solver': 'TRWS',
        'iterations': 20,
        'min_pairwise_cost': 0.05,
        'gaussian_weight': 3, 'gaussian_x_stddev': 3, 'gaussian_y_stddev': 3,
        'bilateral_weight': 10, 'bilateral_x_stddev': 80, 'bilateral_y_stddev': 80,
        'bilateral_r_stddev': 13, 'bilateral_g_stddev': 13, 'bilateral_b_stddev': 13,
    }

``SolveConfig.from_options`` applies the defaults and validates everything
before any solver is selected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

import numpy as np

from .core.costs import PairwiseWeights
from .errors import ConfigurationError


SOLVER_NAMES = ('MF', 'TRWS')

NORMALIZATIONS = (
    'NO_NORMALIZATION',
    'NORMALIZE_SYMMETRIC',
    'NORMALIZE_BEFORE',
    'NORMALIZE_AFTER',
)


@dataclass(frozen=True)
class SolveConfig:
    """Validated options for one solve."""

    solver: str
    weights: PairwiseWeights
    iterations: int = 20
    debug: bool = False
    min_pairwise_cost: float = 0.0
    normalization: str = 'NO_NORMALIZATION'

    GENERAL_KEYS = ('solver', 'iterations', 'debug', 'min_pairwise_cost', 'normalization')

    def __post_init__(self):
        if self.solver not in SOLVER_NAMES:
            raise ConfigurationError(f"Unknown solver: {self.solver!r}. "
                                     f"Expected one of {', '.join(SOLVER_NAMES)}")
        if isinstance(self.iterations, bool) or not isinstance(self.iterations, (int, np.integer)):
            raise ConfigurationError(f"iterations must be an integer, got {self.iterations!r}")
        if self.iterations <= 0:
            raise ConfigurationError(f"iterations must be positive, got {self.iterations}")
        if not isinstance(self.debug, (bool, np.bool_)):
            raise ConfigurationError(f"debug must be a boolean, got {self.debug!r}")
        object.__setattr__(self, 'debug', bool(self.debug))
        if np.isnan(self.min_pairwise_cost):
            raise ConfigurationError("min_pairwise_cost must not be NaN")
        if self.normalization not in NORMALIZATIONS:
            raise ConfigurationError(f"Unknown normalization: {self.normalization!r}. "
                                     f"Expected one of {', '.join(NORMALIZATIONS)}")

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> 'SolveConfig':
        """
        Build a configuration from an option mapping.

        ``solver`` is required. ``iterations`` defaults to 20, ``debug`` to
        False, ``min_pairwise_cost`` to 0 and ``normalization`` to
        ``NO_NORMALIZATION``. All pairwise weight options are required.

        Raises:
            ConfigurationError: On a missing or unknown solver, unknown option
                names or invalid values.
        """
        if options is None:
            options = {}

        if 'solver' not in options:
            raise ConfigurationError(f"Option 'solver' is required "
                                     f"(one of {', '.join(SOLVER_NAMES)})")
        solver = options['solver']
        if solver not in SOLVER_NAMES:
            raise ConfigurationError(f"Unknown solver: {solver!r}. "
                                     f"Expected one of {', '.join(SOLVER_NAMES)}")

        known = set(cls.GENERAL_KEYS) | set(PairwiseWeights.option_names())
        unknown = sorted(k for k in options if k not in known)
        if unknown:
            raise ConfigurationError(f"Unknown options: {', '.join(map(str, unknown))}")

        iterations = options.get('iterations', 20)
        if isinstance(iterations, float) and iterations.is_integer():
            iterations = int(iterations)

        try:
            min_pairwise_cost = float(options.get('min_pairwise_cost', 0.0))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid min_pairwise_cost: {e}") from e

        return cls(
            solver=solver,
            weights=PairwiseWeights.from_options(options),
            iterations=iterations,
            debug=options.get('debug', False),
            min_pairwise_cost=min_pairwise_cost,
            normalization=options.get('normalization', 'NO_NORMALIZATION'),
        )


__all__ = [
    "SOLVER_NAMES",
    "NORMALIZATIONS",
    "SolveConfig",
]
