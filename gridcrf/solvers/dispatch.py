"""
Solver dispatch.

One call performs exactly one solve:

    options -> SolveConfig -> CostModel -> SOLVERS[config.solver] -> SolveResult

The solver name is matched case-sensitively against the registry before any
work is done; anything else is a ConfigurationError.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Sequence, Type

import numpy as np

from ..config import SolveConfig
from ..core.model import CostModel, Problem
from ..errors import ConfigurationError
from ..timing import SolveTimer
from .base import SolveResult, Solver
from .mean_field import DenseMeanFieldSolver
from .sparse_graph import SparseGraphSolver


SOLVERS: Dict[str, Type[Solver]] = {
    'MF': DenseMeanFieldSolver,
    'TRWS': SparseGraphSolver,
}


def get_solver(name: str) -> Solver:
    """Instantiate the adapter registered under ``name``."""
    try:
        return SOLVERS[name]()
    except (KeyError, TypeError):
        raise ConfigurationError(f"Unknown solver: {name!r}. "
                                 f"Expected one of {', '.join(SOLVERS)}") from None


def solve(image: np.ndarray, unary: np.ndarray, im_size: Sequence[int],
          options: Mapping[str, Any]) -> SolveResult:
    """
    Minimize the labeling energy with the solver named in ``options``.

    Args:
        image: ``(M, N, C)`` uint8 appearance image.
        unary: Float32 unary table with ``L*M*N`` entries, laid out ``(L, M*N)``.
        im_size: ``(M, N, C)``.
        options: ``solver`` ("MF" or "TRWS"), ``iterations``, ``debug``,
            ``min_pairwise_cost``, ``normalization`` and the pairwise weights.

    Returns:
        SolveResult with the ``(M, N)`` labels, achieved energy and lower bound.

    Raises:
        ConfigurationError: On invalid inputs or options; nothing is solved.
        BackendError: If the selected backend fails.
    """
    config = SolveConfig.from_options(options)
    timer = SolveTimer(enabled=config.debug)
    timer.start()

    solver = get_solver(config.solver)
    model = CostModel.from_arrays(image, unary, im_size, config.weights)

    if config.debug:
        print(f"Problem size: {model.grid.M} x {model.grid.N}, "
              f"{model.grid.C} channels, {model.num_labels} labels")
        timer.end("Reading data.")

    result = solver.solve(model, config, timer)
    result.metadata['timings'] = timer.as_dict()
    return result


def solve_problem(problem: Problem, options: Mapping[str, Any]) -> SolveResult:
    """Convenience wrapper around :func:`solve` for a :class:`Problem`."""
    return solve(problem.image, problem.unary, problem.im_size, options)


__all__ = [
    "SOLVERS",
    "get_solver",
    "solve",
    "solve_problem",
]
