"""
Solver adapters and dispatch.

Both adapters inherit from :class:`~gridcrf.solvers.base.Solver` and return
:class:`~gridcrf.solvers.base.SolveResult`.

Available solvers:

* ``"MF"``   :class:`DenseMeanFieldSolver` - mean field on the fully connected model
* ``"TRWS"`` :class:`SparseGraphSolver` - TRW-S on the thresholded pairwise graph
"""

from .base import Solver, SolveResult, assemble_result
from .mean_field import DenseMeanFieldSolver
from .sparse_graph import PottsGraph, SparseGraphSolver, build_potts_graph
from .dispatch import SOLVERS, get_solver, solve, solve_problem

__all__ = [
    # Base abstractions
    "Solver",
    "SolveResult",
    "assemble_result",
    # Adapters
    "DenseMeanFieldSolver",
    "SparseGraphSolver",
    "PottsGraph",
    "build_potts_graph",
    # Dispatch
    "SOLVERS",
    "get_solver",
    "solve",
    "solve_problem",
]
