"""
gridcrf - Discrete Labeling Energy Minimization on 2-D Grids

A Python library for minimizing CRF energies with unary costs and a Potts
pairwise term built from spatial and appearance Gaussian kernels, using
either of two interchangeable backends on the same cost model.

Main Classes:
    CostModel: Validated unary + pairwise cost model for one solve
    SolveConfig: Validated solve options
    SolveResult: Labels, achieved energy and lower bound

Quick Start:
    >>> import gridcrf
    >>>
    >>> # Create a synthetic problem
    >>> problem, truth = gridcrf.create_synthetic_problem(shape=(16, 16), num_labels=3)
    >>>
    >>> options = {
    ...     'solver': 'TRWS', 'iterations': 20, 'min_pairwise_cost': 0.01,
    ...     'gaussian_weight': 3, 'gaussian_x_stddev': 3, 'gaussian_y_stddev': 3,
    ...     'bilateral_weight': 10, 'bilateral_x_stddev': 80, 'bilateral_y_stddev': 80,
    ...     'bilateral_r_stddev': 13, 'bilateral_g_stddev': 13, 'bilateral_b_stddev': 13,
    ... }
    >>> result = gridcrf.solve(problem.image, problem.unary, problem.im_size, options)
    >>> result.labels.shape, result.energy, result.lower_bound
    >>>
    >>> # Visualize
    >>> gridcrf.plot_labeling(result)

Energy:
    E(x) = sum_i U_i(x_i) + sum_{i<j} k(i, j) [x_i != x_j]

    k(i, j) = w_g exp(-(dx/gx)^2 - (dy/gy)^2)
            + w_b exp(-(dx/bx)^2 - (dy/by)^2 - sum_c (dI_c/s_c)^2)

Solvers:
    "MF":   Mean-field inference on the fully connected model. Reports the
            energy of its labeling and the trivial bound sum_i min_l U_i(l).
    "TRWS": Sequential tree-reweighted message passing on the graph of all
            pairs with k(i, j) >= min_pairwise_cost. Reports its own energy
            and dual lower bound.

Modules:
    gridcrf.core: Grid indexing, cost oracles, energy, synthetic problems
    gridcrf.backends: Mean-field and TRW-S engines
    gridcrf.solvers: Adapters and dispatch
    gridcrf.io: Problem and result loading/saving
    gridcrf.visualization: Label map plots

Command Line Interface:
    python -m gridcrf generate -o problem.npz
    python -m gridcrf solve problem.npz -o result.npz --solver TRWS
    python -m gridcrf info result.npz
"""

__version__ = '1.0.0'
__author__ = 'gridcrf developers'

# Errors
from .errors import (
    GridCRFError,
    ConfigurationError,
    BackendError,
)

# Core cost model
from .core import (
    GridIndex,
    UnaryCost,
    PairwiseWeights,
    PairwiseCost,
    EnergyFunctor,
    lowest_unary_cost,
    Problem,
    CostModel,
    create_synthetic_problem,
    DTYPE,
)

# Configuration and timing
from .config import SolveConfig, SOLVER_NAMES, NORMALIZATIONS
from .timing import SolveTimer

# Backends
from .backends import (
    DenseCRF2D,
    PottsTRWS,
    TRWSOptions,
)

# Solvers
from .solvers import (
    Solver,
    SolveResult,
    DenseMeanFieldSolver,
    SparseGraphSolver,
    PottsGraph,
    build_potts_graph,
    SOLVERS,
    solve,
    solve_problem,
)

# I/O
from .io import (
    load_problem,
    load_problem_npz,
    load_problem_mat,
    load_image,
    save_problem_npz,
    save_problem_mat,
    save_result_npz,
    save_result_mat,
)

# Visualization
from .visualization import (
    plot_labeling,
    plot_solution_comparison,
)


# Define what's exported with "from gridcrf import *"
__all__ = [
    # Version
    '__version__',
    # Errors
    'GridCRFError',
    'ConfigurationError',
    'BackendError',
    # Core
    'GridIndex',
    'UnaryCost',
    'PairwiseWeights',
    'PairwiseCost',
    'EnergyFunctor',
    'lowest_unary_cost',
    'Problem',
    'CostModel',
    'create_synthetic_problem',
    'DTYPE',
    # Configuration
    'SolveConfig',
    'SOLVER_NAMES',
    'NORMALIZATIONS',
    'SolveTimer',
    # Backends
    'DenseCRF2D',
    'PottsTRWS',
    'TRWSOptions',
    # Solvers
    'Solver',
    'SolveResult',
    'DenseMeanFieldSolver',
    'SparseGraphSolver',
    'PottsGraph',
    'build_potts_graph',
    'SOLVERS',
    'solve',
    'solve_problem',
    # I/O
    'load_problem',
    'load_problem_npz',
    'load_problem_mat',
    'load_image',
    'save_problem_npz',
    'save_problem_mat',
    'save_result_npz',
    'save_result_mat',
    # Visualization
    'plot_labeling',
    'plot_solution_comparison',
]
