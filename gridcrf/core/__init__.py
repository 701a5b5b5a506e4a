"""
gridcrf Core Module

Cost model shared by all solvers.

Classes:
    GridIndex: Linear <-> (row, col) index arithmetic.
    UnaryCost: Per-variable, per-label cost lookup.
    PairwiseWeights: Kernel weights and standard deviations.
    PairwiseCost: Spatial + bilateral Gaussian kernel mixture.
    EnergyFunctor: Total energy of a labeling.
    Problem: Caller-side inputs (image, unary, size).
    CostModel: Validated, solve-scoped bundle of the above.

Functions:
    lowest_unary_cost: Trivial lower bound.
    create_synthetic_problem: Generate a random problem with ground truth.
"""

from .grid import (
    GridIndex,
    label_dtype,
    DTYPE,
    UNARY_DTYPE,
)

from .costs import (
    UnaryCost,
    PairwiseWeights,
    PairwiseCost,
)

from .energy import (
    EnergyFunctor,
    lowest_unary_cost,
)

from .model import (
    Problem,
    CostModel,
    parse_im_size,
)

from .synthetic import (
    create_block_labels,
    create_synthetic_problem,
)

__all__ = [
    # Grid
    'GridIndex',
    'label_dtype',
    'DTYPE',
    'UNARY_DTYPE',
    # Costs
    'UnaryCost',
    'PairwiseWeights',
    'PairwiseCost',
    # Energy
    'EnergyFunctor',
    'lowest_unary_cost',
    # Model
    'Problem',
    'CostModel',
    'parse_im_size',
    # Synthetic data
    'create_block_labels',
    'create_synthetic_problem',
]
