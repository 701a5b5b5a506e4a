"""
gridcrf Visualization Module

Functions:
    plot_labeling: Display a label map or SolveResult.
    plot_solution_comparison: Image next to several solvers' labelings.
"""

from .labeling import (
    plot_labeling,
    plot_solution_comparison,
)

__all__ = [
    'plot_labeling',
    'plot_solution_comparison',
]
