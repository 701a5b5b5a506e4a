"""
gridcrf I/O Module

Loading and saving of problems and results.

Loaders:
    load_problem: Auto-detect format (.npz, .mat, dict).
    load_problem_npz, load_problem_mat: Format-specific loaders.
    load_image: Load an image as an (M, N, C) uint8 array.
    unary_from_matlab: Reorder a MATLAB-layout unary table.

Exporters:
    save_problem_npz, save_problem_mat: Save a problem.
    save_result_npz, save_result_mat: Save a solve result.
"""

from .loaders import (
    load_problem,
    load_problem_npz,
    load_problem_mat,
    load_image,
    unary_from_matlab,
)

from .exporters import (
    save_problem_npz,
    save_problem_mat,
    unary_to_matlab,
    save_result_npz,
    save_result_mat,
)

__all__ = [
    # Loaders
    'load_problem',
    'load_problem_npz',
    'load_problem_mat',
    'load_image',
    'unary_from_matlab',
    # Exporters
    'save_problem_npz',
    'save_problem_mat',
    'unary_to_matlab',
    'save_result_npz',
    'save_result_mat',
]
