"""
Data Exporters for gridcrf.

Functions for saving problems and solve results.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Union

import numpy as np

from ..core.model import Problem
from ..solvers.base import SolveResult


def save_problem_npz(problem: Problem,
                     filepath: Union[str, Path],
                     compressed: bool = True) -> Path:
    """
    Save a problem to a NumPy .npz file readable by load_problem().

    Args:
        problem: Problem to save.
        filepath: Output path.
        compressed: Use compression.

    Returns:
        Path to saved file.
    """
    filepath = Path(filepath).with_suffix('.npz')

    save_func = np.savez_compressed if compressed else np.savez
    save_func(
        filepath,
        image=np.asarray(problem.image),
        unary=np.asarray(problem.unary),
        im_size=np.asarray(problem.im_size, dtype=np.int64),
    )

    return filepath


def unary_to_matlab(unary: np.ndarray, M: int, N: int) -> np.ndarray:
    """Inverse of :func:`~gridcrf.io.loaders.unary_from_matlab`: ``(L, M*N)`` with pixels column-major."""
    table = np.asarray(unary).reshape(-1, M, N)
    return np.ascontiguousarray(table.transpose(0, 2, 1).reshape(-1, M * N))


def save_problem_mat(problem: Problem,
                     filepath: Union[str, Path]) -> Path:
    """
    Save a problem to a MATLAB .mat file in the layout of the MATLAB interface.

    ``unary`` is written as an L x (M*N) single matrix whose columns follow
    MATLAB's column-major pixel order; ``load_problem`` reads it back.
    """
    try:
        from scipy.io import savemat
    except ImportError:
        raise ImportError("scipy package required. Install with: pip install scipy")

    M, N, C = problem.im_size
    filepath = Path(filepath).with_suffix('.mat')
    savemat(str(filepath), {
        'image': np.asarray(problem.image).reshape(M, N, C),
        'unary': unary_to_matlab(problem.unary, M, N).astype(np.float32),
        'im_size': np.array([M, N, C], dtype=np.float64),
    })
    return filepath


def _result_arrays(result: SolveResult) -> dict:
    return {
        'labels': result.labels,
        'energy': np.array(result.energy),
        'lower_bound': np.array(result.lower_bound),
        'solver': np.array(result.solver),
        'iterations': np.array(result.iterations),
    }


def save_result_npz(result: SolveResult,
                    filepath: Union[str, Path],
                    compressed: bool = True) -> Path:
    """
    Save a solve result to .npz.

    Stored keys: labels, energy, lower_bound, solver, iterations and
    metadata (as a JSON string).

    Returns:
        Path to saved file.
    """
    filepath = Path(filepath).with_suffix('.npz')

    save_func = np.savez_compressed if compressed else np.savez
    save_func(
        filepath,
        metadata=np.array(json.dumps(result.metadata, default=str)),
        **_result_arrays(result),
    )

    return filepath


def save_result_mat(result: SolveResult,
                    filepath: Union[str, Path]) -> Path:
    """
    Save a solve result to a MATLAB .mat file (result, energy, bound).

    Labels are stored as an M x N double matrix, matching what the MATLAB
    interface returned. The matrix keeps (row, col) indexing, so MATLAB's
    linear ``result(i)`` follows its own column-major pixel order.
    """
    try:
        from scipy.io import savemat
    except ImportError:
        raise ImportError("scipy package required. Install with: pip install scipy")

    filepath = Path(filepath).with_suffix('.mat')
    savemat(str(filepath), {
        'result': result.labels.astype(np.float64),
        'energy': result.energy,
        'bound': result.lower_bound,
        'solver': result.solver,
    })
    return filepath


__all__ = [
    "save_problem_npz",
    "save_problem_mat",
    "unary_to_matlab",
    "save_result_npz",
    "save_result_mat",
]
