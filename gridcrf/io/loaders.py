"""
Data Loaders for gridcrf.

Functions for loading labeling problems and images from various formats.

Supported formats:
    - NumPy .npz (recommended for Python), keys ``image``, ``unary``
      and optionally ``im_size``
    - MATLAB .mat files with the same variable names (requires scipy)
    - Images: .npy, .png/.jpg (matplotlib), .tif/.tiff (requires tifffile)

Auto-detection:
    Use load_problem() for automatic format detection.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import numpy as np

from ..core.grid import UNARY_DTYPE
from ..core.model import Problem


PathLike = Union[str, Path]


def _to_problem(data: Mapping[str, Any], metadata: Optional[Dict[str, Any]] = None) -> Problem:
    if 'image' not in data or 'unary' not in data:
        available = [k for k in data.keys() if not str(k).startswith('_')]
        raise ValueError(f"Problem must contain 'image' and 'unary'. Available keys: {available}")

    image = np.asarray(data['image'])

    if data.get('im_size') is not None:
        im_size = tuple(int(v) for v in np.asarray(data['im_size']).reshape(-1))
        if len(im_size) == 3 and image.size == int(np.prod(im_size)):
            image = image.reshape(im_size)
    else:
        if image.ndim == 2:
            image = image[:, :, np.newaxis]
        if image.ndim != 3:
            raise ValueError(f"Image must be 2D or 3D (M, N, C), got shape {image.shape}")
        im_size = tuple(int(v) for v in image.shape)

    return Problem(
        image=image,
        unary=np.asarray(data['unary'], dtype=UNARY_DTYPE),
        im_size=im_size,
        metadata=dict(metadata or {}),
    )


def load_problem(source: Union[PathLike, Mapping[str, Any], Problem]) -> Problem:
    """
    Load a labeling problem with automatic format detection.

    Args:
        source: Can be:
            - Path to .npz file
            - Path to .mat file (MATLAB)
            - Dictionary with 'image', 'unary' and optional 'im_size' keys
            - An existing Problem (returned as-is)

    Returns:
        Problem loaded from source.

    Examples:
        >>> problem = gridcrf.load_problem('problem.npz')
        >>> problem = gridcrf.load_problem({'image': img, 'unary': U})
    """
    if isinstance(source, Problem):
        return source

    if isinstance(source, Mapping):
        return _to_problem(source)

    filepath = Path(source)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    suffix = filepath.suffix.lower()

    if suffix == '.npz':
        return load_problem_npz(filepath)
    elif suffix == '.mat':
        return load_problem_mat(filepath)
    else:
        raise ValueError(f"Unknown file format: {suffix}. Supported: .npz, .mat")


def load_problem_npz(filepath: PathLike) -> Problem:
    """Load a problem from a NumPy .npz file."""
    filepath = Path(filepath)
    with np.load(filepath, allow_pickle=False) as data:
        contents = {key: data[key] for key in data.files}
    return _to_problem(contents, metadata={'source_file': str(filepath), 'format': 'npz'})


def unary_from_matlab(unary: np.ndarray, M: int, N: int) -> np.ndarray:
    """
    Reorder a unary table written for the MATLAB interface into ``(L, M*N)``.

    MATLAB passes the table in column-major memory order with labels
    fastest, and numbers pixels column-major (``j = row + M*col``). The
    result numbers them row-major (``i = row*N + col``).
    """
    flat = np.asarray(unary).reshape(-1, order='F')
    if flat.size == 0 or flat.size % (M * N) != 0:
        raise ValueError(f"Unary table size {flat.size} is not a positive multiple "
                         f"of M*N={M * N}")
    L = flat.size // (M * N)
    table = flat.reshape(N, M, L).transpose(2, 1, 0).reshape(L, M * N)
    return np.ascontiguousarray(table, dtype=UNARY_DTYPE)


def load_problem_mat(filepath: PathLike) -> Problem:
    """
    Load a problem from a MATLAB .mat file.

    The file must hold ``image`` (M x N x C) and ``unary`` variables;
    ``im_size`` is optional. ``unary`` is read in the layout the MATLAB
    interface used (see :func:`unary_from_matlab`).
    """
    try:
        from scipy.io import loadmat
    except ImportError:
        raise ImportError("scipy required for MATLAB file loading. "
                          "Install with: pip install scipy")

    filepath = Path(filepath)
    data = loadmat(str(filepath))
    problem = _to_problem(data, metadata={'source_file': str(filepath), 'format': 'matlab'})
    M, N, _ = problem.im_size
    problem.unary = unary_from_matlab(problem.unary, M, N)
    return problem


def load_image(filepath: PathLike) -> np.ndarray:
    """
    Load an image as a ``(M, N, C)`` uint8 array.

    Float images in [0, 1] (as returned by matplotlib for PNG) are scaled
    to 0-255. Alpha channels are kept.
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    suffix = filepath.suffix.lower()

    if suffix == '.npy':
        image = np.load(filepath)
    elif suffix in ['.tif', '.tiff']:
        try:
            import tifffile
        except ImportError:
            raise ImportError("tifffile required for TIFF loading. "
                              "Install with: pip install tifffile")
        image = tifffile.imread(str(filepath))
    elif suffix in ['.png', '.jpg', '.jpeg', '.bmp']:
        import matplotlib.image as mpimg
        image = mpimg.imread(str(filepath))
    else:
        raise ValueError(f"Unknown image format: {suffix}")

    image = np.asarray(image)
    if np.issubdtype(image.dtype, np.floating) and image.size and image.max() <= 1.0:
        image = image * 255.0
    if image.ndim == 2:
        image = image[:, :, np.newaxis]
    return np.clip(np.round(image), 0, 255).astype(np.uint8)


__all__ = [
    "load_problem",
    "load_problem_npz",
    "load_problem_mat",
    "load_image",
    "unary_from_matlab",
]
