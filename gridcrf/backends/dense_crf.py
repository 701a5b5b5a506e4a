"""
Mean-field inference in fully connected CRFs with Gaussian edge potentials.

Thin wrapper around ``pydensecrf``, which approximates the posterior with a
factorized distribution Q and iterates

    Q_i(l) ∝ exp(-U_i(l) + sum_m w_m sum_j k_m(i, j) Q_j(l))

using permutohedral-lattice filtering, so one iteration is linear in the
number of pixels.

The lattice evaluates kernels of the form exp(-1/2 ||f_i - f_j||^2). The
cost model defines its kernels as exp(-||f_i - f_j||^2), so features are
scaled by sqrt(2) before they are handed over (see ``lattice_features``).

References:
-----------
[1] Kraehenbuehl, P., & Koltun, V. (2011). Efficient inference in fully
    connected CRFs with Gaussian edge potentials.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from ..core.grid import DTYPE
from ..errors import BackendError


def _densecrf():
    try:
        import pydensecrf.densecrf as dcrf
    except ImportError as e:
        raise ImportError(
            "pydensecrf is required for mean-field inference. Install with: "
            "pip install git+https://github.com/lucasb-eyer/pydensecrf.git"
        ) from e
    return dcrf


def lattice_features(features: np.ndarray) -> np.ndarray:
    """
    Convert ``(n, d)`` features for exp(-||f||^2) into the ``(d, n)``
    float32 layout for which the lattice's exp(-1/2 ||f||^2) is the same kernel.
    """
    features = np.asarray(features, dtype=DTYPE)
    return np.ascontiguousarray((np.sqrt(2.0) * features).T, dtype=np.float32)


class DenseCRF2D:
    """
    Fully connected CRF on an M x N image.

    Example::

        crf = DenseCRF2D(M, N, L)
        crf.set_unary_energy(unary)              # (L, M*N)
        crf.add_pairwise_gaussian(3, 3, 3.0)
        crf.add_pairwise_bilateral(80, 80, (13, 13, 13), image, 10.0)
        labels = crf.map(20)
    """

    def __init__(self, M: int, N: int, num_labels: int):
        dcrf = _densecrf()
        self.M = M
        self.N = N
        self.num_labels = num_labels
        self.unary: Optional[np.ndarray] = None
        self.num_kernels = 0

        self._normalizations = {
            'NO_NORMALIZATION': dcrf.NO_NORMALIZATION,
            'NORMALIZE_SYMMETRIC': dcrf.NORMALIZE_SYMMETRIC,
            'NORMALIZE_BEFORE': dcrf.NORMALIZE_BEFORE,
            'NORMALIZE_AFTER': dcrf.NORMALIZE_AFTER,
        }
        self._kernel_type = dcrf.CONST_KERNEL
        # pydensecrf takes width (columns) first
        self._crf = dcrf.DenseCRF2D(N, M, num_labels)

        rows, cols = np.divmod(np.arange(M * N), N)
        self._positions = np.stack([cols, rows], axis=1).astype(DTYPE)

    @property
    def num_variables(self) -> int:
        return self.M * self.N

    def set_unary_energy(self, unary: np.ndarray) -> None:
        unary = np.asarray(unary, dtype=np.float32).reshape(self.num_labels, self.num_variables)
        self.unary = np.ascontiguousarray(unary)
        self._crf.setUnaryEnergy(self.unary)

    def add_pairwise_energy(self, features: np.ndarray, weight: float,
                            normalization: str = 'NO_NORMALIZATION') -> None:
        """Add a Potts kernel ``weight * exp(-||f_i - f_j||^2)`` over ``(M*N, d)`` features."""
        if normalization not in self._normalizations:
            raise ValueError(f"Unknown normalization: {normalization}")
        if weight == 0:
            return
        self._crf.addPairwiseEnergy(lattice_features(features), compat=float(weight),
                                    kernel=self._kernel_type,
                                    normalization=self._normalizations[normalization])
        self.num_kernels += 1

    def add_pairwise_gaussian(self, sx: float, sy: float, weight: float,
                              normalization: str = 'NO_NORMALIZATION') -> None:
        features = self._positions / np.array([sx, sy], dtype=DTYPE)
        self.add_pairwise_energy(features, weight, normalization)

    def add_pairwise_bilateral(self, sx: float, sy: float, color_stddevs: Sequence[float],
                               image: np.ndarray, weight: float,
                               normalization: str = 'NO_NORMALIZATION') -> None:
        colors = np.asarray(image, dtype=DTYPE).reshape(self.num_variables, -1)
        features = np.hstack([
            self._positions / np.array([sx, sy], dtype=DTYPE),
            colors / np.asarray(color_stddevs, dtype=DTYPE),
        ])
        self.add_pairwise_energy(features, weight, normalization)

    def inference(self, iterations: int) -> np.ndarray:
        """
        Run exactly ``iterations`` mean-field updates.

        Returns:
            Marginals Q of shape (L, M*N).

        Raises:
            BackendError: If the unary is unset, the budget is not positive,
                or the marginals become non-finite.
        """
        if self.unary is None:
            raise BackendError("Unary energy has not been set")
        if iterations <= 0:
            raise BackendError(f"Iteration budget must be positive, got {iterations}")

        Q = np.array(self._crf.inference(int(iterations)), dtype=DTYPE)
        Q = Q.reshape(self.num_labels, self.num_variables)
        if not np.all(np.isfinite(Q)):
            raise BackendError("Mean-field marginals became non-finite")
        return Q

    def map(self, iterations: int) -> np.ndarray:
        """Most probable label per variable after ``iterations`` updates."""
        return np.argmax(self.inference(iterations), axis=0)


__all__ = [
    "DenseCRF2D",
    "lattice_features",
]
