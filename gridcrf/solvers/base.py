"""
Base abstractions for solver adapters.

Provides the Solver abstract base class and the SolveResult dataclass that
both adapters return, plus ``assemble_result`` which turns a backend's flat
per-variable output back into grid order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import numpy as np

from ..config import SolveConfig
from ..core.grid import GridIndex, label_dtype
from ..core.model import CostModel
from ..timing import SolveTimer


@dataclass
class SolveResult:
    """Result container returned by every Solver.

    Attributes:
        labels: ``(M, N)`` label map.
        energy: Energy achieved by ``labels``.
        lower_bound: Lower bound on the optimal energy.
        solver: Name of the solver that produced this result.
        iterations: Iteration budget that was used.
        metadata: Solver-specific information (timings, edge counts, ...).
    """

    labels: np.ndarray
    energy: float
    lower_bound: float
    solver: str = ""
    iterations: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def labeling(self) -> np.ndarray:
        """Labels as a flat row-major sequence of length M*N."""
        return self.labels.reshape(-1)

    @property
    def shape(self):
        return self.labels.shape

    @property
    def gap(self) -> float:
        """Absolute gap between achieved energy and lower bound."""
        return self.energy - self.lower_bound

    @property
    def relative_gap(self) -> float:
        if self.energy == 0:
            return 0.0 if self.gap == 0 else float('inf')
        return self.gap / abs(self.energy)


def assemble_result(labels: np.ndarray, energy: float, lower_bound: float,
                    grid: GridIndex, solver: str = "", iterations: int = 0,
                    metadata: Optional[Dict[str, Any]] = None) -> SolveResult:
    """Pack a backend's per-variable labels into a grid-ordered result."""
    labels = np.asarray(labels).reshape(-1)
    if labels.size != grid.num_variables:
        raise ValueError(f"Backend returned {labels.size} labels, "
                         f"expected {grid.num_variables}")
    return SolveResult(
        labels=labels.astype(label_dtype(grid.num_labels)).reshape(grid.M, grid.N),
        energy=float(energy),
        lower_bound=float(lower_bound),
        solver=solver,
        iterations=iterations,
        metadata=dict(metadata or {}),
    )


class Solver(ABC):
    """Abstract base class for the inference backends' adapters.

    Every adapter translates the shared :class:`CostModel` into its
    backend's input format, runs the backend and returns a
    :class:`SolveResult`.
    """

    name: str = ""

    @abstractmethod
    def solve(
        self,
        model: CostModel,
        config: SolveConfig,
        timer: Optional[SolveTimer] = None,
    ) -> SolveResult:
        """Run one solve.

        Args:
            model: Validated cost model.
            config: Validated options (iterations, debug, ...).
            timer: Per-solve timer; a disabled one is created if ``None``.

        Returns:
            A ``SolveResult`` with labels, energy and lower bound.
        """
        ...


__all__ = [
    "Solver",
    "SolveResult",
    "assemble_result",
]
