"""
Labeling plots.

Functions for displaying label maps and comparing the output of several
solvers on the same image.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple, Union

import numpy as np
import matplotlib.pyplot as plt

from ..solvers.base import SolveResult


def _as_labels(labels: Union[np.ndarray, SolveResult]) -> np.ndarray:
    if isinstance(labels, SolveResult):
        return labels.labels
    labels = np.asarray(labels)
    if labels.ndim != 2:
        raise ValueError(f"Expected an (M, N) label map, got shape {labels.shape}")
    return labels


def _display_image(image: np.ndarray) -> np.ndarray:
    image = np.asarray(image)
    if image.ndim == 3 and image.shape[2] == 1:
        return image[:, :, 0]
    if image.ndim == 3 and image.shape[2] not in (3, 4):
        return image[:, :, :3] if image.shape[2] > 3 else image[:, :, 0]
    return image


def plot_labeling(labels: Union[np.ndarray, SolveResult],
                  num_labels: Optional[int] = None,
                  ax: Optional[plt.Axes] = None,
                  cmap: str = 'tab20',
                  title: Optional[str] = None,
                  colorbar: bool = True) -> plt.Figure:
    """
    Plot a label map.

    Args:
        labels: ``(M, N)`` labels or a SolveResult.
        num_labels: Number of labels, for a stable color mapping.
        ax: Axes to draw into (a new figure is created if None).
        cmap: Qualitative colormap.
        title: Plot title. Defaults to solver/energy for a SolveResult.
        colorbar: Show a colorbar.

    Returns:
        Matplotlib figure.
    """
    label_map = _as_labels(labels)
    if num_labels is None:
        num_labels = int(label_map.max()) + 1 if label_map.size else 1

    if ax is None:
        fig, ax = plt.subplots(figsize=(5, 5))
    else:
        fig = ax.figure

    im = ax.imshow(label_map, cmap=cmap, vmin=-0.5, vmax=num_labels - 0.5,
                   interpolation='nearest')

    if title is None and isinstance(labels, SolveResult):
        title = f"{labels.solver}: E={labels.energy:.3g}, LB={labels.lower_bound:.3g}"
    if title:
        ax.set_title(title)
    ax.set_xticks([])
    ax.set_yticks([])

    if colorbar:
        fig.colorbar(im, ax=ax, ticks=np.arange(num_labels), fraction=0.046, pad=0.04)

    return fig


def plot_solution_comparison(image: np.ndarray,
                             results: Dict[str, SolveResult],
                             num_labels: Optional[int] = None,
                             figsize: Optional[Tuple[float, float]] = None) -> plt.Figure:
    """
    Show the input image next to the labeling of each solver.

    Args:
        image: ``(M, N, C)`` appearance image.
        results: Mapping from display name to SolveResult.
        num_labels: Number of labels (inferred from the results if None).
        figsize: Figure size.

    Returns:
        Matplotlib figure.
    """
    if num_labels is None:
        num_labels = max((int(r.labels.max()) + 1 for r in results.values()), default=1)

    n_panels = 1 + len(results)
    if figsize is None:
        figsize = (4 * n_panels, 4)

    fig, axes = plt.subplots(1, n_panels, figsize=figsize)
    axes = np.atleast_1d(axes)

    axes[0].imshow(_display_image(image), cmap='gray')
    axes[0].set_title('Image')
    axes[0].set_xticks([])
    axes[0].set_yticks([])

    for ax, (name, result) in zip(axes[1:], results.items()):
        plot_labeling(result, num_labels=num_labels, ax=ax, colorbar=False,
                      title=f"{name}\nE={result.energy:.3g}  LB={result.lower_bound:.3g}")

    plt.tight_layout()
    return fig


__all__ = [
    "plot_labeling",
    "plot_solution_comparison",
]
