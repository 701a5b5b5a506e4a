"""
Synthetic labeling problems.

Generates a blocky ground-truth segmentation, renders it as a noisy color
image and derives unary costs from noisy label probabilities. Useful for
tests, demos and benchmarking the two solvers against each other.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from .grid import UNARY_DTYPE
from .model import Problem


def create_block_labels(shape: Tuple[int, int], num_labels: int,
                        block_size: int = 4,
                        rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """Piecewise-constant ``(M, N)`` label map made of square blocks."""
    rng = rng or np.random.default_rng()
    M, N = shape
    bm = -(-M // block_size)
    bn = -(-N // block_size)
    blocks = rng.integers(0, num_labels, size=(bm, bn))
    labels = np.kron(blocks, np.ones((block_size, block_size), dtype=blocks.dtype))
    return labels[:M, :N].astype(np.int32)


def create_synthetic_problem(shape: Tuple[int, int] = (16, 16),
                             num_labels: int = 3,
                             channels: int = 3,
                             noise: float = 0.3,
                             color_noise: float = 10.0,
                             block_size: int = 4,
                             seed: Optional[int] = None) -> Tuple[Problem, np.ndarray]:
    """
    Create a synthetic problem and its ground-truth labeling.

    Args:
        shape: Grid size (M, N).
        num_labels: Number of labels L.
        channels: Image channels C.
        noise: Standard deviation of the logit noise used for the unaries.
        color_noise: Standard deviation of the image noise (in 0-255 units).
        block_size: Side length of the constant label blocks.
        seed: Random seed.

    Returns:
        Tuple of (Problem, ground-truth labels of shape (M, N)).
    """
    rng = np.random.default_rng(seed)
    M, N = shape

    labels = create_block_labels(shape, num_labels, block_size, rng)

    palette = rng.uniform(0, 255, size=(num_labels, channels))
    image = palette[labels] + rng.normal(0, color_noise, size=(M, N, channels))
    image = np.clip(np.round(image), 0, 255).astype(np.uint8)

    logits = rng.normal(0, noise, size=(num_labels, M * N))
    logits[labels.reshape(-1), np.arange(M * N)] += 1.0
    logits -= logits.max(axis=0, keepdims=True)
    probs = np.exp(logits)
    probs /= probs.sum(axis=0, keepdims=True)
    unary = (-np.log(probs)).astype(UNARY_DTYPE)

    problem = Problem(
        image=image,
        unary=unary,
        im_size=(M, N, channels),
        metadata={'generator': 'synthetic', 'seed': seed, 'noise': noise},
    )
    return problem, labels


__all__ = [
    "create_block_labels",
    "create_synthetic_problem",
]
