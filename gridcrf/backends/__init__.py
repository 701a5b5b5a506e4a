"""
Inference backends.

Self-contained engines consumed by the solver adapters:

* :class:`DenseCRF2D` - mean-field inference in fully connected CRFs (pydensecrf)
* :class:`PottsTRWS` - sequential tree-reweighted message passing on an
  explicit Potts graph
"""

from .dense_crf import DenseCRF2D, lattice_features
from .trws import PottsTRWS, TRWSOptions, potts_messages

__all__ = [
    "DenseCRF2D",
    "lattice_features",
    "PottsTRWS",
    "TRWSOptions",
    "potts_messages",
]
