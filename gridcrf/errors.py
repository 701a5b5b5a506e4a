"""
Exception hierarchy for gridcrf.

Every failure is fatal for the solve that raised it: no partial labeling,
energy or bound is ever returned.

Classes:
    GridCRFError: Base class for all library errors.
    ConfigurationError: Invalid inputs or options, detected before solving.
    BackendError: Numerical breakdown inside an inference backend.
"""


class GridCRFError(Exception):
    """Base class for all gridcrf errors."""


class ConfigurationError(GridCRFError, ValueError):
    """Raised for malformed inputs, unknown solvers and invalid options."""


class BackendError(GridCRFError, RuntimeError):
    """Raised when an inference backend fails (e.g. non-finite messages)."""


__all__ = [
    "GridCRFError",
    "ConfigurationError",
    "BackendError",
]
