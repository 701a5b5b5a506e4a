"""
Entry point for running gridcrf as a module.

Usage:
    python -m gridcrf solve problem.npz -o result.npz --solver TRWS
    python -m gridcrf generate -o problem.npz
    python -m gridcrf info problem.npz
"""

from .cli import main
import sys

if __name__ == '__main__':
    sys.exit(main())
