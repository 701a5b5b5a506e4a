#!/usr/bin/env python3
"""
gridcrf - Discrete labeling energy minimization on 2-D grids

Installation:
    pip install -e .

For development:
    pip install -e ".[dev]"
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

setup(
    name="gridcrf",
    version="1.0.0",
    author="gridcrf developers",
    author_email="",
    description="Mean-field and TRW-S energy minimization for grid CRFs with Gaussian pairwise kernels",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="",
    packages=find_packages(exclude=["tests*", "docs*", "examples*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.20.0",
        "matplotlib>=3.4.0",
        "pydensecrf @ git+https://github.com/lucasb-eyer/pydensecrf.git",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov",
            "black",
            "flake8",
            "mypy",
            "scipy>=1.7.0",
        ],
        "full": [
            "scipy>=1.7.0",
            "tifffile>=2021.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "gridcrf=gridcrf.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Image Recognition",
    ],
    keywords="CRF, MRF, mean field, TRW-S, energy minimization, segmentation",
    project_urls={
        "Bug Reports": "",
        "Source": "",
    },
)
