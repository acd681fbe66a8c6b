#!/usr/bin/env python3
"""
Setup script for pyatomcache
"""

from setuptools import setup, find_packages

setup(
    name="pyatomcache",
    version="0.1.0",
    description="Resolve compact structure names (PDB chains, ranges, SCOP/CATH domains, assemblies) "
                "into Bio.PDB structures",
    license="MIT",
    packages=find_packages(include=["atomcache", "atomcache.*"]),
    install_requires=[
        "psycopg2-binary>=2.9.3",
        "pyyaml>=6.0",
        "biopython>=1.79",
        "numpy>=1.22.0",
        "requests>=2.27.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'atomcache=atomcache.cli.main:main',
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
    python_requires=">=3.8",
)
