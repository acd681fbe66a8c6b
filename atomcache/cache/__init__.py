#!/usr/bin/env python3
"""
Structure cache and load coordination
"""
from .loader import AccessionLoader, LoadStrategy
from .atom_cache import AtomCache

__all__ = ['AccessionLoader', 'LoadStrategy', 'AtomCache']
