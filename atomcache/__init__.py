#!/usr/bin/env python3
"""
atomcache

Resolve compact structure names (PDB accessions, chains, residue ranges,
SCOP and CATH domains, biological assemblies, PDP domains, URLs) into
Bio.PDB structures, loading each accession at most once at a time.
"""

__version__ = '0.1.0'
__license__ = 'MIT'

# Import core modules for easier access
from .cache.atom_cache import AtomCache
from .core.context import ApplicationContext
from .exceptions import AtomCacheError
from .error_handlers import handle_exceptions
from .naming.classifier import classify

# Make key classes available at package level
__all__ = ['AtomCache', 'ApplicationContext', 'AtomCacheError', 'handle_exceptions', 'classify']
