#!/usr/bin/env python3
"""
Data models for atomcache
"""
from .reference import (
    ReferenceKind, StructureReference, PlainAccession, AccessionChain,
    AccessionChainIndex, AccessionRange, ClassificationDomain, TopologyDomain,
    BiologicalAssembly, PdpDomain, StructureUrl, UnresolvedName,
    normalize_pdb_id,
)
from .domain import DomainDefinition, CathSegment, CathDomain

__all__ = [
    'ReferenceKind', 'StructureReference', 'PlainAccession', 'AccessionChain',
    'AccessionChainIndex', 'AccessionRange', 'ClassificationDomain', 'TopologyDomain',
    'BiologicalAssembly', 'PdpDomain', 'StructureUrl', 'UnresolvedName',
    'normalize_pdb_id', 'DomainDefinition', 'CathSegment', 'CathDomain',
]
