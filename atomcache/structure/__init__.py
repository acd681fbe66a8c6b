#!/usr/bin/env python3
"""
Structure extraction and assembly on top of Bio.PDB
"""
from .tools import (
    is_ligand, filter_ligands, reduce_to_first_model, reduce_to_chain,
    reduce_to_chain_index, get_sub_ranges, get_ca_atoms, get_range_expression,
    set_structure_name, copy_structure, ResiduePositionMap,
)
from .assembler import (
    LigandPolicy, StructureAssembler, FirstModelTarget, ChainTarget,
    ChainIndexTarget, RangeTarget, DomainTarget, CathTarget,
)

__all__ = [
    'is_ligand', 'filter_ligands', 'reduce_to_first_model', 'reduce_to_chain',
    'reduce_to_chain_index', 'get_sub_ranges', 'get_ca_atoms', 'get_range_expression',
    'set_structure_name', 'copy_structure', 'ResiduePositionMap',
    'LigandPolicy', 'StructureAssembler', 'FirstModelTarget', 'ChainTarget',
    'ChainIndexTarget', 'RangeTarget', 'DomainTarget', 'CathTarget',
]
