#!/usr/bin/env python3
"""
Sub-structure extraction primitives

Every function here returns a new Bio.PDB Structure built from copies of the
selected residues, so a sub-structure never shares residues with the full
structure it was cut from.
"""
import copy
import logging
from typing import Dict, Iterable, List, Optional, Tuple, Union

from Bio.PDB.Atom import Atom
from Bio.PDB.Chain import Chain
from Bio.PDB.Model import Model
from Bio.PDB.Polypeptide import is_aa
from Bio.PDB.Residue import Residue
from Bio.PDB.Structure import Structure

from atomcache.exceptions import StructureError, MalformedRangeError
from atomcache.utils.range_utils import (
    ResidueNumber, ResidueRange, parse_range_expression, residue_numbers_to_ranges,
    format_range_expression,
)

logger = logging.getLogger("atomcache.structure.tools")


def is_water(residue: Residue) -> bool:
    return residue.id[0] == "W"


def is_ligand(residue: Residue) -> bool:
    """True for non-polymer, non-solvent groups (cofactors, ions, ...)

    Modified amino acids such as MSE carry a HETATM flag but belong to the
    polymer and are not ligands.
    """
    return residue.id[0].startswith("H_") and not is_aa(residue, standard=False)


def filter_ligands(residues: Iterable[Residue]) -> List[Residue]:
    return [residue for residue in residues if is_ligand(residue)]


def first_model(structure: Structure) -> Model:
    """Return the first model of a structure

    Raises:
        StructureError: If the structure has no models
    """
    models = structure.get_list()
    if not models:
        raise StructureError(f"Structure {structure.id} contains no models", {"structure": structure.id})
    return models[0]


def empty_structure(structure_id: str, template: Optional[Structure] = None) -> Structure:
    """Create a structure without models, copying the template's header"""
    structure = Structure(structure_id)
    structure.header = copy.deepcopy(getattr(template, "header", None) or {})
    return structure


def new_structure(structure_id: str, template: Optional[Structure] = None) -> Tuple[Structure, Model]:
    """Create an empty one-model structure, copying the template's header"""
    structure = empty_structure(structure_id, template)
    model = Model(0)
    structure.add(model)
    return structure, model


def copy_structure(structure: Structure) -> Structure:
    """Deep copy of a structure, header included"""
    copied = structure.copy()
    copied.header = copy.deepcopy(getattr(structure, "header", None) or {})
    return copied


def set_structure_name(structure: Structure, name: str, pdb_code: Optional[str] = None) -> Structure:
    """Overwrite the structure's name and, optionally, its PDB code"""
    structure.id = name
    if not hasattr(structure, "header") or structure.header is None:
        structure.header = {}
    if pdb_code is not None:
        structure.header["idcode"] = pdb_code
    return structure


def reduce_to_first_model(structure: Structure) -> Structure:
    """Copy of the first model only, all chains included"""
    model = first_model(structure)
    reduced = empty_structure(structure.id, structure)
    model_copy = model.copy()
    model_copy.id = 0
    reduced.add(model_copy)
    return reduced


def reduce_to_chain(structure: Structure, chain_id: str) -> Structure:
    """Copy of one chain of the first model

    Raises:
        StructureError: If the chain does not exist
    """
    model = first_model(structure)
    if chain_id not in model:
        raise StructureError(f"Did not find chain {chain_id} in structure {structure.id}",
                             {"structure": structure.id, "chain_id": chain_id})
    reduced, reduced_model = new_structure(structure.id, structure)
    reduced_model.add(model[chain_id].copy())
    return reduced


def reduce_to_chain_index(structure: Structure, chain_index: int) -> Structure:
    """Copy of the chain at position chain_index of the first model

    Raises:
        StructureError: If the index is out of range
    """
    chains = first_model(structure).get_list()
    if chain_index < 0 or chain_index >= len(chains):
        raise StructureError(f"Chain index {chain_index} out of range for structure {structure.id} "
                             f"({len(chains)} chains)",
                             {"structure": structure.id, "chain_index": chain_index})
    reduced, reduced_model = new_structure(structure.id, structure)
    reduced_model.add(chains[chain_index].copy())
    return reduced


def _find_residue_index(residues: List[Residue], number: ResidueNumber, chain_id: str) -> int:
    for index, residue in enumerate(residues):
        if number.matches(residue.id):
            return index
    raise MalformedRangeError(f"Residue {number} not found in chain {chain_id}",
                              {"chain_id": chain_id, "residue": str(number)})


def select_residues(chain: Chain, residue_range: ResidueRange) -> List[Residue]:
    """Residues of chain covered by residue_range, in chain order

    Raises:
        MalformedRangeError: If a bound is missing or the bounds are reversed
    """
    residues = chain.get_list()
    if residue_range.is_whole_chain:
        return residues

    start = _find_residue_index(residues, residue_range.start, chain.id)
    end = _find_residue_index(residues, residue_range.end, chain.id)
    if end < start:
        raise MalformedRangeError(f"Range {residue_range} ends before it starts",
                                  {"range": str(residue_range)})
    return residues[start:end + 1]


def get_sub_ranges(structure: Structure,
                   ranges: Union[str, List[ResidueRange]]) -> Structure:
    """Build a structure containing only the given chains and residue ranges

    Args:
        structure: Full structure; only its first model is used
        ranges: Range expression or already parsed ranges

    Returns:
        New structure with one model

    Raises:
        MalformedRangeError: If the ranges can't be parsed or name unknown chains
    """
    if isinstance(ranges, str):
        ranges = parse_range_expression(ranges)

    model = first_model(structure)
    sub, sub_model = new_structure(structure.id, structure)

    for residue_range in ranges:
        if residue_range.chain_id is None:
            chains = model.get_list()
        elif residue_range.chain_id in model:
            chains = [model[residue_range.chain_id]]
        else:
            raise MalformedRangeError(f"Chain {residue_range.chain_id} not found in structure {structure.id}",
                                      {"structure": structure.id, "range": str(residue_range)})

        for chain in chains:
            selected = select_residues(chain, residue_range)
            if chain.id in sub_model:
                target = sub_model[chain.id]
            else:
                target = Chain(chain.id)
                sub_model.add(target)
            for residue in selected:
                if residue.id not in target:
                    target.add(residue.copy())

    return sub


def get_ca_atoms(structure: Structure) -> List[Atom]:
    """C-alpha atoms of all amino acids in the first model"""
    atoms = []
    for chain in first_model(structure):
        for residue in chain:
            if "CA" in residue and is_aa(residue, standard=False):
                atoms.append(residue["CA"])
    return atoms


def get_range_expression(structure: Structure, include_ligands: bool = False) -> str:
    """Describe the residues present in a structure as a range expression"""
    ranges: List[ResidueRange] = []
    for chain in first_model(structure):
        numbers = [ResidueNumber.from_residue_id(residue.id) for residue in chain
                   if include_ligands or not (is_ligand(residue) or is_water(residue))]
        ranges.extend(residue_numbers_to_ranges(chain.id, numbers))
    return format_range_expression(ranges)


class ResiduePositionMap:
    """Residue positions of the first model of a structure

    Positions run over chains in structure order and, within a chain, over
    residues ordered by residue number (polymer residues before hetero
    groups sharing a number). A range contains a residue when the residue's
    position lies between the positions of the range bounds.
    """

    def __init__(self, structure: Structure):
        self._positions: Dict[Tuple[str, Tuple[str, int, str]], int] = {}
        self._numbers: Dict[Tuple[str, ResidueNumber], List[int]] = {}

        position = 0
        for chain in first_model(structure):
            ordered = sorted(chain, key=lambda r: (r.id[1], r.id[2], r.id[0] != " "))
            for residue in ordered:
                self._positions[(chain.id, residue.id)] = position
                self._numbers.setdefault((chain.id, ResidueNumber.from_residue_id(residue.id)), []).append(position)
                position += 1

    def __len__(self) -> int:
        return len(self._positions)

    def get_position(self, chain_id: str, residue: Residue) -> Optional[int]:
        return self._positions.get((chain_id, residue.id))

    def _bound(self, chain_id: str, number: ResidueNumber, lowest: bool) -> int:
        positions = self._numbers.get((chain_id, number))
        if not positions:
            raise MalformedRangeError(f"Residue {number} not found in chain {chain_id}",
                                      {"chain_id": chain_id, "residue": str(number)})
        return min(positions) if lowest else max(positions)

    def contains(self, residue_range: ResidueRange, chain_id: str, residue: Residue) -> bool:
        """Whether residue (of chain chain_id) lies inside residue_range"""
        if residue_range.chain_id is None:
            return True
        if residue_range.chain_id != chain_id:
            return False
        if residue_range.is_whole_chain:
            return True

        position = self.get_position(chain_id, residue)
        if position is None:
            return False
        start = self._bound(chain_id, residue_range.start, lowest=True)
        end = self._bound(chain_id, residue_range.end, lowest=False)
        return start <= position <= end
