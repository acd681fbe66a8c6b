#!/usr/bin/env python3
"""
Structure assembler

Carves the requested sub-structure out of a full structure and reconciles
ligands. Ligands often sit after the TER record of their chain, so a pure
residue-range cut loses them; they are re-added under a ligand policy.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Union

from Bio.PDB.Structure import Structure

from atomcache.exceptions import StructureError
from atomcache.models.domain import DomainDefinition, CathDomain
from atomcache.structure.tools import (
    filter_ligands, first_model, get_sub_ranges, reduce_to_chain,
    reduce_to_chain_index, reduce_to_first_model, set_structure_name,
    ResiduePositionMap,
)
from atomcache.utils.range_utils import ResidueRange, parse_multiple, parse_range_expression


class LigandPolicy(Enum):
    """How ligands of a domain's chains are merged into the domain"""
    LOOSE = "loose"    # every ligand of a chain that is part of the domain
    STRICT = "strict"  # only ligands positioned inside the domain ranges

    @classmethod
    def from_flag(cls, strict: bool) -> 'LigandPolicy':
        return cls.STRICT if strict else cls.LOOSE


@dataclass(frozen=True)
class FirstModelTarget:
    """Whole structure, first model"""


@dataclass(frozen=True)
class ChainTarget:
    chain_id: str


@dataclass(frozen=True)
class ChainIndexTarget:
    chain_index: int


@dataclass(frozen=True)
class RangeTarget:
    range_expression: str


@dataclass(frozen=True)
class DomainTarget:
    """A classification domain

    ``descriptions`` is any object offering
    ``get_description_by_sunid(sunid) -> Optional[str]`` (a SCOP database).
    """
    domain: DomainDefinition
    descriptions: Optional[Any] = None


@dataclass(frozen=True)
class CathTarget:
    """A CATH domain; chain_id overrides the chain used for its segments"""
    domain: CathDomain
    chain_id: Optional[str] = None


Target = Union[FirstModelTarget, ChainTarget, ChainIndexTarget, RangeTarget, DomainTarget, CathTarget]


class StructureAssembler:
    """Builds sub-structures from full structures"""

    def __init__(self):
        self.logger = logging.getLogger("atomcache.structure.assembler")

    def assemble(self, full: Structure, target: Target,
                 ligand_policy: LigandPolicy = LigandPolicy.LOOSE) -> Structure:
        """Produce the sub-structure described by target

        Args:
            full: Full structure as returned by the structure reader
            target: What to cut out
            ligand_policy: Ligand handling for domain targets

        Returns:
            Newly built structure

        Raises:
            StructureError: If the target does not fit the structure
        """
        if isinstance(target, FirstModelTarget):
            return reduce_to_first_model(full)
        if isinstance(target, ChainTarget):
            return reduce_to_chain(full, target.chain_id)
        if isinstance(target, ChainIndexTarget):
            return reduce_to_chain_index(full, target.chain_index)
        if isinstance(target, RangeTarget):
            return get_sub_ranges(full, target.range_expression)
        if isinstance(target, DomainTarget):
            return self.assemble_domain(full, target.domain, ligand_policy, target.descriptions)
        if isinstance(target, CathTarget):
            return self.assemble_cath(full, target.domain, target.chain_id)
        raise StructureError(f"Unsupported assembly target: {target!r}")

    def assemble_domain(self, full: Structure, domain: DomainDefinition,
                        ligand_policy: LigandPolicy = LigandPolicy.LOOSE,
                        descriptions: Optional[Any] = None) -> Structure:
        """Build the structure of a SCOP-style domain

        Args:
            full: Full structure of the domain's PDB entry
            domain: Domain definition
            ligand_policy: Which ligands to merge back in
            descriptions: Optional source of superfamily descriptions

        Returns:
            Domain structure named after the domain
        """
        ranges = parse_multiple(domain.ranges)
        structure = get_sub_ranges(full, ranges)
        set_structure_name(structure, domain.domain_id, domain.domain_id)

        added = self.merge_ligands(full, structure, ranges, ligand_policy)
        self.logger.debug(f"Added {added} ligands to domain {domain.domain_id} ({ligand_policy.value} policy)")

        structure.header["description"] = self.describe(domain, descriptions)
        return structure

    def assemble_cath(self, full: Structure, domain: CathDomain,
                      chain_id: Optional[str] = None) -> Structure:
        """Build the structure of a CATH domain

        All ligands of the domain's chain are kept.
        """
        range_expression = domain.range_expression(chain_id)
        structure = get_sub_ranges(full, range_expression)
        self.merge_ligands(full, structure, parse_range_expression(range_expression), LigandPolicy.LOOSE)

        set_structure_name(structure, domain.domain_id, domain.pdb_id)
        structure.header["description"] = domain.domain_name
        return structure

    def merge_ligands(self, full: Structure, structure: Structure,
                      ranges: List[ResidueRange], ligand_policy: LigandPolicy) -> int:
        """Copy ligands of full into the chains already present in structure

        Args:
            full: Structure the ligands come from
            structure: Sub-structure receiving ligands, modified in place
            ranges: Ranges that defined the sub-structure
            ligand_policy: LOOSE keeps every ligand of a present chain,
                STRICT only those positioned inside one of the ranges

        Returns:
            Number of ligands added
        """
        position_map = ResiduePositionMap(full) if ligand_policy is LigandPolicy.STRICT else None
        sub_model = first_model(structure)
        added = 0

        for chain in first_model(full):
            if chain.id not in sub_model:
                continue
            new_chain = sub_model[chain.id]
            for ligand in filter_ligands(chain):
                if position_map is not None and not any(
                        position_map.contains(rr, chain.id, ligand) for rr in ranges):
                    continue
                if ligand.id in new_chain:
                    continue
                new_chain.add(ligand.copy())
                added += 1
        return added

    def describe(self, domain: DomainDefinition, descriptions: Optional[Any] = None) -> str:
        """Header description: classification id plus superfamily description if known"""
        header = domain.classification_id
        if descriptions is not None and domain.superfamily_id is not None:
            description = descriptions.get_description_by_sunid(domain.superfamily_id)
            if description:
                header += " | " + description
        return header
