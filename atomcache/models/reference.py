#!/usr/bin/env python3
"""
Structure reference models

A structure name such as ``4hhb.A`` or ``d2bq6a1`` is classified exactly
once into one of the immutable reference types below. Each reference keeps
the original request string in ``name``.
"""
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional


class ReferenceKind(Enum):
    """Kinds of structure references"""
    PLAIN_ACCESSION = "pdb"
    ACCESSION_CHAIN = "pdb_chain"
    ACCESSION_CHAIN_INDEX = "pdb_chain_index"
    ACCESSION_RANGE = "pdb_range"
    CLASSIFICATION_DOMAIN = "scop"
    TOPOLOGY_DOMAIN = "cath"
    BIOLOGICAL_ASSEMBLY = "bio_assembly"
    PDP_DOMAIN = "pdp"
    URL = "url"
    UNRESOLVED = "unresolved"


def normalize_pdb_id(pdb_id: str) -> str:
    """Return the load key for a PDB accession (accessions are case-insensitive)"""
    return pdb_id.lower()


@dataclass(frozen=True)
class StructureReference:
    """Base class of all classified structure names"""
    name: str

    kind: ClassVar[ReferenceKind]

    @property
    def pdb_id(self) -> Optional[str]:
        return None

    @property
    def load_key(self) -> Optional[str]:
        """Case-insensitive accession used for load coordination"""
        pdb_id = self.pdb_id
        return normalize_pdb_id(pdb_id) if pdb_id else None


@dataclass(frozen=True)
class _AccessionReference(StructureReference):
    accession: str

    @property
    def pdb_id(self) -> str:
        return self.accession


@dataclass(frozen=True)
class PlainAccession(_AccessionReference):
    """Whole structure, first model only (e.g. ``1TIM``)"""
    kind: ClassVar[ReferenceKind] = ReferenceKind.PLAIN_ACCESSION


@dataclass(frozen=True)
class AccessionChain(_AccessionReference):
    """A single chain by identifier (e.g. ``4HHB.C``)"""
    chain_id: str

    kind: ClassVar[ReferenceKind] = ReferenceKind.ACCESSION_CHAIN


@dataclass(frozen=True)
class AccessionChainIndex(_AccessionReference):
    """A single chain by position in the first model (e.g. ``4HHB:0``)"""
    chain_index: int

    kind: ClassVar[ReferenceKind] = ReferenceKind.ACCESSION_CHAIN_INDEX


@dataclass(frozen=True)
class AccessionRange(_AccessionReference):
    """One or more chains or residue ranges (e.g. ``4GCR.A_1-83``)"""
    range_expression: str

    kind: ClassVar[ReferenceKind] = ReferenceKind.ACCESSION_RANGE


@dataclass(frozen=True)
class ClassificationDomain(_AccessionReference):
    """SCOP domain identifier (e.g. ``d2bq6a1``)"""
    chain_token: str
    domain_token: str

    kind: ClassVar[ReferenceKind] = ReferenceKind.CLASSIFICATION_DOMAIN

    @property
    def scop_id(self) -> str:
        return self.name


@dataclass(frozen=True)
class TopologyDomain(_AccessionReference):
    """CATH domain identifier (e.g. ``1cukA01``)"""
    chain_id: str
    domain_number: str

    kind: ClassVar[ReferenceKind] = ReferenceKind.TOPOLOGY_DOMAIN

    @property
    def cath_id(self) -> str:
        return self.name


@dataclass(frozen=True)
class BiologicalAssembly(_AccessionReference):
    """Biological assembly (``BIO:1fah`` or ``BIO:1fah:2``); index 0 is the asymmetric unit"""
    assembly_id: int = 1

    kind: ClassVar[ReferenceKind] = ReferenceKind.BIOLOGICAL_ASSEMBLY


@dataclass(frozen=True)
class PdpDomain(_AccessionReference):
    """Protein Domain Parser domain (e.g. ``PDP:1A02Aa``)"""
    kind: ClassVar[ReferenceKind] = ReferenceKind.PDP_DOMAIN


@dataclass(frozen=True)
class StructureUrl(StructureReference):
    """Local file or remote URL, optionally carrying ``?chainId=X``"""
    url: str
    chain_id: Optional[str] = None

    kind: ClassVar[ReferenceKind] = ReferenceKind.URL


@dataclass(frozen=True)
class UnresolvedName(StructureReference):
    """No naming rule matched; resolution yields no structure"""
    reason: str = "no naming rule matched"

    kind: ClassVar[ReferenceKind] = ReferenceKind.UNRESOLVED
