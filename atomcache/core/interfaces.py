#!/usr/bin/env python3
"""
Collaborator interfaces used by the structure cache.
"""
import abc
from typing import List, Optional

from Bio.PDB.Structure import Structure

from atomcache.models.domain import DomainDefinition, CathDomain


class Flushable(abc.ABC):
    """Collaborator that may hold state worth persisting or releasing on shutdown"""

    def flush_cache(self) -> None:
        """Persist or release cached state; the default does nothing"""
        pass


class StructureReader(Flushable):
    """Produces full structures from accessions, URLs and assembly requests"""

    @abc.abstractmethod
    def get_structure_by_id(self, pdb_id: str) -> Structure:
        """Full structure of a PDB accession

        Args:
            pdb_id: Lower-case PDB accession

        Returns:
            Parsed structure with all models
        """
        pass

    @abc.abstractmethod
    def get_structure_from_url(self, url: str) -> Structure:
        """Full structure read from a URL"""
        pass

    @abc.abstractmethod
    def get_biological_assembly(self, pdb_id: str, assembly_id: int = 1) -> Structure:
        """Biological assembly; assembly 0 is the asymmetric unit"""
        pass


class ScopDatabase(Flushable):
    """Source of SCOP-style domain definitions"""

    @abc.abstractmethod
    def get_domain_by_scop_id(self, scop_id: str) -> Optional[DomainDefinition]:
        """Exact lookup of a domain identifier

        Returns:
            Domain definition, or None if the identifier is unknown
        """
        pass

    @abc.abstractmethod
    def get_domains_for_pdb(self, pdb_id: str) -> List[DomainDefinition]:
        """All domains of an entry, in database order"""
        pass

    @abc.abstractmethod
    def get_description_by_sunid(self, sunid: int) -> Optional[str]:
        """Description of a classification node"""
        pass


class CathDatabase(Flushable):
    """Source of CATH domain boundaries"""

    @abc.abstractmethod
    def get_domain_by_cath_id(self, cath_id: str) -> Optional[CathDomain]:
        pass


class PdpProvider(Flushable):
    """Source of Protein Domain Parser domain assignments"""

    @abc.abstractmethod
    def get_domain(self, name: str, cache) -> Structure:
        """Structure of a PDP domain

        Args:
            name: PDP domain name (e.g. ``PDP:1A02Aa``)
            cache: AtomCache used to load the parent structure

        Returns:
            Domain structure
        """
        pass

    @abc.abstractmethod
    def get_domain_names(self, pdb_id: str) -> List[str]:
        """Names of all PDP domains of an entry"""
        pass
