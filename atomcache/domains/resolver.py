#!/usr/bin/env python3
"""
Domain resolver

Maps SCOP and CATH domain identifiers to domain definitions. SCOP lookups
are exact in strict mode; in lenient mode a miss falls back to a wildcard
match over all domains of the entry.
"""
import logging
from typing import Optional, Tuple

from atomcache.core.interfaces import ScopDatabase, CathDatabase
from atomcache.exceptions import ConfigurationError, DomainNotFoundError, MalformedRangeError
from atomcache.models.domain import DomainDefinition, CathDomain
from atomcache.naming.classifier import SCOP_ID_REGEX

CHAIN_WILDCARDS = ("_", ".")
DOMAIN_WILDCARD = "_"


def chain_tokens_match(requested: str, candidate: str) -> bool:
    return requested == candidate or requested in CHAIN_WILDCARDS or candidate in CHAIN_WILDCARDS


def domain_tokens_match(requested: str, candidate: str) -> bool:
    return requested == candidate or DOMAIN_WILDCARD in (requested, candidate)


class DomainResolver:
    """Resolves classification domain identifiers"""

    def __init__(self, scop_database: Optional[ScopDatabase] = None,
                 cath_database: Optional[CathDatabase] = None):
        self.scop_database = scop_database
        self.cath_database = cath_database
        self.logger = logging.getLogger("atomcache.domains.resolver")

    def _scop(self, override: Optional[ScopDatabase]) -> ScopDatabase:
        database = override or self.scop_database
        if database is None:
            raise ConfigurationError("No SCOP database configured")
        return database

    def resolve_scop(self, scop_id: str, strict: bool = True,
                     scop_database: Optional[ScopDatabase] = None) -> Optional[DomainDefinition]:
        """Find the domain definition of a SCOP identifier

        Args:
            scop_id: SCOP domain identifier, e.g. ``d2bq6a1``
            strict: Require an exact match
            scop_database: Database to use instead of the configured one

        Returns:
            Domain definition, or None when a lenient lookup finds nothing

        Raises:
            DomainNotFoundError: If strict and the identifier is unknown
        """
        database = self._scop(scop_database)
        domain = database.get_domain_by_scop_id(scop_id)
        if domain is not None:
            return domain

        if strict:
            raise DomainNotFoundError(f"Unable to resolve domain {scop_id}", {"scop_id": scop_id})

        return self.fuzzy_match(scop_id, database)

    def fuzzy_match(self, scop_id: str, database: ScopDatabase) -> Optional[DomainDefinition]:
        """First domain of the entry whose chain and domain tokens match with wildcards

        Chain tokens match when equal or when either is ``_`` or ``.``;
        domain tokens match when equal or when either is ``_``.
        """
        match = SCOP_ID_REGEX.fullmatch(scop_id)
        if match is None:
            self.logger.warning(f"Not a SCOP identifier: {scop_id}")
            return None
        pdb_id, chain, domain_token = match.groups()

        selected = None
        for candidate in database.get_domains_for_pdb(pdb_id):
            candidate_match = SCOP_ID_REGEX.fullmatch(candidate.domain_id)
            if candidate_match is None:
                continue
            _, candidate_chain, candidate_domain = candidate_match.groups()
            if not (chain_tokens_match(chain, candidate_chain)
                    and domain_tokens_match(domain_token, candidate_domain)):
                continue
            if selected is None:
                selected = candidate
            else:
                self.logger.info(f"{scop_id} also matches {candidate.domain_id}, using {selected.domain_id}")

        if selected is None:
            self.logger.info(f"No SCOP domain matches {scop_id}")
        else:
            self.logger.warning(f"Trying domain {selected.domain_id} for {scop_id}")
        return selected

    def resolve_cath(self, cath_id: str, chain_id: Optional[str] = None) -> Tuple[CathDomain, str]:
        """Find a CATH domain and build its range expression

        Args:
            cath_id: CATH domain identifier, e.g. ``1cukA01``
            chain_id: Chain used in the range expression (defaults to the domain's chain)

        Returns:
            Domain and range expression such as ``A_1-48,A_60-95``

        Raises:
            DomainNotFoundError: If the identifier is unknown
            MalformedRangeError: If the domain has no segments
        """
        if self.cath_database is None:
            raise ConfigurationError("No CATH database configured")

        domain = self.cath_database.get_domain_by_cath_id(cath_id)
        if domain is None:
            raise DomainNotFoundError(f"Unable to resolve domain {cath_id}", {"cath_id": cath_id})
        if not domain.segments:
            raise MalformedRangeError(f"CATH domain {cath_id} has no segments", {"cath_id": cath_id})
        return domain, domain.range_expression(chain_id)
