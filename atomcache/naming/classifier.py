#!/usr/bin/env python3
"""
Structure name classification

Formal grammar of accepted names::

    name     := pdbID
              | pdbID '.' chainID
              | pdbID ':' chainIndex
              | pdbID '.' range
              | scopID | cathID
              | 'BIO:' pdbID (':' assemblyID)?
              | 'PDP:' pdpID
              | url
    range    := '('? part (',' part)* ')'?
    part     := chainID | chainID [_:] resNum '-' resNum
    pdbID    := [0-9][a-zA-Z0-9]{3}
    scopID   := 'd' pdbID [a-z_.] [0-9_]
    cathID   := pdbID [a-zA-Z0-9] [0-9]{2}
    resNum   := [-+]?[0-9]+[A-Za-z]?

Examples::

    1TIM            whole structure
    4HHB.C          single chain
    4GCR.A_1-83     one domain, by residue number
    3AA0.A_1-10,B   chain segment plus a whole chain
    d2bq6a1         SCOP domain
    1cukA01         CATH domain
    BIO:1fah:2      second biological assembly

Rules are evaluated in order and the first match wins. Classification never
touches the network or the filesystem.
"""
import re
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence
from urllib.parse import urlsplit, urlunsplit

from atomcache.exceptions import TooShortError, MalformedNameError
from atomcache.models.reference import (
    StructureReference, PlainAccession, AccessionChain, AccessionChainIndex,
    AccessionRange, ClassificationDomain, TopologyDomain, BiologicalAssembly,
    PdpDomain, StructureUrl, UnresolvedName,
)

logger = logging.getLogger("atomcache.naming.classifier")

BIOL_ASSEMBLY_IDENTIFIER = "BIO:"
PDP_DOMAIN_IDENTIFIER = "PDP:"
CHAIN_NR_SYMBOL = ":"
CHAIN_SPLIT_SYMBOL = "."
UNDERSCORE = "_"
URL_PREFIXES = ("file:/", "http:/", "https:/")

SCOP_ID_REGEX = re.compile(r"d(....)(.)(.)")
CATH_ID_REGEX = re.compile(r"([0-9][a-z0-9]{3})(\w)([0-9]{2})", re.IGNORECASE)


@dataclass(frozen=True)
class NameRule:
    """One grammar rule: a predicate and the reference it produces"""
    label: str
    matches: Callable[[str], bool]
    build: Callable[[str], StructureReference]


def is_url(name: str) -> bool:
    return name.startswith(URL_PREFIXES)


def _is_number(token: str) -> bool:
    # ASCII only: str.isdigit also accepts superscripts that int() rejects
    return token.isascii() and token.isdigit()


def _too_short(name: str) -> StructureReference:
    raise TooShortError(f"Can't interpret IDs that are shorter than 4 characters: '{name}'",
                        {"name": name})


def _chain_by_id(name: str) -> StructureReference:
    return AccessionChain(name=name, accession=name[:4], chain_id=name[5])


def _chain_by_index(name: str) -> StructureReference:
    index = name[5]
    if not _is_number(index):
        raise MalformedNameError(f"Chain index must be a non-negative integer in '{name}'",
                                 {"name": name})
    return AccessionChainIndex(name=name, accession=name[:4], chain_index=int(index))


def _scop_domain(name: str) -> StructureReference:
    match = SCOP_ID_REGEX.fullmatch(name)
    return ClassificationDomain(name=name, accession=match.group(1),
                                chain_token=match.group(2), domain_token=match.group(3))


def _cath_domain(name: str) -> StructureReference:
    match = CATH_ID_REGEX.fullmatch(name)
    return TopologyDomain(name=name, accession=match.group(1),
                          chain_id=match.group(2), domain_number=match.group(3))


def _url(name: str) -> StructureReference:
    try:
        parts = urlsplit(name)
    except ValueError as e:
        # Legacy leniency: a malformed URL resolves to nothing
        logger.warning(f"Could not parse URL {name}: {e}")
        return UnresolvedName(name=name, reason=f"malformed URL: {e}")

    chain_id = None
    url = name
    if parts.query.startswith("chainId="):
        chain_id = parts.query[len("chainId="):]
        if parts.scheme == "file":
            # the query is not part of a local path
            url = urlunsplit(parts._replace(query=""))
    return StructureUrl(name=name, url=url, chain_id=chain_id or None)


def _pdp_domain(name: str) -> StructureReference:
    return PdpDomain(name=name, accession=name[len(PDP_DOMAIN_IDENTIFIER):len(PDP_DOMAIN_IDENTIFIER) + 4])


def _bio_assembly(name: str) -> StructureReference:
    # BIO:1fah    first assembly
    # BIO:1fah:0  asymmetric unit
    # BIO:1fah:2  second assembly
    start = len(BIOL_ASSEMBLY_IDENTIFIER)
    pdb_id = name[start:start + 4]
    if len(pdb_id) != 4:
        raise MalformedNameError(f"Biological assembly name lacks a PDB ID: '{name}'", {"name": name})

    assembly_id = 1
    if len(name) > start + 4:
        token = name[start + 5:]
        if not _is_number(token):
            raise MalformedNameError(f"Biological assembly index must be a non-negative integer in '{name}'",
                                     {"name": name})
        assembly_id = int(token)
    return BiologicalAssembly(name=name, accession=pdb_id, assembly_id=assembly_id)


def _accession_range(name: str) -> StructureReference:
    return AccessionRange(name=name, accession=name[:4], range_expression=name[5:])


DEFAULT_RULES: Sequence[NameRule] = (
    NameRule("too_short", lambda n: len(n) < 4, _too_short),
    NameRule("pdb", lambda n: len(n) == 4, lambda n: PlainAccession(name=n, accession=n)),
    NameRule("cath", lambda n: CATH_ID_REGEX.fullmatch(n) is not None, _cath_domain),
    NameRule("scop", lambda n: SCOP_ID_REGEX.fullmatch(n) is not None, _scop_domain),
    NameRule("pdb_chain", lambda n: len(n) == 6 and n[4] == CHAIN_SPLIT_SYMBOL, _chain_by_id),
    NameRule("pdb_chain_index", lambda n: len(n) == 6 and n[4] == CHAIN_NR_SYMBOL, _chain_by_index),
    NameRule("url", is_url, _url),
    NameRule("pdp", lambda n: n.startswith(PDP_DOMAIN_IDENTIFIER), _pdp_domain),
    NameRule("bio_assembly", lambda n: n.startswith(BIOL_ASSEMBLY_IDENTIFIER), _bio_assembly),
    NameRule("pdb_range",
             lambda n: (len(n) > 6
                        and not n.startswith(PDP_DOMAIN_IDENTIFIER)
                        and (CHAIN_NR_SYMBOL in n or UNDERSCORE in n)
                        and not is_url(n)),
             _accession_range),
)


class NameClassifier:
    """Classifies structure names with an ordered rule table"""

    def __init__(self, rules: Optional[Sequence[NameRule]] = None):
        self.rules: List[NameRule] = list(rules if rules is not None else DEFAULT_RULES)

    def matching_rule(self, name: str) -> Optional[NameRule]:
        """Return the first rule whose predicate accepts name"""
        for rule in self.rules:
            if rule.matches(name):
                return rule
        return None

    def classify(self, name: str) -> StructureReference:
        """Classify a structure name

        Args:
            name: Structure name as given by the user

        Returns:
            The matching reference, or UnresolvedName when no rule matches

        Raises:
            TooShortError: If name is shorter than 4 characters
            MalformedNameError: If name matched a rule but its parts are invalid
        """
        rule = self.matching_rule(name)
        if rule is None:
            return UnresolvedName(name=name)
        return rule.build(name)


_default_classifier = NameClassifier()


def classify(name: str) -> StructureReference:
    """Classify name with the default rule table"""
    return _default_classifier.classify(name)
