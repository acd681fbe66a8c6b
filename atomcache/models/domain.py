#!/usr/bin/env python3
"""
Domain definition models

Domain definitions come from classification databases (SCOP, CATH) and are
never modified after creation.
"""
from dataclasses import dataclass
from typing import Optional, Tuple, Dict, Any


@dataclass(frozen=True)
class DomainDefinition:
    """A SCOP-style domain: accession plus ordered range expressions

    Ranges use the range grammar understood by
    :func:`atomcache.utils.range_utils.parse_range_expression`, one entry
    per contiguous segment (e.g. ``("A:1-100", "B:")``).
    """
    domain_id: str
    pdb_id: str
    ranges: Tuple[str, ...]
    classification_id: str = ""
    superfamily_id: Optional[int] = None
    sunid: Optional[int] = None

    @property
    def range_expression(self) -> str:
        """All segments joined into one comma-separated range expression"""
        return ",".join(self.ranges)

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'DomainDefinition':
        """Create instance from database row

        Args:
            row: Database row as dictionary

        Returns:
            DomainDefinition instance
        """
        ranges = row.get('ranges') or ''
        if isinstance(ranges, str):
            ranges = [r for r in ranges.split(',') if r]
        return cls(
            domain_id=row['domain_id'],
            pdb_id=row['pdb_id'],
            ranges=tuple(ranges),
            classification_id=row.get('classification_id') or '',
            superfamily_id=row.get('superfamily_id'),
            sunid=row.get('sunid'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'domain_id': self.domain_id,
            'pdb_id': self.pdb_id,
            'ranges': list(self.ranges),
            'classification_id': self.classification_id,
            'superfamily_id': self.superfamily_id,
            'sunid': self.sunid,
        }


@dataclass(frozen=True)
class CathSegment:
    """One contiguous segment of a CATH domain

    Bounds are author residue numbers from the CathDomall boundaries file,
    with the insertion code appended when there is one (``20A``).
    """
    start: str
    stop: str

    def __str__(self) -> str:
        return f"{self.start}-{self.stop}"


@dataclass(frozen=True)
class CathDomain:
    """A CATH domain: one chain of one entry, one or more segments"""
    domain_id: str
    pdb_id: str
    chain_id: str
    segments: Tuple[CathSegment, ...]
    cath_code: str = ""
    domain_name: str = ""

    def range_expression(self, chain_id: Optional[str] = None) -> str:
        """Build ``chain_start-stop`` clauses in segment order, comma-separated"""
        chain = chain_id if chain_id is not None else self.chain_id
        return ",".join(f"{chain}_{segment.start}-{segment.stop}" for segment in self.segments)
