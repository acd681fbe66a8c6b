#!/usr/bin/env python3
"""
SCOP domains stored in PostgreSQL

Expected tables (in the configured schema)::

    scop_domain(sid text primary key, pdb_id text, ranges text,
                sccs text, sunid integer, sf_sunid integer)
    scop_description(sunid integer primary key, description text)

``ranges`` holds the comma-separated ranges of ``dir.cla``.
"""
import logging
from typing import List, Optional

from atomcache.core.interfaces import ScopDatabase
from atomcache.db.manager import DBManager
from atomcache.models.domain import DomainDefinition
from atomcache.models.reference import normalize_pdb_id


class SqlScopDatabase(ScopDatabase):
    """ScopDatabase backed by a PostgreSQL database"""

    DOMAIN_COLUMNS = ("sid AS domain_id, pdb_id, ranges, sccs AS classification_id, "
                      "sf_sunid AS superfamily_id, sunid")

    def __init__(self, db: DBManager, schema: Optional[str] = None):
        self.db = db
        self.schema = schema or db.schema
        self.logger = logging.getLogger("atomcache.domains.sql")

    def get_domain_by_scop_id(self, scop_id: str) -> Optional[DomainDefinition]:
        query = f"""
        SELECT {self.DOMAIN_COLUMNS}
        FROM {self.schema}.scop_domain
        WHERE sid = %s
        """
        rows = self.db.execute_dict_query(query, (scop_id,))
        return DomainDefinition.from_db_row(rows[0]) if rows else None

    def get_domains_for_pdb(self, pdb_id: str) -> List[DomainDefinition]:
        query = f"""
        SELECT {self.DOMAIN_COLUMNS}
        FROM {self.schema}.scop_domain
        WHERE pdb_id = %s
        ORDER BY sid
        """
        rows = self.db.execute_dict_query(query, (normalize_pdb_id(pdb_id),))
        self.logger.debug(f"Found {len(rows)} SCOP domains for {pdb_id}")
        return [DomainDefinition.from_db_row(row) for row in rows]

    def get_description_by_sunid(self, sunid: int) -> Optional[str]:
        query = f"SELECT description FROM {self.schema}.scop_description WHERE sunid = %s"
        rows = self.db.execute_query(query, (sunid,))
        return rows[0][0] if rows else None
