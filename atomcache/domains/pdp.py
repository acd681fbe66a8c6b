#!/usr/bin/env python3
"""
Remote Protein Domain Parser (PDP) provider

Domain assignments are fetched from a PDP server::

    GET <server>/getPDPDomain?pdpId=PDP:1A02Aa
        {"pdpId": "PDP:1A02Aa", "ranges": ["A_1-84", "A_213-240"]}
    GET <server>/getPDPDomainNamesForPDB?pdbId=1A02
        {"pdbId": "1A02", "domains": ["PDP:1A02Aa", "PDP:1A02Ab"]}

Ranges are kept in memory and written to a JSON file on flush, so later
sessions start warm.
"""
import os
import json
import logging
import threading
from typing import Dict, List, Optional

import requests
from Bio.PDB.Structure import Structure

from atomcache.core.interfaces import PdpProvider
from atomcache.exceptions import FetchError, MalformedNameError
from atomcache.naming.classifier import PDP_DOMAIN_IDENTIFIER
from atomcache.structure.tools import set_structure_name
from atomcache.utils.file_utils import atomic_write


class RemotePdpProvider(PdpProvider):
    """PDP provider backed by an HTTP service"""

    CACHE_FILE = "pdp_ranges.json"

    def __init__(self, server_url: str, cache_dir: Optional[str] = None,
                 timeout: float = 30, session: Optional[requests.Session] = None):
        """Initialize provider

        Args:
            server_url: Base URL of the PDP service
            cache_dir: Directory for the persisted range cache, None to keep it in memory only
            timeout: HTTP timeout in seconds
            session: Optional requests session
        """
        self.server_url = server_url.rstrip("/")
        self.cache_file = os.path.join(cache_dir, self.CACHE_FILE) if cache_dir else None
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger("atomcache.domains.pdp")

        self._lock = threading.Lock()
        self._ranges: Dict[str, List[str]] = self._read_cache_file()

    def _read_cache_file(self) -> Dict[str, List[str]]:
        if not self.cache_file or not os.path.exists(self.cache_file):
            return {}
        try:
            with open(self.cache_file) as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            self.logger.warning(f"Ignoring unreadable PDP cache {self.cache_file}: {e}")
            return {}

    def _get_json(self, endpoint: str, params: Dict[str, str]) -> dict:
        url = f"{self.server_url}/{endpoint}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(f"Could not reach PDP server: {e}", {"url": url, "params": params}) from e
        if response.status_code != 200:
            raise FetchError(f"PDP request failed with HTTP {response.status_code}",
                             {"url": url, "params": params, "status": response.status_code})
        return response.json()

    def get_ranges(self, name: str) -> List[str]:
        """Range expressions of a PDP domain, from the cache or the server"""
        with self._lock:
            cached = self._ranges.get(name)
        if cached is not None:
            return list(cached)

        ranges = self._get_json("getPDPDomain", {"pdpId": name}).get("ranges") or []
        if not ranges:
            raise FetchError(f"PDP server returned no ranges for {name}", {"name": name})
        with self._lock:
            self._ranges[name] = list(ranges)
        return list(ranges)

    def get_domain_names(self, pdb_id: str) -> List[str]:
        payload = self._get_json("getPDPDomainNamesForPDB", {"pdbId": pdb_id.upper()})
        return list(payload.get("domains") or [])

    def get_domain(self, name: str, cache) -> Structure:
        """Load a PDP domain through cache

        Raises:
            MalformedNameError: If name is not a PDP domain name
            FetchError: If the server can't provide the ranges
        """
        if not name.startswith(PDP_DOMAIN_IDENTIFIER) or len(name) < len(PDP_DOMAIN_IDENTIFIER) + 4:
            raise MalformedNameError(f"Not a PDP domain name: '{name}'", {"name": name})

        pdb_id = name[len(PDP_DOMAIN_IDENTIFIER):len(PDP_DOMAIN_IDENTIFIER) + 4]
        ranges = self.get_ranges(name)
        structure = cache.get_sub_ranges(pdb_id, ",".join(ranges))
        return set_structure_name(structure, name, pdb_id)

    def flush_cache(self) -> None:
        """Write the range cache to disk"""
        if not self.cache_file:
            return
        with self._lock:
            snapshot = dict(self._ranges)
        with atomic_write(self.cache_file) as f:
            json.dump(snapshot, f, indent=2)
        self.logger.debug(f"Saved {len(snapshot)} PDP domains to {self.cache_file}")
