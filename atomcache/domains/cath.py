#!/usr/bin/env python3
"""
CATH installation

Reads the CATH release files::

    cath-domain-boundaries-<version>.txt (CathDomall format, author numbering)
        1cukA D02 F00  1  A    1 - A   48 -  2  A   60 - A   95 -  A  120 - A  130 -
    cath-domain-list-<version>.txt (optional, for CATH codes)
        1cukA01     1    10    8    10 ...

A boundaries line lists every domain of one chain: ``D<n>`` domains, each
a segment count followed by that many ``chain start ins chain end ins``
groups (``-`` for no insertion code), then ``F<n>`` unassigned fragments.
Domains are numbered 01, 02, ... in the order they appear.

Files are looked up in the cache directory and downloaded when missing.
"""
import os
import logging
import threading
from dataclasses import replace
from typing import Dict, List, Optional

import requests

from atomcache.core.interfaces import CathDatabase
from atomcache.exceptions import FetchError
from atomcache.models.domain import CathDomain, CathSegment
from atomcache.models.reference import normalize_pdb_id
from atomcache.utils.file_utils import atomic_write

BOUNDARIES_FILE = "cath-domain-boundaries-{version}.txt"
DOMAIN_LIST_FILE = "cath-domain-list-{version}.txt"

NO_INSERTION = "-"
SEGMENT_FIELDS = 6


def _residue(number: str, insertion: str) -> str:
    number = str(int(number))
    return number if insertion == NO_INSERTION else number + insertion


def parse_boundaries_line(line: str) -> List[CathDomain]:
    """Parse one CathDomall line into the chain's domains; comments and blank lines give none"""
    if not line.strip() or line.startswith("#"):
        return []
    fields = line.split()
    try:
        chain_name = fields[0]
        domain_count = int(fields[1].lstrip("Dd"))
        position = 3
        domains = []
        for number in range(1, domain_count + 1):
            segment_count = int(fields[position])
            position += 1
            segments = []
            for _ in range(segment_count):
                _, start, start_ins, _, stop, stop_ins = fields[position:position + SEGMENT_FIELDS]
                segments.append(CathSegment(_residue(start, start_ins), _residue(stop, stop_ins)))
                position += SEGMENT_FIELDS
            domain_id = f"{chain_name}{number:02d}"
            domains.append(CathDomain(
                domain_id=domain_id,
                pdb_id=normalize_pdb_id(chain_name[:4]),
                chain_id=chain_name[4],
                segments=tuple(segments),
                domain_name=domain_id,
            ))
    except (IndexError, ValueError) as e:
        raise ValueError(f"Malformed CATH boundaries line: {line!r}") from e
    return domains


def parse_domain_list_line(line: str) -> Optional[tuple]:
    """Parse one domain list line into ``(domain_id, "C.A.T.H")``"""
    if not line.strip() or line.startswith("#"):
        return None
    fields = line.split()
    if len(fields) < 5:
        raise ValueError(f"Malformed CATH domain list line: {line!r}")
    return fields[0], ".".join(fields[1:5])


class CathInstallation(CathDatabase):
    """CATH domain boundaries indexed in memory"""

    def __init__(self, cache_dir: str, version: str = "v4_3_0",
                 url: str = "http://download.cathdb.info/cath/releases/all-releases",
                 boundaries_file: Optional[str] = None, list_file: Optional[str] = None,
                 timeout: float = 30, session: Optional[requests.Session] = None):
        """Initialize installation

        Args:
            cache_dir: Directory holding (or receiving) the release files
            version: CATH release, used to build download URLs
            url: Base URL of the CATH release archive
            boundaries_file: Explicit path of the boundaries file
            list_file: Explicit path of the domain list file
            timeout: HTTP timeout in seconds
            session: Optional requests session
        """
        self.cache_dir = cache_dir
        self.version = version
        self.url = url.rstrip("/")
        self.boundaries_file = boundaries_file or os.path.join(cache_dir, BOUNDARIES_FILE.format(version=version))
        self.list_file = list_file or os.path.join(cache_dir, DOMAIN_LIST_FILE.format(version=version))
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger("atomcache.domains.cath")

        self._lock = threading.Lock()
        self._domains: Optional[Dict[str, CathDomain]] = None

    def download(self, name: str, path: str) -> None:
        url = f"{self.url}/{self.version}/cath-classification-data/{name}"
        self.logger.info(f"Downloading {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(f"Could not download {url}: {e}", {"url": url}) from e
        if response.status_code != 200:
            raise FetchError(f"Download of {url} failed with HTTP {response.status_code}",
                             {"url": url, "status": response.status_code})
        with atomic_write(path) as f:
            f.write(response.text)

    def _load(self) -> Dict[str, CathDomain]:
        with self._lock:
            if self._domains is not None:
                return self._domains

            if not os.path.exists(self.boundaries_file):
                self.download(BOUNDARIES_FILE.format(version=self.version), self.boundaries_file)

            domains: Dict[str, CathDomain] = {}
            with open(self.boundaries_file) as f:
                for line in f:
                    for domain in parse_boundaries_line(line):
                        domains[domain.domain_id] = domain

            codes = self._load_codes()
            if codes:
                domains = {domain_id: replace(domain, cath_code=codes.get(domain_id, ""))
                           for domain_id, domain in domains.items()}

            self.logger.debug(f"Indexed {len(domains)} CATH {self.version} domains")
            self._domains = domains
            return domains

    def _load_codes(self) -> Dict[str, str]:
        if not self.list_file or not os.path.exists(self.list_file):
            return {}
        codes = {}
        with open(self.list_file) as f:
            for line in f:
                parsed = parse_domain_list_line(line)
                if parsed:
                    codes[parsed[0]] = parsed[1]
        return codes

    def get_domain_by_cath_id(self, cath_id: str) -> Optional[CathDomain]:
        domains = self._load()
        # CATH ids are lower-case accession, case-sensitive chain
        return domains.get(cath_id) or domains.get(cath_id[:4].lower() + cath_id[4:])

    def flush_cache(self) -> None:
        """Drop the in-memory index"""
        with self._lock:
            self._domains = None
