#!/usr/bin/env python3
"""
SCOP(e) flat-file installation

Reads the parseable SCOPe release files::

    dir.cla.scope.<version>.txt   one domain per line
        d1ux8a_  1ux8  A:  a.1.1.1  113449  cl=46456,cf=46457,sf=46458,...
    dir.des.scope.<version>.txt   one classification node per line
        46458  sf  a.1.1  -  Globin-like

Files are downloaded on first use into the cache directory.
"""
import os
import logging
import threading
from collections import defaultdict
from typing import Dict, List, Optional

import requests

from atomcache.core.interfaces import ScopDatabase
from atomcache.exceptions import FetchError
from atomcache.models.domain import DomainDefinition
from atomcache.models.reference import normalize_pdb_id
from atomcache.utils.file_utils import atomic_write


def parse_cla_line(line: str) -> Optional[DomainDefinition]:
    """Parse one ``dir.cla`` line, None for comments and blank lines"""
    if not line.strip() or line.startswith("#"):
        return None
    fields = line.rstrip("\n").split("\t")
    if len(fields) < 6:
        raise ValueError(f"Malformed SCOP classification line: {line!r}")

    sid, pdb_id, ranges, sccs, sunid, hierarchy = fields[:6]
    nodes = dict(item.split("=", 1) for item in hierarchy.split(",") if "=" in item)
    superfamily = nodes.get("sf")
    return DomainDefinition(
        domain_id=sid,
        pdb_id=normalize_pdb_id(pdb_id),
        ranges=tuple(r for r in ranges.split(",") if r),
        classification_id=sccs,
        superfamily_id=int(superfamily) if superfamily else None,
        sunid=int(sunid),
    )


def parse_des_line(line: str) -> Optional[tuple]:
    """Parse one ``dir.des`` line into ``(sunid, description)``"""
    if not line.strip() or line.startswith("#"):
        return None
    fields = line.rstrip("\n").split("\t")
    if len(fields) < 5:
        raise ValueError(f"Malformed SCOP description line: {line!r}")
    return int(fields[0]), fields[4]


class ScopInstallation(ScopDatabase):
    """SCOP domains indexed in memory from the release flat files"""

    CLA_FILE = "dir.cla.scope.{version}.txt"
    DES_FILE = "dir.des.scope.{version}.txt"

    def __init__(self, cache_dir: str, version: str = "2.08-stable",
                 url: str = "https://scop.berkeley.edu/downloads/parse",
                 timeout: float = 30, session: Optional[requests.Session] = None):
        self.cache_dir = cache_dir
        self.version = version
        self.url = url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger("atomcache.domains.scop")

        self._lock = threading.Lock()
        self._domains: Optional[Dict[str, DomainDefinition]] = None
        self._by_pdb: Dict[str, List[DomainDefinition]] = {}
        self._descriptions: Optional[Dict[int, str]] = None

    def file_path(self, template: str) -> str:
        return os.path.join(self.cache_dir, template.format(version=self.version))

    def ensure_file(self, template: str) -> str:
        """Local path of a release file, downloading it if needed

        Raises:
            FetchError: If the file is missing and can't be downloaded
        """
        path = self.file_path(template)
        if os.path.exists(path):
            return path

        url = f"{self.url}/{os.path.basename(path)}"
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
        return path

    def _load_domains(self) -> Dict[str, DomainDefinition]:
        with self._lock:
            if self._domains is None:
                domains: Dict[str, DomainDefinition] = {}
                by_pdb: Dict[str, List[DomainDefinition]] = defaultdict(list)
                with open(self.ensure_file(self.CLA_FILE)) as f:
                    for line in f:
                        domain = parse_cla_line(line)
                        if domain is None:
                            continue
                        domains[domain.domain_id] = domain
                        by_pdb[domain.pdb_id].append(domain)
                self.logger.debug(f"Indexed {len(domains)} SCOP {self.version} domains")
                self._by_pdb = dict(by_pdb)
                self._domains = domains
            return self._domains

    def _load_descriptions(self) -> Dict[int, str]:
        with self._lock:
            if self._descriptions is None:
                descriptions = {}
                with open(self.ensure_file(self.DES_FILE)) as f:
                    for line in f:
                        parsed = parse_des_line(line)
                        if parsed:
                            descriptions[parsed[0]] = parsed[1]
                self._descriptions = descriptions
            return self._descriptions

    def get_domain_by_scop_id(self, scop_id: str) -> Optional[DomainDefinition]:
        return self._load_domains().get(scop_id)

    def get_domains_for_pdb(self, pdb_id: str) -> List[DomainDefinition]:
        self._load_domains()
        return list(self._by_pdb.get(normalize_pdb_id(pdb_id), []))

    def get_description_by_sunid(self, sunid: int) -> Optional[str]:
        return self._load_descriptions().get(sunid)

    def flush_cache(self) -> None:
        """Drop the in-memory indexes; they are rebuilt from disk on next use"""
        with self._lock:
            self._domains = None
            self._by_pdb = {}
            self._descriptions = None
