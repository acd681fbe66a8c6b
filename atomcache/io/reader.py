#!/usr/bin/env python3
"""
Structure file reader

Locates PDB entries in a local mirror (split or flat layout, optionally
gzipped), downloads missing ones and parses them with Bio.PDB.

Local layout::

    <path>/1abc.cif            flat (split=False)
    <path>/ab/1abc.cif         split by the middle two characters
    <path>/assemblies/...      biological assemblies, same layout
"""
import os
import io
import gzip
import logging
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlsplit, unquote

import requests
from Bio.PDB import MMCIFParser, PDBParser, PDBList
from Bio.PDB.Structure import Structure

from atomcache.core.interfaces import StructureReader
from atomcache.exceptions import FetchError, StructureLoadError
from atomcache.models.reference import normalize_pdb_id
from atomcache.utils.file_utils import atomic_write

MMCIF_FORMAT = "mmCif"
PDB_FORMAT = "pdb"
FILE_FORMATS = (MMCIF_FORMAT, PDB_FORMAT)

ASSEMBLY_DIR = "assemblies"
OBSOLETE_DIR = "obsolete"


@dataclass
class FileParsingParameters:
    """Options passed to the Bio.PDB parsers"""
    quiet: bool = True
    file_format: str = MMCIF_FORMAT

    def __post_init__(self):
        if self.file_format not in FILE_FORMATS:
            raise ValueError(f"Unsupported file format: {self.file_format}")


def file_names(pdb_id: str, file_format: str) -> Tuple[str, ...]:
    """Candidate file names of an entry, plain before gzipped"""
    if file_format == PDB_FORMAT:
        base = (f"pdb{pdb_id}.ent", f"{pdb_id}.pdb")
    else:
        base = (f"{pdb_id}.cif",)
    return base + tuple(name + ".gz" for name in base)


def guess_format(name: str) -> str:
    """File format from a file name or URL, mmCIF unless it looks like PDB"""
    lowered = name.lower()
    if lowered.endswith(".gz"):
        lowered = lowered[:-3]
    if lowered.endswith((".pdb", ".ent")):
        return PDB_FORMAT
    return MMCIF_FORMAT


def open_text(path: str):
    """Open a structure file for reading, transparently un-gzipping"""
    if path.endswith(".gz"):
        return gzip.open(path, "rt")
    return open(path, "r")


class PDBFileReader(StructureReader):
    """Reads structures from a local PDB mirror, fetching when allowed"""

    def __init__(self, path: str, split: bool = False, auto_fetch: bool = True,
                 fetch_obsolete: bool = False, fetch_current: bool = False,
                 params: Optional[FileParsingParameters] = None,
                 download_url: str = "https://files.rcsb.org/download",
                 holdings_url: str = "https://data.rcsb.org/rest/v1/holdings/removed",
                 timeout: float = 30,
                 session: Optional[requests.Session] = None):
        """Initialize reader

        Args:
            path: Root of the local PDB mirror
            split: Use the split (middle-two-characters) directory layout
            auto_fetch: Download entries missing from the mirror
            fetch_obsolete: Also look for obsolete entries when downloading
            fetch_current: When downloading a missing entry, take its current successor instead
            params: Parser options
            download_url: Base URL for assembly and URL downloads
            holdings_url: RCSB holdings endpoint listing removed entries
            timeout: HTTP timeout in seconds
            session: Optional requests session (shared connection pool)
        """
        self.path = path
        self.split = split
        self.auto_fetch = auto_fetch
        self.fetch_obsolete = fetch_obsolete
        self.fetch_current = fetch_current
        self.params = params or FileParsingParameters()
        self.download_url = download_url.rstrip("/")
        self.holdings_url = holdings_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger("atomcache.io.reader")

    # Layout

    def entry_dir(self, pdb_id: str, *subdirs: str) -> str:
        """Directory holding an entry's files under the configured layout"""
        directory = os.path.join(self.path, *subdirs)
        if self.split:
            directory = os.path.join(directory, pdb_id[1:3])
        return directory

    def find_local_file(self, pdb_id: str) -> Optional[str]:
        """Path of an entry already present in the mirror, or None"""
        for subdirs in ((), (OBSOLETE_DIR,)):
            directory = self.entry_dir(pdb_id, *subdirs)
            for name in file_names(pdb_id, self.params.file_format):
                candidate = os.path.join(directory, name)
                if os.path.exists(candidate):
                    return candidate
        return None

    # Parsing

    def _parser(self, file_format: str):
        if file_format == PDB_FORMAT:
            return PDBParser(QUIET=self.params.quiet)
        return MMCIFParser(QUIET=self.params.quiet)

    def parse_file(self, path: str, structure_id: str, file_format: Optional[str] = None) -> Structure:
        """Parse a local structure file

        Raises:
            StructureLoadError: If the file can't be read or parsed
        """
        file_format = file_format or guess_format(path)
        self.logger.debug(f"Parsing {path} as {file_format}")
        try:
            with open_text(path) as handle:
                return self._parser(file_format).get_structure(structure_id, handle)
        except (OSError, ValueError, KeyError, IndexError) as e:
            raise StructureLoadError(f"Could not parse {path}: {e}",
                                     {"path": path, "structure_id": structure_id}) from e

    def parse_text(self, text: str, structure_id: str, file_format: str) -> Structure:
        try:
            return self._parser(file_format).get_structure(structure_id, io.StringIO(text))
        except (ValueError, KeyError, IndexError) as e:
            raise StructureLoadError(f"Could not parse {structure_id}: {e}",
                                     {"structure_id": structure_id}) from e

    # Fetching

    def get_replacement(self, pdb_id: str) -> Optional[str]:
        """Current successor of an obsolete entry, None if the entry is current

        Raises:
            FetchError: If the holdings service can't be reached
        """
        url = f"{self.holdings_url}/{pdb_id.upper()}"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(f"Could not query holdings for {pdb_id}: {e}", {"url": url}) from e

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise FetchError(f"Holdings lookup for {pdb_id} failed with HTTP {response.status_code}",
                             {"url": url, "status": response.status_code})

        holdings = response.json().get("rcsb_repository_holdings_removed", {})
        replaced_by = holdings.get("id_codes_replaced_by") or []
        return normalize_pdb_id(replaced_by[0]) if replaced_by else None

    def fetch(self, pdb_id: str) -> str:
        """Download an entry into the mirror

        Returns:
            Path of the downloaded file

        Raises:
            FetchError: If the entry could not be downloaded
        """
        pdb_list = PDBList(pdb=self.path, verbose=not self.params.quiet)
        attempts = [(False, self.entry_dir(pdb_id))]
        if self.fetch_obsolete:
            attempts.append((True, self.entry_dir(pdb_id, OBSOLETE_DIR)))

        for obsolete, directory in attempts:
            os.makedirs(directory, exist_ok=True)
            self.logger.info(f"Fetching {pdb_id}{' (obsolete)' if obsolete else ''} into {directory}")
            try:
                path = pdb_list.retrieve_pdb_file(pdb_id, obsolete=obsolete, pdir=directory,
                                                  file_format=self.params.file_format)
            except OSError as e:
                raise FetchError(f"Download of {pdb_id} failed: {e}", {"pdb_id": pdb_id}) from e
            if path and os.path.exists(path):
                return path

        raise FetchError(f"Could not download {pdb_id}", {"pdb_id": pdb_id})

    def download(self, url: str) -> bytes:
        """Fetch raw bytes over HTTP

        Raises:
            FetchError: On connection failure or non-200 status
        """
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(f"Could not download {url}: {e}", {"url": url}) from e
        if response.status_code != 200:
            raise FetchError(f"Download of {url} failed with HTTP {response.status_code}",
                             {"url": url, "status": response.status_code})
        return response.content

    # Reader interface

    def get_structure_by_id(self, pdb_id: str) -> Structure:
        """Full structure of an accession

        Raises:
            StructureLoadError: If the entry is missing locally and can't be fetched
            FetchError: If downloading fails
        """
        pdb_id = normalize_pdb_id(pdb_id)
        path = self.find_local_file(pdb_id)
        if path is None:
            if not self.auto_fetch:
                raise StructureLoadError(f"No local file for {pdb_id} in {self.path} and fetching is disabled",
                                         {"pdb_id": pdb_id, "path": self.path})
            # fetch_obsolete takes precedence: the obsolete file itself is wanted
            if self.fetch_current and not self.fetch_obsolete:
                replacement = self.get_replacement(pdb_id)
                if replacement and replacement != pdb_id:
                    self.logger.info(f"{pdb_id} is obsolete, using current entry {replacement}")
                    pdb_id = replacement
                    path = self.find_local_file(pdb_id)
            path = path or self.fetch(pdb_id)
        return self.parse_file(path, pdb_id, self.params.file_format)

    def get_structure_from_url(self, url: str) -> Structure:
        """Structure from a ``file:``, ``http:`` or ``https:`` URL

        Raises:
            StructureLoadError: If the content can't be parsed
            FetchError: If the URL can't be read
        """
        parts = urlsplit(url)
        file_name = os.path.basename(parts.path)
        structure_id = file_name.split(".")[0] or url
        file_format = guess_format(file_name)

        if parts.scheme == "file":
            path = unquote(parts.path)
            if not os.path.exists(path):
                raise FetchError(f"File not found: {path}", {"url": url})
            return self.parse_file(path, structure_id, file_format)

        content = self.download(url)
        if file_name.endswith(".gz"):
            content = gzip.decompress(content)
        return self.parse_text(content.decode("utf-8", errors="replace"), structure_id, file_format)

    def get_biological_assembly(self, pdb_id: str, assembly_id: int = 1) -> Structure:
        """Biological assembly of an entry; assembly 0 is the asymmetric unit

        Raises:
            StructureLoadError: If the assembly is missing and can't be fetched
            FetchError: If downloading fails
        """
        pdb_id = normalize_pdb_id(pdb_id)
        if assembly_id == 0:
            return self.get_structure_by_id(pdb_id)

        directory = self.entry_dir(pdb_id, ASSEMBLY_DIR)
        file_name = f"{pdb_id}-assembly{assembly_id}.cif.gz"
        path = os.path.join(directory, file_name)

        if not os.path.exists(path):
            if not self.auto_fetch:
                raise StructureLoadError(f"No local assembly {assembly_id} for {pdb_id} and fetching is disabled",
                                         {"pdb_id": pdb_id, "assembly_id": assembly_id})
            content = self.download(f"{self.download_url}/{file_name}")
            with atomic_write(path, "wb") as f:
                f.write(content)
            self.logger.info(f"Saved assembly {assembly_id} of {pdb_id} to {path}")

        return self.parse_file(path, pdb_id, MMCIF_FORMAT)

    def flush_cache(self) -> None:
        """Release pooled HTTP connections; downloaded files stay in the mirror"""
        self.session.close()
