#!/usr/bin/env python3
"""
AtomCache: resolve structure names to Bio.PDB structures

Supported names (see :mod:`atomcache.naming.classifier` for the grammar)::

    1TIM                    whole structure, first model
    4HHB.C / 4HHB:0         chain by id / by position
    4GCR.A_1-83             residue ranges
    d2bq6a1                 SCOP domain
    1cukA01                 CATH domain
    BIO:1fah:2              biological assembly
    PDP:1A02Aa              PDP domain
    file:///data/x.cif      URL, optionally with ?chainId=A

Full structures are loaded once per accession at a time through an
AccessionLoader; every returned sub-structure is a fresh copy.
"""
import logging
import threading
from typing import Any, Dict, List, Optional, Union

from Bio.PDB.Atom import Atom
from Bio.PDB.Structure import Structure

from atomcache.config.defaults import DEFAULT_CONFIG
from atomcache.cache.loader import AccessionLoader, LoadStrategy
from atomcache.core.interfaces import StructureReader, ScopDatabase, CathDatabase, PdpProvider
from atomcache.db.manager import DBManager
from atomcache.domains.cath import CathInstallation
from atomcache.domains.pdp import RemotePdpProvider
from atomcache.domains.resolver import CHAIN_WILDCARDS, DomainResolver
from atomcache.domains.scop import ScopInstallation
from atomcache.domains.sql import SqlScopDatabase
from atomcache.error_handlers import lenient_call
from atomcache.exceptions import (
    AtomCacheError, ConfigurationError, StructureError, StructureLoadError, FetchError,
    DomainNotFoundError,
)
from atomcache.io.reader import PDBFileReader, FileParsingParameters
from atomcache.models.domain import DomainDefinition
from atomcache.models.reference import (
    StructureReference, PlainAccession, AccessionChain, AccessionChainIndex,
    AccessionRange, ClassificationDomain, TopologyDomain, BiologicalAssembly,
    PdpDomain, StructureUrl, UnresolvedName, normalize_pdb_id,
)
from atomcache.naming.classifier import NameClassifier
from atomcache.structure.assembler import (
    StructureAssembler, LigandPolicy, FirstModelTarget, ChainTarget,
    ChainIndexTarget, RangeTarget, DomainTarget, CathTarget,
)
from atomcache.structure.tools import (
    copy_structure, get_ca_atoms, reduce_to_chain, reduce_to_first_model, set_structure_name,
)


class AtomCache:
    """Resolves structure names, loading each accession at most once at a time"""

    def __init__(self, path: Optional[str] = None, split: bool = False,
                 reader: Optional[StructureReader] = None,
                 scop_database: Optional[ScopDatabase] = None,
                 cath_database: Optional[CathDatabase] = None,
                 pdp_provider: Optional[PdpProvider] = None,
                 auto_fetch: bool = True,
                 fetch_file_even_if_obsolete: bool = False,
                 fetch_current: bool = False,
                 strict_scop: bool = True,
                 strict_ligand_handling: bool = False,
                 cache_path: Optional[str] = None,
                 file_parsing_params: Optional[FileParsingParameters] = None,
                 loading_strategy: Union[LoadStrategy, str] = LoadStrategy.FUTURE,
                 poll_interval: float = 0.1,
                 load_timeout: Optional[float] = None,
                 lenient_errors: bool = False,
                 config: Optional[Dict[str, Any]] = None):
        """Initialize cache

        Args:
            path: Root of the local PDB mirror
            split: Use the split directory layout
            reader: Structure reader; a PDBFileReader on path is built if omitted
            scop_database: SCOP database; a ScopInstallation is built on first use if omitted
            cath_database: CATH database; a CathInstallation is built on first use if omitted
            pdp_provider: PDP provider; a RemotePdpProvider is built on first use if omitted
            auto_fetch: Download missing entries
            fetch_file_even_if_obsolete: Also download obsolete entries
            fetch_current: Replace obsolete entries by their successors
            strict_scop: Match SCOP identifiers exactly
            strict_ligand_handling: Keep only ligands inside domain ranges
            cache_path: Directory for classification files, defaults to path
            file_parsing_params: Parser options
            loading_strategy: How concurrent loads of one accession are coordinated
            poll_interval: Recheck interval of the poll strategy
            load_timeout: Maximum wait for another caller's load, None for no limit
            lenient_errors: Return None instead of raising in the URL, PDP and
                assembly branches
            config: Full configuration dictionary for the default collaborators
        """
        self.logger = logging.getLogger("atomcache.cache")
        self.config = config or DEFAULT_CONFIG

        self._path = path or self.config['paths']['pdb_dir']
        self._split = split
        self._auto_fetch = auto_fetch
        self._fetch_obsolete = fetch_file_even_if_obsolete
        self._fetch_current = fetch_current
        self._params = file_parsing_params or FileParsingParameters()
        self._cache_path = cache_path

        self.strict_scop = strict_scop
        self.strict_ligand_handling = strict_ligand_handling
        self.lenient_errors = lenient_errors

        self.reader = reader or self._build_reader()
        self._sync_reader()

        self.loader = AccessionLoader(self.reader, LoadStrategy(loading_strategy),
                                      poll_interval=poll_interval, timeout=load_timeout)
        self.classifier = NameClassifier()
        self.assembler = StructureAssembler()
        self.resolver = DomainResolver(scop_database, cath_database)
        self._pdp_provider = pdp_provider
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config_manager) -> 'AtomCache':
        """Build a cache from a ConfigManager

        A ``database`` section together with ``domains.scop_source: database``
        selects the SQL-backed SCOP database.
        """
        config = config_manager.config
        fetch = config_manager.get_section('fetch')
        domains = config_manager.get_section('domains')
        loading = config_manager.get_section('loading')

        scop_database = None
        if domains.get('scop_source') == 'database':
            db_config = config_manager.get_db_config()
            if db_config is None:
                raise ConfigurationError("domains.scop_source is 'database' but no database is configured")
            scop_database = SqlScopDatabase(DBManager(db_config))

        return cls(
            path=config_manager.get_path('pdb_dir'),
            split=fetch.get('split', False),
            scop_database=scop_database,
            auto_fetch=fetch.get('auto_fetch', True),
            fetch_file_even_if_obsolete=fetch.get('fetch_obsolete', False),
            fetch_current=fetch.get('fetch_current', False),
            strict_scop=domains.get('strict_scop', True),
            strict_ligand_handling=domains.get('strict_ligand_handling', False),
            cache_path=config_manager.get_path('cache_dir') or None,
            file_parsing_params=FileParsingParameters(file_format=fetch.get('file_format', 'mmCif')),
            loading_strategy=loading.get('strategy', 'future'),
            poll_interval=loading.get('poll_interval', 0.1),
            load_timeout=loading.get('timeout'),
            lenient_errors=config_manager.get('resolution.lenient_errors', False),
            config=config,
        )

    # Configuration

    def _build_reader(self) -> PDBFileReader:
        fetch = self.config.get('fetch', {})
        return PDBFileReader(
            self._path,
            download_url=fetch.get('download_url', DEFAULT_CONFIG['fetch']['download_url']),
            holdings_url=fetch.get('holdings_url', DEFAULT_CONFIG['fetch']['holdings_url']),
            timeout=fetch.get('timeout', DEFAULT_CONFIG['fetch']['timeout']),
        )

    def _sync_reader(self) -> None:
        """Push the file settings to the reader"""
        self.reader.path = self._path
        self.reader.split = self._split
        self.reader.auto_fetch = self._auto_fetch
        self.reader.fetch_obsolete = self._fetch_obsolete
        self.reader.fetch_current = self._fetch_current
        self.reader.params = self._params

    @property
    def path(self) -> str:
        return self._path

    @path.setter
    def path(self, value: str) -> None:
        self._path = value
        self._sync_reader()

    @property
    def split(self) -> bool:
        return self._split

    @split.setter
    def split(self, value: bool) -> None:
        self._split = value
        self._sync_reader()

    @property
    def auto_fetch(self) -> bool:
        return self._auto_fetch

    @auto_fetch.setter
    def auto_fetch(self, value: bool) -> None:
        self._auto_fetch = value
        self._sync_reader()

    @property
    def fetch_file_even_if_obsolete(self) -> bool:
        return self._fetch_obsolete

    @fetch_file_even_if_obsolete.setter
    def fetch_file_even_if_obsolete(self, value: bool) -> None:
        self._fetch_obsolete = value
        self._sync_reader()

    @property
    def fetch_current(self) -> bool:
        return self._fetch_current

    @fetch_current.setter
    def fetch_current(self, value: bool) -> None:
        self._fetch_current = value
        self._sync_reader()

    @property
    def file_parsing_params(self) -> FileParsingParameters:
        return self._params

    @file_parsing_params.setter
    def file_parsing_params(self, value: FileParsingParameters) -> None:
        self._params = value
        self._sync_reader()

    @property
    def cache_path(self) -> str:
        """Directory for classification files; falls back to the PDB path"""
        return self._cache_path or self._path

    @cache_path.setter
    def cache_path(self, value: Optional[str]) -> None:
        self._cache_path = value

    # Collaborators

    def get_scop_installation(self) -> ScopDatabase:
        """SCOP database in use, creating the flat-file installation on first use"""
        with self._lock:
            if self.resolver.scop_database is None:
                domains = self.config.get('domains', {})
                self.resolver.scop_database = ScopInstallation(
                    self.cache_path,
                    version=domains.get('scop_version', DEFAULT_CONFIG['domains']['scop_version']),
                    url=domains.get('scop_url', DEFAULT_CONFIG['domains']['scop_url']),
                )
            return self.resolver.scop_database

    def set_scop_installation(self, scop_database: ScopDatabase) -> None:
        self.resolver.scop_database = scop_database

    def get_cath_installation(self) -> CathDatabase:
        """CATH database in use, creating the flat-file installation on first use"""
        with self._lock:
            if self.resolver.cath_database is None:
                domains = self.config.get('domains', {})
                self.resolver.cath_database = CathInstallation(
                    self.cache_path,
                    version=domains.get('cath_version', DEFAULT_CONFIG['domains']['cath_version']),
                    url=domains.get('cath_url', DEFAULT_CONFIG['domains']['cath_url']),
                    boundaries_file=domains.get('cath_boundaries_file'),
                    list_file=domains.get('cath_list_file'),
                )
            return self.resolver.cath_database

    @property
    def pdp_provider(self) -> PdpProvider:
        """PDP provider in use, creating the remote provider on first use"""
        with self._lock:
            if self._pdp_provider is None:
                server_url = self.config.get('pdp', {}).get('server_url', DEFAULT_CONFIG['pdp']['server_url'])
                self._pdp_provider = RemotePdpProvider(server_url, cache_dir=self.cache_path)
            return self._pdp_provider

    @pdp_provider.setter
    def pdp_provider(self, provider: PdpProvider) -> None:
        self._pdp_provider = provider

    def notify_shutdown(self) -> None:
        """Flush every collaborator that has been created"""
        collaborators = (self.reader, self.resolver.scop_database,
                         self.resolver.cath_database, self._pdp_provider)
        for collaborator in collaborators:
            if collaborator is None:
                continue
            try:
                collaborator.flush_cache()
            except (AtomCacheError, OSError) as e:
                self.logger.error(f"Error flushing {type(collaborator).__name__}: {e}")

    # Resolution

    def get_structure(self, name: str) -> Optional[Structure]:
        """Resolve a structure name

        Args:
            name: Structure name, e.g. ``4hhb.A`` or ``d2bq6a1``

        Returns:
            The requested structure, or None if the name matches no naming rule

        Raises:
            TooShortError: If name is shorter than 4 characters
            MalformedNameError: If name matches a rule but can't be decoded
            StructureError: If the structure can't be built
            FetchError: If a remote resource can't be fetched
        """
        reference = self.classifier.classify(name)
        self.logger.debug(f"{name} classified as {reference.kind.value}")

        try:
            structure = self._dispatch(reference)
        except AtomCacheError as e:
            # loads are shared between callers; tag a copy with this request's name
            raise e.with_details(name=name) from e
        except (ValueError, KeyError, IndexError, OSError) as e:
            self.logger.error(f"Problem loading {name}: {e}")
            raise StructureError(f"{e} while parsing {name}", {"name": name}) from e

        if structure is not None and not isinstance(reference, (BiologicalAssembly, PdpDomain, StructureUrl)):
            set_structure_name(structure, name)
        return structure

    def _dispatch(self, reference: StructureReference) -> Optional[Structure]:
        if isinstance(reference, UnresolvedName):
            self.logger.info(f"No naming rule matches '{reference.name}' ({reference.reason})")
            return None

        if isinstance(reference, PlainAccession):
            return self._assemble(reference.pdb_id, FirstModelTarget())
        if isinstance(reference, AccessionChain):
            return self._assemble(reference.pdb_id, ChainTarget(reference.chain_id))
        if isinstance(reference, AccessionChainIndex):
            return self._assemble(reference.pdb_id, ChainIndexTarget(reference.chain_index))
        if isinstance(reference, AccessionRange):
            return self._assemble(reference.pdb_id, RangeTarget(reference.range_expression))
        if isinstance(reference, ClassificationDomain):
            return self._get_scop_structure(reference)
        if isinstance(reference, TopologyDomain):
            return self._get_cath_structure(reference)
        if isinstance(reference, BiologicalAssembly):
            return self._leniently(reference.name, self.get_biological_assembly,
                                   reference.pdb_id, reference.assembly_id)
        if isinstance(reference, PdpDomain):
            return self._leniently(reference.name, self.pdp_provider.get_domain, reference.name, self)
        if isinstance(reference, StructureUrl):
            return self._leniently(reference.name, self._get_structure_from_url, reference)

        raise StructureError(f"Unsupported structure reference: {reference!r}")

    def _leniently(self, name: str, func, *args) -> Optional[Structure]:
        if not self.lenient_errors:
            return func(*args)
        return lenient_call(self.logger, name, func, *args)

    def _assemble(self, pdb_id: str, target, ligand_policy: LigandPolicy = LigandPolicy.LOOSE) -> Structure:
        full = self.loader.load(pdb_id)
        return self.assembler.assemble(full, target, ligand_policy)

    def get_sub_ranges(self, pdb_id: str, range_expression: str) -> Structure:
        """Load an accession and cut out the given ranges"""
        return self._assemble(pdb_id, RangeTarget(range_expression))

    def _get_scop_structure(self, reference: ClassificationDomain) -> Optional[Structure]:
        database = self.get_scop_installation()
        domain = self.resolver.resolve_scop(reference.scop_id, self.strict_scop, database)
        if domain is not None:
            return self.get_structure_for_domain(domain, database)

        # no domain matched: '_' means the whole entry, anything else a chain
        fallback = reference.pdb_id
        if reference.chain_token not in CHAIN_WILDCARDS:
            fallback += "." + reference.chain_token.upper()
        self.logger.warning(f"Trying {fallback} for {reference.scop_id}")
        return self.get_structure(fallback)

    def _get_cath_structure(self, reference: TopologyDomain) -> Structure:
        self.get_cath_installation()
        domain, range_expression = self.resolver.resolve_cath(reference.cath_id, reference.chain_id)
        self.logger.debug(f"{reference.cath_id} covers {range_expression}")
        structure = self._assemble(reference.pdb_id, CathTarget(domain, reference.chain_id))
        set_structure_name(structure, reference.cath_id, reference.pdb_id)
        return structure

    def _get_structure_from_url(self, reference: StructureUrl) -> Structure:
        self.logger.info(f"Fetching structure from URL {reference.url}")
        full = self.reader.get_structure_from_url(reference.url)
        if reference.chain_id:
            return reduce_to_chain(full, reference.chain_id)
        return reduce_to_first_model(full)

    def get_structure_for_domain(self, domain_or_id: Union[DomainDefinition, str],
                                 scop_database: Optional[ScopDatabase] = None,
                                 strict_ligand_handling: Optional[bool] = None) -> Structure:
        """Structure of a SCOP domain, with ligands merged back in

        Args:
            domain_or_id: Domain definition or SCOP identifier
            scop_database: Database for identifier lookup and descriptions
            strict_ligand_handling: Override the cache's ligand policy

        Returns:
            Domain structure described by its classification

        Raises:
            DomainNotFoundError: If an identifier is unknown to the database
        """
        database = scop_database or self.get_scop_installation()
        if isinstance(domain_or_id, str):
            domain = database.get_domain_by_scop_id(domain_or_id)
            if domain is None:
                raise DomainNotFoundError(f"Unable to resolve domain {domain_or_id}", {"scop_id": domain_or_id})
        else:
            domain = domain_or_id

        if strict_ligand_handling is None:
            strict_ligand_handling = self.strict_ligand_handling
        return self._assemble(domain.pdb_id, DomainTarget(domain, database),
                              LigandPolicy.from_flag(strict_ligand_handling))

    def get_biological_assembly(self, pdb_id: str, assembly_id: int = 1,
                                fallback: bool = False) -> Structure:
        """Biological assembly of an entry

        Args:
            pdb_id: PDB accession
            assembly_id: Assembly number; 0 is the asymmetric unit
            fallback: Use the asymmetric unit when the assembly is unavailable

        Returns:
            Assembly structure

        Raises:
            StructureError: If assembly_id is negative
        """
        if assembly_id < 0:
            raise StructureError(f"Biological assembly id must not be negative: {pdb_id} {assembly_id}",
                                 {"pdb_id": pdb_id, "assembly_id": assembly_id})

        pdb_id = normalize_pdb_id(pdb_id)
        if assembly_id == 0:
            structure = copy_structure(self.loader.load(pdb_id))
        else:
            try:
                structure = self.reader.get_biological_assembly(pdb_id, assembly_id)
            except (StructureLoadError, FetchError) as e:
                if not fallback:
                    raise
                self.logger.warning(f"Assembly {assembly_id} of {pdb_id} unavailable ({e}), "
                                    f"using the asymmetric unit")
                structure = copy_structure(self.loader.load(pdb_id))

        return set_structure_name(structure, structure.id, pdb_id)

    def get_biological_unit(self, pdb_id: str) -> Structure:
        """First biological assembly, or the asymmetric unit when there is none"""
        return self.get_biological_assembly(pdb_id, 1, fallback=True)

    def get_atoms(self, name: str) -> List[Atom]:
        """C-alpha atoms of a structure name

        Raises:
            StructureError: If the name resolves to no structure
        """
        structure = self.get_structure(name)
        if structure is None:
            raise StructureError(f"No structure for {name}", {"name": name})
        return get_ca_atoms(structure)
