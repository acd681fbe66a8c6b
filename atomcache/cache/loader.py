#!/usr/bin/env python3
"""
Accession loader

Wraps the structure reader so that concurrent requests for the same PDB
accession trigger at most one raw load at a time. The set of accessions
currently being loaded belongs to the loader instance.
"""
import time
import logging
import threading
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from enum import Enum
from typing import Dict, FrozenSet, Optional

from Bio.PDB.Structure import Structure

from atomcache.exceptions import AtomCacheError, StructureLoadError, LoadTimeoutError
from atomcache.models.reference import normalize_pdb_id


class LoadStrategy(Enum):
    """How a caller waits for a load of the same accession already in progress"""
    FUTURE = "future"  # wait for the running load and share its result
    POLL = "poll"      # sleep and recheck, then load again once the key is free


class AccessionLoader:
    """Deduplicating front end to a structure reader"""

    def __init__(self, reader, strategy: LoadStrategy = LoadStrategy.FUTURE,
                 poll_interval: float = 0.1, timeout: Optional[float] = None):
        """Initialize loader

        Args:
            reader: Object offering ``get_structure_by_id(pdb_id)``
            strategy: Waiting strategy for concurrent loads
            poll_interval: Seconds between rechecks in POLL mode
            timeout: Maximum seconds to wait for another caller's load,
                None to wait indefinitely
        """
        self.reader = reader
        self.strategy = LoadStrategy(strategy)
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.logger = logging.getLogger("atomcache.cache.loader")

        self._lock = threading.Lock()
        self._loading: Dict[str, Future] = {}

    def try_begin_load(self, key: str) -> bool:
        """Register key as in flight

        Returns:
            True if the caller now owns the load, False if it was already registered
        """
        key = normalize_pdb_id(key)
        with self._lock:
            if key in self._loading:
                return False
            self._loading[key] = Future()
            return True

    def end_load(self, key: str) -> None:
        """Remove key from the in-flight set"""
        with self._lock:
            self._loading.pop(normalize_pdb_id(key), None)

    def in_flight(self) -> FrozenSet[str]:
        """Snapshot of the accessions currently being loaded"""
        with self._lock:
            return frozenset(self._loading)

    def is_loading(self, key: str) -> bool:
        with self._lock:
            return normalize_pdb_id(key) in self._loading

    def load(self, pdb_id: str) -> Structure:
        """Load the full structure of an accession

        Args:
            pdb_id: PDB accession, any case

        Returns:
            Full structure as produced by the reader

        Raises:
            StructureLoadError: If the reader fails
            LoadTimeoutError: If waiting for a concurrent load exceeds the timeout
        """
        key = normalize_pdb_id(pdb_id)
        if self.strategy is LoadStrategy.POLL:
            return self._load_polling(key)
        return self._load_shared(key)

    def _load_shared(self, key: str) -> Structure:
        with self._lock:
            future = self._loading.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._loading[key] = future

        if not owner:
            self.logger.debug(f"Waiting for running load of {key}")
            try:
                return future.result(timeout=self.timeout)
            except FutureTimeoutError:
                raise LoadTimeoutError(f"Timed out after {self.timeout}s waiting for {key} to load",
                                       {"pdb_id": key, "timeout": self.timeout})
            except AtomCacheError as e:
                # the owner's instance is shared; each waiter raises its own copy
                raise e.with_details() from e

        try:
            structure = self._read(key)
        except Exception as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(structure)
            return structure
        finally:
            self.end_load(key)
            if not future.done():
                # interrupted owner; release waiters
                future.cancel()

    def _load_polling(self, key: str) -> Structure:
        started = time.monotonic()
        while not self.try_begin_load(key):
            if self.timeout is not None and time.monotonic() - started > self.timeout:
                raise LoadTimeoutError(f"Timed out after {self.timeout}s waiting for {key} to load",
                                       {"pdb_id": key, "timeout": self.timeout})
            self.logger.debug(f"{key} is being loaded by another caller, sleeping")
            time.sleep(self.poll_interval)

        try:
            return self._read(key)
        finally:
            self.end_load(key)

    def _read(self, key: str) -> Structure:
        self.logger.debug(f"Loading {key}")
        try:
            return self.reader.get_structure_by_id(key)
        except StructureLoadError:
            raise
        except Exception as e:
            raise StructureLoadError(f"{e} while parsing {key}", {"pdb_id": key}) from e
