#!/usr/bin/env python3
"""
Exception hierarchy for atomcache.
All custom exceptions should inherit from AtomCacheError.
"""
from typing import Dict, Any, Optional


class AtomCacheError(Exception):
    """Base exception for all atomcache errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize with error message and optional details

        Args:
            message: Error message
            details: Optional details dictionary with context
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def with_details(self, **extra: Any) -> 'AtomCacheError':
        """Copy of this error with extra details; this instance is left untouched"""
        return type(self)(self.message, {**self.details, **extra})


class ConfigurationError(AtomCacheError):
    """Error related to configuration issues"""
    pass


class TooShortError(AtomCacheError, ValueError):
    """Structure name is shorter than a PDB accession"""
    pass


class MalformedNameError(AtomCacheError, ValueError):
    """Structure name matched a naming rule but could not be decoded"""
    pass


class StructureError(AtomCacheError):
    """Base class for errors while building a structure"""
    pass


class StructureLoadError(StructureError):
    """The structure reader failed to produce a structure"""
    pass


class MalformedRangeError(StructureError):
    """A residue range expression could not be parsed or applied"""
    pass


class DomainNotFoundError(StructureError):
    """A domain identifier is not known to the classification database"""
    pass


class LoadTimeoutError(StructureError):
    """Waiting for another thread's load of the same accession timed out"""
    pass


class FetchError(AtomCacheError):
    """Network or filesystem failure while fetching remote data"""
    pass


class DatabaseError(AtomCacheError):
    """Base class for database-related errors"""
    pass


class ConnectionError(DatabaseError):
    """Error connecting to a database"""
    pass


class QueryError(DatabaseError):
    """Error executing a database query"""
    pass
