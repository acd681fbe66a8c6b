"""
context.py -- Provide application context for atomcache
"""
import logging
from typing import Any, Optional

from atomcache.cache.atom_cache import AtomCache
from atomcache.config import ConfigManager
from atomcache.db.manager import DBManager


class ApplicationContext:
    """Owns the configuration and the services built from it

    Each context is independent, so tests and embedding applications can
    hold several caches with different settings side by side.
    """

    def __init__(self, config_path: Optional[str] = None,
                 config_manager: Optional[ConfigManager] = None):
        """Initialize application context

        Args:
            config_path: Path to configuration file
            config_manager: Already loaded configuration (takes precedence)
        """
        self.logger = logging.getLogger("atomcache.context")
        self.config_manager = config_manager or ConfigManager(config_path)
        self.logger.debug("Configuration initialized")

        self._cache: Optional[AtomCache] = None
        self._db: Optional[DBManager] = None

    @property
    def config(self):
        return self.config_manager.config

    @property
    def cache(self) -> AtomCache:
        """Structure cache, built from the configuration on first access"""
        if self._cache is None:
            self._cache = AtomCache.from_config(self.config_manager)
            self.logger.debug(f"Structure cache initialized at {self._cache.path}")
        return self._cache

    @property
    def db(self) -> Optional[DBManager]:
        """Database manager, or None when no database is configured"""
        if self._db is None:
            db_config = self.config_manager.get_db_config()
            if db_config is not None:
                self._db = DBManager(db_config)
        return self._db

    def update_config(self, section: str, key: str, value: Any) -> None:
        """Update a configuration value; the cache is rebuilt on next access

        Args:
            section: Configuration section
            key: Configuration key
            value: New value
        """
        self.config_manager.set(f"{section}.{key}", value)
        self.logger.debug(f"Updated config {section}.{key} = {value}")
        if self._cache is not None:
            self._cache.notify_shutdown()
            self._cache = None

    def close(self) -> None:
        """Flush the cache's collaborators"""
        if self._cache is not None:
            self._cache.notify_shutdown()

    def __enter__(self) -> 'ApplicationContext':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
