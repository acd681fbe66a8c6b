#!/usr/bin/env python3
"""
Configuration manager for atomcache

Layers, later ones winning:

1. ``DEFAULT_CONFIG``
2. the YAML or JSON file passed in
3. ``<name>.local.<ext>`` next to that file, if present
4. ``ATOMCACHE_SECTION__KEY`` environment variables
"""
import os
import copy
import yaml
import json
import logging
from typing import Dict, Any, Optional, List

from atomcache.exceptions import ConfigurationError
from .schema import ConfigSchema
from .defaults import DEFAULT_CONFIG

ENV_PREFIX = "ATOMCACHE_"
ENV_NESTING = "__"

_TRUE_WORDS = ('true', 'yes', 'on')
_FALSE_WORDS = ('false', 'no', 'off')
_NULL_WORDS = ('none', 'null')


def local_config_path(config_path: str) -> str:
    """``settings.yml`` -> ``settings.local.yml``"""
    name, ext = os.path.splitext(config_path)
    return f"{name}.local{ext}"


def merge_into(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """Merge source into target in place; nested sections merge key by key"""
    for key, value in source.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merge_into(current, value)
        else:
            target[key] = value
    return target


def parse_env_value(value: str) -> Any:
    """Interpret an environment string as bool, None, int or float where it reads as one"""
    word = value.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    if word in _NULL_WORDS:
        return None
    for convert in (int, float):
        try:
            return convert(word)
        except ValueError:
            continue
    return value


def read_config_file(config_path: str) -> Dict[str, Any]:
    """Parse a YAML or JSON configuration file into a mapping

    Raises:
        ConfigurationError: If the file is missing, unparsable or not a mapping
    """
    if not os.path.exists(config_path):
        raise ConfigurationError(f"Configuration file not found: {config_path}",
                                 {"config_path": config_path})
    try:
        with open(config_path, 'r') as f:
            if config_path.endswith('.json'):
                data = json.load(f)
            else:
                data = yaml.safe_load(f) or {}
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Error loading config file {config_path}: {e}",
                                 {"config_path": config_path}) from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {config_path} must contain a mapping",
                                 {"config_path": config_path})
    return data


class ConfigManager:
    """Layered configuration with dotted-key access

    Attributes:
        config: Merged configuration
        sources: Files merged into ``config``, in order
        errors: Schema validation messages; empty when the configuration is valid
    """

    def __init__(self, config_path: Optional[str] = None):
        self.logger = logging.getLogger("atomcache.config")
        self.config_path = config_path
        self.config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
        self.sources: List[str] = []

        if config_path:
            self._merge_file(config_path)
            local_path = local_config_path(config_path)
            if os.path.exists(local_path):
                self._merge_file(local_path)

        self._merge_env(os.environ)

        self.errors = ConfigSchema.validate(self.config)
        for error in self.errors:
            self.logger.error(f"Configuration error: {error}")
        if self.errors:
            self.logger.warning("Using configuration with validation errors")

    def _merge_file(self, path: str) -> None:
        try:
            merge_into(self.config, read_config_file(path))
        except ConfigurationError as e:
            self.logger.error(e.message)
            raise
        self.sources.append(path)
        self.logger.info(f"Loaded configuration from {path}")

    def _merge_env(self, environ) -> None:
        for name, value in environ.items():
            if not name.startswith(ENV_PREFIX):
                continue
            key = name[len(ENV_PREFIX):].lower().replace(ENV_NESTING, '.')
            self.set(key, parse_env_value(value))
            self.logger.debug(f"Environment override {name} -> {key}")

    def set(self, key: str, value: Any) -> None:
        """Set a value by dotted key, creating sections as needed"""
        *sections, leaf = key.split('.')
        current = self.config
        for section in sections:
            if not isinstance(current.get(section), dict):
                current[section] = {}
            current = current[section]
        current[leaf] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value using dot notation

        Args:
            key: Configuration key, e.g. ``fetch.auto_fetch``
            default: Returned when any part of the key is missing

        Returns:
            Configuration value or default
        """
        current: Any = self.config
        for part in key.split('.'):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get a whole configuration section (empty dict if missing)"""
        return self.config.get(section) or {}

    def get_db_config(self) -> Optional[Dict[str, Any]]:
        """Database connection settings, or None if no database is configured"""
        return self.config.get('database') or None

    def get_path(self, path_name: str, default: str = "") -> str:
        """Entry of the ``paths`` section with ``~`` expanded"""
        value = self.get_section('paths').get(path_name) or default
        return os.path.expanduser(value) if value else value
