#!/usr/bin/env python3
"""
Configuration schema definition for validation
"""
from typing import Dict, Any, List


class ConfigSchema:
    """Configuration schema for validation"""

    SCHEMA = {
        'database': {
            'host': {'type': str, 'required': True},
            'port': {'type': int, 'required': True},
            'database': {'type': str, 'required': True},
            'user': {'type': str, 'required': True},
            'password': {'type': str, 'required': False},
        },
        'paths': {
            'pdb_dir': {'type': str, 'required': True},
            'cache_dir': {'type': str, 'required': False},
        },
        'fetch': {
            'auto_fetch': {'type': bool, 'required': False},
            'split': {'type': bool, 'required': False},
            'fetch_obsolete': {'type': bool, 'required': False},
            'fetch_current': {'type': bool, 'required': False},
            'file_format': {'type': str, 'required': False, 'choices': ('mmCif', 'pdb')},
            'download_url': {'type': str, 'required': False},
            'holdings_url': {'type': str, 'required': False},
            'timeout': {'type': (int, float), 'required': False},
        },
        'domains': {
            'strict_scop': {'type': bool, 'required': False},
            'strict_ligand_handling': {'type': bool, 'required': False},
            'scop_source': {'type': str, 'required': False, 'choices': ('file', 'database')},
            'scop_version': {'type': str, 'required': False},
            'scop_url': {'type': str, 'required': False},
            'cath_version': {'type': str, 'required': False},
            'cath_url': {'type': str, 'required': False},
            'cath_boundaries_file': {'type': str, 'required': False},
            'cath_list_file': {'type': str, 'required': False},
        },
        'pdp': {
            'server_url': {'type': str, 'required': False},
        },
        'loading': {
            'strategy': {'type': str, 'required': False, 'choices': ('future', 'poll')},
            'poll_interval': {'type': (int, float), 'required': False},
            'timeout': {'type': (int, float, type(None)), 'required': False},
        },
        'resolution': {
            'lenient_errors': {'type': bool, 'required': False},
        },
        'logging': {
            'level': {'type': str, 'required': False},
            'format': {'type': str, 'required': False},
            'log_dir': {'type': str, 'required': False},
        },
    }

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> List[str]:
        """Validate configuration against schema

        Optional sections (such as ``database``) are only checked when
        present in the configuration.

        Args:
            config: Configuration to validate

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        for section, fields in cls.SCHEMA.items():
            if section not in config:
                if section != 'database' and any(props.get('required', False) for props in fields.values()):
                    errors.append(f"Missing required configuration section: {section}")
                continue

            section_config = config[section]
            if not isinstance(section_config, dict):
                errors.append(f"Configuration section {section} must be a mapping")
                continue

            for field, props in fields.items():
                if props.get('required', False) and field not in section_config:
                    errors.append(f"Missing required configuration field: {section}.{field}")
                    continue
                if field not in section_config:
                    continue

                value = section_config[field]
                expected_type = props.get('type')
                # bool is an int subclass; keep numeric fields honest
                if expected_type is not None and (
                        not isinstance(value, expected_type)
                        or (isinstance(value, bool) and expected_type is not bool
                            and bool not in _as_tuple(expected_type))):
                    errors.append(
                        f"Invalid type for {section}.{field}: expected {_type_name(expected_type)}, "
                        f"got {type(value).__name__}"
                    )
                    continue

                choices = props.get('choices')
                if choices and value not in choices:
                    errors.append(
                        f"Invalid value for {section}.{field}: {value!r} (expected one of {', '.join(choices)})"
                    )

        return errors


def _as_tuple(expected_type) -> tuple:
    return expected_type if isinstance(expected_type, tuple) else (expected_type,)


def _type_name(expected_type) -> str:
    return " or ".join(t.__name__ for t in _as_tuple(expected_type))
