#!/usr/bin/env python3
"""
Default configuration values for atomcache
"""
import os
import tempfile

_DEFAULT_PDB_DIR = os.environ.get('PDB_DIR') or os.path.join(tempfile.gettempdir(), 'atomcache')

DEFAULT_CONFIG = {
    'paths': {
        'pdb_dir': _DEFAULT_PDB_DIR,
        'cache_dir': os.environ.get('PDB_CACHE_DIR') or _DEFAULT_PDB_DIR,
    },
    'fetch': {
        'auto_fetch': True,
        'split': False,
        'fetch_obsolete': False,
        'fetch_current': False,
        'file_format': 'mmCif',
        'download_url': 'https://files.rcsb.org/download',
        'holdings_url': 'https://data.rcsb.org/rest/v1/holdings/removed',
        'timeout': 30,
    },
    'domains': {
        'strict_scop': True,
        'strict_ligand_handling': False,
        'scop_source': 'file',
        'scop_version': '2.08-stable',
        'scop_url': 'https://scop.berkeley.edu/downloads/parse',
        'cath_version': 'v4_3_0',
        'cath_url': 'http://download.cathdb.info/cath/releases/all-releases',
    },
    'pdp': {
        'server_url': 'https://source.rcsb.org/jfatcatserver/domains',
    },
    'loading': {
        'strategy': 'future',
        'poll_interval': 0.1,
        'timeout': None,
    },
    'resolution': {
        'lenient_errors': False,
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    },
}
