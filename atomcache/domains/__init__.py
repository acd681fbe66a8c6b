"""Classification databases and domain resolution"""
from atomcache.domains.resolver import DomainResolver
from atomcache.domains.scop import ScopInstallation
from atomcache.domains.sql import SqlScopDatabase
from atomcache.domains.cath import CathInstallation
from atomcache.domains.pdp import RemotePdpProvider

__all__ = [
    'DomainResolver',
    'ScopInstallation',
    'SqlScopDatabase',
    'CathInstallation',
    'RemotePdpProvider',
]
