"""
Command-line interface for atomcache.
"""
