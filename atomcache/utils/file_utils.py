#!/usr/bin/env python3
"""
File helpers for the on-disk caches
"""
import os
import logging
import tempfile
from contextlib import contextmanager
from typing import Any, Generator

logger = logging.getLogger("atomcache.utils.file_utils")


@contextmanager
def atomic_write(file_path: str, mode: str = 'w') -> Generator[Any, None, None]:
    """Write a file through a temporary sibling that replaces the target on success

    Readers never see a partially written file, and concurrent writers of
    the same path leave one complete copy behind.

    Args:
        file_path: Final path
        mode: ``'w'`` or ``'wb'``

    Yields:
        Open temporary file object
    """
    if mode not in ('w', 'wb'):
        raise ValueError(f"Invalid mode for atomic_write: {mode}")

    directory = os.path.dirname(file_path) or '.'
    os.makedirs(directory, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(mode=mode, dir=directory, delete=False,
                                         prefix=f".{os.path.basename(file_path)}.", suffix=".tmp")
    try:
        with handle:
            yield handle
        os.replace(handle.name, file_path)
    except BaseException:
        if os.path.exists(handle.name):
            os.unlink(handle.name)
        raise
    logger.debug(f"Wrote {file_path}")
