#!/usr/bin/env python3
"""
Tests for atomic cache file writes
"""
import os
from unittest.mock import patch

import pytest

from atomcache.utils.file_utils import atomic_write


def leftovers(directory):
    return [name for name in os.listdir(directory) if name.endswith(".tmp")]


class TestAtomicWrite:

    def test_writes_text(self, tmp_path):
        path = str(tmp_path / "sub" / "dir.cla.txt")
        with atomic_write(path) as f:
            f.write("d1abca1\t1abc\n")
        with open(path) as f:
            assert f.read() == "d1abca1\t1abc\n"
        assert leftovers(tmp_path / "sub") == []

    def test_writes_bytes(self, tmp_path):
        path = str(tmp_path / "1abc-assembly1.cif.gz")
        with atomic_write(path, "wb") as f:
            f.write(b"\x1f\x8b")
        with open(path, "rb") as f:
            assert f.read() == b"\x1f\x8b"

    def test_failure_leaves_no_file(self, tmp_path):
        path = str(tmp_path / "pdp_ranges.json")
        with pytest.raises(RuntimeError):
            with atomic_write(path) as f:
                f.write("{\"partial\":")
                raise RuntimeError("interrupted")
        assert not os.path.exists(path)
        assert leftovers(tmp_path) == []

    def test_failure_keeps_previous_content(self, tmp_path):
        path = tmp_path / "boundaries.txt"
        path.write_text("complete\n")
        with pytest.raises(OSError):
            with atomic_write(str(path)) as f:
                f.write("trunc")
                raise OSError("disk full")
        assert path.read_text() == "complete\n"
        assert leftovers(tmp_path) == []

    def test_failed_replace_removes_temporary(self, tmp_path):
        path = str(tmp_path / "boundaries.txt")
        with patch("atomcache.utils.file_utils.os.replace", side_effect=PermissionError("denied")):
            with pytest.raises(PermissionError):
                with atomic_write(path) as f:
                    f.write("data")
        assert os.listdir(tmp_path) == []

    def test_rejects_other_modes(self, tmp_path):
        with pytest.raises(ValueError):
            with atomic_write(str(tmp_path / "x.txt"), "a"):
                pass
