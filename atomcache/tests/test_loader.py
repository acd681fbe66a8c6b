#!/usr/bin/env python3
"""
Tests for load coordination of concurrent accession requests
"""
import time
import threading

import pytest

from atomcache.cache.loader import AccessionLoader, LoadStrategy
from atomcache.exceptions import StructureLoadError, LoadTimeoutError
from atomcache.tests.conftest import FakeReader, build_structure


class SlowReader(FakeReader):
    """Reader that records how many loads overlap"""

    def __init__(self, delay=0.05):
        super().__init__()
        self.delay = delay
        self.active = 0
        self.max_active = 0

    def get_structure_by_id(self, pdb_id):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delay)
            return super().get_structure_by_id(pdb_id)
        finally:
            with self._lock:
                self.active -= 1


def run_threads(target, count):
    results, errors = [], []

    def worker():
        try:
            results.append(target())
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for thread in threads:
        thread.start()
    return threads, results, errors


class TestAccessionLoader:

    def test_keys_are_lower_case(self, reader):
        loader = AccessionLoader(reader)
        loader.load("1ABC")
        assert reader.calls == ["1abc"]

    def test_reader_errors_are_wrapped(self, reader):
        loader = AccessionLoader(reader)
        with pytest.raises(StructureLoadError) as exc_info:
            loader.load("9zzz")
        assert "while parsing 9zzz" in str(exc_info.value)
        assert exc_info.value.details["pdb_id"] == "9zzz"
        assert loader.in_flight() == frozenset()

    def test_load_errors_pass_through(self):
        class FailingReader(FakeReader):
            def get_structure_by_id(self, pdb_id):
                raise StructureLoadError("corrupt file", {"pdb_id": pdb_id})

        with pytest.raises(StructureLoadError, match="corrupt file"):
            AccessionLoader(FailingReader()).load("1abc")

    def test_key_released_after_success(self, reader):
        loader = AccessionLoader(reader)
        loader.load("1abc")
        assert not loader.is_loading("1abc")

    def test_try_begin_and_end_load(self, reader):
        loader = AccessionLoader(reader)
        assert loader.try_begin_load("1ABC")
        assert not loader.try_begin_load("1abc")
        assert loader.is_loading("1abc")
        assert loader.in_flight() == frozenset({"1abc"})
        loader.end_load("1Abc")
        assert loader.in_flight() == frozenset()

    def test_strategy_from_string(self, reader):
        assert AccessionLoader(reader, "poll").strategy is LoadStrategy.POLL


class TestFutureStrategy:

    def test_concurrent_requests_share_one_load(self):
        gate = threading.Event()
        reader = FakeReader(gate=gate)
        loader = AccessionLoader(reader, LoadStrategy.FUTURE, timeout=5)

        threads, results, errors = run_threads(lambda: loader.load("1abc"), 4)
        assert reader.started.wait(5)
        time.sleep(0.2)
        gate.set()
        for thread in threads:
            thread.join(5)

        assert errors == []
        assert reader.calls == ["1abc"]
        assert len(results) == 4
        assert all(result is results[0] for result in results)
        assert loader.in_flight() == frozenset()

    def test_waiters_receive_the_failure(self):
        gate = threading.Event()
        reader = FakeReader(structures={}, gate=gate)
        loader = AccessionLoader(reader, LoadStrategy.FUTURE, timeout=5)

        threads, results, errors = run_threads(lambda: loader.load("1abc"), 3)
        assert reader.started.wait(5)
        time.sleep(0.2)
        gate.set()
        for thread in threads:
            thread.join(5)

        assert results == []
        assert len(errors) == 3
        assert all(isinstance(e, StructureLoadError) for e in errors)
        assert reader.calls == ["1abc"]
        # every caller gets its own instance, so tagging one can't leak into another
        assert len({id(e) for e in errors}) == 3
        assert all(e.details == {"pdb_id": "1abc"} for e in errors)

    def test_waiting_times_out(self, reader):
        loader = AccessionLoader(reader, LoadStrategy.FUTURE, timeout=0.05)
        loader.try_begin_load("1abc")
        with pytest.raises(LoadTimeoutError):
            loader.load("1abc")
        assert reader.calls == []

    def test_different_keys_load_in_parallel(self):
        reader = SlowReader(delay=0.2)
        reader.structures["2xyz"] = build_structure("2xyz")
        loader = AccessionLoader(reader, LoadStrategy.FUTURE)

        first = threading.Thread(target=loader.load, args=("1abc",))
        second = threading.Thread(target=loader.load, args=("2xyz",))
        first.start()
        second.start()
        first.join(5)
        second.join(5)

        assert sorted(reader.calls) == ["1abc", "2xyz"]
        assert reader.max_active == 2


class TestPollStrategy:

    def test_loads_of_one_key_never_overlap(self):
        reader = SlowReader()
        loader = AccessionLoader(reader, LoadStrategy.POLL, poll_interval=0.01)

        threads, results, errors = run_threads(lambda: loader.load("1abc"), 2)
        for thread in threads:
            thread.join(5)

        assert errors == []
        assert len(results) == 2
        assert reader.calls == ["1abc", "1abc"]
        assert reader.max_active == 1

    def test_polling_times_out(self, reader):
        loader = AccessionLoader(reader, LoadStrategy.POLL, poll_interval=0.01, timeout=0.05)
        loader.try_begin_load("1abc")
        with pytest.raises(LoadTimeoutError):
            loader.load("1abc")
        loader.end_load("1abc")
        assert loader.load("1abc") is not None
