"""test_filter.py - Unit tests for DebugFilter and RWLock."""

import threading

import pytest

from livelog.errors import CommandError
from livelog.filter import DebugFilter
from livelog.rwlock import RWLock


class TestDebugFilter:
    def setup_method(self):
        self.filter = DebugFilter(RWLock())

    def test_filter_disabled_by_default(self):
        """A new filter rejects every DEBUG message."""
        assert not self.filter.enabled
        assert not self.filter.allows("anything")

    def test_filter_enabled_without_pattern_allows_everything(self):
        """'debug on' with no pattern lets every message through."""
        self.filter.set_enabled(True)
        assert self.filter.allows("foobar")
        assert self.filter.allows("")

    def test_filter_pattern_uses_search_semantics(self):
        """The pattern may match anywhere unless anchored."""
        self.filter.set_enabled(True)
        self.filter.set_pattern("bar")
        assert self.filter.allows("foobar")
        self.filter.set_pattern("^foo")
        assert self.filter.allows("foobar")
        assert not self.filter.allows("barfoo")

    def test_filter_pattern_ignored_while_disabled(self):
        """A matching pattern does not enable DEBUG on its own."""
        self.filter.set_pattern("foo")
        assert not self.filter.allows("foo")

    def test_filter_invalid_pattern_keeps_previous_one(self):
        """A malformed pattern raises CommandError and leaves the old pattern."""
        self.filter.set_pattern("^foo")
        with pytest.raises(CommandError, match="invalid regex"):
            self.filter.set_pattern("(unclosed")
        assert self.filter.pattern == "^foo"

    def test_filter_empty_pattern_clears(self):
        """Setting None or '' removes the pattern."""
        self.filter.set_pattern("x")
        self.filter.set_pattern(None)
        assert self.filter.pattern is None

    def test_filter_on_then_off_restores_behaviour(self):
        """Toggling on and back off behaves exactly like never toggling."""
        self.filter.set_enabled(True)
        self.filter.set_enabled(False)
        assert not self.filter.allows("foobar")


class TestRWLock:
    def test_rwlock_readers_share(self):
        """Two readers can hold the lock at the same time."""
        lock = RWLock()
        inside = threading.Barrier(2, timeout=5)

        def reader():
            with lock.read():
                inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(5)
        assert not any(t.is_alive() for t in threads)

    def test_rwlock_writer_excludes_readers(self):
        """A reader waits while a writer holds the lock."""
        lock = RWLock()
        events = []
        lock.acquire_write()

        def reader():
            with lock.read():
                events.append("read")

        t = threading.Thread(target=reader)
        t.start()
        t.join(0.1)
        events.append("write-done")
        lock.release_write()
        t.join(5)
        assert events == ["write-done", "read"]
