"""Tests for observability / traces."""

import os
import tempfile

import pytest

from intime import Keeper
from intime.models import Trace


@pytest.fixture
def keeper():
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    k = Keeper(path, enable_traces=True)
    yield k
    k.close()
    os.unlink(path)


@pytest.fixture
def keeper_no_traces():
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    k = Keeper(path, enable_traces=False)
    yield k
    k.close()
    os.unlink(path)


class TestTraces:
    def test_add_friend_creates_trace(self, keeper):
        keeper.add_friend("Ana")
        traces = keeper.traces(operation="add_friend")
        assert len(traces) == 1
        assert isinstance(traces[0], Trace)
        assert traces[0].input_text == "Ana"
        assert traces[0].duration_ms is not None

    def test_log_meeting_creates_trace(self, keeper):
        f = keeper.add_friend("Ana")
        keeper.log_meeting(f.id, note="coffee")
        traces = keeper.traces(operation="log_meeting")
        assert len(traces) == 1
        assert traces[0].output_text == "streak=1"

    def test_delete_and_undo_create_traces(self, keeper):
        f = keeper.add_friend("Ana")
        keeper.delete_friend(f.id)
        keeper.undo_delete()
        assert len(keeper.traces(operation="delete_friend")) == 1
        assert len(keeper.traces(operation="undo_delete")) == 1

    def test_import_export_create_traces(self, keeper):
        keeper.add_friend("Ana")
        keeper.import_backup(keeper.export())
        assert len(keeper.traces(operation="export")) == 1
        assert len(keeper.traces(operation="import")) == 1

    def test_no_traces_when_disabled(self, keeper_no_traces):
        f = keeper_no_traces.add_friend("Ana")
        keeper_no_traces.log_meeting(f.id)
        assert keeper_no_traces.traces() == []

    def test_trace_filter_by_source(self, keeper):
        ana = keeper.add_friend("Ana")
        bob = keeper.add_friend("Bob")
        keeper.log_meeting(ana.id)
        keeper.log_meeting(bob.id)
        traces = keeper.traces(source=ana.id)
        assert len(traces) == 2
        assert all(t.source == ana.id for t in traces)

    def test_trace_limit(self, keeper):
        f = keeper.add_friend("Ana")
        for _ in range(10):
            keeper.log_meeting(f.id)
        assert len(keeper.traces(limit=5)) == 5

    def test_traces_survive_import(self, keeper):
        keeper.add_friend("Ana")
        keeper.import_backup({"friends": [], "meetings": [], "settings": {}})
        assert len(keeper.traces(operation="add_friend")) == 1

    def test_zero_overhead_by_default(self):
        fd, path = tempfile.mkstemp(suffix=".db")
        os.close(fd)
        k = Keeper(path)
        assert k._enable_traces is False
        k.close()
        os.unlink(path)
