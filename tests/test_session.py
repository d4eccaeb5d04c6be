"""Tests for opening, switching and closing projects."""
from __future__ import annotations

import json
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from canvas.engine import Presentation
from models import ItemType
from session import ProjectSession
from storage import MemoryStore, PersistenceError, PersistenceGateway, ProjectIndex


class EventLog(Presentation):
    def __init__(self, log):
        self.log = log

    def on_engine_attached(self, engine):
        self.log.append("attach")

    def on_engine_detached(self):
        self.log.append("detach")

    def on_item_created(self, item):
        self.log.append(("created", item.id))

    def on_item_removed(self, item_id):
        self.log.append(("removed", item_id))

    def on_viewport_changed(self, pan, scale):
        self.log.append(("viewport", scale))


class LoggingStore(MemoryStore):
    """Memory store that records writes and can be told to fail them."""

    def __init__(self, log):
        super().__init__()
        self.log = log
        self.fail = False

    def set(self, key, value):
        if self.fail:
            raise PersistenceError("disk full")
        self.log.append(("set", key))
        super().set(key, value)


@pytest.fixture()
def env():
    log = []
    store = LoggingStore(log)
    gateway = PersistenceGateway(store)
    index = ProjectIndex(store, gateway)
    failures = []
    session = ProjectSession(gateway, index, presentation=EventLog(log), on_save_failed=failures.append)
    return session, index, store, log, failures


def test_open_empty_project(env):
    session, index, _, log, _ = env
    entry = index.create("Empty")
    log.clear()
    engine = session.open(entry.id)
    assert session.is_open
    assert len(engine.items) == 0
    assert log == ["attach", ("viewport", 1.0)]


def test_open_unknown_project_starts_empty(env):
    session, _, _, _, _ = env
    engine = session.open("proj_never_saved")
    assert len(engine.items) == 0


def test_open_renders_stored_items(env):
    session, index, _, log, _ = env
    entry = index.create("Plan")
    engine = session.open(entry.id)
    engine.create_item(ItemType.STICKY_NOTE, 0, 0)
    engine.create_item(ItemType.ARROW, 0, 0)
    session.close()
    log.clear()
    session.open(entry.id)
    assert log[:3] == ["attach", ("created", "sticky-note-1"), ("created", "arrow-2")]


def test_switch_saves_then_tears_down_before_loading(env):
    session, index, store, log, _ = env
    a = index.create("A")
    b = index.create("B")
    engine = session.open(a.id)
    engine.create_item(ItemType.TASK_LIST, 0, 0)
    log.clear()

    session.open(b.id)

    first_save = log.index(("set", "slp_project_" + a.id))
    removed = log.index(("removed", "task-list-1"))
    detached = log.index("detach")
    attached = log.index("attach")
    assert first_save < removed < detached < attached
    assert session.project_id == b.id
    saved = json.loads(store.get("slp_project_" + a.id))
    assert [i["id"] for i in saved["items"]] == ["task-list-1"]


def test_save_touches_index(env, monkeypatch):
    import storage.gateway as gateway_mod
    session, index, _, _, _ = env
    monkeypatch.setattr(gateway_mod, "now_millis", lambda: 1000)
    a = index.create("A")
    monkeypatch.setattr(gateway_mod, "now_millis", lambda: 2000)
    index.create("B")
    engine = session.open(a.id)
    monkeypatch.setattr(gateway_mod, "now_millis", lambda: 3000)
    engine.create_item(ItemType.ARROW, 0, 0)
    assert index.get(a.id).last_modified == 3000
    assert index.list()[0].id == a.id


def test_save_failure_returns_false_and_reports(env):
    session, index, store, _, failures = env
    entry = index.create("Fragile")
    engine = session.open(entry.id)
    store.fail = True
    assert engine.save() is False
    assert session.last_error == "disk full"
    assert failures == ["disk full"]
    # The gesture still completes; the model keeps its state.
    engine.create_item(ItemType.STICKY_NOTE, 0, 0)
    assert len(engine.items) == 1


def test_close_when_nothing_open(env):
    session, _, _, _, _ = env
    assert session.close() is True


def test_close_returns_save_result(env):
    session, index, store, log, _ = env
    entry = index.create("X")
    session.open(entry.id)
    log.clear()
    assert session.close() is True
    assert log[0] == ("set", "slp_project_" + entry.id)
    assert log[-1] == "detach"
    assert not session.is_open


def test_open_malformed_snapshot_raises(env):
    session, index, store, _, _ = env
    entry = index.create("Broken")
    store.data["slp_project_" + entry.id] = "{oops"
    with pytest.raises(PersistenceError):
        session.open(entry.id)
    assert not session.is_open
