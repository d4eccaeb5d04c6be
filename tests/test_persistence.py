"""Tests for the key-value stores, the snapshot gateway and the project index."""
from __future__ import annotations

import json
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from models import AUTO, ItemCollection, NoteBoard, ProjectSnapshot, StickyNote, TaskList
from canvas.viewport import Point, Viewport
from storage import (
    INDEX_KEY,
    JsonFileStore,
    MemoryStore,
    PersistenceError,
    PersistenceGateway,
    ProjectIndex,
)


def sample_snapshot() -> ProjectSnapshot:
    tl = TaskList.create("task-list-1", 10, 20)
    tl.tasks[0].text = "Write report"
    nb = NoteBoard.create("note-board-2", 400, 20)
    nb.rotation = 12.5
    sticky = StickyNote(id="sticky-note-3", x=-50, y=300, w=260, h=AUTO, text="hi", color="green", z=4)
    return ProjectSnapshot(
        items=ItemCollection([tl, nb, sticky]),
        viewport=Viewport(pan=Point(-120, 40), scale=0.8),
        next_id=4,
    )


class TestJsonFileStore:
    def test_missing_key_reads_none(self, tmp_path):
        assert JsonFileStore(tmp_path).get("slp_project_x") is None

    def test_set_get_remove(self, tmp_path):
        store = JsonFileStore(tmp_path / "data")
        store.set("slp_project_a", '{"a": 1}')
        assert (tmp_path / "data" / "slp_project_a.json").exists()
        assert store.get("slp_project_a") == '{"a": 1}'
        store.remove("slp_project_a")
        assert store.get("slp_project_a") is None
        store.remove("slp_project_a")

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.set("k", "one")
        store.set("k", "two")
        assert store.get("k") == "two"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["k.json"]

    def test_invalid_key_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            JsonFileStore(tmp_path).set("../escape", "x")

    def test_write_failure_raises_persistence_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(PersistenceError):
            JsonFileStore(blocker).set("k", "v")

    def test_non_utf8_file_raises_persistence_error(self, tmp_path):
        (tmp_path / "slp_project_p.json").write_bytes(b'{"items": [], "note": "\xff\xfe"}')
        with pytest.raises(PersistenceError):
            JsonFileStore(tmp_path).get("slp_project_p")
        with pytest.raises(PersistenceError):
            PersistenceGateway(JsonFileStore(tmp_path)).load("p")


class TestGateway:
    def test_round_trip_through_file_store(self, tmp_path):
        gateway = PersistenceGateway(JsonFileStore(tmp_path))
        snap = sample_snapshot()
        gateway.save("proj_1", snap)
        loaded = gateway.load("proj_1")
        assert loaded.to_dict() == snap.to_dict()
        assert loaded.items.get("sticky-note-3").h is AUTO
        assert loaded.scale == 0.8

    def test_saved_json_layout(self):
        store = MemoryStore()
        PersistenceGateway(store).save("proj_1", sample_snapshot())
        data = json.loads(store.get("slp_project_proj_1"))
        assert set(data) == {"items", "pan", "scale", "nextId"}
        assert data["pan"] == {"x": -120, "y": 40}
        assert data["nextId"] == 4
        assert [i["type"] for i in data["items"]] == ["task-list", "note-board", "sticky-note"]
        assert data["items"][2]["h"] == "auto"

    def test_missing_snapshot_loads_none(self):
        assert PersistenceGateway(MemoryStore()).load("proj_404") is None

    def test_malformed_json_raises(self):
        store = MemoryStore({"slp_project_bad": "{not json"})
        with pytest.raises(PersistenceError):
            PersistenceGateway(store).load("bad")

    def test_schema_violation_is_normalized(self):
        raw = {"items": [{"id": "arrow-2", "type": "arrow", "x": "oops"}], "scale": 99}
        store = MemoryStore({"slp_project_p": json.dumps(raw)})
        snap = PersistenceGateway(store).load("p")
        arrow = snap.items.get("arrow-2")
        assert arrow.x == 0
        assert (arrow.w, arrow.h) == (200, 60)
        assert snap.scale == 3.0
        assert snap.next_id == 3

    def test_non_finite_numbers_fall_back_to_defaults(self):
        raw = (
            '{"items": [{"id": "arrow-2", "type": "arrow", "x": NaN, "y": -Infinity,'
            ' "w": Infinity, "h": NaN, "rotation": NaN, "z": Infinity}],'
            ' "pan": {"x": Infinity, "y": NaN}, "scale": Infinity, "nextId": Infinity}'
        )
        snap = PersistenceGateway(MemoryStore({"slp_project_p": raw})).load("p")
        arrow = snap.items.get("arrow-2")
        assert (arrow.x, arrow.y, arrow.w, arrow.h, arrow.rotation, arrow.z) == (0, 0, 200, 60, 0, 0)
        assert snap.pan == Point(0, 0)
        assert snap.scale == 1.0
        assert snap.next_id == 3

    def test_item_schema_problems_are_logged(self, caplog):
        raw = {"items": [
            {"id": "arrow-1", "type": "arrow", "x": 0, "y": 0, "w": 100, "h": 40, "rotation": 0, "color": "blue"},
            {"id": "arrow-2", "type": "arrow", "x": "oops"},
        ], "pan": {"x": 0, "y": 0}, "scale": 1, "nextId": 3}
        store = MemoryStore({"slp_project_p": json.dumps(raw)})
        with caplog.at_level("WARNING", logger="storage.gateway"):
            PersistenceGateway(store).load("p")
        item_lines = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Snapshot p item")]
        assert len(item_lines) == 1
        assert "arrow-2" in item_lines[0]


class TestProjectIndex:
    def test_empty_store_has_no_projects(self):
        assert ProjectIndex(MemoryStore()).list() == []

    def test_create_writes_entry_and_empty_snapshot(self):
        store = MemoryStore()
        index = ProjectIndex(store)
        entry = index.create("  Work Plan  ")
        assert entry.name == "Work Plan"
        assert entry.id.startswith("proj_")
        saved = json.loads(store.get(INDEX_KEY))
        assert saved == [{"id": entry.id, "name": "Work Plan", "lastModified": entry.last_modified}]
        snap = PersistenceGateway(store).load(entry.id)
        assert snap.to_dict() == ProjectSnapshot().to_dict()

    def test_blank_name_creates_nothing(self):
        store = MemoryStore()
        index = ProjectIndex(store)
        assert index.create("   ") is None
        assert index.create("") is None
        assert store.data == {}

    def test_ids_unique_within_same_millisecond(self, monkeypatch):
        import storage.gateway as gateway_mod
        monkeypatch.setattr(gateway_mod, "now_millis", lambda: 1700000000000)
        index = ProjectIndex(MemoryStore())
        ids = {index.create(f"P{i}").id for i in range(3)}
        assert len(ids) == 3

    def test_list_sorted_by_last_modified_desc(self):
        entries = [
            {"id": "proj_1", "name": "Old", "lastModified": 100},
            {"id": "proj_2", "name": "New", "lastModified": 300},
            {"id": "proj_3", "name": "Mid", "lastModified": 200},
        ]
        index = ProjectIndex(MemoryStore({INDEX_KEY: json.dumps(entries)}))
        assert [e.name for e in index.list()] == ["New", "Mid", "Old"]

    def test_invalid_entries_are_skipped(self):
        entries = [{"id": "proj_1", "name": "Ok", "lastModified": 1}, {"name": "no id"}, "junk"]
        index = ProjectIndex(MemoryStore({INDEX_KEY: json.dumps(entries)}))
        assert [e.id for e in index.list()] == ["proj_1"]

    def test_rename(self):
        index = ProjectIndex(MemoryStore())
        entry = index.create("A")
        assert index.rename(entry.id, "B")
        assert index.get(entry.id).name == "B"
        assert index.rename(entry.id, " ") is False
        assert index.rename("proj_missing", "C") is False

    def test_delete_removes_snapshot(self):
        store = MemoryStore()
        index = ProjectIndex(store)
        entry = index.create("Doomed")
        assert index.delete(entry.id)
        assert index.get(entry.id) is None
        assert store.get("slp_project_" + entry.id) is None
        assert index.delete(entry.id) is False

    def test_touch_moves_project_to_front(self, monkeypatch):
        import storage.gateway as gateway_mod
        store = MemoryStore()
        index = ProjectIndex(store)
        monkeypatch.setattr(gateway_mod, "now_millis", lambda: 1000)
        a = index.create("A")
        monkeypatch.setattr(gateway_mod, "now_millis", lambda: 2000)
        index.create("B")
        monkeypatch.setattr(gateway_mod, "now_millis", lambda: 3000)
        index.touch(a.id)
        assert [e.name for e in index.list()] == ["A", "B"]
        # A fresh index reads the same order back.
        assert [e.name for e in ProjectIndex(store).list()] == ["A", "B"]

    def test_non_utf8_index_raises_persistence_error(self, tmp_path):
        (tmp_path / f"{INDEX_KEY}.json").write_bytes(b"[\xff]")
        with pytest.raises(PersistenceError):
            ProjectIndex(JsonFileStore(tmp_path))

    def test_non_finite_last_modified_is_skipped(self):
        raw = '[{"id": "proj_1", "name": "Ok", "lastModified": 5}, {"id": "proj_2", "name": "Bad", "lastModified": Infinity}]'
        index = ProjectIndex(MemoryStore({INDEX_KEY: raw}))
        assert [e.id for e in index.list()] == ["proj_1"]
