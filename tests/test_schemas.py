"""Tests for JSON schema validation of snapshots, items and the project index."""
from __future__ import annotations

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from canvas.engine import CanvasEngine
from models import ITEM_TYPES, NoteBoard, ProjectSnapshot
from schemas import get_item_defaults, validate_index, validate_item, validate_snapshot


def populated_snapshot() -> ProjectSnapshot:
    engine = CanvasEngine(ProjectSnapshot())
    for type_tag in ITEM_TYPES:
        engine.create_item(type_tag, 400, 300)
    return engine.snapshot


class TestSnapshotValidation:
    def test_empty_snapshot_is_valid(self):
        ok, errors = validate_snapshot(ProjectSnapshot().to_dict())
        assert ok, errors

    def test_snapshot_with_every_item_type_is_valid(self):
        ok, errors = validate_snapshot(populated_snapshot().to_dict())
        assert ok, errors

    def test_missing_top_level_field(self):
        data = ProjectSnapshot().to_dict()
        del data["nextId"]
        ok, errors = validate_snapshot(data)
        assert not ok
        assert any("nextId" in e for e in errors)

    def test_non_positive_scale(self):
        data = ProjectSnapshot().to_dict()
        data["scale"] = 0
        ok, _ = validate_snapshot(data)
        assert not ok


class TestItemValidation:
    def test_bad_height_string(self):
        item = populated_snapshot().to_dict()["items"][0]
        item["h"] = "tall"
        ok, errors = validate_item(item)
        assert not ok
        assert any(e.startswith("h:") for e in errors)

    def test_note_board_height_must_be_numeric(self):
        item = NoteBoard.create("note-board-1", 0, 0).to_dict()
        item["h"] = "auto"
        ok, _ = validate_item(item)
        assert not ok

    def test_unknown_sticky_color(self):
        item = populated_snapshot().to_dict()["items"][2]
        item["color"] = "purple"
        ok, _ = validate_item(item)
        assert not ok

    def test_id_pattern(self):
        item = populated_snapshot().to_dict()["items"][3]
        item["id"] = "arrow_one"
        ok, _ = validate_item(item)
        assert not ok


class TestIndexValidation:
    def test_valid_index(self):
        ok, errors = validate_index([{"id": "proj_1", "name": "A", "lastModified": 1700000000000}])
        assert ok, errors

    def test_entry_without_id(self):
        ok, errors = validate_index([{"name": "A", "lastModified": 1}])
        assert not ok
        assert errors[0].startswith("0:")


@pytest.mark.parametrize("type_tag", list(ITEM_TYPES))
def test_schema_defaults_match_model_defaults(type_tag):
    created = ITEM_TYPES[type_tag].create(f"{type_tag}-1", 0, 0).to_dict()
    for name, default in get_item_defaults(type_tag).items():
        assert created[name] == default, name
