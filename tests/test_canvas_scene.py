"""Tests for the Qt scene and view driving the canvas engine.

Runs headless on the offscreen Qt platform.
"""
from __future__ import annotations

import os
import sys

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PyQt6.QtWidgets")

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from canvas.engine import HitTarget, PointerEvent
from canvas.scene import BoardScene
from canvas.view import BoardView
from models import InteractionMode, ItemType, NoteBoard, Part
from session import ProjectSession
from storage import MemoryStore, PersistenceGateway, ProjectIndex


@pytest.fixture(scope="session")
def qapp():
    """Provide a single QApplication for the entire test session."""
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication(sys.argv)
    yield app


@pytest.fixture()
def board(qapp):
    """A shown view over a freshly opened empty project."""
    store = MemoryStore()
    gateway = PersistenceGateway(store)
    index = ProjectIndex(store, gateway)
    scene = BoardScene()
    view = BoardView(scene)
    view.resize(1000, 800)
    view.show()
    qapp.processEvents()
    session = ProjectSession(gateway, index, presentation=scene)
    entry = index.create("Scene test")
    engine = session.open(entry.id)
    yield session, engine, scene, view, qapp
    session.close()
    view.close()


def add_board(engine, x=100.0, y=100.0) -> NoteBoard:
    item = engine.create_item(ItemType.NOTE_BOARD, 0, 0)
    item.x, item.y = x, y
    engine.presentation.on_item_geometry_changed(item.id)
    return item


def test_created_item_gets_a_node(board):
    _, engine, scene, _, _ = board
    item = engine.create_item(ItemType.STICKY_NOTE, 500, 400)
    node = scene.node_for(item.id)
    assert node is not None
    assert node.pos().x() == pytest.approx(item.x)
    assert node.pos().y() == pytest.approx(item.y)
    assert node.rect().width() == pytest.approx(250)
    # Content-driven height comes from the rendered rows.
    assert node.rect().height() > 0


def test_hit_classification(board):
    _, engine, _, view, qapp = board
    item = add_board(engine)
    qapp.processEvents()
    pt = lambda x, y: view.mapFromScene(x, y)

    assert view.hit_at(pt(10, 10)) == HitTarget()
    assert view.hit_at(pt(440, 550)) == HitTarget(item.id, Part.RESIZE_HANDLE)
    assert view.hit_at(pt(270, 72)) == HitTarget(item.id, Part.ROTATE_HANDLE)
    assert view.hit_at(pt(270, 112)) == HitTarget(item.id, Part.DRAG_HANDLE)
    assert view.hit_at(pt(426, 114)) == HitTarget(item.id, Part.CONTROL)
    assert view.hit_at(pt(105, 540)) == HitTarget(item.id, Part.BODY)


def test_drag_moves_node(board):
    _, engine, scene, _, _ = board
    item = add_board(engine)
    engine.pointer_down(PointerEvent(120, 110, HitTarget(item.id, Part.DRAG_HANDLE)))
    engine.pointer_move(PointerEvent(220, 160))
    node = scene.node_for(item.id)
    assert (item.x, item.y) == (200, 150)
    assert node.pos().x() == pytest.approx(200)
    assert node.pos().y() == pytest.approx(150)
    assert engine.pointer_up() is True


def test_resize_updates_node_rect(board):
    _, engine, scene, _, _ = board
    item = add_board(engine)
    engine.pointer_down(PointerEvent(440, 550, HitTarget(item.id, Part.RESIZE_HANDLE)))
    engine.pointer_move(PointerEvent(500, 600))
    node = scene.node_for(item.id)
    assert node.rect().width() == pytest.approx(400)
    assert node.rect().height() == pytest.approx(500)
    engine.pointer_up()


def test_rendered_centre_follows_rotation_origin(board):
    _, engine, scene, _, _ = board
    item = add_board(engine)
    item.rotation = 45
    scene.on_item_geometry_changed(item.id)
    center = scene.item_screen_center(item.id)
    assert center.x == pytest.approx(100 + 170)
    assert center.y == pytest.approx(100 + 225)


def test_rotate_through_scene(board):
    _, engine, scene, _, _ = board
    item = add_board(engine)
    assert engine.pointer_down(PointerEvent(270, 72, HitTarget(item.id, Part.ROTATE_HANDLE))) == InteractionMode.ROTATING
    engine.pointer_move(PointerEvent(600, 325))
    assert item.rotation == pytest.approx(90)
    assert scene.node_for(item.id).rotation() == pytest.approx(90)
    engine.pointer_up()


def test_zoom_and_pan_set_world_transform(board):
    _, engine, scene, _, _ = board
    engine.wheel(500, 300, -500)
    t = scene.world.transform()
    assert t.m11() == pytest.approx(1.5)
    assert t.dx() == pytest.approx(-250)
    assert t.dy() == pytest.approx(-150)

    engine.pointer_down(PointerEvent(0, 0))
    engine.pointer_move(PointerEvent(50, 25))
    engine.pointer_up()
    t = scene.world.transform()
    assert t.dx() == pytest.approx(-200)
    assert t.dy() == pytest.approx(-125)


def test_item_maps_to_screen_through_viewport(board):
    _, engine, scene, _, _ = board
    item = add_board(engine, 10, 20)
    engine.wheel(0, 0, -1000)  # scale 2, anchored at origin
    node = scene.node_for(item.id)
    top_left = node.mapToScene(0, 0)
    assert top_left.x() == pytest.approx(20)
    assert top_left.y() == pytest.approx(40)


def test_delete_removes_node(board):
    _, engine, scene, _, _ = board
    item = engine.create_item(ItemType.ARROW, 300, 300)
    node = scene.node_for(item.id)
    engine.delete_item(item.id)
    assert scene.node_for(item.id) is None
    assert node.scene() is None


def test_content_change_rebuilds_rows(board):
    _, engine, scene, _, _ = board
    item = engine.create_item(ItemType.TASK_LIST, 400, 400)
    node = scene.node_for(item.id)
    rows_before = len(node.rows)
    height_before = node.rect().height()
    engine.add_task(item.id)
    assert len(node.rows) == rows_before + 1
    assert node.rect().height() > height_before


def test_close_clears_scene(board):
    session, engine, scene, _, _ = board
    engine.create_item(ItemType.STICKY_NOTE, 100, 100)
    session.close()
    assert scene.nodes == {}
    assert scene.engine is None
