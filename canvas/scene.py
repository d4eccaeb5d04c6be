"""
canvas/scene.py

QGraphicsScene that renders the open project for the canvas engine.

Scene coordinates are screen coordinates. Item nodes live under a single
world layer whose transform is the viewport (scale, then pan), so moving or
zooming the board is one transform change.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from PyQt6.QtCore import QRectF
from PyQt6.QtGui import QPainter, QTransform
from PyQt6.QtWidgets import QGraphicsItem, QGraphicsScene

from canvas.engine import CanvasEngine, Presentation
from canvas.items import BoardItemNode, node_for_item
from canvas.viewport import Point
from debug_trace import trace
from models import BoardItem


class WorldLayer(QGraphicsItem):
    """Parent of every item node. Draws nothing itself."""

    def __init__(self):
        super().__init__()
        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemHasNoContents, True)

    def boundingRect(self) -> QRectF:
        return QRectF()

    def paint(self, painter: QPainter, option, widget=None):
        pass


class BoardScene(QGraphicsScene, Presentation):
    """Scene side of the engine's presentation callbacks.

    One node per model item is kept in ``nodes``. The scene never changes
    the model; nodes forward their edits to the attached engine.
    """

    def __init__(self, parent=None):
        QGraphicsScene.__init__(self, parent)
        self.engine: Optional[CanvasEngine] = None
        self.nodes: Dict[str, BoardItemNode] = {}
        self.world = WorldLayer()
        self.addItem(self.world)
        self._on_viewport_changed: Optional[Callable[[], None]] = None

    def configure_linkage(self, on_viewport_changed: Optional[Callable[[], None]] = None):
        """
        Configure callbacks toward the hosting view.

        Args:
            on_viewport_changed: Called after pan or zoom so the view can
                redraw its background grid.
        """
        self._on_viewport_changed = on_viewport_changed

    def node_for(self, item_id: str) -> Optional[BoardItemNode]:
        return self.nodes.get(item_id)

    # -- Presentation --

    def on_engine_attached(self, engine: CanvasEngine) -> None:
        self.engine = engine

    def on_engine_detached(self) -> None:
        for item_id in list(self.nodes):
            self.on_item_removed(item_id)
        self.engine = None
        self.world.setTransform(QTransform())

    def on_item_created(self, item: BoardItem) -> None:
        if self.engine is None or item.id in self.nodes:
            return
        node = node_for_item(item, self.engine)
        node.setParentItem(self.world)
        self.nodes[item.id] = node

    def on_item_removed(self, item_id: str) -> None:
        node = self.nodes.pop(item_id, None)
        if node is None:
            return
        node.setParentItem(None)
        self.removeItem(node)
        trace(f"removed node {item_id}", "SCENE")

    def on_item_geometry_changed(self, item_id: str) -> None:
        node = self.nodes.get(item_id)
        if node is not None:
            node.sync_geometry()

    def on_item_content_changed(self, item_id: str) -> None:
        node = self.nodes.get(item_id)
        if node is not None:
            node.rebuild()

    def on_viewport_changed(self, pan: Point, scale: float) -> None:
        self.world.setTransform(QTransform(scale, 0.0, 0.0, scale, pan.x, pan.y))
        self.update()
        if self._on_viewport_changed:
            self._on_viewport_changed()

    def item_screen_center(self, item_id: str) -> Optional[Point]:
        node = self.nodes.get(item_id)
        if node is None:
            return None
        c = node.screen_center()
        return Point(c.x(), c.y())
