"""
canvas/view.py

QGraphicsView that turns mouse and wheel input into canvas engine calls.

The view keeps an identity transform so scene coordinates equal viewport
pixels; zoom and pan are applied by the scene's world layer.
"""

from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import QLineF, QPoint, QRectF, Qt
from PyQt6.QtGui import QColor, QPainter, QPen
from PyQt6.QtWidgets import QGraphicsView

from canvas.engine import CanvasEngine, HitTarget, PointerEvent
from canvas.scene import BoardScene
from debug_trace import trace
from models import ITEM_ID_KEY, PART_KEY, InteractionMode, Part
from settings import get_settings
from utils import hex_to_qcolor


# Grid lines closer together than this (in pixels) are not drawn.
MIN_GRID_SPACING = 4.0


class BoardView(QGraphicsView):
    """
    Board view forwarding pointer input to the scene's engine.

    Input:
    - Left press on empty canvas pans
    - Left press on an item body or drag handle drags; Alt drags from anywhere
    - Left press on a resize or rotate handle resizes or rotates
    - Presses on controls (text fields, buttons) go to the control
    - Wheel zooms about the cursor
    """

    def __init__(self, scene: BoardScene, parent=None):
        super().__init__(scene, parent)
        self.board_scene = scene
        self.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        self.setRenderHint(QPainter.RenderHint.TextAntialiasing, True)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
        self.setTransformationAnchor(QGraphicsView.ViewportAnchor.NoAnchor)
        self.setResizeAnchor(QGraphicsView.ViewportAnchor.NoAnchor)
        # The grid moves with the pan, so partial background updates would smear.
        self.setViewportUpdateMode(QGraphicsView.ViewportUpdateMode.FullViewportUpdate)
        self.setDragMode(QGraphicsView.DragMode.NoDrag)
        scene.configure_linkage(on_viewport_changed=self.viewport().update)

    @property
    def engine(self) -> Optional[CanvasEngine]:
        return self.board_scene.engine

    def resizeEvent(self, event):
        super().resizeEvent(event)
        vp = self.viewport().rect()
        self.setSceneRect(QRectF(0, 0, vp.width(), vp.height()))

    def hit_at(self, pos: QPoint) -> HitTarget:
        """Classify what lies under a viewport position.

        The innermost part tag wins; the item id comes from the enclosing
        item node.
        """
        gi = self.itemAt(pos)
        part = None
        while gi is not None:
            if part is None:
                part = gi.data(PART_KEY)
            item_id = gi.data(ITEM_ID_KEY)
            if item_id:
                return HitTarget(item_id=item_id, part=part or Part.BODY)
            gi = gi.parentItem()
        return HitTarget()

    def _pointer_event(self, event, hit: Optional[HitTarget] = None) -> PointerEvent:
        pos = event.position()
        return PointerEvent(
            x=pos.x(),
            y=pos.y(),
            hit=hit or HitTarget(),
            modifier=bool(event.modifiers() & Qt.KeyboardModifier.AltModifier),
        )

    def mousePressEvent(self, event):
        engine = self.engine
        if engine is not None and event.button() == Qt.MouseButton.LeftButton:
            hit = self.hit_at(event.position().toPoint())
            mode = engine.pointer_down(self._pointer_event(event, hit))
            if mode != InteractionMode.IDLE:
                # A gesture takes the pointer away from any text field.
                self.scene().setFocusItem(None)
                if mode == InteractionMode.PANNING:
                    self.viewport().setCursor(Qt.CursorShape.ClosedHandCursor)
                event.accept()
                return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        engine = self.engine
        if engine is not None and engine.mode != InteractionMode.IDLE:
            engine.pointer_move(self._pointer_event(event))
            event.accept()
            return
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        engine = self.engine
        if engine is not None and engine.mode != InteractionMode.IDLE:
            saved = engine.pointer_up()
            self.viewport().unsetCursor()
            if saved is False:
                trace("save after gesture failed", "VIEW")
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def wheelEvent(self, event):
        """Zoom about the cursor."""
        engine = self.engine
        if engine is None:
            event.ignore()
            return
        # Wheel away from the user zooms in; the engine takes scroll-down as positive.
        delta = event.angleDelta().y()
        if delta == 0:
            delta = event.pixelDelta().y()
        if delta == 0:
            event.ignore()
            return
        pos = event.position()
        engine.wheel(pos.x(), pos.y(), -float(delta))
        event.accept()

    def drawBackground(self, painter: QPainter, rect: QRectF):
        """Fill the background and draw a grid that follows pan and zoom."""
        grid = get_settings().settings.canvas.grid
        painter.fillRect(rect, hex_to_qcolor(grid.background, QColor("#F9FAFB")))

        engine = self.engine
        if engine is None:
            return
        vp = engine.viewport
        step = grid.size * vp.scale
        if step < MIN_GRID_SPACING:
            return

        painter.setPen(QPen(hex_to_qcolor(grid.color, QColor("#E5E7EB")), 1))
        x = rect.left() - ((rect.left() - vp.pan.x) % step)
        while x <= rect.right():
            painter.drawLine(QLineF(x, rect.top(), x, rect.bottom()))
            x += step
        y = rect.top() - ((rect.top() - vp.pan.y) % step)
        while y <= rect.bottom():
            painter.drawLine(QLineF(rect.left(), y, rect.right(), y))
            y += step
