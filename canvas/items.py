"""
canvas/items.py

Graphics nodes that render board items: task lists, note boards, sticky
notes and arrows.

A node is a view of one live model object. It never writes to the model
itself; every edit made through its controls goes through the
``CanvasEngine`` so it is saved. Child items carry a ``PART_KEY`` tag so the
view can tell handles and controls apart from the item body.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Type

from PyQt6.QtCore import Qt, QPointF, QRectF, QTimer
from PyQt6.QtGui import QBrush, QColor, QCursor, QFont, QPainter, QPen, QPolygonF
from PyQt6.QtWidgets import (
    QGraphicsItem,
    QGraphicsPolygonItem,
    QGraphicsRectItem,
    QGraphicsSimpleTextItem,
    QGraphicsTextItem,
    QMenu,
)

from canvas.engine import CanvasEngine
from debug_trace import trace
from models import (
    ITEM_ID_KEY,
    NOTE_TYPES,
    PART_KEY,
    STICKY_COLORS,
    Arrow,
    BoardItem,
    NoteBoard,
    Part,
    StickyNote,
    TaskList,
    is_auto,
)
from settings import get_settings
from utils import NOTE_TYPE_ACCENT, arrow_colors, hex_to_qcolor, sticky_fill


PADDING = 12.0
CONTENT_TOP = 30.0     # room for the drag handle and delete button
ROW_SPACING = 6.0
BUTTON_H = 26.0
CHECKBOX_SIZE = 16.0
DOT_SIZE = 14.0

TEXT_COLOR = QColor("#1F2937")
MUTED_COLOR = QColor("#9CA3AF")
CARD_FILL = QColor("#FFFFFF")
CARD_BORDER = QColor("#E5E7EB")


def _get_handle_size() -> float:
    """Get handle size from settings. Default: 14.0 pixels."""
    return get_settings().settings.canvas.handles.size


def _get_rotate_offset() -> float:
    """Get rotate handle distance above the item. Default: 28.0 pixels."""
    return get_settings().settings.canvas.handles.rotate_offset


def _get_handle_color() -> QColor:
    """Get handle outline color from settings. Default: #3B82F6 (blue)."""
    return hex_to_qcolor(get_settings().settings.canvas.handles.color, QColor("#3B82F6"))


def _extent(gi: QGraphicsItem) -> float:
    """Height of an item including its children."""
    return gi.boundingRect().united(gi.childrenBoundingRect()).height()


# =============================================================================
# Handles and controls
# =============================================================================

class HandleItem(QGraphicsRectItem):
    """Grip on an item's frame: drag, resize or rotate."""

    _CURSORS = {
        Part.DRAG_HANDLE: Qt.CursorShape.SizeAllCursor,
        Part.RESIZE_HANDLE: Qt.CursorShape.SizeFDiagCursor,
        Part.ROTATE_HANDLE: Qt.CursorShape.CrossCursor,
    }

    def __init__(self, part: str, parent: QGraphicsItem):
        super().__init__(parent)
        self.part = part
        self.setData(PART_KEY, part)
        s = _get_handle_size()
        if part == Part.DRAG_HANDLE:
            self.setRect(-s, -s / 4, 2 * s, s / 2)
        else:
            self.setRect(-s / 2, -s / 2, s, s)
        self.setPen(QPen(_get_handle_color(), 1.5))
        self.setBrush(QBrush(QColor("#FFFFFF")))
        self.setCursor(self._CURSORS.get(part, Qt.CursorShape.ArrowCursor))
        self.setZValue(10)

    def paint(self, painter: QPainter, option, widget=None):
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        painter.setPen(self.pen())
        painter.setBrush(self.brush())
        if self.part == Part.ROTATE_HANDLE:
            painter.drawEllipse(self.rect())
        else:
            r = min(self.rect().width(), self.rect().height()) / 2
            painter.drawRoundedRect(self.rect(), r, r)


class ControlButton(QGraphicsRectItem):
    """Clickable control inside an item: buttons, checkboxes, color dots.

    The click callback runs from the event loop rather than inside the mouse
    handler, since it may rebuild or remove the node that owns the button.
    """

    def __init__(
        self,
        parent: QGraphicsItem,
        rect: QRectF,
        on_click: Callable[[], None],
        label: str = "",
        fill: Optional[QColor] = None,
        border: Optional[QColor] = None,
        round_: bool = False,
    ):
        super().__init__(rect, parent)
        self.setData(PART_KEY, Part.CONTROL)
        self._on_click = on_click
        self._round = round_
        self.setPen(QPen(border, 1.5) if border is not None else QPen(Qt.PenStyle.NoPen))
        self.setBrush(QBrush(fill) if fill is not None else QBrush(Qt.BrushStyle.NoBrush))
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        self.setAcceptedMouseButtons(Qt.MouseButton.LeftButton)

        self.label: Optional[QGraphicsSimpleTextItem] = None
        if label:
            self.label = QGraphicsSimpleTextItem(label, self)
            self.label.setBrush(QBrush(TEXT_COLOR))
            br = self.label.boundingRect()
            self.label.setPos(
                rect.x() + (rect.width() - br.width()) / 2,
                rect.y() + (rect.height() - br.height()) / 2,
            )

    def paint(self, painter: QPainter, option, widget=None):
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        painter.setPen(self.pen())
        painter.setBrush(self.brush())
        if self._round:
            painter.drawEllipse(self.rect())
        else:
            painter.drawRoundedRect(self.rect(), 4, 4)

    def mousePressEvent(self, event):
        event.accept()

    def mouseReleaseEvent(self, event):
        if self.rect().contains(event.pos()):
            QTimer.singleShot(0, self._on_click)
        event.accept()


class EditableText(QGraphicsTextItem):
    """Inline text field. Every change is written through *on_edit*.

    Args:
        parent: Owning graphics item.
        text: Initial text.
        width: Wrap width.
        on_edit: Called with the full text after each change.
        placeholder: Shown while the field is empty and unfocused.
        multiline: Whether Return inserts a line break.
        on_resized: Called when the rendered height changes.
    """

    def __init__(
        self,
        parent: QGraphicsItem,
        text: str,
        width: float,
        on_edit: Callable[[str], None],
        placeholder: str = "",
        multiline: bool = False,
        on_resized: Optional[Callable[[], None]] = None,
        point_size: float = 10.0,
        bold: bool = False,
        struck: bool = False,
    ):
        super().__init__(parent)
        self.setData(PART_KEY, Part.CONTROL)
        self.placeholder = placeholder
        self.multiline = multiline
        self._on_edit = on_edit
        self._on_resized = on_resized

        f = QFont(self.font())
        f.setPointSizeF(point_size)
        f.setBold(bold)
        f.setStrikeOut(struck)
        self.setFont(f)
        self.setDefaultTextColor(MUTED_COLOR if struck else TEXT_COLOR)
        self.setPlainText(text)
        self.setTextWidth(max(width, 20.0))
        self.setTextInteractionFlags(Qt.TextInteractionFlag.TextEditorInteraction)
        self.setCursor(Qt.CursorShape.IBeamCursor)

        self._last_height = self.boundingRect().height()
        self.document().contentsChanged.connect(self._on_contents_changed)

    def _on_contents_changed(self):
        self._on_edit(self.toPlainText())
        h = self.boundingRect().height()
        if h != self._last_height:
            self._last_height = h
            if self._on_resized:
                self._on_resized()

    def keyPressEvent(self, event):
        if not self.multiline and event.key() in (Qt.Key.Key_Return, Qt.Key.Key_Enter):
            self.clearFocus()
            event.accept()
            return
        super().keyPressEvent(event)

    def focusInEvent(self, event):
        super().focusInEvent(event)
        self.update()

    def focusOutEvent(self, event):
        super().focusOutEvent(event)
        self.update()

    def paint(self, painter: QPainter, option, widget=None):
        super().paint(painter, option, widget)
        if self.placeholder and not self.toPlainText() and not self.hasFocus():
            margin = self.document().documentMargin()
            painter.setPen(MUTED_COLOR)
            painter.setFont(self.font())
            painter.drawText(
                self.boundingRect().adjusted(margin, margin, -margin, -margin),
                int(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop),
                self.placeholder,
            )


# =============================================================================
# Item nodes
# =============================================================================

class BoardItemNode(QGraphicsRectItem):
    """Base node: frame, handles, delete button and a clipped content area.

    Subclasses add their content rows in :meth:`_build_rows`. Rows are laid
    out top to bottom; an item whose height is content-driven takes the
    height of its rows.
    """

    HAS_RESIZE_HANDLE = True

    def __init__(self, item: BoardItem, engine: CanvasEngine):
        super().__init__()
        self.item = item
        self.engine = engine
        self.setData(ITEM_ID_KEY, item.id)
        self.setData(PART_KEY, Part.BODY)
        self.setPen(QPen(CARD_BORDER, 1))
        self.setBrush(QBrush(CARD_FILL))

        self.body = QGraphicsRectItem(self)
        self.body.setPen(QPen(Qt.PenStyle.NoPen))
        self.body.setFlag(QGraphicsItem.GraphicsItemFlag.ItemClipsChildrenToShape, True)

        self.rows: List[QGraphicsItem] = []
        self._content_height = 0.0
        self._built_width: Optional[float] = None

        self.drag_handle = HandleItem(Part.DRAG_HANDLE, self)
        self.rotate_handle = HandleItem(Part.ROTATE_HANDLE, self)
        self.resize_handle = HandleItem(Part.RESIZE_HANDLE, self) if self.HAS_RESIZE_HANDLE else None
        self.delete_button = ControlButton(
            self, QRectF(-9, -9, 18, 18), self._delete,
            label="×", fill=QColor("#FEE2E2"), round_=True,
        )
        self.delete_button.setZValue(10)

        self.rebuild()

    @property
    def item_id(self) -> str:
        return self.item.id

    @property
    def inner_width(self) -> float:
        return max(self.item.w - 2 * PADDING, 20.0)

    def _delete(self):
        self.engine.delete_item(self.item.id)

    # -- content --

    def rebuild(self) -> None:
        """Recreate the content rows from the model."""
        for row in self.rows:
            scene = row.scene()
            row.setParentItem(None)
            if scene is not None:
                scene.removeItem(row)
        self.rows = []
        self._built_width = self.item.w
        self._build_rows()
        self.relayout()

    def _build_rows(self) -> None:
        pass

    def relayout(self) -> None:
        """Stack the rows and refresh the frame."""
        y = CONTENT_TOP
        for row in self.rows:
            row.setPos(PADDING, y)
            y += _extent(row) + ROW_SPACING
        self._content_height = y + PADDING - ROW_SPACING
        self.sync_geometry()

    def rendered_height(self) -> float:
        return self._content_height if is_auto(self.item.h) else float(self.item.h)

    # -- geometry --

    def sync_geometry(self) -> None:
        """Apply the model's position, size, rotation and stacking."""
        item = self.item
        if item.w != self._built_width:
            self.rebuild()
            return
        w = item.w
        h = self.rendered_height()
        self.prepareGeometryChange()
        self.setRect(0, 0, w, h)
        self.body.setRect(0, 0, w, h)
        self.setPos(item.x, item.y)
        self.setTransformOriginPoint(w / 2, h / 2)
        self.setRotation(item.rotation)
        self.setZValue(item.z)

        self.drag_handle.setPos(w / 2, 12)
        self.rotate_handle.setPos(w / 2, -_get_rotate_offset())
        if self.resize_handle is not None:
            self.resize_handle.setPos(w, h)
        self.delete_button.setPos(w - 14, 14)
        self._sync_content(w, h)

    def _sync_content(self, w: float, h: float) -> None:
        pass

    def screen_center(self) -> QPointF:
        """Centre of the rendered frame in scene (screen) coordinates."""
        return self.mapToScene(self.rect().center())

    # -- helpers for subclasses --

    def _text(self, parent: QGraphicsItem, text: str, width: float,
              on_edit: Callable[[str], None], **kwargs) -> EditableText:
        return EditableText(parent, text, width, on_edit, on_resized=self.relayout, **kwargs)

    def _add_row(self, row: QGraphicsItem) -> QGraphicsItem:
        row.setParentItem(self.body)
        self.rows.append(row)
        return row


class TaskListNode(BoardItemNode):
    """Checklist with a title and an add-task button. Height follows content."""

    # Task lists are sized by their tasks; only width is stored.
    HAS_RESIZE_HANDLE = False

    def _build_rows(self) -> None:
        item: TaskList = self.item
        engine = self.engine
        inner = self.inner_width

        self._add_row(self._text(
            self.body, item.title, inner - 24,
            lambda t: engine.set_field(item.id, "title", t),
            placeholder="List title", point_size=12, bold=True,
        ))

        for task in item.tasks:
            row = QGraphicsRectItem(self.body)
            row.setPen(QPen(Qt.PenStyle.NoPen))
            ControlButton(
                row, QRectF(0, 5, CHECKBOX_SIZE, CHECKBOX_SIZE),
                lambda tid=task.id: engine.toggle_task(item.id, tid),
                label="✓" if task.checked else "",
                fill=QColor("#3B82F6") if task.checked else QColor("#FFFFFF"),
                border=QColor("#9CA3AF"),
            )
            text = self._text(
                row, task.text, inner - CHECKBOX_SIZE - 6,
                lambda t, tid=task.id: engine.update_task(item.id, tid, text=t),
                placeholder="Task...", struck=task.checked,
            )
            text.setPos(CHECKBOX_SIZE + 6, 0)
            self._add_row(row)

        self._add_row(ControlButton(
            self.body, QRectF(0, 0, inner, BUTTON_H),
            lambda: engine.add_task(item.id),
            label="+ Add Task", fill=QColor("#F3F4F6"),
        ))


class NoteBoardNode(BoardItemNode):
    """Dated planning board split into titled sections. Fixed size, clipped."""

    def _build_rows(self) -> None:
        item: NoteBoard = self.item
        engine = self.engine
        inner = self.inner_width

        meta = QGraphicsRectItem(self.body)
        meta.setPen(QPen(Qt.PenStyle.NoPen))
        ControlButton(
            meta, QRectF(0, 0, 80, 22), self._choose_note_type,
            label=item.noteType.capitalize(),
            fill=QColor(NOTE_TYPE_ACCENT.get(item.noteType, "#3B82F6")).lighter(170),
        )
        date = self._text(meta, item.date, inner - 90, lambda t: engine.set_field(item.id, "date", t))
        date.setPos(90, -2)
        self._add_row(meta)

        self._add_row(self._text(
            self.body, item.title, inner - 24,
            lambda t: engine.set_field(item.id, "title", t),
            placeholder="Board Title...", point_size=13, bold=True,
        ))

        for section in item.sections:
            self._add_row(self._text(
                self.body, section.title, inner,
                lambda t, sid=section.id: engine.update_section(item.id, sid, title=t),
                placeholder="Section Title (e.g. January)", bold=True,
            ))
            self._add_row(self._text(
                self.body, section.content, inner,
                lambda t, sid=section.id: engine.update_section(item.id, sid, content=t),
                placeholder="Write here...", multiline=True,
            ))

        self._add_row(ControlButton(
            self.body, QRectF(0, 0, inner, BUTTON_H),
            lambda: engine.add_section(item.id),
            label="+ Add Split / Line", fill=QColor("#F3F4F6"),
        ))

    def _choose_note_type(self):
        menu = QMenu()
        for note_type in NOTE_TYPES:
            action = menu.addAction(note_type.capitalize())
            action.setData(note_type)
            action.setCheckable(True)
            action.setChecked(note_type == self.item.noteType)
        chosen = menu.exec(QCursor.pos())
        if chosen is not None:
            self.engine.set_note_type(self.item.id, chosen.data())

    def paint(self, painter: QPainter, option, widget=None):
        super().paint(painter, option, widget)
        accent = QColor(NOTE_TYPE_ACCENT.get(self.item.noteType, "#3B82F6"))
        painter.fillRect(QRectF(0, 0, self.rect().width(), 4), accent)


class StickyNoteNode(BoardItemNode):
    """Colored note with free text. Width is resizable, height follows text."""

    def _build_rows(self) -> None:
        item: StickyNote = self.item
        engine = self.engine

        dots = QGraphicsRectItem(self.body)
        dots.setPen(QPen(Qt.PenStyle.NoPen))
        for i, color in enumerate(STICKY_COLORS):
            ControlButton(
                dots, QRectF(i * (DOT_SIZE + 6), 0, DOT_SIZE, DOT_SIZE),
                lambda c=color: engine.set_color(item.id, c),
                fill=sticky_fill(color),
                border=QColor("#374151") if color == item.color else QColor("#D1D5DB"),
                round_=True,
            )
        self._add_row(dots)

        self._add_row(self._text(
            self.body, item.text, self.inner_width,
            lambda t: engine.set_field(item.id, "text", t),
            placeholder="Write...", multiline=True, point_size=11,
        ))

    def _sync_content(self, w: float, h: float) -> None:
        self.setBrush(QBrush(sticky_fill(self.item.color)))
        self.setPen(QPen(Qt.PenStyle.NoPen))


class ArrowNode(BoardItemNode):
    """Block arrow filling its box."""

    shape_item: Optional[QGraphicsPolygonItem] = None

    def _build_rows(self) -> None:
        if self.shape_item is None:
            self.shape_item = QGraphicsPolygonItem(self.body)
            self.shape_item.setZValue(-1)

    def _sync_content(self, w: float, h: float) -> None:
        item: Arrow = self.item
        self.setPen(QPen(Qt.PenStyle.NoPen))
        self.setBrush(QBrush(Qt.BrushStyle.NoBrush))
        fill, stroke = arrow_colors(item.color)
        self.shape_item.setBrush(QBrush(fill))
        self.shape_item.setPen(QPen(stroke, 2))
        self.shape_item.setPolygon(QPolygonF([QPointF(x, y) for x, y in item.outline]))


NODE_TYPES: Dict[Type[BoardItem], Type[BoardItemNode]] = {
    TaskList: TaskListNode,
    NoteBoard: NoteBoardNode,
    StickyNote: StickyNoteNode,
    Arrow: ArrowNode,
}


def node_for_item(item: BoardItem, engine: CanvasEngine) -> BoardItemNode:
    """Create the node that renders *item*."""
    node_cls = NODE_TYPES.get(type(item), BoardItemNode)
    trace(f"node_for_item {item.id} -> {node_cls.__name__}", "SCENE")
    return node_cls(item, engine)
