"""
models.py

Data models and constants for the PlanBoard whiteboard.

Items are plain dataclasses; each variant carries its own creation defaults
and resize policy so the interaction engine never switches on type strings.
"""

from __future__ import annotations

import datetime
import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type, Union

from canvas.viewport import Point, Viewport


# ----------------------------
# Item type tags
# ----------------------------

class ItemType:
    """Type tags used in item ids and in the persisted ``type`` field."""
    TASK_LIST = "task-list"
    NOTE_BOARD = "note-board"
    STICKY_NOTE = "sticky-note"
    ARROW = "arrow"


class Part:
    """Parts of an item node that a pointer can land on."""
    BODY = "body"
    DRAG_HANDLE = "drag-handle"
    RESIZE_HANDLE = "resize-handle"
    ROTATE_HANDLE = "rotate-handle"
    CONTROL = "control"  # inputs, buttons, checkboxes, color dots


class InteractionMode:
    """Interaction modes of the canvas engine."""
    IDLE = "idle"
    PANNING = "panning"
    DRAGGING = "dragging"
    RESIZING = "resizing"
    ROTATING = "rotating"


NOTE_TYPES = ("daily", "weekly", "monthly", "yearly")
STICKY_COLORS = ("yellow", "blue", "green", "pink")

ITEM_ID_KEY = 1  # QGraphicsItem.data key for item id
PART_KEY = 2     # QGraphicsItem.data key for the Part tag


# ----------------------------
# Auto height sentinel
# ----------------------------

class _ContentDriven:
    """Sentinel for a height that follows the rendered content."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "AUTO"

    def __reduce__(self):
        return (_ContentDriven, ())


AUTO = _ContentDriven()
AUTO_MARKER = "auto"  # persisted form of AUTO

Height = Union[float, _ContentDriven]

# Height substituted for AUTO when centring a new item on the cursor.
PLACEMENT_FALLBACK_HEIGHT = 200.0
# Height substituted for AUTO when a resize starts.
RESIZE_FALLBACK_HEIGHT = 450.0


def is_auto(h: Height) -> bool:
    return h is AUTO


def height_to_json(h: Height) -> Union[float, str]:
    return AUTO_MARKER if h is AUTO else h


def height_from_json(value: Any, default: Height) -> Height:
    """Parse a persisted height; anything unusable resolves to *default*."""
    if value == AUTO_MARKER:
        return AUTO
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)) and math.isfinite(value):
        return float(value)
    return default


def now_millis() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def _next_child_id(existing: List[int]) -> int:
    """Timestamp-based id for a task or section, unique within its list."""
    candidate = now_millis()
    if existing:
        candidate = max(candidate, max(existing) + 1)
    return candidate


def _as_child_id(value: Any) -> int:
    """Stored task/section id as an int; 0 when unusable."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return 0


def _with_unique_ids(records: list) -> list:
    """Give records with a missing or repeated id a fresh one."""
    seen = set()
    for rec in records:
        if rec.id < 1 or rec.id in seen:
            rec.id = _next_child_id([r.id for r in records])
        seen.add(rec.id)
    return records


def _as_number(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    return float(value)


def _as_str(value: Any, default: str) -> str:
    return value if isinstance(value, str) else default


# ----------------------------
# Nested records
# ----------------------------

@dataclass
class TaskEntry:
    id: int
    text: str = ""
    checked: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text, "checked": self.checked}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TaskEntry":
        return cls(
            id=_as_child_id(d.get("id")),
            text=_as_str(d.get("text"), ""),
            checked=bool(d.get("checked", False)),
        )


@dataclass
class NoteSection:
    id: int
    title: str = ""
    content: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "content": self.content}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "NoteSection":
        return cls(
            id=_as_child_id(d.get("id")),
            title=_as_str(d.get("title"), ""),
            content=_as_str(d.get("content"), ""),
        )


# ----------------------------
# Items
# ----------------------------

@dataclass
class BoardItem:
    """Fields shared by every item on the board.

    Subclasses set ``TYPE``, ``DEFAULT_SIZE`` and the minimum sizes used by
    :meth:`apply_resize`.
    """
    id: str
    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: Height = AUTO
    rotation: float = 0.0
    z: int = 0

    TYPE = ""
    DEFAULT_SIZE = (300.0, 400.0)
    MIN_W = 50.0
    MIN_H = 100.0
    ALLOWS_AUTO_HEIGHT = False

    @classmethod
    def create(cls, item_id: str, x: float, y: float) -> "BoardItem":
        """Create a new item with this variant's default size and content."""
        w, h = cls.DEFAULT_SIZE
        return cls(id=item_id, x=x, y=y, w=w, h=h)

    def resize_start_size(self) -> Tuple[float, float]:
        """Numeric (w, h) a resize gesture starts from."""
        h = RESIZE_FALLBACK_HEIGHT if self.h is AUTO else self.h
        return self.w, h

    def apply_resize(self, start_w: float, start_h: float, dx: float, dy: float) -> None:
        self.w = max(self.MIN_W, start_w + dx)
        self.h = max(self.MIN_H, start_h + dy)

    def placement_height(self) -> float:
        return PLACEMENT_FALLBACK_HEIGHT if self.h is AUTO else self.h

    # -- serialization --

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "id": self.id,
            "type": self.TYPE,
            "x": self.x,
            "y": self.y,
            "w": self.w,
            "h": height_to_json(self.h),
            "rotation": self.rotation,
        }
        if self.z:
            d["z"] = self.z
        d.update(self._variant_dict())
        return d

    def _variant_dict(self) -> Dict[str, Any]:
        return {}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BoardItem":
        """Build an item from a persisted record, defaulting missing fields."""
        default_w, default_h = cls.DEFAULT_SIZE
        item = cls(
            id=_as_str(d.get("id"), ""),
            x=_as_number(d.get("x"), 0.0),
            y=_as_number(d.get("y"), 0.0),
            w=_as_number(d.get("w"), default_w),
            h=height_from_json(d.get("h"), default_h),
            rotation=_as_number(d.get("rotation"), 0.0),
            z=int(_as_number(d.get("z"), 0)),
        )
        if item.h is AUTO and not cls.ALLOWS_AUTO_HEIGHT:
            item.h = default_h
        item._load_variant(d)
        return item

    def _load_variant(self, d: Dict[str, Any]) -> None:
        pass


@dataclass
class TaskList(BoardItem):
    title: str = "New Task List"
    tasks: List[TaskEntry] = field(default_factory=list)

    TYPE = ItemType.TASK_LIST
    DEFAULT_SIZE = (300.0, AUTO)
    ALLOWS_AUTO_HEIGHT = True

    @classmethod
    def create(cls, item_id: str, x: float, y: float) -> "TaskList":
        item = super().create(item_id, x, y)
        # A new list opens with one empty task ready for typing.
        item.add_task()
        return item

    def add_task(self, text: str = "") -> TaskEntry:
        task = TaskEntry(id=_next_child_id([t.id for t in self.tasks]), text=text)
        self.tasks.append(task)
        return task

    def find_task(self, task_id: int) -> Optional[TaskEntry]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def _variant_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "tasks": [t.to_dict() for t in self.tasks]}

    def _load_variant(self, d: Dict[str, Any]) -> None:
        self.title = _as_str(d.get("title"), self.title)
        self.tasks = _with_unique_ids(
            [TaskEntry.from_dict(t) for t in d.get("tasks") or [] if isinstance(t, dict)]
        )


@dataclass
class NoteBoard(BoardItem):
    title: str = ""
    noteType: str = "daily"
    date: str = ""
    sections: List[NoteSection] = field(default_factory=list)

    TYPE = ItemType.NOTE_BOARD
    DEFAULT_SIZE = (340.0, 450.0)
    RESIZE_FALLBACK = (340.0, RESIZE_FALLBACK_HEIGHT)

    @classmethod
    def create(cls, item_id: str, x: float, y: float) -> "NoteBoard":
        item = super().create(item_id, x, y)
        item.date = datetime.date.today().isoformat()
        item.sections = [NoteSection(id=1)]
        return item

    def resize_start_size(self) -> Tuple[float, float]:
        if self.h is AUTO:
            return self.RESIZE_FALLBACK
        return self.w, self.h

    def add_section(self) -> NoteSection:
        section = NoteSection(id=_next_child_id([s.id for s in self.sections]))
        self.sections.append(section)
        return section

    def find_section(self, section_id: int) -> Optional[NoteSection]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def _variant_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "noteType": self.noteType,
            "date": self.date,
            "sections": [s.to_dict() for s in self.sections],
        }

    def _load_variant(self, d: Dict[str, Any]) -> None:
        self.title = _as_str(d.get("title"), self.title)
        note_type = d.get("noteType")
        self.noteType = note_type if note_type in NOTE_TYPES else "daily"
        self.date = _as_str(d.get("date"), self.date)
        self.sections = _with_unique_ids(
            [NoteSection.from_dict(s) for s in d.get("sections") or [] if isinstance(s, dict)]
        )


@dataclass
class StickyNote(BoardItem):
    text: str = ""
    color: str = "yellow"

    TYPE = ItemType.STICKY_NOTE
    DEFAULT_SIZE = (250.0, AUTO)
    MIN_W = 200.0
    ALLOWS_AUTO_HEIGHT = True

    def apply_resize(self, start_w: float, start_h: float, dx: float, dy: float) -> None:
        # Width only; the text area decides the height.
        self.w = max(self.MIN_W, start_w + dx)
        self.h = AUTO

    def _variant_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "color": self.color}

    def _load_variant(self, d: Dict[str, Any]) -> None:
        self.text = _as_str(d.get("text"), "")
        color = d.get("color")
        self.color = color if color in STICKY_COLORS else "yellow"


@dataclass
class Arrow(BoardItem):
    color: str = "blue"
    # Outline polygon in item-local coordinates; derived, never persisted.
    outline: List[Tuple[float, float]] = field(default_factory=list, compare=False, repr=False)

    TYPE = ItemType.ARROW
    DEFAULT_SIZE = (200.0, 60.0)
    MIN_W = 50.0
    MIN_H = 30.0

    def _variant_dict(self) -> Dict[str, Any]:
        return {"color": self.color}

    def _load_variant(self, d: Dict[str, Any]) -> None:
        self.color = _as_str(d.get("color"), "blue")


ITEM_TYPES: Dict[str, Type[BoardItem]] = {
    cls.TYPE: cls for cls in (TaskList, NoteBoard, StickyNote, Arrow)
}


def item_from_dict(d: Dict[str, Any]) -> Optional[BoardItem]:
    """Build an item from a persisted record; None for unknown types."""
    if not isinstance(d, dict):
        return None
    cls = ITEM_TYPES.get(d.get("type"))
    if cls is None:
        return None
    return cls.from_dict(d)


# ----------------------------
# Collection & snapshot
# ----------------------------

class ItemCollection:
    """Ordered items of one project.

    Insertion order is the default stacking order. ``top_z`` tracks the
    highest stacking priority handed out so bring-to-front never has to scan
    rendered nodes.
    """

    def __init__(self, items: Optional[List[BoardItem]] = None):
        self._items: List[BoardItem] = list(items or [])
        self.top_z = max((it.z for it in self._items), default=0)

    def __iter__(self) -> Iterator[BoardItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return self.get(item_id) is not None

    def get(self, item_id: object) -> Optional[BoardItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def append(self, item: BoardItem) -> None:
        self._items.append(item)
        self.top_z = max(self.top_z, item.z)

    def remove(self, item_id: str) -> Optional[BoardItem]:
        """Remove and return the item with *item_id*; None if absent."""
        item = self.get(item_id)
        if item is not None:
            self._items.remove(item)
        return item

    def bring_to_front(self, item: BoardItem) -> int:
        self.top_z += 1
        item.z = self.top_z
        return item.z

    def ids(self) -> List[str]:
        return [item.id for item in self._items]


def _id_sequence(item_id: str) -> int:
    """Trailing sequence number of an ``<type>-<n>`` id; 0 if none."""
    _, _, tail = item_id.rpartition("-")
    return int(tail) if tail.isdigit() else 0


@dataclass
class ProjectSnapshot:
    """Complete persisted state of one project: items, viewport, id counter."""
    items: ItemCollection = field(default_factory=ItemCollection)
    viewport: Viewport = field(default_factory=Viewport)
    next_id: int = 1

    @property
    def pan(self) -> Point:
        return self.viewport.pan

    @property
    def scale(self) -> float:
        return self.viewport.scale

    def allocate_id(self, type_tag: str) -> str:
        """Return ``<type>-<nextId>`` and advance the counter."""
        item_id = f"{type_tag}-{self.next_id}"
        self.next_id += 1
        return item_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "pan": self.viewport.pan.to_dict(),
            "scale": self.viewport.scale,
            "nextId": self.next_id,
        }

    @classmethod
    def from_dict(cls, d: Any) -> "ProjectSnapshot":
        """Build a snapshot, substituting defaults for missing fields.

        Records of unknown item type are dropped. ``nextId`` is raised past
        every stored id so a new item can never reuse one.
        """
        if not isinstance(d, dict):
            return cls()
        items = []
        for rec in d.get("items") or []:
            item = item_from_dict(rec)
            if item is not None:
                items.append(item)
        next_id = int(_as_number(d.get("nextId"), 1)) or 1
        highest = max((_id_sequence(item.id) for item in items), default=0)
        snapshot = cls(
            viewport=Viewport.from_snapshot_fields(d.get("pan"), d.get("scale")),
            next_id=max(next_id, highest + 1),
        )
        seen = set()
        for item in items:
            # Missing or repeated ids get a fresh one past every stored id.
            if not item.id or item.id in seen:
                item.id = snapshot.allocate_id(item.TYPE)
            seen.add(item.id)
            snapshot.items.append(item)
        return snapshot
