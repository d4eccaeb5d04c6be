"""
canvas/engine.py

Interaction engine for the board.

The engine owns the live ``ProjectSnapshot`` of the open project and is the
only writer to it. Pointer input drives exactly one interaction mode at a
time (pan, drag, resize, rotate); item creation, deletion and field edits go
through the same object. Rendering and persistence are reached through the
``Presentation`` callbacks and the ``saver`` callable supplied by the owner.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Optional

from canvas.geometry import arrow_path
from canvas.viewport import MAX_SCALE, MIN_SCALE, ZOOM_SPEED, Point, Viewport
from debug_trace import trace
from models import (
    ITEM_TYPES,
    NOTE_TYPES,
    STICKY_COLORS,
    Arrow,
    BoardItem,
    InteractionMode,
    ItemCollection,
    NoteBoard,
    NoteSection,
    Part,
    ProjectSnapshot,
    StickyNote,
    TaskEntry,
    TaskList,
)


# Plain text fields that can be written directly from an editor control.
TEXT_FIELDS = frozenset({"title", "text", "date"})


@dataclass
class HitTarget:
    """What lies under the pointer.

    Attributes:
        item_id: Id of the item under the pointer, or None over empty canvas.
        part: One of the ``Part`` constants when over an item.
    """
    item_id: Optional[str] = None
    part: Optional[str] = None


@dataclass
class PointerEvent:
    """A pointer sample in screen coordinates."""
    x: float
    y: float
    hit: HitTarget = field(default_factory=HitTarget)
    modifier: bool = False  # drag-anywhere modifier (Alt)


class Presentation:
    """Callbacks from the engine to the layer that renders the board.

    The base class ignores every notification, which is what a headless
    engine needs.
    """

    def on_engine_attached(self, engine: "CanvasEngine") -> None:
        pass

    def on_engine_detached(self) -> None:
        pass

    def on_item_created(self, item: BoardItem) -> None:
        pass

    def on_item_removed(self, item_id: str) -> None:
        pass

    def on_item_geometry_changed(self, item_id: str) -> None:
        pass

    def on_item_content_changed(self, item_id: str) -> None:
        pass

    def on_viewport_changed(self, pan: Point, scale: float) -> None:
        pass

    def item_screen_center(self, item_id: str) -> Optional[Point]:
        """Rendered centre of an item in screen coordinates, if known."""
        return None


Saver = Callable[[ProjectSnapshot], bool]


@dataclass
class _Gesture:
    """State captured on pointer-down for the active mode."""
    mode: str = InteractionMode.IDLE
    target_id: Optional[str] = None
    last_screen: Point = field(default_factory=Point)
    start_screen: Point = field(default_factory=Point)
    drag_offset: Point = field(default_factory=Point)
    start_w: float = 0.0
    start_h: float = 0.0


class CanvasEngine:
    """Pointer state machine and item operations over one live snapshot.

    Args:
        snapshot: The live snapshot of the open project. It is mutated in
            place and handed to ``saver`` whole.
        presentation: Receiver of render notifications.
        saver: Called with the snapshot on every save trigger; returns
            whether the write succeeded.
        zoom_speed: Scale change per unit of wheel delta.
        min_scale: Lower zoom limit.
        max_scale: Upper zoom limit.
    """

    def __init__(
        self,
        snapshot: ProjectSnapshot,
        presentation: Optional[Presentation] = None,
        saver: Optional[Saver] = None,
        zoom_speed: float = ZOOM_SPEED,
        min_scale: float = MIN_SCALE,
        max_scale: float = MAX_SCALE,
    ):
        self.snapshot = snapshot
        self.presentation = presentation or Presentation()
        self._saver = saver
        self.zoom_speed = zoom_speed
        self.min_scale = min_scale
        self.max_scale = max_scale
        self._gesture = _Gesture()

        for item in self.snapshot.items:
            if isinstance(item, Arrow):
                self._update_outline(item)

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def viewport(self) -> Viewport:
        return self.snapshot.viewport

    @property
    def items(self) -> ItemCollection:
        return self.snapshot.items

    @property
    def mode(self) -> str:
        return self._gesture.mode

    @property
    def target_id(self) -> Optional[str]:
        return self._gesture.target_id

    @property
    def drag_offset(self) -> Point:
        return Point(self._gesture.drag_offset.x, self._gesture.drag_offset.y)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> bool:
        """Hand the whole snapshot to the saver once.

        Returns:
            The saver's result; True when no saver is attached.
        """
        if self._saver is None:
            return True
        return self._saver(self.snapshot)

    # ------------------------------------------------------------------
    # Pointer input
    # ------------------------------------------------------------------

    def pointer_down(self, event: PointerEvent) -> str:
        """Classify a pointer-down and enter the matching mode.

        Returns:
            The resulting mode; ``IDLE`` when the press belongs to a control
            inside an item (the control handles it).
        """
        if self._gesture.mode != InteractionMode.IDLE:
            return self._gesture.mode

        hit = event.hit
        item = self.items.get(hit.item_id) if hit.item_id is not None else None
        screen = Point(event.x, event.y)

        if item is not None and hit.part == Part.ROTATE_HANDLE:
            self._gesture = _Gesture(mode=InteractionMode.ROTATING, target_id=item.id)
        elif item is not None and hit.part == Part.RESIZE_HANDLE:
            start_w, start_h = item.resize_start_size()
            self._gesture = _Gesture(
                mode=InteractionMode.RESIZING,
                target_id=item.id,
                start_screen=screen,
                start_w=start_w,
                start_h=start_h,
            )
        elif item is not None and (
            hit.part == Part.DRAG_HANDLE or hit.part != Part.CONTROL or event.modifier
        ):
            world = self.viewport.world_from_screen(event.x, event.y)
            self._gesture = _Gesture(
                mode=InteractionMode.DRAGGING,
                target_id=item.id,
                drag_offset=Point(world.x - item.x, world.y - item.y),
            )
            self.items.bring_to_front(item)
            self.presentation.on_item_geometry_changed(item.id)
        elif hit.item_id is None:
            self._gesture = _Gesture(mode=InteractionMode.PANNING, last_screen=screen)

        if self._gesture.mode != InteractionMode.IDLE:
            trace(f"pointer_down -> {self._gesture.mode} target={self._gesture.target_id}", "ENGINE")
        return self._gesture.mode

    def pointer_move(self, event: PointerEvent) -> None:
        """Apply a pointer sample to the active mode."""
        g = self._gesture
        if g.mode == InteractionMode.IDLE:
            return
        trace(f"pointer_move {g.mode} ({event.x:.0f}, {event.y:.0f})", "MOVE")

        if g.mode == InteractionMode.PANNING:
            self.viewport.pan_by(event.x - g.last_screen.x, event.y - g.last_screen.y)
            g.last_screen = Point(event.x, event.y)
            self.presentation.on_viewport_changed(self.viewport.pan, self.viewport.scale)
            return

        item = self.items.get(g.target_id)
        if item is None:
            # Target vanished mid-gesture; nothing to move this frame.
            return

        if g.mode == InteractionMode.DRAGGING:
            world = self.viewport.world_from_screen(event.x, event.y)
            item.x = world.x - g.drag_offset.x
            item.y = world.y - g.drag_offset.y
        elif g.mode == InteractionMode.RESIZING:
            scale = self.viewport.scale
            dx = (event.x - g.start_screen.x) / scale
            dy = (event.y - g.start_screen.y) / scale
            item.apply_resize(g.start_w, g.start_h, dx, dy)
            if isinstance(item, Arrow):
                self._update_outline(item)
        elif g.mode == InteractionMode.ROTATING:
            center = self._screen_center(item)
            rad = math.atan2(event.y - center.y, event.x - center.x)
            # The handle sits above the item (-90 deg on screen), which is rotation 0.
            item.rotation = math.degrees(rad) + 90

        self.presentation.on_item_geometry_changed(item.id)

    def pointer_up(self) -> Optional[bool]:
        """End the active mode.

        Returns:
            The save result when a mode was active, None when idle.
        """
        was_active = self._gesture.mode != InteractionMode.IDLE
        if was_active:
            trace(f"pointer_up <- {self._gesture.mode} target={self._gesture.target_id}", "ENGINE")
        self._gesture = _Gesture()
        if was_active:
            return self.save()
        return None

    def wheel(self, screen_x: float, screen_y: float, delta: float) -> float:
        """Zoom about the cursor. Never saves.

        Returns:
            The new scale.
        """
        scale = self.viewport.zoom_at(
            screen_x, screen_y, delta,
            zoom_speed=self.zoom_speed,
            min_scale=self.min_scale,
            max_scale=self.max_scale,
        )
        self.presentation.on_viewport_changed(self.viewport.pan, self.viewport.scale)
        return scale

    def _screen_center(self, item: BoardItem) -> Point:
        rendered = self.presentation.item_screen_center(item.id)
        if rendered is not None:
            return rendered
        return self.viewport.screen_from_world(
            item.x + item.w / 2, item.y + item.placement_height() / 2
        )

    @staticmethod
    def _update_outline(item: Arrow) -> None:
        item.outline = arrow_path(item.w, item.h)

    # ------------------------------------------------------------------
    # Item lifecycle
    # ------------------------------------------------------------------

    def create_item(self, type_tag: str, screen_x: float, screen_y: float) -> BoardItem:
        """Create an item of *type_tag* centred on a screen position.

        Raises:
            KeyError: If *type_tag* is not a known item type.
        """
        cls = ITEM_TYPES[type_tag]
        center = self.viewport.world_from_screen(screen_x, screen_y)
        item = cls.create(self.snapshot.allocate_id(type_tag), 0.0, 0.0)
        item.x = center.x - item.w / 2
        item.y = center.y - item.placement_height() / 2
        if isinstance(item, Arrow):
            self._update_outline(item)

        self.items.append(item)
        trace(f"create_item {item.id} at ({item.x:.1f}, {item.y:.1f})", "ENGINE")
        self.presentation.on_item_created(item)
        self.save()
        return item

    def delete_item(self, item_id: str) -> None:
        """Remove an item. Deleting an absent id is harmless."""
        self.items.remove(item_id)
        trace(f"delete_item {item_id}", "ENGINE")
        self.presentation.on_item_removed(item_id)
        self.save()

    # ------------------------------------------------------------------
    # Field edits
    # ------------------------------------------------------------------

    def set_field(self, item_id: str, name: str, value: str) -> bool:
        """Write a text field (title, text, date) as typed.

        Returns:
            False if the item does not exist or has no such field.
        """
        item = self.items.get(item_id)
        if item is None or name not in TEXT_FIELDS or not hasattr(item, name):
            return False
        if not isinstance(value, str):
            raise TypeError(f"{name} must be a string, got {type(value).__name__}")
        setattr(item, name, value)
        self.save()
        return True

    def set_note_type(self, item_id: str, note_type: str) -> bool:
        item = self.items.get(item_id)
        if not isinstance(item, NoteBoard):
            return False
        if note_type not in NOTE_TYPES:
            raise ValueError(f"Unknown note type {note_type!r}; expected one of {NOTE_TYPES}")
        item.noteType = note_type
        self.presentation.on_item_content_changed(item_id)
        self.save()
        return True

    def set_color(self, item_id: str, color: str) -> bool:
        """Set the color of a sticky note or arrow."""
        item = self.items.get(item_id)
        if not isinstance(item, (StickyNote, Arrow)):
            return False
        if isinstance(item, StickyNote) and color not in STICKY_COLORS:
            raise ValueError(f"Unknown sticky color {color!r}; expected one of {STICKY_COLORS}")
        item.color = color
        self.presentation.on_item_content_changed(item_id)
        self.save()
        return True

    def add_task(self, item_id: str) -> Optional[TaskEntry]:
        item = self.items.get(item_id)
        if not isinstance(item, TaskList):
            return None
        task = item.add_task()
        self.presentation.on_item_content_changed(item_id)
        self.save()
        return task

    def update_task(self, item_id: str, task_id: int, text: Optional[str] = None,
                    checked: Optional[bool] = None) -> bool:
        item = self.items.get(item_id)
        task = item.find_task(task_id) if isinstance(item, TaskList) else None
        if task is None:
            return False
        if text is not None:
            task.text = text
        if checked is not None:
            task.checked = bool(checked)
            self.presentation.on_item_content_changed(item_id)
        self.save()
        return True

    def toggle_task(self, item_id: str, task_id: int) -> bool:
        item = self.items.get(item_id)
        task = item.find_task(task_id) if isinstance(item, TaskList) else None
        if task is None:
            return False
        return self.update_task(item_id, task_id, checked=not task.checked)

    def add_section(self, item_id: str) -> Optional[NoteSection]:
        item = self.items.get(item_id)
        if not isinstance(item, NoteBoard):
            return None
        section = item.add_section()
        self.presentation.on_item_content_changed(item_id)
        self.save()
        return section

    def update_section(self, item_id: str, section_id: int, title: Optional[str] = None,
                       content: Optional[str] = None) -> bool:
        item = self.items.get(item_id)
        section = item.find_section(section_id) if isinstance(item, NoteBoard) else None
        if section is None:
            return False
        if title is not None:
            section.title = title
        if content is not None:
            section.content = content
        self.save()
        return True
