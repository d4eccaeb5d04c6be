"""
session.py

Lifecycle of the open project: load its snapshot, build the canvas engine
around it, save through the gateway, and tear down on close.

Only one project is open at a time. Opening another project saves and tears
down the current one first.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from canvas.engine import CanvasEngine, Presentation
from canvas.viewport import MAX_SCALE, MIN_SCALE, ZOOM_SPEED
from debug_trace import trace, trace_call
from models import ProjectSnapshot
from storage import PersistenceError, PersistenceGateway, ProjectIndex

log = logging.getLogger(__name__)


class ProjectSession:
    """Owns the engine of the currently open project.

    Args:
        gateway: Snapshot persistence.
        index: Project index; touched after every successful save.
        presentation: Renderer of the open project.
        on_save_failed: Called with the error text when a save fails.
        zoom_speed: Passed to the engine.
        min_scale: Passed to the engine.
        max_scale: Passed to the engine.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        index: ProjectIndex,
        presentation: Optional[Presentation] = None,
        on_save_failed: Optional[Callable[[str], None]] = None,
        zoom_speed: float = ZOOM_SPEED,
        min_scale: float = MIN_SCALE,
        max_scale: float = MAX_SCALE,
    ):
        self.gateway = gateway
        self.index = index
        self.presentation = presentation or Presentation()
        self.on_save_failed = on_save_failed
        self.zoom_speed = zoom_speed
        self.min_scale = min_scale
        self.max_scale = max_scale

        self.project_id: Optional[str] = None
        self.engine: Optional[CanvasEngine] = None
        self.last_error: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    @trace_call("SESSION")
    def open(self, project_id: str) -> CanvasEngine:
        """Open *project_id*, closing the current project first.

        A project without a stored snapshot opens empty.

        Raises:
            PersistenceError: If the stored snapshot cannot be read. The
                previously open project has already been closed by then.
        """
        if self.engine is not None:
            self.close()

        snapshot = self.gateway.load(project_id)
        if snapshot is None:
            log.info("Project %s has no snapshot; starting empty", project_id)
            snapshot = ProjectSnapshot()

        self.project_id = project_id
        self.engine = CanvasEngine(
            snapshot,
            presentation=self.presentation,
            saver=self._save_snapshot,
            zoom_speed=self.zoom_speed,
            min_scale=self.min_scale,
            max_scale=self.max_scale,
        )
        trace(f"open {project_id}", "SESSION")

        self.presentation.on_engine_attached(self.engine)
        for item in snapshot.items:
            self.presentation.on_item_created(item)
        self.presentation.on_viewport_changed(snapshot.viewport.pan, snapshot.viewport.scale)
        return self.engine

    @trace_call("SESSION")
    def close(self) -> bool:
        """Save the open project and tear it down.

        Returns:
            The result of the final save; True when nothing was open.
        """
        if self.engine is None:
            return True
        engine = self.engine
        saved = engine.save()
        trace(f"close {self.project_id} saved={saved}", "SESSION")

        for item_id in engine.items.ids():
            self.presentation.on_item_removed(item_id)
        self.presentation.on_engine_detached()

        self.engine = None
        self.project_id = None
        return saved

    def _save_snapshot(self, snapshot: ProjectSnapshot) -> bool:
        if self.project_id is None:
            return False
        try:
            self.gateway.save(self.project_id, snapshot)
            self.index.touch(self.project_id)
        except PersistenceError as e:
            self.last_error = str(e)
            log.error("Saving project %s failed: %s", self.project_id, e)
            if self.on_save_failed:
                self.on_save_failed(str(e))
            return False
        self.last_error = None
        return True
