"""
main.py

PlanBoard - Main Application

PyQt6 application for freeform personal planning boards with:
- A project dashboard (create, open, rename, delete)
- An infinite canvas with pan and cursor-anchored zoom
- Task lists, note boards, sticky notes and arrows that can be dragged,
  resized and rotated
- Automatic save of every change

Usage:
    python main.py

Dependencies:
    pip install PyQt6 platformdirs tomli-w jsonschema

Environment:
    PLANBOARD_TRACE=1 (optional, enables debug tracing to stderr)
"""

from __future__ import annotations

import logging
import sys

from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import QApplication, QMainWindow, QMessageBox, QStackedWidget, QToolBar

from canvas.scene import BoardScene
from canvas.view import BoardView
from dashboard import DashboardWidget
from debug_trace import close_log, configure, trace, trace_exception
from models import ItemType
from session import ProjectSession
from settings import SettingsManager, get_settings
from storage import JsonFileStore, PersistenceError, PersistenceGateway, ProjectIndex
from styles import DEFAULT_STYLE, STYLES

log = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Main application window: dashboard and board workspace in a stack.

    Args:
        settings_manager: The SettingsManager instance for application settings.
    """

    def __init__(self, settings_manager: SettingsManager):
        super().__init__()
        self.settings_manager = settings_manager
        self.setWindowTitle("PlanBoard")

        zoom = settings_manager.settings.canvas.zoom
        store = JsonFileStore(settings_manager.get_data_dir())
        self.gateway = PersistenceGateway(store)
        self.index = ProjectIndex(store, self.gateway)

        # Workspace
        self.scene = BoardScene()
        self.view = BoardView(self.scene)
        self.session = ProjectSession(
            self.gateway,
            self.index,
            presentation=self.scene,
            on_save_failed=self._on_save_failed,
            zoom_speed=zoom.speed,
            min_scale=zoom.min_scale,
            max_scale=zoom.max_scale,
        )

        # Dashboard
        self.dashboard = DashboardWidget(self.index, self.open_project)

        self.stack = QStackedWidget()
        self.stack.addWidget(self.dashboard)
        self.stack.addWidget(self.view)
        self.setCentralWidget(self.stack)

        self._build_toolbar()
        self.show_dashboard()

    def _build_toolbar(self):
        """Build the workspace toolbar."""
        tb = QToolBar("Board")
        tb.setMovable(False)
        self.addToolBar(tb)
        self.toolbar = tb

        back = QAction("← Dashboard", self)
        back.setShortcut(QKeySequence("Ctrl+D"))
        back.setStatusTip("Save and return to the project list")
        back.triggered.connect(self.show_dashboard)
        tb.addAction(back)
        tb.addSeparator()

        def add_item_action(text: str, type_tag: str, tooltip: str):
            act = QAction(text, self)
            act.setToolTip(tooltip)
            act.setStatusTip(tooltip)
            act.triggered.connect(lambda checked=False, t=type_tag: self.add_item(t))
            tb.addAction(act)
            return act

        self.act_task_list = add_item_action("Task List", ItemType.TASK_LIST, "Add a checklist")
        self.act_note_board = add_item_action("Note Board", ItemType.NOTE_BOARD, "Add a dated planning board")
        self.act_sticky = add_item_action("Sticky Note", ItemType.STICKY_NOTE, "Add a sticky note")
        self.act_arrow = add_item_action("Arrow", ItemType.ARROW, "Add an arrow")

    # -- navigation --

    def open_project(self, project_id: str):
        trace(f"open_project {project_id}", "MAIN")
        try:
            self.session.open(project_id)
        except PersistenceError as e:
            log.error("Could not open project %s: %s", project_id, e)
            QMessageBox.warning(self, "Open Project", f"Could not open project:\n{e}")
            self.show_dashboard()
            return
        entry = self.index.get(project_id)
        self.setWindowTitle(f"PlanBoard - {entry.name}" if entry else "PlanBoard")
        self.toolbar.setVisible(True)
        self.stack.setCurrentWidget(self.view)
        self.view.viewport().update()
        self.statusBar().showMessage("Drag empty canvas to pan, wheel to zoom. Alt+drag moves an item from anywhere.")

    def show_dashboard(self):
        """Save the open project, if any, and show the project list."""
        if self.session.is_open:
            self.session.close()
        self.setWindowTitle("PlanBoard")
        self.toolbar.setVisible(False)
        self.dashboard.refresh()
        self.stack.setCurrentWidget(self.dashboard)
        self.statusBar().clearMessage()

    # -- workspace actions --

    def add_item(self, type_tag: str):
        """Create an item centred in the visible canvas."""
        engine = self.session.engine
        if engine is None:
            return
        vp = self.view.viewport().rect()
        engine.create_item(type_tag, vp.width() / 2, vp.height() / 2)

    def _on_save_failed(self, message: str):
        self.statusBar().showMessage(f"Save failed: {message}", 8000)

    def closeEvent(self, event):
        if self.session.is_open:
            self.session.close()
        super().closeEvent(event)


def main():
    """Application entry point."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    trace("Application starting", "MAIN")
    app = QApplication(sys.argv)

    # Load settings (use singleton to ensure single instance)
    trace("Loading settings", "MAIN")
    settings_manager = get_settings()

    # Ensure settings file has all sections
    settings_manager.ensure_file_complete()

    debug = settings_manager.settings.debug
    configure(debug.trace, debug.log_file, debug.trace_move)

    # Apply saved theme (or default if not set)
    initial_style = settings_manager.settings.theme
    if initial_style not in STYLES:
        initial_style = DEFAULT_STYLE
        settings_manager.settings.theme = initial_style
    app.setStyleSheet(STYLES[initial_style])

    # Save settings on application quit
    def save_on_quit():
        trace("Saving settings on quit", "MAIN")
        settings_manager.save()
        close_log()

    app.aboutToQuit.connect(save_on_quit)

    trace("Creating MainWindow", "MAIN")
    w = MainWindow(settings_manager)
    w.resize(1400, 900)
    trace("Showing MainWindow", "MAIN")
    w.show()
    trace("Entering event loop", "MAIN")
    sys.exit(app.exec())


if __name__ == "__main__":
    # Set up global exception handler to catch crashes
    def excepthook(exc_type, exc_value, exc_tb):
        import traceback
        trace("UNCAUGHT EXCEPTION:", "CRASH")
        trace("".join(traceback.format_exception(exc_type, exc_value, exc_tb)), "CRASH")
        close_log()
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = excepthook

    try:
        main()
    except Exception as e:
        trace(f"FATAL: {type(e).__name__}: {e}", "CRASH")
        trace_exception("Fatal exception")
        close_log()
        raise
