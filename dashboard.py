"""
dashboard.py

Project dashboard: lists projects most recently edited first and lets the
user create, open, rename and delete them.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QStackedLayout,
    QVBoxLayout,
    QWidget,
)

from debug_trace import trace
from storage import PersistenceError, ProjectIndex
from utils import format_last_edited

log = logging.getLogger(__name__)

EMPTY_MESSAGE = "No projects yet. Create one!"


class DashboardWidget(QWidget):
    """Project list with New / Open / Rename / Delete.

    Args:
        index: The project index to list and edit.
        on_open: Called with a project id when the user opens a project.
        parent: Parent widget.
    """

    def __init__(self, index: ProjectIndex, on_open: Callable[[str], None], parent=None):
        super().__init__(parent)
        self.index = index
        self.on_open = on_open

        title = QLabel("My Projects")
        title.setObjectName("dashboardTitle")

        self.new_btn = QPushButton("+ New Project")
        self.new_btn.clicked.connect(self.create_project)

        header = QHBoxLayout()
        header.addWidget(title)
        header.addStretch(1)
        header.addWidget(self.new_btn)

        self.list = QListWidget()
        self.list.itemActivated.connect(self._on_item_activated)
        self.list.currentItemChanged.connect(lambda *_: self._update_buttons())

        self.empty_label = QLabel(EMPTY_MESSAGE)
        self.empty_label.setObjectName("emptyState")
        self.empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self._stack = QStackedLayout()
        self._stack.addWidget(self.empty_label)
        self._stack.addWidget(self.list)

        self.open_btn = QPushButton("Open")
        self.open_btn.clicked.connect(self.open_selected)
        self.rename_btn = QPushButton("Rename...")
        self.rename_btn.clicked.connect(self.rename_selected)
        self.delete_btn = QPushButton("Delete")
        self.delete_btn.clicked.connect(self.delete_selected)

        buttons = QHBoxLayout()
        buttons.addStretch(1)
        buttons.addWidget(self.open_btn)
        buttons.addWidget(self.rename_btn)
        buttons.addWidget(self.delete_btn)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(32, 24, 32, 24)
        layout.addLayout(header)
        layout.addLayout(self._stack, 1)
        layout.addLayout(buttons)

        self.refresh()

    def refresh(self) -> None:
        """Rebuild the list from the index."""
        self.list.clear()
        entries = self.index.list()
        for entry in entries:
            row = QListWidgetItem(f"{entry.name}\n{format_last_edited(entry.last_modified)}")
            row.setData(Qt.ItemDataRole.UserRole, entry.id)
            self.list.addItem(row)
        self._stack.setCurrentWidget(self.list if entries else self.empty_label)
        if entries:
            self.list.setCurrentRow(0)
        self._update_buttons()

    def selected_id(self) -> Optional[str]:
        row = self.list.currentItem()
        if row is None:
            return None
        return row.data(Qt.ItemDataRole.UserRole)

    def _update_buttons(self):
        has = self.selected_id() is not None
        self.open_btn.setEnabled(has)
        self.rename_btn.setEnabled(has)
        self.delete_btn.setEnabled(has)

    def _on_item_activated(self, row: QListWidgetItem):
        self.on_open(row.data(Qt.ItemDataRole.UserRole))

    def _warn(self, title: str, e: Exception):
        log.error("%s: %s", title, e)
        QMessageBox.warning(self, title, f"{title}:\n{e}")

    def create_project(self):
        name, ok = QInputDialog.getText(self, "New Project", "Project name:")
        if not ok:
            return
        try:
            entry = self.index.create(name)
        except PersistenceError as e:
            self._warn("Could not create project", e)
            return
        if entry is None:
            trace("create_project: blank name ignored", "DASHBOARD")
            return
        self.refresh()
        self.on_open(entry.id)

    def open_selected(self):
        project_id = self.selected_id()
        if project_id is not None:
            self.on_open(project_id)

    def rename_selected(self):
        project_id = self.selected_id()
        entry = self.index.get(project_id) if project_id else None
        if entry is None:
            return
        name, ok = QInputDialog.getText(self, "Rename Project", "Project name:", text=entry.name)
        if not ok:
            return
        try:
            self.index.rename(project_id, name)
        except PersistenceError as e:
            self._warn("Could not rename project", e)
        self.refresh()

    def delete_selected(self):
        project_id = self.selected_id()
        entry = self.index.get(project_id) if project_id else None
        if entry is None:
            return
        answer = QMessageBox.question(
            self,
            "Delete Project",
            f"Are you sure you want to delete \"{entry.name}\"?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        if answer != QMessageBox.StandardButton.Yes:
            return
        try:
            self.index.delete(project_id)
        except PersistenceError as e:
            self._warn("Could not delete project", e)
        self.refresh()
