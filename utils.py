"""
utils.py

Color and formatting helpers shared by the board widgets and the dashboard.
"""

from __future__ import annotations

import datetime
from typing import Tuple

from PyQt6.QtGui import QColor


# Sticky note paper colors by persisted color name.
STICKY_FILL = {
    "yellow": "#fef3c7",
    "blue": "#bae6fd",
    "green": "#bbf7d0",
    "pink": "#fbcfe8",
}

# Arrow (fill, stroke) by persisted color name. Unknown names are read as hex.
ARROW_COLORS = {
    "blue": ("#3b82f6", "#2563eb"),
    "green": ("#22c55e", "#16a34a"),
    "red": ("#ef4444", "#dc2626"),
    "gray": ("#6b7280", "#4b5563"),
}

# Header accent of a note board by note type.
NOTE_TYPE_ACCENT = {
    "daily": "#3b82f6",
    "weekly": "#10b981",
    "monthly": "#f59e0b",
    "yearly": "#8b5cf6",
}


def hex_to_qcolor(s: str, fallback: QColor) -> QColor:
    """
    Parse a hex string to a QColor.

    Args:
        s: Hex string like "#RRGGBB" or "#RRGGBBAA"
        fallback: Color to return if parsing fails

    Returns:
        Parsed QColor or fallback
    """
    if not s:
        return QColor(fallback)
    s = s.strip().lstrip("#")
    try:
        if len(s) == 6:
            return QColor(int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16))
        if len(s) == 8:
            return QColor(int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16), int(s[6:8], 16))
    except ValueError:
        pass
    return QColor(fallback)


def arrow_colors(name: str) -> Tuple[QColor, QColor]:
    """Fill and stroke colors for an arrow's color name."""
    if name in ARROW_COLORS:
        fill, stroke = ARROW_COLORS[name]
        return QColor(fill), QColor(stroke)
    fill = hex_to_qcolor(name, QColor(ARROW_COLORS["blue"][0]))
    return fill, fill.darker(115)


def sticky_fill(name: str) -> QColor:
    return QColor(STICKY_FILL.get(name, STICKY_FILL["yellow"]))


def format_last_edited(millis: int) -> str:
    """Dashboard caption for a project's modification stamp."""
    stamp = datetime.datetime.fromtimestamp(millis / 1000.0)
    return f"Last edited: {stamp.strftime('%Y-%m-%d %H:%M')}"
