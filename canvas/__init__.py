"""
canvas package

Viewport transform, item geometry and the interaction engine of the board.

The Qt presentation classes live in ``canvas.items``, ``canvas.scene`` and
``canvas.view`` and are imported from there directly.
"""

from canvas.viewport import Point, Viewport
from canvas.geometry import arrow_path

__all__ = [
    "Point",
    "Viewport",
    "arrow_path",
]
