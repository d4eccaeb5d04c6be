"""
canvas/geometry.py

Outline of the block arrow item.
"""

from __future__ import annotations

from typing import List, Tuple

HEAD_MAX_LENGTH = 40.0
HEAD_LENGTH_RATIO = 0.4
SHAFT_THICKNESS_RATIO = 0.4


def arrow_path(w: float, h: float) -> List[Tuple[float, float]]:
    """Closed seven-point outline of a right-pointing block arrow.

    The shaft runs from ``x=0`` to the head base with 40% of the box height;
    the head spans the full height and ends at ``x=w``. The head length is
    ``min(40, 0.4 * w)``.

    Args:
        w: Box width (arrow length).
        h: Box height (head thickness).

    Returns:
        Seven ``(x, y)`` vertices in item-local coordinates; the last vertex
        connects back to the first.
    """
    head_len = min(HEAD_MAX_LENGTH, w * HEAD_LENGTH_RATIO)
    shaft_thick = h * SHAFT_THICKNESS_RATIO
    head_thick = h
    cy = h / 2

    shaft_top = cy - shaft_thick / 2
    shaft_bot = cy + shaft_thick / 2
    head_top = cy - head_thick / 2
    head_bot = cy + head_thick / 2
    neck = w - head_len

    return [
        (0.0, shaft_top),
        (neck, shaft_top),
        (neck, head_top),
        (w, cy),
        (neck, head_bot),
        (neck, shaft_bot),
        (0.0, shaft_bot),
    ]
