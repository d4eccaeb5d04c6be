"""
canvas/viewport.py

Screen <-> world coordinate transform with pan and anchored zoom.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict

# Defaults; the engine passes the configured values from settings.
ZOOM_SPEED = 0.001
MIN_SCALE = 0.2
MAX_SCALE = 3.0


def clamp(value: float, lo: float, hi: float) -> float:
    return min(max(lo, value), hi)


def _number(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    return float(value)


@dataclass
class Point:
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, d: Any) -> "Point":
        if not isinstance(d, dict):
            return cls()
        return cls(_number(d.get("x"), 0.0), _number(d.get("y"), 0.0))


@dataclass
class Viewport:
    """Pan offset and scale of the visible canvas.

    Screen coordinates are ``world * scale + pan``. Pan is unbounded;
    scale stays within ``[min_scale, max_scale]`` on every zoom step.
    """
    pan: Point = field(default_factory=Point)
    scale: float = 1.0

    def world_from_screen(self, screen_x: float, screen_y: float) -> Point:
        return Point(
            (screen_x - self.pan.x) / self.scale,
            (screen_y - self.pan.y) / self.scale,
        )

    def screen_from_world(self, world_x: float, world_y: float) -> Point:
        return Point(
            world_x * self.scale + self.pan.x,
            world_y * self.scale + self.pan.y,
        )

    def pan_by(self, dx: float, dy: float) -> None:
        self.pan.x += dx
        self.pan.y += dy

    def zoom_at(
        self,
        screen_x: float,
        screen_y: float,
        raw_delta: float,
        zoom_speed: float = ZOOM_SPEED,
        min_scale: float = MIN_SCALE,
        max_scale: float = MAX_SCALE,
    ) -> float:
        """Zoom by a wheel delta keeping the world point under the cursor fixed.

        Positive deltas (wheel towards the user) zoom out.

        Returns:
            The new scale.
        """
        new_scale = clamp(self.scale - raw_delta * zoom_speed, min_scale, max_scale)
        anchor = self.world_from_screen(screen_x, screen_y)
        self.pan.x = screen_x - anchor.x * new_scale
        self.pan.y = screen_y - anchor.y * new_scale
        self.scale = new_scale
        return new_scale

    @classmethod
    def from_snapshot_fields(cls, pan: Any, scale: Any,
                             min_scale: float = MIN_SCALE,
                             max_scale: float = MAX_SCALE) -> "Viewport":
        """Build a viewport from persisted ``pan``/``scale`` values.

        Missing values fall back to ``{0, 0}`` and ``1``; a stored scale
        outside the limits is clamped.
        """
        s = _number(scale, 1.0) or 1.0
        return cls(pan=Point.from_dict(pan), scale=clamp(s, min_scale, max_scale))
