"""Background (miss) color of a scene.

Rays that leave the scene without hitting anything pick up the background
color. The background is a vertical gradient between a horizon color and a
zenith color, blended by the height of the ray direction:

    t = 0.5 * (unit_direction.y + 1)
    color = horizon + t * (zenith - horizon)

A solid background uses the same color for both ends.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from glint.core.ray import safe_normalize

# Type alias for 3D vectors
vec3 = tm.vec3


def _validate_color(name: str, color: Sequence[float]) -> tuple[float, float, float]:
    if len(color) != 3:
        raise ValueError(f"Background {name} must have 3 components, got {len(color)}")
    for component in color:
        if not math.isfinite(component) or component < 0.0:
            raise ValueError(f"Background {name} components must be finite and >= 0, got {color}")
    return (float(color[0]), float(color[1]), float(color[2]))


@dataclass(frozen=True)
class Background:
    """Sky gradient returned for rays that miss every primitive.

    Attributes:
        horizon: Color for horizontal and downward rays (RGB).
        zenith: Color for straight-up rays (RGB).
    """

    horizon: tuple[float, float, float] = (1.0, 1.0, 1.0)
    zenith: tuple[float, float, float] = (0.5, 0.7, 1.0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "horizon", _validate_color("horizon", self.horizon))
        object.__setattr__(self, "zenith", _validate_color("zenith", self.zenith))

    @classmethod
    def solid(cls, color: Sequence[float]) -> "Background":
        """Create a background with the same color in every direction."""
        return cls(horizon=tuple(color), zenith=tuple(color))

    def color(self, direction: Sequence[float]) -> tuple[float, float, float]:
        """Evaluate the background for a direction on the host."""
        length = math.sqrt(sum(c * c for c in direction))
        y = direction[1] / length if length > 0.0 else 0.0
        t = 0.5 * (y + 1.0)
        return tuple(h + t * (z - h) for h, z in zip(self.horizon, self.zenith))


_background_horizon = ti.Vector.field(3, dtype=ti.f32, shape=())
_background_zenith = ti.Vector.field(3, dtype=ti.f32, shape=())


def upload_background(background: Background) -> None:
    """Copy a background into the device fields read by ``background_color``."""
    _background_horizon[None] = vec3(*background.horizon)
    _background_zenith[None] = vec3(*background.zenith)


@ti.func
def background_color(direction: vec3) -> vec3:
    """Color of a ray that missed every primitive.

    Args:
        direction: The ray direction (any length).

    Returns:
        The blended background color.
    """
    unit_direction = safe_normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    horizon = _background_horizon[None]
    return horizon + t * (_background_zenith[None] - horizon)
