"""Shared definitions for material models.

Materials form a closed set of variants identified by ``MaterialKind``. Each
variant is an immutable host-side value object that knows how to describe
itself to the device-side material registry.
"""

import math
from collections.abc import Sequence
from enum import IntEnum


class MaterialKind(IntEnum):
    """Tag of a material variant, used for scatter dispatch in kernels."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


def validate_albedo(albedo: Sequence[float]) -> tuple[float, float, float]:
    """Check an albedo color and return it as a float tuple.

    Args:
        albedo: The reflectance color as (R, G, B).

    Returns:
        The albedo as a tuple of three floats.

    Raises:
        ValueError: If the color does not have three components or any
            component is outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")

    for i, component in enumerate(albedo):
        if not math.isfinite(component) or component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )

    return (float(albedo[0]), float(albedo[1]), float(albedo[2]))
