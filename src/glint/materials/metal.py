"""Metal (specular reflective) material implementation.

Metals reflect the incident ray about the surface normal:

    R = I - 2(I . N)N

For rough metals the reflected direction is perturbed by a random unit
vector scaled by the fuzz parameter. Perturbed rays that end up at or below
the surface are absorbed, which keeps grazing reflections from leaking light
through the surface.

Example:
    >>> from glint.materials.metal import Metal
    >>> gold = Metal(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from glint.core.ray import random_unit_vector, reflect, safe_normalize
from glint.materials.base import MaterialKind, validate_albedo

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Metal:
    """Metal (specular reflective) material.

    Attributes:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: Surface roughness, clamped to [0, 1].
            0 = perfect mirror, 1 = maximum fuzziness.
    """

    albedo: tuple[float, float, float]
    fuzz: float = 0.0

    kind = MaterialKind.METAL

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))
        fuzz = float(self.fuzz)
        if fuzz != fuzz:
            raise ValueError("Metal fuzz must not be NaN")
        object.__setattr__(self, "fuzz", min(max(fuzz, 0.0), 1.0))


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    rng: ti.u32,
):
    """Compute the scattered ray direction for a metal surface.

    Args:
        albedo: The reflective color (RGB).
        fuzz: The surface roughness in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing the ray.
        rng: The random stream state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, new_rng):
        - scattered_direction: The unit reflected direction, or the zero
          vector when absorbed.
        - attenuation: The albedo.
        - did_scatter: 1 if the ray leaves above the surface, 0 if absorbed.
    """
    reflected = reflect(safe_normalize(incident_direction), normal)

    offset, state = random_unit_vector(rng)
    scattered_direction = safe_normalize(reflected + fuzz * offset)

    # Zero-length perturbed directions also land here (dot == 0)
    did_scatter = 1
    if tm.dot(scattered_direction, normal) <= 0.0:
        did_scatter = 0
        scattered_direction = vec3(0.0, 0.0, 0.0)

    return scattered_direction, albedo, did_scatter, state
