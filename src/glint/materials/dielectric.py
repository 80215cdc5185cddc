"""Dielectric (glass/water) material implementation.

Transparent materials both reflect and refract:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for the Fresnel reflectance
    - Total internal reflection when sin(theta_t) would exceed 1

At each hit the material randomly picks reflection with probability equal to
the Fresnel reflectance, which rises toward 1 at grazing angles.

Example:
    >>> from glint.materials.dielectric import Dielectric
    >>> glass = Dielectric(ior=1.5)
    >>> bubble = Dielectric(ior=1.0 / 1.33)  # air inside water
"""

import math
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from glint.core.ray import reflect, refract, safe_normalize, schlick_reflectance
from glint.core.rng import next_float
from glint.materials.base import MaterialKind

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Dielectric:
    """Dielectric (glass/water) material.

    Attributes:
        ior: Index of refraction relative to the surrounding medium. Common
            values: Water=1.33, Glass=1.5, Diamond=2.4. Values below 1 model a
            less dense medium enclosed in a denser one.
    """

    ior: float = 1.5

    kind = MaterialKind.DIELECTRIC

    def __post_init__(self) -> None:
        ior = float(self.ior)
        if not math.isfinite(ior) or ior <= 0.0:
            raise ValueError(f"Index of refraction must be positive and finite, got {ior}")
        object.__setattr__(self, "ior", ior)


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    rng: ti.u32,
):
    """Compute the scattered ray direction for a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing the ray.
        front_face: 1 if the ray enters the material, 0 if it is leaving it.
        rng: The random stream state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, new_rng).
        Attenuation is white and dielectrics always scatter.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    unit_direction = safe_normalize(incident_direction)

    # Entering: n_air / n_material. Leaving: n_material / n_air.
    refraction_ratio = 1.0 / ior
    if front_face == 0:
        refraction_ratio = ior

    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)
    sin_theta = tm.sqrt(tm.max(0.0, 1.0 - cos_theta * cos_theta))

    cannot_refract = refraction_ratio * sin_theta > 1.0
    reflectance = schlick_reflectance(cos_theta, refraction_ratio)

    # Always draw so every hit consumes the same number of random values
    choice, state = next_float(rng)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract or choice < reflectance:
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, refraction_ratio)

    scattered_direction = safe_normalize(scattered_direction)

    return scattered_direction, attenuation, 1, state
