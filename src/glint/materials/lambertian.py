"""Lambertian (ideal diffuse) material implementation.

Incident light is scattered over the hemisphere around the surface normal
with a cosine-weighted distribution (PDF = cos(theta) / pi). This is the
distribution of an ideal diffuse reflector, so the Monte Carlo weight
BRDF * cos / pdf reduces to the albedo:

    (albedo / pi) * cos_theta / (cos_theta / pi) = albedo

Example:
    >>> from glint.materials.lambertian import Lambertian
    >>> red = Lambertian(albedo=(0.8, 0.1, 0.1))
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from glint.core.ray import near_zero, sample_cosine_hemisphere
from glint.materials.base import MaterialKind, validate_albedo

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Lambertian:
    """Lambertian (ideal diffuse) material.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
    """

    albedo: tuple[float, float, float]

    kind = MaterialKind.LAMBERTIAN

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, rng: ti.u32):
    """Sample a scattered ray direction for a Lambertian surface.

    Args:
        albedo: The diffuse reflectance color (RGB).
        normal: The unit surface normal at the hit point, facing the ray.
        rng: The random stream state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, new_rng).
        Lambertian surfaces always scatter.
    """
    scattered_direction, _, state = sample_cosine_hemisphere(normal, rng)

    # A sample lying in the tangent plane can cancel out to nothing
    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo, 1, state
