"""Sphere primitive with robust ray-sphere intersection.

This module provides the host-side ``Sphere`` primitive used to build scenes,
the device-side ``SphereStruct`` and ``HitRecord`` dataclasses, and the
``hit_sphere`` intersection function. Intersection uses the robust quadratic
formula from Ray Tracing Gems to avoid catastrophic cancellation when b^2 is
nearly equal to 4ac.

A negative radius is legal: it flips the outward normal, which turns a
dielectric sphere into a hollow bubble when nested inside another one. A
sphere with zero or non-finite radius, or a non-finite center, is degenerate
and never reports a hit.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from glint.geometry.sphere import SphereStruct, hit_sphere
    >>> sphere = SphereStruct(center=ti.math.vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti
import taichi.math as tm

from glint.core.ray import Ray, ray_at

if TYPE_CHECKING:
    from glint.materials.material import Material

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Spheres with |radius| at or below this never report a hit
MIN_RADIUS = 1e-8

# Host values above this overflow to Inf in the f32 device fields
_F32_MAX = float(np.finfo(np.float32).max)


@dataclass(frozen=True)
class Sphere:
    """A sphere primitive bound to one material.

    Attributes:
        center: The center point of the sphere (x, y, z).
        radius: The radius. Negative values flip the outward normal.
        material: The immutable material shared by reference.
    """

    center: tuple[float, float, float]
    radius: float
    material: "Material"

    def __post_init__(self) -> None:
        # Accept any 3-sequence but store a plain float tuple
        object.__setattr__(self, "center", tuple(float(c) for c in self.center))
        object.__setattr__(self, "radius", float(self.radius))
        if len(self.center) != 3:
            raise ValueError(f"Sphere center must have 3 components, got {self.center}")

    @property
    def is_degenerate(self) -> bool:
        """Whether the sphere can never be hit (zero or non-finite geometry)."""
        if not all(math.isfinite(c) and abs(c) <= _F32_MAX for c in self.center):
            return True
        if not math.isfinite(self.radius) or abs(self.radius) > _F32_MAX:
            return True
        return abs(self.radius) <= MIN_RADIUS


@ti.dataclass
class SphereStruct:
    """Device-side sphere data.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere.
        material_id: Index of the sphere's material in the material registry.
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The unit surface normal at the intersection point. Always
            faces against the ray direction (toward the side the ray came
            from). Only valid if hit == 1.
        front_face: 1 if the ray hit the outside of the surface, 0 if it hit
            from inside. Only valid if hit == 1.
        material_id: The material ID of the hit primitive, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def _is_hittable(sphere: SphereStruct) -> ti.i32:
    """Check that a sphere has usable geometry (finite, non-zero radius)."""
    ok = ti.abs(sphere.radius) > MIN_RADIUS and not tm.isnan(sphere.radius)
    ok = ok and not tm.isinf(sphere.radius)
    for c in ti.static(range(3)):
        ok = ok and not tm.isnan(sphere.center[c]) and not tm.isinf(sphere.center[c])
    return ok


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of the discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1. A zero discriminant gives t0 == t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant)) avoids subtracting near-equal values
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Fall back to standard formula for edge cases
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(ray: Ray, sphere: SphereStruct, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Test for ray-sphere intersection within the open interval (t_min, t_max).

    Solves |O + tD - C|^2 = r^2, written with the half-b coefficients

        a = D . D
        h = D . (O - C)
        c = (O - C) . (O - C) - r^2

    and returns the nearer root inside the interval. A ray tangent to the
    sphere has a zero discriminant and reports exactly one hit.

    Args:
        ray: The ray to test (its direction need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Roots at or below t_min are rejected (avoids self-intersection).
        t_max: Roots at or above t_max are rejected (closest hit so far).

    Returns:
        A HitRecord. Check its hit field to determine if intersection occurred.
    """
    result = make_miss_record()

    oc = ray.origin - sphere.center
    a = tm.dot(ray.direction, ray.direction)
    h = tm.dot(ray.direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - a * c

    if _is_hittable(sphere) and a > 0.0 and discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = t1
            valid = (t > t_min) and (t < t_max)

        if valid:
            point = ray_at(ray, t)

            # Dividing by the signed radius lets negative radii flip the normal
            outward_normal = (point - sphere.center) / sphere.radius

            front_face = 1
            normal = outward_normal
            if tm.dot(ray.direction, outward_normal) > 0.0:
                front_face = 0
                normal = -outward_normal

            result = HitRecord(
                hit=1,
                t=t,
                point=point,
                normal=normal,
                front_face=front_face,
                material_id=sphere.material_id,
            )

    return result
