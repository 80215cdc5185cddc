"""Scene-level primitive intersection testing.

This module stores the committed scene's spheres in Taichi fields and
provides the closest-hit query used by the integrator. Spheres are tested in
insertion order against a shrinking open interval, so when two primitives
report exactly the same t the one added first wins.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from glint.scene.intersection import add_sphere, clear_scene, query_hit
    >>> clear_scene()
    >>> add_sphere((0, 0, -1), 0.5, material_id=0)
    >>> info = query_hit((0, 0, 0), (0, 0, -1), 1e-3, 1e10)
"""

from dataclasses import dataclass
from typing import Optional

import taichi as ti
import taichi.math as tm

from glint.core.ray import make_bounded_ray
from glint.geometry.sphere import HitRecord, SphereStruct, hit_sphere, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


# Maximum number of primitives supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Result slot for host-side queries
_query_result = HitRecord.field(shape=())


@dataclass(frozen=True)
class HitInfo:
    """Host-side copy of a ray-scene intersection.

    Attributes:
        t: Ray parameter of the hit.
        point: World-space hit point.
        normal: Unit normal facing against the ray.
        front_face: True if the ray hit the outside of the surface.
        material_id: Index of the hit primitive's material.
    """

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    front_face: bool
    material_id: int


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive count to zero. The field data is not cleared but
    will be overwritten when new primitives are added.
    """
    num_spheres[None] = 0


def add_sphere(center, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere as an (x, y, z) sequence.
        radius: The radius of the sphere. Negative values flip the normal.
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = vec3(center[0], center[1], center[2])
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test a ray against all spheres in the scene.

    Iterates through all spheres in insertion order, tracking the closest
    hit with t strictly inside (t_min, t_max).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Lower bound of the open hit interval.
        t_max: Upper bound of the open hit interval.

    Returns:
        A HitRecord for the closest intersection, or a miss record if no
        intersection was found.
    """
    closest_t = t_max
    result = make_miss_record()
    ray = make_bounded_ray(ray_origin, ray_direction, t_min, t_max)

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        sphere = SphereStruct(
            center=sphere_centers[i],
            radius=sphere_radii[i],
            material_id=sphere_material_ids[i],
        )
        rec = hit_sphere(ray, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result


@ti.kernel
def _query_kernel(origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32):
    _query_result[None] = intersect_scene(origin, direction, t_min, t_max)


def query_hit(origin, direction, t_min: float, t_max: float) -> Optional[HitInfo]:
    """Find the closest hit of a ray from the host.

    Args:
        origin: Ray origin as an (x, y, z) sequence.
        direction: Ray direction as an (x, y, z) sequence.
        t_min: Lower bound of the open hit interval.
        t_max: Upper bound of the open hit interval.

    Returns:
        A HitInfo for the closest intersection, or None on a miss.
    """
    _query_kernel(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        t_min,
        t_max,
    )
    rec = _query_result[None]
    if rec.hit == 0:
        return None

    point = rec.point
    normal = rec.normal
    return HitInfo(
        t=float(rec.t),
        point=(float(point[0]), float(point[1]), float(point[2])),
        normal=(float(normal[0]), float(normal[1]), float(normal[2])),
        front_face=bool(rec.front_face),
        material_id=int(rec.material_id),
    )
