"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) so they run inside the
parallel render kernel. The host-side ``Sphere`` is what scenes are built
from; ``SphereStruct`` is its device-side representation.
"""

from .sphere import (
    MIN_RADIUS,
    HitRecord,
    Sphere,
    SphereStruct,
    hit_sphere,
    make_miss_record,
)

__all__ = [
    "Sphere",
    "SphereStruct",
    "HitRecord",
    "hit_sphere",
    "make_miss_record",
    "MIN_RADIUS",
]
