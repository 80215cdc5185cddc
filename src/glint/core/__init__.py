"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure and vector utilities
    rng: Per-pixel PCG random streams for reproducible sampling
    integrator: Light transport and the render entry points
    image: Host-side image buffer produced by a render
    progressive: Pass-by-pass accumulation for interactive preview

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    RAY_EPSILON,
    T_MAX,
    T_MIN,
    Ray,
    build_onb_from_normal,
    cross,
    dot,
    length,
    length_squared,
    local_to_world,
    make_bounded_ray,
    make_ray,
    near_zero,
    normalize_or,
    random_cosine_direction,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    safe_normalize,
    sample_cosine_hemisphere,
    schlick_reflectance,
    vec3,
)
from .rng import next_float, next_uint, pcg_hash, seed_stream

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from glint.core.integrator or glint.core.progressive when needed.

__all__ = [
    "RAY_EPSILON",
    "T_MAX",
    "T_MIN",
    "Ray",
    "ray_at",
    "make_ray",
    "make_bounded_ray",
    "vec3",
    "length",
    "length_squared",
    "safe_normalize",
    "normalize_or",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "random_cosine_direction",
    "build_onb_from_normal",
    "local_to_world",
    "sample_cosine_hemisphere",
    "pcg_hash",
    "seed_stream",
    "next_uint",
    "next_float",
]
