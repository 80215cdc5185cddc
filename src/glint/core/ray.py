"""Ray data structure and vector utilities for ray tracing.

This module provides the Ray dataclass, the vector helpers the rest of the
engine builds on, and the random direction samplers used for anti-aliasing,
diffuse scattering, fuzzy reflection and depth of field. Everything here is a
Taichi function (``@ti.func``) usable inside kernels.

Unit-length requirements:
    - ``reflect`` expects a unit normal.
    - ``refract`` expects a unit incident direction and a unit normal.
    - ``build_onb_from_normal`` and ``sample_cosine_hemisphere`` expect a unit
      normal.
    - ``safe_normalize`` and ``normalize_or`` accept any vector, including the
      zero vector, and never produce NaN.

Random samplers take the caller's random stream state (see ``glint.core.rng``)
and return the updated state as their last result. They are analytic (no
rejection loops), so each call consumes a fixed number of draws.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = make_ray(origin, direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from glint.core.rng import next_float

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Smallest t accepted for any ray (primary or secondary)
T_MIN = 1e-3

# Largest t accepted for any ray
T_MAX = 1e10

# Distance secondary ray origins are pushed off the surface along the normal
RAY_EPSILON = 1e-3

# Squared length below which a vector is treated as zero
NORMALIZE_EPSILON = 1e-16


@ti.dataclass
class Ray:
    """A ray with an origin point, a direction and a valid parametric range.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length.
        t_min: Smallest parameter value considered a valid hit.
        t_max: Largest parameter value considered a valid hit.
    """

    origin: vec3
    direction: vec3
    t_min: ti.f32
    t_max: ti.f32


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray valid over the default range (T_MIN, T_MAX)."""
    return Ray(origin=origin, direction=direction, t_min=T_MIN, t_max=T_MAX)


@ti.func
def make_bounded_ray(origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32) -> Ray:
    """Create a ray valid over (t_min, t_max)."""
    return Ray(origin=origin, direction=direction, t_min=t_min, t_max=t_max)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def safe_normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v, or the zero vector when v
        has (near) zero length.
    """
    result = vec3(0.0, 0.0, 0.0)
    len_sq = tm.dot(v, v)
    if len_sq > NORMALIZE_EPSILON:
        result = v / ti.sqrt(len_sq)
    return result


@ti.func
def normalize_or(v: vec3, fallback: vec3) -> vec3:
    """Normalize a vector, substituting fallback when it has zero length.

    Args:
        v: The input vector.
        fallback: Returned unchanged when v is (near) zero.

    Returns:
        The unit vector along v, or fallback.
    """
    result = fallback
    len_sq = tm.dot(v, v)
    if len_sq > NORMALIZE_EPSILON:
        result = v / ti.sqrt(len_sq)
    return result


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a unit normal.

    Computes R = I - 2(I . N)N. The result has the length of the incident
    vector.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (must be unit length).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32) -> vec3:
    """Refract a unit incident vector through a surface using Snell's law.

    Args:
        incident: The incoming direction (must be unit length).
        normal: The surface normal facing the incident side (unit length).
        eta: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction vector, or the zero vector if total internal
        reflection occurs.
    """
    cos_i = -tm.dot(incident, normal)
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    result = vec3(0.0, 0.0, 0.0)
    if sin2_t <= 1.0:
        cos_t = ti.sqrt(1.0 - sin2_t)
        result = eta * incident + (eta * cos_i - cos_t) * normal
    return result


@ti.func
def schlick_reflectance(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between the incident direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        The approximate fraction of light reflected, in [0, 1].
    """
    r0 = ((1.0 - ref_idx) / (1.0 + ref_idx)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_unit_vector(rng: ti.u32):
    """Generate a random unit vector uniformly distributed on the sphere.

    Args:
        rng: The random stream state.

    Returns:
        A tuple of (unit_vector, new_rng).
    """
    u1, state = next_float(rng)
    u2, state = next_float(state)
    z = 1.0 - 2.0 * u1
    r = ti.sqrt(ti.max(0.0, 1.0 - z * z))
    phi = 2.0 * tm.pi * u2
    return vec3(r * ti.cos(phi), r * ti.sin(phi), z), state


@ti.func
def random_in_unit_sphere(rng: ti.u32):
    """Generate a random point uniformly distributed inside the unit sphere.

    Args:
        rng: The random stream state.

    Returns:
        A tuple of (point, new_rng) with length(point) <= 1.
    """
    direction, state = random_unit_vector(rng)
    u, state = next_float(state)
    return direction * (u ** (1.0 / 3.0)), state


@ti.func
def random_in_unit_disk(rng: ti.u32):
    """Generate a random point uniformly distributed in the unit disk (z = 0).

    Used for sampling the camera lens.

    Args:
        rng: The random stream state.

    Returns:
        A tuple of (point, new_rng) with x^2 + y^2 <= 1.
    """
    u1, state = next_float(rng)
    u2, state = next_float(state)
    r = ti.sqrt(u1)
    theta = 2.0 * tm.pi * u2
    return vec3(r * ti.cos(theta), r * ti.sin(theta), 0.0), state


@ti.func
def random_cosine_direction(rng: ti.u32):
    """Generate a direction with cosine-weighted distribution about +z.

    The distribution has PDF = cos(theta) / pi.

    Args:
        rng: The random stream state.

    Returns:
        A tuple of (direction in the local z-up frame, new_rng).
    """
    r1, state = next_float(rng)
    r2, state = next_float(state)
    phi = 2.0 * tm.pi * r1
    sqrt_r2 = ti.sqrt(r2)
    x = ti.cos(phi) * sqrt_r2
    y = ti.sin(phi) * sqrt_r2
    z = ti.sqrt(1.0 - r2)
    return vec3(x, y, z), state


@ti.func
def build_onb_from_normal(normal: vec3):
    """Build an orthonormal basis whose z-axis is the given unit normal.

    Returns:
        A tuple (tangent, bitangent, normal).
    """
    # Choose a vector not parallel to normal
    a = vec3(1.0, 0.0, 0.0)
    if ti.abs(normal.x) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = safe_normalize(cross(a, normal))
    bitangent = cross(normal, tangent)
    return tangent, bitangent, normal


@ti.func
def local_to_world(local_dir: vec3, tangent: vec3, bitangent: vec3, normal: vec3) -> vec3:
    """Transform a direction from a local z-up frame to world coordinates."""
    return local_dir.x * tangent + local_dir.y * bitangent + local_dir.z * normal


@ti.func
def sample_cosine_hemisphere(normal: vec3, rng: ti.u32):
    """Cosine-weighted hemisphere sampling around a unit normal.

    Args:
        normal: The surface normal defining the hemisphere orientation.
        rng: The random stream state.

    Returns:
        A tuple of (direction, pdf, new_rng) where pdf = cos(theta) / pi.
    """
    local_dir, state = random_cosine_direction(rng)
    tangent, bitangent, n = build_onb_from_normal(normal)
    world_dir = local_to_world(local_dir, tangent, bitangent, n)
    pdf = tm.dot(world_dir, normal) / tm.pi
    return world_dir, pdf, state
