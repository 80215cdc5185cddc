"""Look-at camera with optional thin-lens depth of field.

This module implements the camera that generates primary rays for rendering.
The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view specification
- Aspect ratio taken from the camera or from the output image
- Thin-lens defocus blur (aperture and focus distance)
- Jittered sampling for anti-aliasing

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from glint.camera.camera import Camera, setup_camera
    >>>
    >>> camera = Camera(
    ...     lookfrom=(0.0, 0.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=60.0,
    ... )
    >>> setup_camera(camera, aspect_ratio=16.0 / 9.0)
"""

import math
from dataclasses import dataclass, replace
from typing import Optional

import numpy as np
import taichi as ti
import taichi.math as tm

from glint.core.ray import Ray, make_ray, random_in_unit_disk, vec3
from glint.core.rng import next_float
from glint.errors import ConfigurationError

# Closest the eye may get to the look-at point when dollying
MIN_VIEW_DISTANCE = 1e-3

# Pitch is clamped so the view never lines up with vup
_MAX_ELEVATION = math.radians(89.0)

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Configuration for a perspective camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the viewport. None uses the
            aspect ratio of the image being rendered.
        aperture: Lens diameter. 0 gives a pinhole camera with everything in
            focus.
        focus_distance: Distance to the plane of perfect focus. None uses the
            distance from lookfrom to lookat.
    """

    lookfrom: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 90.0
    aspect_ratio: Optional[float] = None
    aperture: float = 0.0
    focus_distance: Optional[float] = None

    def __post_init__(self) -> None:
        for name in ("lookfrom", "lookat", "vup"):
            value = tuple(float(c) for c in getattr(self, name))
            if len(value) != 3:
                raise ConfigurationError(f"Camera {name} must have 3 components, got {value}")
            object.__setattr__(self, name, value)
        self.validate()

    def validate(self) -> None:
        """Check that the camera describes a usable view.

        Raises:
            ConfigurationError: If the view direction is zero, vup is
                parallel to the view direction, or a lens or field of view
                parameter is out of range.
        """
        for name in ("lookfrom", "lookat", "vup"):
            if not all(math.isfinite(c) for c in getattr(self, name)):
                raise ConfigurationError(f"Camera {name} must be finite, got {getattr(self, name)}")
        for name in ("vfov", "aspect_ratio", "aperture", "focus_distance"):
            value = getattr(self, name)
            if value is not None and not math.isfinite(value):
                raise ConfigurationError(f"Camera {name} must be finite, got {value}")
        if not 0.0 < self.vfov < 180.0:
            raise ConfigurationError(f"Camera vfov must be in (0, 180) degrees, got {self.vfov}")
        if self.aspect_ratio is not None and not self.aspect_ratio > 0.0:
            raise ConfigurationError(f"Camera aspect ratio must be positive, got {self.aspect_ratio}")
        if self.aperture < 0.0:
            raise ConfigurationError(f"Camera aperture must be non-negative, got {self.aperture}")
        if self.focus_distance is not None and not self.focus_distance > 0.0:
            raise ConfigurationError(
                f"Camera focus distance must be positive, got {self.focus_distance}"
            )

        view = np.subtract(self.lookat, self.lookfrom)
        view_length = float(np.linalg.norm(view))
        if not view_length > 0.0:
            raise ConfigurationError("Camera lookfrom and lookat must differ")

        vup = np.asarray(self.vup, dtype=np.float64)
        vup_length = float(np.linalg.norm(vup))
        if not vup_length > 0.0:
            raise ConfigurationError("Camera vup must be non-zero")

        sin_angle = np.linalg.norm(np.cross(view, vup)) / (view_length * vup_length)
        if sin_angle < 1e-6:
            raise ConfigurationError("Camera vup must not be parallel to the view direction")

    @property
    def distance(self) -> float:
        """Distance from lookfrom to lookat."""
        return float(np.linalg.norm(np.subtract(self.lookfrom, self.lookat)))

    def orbited(self, yaw: float, pitch: float) -> "Camera":
        """Return a camera rotated around its look-at point.

        Args:
            yaw: Rotation about the vup axis in degrees (positive turns left).
            pitch: Change of elevation in degrees (positive moves up). The
                elevation is clamped short of the poles.

        Returns:
            A new Camera at the same distance from lookat.
        """
        lookat = np.asarray(self.lookat, dtype=np.float64)
        offset = np.asarray(self.lookfrom, dtype=np.float64) - lookat
        radius = np.linalg.norm(offset)
        up = np.asarray(self.vup, dtype=np.float64)
        up = up / np.linalg.norm(up)

        # Decompose the offset into a height along up and a horizontal part
        height = float(np.dot(offset, up))
        horizontal = offset - height * up
        side = np.cross(up, horizontal)

        azimuth = math.radians(yaw)
        horizontal_dir = horizontal / np.linalg.norm(horizontal)
        side_dir = side / np.linalg.norm(side)
        rotated = math.cos(azimuth) * horizontal_dir + math.sin(azimuth) * side_dir

        elevation = math.asin(max(-1.0, min(1.0, height / radius))) + math.radians(pitch)
        elevation = max(-_MAX_ELEVATION, min(_MAX_ELEVATION, elevation))

        new_offset = radius * (math.cos(elevation) * rotated + math.sin(elevation) * up)
        return replace(self, lookfrom=tuple(float(c) for c in lookat + new_offset))

    def dollied(self, amount: float) -> "Camera":
        """Return a camera moved along its view direction.

        Args:
            amount: Distance to move toward lookat (negative moves away). The
                camera never passes through the look-at point.

        Returns:
            A new Camera with the same lookat and orientation.
        """
        lookat = np.asarray(self.lookat, dtype=np.float64)
        offset = np.asarray(self.lookfrom, dtype=np.float64) - lookat
        distance = np.linalg.norm(offset)
        new_distance = max(MIN_VIEW_DISTANCE, distance - amount)
        new_offset = offset * (new_distance / distance)
        return replace(self, lookfrom=tuple(float(c) for c in lookat + new_offset))


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# Camera origin (position)
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport vectors, scaled to the focus plane
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per frame)
# =============================================================================


def setup_camera(camera: Camera, aspect_ratio: Optional[float] = None) -> None:
    """Initialize camera state from configuration.

    Computes the camera's orthonormal basis (u, v, w) and viewport geometry.
    The viewport lies on the focus plane so that lens-sampled rays converge
    there. This must be called before rendering.

    Args:
        camera: Camera configuration with position, orientation, and lens.
        aspect_ratio: Image aspect ratio, used when the camera has none.

    Raises:
        ConfigurationError: If neither the camera nor the caller supplies an
            aspect ratio.
    """
    aspect = camera.aspect_ratio if camera.aspect_ratio is not None else aspect_ratio
    if aspect is None or not aspect > 0.0:
        raise ConfigurationError(f"Camera needs a positive aspect ratio, got {aspect}")

    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)

    # Viewport dimensions at unit distance
    viewport_height = 2.0 * h
    viewport_width = aspect * viewport_height

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    # w points from lookat toward lookfrom (backward)
    w = lookfrom - lookat
    w = w / np.linalg.norm(w)

    # u points right (perpendicular to w and vup)
    u = np.cross(vup, w)
    u = u / np.linalg.norm(u)

    # v points up in the camera's frame
    v = np.cross(w, u)

    focus = camera.focus_distance if camera.focus_distance is not None else camera.distance

    horizontal = focus * viewport_width * u
    vertical = focus * viewport_height * v
    lower_left = lookfrom - focus * w - horizontal / 2.0 - vertical / 2.0

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.aperture / 2.0


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32, rng: ti.u32):
    """Generate a ray through normalized image coordinates (s, t).

    Coordinates are normalized: s = 0 is the left edge, s = 1 the right
    edge, t = 0 the bottom edge and t = 1 the top edge. With a non-zero lens
    radius the ray origin is sampled on the lens disk.

    Args:
        s: Horizontal coordinate in [0, 1] (left to right).
        t: Vertical coordinate in [0, 1] (bottom to top).
        rng: The random stream state.

    Returns:
        A tuple of (ray, new_rng). The ray direction is unit length.
    """
    disk, state = random_in_unit_disk(rng)
    rd = _lens_radius[None] * disk
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    point_on_viewport = (
        _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    )

    origin = _camera_origin[None] + offset
    direction = tm.normalize(point_on_viewport - origin)

    return make_ray(origin, direction), state


@ti.func
def get_ray_jittered(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, rng: ti.u32):
    """Generate a jittered ray for anti-aliasing.

    The jitter is uniformly distributed within the pixel footprint, so
    accumulating many samples produces smooth edges.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        rng: The random stream state.

    Returns:
        A tuple of (ray, new_rng).
    """
    jitter_u, state = next_float(rng)
    jitter_v, state = next_float(state)

    s = (ti.cast(pixel_i, ti.f32) + jitter_u) / ti.cast(width, ti.f32)
    t = (ti.cast(pixel_j, ti.f32) + jitter_v) / ti.cast(height, ti.f32)

    return get_ray(s, t, state)


@ti.func
def get_camera_origin() -> vec3:
    """Get the camera origin (position) in world space."""
    return _camera_origin[None]


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left.
    """
    fields = {
        "origin": _camera_origin,
        "u": _camera_u,
        "v": _camera_v,
        "w": _camera_w,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info = {}
    for name, field in fields.items():
        value = field[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    return info
