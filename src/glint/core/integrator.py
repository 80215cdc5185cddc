"""Ray tracing integrator and render entry points.

This module implements the light transport of the renderer and the kernels
that sample every pixel of the image.

``ray_color`` follows a ray through the scene for at most ``max_depth``
bounces:

    - depth exhausted: black
    - miss: the background color
    - absorbed by a material: black
    - scattered: attenuation * color of the scattered ray

The recursion is evaluated as a loop carrying the product of attenuations
(the throughput), which gives exactly the same result.

Each pixel takes ``samples_per_pixel`` jittered camera rays. Samples are
summed into an accumulator, then averaged, gamma corrected (gamma 2, i.e.
square root) and clamped to [0, 1] when the image is resolved. Random
numbers come from a per-pixel stream derived from the seed and the pixel
index, so a render is bit-identical for a fixed seed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from glint.core.integrator import render
    >>> from glint.scene.presets import create_default_scene
    >>>
    >>> scene = create_default_scene()
    >>> image = render(scene, 400, 225, samples_per_pixel=16, max_depth=10, seed=7)
"""

import logging
import time

import numpy as np
import taichi as ti
import taichi.math as tm

from glint.camera.camera import get_ray_jittered, setup_camera
from glint.config import (
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    RenderSettings,
    validate_render_parameters,
)
from glint.core.image import ImageBuffer
from glint.core.ray import RAY_EPSILON, T_MAX, T_MIN, Ray
from glint.core.rng import seed_stream
from glint.materials.material import scatter_material
from glint.scene.background import background_color
from glint.scene.intersection import intersect_scene
from glint.scene.scene import Scene

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Accumulation Buffer
# =============================================================================

# Sum of samples per pixel (preallocated to max size to avoid kernel recompilation)
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))


def clear_accumulator() -> None:
    """Clear the accumulation buffer to zero."""
    _color_sum.fill(0.0)


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def _offset_ray_origin(point: vec3, normal: vec3, direction: vec3) -> vec3:
    """Offset ray origin to avoid self-intersection.

    Pushes the point slightly along the normal on the side the scattered ray
    travels (above the surface for reflection, below for refraction).

    Args:
        point: The intersection point.
        normal: The surface normal.
        direction: The scattered ray direction.

    Returns:
        The offset origin point.
    """
    offset_dir = normal
    if tm.dot(direction, normal) < 0.0:
        offset_dir = -normal
    return point + RAY_EPSILON * offset_dir


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32, rng: ti.u32):
    """Compute the color seen along a ray.

    Args:
        ray: The ray to trace.
        max_depth: Maximum number of surface interactions. 0 gives black.
        rng: The random stream state.

    Returns:
        A tuple of (color, new_rng).
    """
    origin = ray.origin
    direction = ray.direction
    t_min = ray.t_min
    t_max = ray.t_max

    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    state = rng

    # Taichi doesn't support break in ti.func loops
    active = 1

    for depth in range(max_depth):
        if active == 1:
            rec = intersect_scene(origin, direction, t_min, t_max)

            if rec.hit == 0:
                color = throughput * background_color(direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter, state = scatter_material(
                    direction, rec, state
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = _offset_ray_origin(rec.point, rec.normal, scattered_direction)
                    direction = scattered_direction
                    t_min = T_MIN
                    t_max = T_MAX

    # Paths still active after max_depth bounces contribute nothing
    return color, state


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Replace NaN/Inf components with zero and clamp negatives."""
    result = tm.max(color, vec3(0.0, 0.0, 0.0))
    for c in ti.static(range(3)):
        if tm.isnan(color[c]) or tm.isinf(color[c]):
            result[c] = 0.0
    return result


@ti.kernel
def _accumulate_pass(
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
):
    """Add samples_per_pixel samples to every pixel of the accumulator.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of jittered rays per pixel.
        max_depth: Maximum bounces per path.
        seed: Seed of the per-pixel random streams.
    """
    for i, j in ti.ndrange(width, height):
        rng = seed_stream(ti.cast(seed, ti.u32), ti.cast(j * width + i, ti.u32))
        pixel_sum = vec3(0.0, 0.0, 0.0)

        for _s in range(samples_per_pixel):
            ray, rng = get_ray_jittered(i, j, width, height, rng)
            color, rng = ray_color(ray, max_depth, rng)
            pixel_sum += _sanitize(color)

        _color_sum[i, j] += pixel_sum


@ti.kernel
def _resolve(
    width: ti.i32,
    height: ti.i32,
    inv_samples: ti.f32,
    out: ti.types.ndarray(dtype=ti.f32, ndim=3),
):
    """Average, gamma correct and clamp the accumulator into an image array.

    The output array has shape (height, width, 3) with the top row first,
    while the accumulator is indexed (x, y) with y = 0 at the bottom.
    """
    for i, j in ti.ndrange(width, height):
        mean = _color_sum[i, j] * inv_samples
        corrected = tm.clamp(tm.sqrt(tm.max(mean, vec3(0.0, 0.0, 0.0))), 0.0, 1.0)
        for c in ti.static(range(3)):
            out[height - 1 - j, i, c] = corrected[c]


def accumulate(width: int, height: int, samples_per_pixel: int, max_depth: int, seed: int) -> None:
    """Run one sampling pass over the image.

    The scene must be committed and the camera set up beforehand.
    """
    _accumulate_pass(width, height, samples_per_pixel, max_depth, seed)


def resolve_image(width: int, height: int, total_samples: int) -> ImageBuffer:
    """Copy the averaged, gamma-corrected accumulator into a new ImageBuffer.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        total_samples: Number of samples accumulated per pixel.

    Returns:
        A fresh ImageBuffer that shares no memory with the device.
    """
    pixels = np.zeros((height, width, 3), dtype=np.float32)
    _resolve(width, height, 1.0 / total_samples, pixels)
    return ImageBuffer(pixels)


# =============================================================================
# Public Rendering API
# =============================================================================


def render(
    scene: Scene,
    width: int,
    height: int,
    samples_per_pixel: int,
    max_depth: int,
    *,
    seed: int = 0,
) -> ImageBuffer:
    """Render one frame of a scene.

    Args:
        scene: The scene to render. It must have a camera.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of jittered camera rays per pixel.
        max_depth: Maximum number of bounces per ray.
        seed: Seed of the random streams.

    Returns:
        A new ImageBuffer with the rendered frame.

    Raises:
        ConfigurationError: If a parameter is invalid or the scene has no
            camera. Raised before any kernel is launched.
    """
    validate_render_parameters(width, height, samples_per_pixel, max_depth, seed)
    camera = scene.require_camera()

    start = time.perf_counter()
    with scene.frozen():
        setup_camera(camera, width / height)
        clear_accumulator()
        accumulate(width, height, samples_per_pixel, max_depth, seed)
        image = resolve_image(width, height, samples_per_pixel)

    elapsed = time.perf_counter() - start
    logger.info(
        "Rendered %dx%d at %d spp (max depth %d) in %.2fs",
        width,
        height,
        samples_per_pixel,
        max_depth,
        elapsed,
    )
    return image


def render_with_settings(scene: Scene, settings: RenderSettings) -> ImageBuffer:
    """Render one frame of a scene using a RenderSettings object."""
    return render(
        scene,
        settings.width,
        settings.height,
        settings.samples_per_pixel,
        settings.max_depth,
        seed=settings.seed,
    )
