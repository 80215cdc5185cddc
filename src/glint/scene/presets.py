"""Ready-made demo scenes.

Three scenes are provided:

- ``create_default_scene``: a ground plane with a diffuse, a glass, a hollow
  glass and a metal sphere, seen from slightly above.
- ``create_random_scene``: the classic cover scene of many small random
  spheres around three large ones, with depth of field.
- ``create_single_sphere_scene``: one unit sphere ten units in front of the
  eye on a plain sky, handy for quick checks.

Scenes leave the camera aspect ratio open (``None``) unless one is given, so
the renderer uses the image's own width/height.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from glint.scene.presets import create_default_scene
    >>> scene = create_default_scene()
    >>> len(scene.primitives)
    5
"""

import logging
from typing import Optional

import numpy as np

from glint.camera.camera import Camera
from glint.materials import Dielectric, Lambertian, Metal
from glint.scene.scene import Scene

logger = logging.getLogger(__name__)


def create_default_scene(aspect_ratio: Optional[float] = None) -> Scene:
    """Create the default demo scene.

    Args:
        aspect_ratio: Camera aspect ratio, or None to follow the image.

    Returns:
        A Scene with five spheres and a camera.
    """
    camera = Camera(
        lookfrom=(-2.0, 2.0, 1.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=30.0,
        aspect_ratio=aspect_ratio,
    )
    scene = Scene(camera=camera)

    ground = Lambertian(albedo=(0.8, 0.8, 0.0))
    center = Lambertian(albedo=(0.1, 0.2, 0.5))
    glass = Dielectric(ior=1.5)
    gold = Metal(albedo=(0.8, 0.6, 0.2), fuzz=0.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    # Negative radius turns the inner sphere into an air pocket
    scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)

    return scene


def create_random_scene(seed: int = 0, aspect_ratio: Optional[float] = None) -> Scene:
    """Create the cover scene of many small randomly placed spheres.

    Args:
        seed: Seed for the sphere layout; equal seeds give equal scenes.
        aspect_ratio: Camera aspect ratio, or None to follow the image.

    Returns:
        A Scene with a large ground sphere, three feature spheres and a grid
        of small spheres with random materials.
    """
    rng = np.random.default_rng(seed)

    lookfrom = (13.0, 2.0, 3.0)
    lookat = (0.0, 0.0, 0.0)
    camera = Camera(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_distance=10.0,
    )
    scene = Scene(camera=camera)

    scene.add_sphere((0.0, -1000.0, 0.0), 1000.0, Lambertian(albedo=(0.5, 0.5, 0.5)))

    glass = Dielectric(ior=1.5)
    keep_clear = np.array([4.0, 0.2, 0.0])

    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random()])

            if np.linalg.norm(center - keep_clear) <= 0.9:
                continue

            if choose_mat < 0.8:
                albedo = rng.random(3) * rng.random(3)
                material = Lambertian(albedo=tuple(albedo))
            elif choose_mat < 0.95:
                albedo = rng.uniform(0.5, 1.0, 3)
                material = Metal(albedo=tuple(albedo), fuzz=rng.uniform(0.0, 0.5))
            else:
                material = glass

            scene.add_sphere(tuple(center), 0.2, material)

    scene.add_sphere((0.0, 1.0, 0.0), 1.0, glass)
    scene.add_sphere((-4.0, 1.0, 0.0), 1.0, Lambertian(albedo=(0.4, 0.2, 0.1)))
    scene.add_sphere((4.0, 1.0, 0.0), 1.0, Metal(albedo=(0.7, 0.6, 0.5), fuzz=0.0))

    logger.debug("Random scene (seed=%d) has %d spheres", seed, len(scene.primitives))
    return scene


def create_single_sphere_scene(aspect_ratio: Optional[float] = None) -> Scene:
    """Create a scene with one unit sphere ten units in front of the camera.

    Args:
        aspect_ratio: Camera aspect ratio, or None to follow the image.

    Returns:
        A Scene with a single diffuse sphere.
    """
    camera = Camera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
    )
    scene = Scene(camera=camera)
    scene.add_sphere((0.0, 0.0, -10.0), 1.0, Lambertian(albedo=(0.7, 0.3, 0.3)))
    return scene
