"""Scene module for scene management and ray-scene queries.

Components:
    scene: Scene container holding primitives, camera and background
    background: Miss color gradient
    intersection: Device-side primitive storage and closest-hit queries
    presets: Ready-made demo scenes
"""

from .background import Background, background_color
from .intersection import MAX_SPHERES, HitInfo, intersect_scene
from .presets import create_default_scene, create_random_scene, create_single_sphere_scene
from .scene import Scene, clear_device_scene

__all__ = [
    "MAX_SPHERES",
    "Background",
    "HitInfo",
    "Scene",
    "background_color",
    "clear_device_scene",
    "create_default_scene",
    "create_random_scene",
    "create_single_sphere_scene",
    "intersect_scene",
]
