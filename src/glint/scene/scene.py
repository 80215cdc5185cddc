"""Scene container coordinating primitives, materials, camera and background.

A ``Scene`` is built on the host by adding spheres bound to immutable
materials. Before rendering it is committed: its distinct materials are
uploaded to the material registry, its spheres to the intersection fields and
its background to the miss-color fields. While a frame is rendering the scene
is frozen and any mutation raises ``SceneFrozenError``.

Only one scene is resident on the device at a time. Committing a scene
replaces whatever was uploaded before.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from glint.camera import Camera
    >>> from glint.materials import Lambertian, Metal
    >>> from glint.scene import Scene
    >>> scene = Scene(camera=Camera(lookfrom=(0, 0, 0), lookat=(0, 0, -1)))
    >>> ground = Lambertian(albedo=(0.8, 0.8, 0.0))
    >>> scene.add_sphere((0, -100.5, -1), 100, ground)
    >>> scene.add_sphere((0, 0, -1), 0.5, Metal(albedo=(0.8, 0.8, 0.8), fuzz=0.0))
    >>> info = scene.hit((0, 0, 0), (0, 0, -1))
"""

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Optional

from glint.camera.camera import Camera
from glint.core.ray import T_MAX, T_MIN
from glint.errors import ConfigurationError, SceneFrozenError
from glint.geometry.sphere import Sphere
from glint.materials.material import MAX_MATERIALS, Material, add_material, clear_materials
from glint.scene.background import Background, upload_background
from glint.scene.intersection import MAX_SPHERES, HitInfo, add_sphere, clear_scene, query_hit

logger = logging.getLogger(__name__)

# The scene currently uploaded to the device fields
_resident_scene: Optional["Scene"] = None


def clear_device_scene() -> None:
    """Remove any committed scene from the device fields."""
    global _resident_scene
    clear_scene()
    clear_materials()
    _resident_scene = None


class Scene:
    """Ordered collection of primitives plus one camera and a background.

    Attributes:
        camera: The camera used to render the scene, or None if not yet set.
        background: Color of rays that miss every primitive.
    """

    def __init__(
        self,
        camera: Optional[Camera] = None,
        background: Optional[Background] = None,
    ) -> None:
        self._camera = camera
        self._background = background if background is not None else Background()
        self._primitives: list[Sphere] = []
        self._material_ids: dict[Material, int] = {}
        self._frozen = False
        self._dirty = True

    def __repr__(self) -> str:
        return (
            f"Scene(primitives={len(self._primitives)}, "
            f"materials={len(self._material_ids)}, camera={self._camera!r})"
        )

    # =========================================================================
    # Mutation
    # =========================================================================

    def _check_mutable(self) -> None:
        if self._frozen:
            raise SceneFrozenError("Cannot modify a scene while a frame is rendering")

    def add_primitive(self, primitive: Sphere) -> int:
        """Append a primitive to the scene.

        Degenerate spheres (zero or non-finite geometry) are accepted but
        never hit; a warning is logged.

        Args:
            primitive: The sphere to add.

        Returns:
            The index of the primitive in insertion order.

        Raises:
            SceneFrozenError: If the scene is rendering.
            TypeError: If the primitive is not a Sphere.
            RuntimeError: If the sphere or material capacity is exceeded.
        """
        self._check_mutable()
        if not isinstance(primitive, Sphere):
            raise TypeError(f"Unsupported primitive type: {type(primitive).__name__}")

        if len(self._primitives) >= MAX_SPHERES:
            raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

        material = primitive.material
        if material not in self._material_ids:
            if len(self._material_ids) >= MAX_MATERIALS:
                raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")
            self._material_ids[material] = len(self._material_ids)

        if primitive.is_degenerate:
            logger.warning("Degenerate sphere %r will never be hit", primitive)

        self._primitives.append(primitive)
        self._dirty = True
        return len(self._primitives) - 1

    def add_sphere(self, center: Sequence[float], radius: float, material: Material) -> Sphere:
        """Create a sphere and append it to the scene.

        Args:
            center: The center point (x, y, z).
            radius: The radius. Negative values flip the outward normal.
            material: The material the sphere is made of.

        Returns:
            The created sphere.
        """
        sphere = Sphere(center=center, radius=radius, material=material)
        self.add_primitive(sphere)
        return sphere

    def set_camera(self, camera: Camera) -> None:
        """Replace the scene camera.

        Raises:
            SceneFrozenError: If the scene is rendering.
        """
        self._check_mutable()
        self._camera = camera

    def set_background(self, background: Background) -> None:
        """Replace the scene background.

        Raises:
            SceneFrozenError: If the scene is rendering.
        """
        self._check_mutable()
        self._background = background
        self._dirty = True

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def camera(self) -> Optional[Camera]:
        return self._camera

    @property
    def background(self) -> Background:
        return self._background

    @property
    def primitives(self) -> tuple[Sphere, ...]:
        """All primitives in insertion order."""
        return tuple(self._primitives)

    @property
    def materials(self) -> tuple[Material, ...]:
        """Distinct materials in order of first use."""
        return tuple(self._material_ids)

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def require_camera(self) -> Camera:
        """Return the camera, failing if the scene has none.

        Raises:
            ConfigurationError: If no camera was set.
        """
        if self._camera is None:
            raise ConfigurationError("Scene has no camera")
        return self._camera

    # =========================================================================
    # Device upload
    # =========================================================================

    def commit(self) -> None:
        """Upload the scene to the device fields.

        Replaces any previously committed scene. Committing an unchanged
        scene that is already resident does nothing.
        """
        global _resident_scene
        if _resident_scene is self and not self._dirty:
            return

        clear_scene()
        clear_materials()
        for material in self._material_ids:
            add_material(material)
        for sphere in self._primitives:
            add_sphere(sphere.center, sphere.radius, self._material_ids[sphere.material])
        upload_background(self._background)

        _resident_scene = self
        self._dirty = False
        logger.debug(
            "Committed scene with %d spheres and %d materials",
            len(self._primitives),
            len(self._material_ids),
        )

    @contextmanager
    def frozen(self) -> Iterator["Scene"]:
        """Commit the scene and forbid mutation for the duration of the block.

        Raises:
            SceneFrozenError: If the scene is already frozen.
        """
        if self._frozen:
            raise SceneFrozenError("Scene is already being rendered")
        self.commit()
        self._frozen = True
        try:
            yield self
        finally:
            self._frozen = False

    def hit(
        self,
        origin: Sequence[float],
        direction: Sequence[float],
        t_min: float = T_MIN,
        t_max: float = T_MAX,
    ) -> Optional[HitInfo]:
        """Find the closest primitive hit by a ray.

        Args:
            origin: Ray origin (x, y, z).
            direction: Ray direction (x, y, z), need not be unit length.
            t_min: Lower bound of the open hit interval.
            t_max: Upper bound of the open hit interval.

        Returns:
            A HitInfo for the closest hit with t in (t_min, t_max), or None.
        """
        self.commit()
        return query_hit(origin, direction, t_min, t_max)
