"""Material registry and scatter dispatch.

Materials live in a structure-of-arrays registry of Taichi fields so kernels
can look them up by a dense integer ID. A committed scene uploads each
distinct material once; spheres then refer to it through ``material_id``.

The registry columns are:
    - material_kinds: ``MaterialKind`` tag of each entry
    - material_albedos: Albedo for Lambertian and Metal entries
    - material_fuzz: Roughness for Metal entries
    - material_iors: Index of refraction for Dielectric entries

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from glint.materials import Lambertian
    >>> from glint.materials.material import add_material
    >>> mat_id = add_material(Lambertian(albedo=(0.5, 0.5, 0.5)))
"""

from typing import Union

import taichi as ti
import taichi.math as tm

from glint.geometry.sphere import HitRecord
from glint.materials.base import MaterialKind
from glint.materials.dielectric import Dielectric, scatter_dielectric
from glint.materials.lambertian import Lambertian, scatter_lambertian
from glint.materials.metal import Metal, scatter_metal

# Type alias for 3D vectors
vec3 = tm.vec3

# Any of the supported material variants
Material = Union[Lambertian, Metal, Dielectric]

MAX_MATERIALS = 1024

# Kind tags as plain ints for use inside kernels
_LAMBERTIAN = int(MaterialKind.LAMBERTIAN)
_METAL = int(MaterialKind.METAL)
_DIELECTRIC = int(MaterialKind.DIELECTRIC)

material_kinds = ti.field(dtype=ti.i32, shape=(MAX_MATERIALS,))
material_albedos = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_MATERIALS,))
material_fuzz = ti.field(dtype=ti.f32, shape=(MAX_MATERIALS,))
material_iors = ti.field(dtype=ti.f32, shape=(MAX_MATERIALS,))
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Remove all materials from the registry."""
    num_materials[None] = 0


def add_material(material: Material) -> int:
    """Upload a material to the registry.

    Args:
        material: A Lambertian, Metal or Dielectric instance.

    Returns:
        The dense index of the uploaded material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        TypeError: If the object is not a supported material.
    """
    if not isinstance(material, (Lambertian, Metal, Dielectric)):
        raise TypeError(f"Unsupported material type: {type(material).__name__}")

    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    albedo = (0.0, 0.0, 0.0)
    fuzz = 0.0
    ior = 1.0
    if isinstance(material, Lambertian):
        albedo = material.albedo
    elif isinstance(material, Metal):
        albedo = material.albedo
        fuzz = material.fuzz
    else:
        ior = material.ior

    material_kinds[idx] = int(material.kind)
    material_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    material_fuzz[idx] = fuzz
    material_iors[idx] = ior
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Return the number of materials in the registry."""
    return num_materials[None]


def get_material_kind(material_id: int) -> MaterialKind:
    """Return the kind tag of a registered material."""
    return MaterialKind(material_kinds[material_id])


@ti.func
def scatter_material(incident_direction: vec3, rec: HitRecord, rng: ti.u32):
    """Scatter a ray off the material recorded in a hit.

    Dispatches on the material kind stored in the registry.

    Args:
        incident_direction: The direction of the ray that produced the hit.
        rec: The hit record with normal, face orientation and material ID.
        rng: The random stream state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, new_rng).
        did_scatter is 0 when the ray is absorbed.
    """
    material_id = rec.material_id
    kind = material_kinds[material_id]

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    state = rng

    if kind == _LAMBERTIAN:
        scattered_direction, attenuation, did_scatter, state = scatter_lambertian(
            material_albedos[material_id], rec.normal, rng
        )
    elif kind == _METAL:
        scattered_direction, attenuation, did_scatter, state = scatter_metal(
            material_albedos[material_id],
            material_fuzz[material_id],
            incident_direction,
            rec.normal,
            rng,
        )
    elif kind == _DIELECTRIC:
        scattered_direction, attenuation, did_scatter, state = scatter_dielectric(
            material_iors[material_id],
            incident_direction,
            rec.normal,
            rec.front_face,
            rng,
        )

    return scattered_direction, attenuation, did_scatter, state
