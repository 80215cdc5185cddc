"""Materials module for light scattering models.

This module implements the material variants used by the renderer:

Components:
    lambertian: Ideal diffuse reflection with cosine-weighted sampling
    metal: Specular reflection with optional fuzz
    dielectric: Glass-like refraction with Schlick Fresnel and total
        internal reflection
    material: Device-side material registry and scatter dispatch

Host-side material objects are immutable and may be shared by any number of
primitives. Scatter functions are Taichi functions that thread an explicit
random stream state so renders are reproducible for a given seed.
"""

from .base import MaterialKind, validate_albedo
from .dielectric import Dielectric, scatter_dielectric
from .lambertian import Lambertian, scatter_lambertian
from .material import (
    MAX_MATERIALS,
    Material,
    add_material,
    clear_materials,
    get_material_count,
    get_material_kind,
    scatter_material,
)
from .metal import Metal, scatter_metal

__all__ = [
    "MAX_MATERIALS",
    "Dielectric",
    "Lambertian",
    "Material",
    "MaterialKind",
    "Metal",
    "add_material",
    "clear_materials",
    "get_material_count",
    "get_material_kind",
    "scatter_dielectric",
    "scatter_lambertian",
    "scatter_material",
    "scatter_metal",
    "validate_albedo",
]
