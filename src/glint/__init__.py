"""glint: a Taichi-based ray tracer.

This package renders scenes of spheres with diffuse, metal and glass
materials by tracing rays from a camera through every pixel, with support for:
- Anti-aliasing through jittered sub-pixel sampling
- Depth-bounded light transport with reflection and refraction
- Thin-lens depth of field
- Reproducible, per-pixel seeded random streams
- Batch PPM/PNG output and an interactive preview window

Subpackages:
    core: Ray math, random streams, the shading integrator and image buffers
    geometry: Sphere primitive and ray-sphere intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Scene model, scene-level intersection and demo scenes
    camera: Thin-lens camera with look-at positioning
    preview: PPM/PNG export and the interactive window
"""

__version__ = "0.1.0"
