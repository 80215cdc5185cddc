"""Preview module for output and visualization.

Components:
    export: PPM and PNG image export utilities
    interactive: Taichi GGUI-based interactive preview window

Example:
    >>> from glint.preview import save_ppm, save_png
    >>> save_ppm(image, "output.ppm", binary=True)
    >>> save_png(image, "output.png")

For interactive GGUI preview:
    >>> from glint.preview import InteractivePreview
    >>> preview = InteractivePreview(400, 225)
    >>> preview.run(scene, settings)
"""

from glint.preview.export import compute_rmse, save_png, save_ppm, write_ppm
from glint.preview.interactive import InteractivePreview, camera_for_key

__all__ = [
    "InteractivePreview",
    "camera_for_key",
    "compute_rmse",
    "save_png",
    "save_ppm",
    "write_ppm",
]
