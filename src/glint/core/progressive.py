"""Progressive renderer for iterative sample accumulation.

This module provides a wrapper around the integrator that supports:
- Progressive rendering that refines over time, one pass per frame
- Progress callbacks for UI updates
- Reset when the view changes

Each pass adds ``samples_per_pixel`` samples to every pixel, seeded with
``seed + pass_index`` so that a sequence of passes is reproducible. Every
frame is returned as a new ImageBuffer holding the running mean.

The accumulation buffer is shared with ``glint.core.integrator.render``;
calling ``render`` between passes discards the progressive state.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from glint.config import RenderSettings
    >>> from glint.core.progressive import ProgressiveRenderer
    >>> from glint.scene.presets import create_default_scene
    >>>
    >>> renderer = ProgressiveRenderer(create_default_scene(), RenderSettings(samples_per_pixel=1))
    >>> image = renderer.render(10)  # 10 passes
"""

import logging
from collections.abc import Callable, Generator
from typing import Optional

from glint.camera.camera import setup_camera
from glint.config import MAX_SEED, RenderSettings
from glint.core.image import ImageBuffer
from glint.core.integrator import accumulate, clear_accumulator, resolve_image
from glint.scene.scene import Scene

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates passes over time.

    Attributes:
        scene: The scene being rendered.
        settings: Resolution, samples per pass, depth and base seed.
    """

    def __init__(self, scene: Scene, settings: RenderSettings) -> None:
        """Initialize the progressive renderer.

        Args:
            scene: The scene to render. It must have a camera by the time the
                first frame is rendered.
            settings: Render settings. samples_per_pixel is the number of
                samples added per pass.

        Raises:
            ConfigurationError: If the settings are invalid.
        """
        settings.validate()
        self.scene = scene
        self.settings = settings
        self._pass_count = 0
        self._sample_count = 0
        clear_accumulator()

    @property
    def width(self) -> int:
        return self.settings.width

    @property
    def height(self) -> int:
        return self.settings.height

    @property
    def pass_count(self) -> int:
        """Number of passes accumulated since the last reset."""
        return self._pass_count

    @property
    def sample_count(self) -> int:
        """Number of samples per pixel accumulated since the last reset."""
        return self._sample_count

    def reset(self) -> None:
        """Discard all accumulated samples.

        Call this whenever the camera or scene changes.
        """
        clear_accumulator()
        self._pass_count = 0
        self._sample_count = 0

    def resize(self, width: int, height: int) -> None:
        """Change the resolution and reset the accumulator.

        Raises:
            ConfigurationError: If the new dimensions are invalid.
        """
        settings = RenderSettings(
            width=width,
            height=height,
            samples_per_pixel=self.settings.samples_per_pixel,
            max_depth=self.settings.max_depth,
            seed=self.settings.seed,
        )
        settings.validate()
        self.settings = settings
        self.reset()

    def _run_pass(self) -> None:
        settings = self.settings
        camera = self.scene.require_camera()
        pass_seed = (settings.seed + self._pass_count) % (MAX_SEED + 1)

        with self.scene.frozen():
            setup_camera(camera, settings.aspect_ratio)
            accumulate(
                settings.width,
                settings.height,
                settings.samples_per_pixel,
                settings.max_depth,
                pass_seed,
            )

        self._pass_count += 1
        self._sample_count += settings.samples_per_pixel

    def get_image(self) -> ImageBuffer:
        """Return the current running mean as a new ImageBuffer.

        Raises:
            RuntimeError: If no pass has been rendered since the last reset.
        """
        if self._sample_count == 0:
            raise RuntimeError("No samples accumulated. Call render_frame() first.")
        return resolve_image(self.width, self.height, self._sample_count)

    def render_frame(self) -> ImageBuffer:
        """Render one more pass and return the refined image."""
        self._run_pass()
        logger.debug("Progressive pass %d (%d spp total)", self._pass_count, self._sample_count)
        return self.get_image()

    def render(
        self,
        num_passes: int = 1,
        callback: Optional[ProgressCallback] = None,
    ) -> Optional[ImageBuffer]:
        """Render several passes with an optional progress callback.

        Args:
            num_passes: Number of passes to add.
            callback: Optional function called after each pass with
                (current_total_samples, target_total_samples).

        Returns:
            The refined image, or None if num_passes <= 0 and nothing has
            been accumulated.
        """
        target_samples = self._sample_count + max(num_passes, 0) * self.settings.samples_per_pixel

        for _ in range(num_passes):
            self._run_pass()
            if callback is not None:
                callback(self._sample_count, target_samples)

        if self._sample_count == 0:
            return None
        return self.get_image()

    def render_progressive(self, num_passes: int = 1) -> Generator[tuple[int, int], None, None]:
        """Render passes, yielding progress after each one.

        Args:
            num_passes: Number of passes to add.

        Yields:
            Tuple of (current_total_samples, target_total_samples).
        """
        if num_passes <= 0:
            return

        target_samples = self._sample_count + num_passes * self.settings.samples_per_pixel
        for _ in range(num_passes):
            self._run_pass()
            yield (self._sample_count, target_samples)

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
