"""Interactive preview window using Taichi GGUI.

This module provides an interactive preview window that renders a scene
progressively and lets the user move the camera between frames.

Features:
    - Progressive rendering display, one pass per frame
    - Taichi GGUI-based window
    - Orbit and dolly camera controls (accumulator reset on change)
    - PNG export of the current frame

Controls:
    A / D: orbit left / right around the look-at point
    W / S: orbit up / down
    Q / E: dolly in / out
    P: export the current frame to a timestamped PNG
    Escape: close the window

Example:
    >>> from glint.config import RenderSettings
    >>> from glint.preview.interactive import InteractivePreview
    >>> from glint.scene.presets import create_default_scene
    >>>
    >>> settings = RenderSettings(width=400, height=225, samples_per_pixel=1)
    >>> preview = InteractivePreview(settings.width, settings.height)
    >>> preview.run(create_default_scene(), settings)
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti

from glint.camera.camera import Camera

if TYPE_CHECKING:
    from glint.config import RenderSettings
    from glint.core.image import ImageBuffer
    from glint.scene.scene import Scene

logger = logging.getLogger(__name__)

# Degrees per orbit key press
ORBIT_STEP = 5.0

# Fraction of the view distance per dolly key press
DOLLY_FRACTION = 0.1


def camera_for_key(camera: Camera, key: str) -> Camera | None:
    """Return the camera after applying a navigation key.

    Args:
        camera: The current camera.
        key: The pressed key, lower case.

    Returns:
        The moved camera, or None if the key does not move the camera.
    """
    if key == "a":
        return camera.orbited(-ORBIT_STEP, 0.0)
    if key == "d":
        return camera.orbited(ORBIT_STEP, 0.0)
    if key == "w":
        return camera.orbited(0.0, ORBIT_STEP)
    if key == "s":
        return camera.orbited(0.0, -ORBIT_STEP)
    if key == "q":
        return camera.dollied(DOLLY_FRACTION * camera.distance)
    if key == "e":
        return camera.dollied(-DOLLY_FRACTION * camera.distance)
    return None


class InteractivePreview:
    """Interactive preview window using Taichi GGUI.

    This class wraps ti.ui.Window to provide a simple interface for
    displaying rendered frames. It manages the window, canvas, and a display
    buffer that is separate from the renderer's accumulator.

    Attributes:
        width: Window width in pixels.
        height: Window height in pixels.
        display_image: Taichi field storing the display image (RGB float).
    """

    def __init__(self, width: int, height: int, *, title: str = "glint") -> None:
        """Initialize the interactive preview.

        Args:
            width: Window width in pixels.
            height: Window height in pixels.
            title: Window title.

        Note:
            Taichi must be initialized first. The window itself is created
            lazily so headless checks can run without a display.
        """
        self.width = width
        self.height = height
        self._title = title
        self._is_initialized = False
        self._last_frame: ImageBuffer | None = None

        self._window: ti.ui.Window | None = None
        self._canvas: ti.ui.Canvas | None = None

        # Shape is (width, height) for Taichi field, RGB values stored as vec3
        self.display_image: ti.MatrixField = ti.Vector.field(
            3, dtype=ti.f32, shape=(width, height)
        )

    def _initialize_window(self) -> None:
        if self._is_initialized:
            return

        self._window = ti.ui.Window(
            name=self._title,
            res=(self.width, self.height),
            vsync=True,
        )
        self._canvas = self._window.get_canvas()
        self._is_initialized = True

    @property
    def window(self) -> ti.ui.Window:
        """Get the Taichi GGUI window, initializing if needed."""
        if self._window is None:
            self._initialize_window()
        assert self._window is not None
        return self._window

    @property
    def canvas(self) -> ti.ui.Canvas:
        """Get the canvas for rendering."""
        if self._canvas is None:
            self._initialize_window()
        assert self._canvas is not None
        return self._canvas

    def update_image(self, buffer: ImageBuffer) -> None:
        """Copy a rendered frame into the display buffer.

        Args:
            buffer: The frame to show. Must match the window size.

        Raises:
            ValueError: If the frame size doesn't match the window.
        """
        image = buffer.pixels
        expected_shape = (self.height, self.width, 3)
        if image.shape != expected_shape:
            raise ValueError(
                f"Image shape {image.shape} doesn't match expected {expected_shape}"
            )

        # Taichi fields are indexed (x, y) with y = 0 at the bottom
        image_transposed = np.ascontiguousarray(np.transpose(np.flipud(image), (1, 0, 2)))
        self.display_image.from_numpy(image_transposed)
        self._last_frame = buffer

    def is_running(self) -> bool:
        """Check if the window is still open."""
        return self.window.running

    def show_frame(self) -> None:
        """Present the display buffer in the window."""
        self.canvas.set_image(self.display_image)
        self.window.show()

    def close(self) -> None:
        """Close the preview window."""
        if self._window is not None:
            self._window.running = False

    @staticmethod
    def is_display_available() -> bool:
        """Check if a display is available for GUI rendering.

        Returns:
            True if a display is available, False for headless environments.
        """
        display = os.environ.get("DISPLAY")
        wayland = os.environ.get("WAYLAND_DISPLAY")

        if os.name == "nt":
            return True

        # On macOS, display is always available if not in SSH
        if os.uname().sysname == "Darwin":
            ssh_connection = os.environ.get("SSH_CONNECTION")
            return not (ssh_connection and not display)

        return bool(display or wayland)

    def _handle_events(self, scene: Scene) -> bool:
        """Process pending key presses.

        Returns:
            True if the camera moved and accumulated samples are stale.
        """
        moved = False
        for event in self.window.get_events(ti.ui.PRESS):
            key = event.key
            if key == ti.ui.ESCAPE:
                self.close()
            elif key == "p":
                self.export_png()
            else:
                camera = camera_for_key(scene.require_camera(), key)
                if camera is not None:
                    scene.set_camera(camera)
                    moved = True
        return moved

    def run(self, scene: Scene, settings: RenderSettings) -> None:
        """Render the scene continuously until the window is closed.

        Each iteration processes input, renders one progressive pass, and
        shows the refined frame. Closing the window takes effect between
        frames.

        Args:
            scene: The scene to render. It must have a camera.
            settings: Render settings; samples_per_pixel is per frame.

        Raises:
            ConfigurationError: If the settings or scene are invalid.
        """
        from glint.core.progressive import ProgressiveRenderer

        scene.require_camera()
        renderer = ProgressiveRenderer(scene, settings)
        self._initialize_window()

        while self.is_running():
            if self._handle_events(scene):
                renderer.reset()
            if not self.is_running():
                break

            frame = renderer.render_frame()
            self.update_image(frame)
            self.show_frame()

        logger.info("Preview closed after %d samples per pixel", renderer.sample_count)

    def export_png(self, filename: str | None = None) -> str | None:
        """Export the most recent frame to a PNG file.

        Args:
            filename: Output path. Defaults to a timestamped name in the
                current directory.

        Returns:
            The path written, or None if no frame has been shown yet.
        """
        from glint.preview.export import save_png

        if self._last_frame is None:
            logger.warning("No frame to export yet")
            return None

        if filename is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"glint_{timestamp}.png"

        save_png(self._last_frame, filename)
        print(f"Exported: {filename}")
        return filename
