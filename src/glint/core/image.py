"""Host-side image produced by a render.

An ``ImageBuffer`` owns a ``(height, width, 3)`` float32 NumPy array of
gamma-corrected RGB values in [0, 1], stored row-major with the top row
first. Every render returns a new buffer, so a caller may keep or hand off
a buffer while the next frame is being computed.

Example:
    >>> import numpy as np
    >>> buffer = ImageBuffer(np.zeros((2, 3, 3), dtype=np.float32))
    >>> buffer.width, buffer.height
    (3, 2)
    >>> list(buffer.rgb_triples())[0]
    (0, 0, 0)
"""

from collections.abc import Iterator

import numpy as np
import numpy.typing as npt


class ImageBuffer:
    """A finished frame of gamma-corrected RGB pixels.

    Attributes:
        pixels: Array of shape (height, width, 3), dtype float32, in [0, 1].
        max_value: Largest integer channel value when quantized.
    """

    max_value = 255

    def __init__(self, pixels: npt.NDArray[np.float32]) -> None:
        pixels = np.asarray(pixels, dtype=np.float32)
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise ValueError(f"Expected an array of shape (height, width, 3), got {pixels.shape}")
        self.pixels = pixels

    def __repr__(self) -> str:
        return f"ImageBuffer(width={self.width}, height={self.height})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImageBuffer):
            return NotImplemented
        return np.array_equal(self.pixels, other.pixels)

    __hash__ = None  # type: ignore[assignment]

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def pixel(self, x: int, y: int) -> tuple[float, float, float]:
        """Return the color at column x, row y (row 0 is the top row)."""
        r, g, b = self.pixels[y, x]
        return (float(r), float(g), float(b))

    def to_uint8(self) -> npt.NDArray[np.uint8]:
        """Quantize the pixels to 8-bit integers in [0, max_value]."""
        return (np.clip(self.pixels, 0.0, 1.0) * self.max_value).astype(np.uint8)

    def rgb_triples(self) -> Iterator[tuple[int, int, int]]:
        """Yield integer (r, g, b) triples row by row, top row first."""
        for r, g, b in self.to_uint8().reshape(-1, 3):
            yield (int(r), int(g), int(b))
