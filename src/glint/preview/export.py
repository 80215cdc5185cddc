"""Image export utilities for rendered images.

This module serializes an ``ImageBuffer`` to files and streams. Buffers are
already gamma corrected and clamped by the renderer, so export only
quantizes to 8 bits.

Supported formats:
    - PPM text (P3): header, then one "r g b" triple per line
    - PPM binary (P6): header, then raw RGB bytes
    - PNG (8-bit via Pillow)

Example:
    >>> from glint.preview.export import save_png, save_ppm
    >>> save_ppm(image, "output.ppm")
    >>> save_png(image, "output.png")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, BinaryIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from os import PathLike

    from glint.core.image import ImageBuffer


def _ppm_header(magic: str, buffer: ImageBuffer) -> bytes:
    return f"{magic}\n{buffer.width} {buffer.height}\n{buffer.max_value}\n".encode("ascii")


def write_ppm(buffer: ImageBuffer, stream: BinaryIO, *, binary: bool = False) -> None:
    """Write an image as a portable pixel map.

    Args:
        buffer: The image to write.
        stream: A binary stream (e.g. an open file or sys.stdout.buffer).
        binary: Write P6 (raw bytes) instead of P3 (text triples).
    """
    pixels = buffer.to_uint8()

    if binary:
        stream.write(_ppm_header("P6", buffer))
        stream.write(np.ascontiguousarray(pixels).tobytes())
        return

    stream.write(_ppm_header("P3", buffer))
    lines = [f"{r} {g} {b}\n" for r, g, b in pixels.reshape(-1, 3).tolist()]
    stream.write("".join(lines).encode("ascii"))


def save_ppm(buffer: ImageBuffer, filepath: str | PathLike[str], *, binary: bool = False) -> None:
    """Save an image as a PPM file.

    Args:
        buffer: The image to save.
        filepath: Output file path (should end in .ppm).
        binary: Write P6 instead of P3.
    """
    with open(filepath, "wb") as f:
        write_ppm(buffer, f, binary=binary)


def save_png(buffer: ImageBuffer, filepath: str | PathLike[str]) -> None:
    """Save an image as an 8-bit PNG file.

    Args:
        buffer: The image to save.
        filepath: Output file path (should end in .png).
    """
    pil_image = PILImage.fromarray(buffer.to_uint8())
    pil_image.save(filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
