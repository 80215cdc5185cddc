"""Tests for ImageBuffer."""

import numpy as np
import pytest


class TestImageBuffer:
    """Tests for the host-side image container."""

    def test_dimensions(self):
        """Test width and height come from the array shape."""
        from glint.core.image import ImageBuffer

        buffer = ImageBuffer(np.zeros((2, 5, 3), dtype=np.float32))
        assert buffer.width == 5
        assert buffer.height == 2
        assert repr(buffer) == "ImageBuffer(width=5, height=2)"

    def test_converts_to_float32(self):
        """Test other float arrays are stored as float32."""
        from glint.core.image import ImageBuffer

        buffer = ImageBuffer(np.zeros((1, 1, 3), dtype=np.float64))
        assert buffer.pixels.dtype == np.float32

    @pytest.mark.parametrize("shape", [(4, 4), (4, 4, 4), (3,)])
    def test_invalid_shape(self, shape):
        """Test arrays that aren't (height, width, 3) are rejected."""
        from glint.core.image import ImageBuffer

        with pytest.raises(ValueError, match="height, width, 3"):
            ImageBuffer(np.zeros(shape, dtype=np.float32))

    def test_pixel_row_zero_is_top(self):
        """Test pixel(x, y) indexes column then row."""
        from glint.core.image import ImageBuffer

        pixels = np.zeros((2, 3, 3), dtype=np.float32)
        pixels[0, 2] = (0.1, 0.2, 0.3)
        buffer = ImageBuffer(pixels)
        assert buffer.pixel(2, 0) == pytest.approx((0.1, 0.2, 0.3))
        assert buffer.pixel(0, 1) == (0.0, 0.0, 0.0)

    def test_quantization_truncates_and_clamps(self):
        """Test 8-bit conversion truncates c * 255 after clamping to [0, 1]."""
        from glint.core.image import ImageBuffer

        pixels = np.array([[[0.999, 0.5, -0.2], [1.5, 0.0, 1.0]]], dtype=np.float32)
        quantized = ImageBuffer(pixels).to_uint8()

        assert quantized.dtype == np.uint8
        assert quantized.tolist() == [[[254, 127, 0], [255, 0, 255]]]

    def test_rgb_triples_row_order(self):
        """Test triples are yielded row by row from the top."""
        from glint.core.image import ImageBuffer

        pixels = np.zeros((2, 2, 3), dtype=np.float32)
        pixels[0, 1] = 1.0
        pixels[1, 0] = (1.0, 0.0, 0.0)
        triples = list(ImageBuffer(pixels).rgb_triples())

        assert triples == [(0, 0, 0), (255, 255, 255), (255, 0, 0), (0, 0, 0)]

    def test_equality(self):
        """Test buffers compare by pixel values."""
        from glint.core.image import ImageBuffer

        a = ImageBuffer(np.ones((2, 2, 3), dtype=np.float32))
        b = ImageBuffer(np.ones((2, 2, 3), dtype=np.float32))
        c = ImageBuffer(np.zeros((2, 2, 3), dtype=np.float32))
        assert a == b
        assert a != c
        assert a != "image"
