"""Render configuration.

``RenderSettings`` collects the parameters of a render pass (resolution,
samples per pixel, recursion depth and seed) and validates them up front so
that a bad configuration is rejected before any work is done.

Example:
    >>> settings = RenderSettings(width=320, height=180, samples_per_pixel=8)
    >>> settings.validate()
    >>> settings.aspect_ratio
    1.7777777777777777
"""

from dataclasses import dataclass

from glint.errors import ConfigurationError

# Device buffers are preallocated to this size to avoid kernel recompilation
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Seeds are passed to kernels as i32
MAX_SEED = 2**31 - 1


@dataclass
class RenderSettings:
    """Parameters for one render pass.

    Attributes:
        width: Image width in pixels (1 to MAX_IMAGE_WIDTH).
        height: Image height in pixels (1 to MAX_IMAGE_HEIGHT).
        samples_per_pixel: Number of jittered camera rays averaged per pixel.
        max_depth: Maximum number of ray bounces. 0 renders every pixel black.
        seed: Seed of the per-pixel random streams. Renders with the same
            seed, scene and settings are bit-identical.
    """

    width: int = 400
    height: int = 225
    samples_per_pixel: int = 16
    max_depth: int = 10
    seed: int = 0

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    def validate(self) -> None:
        """Check that the settings describe a renderable image.

        Raises:
            ConfigurationError: If any parameter is out of range.
        """
        validate_render_parameters(
            self.width, self.height, self.samples_per_pixel, self.max_depth, self.seed
        )


def validate_render_parameters(
    width: int,
    height: int,
    samples_per_pixel: int,
    max_depth: int,
    seed: int = 0,
) -> None:
    """Validate render parameters, raising on the first invalid one.

    Raises:
        ConfigurationError: If the resolution is not positive or exceeds the
            maximum, the sample count is not positive, the depth is negative,
            or the seed is outside [0, MAX_SEED].
    """
    if width <= 0 or height <= 0:
        raise ConfigurationError(
            f"Image dimensions must be positive, got {width}x{height}"
        )
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ConfigurationError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )
    if samples_per_pixel <= 0:
        raise ConfigurationError(
            f"samples_per_pixel must be positive, got {samples_per_pixel}"
        )
    if max_depth < 0:
        raise ConfigurationError(f"max_depth must not be negative, got {max_depth}")
    if not 0 <= seed <= MAX_SEED:
        raise ConfigurationError(f"seed must be in [0, {MAX_SEED}], got {seed}")
