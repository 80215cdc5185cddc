"""Per-pixel random streams for reproducible Monte Carlo sampling.

Taichi's built-in ``ti.random()`` keeps one generator per hardware thread, so
which values a pixel receives depends on how the parallel loop was scheduled.
This module instead gives every pixel its own stream: a 32-bit PCG generator
(LCG state transition with an RXS-M-XS output permutation) whose initial state
is derived from the render seed and the pixel index only.

The stream state is an explicit ``ti.u32`` value that sampling functions take
as an argument and hand back, updated, alongside their result:

    >>> @ti.func
    ... def two_numbers(rng: ti.u32):
    ...     a, state = next_float(rng)
    ...     b, state = next_float(state)
    ...     return a + b, state

Because nothing is shared between pixels, a render with a fixed seed is
bit-identical from run to run regardless of thread count.
"""

import taichi as ti

# LCG multiplier and increment (increment must be odd for a full period)
_PCG_MULTIPLIER = 747796405
_PCG_INCREMENT = 1442695041

# RXS-M-XS output permutation multiplier
_PCG_OUTPUT_MULTIPLIER = 277803737

# 2^-24, maps the top 24 bits of a draw onto [0, 1)
_FLOAT_SCALE = 1.0 / 16777216.0


@ti.func
def _advance(state: ti.u32) -> ti.u32:
    """Step the LCG state."""
    return state * ti.u32(_PCG_MULTIPLIER) + ti.u32(_PCG_INCREMENT)


@ti.func
def _permute(state: ti.u32) -> ti.u32:
    """Apply the RXS-M-XS output permutation to an LCG state."""
    word = ((state >> ((state >> ti.u32(28)) + ti.u32(4))) ^ state) * ti.u32(
        _PCG_OUTPUT_MULTIPLIER
    )
    return (word >> ti.u32(22)) ^ word


@ti.func
def pcg_hash(value: ti.u32) -> ti.u32:
    """Hash a 32-bit integer (one PCG step followed by the output permutation).

    Args:
        value: The integer to hash.

    Returns:
        A well-mixed 32-bit hash of value.
    """
    return _permute(_advance(value))


@ti.func
def seed_stream(seed: ti.u32, pixel_index: ti.u32) -> ti.u32:
    """Derive the initial stream state for one pixel.

    Args:
        seed: The render seed.
        pixel_index: Linear index of the pixel (``j * width + i``).

    Returns:
        The initial stream state for the pixel.
    """
    return pcg_hash(pixel_index + pcg_hash(seed))


@ti.func
def next_uint(state: ti.u32):
    """Draw a 32-bit integer from a stream.

    Args:
        state: The current stream state.

    Returns:
        A tuple of (value, new_state).
    """
    new_state = _advance(state)
    return _permute(new_state), new_state


@ti.func
def next_float(state: ti.u32):
    """Draw a uniformly distributed float in [0, 1) from a stream.

    Args:
        state: The current stream state.

    Returns:
        A tuple of (value, new_state).
    """
    bits, new_state = next_uint(state)
    value = ti.cast(bits >> ti.u32(8), ti.f32) * _FLOAT_SCALE
    return value, new_state
