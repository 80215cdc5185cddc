"""Exception hierarchy for the renderer.

Configuration problems are detected before any kernel is launched and are
reported as ``ConfigurationError``. Numerical degeneracies (zero-length
vectors, degenerate spheres, NaN samples) are handled inline by the engine and
never raised.
"""


class GlintError(Exception):
    """Base class for all renderer errors."""


class ConfigurationError(GlintError, ValueError):
    """Raised when render settings, a camera or a scene cannot be rendered.

    Subclasses ValueError so callers validating user input can catch either.
    """


class SceneFrozenError(GlintError, RuntimeError):
    """Raised when a scene is mutated while a frame is being rendered."""
