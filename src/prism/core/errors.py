"""Exception hierarchy for the prism renderer.

Degenerate numerics (a ray parallel to a plane, a negative discriminant, an
empty photon neighbourhood) are ordinary outcomes and never raise. The
classes here cover invalid input and broken internal contracts only.
"""


class PrismError(Exception):
    """Base class for every error raised by prism."""


class SceneError(PrismError, ValueError):
    """A scene, surface, material or texture was constructed with invalid data."""


class ConfigError(PrismError, ValueError):
    """Render settings are malformed or out of range."""


class InvariantViolation(PrismError, AssertionError):
    """An internal contract between components was broken.

    Raised for programming faults such as a non-unit normal reaching the
    shader or an unsorted hit sequence coming out of a CSG child. These are
    never caught inside the renderer.
    """
