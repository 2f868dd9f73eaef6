"""Surface contract shared by every primitive and by CSG nodes.

Every surface reports *all* crossings of the infinite line carrying a ray,
not only the nearest one in front of the origin. The sequence is sorted by
``t`` and alternates entering/exiting, starting with an entering hit; solids
that extend to infinity along the line report hits at ``t = -inf`` or
``t = +inf``. This is the shape the CSG evaluator needs to build intervals.
Callers that only want the visible surface use ``closest_hit``, which keeps
hits strictly inside ``(ray.t_min, ray.t_max)``.

Example:
    >>> from src.prism.core.ray import make_ray, vec3
    >>> from src.prism.geometry.sphere import Sphere
    >>> sphere = Sphere(vec3(0.0, 0.0, -5.0), 1.0)
    >>> hits = sphere.intersect(make_ray(vec3(0, 0, 0), vec3(0, 0, -1)))
    >>> [round(h.t, 6) for h in hits], [h.entering for h in hits]
    ([4.0, 6.0], [True, False])
"""

from __future__ import annotations

import dataclasses
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from src.prism.core.errors import InvariantViolation, SceneError
from src.prism.core.ray import Ray, Vec3, as_vec3, length

if TYPE_CHECKING:
    from src.prism.materials.material import Material

INF_BOUNDS = (np.full(3, -np.inf), np.full(3, np.inf))


@dataclass(frozen=True, eq=False)
class HitRecord:
    """One crossing of a ray's line with a surface.

    Attributes:
        t: Ray parameter of the crossing (may be -inf or +inf).
        point: World-space position (all components +-inf for infinite hits).
        normal: Outward unit normal of the solid at the crossing.
        entering: True when the ray passes from outside to inside.
        material: Material of the surface, or a CSG override.
        uv: Native texture coordinates of the primitive, None when undefined.
        surface: The primitive that produced the hit.
        tangent: Direction in which the native u coordinate grows, None
            when the primitive has no such direction.
    """

    t: float
    point: Vec3
    normal: Vec3
    entering: bool
    material: Material | None = None
    uv: tuple[float, float] | None = None
    surface: Surface | None = None
    tangent: Vec3 | None = None

    @property
    def facing_normal(self) -> Vec3:
        """Normal oriented against the incoming ray."""
        return self.normal if self.entering else -self.normal

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.t)

    def with_role(self, entering: bool) -> HitRecord:
        """Return this hit relabelled as entering or exiting.

        When the label changes the outward normal is flipped, since the
        crossing now bounds the solid from the other side.
        """
        if self.entering == entering:
            return self
        return dataclasses.replace(self, entering=entering, normal=-self.normal)

    def with_material(self, material: Material | None) -> HitRecord:
        return dataclasses.replace(self, material=material)


def infinite_hit(ray: Ray, t: float, entering: bool, surface: Surface) -> HitRecord:
    """Create the placeholder hit of an unbounded solid at t = +-inf."""
    sign = 1.0 if t > 0 else -1.0
    return HitRecord(
        t=t,
        point=np.full(3, sign * np.inf),
        normal=-ray.direction if entering else ray.direction.copy(),
        entering=entering,
        material=surface.material,
        uv=None,
        surface=surface,
    )


def check_hit_sequence(hits: list[HitRecord], source: Any = None) -> None:
    """Verify the ordering contract of a hit sequence.

    Raises:
        InvariantViolation: If the hits are not sorted by t or do not
            alternate entering/exiting starting with an entering hit.
    """
    expect_entering = True
    previous = -math.inf
    for hit in hits:
        if hit.t < previous:
            raise InvariantViolation(f"Hits from {source!r} are not sorted by t")
        if hit.entering != expect_entering:
            raise InvariantViolation(f"Hits from {source!r} do not alternate entering/exiting")
        previous = hit.t
        expect_entering = not expect_entering


class Surface(ABC):
    """Base class for anything a ray can intersect.

    Subclasses implement intersect() and bounds(). A surface can belong to
    at most one parent (a CSG node or a scene), which keeps the scene graph
    a tree.
    """

    def __init__(self, material: Material | None = None, name: str | None = None):
        self.material = material
        self.name = name
        self._parent: Any = None

    @abstractmethod
    def intersect(self, ray: Ray) -> list[HitRecord]:
        """Return every crossing of the ray's line, sorted by t."""

    @abstractmethod
    def bounds(self) -> tuple[Vec3, Vec3]:
        """Axis-aligned (lo, hi) bounds; infinite for unbounded surfaces."""

    def closest_hit(self, ray: Ray) -> HitRecord | None:
        """Return the first hit with t strictly inside (t_min, t_max)."""
        for hit in self.intersect(ray):
            if ray.t_min < hit.t < ray.t_max:
                return hit
            if hit.t >= ray.t_max:
                break
        return None

    def bounding_sphere(self) -> tuple[Vec3, float] | None:
        """Sphere enclosing the surface, or None if it is unbounded."""
        lo, hi = self.bounds()
        if not (np.all(np.isfinite(lo)) and np.all(np.isfinite(hi))):
            return None
        center = 0.5 * (lo + hi)
        return center, 0.5 * length(hi - lo)

    def anchor(self) -> Vec3:
        """Reference point used by texture projections."""
        sphere = self.bounding_sphere()
        if sphere is None:
            return np.zeros(3, dtype=np.float64)
        return sphere[0]

    def primitives(self) -> list[Surface]:
        """Leaf surfaces below this one (itself for primitives)."""
        return [self]

    def attach_to(self, parent: Any) -> None:
        """Record the single owner of this surface.

        Raises:
            SceneError: If the surface already belongs to another owner.
        """
        if self._parent is not None:
            raise SceneError(f"{self!r} is already part of {self._parent!r}")
        self._parent = parent

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return f"<{type(self).__name__}{label}>"


def require_positive(value: float, what: str) -> float:
    value = float(value)
    if not value > 0.0 or not math.isfinite(value):
        raise SceneError(f"{what} must be positive and finite, got {value}")
    return value


def require_direction(value, what: str) -> Vec3:
    v = as_vec3(value)
    n = length(v)
    if n < 1e-12 or not math.isfinite(n):
        raise SceneError(f"{what} must be a non-zero finite vector")
    return v / n
