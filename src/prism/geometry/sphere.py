"""Sphere primitive with robust ray-sphere intersection.

This module provides the Sphere surface and the robust quadratic solver from
Ray Tracing Gems, which avoids catastrophic cancellation when b^2 is nearly
equal to 4ac.

Example:
    >>> from src.prism.core.ray import make_ray, vec3
    >>> from src.prism.geometry.sphere import Sphere
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5)
    >>> hit = sphere.closest_hit(make_ray(vec3(0, 0, 0), vec3(0, 0, -1)))
    >>> round(hit.t, 6)
    0.5
"""

from __future__ import annotations

import math

import numpy as np

from src.prism.core.ray import Ray, Vec3, as_vec3, dot, ray_at
from src.prism.geometry.base import HitRecord, Surface, require_positive
from src.prism.geometry.projection import spherical_tangent, spherical_uv


def solve_quadratic_robust(h: float, a: float, c: float, sqrt_d: float) -> tuple[float, float]:
    """Solve quadratic equation using robust formula from Ray Tracing Gems.

    Solves a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = -1.0 if h < 0.0 else 1.0
    q = -(h + sign_h * sqrt_d)

    if abs(q) < 1e-12:
        # Fall back to standard formula for edge cases
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        t0, t1 = t1, t0
    return t0, t1


class Sphere(Surface):
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere.
        radius: The radius of the sphere (positive float).
    """

    def __init__(self, center, radius: float, material=None, name: str | None = None):
        super().__init__(material, name)
        self.center = as_vec3(center)
        self.radius = require_positive(radius, "Sphere radius")

    def intersect(self, ray: Ray) -> list[HitRecord]:
        """Intersect the ray's line with the sphere.

        The ray-sphere intersection is found by solving:
            |origin + t * direction - center|^2 = radius^2

        which expands to a*t^2 + 2*h*t + c = 0 with
            a = dot(direction, direction)
            h = dot(direction, oc)  (half of traditional b)
            c = dot(oc, oc) - radius^2
            oc = origin - center

        Args:
            ray: The ray to test.

        Returns:
            An empty list on a miss, otherwise the entering and exiting hits.
            A tangent ray yields two hits at the same t.
        """
        if ray.is_degenerate:
            return []

        oc = ray.origin - self.center
        a = dot(ray.direction, ray.direction)
        h = dot(ray.direction, oc)
        c = dot(oc, oc) - self.radius * self.radius

        discriminant = h * h - a * c
        if discriminant < 0.0:
            return []

        t0, t1 = solve_quadratic_robust(h, a, c, math.sqrt(discriminant))
        return [self._make_hit(ray, t0, True), self._make_hit(ray, t1, False)]

    def _make_hit(self, ray: Ray, t: float, entering: bool) -> HitRecord:
        point = ray_at(ray, t)
        # Outward normal: points from center to hit point
        normal = (point - self.center) / self.radius
        normal = normal / math.sqrt(dot(normal, normal))
        return HitRecord(
            t=t,
            point=point,
            normal=normal,
            entering=entering,
            material=self.material,
            uv=spherical_uv(point, self.center),
            surface=self,
            tangent=spherical_tangent(point, self.center),
        )

    def bounds(self) -> tuple[Vec3, Vec3]:
        r = np.full(3, self.radius)
        return self.center - r, self.center + r

    def bounding_sphere(self) -> tuple[Vec3, float]:
        return self.center.copy(), self.radius

    def anchor(self) -> Vec3:
        return self.center.copy()
