"""Infinite plane bounding a half-space.

The solid side of a plane is the half-space behind its normal, so a plane
can take part in CSG (for example to cut a sphere in half). Rays running
parallel to the plane never produce a finite hit.
"""

from __future__ import annotations

import math

from src.prism.core.errors import SceneError
from src.prism.core.ray import Ray, Vec3, as_vec3, cross, dot, normalize, ray_at
from src.prism.geometry.base import INF_BOUNDS, HitRecord, Surface, infinite_hit, require_direction
from src.prism.geometry.projection import oriented_planar_uv

# |dot(normal, direction)| below this counts as parallel
_PARALLEL_EPSILON = 1e-12


class Plane(Surface):
    """A plane through ``point`` with outward ``normal``.

    Args:
        point: Any point on the plane; also the texture origin.
        normal: Outward normal (normalized on construction).
        up: Texture "up" direction. Projected onto the plane; defaults to a
            direction perpendicular to the normal.
        material: Surface material.
    """

    def __init__(self, point, normal, up=None, material=None, name: str | None = None):
        super().__init__(material, name)
        self.point = as_vec3(point)
        self.normal = require_direction(normal, "Plane normal")

        if up is None:
            up = (0.0, 1.0, 0.0) if abs(self.normal[1]) < 0.9 else (0.0, 0.0, -1.0)
        up = as_vec3(up)
        up = up - dot(up, self.normal) * self.normal
        if dot(up, up) < 1e-12:
            raise SceneError("Plane up vector must not be parallel to the normal")
        self.up = normalize(up)
        self.right = normalize(cross(self.up, self.normal))

    def signed_distance(self, point: Vec3) -> float:
        """Distance of a point in front of the plane (negative inside the solid)."""
        return dot(self.normal, point - self.point)

    def intersect(self, ray: Ray) -> list[HitRecord]:
        if ray.is_degenerate:
            return []

        u = self.signed_distance(ray.origin)
        v = dot(self.normal, ray.direction)

        if abs(v) < _PARALLEL_EPSILON:
            if u < 0.0:
                # The whole line lies inside the half-space
                return [
                    infinite_hit(ray, -math.inf, True, self),
                    infinite_hit(ray, math.inf, False, self),
                ]
            return []

        t = -u / v
        if v > 0.0:
            # Moving along the normal: leaving the solid at t
            return [infinite_hit(ray, -math.inf, True, self), self._make_hit(ray, t, False)]
        return [self._make_hit(ray, t, True), infinite_hit(ray, math.inf, False, self)]

    def _make_hit(self, ray: Ray, t: float, entering: bool) -> HitRecord:
        point = ray_at(ray, t)
        return HitRecord(
            t=t,
            point=point,
            normal=self.normal.copy(),
            entering=entering,
            material=self.material,
            uv=oriented_planar_uv(point, self.point, self.normal, self.up),
            surface=self,
            tangent=self.right.copy(),
        )

    def bounds(self) -> tuple[Vec3, Vec3]:
        lo, hi = INF_BOUNDS
        return lo.copy(), hi.copy()

    def anchor(self) -> Vec3:
        return self.point.copy()
