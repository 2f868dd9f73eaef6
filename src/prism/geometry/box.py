"""Axis-aligned box (cuboid) primitive.

A box is described by its minimum corner and its size along each axis and
is intersected with the slab method: the ray's parameter interval is
clipped against the pair of planes bounding each axis in turn.
"""

from __future__ import annotations

import math

import numpy as np

from src.prism.core.errors import SceneError
from src.prism.core.ray import Ray, Vec3, as_vec3, ray_at
from src.prism.geometry.base import HitRecord, Surface
from src.prism.geometry.projection import cuboid_tangent, cuboid_uv

# |direction component| below this counts as parallel to a slab
_PARALLEL_EPSILON = 1e-12


class Box(Surface):
    """An axis-aligned box.

    Attributes:
        corner: The corner with the smallest coordinates.
        size: Extent along x, y and z (all positive).
    """

    def __init__(self, corner, size, material=None, name: str | None = None):
        super().__init__(material, name)
        self.corner = as_vec3(corner)
        self.size = as_vec3(size)
        if not np.all(self.size > 0.0) or not np.all(np.isfinite(self.size)):
            raise SceneError(f"Box size must be positive along every axis, got {self.size}")
        self.lo = self.corner
        self.hi = self.corner + self.size

    @classmethod
    def from_bounds(cls, lo, hi, material=None, name: str | None = None) -> Box:
        lo = as_vec3(lo)
        return cls(lo, as_vec3(hi) - lo, material, name)

    def intersect(self, ray: Ray) -> list[HitRecord]:
        """Slab intersection over the whole line.

        Returns:
            The entering and exiting hits, or an empty list when the line
            misses the box or only grazes an edge or face.
        """
        if ray.is_degenerate:
            return []

        t_near, t_far = -math.inf, math.inf
        near_axis = far_axis = -1
        for axis in range(3):
            o = ray.origin[axis]
            d = ray.direction[axis]
            if abs(d) < _PARALLEL_EPSILON:
                if o < self.lo[axis] or o > self.hi[axis]:
                    return []
                continue
            t0 = (self.lo[axis] - o) / d
            t1 = (self.hi[axis] - o) / d
            if t0 > t1:
                t0, t1 = t1, t0
            if t0 > t_near:
                t_near, near_axis = t0, axis
            if t1 < t_far:
                t_far, far_axis = t1, axis

        if not t_near < t_far:
            return []

        return [
            self._make_hit(ray, t_near, near_axis, True),
            self._make_hit(ray, t_far, far_axis, False),
        ]

    def _make_hit(self, ray: Ray, t: float, axis: int, entering: bool) -> HitRecord:
        point = ray_at(ray, t)
        normal = np.zeros(3, dtype=np.float64)
        # Entering faces look against the ray, exiting faces along it
        sign = math.copysign(1.0, ray.direction[axis])
        normal[axis] = -sign if entering else sign
        return HitRecord(
            t=t,
            point=point,
            normal=normal,
            entering=entering,
            material=self.material,
            uv=cuboid_uv(point, normal, self.lo, self.hi),
            surface=self,
            tangent=cuboid_tangent(normal, self.lo, self.hi),
        )

    def contains(self, point: Vec3) -> bool:
        return bool(np.all(point >= self.lo) and np.all(point <= self.hi))

    def bounds(self) -> tuple[Vec3, Vec3]:
        return self.lo.copy(), self.hi.copy()
