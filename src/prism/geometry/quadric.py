"""General quadric surfaces.

A quadric is the zero set of a second-degree polynomial

    a x^2 + 2b xy + 2c xz + 2d x + e y^2 + 2f yz + 2g y + h z^2 + 2i z + j = 0

stored as the symmetric 4x4 matrix

    Q = [[a, b, c, d],
         [b, e, f, g],
         [c, f, h, i],
         [d, g, i, j]]

so that a homogeneous point P = [x, y, z, 1] lies on the surface when
P^T Q P = 0. The solid interior is where the form is negative; cylinders,
cones and hyperboloids are unbounded and report infinite hits where the
ray's line stays inside them.

Example:
    >>> from src.prism.geometry.quadric import Quadric
    >>> tube = Quadric.cylinder(radius=0.5, axis="y")
    >>> lo, hi = tube.bounds()  # unbounded along y
"""

from __future__ import annotations

import math

import numpy as np

from src.prism.core.errors import SceneError
from src.prism.core.ray import Ray, Vec3, as_vec3, dot, ray_at
from src.prism.geometry.base import INF_BOUNDS, HitRecord, Surface, infinite_hit, require_positive
from src.prism.geometry.projection import planar_tangent, planar_uv

_AXES = {"x": 0, "y": 1, "z": 2}

# Relative size below which the quadratic coefficient is treated as zero
_LINEAR_EPSILON = 1e-12


def _axis_index(axis: str) -> int:
    try:
        return _AXES[axis.lower()]
    except (KeyError, AttributeError):
        raise SceneError(f"Axis must be one of 'x', 'y', 'z', got {axis!r}") from None


class Quadric(Surface):
    """A surface defined by a symmetric 4x4 coefficient matrix.

    Use the named constructors for common shapes and transformed() or
    translated() to place them.
    """

    def __init__(self, matrix, material=None, name: str | None = None):
        super().__init__(material, name)
        q = np.asarray(matrix, dtype=np.float64)
        if q.shape != (4, 4):
            raise SceneError(f"Quadric matrix must be 4x4, got shape {q.shape}")
        if not np.all(np.isfinite(q)):
            raise SceneError("Quadric coefficients must be finite")
        # Only the symmetric part contributes to the form
        self.matrix = 0.5 * (q + q.T)
        self._bounds: tuple[Vec3, Vec3] | None = None

    # =========================================================================
    # Constructors
    # =========================================================================

    @classmethod
    def from_coefficients(cls, a, b, c, d, e, f, g, h, i, j, material=None, name=None) -> Quadric:
        """Build a quadric from the ten polynomial coefficients a..j."""
        matrix = [
            [a, b, c, d],
            [b, e, f, g],
            [c, f, h, i],
            [d, g, i, j],
        ]
        return cls(matrix, material, name)

    @classmethod
    def ellipsoid(cls, radii, center=(0.0, 0.0, 0.0), material=None, name=None) -> Quadric:
        """Axis-aligned ellipsoid (x/rx)^2 + (y/ry)^2 + (z/rz)^2 = 1."""
        rx, ry, rz = (require_positive(r, "Ellipsoid radius") for r in radii)
        q = np.diag([1.0 / rx**2, 1.0 / ry**2, 1.0 / rz**2, -1.0])
        return cls(q, material, name).translated(center)

    @classmethod
    def cylinder(cls, radius: float, axis: str = "y", center=(0.0, 0.0, 0.0), material=None, name=None) -> Quadric:
        """Infinite circular cylinder of the given radius around an axis."""
        radius = require_positive(radius, "Cylinder radius")
        k = _axis_index(axis)
        diag = [1.0 / radius**2] * 3
        diag[k] = 0.0
        q = np.diag(diag + [-1.0])
        return cls(q, material, name).translated(center)

    @classmethod
    def cone(cls, slope: float, axis: str = "y", apex=(0.0, 0.0, 0.0), material=None, name=None) -> Quadric:
        """Infinite double cone whose radius grows by ``slope`` per unit along the axis."""
        slope = require_positive(slope, "Cone slope")
        k = _axis_index(axis)
        diag = [1.0, 1.0, 1.0, 0.0]
        diag[k] = -slope * slope
        return cls(np.diag(diag), material, name).translated(apex)

    def transformed(self, transform) -> Quadric:
        """Return this quadric under an affine 4x4 transform M.

        A point p on the new surface satisfies M^-1 p on the old one, so the
        coefficient matrix becomes M^-T Q M^-1.

        Raises:
            SceneError: If the transform is singular.
        """
        m = np.asarray(transform, dtype=np.float64)
        if m.shape != (4, 4):
            raise SceneError(f"Transform must be 4x4, got shape {m.shape}")
        try:
            inv = np.linalg.inv(m)
        except np.linalg.LinAlgError as exc:
            raise SceneError("Quadric transform is singular") from exc
        return Quadric(inv.T @ self.matrix @ inv, self.material, self.name)

    def translated(self, offset) -> Quadric:
        m = np.eye(4)
        m[:3, 3] = as_vec3(offset)
        if not m[:3, 3].any():
            return self
        return self.transformed(m)

    # =========================================================================
    # Intersection
    # =========================================================================

    def value(self, point: Vec3) -> float:
        """Evaluate the implicit form at a point (negative inside)."""
        p = np.append(point, 1.0)
        return float(p @ self.matrix @ p)

    def gradient(self, point: Vec3) -> Vec3:
        """Gradient of the implicit form; points out of the solid."""
        return 2.0 * (self.matrix[:3, :3] @ point + self.matrix[:3, 3])

    def intersect(self, ray: Ray) -> list[HitRecord]:
        """Intersect the ray's line with the quadric.

        Substituting P + tD into the form gives A t^2 + B t + C = 0 with
            A = D^T Q D,  B = 2 D^T Q P,  C = P^T Q P
        where D has a homogeneous weight of 0. The intervals where the
        polynomial is negative are the inside of the solid.

        Returns:
            Hits sorted by t. When A < 0 the line is inside at both ends and
            infinite hits bracket the two real roots.
        """
        if ray.is_degenerate:
            return []

        p = np.append(ray.origin, 1.0)
        d = np.append(ray.direction, 0.0)
        qp = self.matrix @ p
        a = float(d @ self.matrix @ d)
        b = 2.0 * float(d @ qp)
        c = float(p @ qp)

        scale = max(abs(a), abs(b), abs(c), 1.0)
        if abs(a) <= _LINEAR_EPSILON * scale:
            return self._intersect_linear(ray, b, c, scale)

        discriminant = b * b - 4.0 * a * c
        if discriminant < 0.0:
            if a < 0.0:
                # Negative everywhere along the line
                return [infinite_hit(ray, -math.inf, True, self), infinite_hit(ray, math.inf, False, self)]
            return []

        sqrt_d = math.sqrt(discriminant)
        q = -0.5 * (b + math.copysign(sqrt_d, b))
        t0 = q / a
        t1 = c / q if q != 0.0 else t0
        if t0 > t1:
            t0, t1 = t1, t0

        if a > 0.0:
            return [self._make_hit(ray, t0, True), self._make_hit(ray, t1, False)]
        return [
            infinite_hit(ray, -math.inf, True, self),
            self._make_hit(ray, t0, False),
            self._make_hit(ray, t1, True),
            infinite_hit(ray, math.inf, False, self),
        ]

    def _intersect_linear(self, ray: Ray, b: float, c: float, scale: float) -> list[HitRecord]:
        # The line runs parallel to an asymptotic direction of the surface
        if abs(b) <= _LINEAR_EPSILON * scale:
            if c < 0.0:
                return [infinite_hit(ray, -math.inf, True, self), infinite_hit(ray, math.inf, False, self)]
            return []
        t = -c / b
        if b > 0.0:
            return [infinite_hit(ray, -math.inf, True, self), self._make_hit(ray, t, False)]
        return [self._make_hit(ray, t, True), infinite_hit(ray, math.inf, False, self)]

    def _make_hit(self, ray: Ray, t: float, entering: bool) -> HitRecord:
        point = ray_at(ray, t)
        grad = self.gradient(point)
        norm = math.sqrt(dot(grad, grad))
        if norm < 1e-12:
            # Singular point such as a cone apex
            normal = -ray.direction if entering else ray.direction.copy()
        else:
            normal = grad / norm
        return HitRecord(
            t=t,
            point=point,
            normal=normal,
            entering=entering,
            material=self.material,
            uv=planar_uv(point, self.anchor(), normal),
            surface=self,
            tangent=planar_tangent(normal),
        )

    # =========================================================================
    # Bounds
    # =========================================================================

    def bounds(self) -> tuple[Vec3, Vec3]:
        """Axis-aligned bounds; finite only for ellipsoids.

        Writing the form as x^T A x + 2 b^T x + c with A positive definite,
        the solid is (x - m)^T A (x - m) <= k with m = -A^-1 b and
        k = b^T A^-1 b - c, whose half-extent along axis i is
        sqrt(k * (A^-1)_ii).
        """
        if self._bounds is None:
            self._bounds = self._compute_bounds()
        lo, hi = self._bounds
        return lo.copy(), hi.copy()

    def _compute_bounds(self) -> tuple[Vec3, Vec3]:
        a = self.matrix[:3, :3]
        b = self.matrix[:3, 3]
        c = self.matrix[3, 3]
        if np.min(np.linalg.eigvalsh(a)) <= 0.0:
            lo, hi = INF_BOUNDS
            return lo.copy(), hi.copy()
        a_inv = np.linalg.inv(a)
        center = -a_inv @ b
        k = float(b @ a_inv @ b - c)
        if k <= 0.0:
            # Empty or a single point
            return center.copy(), center.copy()
        half = np.sqrt(k * np.diag(a_inv))
        return center - half, center + half

    def anchor(self) -> Vec3:
        lo, hi = self.bounds()
        if np.all(np.isfinite(lo)) and np.all(np.isfinite(hi)):
            return 0.5 * (lo + hi)
        return np.zeros(3, dtype=np.float64)
