"""Unit tests for general quadric surfaces.

Tests cover:
- Ellipsoids matching spheres and their bounds
- Unbounded cylinders and cones with infinite hits
- Lines parallel to an asymptotic direction
- Affine transforms of the coefficient matrix
"""

import math

import numpy as np
import pytest


class TestQuadricConstruction:
    """Tests for the named constructors."""

    def test_matrix_is_symmetrized(self):
        from src.prism.geometry.quadric import Quadric

        m = np.diag([1.0, 1.0, 1.0, -1.0])
        m[0, 1] = 2.0
        q = Quadric(m)
        assert np.allclose(q.matrix, q.matrix.T)
        assert abs(q.matrix[0, 1] - 1.0) < 1e-12

    def test_wrong_shape(self):
        from src.prism.core.errors import SceneError
        from src.prism.geometry.quadric import Quadric

        with pytest.raises(SceneError):
            Quadric(np.eye(3))

    def test_unknown_axis(self):
        from src.prism.core.errors import SceneError
        from src.prism.geometry.quadric import Quadric

        with pytest.raises(SceneError):
            Quadric.cylinder(1.0, axis="w")

    def test_singular_transform(self):
        from src.prism.core.errors import SceneError
        from src.prism.geometry.quadric import Quadric

        with pytest.raises(SceneError):
            Quadric.ellipsoid((1, 1, 1)).transformed(np.zeros((4, 4)))

    def test_from_coefficients_unit_sphere(self):
        from src.prism.core.ray import vec3
        from src.prism.geometry.quadric import Quadric

        q = Quadric.from_coefficients(1, 0, 0, 0, 1, 0, 0, 1, 0, -1)
        assert abs(q.value(vec3(1, 0, 0))) < 1e-12
        assert q.value(vec3(0, 0, 0)) < 0.0


class TestEllipsoid:
    """Tests for bounded quadrics."""

    def test_unit_ellipsoid_matches_sphere(self):
        from src.prism.core.ray import make_ray, normalize, vec3
        from src.prism.geometry.quadric import Quadric
        from src.prism.geometry.sphere import Sphere

        ellipsoid = Quadric.ellipsoid((1, 1, 1), center=(0, 0, -3))
        sphere = Sphere(vec3(0, 0, -3), 1.0)
        ray = make_ray(vec3(0.2, 0.1, 0), normalize(vec3(0.0, 0.05, -1)))
        e_hits = ellipsoid.intersect(ray)
        s_hits = sphere.intersect(ray)
        assert len(e_hits) == 2
        for e, s in zip(e_hits, s_hits):
            assert abs(e.t - s.t) < 1e-9
            assert e.entering == s.entering
            assert np.allclose(e.normal, s.normal, atol=1e-9)

    def test_bounds(self):
        from src.prism.geometry.quadric import Quadric

        lo, hi = Quadric.ellipsoid((1, 2, 3), center=(1, 0, 0)).bounds()
        assert np.allclose(lo, [0, -2, -3])
        assert np.allclose(hi, [2, 2, 3])

    def test_stretched_hit(self):
        from src.prism.core.ray import make_ray, vec3
        from src.prism.geometry.quadric import Quadric

        ellipsoid = Quadric.ellipsoid((1, 2, 1))
        hit = ellipsoid.closest_hit(make_ray(vec3(0, 5, 0), vec3(0, -1, 0)))
        assert abs(hit.t - 3.0) < 1e-9
        assert np.allclose(hit.normal, [0, 1, 0])


class TestUnboundedQuadrics:
    """Tests for cylinders and cones."""

    def test_cylinder_bounds_infinite(self):
        from src.prism.geometry.quadric import Quadric

        assert Quadric.cylinder(1.0).bounding_sphere() is None

    def test_cylinder_side_hit(self):
        from src.prism.core.ray import make_ray, vec3
        from src.prism.geometry.quadric import Quadric

        cylinder = Quadric.cylinder(0.5, axis="y")
        hits = cylinder.intersect(make_ray(vec3(3, 7, 0), vec3(-1, 0, 0)))
        assert len(hits) == 2
        assert abs(hits[0].t - 2.5) < 1e-9
        assert np.allclose(hits[0].normal, [1, 0, 0])

    def test_line_along_cylinder_axis_inside(self):
        """Test that a line inside and parallel to the axis is inside everywhere."""
        from src.prism.core.ray import make_ray, vec3
        from src.prism.geometry.quadric import Quadric

        cylinder = Quadric.cylinder(1.0, axis="y")
        hits = cylinder.intersect(make_ray(vec3(0.2, 0, 0), vec3(0, 1, 0)))
        assert [h.t for h in hits] == [-math.inf, math.inf]

    def test_line_along_cylinder_axis_outside(self):
        from src.prism.core.ray import make_ray, vec3
        from src.prism.geometry.quadric import Quadric

        cylinder = Quadric.cylinder(1.0, axis="y")
        assert cylinder.intersect(make_ray(vec3(2, 0, 0), vec3(0, 1, 0))) == []

    def test_cone_along_axis_has_four_hits(self):
        """Test that a line through both nappes reports infinite brackets."""
        from src.prism.core.ray import make_ray, normalize, vec3
        from src.prism.geometry.base import check_hit_sequence
        from src.prism.geometry.quadric import Quadric

        cone = Quadric.cone(1.0, axis="y")
        ray = make_ray(vec3(0.1, -5, 0), normalize(vec3(0.01, 1, 0)))
        hits = cone.intersect(ray)
        assert len(hits) == 4
        assert hits[0].t == -math.inf
        assert hits[-1].t == math.inf
        check_hit_sequence(hits, cone)

    def test_cone_linear_case(self):
        """Test a line parallel to a generator of the cone."""
        from src.prism.core.ray import make_ray, normalize, vec3
        from src.prism.geometry.base import check_hit_sequence
        from src.prism.geometry.quadric import Quadric

        cone = Quadric.cone(1.0, axis="y")
        ray = make_ray(vec3(0.5, 0, 0), normalize(vec3(1, 1, 0)))
        hits = cone.intersect(ray)
        assert len(hits) == 2
        check_hit_sequence(hits, cone)
        finite = [h for h in hits if h.is_finite]
        assert len(finite) == 1

    def test_translated(self):
        from src.prism.core.ray import vec3
        from src.prism.geometry.quadric import Quadric

        cylinder = Quadric.cylinder(1.0, axis="z", center=(5, 0, 0))
        assert abs(cylinder.value(vec3(6, 0, 10))) < 1e-12
        assert cylinder.value(vec3(5, 0, -3)) < 0.0
