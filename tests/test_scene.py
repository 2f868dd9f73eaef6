"""Unit tests for the Scene container."""

import numpy as np
import pytest


@pytest.fixture
def two_spheres():
    from src.prism.core.ray import vec3
    from src.prism.geometry.sphere import Sphere
    from src.prism.materials.material import Material
    from src.prism.scene.scene import Scene

    near = Sphere(vec3(0, 0, -3), 1.0, material=Material.matte((1, 0, 0)), name="near")
    far = Sphere(vec3(0, 0, -10), 1.0, material=Material.glass(), name="far")
    return Scene([far, near], name="spheres"), near, far


class TestSceneConstruction:
    """Tests for adding surfaces and lights."""

    def test_surface_owned_once(self):
        from src.prism.core.errors import SceneError
        from src.prism.geometry.sphere import Sphere
        from src.prism.scene.scene import Scene

        sphere = Sphere((0, 0, 0), 1.0)
        Scene([sphere])
        with pytest.raises(SceneError):
            Scene([sphere])

    def test_csg_child_cannot_be_root(self):
        from src.prism.core.errors import SceneError
        from src.prism.geometry.csg import CSGNode
        from src.prism.geometry.sphere import Sphere
        from src.prism.scene.scene import Scene

        child = Sphere((0, 0, 0), 1.0)
        node = CSGNode.union(child, Sphere((1, 0, 0), 1.0))
        scene = Scene([node])
        with pytest.raises(SceneError):
            scene.add(child)

    def test_type_checks(self):
        from src.prism.core.errors import SceneError
        from src.prism.scene.scene import Scene

        scene = Scene()
        with pytest.raises(SceneError):
            scene.add("sphere")
        with pytest.raises(SceneError):
            scene.add_light(1.0)


class TestSceneQueries:
    """Tests for ray queries and extents."""

    def test_intersect_returns_closest(self, two_spheres):
        from src.prism.core.ray import make_ray, vec3

        scene, near, _ = two_spheres
        hit = scene.intersect(make_ray(vec3(0, 0, 0), vec3(0, 0, -1)))
        assert hit.surface is near
        assert abs(hit.t - 2.0) < 1e-9

    def test_intersect_respects_t_max(self, two_spheres):
        from src.prism.core.ray import make_ray, vec3

        scene, _, _ = two_spheres
        assert scene.intersect(make_ray(vec3(0, 0, 0), vec3(0, 0, -1), t_max=1.5)) is None
        assert scene.occluded(make_ray(vec3(0, 0, 0), vec3(0, 0, -1), t_max=2.5))
        assert not scene.occluded(make_ray(vec3(0, 0, 0), vec3(0, 0, 1)))

    def test_bounding_sphere(self, two_spheres):
        from src.prism.core.ray import length

        scene, near, far = two_spheres
        center, radius = scene.bounding_sphere()
        for sphere in (near, far):
            assert length(sphere.center - center) + sphere.radius <= radius + 1e-9

    def test_bounding_sphere_ignores_planes(self):
        from src.prism.geometry.plane import Plane
        from src.prism.scene.scene import Scene

        center, radius = Scene([Plane((0, 0, 0), (0, 1, 0))]).bounding_sphere()
        assert np.allclose(center, 0.0)
        assert radius == 1.0

    def test_specular_targets(self, two_spheres):
        scene, _, far = two_spheres
        targets = scene.specular_targets()
        assert len(targets) == 1
        assert np.allclose(targets[0][0], far.center)

    def test_specular_targets_through_csg(self):
        from src.prism.geometry.csg import CSGNode
        from src.prism.geometry.sphere import Sphere
        from src.prism.materials.material import Material
        from src.prism.scene.scene import Scene

        lens = CSGNode.intersection(
            Sphere((0, 0, 0), 1.0, material=Material.glass()),
            Sphere((1, 0, 0), 1.0, material=Material.glass()),
        )
        assert len(Scene([lens]).specular_targets()) == 1

    def test_ambient_intensity(self):
        from src.prism.lights.lights import AmbientLight, PositionalLight
        from src.prism.scene.scene import Scene

        scene = Scene(lights=[AmbientLight(0.1), AmbientLight((0.0, 0.2, 0.0)), PositionalLight((0, 1, 0), 5.0)])
        assert np.allclose(scene.ambient_intensity(), [0.1, 0.3, 0.1])


class TestPhotonMapAttachment:
    """Tests for the attach-once rule."""

    def test_query_before_attach(self):
        from src.prism.core.errors import InvariantViolation
        from src.prism.scene.scene import Scene

        scene = Scene()
        assert not scene.has_photon_maps
        with pytest.raises(InvariantViolation):
            scene.photon_maps

    def test_attach_once(self):
        from src.prism.core.errors import InvariantViolation
        from src.prism.photon.photon_map import PhotonMaps
        from src.prism.scene.scene import Scene

        scene = Scene()
        maps = PhotonMaps.empty()
        scene.attach_photon_maps(maps)
        assert scene.photon_maps is maps
        with pytest.raises(InvariantViolation):
            scene.attach_photon_maps(PhotonMaps.empty())
