"""Tests for the built-in scenes."""

import pytest


class TestBuiltinScenes:
    """Tests for scene construction by name."""

    def test_available(self):
        from src.prism.scene.builtin import available_scenes

        assert available_scenes() == ["caustics", "csg", "default"]

    @pytest.mark.parametrize("name", ["default", "csg", "caustics"])
    def test_build(self, name):
        from src.prism.camera.pinhole import PinholeCamera
        from src.prism.scene.builtin import build_scene

        scene = build_scene(name)
        assert scene.name == name
        assert isinstance(scene.camera, PinholeCamera)
        assert scene.surfaces
        assert any(light.emits_photons for light in scene.lights)

    def test_fresh_copies(self):
        """Test that building twice gives independent scenes."""
        from src.prism.scene.builtin import build_scene

        a = build_scene("csg")
        b = build_scene("csg")
        assert a.surfaces[0] is not b.surfaces[0]

    def test_unknown(self):
        from src.prism.core.errors import SceneError
        from src.prism.scene.builtin import build_scene

        with pytest.raises(SceneError, match="cornell"):
            build_scene("cornell")

    @pytest.mark.parametrize("name, expected", [("default", 3), ("csg", 1), ("caustics", 2)])
    def test_specular_targets(self, name, expected):
        from src.prism.scene.builtin import build_scene

        assert len(build_scene(name).specular_targets()) == expected

    def test_lens_hit(self):
        import math

        from src.prism.core.ray import make_ray, vec3
        from src.prism.scene.builtin import build_scene

        scene = build_scene("csg")
        hit = scene.intersect(make_ray(vec3(0, 5, 5), vec3(0, -1, 0)))
        assert hit.surface.name is None
        assert hit.material.transparency == 1.0
        assert abs(hit.point[1] - (1.0 + math.sqrt(0.75))) < 1e-9


class TestCheckerTexture:
    def test_checker_grid_alternates(self):
        from src.prism.scene.builtin import checker_grid

        grid = checker_grid(squares=2, texels=2, dark=0.0, light=1.0)
        assert grid.width == 4
        assert grid.texel(0.1, 0.1)[0] == 1.0
        assert grid.texel(0.6, 0.1)[0] == 0.0
        assert grid.texel(0.6, 0.6)[0] == 1.0
