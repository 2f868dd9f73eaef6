"""Unit tests for the Fresnel split between reflection and refraction.

Tests cover:
- Reflectance of glass at normal incidence
- Total internal reflection (TIR)
- Opaque reflectors
- Weight bound w_reflect + w_transmit <= 1
- IOR and mode validation
"""

import math

import numpy as np
import pytest


class TestFresnel:
    """Tests for the fresnel() dispatcher."""

    def test_modes(self):
        from src.prism.materials.dielectric import fresnel

        assert abs(fresnel(1.0, 1.0, 1.5, "exact") - 0.04) < 1e-12
        assert abs(fresnel(1.0, 1.0, 1.5, "schlick") - 0.04) < 1e-12

    def test_unknown_mode(self):
        from src.prism.materials.dielectric import fresnel

        with pytest.raises(ValueError):
            fresnel(1.0, 1.0, 1.5, "polarized")

    def test_invalid_index(self):
        from src.prism.materials.dielectric import fresnel

        with pytest.raises(ValueError):
            fresnel(1.0, 1.0, 0.0)

    def test_media(self):
        from src.prism.materials.dielectric import media
        from src.prism.materials.material import Material

        glass = Material.glass(1.5)
        assert media(glass, True) == (1.0, 1.5)
        assert media(glass, False) == (1.5, 1.0)


class TestSpecularSplit:
    """Tests for specular_split()."""

    def test_glass_normal_incidence(self):
        """Test that about 4% of the light is reflected by glass."""
        from src.prism.core.ray import vec3
        from src.prism.materials.dielectric import specular_split
        from src.prism.materials.material import Material

        split = specular_split(Material.glass(1.5), vec3(0, 0, -1), vec3(0, 0, 1), entering=True)
        assert abs(split.w_reflect - 0.04) < 1e-9
        assert abs(split.w_transmit - 0.96) < 1e-9
        assert np.allclose(split.reflected, [0, 0, 1])
        assert np.allclose(split.refracted, [0, 0, -1])

    def test_total_internal_reflection(self):
        """Test that a grazing ray inside glass is fully reflected."""
        from src.prism.core.ray import normalize, vec3
        from src.prism.materials.dielectric import specular_split
        from src.prism.materials.material import Material

        direction = normalize(vec3(0.9, 0.0, 0.1))
        # Leaving through a face whose outward normal is +z
        split = specular_split(Material.glass(1.5), direction, vec3(0, 0, -1), entering=False)
        assert split.refracted is None
        assert split.w_transmit == 0.0
        assert abs(split.w_reflect - 1.0) < 1e-12
        assert split.reflected[2] < 0.0

    def test_opaque_reflector(self):
        from src.prism.core.ray import normalize, vec3
        from src.prism.materials.dielectric import specular_split
        from src.prism.materials.material import Material

        split = specular_split(
            Material.mirror(0.7), normalize(vec3(1, -1, 0)), vec3(0, 1, 0), entering=True
        )
        assert split.w_reflect == 0.7
        assert split.w_transmit == 0.0
        assert split.refracted is None
        assert np.allclose(split.reflected, normalize(vec3(1, 1, 0)))

    def test_weights_bounded(self):
        """Test w_reflect + w_transmit <= 1 across angles and materials."""
        from src.prism.core.ray import vec3
        from src.prism.materials.dielectric import specular_split
        from src.prism.materials.material import Material

        materials = [
            Material.glass(1.5),
            Material.glass(2.4),
            Material.translucent((0.9, 0.8, 0.2), transparency=0.7),
            Material(reflectivity=1.0, transparency=1.0, ior=1.1),
        ]
        normal = vec3(0, 0, 1)
        for material in materials:
            for mode in ("exact", "schlick"):
                for angle in np.linspace(0.0, math.radians(89.0), 12):
                    direction = vec3(math.sin(angle), 0.0, -math.cos(angle))
                    for entering, facing in ((True, normal), (False, -normal)):
                        d = direction if entering else -direction
                        split = specular_split(material, d, facing, entering, mode)
                        assert split.w_reflect >= 0.0
                        assert split.w_transmit >= 0.0
                        assert split.w_reflect + split.w_transmit <= 1.0 + 1e-12

    def test_reflectance_grows_with_angle(self):
        from src.prism.core.ray import vec3
        from src.prism.materials.dielectric import specular_split
        from src.prism.materials.material import Material

        glass = Material.glass(1.5)
        previous = 0.0
        for angle in np.linspace(0.0, math.radians(85.0), 10):
            direction = vec3(math.sin(angle), 0.0, -math.cos(angle))
            split = specular_split(glass, direction, vec3(0, 0, 1), entering=True)
            assert split.w_reflect >= previous - 1e-12
            previous = split.w_reflect

    def test_non_unit_normal(self):
        from src.prism.core.errors import InvariantViolation
        from src.prism.core.ray import vec3
        from src.prism.materials.dielectric import specular_split
        from src.prism.materials.material import Material

        with pytest.raises(InvariantViolation):
            specular_split(Material.glass(), vec3(0, 0, -1), vec3(0, 0, 2), entering=True)
