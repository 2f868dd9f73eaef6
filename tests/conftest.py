"""Pytest configuration for raytracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import numpy as np
import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield
    # Note: We don't call ti.reset() here as it can cause issues
    # with subsequent tests if any cleanup happens after


@pytest.fixture
def rng():
    """Seeded random generator for sampling tests."""
    return np.random.default_rng(12345)


@pytest.fixture
def lit_sphere_scene():
    """Unit white sphere at the origin with a point light straight above it."""
    from src.prism.camera.pinhole import PinholeCamera
    from src.prism.core.ray import vec3
    from src.prism.geometry.sphere import Sphere
    from src.prism.lights.lights import PositionalLight
    from src.prism.materials.material import Material
    from src.prism.scene.scene import Scene

    scene = Scene(name="lit sphere")
    scene.add(Sphere(vec3(0.0, 0.0, 0.0), 1.0, Material(ambient=0.0, diffuse=1.0)))
    scene.add_light(PositionalLight(vec3(0.0, 5.0, 0.0), intensity=(1.0, 1.0, 1.0), attenuation=(1.0, 0.1, 0.01)))
    scene.camera = PinholeCamera(lookfrom=(0.0, 5.0, 0.0), lookat=(0.0, 0.0, 0.0), vup=(0.0, 0.0, -1.0), vfov=30.0)
    return scene
