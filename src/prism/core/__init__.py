"""Core rendering module.

This module contains the fundamental building blocks of the renderer:

Components:
    ray: Vector helpers and the Ray data structure
    errors: Exception hierarchy
    config: RenderSettings and YAML loading
    framebuffer: Taichi-backed color and depth planes
    integrator: Recursive Whitted shader with photon-map illumination
    renderer: Photon pass plus threaded image pass
"""

from .config import FRESNEL_MODES, RADIANCE_FILTERS, RenderSettings
from .errors import ConfigError, InvariantViolation, PrismError, SceneError
from .ray import (
    RAY_EPSILON,
    T_MAX,
    T_MIN,
    Ray,
    build_onb_from_normal,
    cross,
    dot,
    fresnel_reflectance,
    length,
    length_squared,
    local_to_world,
    make_ray,
    normalize,
    offset_ray_origin,
    random_cosine_direction,
    random_in_unit_disk,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    sample_cosine_hemisphere,
    schlick_fresnel,
    vec3,
)

# Note: framebuffer, integrator and renderer are NOT imported here; they pull
# in the scene and photon packages. Import them directly when needed:
#   from src.prism.core.renderer import Renderer

__all__ = [
    # Ray and vectors
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "RAY_EPSILON",
    "T_MIN",
    "T_MAX",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_fresnel",
    "fresnel_reflectance",
    "offset_ray_origin",
    "random_unit_vector",
    "random_in_unit_disk",
    "random_cosine_direction",
    "build_onb_from_normal",
    "local_to_world",
    "sample_cosine_hemisphere",
    # Errors
    "PrismError",
    "SceneError",
    "ConfigError",
    "InvariantViolation",
    # Settings
    "RenderSettings",
    "FRESNEL_MODES",
    "RADIANCE_FILTERS",
]
