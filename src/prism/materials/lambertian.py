"""Lambertian diffuse and Phong specular reflection terms.

These are the local-illumination terms of the Whitted shader together with
the diffuse bounce used by the photon tracer:

    diffuse  = kd * base * max(0, n.l) * I * att
    specular = ks * max(0, r.v)^shininess * I * att,   r = reflect(-l, n)

Example:
    >>> import numpy as np
    >>> from src.prism.core.ray import vec3
    >>> from src.prism.materials.lambertian import lambert
    >>> n = vec3(0, 1, 0)
    >>> lambert(np.ones(3), np.ones(3), n, n)
    array([1., 1., 1.])
"""

from __future__ import annotations

import numpy as np

from src.prism.core.ray import Vec3, dot, reflect, sample_cosine_hemisphere


def lambert(diffuse: Vec3, base_color: Vec3, normal: Vec3, to_light: Vec3) -> Vec3:
    """Lambertian reflectance toward a light.

    Args:
        diffuse: Diffuse reflectance of the material.
        base_color: Texture or white base color.
        normal: Shading normal facing the viewer.
        to_light: Unit direction from the surface to the light.

    Returns:
        RGB factor to be multiplied by the light's irradiance.
    """
    cos_theta = max(0.0, dot(normal, to_light))
    return diffuse * base_color * cos_theta


def phong(specular: Vec3, shininess: float, normal: Vec3, to_light: Vec3, to_viewer: Vec3) -> Vec3:
    """Phong highlight toward the viewer.

    Returns zero when the light is behind the surface.
    """
    if dot(normal, to_light) <= 0.0 or not np.any(specular > 0.0):
        return np.zeros(3)
    r = reflect(-to_light, normal)
    cos_alpha = max(0.0, dot(r, to_viewer))
    return specular * (cos_alpha**shininess)


def diffuse_albedo(diffuse: Vec3, base_color: Vec3) -> Vec3:
    """Effective diffuse reflectance of a textured surface."""
    return diffuse * base_color


def scatter_lambertian(normal: Vec3, rng: np.random.Generator) -> Vec3:
    """Sample a diffusely reflected direction (cosine-weighted).

    With a cosine-weighted direction the Lambertian BRDF times the cosine
    term divided by the pdf equals the albedo, so a bounced photon keeps
    its power up to the albedo factor.
    """
    direction, _ = sample_cosine_hemisphere(normal, rng)
    return direction
