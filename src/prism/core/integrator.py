"""Recursive Whitted-style shader with photon-map illumination.

This module implements the image pass of the two-pass photon mapping
algorithm. Each camera ray is shaded by:

    1. Direct lighting: a shadow ray toward every light, then Lambertian
       diffuse plus Phong specular terms.
    2. Photon lighting: the global (indirect) and caustic radiance estimates
       at the hit, scaled by the diffuse reflectance.
    3. Specular transport: reflected and refracted rays traced recursively
       with Fresnel weights that never sum to more than one.

Recursion is bounded by ``settings.max_depth``; the bound is checked before
every recursive call.

Example:
    >>> from src.prism.core.config import RenderSettings
    >>> from src.prism.core.integrator import WhittedIntegrator
    >>> from src.prism.core.ray import make_ray, vec3
    >>> integrator = WhittedIntegrator(scene, RenderSettings(photon_mapping=False))
    >>> color = integrator.shade(make_ray(vec3(0, 0, 5), vec3(0, 0, -1)))
"""

from __future__ import annotations

import logging

import numpy as np

from src.prism.core.config import RenderSettings
from src.prism.core.ray import RAY_EPSILON, T_MAX, Ray, Vec3, make_ray, offset_ray_origin
from src.prism.geometry.base import HitRecord
from src.prism.materials.dielectric import specular_split
from src.prism.materials.lambertian import lambert, phong
from src.prism.materials.resolver import ShadingPoint, resolve
from src.prism.photon.photon import Provenance
from src.prism.scene.scene import Scene

logger = logging.getLogger(__name__)

# =============================================================================
# Shading Constants
# =============================================================================

# Photons gathered to decide whether a shadow ray can be skipped
SHADOW_HINT_PHOTONS = 16

# Shadow rays toward positional lights stop this far before the light
SHADOW_RAY_MARGIN = 100 * RAY_EPSILON

_INDIRECT = (Provenance.INDIRECT,)
_SHADOW_HINT = (Provenance.DIRECT, Provenance.SHADOW)


class WhittedIntegrator:
    """Shades rays against a scene whose photon maps are built (or disabled).

    The integrator only reads the scene, so one instance may be shared by
    all rendering threads.

    Args:
        scene: Scene to render. Photon maps are used when attached.
        settings: Depth bound, background, Fresnel mode and gather bounds.
    """

    def __init__(self, scene: Scene, settings: RenderSettings):
        self.scene = scene
        self.settings = settings
        self.background = np.array(settings.background, dtype=np.float64)
        self._ambient = scene.ambient_intensity()
        self._maps = scene.photon_maps if scene.has_photon_maps else None
        logger.debug(
            "Integrator for %s: max_depth=%d, fresnel=%s, photon maps %s",
            scene.name,
            settings.max_depth,
            settings.fresnel,
            "on" if self._maps is not None else "off",
        )

    # =========================================================================
    # Ray shading
    # =========================================================================

    def shade(self, ray: Ray, depth: int = 0) -> Vec3:
        """Radiance arriving along a ray.

        Args:
            ray: Ray to trace.
            depth: Recursion depth of this ray (0 for camera rays).

        Returns:
            RGB radiance; zero past the depth bound, background on a miss.
        """
        if depth > self.settings.max_depth:
            return np.zeros(3)
        hit = self.scene.intersect(ray)
        if hit is None:
            return self.background.copy()
        return self.shade_hit(ray, hit, depth)

    def trace_primary(self, ray: Ray) -> tuple[Vec3, float]:
        """Shade a camera ray and report the distance to its first hit.

        Returns:
            (color, depth) where depth is inf when the ray escapes.
        """
        hit = self.scene.intersect(ray)
        if hit is None:
            return self.background.copy(), np.inf
        return self.shade_hit(ray, hit, 0), hit.t

    def shade_hit(self, ray: Ray, hit: HitRecord, depth: int) -> Vec3:
        sp = resolve(hit)
        material = sp.material

        color = material.ambient * sp.base_color * self._ambient
        color = color + self.direct_lighting(ray, sp)

        if self._maps is not None and material.is_diffuse:
            color = color + material.diffuse * sp.base_color * self.photon_radiance(sp)

        if material.is_specular and depth + 1 <= self.settings.max_depth:
            split = specular_split(material, ray.direction, sp.facing_normal, hit.entering, self.settings.fresnel)
            if split.w_reflect > 0.0:
                origin = offset_ray_origin(hit.point, sp.geometric_normal, split.reflected)
                color = color + split.w_reflect * self.shade(make_ray(origin, split.reflected), depth + 1)
            if split.refracted is not None and split.w_transmit > 0.0:
                origin = offset_ray_origin(hit.point, sp.geometric_normal, split.refracted)
                color = color + split.w_transmit * self.shade(make_ray(origin, split.refracted), depth + 1)

        return color

    # =========================================================================
    # Direct lighting
    # =========================================================================

    def direct_lighting(self, ray: Ray, sp: ShadingPoint) -> Vec3:
        """Sum of the unoccluded Lambert + Phong terms of every light."""
        material = sp.material
        to_viewer = -ray.direction
        total = np.zeros(3)
        for index, light in enumerate(self.scene.lights):
            sample = light.illuminate(sp.point)
            if sample is None:
                continue
            if light.casts_shadows and not self.visible(sp, sample.to_light, sample.distance, index):
                continue
            reflectance = lambert(material.diffuse, sp.base_color, sp.facing_normal, sample.to_light)
            reflectance = reflectance + phong(
                material.specular, material.shininess, sp.facing_normal, sample.to_light, to_viewer
            )
            total += reflectance * sample.irradiance
        return total

    def visible(self, sp: ShadingPoint, to_light: Vec3, distance: float, light_index: int) -> bool:
        """True when nothing blocks the segment from the hit to the light."""
        hint = self._shadow_hint(sp, light_index)
        if hint is not None:
            return hint

        origin = offset_ray_origin(sp.point, sp.geometric_normal, to_light)
        t_max = distance - SHADOW_RAY_MARGIN if np.isfinite(distance) else T_MAX
        if t_max <= RAY_EPSILON:
            return True
        shadow_ray = make_ray(origin, to_light, t_max=t_max)
        return not self.scene.occluded(shadow_ray)

    def _shadow_hint(self, sp: ShadingPoint, light_index: int) -> bool | None:
        # Only a neighbourhood that agrees entirely decides the shadow test
        if self._maps is None or self._maps.shadow_map is None:
            return None
        shadow_map = self._maps.shadow_map
        found = shadow_map.nearest(
            sp.point,
            sp.geometric_normal,
            SHADOW_HINT_PHOTONS,
            self.settings.gather_radius,
            provenance=_SHADOW_HINT,
            light_index=light_index,
        )
        if not found:
            return None
        kinds = {int(shadow_map.provenance[idx]) for _, idx in found}
        if kinds == {int(Provenance.DIRECT)}:
            return True
        if kinds == {int(Provenance.SHADOW)}:
            return False
        return None

    # =========================================================================
    # Photon lighting
    # =========================================================================

    def photon_radiance(self, sp: ShadingPoint) -> Vec3:
        """Global (indirect only) plus caustic radiance estimate at a hit."""
        maps = self._maps
        settings = self.settings
        normal = sp.geometric_normal
        radiance = maps.global_map.estimate_radiance(
            sp.point,
            normal,
            settings.gather_photons,
            settings.gather_radius,
            maps.radiance_filter,
            provenance=_INDIRECT,
        )
        radiance = radiance + maps.caustic_map.estimate_radiance(
            sp.point,
            normal,
            settings.caustic_gather_photons,
            settings.caustic_gather_radius,
            maps.radiance_filter,
        )
        return radiance

    # =========================================================================
    # Row rendering
    # =========================================================================

    def render_rows(self, origin: Vec3, directions: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Shade a block of primary rays sharing one origin.

        Args:
            origin: Camera position.
            directions: Array of shape (rows, width, 3) of unit directions.

        Returns:
            (colors, depths) with shapes (rows, width, 3) and (rows, width).
        """
        rows, width = directions.shape[:2]
        colors = np.zeros((rows, width, 3), dtype=np.float64)
        depths = np.full((rows, width), np.inf, dtype=np.float64)
        for r in range(rows):
            for c in range(width):
                colors[r, c], depths[r, c] = self.trace_primary(make_ray(origin, directions[r, c]))
        return colors, depths
