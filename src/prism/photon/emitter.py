"""Photon emission and tracing.

The photon pass runs before the image pass and fills three stores:

    global   every diffuse hit of photons emitted over the whole scene
    caustic  hits on diffuse surfaces reached through specular bounces only
    shadow   (optional) direct hits plus "shadow photons" deposited behind
             the first hit of each photon

Each light emits its photons in independent batches. Every batch owns a
numpy Generator spawned from one SeedSequence and a private PhotonBuffers,
and the batches are merged in a fixed order on the calling thread, so the
resulting maps do not depend on the number of worker threads.

At every hit the photon's fate is chosen by Russian roulette over diffuse
reflection, specular reflection, transmission and absorption. The
probabilities come from the same reflectances the shader uses and the
surviving photon's power is divided by the probability of its choice, so
the expected energy is preserved.

Example:
    >>> from src.prism.core.config import RenderSettings
    >>> from src.prism.photon.emitter import build_photon_maps
    >>> from src.prism.scene.builtin import build_scene
    >>> scene = build_scene("default")
    >>> maps = build_photon_maps(scene, RenderSettings(global_photons=2000, caustic_photons=0))
"""

from __future__ import annotations

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np

from src.prism.core.config import RenderSettings
from src.prism.core.ray import (
    Vec3,
    build_onb_from_normal,
    dot,
    length,
    local_to_world,
    make_ray,
    normalize,
    offset_ray_origin,
)
from src.prism.lights.lights import DirectionalLight, Light
from src.prism.materials.dielectric import specular_split
from src.prism.materials.lambertian import diffuse_albedo, scatter_lambertian
from src.prism.materials.resolver import resolve
from src.prism.photon.photon import Photon, PhotonBuffers, Provenance
from src.prism.photon.photon_map import PhotonMapBuilder, PhotonMaps, RadianceFilter
from src.prism.scene.scene import Scene

logger = logging.getLogger(__name__)

GLOBAL_PASS = "global"
CAUSTIC_PASS = "caustic"


@dataclass(frozen=True)
class EmissionJob:
    """One batch of photons from one light.

    Attributes:
        light_index: Index of the light in the scene.
        mode: GLOBAL_PASS or CAUSTIC_PASS.
        count: Photons launched by this batch.
        total: Photons launched by the whole pass for this light.
        seed: Seed sequence of the batch's random generator.
    """

    light_index: int
    mode: str
    count: int
    total: int
    seed: np.random.SeedSequence


def _batch_sizes(total: int, batches: int) -> list[int]:
    base, extra = divmod(total, batches)
    return [base + (1 if i < extra else 0) for i in range(batches)]


def _sample_cone(axis: Vec3, cos_max: float, rng: np.random.Generator) -> Vec3:
    """Uniform direction inside the cone of half-angle acos(cos_max)."""
    cos_theta = 1.0 - rng.random() * (1.0 - cos_max)
    sin_theta = math.sqrt(max(0.0, 1.0 - cos_theta * cos_theta))
    phi = 2.0 * math.pi * rng.random()
    local = np.array((sin_theta * math.cos(phi), sin_theta * math.sin(phi), cos_theta))
    tangent, bitangent, n = build_onb_from_normal(axis)
    return normalize(local_to_world(local, tangent, bitangent, n))


class PhotonTracer:
    """Emits and traces the photons of one scene.

    Args:
        scene: The scene; only read.
        settings: Photon counts, bounce cap and Fresnel mode.
    """

    def __init__(self, scene: Scene, settings: RenderSettings):
        self.scene = scene
        self.settings = settings
        self.center, self.radius = scene.bounding_sphere()
        self.targets = scene.specular_targets()
        self.caustic_pass = settings.caustic_photons > 0 and bool(self.targets)

    # =========================================================================
    # Emission
    # =========================================================================

    def run_job(self, job: EmissionJob) -> PhotonBuffers:
        """Emit and trace one batch into a private buffer."""
        rng = np.random.default_rng(job.seed)
        light = self.scene.lights[job.light_index]
        buffers = PhotonBuffers()
        flux = light.photon_flux(self.radius)
        power = flux / job.total

        for _ in range(job.count):
            if job.mode == CAUSTIC_PASS:
                sample = self._emit_toward_targets(light, rng)
                if sample is None:
                    continue
                origin, direction, scale = sample
                self.trace(origin, direction, power * scale, job.light_index, rng, buffers, caustic_only=True)
            else:
                origin, direction = light.emit(rng, self.center, self.radius)
                self.trace(origin, direction, power, job.light_index, rng, buffers, caustic_only=False)
        buffers.emitted = job.count
        return buffers

    def _emit_toward_targets(self, light: Light, rng: np.random.Generator) -> tuple[Vec3, Vec3, float] | None:
        """Sample a photon aimed at a specular surface.

        Returns:
            (origin, direction, power_scale) where power_scale is the ratio
            of the global emission density to the targeted density.
        """
        if isinstance(light, DirectionalLight):
            return self._emit_directional_toward_targets(light, rng)

        position = light.position
        cones = []
        for center, radius in self.targets:
            offset = center - position
            dist = length(offset)
            if dist <= radius:
                # Light inside the bounding sphere: aim everywhere
                cones.append((np.array((0.0, 0.0, 1.0)), -1.0))
            else:
                cones.append((offset / dist, math.sqrt(max(0.0, 1.0 - (radius / dist) ** 2))))

        axis, cos_max = cones[int(rng.integers(len(cones)))]
        direction = _sample_cone(axis, cos_max, rng)

        pdf = 0.0
        for axis_j, cos_j in cones:
            if dot(direction, axis_j) >= cos_j:
                pdf += 1.0 / (2.0 * math.pi * (1.0 - cos_j))
        pdf /= len(cones)
        if pdf <= 0.0:
            return None
        emission_pdf = light.emission_pdf(direction)
        if emission_pdf <= 0.0:
            return None
        return position.copy(), direction, emission_pdf / pdf

    def _emit_directional_toward_targets(
        self, light: DirectionalLight, rng: np.random.Generator
    ) -> tuple[Vec3, Vec3, float] | None:
        d = light.direction
        disks = []
        for center, radius in self.targets:
            rel = center - self.center
            lateral = rel - dot(rel, d) * d
            disks.append((self.center + lateral, radius))

        disk_center, disk_radius = disks[int(rng.integers(len(disks)))]
        origin = light.launch_point(disk_center, disk_radius, rng, upstream=self.radius + 1.0)

        pdf = 0.0
        lateral_origin = origin + d * (self.radius + 1.0)
        for center_j, radius_j in disks:
            if length(lateral_origin - center_j) <= radius_j:
                pdf += 1.0 / (math.pi * radius_j * radius_j)
        pdf /= len(disks)
        if pdf <= 0.0:
            return None
        global_pdf = 1.0 / (math.pi * self.radius * self.radius)
        return origin, d.copy(), global_pdf / pdf

    # =========================================================================
    # Tracing
    # =========================================================================

    def trace(
        self,
        origin: Vec3,
        direction: Vec3,
        power: Vec3,
        light_index: int,
        rng: np.random.Generator,
        buffers: PhotonBuffers,
        caustic_only: bool = False,
    ) -> None:
        """Follow one photon through the scene, depositing it on diffuse hits.

        Args:
            origin: Launch point.
            direction: Launch direction.
            power: RGB flux of the photon.
            light_index: Index of the emitting light.
            rng: Random source of the batch.
            buffers: Private stores of the batch.
            caustic_only: Store only L S+ D hits and stop at the first
                diffuse bounce (caustic pass).
        """
        settings = self.settings
        ray = make_ray(origin, direction)
        specular_seen = False
        diffuse_seen = False

        for bounce in range(settings.max_photon_bounces):
            hit = self.scene.intersect(ray)
            if hit is None:
                return
            sp = resolve(hit)
            material = sp.material

            if material.is_diffuse:
                if diffuse_seen:
                    provenance = Provenance.INDIRECT
                elif specular_seen:
                    provenance = Provenance.CAUSTIC
                else:
                    provenance = Provenance.DIRECT
                photon = Photon(hit.point.copy(), ray.direction.copy(), power.copy(), provenance, light_index)
                self._store(photon, buffers, caustic_only)

            if bounce == 0 and settings.shadow_photons and not caustic_only:
                self._deposit_shadow_photons(ray, hit, sp.geometric_normal, power, light_index, buffers)

            # Russian roulette over diffuse / reflect / transmit / absorb
            albedo = diffuse_albedo(material.diffuse, sp.base_color)
            p_d = float(np.mean(albedo))
            split = specular_split(material, ray.direction, sp.facing_normal, hit.entering, settings.fresnel)
            p_s = split.w_reflect
            p_t = split.w_transmit if split.refracted is not None else 0.0
            total = p_d + p_s + p_t
            if total > 1.0:
                p_d, p_s, p_t = p_d / total, p_s / total, p_t / total

            xi = rng.random()
            if xi < p_d:
                if caustic_only:
                    return
                power = power * albedo / p_d
                new_direction = scatter_lambertian(sp.facing_normal, rng)
                diffuse_seen = True
            elif xi < p_d + p_s:
                power = power * (split.w_reflect / p_s)
                new_direction = split.reflected
                specular_seen = True
            elif xi < p_d + p_s + p_t:
                power = power * (split.w_transmit / p_t)
                new_direction = split.refracted
                specular_seen = True
            else:
                return

            if not np.any(power > 0.0):
                return
            origin = offset_ray_origin(hit.point, sp.geometric_normal, new_direction)
            ray = make_ray(origin, new_direction)

    def _store(self, photon: Photon, buffers: PhotonBuffers, caustic_only: bool) -> None:
        if caustic_only:
            if photon.provenance is Provenance.CAUSTIC:
                buffers.caustic_photons.append(photon)
            return
        buffers.global_photons.append(photon)
        if photon.provenance is Provenance.CAUSTIC and not self.caustic_pass:
            buffers.caustic_photons.append(photon)
        if photon.provenance is Provenance.DIRECT and self.settings.shadow_photons:
            buffers.shadow_photons.append(photon)

    def _deposit_shadow_photons(self, ray, hit, geometric_normal, power, light_index, buffers) -> None:
        """Store SHADOW photons on every surface behind a photon's first hit."""
        origin = offset_ray_origin(hit.point, geometric_normal, ray.direction)
        for _ in range(self.settings.max_photon_bounces):
            shadow_ray = make_ray(origin, ray.direction)
            behind = self.scene.intersect(shadow_ray)
            if behind is None:
                return
            buffers.shadow_photons.append(
                Photon(behind.point.copy(), ray.direction.copy(), power.copy(), Provenance.SHADOW, light_index)
            )
            origin = offset_ray_origin(behind.point, behind.facing_normal, ray.direction)


def plan_jobs(scene: Scene, settings: RenderSettings, caustic_pass: bool) -> list[EmissionJob]:
    """Split every light's photons into seeded batches.

    One child SeedSequence is spawned per light, and from it one per batch
    (global batches first, then caustic batches).
    """
    jobs: list[EmissionJob] = []
    light_seeds = np.random.SeedSequence(settings.seed).spawn(len(scene.lights))
    batches = settings.photon_batches
    for index, (light, light_seed) in enumerate(zip(scene.lights, light_seeds)):
        if not light.emits_photons:
            continue
        batch_seeds = light_seed.spawn(2 * batches)
        passes = [(GLOBAL_PASS, settings.global_photons, batch_seeds[:batches])]
        if caustic_pass:
            passes.append((CAUSTIC_PASS, settings.caustic_photons, batch_seeds[batches:]))
        for mode, total, seeds in passes:
            if total <= 0:
                continue
            for count, seed in zip(_batch_sizes(total, batches), seeds):
                if count > 0:
                    jobs.append(EmissionJob(index, mode, count, total, seed))
    return jobs


def build_photon_maps(scene: Scene, settings: RenderSettings) -> PhotonMaps:
    """Run the photon pass and build the photon maps of a scene.

    The maps are returned, not attached; see Renderer.prepare().

    Args:
        scene: Scene to emit photons into.
        settings: Render settings.

    Returns:
        The frozen PhotonMaps.
    """
    start = time.perf_counter()
    tracer = PhotonTracer(scene, settings)
    jobs = plan_jobs(scene, settings, tracer.caustic_pass)
    logger.info(
        "Photon pass: %d lights, %d batches, caustic pass %s",
        sum(1 for light in scene.lights if light.emits_photons),
        len(jobs),
        "on" if tracer.caustic_pass else "off",
    )

    merged = PhotonBuffers()
    if settings.workers > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=settings.workers) as executor:
            results = list(executor.map(tracer.run_job, jobs))
    else:
        results = [tracer.run_job(job) for job in jobs]
    for job, buffers in zip(jobs, results):
        logger.debug(
            "Batch light=%d %s: %d emitted, %d global, %d caustic",
            job.light_index,
            job.mode,
            buffers.emitted,
            len(buffers.global_photons),
            len(buffers.caustic_photons),
        )
        merged.extend(buffers)

    global_builder = PhotonMapBuilder("global")
    global_builder.extend(merged.global_photons)
    caustic_builder = PhotonMapBuilder("caustic")
    caustic_builder.extend(merged.caustic_photons)
    shadow_map = None
    if settings.shadow_photons:
        shadow_builder = PhotonMapBuilder("shadow")
        shadow_builder.extend(merged.shadow_photons)
        shadow_map = shadow_builder.build()

    maps = PhotonMaps(
        global_map=global_builder.build(),
        caustic_map=caustic_builder.build(),
        shadow_map=shadow_map,
        radiance_filter=RadianceFilter(settings.radiance_filter, settings.cone_filter_k),
    )
    logger.info(
        "Photon pass done in %.2fs: %d emitted, %d global, %d caustic photons",
        time.perf_counter() - start,
        merged.emitted,
        len(maps.global_map),
        len(maps.caustic_map),
    )
    return maps
