"""Photon records and per-worker photon buffers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from src.prism.core.ray import Vec3


class Provenance(IntEnum):
    """Light path that deposited a photon.

    DIRECT    first hit after leaving the light (L D)
    INDIRECT  after at least one diffuse bounce (L (S|D)* D D)
    CAUSTIC   after specular bounces only (L S+ D)
    SHADOW    behind the first hit, used only by the shadow store
    """

    DIRECT = 0
    INDIRECT = 1
    CAUSTIC = 2
    SHADOW = 3


@dataclass(frozen=True, eq=False)
class Photon:
    """A photon deposited on a diffuse surface.

    Attributes:
        position: Where the photon landed.
        direction: Unit direction the photon was travelling.
        power: RGB flux carried by the photon.
        provenance: Path classification.
        light_index: Index of the emitting light in the scene.
    """

    position: Vec3
    direction: Vec3
    power: Vec3
    provenance: Provenance
    light_index: int = 0


@dataclass
class PhotonBuffers:
    """Private photon lists filled by one emission batch.

    Attributes:
        global_photons: Every diffuse hit of the global pass.
        caustic_photons: L S+ D hits.
        shadow_photons: DIRECT and SHADOW photons for shadow-ray skipping.
        emitted: Number of photons launched by the batch.
    """

    global_photons: list[Photon] = field(default_factory=list)
    caustic_photons: list[Photon] = field(default_factory=list)
    shadow_photons: list[Photon] = field(default_factory=list)
    emitted: int = 0

    def extend(self, other: PhotonBuffers) -> None:
        """Append another batch, keeping its internal order."""
        self.global_photons.extend(other.global_photons)
        self.caustic_photons.extend(other.caustic_photons)
        self.shadow_photons.extend(other.shadow_photons)
        self.emitted += other.emitted
