"""Photon maps and the radiance estimate.

Photons are collected in a mutable PhotonMapBuilder during the photon pass
and frozen into a PhotonMap, an immutable kd-tree backed store that can be
queried from any number of threads.

The radiance estimate at a point x with normal n gathers the k nearest
photons within a maximum radius, drops photons arriving from behind the
surface (dot(direction, n) >= 0), and divides their filtered power by the
area of the disk reaching the farthest accepted photon:

    disk      L = sum(P_p) / (pi r^2)
    cone      L = sum(w_p P_p) / ((1 - 2 / (3k)) pi r^2),   w_p = 1 - d_p / (k r)
    gaussian  L = sum(w_p P_p) / (m pi r^2),
              w_p = alpha (1 - (1 - exp(-beta d_p^2 / (2 r^2))) / (1 - exp(-beta)))

with alpha = 0.918 and beta = 1.953 (Jensen), and m the mean Gaussian
weight over the disk, which keeps a uniform photon density unbiased.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np

from src.prism.core.errors import InvariantViolation
from src.prism.core.ray import Vec3
from src.prism.photon.kdtree import KDTree
from src.prism.photon.photon import Photon, Provenance

logger = logging.getLogger(__name__)

GAUSSIAN_ALPHA = 0.918
GAUSSIAN_BETA = 1.953


def _gaussian_mean_weight() -> float:
    # Average of the Gaussian weight over a disk, integrating in s = d^2 / r^2
    b = GAUSSIAN_BETA
    integral = 1.0 - (2.0 / b) * (1.0 - math.exp(-b / 2.0))
    return GAUSSIAN_ALPHA * (1.0 - integral / (1.0 - math.exp(-b)))


GAUSSIAN_MEAN_WEIGHT = _gaussian_mean_weight()


@dataclass(frozen=True)
class RadianceFilter:
    """Photon weighting kernel used by every radiance estimate of a render.

    Attributes:
        kind: "disk", "cone" or "gaussian".
        cone_k: Cone filter constant (>= 1).
    """

    kind: str = "cone"
    cone_k: float = 1.1

    def __post_init__(self) -> None:
        if self.kind not in ("disk", "cone", "gaussian"):
            raise ValueError(f"Unknown radiance filter: {self.kind!r}")
        if self.cone_k < 1.0:
            raise ValueError(f"Cone filter constant must be >= 1, got {self.cone_k}")

    def weights(self, d2: np.ndarray, r2: float) -> np.ndarray:
        """Per-photon weights for squared distances d2 inside radius^2 r2."""
        if self.kind == "disk":
            return np.ones_like(d2)
        if self.kind == "cone":
            return 1.0 - np.sqrt(d2) / (self.cone_k * math.sqrt(r2))
        b = GAUSSIAN_BETA
        return GAUSSIAN_ALPHA * (1.0 - (1.0 - np.exp(-b * d2 / (2.0 * r2))) / (1.0 - math.exp(-b)))

    def normalization(self) -> float:
        """Mean filter weight over the disk."""
        if self.kind == "disk":
            return 1.0
        if self.kind == "cone":
            return 1.0 - 2.0 / (3.0 * self.cone_k)
        return GAUSSIAN_MEAN_WEIGHT


class PhotonMap:
    """Immutable spatial index over a fixed list of photons.

    Use PhotonMapBuilder to create one. Photon attributes are exposed as
    read-only numpy arrays indexed like the input photon list.
    """

    def __init__(self, photons: list[Photon]):
        n = len(photons)
        self.positions = np.array([p.position for p in photons], dtype=np.float64).reshape(n, 3)
        self.directions = np.array([p.direction for p in photons], dtype=np.float64).reshape(n, 3)
        self.powers = np.array([p.power for p in photons], dtype=np.float64).reshape(n, 3)
        self.provenance = np.array([int(p.provenance) for p in photons], dtype=np.int8)
        self.light_index = np.array([p.light_index for p in photons], dtype=np.int64)
        for arr in (self.directions, self.powers, self.provenance, self.light_index):
            arr.setflags(write=False)
        self._tree = KDTree(self.positions)
        self.positions = self._tree.points
        self._direction_rows = self.directions.tolist()
        self._provenance_list = self.provenance.tolist()
        self._light_list = self.light_index.tolist()

    def __len__(self) -> int:
        return len(self.positions)

    @property
    def depth(self) -> int:
        return self._tree.depth

    def photon(self, index: int) -> Photon:
        """Rebuild the Photon record stored at an index."""
        return Photon(
            position=self.positions[index].copy(),
            direction=self.directions[index].copy(),
            power=self.powers[index].copy(),
            provenance=Provenance(int(self.provenance[index])),
            light_index=int(self.light_index[index]),
        )

    def nearest(
        self,
        point: Vec3,
        normal: Vec3,
        k: int,
        max_radius: float,
        provenance: Iterable[Provenance] | None = None,
        light_index: int | None = None,
    ) -> list[tuple[float, int]]:
        """k nearest photons arriving at the front side of a surface.

        Args:
            point: Query position.
            normal: Surface normal facing the side being shaded.
            k: Maximum number of photons.
            max_radius: Search radius.
            provenance: Only photons with one of these provenances count.
            light_index: Only photons from this light count.

        Returns:
            (squared_distance, photon_index) pairs, nearest first; ties keep
            insertion order.
        """
        nx, ny, nz = float(normal[0]), float(normal[1]), float(normal[2])
        directions = self._direction_rows
        kinds = None if provenance is None else {int(p) for p in provenance}
        prov_list = self._provenance_list
        lights = self._light_list

        def accept(idx: int) -> bool:
            d = directions[idx]
            if d[0] * nx + d[1] * ny + d[2] * nz >= 0.0:
                return False
            if kinds is not None and prov_list[idx] not in kinds:
                return False
            return light_index is None or lights[idx] == light_index

        return self._tree.query(point, k, max_radius, accept)

    def estimate_radiance(
        self,
        point: Vec3,
        normal: Vec3,
        max_photons: int,
        max_radius: float,
        radiance_filter: RadianceFilter | None = None,
        provenance: Iterable[Provenance] | None = None,
    ) -> Vec3:
        """Density estimate of the flux arriving per unit area at a point.

        Returns:
            RGB estimate; zero when no photon is in range.
        """
        found = self.nearest(point, normal, max_photons, max_radius, provenance)
        if not found:
            return np.zeros(3)

        radiance_filter = radiance_filter or RadianceFilter()
        d2 = np.array([d for d, _ in found])
        idx = np.array([i for _, i in found])
        r2 = float(d2[-1])
        if r2 <= 0.0:
            # Every photon sits on the query point
            r2 = max_radius * max_radius

        weights = radiance_filter.weights(d2, r2)
        flux = weights @ self.powers[idx]
        return flux / (radiance_filter.normalization() * math.pi * r2)


class PhotonMapBuilder:
    """Mutable photon collection that is frozen into a PhotonMap once."""

    def __init__(self, name: str = "photons"):
        self.name = name
        self._photons: list[Photon] = []
        self._built = False

    def __len__(self) -> int:
        return len(self._photons)

    def add(self, photon: Photon) -> None:
        if self._built:
            raise InvariantViolation(f"Photon map {self.name!r} is already built")
        self._photons.append(photon)

    def extend(self, photons: Iterable[Photon]) -> None:
        for photon in photons:
            self.add(photon)

    def build(self) -> PhotonMap:
        """Freeze the collected photons into a balanced PhotonMap.

        Raises:
            InvariantViolation: If build() was already called.
        """
        if self._built:
            raise InvariantViolation(f"Photon map {self.name!r} is already built")
        self._built = True
        photon_map = PhotonMap(self._photons)
        self._photons = []
        logger.debug("Built %s map: %d photons, depth %d", self.name, len(photon_map), photon_map.depth)
        return photon_map


@dataclass(frozen=True)
class PhotonMaps:
    """The photon stores of one render.

    Attributes:
        global_map: Every diffuse photon hit.
        caustic_map: L S+ D photons.
        shadow_map: DIRECT and SHADOW photons, when shadow photons are enabled.
        radiance_filter: Kernel shared by every estimate.
    """

    global_map: PhotonMap
    caustic_map: PhotonMap
    shadow_map: PhotonMap | None = None
    radiance_filter: RadianceFilter = RadianceFilter()

    @classmethod
    def empty(cls, radiance_filter: RadianceFilter | None = None) -> PhotonMaps:
        return cls(
            global_map=PhotonMap([]),
            caustic_map=PhotonMap([]),
            shadow_map=None,
            radiance_filter=radiance_filter or RadianceFilter(),
        )
