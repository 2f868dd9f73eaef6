"""Photon mapping module.

Components:
    photon: Photon records and per-batch buffers
    kdtree: Balanced kd-tree for k-nearest-neighbour queries
    photon_map: Immutable photon maps and the radiance estimate
    emitter: Photon emission and tracing (the photon pass)

Photons are collected in builders during the photon pass and frozen into
read-only maps before the image pass starts.
"""

from .emitter import PhotonTracer, build_photon_maps
from .kdtree import KDTree
from .photon import Photon, PhotonBuffers, Provenance
from .photon_map import PhotonMap, PhotonMapBuilder, PhotonMaps, RadianceFilter

__all__ = [
    "Photon",
    "PhotonBuffers",
    "Provenance",
    "KDTree",
    "PhotonMap",
    "PhotonMapBuilder",
    "PhotonMaps",
    "RadianceFilter",
    "PhotonTracer",
    "build_photon_maps",
]
