"""Scene module: the scene container and built-in scenes.

Components:
    scene: Surfaces, lights, camera and attached photon maps
    builtin: Named example scenes used by the render script
"""

from .builtin import SCENES, available_scenes, build_scene
from .scene import Scene

__all__ = [
    "Scene",
    "SCENES",
    "available_scenes",
    "build_scene",
]
