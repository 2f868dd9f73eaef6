"""Built-in scenes.

Scene files are parsed outside the renderer, so the command-line script
picks one of these scenes by name instead:

    default   a room of coloured planes with a mirror-ish sphere, a glass
              sphere, a translucent cube and a checkered floor, lit by a
              sun-like directional light
    csg       boolean solids: a sphere with a box carved out, a lens made
              from two intersecting spheres, a capped cylinder and a union
    caustics  a glass sphere and a mirror on a diffuse floor under a point
              light, a standard caustic test

Example:
    >>> from src.prism.scene.builtin import available_scenes, build_scene
    >>> available_scenes()
    ['caustics', 'csg', 'default']
    >>> scene = build_scene("csg")
"""

from __future__ import annotations

from collections.abc import Callable

import numpy as np

from src.prism.camera.pinhole import PinholeCamera
from src.prism.core.errors import SceneError
from src.prism.geometry.box import Box
from src.prism.geometry.csg import CSGNode
from src.prism.geometry.plane import Plane
from src.prism.geometry.quadric import Quadric
from src.prism.geometry.sphere import Sphere
from src.prism.lights.lights import AmbientLight, DirectionalLight, PositionalLight
from src.prism.materials.material import Material
from src.prism.materials.texture import PixelGrid, Texture
from src.prism.scene.scene import Scene

# =============================================================================
# Shared Materials and Textures
# =============================================================================

WHITE = (0.8, 0.8, 0.8)
RED_WALL = (0.5, 0.0, 0.0)
GREEN_WALL = (0.0, 0.5, 0.0)
ORANGE = (1.0, 0.5, 0.0)
TEAL = (0.0, 0.5, 0.5)
YELLOW = (1.0, 1.0, 0.0)


def checker_grid(squares: int = 8, texels: int = 8, dark=0.2, light=0.9) -> PixelGrid:
    """Procedural checkerboard image."""
    size = squares * texels
    idx = np.arange(size) // texels
    mask = (idx[:, None] + idx[None, :]) % 2 == 0
    pixels = np.where(mask[..., None], light, dark) * np.ones((size, size, 3))
    return PixelGrid.from_array(pixels)


def checker_material(scale: float = 0.25) -> Material:
    """Matte white material with a checkerboard texture."""
    return Material.matte((1.0, 1.0, 1.0), texture=Texture(checker_grid(), scale=scale))


# =============================================================================
# Scenes
# =============================================================================


def build_default_scene() -> Scene:
    """Room with a mix of diffuse, reflective and refractive objects."""
    scene = Scene(name="default")

    scene.add(Plane((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), up=(0.0, 0.0, 1.0), material=checker_material(), name="floor"))
    scene.add(Plane((0.0, 0.0, 15.0), (0.0, 0.0, -1.0), material=Material.matte(RED_WALL), name="back wall"))
    scene.add(Plane((-5.0, 0.0, 0.0), (1.0, 0.0, 0.0), material=Material.matte(GREEN_WALL), name="left wall"))

    scene.add(
        Sphere(
            (-2.0, 1.5, 5.0),
            1.0,
            Material.phong(ORANGE, specular=0.4, shininess=64.0, reflectivity=0.3),
            name="orange sphere",
        )
    )
    scene.add(Box((-1.3, 0.0, 3.0), (0.7, 0.7, 0.7), Material.translucent(YELLOW, 0.9, 1.2), name="yellow cube"))
    scene.add(Sphere((1.0, 1.0, 4.0), 1.0, Material.glass(2.4), name="glass sphere"))
    scene.add(
        Box(
            (-0.5, 0.0, 6.0),
            (2.0, 1.0, 1.0),
            Material(ambient=0.0, diffuse=TEAL, specular=0.0, shininess=100.0),
            name="teal block",
        )
    )

    scene.add_light(DirectionalLight((-1.0, -0.9, 1.0), (1.0, 1.0, 1.0), name="sun"))
    scene.add_light(AmbientLight((0.2, 0.2, 0.2), name="sky"))
    scene.camera = PinholeCamera(lookfrom=(0.0, 3.0, -2.5), lookat=(0.0, 1.0, 5.0), vfov=50.0)
    return scene


def build_csg_scene() -> Scene:
    """Boolean solids on a white floor."""
    scene = Scene(name="csg")
    scene.add(Plane((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), material=Material.matte(WHITE), name="floor"))

    # Sphere with a corner cube carved out
    carved = CSGNode.difference(
        Sphere((-2.5, 1.0, 5.0), 1.0),
        Box((-2.5, 1.0, 3.8), (1.3, 1.3, 1.3)),
        material=Material.phong((0.9, 0.3, 0.2), specular=0.3),
        name="carved sphere",
    )
    scene.add(carved)

    # Lens: intersection of two offset spheres
    lens = CSGNode.intersection(
        Sphere((-0.5, 1.0, 5.0), 1.0),
        Sphere((0.5, 1.0, 5.0), 1.0),
        material=Material.glass(1.5),
        name="lens",
    )
    scene.add(lens)

    # Cylinder capped by a box
    capped = CSGNode.intersection(
        Quadric.cylinder(0.6, axis="y", center=(2.5, 0.0, 5.0)),
        Box((1.8, 0.0, 4.3), (1.4, 1.8, 1.4)),
        material=Material.matte((0.2, 0.4, 0.9)),
        name="capped cylinder",
    )
    scene.add(capped)

    # Two overlapping spheres merged into one solid
    merged = CSGNode.union(
        Sphere((-0.6, 0.7, 2.5), 0.7),
        Sphere((0.3, 0.7, 2.5), 0.7),
        material=Material.matte((0.9, 0.8, 0.2)),
        name="merged spheres",
    )
    scene.add(merged)

    scene.add_light(PositionalLight((0.0, 6.0, 1.0), (1.0, 1.0, 1.0), attenuation=(1.0, 0.0, 0.02), name="key"))
    scene.add_light(AmbientLight((0.15, 0.15, 0.15)))
    scene.camera = PinholeCamera(lookfrom=(0.0, 3.5, -3.0), lookat=(0.0, 0.8, 4.0), vfov=45.0)
    return scene


def build_caustics_scene() -> Scene:
    """Glass sphere and mirror ellipsoid casting caustics on a floor."""
    scene = Scene(name="caustics")
    scene.add(Plane((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), material=Material.matte(WHITE), name="floor"))
    scene.add(Plane((0.0, 0.0, 8.0), (0.0, 0.0, -1.0), material=Material.matte((0.6, 0.6, 0.7)), name="back wall"))
    scene.add(Sphere((0.0, 1.2, 4.0), 1.0, Material.glass(1.5), name="glass sphere"))
    scene.add(
        Quadric.ellipsoid((0.8, 0.5, 0.8), center=(2.2, 0.5, 5.0), material=Material.mirror(0.9), name="mirror")
    )
    scene.add_light(PositionalLight((-1.0, 5.0, 3.0), (8.0, 8.0, 8.0), attenuation=(0.0, 0.0, 1.0), name="bulb"))
    scene.add_light(AmbientLight((0.05, 0.05, 0.05)))
    scene.camera = PinholeCamera(lookfrom=(0.0, 3.0, -1.5), lookat=(0.5, 0.8, 4.5), vfov=45.0)
    return scene


SCENES: dict[str, Callable[[], Scene]] = {
    "default": build_default_scene,
    "csg": build_csg_scene,
    "caustics": build_caustics_scene,
}


def available_scenes() -> list[str]:
    return sorted(SCENES)


def build_scene(name: str = "default") -> Scene:
    """Build a fresh copy of a built-in scene.

    Raises:
        SceneError: If no scene has that name.
    """
    try:
        factory = SCENES[name]
    except KeyError:
        raise SceneError(f"Unknown scene {name!r}; choose one of {available_scenes()}") from None
    return factory()
