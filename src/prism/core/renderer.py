"""Two-pass renderer: photon pass, then the Whitted image pass.

This module wires the pieces together:
- The photon pass builds the global, caustic and (optional) shadow maps and
  attaches them to the scene, which is read-only from then on.
- The image pass splits the image into contiguous row blocks, shades each
  block on a worker thread into its own array, and copies the blocks into
  the FrameBuffer in row order.
- Progress callbacks report finished rows for UI updates.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.prism.core.config import RenderSettings
    >>> from src.prism.core.renderer import Renderer
    >>> from src.prism.scene.builtin import build_scene
    >>>
    >>> renderer = Renderer(build_scene("default"), RenderSettings(width=64, height=48))
    >>> image = renderer.render()
    >>> image.shape
    (48, 64, 3)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import numpy.typing as npt

from src.prism.camera.pinhole import PinholeCamera, generate_primary_rays
from src.prism.core.config import RenderSettings
from src.prism.core.errors import SceneError
from src.prism.core.framebuffer import FrameBuffer
from src.prism.core.integrator import WhittedIntegrator
from src.prism.photon.emitter import build_photon_maps
from src.prism.scene.scene import Scene

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]

# Rows per task when the image is split for the worker threads
DEFAULT_ROWS_PER_TASK = 8


def row_blocks(height: int, rows_per_task: int) -> list[tuple[int, int]]:
    """Split [0, height) into contiguous (start, stop) row ranges."""
    return [(start, min(start + rows_per_task, height)) for start in range(0, height, rows_per_task)]


class Renderer:
    """Renders one scene with fixed settings.

    Attributes:
        scene: Scene being rendered.
        settings: Render settings.
        camera: Camera used for primary rays.
        framebuffer: Output buffer, created by render().
    """

    def __init__(
        self,
        scene: Scene,
        settings: RenderSettings | None = None,
        camera: PinholeCamera | None = None,
        rows_per_task: int = DEFAULT_ROWS_PER_TASK,
    ) -> None:
        """Initialize the renderer.

        Args:
            scene: Scene to render.
            settings: Render settings; defaults are used when omitted.
            camera: Camera override; defaults to the scene's camera.
            rows_per_task: Image rows shaded by one worker task.

        Raises:
            SceneError: If neither the scene nor the caller provides a camera.
        """
        self.scene = scene
        self.settings = settings or RenderSettings()
        self.camera = camera or scene.camera
        if self.camera is None:
            raise SceneError(f"Scene {scene.name!r} has no camera")
        self._rows_per_task = max(1, rows_per_task)
        self.framebuffer: FrameBuffer | None = None

    @property
    def width(self) -> int:
        return self.settings.width

    @property
    def height(self) -> int:
        return self.settings.height

    def prepare(self) -> None:
        """Run the photon pass once and attach the maps to the scene.

        Does nothing when photon mapping is disabled or the maps are already
        attached.
        """
        if not self.settings.photon_mapping or self.scene.has_photon_maps:
            return
        self.scene.attach_photon_maps(build_photon_maps(self.scene, self.settings))

    def render(self, callback: ProgressCallback | None = None) -> npt.NDArray[np.float32]:
        """Render the image.

        Args:
            callback: Optional function called after each finished row block
                with (rows_done, total_rows).

        Returns:
            Linear RGB image of shape (height, width, 3).

        Example:
            >>> def progress(done, total):
            ...     print(f"Progress: {done}/{total} rows")
            >>> image = renderer.render(callback=progress)
        """
        settings = self.settings
        logger.info(
            "Rendering %s at %dx%d (max_depth=%d, workers=%d)",
            self.scene.name,
            settings.width,
            settings.height,
            settings.max_depth,
            settings.workers,
        )
        start = time.perf_counter()

        self.prepare()
        integrator = WhittedIntegrator(self.scene, settings)
        directions = generate_primary_rays(self.camera, settings.width, settings.height)
        origin = self.camera.origin
        framebuffer = FrameBuffer(settings.width, settings.height)

        blocks = row_blocks(settings.height, self._rows_per_task)

        def shade_block(block: tuple[int, int]) -> tuple[np.ndarray, np.ndarray]:
            lo, hi = block
            return integrator.render_rows(origin, directions[lo:hi])

        rows_done = 0
        if settings.workers > 1 and len(blocks) > 1:
            with ThreadPoolExecutor(max_workers=settings.workers) as executor:
                # map() yields in submission order, so blocks land in row order
                for (lo, hi), (colors, depths) in zip(blocks, executor.map(shade_block, blocks)):
                    framebuffer.write_rows(lo, colors, depths)
                    rows_done += hi - lo
                    if callback is not None:
                        callback(rows_done, settings.height)
        else:
            for lo, hi in blocks:
                colors, depths = shade_block((lo, hi))
                framebuffer.write_rows(lo, colors, depths)
                rows_done += hi - lo
                if callback is not None:
                    callback(rows_done, settings.height)

        framebuffer.commit()
        self.framebuffer = framebuffer
        logger.info("Rendered %s in %.2fs", self.scene.name, time.perf_counter() - start)
        return framebuffer.to_numpy()


def render_scene(
    scene: Scene,
    settings: RenderSettings | None = None,
    callback: ProgressCallback | None = None,
) -> npt.NDArray[np.float32]:
    """Render a scene with its own camera and return the linear image."""
    return Renderer(scene, settings).render(callback)
