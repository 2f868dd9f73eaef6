"""Taichi-backed frame buffer for the rendered image.

The frame buffer holds a color plane and a depth plane. Rendering threads
never touch the Taichi fields: finished row blocks are staged in numpy
arrays with write_rows() on the calling thread, and commit() uploads the
whole image once and sanitizes it on the device.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> fb = FrameBuffer(4, 2)
    >>> fb.write_rows(0, np.ones((2, 4, 3)), np.ones((2, 4)))
    >>> fb.commit()
    >>> fb.to_numpy().shape
    (2, 4, 3)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm


@ti.kernel
def _sanitize(color: ti.template(), depth: ti.template()):
    # NaN and +-inf become 0; negative radiance is clamped to 0
    for i, j in color:
        c = color[i, j]
        for k in ti.static(range(3)):
            if tm.isnan(c[k]) or tm.isinf(c[k]) or c[k] < 0.0:
                c[k] = 0.0
        color[i, j] = c
        d = depth[i, j]
        if tm.isnan(d) or tm.isinf(d) or d < 0.0:
            depth[i, j] = 0.0


class FrameBuffer:
    """Color and depth planes of one image, indexed (row, column).

    Row 0 is the top of the image. Depth is the distance along the camera
    ray to the first hit, 0 where the ray escaped.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.

    Note:
        Requires ti.init() to have been called.
    """

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Frame buffer size must be positive, got {width}x{height}")
        self._width = width
        self._height = height
        self._color = ti.Vector.field(3, dtype=ti.f32, shape=(height, width))
        self._depth = ti.field(dtype=ti.f32, shape=(height, width))
        self._color_stage = np.zeros((height, width, 3), dtype=np.float32)
        self._depth_stage = np.zeros((height, width), dtype=np.float32)
        self._rows_written = np.zeros(height, dtype=bool)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def complete(self) -> bool:
        """True once every row has been written."""
        return bool(self._rows_written.all())

    def write_rows(
        self,
        start: int,
        colors: npt.NDArray[np.floating],
        depths: npt.NDArray[np.floating] | None = None,
    ) -> None:
        """Stage a contiguous block of rows.

        Args:
            start: Index of the first row (0 = top).
            colors: Array of shape (rows, width, 3).
            depths: Optional array of shape (rows, width).

        Raises:
            ValueError: If the block does not fit the image.
        """
        colors = np.asarray(colors)
        rows = colors.shape[0] if colors.ndim == 3 else -1
        if colors.ndim != 3 or colors.shape[1:] != (self._width, 3):
            raise ValueError(f"Expected rows of shape (n, {self._width}, 3), got {colors.shape}")
        if start < 0 or start + rows > self._height:
            raise ValueError(f"Rows {start}..{start + rows} do not fit an image of height {self._height}")

        # float32 conversion of huge values gives inf, which commit() clears
        with np.errstate(over="ignore", invalid="ignore"):
            self._color_stage[start : start + rows] = colors
            if depths is not None:
                depths = np.asarray(depths)
                if depths.shape != (rows, self._width):
                    raise ValueError(f"Expected depths of shape ({rows}, {self._width}), got {depths.shape}")
                self._depth_stage[start : start + rows] = depths
        self._rows_written[start : start + rows] = True

    def commit(self) -> None:
        """Upload the staged image to the Taichi fields and sanitize it."""
        self._color.from_numpy(self._color_stage)
        self._depth.from_numpy(self._depth_stage)
        _sanitize(self._color, self._depth)

    def to_numpy(self) -> npt.NDArray[np.float32]:
        """Committed color plane, shape (height, width, 3)."""
        return self._color.to_numpy()

    def depth_numpy(self) -> npt.NDArray[np.float32]:
        """Committed depth plane, shape (height, width)."""
        return self._depth.to_numpy()

    @property
    def field(self) -> ti.MatrixField:
        """The underlying Taichi color field."""
        return self._color
