"""Camera module for view and primary ray generation.

Components:
    pinhole: Pinhole (perspective) camera model

Ray generation uses normalized image coordinates:
    u in [0, 1]: left to right across image
    v in [0, 1]: bottom to top across image

The returned ray arrays are flipped so row 0 is the top of the image.
"""

from .pinhole import PinholeCamera, generate_primary_rays

__all__ = [
    "PinholeCamera",
    "generate_primary_rays",
]
