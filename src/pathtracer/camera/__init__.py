"""Camera module for primary ray generation.

Components:
    thin_lens: Look-at perspective camera with depth of field

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import (
    Camera,
    get_camera_info,
    get_ray,
    is_camera_ready,
    reset_camera,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "reset_camera",
    "is_camera_ready",
    "get_ray",
    "get_camera_info",
]
