"""Camera module for primary ray generation.

Components:
    pinhole: Pinhole camera with an origin jittered inside an aperture disk
"""

from .pinhole import (
    Camera,
    get_camera_info,
    pixel_direction,
    sample_origin,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "pixel_direction",
    "sample_origin",
    "get_camera_info",
]
