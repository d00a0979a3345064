"""Preview module for image output.

Components:
    export: PNG writing and reading via Pillow
"""

from .export import ImageWriteResult, pixels_to_array, read_png, write_png

__all__ = [
    "ImageWriteResult",
    "pixels_to_array",
    "write_png",
    "read_png",
]
