"""Pinhole camera with a jittered ray origin.

The camera builds an orthonormal basis (u, v, w) from look-at parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

Rays are generated from normalized screen coordinates in [-0.5, 0.5):
screen x grows to the right and screen y grows downward, so row 0 of the
pixel grid is the top of the image.

Each light sample asks the camera for a fresh ray origin. The origin is the
camera position jittered uniformly within a disk of radius ``aperture`` in
the image plane, which anti-aliases edges across samples. An aperture of 0
gives a fixed origin.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.camera.pinhole import Camera, setup_camera
    >>> camera = Camera(
    ...     lookfrom=(0.0, 0.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=60.0,
    ...     aspect_ratio=1.0,
    ... )
    >>> setup_camera(camera)
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from spheretrace.core.sampler import random_in_unit_disk
from spheretrace.core.vector import normalize, unit_vector_py

vec2 = tm.vec2
vec3 = tm.vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class Camera:
    """Configuration for the jittered pinhole camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation.
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Radius of the disk ray origins are jittered within.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 60.0
    aspect_ratio: float = 1.0
    aperture: float = 0.0

    def __post_init__(self) -> None:
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if not (math.isfinite(self.aspect_ratio) and self.aspect_ratio > 0.0):
            raise ValueError(f"aspect_ratio must be > 0, got {self.aspect_ratio}")
        if not (math.isfinite(self.aperture) and self.aperture >= 0.0):
            raise ValueError(f"aperture must be >= 0, got {self.aperture}")


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport spans at unit distance
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())

_camera_aperture = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side)
# =============================================================================


def setup_camera(camera: Camera) -> None:
    """Initialize camera state from configuration.

    Computes the orthonormal basis and viewport spans. Must be called before
    rendering.

    Args:
        camera: Camera configuration.

    Raises:
        ValueError: If lookfrom equals lookat, or vup is parallel to the view
            direction (the basis would be degenerate).
    """
    theta = math.radians(camera.vfov)
    viewport_height = 2.0 * math.tan(theta / 2.0)
    viewport_width = camera.aspect_ratio * viewport_height

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    w = unit_vector_py(lookfrom - lookat)
    u = unit_vector_py(np.cross(vup, w))
    v = np.cross(w, u)

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = (viewport_width * u).tolist()
    _viewport_vertical[None] = (viewport_height * v).tolist()
    _camera_aperture[None] = camera.aperture


# =============================================================================
# Ray Generation (Taichi)
# =============================================================================


@ti.func
def pixel_direction(screen: vec2) -> vec3:
    """Unit ray direction through a normalized screen coordinate.

    Args:
        screen: (x, y) in [-0.5, 0.5); (0, 0) is the image center, +y is down.

    Returns:
        The normalized world-space direction.
    """
    direction = (
        -_camera_w[None]
        + screen.x * _viewport_horizontal[None]
        - screen.y * _viewport_vertical[None]
    )
    return normalize(direction)


@ti.func
def sample_origin(state: ti.u32):
    """Sample a jittered ray origin.

    Args:
        state: The caller's random state.

    Returns:
        A tuple (origin, new_state).
    """
    disk, s = random_in_unit_disk(state)
    offset = _camera_aperture[None] * (disk.x * _camera_u[None] + disk.y * _camera_v[None])
    return _camera_origin[None] + offset, s


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal and vertical vectors.
    """
    fields = {
        "origin": _camera_origin,
        "u": _camera_u,
        "v": _camera_v,
        "w": _camera_w,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
    }
    info = {}
    for name, field in fields.items():
        vec = field[None]
        info[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
    return info
