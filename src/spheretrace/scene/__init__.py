"""Scene module for scene storage and ray-scene queries.

Components:
    intersection: Sphere storage and nearest-hit queries
    lights: Spherical area light storage
    manager: The Scene API coordinating geometry, lights, camera and output

Scene data is kept in Structure-of-Arrays Taichi fields for kernel access.
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .lights import MAX_LIGHTS, add_light, clear_lights, get_light_count

# Note: manager is NOT imported here because it depends on the integrator,
# which itself imports this package. Use spheretrace.scene.manager directly.

__all__ = [
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    "add_light",
    "clear_lights",
    "get_light_count",
    "MAX_LIGHTS",
]
