"""Light storage.

A light is just a center point. Its radius, color and power are shared by
every light and come from the RenderConfig at render time, so only the
centers live in Taichi fields.
"""

import math
from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Maximum number of lights supported in the scene
MAX_LIGHTS = 64

light_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_lights() -> None:
    """Remove all lights from the scene."""
    num_lights[None] = 0


def add_light(center: Sequence[float]) -> int:
    """Add a light centered at the given point.

    Args:
        center: The light position as (x, y, z).

    Returns:
        The index of the added light.

    Raises:
        ValueError: If center is not three finite components.
        RuntimeError: If the maximum number of lights is exceeded.
    """
    if len(center) != 3 or not all(math.isfinite(c) for c in center):
        raise ValueError(f"Light center must be 3 finite components, got {tuple(center)}")

    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    light_centers[idx] = (float(center[0]), float(center[1]), float(center[2]))
    num_lights[None] = idx + 1
    return idx


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])


@ti.func
def get_light_center(index: ti.i32) -> vec3:
    """Get a light's center by index inside a kernel."""
    return light_centers[index]
