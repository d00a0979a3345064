"""Core rendering module.

Components:
    vector: Vector math and 8-bit color conversion
    ray: Ray data structure
    sampler: Counter-based random number streams and vector sampling
    config: Render configuration
    pixel: Pixel grid with incremental color averaging
    integrator: Direct lighting with shadow rays and mirror reflection

All compute-intensive operations use Taichi kernels.
"""

from .config import ReflectionMode, RenderConfig, ShadowTest
from .ray import Ray, make_ray, ray_at
from .sampler import (
    next_float,
    next_u32,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    seed_state,
    wang_hash,
)
from .vector import (
    cross,
    dot,
    length,
    length_squared,
    near_zero,
    normalize,
    reflect,
    to_u8,
    to_u8_py,
    unit_vector_py,
)

# Note: integrator is NOT imported here to avoid circular imports.
# Import directly from spheretrace.core.integrator when needed.

__all__ = [
    "RenderConfig",
    "ShadowTest",
    "ReflectionMode",
    "Ray",
    "ray_at",
    "make_ray",
    "wang_hash",
    "seed_state",
    "next_u32",
    "next_float",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "near_zero",
    "to_u8",
    "to_u8_py",
    "unit_vector_py",
]
