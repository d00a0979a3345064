"""Explicitly seeded random number generation for Taichi kernels.

The renderer never draws from ti.random(): that generator keeps per-thread
state, so which pixel receives which random numbers depends on thread
scheduling. Instead each pixel owns a small xorshift32 state, derived from the
render seed and the pixel index through a Wang hash. The state is threaded
through every sampling call and returned updated, which makes a render with a
fixed seed bit-for-bit reproducible regardless of how the parallel loop is
scheduled.

Example:
    >>> # Inside a Taichi kernel:
    >>> # state = seed_state(seed, row * width + col)
    >>> # u, state = next_float(state)
    >>> # direction, state = random_unit_vector(state)
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Rejection sampling attempts before falling back to a fixed sample
MAX_REJECTION_ATTEMPTS = 64


@ti.func
def wang_hash(key: ti.u32) -> ti.u32:
    """Thomas Wang's 32-bit integer hash.

    Args:
        key: The value to hash.

    Returns:
        A well-mixed 32-bit hash of key.
    """
    k = key
    k = (k ^ ti.u32(61)) ^ (k >> ti.u32(16))
    k = k * ti.u32(9)
    k = k ^ (k >> ti.u32(4))
    k = k * ti.u32(0x27D4EB2D)
    k = k ^ (k >> ti.u32(15))
    return k


@ti.func
def seed_state(seed: ti.i32, stream: ti.i32) -> ti.u32:
    """Derive an independent generator state for one stream.

    Args:
        seed: The render seed.
        stream: The stream index (the flat pixel index for renders).

    Returns:
        A non-zero xorshift32 state.
    """
    state = wang_hash(ti.cast(seed, ti.u32) ^ wang_hash(ti.cast(stream, ti.u32)))
    if state == ti.u32(0):
        # xorshift32 has a fixed point at zero
        state = ti.u32(0x9E3779B)
    return state


@ti.func
def next_u32(state: ti.u32):
    """Advance an xorshift32 state.

    Returns:
        A tuple (value, new_state); value and new_state are identical.
    """
    x = state
    x = x ^ (x << ti.u32(13))
    x = x ^ (x >> ti.u32(17))
    x = x ^ (x << ti.u32(5))
    return x, x


@ti.func
def next_float(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Uses the top 24 bits of the next state so the result is exactly
    representable in f32.

    Returns:
        A tuple (value, new_state).
    """
    bits, s = next_u32(state)
    value = ti.cast(bits >> ti.u32(8), ti.f32) / 16777216.0
    return value, s


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Generate a random point strictly inside the unit sphere.

    Uses rejection sampling from the enclosing cube.

    Returns:
        A tuple (point, new_state). The point has 0 < |p| < 1.
    """
    s = state
    p = vec3(0.0, 0.0, 1e-3)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            rx, s = next_float(s)
            ry, s = next_float(s)
            rz, s = next_float(s)
            candidate = vec3(rx * 2.0 - 1.0, ry * 2.0 - 1.0, rz * 2.0 - 1.0)
            len_sq = tm.dot(candidate, candidate)
            if len_sq < 1.0 and len_sq > 1e-12:
                p = candidate
                found = True
    return p, s


@ti.func
def random_unit_vector(state: ti.u32):
    """Generate a unit vector uniformly distributed on the sphere.

    Returns:
        A tuple (direction, new_state).
    """
    p, s = random_in_unit_sphere(state)
    return tm.normalize(p), s


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Generate a random point inside the unit disk in the xy-plane.

    Returns:
        A tuple (point, new_state) where point = (x, y, 0), x^2 + y^2 < 1.
    """
    s = state
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            rx, s = next_float(s)
            ry, s = next_float(s)
            candidate = vec3(rx * 2.0 - 1.0, ry * 2.0 - 1.0, 0.0)
            if candidate.x * candidate.x + candidate.y * candidate.y < 1.0:
                p = candidate
                found = True
    return p, s
