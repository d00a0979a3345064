"""Vector algebra for sphere ray tracing.

This module provides the 3-component vector operations used throughout the
renderer. The same vec3 type doubles as a linear RGB color, so the 8-bit
clamp conversion lives here as well.

All operations come in Taichi form (@ti.func) for use inside kernels. A small
set of Python-side twins (suffix ``_py``) is provided for scene setup code
that runs outside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.core.vector import reflect, to_u8, vec3
    >>> # Inside a Taichi kernel:
    >>> # r = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))
    >>> # rgb = to_u8(vec3(0.5, 1.2, -0.1))   # -> (127, 255, 0)
"""

import math
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Below this length a vector is treated as degenerate by normalize()
NORMALIZE_EPSILON = 1e-12

# Scale used by the 8-bit conversion: floor(c * 255.9)
U8_SCALE = 255.9


# =============================================================================
# Vector Operations (Taichi)
# =============================================================================


@ti.func
def add(a: vec3, b: vec3) -> vec3:
    """Componentwise sum a + b."""
    return a + b


@ti.func
def sub(a: vec3, b: vec3) -> vec3:
    """Componentwise difference a - b."""
    return a - b


@ti.func
def neg(v: vec3) -> vec3:
    """Negate every component of v."""
    return -v


@ti.func
def scale(s: ti.f32, v: vec3) -> vec3:
    """Multiply a vector by a scalar."""
    return s * v


@ti.func
def mul(a: vec3, b: vec3) -> vec3:
    """Elementwise (Hadamard) product, used to filter colors."""
    return vec3(a.x * b.x, a.y * b.y, a.z * b.z)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(tm.dot(v, v))


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Computes v / length(v). A vector shorter than NORMALIZE_EPSILON has no
    direction; instead of dividing by zero the result saturates to the zero
    vector, so degenerate geometry never feeds NaN into shading.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the direction of v, or the zero vector if v is
        (numerically) zero-length.
    """
    n = ti.sqrt(tm.dot(v, v))
    result = vec3(0.0, 0.0, 0.0)
    if n > NORMALIZE_EPSILON:
        result = v / n
    return result


@ti.func
def reflect(v: vec3, normal: vec3) -> vec3:
    """Reflect a vector about a normal: v - 2(v.n)n.

    The normal should be unit length; the length of v is then preserved.

    Args:
        v: The vector to reflect.
        normal: The mirror normal (unit length).

    Returns:
        The mirrored vector.
    """
    return v - 2.0 * tm.dot(v, normal) * normal


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if all components of a vector are within 1e-8 of zero.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Color Conversion (Taichi)
# =============================================================================


@ti.func
def _channel_to_u8(c: ti.f32) -> ti.f32:
    """Clamp one linear channel to an 8-bit level.

    c < 0 maps to 0, c >= 1 maps to 255, anything else to floor(c * 255.9).
    NaN fails both comparisons and lands on 0.
    """
    result = 0.0
    if c >= 1.0:
        result = 255.0
    elif c >= 0.0:
        result = ti.floor(c * U8_SCALE)
    return result


@ti.func
def to_u8(color: vec3) -> vec3:
    """Convert a linear color to an 8-bit triple.

    The result is returned as a vec3 holding integral values in [0, 255] so
    it can be averaged directly by the pixel accumulator.

    Args:
        color: Linear RGB color, not yet clamped.

    Returns:
        The clamped 8-bit levels as floats.
    """
    return vec3(
        _channel_to_u8(color.x),
        _channel_to_u8(color.y),
        _channel_to_u8(color.z),
    )


# =============================================================================
# Python-side Helpers
# =============================================================================


def channel_to_u8_py(c: float) -> int:
    """Python twin of the per-channel 8-bit clamp."""
    if math.isnan(c) or c < 0.0:
        return 0
    if c >= 1.0:
        return 255
    return int(math.floor(c * U8_SCALE))


def to_u8_py(color: Sequence[float]) -> tuple[int, int, int]:
    """Convert a linear RGB color to an 8-bit triple outside of kernels."""
    return (
        channel_to_u8_py(color[0]),
        channel_to_u8_py(color[1]),
        channel_to_u8_py(color[2]),
    )


def unit_vector_py(v: Sequence[float]) -> npt.NDArray[np.float64]:
    """Normalize a vector on the Python side.

    Unlike the kernel version this fails fast: setup code has no reason to
    normalize a zero vector, so doing so is a caller error.

    Args:
        v: The vector to normalize.

    Returns:
        A float64 NumPy array of unit length.

    Raises:
        ValueError: If v has (numerically) zero length or non-finite components.
    """
    arr = np.asarray(v, dtype=np.float64)
    norm = float(np.linalg.norm(arr))
    if not math.isfinite(norm) or norm <= NORMALIZE_EPSILON:
        raise ValueError(f"Cannot normalize degenerate vector {tuple(arr.tolist())}")
    return arr / norm
