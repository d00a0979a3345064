"""Pixel grid with incremental color averaging.

Every output pixel owns a fixed normalized screen coordinate, assigned when
the grid is set up, and a running mean of the 8-bit color samples folded into
it. The mean is updated with

    mean_n = mean_{n-1} + (sample - mean_{n-1}) / n

so no sample history is kept. Grid fields are indexed [row, col] and
preallocated to MAX_IMAGE_HEIGHT x MAX_IMAGE_WIDTH to avoid kernel
recompilation when the image size changes.

Only the render-loop iteration that owns a pixel ever writes its cell, so
pixels can be processed in parallel without synchronization.
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

vec2 = tm.vec2
vec3 = tm.vec3

# Maximum supported image dimensions
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Active grid size
_grid_width = ti.field(dtype=ti.i32, shape=())
_grid_height = ti.field(dtype=ti.i32, shape=())

# Normalized screen coordinate of each pixel
_pixel_screen = ti.Vector.field(2, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Running mean of folded 8-bit samples
_pixel_color = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Number of samples folded so far
_pixel_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

_grid_initialized = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _assign_screen_coordinates(width: ti.i32, height: ti.i32):
    """Assign ((col - w/2)/w, (row - h/2)/h) to every active pixel."""
    half_w = ti.cast(width, ti.f32) / 2.0
    half_h = ti.cast(height, ti.f32) / 2.0
    for row, col in ti.ndrange(height, width):
        _pixel_screen[row, col] = vec2(
            (ti.cast(col, ti.f32) - half_w) / ti.cast(width, ti.f32),
            (ti.cast(row, ti.f32) - half_h) / ti.cast(height, ti.f32),
        )


def setup_pixel_grid(width: int, height: int) -> None:
    """Initialize the pixel grid.

    Sets the active dimensions, assigns screen coordinates and clears the
    accumulated colors.

    Args:
        width: Image width in pixels (1..MAX_IMAGE_WIDTH).
        height: Image height in pixels (1..MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is out of range.
    """
    if not (1 <= width <= MAX_IMAGE_WIDTH and 1 <= height <= MAX_IMAGE_HEIGHT):
        raise ValueError(
            f"Image dimensions ({width}x{height}) must be between 1x1 and "
            f"{MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}"
        )

    _grid_width[None] = width
    _grid_height[None] = height
    _assign_screen_coordinates(width, height)
    _grid_initialized[None] = 1
    clear_pixel_colors()


def clear_pixel_colors() -> None:
    """Reset every pixel mean and sample count to zero."""
    _pixel_color.fill(0.0)
    _pixel_count.fill(0)


def get_grid_dimensions() -> tuple[int, int]:
    """Get the active grid size as (width, height)."""
    return int(_grid_width[None]), int(_grid_height[None])


def check_grid_initialized() -> None:
    """Raise if setup_pixel_grid() has not been called."""
    if _grid_initialized[None] == 0:
        raise RuntimeError("Pixel grid not set up. Call setup_pixel_grid() first.")


@ti.func
def get_pixel_screen(row: ti.i32, col: ti.i32) -> vec2:
    """Get a pixel's normalized screen coordinate."""
    return _pixel_screen[row, col]


@ti.func
def fold_pixel_sample(row: ti.i32, col: ti.i32, sample: vec3) -> vec3:
    """Fold one 8-bit color sample into a pixel's running mean.

    Args:
        row: Pixel row.
        col: Pixel column.
        sample: The 8-bit color levels as floats.

    Returns:
        The updated mean.
    """
    _pixel_count[row, col] += 1
    n = _pixel_count[row, col]
    _pixel_color[row, col] += (sample - _pixel_color[row, col]) / ti.cast(n, ti.f32)
    return _pixel_color[row, col]


@ti.kernel
def _fold_pixel_kernel(row: ti.i32, col: ti.i32, r: ti.f32, g: ti.f32, b: ti.f32) -> vec3:
    return fold_pixel_sample(row, col, vec3(r, g, b))


def fold_pixel(row: int, col: int, sample: Sequence[int]) -> tuple[float, float, float]:
    """Fold an 8-bit sample into one pixel from Python.

    Args:
        row: Pixel row.
        col: Pixel column.
        sample: The (R, G, B) levels in [0, 255].

    Returns:
        The updated mean as (R, G, B) floats.

    Raises:
        RuntimeError: If the grid has not been set up.
        IndexError: If (row, col) is outside the active grid.
    """
    check_grid_initialized()
    width, height = get_grid_dimensions()
    if not (0 <= row < height and 0 <= col < width):
        raise IndexError(f"Pixel ({row}, {col}) outside {width}x{height} grid")
    mean = _fold_pixel_kernel(row, col, float(sample[0]), float(sample[1]), float(sample[2]))
    return (float(mean[0]), float(mean[1]), float(mean[2]))


def get_pixel_means_numpy() -> npt.NDArray[np.float32]:
    """Get the raw running means of the active grid, shape (height, width, 3)."""
    check_grid_initialized()
    width, height = get_grid_dimensions()
    return _pixel_color.to_numpy()[:height, :width, :]


def get_pixel_counts_numpy() -> npt.NDArray[np.int32]:
    """Get the folded sample counts of the active grid, shape (height, width)."""
    check_grid_initialized()
    width, height = get_grid_dimensions()
    return _pixel_count.to_numpy()[:height, :width]


def get_screen_coordinates_numpy() -> npt.NDArray[np.float32]:
    """Get the screen coordinates of the active grid, shape (height, width, 2)."""
    check_grid_initialized()
    width, height = get_grid_dimensions()
    return _pixel_screen.to_numpy()[:height, :width, :]


def resolve_pixels_u8(background: Sequence[int]) -> npt.NDArray[np.uint8]:
    """Produce the final 8-bit image in row-major order.

    Means are rounded to the nearest level. Pixels that never received a
    sample take the background color.

    Args:
        background: The 8-bit background color (R, G, B).

    Returns:
        Array of shape (height, width, 3), dtype uint8; row 0 is the top.
    """
    means = get_pixel_means_numpy()
    counts = get_pixel_counts_numpy()
    image = np.clip(np.rint(means), 0, 255).astype(np.uint8)
    image[counts == 0] = np.asarray(background, dtype=np.uint8)
    return image
