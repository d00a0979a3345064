"""Direct-lighting ray tracing integrator with bounded mirror reflection.

This module implements the render kernel. For every pixel, for every light,
and for each of ``light_samples`` points sampled on that light's sphere, a
camera ray is traced through up to ``reflection_depth`` bounces:

1. Find the nearest sphere hit. A miss adds the background color and ends
   the sample immediately.
2. On a hit, cast a shadow ray toward the sampled light point. A visible
   light adds the Blinn-Phong color, an occluded one adds black.
3. Every contribution is weighted by the product of the reflectiveness of
   the surfaces hit so far (1 for the first hit).
4. The ray is re-launched from the hit point, offset along the normal, in
   the reflected direction.

The summed sample color is clamped to 8 bits and folded into the pixel's
running mean.

The outer pixel loop is a Taichi parallel-for: scene fields are read-only
during the kernel and each iteration writes only its own pixel, so the kernel
returning is the only synchronization point. Random numbers come from a
per-pixel stream seeded by RenderConfig.seed, so results are reproducible.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.core.config import RenderConfig
    >>> from spheretrace.core.integrator import render_pixels
    >>> # After the scene, camera and pixel grid are set up:
    >>> render_pixels(RenderConfig(light_samples=4))
"""

import logging
import time

import taichi as ti
import taichi.math as tm

from spheretrace.camera.pinhole import pixel_direction, sample_origin
from spheretrace.core.config import ReflectionMode, RenderConfig, ShadowTest
from spheretrace.core.pixel import (
    check_grid_initialized,
    clear_pixel_colors,
    fold_pixel_sample,
    get_grid_dimensions,
    get_pixel_screen,
)
from spheretrace.core.sampler import random_unit_vector, seed_state
from spheretrace.core.vector import length, normalize, reflect, to_u8
from spheretrace.materials.phong import get_material, get_reflectiveness, shade_blinn_phong
from spheretrace.scene.intersection import intersect_scene
from spheretrace.scene.lights import get_light_center, get_light_count, num_lights

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# =============================================================================
# Render Configuration Fields
# =============================================================================

_light_samples = ti.field(dtype=ti.i32, shape=())
_reflection_depth = ti.field(dtype=ti.i32, shape=())
_light_radius = ti.field(dtype=ti.f32, shape=())
_light_color = ti.Vector.field(3, dtype=ti.f32, shape=())
_light_power = ti.field(dtype=ti.f32, shape=())
_surface_bias = ti.field(dtype=ti.f32, shape=())
_t_precision = ti.field(dtype=ti.f32, shape=())
_background = ti.Vector.field(3, dtype=ti.f32, shape=())
_shadow_test = ti.field(dtype=ti.i32, shape=())
_reflection_mode = ti.field(dtype=ti.i32, shape=())


def apply_config(config: RenderConfig) -> None:
    """Copy a RenderConfig into the fields read by the render kernel.

    Args:
        config: The configuration to apply.
    """
    _light_samples[None] = config.light_samples
    _reflection_depth[None] = config.reflection_depth
    _light_radius[None] = config.light_radius
    _light_color[None] = config.light_color
    _light_power[None] = config.light_power
    _surface_bias[None] = config.surface_bias
    _t_precision[None] = config.t_precision
    _background[None] = config.background
    _shadow_test[None] = int(config.shadow_test)
    _reflection_mode[None] = int(config.reflection_mode)
    logger.debug("Applied render config: %s", config)


# =============================================================================
# Shadow Test
# =============================================================================


@ti.func
def is_shadowed(point: vec3, normal: vec3, light_point: vec3) -> ti.i32:
    """Test whether a sampled light point is occluded from a surface point.

    The shadow ray starts at point + bias * normal so it cannot re-hit the
    surface it leaves.

    Args:
        point: The surface point.
        normal: The outward unit normal at the point.
        light_point: The sampled point on the light.

    Returns:
        1 if occluded, 0 if the light point is visible.
    """
    origin = point + _surface_bias[None] * normal
    shadowed = 0

    if _shadow_test[None] == int(ShadowTest.LEGACY):
        rec = intersect_scene(origin, normalize(light_point), _t_precision[None])
        if rec.hit == 1 and length(rec.point) <= 1.0:
            shadowed = 1
    else:
        to_light = light_point - origin
        rec = intersect_scene(origin, normalize(to_light), _t_precision[None])
        if rec.hit == 1 and rec.t < length(to_light):
            shadowed = 1

    return shadowed


# =============================================================================
# Sample Tracing
# =============================================================================


@ti.func
def trace_light_sample(screen: tm.vec2, light_center: vec3, state: ti.u32):
    """Trace one light sample for one pixel.

    Args:
        screen: The pixel's normalized screen coordinate.
        light_center: Center of the light being sampled.
        state: The pixel's random state.

    Returns:
        A tuple (color, new_state) where color is the linear, unclamped sum
        of all bounce contributions.
    """
    origin, s = sample_origin(state)
    direction = pixel_direction(screen)

    offset, s = random_unit_vector(s)
    light_point = light_center + _light_radius[None] * offset

    color = vec3(0.0, 0.0, 0.0)
    reflection = 1.0
    active = 1

    for _ in range(_reflection_depth[None]):
        if active == 1:
            rec = intersect_scene(origin, direction, _t_precision[None])

            if rec.hit == 0:
                # Escaped rays end the sample regardless of remaining depth
                color += reflection * _background[None]
                active = 0
            else:
                sampled = vec3(0.0, 0.0, 0.0)
                if is_shadowed(rec.point, rec.normal, light_point) == 0:
                    sampled = shade_blinn_phong(
                        rec.point,
                        rec.normal,
                        get_material(rec.material_id),
                        light_center,
                        origin,
                        _light_color[None],
                        _light_power[None],
                    )
                color += reflection * sampled
                reflection *= get_reflectiveness(rec.material_id)

                unit_normal = normalize(rec.normal)
                next_direction = reflect(direction, unit_normal)
                if _reflection_mode[None] == int(ReflectionMode.POSITION):
                    next_direction = reflect(rec.point, unit_normal)

                origin = rec.point + _surface_bias[None] * unit_normal
                direction = next_direction

    return color, s


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_pixels(width: ti.i32, height: ti.i32, seed: ti.i32):
    """Trace every light sample of every pixel and fold the results.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        seed: Render seed for the per-pixel random streams.
    """
    for row, col in ti.ndrange(height, width):
        state = seed_state(seed, row * width + col)
        screen = get_pixel_screen(row, col)

        for light_index in range(num_lights[None]):
            light_center = get_light_center(light_index)
            for _ in range(_light_samples[None]):
                color, state = trace_light_sample(screen, light_center, state)
                fold_pixel_sample(row, col, to_u8(color))


@ti.kernel
def _trace_single_sample(
    row: ti.i32, col: ti.i32, light_index: ti.i32, width: ti.i32, seed: ti.i32
) -> vec3:
    """Trace the first light sample of one pixel without folding it.

    Used for testing and debugging individual pixels.
    """
    state = seed_state(seed, row * width + col)
    color, _ = trace_light_sample(get_pixel_screen(row, col), get_light_center(light_index), state)
    return color


# =============================================================================
# Public Rendering API
# =============================================================================


def render_pixels(config: RenderConfig) -> None:
    """Render every pixel of the grid with the given configuration.

    Clears previously accumulated colors first. The camera, spheres,
    materials, lights and pixel grid must already be set up.

    Args:
        config: The render configuration.

    Raises:
        RuntimeError: If the pixel grid has not been set up.
    """
    check_grid_initialized()
    apply_config(config)
    clear_pixel_colors()

    width, height = get_grid_dimensions()
    light_count = get_light_count()
    logger.info(
        "Rendering %dx%d with %d light(s), %d sample(s) per light, depth %d",
        width,
        height,
        light_count,
        config.light_samples,
        config.reflection_depth,
    )

    start_time = time.time()
    _render_pixels(width, height, config.seed)
    ti.sync()
    logger.info("Render finished in %.2fs", time.time() - start_time)


def trace_pixel_sample(
    row: int, col: int, light_index: int = 0, config: RenderConfig | None = None
) -> tuple[float, float, float]:
    """Trace one light sample for a single pixel and return its linear color.

    This is a Python-callable function for testing; it does not touch the
    pixel means.

    Args:
        row: Pixel row.
        col: Pixel column.
        light_index: Which light to sample.
        config: Render configuration (defaults to RenderConfig()).

    Returns:
        Tuple of (R, G, B) linear color values, unclamped.

    Raises:
        RuntimeError: If the pixel grid has not been set up.
        IndexError: If the light index or pixel is out of range.
    """
    check_grid_initialized()
    if config is None:
        config = RenderConfig()
    width, height = get_grid_dimensions()
    if not (0 <= row < height and 0 <= col < width):
        raise IndexError(f"Pixel ({row}, {col}) outside {width}x{height} grid")
    if not 0 <= light_index < get_light_count():
        raise IndexError(f"Light index {light_index} out of range")

    apply_config(config)
    color = _trace_single_sample(row, col, light_index, width, config.seed)
    return (float(color[0]), float(color[1]), float(color[2]))
