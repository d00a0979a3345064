"""Blinn-Phong surface material and local shading model.

Each material carries an ambient color, a diffuse color, a reflectiveness in
[0, 1] that scales the contribution of mirrored bounces, and a shininess
exponent for the specular lobe.

The shading model for a point light at distance d is:

    L        = unit(light - point)
    lambert  = max(0, N . L)
    H        = unit(L + V)                (only when lambert > 0)
    specular = max(0, N . H) ^ shininess  (0 when lambert == 0)

    color = ambient
          + power * lambert  * light_color * diffuse / d^2
          + power * specular * light_color           / d^2

where V is the unit vector from the point back toward the ray origin.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.phong import add_phong_material
    >>> mat = add_phong_material(
    ...     ambient=(0.05, 0.0, 0.0), diffuse=(0.8, 0.1, 0.1),
    ...     reflectiveness=0.2, shininess=32.0,
    ... )
"""

import math
from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

from spheretrace.core.vector import mul, normalize

vec3 = tm.vec3


@ti.dataclass
class PhongMaterial:
    """Blinn-Phong material properties.

    Attributes:
        ambient: Color added regardless of lighting (RGB).
        diffuse: Lambertian reflectance color (RGB).
        reflectiveness: Weight of the next bounce, in [0, 1].
        shininess: Specular exponent, strictly positive.
    """

    ambient: vec3
    diffuse: vec3
    reflectiveness: ti.f32
    shininess: ti.f32


@ti.func
def shade_blinn_phong(
    point: vec3,
    normal: vec3,
    material: PhongMaterial,
    light_position: vec3,
    view_origin: vec3,
    light_color: vec3,
    light_power: ti.f32,
) -> vec3:
    """Evaluate the local shading model at a surface point.

    Args:
        point: The surface point being shaded.
        normal: The outward unit normal at the point.
        material: The surface material.
        light_position: Position of the (point) light.
        view_origin: Origin of the ray that reached the point.
        light_color: Light color (RGB).
        light_power: Light power.

    Returns:
        The linear RGB color, unclamped.
    """
    to_light = light_position - point
    distance_sq = tm.dot(to_light, to_light)
    light_dir = normalize(to_light)

    lambertian = tm.dot(light_dir, normal)
    specular = 0.0
    if lambertian > 0.0:
        view_dir = normalize(view_origin - point)
        half_dir = normalize(light_dir + view_dir)
        specular_angle = ti.max(tm.dot(half_dir, normal), 0.0)
        specular = specular_angle**material.shininess
    else:
        lambertian = 0.0

    color = material.ambient
    # A light sitting exactly on the surface contributes nothing
    if distance_sq > 0.0:
        color += light_power * lambertian * mul(light_color, material.diffuse) / distance_sq
        color += light_power * specular * light_color / distance_sq
    return color


# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of materials in the scene
MAX_MATERIALS = 256

# Storage for material properties (Structure of Arrays)
material_ambients = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_diffuses = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_reflectiveness = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_shininess = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_phong_materials() -> None:
    """Clear all materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def _check_color(name: str, color: Sequence[float]) -> tuple[float, float, float]:
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    for i, component in enumerate(color):
        if not math.isfinite(component) or component < 0.0:
            raise ValueError(f"{name} component {i} = {component} must be finite and >= 0")
    return (float(color[0]), float(color[1]), float(color[2]))


def add_phong_material(
    ambient: Sequence[float],
    diffuse: Sequence[float],
    reflectiveness: float,
    shininess: float,
) -> int:
    """Add a material to the registry.

    Args:
        ambient: Ambient color as (R, G, B); components must be >= 0.
        diffuse: Diffuse color as (R, G, B); components must be >= 0.
        reflectiveness: Bounce weight in [0, 1].
        shininess: Specular exponent, > 0.

    Returns:
        The material ID (index into the registry).

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any parameter is out of range.
    """
    ambient = _check_color("ambient", ambient)
    diffuse = _check_color("diffuse", diffuse)
    if not 0.0 <= reflectiveness <= 1.0:
        raise ValueError(f"reflectiveness = {reflectiveness} is outside [0, 1]")
    if not (math.isfinite(shininess) and shininess > 0.0):
        raise ValueError(f"shininess must be finite and > 0, got {shininess}")

    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_ambients[idx] = ambient
    material_diffuses[idx] = diffuse
    material_reflectiveness[idx] = reflectiveness
    material_shininess[idx] = shininess
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of materials in the registry."""
    return int(num_materials[None])


@ti.func
def get_material(material_id: ti.i32) -> PhongMaterial:
    """Look up a material by ID inside a kernel."""
    return PhongMaterial(
        ambient=material_ambients[material_id],
        diffuse=material_diffuses[material_id],
        reflectiveness=material_reflectiveness[material_id],
        shininess=material_shininess[material_id],
    )


@ti.func
def get_reflectiveness(material_id: ti.i32) -> ti.f32:
    """Get the reflectiveness of a material by ID."""
    return material_reflectiveness[material_id]
