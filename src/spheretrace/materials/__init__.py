"""Materials module.

Components:
    phong: Blinn-Phong material (ambient, Lambertian diffuse, specular
        highlight) and the material registry
"""

from .phong import (
    MAX_MATERIALS,
    PhongMaterial,
    add_phong_material,
    clear_phong_materials,
    get_material,
    get_material_count,
    get_reflectiveness,
    shade_blinn_phong,
)

__all__ = [
    "PhongMaterial",
    "shade_blinn_phong",
    "add_phong_material",
    "clear_phong_materials",
    "get_material_count",
    "get_material",
    "get_reflectiveness",
    "MAX_MATERIALS",
]
