"""Scene orchestration: geometry, lights, camera, pixel grid and output.

The Scene class is the top-level API. It registers materials, spheres and
lights into the Taichi fields used by the render kernel, configures the
camera and pixel grid, runs the render, and hands the finished image to the
PNG writer exactly once.

Scene data lives in module-level Taichi fields, so only one Scene is active
at a time: constructing a Scene (or calling clear()) resets all of them.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.camera.pinhole import Camera
    >>> from spheretrace.scene.manager import Scene
    >>> camera = Camera(lookfrom=(0, 0, 0), lookat=(0, 0, -1), vfov=60.0)
    >>> scene = Scene(camera, width=64, height=64)
    >>> red = scene.add_material(ambient=(0.05, 0, 0), diffuse=(0.8, 0.1, 0.1))
    >>> scene.add_sphere(center=(0, 0, -3), radius=1.0, material_id=red)
    >>> scene.add_light(center=(2, 3, -1))
    >>> scene.render_to_file("out.png")
"""

import logging
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt

from spheretrace.camera.pinhole import Camera, setup_camera
from spheretrace.core.config import RenderConfig
from spheretrace.core.integrator import render_pixels
from spheretrace.core.pixel import resolve_pixels_u8, setup_pixel_grid
from spheretrace.core.vector import to_u8_py
from spheretrace.materials.phong import (
    MAX_MATERIALS,
    add_phong_material,
    clear_phong_materials,
    get_material_count,
)
from spheretrace.preview.export import write_png
from spheretrace.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)
from spheretrace.scene.lights import MAX_LIGHTS, add_light, clear_lights, get_light_count

logger = logging.getLogger(__name__)

Vec3 = tuple[float, float, float]


def _as_vec3(values: Sequence[float]) -> Vec3:
    return (float(values[0]), float(values[1]), float(values[2]))


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The material ID.
        ambient: Ambient color.
        diffuse: Diffuse color.
        reflectiveness: Bounce weight in [0, 1].
        shininess: Specular exponent.
    """

    material_id: int
    ambient: Vec3
    diffuse: Vec3
    reflectiveness: float
    shininess: float


@dataclass
class SphereInfo:
    """Information about a sphere in the scene."""

    sphere_index: int
    center: Vec3
    radius: float
    material_id: int


@dataclass
class LightInfo:
    """Information about a light in the scene."""

    light_index: int
    center: Vec3


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        camera: Camera parameters (Camera field names).
        materials: List of material configurations.
        spheres: List of sphere configurations.
        lights: List of light configurations.
    """

    width: int
    height: int
    camera: dict[str, Any]
    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)
    lights: list[dict[str, Any]] = field(default_factory=list)


class Scene:
    """A renderable scene of spheres lit by spherical area lights.

    Attributes:
        camera: The camera configuration.
        width: Image width in pixels.
        height: Image height in pixels.
        materials: MaterialInfo for all registered materials.
        spheres: SphereInfo for all spheres.
        lights: LightInfo for all lights.
        image: The last rendered (height, width, 3) uint8 image, or None.
    """

    def __init__(self, camera: Camera, width: int, height: int) -> None:
        """Create an empty scene and set up the camera and pixel grid.

        Args:
            camera: The camera to render from.
            width: Image width in pixels.
            height: Image height in pixels.

        Raises:
            ValueError: If the dimensions are out of range or the camera
                basis is degenerate.
        """
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.lights: list[LightInfo] = []
        self.image: npt.NDArray[np.uint8] | None = None
        self._clear_all()

        self.width = width
        self.height = height
        setup_pixel_grid(width, height)
        self.camera = camera
        setup_camera(camera)

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_lights()
        clear_phong_materials()
        self.materials.clear()
        self.spheres.clear()
        self.lights.clear()
        self.image = None

    def clear(self) -> None:
        """Remove all materials, spheres and lights.

        The camera and image size are kept.
        """
        self._clear_all()

    def set_camera(self, camera: Camera) -> None:
        """Replace the camera."""
        setup_camera(camera)
        self.camera = camera

    # =========================================================================
    # Scene Building
    # =========================================================================

    def add_material(
        self,
        ambient: Sequence[float],
        diffuse: Sequence[float],
        reflectiveness: float = 0.0,
        shininess: float = 32.0,
    ) -> int:
        """Register a Blinn-Phong material.

        Args:
            ambient: Ambient color as (R, G, B).
            diffuse: Diffuse color as (R, G, B).
            reflectiveness: Weight of mirrored bounces, in [0, 1].
            shininess: Specular exponent, > 0.

        Returns:
            The material ID.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any parameter is out of range.
        """
        material_id = add_phong_material(ambient, diffuse, reflectiveness, shininess)
        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                ambient=_as_vec3(ambient),
                diffuse=_as_vec3(diffuse),
                reflectiveness=float(reflectiveness),
                shininess=float(shininess),
            )
        )
        return material_id

    def add_sphere(
        self,
        center: Sequence[float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere with an existing material.

        Args:
            center: The center point as (x, y, z).
            radius: The radius; must be > 0.
            material_id: A material ID returned by add_material().

        Returns:
            The index of the added sphere.

        Raises:
            ValueError: If the radius or material ID is invalid.
            RuntimeError: If the maximum number of spheres is exceeded.
        """
        if not 0 <= material_id < get_material_count():
            raise ValueError(f"Invalid material_id: {material_id}")

        sphere_index = add_sphere(center, radius, material_id)
        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=_as_vec3(center),
                radius=float(radius),
                material_id=material_id,
            )
        )
        return sphere_index

    def add_phong_sphere(
        self,
        center: Sequence[float],
        radius: float,
        ambient: Sequence[float],
        diffuse: Sequence[float],
        reflectiveness: float = 0.0,
        shininess: float = 32.0,
    ) -> tuple[int, int]:
        """Add a sphere with a new material in one call.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_material(ambient, diffuse, reflectiveness, shininess)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_light(self, center: Sequence[float]) -> int:
        """Add a spherical area light.

        Radius, color and power are shared by all lights and come from the
        RenderConfig.

        Args:
            center: The light center as (x, y, z).

        Returns:
            The index of the added light.
        """
        light_index = add_light(center)
        self.lights.append(LightInfo(light_index=light_index, center=_as_vec3(center)))
        return light_index

    def get_material_count(self) -> int:
        """Get the number of materials in the scene."""
        return get_material_count()

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    def get_light_count(self) -> int:
        """Get the number of lights in the scene."""
        return get_light_count()

    # =========================================================================
    # Rendering and Output
    # =========================================================================

    def render(self, config: RenderConfig | None = None) -> npt.NDArray[np.uint8]:
        """Render the scene.

        Args:
            config: Render configuration (defaults to RenderConfig()).

        Returns:
            The (height, width, 3) uint8 image; row 0 is the top.
        """
        if config is None:
            config = RenderConfig()

        render_pixels(config)
        self.image = resolve_pixels_u8(to_u8_py(config.background))
        return self.image

    def save_image(self, filepath: str | Path) -> bool:
        """Write the last rendered image to a PNG file.

        A failed write is logged, not raised; the rendered image stays
        available in self.image.

        Args:
            filepath: Output file path.

        Returns:
            True if the file was written.

        Raises:
            RuntimeError: If nothing has been rendered yet.
        """
        if self.image is None:
            raise RuntimeError("Nothing rendered yet. Call render() first.")

        result = write_png(filepath, self.image, self.width, self.height)
        if result.success:
            logger.info(result.message)
        else:
            logger.error("Failed to write image to %s: %s", filepath, result.message)
        return result.success

    def render_to_file(
        self,
        filepath: str | Path,
        config: RenderConfig | None = None,
    ) -> bool:
        """Render the scene and write it to a PNG file.

        Args:
            filepath: Output file path.
            config: Render configuration (defaults to RenderConfig()).

        Returns:
            True if the file was written.
        """
        self.render(config)
        return self.save_image(filepath)

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig(
            width=self.width,
            height=self.height,
            camera={key: list(v) if isinstance(v, tuple) else v for key, v in asdict(self.camera).items()},
        )
        for mat in self.materials:
            config.materials.append(
                {
                    "ambient": list(mat.ambient),
                    "diffuse": list(mat.diffuse),
                    "reflectiveness": mat.reflectiveness,
                    "shininess": mat.shininess,
                }
            )
        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )
        for light in self.lights:
            config.lights.append({"center": list(light.center)})
        return config

    @classmethod
    def from_config(cls, config: SceneConfig) -> "Scene":
        """Build a scene from a configuration object.

        Materials are added first so sphere material IDs resolve.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        camera_params = dict(config.camera)
        for key in ("lookfrom", "lookat", "vup"):
            if key in camera_params:
                camera_params[key] = _as_vec3(camera_params[key])
        try:
            camera = Camera(**camera_params)
        except TypeError as e:
            raise ValueError(f"Invalid camera configuration: {e}") from None

        scene = cls(camera, config.width, config.height)
        for mat_config in config.materials:
            scene.add_material(
                ambient=mat_config.get("ambient", [0.0, 0.0, 0.0]),
                diffuse=mat_config.get("diffuse", [0.5, 0.5, 0.5]),
                reflectiveness=mat_config.get("reflectiveness", 0.0),
                shininess=mat_config.get("shininess", 32.0),
            )
        for sphere_config in config.spheres:
            scene.add_sphere(
                center=sphere_config.get("center", [0.0, 0.0, 0.0]),
                radius=sphere_config.get("radius", 1.0),
                material_id=sphere_config.get("material_id", 0),
            )
        for light_config in config.lights:
            scene.add_light(light_config.get("center", [0.0, 0.0, 0.0]))
        return scene

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        return asdict(self.to_config())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Scene":
        """Build a scene from a dictionary.

        Args:
            data: Dictionary with 'width', 'height', 'camera' and optional
                'materials', 'spheres', 'lights' keys.

        Raises:
            ValueError: If a required key is missing or data is invalid.
        """
        missing = [key for key in ("width", "height", "camera") if key not in data]
        if missing:
            raise ValueError(f"Scene data missing required keys: {missing}")
        config = SceneConfig(
            width=data["width"],
            height=data["height"],
            camera=data["camera"],
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
            lights=data.get("lights", []),
        )
        return cls.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_lights() -> int:
        """Get the maximum number of lights supported."""
        return MAX_LIGHTS

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
