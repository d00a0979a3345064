"""Render configuration.

Every tunable the renderer uses (sample counts, reflection depth, light
geometry and power, surface bias, precision epsilon, background color, the
random seed, and the two compatibility switches) lives in RenderConfig. The
config is passed into Scene.render() and copied into Taichi fields before the
render kernel launches, so tests can vary depth and sample counts freely.

Example:
    >>> from spheretrace.core.config import RenderConfig, ShadowTest
    >>> config = RenderConfig(light_samples=8, reflection_depth=2, seed=7)
    >>> legacy = RenderConfig(shadow_test=ShadowTest.LEGACY)
"""

import math
import numbers
from dataclasses import asdict, dataclass
from enum import IntEnum
from typing import Any

Color = tuple[float, float, float]


class ShadowTest(IntEnum):
    """How a shadow-ray hit is judged to occlude the light.

    DISTANCE: the occluder blocks the light when it lies closer than the
        sampled light point along the shadow ray.
    LEGACY: the shadow ray points along the light position vector and the
        occluder blocks the light unless its hit point lies farther than one
        unit from the world origin.
    """

    DISTANCE = 0
    LEGACY = 1


class ReflectionMode(IntEnum):
    """Which vector is mirrored about the normal to continue a bounce.

    DIRECTION: the incoming ray direction (mirror reflection).
    POSITION: the hit point's position vector.
    """

    DIRECTION = 0
    POSITION = 1


def _check_color(name: str, value: Any) -> Color:
    try:
        components = tuple(float(c) for c in value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a sequence of 3 numbers, got {value!r}") from None
    if len(components) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(components)}")
    if not all(math.isfinite(c) for c in components):
        raise ValueError(f"{name} components must be finite, got {components}")
    return components


def _check_int(name: str, value: Any) -> int:
    # bool is an int subclass but never a meaningful count
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    return int(value)


def _check_float(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValueError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")
    return float(value)


@dataclass
class RenderConfig:
    """Configuration for one render pass.

    Attributes:
        light_samples: Samples drawn on each area light per pixel.
        reflection_depth: Maximum bounces per light sample.
        light_radius: Radius of the sphere light points are sampled on.
        light_color: RGB color of every light.
        light_power: Radiant power of every light (inverse-square falloff).
        surface_bias: Offset along the normal applied to shadow and
            reflection ray origins to avoid self-intersection.
        t_precision: Minimum accepted hit distance.
        background: Color returned by rays that escape the scene.
        shadow_test: Occlusion rule, see ShadowTest.
        reflection_mode: Bounce direction rule, see ReflectionMode.
        seed: Seed for the per-pixel random streams.
    """

    light_samples: int = 2
    reflection_depth: int = 3
    light_radius: float = 0.3
    light_color: Color = (1.0, 1.0, 1.0)
    light_power: float = 200.0
    surface_bias: float = 0.03
    t_precision: float = 1e-5
    background: Color = (0.08, 0.082, 0.08)
    shadow_test: ShadowTest = ShadowTest.DISTANCE
    reflection_mode: ReflectionMode = ReflectionMode.DIRECTION
    seed: int = 0

    def __post_init__(self) -> None:
        """Validate and normalize field values.

        Raises:
            ValueError: If any field has the wrong type, is not finite or is
                out of range.
        """
        self.light_samples = _check_int("light_samples", self.light_samples)
        self.reflection_depth = _check_int("reflection_depth", self.reflection_depth)
        self.seed = _check_int("seed", self.seed)
        self.light_radius = _check_float("light_radius", self.light_radius)
        self.light_power = _check_float("light_power", self.light_power)
        self.surface_bias = _check_float("surface_bias", self.surface_bias)
        self.t_precision = _check_float("t_precision", self.t_precision)

        if self.light_samples < 1:
            raise ValueError(f"light_samples must be >= 1, got {self.light_samples}")
        if self.reflection_depth < 1:
            raise ValueError(f"reflection_depth must be >= 1, got {self.reflection_depth}")
        if self.light_radius < 0.0:
            raise ValueError(f"light_radius must be >= 0, got {self.light_radius}")
        if self.light_power < 0.0:
            raise ValueError(f"light_power must be >= 0, got {self.light_power}")
        if self.surface_bias < 0.0:
            raise ValueError(f"surface_bias must be >= 0, got {self.surface_bias}")
        if self.t_precision <= 0.0:
            raise ValueError(f"t_precision must be > 0, got {self.t_precision}")
        if not 0 <= self.seed < 2**31:
            raise ValueError(f"seed must be in [0, 2**31), got {self.seed}")

        self.light_color = _check_color("light_color", self.light_color)
        self.background = _check_color("background", self.background)
        self.shadow_test = ShadowTest(self.shadow_test)
        self.reflection_mode = ReflectionMode(self.reflection_mode)

    def samples_per_pixel(self, num_lights: int) -> int:
        """Number of samples folded into each pixel for a scene with num_lights."""
        return num_lights * self.light_samples

    def to_dict(self) -> dict[str, Any]:
        """Export the configuration as plain JSON-compatible values."""
        data = asdict(self)
        data["light_color"] = list(self.light_color)
        data["background"] = list(self.background)
        data["shadow_test"] = self.shadow_test.name.lower()
        data["reflection_mode"] = self.reflection_mode.name.lower()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderConfig":
        """Build a configuration from a dictionary.

        Missing keys take their defaults. Enum fields accept either the
        member name (case-insensitive) or its integer value.

        Raises:
            ValueError: If a key is unknown or a value is invalid.
        """
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown render config keys: {sorted(unknown)}")

        kwargs = dict(data)
        for key, enum_type in (("shadow_test", ShadowTest), ("reflection_mode", ReflectionMode)):
            value = kwargs.get(key)
            if isinstance(value, str):
                try:
                    kwargs[key] = enum_type[value.upper()]
                except KeyError:
                    raise ValueError(f"Unknown {key}: {value}") from None
        return cls(**kwargs)
