"""Sphere primitive and ray-sphere intersection.

The intersection substitutes the ray equation into the sphere equation and
solves the resulting quadratic in its half-b form:

    a      = dot(direction, direction)
    half_b = dot(origin - center, direction)
    c      = dot(origin - center, origin - center) - radius^2
    disc   = half_b^2 - a*c
    t      = (-half_b +/- sqrt(disc)) / a

Only rays that enter the sphere from outside and in front of their origin
count: both roots must be strictly positive, and the nearer one must clear a
precision epsilon. A zero discriminant (a tangent ray) is a miss.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (strictly positive).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    The hit field is the tag: every other field is only meaningful when
    hit == 1.

    Attributes:
        hit: 1 if the ray intersected the sphere, 0 on a miss.
        t: The ray parameter of the intersection.
        point: The 3D point where the ray met the sphere.
        normal: The outward unit normal (point - center) / radius.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def make_miss() -> HitRecord:
    """Create a HitRecord tagged as a miss."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
    )


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_precision: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be unit
            length; the roots are divided by |direction|^2).
        sphere: The sphere to test intersection against.
        t_precision: Smallest accepted t. Guards against re-hitting the
            surface a ray was just launched from.

    Returns:
        A HitRecord for the nearer root, or a miss record.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    half_b = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    result = make_miss()

    if discriminant > 0.0 and a > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t_far = (-half_b + sqrt_d) / a
        t_near = (-half_b - sqrt_d) / a

        # Both roots in front of the origin: the ray starts outside
        if t_near > 0.0 and t_far > 0.0:
            t = ti.min(t_near, t_far)
            if t >= t_precision:
                point = ray_origin + t * ray_direction
                result = HitRecord(
                    hit=1,
                    t=t,
                    point=point,
                    normal=(point - sphere.center) / sphere.radius,
                )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius inside a Taichi kernel."""
    return Sphere(center=center, radius=radius)
