"""Taichi-based sphere ray tracer.

This package renders scenes of spheres lit by spherical area lights, with:
- Lambertian diffuse and Blinn-Phong specular shading
- Shadow rays toward randomly sampled light points
- Bounded mirror reflection weighted by surface reflectiveness
- Per-pixel running means of 8-bit samples, written to PNG

Subpackages:
    core: Vector math, sampling, pixel grid, configuration and the integrator
    geometry: Sphere primitive and ray-sphere intersection
    materials: Blinn-Phong material model and registry
    scene: Sphere and light storage, scene queries and the Scene API
    camera: Jittered pinhole camera
    preview: PNG export
"""

__version__ = "0.1.0"
