"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    sampler: Per-pixel random streams and sampling routines
    integrator: Radiance estimation along one camera path
    render: Parallel render driver and progressive accumulation

Note: render is NOT imported here; it pulls in the camera and scene modules.
Import it directly from pathtracer.core.render.
"""

from .ray import (
    Ray,
    length_squared,
    make_ray,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)
from .sampler import (
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    Sampler,
    hemisphere_point,
    make_sampler,
    seed_samplers,
    uniform01,
    unit_disk_point,
    unit_sphere_point,
)

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length_squared",
    "reflect",
    "refract",
    "schlick_reflectance",
    "Sampler",
    "MAX_IMAGE_WIDTH",
    "MAX_IMAGE_HEIGHT",
    "seed_samplers",
    "make_sampler",
    "uniform01",
    "unit_sphere_point",
    "hemisphere_point",
    "unit_disk_point",
]
