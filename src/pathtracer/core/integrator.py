"""Radiance estimation along a single camera path.

``ray_color`` follows a ray through the scene, scattering at each surface
according to its material, until the ray escapes to the sky, is absorbed, or
the bounce budget runs out. The estimate is

    L(ray, depth) = 0                                       if depth == 0
                  = background(ray)                         if ray misses
                  = 0                                       if absorbed
                  = attenuation * L(scattered, depth - 1)   otherwise

Taichi functions are inlined and cannot call themselves, so the recursion is
unrolled into a bounded loop that carries the running product of
attenuations (the path throughput). The loop yields the same value term for
term: the sky colour reached after k bounces is multiplied by the k
attenuations collected on the way.

The sky is the only light source. Its gradient blends white at the horizon
toward light blue overhead.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import ray_color
    >>> # Use within a Taichi kernel:
    >>> # color = ray_color(camera_ray, sampler, max_depth)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray
from pathtracer.core.sampler import Sampler
from pathtracer.materials.material import scatter
from pathtracer.scene.intersection import scene_hit

# Type alias for 3D vectors
vec3 = tm.vec3

# Default maximum ray bounces (path length)
MAX_DEPTH = 50

# Sky gradient end points
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky colour seen along a direction that escapes the scene.

    Blends linearly from white to light blue by the height of the unit
    direction: t = 0.5 * (y + 1).
    """
    unit_direction = tm.normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_HORIZON_COLOR + t * SKY_ZENITH_COLOR


@ti.func
def ray_color(ray: Ray, sampler: Sampler, depth: ti.i32) -> vec3:
    """Estimate the radiance arriving along a ray.

    Spheres are read from the module-level storage in
    `pathtracer.scene.intersection`, which must not change while a kernel runs.

    Args:
        ray: The ray to trace.
        sampler: The random stream owned by the calling task.
        depth: Maximum number of surface interactions. A path still bouncing
            when the budget is spent contributes black.

    Returns:
        The radiance estimate (RGB, non-negative).
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray

    # Taichi does not allow break inside ti.func loops
    active = 1

    for _ in range(depth):
        if active == 1:
            rec = scene_hit(current)

            if rec.hit == 0:
                color = throughput * background_color(current.direction)
                active = 0
            else:
                attenuation, direction, did_scatter = scatter(current, rec, sampler)
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    current = Ray(origin=rec.point, direction=direction)

    return color
