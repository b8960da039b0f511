"""Scene storage and closest-hit queries.

The scene is an aggregate of spheres stored in Taichi fields. Each sphere
carries the handle of its material in the material arena. A query scans
every sphere and keeps the nearest intersection, shrinking the upper bound
of the search interval as closer hits are found.

Scene storage is written from Python scope between renders and is read-only
inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.intersection import add_sphere, clear_scene, scene_hit
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
    >>> # Use scene_hit within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray
from pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Minimum ray parameter for scene queries; rejects self-intersection at the
# origin of a scattered ray
EPSILON = 0.001

# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres from the scene.

    Resets the sphere count to zero. The field data is not cleared but will
    be overwritten when new spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(
    center: tuple[float, float, float],
    radius: float,
    material_id: int = 0,
) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The signed radius. A negative radius keeps the surface but
            points its normals inward.
        material_id: Handle of the sphere's material in the material arena.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = vec3(center[0], center[1], center[2])
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def get_sphere(idx: ti.i32) -> Sphere:
    """Load the sphere at a storage index."""
    return Sphere(
        center=sphere_centers[idx],
        radius=sphere_radii[idx],
        material_id=sphere_material_ids[idx],
    )


@ti.func
def scene_bounded_hit(ray: Ray, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Find the nearest intersection of a ray with the scene in [t_min, t_max].

    Spheres are tested in storage order. Each hit lowers the upper bound to
    its t, so the final record is the closest surface in the interval.

    Args:
        ray: The ray to test.
        t_min: Minimum accepted ray parameter (inclusive).
        t_max: Maximum accepted ray parameter (inclusive).

    Returns:
        The closest HitRecord, or a miss record if nothing was hit.
    """
    closest_t = t_max
    result = make_miss_record()

    for i in range(num_spheres[None]):
        rec = hit_sphere(ray, get_sphere(i), t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result


@ti.func
def scene_hit(ray: Ray) -> HitRecord:
    """Find the nearest intersection of a ray with the scene beyond EPSILON."""
    return scene_bounded_hit(ray, EPSILON, tm.inf)

