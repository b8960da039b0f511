"""Sphere primitive with ray-sphere intersection.

This module provides the Sphere and HitRecord dataclasses and the ray-sphere
intersection routine used by the scene aggregate.

A sphere's radius is signed. A negative radius leaves the surface in place but
flips the outward normal so it points toward the center, which models the
inner wall of a thin hollow shell (e.g. a glass bubble built from two
concentric spheres sharing one dielectric material).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, length_squared, ray_at

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point, signed radius and material.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The signed radius. Negative values produce inward normals.
        material_id: Handle of the sphere's material in the material arena.
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
            All other fields are only valid if hit == 1.
        t: The ray parameter at which the intersection occurred.
        point: The 3D intersection point.
        normal: The unit surface normal, always oriented against the incident
            ray regardless of which side was struck.
        front_face: 1 if the ray struck the side the outward normal points
            away from, 0 if it struck the inner side.
        material_id: Handle of the struck surface's material.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def align_face_normal(direction: vec3, outward_normal: vec3):
    """Orient an outward normal against the incident ray direction.

    Args:
        direction: The incident ray direction.
        outward_normal: The geometric outward normal (unit length).

    Returns:
        A tuple (front_face, normal) where front_face is 1 if the ray hit the
        outward side, and normal faces the incoming ray.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(direction, outward_normal) > 0.0:
        front_face = 0
        normal = -outward_normal
    return front_face, normal


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Find the nearest intersection of a ray with a sphere in [t_min, t_max].

    The ray-sphere intersection is found by solving:
        |origin + t * direction - center|^2 = radius^2

    which reduces to a*t^2 + 2*half_b*t + c = 0 with:
        a = dot(direction, direction)
        half_b = dot(origin - center, direction)
        c = |origin - center|^2 - radius^2

    The smaller root is tried first and the larger root only if the smaller
    one falls outside the interval. A tangent ray (zero discriminant) yields
    a single grazing hit.

    Args:
        ray: The ray to test. The direction need not be normalized.
        sphere: The sphere to test intersection against.
        t_min: Minimum accepted ray parameter (inclusive).
        t_max: Maximum accepted ray parameter (inclusive).

    Returns:
        A HitRecord; check its hit field to determine if intersection occurred.
    """
    oc = ray.origin - sphere.center
    a = length_squared(ray.direction)
    half_b = tm.dot(oc, ray.direction)
    c = length_squared(oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    result = make_miss_record()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        root = (-half_b - sqrt_d) / a
        valid = root >= t_min and root <= t_max
        if not valid:
            root = (-half_b + sqrt_d) / a
            valid = root >= t_min and root <= t_max

        if valid:
            point = ray_at(ray, root)
            # Dividing by the signed radius flips the normal for hollow shells
            outward_normal = (point - sphere.center) / sphere.radius
            front_face, normal = align_face_normal(ray.direction, outward_normal)
            result = HitRecord(
                hit=1,
                t=root,
                point=point,
                normal=normal,
                front_face=front_face,
                material_id=sphere.material_id,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32, material_id: ti.i32) -> Sphere:
    """Create a sphere inside a Taichi kernel."""
    return Sphere(center=center, radius=radius, material_id=material_id)
