"""Material arena and scatter dispatch.

Materials are referred to by an integer handle (``material_id``) into a
single arena. The arena is a tagged union: for each handle it stores the
variant tag (see ``MaterialType``) and the index of the variant's parameters
in that variant's own storage. Spheres hold the handle, so any number of
spheres can share one material at no cost.

``scatter`` is the only capability a material has. It is dispatched by one
switch over the tag; adding a variant means adding a tag, a storage module
and one branch here.

Materials are read-only while rendering and never own random state; the
caller's ``Sampler`` supplies every random draw.
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray
from pathtracer.core.sampler import Sampler
from pathtracer.geometry.sphere import HitRecord
from pathtracer.materials.dielectric import get_dielectric_ior, scatter_dielectric
from pathtracer.materials.lambertian import get_lambertian_albedo, scatter_lambertian
from pathtracer.materials.metal import get_metal_albedo, get_metal_fuzz, scatter_metal

# Type alias for 3D vectors
vec3 = tm.vec3


class MaterialType(IntEnum):
    """Enumeration of supported material variants."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all variants
MAX_MATERIALS = 1024

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the variant-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_material_arena() -> None:
    """Forget every registered material handle."""
    num_materials[None] = 0


def register_material(material_type: MaterialType, type_index: int) -> int:
    """Allocate a handle for a material already stored in its variant registry.

    Args:
        material_type: The variant tag.
        type_index: The index returned by the variant's add_*_material().

    Returns:
        The new material handle.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    material_id = num_materials[None]
    if material_id >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_types[material_id] = int(material_type)
    material_type_indices[material_id] = type_index
    num_materials[None] = material_id + 1
    return material_id


def get_material_count() -> int:
    """Get the number of registered material handles."""
    return int(num_materials[None])


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the variant tag for a material handle.

    Returns:
        The material type as an integer (see MaterialType), or -1 for an
        invalid handle.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the variant-local storage index for a material handle.

    Returns:
        The index into the variant's parameter fields, or -1 for an invalid
        handle.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@ti.func
def scatter(incident: Ray, rec: HitRecord, sampler: Sampler):
    """Scatter an incident ray off the surface described by a hit record.

    The scattered ray always starts at rec.point, so only its direction is
    returned.

    Args:
        incident: The ray that produced the hit.
        rec: The hit record. Its normal must be unit length and face the
            incident ray.
        sampler: The caller's random stream.

    Returns:
        A tuple of (attenuation, scattered_direction, did_scatter) where:
        - attenuation: The color the outgoing radiance is multiplied by.
        - scattered_direction: Direction of the outgoing ray.
        - did_scatter: 1 if a ray was scattered, 0 if the light is absorbed.
          An unknown material handle absorbs.
    """
    mat_type = get_material_type(rec.material_id)
    type_index = get_material_type_index(rec.material_id)

    direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        direction, attenuation, did_scatter = scatter_lambertian(albedo, rec.normal, sampler)

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        direction, attenuation, did_scatter = scatter_metal(
            albedo, fuzz, incident.direction, rec.normal, sampler
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        direction, attenuation, did_scatter = scatter_dielectric(
            ior, incident.direction, rec.normal, rec.front_face, sampler
        )

    return attenuation, direction, did_scatter
