"""Material models.

Components:
    lambertian: Ideal diffuse scattering
    metal: Mirror reflection with optional fuzz
    dielectric: Refraction with Schlick reflectance
    material: Material arena and scatter dispatch
"""

from .dielectric import add_dielectric_material, scatter_dielectric
from .lambertian import add_lambertian_material, scatter_lambertian
from .material import MAX_MATERIALS, MaterialType, register_material, scatter
from .metal import add_metal_material, scatter_metal

__all__ = [
    "MaterialType",
    "MAX_MATERIALS",
    "register_material",
    "scatter",
    "add_lambertian_material",
    "scatter_lambertian",
    "add_metal_material",
    "scatter_metal",
    "add_dielectric_material",
    "scatter_dielectric",
]
