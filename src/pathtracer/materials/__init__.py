"""Materials module: scattering models for the path tracer.

Components:
    lambertian: Ideal diffuse reflection
    metal: Mirror reflection with optional roughness (fuzz)
    dielectric: Glass-like refraction with Schlick reflectance
    material: Material type tags, unified ids and scatter dispatch

Each material answers one question for an incident ray and a hit record:
does the ray continue, and if so in which direction and with what
attenuation? All scatter functions are Taichi functions returning

    (scattered_direction, attenuation, did_scatter)
"""

from .dielectric import (
    add_dielectric_material,
    cannot_refract,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    refraction_ratio,
    scatter_dielectric,
    scatter_dielectric_by_id,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .material import (
    MAX_MATERIALS,
    MaterialType,
    clear_material_tracking,
    get_material_count,
    get_material_type,
    get_material_type_index,
    register_material,
    scatter_material,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_material_count,
    get_metal_roughness,
    scatter_metal,
    scatter_metal_by_id,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_roughness",
    # Dielectric
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    "refraction_ratio",
    "cannot_refract",
    # Dispatch
    "MaterialType",
    "MAX_MATERIALS",
    "register_material",
    "clear_material_tracking",
    "get_material_count",
    "get_material_type",
    "get_material_type_index",
    "scatter_material",
]
