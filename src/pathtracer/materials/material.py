"""Material tags and scatter dispatch.

Every surface carries a unified material id. The id resolves to a
(MaterialType, type-local index) pair, and ``scatter_material`` routes the
scatter decision to the matching BSDF. Many spheres may share one id;
material parameters never change once registered.

The scatter contract is:

    scattered_direction, attenuation, did_scatter = scatter_material(ray, rec)

``did_scatter == 0`` means the ray was absorbed and contributes black. When
it scatters, the new ray starts at ``rec.point``.
"""

from enum import IntEnum

import taichi as ti

from src.pathtracer.core.ray import Ray, vec3
from src.pathtracer.geometry.sphere import HitRecord
from src.pathtracer.materials.dielectric import scatter_dielectric_by_id
from src.pathtracer.materials.lambertian import scatter_lambertian_by_id
from src.pathtracer.materials.metal import scatter_metal_by_id


class MaterialType(IntEnum):
    """The closed set of material kinds understood by the integrator."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 3072  # 1024 per type * 3 types

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_material_tracking() -> None:
    """Forget every unified material id."""
    num_materials[None] = 0


def register_material(material_type: MaterialType, type_index: int) -> int:
    """Assign the next unified material id to a type-local material.

    Args:
        material_type: Which registry the material lives in.
        type_index: Index returned by the type-specific ``add_*_material``.

    Returns:
        The new unified material id.

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
    return int(num_materials[None])


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Material type tag for a unified id, -1 for invalid ids."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Type-local index for a unified id, -1 for invalid ids."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@ti.func
def scatter_material(ray_in: Ray, rec: HitRecord):
    """Dispatch a scatter decision to the material at the hit point.

    Args:
        ray_in: The incident ray.
        rec: The hit record of the intersection (oriented normal, front face
            flag and material id).

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Unknown
        material ids absorb the ray.
    """
    mat_type = get_material_type(rec.material_id)
    type_index = get_material_type_index(rec.material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, rec.normal
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, ray_in.direction, rec.normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, ray_in.direction, rec.normal, rec.front_face
        )

    return scattered_direction, attenuation, did_scatter
