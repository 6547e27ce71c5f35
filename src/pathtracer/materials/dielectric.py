"""Dielectric (glass/water) material implementation.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for reflectance
    - Total internal reflection when eta_ratio * sin(theta) > 1

A dielectric never absorbs: every hit either reflects or refracts, and the
attenuation is white. Which of the two happens is decided per ray. Total
internal reflection forces a reflection; otherwise a random draw below the
Schlick reflectance reflects and anything else refracts.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import (
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)


@ti.func
def refraction_ratio(ior: ti.f64, front_face: ti.i32) -> ti.f64:
    """Relative index for a ray crossing the boundary.

    Entering from outside (front_face=1) gives 1/ior, leaving gives ior.
    """
    ratio = ior
    if front_face == 1:
        ratio = 1.0 / ior
    return ratio


@ti.func
def cannot_refract(unit_direction: vec3, normal: vec3, eta_ratio: ti.f64) -> ti.i32:
    """Return 1 when Snell's law has no solution (total internal reflection)."""
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)
    return eta_ratio * sin_theta > 1.0


@ti.func
def scatter_dielectric(
    ior: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Compute the scattered direction for a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The oriented unit surface normal (facing the incident ray).
        front_face: 1 if the ray hits the outside of the surface,
            0 if it travels inside the material.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        attenuation is white and did_scatter is always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    eta_ratio = refraction_ratio(ior, front_face)
    unit_direction = unit_vector(incident_direction)
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    total_internal = cannot_refract(unit_direction, normal, eta_ratio)
    reflectance = schlick_reflectance(cos_theta, eta_ratio)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if total_internal or ti.random(ti.f64) < reflectance:
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, eta_ratio)

    return scattered_direction, attenuation, 1


# =============================================================================
# Material Field Storage
# =============================================================================

MAX_DIELECTRIC_MATERIALS = 1024

dielectric_iors = ti.field(dtype=ti.f64, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Reset the dielectric registry to empty."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the registry.

    Args:
        ior: Index of refraction, at least 1.0. Default is 1.5 (glass).

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is less than 1.0.
    """
    if ior < 1.0:
        raise ValueError(
            f"Index of refraction = {ior} is less than 1.0. "
            "IOR must be >= 1.0 for physically meaningful materials."
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f64:
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Scatter using the IOR stored at ``material_idx``."""
    ior = get_dielectric_ior(material_idx)
    return scatter_dielectric(ior, incident_direction, normal, front_face)
