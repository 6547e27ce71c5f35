"""Metal (glossy reflector) material implementation.

A metal mirrors the normalized incident direction about the surface normal:

    R = I - 2(I . N)N

A roughness ("fuzz") in [0, 1] perturbs the reflection by a random point in
a sphere of that radius. A perturbed ray that ends up pointing into the
surface is absorbed. Roughness 0 yields an exact mirror with no randomness.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, roughness, incident_dir, normal
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import (
    clamp,
    random_in_unit_sphere,
    reflect,
    unit_vector,
    vec3,
)


@ti.func
def scatter_metal(
    albedo: vec3,
    roughness: ti.f64,
    incident_direction: vec3,
    normal: vec3,
):
    """Compute the scattered direction for a metal surface.

    Args:
        albedo: The reflective color (RGB).
        roughness: The fuzz radius in [0, 1].
        incident_direction: The incoming ray direction (any length).
        normal: The oriented unit surface normal.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        did_scatter is 0 when the fuzzed direction does not leave the surface.
    """
    reflected = reflect(unit_vector(incident_direction), normal)
    scattered_direction = reflected
    if roughness > 0.0:
        scattered_direction = reflected + roughness * random_in_unit_sphere()

    did_scatter = 0
    if tm.dot(scattered_direction, normal) > 0.0:
        did_scatter = 1

    return scattered_direction, albedo, did_scatter


# =============================================================================
# Material Field Storage
# =============================================================================

MAX_METAL_MATERIALS = 1024

metal_albedos = ti.Vector.field(3, dtype=ti.f64, shape=MAX_METAL_MATERIALS)
metal_roughnesses = ti.field(dtype=ti.f64, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Reset the metal registry to empty."""
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    roughness: float = 0.0,
) -> int:
    """Add a metal material to the registry.

    Args:
        albedo: The reflective color as (R, G, B), each in [0, 1].
        roughness: The fuzz radius. Values outside [0, 1] are clamped.

    Returns:
        The type-local index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_roughnesses[idx] = clamp(roughness, 0.0, 1.0)
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_roughness(material_idx: ti.i32) -> ti.f64:
    return metal_roughnesses[material_idx]


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
):
    """Scatter using the albedo and roughness stored at ``material_idx``."""
    albedo = get_metal_albedo(material_idx)
    roughness = get_metal_roughness(material_idx)
    return scatter_metal(albedo, roughness, incident_direction, normal)
