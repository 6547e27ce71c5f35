"""Core rendering module.

Components:
    ray: Ray data structure, vector helpers and random samplers
    integrator: Light transport for a single ray (ray_color)
    scheduler: Row-parallel image rendering with ordered reassembly

The integrator and scheduler are not imported here; they depend on the
scene and material modules, which in turn import ``core.ray``. Import them
directly from ``src.pathtracer.core.integrator`` and
``src.pathtracer.core.scheduler``.
"""

from .ray import (
    NEAR_ZERO_EPSILON,
    Ray,
    clamp,
    cross,
    degrees_to_radians,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    random_double,
    random_in_hemisphere,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    random_vec3,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "NEAR_ZERO_EPSILON",
    "random_double",
    "random_vec3",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_hemisphere",
    "random_in_unit_disk",
    "clamp",
    "degrees_to_radians",
]
