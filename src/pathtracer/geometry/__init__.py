"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, hit record and ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) sharing one contract:

    record = hit_shape(ray, shape, material_id, t_min, t_max)

The scene aggregate in ``src.pathtracer.scene.world`` answers the same query
for the whole scene.
"""

from .sphere import (
    HitRecord,
    Sphere,
    hit_sphere,
    make_miss_record,
    set_face_normal,
)

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_miss_record",
    "set_face_normal",
]
