"""Sphere primitive and the hit record produced by intersection queries.

Every shape answers the same question: does a ray hit it with a parameter
strictly inside ``(t_min, t_max)``? The answer is a HitRecord whose ``hit``
flag is 0 on a miss. On a hit the record is fully formed: the normal always
faces against the incoming ray and ``front_face`` says whether the ray came
from outside.

The sphere solves

    |O + tD - C|^2 = R^2

which expands to the quadratic ``a t^2 + 2 h t + c = 0`` with

    a  = D . D
    h  = D . (O - C)          (half of the usual b coefficient)
    c  = |O - C|^2 - R^2

The nearer root is tried first, then the farther one. A ray starting inside
the sphere therefore reports its exit point.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.core.ray import vec3
    >>> from src.pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import Ray, ray_at, vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f64


@ti.dataclass
class HitRecord:
    """Result of a ray/shape intersection query.

    Attributes:
        hit: 1 if the ray intersected the shape, 0 on a miss. The remaining
            fields are only meaningful when hit == 1.
        t: The ray parameter of the intersection.
        point: The intersection point.
        normal: Unit surface normal, oriented against the incoming ray.
        front_face: 1 if the ray arrived from outside the surface, 0 otherwise.
        material_id: Unified material id of the surface, -1 if unassigned.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def set_face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a geometric outward normal against the incoming ray.

    Args:
        ray_direction: Direction of the incoming ray.
        outward_normal: The unit normal pointing out of the shape.

    Returns:
        A tuple ``(normal, front_face)``. If the ray travels along the
        outward normal it is leaving the shape: the normal is negated and
        front_face is 0. Otherwise the outward normal is kept and front_face
        is 1.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(ray_direction, outward_normal) > 0.0:
        front_face = 0
        normal = -outward_normal
    return normal, front_face


@ti.func
def hit_sphere(
    ray: Ray,
    sphere: Sphere,
    material_id: ti.i32,
    t_min: ti.f64,
    t_max: ti.f64,
) -> HitRecord:
    """Intersect a ray with a sphere.

    Args:
        ray: The ray to test.
        sphere: The sphere to test against.
        material_id: Material id stamped onto the record on a hit.
        t_min: Hits must satisfy t > t_min (avoids self-intersection).
        t_max: Hits must satisfy t < t_max (closest-hit narrowing).

    Returns:
        A HitRecord for the nearest root inside ``(t_min, t_max)``, or a miss
        record if the discriminant is negative or both roots fall outside.
    """
    oc = ray.origin - sphere.center
    a = tm.dot(ray.direction, ray.direction)
    half_b = tm.dot(ray.direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = half_b * half_b - a * c

    result = make_miss_record()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        # Nearest root first
        root = (-half_b - sqrt_d) / a
        valid = root > t_min and root < t_max

        if not valid:
            root = (-half_b + sqrt_d) / a
            valid = root > t_min and root < t_max

        if valid:
            point = ray_at(ray, root)
            outward_normal = (point - sphere.center) / sphere.radius
            normal, front_face = set_face_normal(ray.direction, outward_normal)
            result = HitRecord(
                hit=1,
                t=root,
                point=point,
                normal=normal,
                front_face=front_face,
                material_id=material_id,
            )

    return result
