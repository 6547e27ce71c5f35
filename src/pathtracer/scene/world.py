"""Scene aggregate: the collection of spheres queried as one shape.

Spheres are stored in Taichi fields (structure-of-arrays). ``hit_world``
answers the same intersection query as a single sphere. It walks every
member, narrowing the upper bound to the closest hit found so far, so later
members can never report a farther hit. Member order does not affect the
result.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.scene.world import add_sphere, clear_world, hit_world
    >>> clear_world()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
    >>> # Use hit_world within a Taichi kernel
"""

import taichi as ti

from src.pathtracer.core.ray import Ray, vec3
from src.pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere, make_miss_record

# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

sphere_centers = ti.Vector.field(3, dtype=ti.f64, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f64, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Bumped on every clear; identifies which builder owns the current contents
_generation = 0


def clear_world() -> None:
    """Remove every sphere from the scene.

    Field data is left in place and overwritten by later additions.
    """
    global _generation
    num_spheres[None] = 0
    _generation += 1


def add_sphere(
    center: tuple[float, float, float],
    radius: float,
    material_id: int = 0,
) -> int:
    """Append a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere (should be positive).
        material_id: Unified material id shared with other spheres as needed.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = vec3(center[0], center[1], center[2])
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    return int(num_spheres[None])


def get_world_generation() -> int:
    """Number of times the scene has been cleared."""
    return _generation


@ti.func
def hit_world(ray: Ray, t_min: ti.f64, t_max: ti.f64) -> HitRecord:
    """Closest intersection of a ray with every sphere in the scene.

    Args:
        ray: The ray to test.
        t_min: Hits must satisfy t > t_min.
        t_max: Hits must satisfy t < t_max.

    Returns:
        The HitRecord of the nearest qualifying sphere, or a miss record.
    """
    closest_so_far = t_max
    result = make_miss_record()

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray, sphere, sphere_material_ids[i], t_min, closest_so_far)
        if rec.hit == 1:
            closest_so_far = rec.t
            result = rec

    return result
