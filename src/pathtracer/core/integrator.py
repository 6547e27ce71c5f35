"""Path integrator: the color carried back along one camera ray.

The light transport is the classic recursive definition

    ray_color(ray, depth) =
        black                                  if depth <= 0
        attenuation * ray_color(scattered, depth - 1)
                                               if the ray hits and scatters
        black                                  if the ray hits and is absorbed
        sky_color(ray.direction)               if the ray escapes

Taichi functions cannot recurse, so ``ray_color`` unrolls this into a loop
that carries the product of attenuations and decrements the depth budget on
every bounce. The budget strictly decreases, which bounds the work per
sample at ``max_depth`` intersections regardless of scene geometry.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.core.integrator import trace_ray
    >>> # Empty scene, straight up: the zenith color (0.5, 0.7, 1.0)
    >>> color = trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), max_depth=10)
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import Ray, make_ray, unit_vector, vec3
from src.pathtracer.materials.material import scatter_material
from src.pathtracer.scene.world import hit_world

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum number of bounces per camera ray
MAX_DEPTH = 50

# Intersection interval; T_MIN keeps scattered rays off their own surface
T_MIN = 0.001
T_MAX = tm.inf

# Sky gradient endpoints (horizon and zenith)
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Background radiance for a ray that escapes the scene.

    Blends white and sky blue by the vertical component of the unit
    direction, remapped from [-1, 1] to [0, 1].
    """
    unit_direction = unit_vector(direction)
    a = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - a) * SKY_HORIZON_COLOR + a * SKY_ZENITH_COLOR


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32) -> vec3:
    """Resolve the color carried by ``ray`` with a bounce budget.

    Args:
        ray: The ray to trace.
        max_depth: Remaining bounce budget. At or below zero the ray
            contributes black without touching the scene.

    Returns:
        The linear RGB radiance estimate for this ray.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    depth = max_depth
    current = ray

    # Taichi has no recursion; each iteration is one level of the recursive form
    active = 1
    while active == 1:
        if depth <= 0:
            # Bounce limit reached, no more light is gathered
            color = vec3(0.0, 0.0, 0.0)
            active = 0
        else:
            rec = hit_world(current, T_MIN, T_MAX)
            if rec.hit == 1:
                scattered_direction, attenuation, did_scatter = scatter_material(current, rec)
                if did_scatter == 1:
                    throughput *= attenuation
                    current = make_ray(rec.point, scattered_direction)
                    depth -= 1
                else:
                    color = vec3(0.0, 0.0, 0.0)
                    active = 0
            else:
                color = throughput * sky_color(current.direction)
                active = 0

    return color


# =============================================================================
# Single-ray Kernels
# =============================================================================


@ti.kernel
def _trace_single_ray(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    return ray_color(make_ray(origin, direction), max_depth)


@ti.kernel
def _sky_color_kernel(direction: vec3) -> vec3:
    return sky_color(direction)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_DEPTH,
) -> tuple[float, float, float]:
    """Trace one ray through the current scene from Python.

    Intended for testing and debugging. Full images go through
    ``src.pathtracer.core.scheduler.render``.

    Args:
        origin: Ray origin.
        direction: Ray direction (any non-zero length).
        max_depth: Bounce budget.

    Returns:
        Tuple of (R, G, B) linear color values.
    """
    color = _trace_single_ray(vec3(*origin), vec3(*direction), max_depth)
    return (float(color[0]), float(color[1]), float(color[2]))


def background_color(direction: tuple[float, float, float]) -> tuple[float, float, float]:
    """Sky gradient for a direction, evaluated from Python."""
    color = _sky_color_kernel(vec3(*direction))
    return (float(color[0]), float(color[1]), float(color[2]))
