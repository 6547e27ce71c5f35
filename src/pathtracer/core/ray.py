"""Ray data structure, vector helpers and random samplers.

This module provides the Ray dataclass together with the vector arithmetic
and Monte Carlo sampling helpers shared by the camera, the shapes, the
materials and the integrator. Everything callable from a kernel is a Taichi
function; the few host-side helpers (``clamp``, ``degrees_to_radians``) are
plain Python.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> origin = vec3(0.0, 0.0, 0.0)
    >>> direction = vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import math

import taichi as ti
import taichi.math as tm

# Every kernel computes in double precision; vectors and scalars are f64
vec3 = ti.types.vector(3, ti.f64)

# Components below this magnitude count as zero in near_zero()
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """A half-line with an origin point and a direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f64) -> vec3:
    """Compute the point ``origin + t * direction``."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f64:
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f64:
    """Squared Euclidean length, avoiding the square root."""
    return tm.dot(v, v)


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length (``v / |v|``).

    The vector must be non-zero; callers guard degenerate directions with
    near_zero() before normalizing.
    """
    return v / tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f64:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Mirror an incident direction about a unit normal.

    Computes ``r = d - 2 (d . n) n``. Applying it twice with the same normal
    returns the original direction.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (unit length).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(unit_incident: vec3, normal: vec3, eta_ratio: ti.f64) -> vec3:
    """Bend a unit incident direction through a surface using Snell's law.

    The direction is split into the components perpendicular and parallel to
    the normal:

        r_perp     = eta_ratio * (uv + cos_theta * n)
        r_parallel = -sqrt(|1 - |r_perp|^2|) * n

    Total internal reflection is not detected here. When
    ``eta_ratio * sin_theta > 1`` the result is meaningless, and callers must
    check that discriminant before refracting.

    Args:
        unit_incident: The incoming direction (unit length).
        normal: The surface normal facing against the incident ray (unit length).
        eta_ratio: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction. With ``eta_ratio == 1`` this is the incident
        direction unchanged.
    """
    cos_theta = tm.min(tm.dot(-unit_incident, normal), 1.0)
    r_out_perp = eta_ratio * (unit_incident + cos_theta * normal)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f64, eta_ratio: ti.f64) -> ti.f64:
    """Fraction of light reflected at a dielectric boundary (Schlick).

    Args:
        cosine: Cosine of the angle between the incident ray and the normal.
        eta_ratio: Ratio of refractive indices.

    Returns:
        ``r0 + (1 - r0) * (1 - cosine)^5`` with ``r0 = ((1 - eta)/(1 + eta))^2``.
    """
    r0 = (1.0 - eta_ratio) / (1.0 + eta_ratio)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Return 1 if every component is below NEAR_ZERO_EPSILON in magnitude."""
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_double(min_val: ti.f64, max_val: ti.f64) -> ti.f64:
    """Uniform random scalar in ``[min_val, max_val)``."""
    return min_val + (max_val - min_val) * ti.random(ti.f64)


@ti.func
def random_vec3(min_val: ti.f64, max_val: ti.f64) -> vec3:
    return vec3(
        random_double(min_val, max_val),
        random_double(min_val, max_val),
        random_double(min_val, max_val),
    )


@ti.func
def random_in_unit_sphere() -> vec3:
    """Random point strictly inside the unit sphere.

    Rejection sampling over the enclosing cube. Each draw is accepted with
    probability pi/6, so the expected number of iterations is below two; the
    loop has no hard cap.
    """
    p = random_vec3(-1.0, 1.0)
    while length_squared(p) >= 1.0:
        p = random_vec3(-1.0, 1.0)
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Random unit vector, the normalized unit-sphere sample."""
    return unit_vector(random_in_unit_sphere())


@ti.func
def random_in_hemisphere(normal: vec3) -> vec3:
    """Unit-sphere sample flipped into the hemisphere around ``normal``."""
    in_unit_sphere = random_in_unit_sphere()
    result = in_unit_sphere
    if tm.dot(in_unit_sphere, normal) < 0.0:
        result = -in_unit_sphere
    return result


@ti.func
def random_in_unit_disk() -> vec3:
    """Random point (x, y, 0) strictly inside the unit disk.

    Used for lens sampling in the thin-lens camera.
    """
    p = vec3(random_double(-1.0, 1.0), random_double(-1.0, 1.0), 0.0)
    while length_squared(p) >= 1.0:
        p = vec3(random_double(-1.0, 1.0), random_double(-1.0, 1.0), 0.0)
    return p


# =============================================================================
# Host-side Scalar Helpers
# =============================================================================


def clamp(x: float, lo: float, hi: float) -> float:
    """Clamp a scalar into ``[lo, hi]``."""
    if x < lo:
        return lo
    if x > hi:
        return hi
    return x


def degrees_to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0
