"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at
- Vector helpers (length, unit_vector, cross, reflect, refract, near_zero)
- Schlick reflectance
- Random samplers used by the materials and the camera
- Host-side scalar helpers
"""

import math

import pytest
import taichi as ti

N_SAMPLES = 2000


class TestRayBasics:
    """Tests for Ray dataclass and ray_at."""

    def test_ray_at_origin(self):
        """ray_at(ray, 0) is the origin."""
        from src.pathtracer.core.ray import Ray, ray_at, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_at_scales_unnormalized_direction(self):
        """The direction is used as given, without normalization."""
        from src.pathtracer.core.ray import make_ray, ray_at, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 0.0, 0.0), vec3(0.0, 2.0, 0.0))
            result[None] = ray_at(ray, 2.5)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 5.0) < 1e-6
        assert abs(r[2]) < 1e-6


class TestVectorHelpers:
    """Tests for vector arithmetic helpers."""

    def test_length_and_unit_vector(self):
        from src.pathtracer.core.ray import length, length_squared, unit_vector, vec3

        lengths = ti.field(dtype=ti.f64, shape=2)
        unit = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            v = vec3(3.0, 4.0, 0.0)
            lengths[0] = length(v)
            lengths[1] = length_squared(v)
            unit[None] = unit_vector(v)

        test_kernel()
        assert abs(lengths[0] - 5.0) < 1e-5
        assert abs(lengths[1] - 25.0) < 1e-4
        u = unit[None]
        assert abs(u[0] - 0.6) < 1e-6
        assert abs(u[1] - 0.8) < 1e-6
        assert abs(u[2]) < 1e-6

    def test_cross_is_right_handed(self):
        from src.pathtracer.core.ray import cross, dot, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())
        d = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = cross(vec3(1.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))
            d[None] = dot(vec3(1.0, 2.0, 3.0), vec3(4.0, 5.0, 6.0))

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1]) < 1e-6
        assert abs(r[2] - 1.0) < 1e-6
        assert abs(d[None] - 32.0) < 1e-5

    def test_reflect_at_45_degrees(self):
        """A ray going down-right off a floor goes up-right."""
        from src.pathtracer.core.ray import reflect, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_reflect_twice_is_identity(self):
        """Reflecting about the same unit normal twice restores the vector."""
        from src.pathtracer.core.ray import reflect, unit_vector, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            n = unit_vector(vec3(0.3, 0.9, -0.2))
            d = vec3(0.7, -0.4, 1.3)
            result[None] = reflect(reflect(d, n), n)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 0.7) < 1e-5
        assert abs(r[1] + 0.4) < 1e-5
        assert abs(r[2] - 1.3) < 1e-5

    def test_refract_with_unit_ratio_is_identity(self):
        """With eta_ratio = 1 the direction passes straight through."""
        from src.pathtracer.core.ray import refract, unit_vector, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())
        expected = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            d = unit_vector(vec3(0.5, -1.0, 0.2))
            expected[None] = d
            result[None] = refract(d, vec3(0.0, 1.0, 0.0), 1.0)

        test_kernel()
        r = result[None]
        e = expected[None]
        for i in range(3):
            assert abs(r[i] - e[i]) < 1e-5

    def test_refract_normal_incidence(self):
        """Head-on rays are not bent regardless of the ratio."""
        from src.pathtracer.core.ray import refract, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = refract(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1.0 / 1.5)

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1] + 1.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_refract_obeys_snell(self):
        """sin(theta_t) = eta_ratio * sin(theta_i)."""
        from src.pathtracer.core.ray import refract, unit_vector, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())
        eta = 1.0 / 1.5
        angle = math.radians(30.0)

        @ti.kernel
        def test_kernel():
            d = vec3(ti.sin(angle), -ti.cos(angle), 0.0)
            result[None] = unit_vector(refract(d, vec3(0.0, 1.0, 0.0), eta))

        test_kernel()
        r = result[None]
        assert abs(r[0] - eta * math.sin(angle)) < 1e-5
        assert r[1] < 0.0

    def test_near_zero(self):
        from src.pathtracer.core.ray import near_zero, vec3

        result = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel():
            result[0] = near_zero(vec3(0.0, 0.0, 0.0))
            result[1] = near_zero(vec3(1e-9, -1e-9, 5e-9))
            result[2] = near_zero(vec3(0.0, 1e-3, 0.0))

        test_kernel()
        assert result[0] == 1
        assert result[1] == 1
        assert result[2] == 0


class TestSchlick:
    """Tests for Schlick's reflectance approximation."""

    def test_normal_incidence_is_r0(self):
        from src.pathtracer.core.ray import schlick_reflectance

        result = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = schlick_reflectance(1.0, 1.0 / 1.5)

        test_kernel()
        r0 = ((1.0 - 1.0 / 1.5) / (1.0 + 1.0 / 1.5)) ** 2
        assert abs(result[None] - r0) < 1e-6

    def test_grazing_incidence_reflects_everything(self):
        from src.pathtracer.core.ray import schlick_reflectance

        result = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = schlick_reflectance(0.0, 1.5)

        test_kernel()
        assert abs(result[None] - 1.0) < 1e-6


class TestRandomSampling:
    """Tests for the Monte Carlo samplers."""

    def test_random_double_range(self):
        from src.pathtracer.core.ray import random_double

        results = ti.field(dtype=ti.f64, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            for i in range(N_SAMPLES):
                results[i] = random_double(-2.0, 3.0)

        test_kernel()
        values = results.to_numpy()
        assert values.min() >= -2.0
        assert values.max() <= 3.0

    def test_random_in_unit_sphere(self):
        """Samples lie strictly inside the unit ball."""
        from src.pathtracer.core.ray import random_in_unit_sphere

        results = ti.Vector.field(3, dtype=ti.f64, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            for i in range(N_SAMPLES):
                results[i] = random_in_unit_sphere()

        test_kernel()
        lengths_sq = (results.to_numpy() ** 2).sum(axis=1)
        assert lengths_sq.max() < 1.0

    def test_random_unit_vector(self):
        """Samples have unit length and are centered on the origin."""
        from src.pathtracer.core.ray import random_unit_vector

        results = ti.Vector.field(3, dtype=ti.f64, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            for i in range(N_SAMPLES):
                results[i] = random_unit_vector()

        test_kernel()
        samples = results.to_numpy()
        lengths = (samples**2).sum(axis=1) ** 0.5
        assert abs(lengths - 1.0).max() < 1e-4
        assert abs(samples.mean(axis=0)).max() < 0.1

    def test_random_in_hemisphere(self):
        """Samples never point against the normal."""
        from src.pathtracer.core.ray import random_in_hemisphere, vec3

        results = ti.field(dtype=ti.f64, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            n = vec3(0.0, 0.0, 1.0)
            for i in range(N_SAMPLES):
                results[i] = random_in_hemisphere(n).dot(n)

        test_kernel()
        assert results.to_numpy().min() >= 0.0

    def test_random_in_unit_disk(self):
        """Samples lie inside the unit disk with z = 0."""
        from src.pathtracer.core.ray import random_in_unit_disk

        results = ti.Vector.field(3, dtype=ti.f64, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            for i in range(N_SAMPLES):
                results[i] = random_in_unit_disk()

        test_kernel()
        samples = results.to_numpy()
        assert (samples[:, 0] ** 2 + samples[:, 1] ** 2).max() < 1.0
        assert abs(samples[:, 2]).max() == 0.0


class TestHostHelpers:
    """Tests for the plain-Python helpers."""

    @pytest.mark.parametrize(
        "x, expected",
        [(-1.0, 0.0), (0.25, 0.25), (2.0, 0.999)],
    )
    def test_clamp(self, x, expected):
        from src.pathtracer.core.ray import clamp

        assert clamp(x, 0.0, 0.999) == expected

    def test_degrees_to_radians(self):
        from src.pathtracer.core.ray import degrees_to_radians

        assert degrees_to_radians(180.0) == pytest.approx(math.pi)
        assert degrees_to_radians(90.0) == pytest.approx(math.pi / 2)
