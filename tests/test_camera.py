"""Unit tests for the thin-lens camera.

Tests cover:
- Orthonormal basis and viewport derivation
- Pinhole ray generation (aperture 0)
- Depth of field: lens-sampled rays converge on the focus plane
- Parameter validation
"""

import math

import pytest
import taichi as ti

N_SAMPLES = 256


def _dot(a, b):
    return sum(x * y for x, y in zip(a, b))


def _generate_rays(s, t, n=N_SAMPLES):
    """Generate n camera rays through (s, t); returns (origins, directions) arrays."""
    from src.pathtracer.camera.thin_lens import get_ray

    origins = ti.Vector.field(3, dtype=ti.f64, shape=n)
    directions = ti.Vector.field(3, dtype=ti.f64, shape=n)

    @ti.kernel
    def test_kernel(s_: ti.f64, t_: ti.f64):
        for i in range(n):
            ray = get_ray(s_, t_)
            origins[i] = ray.origin
            directions[i] = ray.direction

    test_kernel(s, t)
    return origins.to_numpy(), directions.to_numpy()


class TestCameraSetup:
    """Tests for setup_camera and get_camera_info."""

    def test_default_basis(self):
        from src.pathtracer.camera.thin_lens import Camera, get_camera_info, setup_camera

        setup_camera(Camera())
        info = get_camera_info()

        assert info["u"] == pytest.approx((1.0, 0.0, 0.0), abs=1e-6)
        assert info["v"] == pytest.approx((0.0, 1.0, 0.0), abs=1e-6)
        assert info["w"] == pytest.approx((0.0, 0.0, 1.0), abs=1e-6)
        assert info["lens_radius"] == 0.0

    def test_viewport_from_vfov_and_aspect(self):
        """vfov 90 at focus distance 1 gives a viewport 2 units tall."""
        from src.pathtracer.camera.thin_lens import Camera, get_camera_info, setup_camera

        setup_camera(Camera(vfov=90.0, aspect_ratio=2.0, focus_dist=1.0))
        info = get_camera_info()

        assert info["vertical"] == pytest.approx((0.0, 2.0, 0.0), abs=1e-5)
        assert info["horizontal"] == pytest.approx((4.0, 0.0, 0.0), abs=1e-5)
        assert info["lower_left"] == pytest.approx((-2.0, -1.0, -1.0), abs=1e-5)

    def test_viewport_scales_with_focus_distance(self):
        from src.pathtracer.camera.thin_lens import Camera, get_camera_info, setup_camera

        setup_camera(Camera(vfov=90.0, aspect_ratio=1.0, focus_dist=3.0))
        info = get_camera_info()

        assert info["vertical"] == pytest.approx((0.0, 6.0, 0.0), abs=1e-5)
        assert info["lower_left"][2] == pytest.approx(-3.0, abs=1e-5)

    def test_basis_is_orthonormal_for_oblique_view(self):
        from src.pathtracer.camera.thin_lens import Camera, get_camera_info, setup_camera

        setup_camera(Camera(look_from=(13.0, 2.0, 3.0), look_at=(0.0, 0.0, 0.0), vfov=20.0))
        info = get_camera_info()

        u, v, w = (info[k] for k in ("u", "v", "w"))
        for vec in (u, v, w):
            assert _dot(vec, vec) == pytest.approx(1.0, abs=1e-5)
        assert _dot(u, v) == pytest.approx(0.0, abs=1e-5)
        assert _dot(u, w) == pytest.approx(0.0, abs=1e-5)
        assert _dot(v, w) == pytest.approx(0.0, abs=1e-5)
        # w points from look_at back toward the eye
        norm = math.sqrt(13.0**2 + 2.0**2 + 3.0**2)
        assert w == pytest.approx((13.0 / norm, 2.0 / norm, 3.0 / norm), abs=1e-5)

    def test_ready_flag(self):
        from src.pathtracer.camera.thin_lens import (
            Camera,
            is_camera_ready,
            reset_camera,
            setup_camera,
        )

        assert not is_camera_ready()
        setup_camera(Camera())
        assert is_camera_ready()
        reset_camera()
        assert not is_camera_ready()

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"look_at": (0.0, 0.0, 0.0)},
            {"vup": (0.0, 0.0, 1.0)},
            {"vfov": 0.0},
            {"vfov": 180.0},
            {"aspect_ratio": 0.0},
            {"focus_dist": 0.0},
            {"aperture": -1.0},
        ],
    )
    def test_invalid_parameters(self, kwargs):
        from src.pathtracer.camera.thin_lens import Camera, setup_camera

        with pytest.raises(ValueError):
            setup_camera(Camera(**kwargs))


class TestRayGeneration:
    """Tests for get_ray."""

    def test_pinhole_center_ray(self):
        """Without aperture every ray starts at the eye; (0.5, 0.5) looks straight ahead."""
        from src.pathtracer.camera.thin_lens import Camera, setup_camera

        setup_camera(Camera(look_from=(1.0, 2.0, 3.0), look_at=(1.0, 2.0, 0.0), focus_dist=3.0))
        origins, directions = _generate_rays(0.5, 0.5, n=4)

        assert abs(origins - [1.0, 2.0, 3.0]).max() < 1e-5
        assert abs(directions - [0.0, 0.0, -3.0]).max() < 1e-5

    def test_pinhole_corners(self):
        """(0, 0) aims at the lower-left corner, (1, 1) at the upper-right."""
        from src.pathtracer.camera.thin_lens import Camera, setup_camera

        setup_camera(Camera(vfov=90.0, aspect_ratio=1.0))
        _, lower_left = _generate_rays(0.0, 0.0, n=1)
        _, upper_right = _generate_rays(1.0, 1.0, n=1)

        assert lower_left[0] == pytest.approx([-1.0, -1.0, -1.0], abs=1e-5)
        assert upper_right[0] == pytest.approx([1.0, 1.0, -1.0], abs=1e-5)

    def test_lens_origins_within_aperture(self):
        """Ray origins lie on the lens disk of radius aperture / 2."""
        from src.pathtracer.camera.thin_lens import Camera, setup_camera

        setup_camera(Camera(aperture=2.0, focus_dist=5.0))
        origins, _ = _generate_rays(0.3, 0.7)

        radii = (origins[:, 0] ** 2 + origins[:, 1] ** 2) ** 0.5
        assert radii.max() < 1.0 + 1e-5
        assert radii.max() > 0.0
        assert abs(origins[:, 2]).max() < 1e-6

    def test_depth_of_field_rays_converge_on_focus_plane(self):
        """All rays for one (s, t) pass through the same point at t = 1."""
        from src.pathtracer.camera.thin_lens import Camera, get_camera_info, setup_camera

        setup_camera(Camera(aperture=2.0, focus_dist=5.0, aspect_ratio=1.0))
        origins, directions = _generate_rays(0.25, 0.75)
        focus_points = origins + directions

        info = get_camera_info()
        expected = [
            info["lower_left"][i] + 0.25 * info["horizontal"][i] + 0.75 * info["vertical"][i]
            for i in range(3)
        ]
        assert abs(focus_points - expected).max() < 1e-4
        assert abs(focus_points[:, 2] + 5.0).max() < 1e-4
