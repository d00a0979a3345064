"""Unit tests for the pinhole camera module.

Tests cover:
- Camera validation and orthonormal basis computation
- Ray directions for center and corner pixels
- Degenerate camera configurations
- Jittered ray origins within the aperture
"""

import math

import numpy as np
import pytest
import taichi as ti


def _directions(screens):
    """Evaluate pixel_direction for a list of screen coordinates."""
    from spheretrace.camera.pinhole import pixel_direction

    n = len(screens)
    inputs = ti.Vector.field(2, dtype=ti.f32, shape=n)
    out = ti.Vector.field(3, dtype=ti.f32, shape=n)
    for i, s in enumerate(screens):
        inputs[i] = s

    @ti.kernel
    def test_kernel():
        for i in range(n):
            out[i] = pixel_direction(inputs[i])

    test_kernel()
    return out.to_numpy()


class TestCameraValidation:
    """Tests for Camera dataclass validation."""

    @pytest.mark.parametrize(
        "kwargs",
        [{"vfov": 0.0}, {"vfov": 180.0}, {"aspect_ratio": 0.0}, {"aperture": -0.1}],
    )
    def test_invalid_parameters(self, kwargs):
        """Test out-of-range parameters raise ValueError."""
        from spheretrace.camera.pinhole import Camera

        with pytest.raises(ValueError):
            Camera(lookfrom=(0.0, 0.0, 0.0), lookat=(0.0, 0.0, -1.0), **kwargs)

    def test_lookfrom_equals_lookat(self):
        """Test a zero-length view direction is rejected at setup."""
        from spheretrace.camera.pinhole import Camera, setup_camera

        with pytest.raises(ValueError):
            setup_camera(Camera(lookfrom=(1.0, 1.0, 1.0), lookat=(1.0, 1.0, 1.0)))

    def test_vup_parallel_to_view(self):
        """Test an up vector parallel to the view direction is rejected."""
        from spheretrace.camera.pinhole import Camera, setup_camera

        with pytest.raises(ValueError):
            setup_camera(Camera(lookfrom=(0.0, 5.0, 0.0), lookat=(0.0, 0.0, 0.0), vup=(0.0, 1.0, 0.0)))


class TestCameraSetup:
    """Tests for camera setup and basis computation."""

    def test_orthonormal_basis(self):
        """Test that u, v, w form an orthonormal basis."""
        from spheretrace.camera.pinhole import Camera, get_camera_info, setup_camera

        setup_camera(Camera(lookfrom=(1.0, 2.0, 3.0), lookat=(-1.0, 0.5, -2.0), vfov=45.0))
        info = get_camera_info()
        u, v, w = (np.array(info[k]) for k in ("u", "v", "w"))
        for a, b in ((u, v), (u, w), (v, w)):
            assert abs(np.dot(a, b)) < 1e-6
        for vec in (u, v, w):
            assert abs(np.linalg.norm(vec) - 1.0) < 1e-6

    def test_default_orientation(self):
        """Test the basis for a camera looking down -z with +y up."""
        from spheretrace.camera.pinhole import Camera, get_camera_info, setup_camera

        setup_camera(Camera(lookfrom=(0.0, 0.0, 0.0), lookat=(0.0, 0.0, -1.0)))
        info = get_camera_info()
        assert np.allclose(info["u"], (1.0, 0.0, 0.0))
        assert np.allclose(info["v"], (0.0, 1.0, 0.0))
        assert np.allclose(info["w"], (0.0, 0.0, 1.0))

    def test_viewport_size(self):
        """Test viewport spans follow vfov and aspect ratio."""
        from spheretrace.camera.pinhole import Camera, get_camera_info, setup_camera

        setup_camera(Camera(lookfrom=(0.0, 0.0, 0.0), lookat=(0.0, 0.0, -1.0), vfov=90.0, aspect_ratio=2.0))
        info = get_camera_info()
        assert abs(np.linalg.norm(info["vertical"]) - 2.0) < 1e-5
        assert abs(np.linalg.norm(info["horizontal"]) - 4.0) < 1e-5


class TestRayDirections:
    """Tests for pixel_direction."""

    def test_center_ray_points_at_lookat(self):
        """Test the center of the screen looks straight at lookat."""
        from spheretrace.camera.pinhole import Camera, setup_camera

        setup_camera(Camera(lookfrom=(0.0, 0.0, 3.0), lookat=(0.0, 0.0, 0.0)))
        d = _directions([(0.0, 0.0)])[0]
        assert np.allclose(d, (0.0, 0.0, -1.0), atol=1e-6)

    def test_directions_are_unit(self):
        """Test generated directions have unit length."""
        from spheretrace.camera.pinhole import Camera, setup_camera

        setup_camera(Camera(lookfrom=(0.0, 0.0, 0.0), lookat=(0.0, 0.0, -1.0), vfov=70.0))
        dirs = _directions([(-0.5, -0.5), (0.25, 0.1), (0.49, 0.49)])
        assert np.allclose(np.linalg.norm(dirs, axis=1), 1.0, atol=1e-5)

    def test_top_row_points_up(self):
        """Test negative screen y (row 0) maps to the top of the image."""
        from spheretrace.camera.pinhole import Camera, setup_camera

        setup_camera(Camera(lookfrom=(0.0, 0.0, 0.0), lookat=(0.0, 0.0, -1.0), vfov=90.0))
        top, bottom, left, right = _directions([(0.0, -0.5), (0.0, 0.5), (-0.5, 0.0), (0.5, 0.0)])
        assert top[1] > 0.0
        assert bottom[1] < 0.0
        assert left[0] < 0.0
        assert right[0] > 0.0
        # Edge of a 90 degree field of view is 45 degrees off axis
        assert abs(math.degrees(math.atan2(top[1], -top[2])) - 45.0) < 1e-3


class TestJitteredOrigin:
    """Tests for sample_origin."""

    def _origins(self, n):
        from spheretrace.camera.pinhole import sample_origin
        from spheretrace.core.sampler import seed_state

        out = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            state = seed_state(5, 0)
            ti.loop_config(serialize=True)
            for i in range(n):
                origin, state = sample_origin(state)
                out[i] = origin

        test_kernel()
        return out.to_numpy()

    def test_zero_aperture_fixed_origin(self):
        """Test a zero aperture always returns the camera position."""
        from spheretrace.camera.pinhole import Camera, setup_camera

        setup_camera(Camera(lookfrom=(1.0, 2.0, 3.0), lookat=(0.0, 0.0, 0.0)))
        origins = self._origins(64)
        assert np.allclose(origins, (1.0, 2.0, 3.0))

    def test_aperture_jitter_in_image_plane(self):
        """Test jittered origins stay in the image-plane disk."""
        from spheretrace.camera.pinhole import Camera, setup_camera

        setup_camera(Camera(lookfrom=(0.0, 0.0, 0.0), lookat=(0.0, 0.0, -1.0), aperture=0.1))
        origins = self._origins(256)
        assert np.allclose(origins[:, 2], 0.0)
        assert np.all(np.linalg.norm(origins[:, :2], axis=1) < 0.1 + 1e-6)
        assert np.ptp(origins[:, 0]) > 0.0
