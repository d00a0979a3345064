"""Unit tests for scene-level intersection.

Tests cover:
- SceneHitRecord with material_id
- Sphere storage, validation and counts
- Nearest-hit selection across several spheres
- Tie-breaking between coincident spheres
- Empty scenes
"""

import pytest
import taichi as ti

T_PRECISION = 1e-5


def _intersect(origin, direction):
    """Run intersect_scene in a kernel and return (hit, t, material_id)."""
    from spheretrace.scene.intersection import intersect_scene, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    material_id = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(ox: ti.f32, oy: ti.f32, oz: ti.f32, dx: ti.f32, dy: ti.f32, dz: ti.f32):
        rec = intersect_scene(vec3(ox, oy, oz), vec3(dx, dy, dz), T_PRECISION)
        hit[None] = rec.hit
        t_val[None] = rec.t
        material_id[None] = rec.material_id

    test_kernel(*origin, *direction)
    return hit[None], t_val[None], material_id[None]


class TestSceneHitRecordBasics:
    """Tests for SceneHitRecord dataclass."""

    def test_scene_hit_record_has_material_id(self):
        """Test that SceneHitRecord includes material_id field."""
        from spheretrace.scene.intersection import SceneHitRecord, vec3

        result_material_id = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            rec = SceneHitRecord(
                hit=1,
                t=5.0,
                point=vec3(0.0, 0.0, 0.0),
                normal=vec3(0.0, 0.0, 1.0),
                material_id=42,
            )
            result_material_id[None] = rec.material_id

        test_kernel()
        assert result_material_id[None] == 42

    def test_scene_miss_has_negative_material_id(self):
        """Test that miss records have material_id = -1."""
        from spheretrace.scene.intersection import make_scene_miss

        result_hit = ti.field(dtype=ti.i32, shape=())
        result_material_id = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            rec = make_scene_miss()
            result_hit[None] = rec.hit
            result_material_id[None] = rec.material_id

        test_kernel()
        assert result_hit[None] == 0
        assert result_material_id[None] == -1


class TestSceneSphereStorage:
    """Tests for sphere storage and management."""

    def test_add_sphere_returns_index(self):
        """Test that add_sphere returns sequential indices."""
        from spheretrace.scene.intersection import add_sphere, get_sphere_count

        assert add_sphere((0.0, 0.0, -1.0), 0.5, 0) == 0
        assert add_sphere((1.0, 0.0, -1.0), 0.5, 1) == 1
        assert get_sphere_count() == 2

    def test_clear_scene(self):
        """Test that clear_scene resets the count."""
        from spheretrace.scene.intersection import add_sphere, clear_scene, get_sphere_count

        add_sphere((0.0, 0.0, -1.0), 0.5)
        clear_scene()
        assert get_sphere_count() == 0

    @pytest.mark.parametrize("radius", [0.0, -1.0, float("inf"), float("nan")])
    def test_add_sphere_rejects_bad_radius(self, radius):
        """Test that degenerate radii are rejected."""
        from spheretrace.scene.intersection import add_sphere, get_sphere_count

        with pytest.raises(ValueError):
            add_sphere((0.0, 0.0, 0.0), radius)
        assert get_sphere_count() == 0

    def test_add_sphere_rejects_bad_center(self):
        """Test that non-finite centers are rejected."""
        from spheretrace.scene.intersection import add_sphere

        with pytest.raises(ValueError):
            add_sphere((0.0, float("nan"), 0.0), 1.0)
        with pytest.raises(ValueError):
            add_sphere((0.0, 0.0), 1.0)

    def test_add_sphere_capacity(self):
        """Test that exceeding capacity raises RuntimeError."""
        from spheretrace.scene import intersection

        intersection.num_spheres[None] = intersection.MAX_SPHERES
        with pytest.raises(RuntimeError):
            intersection.add_sphere((0.0, 0.0, 0.0), 1.0)


class TestSceneIntersection:
    """Tests for nearest-hit queries."""

    def test_empty_scene_misses(self):
        """Test that a scene without spheres never reports a hit."""
        hit, _, material_id = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 0
        assert material_id == -1

    def test_single_sphere(self):
        """Test intersection with one sphere."""
        from spheretrace.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -5.0), 1.0, 3)
        hit, t, material_id = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert abs(t - 4.0) < 1e-5
        assert material_id == 3

    def test_nearest_sphere_wins(self):
        """Test the closest sphere is reported regardless of insertion order."""
        from spheretrace.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -10.0), 1.0, 0)
        add_sphere((0.0, 0.0, -4.0), 1.0, 1)
        add_sphere((0.0, 0.0, -7.0), 1.0, 2)
        hit, t, material_id = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert abs(t - 3.0) < 1e-5
        assert material_id == 1

    def test_tie_keeps_first_sphere(self):
        """Test two spheres at the same distance resolve to the first added."""
        from spheretrace.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -5.0), 1.0, 7)
        add_sphere((0.0, 0.0, -5.0), 1.0, 8)
        hit, _, material_id = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert material_id == 7

    def test_ray_passing_between_spheres(self):
        """Test a ray that threads between spheres misses."""
        from spheretrace.scene.intersection import add_sphere

        add_sphere((-2.0, 0.0, -5.0), 1.0, 0)
        add_sphere((2.0, 0.0, -5.0), 1.0, 1)
        hit, _, _ = _intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 0
