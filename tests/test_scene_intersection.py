"""Unit tests for scene storage and closest-hit queries.

Tests cover:
- Adding and clearing spheres
- Closest hit selection among overlapping spheres
- The EPSILON lower bound of scene_hit
- Capacity limits
"""

import pytest
import taichi as ti


def _query(origin, direction, bounded=None):
    """Run one scene query and return (hit, t, material_id, front_face)."""
    from pathtracer.core.ray import Ray, vec3
    from pathtracer.scene.intersection import scene_bounded_hit, scene_hit

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    material_id = ti.field(dtype=ti.i32, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())

    use_bounds = bounded is not None
    t_lo, t_hi = bounded if use_bounds else (0.0, 0.0)

    @ti.kernel
    def test_kernel(o: ti.math.vec3, d: ti.math.vec3, lo: ti.f32, hi: ti.f32):
        ray = Ray(origin=o, direction=d)
        if ti.static(use_bounds):
            rec = scene_bounded_hit(ray, lo, hi)
            hit[None] = rec.hit
            t_val[None] = rec.t
            material_id[None] = rec.material_id
            front_face[None] = rec.front_face
        else:
            rec = scene_hit(ray)
            hit[None] = rec.hit
            t_val[None] = rec.t
            material_id[None] = rec.material_id
            front_face[None] = rec.front_face

    test_kernel(vec3(*origin), vec3(*direction), t_lo, t_hi)
    return hit[None], t_val[None], material_id[None], front_face[None]


class TestSceneStorage:
    """Tests for adding and clearing spheres."""

    def test_add_sphere_returns_index(self):
        """Test sphere indices are assigned in order."""
        from pathtracer.scene.intersection import add_sphere, get_sphere_count

        assert add_sphere((0.0, 0.0, -1.0), 0.5, 0) == 0
        assert add_sphere((1.0, 0.0, -1.0), 0.5, 1) == 1
        assert get_sphere_count() == 2

    def test_clear_scene(self):
        """Test clearing removes every sphere."""
        from pathtracer.scene.intersection import add_sphere, clear_scene, get_sphere_count

        add_sphere((0.0, 0.0, -1.0), 0.5, 0)
        clear_scene()
        assert get_sphere_count() == 0

    def test_empty_scene_misses(self):
        """Test every ray misses an empty scene."""
        hit, _, material_id, _ = _query((0, 0, 0), (0, 0, -1))
        assert hit == 0
        assert material_id == -1

    def test_capacity_limit(self, monkeypatch):
        """Test exceeding MAX_SPHERES raises RuntimeError."""
        from pathtracer.scene import intersection

        monkeypatch.setattr(intersection, "MAX_SPHERES", 2)
        intersection.add_sphere((0.0, 0.0, 0.0), 1.0, 0)
        intersection.add_sphere((0.0, 0.0, 0.0), 1.0, 0)
        with pytest.raises(RuntimeError, match="Maximum number of spheres"):
            intersection.add_sphere((0.0, 0.0, 0.0), 1.0, 0)


class TestClosestHit:
    """Tests for closest-hit selection."""

    def test_nearest_sphere_wins_regardless_of_order(self):
        """Test the nearest sphere is reported even if it was added last."""
        from pathtracer.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -5.0), 1.0, 3)  # far
        add_sphere((0.0, 0.0, -2.0), 0.5, 8)  # near

        hit, t, material_id, _ = _query((0, 0, 0), (0, 0, -1))
        assert hit == 1
        assert t == pytest.approx(1.5, abs=1e-6)
        assert material_id == 8

    def test_hollow_shell_hits_outer_surface(self):
        """Test concentric spheres with opposite radii report the outer wall."""
        from pathtracer.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -1.0), 0.5, 2)
        add_sphere((0.0, 0.0, -1.0), -0.45, 2)

        hit, t, _, front_face = _query((0, 0, 0), (0, 0, -1))
        assert hit == 1
        assert t == pytest.approx(0.5, abs=1e-6)
        assert front_face == 1

    def test_bounded_query_respects_t_max(self):
        """Test scene_bounded_hit ignores hits beyond t_max."""
        from pathtracer.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -5.0), 1.0, 0)

        hit, _, _, _ = _query((0, 0, 0), (0, 0, -1), bounded=(0.0, 3.0))
        assert hit == 0

        hit, t, _, _ = _query((0, 0, 0), (0, 0, -1), bounded=(0.0, 10.0))
        assert hit == 1
        assert t == pytest.approx(4.0, abs=1e-6)


class TestSelfIntersection:
    """Tests for the EPSILON lower bound."""

    def test_origin_on_surface_skips_own_surface(self):
        """Test a ray leaving a surface does not re-hit it at t ~ 0."""
        from pathtracer.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, 0.0), 1.0, 0)

        # Start on the surface heading inward; the only valid hit is the far side
        hit, t, _, front_face = _query((0, 0, 1), (0, 0, -1))
        assert hit == 1
        assert t == pytest.approx(2.0, abs=1e-5)
        assert front_face == 0

    def test_epsilon_value(self):
        """Test the self-intersection bound."""
        from pathtracer.scene.intersection import EPSILON

        assert EPSILON == pytest.approx(0.001)
