"""Unit tests for the path integrator.

Tests cover:
- Sky gradient on escape
- Depth budget exhaustion
- Absorption
- Throughput accumulation over a mirror bounce
"""

import pytest
import taichi as ti


def _trace(origin, direction, depth):
    """Trace one ray and return its radiance as a tuple."""
    from pathtracer.core.integrator import ray_color
    from pathtracer.core.ray import Ray, vec3
    from pathtracer.core.sampler import Sampler

    result = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(o: ti.math.vec3, d: ti.math.vec3, max_depth: ti.i32):
        result[None] = ray_color(Ray(origin=o, direction=d), Sampler(stream=0), max_depth)

    test_kernel(vec3(*origin), vec3(*direction), depth)
    c = result[None]
    return (float(c[0]), float(c[1]), float(c[2]))


class TestBackground:
    """Tests for the sky gradient."""

    @pytest.mark.parametrize(
        "direction, expected",
        [
            ((0.0, 1.0, 0.0), (0.5, 0.7, 1.0)),
            ((0.0, -1.0, 0.0), (1.0, 1.0, 1.0)),
            ((0.0, 0.0, -1.0), (0.75, 0.85, 1.0)),
            ((0.0, 0.0, -7.0), (0.75, 0.85, 1.0)),
        ],
    )
    def test_escaping_ray_sees_sky(self, direction, expected):
        """Test a ray that misses everything returns the sky colour."""
        color = _trace((0.0, 0.0, 0.0), direction, 5)
        assert color == pytest.approx(expected, abs=1e-6)

    @pytest.mark.parametrize(
        "direction, expected",
        [
            ((0.0, 1.0, 0.0), (0.5, 0.7, 1.0)),
            ((1.0, 0.0, 0.0), (0.75, 0.85, 1.0)),
            ((0.0, 0.0, 1.0), (0.75, 0.85, 1.0)),
        ],
    )
    def test_ray_missing_sphere_sees_sky(self, direction, expected):
        """Test a ray that misses the only sphere gets the exact sky colour."""
        from pathtracer.materials.lambertian import add_lambertian_material
        from pathtracer.materials.material import MaterialType, register_material
        from pathtracer.scene.intersection import add_sphere

        diffuse = register_material(
            MaterialType.LAMBERTIAN, add_lambertian_material((0.5, 0.5, 0.5))
        )
        add_sphere((0.0, 0.0, -1.0), 0.5, diffuse)

        color = _trace((0.0, 0.0, 0.0), direction, 5)
        assert color == pytest.approx(expected, abs=1e-6)


class TestPathTermination:
    """Tests for depth and absorption."""

    def test_zero_depth_is_black(self):
        """Test no budget means no light, even for escaping rays."""
        assert _trace((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), 0) == (0.0, 0.0, 0.0)

    def test_budget_spent_on_surface_is_black(self):
        """Test a path still bouncing when depth runs out contributes black."""
        from pathtracer.materials.metal import add_metal_material
        from pathtracer.materials.material import MaterialType, register_material
        from pathtracer.scene.intersection import add_sphere

        mirror = register_material(MaterialType.METAL, add_metal_material((0.5, 0.5, 0.5)))
        add_sphere((0.0, -100.5, 0.0), 100.0, mirror)

        assert _trace((0.0, 0.0, 0.0), (0.0, -1.0, 0.0), 1) == (0.0, 0.0, 0.0)

    def test_invalid_material_absorbs(self):
        """Test a surface with an unregistered material is black."""
        from pathtracer.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, -1.0), 0.5, 42)

        assert _trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 10) == (0.0, 0.0, 0.0)


class TestThroughput:
    """Tests for attenuation along a path."""

    def test_mirror_bounce_scales_sky_by_albedo(self):
        """Test one mirror bounce returns the reflected sky times the albedo."""
        from pathtracer.materials.metal import add_metal_material
        from pathtracer.materials.material import MaterialType, register_material
        from pathtracer.scene.intersection import add_sphere

        mirror = register_material(MaterialType.METAL, add_metal_material((0.5, 0.5, 0.5)))
        add_sphere((0.0, -100.5, 0.0), 100.0, mirror)

        # Straight down onto the mirror, straight back up into the zenith
        color = _trace((0.0, 0.0, 0.0), (0.0, -1.0, 0.0), 2)
        assert color == pytest.approx((0.25, 0.35, 0.5), abs=1e-5)

    def test_two_mirrors_multiply(self):
        """Test attenuations multiply across bounces."""
        from pathtracer.materials.metal import add_metal_material
        from pathtracer.materials.material import MaterialType, register_material
        from pathtracer.scene.intersection import add_sphere

        red = register_material(MaterialType.METAL, add_metal_material((1.0, 0.5, 0.5)))
        green = register_material(MaterialType.METAL, add_metal_material((0.5, 1.0, 0.5)))
        # Floor below and a wall further along -z
        add_sphere((0.0, -1000.5, 0.0), 1000.0, red)
        add_sphere((0.0, 0.0, -1002.5), 1000.0, green)

        # Hits the floor, reflects toward the wall, reflects back toward +z
        color = _trace((0.0, 0.0, 0.0), (0.0, -1.0, -1.0), 3)
        # Second reflection leaves along (0, 1, 1)/sqrt(2); sky t = 0.5 * (1 + 0.7071)
        t = 0.5 * (1.0 + 2**-0.5)
        sky = tuple((1.0 - t) + t * z for z in (0.5, 0.7, 1.0))
        expected = (0.5 * sky[0], 0.5 * sky[1], 0.25 * sky[2])
        assert color == pytest.approx(expected, abs=2e-3)
