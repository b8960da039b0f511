"""Unit tests for per-pixel random streams and sampling routines.

Tests cover:
- Range and reproducibility of uniform draws
- Stream independence
- Sphere, hemisphere and disk sampling
"""

import numpy as np
import pytest
import taichi as ti

NUM_STREAMS = 4096


def _draw_uniforms(values):
    """Fill `values` with the first draw of stream i."""
    from pathtracer.core.sampler import Sampler, uniform01

    @ti.kernel
    def draw():
        for i in range(NUM_STREAMS):
            values[i] = uniform01(Sampler(stream=i))

    draw()
    return values.to_numpy()


class TestUniform:
    """Tests for uniform01."""

    def test_range(self):
        """Test every draw lies in [0, 1)."""
        from pathtracer.core.sampler import Sampler, uniform01

        min_val = ti.field(dtype=ti.f32, shape=())
        max_val = ti.field(dtype=ti.f32, shape=())
        min_val[None] = 10.0
        max_val[None] = -10.0

        @ti.kernel
        def test_kernel():
            for i in range(NUM_STREAMS):
                sampler = Sampler(stream=i)
                for _ in range(64):
                    x = uniform01(sampler)
                    ti.atomic_min(min_val[None], x)
                    ti.atomic_max(max_val[None], x)

        test_kernel()
        assert min_val[None] >= 0.0
        assert max_val[None] < 1.0

    def test_mean_is_one_half(self):
        """Test the sample mean of many draws is close to 0.5."""
        values = ti.field(dtype=ti.f32, shape=NUM_STREAMS)
        samples = _draw_uniforms(values)
        assert abs(samples.mean() - 0.5) < 0.02

    def test_same_seed_reproduces(self):
        """Test reseeding with the same seed replays the same draws."""
        from pathtracer.core.sampler import seed_samplers

        values = ti.field(dtype=ti.f32, shape=NUM_STREAMS)

        seed_samplers(123)
        first = _draw_uniforms(values)
        seed_samplers(123)
        second = _draw_uniforms(values)

        np.testing.assert_array_equal(first, second)

    def test_different_seeds_differ(self):
        """Test different seeds give different draws."""
        from pathtracer.core.sampler import seed_samplers

        values = ti.field(dtype=ti.f32, shape=NUM_STREAMS)

        seed_samplers(1)
        first = _draw_uniforms(values)
        seed_samplers(2)
        second = _draw_uniforms(values)

        assert not np.array_equal(first, second)

    def test_get_seed(self):
        """Test the last seed is remembered."""
        from pathtracer.core.sampler import get_seed, seed_samplers

        seed_samplers(99)
        assert get_seed() == 99


class TestStreams:
    """Tests for stream ownership."""

    def test_streams_are_independent(self):
        """Test drawing from one stream leaves another untouched."""
        from pathtracer.core.sampler import Sampler, seed_samplers, uniform01

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def draw_stream_1() -> ti.f32:
            return uniform01(Sampler(stream=1))

        @ti.kernel
        def burn_stream_0_then_draw_1():
            sampler0 = Sampler(stream=0)
            burned = 0.0
            for _ in ti.static(range(10)):
                burned += uniform01(sampler0)
            result[0] = burned
            result[1] = uniform01(Sampler(stream=1))

        seed_samplers(7)
        expected = draw_stream_1()
        seed_samplers(7)
        burn_stream_0_then_draw_1()

        assert result[1] == pytest.approx(expected)

    def test_stream_index_is_per_pixel(self):
        """Test distinct pixels map to distinct streams."""
        from pathtracer.core.sampler import MAX_IMAGE_WIDTH, stream_index

        result = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel():
            result[0] = stream_index(0, 0)
            result[1] = stream_index(1, 0)
            result[2] = stream_index(0, 1)

        test_kernel()
        assert result[0] == 0
        assert result[1] == 1
        assert result[2] == MAX_IMAGE_WIDTH

    def test_stream_count_covers_max_image(self):
        """Test there is one stream per pixel of the largest image."""
        from pathtracer.core.sampler import (
            MAX_IMAGE_HEIGHT,
            MAX_IMAGE_WIDTH,
            get_stream_count,
        )

        assert get_stream_count() == MAX_IMAGE_WIDTH * MAX_IMAGE_HEIGHT


class TestDirectionSampling:
    """Tests for sphere, hemisphere and disk sampling."""

    def test_unit_sphere_point_has_unit_length(self):
        """Test sphere samples lie on the unit sphere."""
        from pathtracer.core.sampler import Sampler, unit_sphere_point

        max_err = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            for i in range(NUM_STREAMS):
                p = unit_sphere_point(Sampler(stream=i))
                ti.atomic_max(max_err[None], ti.abs(p.norm() - 1.0))

        test_kernel()
        assert max_err[None] < 1e-5

    def test_unit_sphere_point_is_centered(self):
        """Test sphere samples average out to the origin."""
        from pathtracer.core.sampler import Sampler, unit_sphere_point

        points = ti.Vector.field(3, dtype=ti.f32, shape=NUM_STREAMS)

        @ti.kernel
        def test_kernel():
            for i in range(NUM_STREAMS):
                points[i] = unit_sphere_point(Sampler(stream=i))

        test_kernel()
        mean = points.to_numpy().mean(axis=0)
        assert np.all(np.abs(mean) < 0.05)

    def test_hemisphere_point_contained(self):
        """Test hemisphere samples never point against the normal."""
        from pathtracer.core.sampler import Sampler, hemisphere_point

        min_dot = ti.field(dtype=ti.f32, shape=())
        min_dot[None] = 10.0

        @ti.kernel
        def test_kernel():
            normal = ti.math.normalize(ti.math.vec3(1.0, -2.0, 0.5))
            for i in range(NUM_STREAMS):
                d = hemisphere_point(Sampler(stream=i), normal)
                ti.atomic_min(min_dot[None], ti.math.dot(d, normal))

        test_kernel()
        assert min_dot[None] >= 0.0

    def test_unit_disk_point_inside_disk(self):
        """Test disk samples lie inside the unit disk in the z=0 plane."""
        from pathtracer.core.sampler import Sampler, unit_disk_point

        max_r = ti.field(dtype=ti.f32, shape=())
        max_z = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            for i in range(NUM_STREAMS):
                p = unit_disk_point(Sampler(stream=i))
                ti.atomic_max(max_r[None], p.x * p.x + p.y * p.y)
                ti.atomic_max(max_z[None], ti.abs(p.z))

        test_kernel()
        assert max_r[None] <= 1.0
        assert max_z[None] == 0.0
