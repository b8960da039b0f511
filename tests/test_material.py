"""Unit tests for the material arena and scatter dispatch."""

import pytest
import taichi as ti


def _scatter_once(material_id, incident_dir, normal, front_face=1):
    """Scatter one ray off a synthetic hit and return (attenuation, direction, did_scatter)."""
    from pathtracer.core.ray import Ray, vec3
    from pathtracer.core.sampler import Sampler
    from pathtracer.geometry.sphere import HitRecord
    from pathtracer.materials.material import scatter

    attenuation_out = ti.Vector.field(3, dtype=ti.f32, shape=())
    direction_out = ti.Vector.field(3, dtype=ti.f32, shape=())
    scattered = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(mat_id: ti.i32, d: ti.math.vec3, n: ti.math.vec3, ff: ti.i32):
        ray = Ray(origin=vec3(0.0, 1.0, 0.0), direction=d)
        rec = HitRecord(
            hit=1,
            t=1.0,
            point=vec3(0.0, 0.0, 0.0),
            normal=n,
            front_face=ff,
            material_id=mat_id,
        )
        attenuation, direction, did_scatter = scatter(ray, rec, Sampler(stream=0))
        attenuation_out[None] = attenuation
        direction_out[None] = direction
        scattered[None] = did_scatter

    test_kernel(material_id, vec3(*incident_dir), vec3(*normal), front_face)
    a = attenuation_out[None]
    d = direction_out[None]
    return (
        (float(a[0]), float(a[1]), float(a[2])),
        (float(d[0]), float(d[1]), float(d[2])),
        scattered[None],
    )


class TestMaterialArena:
    """Tests for handle allocation."""

    def test_register_assigns_sequential_handles(self):
        """Test handles are dense and shared across variants."""
        from pathtracer.materials.dielectric import add_dielectric_material
        from pathtracer.materials.lambertian import add_lambertian_material
        from pathtracer.materials.material import (
            MaterialType,
            get_material_count,
            register_material,
        )

        lam = register_material(MaterialType.LAMBERTIAN, add_lambertian_material((0.5, 0.5, 0.5)))
        glass = register_material(MaterialType.DIELECTRIC, add_dielectric_material(1.5))
        assert (lam, glass) == (0, 1)
        assert get_material_count() == 2

    def test_type_lookup(self):
        """Test the tag and variant index are stored per handle."""
        from pathtracer.materials.metal import add_metal_material
        from pathtracer.materials.material import (
            MaterialType,
            get_material_type,
            get_material_type_index,
            register_material,
        )

        add_metal_material((0.1, 0.1, 0.1))
        second = add_metal_material((0.9, 0.9, 0.9))
        handle = register_material(MaterialType.METAL, second)

        result = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel(h: ti.i32):
            result[0] = get_material_type(h)
            result[1] = get_material_type_index(h)
            result[2] = get_material_type(h + 1)
            result[3] = get_material_type(-1)

        test_kernel(handle)
        assert result[0] == int(MaterialType.METAL)
        assert result[1] == 1
        assert result[2] == -1
        assert result[3] == -1

    def test_arena_overflow(self, monkeypatch):
        """Test exceeding MAX_MATERIALS raises RuntimeError."""
        from pathtracer.materials import material

        monkeypatch.setattr(material, "MAX_MATERIALS", 1)
        material.register_material(material.MaterialType.LAMBERTIAN, 0)
        with pytest.raises(RuntimeError, match="Maximum number of materials"):
            material.register_material(material.MaterialType.LAMBERTIAN, 0)


class TestScatterDispatch:
    """Tests that scatter routes to the right variant."""

    def test_lambertian_dispatch(self):
        """Test a diffuse handle returns its albedo and a hemisphere direction."""
        from pathtracer.materials.lambertian import add_lambertian_material
        from pathtracer.materials.material import MaterialType, register_material

        handle = register_material(
            MaterialType.LAMBERTIAN, add_lambertian_material((0.2, 0.4, 0.6))
        )
        attenuation, direction, did_scatter = _scatter_once(handle, (0, -1, 0), (0, 1, 0))
        assert attenuation == pytest.approx((0.2, 0.4, 0.6), abs=1e-6)
        assert direction[1] >= 0.0
        assert did_scatter == 1

    def test_metal_dispatch(self):
        """Test a mirror handle reflects the incident direction."""
        from pathtracer.materials.metal import add_metal_material
        from pathtracer.materials.material import MaterialType, register_material

        handle = register_material(MaterialType.METAL, add_metal_material((0.7, 0.6, 0.5)))
        attenuation, direction, did_scatter = _scatter_once(handle, (1, -1, 0), (0, 1, 0))
        assert attenuation == pytest.approx((0.7, 0.6, 0.5), abs=1e-6)
        half = 2**-0.5
        assert direction == pytest.approx((half, half, 0.0), abs=1e-5)
        assert did_scatter == 1

    def test_dielectric_dispatch_uses_front_face(self):
        """Test a glass handle passes front_face through (TIR from inside)."""
        from pathtracer.materials.dielectric import add_dielectric_material
        from pathtracer.materials.material import MaterialType, register_material

        handle = register_material(MaterialType.DIELECTRIC, add_dielectric_material(1.5))
        attenuation, direction, did_scatter = _scatter_once(
            handle, (0.866, -0.5, 0.0), (0, 1, 0), front_face=0
        )
        assert attenuation == (1.0, 1.0, 1.0)
        assert direction[1] > 0.0
        assert did_scatter == 1

    def test_unknown_handle_absorbs(self):
        """Test an unregistered handle absorbs the ray."""
        attenuation, _, did_scatter = _scatter_once(5, (0, -1, 0), (0, 1, 0))
        assert did_scatter == 0
        assert attenuation == (0.0, 0.0, 0.0)
