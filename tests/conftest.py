"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene and material storage and reseed the random streams.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized before any field is created
    from pathtracer.core.render import clear_render_target
    from pathtracer.core.sampler import seed_samplers
    from pathtracer.materials.dielectric import clear_dielectric_materials
    from pathtracer.materials.lambertian import clear_lambertian_materials
    from pathtracer.materials.material import clear_material_arena
    from pathtracer.materials.metal import clear_metal_materials
    from pathtracer.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        clear_material_arena()
        clear_render_target()

    _clear_all()
    seed_samplers(42)

    yield

    _clear_all()
