"""Scene module for scene storage and construction.

Components:
    intersection: Sphere storage and closest-hit queries
    manager: SceneManager coordinating spheres and materials
    presets: Example scenes
"""

from .intersection import (
    EPSILON,
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    scene_bounded_hit,
    scene_hit,
)
from .manager import MaterialInfo, SceneConfig, SceneManager, SphereInfo
from .presets import cover_scene, simple_scene

__all__ = [
    # Intersection module
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "scene_bounded_hit",
    "scene_hit",
    "EPSILON",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    # Presets
    "simple_scene",
    "cover_scene",
]
