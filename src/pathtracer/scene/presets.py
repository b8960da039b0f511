"""Ready-made example scenes.

Each factory clears the active scene, fills it through a fresh SceneManager
and returns the manager together with a camera framed for the scene.

- ``simple_scene``: three spheres on a large ground sphere. The left sphere
  is a hollow glass bubble, made of two concentric spheres with opposite
  radii that share one dielectric material.
- ``cover_scene``: a field of small random spheres around three large ones
  (glass, diffuse and mirror), seen through a camera with shallow depth of
  field.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>> from pathtracer.scene.presets import cover_scene
    >>> scene, camera = cover_scene(aspect_ratio=3.0 / 2.0, seed=7)
    >>> setup_camera(camera)
"""

import math

import numpy as np

from pathtracer.camera.thin_lens import ThinLensCamera
from pathtracer.scene.manager import SceneManager

# =============================================================================
# Simple Scene Constants
# =============================================================================

GROUND_ALBEDO = (0.8, 0.8, 0.0)
CENTER_ALBEDO = (0.1, 0.2, 0.5)
GOLD_ALBEDO = (0.8, 0.6, 0.2)
GLASS_IOR = 1.5

# =============================================================================
# Cover Scene Constants
# =============================================================================

COVER_GRID_EXTENT = 11
COVER_SMALL_RADIUS = 0.2
# Small spheres within this distance of the clearance point are skipped
COVER_CLEARANCE = 0.9
COVER_CLEARANCE_POINT = (4.0, 0.2, 0.0)
COVER_DIFFUSE_PROBABILITY = 0.8
COVER_METAL_PROBABILITY = 0.95


def simple_scene(aspect_ratio: float = 16.0 / 9.0) -> tuple[SceneManager, ThinLensCamera]:
    """Create the three-sphere scene.

    Args:
        aspect_ratio: Width divided by height of the output image.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(GROUND_ALBEDO)
    center = scene.add_lambertian_material(CENTER_ALBEDO)
    glass = scene.add_dielectric_material(GLASS_IOR)
    gold = scene.add_metal_material(GOLD_ALBEDO, fuzz=0.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)

    lookfrom = (-3.0, 3.0, 2.0)
    lookat = (0.0, 0.0, -1.0)
    camera = ThinLensCamera(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=(0.0, 1.0, 0.0),
        vfov=30.0,
        aspect_ratio=aspect_ratio,
        aperture=0.2,
        focus_distance=math.dist(lookfrom, lookat),
    )
    return scene, camera


def cover_scene(
    aspect_ratio: float = 3.0 / 2.0,
    seed: int | None = None,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the random-spheres scene.

    A grid of small spheres is jittered across the ground. Each picks a
    material at random: mostly diffuse with a random colour, some metal
    with random tint and fuzz, a few glass.

    Args:
        aspect_ratio: Width divided by height of the output image.
        seed: Seed for the scene layout. The same seed gives the same scene.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    ground = scene.add_lambertian_material((0.5, 0.5, 0.5))
    scene.add_sphere((0.0, -1000.0, -1.0), 1000.0, ground)

    # Every glass sphere shares one material
    glass = scene.add_dielectric_material(GLASS_IOR)
    clearance_point = np.array(COVER_CLEARANCE_POINT)

    for a in range(-COVER_GRID_EXTENT, COVER_GRID_EXTENT + 1):
        for b in range(-COVER_GRID_EXTENT, COVER_GRID_EXTENT + 1):
            choose_material = rng.random()
            center = np.array(
                [
                    a + COVER_CLEARANCE * rng.random(),
                    COVER_SMALL_RADIUS,
                    b + COVER_CLEARANCE * rng.random(),
                ]
            )
            if np.linalg.norm(center - clearance_point) <= COVER_CLEARANCE:
                continue

            position = tuple(float(x) for x in center)
            if choose_material < COVER_DIFFUSE_PROBABILITY:
                albedo = tuple(float(x) for x in rng.random(3) * rng.random(3))
                scene.add_lambertian_sphere(position, COVER_SMALL_RADIUS, albedo)
            elif choose_material < COVER_METAL_PROBABILITY:
                albedo = tuple(float(x) for x in rng.uniform(0.5, 1.0, 3))
                fuzz = float(rng.random())
                scene.add_metal_sphere(position, COVER_SMALL_RADIUS, albedo, fuzz)
            else:
                scene.add_sphere(position, COVER_SMALL_RADIUS, glass)

    scene.add_sphere((0.0, 1.0, 0.0), 1.0, glass)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), fuzz=0.0)

    camera = ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_distance=10.0,
    )
    return scene, camera
