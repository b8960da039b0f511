"""Stochastic path tracer built on Taichi.

Renders scenes of spheres lit by a sky gradient. Every pixel is traced in
parallel with its own random stream, so a render is reproducible from a
single seed.

Subpackages:
    core: Rays, random sampling, the radiance integrator and render driver
    geometry: Sphere primitive and ray-sphere intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Scene storage, scene manager and example scenes
    camera: Thin-lens camera with ray generation
    preview: Image export
"""

__version__ = "0.1.0"
