"""Scene manager coordinating spheres and materials.

The SceneManager is the Python-side builder for the scene storage read by the
renderer. It creates materials in their variant registries, hands out
material handles from the material arena, validates handles when spheres are
added, and keeps a plain-Python record of everything it created so a scene
can be exported to and rebuilt from a JSON-compatible dictionary.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> glass = scene.add_dielectric_material(ior=1.5)
    >>> scene.add_sphere(center=(-1, 0, -1), radius=0.5, material_id=glass)
    >>> scene.add_sphere(center=(-1, 0, -1), radius=-0.45, material_id=glass)
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from pathtracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from pathtracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from pathtracer.materials.material import (
    MAX_MATERIALS,
    MaterialType,
    clear_material_arena,
    get_material_count,
    register_material,
)
from pathtracer.materials.metal import (
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
)
from pathtracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The material handle.
        material_type: The material variant.
        type_index: The index within the variant's own storage.
        params: The material parameters as stored.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        center: The center of the sphere.
        radius: The signed radius of the sphere.
        material_id: The material handle assigned to the sphere.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        materials: List of material configurations, in handle order.
        spheres: List of sphere configurations.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


def _as_triple(values: Any) -> tuple[float, float, float]:
    return (float(values[0]), float(values[1]), float(values[2]))


_MATERIAL_TYPES = ("lambertian", "metal", "dielectric")


def _check_config(config: SceneConfig) -> None:
    """Reject unknown material types and dangling material handles."""
    for mat_config in config.materials:
        mat_type = mat_config.get("type", "").lower()
        if mat_type not in _MATERIAL_TYPES:
            raise ValueError(f"Unknown material type: {mat_type}")

    num_materials = len(config.materials)
    for i, sphere_config in enumerate(config.spheres):
        material_id = sphere_config.get("material_id", 0)
        if not isinstance(material_id, int) or not 0 <= material_id < num_materials:
            raise ValueError(f"Invalid material_id for sphere {i}: {material_id}")


class SceneManager:
    """Builder for the scene storage used by the renderer.

    Scene and material storage are module-level Taichi fields, so there is
    one active scene per process. Creating a SceneManager clears that
    storage.

    Attributes:
        materials: MaterialInfo for every registered material, indexed by
            material handle.
        spheres: SphereInfo for every sphere in the scene.

    Example:
        >>> scene = SceneManager()
        >>> ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
        >>> scene.add_sphere((0, -100.5, -1), 100.0, ground)
        >>> scene.add_metal_sphere((1, 0, -1), 0.5, albedo=(0.8, 0.6, 0.2), fuzz=0.0)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        clear_material_arena()
        self.materials.clear()
        self.spheres.clear()

    def clear(self) -> None:
        """Clear the entire scene (spheres and materials)."""
        self._clear_all()

    def __repr__(self) -> str:
        return (
            f"SceneManager(materials={len(self.materials)}, "
            f"spheres={len(self.spheres)})"
        )

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        material_id = register_material(material_type, type_index)
        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B) tuple.
                Each component should be in [0, 1].

        Returns:
            The material handle.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        type_index = add_lambertian_material(albedo)
        return self._register(
            MaterialType.LAMBERTIAN, type_index, {"albedo": _as_triple(albedo)}
        )

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a metal (mirror-like) material to the scene.

        Args:
            albedo: The reflective color as (R, G, B) tuple.
            fuzz: The surface fuzz, clamped to [0, 1]. Default is a perfect
                mirror.

        Returns:
            The material handle.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        type_index = add_metal_material(albedo, fuzz)
        return self._register(
            MaterialType.METAL,
            type_index,
            {"albedo": _as_triple(albedo), "fuzz": clamp_fuzz(fuzz)},
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            ior: Index of refraction. Default is 1.5 (typical glass).

        Returns:
            The material handle.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If IOR is not positive.
        """
        type_index = add_dielectric_material(ior)
        return self._register(MaterialType.DIELECTRIC, type_index, {"ior": float(ior)})

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return get_material_count()

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by handle.

        Returns:
            MaterialInfo for the material, or None if not found.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    # =========================================================================
    # Sphere Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The signed radius. Negative values make the normals
                point inward.
            material_id: A handle returned by one of the add_*_material()
                methods.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If material_id is not a registered handle.
        """
        if material_id < 0 or material_id >= get_material_count():
            raise ValueError(f"Invalid material_id: {material_id}")

        center = _as_triple(center)
        sphere_index = add_sphere(center, radius, material_id)
        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=center,
                radius=float(radius),
                material_id=material_id,
            )
        )
        return sphere_index

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new Lambertian material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_lambertian_material(albedo)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with a new metal material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_metal_material(albedo, fuzz)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        """Add a sphere with a new dielectric material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_dielectric_material(ior)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()

        for mat in self.materials:
            mat_config: dict[str, Any] = {"type": mat.material_type.name.lower()}
            for key, value in mat.params.items():
                mat_config[key] = list(value) if isinstance(value, tuple) else value
            config.materials.append(mat_config)

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Material types and sphere handles are checked before the current
        scene is cleared. Materials are loaded before spheres, in order, so
        the handles in the configuration stay valid.

        Raises:
            ValueError: If the configuration contains an unknown material
                type or invalid data.
        """
        _check_config(config)
        self.clear()

        for mat_config in config.materials:
            mat_type = mat_config.get("type", "").lower()
            if mat_type == "lambertian":
                self.add_lambertian_material(
                    _as_triple(mat_config.get("albedo", [0.5, 0.5, 0.5]))
                )
            elif mat_type == "metal":
                self.add_metal_material(
                    _as_triple(mat_config.get("albedo", [0.8, 0.8, 0.8])),
                    mat_config.get("fuzz", 0.0),
                )
            elif mat_type == "dielectric":
                self.add_dielectric_material(mat_config.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for sphere_config in config.spheres:
            self.add_sphere(
                _as_triple(sphere_config.get("center", [0.0, 0.0, 0.0])),
                sphere_config.get("radius", 1.0),
                sphere_config.get("material_id", 0),
            )

        logger.debug(
            "Loaded scene with %d materials and %d spheres",
            len(self.materials),
            len(self.spheres),
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a JSON-compatible dictionary."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "spheres": config.spheres,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with 'materials' and 'spheres' keys.
        """
        config = SceneConfig(
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
