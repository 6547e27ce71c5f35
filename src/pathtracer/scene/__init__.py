"""Scene module: sphere storage, closest-hit queries and scene builders.

Components:
    world: Sphere fields and the closest-hit aggregate query
    manager: Host-side builder tying spheres to shared materials
    random_scene: The random sphere field demo scene and its camera

Scene data is kept in Taichi fields (structure-of-arrays) so that every
worker reads the same immutable copy during a render.
"""

from .manager import (
    MaterialInfo,
    SceneConfig,
    SceneManager,
    SphereInfo,
)
from .random_scene import (
    RandomSceneParams,
    create_random_scene,
    default_camera,
)
from .world import (
    MAX_SPHERES,
    add_sphere,
    clear_world,
    get_sphere_count,
    hit_world,
)

__all__ = [
    # World
    "MAX_SPHERES",
    "add_sphere",
    "clear_world",
    "get_sphere_count",
    "hit_world",
    # Manager
    "SceneManager",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    # Demo scene
    "RandomSceneParams",
    "create_random_scene",
    "default_camera",
]
