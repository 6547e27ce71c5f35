"""The "many random spheres" demo scene.

The scene consists of:
- A huge gray diffuse sphere acting as the ground
- A 22 x 22 grid of small spheres (radius 0.2) with jittered centers,
  skipping any that would crowd the large metal sphere
- Small sphere materials: 80% diffuse, 15% metal, 5% glass
- Three large spheres: glass in the middle, diffuse brown on the left,
  mirror metal on the right

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.scene.random_scene import create_random_scene
    >>> scene, camera = create_random_scene(seed=7)
"""

from dataclasses import dataclass

import numpy as np

from src.pathtracer.camera.thin_lens import Camera
from src.pathtracer.scene.manager import SceneManager

# =============================================================================
# Scene Constants
# =============================================================================

GROUND_CENTER = (0.0, -1000.0, 0.0)
GROUND_RADIUS = 1000.0
GROUND_ALBEDO = (0.5, 0.5, 0.5)

GRID_EXTENT = 11
SMALL_RADIUS = 0.2
# Small spheres closer than this to KEEP_CLEAR_POINT are skipped
KEEP_CLEAR_POINT = (4.0, 0.2, 0.0)
KEEP_CLEAR_DISTANCE = 0.9

GLASS_IOR = 1.5

LARGE_RADIUS = 1.0
LARGE_GLASS_CENTER = (0.0, 1.0, 0.0)
LARGE_DIFFUSE_CENTER = (-4.0, 1.0, 0.0)
LARGE_DIFFUSE_ALBEDO = (0.4, 0.2, 0.1)
LARGE_METAL_CENTER = (4.0, 1.0, 0.0)
LARGE_METAL_ALBEDO = (0.7, 0.6, 0.5)


@dataclass
class RandomSceneParams:
    """Probabilities and ranges used to populate the small spheres.

    Attributes:
        diffuse_probability: Share of small spheres that are diffuse.
        metal_probability: Share that are metal; the remainder is glass.
        metal_albedo_range: Range each metal albedo component is drawn from.
        metal_fuzz_range: Range metal roughness is drawn from.
    """

    diffuse_probability: float = 0.8
    metal_probability: float = 0.15
    metal_albedo_range: tuple[float, float] = (0.5, 1.0)
    metal_fuzz_range: tuple[float, float] = (0.0, 0.5)


def default_camera(aspect_ratio: float = 16.0 / 9.0) -> Camera:
    """Camera framing the demo scene from above and to the side."""
    return Camera(
        look_from=(13.0, 2.0, 3.0),
        look_at=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=30.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )


def create_random_scene(
    seed: int | None = None,
    params: RandomSceneParams | None = None,
    aspect_ratio: float = 16.0 / 9.0,
) -> tuple[SceneManager, Camera]:
    """Build the random sphere field and its camera.

    Args:
        seed: Seed for the layout generator. None draws fresh entropy, so
            every call produces a different arrangement.
        params: Material mix; defaults to RandomSceneParams().
        aspect_ratio: Aspect ratio for the returned camera.

    Returns:
        A tuple of (SceneManager, Camera).
    """
    if params is None:
        params = RandomSceneParams()

    rng = np.random.default_rng(seed)
    scene = SceneManager()

    ground = scene.add_lambertian_material(GROUND_ALBEDO)
    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, ground)

    keep_clear = np.array(KEEP_CLEAR_POINT)
    for a in range(-GRID_EXTENT, GRID_EXTENT):
        for b in range(-GRID_EXTENT, GRID_EXTENT):
            choose_mat = rng.random()
            center = np.array(
                [a + 0.9 * rng.random(), SMALL_RADIUS, b + 0.9 * rng.random()]
            )

            if np.linalg.norm(center - keep_clear) <= KEEP_CLEAR_DISTANCE:
                continue

            center_tuple = (float(center[0]), float(center[1]), float(center[2]))
            if choose_mat < params.diffuse_probability:
                albedo = rng.random(3) * rng.random(3)
                scene.add_lambertian_sphere(center_tuple, SMALL_RADIUS, tuple(albedo.tolist()))
            elif choose_mat < params.diffuse_probability + params.metal_probability:
                lo, hi = params.metal_albedo_range
                albedo = rng.uniform(lo, hi, 3)
                fuzz = rng.uniform(*params.metal_fuzz_range)
                scene.add_metal_sphere(
                    center_tuple, SMALL_RADIUS, tuple(albedo.tolist()), float(fuzz)
                )
            else:
                scene.add_dielectric_sphere(center_tuple, SMALL_RADIUS, GLASS_IOR)

    scene.add_dielectric_sphere(LARGE_GLASS_CENTER, LARGE_RADIUS, GLASS_IOR)
    scene.add_lambertian_sphere(LARGE_DIFFUSE_CENTER, LARGE_RADIUS, LARGE_DIFFUSE_ALBEDO)
    scene.add_metal_sphere(LARGE_METAL_CENTER, LARGE_RADIUS, LARGE_METAL_ALBEDO, 0.0)

    return scene, default_camera(aspect_ratio)
