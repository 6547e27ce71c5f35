"""Parallel render scheduler: image rows distributed over worker threads.

A single Taichi kernel runs one loop iteration per worker. Taichi spreads
the outermost loop over its CPU thread pool, and ``block_dim=1`` makes each
worker its own task. Workers coordinate only through a shared row counter:

    row = ti.atomic_add(counter, 1)    # fetch-and-increment, old value
    while row < height:
        render every pixel of ``row``
        row = ti.atomic_add(counter, 1)

The counter hands out every index in [0, height) exactly once. Rows land
in a pre-sized image field keyed by row index, so the assembled image does
not depend on which worker finished which row or in what order. A per-row
claim counter, owner id and each worker's finishing position are kept
alongside for inspection.

Each pixel averages ``samples_per_pixel`` camera rays, jittered inside the
pixel cell, then applies gamma-2 correction (square root per channel). Row 0
is the bottom scanline (t = 0).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.core.scheduler import RenderSettings, render
    >>> from src.pathtracer.scene.random_scene import create_random_scene
    >>>
    >>> scene, camera = create_random_scene()
    >>> settings = RenderSettings.from_aspect_ratio(400, camera.aspect_ratio, samples_per_pixel=10)
    >>> result = render(scene, camera, settings)
    >>> result.rows.shape
    (225, 400, 3)
"""

import os
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import taichi as ti

from src.pathtracer.camera.thin_lens import Camera, get_ray, is_camera_ready, setup_camera
from src.pathtracer.core.integrator import MAX_DEPTH, ray_color
from src.pathtracer.core.ray import vec3

if TYPE_CHECKING:
    from src.pathtracer.scene.manager import SceneManager

# =============================================================================
# Render Target
# =============================================================================

# Preallocated to the largest supported image to avoid kernel recompilation
MAX_IMAGE_WIDTH = 2560
MAX_IMAGE_HEIGHT = 1440

# Gamma-corrected pixel colors, indexed [row, col]
_image = ti.Vector.field(3, dtype=ti.f64, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Next unclaimed row; the only state workers write concurrently
_row_counter = ti.field(dtype=ti.i32, shape=())

# How many times each row was claimed, and by which worker
_row_claims = ti.field(dtype=ti.i32, shape=MAX_IMAGE_HEIGHT)
_row_owner = ti.field(dtype=ti.i32, shape=MAX_IMAGE_HEIGHT)

# Upper bound on workers per render
MAX_WORKERS = 1024

# Position of each worker in the order workers finished
_finish_counter = ti.field(dtype=ti.i32, shape=())
_finish_order = ti.field(dtype=ti.i32, shape=MAX_WORKERS)


def default_worker_count() -> int:
    """Number of workers matching the available hardware parallelism."""
    return min(os.cpu_count() or 1, MAX_WORKERS)


# =============================================================================
# Settings and Results
# =============================================================================


@dataclass
class RenderSettings:
    """Image size and sampling configuration for one render.

    Attributes:
        width: Image width in pixels (at least 2).
        height: Image height in pixels (at least 2).
        samples_per_pixel: Camera rays averaged per pixel.
        max_depth: Bounce budget per camera ray.
        num_workers: Worker count. None uses the hardware parallelism.
        jitter: Randomize each sample inside its pixel cell (anti-aliasing).
            When False every sample goes through the pixel corner, which
            makes pinhole renders deterministic.
    """

    width: int = 400
    height: int = 225
    samples_per_pixel: int = 100
    max_depth: int = MAX_DEPTH
    num_workers: int | None = None
    jitter: bool = True

    @classmethod
    def from_aspect_ratio(cls, width: int, aspect_ratio: float, **kwargs) -> "RenderSettings":
        """Build settings with ``height = int(width / aspect_ratio)``."""
        if aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {aspect_ratio}")
        return cls(width=width, height=int(width / aspect_ratio), **kwargs)

    def validate(self) -> None:
        """Check the settings before a render.

        Raises:
            ValueError: If any value is out of range.
        """
        if not 2 <= self.width <= MAX_IMAGE_WIDTH:
            raise ValueError(f"width must be in [2, {MAX_IMAGE_WIDTH}], got {self.width}")
        if not 2 <= self.height <= MAX_IMAGE_HEIGHT:
            raise ValueError(f"height must be in [2, {MAX_IMAGE_HEIGHT}], got {self.height}")
        if self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.num_workers is not None and not 1 <= self.num_workers <= MAX_WORKERS:
            raise ValueError(
                f"num_workers must be in [1, {MAX_WORKERS}], got {self.num_workers}"
            )

    def resolved_workers(self) -> int:
        if self.num_workers is None:
            return default_worker_count()
        return self.num_workers


@dataclass
class RenderResult:
    """Assembled output of a render.

    Attributes:
        rows: Gamma-corrected colors of shape (height, width, 3); ``rows[r]``
            is scanline r, with r = 0 at the bottom of the image.
        row_workers: Worker id that rendered each row.
        row_claims: Number of times each row was claimed (1 after a
            complete render).
        num_workers: Number of workers the render ran with.
        elapsed: Wall-clock render time in seconds.
        finish_order: For each worker, its position (0 = first) among the
            workers in the order they ran out of rows.
    """

    rows: npt.NDArray[np.float64]
    row_workers: npt.NDArray[np.int32]
    row_claims: npt.NDArray[np.int32]
    num_workers: int
    elapsed: float = 0.0
    finish_order: npt.NDArray[np.int32] = field(
        default_factory=lambda: np.zeros(0, dtype=np.int32)
    )
    settings: RenderSettings = field(default_factory=RenderSettings)

    @property
    def width(self) -> int:
        return int(self.rows.shape[1])

    @property
    def height(self) -> int:
        return int(self.rows.shape[0])

    def rows_per_worker(self) -> dict[int, int]:
        """Number of rows each worker rendered (workers with none omitted)."""
        return dict(sorted(Counter(int(w) for w in self.row_workers).items()))

    def image_top_down(self) -> npt.NDArray[np.float64]:
        """The image with the top scanline first, as image files expect."""
        return np.flipud(self.rows)


# =============================================================================
# Kernels
# =============================================================================


@ti.func
def _render_row(
    row: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    jitter: ti.i32,
):
    """Compute every pixel of one scanline into the image field."""
    for col in range(width):
        pixel_color = vec3(0.0, 0.0, 0.0)
        for _ in range(samples_per_pixel):
            du = 0.0
            dv = 0.0
            if jitter == 1:
                du = ti.random(ti.f64)
                dv = ti.random(ti.f64)
            s = (ti.cast(col, ti.f64) + du) / ti.cast(width - 1, ti.f64)
            t = (ti.cast(row, ti.f64) + dv) / ti.cast(height - 1, ti.f64)
            pixel_color += ray_color(get_ray(s, t), max_depth)

        # Gamma correction (gamma = 2)
        _image[row, col] = ti.sqrt(pixel_color / ti.cast(samples_per_pixel, ti.f64))


@ti.kernel
def _render_rows(
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    num_workers: ti.i32,
    jitter: ti.i32,
):
    """Run the workers; each claims rows until the counter passes the height."""
    ti.loop_config(block_dim=1)
    for worker in range(num_workers):
        row = ti.atomic_add(_row_counter[None], 1)
        while row < height:
            _render_row(row, width, height, samples_per_pixel, max_depth, jitter)
            ti.atomic_add(_row_claims[row], 1)
            _row_owner[row] = worker
            row = ti.atomic_add(_row_counter[None], 1)
        _finish_order[worker] = ti.atomic_add(_finish_counter[None], 1)


def _reset_schedule() -> None:
    _row_counter[None] = 0
    _row_claims.fill(0)
    _row_owner.fill(-1)
    _finish_counter[None] = 0
    _finish_order.fill(-1)


# =============================================================================
# Public Rendering API
# =============================================================================


def render(
    scene: "SceneManager",
    camera: Camera | None,
    settings: RenderSettings,
) -> RenderResult:
    """Render the scene and return the rows ordered by row index.

    Args:
        scene: The live scene. Its spheres and materials must be the ones
            currently uploaded (the most recently built SceneManager).
        camera: Camera to render through. None renders through the camera
            last passed to ``setup_camera``.
        settings: Image size, sampling and worker configuration.

    Returns:
        A RenderResult with every row present exactly once.

    Raises:
        ValueError: If the settings are invalid.
        RuntimeError: If no camera is configured, the scene is not the live
            one, or a row was not rendered exactly once.
    """
    settings.validate()

    if not scene.is_live():
        raise RuntimeError(
            "Scene is not the active scene; another SceneManager replaced its data"
        )

    if camera is not None:
        setup_camera(camera)
    elif not is_camera_ready():
        raise RuntimeError("Camera not set up. Pass a Camera or call setup_camera() first.")

    width, height = settings.width, settings.height
    num_workers = settings.resolved_workers()

    _reset_schedule()
    start = time.perf_counter()
    _render_rows(
        width,
        height,
        settings.samples_per_pixel,
        settings.max_depth,
        num_workers,
        1 if settings.jitter else 0,
    )
    ti.sync()
    elapsed = time.perf_counter() - start

    claims = _row_claims.to_numpy()[:height]
    if not np.all(claims == 1):
        bad = np.flatnonzero(claims != 1)
        raise RuntimeError(f"Rows not rendered exactly once: {bad.tolist()[:10]}")

    return RenderResult(
        rows=_image.to_numpy()[:height, :width, :].copy(),
        row_workers=_row_owner.to_numpy()[:height].copy(),
        row_claims=claims.copy(),
        num_workers=num_workers,
        elapsed=elapsed,
        finish_order=_finish_order.to_numpy()[:num_workers].copy(),
        settings=settings,
    )
