#!/usr/bin/env python3
"""Render the random spheres scene.

Builds the demo scene (ground, a grid of small random spheres and three
large ones), renders it with the row-parallel scheduler and writes the
image as PPM or PNG depending on the output extension.

Usage:
    python -m examples.render_random_scene [options]

Options:
    --width WIDTH           Image width in pixels (default: 400)
    --aspect-ratio RATIO    Width / height (default: 1.7778)
    --samples SAMPLES       Samples per pixel (default: 100)
    --depth DEPTH           Maximum bounces per ray (default: 50)
    --workers WORKERS       Worker count (default: CPU count)
    --output OUTPUT         Output path, .ppm or .png; "-" writes PPM to stdout
    --seed SEED             Seed for the scene layout and sampling
    --quiet                 Suppress status output

Example:
    python -m examples.render_random_scene --width 200 --samples 10 --output spheres.png
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import taichi as ti


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the random spheres scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=16.0 / 9.0,
        help="Image aspect ratio, width / height (default: 16/9)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=50,
        help="Maximum bounces per ray (default: 50)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of render workers (default: CPU count)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.ppm",
        help='Output path, .ppm or .png; "-" writes PPM to stdout (default: image.ppm)',
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the scene layout and sampling (default: random)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress status output",
    )
    return parser.parse_args(argv)


def render_random_scene(
    width: int = 400,
    aspect_ratio: float = 16.0 / 9.0,
    samples_per_pixel: int = 100,
    max_depth: int = 50,
    num_workers: int | None = None,
    output_path: str = "image.ppm",
    seed: int | None = None,
    quiet: bool = False,
) -> Path | None:
    """Render the random spheres scene and save it.

    Args:
        width: Image width in pixels.
        aspect_ratio: Width / height; the height is derived from it.
        samples_per_pixel: Camera rays averaged per pixel.
        max_depth: Bounce budget per camera ray.
        num_workers: Render workers. None uses the CPU count.
        output_path: Destination file. ".png" saves a PNG, "-" streams PPM
            to stdout, anything else saves PPM.
        seed: Scene layout seed. None draws a fresh layout.
        quiet: If True, suppress status output.

    Returns:
        Path to the saved image, or None when written to stdout.
    """
    # Lazy imports to allow Taichi initialization first
    from src.pathtracer.core.scheduler import RenderSettings, render
    from src.pathtracer.output.export import PPMWriter, save_png, save_ppm, write_image
    from src.pathtracer.scene.random_scene import create_random_scene

    # Status goes to stderr when the image itself goes to stdout
    status = sys.stderr if output_path == "-" else sys.stdout

    def report(message: str) -> None:
        if not quiet:
            print(message, file=status, flush=True)

    settings = RenderSettings.from_aspect_ratio(
        width,
        aspect_ratio,
        samples_per_pixel=samples_per_pixel,
        max_depth=max_depth,
        num_workers=num_workers,
    )
    settings.validate()

    scene, camera = create_random_scene(seed=seed, aspect_ratio=aspect_ratio)
    counts = scene.count_by_material_type()
    report(
        f"Scene: {scene.get_sphere_count()} spheres "
        + ", ".join(f"{t.name.lower()}={n}" for t, n in counts.items())
    )

    report(
        f"Rendering {settings.width}x{settings.height}, "
        f"{settings.samples_per_pixel} spp, depth {settings.max_depth}, "
        f"{settings.resolved_workers()} workers..."
    )
    result = render(scene, camera, settings)

    rows_done = result.rows_per_worker()
    for worker in np.argsort(result.finish_order):
        report(
            f"  Worker {worker}: done, {rows_done.get(int(worker), 0)} rows "
            f"(finished {result.finish_order[worker] + 1} of {result.num_workers})"
        )
    report(f"Render time: {result.elapsed:.2f}s")

    if output_path == "-":
        write_image(result, PPMWriter(sys.stdout, result.width, result.height))
        sys.stdout.flush()
        return None

    output_file = Path(output_path)
    if output_file.suffix.lower() == ".png":
        save_png(result, str(output_file))
    else:
        save_ppm(result, str(output_file))
    report(f"Saved to: {output_file.absolute()}")
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    init_kwargs = {"arch": ti.cpu, "default_fp": ti.f64}
    if args.workers is not None and args.workers > 0:
        init_kwargs["cpu_max_num_threads"] = args.workers
    if args.seed is not None:
        init_kwargs["random_seed"] = args.seed
    ti.init(**init_kwargs)

    try:
        render_random_scene(
            width=args.width,
            aspect_ratio=args.aspect_ratio,
            samples_per_pixel=args.samples,
            max_depth=args.depth,
            num_workers=args.workers,
            output_path=args.output,
            seed=args.seed,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
