#!/usr/bin/env python3
"""Render one of the example sphere scenes to a PNG file.

Usage:
    python examples/render_spheres.py [options]

Options:
    --scene {simple,cover}  Scene to render (default: cover)
    --width WIDTH           Image width in pixels (default: 600)
    --height HEIGHT         Image height in pixels (default: 400)
    --samples SAMPLES       Number of samples per pixel (default: 100)
    --depth DEPTH           Maximum bounces per path (default: 50)
    --seed SEED             Seed for sampling and the cover scene layout (default: 0)
    --batch-size SIZE       Samples per progress update (default: 10)
    --output OUTPUT         Output file path (default: spheres.png)
    --arch {cpu,gpu}        Taichi backend (default: gpu)
    --quiet                 Suppress progress output

Example:
    python examples/render_spheres.py --scene simple --width 400 --height 225 --samples 50
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render an example sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=("simple", "cover"),
        default="cover",
        help="Scene to render (default: cover)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=600,
        help="Image width in pixels (default: 600)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=400,
        help="Image height in pixels (default: 400)",
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
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for sampling and the cover scene layout (default: 0)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="spheres.png",
        help="Output file path (default: spheres.png)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="gpu",
        help="Taichi backend (default: gpu)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def render_spheres(
    scene_name: str = "cover",
    width: int = 600,
    height: int = 400,
    num_samples: int = 100,
    max_depth: int = 50,
    seed: int = 0,
    output_path: str = "spheres.png",
    batch_size: int = 10,
    quiet: bool = False,
) -> Path:
    """Render an example scene and save it to file.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.core.render import RenderSettings, render_image
    from pathtracer.preview.export import save_png
    from pathtracer.scene.presets import cover_scene, simple_scene

    settings = RenderSettings(
        width=width,
        height=height,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
        seed=seed,
        batch_size=batch_size,
    )
    settings.validate()

    if not quiet:
        print(f"Creating {scene_name} scene ({width}x{height})...")

    if scene_name == "simple":
        scene, camera = simple_scene(settings.aspect_ratio)
    else:
        scene, camera = cover_scene(settings.aspect_ratio, seed=seed)

    if not quiet:
        print(f"Scene has {scene.get_sphere_count()} spheres")
        print(f"Rendering {num_samples} samples per pixel...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    image = render_image(settings, camera, callback=progress_callback)

    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    save_png(image, output_file)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    arch = ti.gpu if args.arch == "gpu" else ti.cpu
    ti.init(arch=arch)
    if not args.quiet:
        print(f"Using {args.arch.upper()} backend")

    try:
        render_spheres(
            scene_name=args.scene,
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            max_depth=args.depth,
            seed=args.seed,
            output_path=args.output,
            batch_size=args.batch_size,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
