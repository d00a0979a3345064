#!/usr/bin/env python3
"""Render a scene of spheres to a PNG file.

Without a scene file, renders a built-in demo: three spheres (one of them a
mirror) resting on a large ground sphere, lit by two area lights.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH             Image width in pixels (default: 320)
    --height HEIGHT           Image height in pixels (default: 240)
    --samples SAMPLES         Samples per light per pixel (default: 2)
    --depth DEPTH             Maximum reflection depth (default: 3)
    --seed SEED               Random seed (default: 0)
    --shadow-test MODE        distance or legacy (default: distance)
    --reflection-mode MODE    direction or position (default: direction)
    --scene FILE              JSON scene file (see Scene.from_dict)
    --output OUTPUT           Output file path (default: out.png)
    --quiet                   Suppress progress output
    --verbose                 Enable debug logging

A scene file may carry a "render" object with RenderConfig fields; flags
given on the command line override it.

Example:
    python -m examples.render_spheres --width 160 --height 120 --samples 8
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene of spheres.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=320,
        help="Image width in pixels (default: 320)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=240,
        help="Image height in pixels (default: 240)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=None,
        help="Samples per light per pixel (default: 2)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=None,
        help="Maximum reflection depth (default: 3)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed (default: 0)",
    )
    parser.add_argument(
        "--shadow-test",
        choices=["distance", "legacy"],
        default=None,
        help="Shadow occlusion rule (default: distance)",
    )
    parser.add_argument(
        "--reflection-mode",
        choices=["direction", "position"],
        default=None,
        help="Vector mirrored on each bounce (default: direction)",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="JSON scene file (default: built-in demo scene)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="out.png",
        help="Output file path (default: out.png)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args()


def build_demo_scene(width: int, height: int):
    """Create the built-in demo scene.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        The populated Scene.
    """
    from spheretrace.camera.pinhole import Camera
    from spheretrace.scene.manager import Scene

    camera = Camera(
        lookfrom=(0.0, 0.6, 2.0),
        lookat=(0.0, 0.0, -3.0),
        vup=(0.0, 1.0, 0.0),
        vfov=50.0,
        aspect_ratio=width / height,
        aperture=0.002,
    )
    scene = Scene(camera, width, height)

    # Ground
    scene.add_phong_sphere(
        center=(0.0, -1000.8, -3.0),
        radius=1000.0,
        ambient=(0.02, 0.02, 0.02),
        diffuse=(0.05, 0.05, 0.05),
        reflectiveness=0.2,
        shininess=8.0,
    )
    # Red, mirror and blue spheres
    scene.add_phong_sphere(
        center=(-1.3, 0.0, -3.5),
        radius=0.8,
        ambient=(0.05, 0.0, 0.0),
        diffuse=(0.09, 0.01, 0.01),
        reflectiveness=0.1,
        shininess=32.0,
    )
    scene.add_phong_sphere(
        center=(0.0, 0.0, -4.2),
        radius=0.8,
        ambient=(0.01, 0.01, 0.01),
        diffuse=(0.02, 0.02, 0.02),
        reflectiveness=0.8,
        shininess=128.0,
    )
    scene.add_phong_sphere(
        center=(1.3, 0.0, -3.5),
        radius=0.8,
        ambient=(0.0, 0.0, 0.05),
        diffuse=(0.01, 0.02, 0.09),
        reflectiveness=0.1,
        shininess=32.0,
    )

    scene.add_light(center=(-3.0, 4.0, 0.0))
    scene.add_light(center=(3.0, 3.0, -1.0))
    return scene


def build_config(args: argparse.Namespace, overrides: dict[str, Any]):
    """Merge scene-file render settings with command-line flags."""
    from spheretrace.core.config import RenderConfig

    data = dict(overrides)
    flag_values = {
        "light_samples": args.samples,
        "reflection_depth": args.depth,
        "seed": args.seed,
        "shadow_test": args.shadow_test,
        "reflection_mode": args.reflection_mode,
    }
    for key, value in flag_values.items():
        if value is not None:
            data[key] = value
    return RenderConfig.from_dict(data)


def render_spheres(args: argparse.Namespace) -> bool:
    """Build the scene, render it and write the PNG.

    Args:
        args: Parsed command-line arguments.

    Returns:
        True if the image was written.
    """
    # Lazy imports to allow Taichi initialization first
    from spheretrace.scene.manager import Scene

    render_overrides: dict[str, Any] = {}
    if args.scene:
        if not args.quiet:
            print(f"Loading scene from {args.scene}...")
        with open(args.scene) as f:
            data = json.load(f)
        render_overrides = data.pop("render", {})
        data.setdefault("width", args.width)
        data.setdefault("height", args.height)
        scene = Scene.from_dict(data)
    else:
        if not args.quiet:
            print(f"Creating demo scene ({args.width}x{args.height})...")
        scene = build_demo_scene(args.width, args.height)

    config = build_config(args, render_overrides)

    if not args.quiet:
        total = config.samples_per_pixel(scene.get_light_count())
        print(
            f"Rendering {scene.get_sphere_count()} spheres, "
            f"{scene.get_light_count()} lights, {total} samples per pixel..."
        )

    start_time = time.time()
    output_file = Path(args.output)
    written = scene.render_to_file(output_file, config)

    if not args.quiet:
        if written:
            print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {time.time() - start_time:.2f}s")

    return written


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    # Initialize Taichi
    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        if not args.quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")

    try:
        return 0 if render_spheres(args) else 1
    except (OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
