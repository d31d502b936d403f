#!/usr/bin/env python3
"""Batch extract palettes and write gradient stylesheets."""

import argparse
import sys
import time
from pathlib import Path

from analyze import render_css, run_pipeline
from extract_colors import DEFAULT_COLOR_COUNT
from gradient_cache import GradientCache
from synthesize_gradients import DEFAULT_BLEND_HARDNESS, GradientCustomizationSettings


def find_images(directory: Path) -> list[Path]:
    """Find all image files in directory."""
    extensions = {'.jpg', '.jpeg', '.png', '.webp', '.bmp', '.gif'}
    return sorted(p for p in directory.iterdir() if p.suffix.lower() in extensions)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Batch extract palettes and write CSS gradient stylesheets.'
    )
    parser.add_argument(
        '--input', '-i',
        required=True,
        help='Directory containing images to analyze'
    )
    parser.add_argument(
        '--output', '-o',
        required=True,
        help='Directory for CSS output files'
    )
    parser.add_argument(
        '--colors', '-k',
        type=int,
        default=DEFAULT_COLOR_COUNT,
        help=f'Number of palette colors, 2-12 (default: {DEFAULT_COLOR_COUNT})'
    )
    parser.add_argument(
        '--hardness',
        type=float,
        default=DEFAULT_BLEND_HARDNESS,
        help=f'Blend hardness 0-100 (default: {DEFAULT_BLEND_HARDNESS})'
    )

    args = parser.parse_args(argv)

    input_dir = Path(args.input)
    output_dir = Path(args.output)

    # Validate input directory
    if not input_dir.is_dir():
        print(f"Error: Input directory not found: {input_dir}", file=sys.stderr)
        sys.exit(2)

    output_dir.mkdir(parents=True, exist_ok=True)

    images = find_images(input_dir)
    if not images:
        print(f"No images found in {input_dir}", file=sys.stderr)
        sys.exit(2)

    settings = GradientCustomizationSettings(blend_hardness=args.hardness)
    cache = GradientCache()

    total = len(images)
    succeeded = 0
    failed = []

    batch_start = time.perf_counter()

    for i, image_path in enumerate(images, 1):
        try:
            img_start = time.perf_counter()
            result = run_pipeline(str(image_path), color_count=args.colors,
                                  settings=settings, cache=cache)
            img_elapsed = time.perf_counter() - img_start

            output_file = output_dir / f"{image_path.stem}-gradients.css"
            if output_file.exists():
                print(f"  Warning: Overwriting {output_file.name}", file=sys.stderr)
            output_file.write_text(render_css(result))

            print(f"[{i}/{total}] {image_path.name} → "
                  f"{' '.join(result.palette.colors)} ({img_elapsed:.2f}s)")
            succeeded += 1

        except Exception as e:
            error_msg = f"{type(e).__name__}: {e}"
            print(f"[{i}/{total}] {image_path.name} → ERROR: {error_msg}", file=sys.stderr)
            failed.append((image_path.name, error_msg))

    batch_elapsed = time.perf_counter() - batch_start

    # Summary
    print()
    print(f"Completed: {succeeded}/{total} succeeded in {batch_elapsed:.2f}s")
    if succeeded > 0:
        print(f"Average: {batch_elapsed / succeeded:.2f}s per image")
    print(f"Gradient cache: {cache.hits} hits, {cache.misses} misses")
    if failed:
        print(f"Failed ({len(failed)}):")
        for name, error in failed:
            print(f"  - {name}: {error}")
        sys.exit(1)


if __name__ == '__main__':
    main()
