#!/usr/bin/env python3
"""Profile the gradient pipeline stage by stage to find bottlenecks."""

import cProfile
import pstats
import io
import sys
import time
from pathlib import Path

from analyze import render, PipelineResult
from extract_colors import DEFAULT_COLOR_COUNT, load_image, quantize
from gradient_cache import GradientCache


def profile_image(image_path: str, color_count: int = DEFAULT_COLOR_COUNT, verbose: bool = True):
    """Time each stage for a single image."""

    if verbose:
        print(f"\n{'='*60}")
        print(f"Profiling: {Path(image_path).name}")
        print(f"{'='*60}")

    timings = {}
    cache = GradientCache()

    # Stage 1: Load
    start = time.perf_counter()
    raster = load_image(image_path)
    timings['load'] = time.perf_counter() - start

    if verbose:
        print(f"  Size: {raster.width}x{raster.height} ({raster.width * raster.height:,} px)")

    # Stage 2: Quantize
    start = time.perf_counter()
    palette = quantize(raster, color_count)
    timings['quantize'] = time.perf_counter() - start

    # Stage 3: Synthesize (cold cache)
    start = time.perf_counter()
    gradients = cache.get_or_compute(palette)
    timings['synthesize'] = time.perf_counter() - start

    # Stage 3b: Synthesize again (warm cache)
    start = time.perf_counter()
    cache.get_or_compute(palette)
    timings['cache_hit'] = time.perf_counter() - start

    # Stage 4: Render
    result = PipelineResult(
        source=image_path,
        image_shape=(raster.height, raster.width),
        palette=palette,
        settings=gradients[0].customization_settings,
        gradients=gradients,
    )
    start = time.perf_counter()
    render(result)
    timings['render'] = time.perf_counter() - start

    total = sum(timings.values())
    timings['total'] = total

    if verbose:
        print(f"\nStage timings:")
        for stage, t in timings.items():
            pct = (t / total * 100) if stage != 'total' else 100
            print(f"  {stage:20s}: {t:6.3f}s ({pct:5.1f}%)")

    return timings, raster


def detailed_profile(image_path: str, color_count: int = DEFAULT_COLOR_COUNT):
    """Run detailed cProfile on quantize (the main compute stage)."""

    print(f"\n{'='*60}")
    print(f"Detailed profile of quantize()")
    print(f"{'='*60}")

    # Load first (outside profiling)
    raster = load_image(image_path)

    profiler = cProfile.Profile()
    profiler.enable()
    palette = quantize(raster, color_count)
    profiler.disable()

    stream = io.StringIO()
    stats = pstats.Stats(profiler, stream=stream)
    stats.sort_stats('cumulative')
    stats.print_stats(30)  # Top 30 functions

    print(stream.getvalue())

    return palette


def main():
    images = [Path(p) for p in sys.argv[1:]]
    if not images:
        images_dir = Path(__file__).parent / "source_images"
        images = sorted(images_dir.glob("*.jp*g")) if images_dir.is_dir() else []

    if not images:
        print("Usage: python profile_analyze.py <image> [<image> ...]")
        print("(or place images in source_images/)")
        sys.exit(1)

    print(f"Found {len(images)} test images")

    all_timings = []
    for img in images:
        timings, raster = profile_image(str(img))
        all_timings.append((img.name, timings, raster.width, raster.height))

    # Summary
    print(f"\n{'='*60}")
    print("SUMMARY")
    print(f"{'='*60}")
    print(f"{'Image':<35} {'Size':>12} {'Quantize':>9} {'Total':>8}")
    print("-" * 68)
    for name, timings, w, h in all_timings:
        size = f"{w}x{h}"
        print(f"{name:<35} {size:>12} {timings['quantize']:>8.3f}s {timings['total']:>7.3f}s")

    # Detailed profile on first image
    detailed_profile(str(images[0]))


if __name__ == "__main__":
    main()
