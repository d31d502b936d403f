#!/usr/bin/env python3
"""
Image to gradient pipeline.

Extracts a banded color palette from an image and renders the full set of
CSS gradients built from it.
Four stages: Load → Quantize → Synthesize → Render
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from extract_colors import (
    ColorPalette, DEFAULT_COLOR_COUNT,
    hex_to_rgb, load_image, quantize,
)
from gradient_cache import GradientCache
from synthesize_gradients import (
    DEFAULT_BLEND_HARDNESS, Gradient, GradientCustomizationSettings,
    parse_stop_positions,
)


# =============================================================================
# Data Types
# =============================================================================

@dataclass
class PipelineResult:
    """Everything produced for one image."""
    source: str
    image_shape: tuple  # (height, width) before downsampling
    palette: ColorPalette
    settings: GradientCustomizationSettings
    gradients: list = field(default_factory=list)  # list[Gradient]


# =============================================================================
# Pipeline
# =============================================================================

def run_pipeline(image_path: str,
                 color_count: int = DEFAULT_COLOR_COUNT,
                 settings: Optional[GradientCustomizationSettings] = None,
                 cache: Optional[GradientCache] = None) -> PipelineResult:
    """
    Run stages 1-3 on one image.

    Args:
        image_path: Path to the image file
        color_count: Palette size (2-12)
        settings: Gradient customization; defaults when None
        cache: Shared gradient cache; a private one is used when None

    Raises:
        ImageLoadError: If the image cannot be decoded
        ContextError: If no pixel data can be read from it
    """
    settings = settings or GradientCustomizationSettings()
    cache = cache if cache is not None else GradientCache()

    # Stage 1: Load
    raster = load_image(image_path)

    # Stage 2: Quantize
    palette = quantize(raster, color_count)

    # Stage 3: Synthesize
    gradients = cache.get_or_compute(palette, settings)

    return PipelineResult(
        source=str(image_path),
        image_shape=(raster.height, raster.width),
        palette=palette,
        settings=settings,
        gradients=gradients,
    )


# =============================================================================
# Render
# =============================================================================

def css_class_name(label: str) -> str:
    """'to bottom (soft)' -> 'gradient-to-bottom-soft'."""
    slug = re.sub(r'[^a-z0-9]+', '-', label.lower()).strip('-')
    return f"gradient-{slug}"


def describe_gradient(gradient: Gradient) -> str:
    positions = parse_stop_positions(gradient.css)
    if not positions:
        return f"{gradient.direction}: no stops"
    return (f"{gradient.direction}: {len(positions)} stops "
            f"({positions[0]:g}% → {positions[-1]:g}%)")


def render(result: PipelineResult) -> str:
    """Stage 4: Render the pipeline result as prose."""
    lines = []
    h, w = result.image_shape

    lines.append(f"SOURCE: {Path(result.source).name} ({w}x{h})")
    lines.append(f"Colors: {len(result.palette)} | Dominant: {result.palette.dominant}")
    lines.append(f"Blend hardness: {result.settings.blend_hardness:g}")
    if result.settings.custom_color_positions is not None:
        positions = ', '.join(f"{p:g}%" for p in result.settings.custom_color_positions)
        lines.append(f"Custom positions: {positions}")
    lines.append("")

    lines.append("PALETTE (top to bottom):")
    lines.append("")
    for i, color in enumerate(result.palette.colors):
        marker = " (dominant)" if i == len(result.palette) // 2 else ""
        lines.append(f"  {i + 1:2d}. {color} / RGB{hex_to_rgb(color)}{marker}")
    lines.append("")

    lines.append("GRADIENTS:")
    lines.append("")
    for gradient in result.gradients:
        lines.append(f"[{describe_gradient(gradient)}]")
        lines.append(f"  {gradient.css}")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def render_css(result: PipelineResult) -> str:
    """Stage 4: Render the gradients as a stylesheet, one class per template."""
    lines = [f"/* Gradients from {Path(result.source).name} */", ""]
    for gradient in result.gradients:
        lines.append(f".{css_class_name(gradient.direction)} {{")
        lines.append(f"  background: {gradient.css};")
        lines.append("}")
        lines.append("")
    return "\n".join(lines)


def analyze_image(image_path: str, **kwargs) -> tuple[str, str]:
    """Run the full pipeline on an image.

    Returns:
        Tuple of (prose_output, css_output)
    """
    result = run_pipeline(image_path, **kwargs)
    return render(result), render_css(result)


# =============================================================================
# CLI
# =============================================================================

def parse_positions(text: Optional[str]) -> Optional[list[float]]:
    if not text:
        return None
    return [float(part) for part in text.split(',') if part.strip()]


def main(argv=None):
    import argparse
    import sys

    from extract_colors import PaletteError

    parser = argparse.ArgumentParser(
        description='Extract a color palette from an image and build CSS gradients from it.'
    )
    parser.add_argument(
        '--input', '-i',
        required=True,
        help='Path to the image file'
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
        help=f'Blend hardness 0-100, higher blends more (default: {DEFAULT_BLEND_HARDNESS})'
    )
    parser.add_argument(
        '--positions',
        default=None,
        help='Comma-separated stop percentages, one per color (e.g. 0,30,70,100)'
    )
    parser.add_argument(
        '--output', '-o',
        nargs='?',
        const=True,
        default=None,
        help='Write CSS. Optionally specify path, otherwise auto-names from input.'
    )

    args = parser.parse_args(argv)
    image_path = Path(args.input)

    try:
        settings = GradientCustomizationSettings(
            blend_hardness=args.hardness,
            custom_color_positions=parse_positions(args.positions),
        )
        prose, css = analyze_image(str(image_path), color_count=args.colors, settings=settings)
    except (PaletteError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Always print prose to terminal
    print(prose)

    if args.output:
        if args.output is True:
            output_path = image_path.with_name(f"{image_path.stem}-gradients.css")
        else:
            output_path = Path(args.output)

        try:
            output_path.write_text(css)
            print(f"Wrote: {output_path}")
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            sys.exit(1)


if __name__ == '__main__':
    main()
