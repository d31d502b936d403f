#!/usr/bin/env python3
"""
Extract an ordered color palette from an image, one color per horizontal band.

Each band's color is the most frequent quantized bucket among its opaque
pixels, so the palette reads top to bottom the way the image does.
"""

import numpy as np
from PIL import Image, UnidentifiedImageError
from dataclasses import dataclass


# =============================================================================
# Constants
# =============================================================================

MAX_ANALYSIS_DIMENSION = 800  # Longest side after downsampling
ALPHA_THRESHOLD = 128  # Pixels below this alpha are skipped
CHANNEL_BUCKET = 10  # Channels are rounded to multiples of this
BUCKET_LEVELS = 255 // CHANNEL_BUCKET + 2  # 0..26 after rounding

MIN_COLORS = 2
MAX_COLORS = 12
DEFAULT_COLOR_COUNT = 7
FALLBACK_COLOR = '#ffffff'

# Image size limits (security: prevent decompression bombs)
MAX_IMAGE_PIXELS = 50_000_000  # 50 megapixels
MAX_IMAGE_DIMENSION = 10_000  # 10k pixels per side


# =============================================================================
# Errors
# =============================================================================

class PaletteError(Exception):
    """Base class for palette extraction failures."""


class ImageLoadError(PaletteError):
    """The source image could not be decoded."""


class ContextError(PaletteError):
    """Pixel data could not be obtained from the decoded image."""


# =============================================================================
# Color Conversion
# =============================================================================

def rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{int(r):02x}{int(g):02x}{int(b):02x}"


def hex_to_rgb(hex_color: str) -> tuple:
    """Convert '#rrggbb' (or 'rrggbb') to an (r, g, b) tuple."""
    value = hex_color.lstrip('#')
    if len(value) != 6:
        raise ValueError(f"Not a 6-digit hex color: {hex_color!r}")
    return tuple(int(value[i:i + 2], 16) for i in (0, 2, 4))


# =============================================================================
# Data Types
# =============================================================================

@dataclass
class RasterBuffer:
    """Decoded RGBA pixels."""
    pixels: np.ndarray  # (height, width, 4) uint8

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @classmethod
    def from_array(cls, array) -> 'RasterBuffer':
        """
        Wrap an RGB or RGBA array. RGB input is treated as fully opaque.

        Raises:
            ContextError: If the array is not (h, w, 3) or (h, w, 4) or is empty
        """
        pixels = np.asarray(array)
        if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise ContextError(f"Expected (height, width, 3|4) pixels, got shape {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise ContextError("Pixel buffer is empty")

        pixels = np.clip(pixels, 0, 255).astype(np.uint8)
        if pixels.shape[2] == 3:
            alpha = np.full(pixels.shape[:2] + (1,), 255, dtype=np.uint8)
            pixels = np.concatenate([pixels, alpha], axis=2)
        return cls(pixels=pixels)

    @classmethod
    def from_image(cls, img: Image.Image) -> 'RasterBuffer':
        """Convert a Pillow image of any mode to an RGBA buffer."""
        try:
            rgba = img.convert('RGBA')
            pixels = np.array(rgba)
        except (OSError, ValueError) as e:
            raise ContextError(f"Could not read pixel data: {e}") from e
        return cls.from_array(pixels)


@dataclass
class ColorPalette:
    """Ordered band colors, top of the image first."""
    colors: list  # Hex strings, one per band
    dominant: str  # colors[len(colors) // 2]

    @classmethod
    def from_colors(cls, colors) -> 'ColorPalette':
        colors = list(colors)
        if not colors:
            raise ValueError("A palette needs at least one color")
        return cls(colors=colors, dominant=colors[len(colors) // 2])

    def __len__(self) -> int:
        return len(self.colors)


# =============================================================================
# Loading
# =============================================================================

def load_image(source) -> RasterBuffer:
    """
    Decode an image file into an RGBA buffer.

    Args:
        source: Path or binary file object

    Raises:
        ImageLoadError: If the file is missing, undecodable, or exceeds size limits
        ContextError: If the decoded image has no usable pixel data
    """
    try:
        img = Image.open(source)
        img.load()
    except FileNotFoundError as e:
        raise ImageLoadError(f"Image not found: {source}") from e
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageLoadError(f"Could not open image: {e}") from e

    width, height = img.size
    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        raise ImageLoadError(
            f"Image dimensions {width}x{height} exceed maximum "
            f"{MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION}"
        )
    if width * height > MAX_IMAGE_PIXELS:
        raise ImageLoadError(
            f"Image has {width * height:,} pixels, exceeding maximum {MAX_IMAGE_PIXELS:,}"
        )

    return RasterBuffer.from_image(img)


# =============================================================================
# Quantization
# =============================================================================

def downsample(raster: RasterBuffer, max_dimension: int = MAX_ANALYSIS_DIMENSION) -> RasterBuffer:
    """Shrink so the longest side is at most max_dimension, keeping aspect ratio."""
    w, h = raster.width, raster.height
    if w <= max_dimension and h <= max_dimension:
        return raster

    ratio = min(max_dimension / w, max_dimension / h)
    new_size = (max(1, int(w * ratio)), max(1, int(h * ratio)))

    img = Image.fromarray(raster.pixels)
    resized = img.resize(new_size, Image.Resampling.LANCZOS)
    return RasterBuffer(pixels=np.array(resized))


def band_bounds(height: int, count: int) -> list[tuple[int, int]]:
    """
    Row ranges [start, end) for count horizontal bands.

    Bands share floor(height / count) rows; the last band runs to the bottom
    edge and picks up the remainder. When count exceeds height, trailing
    bands are empty.
    """
    band_height = max(1, height // count)
    bounds = []
    for i in range(count):
        start = min(i * band_height, height)
        end = height if i == count - 1 else min((i + 1) * band_height, height)
        bounds.append((start, max(start, end)))
    return bounds


def quantize_channels(rgb: np.ndarray) -> np.ndarray:
    """Round channels half-up to CHANNEL_BUCKET multiples, as bucket indices."""
    return np.floor(rgb.astype(np.float64) / CHANNEL_BUCKET + 0.5).astype(np.int32)


def dominant_band_color(band: np.ndarray) -> str:
    """
    Most frequent quantized color among the opaque pixels of one band.

    The bucket's representative is the first pixel (row-major) that fell into
    it, unquantized. Equal counts go to the bucket seen first.

    Args:
        band: (rows, width, 4) uint8 RGBA slice

    Returns:
        Hex color, or FALLBACK_COLOR when the band has no opaque pixels
    """
    flat = band.reshape(-1, 4)
    opaque = flat[flat[:, 3] >= ALPHA_THRESHOLD][:, :3]
    if len(opaque) == 0:
        return FALLBACK_COLOR

    levels = quantize_channels(opaque)
    keys = (levels[:, 0] * BUCKET_LEVELS + levels[:, 1]) * BUCKET_LEVELS + levels[:, 2]

    _, first_index, counts = np.unique(keys, return_index=True, return_counts=True)

    # Highest count first, earliest occurrence breaks ties
    best = np.lexsort((first_index, -counts))[0]
    r, g, b = opaque[first_index[best]]
    return rgb_to_hex(r, g, b)


def quantize(raster: RasterBuffer, target_count: int) -> ColorPalette:
    """
    Reduce an image to target_count colors, one per horizontal band.

    Deterministic: the same pixels and count always give the same palette.

    Args:
        raster: Decoded RGBA pixels
        target_count: Number of colors, MIN_COLORS..MAX_COLORS

    Returns:
        ColorPalette with colors in top-to-bottom order
    """
    if not MIN_COLORS <= target_count <= MAX_COLORS:
        raise ValueError(
            f"Color count must be between {MIN_COLORS} and {MAX_COLORS}, got {target_count}"
        )
    if not isinstance(raster, RasterBuffer):
        raster = RasterBuffer.from_array(raster)

    pixels = downsample(raster).pixels

    colors = [
        dominant_band_color(pixels[start:end])
        for start, end in band_bounds(pixels.shape[0], target_count)
    ]

    # Guard against degenerate inputs
    while len(colors) < target_count:
        colors.append(colors[-1] if colors else FALLBACK_COLOR)

    return ColorPalette.from_colors(colors)


def extract_palette(source, color_count: int = DEFAULT_COLOR_COUNT) -> ColorPalette:
    """Load an image file and quantize it."""
    return quantize(load_image(source), color_count)


if __name__ == '__main__':
    import sys

    if len(sys.argv) < 2:
        print("Usage: python extract_colors.py <image_path> [color_count]")
        sys.exit(1)

    count = int(sys.argv[2]) if len(sys.argv) > 2 else DEFAULT_COLOR_COUNT
    palette = extract_palette(sys.argv[1], count)

    print(f"Extracted {len(palette)} colors (top to bottom):")
    for i, color in enumerate(palette.colors):
        marker = '  <- dominant' if i == len(palette) // 2 else ''
        print(f"  {i + 1:2d}. {color}{marker}")
