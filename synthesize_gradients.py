#!/usr/bin/env python3
"""
Synthesize CSS linear gradients from a color palette.

Approach:
1. Pick stop placement per template: explicit custom positions, or positions
   derived from blend hardness (soft plateaus around each color)
2. Keep stops in palette order, pulling any stop that would step backwards
   up to the furthest position seen so far (the CSS rule for out-of-order
   stops), so every stop list is non-decreasing
3. Serialize each template as a linear-gradient() string
"""

import logging
import re
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from extract_colors import ColorPalette


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_BLEND_HARDNESS = 50
MAX_OVERLAP = 20  # Percentage width of the widest blend band
MIN_OVERLAP = 1
HARD_EDGE_SMOOTHNESS = 0.1  # Below this, colors meet without plateaus


@dataclass(frozen=True)
class Template:
    """One direction/style configuration produced on every synthesis call."""
    label: str
    direction: str  # CSS direction argument
    hardness_offset: int = 0  # Added to blend hardness, result clamped to 0..100


# Hardness is applied as smoothness = H / 100, so a negative offset makes a
# variant harder: "soft" (H - 20) has narrower blend bands than plain
# "to bottom" and "balanced" (H + 10) has wider ones. The labels are kept
# as the names users know the variants by.
TEMPLATES = (
    Template('to bottom', 'to bottom'),
    Template('to bottom (soft)', 'to bottom', -20),
    Template('to bottom (emphasized)', 'to bottom', -10),
    Template('to bottom (balanced)', 'to bottom', 10),
    Template('to bottom slight right', '170deg'),
    Template('to bottom slight left', '190deg'),
    Template('to right', 'to right'),
    Template('to left', 'to left'),
    Template('to bottom right', 'to bottom right'),
    Template('to bottom left', 'to bottom left'),
    Template('to top', 'to top'),
)


class GradientType(str, Enum):
    LINEAR = 'linear'
    RADIAL = 'radial'
    CONIC = 'conic'


# =============================================================================
# Data Types
# =============================================================================

@dataclass(frozen=True)
class GradientCustomizationSettings:
    """User-tunable synthesis parameters. Immutable, so safe to snapshot."""
    blend_hardness: float = DEFAULT_BLEND_HARDNESS  # 0 = hard bands, 100 = softest
    custom_color_positions: Optional[tuple] = None  # One percentage per color

    def __post_init__(self):
        if not 0 <= self.blend_hardness <= 100:
            raise ValueError(f"blend_hardness must be within 0-100, got {self.blend_hardness}")
        if self.custom_color_positions is not None:
            positions = tuple(self.custom_color_positions)
            check_positions(positions)
            object.__setattr__(self, 'custom_color_positions', positions)

    def with_positions(self, positions) -> 'GradientCustomizationSettings':
        return replace(self, custom_color_positions=tuple(positions))

    def to_key(self) -> str:
        positions = self.custom_color_positions or ()
        return f"{key_number(self.blend_hardness)}:{','.join(key_number(p) for p in positions)}"


def check_positions(positions) -> None:
    """Raise ValueError unless positions run non-decreasing from 0 to 100."""
    if not positions:
        raise ValueError("custom_color_positions must not be empty")
    if positions[0] != 0 or positions[-1] != 100:
        raise ValueError(f"custom_color_positions must start at 0 and end at 100, got {list(positions)}")
    for a, b in zip(positions, positions[1:]):
        if b < a:
            raise ValueError(f"custom_color_positions must be non-decreasing, got {list(positions)}")
        if not 0 <= b <= 100:
            raise ValueError(f"custom_color_positions must stay within 0-100, got {list(positions)}")


def key_number(value: float) -> str:
    """Exact text form of a number: 35 and 35.0 both give '35'."""
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


@dataclass(frozen=True)
class Gradient:
    id: str
    type: GradientType
    direction: str  # Template label
    css: str
    customization_settings: GradientCustomizationSettings = field(
        default_factory=GradientCustomizationSettings
    )


# =============================================================================
# Stop Placement
# =============================================================================

def format_position(position: float) -> str:
    """Percentage with at most two decimals and no trailing zeros."""
    text = f"{position:.2f}".rstrip('0').rstrip('.')
    return '0' if text == '-0' else text


def format_css(direction: str, stops: list[tuple[str, float]]) -> str:
    body = ', '.join(f"{color} {format_position(pos)}%" for color, pos in stops)
    return f"linear-gradient({direction}, {body})"


_STOP_POSITION = re.compile(r'(-?\d+(?:\.\d+)?)%')


def parse_stop_positions(css: str) -> list[float]:
    """Read the stop percentages back out of a linear-gradient() string."""
    return [float(m) for m in _STOP_POSITION.findall(css)]


def compute_stops(colors: list[str], hardness: float) -> list[tuple[str, float]]:
    """
    Place each color along 0-100% according to blend hardness.

    Softer settings widen a plateau around every color: the first color holds
    until `overlap`%, interior colors span `overlap`% centered on their even
    spacing slot, and the last color holds from 100 - `overlap`%.

    Args:
        colors: Ordered hex colors
        hardness: 0 (one stop per color) to 100 (widest blend bands)

    Returns:
        (color, position) pairs in palette order, non-decreasing in position
    """
    n = len(colors)
    if n == 0:
        return []
    if n == 1:
        return [(colors[0], 0.0)]

    smoothness = hardness / 100
    overlap = max(MIN_OVERLAP, MAX_OVERLAP * smoothness)
    soft = smoothness > HARD_EDGE_SMOOTHNESS

    stops = [(colors[0], 0.0)]
    if soft:
        stops.append((colors[0], overlap))

    for i in range(1, n - 1):
        base = i / (n - 1) * 100
        if smoothness < HARD_EDGE_SMOOTHNESS:
            stops.append((colors[i], base))
        else:
            for pos in (base - overlap / 2, base, base + overlap / 2):
                stops.append((colors[i], min(100.0, max(0.0, pos))))

    if soft:
        stops.append((colors[-1], 100.0 - overlap))
    stops.append((colors[-1], 100.0))

    # Crowded palettes can push a stop behind an earlier color's plateau
    placed = []
    furthest = 0.0
    for color, pos in stops:
        furthest = max(furthest, pos)
        placed.append((color, furthest))
    return placed


def custom_stops(colors: list[str], positions) -> list[tuple[str, float]]:
    return [(color, float(pos)) for color, pos in zip(colors, positions)]


def template_hardness(template: Template, hardness: float) -> float:
    return min(100, max(0, hardness + template.hardness_offset))


# =============================================================================
# Synthesis
# =============================================================================

def synthesize(palette, settings: Optional[GradientCustomizationSettings] = None) -> list[Gradient]:
    """
    Build one gradient per template from a palette.

    Custom color positions, when they match the palette length, are used
    verbatim for every template. A length mismatch falls back to
    hardness-derived placement.

    Args:
        palette: ColorPalette or ordered list of hex colors
        settings: Customization settings (defaults when None)

    Returns:
        List of Gradient, one per entry in TEMPLATES; empty for an empty palette
    """
    colors = list(palette.colors if isinstance(palette, ColorPalette) else palette)
    if settings is None:
        settings = GradientCustomizationSettings()
    if not colors:
        return []

    positions = settings.custom_color_positions
    if positions is not None and len(positions) != len(colors):
        logger.debug(
            "Ignoring %d custom positions for a %d-color palette",
            len(positions), len(colors),
        )
        positions = None

    gradients = []
    for template in TEMPLATES:
        if positions is not None:
            stops = custom_stops(colors, positions)
        else:
            stops = compute_stops(colors, template_hardness(template, settings.blend_hardness))

        gradients.append(Gradient(
            id=str(uuid.uuid4()),
            type=GradientType.LINEAR,
            direction=template.label,
            css=format_css(template.direction, stops),
            customization_settings=settings,
        ))

    return gradients


if __name__ == '__main__':
    import sys

    if len(sys.argv) < 3:
        print("Usage: python synthesize_gradients.py <hardness> <hex> <hex> [<hex> ...]")
        sys.exit(1)

    cli_settings = GradientCustomizationSettings(blend_hardness=float(sys.argv[1]))
    for gradient in synthesize(sys.argv[2:], cli_settings):
        print(f"{gradient.direction:>24}: {gradient.css}")
