#!/usr/bin/env python3
"""
Drag controller for manual color stop positions.

Positions are whole percentages, one per palette color, pinned to 0 and 100
at the ends with at least MIN_STOP_GAP points between neighbors. Changes are
published as new GradientCustomizationSettings through a debouncer, so a
continuous drag triggers at most one recomputation per quiet period.
"""

import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from synthesize_gradients import GradientCustomizationSettings


MIN_STOP_GAP = 2  # Percentage points between adjacent stops
DEBOUNCE_SECONDS = 0.05


class InvalidTransitionError(RuntimeError):
    """A drag operation was requested from a state that does not allow it."""


class DragState(Enum):
    IDLE = 'idle'
    DRAGGING = 'dragging'


@dataclass
class AdjusterUpdate:
    positions: list  # Copy of the positions after the transition
    settings: Optional[GradientCustomizationSettings] = None  # Set only on change


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def even_positions(count: int) -> list[int]:
    """Equally spaced whole percentages from 0 to 100."""
    if count < 2:
        return [0] * count
    return [round_half_up(i / (count - 1) * 100) for i in range(count)]


def positions_valid(positions, count: int) -> bool:
    """True when positions fit count colors, span 0..100 and keep the minimum gap."""
    if len(positions) != count or count < 2:
        return False
    if positions[0] != 0 or positions[-1] != 100:
        return False
    return all(b - a >= MIN_STOP_GAP for a, b in zip(positions, positions[1:]))


class Debouncer:
    """
    Runs the most recently scheduled call once the delay passes without a new one.

    A zero delay runs calls synchronously.
    """

    def __init__(self, delay: float = DEBOUNCE_SECONDS):
        self.delay = delay
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[tuple] = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def schedule(self, fn: Callable, *args) -> None:
        if self.delay <= 0:
            self.cancel()
            fn(*args)
            return
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = (fn, args)
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None

    def flush(self) -> None:
        """Run the pending call now, if any."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            pending, self._pending, self._timer = self._pending, None, None
        if pending is not None:
            fn, args = pending
            fn(*args)

    def _fire(self) -> None:
        with self._lock:
            pending, self._pending, self._timer = self._pending, None, None
        if pending is not None:
            fn, args = pending
            fn(*args)


class PositionAdjuster:
    """
    State machine: IDLE -> start_drag -> DRAGGING -> end_drag -> IDLE.

    Every transition returns an AdjusterUpdate; its settings field is only set
    when the positions actually changed.
    """

    def __init__(self, color_count: int,
                 settings: Optional[GradientCustomizationSettings] = None,
                 on_settings_change: Optional[Callable[[GradientCustomizationSettings], None]] = None,
                 debounce_delay: float = DEBOUNCE_SECONDS,
                 debouncer: Optional[Debouncer] = None):
        if color_count < 2:
            raise ValueError(f"Need at least 2 colors to position, got {color_count}")
        self.settings = settings or GradientCustomizationSettings()
        self.on_settings_change = on_settings_change
        self.debouncer = debouncer or Debouncer(debounce_delay)
        self.state = DragState.IDLE
        self.dragging_index: Optional[int] = None

        initial = self.settings.custom_color_positions
        if initial is not None and positions_valid(initial, color_count):
            self.positions = [int(p) for p in initial]
        else:
            self.positions = even_positions(color_count)

    @property
    def color_count(self) -> int:
        return len(self.positions)

    def start_drag(self, index: int) -> AdjusterUpdate:
        if self.state is DragState.DRAGGING:
            raise InvalidTransitionError(f"Already dragging divider {self.dragging_index}")
        if not 0 <= index < self.color_count:
            raise IndexError(f"Divider index {index} out of range for {self.color_count} colors")
        self.state = DragState.DRAGGING
        self.dragging_index = index
        return AdjusterUpdate(positions=list(self.positions))

    def update_drag(self, pointer_percent: float) -> AdjusterUpdate:
        """Move the dragged divider toward pointer_percent, within its bounds."""
        if self.state is not DragState.DRAGGING:
            return AdjusterUpdate(positions=list(self.positions))

        i = self.dragging_index
        low, high = self.bounds(i)
        target = round_half_up(min(high, max(low, pointer_percent)))
        if target == self.positions[i]:
            return AdjusterUpdate(positions=list(self.positions))

        self.positions[i] = target
        return AdjusterUpdate(positions=list(self.positions), settings=self._publish())

    def end_drag(self) -> AdjusterUpdate:
        self.state = DragState.IDLE
        self.dragging_index = None
        return AdjusterUpdate(positions=list(self.positions))

    def reset(self) -> AdjusterUpdate:
        """Return to equal spacing and publish it."""
        if self.state is DragState.DRAGGING:
            raise InvalidTransitionError("Cannot reset while a divider is being dragged")
        self.positions = even_positions(self.color_count)
        return AdjusterUpdate(positions=list(self.positions), settings=self._publish())

    def set_color_count(self, color_count: int) -> AdjusterUpdate:
        """Regenerate even positions when the palette size changes."""
        if color_count < 2:
            raise ValueError(f"Need at least 2 colors to position, got {color_count}")
        if color_count == self.color_count:
            return AdjusterUpdate(positions=list(self.positions))
        if self.state is DragState.DRAGGING:
            raise InvalidTransitionError("Cannot change color count while dragging")
        self.positions = even_positions(color_count)
        return AdjusterUpdate(positions=list(self.positions), settings=self._publish())

    def bounds(self, index: int) -> tuple[int, int]:
        """Allowed [low, high] range for one divider."""
        last = self.color_count - 1
        if index == 0:
            return 0, 0
        if index == last:
            return 100, 100
        return self.positions[index - 1] + MIN_STOP_GAP, self.positions[index + 1] - MIN_STOP_GAP

    def flush(self) -> None:
        self.debouncer.flush()

    def _publish(self) -> GradientCustomizationSettings:
        self.settings = self.settings.with_positions(self.positions)
        if self.on_settings_change is not None:
            self.debouncer.schedule(self.on_settings_change, self.settings)
        return self.settings
