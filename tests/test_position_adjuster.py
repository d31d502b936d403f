"""Tests for the stop position drag controller."""

import random
import threading

import pytest

from position_adjuster import (
    MIN_STOP_GAP, Debouncer, DragState, InvalidTransitionError, PositionAdjuster,
    even_positions, positions_valid,
)
from synthesize_gradients import GradientCustomizationSettings


def immediate(count, **kwargs):
    """Adjuster whose published settings are delivered synchronously."""
    return PositionAdjuster(count, debounce_delay=0, **kwargs)


@pytest.mark.parametrize("count,expected", [
    (2, [0, 100]),
    (3, [0, 50, 100]),
    (5, [0, 25, 50, 75, 100]),
    (7, [0, 17, 33, 50, 67, 83, 100]),
])
def test_even_positions(count, expected):
    assert even_positions(count) == expected
    assert immediate(count).positions == expected


def test_drag_cycle_changes_state():
    adjuster = immediate(4)
    assert adjuster.state is DragState.IDLE

    adjuster.start_drag(2)
    assert adjuster.state is DragState.DRAGGING
    assert adjuster.dragging_index == 2

    adjuster.end_drag()
    assert adjuster.state is DragState.IDLE
    assert adjuster.dragging_index is None


def test_interior_divider_moves_and_publishes():
    adjuster = immediate(3)
    adjuster.start_drag(1)

    update = adjuster.update_drag(30)

    assert update.positions == [0, 30, 100]
    assert update.settings.custom_color_positions == (0, 30, 100)
    assert adjuster.settings is update.settings


def test_interior_divider_clamped_to_neighbors():
    adjuster = immediate(3)
    adjuster.start_drag(1)

    assert adjuster.update_drag(-40).positions == [0, 2, 100]
    assert adjuster.update_drag(150).positions == [0, 98, 100]


def test_pointer_is_rounded_half_up():
    adjuster = immediate(3)
    adjuster.start_drag(1)

    assert adjuster.update_drag(33.5).positions[1] == 34
    assert adjuster.update_drag(33.4).positions[1] == 33


@pytest.mark.parametrize("index,pinned", [(0, 0), (3, 100)])
def test_end_dividers_are_pinned(index, pinned):
    adjuster = immediate(4)
    adjuster.start_drag(index)

    update = adjuster.update_drag(50)

    assert update.positions[index] == pinned
    assert update.settings is None


def test_unchanged_position_publishes_nothing():
    published = []
    adjuster = immediate(3, on_settings_change=published.append)
    adjuster.start_drag(1)

    update = adjuster.update_drag(50.2)

    assert update.settings is None
    assert published == []


def test_updates_after_end_drag_are_ignored():
    adjuster = immediate(3)
    adjuster.start_drag(1)
    adjuster.update_drag(40)
    adjuster.end_drag()

    update = adjuster.update_drag(70)

    assert update.positions == [0, 40, 100]
    assert update.settings is None


def test_start_drag_twice_rejected():
    adjuster = immediate(3)
    adjuster.start_drag(1)

    with pytest.raises(InvalidTransitionError):
        adjuster.start_drag(1)


def test_start_drag_index_out_of_range():
    adjuster = immediate(3)

    with pytest.raises(IndexError):
        adjuster.start_drag(3)
    assert adjuster.state is DragState.IDLE


def test_reset_restores_even_spacing_and_publishes():
    published = []
    adjuster = immediate(5, on_settings_change=published.append)
    adjuster.start_drag(2)
    adjuster.update_drag(35)
    adjuster.end_drag()

    update = adjuster.reset()

    assert update.positions == [0, 25, 50, 75, 100]
    assert published[-1].custom_color_positions == (0, 25, 50, 75, 100)


def test_reset_while_dragging_rejected():
    adjuster = immediate(3)
    adjuster.start_drag(1)

    with pytest.raises(InvalidTransitionError):
        adjuster.reset()


def test_color_count_change_regenerates_positions():
    adjuster = immediate(3)
    adjuster.start_drag(1)
    adjuster.update_drag(20)
    adjuster.end_drag()

    update = adjuster.set_color_count(5)

    assert update.positions == [0, 25, 50, 75, 100]
    assert update.settings.custom_color_positions == (0, 25, 50, 75, 100)
    assert adjuster.color_count == 5


def test_same_color_count_keeps_positions():
    adjuster = immediate(3)
    adjuster.start_drag(1)
    adjuster.update_drag(20)
    adjuster.end_drag()

    update = adjuster.set_color_count(3)

    assert update.positions == [0, 20, 100]
    assert update.settings is None


def test_initial_positions_come_from_settings():
    settings = GradientCustomizationSettings(blend_hardness=10, custom_color_positions=[0, 10, 60, 100])

    adjuster = immediate(4, settings=settings)

    assert adjuster.positions == [0, 10, 60, 100]


@pytest.mark.parametrize("positions", [
    [0, 50, 100],        # wrong length
    [0, 1, 60, 100],     # gap below minimum
    [0, 60, 60, 100],    # repeated position
])
def test_unusable_initial_positions_fall_back_to_even(positions):
    settings = GradientCustomizationSettings(custom_color_positions=positions)

    adjuster = immediate(4, settings=settings)

    assert adjuster.positions == [0, 33, 67, 100]


def test_random_drags_keep_gap_invariant():
    rng = random.Random(7)
    adjuster = immediate(8)

    for _ in range(300):
        adjuster.start_drag(rng.randrange(8))
        for _ in range(rng.randrange(1, 6)):
            adjuster.update_drag(rng.uniform(-20, 120))
        adjuster.end_drag()

        p = adjuster.positions
        assert p[0] == 0 and p[-1] == 100
        assert all(b - a >= MIN_STOP_GAP for a, b in zip(p, p[1:]))
        assert positions_valid(p, 8)


def test_drag_burst_is_debounced_into_one_publish():
    published = []
    adjuster = PositionAdjuster(4, on_settings_change=published.append,
                                debouncer=Debouncer(delay=10))
    adjuster.start_drag(1)

    for pointer in (10, 12, 15, 20, 22):
        adjuster.update_drag(pointer)

    assert published == []
    assert adjuster.debouncer.pending

    adjuster.flush()

    assert len(published) == 1
    assert published[0].custom_color_positions == (0, 22, 67, 100)
    adjuster.debouncer.cancel()


def test_debounced_publish_fires_after_delay():
    fired = threading.Event()
    published = []

    def on_change(settings):
        published.append(settings)
        fired.set()

    adjuster = PositionAdjuster(3, on_settings_change=on_change, debounce_delay=0.01)
    adjuster.start_drag(1)
    adjuster.update_drag(70)

    assert fired.wait(timeout=2)
    assert published[0].custom_color_positions == (0, 70, 100)


def test_debouncer_cancel_drops_pending_call():
    calls = []
    debouncer = Debouncer(delay=10)

    debouncer.schedule(calls.append, 1)
    debouncer.cancel()
    debouncer.flush()

    assert calls == []
    assert not debouncer.pending


def test_too_few_colors_rejected():
    with pytest.raises(ValueError):
        PositionAdjuster(1)
