# ═══════════════════════════════════════════════════════════════════════════════
# PART 4: DECAY
# Design: A1 (Affective Science)
# Implementation: I2 (Numerics)
# ═══════════════════════════════════════════════════════════════════════════════


"""
A1: "Feelings fade. Exponential decay toward baseline, one half-life per
dimension. The baseline itself does not move."

I2: "Closed form in both directions. Forward multiplies by 2^(-t/h), backward
by 2^(+t/h). Backward blows up for long spans, so clamp to the range the
dimension could actually have held."
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

import numpy as np

from pathways.core.reversibility import MAX_REVERSAL_EXPONENT, REVERSAL_EPSILON
from pathways.core.state import IndividualState
from pathways.core.state_value import CHRONIC_HALF_LIFE_MULTIPLIER, StateValue


class DecayProcessor:
    """
    Decay strategy interface.

    Both methods mutate a working copy in place. Use `advance` / `regress`
    for the pure versions.
    """

    def apply(self, state: IndividualState, elapsed: timedelta, time_scale: float = 1.0) -> None:
        raise NotImplementedError

    def reverse(self, state: IndividualState, elapsed: timedelta, time_scale: float = 1.0) -> None:
        raise NotImplementedError

    def decay_value(self, value: StateValue, elapsed: timedelta, time_scale: float = 1.0) -> None:
        """Forward decay of a single value, with the same rules as `apply`."""
        raise NotImplementedError


class StateDecayProcessor(DecayProcessor):
    """Exponential half-life decay, scaled by species time."""

    def apply(self, state: IndividualState, elapsed: timedelta, time_scale: float = 1.0) -> None:
        if elapsed <= timedelta(0):
            return
        state.apply_decay(elapsed * time_scale)

    def decay_value(self, value: StateValue, elapsed: timedelta, time_scale: float = 1.0) -> None:
        if elapsed <= timedelta(0):
            return
        value.apply_decay(elapsed * time_scale)

    def reverse(self, state: IndividualState, elapsed: timedelta, time_scale: float = 1.0) -> None:
        if elapsed <= timedelta(0):
            return
        scaled = elapsed * time_scale
        for _, value in state.dimension_values():
            reverse_value_decay(value, scaled)


class NoOpDecayProcessor(DecayProcessor):
    """For entities whose state should not passively decay."""

    def apply(self, state: IndividualState, elapsed: timedelta, time_scale: float = 1.0) -> None:
        return

    def reverse(self, state: IndividualState, elapsed: timedelta, time_scale: float = 1.0) -> None:
        return

    def decay_value(self, value: StateValue, elapsed: timedelta, time_scale: float = 1.0) -> None:
        return


def advance(
    state: IndividualState,
    elapsed: timedelta,
    processor: Optional[DecayProcessor] = None,
    time_scale: float = 1.0,
) -> IndividualState:
    """Decay a copy of `state` forward by `elapsed`."""
    processor = processor or StateDecayProcessor()
    new_state = state.copy()
    processor.apply(new_state, elapsed, time_scale)
    return new_state


def regress(
    state: IndividualState,
    elapsed: timedelta,
    processor: Optional[DecayProcessor] = None,
    time_scale: float = 1.0,
) -> IndividualState:
    """Undo `elapsed` worth of decay on a copy of `state`."""
    processor = processor or StateDecayProcessor()
    new_state = state.copy()
    processor.reverse(new_state, elapsed, time_scale)
    return new_state


def reverse_value_decay(value: StateValue, elapsed: timedelta) -> None:
    """
    Invert decay on one value, in place.

    Acute and chronic deltas are inverted with their own half-lives. Results
    are clamped so base + delta stays inside [min_bound, max_bound]. Monotonic
    and non-decaying values are left alone.
    """
    if value.is_monotonic or value.half_life is None or value.half_life <= timedelta(0):
        return

    ratio = elapsed / value.half_life
    low = value.min_bound - value.base
    high = value.max_bound - value.base

    value.delta = _grow(value.delta, ratio, low, high)
    value.chronic_delta = _grow(
        value.chronic_delta, ratio / CHRONIC_HALF_LIFE_MULTIPLIER, low, high
    )


def _grow(delta: float, half_lives: float, low: float, high: float) -> float:
    if abs(delta) < REVERSAL_EPSILON:
        return delta
    exponent = np.log(2.0) * half_lives
    if exponent > MAX_REVERSAL_EXPONENT:
        # Any non-zero delta would already be far outside the range
        return high if delta > 0 else low
    return float(np.clip(delta * np.exp(exponent), low, high))
