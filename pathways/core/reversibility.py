# ═══════════════════════════════════════════════════════════════════════════════
# PART 5: REVERSIBILITY
# Design: C2 (Clinical Psychology)
# Implementation: I2 (Numerics)
# ═══════════════════════════════════════════════════════════════════════════════


"""
C2: "You can un-feel a bad afternoon. You cannot un-learn that pain is
survivable. Habituation to pain and fear is permanent, so when we look
backward past a trauma we have to say the answer is an estimate."

I2: "Dimension-level lookup: monotonic means irreversible. Everything bounded
can be reversed, clamping at the range if it has to."
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING, Optional

import numpy as np

from pathways.core.state import IndividualState, StatePath
from pathways.core.state_value import CHRONIC_HALF_LIFE_MULTIPLIER, StateValue

if TYPE_CHECKING:
    from pathways.core.interpreter import InterpretedEvent


REVERSAL_EPSILON = 1e-10

# exp(700) is close to the float64 ceiling
MAX_REVERSAL_EXPONENT = 700.0


class Reversibility(Enum):
    REVERSIBLE = "reversible"
    NON_REVERSIBLE = "non_reversible"


class ReversibilityError(Exception):
    """Base exception for strict decay reversal."""
    pass


class NonReversibleDimensionError(ReversibilityError):
    """Dimension has no half-life, so there is no decay to undo."""
    pass


class FeedbackLoopError(ReversibilityError):
    """Value was written by a spiral; its history is not a pure decay."""
    pass


class InvalidReversalError(ReversibilityError):
    """Reversal is numerically undefined (bad half-life, overflow)."""
    pass


# ── Dimension checks ─────────────────────────────────────────────────────────


def check_reversibility(value: StateValue) -> Reversibility:
    """NON_REVERSIBLE for non-decaying or feedback-affected values."""
    if value.half_life is None or value.feedback_loop_affected:
        return Reversibility.NON_REVERSIBLE
    return Reversibility.REVERSIBLE


def is_reversible(
    path: StatePath,
    interpreted: Optional["InterpretedEvent"] = None,
    state: Optional[IndividualState] = None,
) -> bool:
    """
    Whether an event's effect on `path` can be subtracted back out.

    Only monotonic accumulators are irreversible. Range violations during
    reversal are clamped and still count as reversible.

    Args:
        path: Dimension the effect lands on.
        interpreted: The event whose effect is being reversed. A path the event
            does not touch is trivially reversible.
        state: State to look the dimension up in (defaults to a fresh one).
    """
    if interpreted is not None and path not in interpreted.state_deltas:
        return True
    if state is None:
        state = IndividualState()
    return not state.get_value(path).is_monotonic


# ── Strict reversal ──────────────────────────────────────────────────────────


def reverse_decay(value: StateValue, elapsed: timedelta, time_scale: float = 1.0) -> StateValue:
    """
    Return a copy of `value` with `elapsed` worth of decay undone.

    The acute and chronic deltas are inverted separately, each with its own
    half-life. Nothing is clamped.

    Raises:
        FeedbackLoopError: If the value was touched by a spiral.
        NonReversibleDimensionError: If the value never decays.
        InvalidReversalError: On overflow.
    """
    if value.feedback_loop_affected:
        raise FeedbackLoopError(
            "State has been affected by feedback loop effects (stress or depression spiral)"
        )
    reversed_value = value.copy()
    reversed_value.delta = reverse_decay_raw(value.delta, elapsed, value.half_life, time_scale)
    if value.chronic_delta != 0.0:
        reversed_value.chronic_delta = reverse_decay_raw(
            value.chronic_delta, elapsed, value.half_life * CHRONIC_HALF_LIFE_MULTIPLIER, time_scale
        )
    return reversed_value


def reverse_decay_raw(
    current_delta: float,
    elapsed: timedelta,
    half_life: Optional[timedelta],
    time_scale: float = 1.0,
) -> float:
    """Unclamped inverse of exponential decay for a single delta."""
    if half_life is None:
        raise NonReversibleDimensionError("Dimension has no decay (infinite half-life)")
    if elapsed <= timedelta(0):
        return current_delta
    if abs(current_delta) < REVERSAL_EPSILON:
        return 0.0
    if half_life <= timedelta(0):
        raise InvalidReversalError("Half-life must be positive")

    exponent = float(np.log(2.0)) * ((elapsed * time_scale) / half_life)
    if exponent > MAX_REVERSAL_EXPONENT:
        raise InvalidReversalError("Reversal exponent too large - numerical overflow")

    original = current_delta * float(np.exp(exponent))
    if not np.isfinite(original):
        raise InvalidReversalError("Reversal produced invalid result")
    return original
