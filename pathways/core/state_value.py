# ═══════════════════════════════════════════════════════════════════════════════
# PART 1: STATE VALUES
# Design: A1 (Affective Science)
# Implementation: I2 (Numerics)
# ═══════════════════════════════════════════════════════════════════════════════


"""
A1: "Every psychological dimension is a trait-like baseline plus a state-like
deviation. The baseline is who you are; the deviation is what just happened to
you, and it fades."

I2: "Effective value = clip(base + delta + chronic_delta). Acute deltas decay
with the dimension's half-life, chronic deltas four times slower. Acquired
capability is its own kind: it only ever goes up."
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

import numpy as np


# Chronic deltas decay this many times slower than acute ones
CHRONIC_HALF_LIFE_MULTIPLIER = 4

DEFAULT_HALF_LIFE = timedelta(days=7)


@dataclass
class StateValue:
    """
    A bounded scalar dimension.

    Attributes:
        base: Stable baseline (trait-like).
        delta: Acute deviation from baseline, decays with half_life.
        chronic_delta: Persistent deviation, decays 4x slower.
        half_life: Decay half-life. None means the delta never decays.
        min_bound / max_bound: Valid range for the effective value.
        feedback_loop_affected: Set once a spiral has written to this value.
    """
    base: float = 0.5
    delta: float = 0.0
    chronic_delta: float = 0.0
    half_life: Optional[timedelta] = DEFAULT_HALF_LIFE
    min_bound: float = 0.0
    max_bound: float = 1.0
    feedback_loop_affected: bool = False

    # ── Properties ───────────────────────────────────────────────────────────

    @property
    def effective(self) -> float:
        """Baseline plus all deltas, clamped to the valid range."""
        return float(np.clip(self.base + self.delta + self.chronic_delta,
                             self.min_bound, self.max_bound))

    @property
    def total_delta(self) -> float:
        return self.delta + self.chronic_delta

    @property
    def decays(self) -> bool:
        return self.half_life is not None

    @property
    def is_monotonic(self) -> bool:
        return False

    # ── Public Methods ───────────────────────────────────────────────────────

    def add_delta(self, amount: float) -> None:
        """Add to the acute delta; base + deltas stays within bounds."""
        low = self.min_bound - self.base - self.chronic_delta
        high = self.max_bound - self.base - self.chronic_delta
        self.delta = float(np.clip(self.delta + amount, low, high))

    def add_chronic_delta(self, amount: float) -> None:
        low = self.min_bound - self.base - self.delta
        high = self.max_bound - self.base - self.delta
        self.chronic_delta = float(np.clip(self.chronic_delta + amount, low, high))

    def set_delta(self, delta: float) -> None:
        """Replace the acute delta. Clears the chronic delta."""
        self.delta = delta
        self.chronic_delta = 0.0

    def reset_delta(self) -> None:
        self.delta = 0.0
        self.chronic_delta = 0.0

    def set_effective(self, value: float) -> None:
        """Rebase so the effective value equals `value`, dropping deltas."""
        self.base = float(np.clip(value, self.min_bound, self.max_bound))
        self.reset_delta()

    def mark_feedback_loop_affected(self) -> None:
        self.feedback_loop_affected = True

    def apply_decay(self, elapsed: timedelta) -> None:
        """
        Decay acute and chronic deltas toward zero.

        delta' = delta * 0.5^(elapsed / half_life)
        chronic' = chronic * 0.5^(elapsed / (4 * half_life))
        """
        if self.half_life is None or self.half_life <= timedelta(0):
            return
        if elapsed <= timedelta(0):
            return

        ratio = elapsed / self.half_life
        self.delta *= float(np.power(0.5, ratio))
        self.chronic_delta *= float(np.power(0.5, ratio / CHRONIC_HALF_LIFE_MULTIPLIER))

    def copy(self) -> "StateValue":
        return StateValue(
            base=self.base,
            delta=self.delta,
            chronic_delta=self.chronic_delta,
            half_life=self.half_life,
            min_bound=self.min_bound,
            max_bound=self.max_bound,
            feedback_loop_affected=self.feedback_loop_affected,
        )

    def get_state(self) -> dict:
        """Serialize current state."""
        return {
            "base": self.base,
            "delta": self.delta,
            "chronic_delta": self.chronic_delta,
            "half_life_seconds": (
                self.half_life.total_seconds() if self.half_life is not None else None
            ),
            "effective": self.effective,
            "feedback_loop_affected": self.feedback_loop_affected,
        }


@dataclass
class MonotonicValue(StateValue):
    """
    Accumulate-only dimension (acquired capability).

    Never decays, never regresses. Negative amounts are ignored and the
    effective value saturates at 1.0.
    """
    half_life: Optional[timedelta] = field(default=None, init=False)

    @property
    def is_monotonic(self) -> bool:
        return True

    def accumulate(self, amount: float) -> None:
        """Add a non-negative amount, capping the effective value at max_bound."""
        if amount <= 0.0:
            return
        headroom = self.max_bound - (self.base + self.delta)
        self.delta += min(amount, max(headroom, 0.0))

    def add_delta(self, amount: float) -> None:
        self.accumulate(amount)

    def add_chronic_delta(self, amount: float) -> None:
        self.accumulate(amount)

    def apply_decay(self, elapsed: timedelta) -> None:
        return

    def copy(self) -> "MonotonicValue":
        value = MonotonicValue(
            base=self.base,
            delta=self.delta,
            min_bound=self.min_bound,
            max_bound=self.max_bound,
            feedback_loop_affected=self.feedback_loop_affected,
        )
        value.chronic_delta = self.chronic_delta
        return value


def bounded(
    base: float,
    half_life: Optional[timedelta] = DEFAULT_HALF_LIFE,
    min_bound: float = 0.0,
    max_bound: float = 1.0,
) -> StateValue:
    """Shorthand used by the state groups."""
    return StateValue(base=base, half_life=half_life, min_bound=min_bound, max_bound=max_bound)
