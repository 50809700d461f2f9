# ═══════════════════════════════════════════════════════════════════════════════
# PART 9: FEEDBACK SPIRALS
# Design: C2 (Clinical Psychology)
# Implementation: I2 (Numerics)
# ═══════════════════════════════════════════════════════════════════════════════


"""
C2: "Stress that stays high wears you out, and worn out you lose impulse
control. Depression that stays high pulls you away from people, and alone you
get more depressed. These loops only bite above threshold."

I2: "Rate times days, added as deltas, so clamping keeps them bounded. Mark
every value a spiral writes: its history is no longer pure decay."
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from pathways.core.species import HUMAN, Species
from pathways.core.state import IndividualState


logger = logging.getLogger(__name__)


@dataclass
class FeedbackConfig:
    """Spiral thresholds and per-day rates."""
    stress_spiral_threshold: float = 0.6
    depression_spiral_threshold: float = 0.4
    loneliness_feedback_threshold: float = 0.5
    fatigue_impulse_threshold: float = 0.5
    chronic_stress_depression_threshold: float = 0.7

    stress_spiral_rate: float = 0.02
    fatigue_impulse_rate: float = 0.01
    chronic_stress_rate: float = 0.005
    depression_spiral_rate: float = 0.01
    loneliness_feedback_rate: float = 0.005


@dataclass
class SpiralResult:
    """What a spiral check changed."""
    triggered: bool = False
    fatigue_change: float = 0.0
    impulse_control_change: float = 0.0
    depression_change: float = 0.0
    loneliness_change: float = 0.0

    def has_changes(self) -> bool:
        return self.triggered

    def merged(self, other: "SpiralResult") -> "SpiralResult":
        return SpiralResult(
            triggered=self.triggered or other.triggered,
            fatigue_change=self.fatigue_change + other.fatigue_change,
            impulse_control_change=self.impulse_control_change + other.impulse_control_change,
            depression_change=self.depression_change + other.depression_change,
            loneliness_change=self.loneliness_change + other.loneliness_change,
        )


class FeedbackProcessor:
    """Applies stress and depression spirals at spiral-check points."""

    def __init__(self, config: Optional[FeedbackConfig] = None) -> None:
        self.config = config or FeedbackConfig()

    # ── Public Methods ───────────────────────────────────────────────────────

    def apply_stress_spiral(
        self,
        state: IndividualState,
        species: Species,
        duration: timedelta,
    ) -> SpiralResult:
        """
        Stress above threshold drives fatigue; fatigue erodes impulse control;
        in humans, chronic stress feeds depression.
        """
        cfg = self.config
        result = SpiralResult()
        stress = state.needs.stress.effective
        if stress <= cfg.stress_spiral_threshold:
            return result

        result.triggered = True
        days = duration / timedelta(days=1)

        fatigue_increase = stress * cfg.stress_spiral_rate * days
        state.needs.fatigue.add_delta(fatigue_increase)
        state.needs.fatigue.mark_feedback_loop_affected()
        result.fatigue_change = fatigue_increase

        if state.needs.fatigue.effective > cfg.fatigue_impulse_threshold:
            impulse_decrease = cfg.fatigue_impulse_rate * days
            state.disposition.impulse_control.add_delta(-impulse_decrease)
            state.disposition.impulse_control.mark_feedback_loop_affected()
            result.impulse_control_change = -impulse_decrease

        if species.is_human() and stress > cfg.chronic_stress_depression_threshold:
            depression_increase = cfg.chronic_stress_rate * days
            state.mental_health.depression.add_delta(depression_increase)
            state.mental_health.depression.mark_feedback_loop_affected()
            result.depression_change = depression_increase

        logger.debug("Stress spiral: stress=%.3f days=%.2f result=%s", stress, days, result)
        return result

    def apply_depression_spiral(
        self,
        state: IndividualState,
        species: Species,
        duration: timedelta,
    ) -> SpiralResult:
        """Depression drives loneliness; loneliness past threshold feeds depression. Humans only."""
        cfg = self.config
        result = SpiralResult()
        if not species.is_human():
            return result

        depression = state.mental_health.depression.effective
        if depression <= cfg.depression_spiral_threshold:
            return result

        result.triggered = True
        days = duration / timedelta(days=1)

        loneliness_increase = depression * cfg.depression_spiral_rate * days
        state.social_cognition.loneliness.add_delta(loneliness_increase)
        state.social_cognition.loneliness.mark_feedback_loop_affected()
        result.loneliness_change = loneliness_increase

        loneliness = state.social_cognition.loneliness.effective
        if loneliness > cfg.loneliness_feedback_threshold:
            depression_increase = loneliness * cfg.loneliness_feedback_rate * days
            state.mental_health.depression.add_delta(depression_increase)
            state.mental_health.depression.mark_feedback_loop_affected()
            result.depression_change = depression_increase

        logger.debug("Depression spiral: depression=%.3f days=%.2f result=%s",
                     depression, days, result)
        return result

    def check(
        self,
        state: IndividualState,
        species: Species = HUMAN,
        duration: timedelta = timedelta(days=1),
    ) -> SpiralResult:
        """Run both spirals over `duration`. No-op below thresholds."""
        if duration <= timedelta(0):
            return SpiralResult()
        stress = self.apply_stress_spiral(state, species, duration)
        depression = self.apply_depression_spiral(state, species, duration)
        return stress.merged(depression)
