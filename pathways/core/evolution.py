# ═══════════════════════════════════════════════════════════════════════════════
# PART 12: STATE EVOLUTION
# Design: A1 (Affective Science) + C2 (Clinical Psychology)
# Implementation: I2 (Numerics)
# ═══════════════════════════════════════════════════════════════════════════════


"""
I2: "Two operations and nothing else. Forward: decay the gap, apply the event,
repeat, decay the tail. Backward: the mirror image, newest event first."

C2: "When we walk back past a trauma we keep the capability it left behind
and we say so. An estimate is still an answer, it just carries a label."
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from pathways.core.decay import DecayProcessor, StateDecayProcessor
from pathways.core.feedback import FeedbackProcessor, SpiralResult
from pathways.core.interpreter import InterpretedEvent
from pathways.core.reversibility import is_reversible
from pathways.core.species import HUMAN, Species
from pathways.core.state import IndividualState


logger = logging.getLogger(__name__)

# (timestamp, interpreted event already scaled by its developmental factor)
TimedInterpretation = Tuple[datetime, InterpretedEvent]

_CHRONIC_GROUP = "social_cognition"


class RegressionQuality(Enum):
    """How faithful a computed state is to the real history."""
    EXACT = "exact"
    APPROXIMATE = "approximate"

    @property
    def is_exact(self) -> bool:
        return self == RegressionQuality.EXACT

    @property
    def is_approximate(self) -> bool:
        return self == RegressionQuality.APPROXIMATE


@dataclass
class EvolutionResult:
    state: IndividualState
    quality: RegressionQuality = RegressionQuality.EXACT
    spirals: SpiralResult = field(default_factory=SpiralResult)
    events_crossed: int = 0


# ── Single events ────────────────────────────────────────────────────────────


def apply_interpreted_event(state: IndividualState, interpreted: InterpretedEvent) -> None:
    """
    Apply an event's deltas to `state` in place.

    Monotonic dimensions accumulate. Chronic events write social-cognition
    deltas to the slow-decaying chronic component. A moral violation raises
    the recent-violation flag to 1.0.
    """
    for path, delta in interpreted.state_deltas.items():
        value = state.get_value(path)
        if value.is_monotonic:
            value.accumulate(delta)
        elif interpreted.chronic and path.group == _CHRONIC_GROUP:
            value.add_chronic_delta(delta)
        else:
            value.add_delta(delta)

    if interpreted.moral_violation:
        flag = state.flags.recent_moral_violation
        flag.set_delta(flag.max_bound - flag.base)


def reverse_interpreted_event(state: IndividualState, interpreted: InterpretedEvent) -> bool:
    """
    Subtract an event's deltas from `state` in place.

    Irreversible dimensions are left as observed. The moral-violation flag is
    refreshed rather than added to, so its pre-event value cannot be read
    back from the event; it is cleared here and `regress_with_events`
    restores it from the latest earlier violation.

    Returns:
        True if every touched dimension was reversed.
    """
    exact = True
    for path, delta in interpreted.state_deltas.items():
        if not is_reversible(path, interpreted, state):
            logger.debug("Skipping irreversible %s for event %s",
                         path.value, interpreted.source_event_id)
            exact = False
            continue
        value = state.get_value(path)
        if interpreted.chronic and path.group == _CHRONIC_GROUP:
            value.add_chronic_delta(-delta)
        else:
            value.add_delta(-delta)

    if interpreted.moral_violation:
        state.flags.recent_moral_violation.reset_delta()

    return exact


# ── Windows ──────────────────────────────────────────────────────────────────


def advance_with_events(
    state: IndividualState,
    start: datetime,
    end: datetime,
    events: Sequence[TimedInterpretation],
    decay_processor: Optional[DecayProcessor] = None,
    time_scale: float = 1.0,
    feedback: Optional[FeedbackProcessor] = None,
    species: Species = HUMAN,
) -> EvolutionResult:
    """
    Project `state` forward from `start` to `end`.

    Events in (start, end] are applied in ascending order, each after decaying
    the gap since the previous point. When a feedback processor is given,
    spirals are checked after every event over that same gap. Always EXACT.
    """
    processor = decay_processor or StateDecayProcessor()
    working = state.copy()
    spirals = SpiralResult()
    cursor = start
    crossed = 0

    for timestamp, interpreted in _in_window(events, start, end):
        gap = timestamp - cursor
        processor.apply(working, gap, time_scale)
        apply_interpreted_event(working, interpreted)
        if feedback is not None:
            spirals = spirals.merged(feedback.check(working, species, gap))
        cursor = timestamp
        crossed += 1

    processor.apply(working, end - cursor, time_scale)
    logger.debug("Advanced %s -> %s across %d events", start, end, crossed)
    return EvolutionResult(working, RegressionQuality.EXACT, spirals, crossed)


def regress_with_events(
    state: IndividualState,
    start: datetime,
    target: datetime,
    events: Sequence[TimedInterpretation],
    decay_processor: Optional[DecayProcessor] = None,
    time_scale: float = 1.0,
    prior_violation: Optional[datetime] = None,
) -> EvolutionResult:
    """
    Regress `state` backward from `start` to an earlier `target`.

    Events in (target, start] are reversed newest first. Events exactly at
    `target` are kept: the state at that instant already reflects them.
    APPROXIMATE if any reversed event touched an irreversible dimension.

    A violation sets the moral-violation flag to its maximum whatever it held
    before, so after one is reversed the flag at `target` depends only on the
    latest violation at or before `target`. Pass its time as
    `prior_violation`; without one the flag returns to baseline.
    """
    processor = decay_processor or StateDecayProcessor()
    working = state.copy()
    quality = RegressionQuality.EXACT
    cursor = start
    crossed = 0
    violation_reversed = False

    for timestamp, interpreted in reversed(_in_window(events, target, start)):
        processor.reverse(working, cursor - timestamp, time_scale)
        if not reverse_interpreted_event(working, interpreted):
            quality = RegressionQuality.APPROXIMATE
        violation_reversed = violation_reversed or interpreted.moral_violation
        cursor = timestamp
        crossed += 1

    processor.reverse(working, cursor - target, time_scale)

    if violation_reversed:
        flag = working.flags.recent_moral_violation
        flag.reset_delta()
        if prior_violation is not None and prior_violation <= target:
            flag.set_delta(flag.max_bound - flag.base)
            processor.decay_value(flag, target - prior_violation, time_scale)
    logger.debug("Regressed %s -> %s across %d events (%s)",
                 start, target, crossed, quality.value)
    return EvolutionResult(working, quality, SpiralResult(), crossed)


def _in_window(
    events: Sequence[TimedInterpretation],
    after: datetime,
    until: datetime,
) -> List[TimedInterpretation]:
    """Events with after < timestamp <= until, ascending; ties keep input order."""
    selected = [item for item in events if after < item[0] <= until]
    return sorted(selected, key=lambda item: item[0])

