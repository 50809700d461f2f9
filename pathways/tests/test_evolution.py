"""Tests for forward and backward state evolution."""

from datetime import datetime, timedelta

import pytest

from pathways.core.events import Event, EventTag, EventType
from pathways.core.evolution import (
    RegressionQuality,
    advance_with_events,
    apply_interpreted_event,
    regress_with_events,
    reverse_interpreted_event,
)
from pathways.core.feedback import FeedbackProcessor
from pathways.core.interpreter import interpret_event
from pathways.core.state import Hexaco, IndividualState, StatePath


T0 = datetime(2020, 1, 1)


def _interpret(event_type: EventType, severity: float, **kwargs):
    return interpret_event(Event(event_type, "e", severity, **kwargs), Hexaco())


# ── Specified test cases ────────────────────────────────────────────────────


def test_forward_is_exact():
    events = [(T0 + timedelta(days=1), _interpret(EventType.VIOLENCE, 0.7))]
    result = advance_with_events(IndividualState(), T0, T0 + timedelta(days=2), events)

    assert result.quality == RegressionQuality.EXACT
    assert result.events_crossed == 1


def test_forward_window_is_open_closed():
    """(start, end]: an event at start is skipped, one at end is applied."""
    at_start = (T0, _interpret(EventType.HUMILIATION, 0.5))
    at_end = (T0 + timedelta(hours=1), _interpret(EventType.ACHIEVEMENT, 0.5))
    result = advance_with_events(IndividualState(), T0, T0 + timedelta(hours=1), [at_start, at_end])

    assert result.events_crossed == 1
    assert result.state.get_effective(StatePath.MOOD_VALENCE) == pytest.approx(0.15)


def test_backward_window_is_open_closed():
    """(target, start]: an event at target is kept, one at start is reversed."""
    anchor = T0 + timedelta(hours=1)
    state = IndividualState()
    at_target = (T0, _interpret(EventType.HUMILIATION, 0.5))
    at_anchor = (anchor, _interpret(EventType.ACHIEVEMENT, 0.5))
    result = regress_with_events(state, anchor, T0, [at_target, at_anchor])

    assert result.events_crossed == 1


def test_backward_exact_without_trauma():
    events = [(T0 + timedelta(days=1), _interpret(EventType.HUMILIATION, 0.5))]
    result = regress_with_events(IndividualState(), T0 + timedelta(days=2), T0, events)
    assert result.quality == RegressionQuality.EXACT


def test_backward_approximate_across_trauma():
    events = [(T0 + timedelta(days=1), _interpret(EventType.VIOLENCE, 0.7))]
    result = regress_with_events(IndividualState(), T0 + timedelta(days=2), T0, events)
    assert result.quality.is_approximate


def test_capability_kept_on_reversal():
    ie = _interpret(EventType.VIOLENCE, 0.7)
    state = IndividualState()
    apply_interpreted_event(state, ie)
    exact = reverse_interpreted_event(state, ie)

    assert not exact
    assert state.get_effective(StatePath.ACQUIRED_CAPABILITY) == pytest.approx(0.105)
    assert state.get_effective(StatePath.MOOD_VALENCE) == pytest.approx(0.0)


# ── Additional tests ────────────────────────────────────────────────────────


def test_inputs_not_mutated():
    state = IndividualState()
    events = [(T0 + timedelta(days=1), _interpret(EventType.SOCIAL_EXCLUSION, 0.8))]
    advance_with_events(state, T0, T0 + timedelta(days=2), events)
    regress_with_events(state, T0 + timedelta(days=2), T0, events)

    assert state.get_effective(StatePath.LONELINESS) == pytest.approx(0.2)


def test_chronic_social_deltas():
    ie = _interpret(EventType.SOCIAL_EXCLUSION, 0.5, tags=frozenset({EventTag.CHRONIC_PATTERN}))
    state = IndividualState()
    apply_interpreted_event(state, ie)

    loneliness = state.get_value(StatePath.LONELINESS)
    assert loneliness.delta == 0.0
    assert loneliness.chronic_delta == pytest.approx(0.1)
    # Mood is not social cognition
    assert state.get_value(StatePath.MOOD_VALENCE).chronic_delta == 0.0

    reverse_interpreted_event(state, ie)
    assert loneliness.chronic_delta == pytest.approx(0.0)


def test_moral_violation_flag():
    ie = _interpret(EventType.FAILURE, 0.5, tags=frozenset({EventTag.MORAL_VIOLATION}))
    events = [(T0 + timedelta(hours=1), ie)]

    now = advance_with_events(IndividualState(), T0, T0 + timedelta(hours=1), events)
    later = advance_with_events(IndividualState(), T0, T0 + timedelta(hours=25), events)

    assert now.state.get_effective(StatePath.RECENT_MORAL_VIOLATION) == pytest.approx(1.0)
    assert later.state.get_effective(StatePath.RECENT_MORAL_VIOLATION) == pytest.approx(0.5)


def test_same_timestamp_order_preserved():
    ts = T0 + timedelta(hours=1)
    events = [
        (ts, _interpret(EventType.HUMILIATION, 1.0)),
        (ts, _interpret(EventType.ACHIEVEMENT, 1.0)),
    ]
    state = IndividualState()
    state.set_effective(StatePath.MOOD_VALENCE, -0.9)
    result = advance_with_events(state, T0, ts, events, decay_processor=None)

    # -0.9 -0.3 clamps at -1.0, then +0.3
    assert result.state.get_effective(StatePath.MOOD_VALENCE) == pytest.approx(-0.7)


def test_spirals_run_after_events():
    state = IndividualState()
    state.set_effective(StatePath.NEEDS_STRESS, 0.9)
    events = [(T0 + timedelta(days=1), _interpret(EventType.FAILURE, 0.1))]

    with_feedback = advance_with_events(
        state, T0, T0 + timedelta(days=1), events, feedback=FeedbackProcessor())
    without = advance_with_events(state, T0, T0 + timedelta(days=1), events)

    assert with_feedback.spirals.triggered
    assert with_feedback.state.needs.fatigue.feedback_loop_affected
    assert not without.spirals.triggered


def _violation():
    return _interpret(EventType.FAILURE, 0.5, tags=frozenset({EventTag.MORAL_VIOLATION}))


def test_moral_violation_flag_cleared_before_every_violation():
    events = [(T0 + timedelta(hours=1), _violation()), (T0 + timedelta(hours=2), _violation())]
    now = advance_with_events(IndividualState(), T0, T0 + timedelta(hours=3), events)

    back = regress_with_events(now.state, T0 + timedelta(hours=3), T0, events)

    assert back.quality == RegressionQuality.EXACT
    assert back.state.get_effective(StatePath.RECENT_MORAL_VIOLATION) == pytest.approx(0.0)


def test_moral_violation_flag_restored_between_violations():
    """Regressing to between two violations keeps the decayed first one."""
    first, second = T0 + timedelta(hours=1), T0 + timedelta(hours=2)
    events = [(first, _violation()), (second, _violation())]
    target = T0 + timedelta(hours=1, minutes=30)
    now = advance_with_events(IndividualState(), T0, T0 + timedelta(hours=3), events)

    back = regress_with_events(now.state, T0 + timedelta(hours=3), target, events,
                               prior_violation=first)
    forward = advance_with_events(IndividualState(), T0, target, events)

    assert back.quality == RegressionQuality.EXACT
    flag = back.state.get_effective(StatePath.RECENT_MORAL_VIOLATION)
    assert flag == pytest.approx(2 ** (-0.5 / 24))
    assert flag == pytest.approx(forward.state.get_effective(StatePath.RECENT_MORAL_VIOLATION))


def test_prior_violation_ignored_without_reversed_violation():
    events = [(T0 + timedelta(hours=1), _violation())]
    now = advance_with_events(IndividualState(), T0, T0 + timedelta(hours=5), events)

    back = regress_with_events(now.state, T0 + timedelta(hours=5), T0 + timedelta(hours=2), events,
                               prior_violation=T0 + timedelta(hours=1))

    assert back.state.get_effective(StatePath.RECENT_MORAL_VIOLATION) == pytest.approx(2 ** (-1 / 24))
