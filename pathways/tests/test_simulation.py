"""Tests for temporal queries through Simulation and EntityQueryHandle."""

from datetime import datetime, timedelta

import dataclasses

import pytest

from pathways.core.entity import EntityBuilder
from pathways.core.emotions import Emotion
from pathways.core.events import Event, EventTag, EventType
from pathways.core.evolution import RegressionQuality
from pathways.core.its import TbContributor
from pathways.core.alerts import SpiralType
from pathways.core.simulation import Simulation, SimulationConfig
from pathways.core.species import HUMAN, LifeStage, years
from pathways.core.state import StatePath


T0 = datetime(2020, 1, 1)
HOUR = timedelta(hours=1)
DAY = timedelta(days=1)
WEEK = timedelta(days=7)

MOOD_PATHS = (StatePath.MOOD_VALENCE, StatePath.MOOD_AROUSAL, StatePath.MOOD_DOMINANCE)


def _setup(config=None, age=years(30), **overrides):
    sim = Simulation(T0, config)
    builder = EntityBuilder().species(HUMAN).id("alice").age(age)
    for name, value in overrides.items():
        builder.set_effective(StatePath[name], value)
    sim.add_entity(builder.build(), T0)
    return sim, sim.entity("alice")


def _event(event_type: EventType, severity: float) -> Event:
    return Event(event_type, "alice", severity)


# ── Specified test cases ────────────────────────────────────────────────────


def test_anchor_identity():
    """At the anchor the stored state comes back unmodified and EXACT."""
    sim, handle = _setup()
    sim.add_event(_event(EventType.VIOLENCE, 0.9), T0 - DAY)
    sim.add_event(_event(EventType.SOCIAL_EXCLUSION, 0.9), T0 + DAY)

    computed = handle.state_at(T0)

    assert computed.regression_quality == RegressionQuality.EXACT
    assert computed.delta_summary is None
    assert computed.individual_state.get_state() == handle.entity.individual_state.get_state()


def test_anchor_result_is_a_copy():
    sim, handle = _setup()
    first = handle.state_at(T0)
    first.individual_state.get_value(StatePath.LONELINESS).add_delta(0.5)

    assert handle.state_at(T0).get_effective(StatePath.LONELINESS) == pytest.approx(0.2)


def test_determinism():
    sim, handle = _setup()
    sim.add_event(_event(EventType.HUMILIATION, 0.6), T0 + HOUR)
    sim.add_event(_event(EventType.VIOLENCE, 0.6), T0 - HOUR)

    for t in (T0 + DAY, T0 - DAY):
        a = handle.state_at(t)
        b = handle.state_at(t)
        assert a.get_state() == b.get_state()


def test_forward_always_exact():
    sim, handle = _setup()
    sim.add_event(_event(EventType.VIOLENCE, 0.9), T0 + HOUR)
    assert handle.state_at(T0 + DAY).regression_quality == RegressionQuality.EXACT


def test_backward_quality():
    """EXACT unless an irreversible event lies in (T, anchor]."""
    sim, handle = _setup()
    sim.add_event(_event(EventType.HUMILIATION, 0.6), T0 - 2 * DAY)
    sim.add_event(_event(EventType.VIOLENCE, 0.7), T0 - 10 * DAY)

    assert handle.state_at(T0 - 5 * DAY).regression_quality == RegressionQuality.EXACT
    assert handle.state_at(T0 - 20 * DAY).regression_quality == RegressionQuality.APPROXIMATE


def test_query_timestamp_inclusion():
    """Forward includes an event at T; backward excludes it."""
    sim, handle = _setup()
    sim.add_event(_event(EventType.VIOLENCE, 0.7), T0 + DAY)
    sim.add_event(_event(EventType.VIOLENCE, 0.7), T0 - DAY)

    forward = handle.state_at(T0 + DAY)
    backward = handle.state_at(T0 - DAY)

    assert forward.get_effective(StatePath.ACQUIRED_CAPABILITY) > 0.0
    assert len(forward.interpretations) == 1
    # The event at T - DAY is not undone, so nothing irreversible was crossed
    assert backward.regression_quality == RegressionQuality.EXACT
    assert backward.interpretations == ()


def test_capability_non_decreasing_over_decades():
    """8 weekly violence events, then 20 quiet years."""
    sim, handle = _setup()
    for week in range(1, 9):
        sim.add_event(_event(EventType.VIOLENCE, 0.7), T0 + week * WEEK)

    baseline = handle.state_at(T0).get_effective(StatePath.ACQUIRED_CAPABILITY)
    after = handle.state_at(T0 + 8 * WEEK).get_effective(StatePath.ACQUIRED_CAPABILITY)
    decades = handle.state_at(T0 + 8 * WEEK + years(20)).get_effective(StatePath.ACQUIRED_CAPABILITY)

    assert after > 0.5
    assert after - baseline >= 0.4
    assert decades == pytest.approx(after, abs=0.01)

    previous = baseline
    for week in range(0, 9):
        current = handle.state_at(T0 + week * WEEK).get_effective(StatePath.ACQUIRED_CAPABILITY)
        assert current >= previous
        previous = current


def test_exclusion_recovery():
    """Valence drops after exclusion and recovers within a week."""
    sim, handle = _setup()
    sim.add_event(_event(EventType.SOCIAL_EXCLUSION, 0.8), T0 + HOUR)

    baseline = handle.state_at(T0).get_effective(StatePath.MOOD_VALENCE)
    after = handle.state_at(T0 + HOUR).get_effective(StatePath.MOOD_VALENCE)
    week_later = handle.state_at(T0 + HOUR + WEEK).get_effective(StatePath.MOOD_VALENCE)

    assert after < baseline
    assert after < week_later <= baseline
    assert baseline - week_later < baseline - after


def test_exclusion_regressed():
    """Looking back past an exclusion restores the pre-event valence."""
    sim, handle = _setup()
    sim.add_event(_event(EventType.SOCIAL_EXCLUSION, 0.8), T0 - HOUR)

    before = handle.state_at(T0 - 2 * HOUR)

    assert before.regression_quality == RegressionQuality.EXACT
    assert before.get_effective(StatePath.MOOD_VALENCE) > 0.1
    assert before.get_effective(StatePath.LONELINESS) < 0.2


def test_twenty_year_mood_decay():
    """Transient mood is gone after 20 years; age moves exactly 20 years."""
    sim, handle = _setup()
    sim.add_event(_event(EventType.ACHIEVEMENT, 1.0), T0 + DAY)

    anchor = handle.state_at(T0)
    later = handle.state_at(T0 + years(20))

    for path in MOOD_PATHS:
        assert later.get_effective(path) == pytest.approx(anchor.get_effective(path), abs=0.001)
    assert later.age_at_timestamp - anchor.age_at_timestamp == years(20)
    assert anchor.life_stage == LifeStage.YOUNG_ADULT
    assert later.life_stage == LifeStage.ADULT


# ── Additional tests ────────────────────────────────────────────────────────


def test_entity_lookup():
    sim, handle = _setup()

    assert sim.entity("nobody") is None
    assert sim.entity_count == 1
    assert handle.anchor_timestamp == T0


def test_event_log_sorted_on_insert():
    sim, _ = _setup()
    late = _event(EventType.FAILURE, 0.5)
    early = _event(EventType.ACHIEVEMENT, 0.5)
    sim.add_event(late, T0 + 2 * DAY)
    sim.add_event(early, T0 + DAY)

    assert sim.events_for("alice") == [early, late]


def test_events_between_inclusive():
    sim, _ = _setup()
    for days in (1, 2, 3):
        sim.add_event(_event(EventType.FAILURE, 0.5), T0 + days * DAY)

    assert len(sim.events_between(T0 + DAY, T0 + 3 * DAY)) == 3
    assert len(sim.events_between(T0 + DAY + HOUR, T0 + 3 * DAY - HOUR)) == 1


def test_untargeted_events_are_inert():
    sim, handle = _setup()
    sim.add_event(Event(EventType.HISTORICAL_EVENT, None, 0.9), T0 + HOUR)

    assert sim.event_count == 1
    assert sim.events_for("alice") == []
    assert handle.state_at(T0 + HOUR).interpretations == ()


def test_interpretations_memoized():
    sim, handle = _setup()
    event = _event(EventType.HUMILIATION, 0.5)
    entry = sim.add_event(event, T0 + HOUR)

    assert sim.interpretation("alice", entry) is sim.interpretation("alice", entry)
    timed = handle.interpretations_between(T0, T0 + HOUR)
    assert len(timed) == 1
    assert timed[0][1].source_event_id == event.id


def test_memoization_can_be_disabled():
    sim, _ = _setup(SimulationConfig(memoize_interpretations=False))
    event = _event(EventType.HUMILIATION, 0.5)
    entry = sim.add_event(event, T0 + HOUR)

    first = sim.interpretation("alice", entry)
    second = sim.interpretation("alice", entry)
    assert first is not second
    assert first.state_deltas == second.state_deltas


def test_developmental_factor_applied():
    """A child feels an attachment event twice as hard, on top of plasticity."""
    child_sim, child = _setup(age=years(5))
    adult_sim, adult = _setup(age=years(40))
    for sim in (child_sim, adult_sim):
        sim.add_event(_event(EventType.SOCIAL_EXCLUSION, 0.5), T0 + HOUR)

    child_change = child.state_at(T0 + HOUR).delta_summary[StatePath.LONELINESS]
    adult_change = adult.state_at(T0 + HOUR).delta_summary[StatePath.LONELINESS]

    assert child_change == pytest.approx(0.1 * (2.0 - 5 * 0.023) * 2.0, abs=1e-4)
    assert adult_change == pytest.approx(0.1 * (2.0 - 40 * 0.023), abs=1e-4)


def test_age_from_birth_date():
    sim = Simulation(T0)
    entity = (EntityBuilder()
              .species(HUMAN)
              .id("kid")
              .birth_date(T0 - years(10))
              .age(years(10))
              .build())
    sim.add_entity(entity)
    handle = sim.entity("kid")

    assert handle.state_at(T0 + years(5)).age_at_timestamp == years(15)
    assert handle.state_at(T0 - years(20)).age_at_timestamp == timedelta(0)


def test_delta_summary():
    sim, handle = _setup()
    sim.add_event(_event(EventType.SOCIAL_EXCLUSION, 0.8), T0 + HOUR)
    summary = handle.state_at(T0 + HOUR).delta_summary

    assert summary[StatePath.LONELINESS] > 0
    assert summary[StatePath.MOOD_VALENCE] < 0
    assert StatePath.ACQUIRED_CAPABILITY not in summary


def test_delta_summary_can_be_disabled():
    sim, handle = _setup(SimulationConfig(compute_delta_summary=False))
    assert handle.state_at(T0 + DAY).delta_summary is None


def test_spirals_toggle():
    on_sim, on = _setup(NEEDS_STRESS=0.9)
    off_sim, off = _setup(SimulationConfig(enable_spirals=False), NEEDS_STRESS=0.9)
    for sim in (on_sim, off_sim):
        sim.add_event(_event(EventType.FAILURE, 0.1), T0 + DAY)

    assert on.state_at(T0 + DAY).spirals.triggered
    assert not off.state_at(T0 + DAY).spirals.triggered


def test_alerts_on_computed_state():
    sim, handle = _setup(NEEDS_STRESS=0.9)
    alerts = handle.state_at(T0).alerts()
    assert any(a.trigger.spiral == SpiralType.STRESS for a in alerts)


def test_active_contributors_reported():
    sim, handle = _setup()
    handle.entity.activate_contributor(TbContributor.ISOLATION, T0, 0.6)

    computed = handle.state_at(T0 + DAY)
    assert [a.contributor for a in computed.active_contributors] == [TbContributor.ISOLATION]
    assert handle.state_at(T0 - DAY).active_contributors == ()


def test_queries_do_not_touch_anchor():
    sim, handle = _setup()
    sim.add_event(_event(EventType.VIOLENCE, 0.9), T0 + HOUR)
    before = handle.state_at(T0).get_state()

    handle.state_at(T0 + DAY)
    handle.state_at(T0 - DAY)

    assert handle.state_at(T0).get_state() == before


def test_get_state():
    sim, _ = _setup()
    sim.add_event(_event(EventType.FAILURE, 0.5), T0 + HOUR)
    state = sim.get_state()

    assert "alice" in state["entities"]
    assert state["event_count"] == 1


def test_reused_event_ids_interpreted_separately():
    """Two log entries sharing an id keep their own interpretations."""
    sim, handle = _setup()
    first = sim.add_event(Event(EventType.ACHIEVEMENT, "alice", 0.5, id="e1"), T0 + HOUR)
    second = sim.add_event(Event(EventType.VIOLENCE, "alice", 0.7, id="e1"), T0 + 2 * HOUR)

    assert sim.interpretation("alice", first).event_type == EventType.ACHIEVEMENT
    assert sim.interpretation("alice", second).event_type == EventType.VIOLENCE

    later = handle.state_at(T0 + 3 * HOUR)
    assert [ie.event_type for _, ie in later.interpretations] == [EventType.ACHIEVEMENT,
                                                                  EventType.VIOLENCE]
    assert later.get_effective(StatePath.ACQUIRED_CAPABILITY) > 0.0


def test_reused_event_ids_backward_quality():
    sim, handle = _setup()
    sim.add_event(Event(EventType.VIOLENCE, "alice", 0.7, id="e1"), T0 - HOUR)
    sim.add_event(Event(EventType.ACHIEVEMENT, "alice", 0.5, id="e1"), T0 - 2 * HOUR)

    assert handle.state_at(T0 - 3 * HOUR).regression_quality == RegressionQuality.APPROXIMATE


def test_moral_violation_flag_between_violations():
    """Looking back to between two violations matches looking forward to it."""
    tags = frozenset({EventTag.MORAL_VIOLATION})
    sim, handle = _setup()
    early_sim = Simulation(T0 - 3 * HOUR)
    early_sim.add_entity(EntityBuilder().species(HUMAN).id("alice").age(years(30) - 3 * HOUR).build())
    for s in (sim, early_sim):
        s.add_event(Event(EventType.FAILURE, "alice", 0.5, tags=tags), T0 - 2 * HOUR)
        s.add_event(Event(EventType.FAILURE, "alice", 0.5, tags=tags), T0 - HOUR)

    target = T0 - timedelta(hours=1, minutes=30)
    backward = handle.state_at(target)
    forward = early_sim.entity("alice").state_at(target)

    assert backward.regression_quality == RegressionQuality.EXACT
    flag = backward.get_effective(StatePath.RECENT_MORAL_VIOLATION)
    assert flag == pytest.approx(2 ** (-0.5 / 24))
    assert flag == pytest.approx(forward.get_effective(StatePath.RECENT_MORAL_VIOLATION))


def test_formative_shift_applied_forward():
    sim, handle = _setup()
    sim.add_event(
        Event(EventType.FAILURE, "alice", 0.5, base_shifts=((StatePath.HEXACO_NEUROTICISM, 0.5),)),
        T0 + HOUR,
    )

    # 0.5 * plasticity 1.0 * (1 - 0.6 stability)
    after = handle.state_at(T0 + HOUR)
    assert after.get_effective(StatePath.HEXACO_NEUROTICISM) == pytest.approx(0.2)
    assert after.delta_summary[StatePath.HEXACO_NEUROTICISM] == pytest.approx(0.2)
    assert len(after.base_shifts) == 1

    # Not severe, so it does not settle
    assert handle.state_at(T0 + years(1)).get_effective(StatePath.HEXACO_NEUROTICISM) == pytest.approx(0.2)
    assert handle.state_at(T0 + HOUR / 2).get_effective(StatePath.HEXACO_NEUROTICISM) == pytest.approx(0.0)


def test_formative_shift_not_applied_backward():
    sim, handle = _setup()
    sim.add_event(
        Event(EventType.FAILURE, "alice", 0.5, base_shifts=((StatePath.HEXACO_NEUROTICISM, 0.5),)),
        T0 - HOUR,
    )

    before = handle.state_at(T0 - 2 * HOUR)
    assert before.get_effective(StatePath.HEXACO_NEUROTICISM) == pytest.approx(0.0)
    assert before.base_shifts == ()


def test_derived_emotions_follow_mood():
    sim, handle = _setup(MOOD_VALENCE=-0.6, MOOD_AROUSAL=0.6, MOOD_DOMINANCE=-0.6)
    computed = handle.state_at(T0)

    emotions = computed.derived_emotions()
    assert emotions.dominant() == Emotion.ANXIOUS
    assert emotions.anxious == pytest.approx(0.6)
    assert computed.get_state()["emotions"]["anxious"] == pytest.approx(0.6)


def test_computed_state_is_frozen():
    sim, handle = _setup(NEEDS_STRESS=0.9)
    computed = handle.state_at(T0)

    with pytest.raises(dataclasses.FrozenInstanceError):
        computed.regression_quality = RegressionQuality.APPROXIMATE
    # Cached alerts still work on a frozen instance
    assert computed.alerts() == computed.alerts()
