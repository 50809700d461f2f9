"""Tests for DevelopmentTracker and life stages."""

from datetime import datetime, timedelta

import numpy as np
import pytest

from pathways.core.development import (
    DevelopmentConfig,
    DevelopmentalCategory,
    DevelopmentTracker,
    SensitivePeriod,
    TurningPoint,
)
from pathways.core.events import Event, EventType
from pathways.core.species import DOG, HUMAN, MOUSE, LifeStage, Species, years


T0 = datetime(2020, 1, 1)


# ── Specified test cases ────────────────────────────────────────────────────


def test_plasticity_declines_linearly():
    t = DevelopmentTracker()

    assert t.get_plasticity(0.0) == pytest.approx(2.0)
    assert t.get_plasticity(30.0) == pytest.approx(1.31)
    assert t.get_plasticity(100.0) == pytest.approx(0.5)


def test_turning_point_boost_decays():
    """Boost is 0.5 at the turning point and halves over ~180 days."""
    t = DevelopmentTracker(turning_points=[TurningPoint(T0, "move")])

    assert t.get_turning_point_boost(T0) == pytest.approx(0.5)
    assert t.get_turning_point_boost(T0 + timedelta(days=180)) == pytest.approx(
        0.5 * np.exp(-0.693))
    assert t.get_turning_point_boost(T0 - timedelta(days=1)) == 0.0


def test_turning_point_boost_capped():
    t = DevelopmentTracker(turning_points=[TurningPoint(T0), TurningPoint(T0)])
    assert t.get_turning_point_boost(T0) == pytest.approx(0.5)


def test_sensitive_period_multiplier():
    t = DevelopmentTracker()

    assert t.get_sensitive_multiplier(LifeStage.CHILD, DevelopmentalCategory.ATTACHMENT) == 2.0
    assert t.get_sensitive_multiplier(LifeStage.ADOLESCENT, DevelopmentalCategory.IDENTITY) == 1.8
    assert t.get_sensitive_multiplier(LifeStage.ADULT, DevelopmentalCategory.ATTACHMENT) == 1.0


def test_factor_combines_terms():
    """factor = impact * (plasticity + boost) * sensitive."""
    t = DevelopmentTracker()
    event = Event(EventType.SOCIAL_EXCLUSION, "e", 0.8)
    result = t.process_event(event, years(5), T0)

    assert result["life_stage"] == LifeStage.CHILD
    assert result["category"] == DevelopmentalCategory.ATTACHMENT
    assert result["plasticity"] == pytest.approx(2.0 - 5 * 0.023)
    assert result["sensitive_multiplier"] == 2.0
    assert result["factor"] == pytest.approx((2.0 - 5 * 0.023) * 2.0)


# ── Additional tests ────────────────────────────────────────────────────────


def test_event_category_mapping():
    assert DevelopmentalCategory.for_event_type(EventType.BETRAYAL) == DevelopmentalCategory.INTIMACY
    assert DevelopmentalCategory.for_event_type(EventType.ACHIEVEMENT) == DevelopmentalCategory.INDUSTRY
    assert DevelopmentalCategory.for_event_type(EventType.VIOLENCE) == DevelopmentalCategory.NEUTRAL


def test_species_time_scale_in_plasticity():
    """A one-year-old dog has lived more psychological time than a one-year-old human."""
    dog = DevelopmentTracker(species=DOG)
    human = DevelopmentTracker(species=HUMAN)
    event = Event(EventType.FAILURE, "e", 0.5)

    dog_result = dog.process_event(event, years(1), T0)
    human_result = human.process_event(event, years(1), T0)

    assert dog_result["plasticity"] < human_result["plasticity"]
    assert dog_result["life_stage"] == LifeStage.CHILD


def test_stage_transition_milestone():
    t = DevelopmentTracker()
    event = Event(EventType.FAILURE, "e", 0.5)

    t.process_event(event, years(12), T0)
    t.process_event(event, years(13), T0 + timedelta(days=365))

    assert len(t.milestones) == 1
    assert t.milestones[0]["from"] == "child"
    assert t.milestones[0]["to"] == "adolescent"


def test_custom_sensitive_periods():
    config = DevelopmentConfig(sensitive_periods=[
        SensitivePeriod(LifeStage.ADULT, DevelopmentalCategory.INDUSTRY, 3.0),
    ])
    t = DevelopmentTracker(config=config)
    assert t.get_sensitive_multiplier(LifeStage.ADULT, DevelopmentalCategory.INDUSTRY) == 3.0
    assert t.get_sensitive_multiplier(LifeStage.CHILD, DevelopmentalCategory.ATTACHMENT) == 1.0


def test_life_stage_table():
    assert LifeStage.from_human_equivalent_age(0) == LifeStage.CHILD
    assert LifeStage.from_human_equivalent_age(17) == LifeStage.ADOLESCENT
    assert LifeStage.from_human_equivalent_age(18) == LifeStage.YOUNG_ADULT
    assert LifeStage.from_human_equivalent_age(55) == LifeStage.ADULT
    assert LifeStage.from_human_equivalent_age(70) == LifeStage.MATURE_ADULT
    assert LifeStage.from_human_equivalent_age(90) == LifeStage.ELDER


def test_species_scaling():
    assert HUMAN.time_scale == 1.0
    assert DOG.time_scale == pytest.approx(80 / 12)
    # Mice mature in under a year
    assert MOUSE.effective_maturity_years == pytest.approx(0.12)
    assert LifeStage.for_species(DOG, 3.0) == LifeStage.ADULT
    assert Species.custom("tortoise", 0, 20).time_scale == 1.0


def test_get_state():
    t = DevelopmentTracker(turning_points=[TurningPoint(T0, "move")])
    t.process_event(Event(EventType.FAILURE, "e", 0.5), years(30), T0)
    state = t.get_state()

    assert state["species"] == "human"
    assert state["events_processed"] == 1
    assert state["turning_points"][0]["description"] == "move"
