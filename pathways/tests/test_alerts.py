"""Tests for the alert generator."""

from datetime import datetime

import pytest

from pathways.core.alerts import (
    AlertConfig,
    AlertGenerator,
    AlertSeverity,
    ItsAlert,
    SpiralType,
)
from pathways.core.its import ConvergenceStatus, ItsFactors
from pathways.core.species import DOG, HUMAN
from pathways.core.state import IndividualState, StatePath


T0 = datetime(2020, 1, 1)


# ── Specified test cases ────────────────────────────────────────────────────


def test_desire_and_risk_thresholds():
    factors = ItsFactors(suicidal_desire=0.75, attempt_risk=0.45)
    alerts = AlertGenerator().check_its_thresholds(factors, T0)

    assert len(alerts) == 2
    desire, risk = alerts
    assert desire.severity == AlertSeverity.CRITICAL
    assert desire.trigger.path == StatePath.SUICIDAL_DESIRE
    assert desire.message == "Critical suicidal desire level: 0.75"
    assert risk.severity == AlertSeverity.WARNING
    assert risk.timestamp == T0


def test_no_alerts_below_warning():
    factors = ItsFactors(suicidal_desire=0.4, attempt_risk=0.3)
    assert AlertGenerator().check_its_thresholds(factors) == []


def test_convergence_patterns():
    gen = AlertGenerator()

    single = gen.check_convergence_alert(ConvergenceStatus.from_factors(0.6, 0.1, 0.1))
    assert single.trigger.its_pattern == ItsAlert.SINGLE_FACTOR_TB
    assert single.severity == AlertSeverity.INFO

    double = gen.check_convergence_alert(ConvergenceStatus.from_factors(0.6, 0.1, 0.5))
    assert double.trigger.its_pattern == ItsAlert.TB_WITH_CAPABILITY
    assert double.severity == AlertSeverity.WARNING

    triple = gen.check_convergence_alert(ConvergenceStatus.from_factors(0.6, 0.6, 0.5))
    assert triple.trigger.its_pattern == ItsAlert.THREE_FACTOR_CONVERGENCE
    assert triple.is_critical

    assert gen.check_convergence_alert(ConvergenceStatus.from_factors(0.1, 0.1, 0.1)) is None


def test_spiral_alerts():
    state = IndividualState()
    state.set_effective(StatePath.NEEDS_STRESS, 0.7)
    state.set_effective(StatePath.DEPRESSION, 0.5)

    human = AlertGenerator().check_spiral_alerts(state, HUMAN, T0)
    dog = AlertGenerator().check_spiral_alerts(state, DOG, T0)

    assert [a.trigger.spiral for a in human] == [SpiralType.STRESS, SpiralType.DEPRESSION]
    assert [a.trigger.spiral for a in dog] == [SpiralType.STRESS]


# ── Additional tests ────────────────────────────────────────────────────────


def test_risk_levels():
    assert ItsAlert.SINGLE_FACTOR_AC.risk_level == 1
    assert ItsAlert.DESIRE_WITHOUT_CAPABILITY.risk_level == 2
    assert ItsAlert.THREE_FACTOR_CONVERGENCE.risk_level == 3
    assert ItsAlert.THREE_FACTOR_CONVERGENCE.is_high_risk()
    assert not ItsAlert.PB_WITH_CAPABILITY.is_high_risk()


def test_custom_config():
    config = AlertConfig(desire_warning=0.1, desire_critical=0.9)
    alerts = AlertGenerator(config).check_its_thresholds(ItsFactors(suicidal_desire=0.2))
    assert alerts[0].severity == AlertSeverity.WARNING


def test_check_all_does_not_mutate():
    state = IndividualState()
    state.set_effective(StatePath.NEEDS_STRESS, 0.9)
    before = state.get_state()

    alerts = AlertGenerator().check_all(state, HUMAN, T0)

    assert state.get_state() == before
    assert any(a.trigger.spiral == SpiralType.STRESS for a in alerts)


def test_default_state_is_quiet():
    assert AlertGenerator().check_all(IndividualState(), HUMAN, T0) == []
