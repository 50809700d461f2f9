# ═══════════════════════════════════════════════════════════════════════════════
# PART 11: ALERTS
# Design: C2 (Clinical Psychology)
# Implementation: I1 (Systems Architect)
# ═══════════════════════════════════════════════════════════════════════════════


"""
C2: "Flag it, don't fix it. An alert describes a threshold crossing for
whoever is watching; it never touches the state."
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pathways.core.its import ConvergenceStatus, ItsFactors, compute_its_factors
from pathways.core.species import HUMAN, Species
from pathways.core.state import IndividualState, StatePath


class AlertSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class SpiralType(Enum):
    STRESS = "stress"
    DEPRESSION = "depression"


class ItsAlert(Enum):
    """Risk-matrix pattern of elevated proximal factors."""
    SINGLE_FACTOR_TB = "single_factor_tb"
    SINGLE_FACTOR_PB = "single_factor_pb"
    SINGLE_FACTOR_AC = "single_factor_ac"
    DESIRE_WITHOUT_CAPABILITY = "desire_without_capability"
    TB_WITH_CAPABILITY = "tb_with_capability"
    PB_WITH_CAPABILITY = "pb_with_capability"
    THREE_FACTOR_CONVERGENCE = "three_factor_convergence"

    @classmethod
    def from_convergence(cls, status: ConvergenceStatus) -> Optional["ItsAlert"]:
        key = (status.tb_elevated, status.pb_elevated, status.ac_elevated)
        return _MATRIX.get(key)

    @property
    def risk_level(self) -> int:
        if self == ItsAlert.THREE_FACTOR_CONVERGENCE:
            return 3
        if self in (
            ItsAlert.DESIRE_WITHOUT_CAPABILITY,
            ItsAlert.TB_WITH_CAPABILITY,
            ItsAlert.PB_WITH_CAPABILITY,
        ):
            return 2
        return 1

    def is_high_risk(self) -> bool:
        return self == ItsAlert.THREE_FACTOR_CONVERGENCE


_MATRIX = {
    (True, True, True): ItsAlert.THREE_FACTOR_CONVERGENCE,
    (True, True, False): ItsAlert.DESIRE_WITHOUT_CAPABILITY,
    (True, False, True): ItsAlert.TB_WITH_CAPABILITY,
    (False, True, True): ItsAlert.PB_WITH_CAPABILITY,
    (True, False, False): ItsAlert.SINGLE_FACTOR_TB,
    (False, True, False): ItsAlert.SINGLE_FACTOR_PB,
    (False, False, True): ItsAlert.SINGLE_FACTOR_AC,
}


@dataclass(frozen=True)
class AlertTrigger:
    """What crossed: a path over a threshold, a spiral, or an ITS pattern."""
    path: Optional[StatePath] = None
    value: Optional[float] = None
    spiral: Optional[SpiralType] = None
    its_pattern: Optional[ItsAlert] = None


@dataclass(frozen=True)
class Alert:
    severity: AlertSeverity
    trigger: AlertTrigger
    timestamp: Optional[datetime]
    message: str

    @property
    def is_critical(self) -> bool:
        return self.severity == AlertSeverity.CRITICAL


@dataclass
class AlertConfig:
    """Alert thresholds."""
    desire_warning: float = 0.5
    desire_critical: float = 0.7
    risk_warning: float = 0.4
    risk_critical: float = 0.6
    stress_spiral: float = 0.6
    depression_spiral: float = 0.4


class AlertGenerator:
    """Threshold-crossing detectors over computed states. Never mutates state."""

    def __init__(self, config: Optional[AlertConfig] = None) -> None:
        self.config = config or AlertConfig()

    # ── Public Methods ───────────────────────────────────────────────────────

    def check_its_thresholds(self, factors: ItsFactors, timestamp: Optional[datetime] = None) -> List[Alert]:
        """Desire and attempt-risk alerts; critical takes precedence over warning."""
        cfg = self.config
        alerts = []

        alert = self._graded(
            StatePath.SUICIDAL_DESIRE, factors.suicidal_desire,
            cfg.desire_warning, cfg.desire_critical, "suicidal desire level", timestamp,
        )
        if alert is not None:
            alerts.append(alert)

        alert = self._graded(
            StatePath.ATTEMPT_RISK, factors.attempt_risk,
            cfg.risk_warning, cfg.risk_critical, "attempt risk level", timestamp,
        )
        if alert is not None:
            alerts.append(alert)

        return alerts

    def check_spiral_alerts(
        self,
        state: IndividualState,
        species: Species = HUMAN,
        timestamp: Optional[datetime] = None,
    ) -> List[Alert]:
        cfg = self.config
        alerts = []

        stress = state.needs.stress.effective
        if stress > cfg.stress_spiral:
            alerts.append(Alert(
                AlertSeverity.WARNING,
                AlertTrigger(spiral=SpiralType.STRESS),
                timestamp,
                f"Stress spiral active (stress: {stress:.2f})",
            ))

        if species.is_human():
            depression = state.mental_health.depression.effective
            if depression > cfg.depression_spiral:
                alerts.append(Alert(
                    AlertSeverity.WARNING,
                    AlertTrigger(spiral=SpiralType.DEPRESSION),
                    timestamp,
                    f"Depression spiral active (depression: {depression:.2f})",
                ))

        return alerts

    def check_convergence_alert(
        self,
        status: ConvergenceStatus,
        timestamp: Optional[datetime] = None,
    ) -> Optional[Alert]:
        """Risk-matrix alert: INFO for one factor, WARNING for two, CRITICAL for all three."""
        pattern = ItsAlert.from_convergence(status)
        if pattern is None:
            return None
        severity = {
            1: AlertSeverity.INFO,
            2: AlertSeverity.WARNING,
            3: AlertSeverity.CRITICAL,
        }[pattern.risk_level]
        return Alert(
            severity,
            AlertTrigger(its_pattern=pattern),
            timestamp,
            f"ITS pattern: {pattern.value.replace('_', ' ')} (risk level {pattern.risk_level})",
        )

    def check_all(
        self,
        state: IndividualState,
        species: Species = HUMAN,
        timestamp: Optional[datetime] = None,
    ) -> List[Alert]:
        factors = compute_its_factors(state)
        alerts = self.check_its_thresholds(factors, timestamp)
        convergence = self.check_convergence_alert(factors.convergence_status, timestamp)
        if convergence is not None:
            alerts.append(convergence)
        alerts.extend(self.check_spiral_alerts(state, species, timestamp))
        return alerts

    # ── Internal ─────────────────────────────────────────────────────────────

    def _graded(
        self,
        path: StatePath,
        value: float,
        warning: float,
        critical: float,
        label: str,
        timestamp: Optional[datetime],
    ) -> Optional[Alert]:
        if value >= critical:
            severity, prefix = AlertSeverity.CRITICAL, "Critical"
        elif value >= warning:
            severity, prefix = AlertSeverity.WARNING, "Elevated"
        else:
            return None
        return Alert(
            severity,
            AlertTrigger(path=path, value=value),
            timestamp,
            f"{prefix} {label}: {value:.2f}",
        )
