# ═══════════════════════════════════════════════════════════════════════════════
# PART 10: ITS RISK FACTORS
# Design: C2 (Clinical Psychology)
# Implementation: I2 (Numerics)
# ═══════════════════════════════════════════════════════════════════════════════


"""
C2: "Interpersonal theory of suicide. Desire needs BOTH thwarted belongingness
and perceived burdensomeness, plus hopelessness that either will change.
Capability is separate and acquired. Risk is desire times capability:
multiplicative, never additive."

I2: "Pure functions of effective values. Contributors are tracked as
activations with their own half-life; chronic ones hold until deactivated."
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Union

import numpy as np

from pathways.core.state import (
    PB_PRESENT_THRESHOLD,
    TB_PRESENT_THRESHOLD,
    IndividualState,
)


AC_ELEVATED_THRESHOLD = 0.3
PASSIVE_IDEATION_THRESHOLD = 0.3
SIGNIFICANT_RISK_THRESHOLD = 0.3

ACUTE_CONTRIBUTOR_HALF_LIFE = timedelta(days=7)
CONTRIBUTOR_ACTIVATION_THRESHOLD = 0.1


class ItsProximalFactor(Enum):
    THWARTED_BELONGINGNESS = "TB"
    PERCEIVED_BURDENSOMENESS = "PB"
    ACQUIRED_CAPABILITY = "AC"


class ConvergenceLevel(Enum):
    NONE = "none"
    ELEVATED = "elevated"     # TB and PB both present
    CONVERGENT = "convergent"  # TB, PB and AC all present


@dataclass
class ConvergenceStatus:
    """Which proximal factors are elevated, and how they combine."""
    tb_elevated: bool = False
    pb_elevated: bool = False
    ac_elevated: bool = False
    elevated_factor_count: int = 0
    is_three_factor_convergent: bool = False
    highest_factor: Optional[ItsProximalFactor] = None

    @classmethod
    def from_factors(cls, tb: float, pb: float, ac: float) -> "ConvergenceStatus":
        tb_elevated = tb >= TB_PRESENT_THRESHOLD
        pb_elevated = pb >= PB_PRESENT_THRESHOLD
        ac_elevated = ac >= AC_ELEVATED_THRESHOLD
        count = int(tb_elevated) + int(pb_elevated) + int(ac_elevated)

        # Highest factor by excess over its own threshold; ties favour TB, then PB
        excess = {
            ItsProximalFactor.THWARTED_BELONGINGNESS: tb - TB_PRESENT_THRESHOLD if tb_elevated else -1.0,
            ItsProximalFactor.PERCEIVED_BURDENSOMENESS: pb - PB_PRESENT_THRESHOLD if pb_elevated else -1.0,
            ItsProximalFactor.ACQUIRED_CAPABILITY: ac - AC_ELEVATED_THRESHOLD if ac_elevated else -1.0,
        }
        highest = None
        if count:
            highest = max(excess, key=lambda factor: excess[factor])

        return cls(
            tb_elevated=tb_elevated,
            pb_elevated=pb_elevated,
            ac_elevated=ac_elevated,
            elevated_factor_count=count,
            is_three_factor_convergent=count == 3,
            highest_factor=highest,
        )

    @property
    def level(self) -> ConvergenceLevel:
        if self.is_three_factor_convergent:
            return ConvergenceLevel.CONVERGENT
        if self.has_desire():
            return ConvergenceLevel.ELEVATED
        return ConvergenceLevel.NONE

    def has_desire(self) -> bool:
        return self.tb_elevated and self.pb_elevated

    def is_dormant_capability(self) -> bool:
        return self.ac_elevated and not self.has_desire()

    def has_desire_without_capability(self) -> bool:
        return self.has_desire() and not self.ac_elevated

    def elevated_factors(self) -> List[ItsProximalFactor]:
        factors = []
        if self.tb_elevated:
            factors.append(ItsProximalFactor.THWARTED_BELONGINGNESS)
        if self.pb_elevated:
            factors.append(ItsProximalFactor.PERCEIVED_BURDENSOMENESS)
        if self.ac_elevated:
            factors.append(ItsProximalFactor.ACQUIRED_CAPABILITY)
        return factors


@dataclass
class ItsFactors:
    thwarted_belongingness: float = 0.0
    perceived_burdensomeness: float = 0.0
    acquired_capability: float = 0.0
    suicidal_desire: float = 0.0
    attempt_risk: float = 0.0
    passive_ideation_present: bool = False
    convergence_status: ConvergenceStatus = field(default_factory=ConvergenceStatus)

    def has_active_desire(self) -> bool:
        return self.suicidal_desire > 0.0

    def has_significant_risk(self) -> bool:
        return self.attempt_risk > SIGNIFICANT_RISK_THRESHOLD

    def get_state(self) -> dict:
        return {
            "tb": self.thwarted_belongingness,
            "pb": self.perceived_burdensomeness,
            "ac": self.acquired_capability,
            "desire": self.suicidal_desire,
            "risk": self.attempt_risk,
            "passive_ideation": self.passive_ideation_present,
            "convergence": self.convergence_status.level.value,
        }


def compute_its_factors(state: IndividualState) -> ItsFactors:
    """
    Derive TB, PB, AC, desire and risk from a state. Never mutates it.

    TB = (loneliness + (1 - perceived_reciprocal_caring)) / 2
    PB = perceived_liability * self_hate
    desire = TB * PB when TB, PB and interpersonal hopelessness are present
    risk = desire * AC
    """
    mh, social = state.mental_health, state.social_cognition
    tb = mh.compute_thwarted_belongingness(social)
    pb = mh.compute_perceived_burdensomeness(social)
    ac = mh.acquired_capability.effective

    return ItsFactors(
        thwarted_belongingness=tb,
        perceived_burdensomeness=pb,
        acquired_capability=ac,
        suicidal_desire=mh.compute_suicidal_desire(social),
        attempt_risk=mh.compute_attempt_risk(social),
        passive_ideation_present=tb > PASSIVE_IDEATION_THRESHOLD or pb > PASSIVE_IDEATION_THRESHOLD,
        convergence_status=ConvergenceStatus.from_factors(tb, pb, ac),
    )


# ── Contributors ─────────────────────────────────────────────────────────────


class TbContributor(Enum):
    SOCIAL_REJECTION = "social_rejection"
    ISOLATION = "isolation"
    RELATIONSHIP_LOSS = "relationship_loss"
    ROLE_DISPLACEMENT = "role_displacement"
    GROUP_EXCLUSION = "group_exclusion"
    INTERPERSONAL_CONFLICT = "interpersonal_conflict"
    SOCIAL_NETWORK_DISRUPTION = "social_network_disruption"

    @property
    def is_chronic(self) -> bool:
        return self in (
            TbContributor.ISOLATION,
            TbContributor.ROLE_DISPLACEMENT,
            TbContributor.SOCIAL_NETWORK_DISRUPTION,
        )


class PbContributor(Enum):
    DIRECT_BURDEN_FEEDBACK = "direct_burden_feedback"
    FINANCIAL_STRAIN = "financial_strain"
    SHAME = "shame"
    ROLE_FAILURE = "role_failure"
    ILLNESS_DEPENDENT = "illness_dependent"
    SELF_LOATHING = "self_loathing"
    USELESSNESS = "uselessness"
    FAMILY_CONFLICT = "family_conflict"

    @property
    def is_chronic(self) -> bool:
        return self in (
            PbContributor.FINANCIAL_STRAIN,
            PbContributor.ILLNESS_DEPENDENT,
            PbContributor.SELF_LOATHING,
        )


class AcContributor(Enum):
    NON_SUICIDAL_SELF_INJURY = "non_suicidal_self_injury"
    PRIOR_SUICIDE_ATTEMPT = "prior_suicide_attempt"
    PHYSICAL_ABUSE_EXPOSURE = "physical_abuse_exposure"
    SEXUAL_ABUSE_EXPOSURE = "sexual_abuse_exposure"
    COMBAT_EXPOSURE = "combat_exposure"
    CHRONIC_PAIN_EXPOSURE = "chronic_pain_exposure"
    VIOLENCE_WITNESSING = "violence_witnessing"
    PHYSICAL_INJURY = "physical_injury"
    OCCUPATIONAL_EXPOSURE = "occupational_exposure"
    SUICIDE_BEREAVEMENT = "suicide_bereavement"

    @property
    def weight(self) -> float:
        return _AC_WEIGHTS[self]

    @property
    def is_chronic(self) -> bool:
        # Capability does not fade
        return True


_AC_WEIGHTS: Dict[AcContributor, float] = {
    AcContributor.PRIOR_SUICIDE_ATTEMPT: 1.0,
    AcContributor.NON_SUICIDAL_SELF_INJURY: 0.8,
    AcContributor.PHYSICAL_ABUSE_EXPOSURE: 0.6,
    AcContributor.SEXUAL_ABUSE_EXPOSURE: 0.6,
    AcContributor.COMBAT_EXPOSURE: 0.5,
    AcContributor.CHRONIC_PAIN_EXPOSURE: 0.4,
    AcContributor.VIOLENCE_WITNESSING: 0.3,
    AcContributor.PHYSICAL_INJURY: 0.3,
    AcContributor.OCCUPATIONAL_EXPOSURE: 0.2,
    AcContributor.SUICIDE_BEREAVEMENT: 0.4,
}

ItsContributor = Union[TbContributor, PbContributor, AcContributor]


def proximal_factor_of(contributor: ItsContributor) -> ItsProximalFactor:
    if isinstance(contributor, TbContributor):
        return ItsProximalFactor.THWARTED_BELONGINGNESS
    if isinstance(contributor, PbContributor):
        return ItsProximalFactor.PERCEIVED_BURDENSOMENESS
    return ItsProximalFactor.ACQUIRED_CAPABILITY


@dataclass
class ContributorActivation:
    """One activation of a contributor at a point in time."""
    contributor: ItsContributor
    activated_at: datetime
    initial_intensity: float
    is_chronic: bool = False

    @classmethod
    def create(
        cls,
        contributor: ItsContributor,
        activated_at: datetime,
        intensity: float,
    ) -> "ContributorActivation":
        return cls(
            contributor=contributor,
            activated_at=activated_at,
            initial_intensity=float(np.clip(intensity, 0.0, 1.0)),
            is_chronic=contributor.is_chronic,
        )

    def intensity_at(self, query_time: datetime) -> float:
        """Chronic activations hold; acute ones halve every 7 days."""
        if self.is_chronic or query_time <= self.activated_at:
            return self.initial_intensity
        ratio = (query_time - self.activated_at) / ACUTE_CONTRIBUTOR_HALF_LIFE
        return self.initial_intensity * float(np.power(0.5, ratio))

    def is_active_at(self, query_time: datetime) -> bool:
        return self.intensity_at(query_time) >= CONTRIBUTOR_ACTIVATION_THRESHOLD


class ItsContributors:
    """Activation history of ITS contributors for one entity."""

    def __init__(self) -> None:
        self.activations: List[ContributorActivation] = []

    # ── Public Methods ───────────────────────────────────────────────────────

    def activate(self, contributor: ItsContributor, timestamp: datetime, intensity: float) -> None:
        self.activations.append(ContributorActivation.create(contributor, timestamp, intensity))

    def deactivate_chronic(self, contributor: ItsContributor, timestamp: datetime) -> None:
        """Record that a chronic contributor has ended (zero-intensity activation)."""
        self.activations.append(ContributorActivation(
            contributor=contributor,
            activated_at=timestamp,
            initial_intensity=0.0,
            is_chronic=True,
        ))

    def active_at(self, query_time: datetime) -> List[ContributorActivation]:
        return [a for a in self._effective(query_time) if a.is_active_at(query_time)]

    def contributor_intensity_at(self, contributor: ItsContributor, query_time: datetime) -> float:
        """Strongest activation of one contributor."""
        intensities = [
            a.intensity_at(query_time) for a in self._effective(query_time)
            if a.contributor == contributor
        ]
        return max(intensities, default=0.0)

    def tb_contribution_at(self, query_time: datetime) -> float:
        return self._sum_for(TbContributor, query_time)

    def pb_contribution_at(self, query_time: datetime) -> float:
        return self._sum_for(PbContributor, query_time)

    def ac_contribution_at(self, query_time: datetime) -> float:
        """Weighted sum of AC contributions, capped at 1."""
        total = sum(
            a.intensity_at(query_time) * a.contributor.weight
            for a in self._effective(query_time)
            if isinstance(a.contributor, AcContributor)
        )
        return min(total, 1.0)

    def active_contributors_at(self, factor: ItsProximalFactor, query_time: datetime) -> List[ItsContributor]:
        return [
            a.contributor for a in self.active_at(query_time)
            if proximal_factor_of(a.contributor) == factor
        ]

    def active_count_at(self, query_time: datetime) -> int:
        return len(self.active_at(query_time))

    def has_active_contributors_at(self, query_time: datetime) -> bool:
        return bool(self.active_at(query_time))

    def copy(self) -> "ItsContributors":
        clone = ItsContributors()
        clone.activations = list(self.activations)
        return clone

    def get_state(self) -> dict:
        """Serialize current state."""
        return {
            "activations": [
                {
                    "contributor": a.contributor.value,
                    "factor": proximal_factor_of(a.contributor).value,
                    "activated_at": a.activated_at.isoformat(),
                    "initial_intensity": a.initial_intensity,
                    "is_chronic": a.is_chronic,
                }
                for a in self.activations
            ],
        }

    # ── Internal ─────────────────────────────────────────────────────────────

    def _sum_for(self, kind, query_time: datetime) -> float:
        total = sum(
            a.intensity_at(query_time) for a in self._effective(query_time)
            if isinstance(a.contributor, kind)
        )
        return min(total, 1.0)

    def _effective(self, query_time: datetime) -> List[ContributorActivation]:
        """
        Activations that count at `query_time`.

        Only activations at or before the query count. For chronic
        contributors the latest activation supersedes earlier ones, so a
        deactivation ends the contribution.
        """
        latest_chronic: Dict[ItsContributor, ContributorActivation] = {}
        acute: List[ContributorActivation] = []
        for a in self.activations:
            if a.activated_at > query_time:
                continue
            if a.is_chronic:
                current = latest_chronic.get(a.contributor)
                if current is None or a.activated_at >= current.activated_at:
                    latest_chronic[a.contributor] = a
            else:
                acute.append(a)
        return acute + list(latest_chronic.values())
