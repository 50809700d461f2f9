# ═══════════════════════════════════════════════════════════════════════════════
# PART 2: INDIVIDUAL STATE
# Design: A1 (Affective Science) + C2 (Clinical Psychology)
# Implementation: I3 (State Management)
# ═══════════════════════════════════════════════════════════════════════════════


"""
A1: "Mood is PAD: valence, arousal, dominance. Fast, six to twelve hours.
Needs and social cognition are slower. Dispositions barely move."

C2: "Thwarted belongingness and perceived burdensomeness are not measured
directly, they are derived from loneliness, caring, liability and self-hate.
Keep the derivation in one place."

I3: "One aggregate, owned by the entity, copied for every query. Typed paths
so the outside world never reaches into the groups."
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from pathways.core.state_value import MonotonicValue, StateValue, bounded


HOUR = timedelta(hours=1)
DAY = timedelta(days=1)

# ITS presence thresholds
TB_PRESENT_THRESHOLD = 0.5
PB_PRESENT_THRESHOLD = 0.5
HOPELESSNESS_THRESHOLD = 0.5

# Personality -> mood baseline attenuation
MOOD_PERSONALITY_ATTENUATION = 0.3


# ── Personality ──────────────────────────────────────────────────────────────


class PersonalityProfile(Enum):
    """Archetypal presets; values are (O, C, X, A, N, HH) on a 0-1 scale."""
    BALANCED = "balanced"
    ANXIOUS = "anxious"
    AVOIDANT = "avoidant"
    AGREEABLE = "agreeable"
    CONSCIENTIOUS = "conscientious"
    NEUROTIC = "neurotic"
    EXTRAVERTED = "extraverted"
    INTROVERTED = "introverted"
    LEADER = "leader"
    REBEL = "rebel"

    @property
    def factors(self) -> Tuple[float, float, float, float, float, float]:
        return _PROFILE_FACTORS[self]


_PROFILE_FACTORS: Dict[PersonalityProfile, Tuple[float, float, float, float, float, float]] = {
    #                                  O     C     X     A     N     HH
    PersonalityProfile.BALANCED:      (0.5, 0.5, 0.5, 0.5, 0.5, 0.5),
    PersonalityProfile.ANXIOUS:       (0.4, 0.5, 0.4, 0.6, 0.8, 0.5),
    PersonalityProfile.AVOIDANT:      (0.5, 0.5, 0.3, 0.4, 0.4, 0.5),
    PersonalityProfile.AGREEABLE:     (0.5, 0.5, 0.5, 0.8, 0.4, 0.6),
    PersonalityProfile.CONSCIENTIOUS: (0.4, 0.8, 0.5, 0.5, 0.4, 0.6),
    PersonalityProfile.NEUROTIC:      (0.5, 0.4, 0.4, 0.4, 0.8, 0.5),
    PersonalityProfile.EXTRAVERTED:   (0.6, 0.5, 0.8, 0.6, 0.3, 0.5),
    PersonalityProfile.INTROVERTED:   (0.6, 0.6, 0.2, 0.5, 0.5, 0.6),
    PersonalityProfile.LEADER:        (0.6, 0.8, 0.8, 0.5, 0.2, 0.5),
    PersonalityProfile.REBEL:         (0.7, 0.3, 0.5, 0.2, 0.5, 0.3),
}


def _trait(value: float) -> float:
    return float(np.clip(value, -1.0, 1.0))


@dataclass
class Hexaco:
    """HEXACO personality factors, each in [-1, 1]. Stable: never decays."""
    openness: float = 0.0
    conscientiousness: float = 0.0
    extraversion: float = 0.0
    agreeableness: float = 0.0
    neuroticism: float = 0.0
    honesty_humility: float = 0.0

    def __post_init__(self) -> None:
        for name in HEXACO_FACTORS:
            setattr(self, name, _trait(getattr(self, name)))

    @property
    def emotionality(self) -> float:
        """HEXACO Emotionality; stored as neuroticism."""
        return self.neuroticism

    @classmethod
    def from_profile(cls, profile: PersonalityProfile) -> "Hexaco":
        """Map a 0-1 profile onto the -1..1 trait scale (v * 2 - 1)."""
        o, c, x, a, n, hh = profile.factors
        return cls(
            openness=o * 2 - 1,
            conscientiousness=c * 2 - 1,
            extraversion=x * 2 - 1,
            agreeableness=a * 2 - 1,
            neuroticism=n * 2 - 1,
            honesty_humility=hh * 2 - 1,
        )

    def set(self, name: str, value: float) -> None:
        if name not in HEXACO_FACTORS:
            raise KeyError(f"Unknown HEXACO factor: {name}")
        setattr(self, name, _trait(value))

    def copy(self) -> "Hexaco":
        return Hexaco(**{name: getattr(self, name) for name in HEXACO_FACTORS})


HEXACO_FACTORS = (
    "openness",
    "conscientiousness",
    "extraversion",
    "agreeableness",
    "neuroticism",
    "honesty_humility",
)


# ── State groups ─────────────────────────────────────────────────────────────


class _Group:
    """Shared plumbing for groups of StateValues."""

    _fields: Tuple[str, ...] = ()

    def values(self) -> Iterator[Tuple[str, StateValue]]:
        for name in self._fields:
            yield name, getattr(self, name)

    def apply_decay(self, elapsed: timedelta) -> None:
        for _, value in self.values():
            value.apply_decay(elapsed)

    def reset_deltas(self) -> None:
        for _, value in self.values():
            if not value.is_monotonic:
                value.reset_delta()

    def copy(self):
        clone = self.__class__.__new__(self.__class__)
        for name, value in self.values():
            setattr(clone, name, value.copy())
        return clone

    def get_state(self) -> dict:
        return {name: value.get_state() for name, value in self.values()}


def _mood_value(base: float, hours: float) -> StateValue:
    return bounded(base, hours * HOUR, -1.0, 1.0)


@dataclass
class Mood(_Group):
    """PAD mood. Fast decay."""
    valence: StateValue = field(default_factory=lambda: _mood_value(0.0, 6))
    arousal: StateValue = field(default_factory=lambda: _mood_value(0.0, 6))
    dominance: StateValue = field(default_factory=lambda: _mood_value(0.0, 12))

    _fields = ("valence", "arousal", "dominance")

    @classmethod
    def from_personality(cls, hexaco: Hexaco) -> "Mood":
        """
        Derive mood baselines from personality.

        Extraversion lifts valence and dominance, neuroticism lowers valence
        and raises arousal, openness adds some arousal. Attenuated by 0.3 so
        personality colours mood without pinning it.
        """
        k = MOOD_PERSONALITY_ATTENUATION
        x, n, o = hexaco.extraversion, hexaco.neuroticism, hexaco.openness
        return cls(
            valence=_mood_value(k * (0.6 * x - 0.6 * n), 6),
            arousal=_mood_value(k * (0.4 * n + 0.3 * o), 6),
            dominance=_mood_value(k * 0.5 * x, 12),
        )


@dataclass
class Needs(_Group):
    fatigue: StateValue = field(default_factory=lambda: bounded(0.2, 8 * HOUR))
    stress: StateValue = field(default_factory=lambda: bounded(0.2, 12 * HOUR))
    purpose: StateValue = field(default_factory=lambda: bounded(0.7, 3 * DAY))

    _fields = ("fatigue", "stress", "purpose")


@dataclass
class SocialCognition(_Group):
    """Beliefs about self-in-relation. Chronic events land in chronic_delta."""
    loneliness: StateValue = field(default_factory=lambda: bounded(0.2, 1 * DAY))
    perceived_reciprocal_caring: StateValue = field(default_factory=lambda: bounded(0.6, 2 * DAY))
    perceived_liability: StateValue = field(default_factory=lambda: bounded(0.0, 3 * DAY))
    self_hate: StateValue = field(default_factory=lambda: bounded(0.1, 3 * DAY))
    perceived_competence: StateValue = field(default_factory=lambda: bounded(0.5, 7 * DAY))

    _fields = (
        "loneliness",
        "perceived_reciprocal_caring",
        "perceived_liability",
        "self_hate",
        "perceived_competence",
    )


@dataclass
class MentalHealth(_Group):
    depression: StateValue = field(default_factory=lambda: bounded(0.1, 7 * DAY))
    self_worth: StateValue = field(default_factory=lambda: bounded(0.6, 3 * DAY))
    hopelessness: StateValue = field(default_factory=lambda: bounded(0.1, 3 * DAY))
    interpersonal_hopelessness: StateValue = field(default_factory=lambda: bounded(0.1, 2 * DAY))
    acquired_capability: MonotonicValue = field(default_factory=lambda: MonotonicValue(base=0.0))

    _fields = (
        "depression",
        "self_worth",
        "hopelessness",
        "interpersonal_hopelessness",
        "acquired_capability",
    )

    # ── ITS derivations ──────────────────────────────────────────────────────

    def compute_thwarted_belongingness(self, social: SocialCognition) -> float:
        """TB = (loneliness + (1 - perceived_reciprocal_caring)) / 2."""
        loneliness = social.loneliness.effective
        caring = social.perceived_reciprocal_caring.effective
        return float(np.clip((loneliness + (1.0 - caring)) / 2.0, 0.0, 1.0))

    def compute_perceived_burdensomeness(self, social: SocialCognition) -> float:
        """PB = perceived_liability * self_hate."""
        liability = social.perceived_liability.effective
        self_hate = social.self_hate.effective
        return float(np.clip(liability * self_hate, 0.0, 1.0))

    def compute_suicidal_desire(self, social: SocialCognition) -> float:
        """TB * PB, but only when TB, PB and interpersonal hopelessness are all present."""
        tb = self.compute_thwarted_belongingness(social)
        pb = self.compute_perceived_burdensomeness(social)
        hopeless = self.interpersonal_hopelessness.effective
        if tb < TB_PRESENT_THRESHOLD or pb < PB_PRESENT_THRESHOLD:
            return 0.0
        if hopeless < HOPELESSNESS_THRESHOLD:
            return 0.0
        return tb * pb

    def compute_attempt_risk(self, social: SocialCognition) -> float:
        """Desire gated by capability."""
        return self.compute_suicidal_desire(social) * self.acquired_capability.effective


@dataclass
class Disposition(_Group):
    """Slow-moving behavioural tendencies."""
    impulse_control: StateValue = field(default_factory=lambda: bounded(0.6, 30 * DAY))
    empathy: StateValue = field(default_factory=lambda: bounded(0.7, 30 * DAY))
    aggression: StateValue = field(default_factory=lambda: bounded(0.2, 30 * DAY))
    grievance: StateValue = field(default_factory=lambda: bounded(0.0, 7 * DAY))
    reactance: StateValue = field(default_factory=lambda: bounded(0.0, 7 * DAY))
    trust_propensity: StateValue = field(default_factory=lambda: bounded(0.5, 365 * DAY))

    _fields = (
        "impulse_control",
        "empathy",
        "aggression",
        "grievance",
        "reactance",
        "trust_propensity",
    )


# ── Paths ────────────────────────────────────────────────────────────────────


class StatePath(Enum):
    """Typed accessor paths: "<group>.<dimension>"."""
    # HEXACO (stable traits, not StateValues)
    HEXACO_OPENNESS = "hexaco.openness"
    HEXACO_CONSCIENTIOUSNESS = "hexaco.conscientiousness"
    HEXACO_EXTRAVERSION = "hexaco.extraversion"
    HEXACO_AGREEABLENESS = "hexaco.agreeableness"
    HEXACO_NEUROTICISM = "hexaco.neuroticism"
    HEXACO_HONESTY_HUMILITY = "hexaco.honesty_humility"

    MOOD_VALENCE = "mood.valence"
    MOOD_AROUSAL = "mood.arousal"
    MOOD_DOMINANCE = "mood.dominance"

    NEEDS_FATIGUE = "needs.fatigue"
    NEEDS_STRESS = "needs.stress"
    NEEDS_PURPOSE = "needs.purpose"

    LONELINESS = "social_cognition.loneliness"
    PERCEIVED_RECIPROCAL_CARING = "social_cognition.perceived_reciprocal_caring"
    PERCEIVED_LIABILITY = "social_cognition.perceived_liability"
    SELF_HATE = "social_cognition.self_hate"
    PERCEIVED_COMPETENCE = "social_cognition.perceived_competence"

    DEPRESSION = "mental_health.depression"
    SELF_WORTH = "mental_health.self_worth"
    HOPELESSNESS = "mental_health.hopelessness"
    INTERPERSONAL_HOPELESSNESS = "mental_health.interpersonal_hopelessness"
    ACQUIRED_CAPABILITY = "mental_health.acquired_capability"
    # Derived (read-only)
    THWARTED_BELONGINGNESS = "mental_health.thwarted_belongingness"
    PERCEIVED_BURDENSOMENESS = "mental_health.perceived_burdensomeness"
    SUICIDAL_DESIRE = "mental_health.suicidal_desire"
    ATTEMPT_RISK = "mental_health.attempt_risk"

    IMPULSE_CONTROL = "disposition.impulse_control"
    EMPATHY = "disposition.empathy"
    AGGRESSION = "disposition.aggression"
    GRIEVANCE = "disposition.grievance"
    REACTANCE = "disposition.reactance"
    TRUST_PROPENSITY = "disposition.trust_propensity"

    RECENT_MORAL_VIOLATION = "flags.recent_moral_violation"

    @property
    def group(self) -> str:
        return self.value.split(".", 1)[0]

    @property
    def dimension(self) -> str:
        return self.value.split(".", 1)[1]

    @property
    def is_derived(self) -> bool:
        return self in _DERIVED_PATHS

    @property
    def is_trait(self) -> bool:
        return self.group == "hexaco"

    @classmethod
    def parse(cls, text: str) -> Optional["StatePath"]:
        """Look up a path by its dotted name. None if unknown."""
        try:
            return cls(text)
        except ValueError:
            return None

    @classmethod
    def dimensions(cls) -> List["StatePath"]:
        """Every path backed by a StateValue."""
        return [p for p in cls if not p.is_derived and not p.is_trait]


_DERIVED_PATHS = frozenset({
    StatePath.THWARTED_BELONGINGNESS,
    StatePath.PERCEIVED_BURDENSOMENESS,
    StatePath.SUICIDAL_DESIRE,
    StatePath.ATTEMPT_RISK,
})


# ── Aggregate ────────────────────────────────────────────────────────────────


class IndividualState:
    """
    Aggregate psychological state of one entity.

    Owned by the entity. Queries work on copies; nothing here is shared
    between a stored anchor and a computed result.
    """

    def __init__(
        self,
        hexaco: Optional[Hexaco] = None,
        mood: Optional[Mood] = None,
        needs: Optional[Needs] = None,
        social_cognition: Optional[SocialCognition] = None,
        mental_health: Optional[MentalHealth] = None,
        disposition: Optional[Disposition] = None,
    ) -> None:
        self.hexaco = hexaco or Hexaco()
        self.mood = mood or Mood.from_personality(self.hexaco)
        self.needs = needs or Needs()
        self.social_cognition = social_cognition or SocialCognition()
        self.mental_health = mental_health or MentalHealth()
        self.disposition = disposition or Disposition()
        self.flags = _Flags()

    # ── Public Methods ───────────────────────────────────────────────────────

    def groups(self) -> Iterator[_Group]:
        yield self.mood
        yield self.needs
        yield self.social_cognition
        yield self.mental_health
        yield self.disposition
        yield self.flags

    def get_value(self, path: StatePath) -> StateValue:
        """
        Underlying StateValue for a path.

        Raises:
            KeyError: For trait or derived paths, which are not StateValues.
        """
        if path.is_trait or path.is_derived:
            raise KeyError(f"Path has no StateValue: {path.value}")
        return getattr(getattr(self, path.group), path.dimension)

    def get_effective(self, path: StatePath) -> float:
        """Effective value at a path, including traits and ITS derivations."""
        if path.is_trait:
            return getattr(self.hexaco, path.dimension)
        if path.is_derived:
            return self._derived(path)
        return self.get_value(path).effective

    def set_effective(self, path: StatePath, value: float) -> None:
        """
        Configure a dimension so its effective value is `value`.

        Setup-time only: rebases the dimension and clears its deltas. Not part
        of the event-log mechanism.
        """
        if path.is_derived:
            raise KeyError(f"Derived path is read-only: {path.value}")
        if path.is_trait:
            self.hexaco.set(path.dimension, value)
            return
        self.get_value(path).set_effective(value)

    def apply_decay(self, elapsed: timedelta) -> None:
        """Decay every dimension. HEXACO is stable."""
        for group in self.groups():
            group.apply_decay(elapsed)

    def reset_all_deltas(self) -> None:
        """Clear all deltas. Acquired capability is kept."""
        for group in self.groups():
            group.reset_deltas()

    def dimension_values(self) -> Iterator[Tuple[StatePath, StateValue]]:
        for path in StatePath.dimensions():
            yield path, self.get_value(path)

    def copy(self) -> "IndividualState":
        clone = IndividualState.__new__(IndividualState)
        clone.hexaco = self.hexaco.copy()
        clone.mood = self.mood.copy()
        clone.needs = self.needs.copy()
        clone.social_cognition = self.social_cognition.copy()
        clone.mental_health = self.mental_health.copy()
        clone.disposition = self.disposition.copy()
        clone.flags = self.flags.copy()
        return clone

    def get_state(self) -> dict:
        """Serialize current state."""
        return {
            "hexaco": {name: getattr(self.hexaco, name) for name in HEXACO_FACTORS},
            "mood": self.mood.get_state(),
            "needs": self.needs.get_state(),
            "social_cognition": self.social_cognition.get_state(),
            "mental_health": self.mental_health.get_state(),
            "disposition": self.disposition.get_state(),
            "flags": self.flags.get_state(),
        }

    # ── Internal ─────────────────────────────────────────────────────────────

    def _derived(self, path: StatePath) -> float:
        mh, social = self.mental_health, self.social_cognition
        if path is StatePath.THWARTED_BELONGINGNESS:
            return mh.compute_thwarted_belongingness(social)
        if path is StatePath.PERCEIVED_BURDENSOMENESS:
            return mh.compute_perceived_burdensomeness(social)
        if path is StatePath.SUICIDAL_DESIRE:
            return mh.compute_suicidal_desire(social)
        return mh.compute_attempt_risk(social)


@dataclass
class _Flags(_Group):
    """Short-lived markers. Set to 1.0 and decay within a day or so."""
    recent_moral_violation: StateValue = field(default_factory=lambda: bounded(0.0, 24 * HOUR))

    _fields = ("recent_moral_violation",)
