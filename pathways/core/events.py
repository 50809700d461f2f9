# ═══════════════════════════════════════════════════════════════════════════════
# PART 6: EVENTS
# Design: C2 (Clinical Psychology)
# Implementation: I1 (Systems Architect)
# ═══════════════════════════════════════════════════════════════════════════════


"""
C2: "Events are what happened, not how it felt. How it felt is the
interpreter's job, and depends on who it happened to."

I1: "Plain value objects. Type, severity, who did it, who it happened to, an
optional payload. Categories group types by which pathway they hit."
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple, Union

import numpy as np

from pathways.core.state import StatePath


class EventCategory(Enum):
    """Which psychological pathway an event type primarily hits."""
    SOCIAL_BELONGING = "social_belonging"
    BURDEN_PERCEPTION = "burden_perception"
    TRAUMA = "trauma"
    CONTROL = "control"
    ACHIEVEMENT = "achievement"
    SOCIAL = "social"
    CONTEXTUAL = "contextual"


class EventType(Enum):
    # Social belonging (TB pathway)
    SOCIAL_EXCLUSION = "social_exclusion"
    SOCIAL_INCLUSION = "social_inclusion"
    REJECTION = "rejection"
    SOCIAL_ISOLATION = "social_isolation"
    RELATIONSHIP_END = "relationship_end"
    GROUP_EXCLUSION = "group_exclusion"
    BEREAVEMENT = "bereavement"
    # Burden perception (PB pathway)
    BURDEN_FEEDBACK = "burden_feedback"
    SHAMING_EVENT = "shaming_event"
    FINANCIAL_BURDEN = "financial_burden"
    CHRONIC_ILLNESS_ONSET = "chronic_illness_onset"
    FAMILY_DISCORD = "family_discord"
    JOB_LOSS = "job_loss"
    # Trauma (AC pathway)
    VIOLENCE = "violence"
    TRAUMATIC_EXPOSURE = "traumatic_exposure"
    NON_SUICIDAL_SELF_INJURY = "non_suicidal_self_injury"
    CHILDHOOD_ABUSE = "childhood_abuse"
    COMBAT_EXPOSURE = "combat_exposure"
    PHYSICAL_INJURY = "physical_injury"
    VIOLENCE_EXPOSURE = "violence_exposure"
    PRIOR_SUICIDE_ATTEMPT = "prior_suicide_attempt"
    SUICIDAL_LOSS = "suicidal_loss"
    # Control
    HUMILIATION = "humiliation"
    EMPOWERMENT = "empowerment"
    # Achievement
    ACHIEVEMENT = "achievement"
    FAILURE = "failure"
    LOSS = "loss"
    # Social
    INTERACTION = "interaction"
    BETRAYAL = "betrayal"
    SUPPORT = "support"
    CONFLICT = "conflict"
    # Contextual
    POLICY_CHANGE = "policy_change"
    CONTEXT_TRANSITION = "context_transition"
    HISTORICAL_EVENT = "historical_event"
    REALIZATION = "realization"

    @property
    def category(self) -> EventCategory:
        return _CATEGORY[self]

    @property
    def its_pathways(self) -> Tuple[bool, bool, bool]:
        """(affects TB, affects PB, affects AC)."""
        category = self.category
        return (
            category == EventCategory.SOCIAL_BELONGING,
            category == EventCategory.BURDEN_PERCEPTION,
            category == EventCategory.TRAUMA,
        )


_CATEGORY = {}
for _types, _category in (
    (
        (EventType.SOCIAL_EXCLUSION, EventType.SOCIAL_INCLUSION, EventType.REJECTION,
         EventType.SOCIAL_ISOLATION, EventType.RELATIONSHIP_END, EventType.GROUP_EXCLUSION,
         EventType.BEREAVEMENT),
        EventCategory.SOCIAL_BELONGING,
    ),
    (
        (EventType.BURDEN_FEEDBACK, EventType.SHAMING_EVENT, EventType.FINANCIAL_BURDEN,
         EventType.CHRONIC_ILLNESS_ONSET, EventType.FAMILY_DISCORD, EventType.JOB_LOSS),
        EventCategory.BURDEN_PERCEPTION,
    ),
    (
        (EventType.VIOLENCE, EventType.TRAUMATIC_EXPOSURE, EventType.NON_SUICIDAL_SELF_INJURY,
         EventType.CHILDHOOD_ABUSE, EventType.COMBAT_EXPOSURE, EventType.PHYSICAL_INJURY,
         EventType.VIOLENCE_EXPOSURE, EventType.PRIOR_SUICIDE_ATTEMPT, EventType.SUICIDAL_LOSS),
        EventCategory.TRAUMA,
    ),
    ((EventType.HUMILIATION, EventType.EMPOWERMENT), EventCategory.CONTROL),
    ((EventType.ACHIEVEMENT, EventType.FAILURE, EventType.LOSS), EventCategory.ACHIEVEMENT),
    (
        (EventType.INTERACTION, EventType.BETRAYAL, EventType.SUPPORT, EventType.CONFLICT),
        EventCategory.SOCIAL,
    ),
    (
        (EventType.POLICY_CHANGE, EventType.CONTEXT_TRANSITION, EventType.HISTORICAL_EVENT,
         EventType.REALIZATION),
        EventCategory.CONTEXTUAL,
    ),
):
    for _type in _types:
        _CATEGORY[_type] = _category


class EventTag(Enum):
    """Modifiers on how an event is applied."""
    CHRONIC_PATTERN = "chronic_pattern"    # Social-cognition deltas go chronic
    MORAL_VIOLATION = "moral_violation"    # Sets the moral-violation flag
    WORK = "work"
    FAMILY = "family"


# ── Payloads ─────────────────────────────────────────────────────────────────


class SupportType(Enum):
    EMOTIONAL = "emotional"
    INSTRUMENTAL = "instrumental"
    INFORMATIONAL = "informational"
    COMPANIONSHIP = "companionship"


class LifeDomain(Enum):
    WORK = "work"
    ACADEMIC = "academic"
    SOCIAL = "social"
    ATHLETIC = "athletic"
    CREATIVE = "creative"
    FINANCIAL = "financial"
    HEALTH = "health"
    RELATIONSHIP = "relationship"


class RealizationType(Enum):
    EXISTENTIAL_INSIGHT = "existential_insight"
    SELF_DISCOVERY = "self_discovery"
    RELATIONSHIP_INSIGHT = "relationship_insight"


@dataclass(frozen=True)
class SupportPayload:
    support_type: SupportType = SupportType.EMOTIONAL
    effectiveness: float = 1.0


@dataclass(frozen=True)
class BetrayalPayload:
    confidence_violated: float = 1.0


@dataclass(frozen=True)
class ConflictPayload:
    verbal: bool = True
    physical: bool = False
    resolved: bool = False


@dataclass(frozen=True)
class InteractionPayload:
    duration_minutes: int = 30
    topic: Optional[str] = None


@dataclass(frozen=True)
class AchievementPayload:
    domain: LifeDomain = LifeDomain.WORK
    magnitude: float = 1.0


@dataclass(frozen=True)
class SocialInclusionPayload:
    group_id: Optional[str] = None


@dataclass(frozen=True)
class RealizationPayload:
    realization_type: RealizationType = RealizationType.EXISTENTIAL_INSIGHT


EventPayload = Union[
    SupportPayload,
    BetrayalPayload,
    ConflictPayload,
    InteractionPayload,
    AchievementPayload,
    SocialInclusionPayload,
    RealizationPayload,
]


# ── Event ────────────────────────────────────────────────────────────────────


_event_counter = itertools.count(1)


def _next_event_id() -> str:
    return f"event_{next(_event_counter):016x}"


@dataclass(frozen=True)
class Event:
    """
    A historical fact about something that happened to `target`.

    Severity is clamped to [0, 1]. Immutable once created.
    """
    event_type: EventType
    target: Optional[str] = None
    severity: float = 0.5
    source: Optional[str] = None
    payload: Optional[EventPayload] = None
    tags: FrozenSet[EventTag] = frozenset()
    base_shifts: Tuple[Tuple[StatePath, float], ...] = ()   # Formative HEXACO shifts, each in [-1, 1]
    id: str = field(default_factory=_next_event_id)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Event id must not be empty")
        object.__setattr__(self, "severity", float(np.clip(self.severity, 0.0, 1.0)))
        object.__setattr__(self, "tags", frozenset(self.tags))
        for path, _ in self.base_shifts:
            if not path.is_trait:
                raise ValueError(f"Base shifts apply to HEXACO traits only: {path.value}")
        object.__setattr__(self, "base_shifts", tuple(
            (path, float(np.clip(amount, -1.0, 1.0))) for path, amount in self.base_shifts
        ))

    @property
    def category(self) -> EventCategory:
        return self.event_type.category

    def has_tag(self, tag: EventTag) -> bool:
        return tag in self.tags

    @property
    def has_base_shifts(self) -> bool:
        return bool(self.base_shifts)
