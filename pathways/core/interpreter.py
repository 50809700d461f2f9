# ═══════════════════════════════════════════════════════════════════════════════
# PART 8: EVENT INTERPRETATION
# Design: C2 (Clinical Psychology) + A1 (Affective Science)
# Implementation: I2 (Numerics)
# ═══════════════════════════════════════════════════════════════════════════════


"""
C2: "Exclusion hits loneliness and caring. Burden hits liability and
self-hate. Trauma hits capability. Every category has its affinity table and
the tables are the contract."

A1: "Then the person colours it. High emotionality amplifies valence and
arousal; agreeable people feel social events more; honest-humble people blame
themselves, and stable self-blame is what breeds hopelessness."
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional

import numpy as np

from pathways.core.events import (
    AchievementPayload,
    BetrayalPayload,
    ConflictPayload,
    Event,
    EventCategory,
    EventTag,
    EventType,
    InteractionPayload,
    LifeDomain,
    RealizationPayload,
    RealizationType,
    SocialInclusionPayload,
    SupportPayload,
    SupportType,
)
from pathways.core.species import HUMAN, Species
from pathways.core.state import Hexaco, IndividualState, StatePath


# Deltas at or below this magnitude are dropped
DELTA_EPSILON = 1e-7


class Impact:
    """Base magnitudes per unit severity."""
    NEGATIVE_VALENCE = -0.3
    POSITIVE_VALENCE = 0.3
    HIGH_AROUSAL = 0.4
    CONTROL_DOMINANCE = 0.3
    EXCLUSION_LONELINESS = 0.2
    INCLUSION_LONELINESS = -0.2
    SUPPORT_PRC = 0.15
    BETRAYAL_PRC = -0.2
    BURDEN_LIABILITY = 0.25
    SELF_HATE = 0.1
    TRAUMA_AC = 0.15
    INTERPERSONAL_HOPELESSNESS = 0.1


# Arousal-modulated salience
AROUSAL_WEIGHT_HUMAN = 0.3
AROUSAL_WEIGHT_ANIMAL = 0.4
AROUSAL_THRESHOLD = 0.2
AROUSAL_CEILING = 0.9
EXTREME_AROUSAL_IMPAIRMENT = 0.3
NEGATIVITY_BIAS_MULTIPLIER = 1.1

_ANIMAL_WEIGHTED = frozenset({"dog", "cat", "mouse", "horse"})


class Attribution(Enum):
    SELF_CAUSED = "self_caused"
    OTHER = "other"
    SITUATIONAL = "situational"
    UNKNOWN = "unknown"


class ReversibilityHint(Enum):
    REVERSIBLE = "reversible"
    IRREVERSIBLE = "irreversible"


@dataclass(frozen=True)
class InterpretedEvent:
    """
    Concrete per-dimension effect of one raw event on one entity.

    Created once per event; immutable. The developmental factor is applied
    by scaling a copy.
    """
    source_event_id: str
    event_type: EventType
    category: EventCategory
    target: Optional[str]
    attribution: Attribution
    attribution_stable: bool
    state_deltas: Dict[StatePath, float] = field(default_factory=dict)
    salience: float = 0.0
    perceived_severity: float = 0.0
    chronic: bool = False
    moral_violation: bool = False

    @property
    def reversibility_hint(self) -> ReversibilityHint:
        if StatePath.ACQUIRED_CAPABILITY in self.state_deltas:
            return ReversibilityHint.IRREVERSIBLE
        return ReversibilityHint.REVERSIBLE

    def delta(self, path: StatePath) -> float:
        return self.state_deltas.get(path, 0.0)

    def scaled_by(self, factor: float) -> "InterpretedEvent":
        """Copy with every delta and the perceived severity scaled. Salience is not."""
        return replace(
            self,
            state_deltas={path: d * factor for path, d in self.state_deltas.items()},
            perceived_severity=self.perceived_severity * factor,
        )


def interpret_event(
    event: Event,
    hexaco: Hexaco,
    state: Optional[IndividualState] = None,
    species: Species = HUMAN,
) -> InterpretedEvent:
    """
    Turn a raw event into per-dimension deltas for one entity.

    Args:
        event: The raw event.
        hexaco: The entity's personality (modulates magnitudes).
        state: Current state; only arousal is read, for salience.
        species: For the arousal-salience weight.

    Returns:
        InterpretedEvent with deltas at unit developmental factor.
    """
    s = event.severity
    category = event.category
    etype = event.event_type
    payload = event.payload
    d: Dict[StatePath, float] = {}

    def add(path: StatePath, amount: float) -> None:
        d[path] = d.get(path, 0.0) + amount

    # ── Category affinity table ──────────────────────────────────────────────

    if category == EventCategory.SOCIAL_BELONGING:
        if etype == EventType.SOCIAL_EXCLUSION:
            add(StatePath.MOOD_VALENCE, Impact.NEGATIVE_VALENCE * s)
            add(StatePath.LONELINESS, Impact.EXCLUSION_LONELINESS * s)
            add(StatePath.PERCEIVED_RECIPROCAL_CARING, -0.1 * s)
        elif etype == EventType.SOCIAL_INCLUSION:
            add(StatePath.MOOD_VALENCE, Impact.POSITIVE_VALENCE * s)
            add(StatePath.LONELINESS, Impact.INCLUSION_LONELINESS * s)
            add(StatePath.PERCEIVED_RECIPROCAL_CARING, 0.1 * s)

    elif category == EventCategory.BURDEN_PERCEPTION:
        add(StatePath.MOOD_VALENCE, Impact.NEGATIVE_VALENCE * s)
        add(StatePath.PERCEIVED_LIABILITY, Impact.BURDEN_LIABILITY * s)
        add(StatePath.SELF_HATE, Impact.SELF_HATE * s * 0.5)

    elif category == EventCategory.TRAUMA:
        add(StatePath.MOOD_VALENCE, Impact.NEGATIVE_VALENCE * s)
        add(StatePath.MOOD_AROUSAL, Impact.HIGH_AROUSAL * s)
        add(StatePath.ACQUIRED_CAPABILITY, Impact.TRAUMA_AC * s)

    elif category == EventCategory.CONTROL:
        if etype == EventType.HUMILIATION:
            add(StatePath.MOOD_VALENCE, Impact.NEGATIVE_VALENCE * s)
            add(StatePath.MOOD_DOMINANCE, -Impact.CONTROL_DOMINANCE * s)
        elif etype == EventType.EMPOWERMENT:
            add(StatePath.MOOD_VALENCE, Impact.POSITIVE_VALENCE * s)
            add(StatePath.MOOD_DOMINANCE, Impact.CONTROL_DOMINANCE * s)

    elif category == EventCategory.ACHIEVEMENT:
        if etype == EventType.ACHIEVEMENT:
            add(StatePath.MOOD_VALENCE, Impact.POSITIVE_VALENCE * s)
            add(StatePath.MOOD_DOMINANCE, 0.1 * s)
        elif etype == EventType.FAILURE:
            add(StatePath.MOOD_VALENCE, Impact.NEGATIVE_VALENCE * s)
            add(StatePath.MOOD_DOMINANCE, -0.1 * s)
        elif etype == EventType.LOSS:
            add(StatePath.MOOD_VALENCE, -0.15 * s)
            add(StatePath.MOOD_DOMINANCE, -0.10 * s)
            add(StatePath.MOOD_AROUSAL, 0.10 * s)

    elif category == EventCategory.SOCIAL:
        if etype == EventType.CONFLICT:
            add(StatePath.MOOD_VALENCE, -0.10 * s)
            add(StatePath.MOOD_AROUSAL, 0.12 * s)
            add(StatePath.MOOD_DOMINANCE, -0.12 * s)
            add(StatePath.LONELINESS, 0.08 * s)
            add(StatePath.PERCEIVED_LIABILITY, 0.04 * s)
        elif etype == EventType.SUPPORT and payload is None:
            add(StatePath.MOOD_VALENCE, 0.08 * s)
            add(StatePath.LONELINESS, -0.20 * s)
            add(StatePath.PERCEIVED_LIABILITY, -0.10 * s)
        else:
            _apply_social_payload(event, add)

    elif category == EventCategory.CONTEXTUAL:
        add(StatePath.MOOD_AROUSAL, 0.1 * s)

    # ── Protective factors ───────────────────────────────────────────────────

    if etype == EventType.ACHIEVEMENT and isinstance(payload, AchievementPayload):
        productivity = s * payload.magnitude
        if payload.domain in (LifeDomain.WORK, LifeDomain.ACADEMIC, LifeDomain.FINANCIAL):
            add(StatePath.PERCEIVED_LIABILITY, -0.12 * productivity)
            add(StatePath.SELF_HATE, -0.08 * productivity)
            add(StatePath.SELF_WORTH, 0.05 * productivity)
        if payload.domain in (LifeDomain.WORK, LifeDomain.ACADEMIC, LifeDomain.CREATIVE):
            add(StatePath.NEEDS_PURPOSE, 0.08 * productivity)

    if (etype == EventType.SOCIAL_INCLUSION and isinstance(payload, SocialInclusionPayload)
            and payload.group_id is not None):
        add(StatePath.LONELINESS, -0.08 * s)
        add(StatePath.PERCEIVED_RECIPROCAL_CARING, 0.05 * s)

    if (etype == EventType.SUPPORT and isinstance(payload, SupportPayload)
            and payload.support_type in (SupportType.EMOTIONAL, SupportType.COMPANIONSHIP)):
        eff = payload.effectiveness
        add(StatePath.PERCEIVED_LIABILITY, -0.1 * s * eff)
        add(StatePath.SELF_HATE, -0.08 * s * eff)
        add(StatePath.SELF_WORTH, 0.05 * s * eff)

    if (etype == EventType.REALIZATION and isinstance(payload, RealizationPayload)
            and payload.realization_type == RealizationType.EXISTENTIAL_INSIGHT):
        add(StatePath.NEEDS_PURPOSE, 0.15 * s)
        add(StatePath.PERCEIVED_LIABILITY, -0.05 * s)
        add(StatePath.SELF_HATE, -0.05 * s)
        add(StatePath.SELF_WORTH, 0.04 * s)

    # ── Personality modulation ───────────────────────────────────────────────

    emotionality_factor = 1.0 + hexaco.emotionality * 0.3
    for path in (StatePath.MOOD_VALENCE, StatePath.MOOD_AROUSAL):
        if path in d:
            d[path] *= emotionality_factor

    if category in (EventCategory.SOCIAL, EventCategory.SOCIAL_BELONGING):
        agree_factor = 1.0 + hexaco.agreeableness * 0.2
        for path in (StatePath.LONELINESS, StatePath.PERCEIVED_RECIPROCAL_CARING):
            if path in d:
                d[path] *= agree_factor

    attribution, stable = compute_attribution(event, hexaco.honesty_humility)
    if attribution == Attribution.SELF_CAUSED and stable and d.get(StatePath.MOOD_VALENCE, 0.0) < 0:
        add(StatePath.SELF_HATE, Impact.SELF_HATE * s)
        add(StatePath.INTERPERSONAL_HOPELESSNESS, Impact.INTERPERSONAL_HOPELESSNESS * s)

    # Loss and conflict also wound self-worth and feed grievance
    if etype == EventType.LOSS:
        add(StatePath.SELF_WORTH, -0.15 * s * emotionality_factor)
        add(StatePath.GRIEVANCE, 0.05 * s * emotionality_factor)
    elif etype == EventType.CONFLICT:
        add(StatePath.SELF_WORTH, -0.06 * s * emotionality_factor)
        add(StatePath.GRIEVANCE, 0.04 * s * emotionality_factor)

    # ── Salience ─────────────────────────────────────────────────────────────

    current_arousal = state.mood.arousal.effective if state is not None else 0.0
    salience = compute_arousal_modulated_salience(
        compute_base_salience(event),
        current_arousal + d.get(StatePath.MOOD_AROUSAL, 0.0),
        d.get(StatePath.MOOD_VALENCE, 0.0),
        category,
        species,
    )

    return InterpretedEvent(
        source_event_id=event.id,
        event_type=etype,
        category=category,
        target=event.target,
        attribution=attribution,
        attribution_stable=stable,
        state_deltas={p: v for p, v in d.items() if abs(v) > DELTA_EPSILON},
        salience=salience,
        perceived_severity=s * emotionality_factor,
        chronic=event.has_tag(EventTag.CHRONIC_PATTERN),
        moral_violation=event.has_tag(EventTag.MORAL_VIOLATION),
    )


def compute_attribution(event: Event, honesty_humility: float):
    """
    Who the entity blames.

    Returns:
        (Attribution, stable). Stable iff severity > 0.7.
    """
    stable = event.severity > 0.7
    if event.source is not None:
        return Attribution.OTHER, stable
    if honesty_humility > 0.3:
        return Attribution.SELF_CAUSED, stable
    if honesty_humility < -0.3:
        return Attribution.SITUATIONAL, stable
    return Attribution.UNKNOWN, stable


def compute_base_salience(event: Event) -> float:
    boost = {
        EventCategory.TRAUMA: 0.2,
        EventCategory.SOCIAL_BELONGING: 0.1,
        EventCategory.BURDEN_PERCEPTION: 0.1,
    }.get(event.category, 0.0)
    return float(np.clip(0.3 + event.severity * 0.5 + boost, 0.0, 1.0))


def arousal_weight_for_species(species: Species) -> float:
    if species.name in _ANIMAL_WEIGHTED:
        return AROUSAL_WEIGHT_ANIMAL
    return AROUSAL_WEIGHT_HUMAN


def compute_arousal_modulated_salience(
    base_salience: float,
    arousal: float,
    valence: float,
    category: EventCategory,
    species: Species = HUMAN,
) -> float:
    """
    Memorability of an event given arousal at encoding.

    Below arousal 0.2 nothing changes. Past 0.9 encoding is impaired
    (Yerkes-Dodson) except for trauma. In between, salience rises into the
    remaining headroom. Negative events get a 1.1x negativity bias.
    """
    effective_arousal = abs(arousal)

    if effective_arousal < AROUSAL_THRESHOLD:
        salience = base_salience
    elif effective_arousal > AROUSAL_CEILING and category != EventCategory.TRAUMA:
        salience = base_salience * (1.0 - EXTREME_AROUSAL_IMPAIRMENT)
    else:
        weight = arousal_weight_for_species(species)
        salience = base_salience + effective_arousal * weight * (1.0 - base_salience)

    salience = float(np.clip(salience, 0.0, 1.0))
    if valence < 0.0:
        salience = float(np.clip(salience * NEGATIVITY_BIAS_MULTIPLIER, 0.0, 1.0))
    return salience


# ── Internal ─────────────────────────────────────────────────────────────────


def _apply_social_payload(event: Event, add) -> None:
    s = event.severity
    payload = event.payload

    if isinstance(payload, SupportPayload):
        eff = payload.effectiveness
        add(StatePath.MOOD_VALENCE, Impact.POSITIVE_VALENCE * s * eff)
        add(StatePath.PERCEIVED_RECIPROCAL_CARING, Impact.SUPPORT_PRC * s * eff)
        add(StatePath.LONELINESS, -0.1 * s * eff)
    elif isinstance(payload, BetrayalPayload):
        conf = payload.confidence_violated
        add(StatePath.MOOD_VALENCE, Impact.NEGATIVE_VALENCE * s * conf)
        add(StatePath.PERCEIVED_RECIPROCAL_CARING, Impact.BETRAYAL_PRC * s * conf)
        add(StatePath.MOOD_AROUSAL, 0.2 * s * conf)
    elif isinstance(payload, ConflictPayload):
        add(StatePath.MOOD_VALENCE, Impact.NEGATIVE_VALENCE * s)
        if payload.physical:
            add(StatePath.MOOD_AROUSAL, Impact.HIGH_AROUSAL * s)
        elif payload.verbal:
            add(StatePath.MOOD_AROUSAL, 0.2 * s)
    elif isinstance(payload, InteractionPayload):
        duration_factor = min(payload.duration_minutes / 60.0, 1.0)
        add(StatePath.LONELINESS, -0.05 * duration_factor)
