# ═══════════════════════════════════════════════════════════════════════════════
# PART 7: DEVELOPMENTAL PROCESSING
# Design: D1 (Comparative Development) + D2 (Lifespan Psychology)
# Implementation: I3 (State Management)
# ═══════════════════════════════════════════════════════════════════════════════


"""
D2: "Sensitive periods exist because development NEEDS certain inputs at
certain times. Attachment matters most in childhood, identity in adolescence,
intimacy in young adulthood. The same event lands harder in its window."

D1: "Plasticity falls with age, linearly, to a floor. A turning point (a move,
a diagnosis, a birth) reopens it for a few months."
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from pathways.core.events import Event, EventType
from pathways.core.species import HUMAN, LifeStage, Species, as_years


class DevelopmentalCategory(Enum):
    """Erikson-style developmental tasks an event can bear on."""
    ATTACHMENT = "attachment"
    AUTONOMY = "autonomy"
    INITIATIVE = "initiative"
    INDUSTRY = "industry"
    IDENTITY = "identity"
    INTIMACY = "intimacy"
    GENERATIVITY = "generativity"
    INTEGRITY = "integrity"
    NEUTRAL = "neutral"

    @classmethod
    def for_event_type(cls, event_type: EventType) -> "DevelopmentalCategory":
        return _EVENT_CATEGORIES.get(event_type, cls.NEUTRAL)


_EVENT_CATEGORIES: Dict[EventType, DevelopmentalCategory] = {}
for _category, _types in {
    DevelopmentalCategory.ATTACHMENT: (
        EventType.SUPPORT, EventType.CONFLICT, EventType.SOCIAL_EXCLUSION,
        EventType.SOCIAL_INCLUSION, EventType.REJECTION, EventType.SOCIAL_ISOLATION,
        EventType.GROUP_EXCLUSION,
    ),
    DevelopmentalCategory.INDUSTRY: (
        EventType.ACHIEVEMENT, EventType.FAILURE, EventType.FINANCIAL_BURDEN, EventType.JOB_LOSS,
    ),
    DevelopmentalCategory.IDENTITY: (
        EventType.HUMILIATION, EventType.EMPOWERMENT, EventType.CONTEXT_TRANSITION,
        EventType.SHAMING_EVENT, EventType.CHRONIC_ILLNESS_ONSET,
    ),
    DevelopmentalCategory.INTIMACY: (
        EventType.BETRAYAL, EventType.RELATIONSHIP_END, EventType.BEREAVEMENT,
    ),
    DevelopmentalCategory.GENERATIVITY: (
        EventType.BURDEN_FEEDBACK, EventType.FAMILY_DISCORD,
    ),
    DevelopmentalCategory.INTEGRITY: (
        EventType.REALIZATION, EventType.HISTORICAL_EVENT, EventType.SUICIDAL_LOSS,
    ),
}.items():
    for _type in _types:
        _EVENT_CATEGORIES[_type] = _category


@dataclass
class SensitivePeriod:
    """Enhanced impact window tied to a life stage."""
    stage: LifeStage
    category: DevelopmentalCategory
    sensitivity: float = 1.0            # Multiplier on event impact

    def is_active(self, current_stage: LifeStage, category: DevelopmentalCategory) -> bool:
        return current_stage == self.stage and category == self.category


@dataclass
class TurningPoint:
    """A life transition that temporarily reopens plasticity."""
    timestamp: datetime
    description: str = ""


@dataclass
class DevelopmentConfig:
    """Configuration for developmental modulation of event impact."""
    # Plasticity (linear decline with human-equivalent age, floored)
    plasticity_max: float = 2.0
    plasticity_min: float = 0.5
    plasticity_decay_rate: float = 0.023    # Per year

    # Turning points
    turning_point_max_boost: float = 0.5
    turning_point_half_life_days: float = 180.0
    turning_point_decay_constant: float = 0.693   # ln(2)

    # Sensitive periods (default set)
    sensitive_periods: List[SensitivePeriod] = field(default_factory=lambda: [
        SensitivePeriod(LifeStage.CHILD, DevelopmentalCategory.ATTACHMENT, 2.0),
        SensitivePeriod(LifeStage.CHILD, DevelopmentalCategory.AUTONOMY, 2.0),
        SensitivePeriod(LifeStage.CHILD, DevelopmentalCategory.INITIATIVE, 1.5),
        SensitivePeriod(LifeStage.CHILD, DevelopmentalCategory.INDUSTRY, 1.5),
        SensitivePeriod(LifeStage.ADOLESCENT, DevelopmentalCategory.IDENTITY, 1.8),
        SensitivePeriod(LifeStage.YOUNG_ADULT, DevelopmentalCategory.INTIMACY, 1.3),
        SensitivePeriod(LifeStage.ADULT, DevelopmentalCategory.GENERATIVITY, 1.3),
        SensitivePeriod(LifeStage.MATURE_ADULT, DevelopmentalCategory.GENERATIVITY, 1.3),
        SensitivePeriod(LifeStage.ELDER, DevelopmentalCategory.INTEGRITY, 1.2),
    ])


class DevelopmentTracker:
    """
    Developmental modulation of event impact for one entity.

    Computes the factor an interpreted event is scaled by:

        factor = impact * (plasticity + turning_point_boost) * sensitive_multiplier

    Plasticity uses human-equivalent age (calendar age times the species time
    scale). The life stage used for sensitive periods comes from the species
    maturity age.
    """

    def __init__(
        self,
        species: Species = HUMAN,
        turning_points: Optional[Sequence[TurningPoint]] = None,
        config: Optional[DevelopmentConfig] = None,
    ) -> None:
        self.config = config or DevelopmentConfig()
        self.species = species
        self.turning_points: List[TurningPoint] = list(turning_points or [])

        # Stage transitions observed across processed events
        self.milestones: List[Dict] = []
        self.events_processed: int = 0
        self._last_stage: Optional[LifeStage] = None

    # ── Public Methods ───────────────────────────────────────────────────────

    def process_event(
        self,
        event: Event,
        age: timedelta,
        timestamp: datetime,
        impact: float = 1.0,
    ) -> Dict[str, Any]:
        """
        Compute the developmental factor for an event.

        Args:
            event: The raw event.
            age: Entity's calendar age when the event happened.
            timestamp: When the event happened (for turning points).
            impact: Base impact to scale (1.0 gives the pure factor).

        Returns:
            Dict with:
            - factor: float
            - plasticity: float
            - turning_point_boost: float
            - sensitive_multiplier: float
            - life_stage: LifeStage
            - category: DevelopmentalCategory
        """
        self.events_processed += 1

        raw_years = as_years(age)
        life_stage = LifeStage.for_species(self.species, raw_years)
        plasticity = self.get_plasticity(raw_years * self.species.time_scale)
        boost = self.get_turning_point_boost(timestamp)
        category = DevelopmentalCategory.for_event_type(event.event_type)
        sensitive = self.get_sensitive_multiplier(life_stage, category)

        if self._last_stage is not None and life_stage != self._last_stage:
            self.milestones.append({
                "type": "stage_transition",
                "from": self._last_stage.value,
                "to": life_stage.value,
                "timestamp": timestamp.isoformat(),
                "events": self.events_processed,
            })
        self._last_stage = life_stage

        return {
            "factor": impact * (plasticity + boost) * sensitive,
            "plasticity": plasticity,
            "turning_point_boost": boost,
            "sensitive_multiplier": sensitive,
            "life_stage": life_stage,
            "category": category,
        }

    def get_factor(self, event: Event, age: timedelta, timestamp: datetime) -> float:
        return self.process_event(event, age, timestamp)["factor"]

    def get_plasticity(self, age_years: float) -> float:
        """Plasticity for a human-equivalent age in years."""
        cfg = self.config
        plasticity = cfg.plasticity_max - max(age_years, 0.0) * cfg.plasticity_decay_rate
        return max(plasticity, cfg.plasticity_min)

    def get_turning_point_boost(self, timestamp: datetime) -> float:
        """Summed, decaying boost from past turning points, capped."""
        cfg = self.config
        total = 0.0
        for tp in self.turning_points:
            if tp.timestamp > timestamp:
                continue
            days_since = (timestamp - tp.timestamp) / timedelta(days=1)
            decay = np.exp(-cfg.turning_point_decay_constant * days_since
                           / cfg.turning_point_half_life_days)
            total += cfg.turning_point_max_boost * float(decay)
        return min(total, cfg.turning_point_max_boost)

    def get_sensitive_multiplier(self, stage: LifeStage, category: DevelopmentalCategory) -> float:
        """
        Multiplier from sensitive periods.

        Returns:
            Product of active period sensitivities (1.0 if none apply).
        """
        multiplier = 1.0
        for period in self.config.sensitive_periods:
            if period.is_active(stage, category):
                multiplier *= period.sensitivity
        return multiplier

    def add_turning_point(self, turning_point: TurningPoint) -> None:
        self.turning_points.append(turning_point)

    def get_state(self) -> dict:
        """Serialize current state."""
        return {
            "species": self.species.name,
            "turning_points": [
                {"timestamp": tp.timestamp.isoformat(), "description": tp.description}
                for tp in self.turning_points
            ],
            "events_processed": self.events_processed,
            "milestones": self.milestones.copy(),
        }
