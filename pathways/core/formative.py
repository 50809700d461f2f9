# ═══════════════════════════════════════════════════════════════════════════════
# PART 15: FORMATIVE BASE SHIFTS
# Design: D1 (Comparative Development) + C2 (Clinical Psychology)
# Implementation: I3 (State Management)
# ═══════════════════════════════════════════════════════════════════════════════


"""
C2: "Most events move mood and then fade. A few move who you are. Those shift
the personality baseline itself, and they do not decay."

D1: "How far a trait can move depends on the trait, the age, and how much it
has already moved. Extraversion barely budges; neuroticism is the most
pliable, and most of all between twelve and twenty-five. Big shifts land
hard and then partly settle over six months."
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np

from pathways.core.species import HUMAN, Species
from pathways.core.state import IndividualState, StatePath


MAX_SINGLE_EVENT_SHIFT = 0.30
SEVERE_SHIFT_THRESHOLD = 0.20
SEVERE_SHIFT_RETENTION = 0.70      # Fraction of a severe shift that remains once settled
SETTLING_DAYS = 180
SATURATION_CONSTANT = 0.50
CUMULATIVE_CAP = 1.0               # Per trait, per direction

NON_HUMAN_PLASTICITY = 1.2

# Fraction of a requested shift each trait resists
STABILITY: Dict[StatePath, float] = {
    StatePath.HEXACO_EXTRAVERSION: 0.85,
    StatePath.HEXACO_OPENNESS: 0.80,
    StatePath.HEXACO_HONESTY_HUMILITY: 0.75,
    StatePath.HEXACO_CONSCIENTIOUSNESS: 0.70,
    StatePath.HEXACO_AGREEABLENESS: 0.65,
    StatePath.HEXACO_NEUROTICISM: 0.60,
}

# (first age, last age, multiplier), inclusive, in years
SENSITIVE_WINDOWS: Dict[StatePath, Tuple[int, int, float]] = {
    StatePath.HEXACO_NEUROTICISM: (12, 25, 1.4),
    StatePath.HEXACO_CONSCIENTIOUSNESS: (18, 35, 1.2),
    StatePath.HEXACO_AGREEABLENESS: (25, 40, 1.2),
    StatePath.HEXACO_EXTRAVERSION: (13, 22, 1.2),
    StatePath.HEXACO_OPENNESS: (15, 30, 1.2),
    StatePath.HEXACO_HONESTY_HUMILITY: (18, 30, 1.2),
}


@dataclass(frozen=True)
class BaseShiftRecord:
    """
    One applied shift to a trait baseline.

    Shifts above the severe threshold land at full size and then ease
    linearly to 70% of it over the settling period.
    """
    timestamp: datetime
    trait: StatePath
    immediate: float
    settled: float
    settling_days: int = 0

    @classmethod
    def create(cls, timestamp: datetime, trait: StatePath, amount: float) -> "BaseShiftRecord":
        if abs(amount) > SEVERE_SHIFT_THRESHOLD:
            return cls(timestamp, trait, amount, amount * SEVERE_SHIFT_RETENTION, SETTLING_DAYS)
        return cls(timestamp, trait, amount, amount, 0)

    @property
    def is_severe(self) -> bool:
        return self.settling_days > 0

    def contribution_at(self, query_time: datetime) -> float:
        if query_time < self.timestamp:
            return 0.0
        if not self.is_severe:
            return self.immediate

        # Whole days, as settling is tracked day by day
        days = (query_time - self.timestamp).days
        if days >= self.settling_days:
            return self.settled
        progress = days / self.settling_days
        return self.immediate - (self.immediate - self.settled) * progress


# ── Modifiers ────────────────────────────────────────────────────────────────


def trait_modifier(trait: StatePath) -> float:
    return 1.0 - STABILITY[trait]


def age_plasticity(age_years: int) -> float:
    if age_years < 18:
        return 1.3
    if age_years < 30:
        return 1.0
    if age_years < 50:
        return 0.8
    if age_years < 70:
        return 0.7
    return 0.6


def sensitive_window_modifier(trait: StatePath, age_years: int) -> float:
    first, last, multiplier = SENSITIVE_WINDOWS[trait]
    return multiplier if first <= age_years <= last else 1.0


def combined_plasticity(trait: StatePath, age_years: int) -> float:
    """The larger of age plasticity and the trait's sensitive window."""
    return max(age_plasticity(age_years), sensitive_window_modifier(trait, age_years))


def saturation_factor(existing: float) -> float:
    """Diminishing returns once a trait has already moved in one direction."""
    return 1.0 / (1.0 + existing / SATURATION_CONSTANT)


def species_plasticity(species: Species) -> float:
    return 1.0 if species.is_human() else NON_HUMAN_PLASTICITY


def modified_shift(
    requested: float,
    trait: StatePath,
    age_years: int,
    existing: float,
    species: Species = HUMAN,
) -> float:
    """
    Apply every modifier to a requested shift.

    requested * species * plasticity * (1 - stability) * saturation, capped
    at 0.3 per event and at 1.0 of movement per trait and direction.
    """
    shift = (requested
             * species_plasticity(species)
             * combined_plasticity(trait, age_years)
             * trait_modifier(trait)
             * saturation_factor(existing))
    shift = float(np.clip(shift, -MAX_SINGLE_EVENT_SHIFT, MAX_SINGLE_EVENT_SHIFT))

    if existing + abs(shift) > CUMULATIVE_CAP:
        return float(np.sign(shift)) * max(CUMULATIVE_CAP - existing, 0.0)
    return shift


# ── Records ──────────────────────────────────────────────────────────────────


def collect_base_shifts(
    shifts: Iterable[Tuple[datetime, int, Sequence[Tuple[StatePath, float]]]],
    species: Species = HUMAN,
) -> List[BaseShiftRecord]:
    """
    Turn requested shifts into records, oldest first.

    Args:
        shifts: (timestamp, age in whole years at that time, requested
            (trait, amount) pairs) per event, in timeline order.
        species: Non-human species are more pliable.
    """
    moved: Dict[Tuple[StatePath, bool], float] = {}
    records = []
    for timestamp, age_years, requested in shifts:
        for trait, amount in requested:
            key = (trait, amount > 0)
            existing = moved.get(key, 0.0)
            shift = modified_shift(amount, trait, age_years, existing, species)
            if abs(shift) < 1e-9:
                continue
            moved[key] = existing + abs(shift)
            records.append(BaseShiftRecord.create(timestamp, trait, shift))
    return records


def apply_base_shifts(
    state: IndividualState,
    records: Sequence[BaseShiftRecord],
    query_time: datetime,
) -> None:
    """Move each shifted trait to anchor value plus shifts at `query_time`, in place."""
    totals: Dict[StatePath, float] = {}
    for record in records:
        totals[record.trait] = totals.get(record.trait, 0.0) + record.contribution_at(query_time)
    for trait, total in totals.items():
        state.set_effective(trait, state.get_effective(trait) + total)

