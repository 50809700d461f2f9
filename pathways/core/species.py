# ═══════════════════════════════════════════════════════════════════════════════
# PART 3: SPECIES AND LIFE STAGES
# Design: D1 (Comparative Development)
# Implementation: I3 (State Management)
# ═══════════════════════════════════════════════════════════════════════════════


"""
D1: "A dog year is not a human year. Lifespan sets how fast psychological time
runs; maturity age sets when the life stages fall. Map everything onto a
human-equivalent age and the stage table works for every species."
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Tuple

import numpy as np


HUMAN_LIFESPAN_YEARS = 80.0
HUMAN_MATURITY_YEARS = 25.0

# Used when a species matures in under a year
MIN_EFFECTIVE_MATURITY_YEARS = 0.12

# Calendar year used for ages and durations
YEAR = timedelta(days=365)


def years(n: float) -> timedelta:
    return n * YEAR


def as_years(duration: timedelta) -> float:
    return duration / YEAR


@dataclass(frozen=True)
class Species:
    """Lifespan characteristics that scale psychological time."""
    name: str
    lifespan_years: int
    maturity_age_years: int

    @property
    def time_scale(self) -> float:
        """Psychological days per calendar day (human = 1.0)."""
        if self.lifespan_years <= 0:
            return 1.0
        return HUMAN_LIFESPAN_YEARS / self.lifespan_years

    @property
    def effective_maturity_years(self) -> float:
        if self.maturity_age_years > 0:
            return float(self.maturity_age_years)
        return MIN_EFFECTIVE_MATURITY_YEARS

    def is_human(self) -> bool:
        return self == HUMAN

    def human_equivalent_age(self, age_years: float) -> float:
        return age_years * (HUMAN_MATURITY_YEARS / self.effective_maturity_years)

    @classmethod
    def custom(cls, name: str, lifespan_years: int, maturity_age_years: int) -> "Species":
        return cls(name, lifespan_years, maturity_age_years)


HUMAN = Species("human", 80, 25)
DOG = Species("dog", 12, 2)
CAT = Species("cat", 15, 1)
DOLPHIN = Species("dolphin", 50, 8)
HORSE = Species("horse", 30, 4)
ELEPHANT = Species("elephant", 70, 15)
CHIMPANZEE = Species("chimpanzee", 50, 13)
CROW = Species("crow", 15, 2)
MOUSE = Species("mouse", 2, 0)

KNOWN_SPECIES = (HUMAN, DOG, CAT, DOLPHIN, HORSE, ELEPHANT, CHIMPANZEE, CROW, MOUSE)


class LifeStage(Enum):
    """Life stages over human-equivalent age."""
    CHILD = "child"
    ADOLESCENT = "adolescent"
    YOUNG_ADULT = "young_adult"
    ADULT = "adult"
    MATURE_ADULT = "mature_adult"
    ELDER = "elder"

    @property
    def age_range(self) -> Tuple[int, int]:
        return _STAGE_RANGES[self]

    @property
    def event_impact_multiplier(self) -> float:
        return _STAGE_IMPACT[self]

    @classmethod
    def from_human_equivalent_age(cls, age_years: float) -> "LifeStage":
        age = int(np.clip(age_years, 0, 65535))
        for stage in _STAGE_ORDER:
            low, high = _STAGE_RANGES[stage]
            if low <= age <= high:
                return stage
        return cls.ELDER

    @classmethod
    def for_species(cls, species: Species, age_years: float) -> "LifeStage":
        """Stage for a raw (calendar) age in years of the given species."""
        return cls.from_human_equivalent_age(species.human_equivalent_age(age_years))


_STAGE_ORDER = [
    LifeStage.CHILD,
    LifeStage.ADOLESCENT,
    LifeStage.YOUNG_ADULT,
    LifeStage.ADULT,
    LifeStage.MATURE_ADULT,
    LifeStage.ELDER,
]

_STAGE_RANGES = {
    LifeStage.CHILD: (0, 12),
    LifeStage.ADOLESCENT: (13, 17),
    LifeStage.YOUNG_ADULT: (18, 30),
    LifeStage.ADULT: (31, 55),
    LifeStage.MATURE_ADULT: (56, 70),
    LifeStage.ELDER: (71, 65535),
}

_STAGE_IMPACT = {
    LifeStage.CHILD: 2.0,
    LifeStage.ADOLESCENT: 1.5,
    LifeStage.YOUNG_ADULT: 1.2,
    LifeStage.ADULT: 1.0,
    LifeStage.MATURE_ADULT: 0.9,
    LifeStage.ELDER: 0.8,
}
