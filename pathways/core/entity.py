# ═══════════════════════════════════════════════════════════════════════════════
# PART 13: ENTITY (putting it all together)
# Design: Full team
# Implementation: I1 (Systems Architect)
# ═══════════════════════════════════════════════════════════════════════════════


"""
I1: "The entity is the configured subject: species, age, personality and the
state as it stands at the anchor. Build it once, then hand it to a
simulation. Everything after the anchor is the event log's job."
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from pathways.core.decay import DecayProcessor, NoOpDecayProcessor, StateDecayProcessor
from pathways.core.development import TurningPoint
from pathways.core.its import ItsContributors, ItsContributor
from pathways.core.species import HUMAN, LifeStage, Species, as_years
from pathways.core.state import (
    Hexaco,
    IndividualState,
    Mood,
    PersonalityProfile,
    StatePath,
)


# ── Exceptions ───────────────────────────────────────────────────────────────


class EntityBuildError(Exception):
    """Base class for entity construction errors."""
    pass


class MissingSpeciesError(EntityBuildError):
    """Raised when an entity is built without a species."""
    pass


class InvalidIdError(EntityBuildError):
    """Raised when an entity id is empty."""
    pass


# ── Entity ───────────────────────────────────────────────────────────────────


_entity_counter = itertools.count(1)


def _next_entity_id() -> str:
    return f"entity_{next(_entity_counter):016x}"


@dataclass
class Entity:
    """
    A simulated subject as configured at its anchor.

    Attributes:
        id: Unique identifier.
        species: Sets time scale and life-stage boundaries.
        age: Age at the anchor.
        birth_date: When set, ages are computed from it instead of `age`.
        life_stage: Stage at the anchor.
        individual_state: Full psychological state at the anchor.
        decay_processor: Passive decay strategy.
        turning_points: Transitions that reopen developmental plasticity.
        its_contributors: Activated ITS risk contributors.
    """
    id: str
    species: Species
    age: timedelta
    life_stage: LifeStage
    individual_state: IndividualState
    decay_processor: DecayProcessor = field(default_factory=StateDecayProcessor)
    birth_date: Optional[datetime] = None
    turning_points: List[TurningPoint] = field(default_factory=list)
    its_contributors: ItsContributors = field(default_factory=ItsContributors)

    # ── Properties ───────────────────────────────────────────────────────────

    @property
    def hexaco(self) -> Hexaco:
        return self.individual_state.hexaco

    @property
    def age_years(self) -> float:
        return as_years(self.age)

    # ── Public Methods ───────────────────────────────────────────────────────

    def get_effective(self, path: StatePath) -> float:
        return self.individual_state.get_effective(path)

    def set_effective(self, path: StatePath, value: float) -> None:
        """Pre-anchor configuration. Not part of the event log."""
        self.individual_state.set_effective(path, value)

    def activate_contributor(self, contributor: ItsContributor, timestamp: datetime,
                             intensity: float) -> None:
        self.its_contributors.activate(contributor, timestamp, intensity)

    def add_turning_point(self, timestamp: datetime, description: str = "") -> None:
        self.turning_points.append(TurningPoint(timestamp, description))

    def get_state(self) -> dict:
        """Serialize current state."""
        return {
            "id": self.id,
            "species": self.species.name,
            "age_days": self.age / timedelta(days=1),
            "birth_date": self.birth_date.isoformat() if self.birth_date else None,
            "life_stage": self.life_stage.value,
            "decays": not isinstance(self.decay_processor, NoOpDecayProcessor),
            "turning_points": len(self.turning_points),
            "individual_state": self.individual_state.get_state(),
            "its_contributors": self.its_contributors.get_state(),
        }


# ── Builder ──────────────────────────────────────────────────────────────────


class EntityBuilder:
    """
    Fluent construction of an Entity.

    Species is required. Life stage follows from age and species unless set
    explicitly; mood baselines follow from personality unless set explicitly.

        entity = (EntityBuilder()
                  .species(HUMAN)
                  .age(years(30))
                  .personality(PersonalityProfile.ANXIOUS)
                  .build())
    """

    def __init__(self) -> None:
        self._id: Optional[str] = None
        self._species: Optional[Species] = None
        self._age = timedelta(0)
        self._birth_date: Optional[datetime] = None
        self._life_stage: Optional[LifeStage] = None
        self._hexaco: Optional[Hexaco] = None
        self._mood: Optional[Mood] = None
        self._overrides: List[tuple] = []
        self._decay_processor: Optional[DecayProcessor] = None
        self._turning_points: List[TurningPoint] = []

    def id(self, entity_id: str) -> "EntityBuilder":
        self._id = entity_id
        return self

    def species(self, species: Species) -> "EntityBuilder":
        self._species = species
        return self

    def age(self, age: timedelta) -> "EntityBuilder":
        self._age = max(age, timedelta(0))
        return self

    def birth_date(self, birth_date: datetime) -> "EntityBuilder":
        self._birth_date = birth_date
        return self

    def life_stage(self, stage: LifeStage) -> "EntityBuilder":
        self._life_stage = stage
        return self

    def hexaco(self, hexaco: Hexaco) -> "EntityBuilder":
        self._hexaco = hexaco.copy()
        return self

    def personality(self, profile: PersonalityProfile) -> "EntityBuilder":
        self._hexaco = Hexaco.from_profile(profile)
        return self

    def mood(self, mood: Mood) -> "EntityBuilder":
        self._mood = mood.copy()
        return self

    def set_effective(self, path: StatePath, value: float) -> "EntityBuilder":
        """Override one dimension after defaults are derived."""
        self._overrides.append((path, value))
        return self

    def decay_processor(self, processor: DecayProcessor) -> "EntityBuilder":
        self._decay_processor = processor
        return self

    def no_decay(self) -> "EntityBuilder":
        return self.decay_processor(NoOpDecayProcessor())

    def turning_point(self, timestamp: datetime, description: str = "") -> "EntityBuilder":
        self._turning_points.append(TurningPoint(timestamp, description))
        return self

    def build(self) -> Entity:
        """
        Raises:
            MissingSpeciesError: No species was given.
            InvalidIdError: The id is empty.
        """
        if self._species is None:
            raise MissingSpeciesError("Entity requires a species")
        entity_id = self._id if self._id is not None else _next_entity_id()
        if not entity_id:
            raise InvalidIdError("Entity id must not be empty")

        hexaco = self._hexaco or Hexaco()
        state = IndividualState(hexaco=hexaco.copy(), mood=self._mood)
        for path, value in self._overrides:
            state.set_effective(path, value)

        life_stage = self._life_stage or LifeStage.for_species(
            self._species, as_years(self._age)
        )

        return Entity(
            id=entity_id,
            species=self._species,
            age=self._age,
            life_stage=life_stage,
            individual_state=state,
            decay_processor=self._decay_processor or StateDecayProcessor(),
            birth_date=self._birth_date,
            turning_points=list(self._turning_points),
        )


def create_entity(
    entity_id: Optional[str] = None,
    species: Species = HUMAN,
    age: timedelta = timedelta(0),
    profile: Optional[PersonalityProfile] = None,
) -> Entity:
    """Create an entity with default state for the given species and age."""
    builder = EntityBuilder().species(species).age(age)
    if entity_id is not None:
        builder.id(entity_id)
    if profile is not None:
        builder.personality(profile)
    return builder.build()
