# ═══════════════════════════════════════════════════════════════════════════════
# PART 14: TEMPORAL QUERIES
# Design: I1 (Systems Architect) + D1 (Comparative Development)
# Implementation: I1 (Systems Architect)
# ═══════════════════════════════════════════════════════════════════════════════


"""
I1: "One question: what was, or will be, this entity's state at time T?
Compare T to the anchor. Later, project forward through (anchor, T]. Earlier,
regress back through (T, anchor]. Equal, hand back the anchor untouched.
Every answer is a fresh copy and the same question always gets the same
answer."

D1: "Age moves with the query. The developmental factor for an event uses the
entity's age on the day the event happened, not on the anchor day."
"""

from __future__ import annotations

import bisect
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterator, List, Optional, Tuple

from pathways.core.alerts import Alert, AlertConfig, AlertGenerator
from pathways.core.development import DevelopmentConfig, DevelopmentTracker
from pathways.core.emotions import EmotionIntensities, get_derived_emotion
from pathways.core.entity import Entity
from pathways.core.events import Event
from pathways.core.evolution import (
    RegressionQuality,
    TimedInterpretation,
    advance_with_events,
    regress_with_events,
)
from pathways.core.feedback import FeedbackConfig, FeedbackProcessor, SpiralResult
from pathways.core.formative import BaseShiftRecord, apply_base_shifts, collect_base_shifts
from pathways.core.interpreter import InterpretedEvent, interpret_event
from pathways.core.its import ContributorActivation, ItsFactors, compute_its_factors
from pathways.core.species import HUMAN, LifeStage, Species, as_years
from pathways.core.state import IndividualState, StatePath


logger = logging.getLogger(__name__)

# Smallest change reported in a delta summary
DELTA_SUMMARY_EPSILON = 1e-12

# Sentinel sequence larger than any real one
_MAX_SEQUENCE = float("inf")


@dataclass
class SimulationConfig:
    """Configuration for temporal queries."""
    enable_spirals: bool = True             # Run feedback spirals during forward projection
    memoize_interpretations: bool = True    # Cache interpreted events by (entity, log entry)
    compute_delta_summary: bool = True

    # Component configs (optional - defaults used if None)
    feedback_config: Optional[FeedbackConfig] = None
    development_config: Optional[DevelopmentConfig] = None
    alert_config: Optional[AlertConfig] = None


@dataclass(frozen=True)
class TimestampedEvent:
    """Log entry. Ties on timestamp are ordered by insertion sequence."""
    timestamp: datetime
    sequence: int
    event: Event

    @property
    def key(self) -> Tuple[datetime, int]:
        return (self.timestamp, self.sequence)


@dataclass
class AnchoredEntity:
    """An entity with the snapshot taken when it joined the simulation."""
    entity: Entity
    anchor_timestamp: datetime
    anchor_state: IndividualState


class _EventLog:
    """Append-only log kept sorted by (timestamp, sequence)."""

    def __init__(self) -> None:
        self._keys: List[Tuple[datetime, int]] = []
        self._entries: List[TimestampedEvent] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TimestampedEvent]:
        return iter(self._entries)

    def insert(self, entry: TimestampedEvent) -> None:
        index = bisect.bisect_right(self._keys, entry.key)
        self._keys.insert(index, entry.key)
        self._entries.insert(index, entry)

    def after_until(self, after: datetime, until: datetime) -> List[TimestampedEvent]:
        """Entries with after < timestamp <= until."""
        lo = bisect.bisect_left(self._keys, (after, _MAX_SEQUENCE))
        hi = bisect.bisect_left(self._keys, (until, _MAX_SEQUENCE))
        return self._entries[lo:hi]

    def between(self, start: datetime, end: datetime) -> List[TimestampedEvent]:
        """Entries with start <= timestamp <= end."""
        lo = bisect.bisect_left(self._keys, (start, -1))
        hi = bisect.bisect_left(self._keys, (end, _MAX_SEQUENCE))
        return self._entries[lo:hi]

    def until(self, end: datetime) -> List[TimestampedEvent]:
        """Entries with timestamp <= end."""
        return self._entries[:bisect.bisect_left(self._keys, (end, _MAX_SEQUENCE))]


# ── Query result ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ComputedState:
    """
    Result of a point-in-time query.

    Immutable once returned. Owns its state copy; nothing links it back to
    the entity.
    """
    individual_state: IndividualState
    timestamp: datetime
    age_at_timestamp: timedelta
    life_stage: LifeStage
    regression_quality: RegressionQuality = RegressionQuality.EXACT
    delta_summary: Optional[Dict[StatePath, float]] = None
    interpretations: Tuple[TimedInterpretation, ...] = ()
    spirals: SpiralResult = field(default_factory=SpiralResult)
    active_contributors: Tuple[ContributorActivation, ...] = ()
    base_shifts: Tuple[BaseShiftRecord, ...] = ()
    species: Species = HUMAN
    alert_config: Optional[AlertConfig] = field(default=None, repr=False)
    _alerts: Optional[List[Alert]] = field(default=None, init=False, repr=False, compare=False)

    # ── Properties ───────────────────────────────────────────────────────────

    @property
    def is_exact(self) -> bool:
        return self.regression_quality.is_exact

    @property
    def age_years(self) -> float:
        return as_years(self.age_at_timestamp)

    # ── Public Methods ───────────────────────────────────────────────────────

    def get_effective(self, path: StatePath) -> float:
        return self.individual_state.get_effective(path)

    def its_factors(self) -> ItsFactors:
        return compute_its_factors(self.individual_state)

    def derived_emotions(self) -> EmotionIntensities:
        return get_derived_emotion(self.individual_state)

    def alerts(self) -> List[Alert]:
        """Threshold-crossing alerts for this state. Computed once."""
        if self._alerts is None:
            generator = AlertGenerator(self.alert_config)
            object.__setattr__(
                self, "_alerts",
                generator.check_all(self.individual_state, self.species, self.timestamp),
            )
        return list(self._alerts)

    def get_state(self) -> dict:
        """Serialize current state."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "age_days": self.age_at_timestamp / timedelta(days=1),
            "life_stage": self.life_stage.value,
            "regression_quality": self.regression_quality.value,
            "delta_summary": (
                {path.value: change for path, change in self.delta_summary.items()}
                if self.delta_summary is not None else None
            ),
            "interpretations": [ie.source_event_id for _, ie in self.interpretations],
            "spirals_triggered": self.spirals.has_changes(),
            "active_contributors": [a.contributor.value for a in self.active_contributors],
            "base_shifts": [(r.trait.value, r.contribution_at(self.timestamp)) for r in self.base_shifts],
            "emotions": self.derived_emotions().get_state(),
            "individual_state": self.individual_state.get_state(),
        }


# ── Handle ───────────────────────────────────────────────────────────────────


class EntityQueryHandle:
    """Read-only view of one entity inside a simulation."""

    def __init__(self, simulation: "Simulation", entity_id: str) -> None:
        self._simulation = simulation
        self._entity_id = entity_id

    # ── Properties ───────────────────────────────────────────────────────────

    @property
    def id(self) -> str:
        return self._entity_id

    @property
    def anchor_timestamp(self) -> datetime:
        return self._anchored.anchor_timestamp

    @property
    def entity(self) -> Entity:
        return self._anchored.entity

    # ── Public Methods ───────────────────────────────────────────────────────

    def age_at(self, timestamp: datetime) -> timedelta:
        """
        Calendar age at `timestamp`, floored at zero.

        From the birth date when one is set, otherwise the anchor age moved by
        the distance to the anchor.
        """
        anchored = self._anchored
        entity = anchored.entity
        if entity.birth_date is not None:
            age = timestamp - entity.birth_date
        else:
            age = entity.age + (timestamp - anchored.anchor_timestamp)
        return max(age, timedelta(0))

    def state_at(self, timestamp: datetime) -> ComputedState:
        """
        State of the entity at `timestamp`.

        Forward projections are always EXACT and carry formative trait shifts
        from events in (anchor, timestamp]. Backward regressions are EXACT
        unless an event with an irreversible effect lies in (timestamp, anchor],
        and apply no trait shifts.
        """
        anchored = self._anchored
        entity = anchored.entity
        anchor = anchored.anchor_timestamp
        sim = self._simulation
        age = self.age_at(timestamp)

        if timestamp == anchor:
            logger.debug("Query for %s at anchor", self._entity_id)
            return self._result(
                anchored.anchor_state.copy(), timestamp, age, entity.life_stage,
                RegressionQuality.EXACT, None, (), SpiralResult(),
            )

        log = sim.log_for(self._entity_id)
        shifts: List[BaseShiftRecord] = []
        if timestamp > anchor:
            entries = log.after_until(anchor, timestamp)
            timed = self._scaled_interpretations(entries)
            feedback = sim.feedback if sim.config.enable_spirals else None
            logger.debug("Forward query for %s: %s -> %s, %d events",
                         self._entity_id, anchor, timestamp, len(timed))
            result = advance_with_events(
                anchored.anchor_state, anchor, timestamp, timed,
                decay_processor=entity.decay_processor,
                time_scale=entity.species.time_scale,
                feedback=feedback,
                species=entity.species,
            )
            shifts = collect_base_shifts(
                ((entry.timestamp, int(as_years(self.age_at(entry.timestamp))), entry.event.base_shifts)
                 for entry in entries if entry.event.has_base_shifts),
                entity.species,
            )
            apply_base_shifts(result.state, shifts, timestamp)
        else:
            timed = self._scaled_interpretations(log.after_until(timestamp, anchor))
            logger.debug("Backward query for %s: %s -> %s, %d events",
                         self._entity_id, anchor, timestamp, len(timed))
            result = regress_with_events(
                anchored.anchor_state, anchor, timestamp, timed,
                decay_processor=entity.decay_processor,
                time_scale=entity.species.time_scale,
                prior_violation=self._latest_violation(timestamp),
            )

        stage = LifeStage.for_species(entity.species, as_years(age))
        return self._result(
            result.state, timestamp, age, stage, result.quality,
            self._delta_summary(result.state), tuple(timed), result.spirals,
            tuple(shifts),
        )

    def interpretations_between(self, start: datetime, end: datetime) -> Tuple[TimedInterpretation, ...]:
        """
        Interpreted events for this entity with start <= timestamp <= end.

        Deltas are at unit developmental factor.
        """
        sim = self._simulation
        return tuple(
            (entry.timestamp, sim.interpretation(self._entity_id, entry))
            for entry in sim.log_for(self._entity_id).between(start, end)
        )

    # ── Internal ─────────────────────────────────────────────────────────────

    @property
    def _anchored(self) -> AnchoredEntity:
        return self._simulation.anchored(self._entity_id)

    def _scaled_interpretations(self, entries: List[TimestampedEvent]) -> List[TimedInterpretation]:
        """Interpretations of `entries`, scaled by developmental factor."""
        sim = self._simulation
        entity = self._anchored.entity
        tracker = DevelopmentTracker(
            species=entity.species,
            turning_points=entity.turning_points,
            config=sim.config.development_config,
        )
        timed = []
        for entry in entries:
            interpreted = sim.interpretation(self._entity_id, entry)
            factor = tracker.get_factor(entry.event, self.age_at(entry.timestamp), entry.timestamp)
            timed.append((entry.timestamp, interpreted.scaled_by(factor)))
        return timed

    def _latest_violation(self, until: datetime) -> Optional[datetime]:
        """Timestamp of the newest moral violation at or before `until`."""
        sim = self._simulation
        for entry in reversed(sim.log_for(self._entity_id).until(until)):
            if sim.interpretation(self._entity_id, entry).moral_violation:
                return entry.timestamp
        return None

    def _delta_summary(self, state: IndividualState) -> Optional[Dict[StatePath, float]]:
        if not self._simulation.config.compute_delta_summary:
            return None
        anchor_state = self._anchored.anchor_state
        summary = {}
        for path in StatePath:
            if path.is_derived:
                continue
            change = state.get_effective(path) - anchor_state.get_effective(path)
            if abs(change) > DELTA_SUMMARY_EPSILON:
                summary[path] = change
        return summary

    def _result(
        self,
        state: IndividualState,
        timestamp: datetime,
        age: timedelta,
        stage: LifeStage,
        quality: RegressionQuality,
        delta_summary: Optional[Dict[StatePath, float]],
        interpretations: Tuple[TimedInterpretation, ...],
        spirals: SpiralResult,
        base_shifts: Tuple[BaseShiftRecord, ...] = (),
    ) -> ComputedState:
        entity = self._anchored.entity
        return ComputedState(
            individual_state=state,
            timestamp=timestamp,
            age_at_timestamp=age,
            life_stage=stage,
            regression_quality=quality,
            delta_summary=delta_summary,
            interpretations=interpretations,
            spirals=spirals,
            active_contributors=tuple(entity.its_contributors.active_at(timestamp)),
            base_shifts=base_shifts,
            species=entity.species,
            alert_config=self._simulation.config.alert_config,
        )


# ── Simulation ───────────────────────────────────────────────────────────────


class Simulation:
    """
    Entity registry plus a time-ordered event log.

    Entities are anchored when added. Events are historical facts: appended,
    never removed or changed. Queries never mutate either.
    """

    def __init__(self, reference_date: datetime, config: Optional[SimulationConfig] = None) -> None:
        self.config = config or SimulationConfig()
        self.reference_date = reference_date
        self.feedback = FeedbackProcessor(self.config.feedback_config)

        self._entities: Dict[str, AnchoredEntity] = {}
        self._log = _EventLog()
        self._logs_by_target: Dict[str, _EventLog] = {}
        self._sequence = itertools.count()
        self._interpretations: Dict[Tuple[str, int], InterpretedEvent] = {}

    # ── Properties ───────────────────────────────────────────────────────────

    @property
    def entity_count(self) -> int:
        return len(self._entities)

    @property
    def event_count(self) -> int:
        return len(self._log)

    # ── Public Methods ───────────────────────────────────────────────────────

    def add_entity(self, entity: Entity, anchor_timestamp: Optional[datetime] = None) -> str:
        """
        Register an entity, snapshotting its state as the anchor.

        Args:
            entity: The configured entity.
            anchor_timestamp: When the snapshot is authoritative
                (defaults to the reference date).

        Returns:
            The entity id.
        """
        anchor = anchor_timestamp if anchor_timestamp is not None else self.reference_date
        if entity.id in self._entities:
            logger.warning("Replacing entity %s", entity.id)
            self._drop_interpretations(entity.id)
        self._entities[entity.id] = AnchoredEntity(
            entity=entity,
            anchor_timestamp=anchor,
            anchor_state=entity.individual_state.copy(),
        )
        logger.debug("Added entity %s anchored at %s", entity.id, anchor)
        return entity.id

    def entity(self, entity_id: str) -> Optional[EntityQueryHandle]:
        if entity_id not in self._entities:
            return None
        return EntityQueryHandle(self, entity_id)

    def entity_ids(self) -> List[str]:
        return list(self._entities)

    def add_event(self, event: Event, timestamp: datetime) -> TimestampedEvent:
        """
        Append an event to the log at `timestamp`.

        Events without a target stay in the global log but never touch a
        state. Every call makes a distinct entry, even for a reused event
        id.

        Returns:
            The log entry.
        """
        entry = TimestampedEvent(timestamp, next(self._sequence), event)
        self._log.insert(entry)
        if event.target is not None:
            self._logs_by_target.setdefault(event.target, _EventLog()).insert(entry)
        logger.debug("Added %s (%s) at %s", event.id, event.event_type.value, timestamp)
        return entry

    def events_for(self, entity_id: str) -> List[Event]:
        """Events targeting an entity, in timeline order."""
        return [entry.event for entry in self.log_for(entity_id)]

    def events_between(self, start: datetime, end: datetime) -> List[TimestampedEvent]:
        """All logged events with start <= timestamp <= end."""
        return list(self._log.between(start, end))

    def all_events(self) -> List[TimestampedEvent]:
        return list(self._log)

    def anchored(self, entity_id: str) -> AnchoredEntity:
        """
        Raises:
            KeyError: Unknown entity.
        """
        return self._entities[entity_id]

    def log_for(self, entity_id: str) -> _EventLog:
        return self._logs_by_target.get(entity_id, _EventLog())

    def interpretation(self, entity_id: str, entry: TimestampedEvent) -> InterpretedEvent:
        """Interpret a logged event for an entity, memoized per log entry."""
        key = (entity_id, entry.sequence)
        if self.config.memoize_interpretations and key in self._interpretations:
            return self._interpretations[key]

        anchored = self._entities[entity_id]
        interpreted = interpret_event(
            entry.event,
            anchored.anchor_state.hexaco,
            anchored.anchor_state,
            anchored.entity.species,
        )
        if self.config.memoize_interpretations:
            self._interpretations[key] = interpreted
        return interpreted

    def get_state(self) -> dict:
        """Serialize current state."""
        return {
            "reference_date": self.reference_date.isoformat(),
            "entities": {
                entity_id: {
                    "anchor_timestamp": anchored.anchor_timestamp.isoformat(),
                    "entity": anchored.entity.get_state(),
                }
                for entity_id, anchored in self._entities.items()
            },
            "event_count": len(self._log),
            "cached_interpretations": len(self._interpretations),
        }

    # ── Internal ─────────────────────────────────────────────────────────────

    def _drop_interpretations(self, entity_id: str) -> None:
        for key in [k for k in self._interpretations if k[0] == entity_id]:
            del self._interpretations[key]
