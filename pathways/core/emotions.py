# ═══════════════════════════════════════════════════════════════════════════════
# PART 16: DERIVED EMOTIONS
# Design: A1 (Affective Science)
# Implementation: I2 (Numerics)
# ═══════════════════════════════════════════════════════════════════════════════


"""
A1: "Emotions are not stored. They are read off the PAD mood, one fuzzy
membership per octant, so a state can be a little anxious and a little bored
at once. Disgust is hostility with a recent moral violation behind it."
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict

import numpy as np

from pathways.core.state import IndividualState, StatePath


class Emotion(Enum):
    """PAD octant emotions, plus disgust."""
    EXUBERANT = "exuberant"     # +V +A +D
    DEPENDENT = "dependent"     # +V +A -D
    RELAXED = "relaxed"         # +V -A +D
    DOCILE = "docile"           # +V -A -D
    HOSTILE = "hostile"         # -V +A +D
    DISGUST = "disgust"         # hostile, gated by the moral-violation flag
    ANXIOUS = "anxious"         # -V +A -D
    BORED = "bored"             # -V -A +D
    DEPRESSED = "depressed"     # -V -A -D
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class EmotionIntensities:
    """Graded membership of each emotion, each in [0, 1]."""
    exuberant: float = 0.0
    dependent: float = 0.0
    relaxed: float = 0.0
    docile: float = 0.0
    hostile: float = 0.0
    disgust: float = 0.0
    anxious: float = 0.0
    bored: float = 0.0
    depressed: float = 0.0

    def intensity(self, emotion: Emotion) -> float:
        if emotion == Emotion.NEUTRAL:
            return 0.0
        return getattr(self, emotion.value)

    def dominant(self) -> Emotion:
        """Strongest emotion; NEUTRAL when every membership is zero."""
        best = max((e for e in Emotion if e != Emotion.NEUTRAL), key=self.intensity)
        return best if self.intensity(best) > 0.0 else Emotion.NEUTRAL

    def get_state(self) -> Dict[str, float]:
        return {e.value: self.intensity(e) for e in Emotion if e != Emotion.NEUTRAL}


def _unit(value: float) -> float:
    return float(np.clip(value, 0.0, 1.0))


def _high(value: float) -> float:
    """Membership in the positive half of a [-1, 1] axis."""
    normalized = _unit((value + 1.0) / 2.0)
    return _unit((normalized - 0.5) / 0.5)


def _low(value: float) -> float:
    normalized = _unit((value + 1.0) / 2.0)
    return _unit((0.5 - normalized) / 0.5)


def derive_emotion(
    valence: float,
    arousal: float,
    dominance: float,
    moral_violation: float = 0.0,
) -> EmotionIntensities:
    """
    Fuzzy PAD octant memberships.

    Each octant takes the minimum of its three axis memberships, so an
    emotion is only as strong as its weakest coordinate.
    """
    v_hi, v_lo = _high(valence), _low(valence)
    a_hi, a_lo = _high(arousal), _low(arousal)
    d_hi, d_lo = _high(dominance), _low(dominance)
    flag = _unit(moral_violation)

    return EmotionIntensities(
        exuberant=min(v_hi, a_hi, d_hi),
        dependent=min(v_hi, a_hi, d_lo),
        relaxed=min(v_hi, a_lo, d_hi),
        docile=min(v_hi, a_lo, d_lo),
        hostile=min(v_lo, a_hi, d_hi),
        disgust=min(v_lo, a_hi, d_hi) * flag,
        anxious=min(v_lo, a_hi, d_lo),
        bored=min(v_lo, a_lo, d_hi),
        depressed=min(v_lo, a_lo, d_lo),
    )


def get_derived_emotion(state: IndividualState) -> EmotionIntensities:
    """Emotions from a state's effective mood and moral-violation flag."""
    return derive_emotion(
        state.get_effective(StatePath.MOOD_VALENCE),
        state.get_effective(StatePath.MOOD_AROUSAL),
        state.get_effective(StatePath.MOOD_DOMINANCE),
        state.get_effective(StatePath.RECENT_MORAL_VIOLATION),
    )
