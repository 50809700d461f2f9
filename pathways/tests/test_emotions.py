"""Tests for PAD-derived emotions."""

import pytest

from pathways.core.emotions import Emotion, EmotionIntensities, derive_emotion, get_derived_emotion
from pathways.core.state import IndividualState, StatePath


def test_relaxed_octant():
    emotions = derive_emotion(0.5, -0.5, 0.5)
    assert emotions.relaxed == pytest.approx(0.5)
    assert emotions.dominant() == Emotion.RELAXED


def test_weakest_axis_limits_membership():
    emotions = derive_emotion(0.4, 0.8, -0.2)
    assert emotions.dependent == pytest.approx(0.2)
    assert emotions.exuberant == 0.0


def test_disgust_needs_moral_violation():
    assert derive_emotion(-0.8, 0.9, 0.7, 1.0).disgust == pytest.approx(0.7)
    assert derive_emotion(-0.8, 0.9, 0.7, 0.0).disgust == 0.0
    assert derive_emotion(-0.8, 0.9, 0.7, 0.0).hostile == pytest.approx(0.7)


def test_extremes():
    assert derive_emotion(1.0, 1.0, 1.0).exuberant == pytest.approx(1.0)
    assert derive_emotion(-1.0, -1.0, -1.0).depressed == pytest.approx(1.0)


def test_neutral_at_origin():
    emotions = derive_emotion(0.0, 0.0, 0.0)
    assert emotions == EmotionIntensities()
    assert emotions.dominant() == Emotion.NEUTRAL
    assert emotions.intensity(Emotion.NEUTRAL) == 0.0


def test_from_state():
    state = IndividualState()
    state.set_effective(StatePath.MOOD_VALENCE, -0.5)
    state.set_effective(StatePath.MOOD_AROUSAL, -0.7)
    state.set_effective(StatePath.MOOD_DOMINANCE, 0.6)

    emotions = get_derived_emotion(state)
    assert emotions.bored == pytest.approx(0.5)
    assert set(emotions.get_state()) == {e.value for e in Emotion if e != Emotion.NEUTRAL}
