"""
Tests for the mode selector.

The selector is a total, pure function over (anxiety, trend, spikes, turbulence),
and its rule order is product behaviour: the grid test below walks the whole
input space so a refactor can't silently open a gap or reorder the rules.
"""
import itertools

import pytest

from api.companion.flight import FlightContext, FlightPhase, Turbulence
from api.companion.modes import MODE_CONFIG, SupportMode
from api.companion.selector import select_mode
from api.companion.state import EmotionalState, Trend


def _state(trend=Trend.UNKNOWN, spikes=0, level=0):
    return EmotionalState(user_id="u", anxiety_level=level, trend=trend, spikes_in_row=spikes)


def _flight(turbulence="none", phase="cruise"):
    return FlightContext(phase=phase, turbulence=turbulence)


def _expected(anxiety, turbulence, trend, spikes):
    """Reference statement of the rule table, used to check every combination."""
    if turbulence == Turbulence.UNKNOWN:
        turbulence = Turbulence.NONE
    if turbulence in (Turbulence.MODERATE, Turbulence.SEVERE):
        return SupportMode.TURBULENCE_SUPPORT
    if anxiety >= 8:
        return SupportMode.FEAR_SPIKE
    if turbulence == Turbulence.LIGHT and anxiety >= 5:
        return SupportMode.TURBULENCE_SUPPORT
    if spikes >= 3 or (trend == Trend.RISING and anxiety >= 6):
        return SupportMode.CALM_REFRAME
    if anxiety >= 5:
        return SupportMode.CALM_REFRAME
    return SupportMode.BASELINE


def test_selector_is_total_over_input_space():
    """Every combination yields exactly one configured mode, matching the rule table."""
    for anxiety, turbulence, trend, spikes in itertools.product(
        range(0, 11), list(Turbulence), list(Trend), range(0, 6),
    ):
        mode = select_mode(anxiety, _state(trend, spikes), _flight(turbulence))
        assert isinstance(mode, SupportMode)
        assert mode in MODE_CONFIG
        assert mode == _expected(anxiety, turbulence, trend, spikes), (anxiety, turbulence, trend, spikes)


def test_severe_turbulence_beats_fear_spike():
    assert select_mode(9, _state(), _flight("severe")) == SupportMode.TURBULENCE_SUPPORT


def test_high_anxiety_without_turbulence_is_fear_spike():
    assert select_mode(9, _state(), _flight("none")) == SupportMode.FEAR_SPIKE


def test_low_anxiety_stable_is_baseline():
    assert select_mode(3, _state(Trend.STABLE), _flight("none")) == SupportMode.BASELINE


@pytest.mark.parametrize("anxiety,expected", [
    (4, SupportMode.BASELINE),
    (5, SupportMode.TURBULENCE_SUPPORT),
    (8, SupportMode.FEAR_SPIKE),
])
def test_light_turbulence_needs_moderate_anxiety(anxiety, expected):
    assert select_mode(anxiety, _state(), _flight("light")) == expected


def test_repeated_spikes_trigger_reframe_even_when_calm_now():
    assert select_mode(2, _state(spikes=3), _flight()) == SupportMode.CALM_REFRAME


def test_rising_trend_needs_anxiety_six():
    assert select_mode(4, _state(Trend.RISING), _flight()) == SupportMode.BASELINE
    assert select_mode(6, _state(Trend.RISING), _flight()) == SupportMode.CALM_REFRAME


def test_unknown_trend_never_escalates():
    assert select_mode(4, _state(Trend.UNKNOWN, spikes=2), _flight()) == SupportMode.BASELINE


def test_unknown_turbulence_treated_as_none():
    assert select_mode(5, _state(), _flight("unknown")) == SupportMode.CALM_REFRAME
    assert select_mode(5, _state(), FlightContext(turbulence="choppy?")) == SupportMode.CALM_REFRAME


def test_selector_is_deterministic():
    state, flight = _state(Trend.RISING, 1), _flight("light", FlightPhase.DESCENT)
    assert select_mode(6, state, flight) == select_mode(6, state, flight)
