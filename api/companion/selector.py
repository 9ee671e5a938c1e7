"""
Mode selection: (anxiety, emotional state, flight context) → one SupportMode.

Rules are checked in a fixed order and the first match wins. The order matters
because the categories overlap: a severe-turbulence reading at anxiety 9
satisfies both the turbulence rule and the fear-spike rule, and the
turbulence rule has to win. The thresholds are product policy; keep them as
they are.
"""
from api.companion.flight import FlightContext, Turbulence
from api.companion.modes import MODE_CONFIG, SupportMode
from api.companion.state import EmotionalState, Trend
from api.errors import ConfigurationError

FEAR_SPIKE_LEVEL = 8
ELEVATED_LEVEL = 5
RISING_LEVEL = 6
SUSTAINED_SPIKES = 3


def select_mode(anxiety_level: int, state: EmotionalState, flight: FlightContext) -> SupportMode:
    turbulence = flight.turbulence
    if turbulence == Turbulence.UNKNOWN:
        turbulence = Turbulence.NONE

    # 1. Bumpy air overrides everything else
    if turbulence in (Turbulence.MODERATE, Turbulence.SEVERE):
        return SupportMode.TURBULENCE_SUPPORT

    # 2. Strong immediate spike
    if anxiety_level >= FEAR_SPIKE_LEVEL:
        return SupportMode.FEAR_SPIKE

    # 3. Light chop with moderate anxiety
    if turbulence == Turbulence.LIGHT and anxiety_level >= ELEVATED_LEVEL:
        return SupportMode.TURBULENCE_SUPPORT

    # 4. Escalating or repeated spikes
    if state.spikes_in_row >= SUSTAINED_SPIKES or (
        state.trend == Trend.RISING and anxiety_level >= RISING_LEVEL
    ):
        return SupportMode.CALM_REFRAME

    # 5. Moderate anxiety
    if anxiety_level >= ELEVATED_LEVEL:
        return SupportMode.CALM_REFRAME

    return SupportMode.BASELINE


def ensure_configured(mode: SupportMode) -> SupportMode:
    """Guard the hand-off to the prompt stage: the selector may only emit configured modes."""
    if mode not in MODE_CONFIG:
        raise ConfigurationError(f"Selector produced unconfigured mode {mode!r}")
    return mode
