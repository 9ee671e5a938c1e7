"""
Support modes and their fixed instruction records.

A mode is the companion's strategy for one reply. The selector picks the mode;
this table says what the mode means to the model. Every member of SupportMode
must have exactly one ModeConfig. The check at the bottom of this module runs
at import time, so a missing entry fails the process on startup instead of
surfacing as a KeyError halfway through a user's panic attack.
"""
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from api.errors import ConfigurationError


class SupportMode(str, Enum):
    BASELINE = "BASELINE"
    FEAR_SPIKE = "FEAR_SPIKE"
    TURBULENCE_SUPPORT = "TURBULENCE_SUPPORT"
    TAKEOFF_SPIKE = "TAKEOFF_SPIKE"
    LANDING_ANTICIPATION = "LANDING_ANTICIPATION"
    CALM_REFRAME = "CALM_REFRAME"
    GROUNDING = "GROUNDING"


@dataclass(frozen=True)
class ModeConfig:
    name: str
    description: str
    primary_goal: str
    extra_instructions: str


_MODE_CONFIG = {
    SupportMode.BASELINE: ModeConfig(
        name="Baseline Support",
        description="User is uneasy or mildly anxious but not in a panic. No major turbulence.",
        primary_goal=(
            "Keep things calm, normalize what they're feeling, and build trust "
            "without over-explaining."
        ),
        extra_instructions=(
            "Keep it light and simple. They're uneasy, not in full panic. "
            "Focus on light education and simple tools. Do NOT sound clinical or robotic."
        ),
    ),
    SupportMode.FEAR_SPIKE: ModeConfig(
        name="Fear Spike",
        description=(
            "User is experiencing a surge in fear or panic. They may feel like "
            "something bad is about to happen."
        ),
        primary_goal="Stabilize their nervous system quickly, narrow their focus, and prevent spiraling.",
        extra_instructions=(
            "Use short, steady sentences. Imagine you're sitting next to them. "
            "Prioritize grounding and very concrete reassurance based on real "
            "aviation behavior. No long lectures."
        ),
    ),
    SupportMode.TURBULENCE_SUPPORT: ModeConfig(
        name="Turbulence Support",
        description="There is some turbulence. User may interpret bumps as danger.",
        primary_goal=(
            "Explain turbulence in practical, non-technical terms and frame bumps "
            "as normal and expected."
        ),
        extra_instructions=(
            "Use clear metaphors (like driving on a bumpy road) without sounding "
            "childish. Emphasize design margins and pilot training."
        ),
    ),
    SupportMode.TAKEOFF_SPIKE: ModeConfig(
        name="Takeoff Spike",
        description=(
            "Anxiety spikes around takeoff/initial climb, when engines are loud "
            "and pitch is higher."
        ),
        primary_goal=(
            "Explain the sounds and sensations of takeoff, why they're expected, "
            "and give a simple focus task during the climb."
        ),
        extra_instructions=(
            "Mention that loud engines, nose-up attitude, and some vibration are "
            "normal at this phase. Keep it concrete and calm."
        ),
    ),
    SupportMode.LANDING_ANTICIPATION: ModeConfig(
        name="Landing Anticipation",
        description=(
            "User is anxious about descent/landing and may misread normal "
            "configuration changes as danger."
        ),
        primary_goal=(
            "Normalize descent, turns, and power/gear/flap changes as part of a "
            "controlled arrival."
        ),
        extra_instructions=(
            "Explain that this phase often feels 'busier' with more sounds and "
            "small changes, and that it's all intentional."
        ),
    ),
    SupportMode.CALM_REFRAME: ModeConfig(
        name="Calm Reframe",
        description=(
            "Anxiety is elevated or climbing across messages, but the flight "
            "itself is uneventful."
        ),
        primary_goal=(
            "Slow the escalation down and gently reframe what they're noticing "
            "as ordinary, designed, and expected."
        ),
        extra_instructions=(
            "Acknowledge that the feeling has been building. Offer one reframe "
            "and one body-based tool. Don't stack explanations."
        ),
    ),
    SupportMode.GROUNDING: ModeConfig(
        name="Grounding / Reset",
        description=(
            "User has had repeated spikes or is mentally exhausted from fear and "
            "needs a nervous system reset."
        ),
        primary_goal=(
            "Step back from plane specifics and focus on body, breath, and "
            "immediate sensory grounding."
        ),
        extra_instructions=(
            "Center on breath, body awareness, and micro-actions. Only bring in "
            "plane facts if they directly help them settle."
        ),
    ),
}

MODE_CONFIG = MappingProxyType(_MODE_CONFIG)


def get_mode_config(mode: SupportMode) -> ModeConfig:
    """Look up a mode's config. A miss is a programming defect, not bad input."""
    try:
        return MODE_CONFIG[SupportMode(mode)]
    except (KeyError, ValueError):
        raise ConfigurationError(f"No configuration for support mode {mode!r}") from None


def check_mode_table(table=MODE_CONFIG) -> None:
    missing = [m.value for m in SupportMode if m not in table]
    extra = [str(k) for k in table if not isinstance(k, SupportMode)]
    if missing or extra:
        raise ConfigurationError(
            f"Mode table mismatch: missing: {missing or 'none'}, unexpected: {extra or 'none'}"
        )


check_mode_table()
