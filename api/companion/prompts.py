"""
Instruction assembly: (mode, message, state, flight, extras) → InstructionPayload.

Everything here is pure string building. The same inputs always produce the
same payload, which is what lets the tests pin the prompt down without an LLM.

The persona block is identical for every mode. Only the MODE CONTEXT section
changes, along with the flight and emotional summaries. The user's own message
is never rewritten; it goes into the user content block exactly as typed.
"""
from dataclasses import dataclass

from pydantic import BaseModel, Field

from api.companion.flight import FlightContext
from api.companion.modes import SupportMode, get_mode_config
from api.companion.state import EmotionalState

# Per-excerpt character cap, marker included
EXCERPT_LIMIT = 120
TRUNCATION_MARKER = "..."
RECENT_SAMPLES = 3

UNKNOWN = "unknown"


@dataclass(frozen=True)
class InstructionPayload:
    system_instructions: str
    user_content: str


class UserHistory(BaseModel):
    flight_count: int = Field(default=0, ge=0)
    effective_interventions: list[str] = Field(default_factory=list)
    fear_archetype: str | None = None
    trust_level: int | None = Field(default=None, ge=0, le=10)


PERSONA = """You are a calm, grounded, emotionally attuned flight companion.
You are always present, never rushed, and never alarmed by fear.
Your role is to support a nervous flyer through their real-time flying experience, from pre-flight through landing, offering steady, truthful guidance.

You speak in short, reassuring, human language.
You do not overwhelm. You do not lecture. You do not hype. You do not patronize.
You are a regulated nervous system meeting a dysregulated one, helping it come back toward neutral.

## What you know
- How flights work from gate to runway, climb, cruise, descent and taxi
- Typical sensations and sounds in each phase of flight
- What turbulence is (and isn't)
- What the body does during fear, and how anxiety distorts time and threat perception

## Data rule
- Base every specific claim (location, timing, weather, turbulence, aircraft type) ONLY on the flight context provided below.
- Do NOT invent flight data you were not given. Anything marked "unknown" is unknown to you too.
- If a detail is missing, stay general and honest instead of guessing.

## What you always do
- Reflect the user's current emotional state.
- Normalize fear instead of minimizing it.
- Offer grounding before explanation.

## What you never do
- Say "there's nothing to worry about."
- Say "just breathe" without attunement.
- Dump facts to override emotion or use false reassurance.
- Make the user feel small, silly, weak, or dramatic.

## Response shape (follow this order naturally)
1) ATTUNE: briefly reflect what the user is feeling, without judgment.
2) NORMALIZE: show that this reaction makes sense for a nervous system in this situation.
3) ORIENT: offer present-moment truth using the flight context (phase, typical sensations, what is actually happening).
4) GUIDE: help calm the body and settle the breath.
5) OFFER NEXT STEP: give one small, concrete next step toward steadiness.

## Continuity
- You are not trying to solve their fear in one message; support the next few minutes.
- When useful, briefly reference recent patterns from the emotional context, but never list their whole history or quote long past messages back.
- Avoid final-sounding promises like "now you're safe forever."

## Format
- Speak directly to the user. Do not label the sections.
- No bullet lists unless asked. Usually 1-3 short paragraphs.
- End with ONE gentle, specific check-in question."""


def _or_unknown(value) -> str:
    if value is None or value == "" or value == []:
        return UNKNOWN
    return str(value)


def truncate_excerpt(text: str, limit: int = EXCERPT_LIMIT) -> str:
    """Cap text at `limit` characters, marker included."""
    if len(text) <= limit:
        return text
    return text[: limit - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


def summarize_flight(flight: FlightContext) -> str:
    altitude = f"{flight.altitude:,} ft" if flight.altitude is not None else UNKNOWN
    speed = f"{flight.speed} kt" if flight.speed is not None else UNKNOWN
    activities = ", ".join(flight.pilot_activities) if flight.pilot_activities else UNKNOWN
    return "\n".join([
        f"Phase: {flight.phase.value}",
        f"Turbulence: {flight.turbulence.value}",
        f"Altitude: {altitude}",
        f"Speed: {speed}",
        f"Route: {_or_unknown(flight.route_summary)}",
        f"Weather ahead: {_or_unknown(flight.weather_ahead)}",
        f"Likely pilot activities: {activities}",
    ])


def summarize_state(state: EmotionalState) -> str:
    samples = state.samples[-RECENT_SAMPLES:]
    if samples:
        notes = "\n".join(
            f'- Anxiety {s.anxiety_level}/10: "{truncate_excerpt(s.message)}"'
            for s in samples
        )
    else:
        notes = "- No prior messages captured."

    return (
        f"Last anxiety level: {state.anxiety_level}/10\n"
        f"Average anxiety: {state.average_anxiety:.1f}/10\n"
        f"Trend: {state.trend.value}\n"
        f"Consecutive spikes: {state.spikes_in_row}\n"
        f"\nRecent emotional notes:\n{notes}"
    )


def summarize_history(history: UserHistory) -> str:
    lines = [
        f"Flights with the companion: {history.flight_count}",
        "Interventions that helped before: "
        + (", ".join(history.effective_interventions) or "not enough data yet"),
    ]
    if history.fear_archetype:
        lines.append(f"Fear archetype: {history.fear_archetype}")
    if history.trust_level is not None:
        lines.append(f"Trust level: {history.trust_level}/10")
    return "\n".join(lines)


def build_instructions(
    mode: SupportMode,
    user_message: str,
    state: EmotionalState,
    flight: FlightContext,
    domain_explanation: str | None = None,
    user_history: UserHistory | None = None,
) -> InstructionPayload:
    """Assemble the full instruction payload for one generation call.

    Raises ConfigurationError if `mode` has no config entry.
    """
    config = get_mode_config(mode)

    sections = [
        PERSONA,
        "## Mode context\n"
        f"Current mode: {SupportMode(mode).value} ({config.name})\n"
        f"Description: {config.description}\n"
        f"Primary goal this message: {config.primary_goal}\n"
        f"Extra instructions for this mode: {config.extra_instructions}",
        "## Current flight context (for your reasoning)\n" + summarize_flight(flight),
        "## User emotional context (for your reasoning)\n" + summarize_state(state),
    ]

    if domain_explanation:
        sections.append(
            "## Aviation explanation\n"
            f"{domain_explanation}\n"
            f"Adapt this to their current anxiety level ({state.anxiety_level}/10); "
            "use only the parts that help right now."
        )

    if user_history is not None:
        sections.append("## User history snapshot\n" + summarize_history(user_history))

    sections.append(
        "Now respond to the user's message following the shape: "
        "ATTUNE, NORMALIZE, ORIENT, GUIDE, OFFER NEXT STEP."
    )

    return InstructionPayload(
        system_instructions="\n\n".join(sections),
        user_content=user_message,
    )
