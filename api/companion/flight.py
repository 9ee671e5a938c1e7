"""
Flight context: the read-only snapshot of where the plane is and what the air is doing.

The companion never computes this itself. It arrives with the request (from a
tracker, the UI, or a test) or falls back to a static default. Anything the
caller sends that isn't a known phase/turbulence value is coerced to "unknown"
so a typo upstream can't crash the pipeline or masquerade as a real reading.
"""
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FlightPhase(str, Enum):
    GATE = "gate"
    TAXI = "taxi"
    TAKEOFF = "takeoff"
    CLIMB = "climb"
    CRUISE = "cruise"
    DESCENT = "descent"
    APPROACH = "approach"
    LANDING = "landing"
    UNKNOWN = "unknown"


class Turbulence(str, Enum):
    NONE = "none"
    LIGHT = "light"
    MODERATE = "moderate"
    SEVERE = "severe"
    UNKNOWN = "unknown"


# Phases where the cabin is loud, pitched or busy; the usual anxiety hot spots
CRITICAL_PHASES = frozenset({
    FlightPhase.TAKEOFF,
    FlightPhase.CLIMB,
    FlightPhase.DESCENT,
    FlightPhase.APPROACH,
    FlightPhase.LANDING,
})


def _coerce(enum_cls, value):
    if value is None:
        return enum_cls.UNKNOWN
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return enum_cls.UNKNOWN


class FlightContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    phase: FlightPhase = FlightPhase.UNKNOWN
    turbulence: Turbulence = Turbulence.UNKNOWN
    route_summary: str | None = None
    pilot_activities: list[str] = Field(default_factory=list)
    altitude: int | None = Field(default=None, description="Feet MSL")
    speed: int | None = Field(default=None, description="Knots")
    weather_ahead: str | None = None

    @field_validator("phase", mode="before")
    @classmethod
    def _phase(cls, v):
        return _coerce(FlightPhase, v)

    @field_validator("turbulence", mode="before")
    @classmethod
    def _turbulence(cls, v):
        return _coerce(Turbulence, v)

    @field_validator("pilot_activities", mode="before")
    @classmethod
    def _activities(cls, v):
        # Trackers sometimes send a single sentence instead of a list
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        return v


def default_flight_context() -> FlightContext:
    """Static stand-in used when no live flight data accompanies the request."""
    return FlightContext(
        phase=FlightPhase.CRUISE,
        turbulence=Turbulence.LIGHT,
        altitude=36000,
        weather_ahead="clear",
    )


def flight_flags(flight: FlightContext) -> dict:
    """Booleans the UI uses to decide which helper cards to surface."""
    return {
        "turbulence_expected": flight.turbulence in (
            Turbulence.LIGHT, Turbulence.MODERATE, Turbulence.SEVERE,
        ),
        "critical_phase": flight.phase in CRITICAL_PHASES,
    }
