"""
Plain-language explanations of the things nervous flyers notice.

Each PhaseEvent pairs a sensation ("engines suddenly get quieter") with what it
actually is, why the procedure exists, and why it's fine if it ever goes wrong.
match_explanation() looks in the current phase of flight first and only falls
back to the whole catalogue when nothing there overlaps the user's message.
The orchestrator hands the match to the prompt builder as the domain explanation.

Matching is keyword overlap on purpose: it's deterministic and testable, and a
wrong match only costs a slightly less relevant paragraph in the prompt.
"""
import re
from dataclasses import dataclass

from api.companion.flight import FlightPhase

_WORD = re.compile(r"[a-z']+")


@dataclass(frozen=True)
class PhaseEvent:
    id: str
    phase: FlightPhase
    trigger: str
    explanation: str
    why_it_exists: str
    if_it_failed: str
    keywords: frozenset

    def render(self) -> str:
        return (
            f"{self.explanation} {self.why_it_exists} "
            f"If it ever didn't work as planned: {self.if_it_failed}"
        )


def _event(id, phase, trigger, explanation, why, failed, keywords):
    return PhaseEvent(id, phase, trigger, explanation, why, failed, frozenset(keywords.split()))


PHASE_EVENTS = (
    _event(
        "gate-air-packs", FlightPhase.GATE,
        "A sudden whoosh of air through the vents while still parked",
        "That's the air system starting up and pushing filtered air into the cabin.",
        "The packs condition and pressurize the air you breathe in flight.",
        "The crew gets loud warnings and switches sources or delays departure; it doesn't quietly fail.",
        "whoosh vents air fan hiss blowing",
    ),
    _event(
        "gate-power-switch", FlightPhase.GATE,
        "Lights flicker or screens reset at the gate",
        "The plane is switching from airport power to its own generator, or back.",
        "Aircraft can draw power from the gate or from the onboard APU and swap before pushback.",
        "If one source has an issue they stay on the other; safety systems ride through the switch.",
        "lights flicker flickered screen screens reset power dark",
    ),
    _event(
        "taxi-bumps", FlightPhase.TAXI,
        "Rattling or bumping like driving over a rough road",
        "Taxiways are big concrete slabs built for weight, not smoothness.",
        "The landing gear is rugged and designed to absorb these bumps for years.",
        "A real gear issue shows up as clear warnings to the crew, not as rough-pavement feel.",
        "rattle rattling bumpy bumping rough ground shaking",
    ),
    _event(
        "taxi-turns-braking", FlightPhase.TAXI,
        "Repeated braking and sharp turns on the way to the runway",
        "The pilots are following ground control instructions along taxiways and hold points.",
        "Ground traffic is choreographed so aircraft and vehicles never conflict.",
        "At taxi speed on the ground, ATC can stop everyone and clarify with huge margins.",
        "braking brakes stopping stopped turns turning waiting",
    ),
    _event(
        "takeoff-thrust", FlightPhase.TAKEOFF,
        "Engines get very loud and you're pressed into the seat",
        "That's takeoff thrust: the engines giving high power to accelerate.",
        "High power for a short time gets the plane safely flying, even with one engine out.",
        "Takeoffs are certified so the crew can either stop on the runway or climb on one engine; they train it constantly.",
        "loud roar roaring engines pressed fast speed accelerating acceleration",
    ),
    _event(
        "takeoff-rotation", FlightPhase.TAKEOFF,
        "The nose tilts up more than feels natural",
        "That's rotation: lifting the nose so the wings make more lift.",
        "A nose-up attitude is how the wings generate enough lift to climb away.",
        "If rotation weren't possible the takeoff would be rejected well before this point.",
        "nose tilt tilting steep angle up pitch",
    ),
    _event(
        "climb-thrust-reduction", FlightPhase.CLIMB,
        "Engines get noticeably quieter a minute or two after takeoff",
        "The pilots are reducing from takeoff thrust to climb thrust.",
        "Full power is only needed briefly; reduced thrust is gentler on the engines.",
        "Engines can run at higher power far longer than needed, so nothing hinges on this step.",
        "quieter quiet engines stopped sound cut dropped",
    ),
    _event(
        "climb-clouds", FlightPhase.CLIMB,
        "Shuddering when passing through clouds",
        "Clouds are uneven air; the wings are moving through pockets of different density.",
        "Changing air near clouds always produces small bumps and vibrations.",
        "Cloud bumps are well inside what the structure is tested for; wings flex on purpose.",
        "clouds cloud shudder shuddering vibration grey gray",
    ),
    _event(
        "cruise-light-turbulence", FlightPhase.CRUISE,
        "Small random bumps or gentle rocking",
        "That's light turbulence: invisible air currents the plane is flying through.",
        "Jet streams, mountain waves and temperature layers make the air lumpy.",
        "The airframe is certified for far more motion than this; it feels dramatic only because your brain expects smooth.",
        "bumps bumpy turbulence rocking shaking shake drop dropping wobble",
    ),
    _event(
        "cruise-seatbelt-chime", FlightPhase.CRUISE,
        "The seatbelt chime sounds while things feel calm",
        "The pilots may have a report of rougher air ahead, or they're adding a margin.",
        "It keeps people seated so an unexpected bump can't become an injury.",
        "Even if the sign system glitched, the crew can still make spoken announcements.",
        "chime ding seatbelt sign belt announcement",
    ),
    _event(
        "descent-stomach-drop", FlightPhase.DESCENT,
        "A brief stomach-drop feeling as the plane starts down",
        "Your inner ear notices the nose lowering slightly for descent.",
        "The plane trades altitude for distance by lowering the nose and reducing power.",
        "Descent is fully controllable; the pilots can level off instantly.",
        "stomach drop dropping falling sinking down descending",
    ),
    _event(
        "descent-idle-engines", FlightPhase.DESCENT,
        "Engines become very quiet compared to earlier",
        "Less thrust is needed on the way down; gravity and airspeed are helping.",
        "Idle or near-idle thrust slows the plane and descends efficiently.",
        "The engines are still fully available and come back up the moment the throttles move.",
        "quiet quieter silent engines off idle",
    ),
    _event(
        "approach-flaps", FlightPhase.APPROACH,
        "Whirring from the wings and a small nose-up change",
        "That's the flaps extending to reshape the wing for slower, controlled flight.",
        "Flaps let the plane fly safely at landing speeds.",
        "There are procedures for every flap setting; a flap issue changes the schedule, not the outcome.",
        "whirring whir grinding wings wing flaps motor",
    ),
    _event(
        "approach-gear", FlightPhase.APPROACH,
        "A deep rumble or thump from below, then steady noise",
        "That's the landing gear extending and locking into place.",
        "The gear comes down early enough to be checked and stable for landing.",
        "Multiple indicators and backup extension procedures mean the crew knows the gear status before landing.",
        "thump thud clunk rumble bang below gear",
    ),
    _event(
        "landing-touchdown", FlightPhase.LANDING,
        "A firm thump and squeal at touchdown",
        "That's the tires spinning up from zero to runway speed in an instant.",
        "A firm touchdown lets the wheels grip so the brakes can work.",
        "Airframes are built for many firm landings; a solid arrival is within normal limits.",
        "thump hard firm touchdown squeal landed bounce",
    ),
    _event(
        "landing-reverse-thrust", FlightPhase.LANDING,
        "A sudden roar right after touchdown",
        "That's reverse thrust redirecting engine air forward to help slow down.",
        "It unloads the brakes and shortens stopping distance on wet or short runways.",
        "Brakes alone can stop the aircraft safely; reverse thrust is an extra layer.",
        "roar loud engines slowing noise braking",
    ),
)


def _tokens(text: str) -> set:
    return set(_WORD.findall(text.lower()))


def match_explanation(message: str, phase: FlightPhase = FlightPhase.UNKNOWN) -> PhaseEvent | None:
    """Best keyword match for the message, or None when nothing overlaps."""
    words = _tokens(message)
    if not words:
        return None

    in_phase = [e for e in PHASE_EVENTS if e.phase == phase]
    return _best_match(words, in_phase) or _best_match(words, PHASE_EVENTS)


def _best_match(words: set, events) -> PhaseEvent | None:
    # Ties go to the earlier event in the catalogue
    best, best_hits = None, 0
    for event in events:
        hits = len(words & event.keywords)
        if hits > best_hits:
            best, best_hits = event, hits
    return best
