"""
Tests for matching a user's message to a plain-language aviation explanation.
"""
from api.companion.explanations import PHASE_EVENTS, match_explanation
from api.companion.flight import FlightPhase


def test_current_phase_breaks_ties():
    """'Engines got quiet' means climb thrust after takeoff, idle thrust in descent."""
    message = "Why did the engines suddenly go quiet?"
    assert match_explanation(message, FlightPhase.CLIMB).id == "climb-thrust-reduction"
    assert match_explanation(message, FlightPhase.DESCENT).id == "descent-idle-engines"


def test_falls_back_to_other_phases():
    event = match_explanation("There was a loud thump below us and the gear?", FlightPhase.CRUISE)
    assert event.id == "approach-gear"


def test_no_overlap_returns_none():
    assert match_explanation("I just want to talk to someone", FlightPhase.CRUISE) is None
    assert match_explanation("", FlightPhase.CRUISE) is None


def test_render_includes_all_parts():
    event = match_explanation("the seatbelt chime went off", FlightPhase.CRUISE)
    text = event.render()
    assert event.explanation in text
    assert event.why_it_exists in text
    assert event.if_it_failed in text


def test_event_ids_are_unique():
    ids = [e.id for e in PHASE_EVENTS]
    assert len(ids) == len(set(ids))


def test_any_hit_in_current_phase_beats_stronger_hit_elsewhere():
    """One turbulence word in cruise wins over two engine words from climb/descent."""
    event = match_explanation("Engines went quiet and it got bumpy", FlightPhase.CRUISE)
    assert event.id == "cruise-light-turbulence"


def test_unknown_phase_searches_everything():
    event = match_explanation("Engines went quiet and it got bumpy", FlightPhase.UNKNOWN)
    assert event.id == "climb-thrust-reduction"
