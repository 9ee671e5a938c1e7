"""
End-to-end tests for the orchestrator with a fake generator.

These run the real compiled pipeline (state store → selector → prompt builder)
and only stub out the network call at the end.
"""
from unittest.mock import patch

import pytest

from api.companion import CompanionOrchestrator
from api.companion.flight import FlightContext
from api.companion.modes import SupportMode
from api.companion.prompts import UserHistory
from api.errors import ConfigurationError, InputValidationError


@pytest.mark.asyncio
async def test_severe_turbulence_overrides_fear_spike(orchestrator):
    flight = FlightContext(phase="cruise", turbulence="severe")
    result = await orchestrator.process("u1", "This is terrifying", 9, flight_context=flight)
    assert result.mode == SupportMode.TURBULENCE_SUPPORT
    assert result.flags["turbulence_expected"] is True


@pytest.mark.asyncio
async def test_high_anxiety_calm_air_is_fear_spike(orchestrator, calm_flight):
    result = await orchestrator.process("u1", "I can't breathe", 9, flight_context=calm_flight)
    assert result.mode == SupportMode.FEAR_SPIKE
    assert result.ok is True
    assert result.response_text == "I'm right here with you."


@pytest.mark.asyncio
async def test_low_anxiety_is_baseline(orchestrator, calm_flight):
    result = await orchestrator.process("u1", "Just checking in", 3, flight_context=calm_flight)
    assert result.mode == SupportMode.BASELINE
    assert result.anxiety_level == 3


@pytest.mark.asyncio
async def test_generator_called_once_with_built_payload(orchestrator, generator, calm_flight):
    await orchestrator.process("u1", "Why is the wing moving?", 5, flight_context=calm_flight)
    assert len(generator.payloads) == 1
    payload = generator.payloads[0]
    assert payload.user_content == "Why is the wing moving?"
    assert "Current mode: CALM_REFRAME" in payload.system_instructions


@pytest.mark.asyncio
async def test_default_flight_context_used_when_missing(orchestrator, generator):
    """Without live data the mock cruise/light-turbulence snapshot is used."""
    result = await orchestrator.process("u1", "hello", 6)
    assert result.mode == SupportMode.TURBULENCE_SUPPORT
    assert result.flags["critical_phase"] is False
    assert "Phase: cruise" in generator.payloads[0].system_instructions


@pytest.mark.asyncio
async def test_repeated_spikes_flagged_and_reframed(orchestrator, calm_flight):
    for level in (8, 9, 8):
        await orchestrator.process("u1", "still scared", level, flight_context=calm_flight)
    result = await orchestrator.process("u1", "a bit less now", 7, flight_context=calm_flight)
    assert result.flags["sustained_spike"] is True
    assert result.mode == SupportMode.CALM_REFRAME


@pytest.mark.asyncio
async def test_explanation_embedded_when_message_matches(orchestrator, generator):
    flight = FlightContext(phase="approach", turbulence="none")
    result = await orchestrator.process("u1", "What is that whirring from the wing?", 4, flight_context=flight)
    assert result.flags["aviation_context"] is True
    assert "flaps extending" in generator.payloads[0].system_instructions


@pytest.mark.asyncio
async def test_user_history_reaches_the_prompt(orchestrator, generator, calm_flight):
    history = UserHistory(flight_count=4, effective_interventions=["4-7-8 breathing"])
    await orchestrator.process("u1", "hi", 2, flight_context=calm_flight, user_history=history)
    assert "4-7-8 breathing" in generator.payloads[0].system_instructions


@pytest.mark.asyncio
async def test_generation_failure_keeps_committed_state(store, failing_generator, calm_flight):
    """Upstream failure: no text, a failure flag, and the state update still stands."""
    orchestrator = CompanionOrchestrator(store=store, generator=failing_generator)
    result = await orchestrator.process("u1", "Are we okay?", 6, flight_context=calm_flight)

    assert result.ok is False
    assert result.response_text is None
    assert "temporarily unavailable" in result.error
    assert "APITimeoutError" not in result.error
    assert result.anxiety_level == 6
    assert result.intervention_id is None
    assert store.read("u1").anxiety_history == [6]
    assert len(failing_generator.payloads) == 1


@pytest.mark.asyncio
async def test_unexpected_generator_exception_is_contained(store, timeout_generator, calm_flight):
    orchestrator = CompanionOrchestrator(store=store, generator=timeout_generator)
    result = await orchestrator.process("u1", "hello?", 4, flight_context=calm_flight)
    assert result.ok is False
    assert store.read("u1").message_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id,message,level", [
    ("", "hi", 5),
    ("u1", "", 5),
    ("u1", "   ", 5),
    ("u1", "hi", None),
    ("u1", "hi", 11),
    ("u1", "hi", -1),
    ("u1", "hi", "lots"),
    ("u1", "hi", True),
    ("u1", "hi", float("nan")),
    (None, "hi", 5),
    (42, "hi", 5),
    ("u1", None, 5),
    ("u1", ["hi"], 5),
])
async def test_invalid_input_rejected_before_any_mutation(orchestrator, store, generator, user_id, message, level):
    assert orchestrator.store is store
    with pytest.raises(InputValidationError):
        await orchestrator.process(user_id, message, level)
    assert len(store) == 0
    assert generator.payloads == []


@pytest.mark.asyncio
async def test_configuration_error_propagates(orchestrator, calm_flight):
    with patch("api.companion.graph.build_instructions", side_effect=ConfigurationError("no config")):
        with pytest.raises(ConfigurationError):
            await orchestrator.process("u1", "hi", 3, flight_context=calm_flight)


@pytest.mark.asyncio
async def test_processing_time_and_ids_reported(orchestrator, calm_flight):
    result = await orchestrator.process("u1", "hi", 3, flight_context=calm_flight)
    assert result.processing_time_ms >= 0
    assert result.snapshot_id and result.intervention_id


def test_injected_empty_store_is_kept(store, generator):
    """An empty store is still the caller's store, not a cue to build a new one."""
    assert len(store) == 0
    assert CompanionOrchestrator(store=store, generator=generator).store is store


@pytest.mark.asyncio
async def test_numeric_string_anxiety_is_accepted(orchestrator, store, calm_flight):
    result = await orchestrator.process("u1", "hi", "5", flight_context=calm_flight)
    assert result.ok is True
    assert result.anxiety_level == 5
    assert store.read("u1").anxiety_history == [5]
