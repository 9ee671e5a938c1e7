"""
Orchestrator: validate the request, run the pipeline once, package the envelope.

Validation happens here, before the graph runs, so a bad request never touches
the state store or the generator. Everything after validation is the compiled
graph from api.companion.graph; this class only owns timing and the shape of
what goes back to the caller.
"""
import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from api.companion.flight import FlightContext, default_flight_context, flight_flags
from api.companion.graph import build_pipeline
from api.companion.llm import AnthropicGenerator, TextGenerator
from api.companion.modes import SupportMode
from api.companion.prompts import UserHistory
from api.companion.selector import SUSTAINED_SPIKES
from api.companion.state import MAX_ANXIETY, MIN_ANXIETY, EmotionalStateStore
from api.errors import InputValidationError

logger = logging.getLogger("companion-api.orchestrator")

UNAVAILABLE_MESSAGE = "The companion is temporarily unavailable. Please try again shortly."


@dataclass
class CompanionResult:
    ok: bool
    response_text: str | None
    mode: SupportMode
    anxiety_level: int
    flags: dict = field(default_factory=dict)
    processing_time_ms: int = 0
    error: str | None = None
    snapshot_id: str | None = None
    intervention_id: str | None = None


def validate_request(user_id, user_message, anxiety_level) -> float:
    """Reject bad input before anything is touched. Returns the reading as a float."""
    if not isinstance(user_id, str) or not user_id.strip():
        raise InputValidationError("user_id is required")
    if not isinstance(user_message, str) or not user_message.strip():
        raise InputValidationError("message is required")
    if anxiety_level is None or isinstance(anxiety_level, bool):
        raise InputValidationError("anxiety_level is required")
    try:
        level = float(anxiety_level)
    except (TypeError, ValueError):
        raise InputValidationError("anxiety_level must be a number") from None
    if not MIN_ANXIETY <= level <= MAX_ANXIETY:
        raise InputValidationError(
            f"anxiety_level must be between {MIN_ANXIETY} and {MAX_ANXIETY}"
        )
    return level


class CompanionOrchestrator:
    def __init__(
        self,
        store: EmotionalStateStore | None = None,
        generator: TextGenerator | None = None,
        flight_provider: Callable[[], FlightContext] = default_flight_context,
    ):
        self.store = store if store is not None else EmotionalStateStore()
        self.generator = generator if generator is not None else AnthropicGenerator()
        self.flight_provider = flight_provider
        # Compiled once per orchestrator and reused across requests
        self._graph = build_pipeline(self.store, self.generator).compile()

    async def process(
        self,
        user_id: str,
        user_message: str,
        current_anxiety_level,
        flight_context: FlightContext | None = None,
        user_history: UserHistory | None = None,
    ) -> CompanionResult:
        level = validate_request(user_id, user_message, current_anxiety_level)

        started = time.perf_counter()
        flight = flight_context or self.flight_provider()

        result = await self._graph.ainvoke({
            "user_id": user_id,
            "user_message": user_message,
            "anxiety_level": level,
            "flight": flight,
            "user_history": user_history,
        })

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        emotional = result["emotional_state"]
        ok = result.get("error") is None

        flags = flight_flags(flight)
        flags["aviation_context"] = result.get("explanation") is not None
        flags["sustained_spike"] = emotional.spikes_in_row >= SUSTAINED_SPIKES

        logger.info(
            "Processed message for user %s in %dms (mode=%s ok=%s)",
            user_id, elapsed_ms, result["mode"].value, ok,
        )

        return CompanionResult(
            ok=ok,
            response_text=result.get("response_text") if ok else None,
            mode=result["mode"],
            anxiety_level=emotional.anxiety_level,
            flags=flags,
            processing_time_ms=elapsed_ms,
            error=None if ok else UNAVAILABLE_MESSAGE,
            snapshot_id=uuid.uuid4().hex,
            intervention_id=uuid.uuid4().hex if ok else None,
        )
