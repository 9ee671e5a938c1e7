"""
The decision pipeline as a LangGraph state machine.

Architecture (strictly forward, no loops):
    [aggregate] → [explain] → [select_mode] → [build_instructions] → [generate] → END

Each node reads what earlier nodes wrote and adds its own keys; nothing reads
back from a later stage. The generate node is the only one that talks to the
outside world, and it is also where upstream failures are caught: by then the
emotional state update has already committed, which is accepted behaviour.
Configuration errors from select_mode/build_instructions are not caught and
propagate out of ainvoke().
"""
import logging

from langgraph.graph import StateGraph, END
from typing_extensions import TypedDict

from api.companion.explanations import match_explanation
from api.companion.flight import FlightContext
from api.companion.llm import TextGenerator
from api.companion.modes import SupportMode
from api.companion.prompts import InstructionPayload, UserHistory, build_instructions
from api.companion.selector import ensure_configured, select_mode
from api.companion.state import EmotionalState, EmotionalStateStore

logger = logging.getLogger("companion-api.pipeline")


class PipelineState(TypedDict, total=False):
    # Inputs
    user_id: str
    user_message: str
    anxiety_level: float
    flight: FlightContext
    user_history: UserHistory | None
    # Filled in as the pipeline runs
    emotional_state: EmotionalState
    explanation: str | None
    mode: SupportMode
    payload: InstructionPayload
    response_text: str | None
    error: str | None


def build_pipeline(store: EmotionalStateStore, generator: TextGenerator) -> StateGraph:
    """Wire the five pipeline nodes around a state store and a generator."""

    def aggregate(state: PipelineState) -> dict:
        updated = store.update(state["user_id"], state["user_message"], state["anxiety_level"])
        return {"emotional_state": updated}

    def explain(state: PipelineState) -> dict:
        event = match_explanation(state["user_message"], state["flight"].phase)
        return {"explanation": event.render() if event else None}

    def choose_mode(state: PipelineState) -> dict:
        emotional = state["emotional_state"]
        mode = ensure_configured(select_mode(emotional.anxiety_level, emotional, state["flight"]))
        logger.info(
            "user=%s anxiety=%d trend=%s spikes=%d turbulence=%s -> %s",
            state["user_id"], emotional.anxiety_level, emotional.trend.value,
            emotional.spikes_in_row, state["flight"].turbulence.value, mode.value,
        )
        return {"mode": mode}

    def assemble(state: PipelineState) -> dict:
        payload = build_instructions(
            state["mode"],
            state["user_message"],
            state["emotional_state"],
            state["flight"],
            domain_explanation=state.get("explanation"),
            user_history=state.get("user_history"),
        )
        return {"payload": payload}

    async def generate(state: PipelineState) -> dict:
        try:
            text = await generator.generate(state["payload"])
        except Exception as e:
            logger.warning("Generation failed for user %s: %s", state["user_id"], e)
            return {"response_text": None, "error": str(e) or type(e).__name__}
        return {"response_text": text, "error": None}

    graph = StateGraph(PipelineState)
    graph.add_node("aggregate", aggregate)
    graph.add_node("explain", explain)
    graph.add_node("select_mode", choose_mode)
    graph.add_node("build_instructions", assemble)
    graph.add_node("generate", generate)
    graph.set_entry_point("aggregate")
    graph.add_edge("aggregate", "explain")
    graph.add_edge("explain", "select_mode")
    graph.add_edge("select_mode", "build_instructions")
    graph.add_edge("build_instructions", "generate")
    graph.add_edge("generate", END)
    return graph
