"""
Tests for the pipeline graph structure.

These verify the wiring without running a request: all five stages are
registered and the graph compiles.
"""
from api.companion.graph import PipelineState, build_pipeline
from api.companion.state import EmotionalStateStore


def test_pipeline_state_accepts_inputs():
    state = PipelineState(user_id="u1", user_message="hi", anxiety_level=3)
    assert state["user_id"] == "u1"


def test_graph_builds_and_compiles(generator):
    compiled = build_pipeline(EmotionalStateStore(), generator).compile()
    for node in ("aggregate", "explain", "select_mode", "build_instructions", "generate"):
        assert node in compiled.nodes
