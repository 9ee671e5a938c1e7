"""
Pydantic models for the chat endpoint.

ChatRequest keeps field validation loose on purpose for user_id, message and
anxiety_level: the orchestrator owns those checks so a missing id or an
anxiety of 12 comes back as an explicit 400 rather than a generic 422.
ChatResponse mirrors the orchestrator's envelope.
"""
from pydantic import BaseModel, Field

from api.companion.flight import FlightContext
from api.companion.prompts import UserHistory


class ChatRequest(BaseModel):
    user_id: str | None = Field(default=None, description="Stable id for the traveler")
    message: str | None = Field(default=None, max_length=4000, description="What the user just said")
    anxiety_level: float | None = Field(default=None, description="Self-reported anxiety, 0-10")
    flight_context: FlightContext | None = None
    user_history: UserHistory | None = None


class ChatMetadata(BaseModel):
    snapshot_id: str | None = None
    intervention_id: str | None = None
    processing_time_ms: int


class ChatResponse(BaseModel):
    ok: bool
    response: str | None = None
    mode: str
    anxiety_level: int
    flags: dict[str, bool] = {}
    error: str | None = None
    metadata: ChatMetadata
