"""
Flight companion pipeline: emotional state → support mode → instructions → reply.

Usage:
    from api.companion import CompanionOrchestrator
    orchestrator = CompanionOrchestrator()
    result = await orchestrator.process("user-1", "The engines just got quiet", 7)
    # result.mode == SupportMode.TURBULENCE_SUPPORT, result.response_text == "..."
"""
from api.companion.orchestrator import CompanionOrchestrator, CompanionResult

__all__ = ["CompanionOrchestrator", "CompanionResult"]
