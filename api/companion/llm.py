"""
Generation boundary: InstructionPayload in, plain text out.

The pipeline only depends on the TextGenerator protocol, so tests can swap in a
fake and never touch the network. AnthropicGenerator is the production
implementation: one call, no retries, and every failure mode (timeout, non-2xx,
empty or oddly shaped content) comes back as a single UpstreamError.
"""
import logging
from typing import Protocol

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import HumanMessage, SystemMessage

from api.companion.prompts import InstructionPayload
from api.config import settings
from api.errors import UpstreamError

logger = logging.getLogger("companion-api.llm")


class TextGenerator(Protocol):
    async def generate(self, payload: InstructionPayload) -> str: ...


def get_llm() -> ChatAnthropic:
    """Build a ChatAnthropic instance with project-wide settings."""
    return ChatAnthropic(
        model=settings.companion_model,
        api_key=settings.anthropic_api_key,
        max_tokens=settings.companion_max_tokens,
        temperature=settings.companion_temperature,
        timeout=settings.llm_timeout_seconds,
        max_retries=0,
    )


def _extract_text(content) -> str:
    # Anthropic responses come back either as a string or a list of content blocks
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return ""


class AnthropicGenerator:
    def __init__(self, llm: ChatAnthropic | None = None):
        self._llm = llm

    @property
    def llm(self) -> ChatAnthropic:
        # Built lazily so importing the app doesn't require an API key
        if self._llm is None:
            self._llm = get_llm()
        return self._llm

    async def generate(self, payload: InstructionPayload) -> str:
        messages = [
            SystemMessage(content=payload.system_instructions),
            HumanMessage(content=payload.user_content),
        ]
        try:
            response = await self.llm.ainvoke(messages)
        except Exception as e:
            status = getattr(e, "status_code", None)
            logger.warning("Generation call failed: %s", e)
            raise UpstreamError(f"Generation call failed: {type(e).__name__}", status_code=status) from e

        text = _extract_text(getattr(response, "content", None)).strip()
        if not text:
            raise UpstreamError("Generation returned no text")
        return text
