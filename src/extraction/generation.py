"""Claude-backed text generation for extraction prompts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from anthropic import Anthropic, APIError
from anthropic.types import TextBlock

from src.config import Settings
from src.extraction.errors import GenerationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationOptions:
    """Per-call generation parameters."""

    max_tokens: int = 1024


class TextGenerator(Protocol):
    """Anything that turns a prompt into free-form text."""

    def generate(self, prompt: str, options: GenerationOptions) -> str: ...


class AnthropicGenerator:
    """Single-shot Claude messages call returning the concatenated text blocks."""

    def __init__(self, api_key: str, model: str) -> None:
        self.api_key = api_key
        self.model = model

    def generate(self, prompt: str, options: GenerationOptions) -> str:
        """Send ``prompt`` as one user message.

        Raises:
            GenerationError: Any Anthropic API or transport error.
        """
        client = Anthropic(api_key=self.api_key, max_retries=0)
        try:
            response = client.messages.create(
                model=self.model,
                max_tokens=options.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIError as exc:
            logger.warning("Claude generation failed: %s", exc)
            raise GenerationError(f"LLM unavailable: {exc.message}") from exc

        # Non-text blocks are ignored; an all-non-text reply parses as empty.
        return "".join(block.text for block in response.content if isinstance(block, TextBlock))


def build_generator(settings: Settings) -> TextGenerator | None:
    """Return a Claude generator, or None when no API key is configured."""
    if not settings.anthropic_api_key:
        return None
    return AnthropicGenerator(settings.anthropic_api_key, settings.llm_model)
