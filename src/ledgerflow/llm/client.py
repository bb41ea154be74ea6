"""Language model client for structured (JSON) completions.

Works against any OpenAI-compatible chat completions endpoint; point
``LLM_BASE_URL`` at a gateway to use a Gemini model instead.
"""

import json
import logging
import re
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from ledgerflow.config import settings
from ledgerflow.core.exceptions import LLMError

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.I)
_OBJECT = re.compile(r"\{[\s\S]*\}")
_ARRAY = re.compile(r"\[[\s\S]*\]")


def parse_json_content(content: str | None) -> Any:
    """Parse a model answer that should be JSON.

    Accepts bare JSON, JSON wrapped in markdown fences, and JSON embedded in
    surrounding prose.

    Raises:
        ValueError: If no JSON document can be recovered
    """
    text = (content or "").strip()
    if not text:
        raise ValueError("Empty model response")

    candidates = [text, _FENCE.sub("", text).strip()]
    # Whichever of object or array starts first in the text
    matches = [m for m in (_OBJECT.search(text), _ARRAY.search(text)) if m]
    candidates.extend(m.group(0) for m in sorted(matches, key=lambda m: m.start()))

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    raise ValueError("No JSON found in model response")


class LLMClient:
    """Chat-completion client that returns parsed JSON answers."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        client: AsyncOpenAI | None = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: API key (defaults to settings)
            base_url: Optional OpenAI-compatible gateway URL
            model: Model name (defaults to settings)
            timeout: Request timeout in seconds
            client: Pre-built AsyncOpenAI client (used by tests)
        """
        self.model = model or settings.llm_model
        self.temperature = 0.0
        self._client = client
        if self._client is None:
            key = api_key if api_key is not None else settings.llm_api_key
            if key:
                self._client = AsyncOpenAI(
                    api_key=key,
                    base_url=base_url or settings.llm_base_url,
                    timeout=timeout or settings.llm_timeout_seconds,
                )

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def complete_json(self, system: str, user: str) -> Any:
        """
        Send one system + user prompt and return the parsed JSON answer.

        Raises:
            LLMError: AI_003 if no client is configured, AI_001 if the call
                fails, AI_002 if the answer isn't JSON
        """
        if self._client is None:
            raise LLMError("AI_003")

        try:
            logger.info("Calling language model", extra={"model": self.model})
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            logger.error("Language model call failed", extra={"error_type": type(e).__name__})
            raise LLMError("AI_001", {"error_type": type(e).__name__}) from e

        content = response.choices[0].message.content if response.choices else None
        try:
            return parse_json_content(content)
        except ValueError as e:
            logger.error("Failed to parse language model response as JSON")
            raise LLMError("AI_002") from e
