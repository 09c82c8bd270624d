"""Async OpenAI API wrapper for single-shot structured completions.

One request per call, no tool loop and no automatic retry: a failed call
surfaces to the caller, which decides what the user sees.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

# Default model for analysis requests
MODEL = "gpt-4o"
MAX_TOKENS = 4_096

TokensCallback = Callable[[int, int], None]
"""Called with (input_tokens, output_tokens) when a completion finishes."""


class LLMClient:
    """Thin async wrapper around the OpenAI SDK.

    ``structured_completion`` sends a system + user message pair and asks
    the API to constrain the reply to a JSON schema (strict mode). The raw
    text is returned unparsed; validation belongs to the caller.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str = MODEL,
        max_tokens: int = MAX_TOKENS,
        timeout: float | None = None,
    ) -> None:
        kwargs: dict[str, Any] = {"api_key": api_key}
        if timeout is not None:
            kwargs["timeout"] = timeout
        self._client = AsyncOpenAI(**kwargs)
        self.model = model
        self.max_tokens = max_tokens

    async def structured_completion(
        self,
        *,
        system: str,
        user_message: str,
        schema: dict[str, Any],
        schema_name: str = "response",
        on_tokens: TokensCallback | None = None,
    ) -> str:
        """Single request/response constrained to ``schema``.

        Returns the message text ("" when the API sends no content).
        """
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user_message},
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": schema_name, "schema": schema, "strict": True},
            },
        }

        logger.debug("Requesting %s completion (%d chars of input)", self.model, len(user_message))
        response = await self._client.chat.completions.create(**kwargs)
        usage = getattr(response, "usage", None)
        if on_tokens and usage:
            on_tokens(getattr(usage, "prompt_tokens", 0), getattr(usage, "completion_tokens", 0))
        if not response.choices:
            logger.warning("Completion returned no choices")
            return ""
        return response.choices[0].message.content or ""


# ======================================================================
# Dry-run mock client, zero API calls
# ======================================================================

_DRY_RUN_JSON = json.dumps({
    "issues": [
        {
            "type": "runtime",
            "line": "8-11",
            "originalSnippet": "for (int i = 0; i <= 10; ++i) {\n    data[i] = i * 2;",
            "description": "The loop runs 11 times over a 10-element array, so data[10] is written out of bounds.",
            "fix": "std::vector<int> data(10);\nfor (std::size_t i = 0; i < data.size(); ++i) {\n    data[i] = static_cast<int>(i) * 2;",
        },
        {
            "type": "logic",
            "line": "13",
            "originalSnippet": "if (data[0] = 5) {",
            "description": "Assignment inside the condition always evaluates to true and overwrites data[0].",
            "fix": "if (data[0] == 5) {",
        },
        {
            "type": "runtime",
            "line": "6",
            "originalSnippet": "int* data = new int[10];",
            "description": "The array allocated with new[] is never released, leaking memory.",
            "fix": "auto data = std::make_unique<int[]>(10);",
        },
    ],
    "overallSummary": "The program writes past the end of a heap array, uses assignment where a comparison was intended, and leaks its allocation.",
    "bestPractices": [
        "Prefer std::vector or std::array over raw new[]/delete[].",
        "Compile with -Wall -Wextra to catch assignments in conditions.",
    ],
})


class DryRunClient:
    """Drop-in replacement for LLMClient that makes zero API calls.

    Always returns the same canned report, whatever code is submitted.
    """

    async def structured_completion(
        self,
        *,
        system: str,
        user_message: str,
        schema: dict[str, Any],
        schema_name: str = "response",
        on_tokens: TokensCallback | None = None,
    ) -> str:
        logger.info("[dry-run] structured completion (%d chars of input)", len(user_message))
        return _DRY_RUN_JSON
