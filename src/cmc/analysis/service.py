"""C++ analysis service: one model call with strict schema enforcement.

The rest of the application only depends on the ``AnalysisService``
protocol, so tests (and ``--dry-run``) can inject any object with a
matching ``analyze`` coroutine.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Protocol

import openai
from pydantic import ValidationError

from cmc.analysis.prompts import SYSTEM_PROMPT, build_user_message
from cmc.config import get_api_key
from cmc.schemas.analysis import RESPONSE_SCHEMA, AnalysisResponse
from cmc.schemas.config import AppConfig
from cmc.shared.llm_client import DryRunClient, LLMClient

logger = logging.getLogger(__name__)

ANALYSIS_FAILED_MESSAGE = "Failed to analyze code. Please try again."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred during analysis."


class AnalysisError(Exception):
    """Base class for failures the user may see."""


class AnalysisFailedError(AnalysisError):
    """The model replied, but not with a report matching the schema."""

    def __init__(self) -> None:
        super().__init__(ANALYSIS_FAILED_MESSAGE)


class AnalysisServiceError(AnalysisError):
    """The call to the model API itself failed."""


class AnalysisService(Protocol):
    """Anything that turns C++ source text into an analysis report."""

    async def analyze(self, code: str) -> AnalysisResponse: ...


class CppAnalyzer:
    """Sends C++ source to the model and validates the reply."""

    def __init__(self, client: LLMClient | DryRunClient) -> None:
        self.client = client

    async def analyze(self, code: str) -> AnalysisResponse:
        """Analyze ``code`` and return the parsed report.

        Raises ``AnalysisServiceError`` when the API call fails and
        ``AnalysisFailedError`` when the reply is empty, not JSON, or does
        not match the report schema.
        """
        if not code or not code.strip():
            raise ValueError("code must not be empty")

        logger.info("Submitting %d lines for analysis", len(code.split("\n")))
        try:
            raw = await self.client.structured_completion(
                system=SYSTEM_PROMPT,
                user_message=build_user_message(code),
                schema=RESPONSE_SCHEMA,
                schema_name="cpp_analysis",
            )
        except openai.APIError as exc:
            logger.warning("Model API call failed: %s", exc)
            raise AnalysisServiceError(str(exc) or UNEXPECTED_ERROR_MESSAGE) from exc

        logger.debug("Raw model output:\n%s", raw[:500])
        return parse_report(raw)


def parse_report(raw: str) -> AnalysisResponse:
    """Parse model text into an ``AnalysisResponse``.

    Any failure is logged with its diagnostic and re-raised as
    ``AnalysisFailedError``, whose message is fixed.
    """
    try:
        data = extract_json(raw)
        report = AnalysisResponse.model_validate(data)
    except (ValueError, ValidationError) as exc:
        # json.JSONDecodeError is a ValueError
        logger.error("Failed to parse model response: %s", exc)
        raise AnalysisFailedError() from exc

    logger.info("Analysis complete: %d issue(s)", len(report.issues))
    return report


def extract_json(text: str) -> dict[str, Any]:
    """Extract a JSON object from text that may contain markdown fences."""
    text = text.strip()
    if not text:
        raise ValueError("Empty model response")

    # 1. Clean JSON response
    if text.startswith("{"):
        obj = json.loads(text)
        if not isinstance(obj, dict):
            raise ValueError(f"Expected a JSON object, got {type(obj).__name__}")
        return obj

    # 2. ```json ... ``` or ``` ... ``` fenced block
    match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if match:
        obj = json.loads(match.group(1).strip())
        if isinstance(obj, dict):
            return obj

    raise ValueError(
        f"Could not extract JSON from model response (length={len(text)}). "
        f"First 300 chars: {text[:300]!r}"
    )


def build_analyzer(config: AppConfig, *, dry_run: bool = False) -> CppAnalyzer:
    """Create an analyzer for ``config``; reads the API key unless ``dry_run``.

    Raises ``cmc.config.ConfigError`` when no API key is configured.
    """
    if dry_run:
        return CppAnalyzer(DryRunClient())
    client = LLMClient(
        get_api_key(),
        model=config.model,
        max_tokens=config.max_tokens,
        timeout=config.request_timeout,
    )
    return CppAnalyzer(client)
