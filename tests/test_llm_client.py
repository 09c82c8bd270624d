"""Tests for the LLMClient, with the OpenAI SDK mocked to inspect the request."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from cmc.schemas.analysis import RESPONSE_SCHEMA, AnalysisResponse
from cmc.shared.llm_client import MODEL, DryRunClient, LLMClient

from conftest import make_text_response


class TestStructuredCompletion:
    @pytest.mark.asyncio
    async def test_returns_text(self, mock_llm_client: LLMClient) -> None:
        mock_llm_client._client.chat.completions.create = AsyncMock(
            return_value=make_text_response('{"ok": true}')
        )
        result = await mock_llm_client.structured_completion(
            system="sys", user_message="hi", schema={"type": "object"},
        )
        assert result == '{"ok": true}'

    @pytest.mark.asyncio
    async def test_request_shape(self, mock_llm_client: LLMClient) -> None:
        create = AsyncMock(return_value=make_text_response("{}"))
        mock_llm_client._client.chat.completions.create = create

        await mock_llm_client.structured_completion(
            system="be precise", user_message="code here", schema=RESPONSE_SCHEMA, schema_name="cpp",
        )

        kwargs = create.call_args.kwargs
        assert kwargs["model"] == MODEL
        assert kwargs["messages"] == [
            {"role": "system", "content": "be precise"},
            {"role": "user", "content": "code here"},
        ]
        fmt = kwargs["response_format"]
        assert fmt["type"] == "json_schema"
        assert fmt["json_schema"]["name"] == "cpp"
        assert fmt["json_schema"]["strict"] is True
        assert fmt["json_schema"]["schema"] is RESPONSE_SCHEMA

    @pytest.mark.asyncio
    async def test_none_content_becomes_empty_string(self, mock_llm_client: LLMClient) -> None:
        mock_llm_client._client.chat.completions.create = AsyncMock(
            return_value=make_text_response(None)
        )
        result = await mock_llm_client.structured_completion(system="s", user_message="u", schema={})
        assert result == ""

    @pytest.mark.asyncio
    async def test_no_choices_becomes_empty_string(self, mock_llm_client: LLMClient) -> None:
        response = make_text_response("{}")
        response.choices = []
        mock_llm_client._client.chat.completions.create = AsyncMock(return_value=response)
        result = await mock_llm_client.structured_completion(system="s", user_message="u", schema={})
        assert result == ""

    @pytest.mark.asyncio
    async def test_token_callback(self, mock_llm_client: LLMClient) -> None:
        mock_llm_client._client.chat.completions.create = AsyncMock(
            return_value=make_text_response("{}")
        )
        seen: list[tuple[int, int]] = []
        await mock_llm_client.structured_completion(
            system="s", user_message="u", schema={}, on_tokens=lambda i, o: seen.append((i, o)),
        )
        assert seen == [(120, 80)]

    @pytest.mark.asyncio
    async def test_errors_are_not_retried(self, mock_llm_client: LLMClient) -> None:
        create = AsyncMock(side_effect=RuntimeError("down"))
        mock_llm_client._client.chat.completions.create = create
        with pytest.raises(RuntimeError, match="down"):
            await mock_llm_client.structured_completion(system="s", user_message="u", schema={})
        assert create.await_count == 1

    def test_custom_model(self) -> None:
        client = LLMClient(api_key="k", model="gpt-4o-mini", max_tokens=123)
        assert client.model == "gpt-4o-mini"
        assert client.max_tokens == 123


class TestDryRunClient:
    @pytest.mark.asyncio
    async def test_canned_report_matches_schema(self) -> None:
        raw = await DryRunClient().structured_completion(
            system="s", user_message="int main() {}", schema=RESPONSE_SCHEMA,
        )
        report = AnalysisResponse.model_validate(json.loads(raw))
        assert report.issues
        assert report.overall_summary
