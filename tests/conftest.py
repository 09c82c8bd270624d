"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest

from cmc.schemas.analysis import AnalysisResponse
from cmc.shared.llm_client import LLMClient

OUT_OF_BOUNDS_CODE = "int main(){int*p=new int[1];p[5]=0;return 0;}"

OUT_OF_BOUNDS_REPORT: dict[str, Any] = {
    "issues": [
        {
            "type": "runtime",
            "line": 1,
            "originalSnippet": "p[5]=0;",
            "description": "Out-of-bounds write: p points to a single int but index 5 is written.",
            "fix": "std::vector<int> p(1);\np.at(0) = 0;",
        }
    ],
    "overallSummary": "The program writes past the end of a one-element heap array.",
    "bestPractices": ["Use std::vector with .at() for bounds-checked access."],
}


def make_text_response(text: str | None) -> SimpleNamespace:
    """Create a mock OpenAI chat completion carrying ``text``."""
    message = SimpleNamespace(content=text, tool_calls=None)
    choice = SimpleNamespace(message=message)
    usage = SimpleNamespace(prompt_tokens=120, completion_tokens=80)
    return SimpleNamespace(choices=[choice], usage=usage)


class FakeAnalysisService:
    """Records submitted code; returns a canned report or raises ``error``."""

    def __init__(
        self,
        report: AnalysisResponse | None = None,
        error: Exception | None = None,
    ) -> None:
        self.report = report
        self.error = error
        self.calls: list[str] = []

    async def analyze(self, code: str) -> AnalysisResponse:
        self.calls.append(code)
        if self.error is not None:
            raise self.error
        assert self.report is not None
        return self.report


class GatedAnalysisService(FakeAnalysisService):
    """Blocks each call until the test releases it, to observe the loading state.

    ``reports`` optionally gives a different report per call, by call order.
    """

    def __init__(
        self,
        report: AnalysisResponse | None = None,
        reports: list[AnalysisResponse] | None = None,
    ) -> None:
        super().__init__(report)
        self.reports = reports or []
        self.started = asyncio.Event()
        self.gates: list[asyncio.Event] = []

    async def analyze(self, code: str) -> AnalysisResponse:
        index = len(self.calls)
        self.calls.append(code)
        gate = asyncio.Event()
        self.gates.append(gate)
        self.started.set()
        await gate.wait()
        if index < len(self.reports):
            return self.reports[index]
        assert self.report is not None
        return self.report

    async def wait_for_calls(self, count: int) -> None:
        while len(self.gates) < count:
            await asyncio.sleep(0)

    def release(self, index: int | None = None) -> None:
        """Let call ``index`` finish, or every pending call when None."""
        gates = self.gates if index is None else [self.gates[index]]
        for gate in gates:
            gate.set()


@pytest.fixture
def tmp_config(tmp_path: Path) -> Path:
    """Write a small valid config YAML and return its path."""
    cfg = tmp_path / "cmc-config.yml"
    cfg.write_text(
        """\
model: "gpt-4o-mini"
port: 9000
initial_code: |
  int main() {
      return 0;
  }
"""
    )
    return cfg


@pytest.fixture
def report_dict() -> dict[str, Any]:
    return json.loads(json.dumps(OUT_OF_BOUNDS_REPORT))


@pytest.fixture
def report(report_dict: dict[str, Any]) -> AnalysisResponse:
    return AnalysisResponse.model_validate(report_dict)


@pytest.fixture
def empty_report() -> AnalysisResponse:
    return AnalysisResponse(issues=[], overallSummary="Looks clean.", bestPractices=[])


@pytest.fixture
def mock_llm_client() -> LLMClient:
    """Return an LLMClient with a mocked OpenAI SDK underneath."""
    client = LLMClient(api_key="test-key")
    client._client = AsyncMock()
    return client
