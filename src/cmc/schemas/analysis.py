"""Pydantic models for a C++ analysis report returned by the model."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IssueType(str, Enum):
    """The five fixed issue categories."""

    SYNTAX = "syntax"
    LOGIC = "logic"
    RUNTIME = "runtime"
    PRACTICE = "practice"
    WARNING = "warning"


class Issue(BaseModel):
    """A single problem found in the submitted code."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: IssueType
    line: str  # "12" or a range such as "12-15"
    original_snippet: str = Field(alias="originalSnippet")
    description: str
    fix: str

    @field_validator("line", mode="before")
    @classmethod
    def coerce_line_to_str(cls, v: object) -> object:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v)) if float(v).is_integer() else str(v)
        return v


class AnalysisResponse(BaseModel):
    """Full analysis report: issues in model order, summary, tips."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    issues: list[Issue]
    overall_summary: str = Field(alias="overallSummary")
    best_practices: list[str] = Field(alias="bestPractices")

    def to_json_dict(self) -> dict[str, Any]:
        """Dump using the wire (camelCase) field names."""
        return self.model_dump(mode="json", by_alias=True)


# Structured-output schema sent with every request (OpenAI strict mode:
# every object lists all its keys as required, no additional properties).
RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "issues": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "type": {
                        "type": "string",
                        "enum": [t.value for t in IssueType],
                    },
                    "line": {"type": "string", "description": "The line number or range"},
                    "originalSnippet": {"type": "string", "description": "The problematic part of the code"},
                    "description": {"type": "string", "description": "Why it's wrong"},
                    "fix": {"type": "string", "description": "The corrected code"},
                },
                "required": ["type", "line", "originalSnippet", "description", "fix"],
                "additionalProperties": False,
            },
        },
        "overallSummary": {"type": "string"},
        "bestPractices": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["issues", "overallSummary", "bestPractices"],
    "additionalProperties": False,
}
