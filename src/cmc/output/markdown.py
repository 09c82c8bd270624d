"""Markdown report builder: renders an AnalysisResponse to a Markdown document."""

from __future__ import annotations

from cmc.output.view import category_label
from cmc.schemas.analysis import AnalysisResponse


def render_markdown_report(report: AnalysisResponse, *, source_name: str = "") -> str:
    """Render an AnalysisResponse into a Markdown string."""
    sections: list[str] = []

    title = f"# C++ Analysis Report: {source_name}" if source_name else "# C++ Analysis Report"
    sections.append(title + "\n")

    sections.append("## Analysis Summary\n")
    sections.append(report.overall_summary + "\n")

    if report.issues:
        sections.append(f"## Detected Issues ({len(report.issues)})\n")
        for idx, issue in enumerate(report.issues, 1):
            sections.append(f"### {idx}. {category_label(issue.type)} (line {issue.line})\n")
            sections.append(issue.description + "\n")
            sections.append("**Original snippet:**\n")
            sections.append(_code_block(issue.original_snippet))
            sections.append("**Suggested fix:**\n")
            sections.append(_code_block(issue.fix))

    if report.best_practices:
        sections.append("## Best Practices & Tips\n")
        for tip in report.best_practices:
            sections.append(f"- {tip}")
        sections.append("")

    return "\n".join(sections)


def _code_block(code: str) -> str:
    # Lengthen the fence if the snippet itself contains one
    fence = "```"
    while fence in code:
        fence += "`"
    return f"{fence}cpp\n{code}\n{fence}\n"
