"""Result panel and page rendering, from session state to HTML via Jinja2."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from jinja2 import Environment, FileSystemLoader
from pydantic import BaseModel

from cmc.editor import gutter
from cmc.schemas.analysis import AnalysisResponse, IssueType

_TEMPLATE_DIR = Path(__file__).parent / "templates"

_env = Environment(loader=FileSystemLoader(str(_TEMPLATE_DIR)), autoescape=True)


class ViewState(str, Enum):
    """Mutually exclusive states of the results panel."""

    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    REPORT = "report"


CATEGORY_STYLES: dict[str, str] = {
    IssueType.SYNTAX.value: "badge-syntax",
    IssueType.LOGIC.value: "badge-logic",
    IssueType.RUNTIME.value: "badge-runtime",
    IssueType.PRACTICE.value: "badge-practice",
    IssueType.WARNING.value: "badge-warning",
}
DEFAULT_STYLE = "badge-default"

CATEGORY_LABELS: dict[str, str] = {
    IssueType.SYNTAX.value: "Syntax",
    IssueType.LOGIC.value: "Logic",
    IssueType.RUNTIME.value: "Runtime",
    IssueType.PRACTICE.value: "Practice",
    IssueType.WARNING.value: "Warning",
}


def _category_key(category: IssueType | str) -> str:
    return category.value if isinstance(category, IssueType) else str(category)


def category_style(category: IssueType | str) -> str:
    return CATEGORY_STYLES.get(_category_key(category), DEFAULT_STYLE)


def category_label(category: IssueType | str) -> str:
    key = _category_key(category)
    return CATEGORY_LABELS.get(key, key.capitalize())


def select_view(report: AnalysisResponse | None, loading: bool, error: str | None) -> ViewState:
    """Pick the panel state: loading, then error, then empty, then report."""
    if loading:
        return ViewState.LOADING
    if error:
        return ViewState.ERROR
    if report is None:
        return ViewState.EMPTY
    return ViewState.REPORT


class IssueCard(BaseModel):
    """One issue, ready for display."""

    label: str
    style: str
    line: str
    description: str
    original: str
    fix: str


class ResultView(BaseModel):
    """Template context for the results panel."""

    state: ViewState
    error: str = ""
    summary: str = ""
    issues: list[IssueCard] = []
    best_practices: list[str] = []

    @property
    def show_issues(self) -> bool:
        return bool(self.issues)

    @property
    def show_best_practices(self) -> bool:
        return bool(self.best_practices)


def build_view(report: AnalysisResponse | None, loading: bool, error: str | None) -> ResultView:
    state = select_view(report, loading, error)
    if state is ViewState.ERROR:
        return ResultView(state=state, error=error or "")
    if state is not ViewState.REPORT or report is None:
        return ResultView(state=state)

    cards = [
        IssueCard(
            label=category_label(issue.type),
            style=category_style(issue.type),
            line=issue.line,
            description=issue.description,
            original=issue.original_snippet,
            fix=issue.fix,
        )
        for issue in report.issues
    ]
    return ResultView(
        state=state,
        summary=report.overall_summary,
        issues=cards,
        best_practices=list(report.best_practices),
    )


def render_results(report: AnalysisResponse | None, loading: bool, error: str | None) -> str:
    """Render the results panel HTML for the given state."""
    view = build_view(report, loading, error)
    return _env.get_template("results.html").render(view=view)


def render_page(
    code: str,
    report: AnalysisResponse | None = None,
    *,
    loading: bool = False,
    error: str | None = None,
    model: str = "",
    session_id: str = "",
) -> str:
    """Render the full single-page app: header, editor and results panel.

    ``session_id`` is embedded in the page; its script sends it back with
    every API call.
    """
    return _env.get_template("index.html").render(
        code=code,
        lines=gutter(code),
        loading=loading,
        model=model,
        session_id=session_id,
        results_html=render_results(report, loading, error),
        loading_html=render_results(None, True, None),
    )
