"""Session state and the controller that drives one analysis session.

``SessionState`` is immutable; the module-level functions are the only
transitions and each returns a new state. ``AnalysisSession`` wires them to
an injected ``AnalysisService`` and to the editor.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from cmc.analysis.service import UNEXPECTED_ERROR_MESSAGE, AnalysisError, AnalysisService
from cmc.editor import Editor
from cmc.schemas.analysis import AnalysisResponse

logger = logging.getLogger(__name__)

EMPTY_CODE_MESSAGE = "Please enter some C++ code to analyze."

INITIAL_CODE = """\
#include <iostream>
#include <vector>

int main() {
    int* data = new int[10];

    for (int i = 0; i <= 10; ++i) {
        data[i] = i * 2;
        std::cout << data[i] << " ";
    }

    if (data[0] = 5) {
        std::cout << "Data is five";
    }

    return 0;
}"""


class SessionState(BaseModel):
    """Everything the page shows, at one point in time."""

    model_config = ConfigDict(frozen=True)

    code: str = ""
    report: AnalysisResponse | None = None
    loading: bool = False
    error: str | None = None
    # Bumped by every start_request and clear; a completion carrying an
    # older value is stale and its result is dropped.
    generation: int = 0
    # Generation assigned to the most recently started request.
    request_generation: int = 0


# ----------------------------------------------------------------------
# Transitions
# ----------------------------------------------------------------------


def validate(state: SessionState) -> str | None:
    """Return an error message if ``state.code`` can't be submitted."""
    if not state.code.strip():
        return EMPTY_CODE_MESSAGE
    return None


def edit(state: SessionState, code: str) -> SessionState:
    return state.model_copy(update={"code": code})


def reject(state: SessionState, message: str) -> SessionState:
    """Record a local validation error; nothing is sent."""
    return state.model_copy(update={"error": message})


def start_request(state: SessionState) -> SessionState:
    """Mark a request in flight. The previous report is kept."""
    generation = state.generation + 1
    return state.model_copy(
        update={
            "loading": True,
            "error": None,
            "generation": generation,
            "request_generation": generation,
        }
    )


def _resolve_stale(state: SessionState, generation: int) -> SessionState:
    # Only a clear happened since this request started: nothing else will
    # end the loading state, so this completion does.
    if generation == state.request_generation:
        return state.model_copy(update={"loading": False})
    return state


def complete_success(
    state: SessionState, generation: int, report: AnalysisResponse
) -> SessionState:
    if generation != state.generation:
        logger.debug("Dropping stale report (generation %d, current %d)", generation, state.generation)
        return _resolve_stale(state, generation)
    return state.model_copy(update={"report": report, "loading": False, "error": None})


def complete_failure(state: SessionState, generation: int, message: str) -> SessionState:
    """Record a failed request; the previous report stays visible."""
    if generation != state.generation:
        logger.debug("Dropping stale error (generation %d, current %d)", generation, state.generation)
        return _resolve_stale(state, generation)
    return state.model_copy(update={"loading": False, "error": message})


def clear(state: SessionState) -> SessionState:
    """Reset text, report and error. Any in-flight response becomes stale.

    Loading is left as is; the pending request ends it when it resolves.
    """
    return state.model_copy(
        update={"code": "", "report": None, "error": None, "generation": state.generation + 1}
    )


# ----------------------------------------------------------------------
# Controller
# ----------------------------------------------------------------------


class AnalysisSession:
    """Root controller for one user session."""

    def __init__(self, service: AnalysisService, initial_code: str | None = None) -> None:
        self._service = service
        code = INITIAL_CODE if initial_code is None else initial_code
        self._state = SessionState(code=code)
        self.editor = Editor(code)
        self.editor.on_change(self._on_edit)

    @property
    def state(self) -> SessionState:
        return self._state

    def set_code(self, code: str) -> None:
        """Apply a user edit. Raises ``EditorDisabledError`` while loading."""
        self.editor.set_text(code)

    async def run(self) -> SessionState:
        """Submit the current code and wait for the outcome.

        Never raises: every failure ends up in ``state.error``.
        """
        message = validate(self._state)
        if message:
            self._apply(reject(self._state, message))
            return self._state

        self._apply(start_request(self._state))
        generation = self._state.generation
        try:
            report = await self._service.analyze(self._state.code)
        except AnalysisError as exc:
            self._apply(complete_failure(self._state, generation, str(exc) or UNEXPECTED_ERROR_MESSAGE))
        except Exception as exc:
            logger.exception("Unexpected error during analysis")
            self._apply(complete_failure(self._state, generation, str(exc) or UNEXPECTED_ERROR_MESSAGE))
        else:
            self._apply(complete_success(self._state, generation, report))
        return self._state

    def clear(self) -> SessionState:
        self._apply(clear(self._state))
        self.editor.reset("")
        return self._state

    def _on_edit(self, text: str) -> None:
        if text != self._state.code:
            self._state = edit(self._state, text)

    def _apply(self, state: SessionState) -> None:
        self._state = state
        self.editor.disabled = state.loading
