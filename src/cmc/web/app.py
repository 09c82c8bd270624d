"""FastAPI front end serving the page and the run/clear actions.

Each page load starts a brand-new session (nothing survives a reload).
The page carries its session id and sends it back in the ``X-Session-Id``
header, so two tabs never share state. Sessions expire after
``session_ttl_seconds`` without activity.

Every handler that touches a session is ``async def``: sessions and the
store are only ever changed from the event loop, one handler step at a time.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from cmc.analysis.service import AnalysisService, build_analyzer
from cmc.editor import EditorDisabledError
from cmc.output.view import render_page, render_results
from cmc.schemas.config import AppConfig
from cmc.session import AnalysisSession

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Session-Id"


class CodeRequest(BaseModel):
    code: str


class AnalyzeRequest(BaseModel):
    code: str | None = None  # None = analyze the text already in the session


class SessionStore:
    """In-memory sessions keyed by id, dropped after ``ttl`` idle seconds."""

    def __init__(self, service: AnalysisService, *, ttl: int, initial_code: str | None = None) -> None:
        self._service = service
        self._ttl = ttl
        self._initial_code = initial_code
        self._sessions: dict[str, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> tuple[str, AnalysisSession]:
        self._cleanup()
        session_id = uuid.uuid4().hex
        session = AnalysisSession(self._service, initial_code=self._initial_code)
        self._sessions[session_id] = {"session": session, "touched": time.monotonic()}
        logger.debug("Created session %s (%d active)", session_id, len(self._sessions))
        return session_id, session

    def get(self, session_id: str | None) -> AnalysisSession | None:
        if not session_id:
            return None
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        if time.monotonic() - entry["touched"] > self._ttl:
            self._sessions.pop(session_id, None)
            return None
        entry["touched"] = time.monotonic()
        return entry["session"]

    def _cleanup(self) -> None:
        now = time.monotonic()
        for k in list(self._sessions.keys()):
            if now - self._sessions[k]["touched"] > self._ttl:
                self._sessions.pop(k, None)


def state_payload(session_id: str, session: AnalysisSession) -> dict[str, Any]:
    """JSON body describing the session, including the results panel HTML."""
    state = session.state
    return {
        "session": session_id,
        "code": state.code,
        "loading": state.loading,
        "error": state.error,
        "report": state.report.to_json_dict() if state.report else None,
        "html": render_results(state.report, state.loading, state.error),
    }


def create_app(
    config: AppConfig | None = None,
    *,
    service: AnalysisService | None = None,
    dry_run: bool = False,
) -> FastAPI:
    """Build the web app. ``service`` overrides the model-backed analyzer.

    Raises ``cmc.config.ConfigError`` when no service is given, ``dry_run``
    is off and no API key is configured.
    """
    config = config or AppConfig()
    if service is None:
        service = build_analyzer(config, dry_run=dry_run)
    model_name = "dry-run" if dry_run else config.model

    store = SessionStore(service, ttl=config.session_ttl_seconds, initial_code=config.initial_code)

    app = FastAPI(title="C++ Mistake Checker")
    app.state.sessions = store

    def _session_for(request: Request, response: Response) -> tuple[str, AnalysisSession]:
        session_id = request.headers.get(SESSION_HEADER)
        session = store.get(session_id)
        if session is None:
            session_id, session = store.create()
        response.headers[SESSION_HEADER] = session_id
        return session_id, session

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        session_id, session = store.create()
        state = session.state
        html = render_page(
            state.code,
            state.report,
            loading=state.loading,
            error=state.error,
            model=model_name,
            session_id=session_id,
        )
        return HTMLResponse(html, headers={SESSION_HEADER: session_id})

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/state")
    async def get_state(request: Request, response: Response) -> dict[str, Any]:
        return state_payload(*_session_for(request, response))

    @app.post("/api/code")
    async def set_code(body: CodeRequest, request: Request, response: Response) -> dict[str, Any]:
        session_id, session = _session_for(request, response)
        _apply_code(session, body.code)
        return state_payload(session_id, session)

    @app.post("/api/analyze")
    async def analyze(body: AnalyzeRequest, request: Request, response: Response) -> dict[str, Any]:
        session_id, session = _session_for(request, response)
        if body.code is not None:
            _apply_code(session, body.code)
        await session.run()
        return state_payload(session_id, session)

    @app.post("/api/clear")
    async def clear(request: Request, response: Response) -> dict[str, Any]:
        session_id, session = _session_for(request, response)
        session.clear()
        return state_payload(session_id, session)

    return app


def _apply_code(session: AnalysisSession, code: str) -> None:
    if code == session.state.code:
        return
    try:
        session.set_code(code)
    except EditorDisabledError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
