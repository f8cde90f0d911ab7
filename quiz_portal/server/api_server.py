"""FastAPI server that exposes the student quiz pages and session API.

Every session endpoint is ``async def`` so request handling and countdown
callbacks all run on the event loop thread; sessions need no locks.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI, HTTPException, Response
from fastapi.responses import HTMLResponse
from pydantic import BaseModel
import uvicorn

from quiz_portal.client.backend_client import QuizBackendClient
from quiz_portal.config import PortalSettings
from quiz_portal.constants.about import APP_NAME, APP_VERSION
from quiz_portal.core.errors import (
    InvalidTransition,
    NotFound,
    QuizPortalError,
    TransportError,
)
from quiz_portal.core.services.session_controller import SessionController
from quiz_portal.core.services.token_resolver import validate_token
from quiz_portal.core.session_manager import SessionManager
from quiz_portal.server.pages import (
    render_landing_page,
    render_not_found_page,
    render_quiz_page,
    render_results_page,
)
from quiz_portal.server.session_view import build_session_view

logger = logging.getLogger(__name__)


class SelectPayload(BaseModel):
    """Payload schema for choosing an option of the shown question."""

    option_index: int


class ReviewPayload(BaseModel):
    """Payload schema for revisiting an answered question."""

    index: int


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, InvalidTransition):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, TransportError):
        return HTTPException(status_code=502, detail=str(exc))
    if isinstance(exc, ValueError):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def _get_session_manager_dependency(session_manager: SessionManager):
    def dependency() -> SessionManager:
        return session_manager

    return dependency


def create_api_app(session_manager: SessionManager) -> FastAPI:
    """Create a FastAPI application wired to the provided session manager."""

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        await session_manager.aclose()

    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, lifespan=lifespan)
    manager_dep = _get_session_manager_dependency(session_manager)

    def lookup(manager: SessionManager, token: str) -> SessionController:
        try:
            return manager.get(token)
        except NotFound as exc:
            raise _http_error(exc) from exc

    # --- Pages ---

    @app.get("/", response_class=HTMLResponse)
    async def serve_landing_page() -> str:
        return render_landing_page()

    @app.get("/quiz/{token}", response_class=HTMLResponse)
    async def serve_quiz_page(token: str) -> HTMLResponse:
        try:
            validate_token(token)
        except NotFound:
            return HTMLResponse(
                render_not_found_page("Quiz Not Found", "This quiz may have expired or the link is invalid."),
                status_code=404,
            )
        return HTMLResponse(render_quiz_page(token))

    @app.get("/quiz/{token}/results", response_class=HTMLResponse)
    async def serve_results_page(
        token: str,
        manager: SessionManager = Depends(manager_dep),
    ) -> HTMLResponse:
        try:
            result = await manager.fetch_result(token)
        except NotFound:
            return HTMLResponse(
                render_not_found_page("Results Not Found", "Quiz results could not be found or may have expired."),
                status_code=404,
            )
        except TransportError:
            return HTMLResponse(
                render_not_found_page("Results Unavailable", "The quiz server could not be reached. Please reload to try again."),
                status_code=502,
            )
        return HTMLResponse(render_results_page(result))

    # --- Session API ---

    @app.post("/api/sessions/{token}")
    async def open_session(
        token: str,
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        controller = await manager.open(token)
        return build_session_view(controller)

    @app.get("/api/sessions/{token}")
    async def get_session(
        token: str,
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        return build_session_view(lookup(manager, token))

    @app.post("/api/sessions/{token}/start")
    async def start_session(
        token: str,
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        controller = lookup(manager, token)
        try:
            controller.start()
        except QuizPortalError as exc:
            raise _http_error(exc) from exc
        return build_session_view(controller)

    @app.post("/api/sessions/{token}/select")
    async def select_option(
        token: str,
        payload: SelectPayload,
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        controller = lookup(manager, token)
        try:
            controller.select(payload.option_index)
        except (QuizPortalError, ValueError) as exc:
            raise _http_error(exc) from exc
        return build_session_view(controller)

    @app.post("/api/sessions/{token}/next")
    async def next_question(
        token: str,
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        controller = lookup(manager, token)
        try:
            controller.advance()
        except QuizPortalError as exc:
            raise _http_error(exc) from exc
        return build_session_view(controller)

    @app.post("/api/sessions/{token}/review")
    async def review_question(
        token: str,
        payload: ReviewPayload,
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        controller = lookup(manager, token)
        try:
            controller.review(payload.index)
        except (QuizPortalError, ValueError) as exc:
            raise _http_error(exc) from exc
        return build_session_view(controller)

    @app.post("/api/sessions/{token}/resume")
    async def resume_question(
        token: str,
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        controller = lookup(manager, token)
        try:
            controller.resume()
        except QuizPortalError as exc:
            raise _http_error(exc) from exc
        return build_session_view(controller)

    @app.post("/api/sessions/{token}/submit")
    async def submit_session(
        token: str,
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        try:
            controller = await manager.submit(token)
        except QuizPortalError as exc:
            raise _http_error(exc) from exc
        return build_session_view(controller)

    @app.delete("/api/sessions/{token}", status_code=204)
    async def abandon_session(
        token: str,
        manager: SessionManager = Depends(manager_dep),
    ) -> Response:
        if not manager.abandon(token):
            raise HTTPException(status_code=404, detail=f"No open session for token {token!r}.")
        return Response(status_code=204)

    @app.get("/api/results/{token}")
    async def get_results(
        token: str,
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        try:
            result = await manager.fetch_result(token)
        except QuizPortalError as exc:
            raise _http_error(exc) from exc
        return result.to_dict()

    return app


def build_session_manager(settings: PortalSettings) -> SessionManager:
    backend = QuizBackendClient(base_url=settings.backend_url, timeout=settings.request_timeout)
    return SessionManager(backend)


def run_api_server(settings: PortalSettings) -> None:
    """Serve the portal with uvicorn until interrupted."""
    app = create_api_app(build_session_manager(settings))
    logger.info("Forwarding quiz sessions to %s", settings.backend_url)
    config = uvicorn.Config(
        app=app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    server = uvicorn.Server(config)
    server.run()
