import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError as BodyValidationError
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from core.backend import create_backend
from core.config import load_config
from core.errors import InterfaceLoopError
from server.controller import SessionController

logger = logging.getLogger(__name__)

UI_DIR = Path(__file__).resolve().parent.parent / "ui"


class GenerateRequest(BaseModel):
    systemPrompt: str | None = None
    modelId: str | None = None


class InteractRequest(GenerateRequest):
    currentHtml: str | None = None
    action: str | dict[str, Any] | None = None


class DialogRequest(GenerateRequest):
    message: str | None = None
    currentHtml: str | None = None


class CommentRequest(BaseModel):
    comment: str | None = None


def session_key(request: Request) -> str:
    return request.client.host if request.client and request.client.host else "default"


def get_controller(request: Request) -> SessionController:
    controller: SessionController = request.app.state.controller
    return controller


def create_app(controller: SessionController | None = None) -> FastAPI:
    """Build the HTTP app. Without a controller, one is built from config on startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if getattr(app.state, "controller", None) is None:
            config = load_config()
            app.state.controller = SessionController(config, create_backend(config))
        logger.info("Serving with %s backend", app.state.controller.backend.name)
        yield

    app = FastAPI(title="Interface Loop", lifespan=lifespan)
    if controller is not None:
        app.state.controller = controller

    @app.exception_handler(InterfaceLoopError)
    async def handle_loop_error(request: Request, exc: InterfaceLoopError) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "%s %s failed for session %s: %s (details: %s)",
            request.method, request.url.path, session_key(request), exc.message, exc.details,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(BodyValidationError)
    async def handle_bad_body(request: Request, exc: BodyValidationError) -> JSONResponse:
        logger.warning(
            "%s %s rejected a malformed body from session %s",
            request.method, request.url.path, session_key(request),
        )
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("%s %s crashed for session %s", request.method, request.url.path, session_key(request))
        return JSONResponse(status_code=500, content={"error": "Internal server error", "details": str(exc)})

    @app.get("/health")
    async def health(ctl: SessionController = Depends(get_controller)) -> dict[str, Any]:
        return {"status": "ok", "backend": ctl.backend.name}

    @app.get("/api/models")
    async def models(ctl: SessionController = Depends(get_controller)) -> list[dict[str, Any]]:
        return ctl.list_models()

    @app.post("/api/generate")
    async def generate(
        body: GenerateRequest, request: Request, ctl: SessionController = Depends(get_controller)
    ) -> dict[str, str]:
        return await ctl.generate(session_key(request), body.systemPrompt, body.modelId)

    @app.post("/api/interact")
    async def interact(
        body: InteractRequest, request: Request, ctl: SessionController = Depends(get_controller)
    ) -> dict[str, str]:
        return await ctl.interact(
            session_key(request), body.systemPrompt, body.modelId, body.currentHtml, body.action
        )

    @app.post("/api/dialog")
    async def dialog(
        body: DialogRequest, request: Request, ctl: SessionController = Depends(get_controller)
    ) -> dict[str, str]:
        return await ctl.dialog(
            session_key(request), body.systemPrompt, body.modelId, body.message, body.currentHtml
        )

    @app.get("/api/history")
    async def history(request: Request, ctl: SessionController = Depends(get_controller)) -> dict[str, Any]:
        return ctl.history(session_key(request))

    @app.post("/api/history/reset")
    async def reset_history(request: Request, ctl: SessionController = Depends(get_controller)) -> dict[str, Any]:
        return ctl.reset(session_key(request))

    @app.post("/api/history/comment")
    async def add_comment(
        body: CommentRequest, request: Request, ctl: SessionController = Depends(get_controller)
    ) -> dict[str, Any]:
        return ctl.comment(session_key(request), body.comment)

    if UI_DIR.is_dir():

        @app.get("/")
        async def root() -> Any:
            return FileResponse(UI_DIR / "index.html")

        app.mount("/ui", StaticFiles(directory=UI_DIR), name="ui")

    return app


app = create_app()
