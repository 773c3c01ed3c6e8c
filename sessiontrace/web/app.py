"""FastAPI application: session lookups, host management, security filter."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.requests import Request
from starlette.responses import Response

from sessiontrace.models.host import InvalidHostError
from sessiontrace.models.session_request import MissingFieldError
from sessiontrace.services.host_service import DuplicateHostError, HostNotFoundError
from sessiontrace.web.schemas import HostBody, SessionRequestBody
from sessiontrace.web.security import SecurityFilter
from sessiontrace.web.serialization import (
    serialize_document,
    serialize_host,
    serialize_media_details,
)

if TYPE_CHECKING:
    from sessiontrace.context import AppContext

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("sessiontrace.access")


def create_app(
    ctx: AppContext,
    security: SecurityFilter | None = None,
    manage_lifecycle: bool = True,
) -> FastAPI:
    """Build the HTTP application around an AppContext.

    With `manage_lifecycle` the context is initialized on startup and closed
    on shutdown.
    """
    security = security or SecurityFilter(ctx.config.security)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if manage_lifecycle:
            await ctx.initialize()
        logger.info("Application startup security=%s", security.enabled)
        try:
            yield
        finally:
            if manage_lifecycle:
                await ctx.close()
            logger.info("Application shutdown")

    app = FastAPI(title="sessiontrace", lifespan=lifespan)
    app.state.ctx = ctx
    app.state.security = security

    # Registered first so it runs inside the logging middleware
    @app.middleware("http")
    async def security_middleware(request: Request, call_next):
        if not security.allows(request):
            return JSONResponse(status_code=403, content={"detail": "Forbidden"})
        return await call_next(request)

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        start_ts = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception("HTTP request failed method=%s path=%s", request.method, request.url.path)
            raise
        elapsed_ms = int((time.perf_counter() - start_ts) * 1000)
        access_logger.info(
            "HTTP %s %s status=%s duration_ms=%s client=%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request.client.host if request.client else "-",
        )
        return response

    # Body and form validation failures answer 400
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()]
        logger.warning("Invalid request path=%s errors=%s", request.url.path, errors)
        return JSONResponse(status_code=400, content={"detail": errors})

    @app.exception_handler(MissingFieldError)
    async def missing_field_handler(request: Request, exc: MissingFieldError):
        logger.warning("Missing field path=%s field=%s", request.url.path, exc.field)
        return JSONResponse(status_code=400, content={"detail": exc.field})

    @app.exception_handler(InvalidHostError)
    async def invalid_host_handler(request: Request, exc: InvalidHostError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(HostNotFoundError)
    async def host_not_found_handler(request: Request, exc: HostNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(DuplicateHostError)
    async def duplicate_host_handler(request: Request, exc: DuplicateHostError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    # --- Security ---

    @app.post("/login")
    def login(username: str = Form(...), password: str = Form(...)) -> dict[str, Any]:
        if not security.login(username, password):
            raise HTTPException(status_code=403, detail="Forbidden")
        return {"username": username}

    @app.get("/management/configuration/hoof")
    def hoof_configuration() -> dict[str, Any]:
        return {
            "security": {"enabled": security.enabled},
            "session": {"media": {"block_count": ctx.config.session.media.block_count}},
        }

    # --- Sessions ---

    @app.post("/session/media")
    async def media_details(body: SessionRequestBody) -> list[dict]:
        details = await ctx.media_session_service.details(body.to_request())
        return serialize_media_details(details)

    @app.post("/session/call/raw")
    async def call_raw(body: SessionRequestBody) -> list[dict]:
        docs = await ctx.call_session_service.find_in_raw(body.to_request())
        return [serialize_document(doc) for doc in docs]

    # --- Hosts ---

    @app.get("/hosts")
    async def list_hosts() -> list[dict]:
        return [serialize_host(h) for h in await ctx.host_service.list_hosts()]

    @app.get("/hosts/{name}")
    async def get_host(name: str) -> dict:
        return serialize_host(await ctx.host_service.get_by_name(name))

    @app.post("/hosts")
    async def create_host(body: HostBody) -> dict:
        return serialize_host(await ctx.host_service.create(body.to_host()))

    @app.put("/hosts")
    async def update_host(body: HostBody) -> dict:
        return serialize_host(await ctx.host_service.update(body.to_host()))

    @app.delete("/hosts/{name}")
    async def delete_host(name: str) -> dict:
        await ctx.host_service.delete_by_name(name)
        return {"deleted": name}

    @app.post("/hosts/import")
    async def import_hosts(file: UploadFile = File(...)) -> dict:
        content = await file.read()
        count = await ctx.host_service.import_json(content)
        logger.info("Imported %d hosts from %s", count, file.filename or "-")
        return {"imported": count}

    return app
