import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import TasklaneError, Unauthenticated, Unexpected

log = logging.getLogger("tasklane.errors")


def _error_body(request: Request, status: int, message: str, **extra) -> dict:
    body = {"error": message, "status": status, "path": request.url.path}
    body.update(extra)
    return body


def _clean_errors(errors) -> list:
    # pydantic ctx may hold exception instances; they are not JSON material
    return jsonable_encoder([{k: v for k, v in err.items() if k != "ctx"} for err in errors])


def register_exception_handlers(app: FastAPI) -> None:
    """Attach simple, consistent JSON error handlers."""

    @app.exception_handler(TasklaneError)
    async def tasklane_error_handler(request: Request, exc: TasklaneError):
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
        message = exc.message
        if isinstance(exc, Unexpected):
            log.error("unexpected_error path=%s detail=%s", request.url.path, exc.message, exc_info=exc)
            message = Unexpected.default_message
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.status_code, message),
            headers=headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if isinstance(exc.detail, str):
            body = _error_body(request, exc.status_code, exc.detail)
        else:
            body = _error_body(request, exc.status_code, "ValidationError", details=jsonable_encoder(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=_error_body(request, 400, "ValidationError", details=_clean_errors(exc.errors())),
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
        # cause goes to the log only, never to the client
        log.error("storage_error path=%s", request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=_error_body(request, 500, Unexpected.default_message),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        log.error("unhandled_error path=%s", request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=_error_body(request, 500, Unexpected.default_message),
        )
