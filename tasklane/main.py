import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text

from .api.errors import register_exception_handlers
from .api.v1.router import api_router, legacy_api_router
from .config import settings
from .db import engine
from .logging_utils import setup_logging
from .rate_limit import _rate_limit_exceeded_handler, limiter


@asynccontextmanager
async def lifespan(app: FastAPI):
    """App startup/shutdown lifecycle."""
    # Schema is managed by Alembic (upgrade head), nothing to create here
    setup_logging(settings.LOG_LEVEL)
    logging.getLogger("tasklane").info("startup database=%s", engine.url.render_as_string(hide_password=True))
    yield


tags_metadata = [
    {"name": "auth", "description": "Authentication: register, login, logout, me."},
    {"name": "tasks", "description": "Task management: CRUD, toggle, pagination, stats."},
]

app = FastAPI(
    title="Tasklane API",
    version="1.0.0",
    description=(
        "Personal task manager. Versioned JSON API exposed under /api/v1. "
        "Register or log in to obtain a Bearer token for the task endpoints."
    ),
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)


@app.get("/health")
def health():
    """Simple healthcheck endpoint."""
    return {"status": "ok"}


app.include_router(api_router)
app.include_router(legacy_api_router)

# Unified error handlers
register_exception_handlers(app)

# Rate limiting (global middleware + handler)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)


# Request ID + access log middleware
@app.middleware("http")
async def request_id_and_logging(request: Request, call_next):
    start = time.perf_counter()
    incoming = request.headers.get(settings.REQUEST_ID_HEADER)
    req_id = incoming or uuid.uuid4().hex
    request.state.request_id = req_id
    response = await call_next(request)
    response.headers.setdefault(settings.REQUEST_ID_HEADER, req_id)
    duration_ms = int((time.perf_counter() - start) * 1000)
    logging.getLogger("tasklane.request").info(
        "method=%s path=%s status=%s duration_ms=%s request_id=%s",
        request.method,
        request.url.path,
        getattr(response, "status_code", "-"),
        duration_ms,
        req_id,
    )
    return response


# --- Security: CORS and security headers ---

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    path = request.url.path
    # Swagger/ReDoc pull scripts from a CDN; leave their CSP alone
    if settings.SECURITY_CSP and not (path.startswith("/docs") or path.startswith("/redoc")):
        response.headers.setdefault("Content-Security-Policy", settings.SECURITY_CSP)
    if settings.SECURITY_ENABLE_HSTS:
        response.headers.setdefault("Strict-Transport-Security", "max-age=15552000; includeSubDomains")
    return response


# --- Observability: liveness, readiness, metrics ---

@app.get("/live")
def live():
    return {"status": "live"}


@app.get("/ready")
def ready():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "ready"}
    except Exception as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="not ready") from exc


# Expose Prometheus metrics at /metrics
Instrumentator().instrument(app).expose(app, include_in_schema=False)
