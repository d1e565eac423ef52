from fastapi import APIRouter

from ...routers import auth as auth_router
from ...routers import tasks as tasks_router


def build_api_router(prefix: str, *, include_in_schema: bool = True) -> APIRouter:
    """Mount auth + tasks routers under `prefix`."""
    router = APIRouter(prefix=prefix)
    router.include_router(auth_router.router, include_in_schema=include_in_schema)
    router.include_router(tasks_router.router, include_in_schema=include_in_schema)
    return router


# Canonical namespace
api_router = build_api_router("/api/v1")

# Unversioned prefix used by the first mobile releases; hidden from the schema
legacy_api_router = build_api_router("/api", include_in_schema=False)


@api_router.get("/", tags=["auth"])  # lightweight meta endpoint
def api_info():
    return {
        "name": "Tasklane API",
        "version": "v1",
        "docs": "/docs",
        "auth": {
            "register": "/api/v1/auth/register",
            "login": "/api/v1/auth/login",
            "logout": "/api/v1/auth/logout",
            "me": "/api/v1/auth/me",
        },
        "tasks": "/api/v1/tasks",
    }
