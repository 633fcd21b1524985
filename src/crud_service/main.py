from __future__ import annotations

import logging
from typing import Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .db import create_pool, init_db
from .models import ENTITY_KINDS
from .policy import HTTP_STATUS, EntityAdapter, Outcome
from .repositories import Repository, build_repositories
from .routers.entities import build_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "tasks", "description": "CRUD operations for tasks."},
    {"name": "todos", "description": "CRUD operations for todo items."},
    {"name": "users", "description": "CRUD operations for users. Emails are unique."},
]


def default_repositories(settings: Settings) -> Mapping[str, Repository]:
    """Create the configured repositories, opening and initializing the pool when needed."""
    if settings.persistence_backend == "memory":
        return build_repositories(settings)
    pool = create_pool(settings.database_url, settings.db_pool_size)
    init_db(pool)
    return build_repositories(settings, pool)


# PUBLIC_INTERFACE
def create_app(
    repositories: Optional[Mapping[str, Repository]] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the HTTP application around the given repositories.

    When ``repositories`` is omitted they are created from ``settings``
    (environment by default). Usable as a uvicorn factory:
    ``uvicorn crud_service.main:create_app --factory``.
    """
    settings = settings or get_settings()
    if repositories is None:
        repositories = default_repositories(settings)

    app = FastAPI(
        title="CRUD Service",
        description="Task, todo and user management served over HTTP/JSON alongside gRPC.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )
    app.state.repositories = repositories

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """
        Render every HTTP error as ``{"error": <message>}``.
        """
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "detail": [... pydantic/fastapi error details ...],
                "message": "Request validation failed"
            }
        """
        logger.debug("rejected %s %s: %s", request.method, request.url.path, exc.errors())
        return JSONResponse(
            status_code=HTTP_STATUS[Outcome.INVALID],
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": jsonable_encoder(exc.errors()),
            },
        )

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    for kind in ENTITY_KINDS:
        if kind.name in repositories:
            app.include_router(build_router(EntityAdapter(repositories[kind.name])))

    return app
