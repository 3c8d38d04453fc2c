"""Application factory for the Founder Blueprint FastAPI backend."""

import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import configure_logging
from .routers import blueprints, recommendations, startups
from .store import (
    BlueprintNotFoundError,
    OwnershipError,
    StartupNotFoundError,
    StoreError,
    TaskNotFoundError,
)


DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

STORE_ERROR_STATUS = {
    StartupNotFoundError: 404,
    BlueprintNotFoundError: 404,
    TaskNotFoundError: 404,
    OwnershipError: 403,
}


def _resolve_allowed_origins() -> list[str]:
    """Return allowed origins, optionally sourced from an env override."""

    raw = os.getenv("FOUNDER_BLUEPRINT_ALLOWED_ORIGINS")
    if raw:
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    return DEFAULT_ALLOWED_ORIGINS


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Translate persistence errors into HTTP responses."""

    status_code = STORE_ERROR_STATUS.get(type(exc), 400)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Create and configure a FastAPI application instance."""
    configure_logging()
    app = FastAPI(
        title="Founder Blueprint Backend",
        version="0.1.0",
        description="Onboards founders and generates personalized startup blueprints.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_resolve_allowed_origins(),
        allow_origin_regex=r"http://localhost:\d+$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StoreError, store_error_handler)

    @app.get("/health", tags=["health"])
    async def healthcheck() -> dict[str, str]:
        """Simple health check endpoint."""

        return {"status": "ok"}

    app.include_router(startups.router)
    app.include_router(blueprints.router)
    app.include_router(recommendations.router)
    return app


app = create_app()
