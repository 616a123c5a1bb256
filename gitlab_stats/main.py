from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from gitlab_stats.api.routes.stats import router
from gitlab_stats.core.observability import configure_logging
from gitlab_stats.core.observability import init_sentry
from gitlab_stats.gitlab_api import build_gitlab_client
from gitlab_stats.settings import Settings


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTP errors as {"error": message} bodies."""

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=exc.headers,
    )


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    Settings are read from the environment unless given, so a missing
    GITLAB_TOKEN fails here rather than on the first request.
    """

    app_settings = app_settings or Settings()
    configure_logging(app_settings)
    init_sentry(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        app.state.gitlab_client.close()

    app = FastAPI(title="GitLab Stats", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.gitlab_client = build_gitlab_client(app_settings)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.include_router(router)
    return app
