import logging

import httpx
from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Query
from fastapi import Request

from gitlab_stats.api.schemas.stats import ErrorResponse
from gitlab_stats.api.schemas.stats import StatsResponse
from gitlab_stats.services.stats_service import get_user_stats


logger = logging.getLogger(__name__)

router = APIRouter()

STATS_FAILURE_MESSAGE = "Failed to fetch GitLab statistics"


def get_gitlab_client(request: Request) -> httpx.Client:
    """Return the process-wide GitLab client created at startup."""

    return request.app.state.gitlab_client


@router.get("/")
async def root() -> dict[str, str]:
    """Return a basic service greeting."""

    return {"message": "GitLab stats API"}


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.get(
    "/api/stats",
    response_model=StatsResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def get_stats(
    request: Request,
    username: str | None = Query(default=None),
    client: httpx.Client = Depends(get_gitlab_client),
) -> dict[str, object]:
    """Return this year's contribution statistics for a GitLab user."""

    if username is None or not username.strip():
        raise HTTPException(status_code=400, detail="Username parameter is required")

    username = username.strip()
    try:
        return get_user_stats(
            client,
            username,
            projects_per_page=request.app.state.settings.projects_per_page,
        )
    except Exception as exc:
        logger.exception("Error fetching GitLab stats for %r", username)
        raise HTTPException(
            status_code=500, detail=str(exc) or STATS_FAILURE_MESSAGE
        ) from exc
