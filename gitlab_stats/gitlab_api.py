from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from gitlab_stats.settings import Settings


@dataclass(frozen=True)
class GitLabUser:
    id: int
    username: str


def build_gitlab_client(settings: Settings) -> httpx.Client:
    """Create the shared HTTP client used for every GitLab request."""

    return httpx.Client(
        base_url=settings.gitlab_url.rstrip("/"),
        headers={
            "PRIVATE-TOKEN": settings.gitlab_token,
            "Accept": "application/json",
            "User-Agent": "gitlab-stats",
        },
        timeout=settings.request_timeout_seconds,
    )


def fetch_user(client: httpx.Client, username: str) -> GitLabUser | None:
    """Look up a GitLab account by username.

    Returns None when no account matches.
    """

    response = client.get("/api/v4/users", params={"username": username})
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, list):
        raise ValueError("GitLab users response is invalid")
    if not payload:
        return None

    item = payload[0]
    if not isinstance(item, Mapping):
        raise ValueError("GitLab users response is invalid")

    raw_id = item.get("id")
    raw_username = item.get("username")
    if not isinstance(raw_id, int) or not isinstance(raw_username, str) or not raw_username:
        raise ValueError("GitLab user response is missing required fields")

    return GitLabUser(id=raw_id, username=raw_username)


def fetch_contribution_calendar(
    client: httpx.Client, user: GitLabUser
) -> dict[str, int] | None:
    """Fetch the per-day contribution counts shown on the user's profile."""

    response = client.get(f"/users/{user.username}/calendar.json")
    response.raise_for_status()

    payload: Any = response.json()
    if payload is None:
        return None
    if not isinstance(payload, Mapping):
        raise ValueError("GitLab contribution calendar is invalid")

    return dict(payload)


def fetch_user_projects(
    client: httpx.Client,
    user: GitLabUser,
    per_page: int = 100,
) -> list[dict[str, Any]]:
    """Fetch one page of projects the user is a member of, most starred first."""

    response = client.get(
        f"/api/v4/users/{user.id}/projects",
        params={
            "membership": "true",
            "order_by": "star_count",
            "sort": "desc",
            "per_page": per_page,
        },
    )
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, list):
        raise ValueError("GitLab projects response is invalid")

    return [dict(item) for item in payload if isinstance(item, Mapping)]
