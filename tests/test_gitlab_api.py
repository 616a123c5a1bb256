from datetime import date

import httpx
import pytest

from gitlab_stats.gitlab_api import GitLabUser
from gitlab_stats.gitlab_api import build_gitlab_client
from gitlab_stats.gitlab_api import fetch_contribution_calendar
from gitlab_stats.gitlab_api import fetch_user
from gitlab_stats.gitlab_api import fetch_user_projects
from gitlab_stats.services.stats_service import GitLabAPIError
from gitlab_stats.services.stats_service import GitLabUserNotFoundError
from gitlab_stats.services.stats_service import InvalidGitLabTokenError
from gitlab_stats.services.stats_service import get_user_stats
from gitlab_stats.settings import Settings


def make_client(handler) -> httpx.Client:
    return httpx.Client(
        base_url="https://gitlab.example.com",
        transport=httpx.MockTransport(handler),
    )


def test_build_gitlab_client_uses_settings() -> None:
    settings = Settings(
        gitlab_url="https://gitlab.example.com/",
        gitlab_token="secret-token",
        request_timeout_seconds=5.0,
    )

    client = build_gitlab_client(settings)

    assert client.base_url.host == "gitlab.example.com"
    assert client.headers["PRIVATE-TOKEN"] == "secret-token"
    assert client.timeout.read == 5.0
    client.close()


def test_fetch_user_returns_first_match() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v4/users"
        assert request.url.params["username"] == "octocat"
        return httpx.Response(200, json=[{"id": 42, "username": "octocat"}])

    user = fetch_user(make_client(handler), "octocat")

    assert user == GitLabUser(id=42, username="octocat")


def test_fetch_user_returns_none_for_unknown_user() -> None:
    client = make_client(lambda request: httpx.Response(200, json=[]))

    assert fetch_user(client, "ghost") is None


def test_fetch_user_rejects_invalid_payload() -> None:
    client = make_client(lambda request: httpx.Response(200, json=[{"id": "x"}]))

    with pytest.raises(ValueError):
        fetch_user(client, "octocat")


def test_fetch_contribution_calendar_allows_null_body() -> None:
    client = make_client(
        lambda request: httpx.Response(
            200, content=b"null", headers={"content-type": "application/json"}
        )
    )

    assert fetch_contribution_calendar(client, GitLabUser(1, "octocat")) is None


def test_fetch_contribution_calendar_returns_mapping() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/users/octocat/calendar.json"
        return httpx.Response(200, json={"2024-01-01": 2})

    calendar = fetch_contribution_calendar(make_client(handler), GitLabUser(1, "octocat"))

    assert calendar == {"2024-01-01": 2}


def test_fetch_user_projects_requests_membership_sorted_by_stars() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v4/users/7/projects"
        assert dict(request.url.params) == {
            "membership": "true",
            "order_by": "star_count",
            "sort": "desc",
            "per_page": "100",
        }
        return httpx.Response(200, json=[{"star_count": 1}, "junk"])

    projects = fetch_user_projects(make_client(handler), GitLabUser(7, "octocat"))

    assert projects == [{"star_count": 1}]


def test_get_user_stats_combines_remote_data() -> None:
    year = date.today().year

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/v4/users":
            return httpx.Response(200, json=[{"id": 7, "username": "octocat"}])
        if request.url.path == "/users/octocat/calendar.json":
            return httpx.Response(
                200, json={f"{year}-01-01": 2, f"{year - 1}-12-31": 9}
            )
        return httpx.Response(
            200, json=[{"star_count": 2, "programming_language": "Go"}]
        )

    stats = get_user_stats(make_client(handler), "octocat")

    assert stats["total_commits"] == 2
    assert stats["stars_earned"] == 2
    assert stats["top_languages"] == ["Go"]


def test_get_user_stats_raises_for_unknown_user() -> None:
    client = make_client(lambda request: httpx.Response(200, json=[]))

    with pytest.raises(GitLabUserNotFoundError, match="ghost"):
        get_user_stats(client, "ghost")


@pytest.mark.parametrize("status_code", [401, 403])
def test_get_user_stats_maps_auth_failures(status_code: int) -> None:
    client = make_client(lambda request: httpx.Response(status_code))

    with pytest.raises(InvalidGitLabTokenError):
        get_user_stats(client, "octocat")


def test_get_user_stats_wraps_network_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/v4/users":
            return httpx.Response(200, json=[{"id": 7, "username": "octocat"}])
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GitLabAPIError, match="connection refused"):
        get_user_stats(make_client(handler), "octocat")


def test_get_user_stats_treats_null_calendar_as_no_activity() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/v4/users":
            return httpx.Response(200, json=[{"id": 7, "username": "octocat"}])
        if request.url.path == "/users/octocat/calendar.json":
            return httpx.Response(
                200, content=b"null", headers={"content-type": "application/json"}
            )
        return httpx.Response(200, json=[])

    stats = get_user_stats(make_client(handler), "octocat")

    assert stats == {
        "longest_streak": 0,
        "total_commits": 0,
        "commit_rank": "Bottom 30%",
        "calendar_data": [],
        "most_active_day": {"name": None, "commits": 0},
        "most_active_month": {"name": None, "commits": 0},
        "stars_earned": 0,
        "top_languages": [],
    }
