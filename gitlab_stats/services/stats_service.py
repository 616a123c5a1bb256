import logging
import math
from collections import Counter
from collections.abc import Iterable
from collections.abc import Mapping
from datetime import date
from datetime import datetime
from typing import Any

import httpx

from gitlab_stats.gitlab_api import fetch_contribution_calendar
from gitlab_stats.gitlab_api import fetch_user
from gitlab_stats.gitlab_api import fetch_user_projects


logger = logging.getLogger(__name__)

WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

# Evaluated top-down, first threshold reached wins.
COMMIT_RANKS = (
    (5000, "Top 0.5%-1%"),
    (2000, "Top 1%-3%"),
    (1000, "Top 5%-10%"),
    (500, "Top 10%-15%"),
    (200, "Top 25%-30%"),
    (50, "Median 50%"),
)
LOWEST_COMMIT_RANK = "Bottom 30%"

TOP_LANGUAGES_LIMIT = 3


class GitLabAPIError(Exception):
    """Raised when GitLab requests fail for non-auth reasons."""


class InvalidGitLabTokenError(GitLabAPIError):
    """Raised when GitLab rejects the configured token."""


class GitLabUserNotFoundError(GitLabAPIError):
    """Raised when no GitLab account matches the requested username."""


def commit_rank(total_commits: int) -> str:
    """Map a yearly commit total to an approximate percentile label.

    The thresholds are rough estimates of general activity patterns,
    not figures computed from the instance's user base.
    """

    for threshold, label in COMMIT_RANKS:
        if total_commits >= threshold:
            return label
    return LOWEST_COMMIT_RANK


def parse_contribution_date(raw_value: object) -> date | None:
    """Parse an ISO date or timestamp key, returning None when malformed."""

    if not isinstance(raw_value, str):
        return None

    try:
        return date.fromisoformat(raw_value)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(raw_value.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def collect_contribution_days(
    contributions: Mapping[str, object] | None,
    year: int,
) -> list[dict[str, Any]]:
    """Flatten a date->count mapping into chronological days of one year.

    Malformed dates and counts are skipped. Keys resolving to the same
    day are merged.
    """

    if not contributions:
        return []

    counts_by_day: dict[date, int] = {}
    for raw_day, raw_count in contributions.items():
        parsed_day = parse_contribution_date(raw_day)
        if parsed_day is None or parsed_day.year != year:
            continue
        if isinstance(raw_count, bool) or not isinstance(raw_count, int):
            continue
        if raw_count < 0:
            continue
        counts_by_day[parsed_day] = counts_by_day.get(parsed_day, 0) + raw_count

    return [
        {"date": day, "count": count} for day, count in sorted(counts_by_day.items())
    ]


def monthly_commits(days: Iterable[Mapping[str, Any]]) -> dict[str, int]:
    buckets: dict[str, int] = {}
    for day in days:
        month_key = f"{day['date'].month:02d}"
        buckets[month_key] = buckets.get(month_key, 0) + day["count"]
    return buckets


def weekday_commits(days: Iterable[Mapping[str, Any]]) -> dict[int, int]:
    """Sum counts per weekday, indexed from 0 (Sunday) to 6 (Saturday)."""

    buckets: dict[int, int] = {}
    for day in days:
        weekday = (day["date"].weekday() + 1) % 7
        buckets[weekday] = buckets.get(weekday, 0) + day["count"]
    return buckets


def _busiest_bucket(buckets: Mapping[Any, int]) -> tuple[Any, int] | None:
    # Highest total first, smallest key on ties.
    if not buckets:
        return None
    return min(buckets.items(), key=lambda item: (-item[1], item[0]))


def most_active_month(days: list[dict[str, Any]]) -> dict[str, str | int | None]:
    busiest = _busiest_bucket(monthly_commits(days))
    if busiest is None:
        return {"name": None, "commits": 0}

    month_key, total = busiest
    return {"name": MONTH_NAMES[int(month_key) - 1], "commits": total}


def most_active_day(days: list[dict[str, Any]]) -> dict[str, str | int | None]:
    """Pick the busiest weekday and its average commits per occurrence.

    The number of occurrences is approximated as one seventh of the
    retained days, matching the figures published by earlier releases.
    """

    busiest = _busiest_bucket(weekday_commits(days))
    if busiest is None:
        return {"name": None, "commits": 0}

    weekday, total = busiest
    average = total / (len(days) / 7)
    return {"name": WEEKDAY_NAMES[weekday], "commits": math.floor(average + 0.5)}


def summarize_projects(
    projects: Iterable[Mapping[str, Any]] | None,
) -> tuple[int, list[str]]:
    """Return total stars and the most frequent project languages."""

    stars = 0
    languages: Counter[str] = Counter()
    for project in projects or []:
        star_count = project.get("star_count")
        if isinstance(star_count, int) and not isinstance(star_count, bool):
            stars += max(0, star_count)

        language = project.get("programming_language")
        if isinstance(language, str) and language:
            languages[language] += 1

    top_languages = [name for name, _ in languages.most_common(TOP_LANGUAGES_LIMIT)]
    return stars, top_languages


def longest_streak(days: list[dict[str, Any]]) -> int:
    """Length of the longest run of active days, walked in date order.

    Only a day with a zero count ends the run.
    """

    best = 0
    current = 0
    for day in days:
        current = current + 1 if day["count"] > 0 else 0
        best = max(best, current)
    return best


def build_stats(
    contributions: Mapping[str, object] | None,
    projects: Iterable[Mapping[str, Any]] | None,
    today: date,
) -> dict[str, object]:
    """Aggregate raw contribution counts and projects into a stats payload."""

    days = collect_contribution_days(contributions, today.year)
    total_commits = sum(day["count"] for day in days)
    stars_earned, top_languages = summarize_projects(projects)

    return {
        "longest_streak": longest_streak(days),
        "total_commits": total_commits,
        "commit_rank": commit_rank(total_commits),
        "calendar_data": days,
        "most_active_day": most_active_day(days),
        "most_active_month": most_active_month(days),
        "stars_earned": stars_earned,
        "top_languages": top_languages,
    }


def _as_gitlab_error(exc: Exception) -> GitLabAPIError:
    if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code in {401, 403}:
        return InvalidGitLabTokenError("GitLab token is invalid")
    return GitLabAPIError(str(exc))


def get_user_stats(
    client: httpx.Client,
    username: str,
    today: date | None = None,
    projects_per_page: int = 100,
) -> dict[str, object]:
    """Fetch a user's GitLab activity and build the stats payload."""

    try:
        user = fetch_user(client, username)
    except (httpx.HTTPError, ValueError) as exc:
        raise _as_gitlab_error(exc) from exc

    if user is None:
        raise GitLabUserNotFoundError(f"GitLab user '{username}' not found")

    try:
        contributions = fetch_contribution_calendar(client, user)
        projects = fetch_user_projects(client, user, per_page=projects_per_page)
    except (httpx.HTTPError, ValueError) as exc:
        raise _as_gitlab_error(exc) from exc

    logger.debug(
        "Fetched %d calendar entries and %d projects for %s",
        len(contributions or {}),
        len(projects),
        user.username,
    )
    return build_stats(contributions, projects, today or date.today())
