from datetime import date

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContributionDay(CamelModel):
    """Commit count for a single calendar day."""

    date: date
    count: int


class ActivityPeak(CamelModel):
    """Busiest weekday or month; name is null when there is no activity."""

    name: str | None
    commits: int


class StatsResponse(CamelModel):
    """Yearly contribution statistics for one GitLab user."""

    longest_streak: int
    total_commits: int
    commit_rank: str
    calendar_data: list[ContributionDay]
    most_active_day: ActivityPeak
    most_active_month: ActivityPeak
    stars_earned: int
    top_languages: list[str]


class ErrorResponse(BaseModel):
    error: str
