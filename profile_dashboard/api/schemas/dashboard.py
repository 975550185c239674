from pydantic import BaseModel

from profile_dashboard.models import ContributionWeek
from profile_dashboard.models import DailyCount
from profile_dashboard.models import RepositorySummary
from profile_dashboard.models import UserProfile


class ContributionStats(BaseModel):
    """Summary figures shown next to the contribution graph."""

    total_contributions: int
    week_count: int
    max_daily_count: int


class ContributionsResponse(BaseModel):
    """One-year contribution graph payload for a user."""

    username: str
    total_contributions: int
    weeks: list[ContributionWeek]
    stats: ContributionStats


class RepositoryCommitSummary(BaseModel):
    """Recent daily commits of a single repository."""

    repository: str
    days: list[DailyCount]
    total: int
    max_per_day: int
    average_per_day: float


class DashboardResponse(BaseModel):
    """Profile, repositories and contribution activity of a user."""

    profile: UserProfile
    repositories: list[RepositorySummary]
    featured_repository: RepositorySummary | None
    contributions: ContributionsResponse
