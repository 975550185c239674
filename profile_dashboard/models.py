from datetime import date
from datetime import datetime

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class UserProfile(BaseModel):
    """Public profile of a GitHub account."""

    login: str
    id: int
    avatar_url: str
    html_url: str
    name: str | None = None
    company: str | None = None
    blog: str | None = None
    location: str | None = None
    email: str | None = None
    bio: str | None = None
    public_repos: int = 0
    public_gists: int = 0
    followers: int = 0
    following: int = 0
    created_at: datetime


class RepositoryLicense(BaseModel):
    key: str
    name: str
    url: str | None = None


class RepositorySummary(BaseModel):
    """Repository entry as returned by the repository listing endpoint."""

    id: int
    name: str
    full_name: str
    html_url: str
    description: str | None = None
    fork: bool = False
    created_at: datetime
    updated_at: datetime
    pushed_at: datetime | None = None
    homepage: str | None = None
    size: int = 0
    stargazers_count: int = 0
    watchers_count: int = 0
    language: str | None = None
    forks_count: int = 0
    archived: bool = False
    open_issues_count: int = 0
    license: RepositoryLicense | None = None
    topics: list[str] = Field(default_factory=list)
    visibility: str = "public"


class RecentEvent(BaseModel):
    """Public event of a user; only the fields the timeline needs."""

    id: str
    type: str
    created_at: datetime
    repo_name: str | None = None


class CommitActivityWeek(BaseModel):
    """Weekly commit counts of one repository, days ordered Sunday first."""

    model_config = ConfigDict(frozen=True)

    week: int
    days: list[int] = Field(min_length=7, max_length=7)
    total: int = 0


class DailyCount(BaseModel):
    date: date
    count: int = Field(ge=0)


class ContributionDay(BaseModel):
    """Single day item of the contribution graph."""

    model_config = ConfigDict(frozen=True)

    date: date
    count: int = Field(ge=0)
    level: int = Field(ge=0, le=4)


class ContributionWeek(BaseModel):
    """Seven consecutive contribution days in chronological order."""

    model_config = ConfigDict(frozen=True)

    days: list[ContributionDay]


class ContributionReport(BaseModel):
    """One year of contribution activity grouped into weeks."""

    model_config = ConfigDict(frozen=True)

    weeks: list[ContributionWeek]
    total_contributions: int = Field(ge=0)
