import asyncio
import logging
import random
from collections.abc import Sequence
from datetime import UTC
from datetime import date
from datetime import datetime

import httpx

from profile_dashboard.clients.github_client import fetch_commit_activity
from profile_dashboard.clients.github_client import fetch_recent_events
from profile_dashboard.clients.github_client import fetch_repositories
from profile_dashboard.clients.github_client import fetch_user_profile
from profile_dashboard.models import CommitActivityWeek
from profile_dashboard.models import ContributionReport
from profile_dashboard.models import RepositorySummary
from profile_dashboard.models import UserProfile
from profile_dashboard.services.contributions import build_contribution_report
from profile_dashboard.services.contributions import summarize_recent_commits

logger = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    """Raised when a required GitHub request fails."""


class GitHubNotFoundError(GitHubAPIError):
    """Raised when GitHub reports the requested user or repository missing."""


class GitHubRateLimitedError(GitHubAPIError):
    """Raised when GitHub rejects a request because of its rate limit."""


def _github_message(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("message"), str):
        return payload["message"]
    return None


def translate_github_error(exc: Exception) -> GitHubAPIError:
    """Convert a collaborator failure into the service error taxonomy."""

    if isinstance(exc, GitHubAPIError):
        return exc

    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        message = (
            _github_message(response) or f"GitHub returned {response.status_code}"
        )
        if response.status_code == 404:
            return GitHubNotFoundError(message)
        rate_limit_exhausted = response.headers.get("x-ratelimit-remaining") == "0"
        if response.status_code == 429 or (
            response.status_code == 403 and rate_limit_exhausted
        ):
            return GitHubRateLimitedError(message)
        return GitHubAPIError(message)

    if isinstance(exc, httpx.HTTPError):
        return GitHubAPIError(f"GitHub request failed: {exc}")

    return GitHubAPIError(str(exc) or "GitHub response is invalid")


def select_recent_repositories(
    repositories: Sequence[RepositorySummary], limit: int
) -> list[RepositorySummary]:
    """Pick the `limit` most recently updated repositories that are not forks."""

    own_repositories = [repo for repo in repositories if not repo.fork]
    own_repositories.sort(key=lambda repo: repo.updated_at, reverse=True)
    return own_repositories[: max(0, limit)]


def pick_featured_repository(
    repositories: Sequence[RepositorySummary],
) -> RepositorySummary | None:
    """Return the non-fork repository with the most stars."""

    own_repositories = [repo for repo in repositories if not repo.fork]
    if not own_repositories:
        return None
    return max(own_repositories, key=lambda repo: repo.stargazers_count)


def contribution_stats(report: ContributionReport) -> dict[str, int]:
    """Summary figures shown next to the contribution graph."""

    max_daily_count = max(
        (day.count for week in report.weeks for day in week.days), default=0
    )
    return {
        "total_contributions": report.total_contributions,
        "week_count": len(report.weeks),
        "max_daily_count": max_daily_count,
    }


async def _fetch_commit_activity_series(
    client: httpx.AsyncClient,
    handle: str,
    repositories: Sequence[RepositorySummary],
) -> list[list[CommitActivityWeek]]:
    results = await asyncio.gather(
        *(fetch_commit_activity(client, handle, repo.name) for repo in repositories),
        return_exceptions=True,
    )

    series: list[list[CommitActivityWeek]] = []
    for repo, result in zip(repositories, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning(
                "Commit activity for %s/%s unavailable: %s",
                handle,
                repo.name,
                result,
            )
            series.append([])
            continue
        series.append(result)
    return series


async def _collect_dashboard_data(
    client: httpx.AsyncClient,
    handle: str,
    *,
    now: datetime | date | None,
    rng: random.Random | None,
    top_repository_count: int,
    repositories_per_page: int,
    events_per_page: int,
) -> tuple[UserProfile, list[RepositorySummary], ContributionReport]:
    if now is None:
        now = datetime.now(UTC)

    profile_result, repositories_result, events = await asyncio.gather(
        fetch_user_profile(client, handle),
        fetch_repositories(client, handle, per_page=repositories_per_page),
        fetch_recent_events(client, handle, per_page=events_per_page),
        return_exceptions=True,
    )

    for result in (profile_result, repositories_result, events):
        if isinstance(result, BaseException) and not isinstance(result, Exception):
            raise result
    if isinstance(profile_result, Exception):
        raise translate_github_error(profile_result) from profile_result
    if isinstance(repositories_result, Exception):
        raise translate_github_error(repositories_result) from repositories_result
    if isinstance(events, Exception):
        logger.warning("Events for %s unavailable: %s", handle, events)
        events = []

    selected = select_recent_repositories(repositories_result, top_repository_count)
    commit_activity = await _fetch_commit_activity_series(client, handle, selected)

    report = build_contribution_report(now, commit_activity, events, rng=rng)
    logger.info(
        "Built contribution report for %s from %d repositories: %d contributions",
        handle,
        len(selected),
        report.total_contributions,
    )
    return profile_result, repositories_result, report


async def compute_contribution_report(
    client: httpx.AsyncClient,
    handle: str,
    *,
    now: datetime | date | None = None,
    rng: random.Random | None = None,
    top_repository_count: int = 10,
    repositories_per_page: int = 100,
    events_per_page: int = 100,
) -> ContributionReport:
    """Fetch a user's activity and aggregate it into a one-year report.

    Profile and repository list failures abort the report. Commit activity
    and event failures count as no activity. `rng=None` disables the
    synthetic fallback for users without any activity.
    """

    _, _, report = await _collect_dashboard_data(
        client,
        handle,
        now=now,
        rng=rng,
        top_repository_count=top_repository_count,
        repositories_per_page=repositories_per_page,
        events_per_page=events_per_page,
    )
    return report


async def get_dashboard(
    client: httpx.AsyncClient,
    handle: str,
    *,
    now: datetime | date | None = None,
    rng: random.Random | None = None,
    top_repository_count: int = 10,
    repositories_per_page: int = 100,
    events_per_page: int = 100,
) -> dict[str, object]:
    """Profile, repositories and contribution activity in one payload."""

    profile, repositories, report = await _collect_dashboard_data(
        client,
        handle,
        now=now,
        rng=rng,
        top_repository_count=top_repository_count,
        repositories_per_page=repositories_per_page,
        events_per_page=events_per_page,
    )
    return {
        "profile": profile,
        "repositories": repositories,
        "featured_repository": pick_featured_repository(repositories),
        "contributions": report,
    }


async def get_user_profile(client: httpx.AsyncClient, handle: str) -> UserProfile:
    try:
        return await fetch_user_profile(client, handle)
    except Exception as exc:
        raise translate_github_error(exc) from exc


async def list_repositories(
    client: httpx.AsyncClient, handle: str, per_page: int = 100
) -> list[RepositorySummary]:
    try:
        return await fetch_repositories(client, handle, per_page=per_page)
    except Exception as exc:
        raise translate_github_error(exc) from exc


async def get_repository_commit_summary(
    client: httpx.AsyncClient, handle: str, repo: str, days: int = 30
) -> dict[str, object]:
    """Daily commits of a repository over its most recent `days` days."""

    try:
        weeks = await fetch_commit_activity(client, handle, repo)
    except Exception as exc:
        raise translate_github_error(exc) from exc

    summary = summarize_recent_commits(weeks, days=days)
    return {"repository": repo, **summary}
