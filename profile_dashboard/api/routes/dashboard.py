import random

import httpx
from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException

from profile_dashboard.api.dependencies import get_fallback_rng
from profile_dashboard.api.dependencies import get_github_client
from profile_dashboard.api.dependencies import get_settings
from profile_dashboard.api.schemas.dashboard import ContributionsResponse
from profile_dashboard.api.schemas.dashboard import DashboardResponse
from profile_dashboard.api.schemas.dashboard import RepositoryCommitSummary
from profile_dashboard.models import ContributionReport
from profile_dashboard.models import RepositorySummary
from profile_dashboard.models import UserProfile
from profile_dashboard.services.dashboard_service import GitHubAPIError
from profile_dashboard.services.dashboard_service import GitHubNotFoundError
from profile_dashboard.services.dashboard_service import GitHubRateLimitedError
from profile_dashboard.services.dashboard_service import compute_contribution_report
from profile_dashboard.services.dashboard_service import contribution_stats
from profile_dashboard.services.dashboard_service import get_dashboard
from profile_dashboard.services.dashboard_service import get_repository_commit_summary
from profile_dashboard.services.dashboard_service import get_user_profile
from profile_dashboard.services.dashboard_service import list_repositories
from profile_dashboard.settings import Settings


router = APIRouter()


def _to_http_exception(exc: GitHubAPIError, not_found_detail: str) -> HTTPException:
    if isinstance(exc, GitHubNotFoundError):
        return HTTPException(status_code=404, detail=not_found_detail)
    if isinstance(exc, GitHubRateLimitedError):
        return HTTPException(status_code=429, detail="GitHub API rate limit exceeded")
    return HTTPException(status_code=502, detail="GitHub API request failed")


def _contributions_payload(
    username: str, report: ContributionReport
) -> ContributionsResponse:
    return ContributionsResponse(
        username=username,
        total_contributions=report.total_contributions,
        weeks=report.weeks,
        stats=contribution_stats(report),
    )


@router.get("/")
async def root() -> dict[str, str]:
    """Return a basic service greeting."""

    return {"message": "Hello World"}


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.get("/users/{handle}", response_model=UserProfile)
async def read_user_profile(
    handle: str, client: httpx.AsyncClient = Depends(get_github_client)
) -> UserProfile:
    """Return the public profile of a GitHub user."""

    try:
        return await get_user_profile(client, handle)
    except GitHubAPIError as exc:
        raise _to_http_exception(exc, "GitHub user not found") from exc


@router.get("/users/{handle}/repos", response_model=list[RepositorySummary])
async def read_repositories(
    handle: str,
    client: httpx.AsyncClient = Depends(get_github_client),
    settings: Settings = Depends(get_settings),
) -> list[RepositorySummary]:
    """Return a user's repositories, most recently updated first."""

    try:
        return await list_repositories(
            client, handle, per_page=settings.repositories_per_page
        )
    except GitHubAPIError as exc:
        raise _to_http_exception(exc, "GitHub user not found") from exc


@router.get(
    "/users/{handle}/repos/{repo}/commits", response_model=RepositoryCommitSummary
)
async def read_repository_commits(
    handle: str,
    repo: str,
    client: httpx.AsyncClient = Depends(get_github_client),
) -> RepositoryCommitSummary:
    """Return the last 30 days of daily commits for a repository."""

    try:
        summary = await get_repository_commit_summary(client, handle, repo)
    except GitHubAPIError as exc:
        raise _to_http_exception(exc, "GitHub repository not found") from exc
    return RepositoryCommitSummary.model_validate(summary)


@router.get("/users/{handle}/contributions", response_model=ContributionsResponse)
async def read_contributions(
    handle: str,
    client: httpx.AsyncClient = Depends(get_github_client),
    settings: Settings = Depends(get_settings),
    rng: random.Random | None = Depends(get_fallback_rng),
) -> ContributionsResponse:
    """Return one year of contribution activity grouped into weeks."""

    try:
        report = await compute_contribution_report(
            client,
            handle,
            rng=rng,
            top_repository_count=settings.top_repository_count,
            repositories_per_page=settings.repositories_per_page,
            events_per_page=settings.events_per_page,
        )
    except GitHubAPIError as exc:
        raise _to_http_exception(exc, "GitHub user not found") from exc
    return _contributions_payload(handle, report)


@router.get("/users/{handle}/dashboard", response_model=DashboardResponse)
async def read_dashboard(
    handle: str,
    client: httpx.AsyncClient = Depends(get_github_client),
    settings: Settings = Depends(get_settings),
    rng: random.Random | None = Depends(get_fallback_rng),
) -> DashboardResponse:
    """Return profile, repositories and contribution activity of a user."""

    try:
        dashboard = await get_dashboard(
            client,
            handle,
            rng=rng,
            top_repository_count=settings.top_repository_count,
            repositories_per_page=settings.repositories_per_page,
            events_per_page=settings.events_per_page,
        )
    except GitHubAPIError as exc:
        raise _to_http_exception(exc, "GitHub user not found") from exc

    profile = dashboard["profile"]
    return DashboardResponse(
        profile=profile,
        repositories=dashboard["repositories"],
        featured_repository=dashboard["featured_repository"],
        contributions=_contributions_payload(profile.login, dashboard["contributions"]),
    )
