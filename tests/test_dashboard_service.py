import asyncio
import random
from datetime import UTC
from datetime import date
from datetime import datetime

import httpx
import pytest

from conftest import FakeGitHub
from conftest import epoch
from conftest import event_payload
from conftest import profile_payload
from conftest import repo_payload
from profile_dashboard.models import RepositorySummary
from profile_dashboard.services.dashboard_service import GitHubAPIError
from profile_dashboard.services.dashboard_service import GitHubNotFoundError
from profile_dashboard.services.dashboard_service import GitHubRateLimitedError
from profile_dashboard.services.dashboard_service import compute_contribution_report
from profile_dashboard.services.dashboard_service import contribution_stats
from profile_dashboard.services.dashboard_service import get_dashboard
from profile_dashboard.services.dashboard_service import get_repository_commit_summary
from profile_dashboard.services.dashboard_service import pick_featured_repository
from profile_dashboard.services.dashboard_service import select_recent_repositories
from profile_dashboard.services.dashboard_service import translate_github_error


NOW = datetime(2026, 10, 18, 15, 0, tzinfo=UTC)


def _activity_path(repo: str) -> str:
    return f"/repos/octocat/{repo}/stats/commit_activity"


@pytest.fixture
def active_user(github: FakeGitHub) -> FakeGitHub:
    github.routes["/users/octocat"] = httpx.Response(200, json=profile_payload())
    github.routes["/users/octocat/repos"] = httpx.Response(
        200,
        json=[
            repo_payload("alpha", "2026-10-10T00:00:00Z", stars=3),
            repo_payload("beta", "2026-10-15T00:00:00Z", fork=True, stars=99),
            repo_payload("gamma", "2026-10-01T00:00:00Z", stars=12),
            repo_payload("delta", "2026-09-01T00:00:00Z"),
        ],
    )
    github.routes["/users/octocat/events/public"] = httpx.Response(
        200,
        json=[
            event_payload("1", "2026-10-12T09:00:00Z"),
            event_payload("2", "2026-10-12T18:00:00Z"),
            event_payload("3", "2026-10-17T07:00:00Z"),
            event_payload("4", "2020-01-01T07:00:00Z"),
        ],
    )
    github.routes[_activity_path("alpha")] = httpx.Response(
        200,
        json=[
            {"week": epoch(2026, 10, 11), "days": [0, 3, 0, 0, 0, 0, 0], "total": 3},
            {"week": epoch(2024, 10, 6), "days": [5, 5, 5, 5, 5, 5, 5], "total": 35},
        ],
    )
    github.routes[_activity_path("gamma")] = httpx.Response(202, json={})
    github.routes[_activity_path("delta")] = httpx.Response(
        500, json={"message": "Server Error"}
    )
    return github


async def _report(github: FakeGitHub, **kwargs):
    async with github.client() as client:
        return await compute_contribution_report(client, "octocat", now=NOW, **kwargs)


def test_compute_contribution_report_merges_commits_and_events(
    active_user: FakeGitHub,
) -> None:
    report = asyncio.run(_report(active_user))

    days = {day.date: day.count for week in report.weeks for day in week.days}
    assert days[date(2026, 10, 12)] == 5
    assert days[date(2026, 10, 17)] == 1
    assert report.total_contributions == 6
    assert all(len(week.days) == 7 for week in report.weeks)


def test_compute_contribution_report_skips_forks(active_user: FakeGitHub) -> None:
    asyncio.run(_report(active_user))

    assert _activity_path("beta") not in active_user.requested_paths
    assert _activity_path("alpha") in active_user.requested_paths
    assert _activity_path("delta") in active_user.requested_paths


def test_compute_contribution_report_limits_repositories(
    active_user: FakeGitHub,
) -> None:
    asyncio.run(_report(active_user, top_repository_count=1))

    activity_paths = [
        path for path in active_user.requested_paths if path.startswith("/repos/")
    ]
    assert activity_paths == [_activity_path("alpha")]


def test_compute_contribution_report_tolerates_event_failure(
    active_user: FakeGitHub,
) -> None:
    active_user.routes["/users/octocat/events/public"] = httpx.Response(503)

    report = asyncio.run(_report(active_user))

    assert report.total_contributions == 3


def test_compute_contribution_report_synthesizes_for_inactive_user(
    github: FakeGitHub,
) -> None:
    github.routes["/users/octocat"] = httpx.Response(200, json=profile_payload())
    github.routes["/users/octocat/repos"] = httpx.Response(200, json=[])
    github.routes["/users/octocat/events/public"] = httpx.Response(200, json=[])

    strict = asyncio.run(_report(github))
    synthetic = asyncio.run(_report(github, rng=random.Random(11)))

    assert strict.total_contributions == 0
    assert synthetic.total_contributions > 0
    active_days = [
        day.date for week in synthetic.weeks for day in week.days if day.count
    ]
    assert min(active_days) >= date(2026, 7, 21)


def test_compute_contribution_report_fails_for_missing_user(
    active_user: FakeGitHub,
) -> None:
    active_user.routes["/users/octocat"] = httpx.Response(
        404, json={"message": "Not Found"}
    )

    with pytest.raises(GitHubNotFoundError, match="Not Found"):
        asyncio.run(_report(active_user))


def test_compute_contribution_report_fails_when_repositories_fail(
    active_user: FakeGitHub,
) -> None:
    active_user.routes["/users/octocat/repos"] = httpx.Response(
        500, json={"message": "Server Error"}
    )

    with pytest.raises(GitHubAPIError, match="Server Error"):
        asyncio.run(_report(active_user))


def test_compute_contribution_report_surfaces_rate_limit(
    active_user: FakeGitHub,
) -> None:
    active_user.routes["/users/octocat"] = httpx.Response(
        403,
        json={"message": "API rate limit exceeded"},
        headers={"X-RateLimit-Remaining": "0"},
    )

    with pytest.raises(GitHubRateLimitedError, match="rate limit"):
        asyncio.run(_report(active_user))


def test_translate_github_error_forbidden_without_exhausted_quota() -> None:
    request = httpx.Request("GET", "https://api.github.com/users/octocat")
    response = httpx.Response(403, request=request, text="forbidden")
    exc = httpx.HTTPStatusError("forbidden", request=request, response=response)

    error = translate_github_error(exc)

    assert type(error) is GitHubAPIError
    assert str(error) == "GitHub returned 403"


def test_translate_github_error_for_invalid_payload() -> None:
    error = translate_github_error(ValueError("GitHub user response is invalid"))

    assert isinstance(error, GitHubAPIError)
    assert str(error) == "GitHub user response is invalid"


def _repo(name: str, updated_at: str, fork: bool = False, stars: int = 0):
    return RepositorySummary.model_validate(
        repo_payload(name, updated_at, fork=fork, stars=stars)
    )


def test_select_recent_repositories_orders_by_update_time() -> None:
    repos = [
        _repo("old", "2025-01-01T00:00:00Z"),
        _repo("forked", "2026-10-01T00:00:00Z", fork=True),
        _repo("new", "2026-09-01T00:00:00Z"),
        _repo("middle", "2026-01-01T00:00:00Z"),
    ]

    selected = select_recent_repositories(repos, limit=2)

    assert [repo.name for repo in selected] == ["new", "middle"]


def test_pick_featured_repository_prefers_most_starred_source_repo() -> None:
    repos = [
        _repo("forked", "2026-10-01T00:00:00Z", fork=True, stars=500),
        _repo("popular", "2026-01-01T00:00:00Z", stars=40),
        _repo("quiet", "2026-09-01T00:00:00Z", stars=2),
    ]

    assert pick_featured_repository(repos).name == "popular"
    assert pick_featured_repository(repos[:1]) is None
    assert pick_featured_repository([]) is None


def test_get_dashboard_combines_profile_repositories_and_activity(
    active_user: FakeGitHub,
) -> None:
    async def run():
        async with active_user.client() as client:
            return await get_dashboard(client, "octocat", now=NOW)

    dashboard = asyncio.run(run())

    assert dashboard["profile"].login == "octocat"
    assert len(dashboard["repositories"]) == 4
    assert dashboard["featured_repository"].name == "gamma"
    assert dashboard["contributions"].total_contributions == 6
    assert contribution_stats(dashboard["contributions"]) == {
        "total_contributions": 6,
        "week_count": 53,
        "max_daily_count": 5,
    }


def test_get_repository_commit_summary(active_user: FakeGitHub) -> None:
    async def run(repo: str):
        async with active_user.client() as client:
            return await get_repository_commit_summary(client, "octocat", repo)

    summary = asyncio.run(run("alpha"))
    pending = asyncio.run(run("gamma"))

    assert summary["repository"] == "alpha"
    assert len(summary["days"]) == 14
    assert summary["total"] == 38
    assert summary["max_per_day"] == 5
    assert summary["average_per_day"] == 2.7
    assert pending["days"] == []
    assert pending["total"] == 0

    with pytest.raises(GitHubNotFoundError):
        asyncio.run(run("missing"))
