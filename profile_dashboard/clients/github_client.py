import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import httpx

from profile_dashboard.models import CommitActivityWeek
from profile_dashboard.models import RecentEvent
from profile_dashboard.models import RepositorySummary
from profile_dashboard.models import UserProfile
from profile_dashboard.settings import Settings

logger = logging.getLogger(__name__)

# GitHub answers 202 while commit statistics are still being computed.
STATS_PENDING_STATUS_CODES = {202, 204}
DAYS_PER_WEEK = 7


def path_segment(value: str) -> str:
    """Percent-encode a value so it stays a single URL path segment."""

    return quote(value, safe="")


def build_github_client(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    """Create an async client preconfigured for the GitHub REST API."""

    return httpx.AsyncClient(
        base_url=settings.github_api_base_url,
        headers={
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": settings.github_api_version,
            "User-Agent": settings.github_user_agent,
        },
        timeout=settings.github_timeout_seconds,
        transport=transport,
    )


async def fetch_user_profile(client: httpx.AsyncClient, handle: str) -> UserProfile:
    """Fetch public profile data for a GitHub user."""

    response = await client.get(f"/users/{path_segment(handle)}")
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("GitHub user response is invalid")

    return UserProfile.model_validate(payload)


async def fetch_repositories(
    client: httpx.AsyncClient, handle: str, per_page: int = 100
) -> list[RepositorySummary]:
    """Fetch one page of a user's repositories, most recently updated first."""

    response = await client.get(
        f"/users/{path_segment(handle)}/repos",
        params={"per_page": per_page, "sort": "updated"},
    )
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, list):
        raise ValueError("GitHub repositories response is invalid")

    return [
        RepositorySummary.model_validate(item)
        for item in payload
        if isinstance(item, Mapping)
    ]


async def fetch_commit_activity(
    client: httpx.AsyncClient, handle: str, repo: str
) -> list[CommitActivityWeek]:
    """Fetch last year's weekly commit counts for a repository.

    Returns an empty list while GitHub is still computing the statistics.
    """

    response = await client.get(
        f"/repos/{path_segment(handle)}/{path_segment(repo)}/stats/commit_activity"
    )
    if response.status_code in STATS_PENDING_STATUS_CODES:
        logger.debug("Commit activity for %s/%s is not ready yet", handle, repo)
        return []
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, list):
        raise ValueError("GitHub commit activity response is invalid")

    weeks: list[CommitActivityWeek] = []
    for item in payload:
        if not isinstance(item, Mapping):
            continue
        raw_week = item.get("week")
        raw_days = item.get("days")
        if not isinstance(raw_week, int) or not isinstance(raw_days, list):
            continue
        if len(raw_days) != DAYS_PER_WEEK:
            logger.debug("Skipping malformed commit week %s of %s", raw_week, repo)
            continue

        try:
            weeks.append(CommitActivityWeek.model_validate(item))
        except ValueError:
            logger.debug("Skipping malformed commit week %s of %s", raw_week, repo)

    return weeks


async def fetch_recent_events(
    client: httpx.AsyncClient, handle: str, per_page: int = 100
) -> list[RecentEvent]:
    """Fetch a user's recent public events.

    Any failure is logged and yields an empty list.
    """

    try:
        response = await client.get(
            f"/users/{path_segment(handle)}/events/public",
            params={"per_page": per_page},
        )
        response.raise_for_status()
        payload: Any = response.json()
    except Exception:
        logger.warning("Fetching events for %s failed", handle, exc_info=True)
        return []

    if not isinstance(payload, list):
        logger.warning("GitHub events response for %s is invalid", handle)
        return []

    events: list[RecentEvent] = []
    for item in payload:
        if not isinstance(item, Mapping):
            continue
        event_id = item.get("id")
        event_type = item.get("type")
        created_at_raw = item.get("created_at")
        repo_data = item.get("repo")
        repo_name = repo_data.get("name") if isinstance(repo_data, Mapping) else None

        if not isinstance(event_id, str):
            continue
        if not isinstance(event_type, str):
            continue
        if not isinstance(created_at_raw, str):
            continue

        try:
            events.append(
                RecentEvent(
                    id=event_id,
                    type=event_type,
                    created_at=created_at_raw,
                    repo_name=repo_name,
                )
            )
        except ValueError:
            logger.debug("Skipping event %s with invalid timestamp", event_id)

    return events
