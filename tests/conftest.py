from collections.abc import Callable
from datetime import UTC
from datetime import datetime

import httpx
import pytest

from profile_dashboard.clients.github_client import build_github_client
from profile_dashboard.settings import Settings


Route = httpx.Response | Callable[[httpx.Request], httpx.Response]


class FakeGitHub:
    """Serves canned GitHub REST responses keyed by request path."""

    def __init__(self) -> None:
        self.routes: dict[str, Route] = {}
        self.requested_paths: list[str] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requested_paths.append(request.url.path)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if callable(route):
            return route(request)
        return route

    def client(self) -> httpx.AsyncClient:
        return build_github_client(
            Settings(), transport=httpx.MockTransport(self.handle)
        )


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


def epoch(year: int, month: int, day: int) -> int:
    return int(datetime(year, month, day, tzinfo=UTC).timestamp())


def profile_payload(login: str = "octocat") -> dict[str, object]:
    return {
        "login": login,
        "id": 583231,
        "avatar_url": "https://avatars.githubusercontent.com/u/583231?v=4",
        "html_url": f"https://github.com/{login}",
        "name": "The Octocat",
        "company": "@github",
        "blog": "https://github.blog",
        "location": "San Francisco",
        "email": None,
        "bio": None,
        "public_repos": 8,
        "public_gists": 8,
        "followers": 9000,
        "following": 9,
        "created_at": "2011-01-25T18:44:36Z",
    }


def repo_payload(
    name: str,
    updated_at: str,
    fork: bool = False,
    stars: int = 0,
    owner: str = "octocat",
) -> dict[str, object]:
    return {
        "id": abs(hash(name)) % 10_000_000,
        "name": name,
        "full_name": f"{owner}/{name}",
        "html_url": f"https://github.com/{owner}/{name}",
        "description": None,
        "fork": fork,
        "created_at": "2020-01-01T00:00:00Z",
        "updated_at": updated_at,
        "pushed_at": updated_at,
        "homepage": None,
        "size": 10,
        "stargazers_count": stars,
        "watchers_count": stars,
        "language": "Python",
        "forks_count": 0,
        "archived": False,
        "open_issues_count": 0,
        "license": {"key": "mit", "name": "MIT License", "url": None},
        "topics": [],
        "visibility": "public",
    }


def event_payload(event_id: str, created_at: str, repo: str = "octocat/alpha"):
    return {
        "id": event_id,
        "type": "PushEvent",
        "created_at": created_at,
        "repo": {"name": repo},
    }
