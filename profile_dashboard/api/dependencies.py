import random
from collections.abc import AsyncGenerator

import httpx
from fastapi import Depends
from fastapi import Request

from profile_dashboard.clients.github_client import build_github_client
from profile_dashboard.settings import Settings


def get_settings(request: Request) -> Settings:
    """Return the settings the application was created with."""

    return request.app.state.settings


async def get_github_client(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with build_github_client(settings) as client:
        yield client


def get_fallback_rng(settings: Settings = Depends(get_settings)) -> random.Random | None:
    """Random source for synthetic activity, or None when it is disabled."""

    if not settings.synthetic_fallback_enabled:
        return None
    return random.Random(settings.synthetic_fallback_seed)
