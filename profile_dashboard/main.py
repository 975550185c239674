from fastapi import FastAPI

from profile_dashboard.api.routes.dashboard import router
from profile_dashboard.core.middleware import GitHubProxyRateLimitMiddleware
from profile_dashboard.core.observability import configure_logging
from profile_dashboard.core.observability import init_sentry
from profile_dashboard.settings import Settings


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the dashboard API application."""

    app_settings = settings or Settings()
    configure_logging(app_settings)
    init_sentry(app_settings)

    app = FastAPI(title="GitHub Profile Dashboard")
    app.state.settings = app_settings
    app.add_middleware(
        GitHubProxyRateLimitMiddleware,
        requests_per_window=app_settings.rate_limit_per_minute,
        window_seconds=app_settings.rate_limit_window_seconds,
    )
    app.include_router(router)
    return app


app = create_app()
