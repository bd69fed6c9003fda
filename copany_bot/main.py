import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from copany_bot.core.config import ConfigurationError, get_settings
from copany_bot.core.middleware import RequestIdMiddleware
from copany_bot.github.router import router as github_router
from copany_bot.installations.gateway import create_gateway
from copany_bot.installations.store import InstallationStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the Supabase-backed store once for the process lifetime.

    Missing credentials are not fatal at startup: the store stays None and
    every webhook delivery is answered with a server error until fixed.
    """
    settings = get_settings()
    app.state.installation_store = None

    try:
        gateway = await create_gateway(settings)
    except ConfigurationError as exc:
        logger.error("%s", exc)
    else:
        app.state.installation_store = InstallationStore(
            gateway,
            installation_table=settings.installation_table,
            copany_table=settings.copany_table,
        )

    if not settings.github_webhook_secret:
        logger.error("GITHUB_WEBHOOK_SECRET is not set; deliveries will be rejected")

    logger.info("Webhook endpoint: http://%s:%d/github/webhook", settings.host, settings.port)
    yield
    logger.info("Shutting down")


async def _configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Rejecting %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Server configuration error"},
    )


def create_app() -> FastAPI:
    settings = get_settings()

    _app = FastAPI(
        title="Copany Bot",
        description="GitHub App webhook receiver for Copany",
        version="0.1.0",
        lifespan=lifespan,
    )

    # ---------------------------------------------------------------------------
    # Missing secret or Supabase credentials surface as a generic 500
    # ---------------------------------------------------------------------------
    _app.add_exception_handler(ConfigurationError, _configuration_error_handler)

    # ---------------------------------------------------------------------------
    # Request ID: inject / forward X-Request-ID and the GitHub delivery id
    # ---------------------------------------------------------------------------
    _app.add_middleware(RequestIdMiddleware)

    # ---------------------------------------------------------------------------
    # Sentry: initialised here so it captures startup errors too
    # ---------------------------------------------------------------------------
    from copany_bot.core.sentry import init_sentry

    init_sentry(
        dsn=settings.sentry_dsn,
        environment="development" if settings.debug else "production",
    )

    # ---------------------------------------------------------------------------
    # Logging: configure structlog before any routers log anything
    # ---------------------------------------------------------------------------
    from copany_bot.core.logging import configure_structlog

    configure_structlog(debug=settings.debug)

    # ---------------------------------------------------------------------------
    # Routes
    # ---------------------------------------------------------------------------

    @_app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    _app.include_router(github_router)

    return _app


app = create_app()
