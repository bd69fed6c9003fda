"""Run the webhook service: `python -m copany_bot`.

uvicorn handles SIGINT/SIGTERM and drains in-flight requests before exit.
"""

import uvicorn

from copany_bot.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "copany_bot.main:app",
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
