"""FastAPI dependency exposing the process-wide installation store.

The store is built once in the application lifespan and kept on
`app.state`. It is None when Supabase is not configured; the webhook
route turns that into a server error. Tests replace this dependency
with a store backed by an in-memory gateway.
"""

from typing import Optional

from fastapi import Request

from copany_bot.installations.store import InstallationStore


def get_installation_store(request: Request) -> Optional[InstallationStore]:
    return getattr(request.app.state, "installation_store", None)
