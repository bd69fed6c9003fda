"""Shared test fixtures for the webhook service test suite.

Supabase is replaced by `InMemoryGateway`, which implements the same six
row operations as `SupabaseGateway` over plain dicts and records every
call so tests can assert that nothing was persisted.
"""

import hashlib
import hmac
from collections.abc import AsyncGenerator
from typing import Any, Optional

import pytest
from httpx import ASGITransport, AsyncClient

from copany_bot.core.config import Settings, get_settings
from copany_bot.installations.dependencies import get_installation_store
from copany_bot.installations.gateway import PersistenceError
from copany_bot.installations.store import InstallationStore
from copany_bot.main import create_app

TEST_WEBHOOK_SECRET = "test-webhook-secret-123"
INSTALLATION_TABLE = "copany_bot_installation"
COPANY_TABLE = "copany"


class InMemoryGateway:
    """Dict-backed stand-in for `SupabaseGateway`."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {
            INSTALLATION_TABLE: [],
            COPANY_TABLE: [],
        }
        self.calls: list[tuple[str, str]] = []
        self.failures: set[tuple[str, str]] = set()

    def fail_on(self, operation: str, table: str) -> None:
        self.failures.add((operation, table))

    def _record(self, operation: str, table: str) -> list[dict[str, Any]]:
        self.calls.append((operation, table))
        if (operation, table) in self.failures:
            raise PersistenceError(operation, table, "simulated failure")
        return self.tables.setdefault(table, [])

    async def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        rows = self._record("insert", table)
        row = {"id": len(rows) + 1, **record}
        rows.append(row)
        return dict(row)

    async def get_one(self, table: str, field: str, value: Any) -> Optional[dict[str, Any]]:
        rows = self._record("select", table)
        for row in rows:
            if row.get(field) == value:
                return dict(row)
        return None

    async def update(
        self, table: str, field: str, value: Any, changes: dict[str, Any]
    ) -> list[dict[str, Any]]:
        rows = self._record("update", table)
        updated = []
        for row in rows:
            if row.get(field) == value:
                row.update(changes)
                updated.append(dict(row))
        return updated

    async def delete(self, table: str, field: str, value: Any) -> list[dict[str, Any]]:
        rows = self._record("delete", table)
        removed = [dict(row) for row in rows if row.get(field) == value]
        rows[:] = [row for row in rows if row.get(field) != value]
        return removed

    async def select_containing(
        self, table: str, field: str, value: Any, columns: str = "*"
    ) -> list[dict[str, Any]]:
        rows = self._record("select", table)
        return [dict(row) for row in rows if value in (row.get(field) or [])]

    async def select_in(
        self, table: str, field: str, values, columns: str = "*"
    ) -> list[dict[str, Any]]:
        rows = self._record("select", table)
        wanted = set(values)
        return [dict(row) for row in rows if row.get(field) in wanted]

    # Test helpers --------------------------------------------------------

    def installation(self, installation_id: str) -> Optional[dict[str, Any]]:
        for row in self.tables[INSTALLATION_TABLE]:
            if row["installation_id"] == installation_id:
                return row
        return None

    def copany(self, repository_id: str) -> dict[str, Any]:
        for row in self.tables[COPANY_TABLE]:
            if row["github_repository_id"] == repository_id:
                return row
        raise KeyError(repository_id)

    def seed_copany(self, repository_id: str, connected: Optional[bool] = None) -> dict:
        row = {
            "id": 1000 + len(self.tables[COPANY_TABLE]),
            "github_repository_id": repository_id,
            "is_connected_github": connected,
        }
        self.tables[COPANY_TABLE].append(row)
        return row

    def seed_installation(self, installation_id: str, repository_ids: list[str]) -> dict:
        row = {
            "id": len(self.tables[INSTALLATION_TABLE]) + 1,
            "installation_id": installation_id,
            "github_user_id": "1",
            "target_type": 1,
            "target_login": "seeded",
            "repository_ids": list(repository_ids),
        }
        self.tables[INSTALLATION_TABLE].append(row)
        return row


def sign(payload: bytes, secret: str = TEST_WEBHOOK_SECRET) -> str:
    """Generate a valid X-Hub-Signature-256 value for test payloads."""
    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


@pytest.fixture
def gateway() -> InMemoryGateway:
    return InMemoryGateway()


@pytest.fixture
def store(gateway) -> InstallationStore:
    return InstallationStore(gateway, INSTALLATION_TABLE, COPANY_TABLE)


def _override_settings() -> Settings:
    return Settings(
        github_webhook_secret=TEST_WEBHOOK_SECRET,
        supabase_url="https://test.supabase.co",
        supabase_service_role_key="service-role-key",
        sentry_dsn="",
        debug=False,
    )


@pytest.fixture
def app(store):
    """FastAPI app with settings and the store dependency overridden."""
    test_app = create_app()
    test_app.dependency_overrides[get_settings] = _override_settings
    test_app.dependency_overrides[get_installation_store] = lambda: store
    return test_app


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def signer():
    """Expose `sign()` to test modules without importing conftest."""
    return sign
