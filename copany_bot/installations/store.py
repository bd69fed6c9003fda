"""Installation repository membership and Copany connection reconciliation.

The store owns two tables:
  - installations: one row per GitHub App installation, with the set of
    repository ids it covers (persisted as a JSON/array column)
  - copany: linked projects, each carrying `github_repository_id` and the
    derived `is_connected_github` flag

`is_connected_github` is never incremented or decremented. Whenever a
repository id is touched, `reconcile_connections()` re-derives the flag
from the installations that currently exist, so any sequence of
create/delete/add/remove converges on the same answer.

Membership updates are read-modify-write without a version check: two
concurrent deliveries for the same installation can lose one update.
The next event touching those ids re-reconciles the flags.

Lookup misses return None. Supabase failures raise `PersistenceError`,
except inside reconciliation which logs and moves on to the next record.
"""

import logging
from typing import Iterable, Optional

from copany_bot.installations.gateway import PersistenceError, SupabaseGateway
from copany_bot.installations.models import Copany, Installation, unique_ids

logger = logging.getLogger(__name__)

INSTALLATION_KEY = "installation_id"
REPOSITORY_IDS = "repository_ids"
COPANY_REPOSITORY_KEY = "github_repository_id"
COPANY_CONNECTED = "is_connected_github"


class InstallationStore:
    def __init__(
        self,
        gateway: SupabaseGateway,
        installation_table: str = "copany_bot_installation",
        copany_table: str = "copany",
    ):
        self._gateway = gateway
        self.installation_table = installation_table
        self.copany_table = copany_table

    # -----------------------------------------------------------------------
    # Installations
    # -----------------------------------------------------------------------

    async def get_installation(self, installation_id: str) -> Optional[Installation]:
        row = await self._gateway.get_one(
            self.installation_table, INSTALLATION_KEY, installation_id
        )
        return Installation.model_validate(row) if row else None

    async def create_installation(self, installation: Installation) -> Installation:
        """Insert a new installation and reconcile every repository it covers."""
        logger.info(
            "Saving installation %s (%s, %d repositories)",
            installation.installation_id,
            installation.target_login,
            len(installation.repository_ids),
        )
        row = await self._gateway.insert(
            self.installation_table, installation.to_record()
        )
        saved = Installation.model_validate(row)
        await self.reconcile_connections(set(saved.repository_ids))
        return saved

    async def delete_installation(self, installation_id: str) -> Optional[Installation]:
        """Delete an installation and disconnect the projects it was covering.

        Returns the deleted installation, or None if it did not exist.
        """
        installation = await self.get_installation(installation_id)
        if installation is None:
            logger.info("Installation %s not found, nothing to delete", installation_id)
            return None

        await self._gateway.delete(
            self.installation_table, INSTALLATION_KEY, installation_id
        )
        logger.info("Deleted installation %s", installation_id)
        await self.reconcile_connections(set(installation.repository_ids))
        return installation

    # -----------------------------------------------------------------------
    # Repository membership
    # -----------------------------------------------------------------------

    async def add_repositories(
        self, installation_id: str, repository_ids: Iterable[str]
    ) -> Optional[Installation]:
        """Union `repository_ids` into the installation's set.

        Only the added ids are reconciled; the connection state of ids that
        were already present cannot have changed.
        """
        added = unique_ids(repository_ids)
        installation = await self.get_installation(installation_id)
        if installation is None:
            logger.warning(
                "Installation %s not found, cannot add repositories", installation_id
            )
            return None

        merged = unique_ids(installation.repository_ids + added)
        updated = await self._write_repository_ids(installation, merged)
        await self.reconcile_connections(set(added))
        return updated

    async def remove_repositories(
        self, installation_id: str, repository_ids: Iterable[str]
    ) -> Optional[Installation]:
        """Subtract `repository_ids` from the installation's set and reconcile them."""
        removed = set(unique_ids(repository_ids))
        installation = await self.get_installation(installation_id)
        if installation is None:
            logger.warning(
                "Installation %s not found, cannot remove repositories", installation_id
            )
            return None

        remaining = [rid for rid in installation.repository_ids if rid not in removed]
        updated = await self._write_repository_ids(installation, remaining)
        await self.reconcile_connections(removed)
        return updated

    async def _write_repository_ids(
        self, installation: Installation, repository_ids: list[str]
    ) -> Installation:
        await self._gateway.update(
            self.installation_table,
            INSTALLATION_KEY,
            installation.installation_id,
            {REPOSITORY_IDS: repository_ids},
        )
        logger.info(
            "Installation %s now covers %d repositories",
            installation.installation_id,
            len(repository_ids),
        )
        return installation.model_copy(update={REPOSITORY_IDS: repository_ids})

    # -----------------------------------------------------------------------
    # Reconciliation
    # -----------------------------------------------------------------------

    async def count_installations_covering(self, repository_id: str) -> int:
        rows = await self._gateway.select_containing(
            self.installation_table,
            REPOSITORY_IDS,
            repository_id,
            columns=INSTALLATION_KEY,
        )
        return len(rows)

    async def reconcile_connections(self, touched_repository_ids: set[str]) -> None:
        """Recompute `is_connected_github` for every Copany linked to a touched id.

        Best-effort: a failure on one record is logged and the remaining
        records are still processed.
        """
        if not touched_repository_ids:
            return

        try:
            rows = await self._gateway.select_in(
                self.copany_table,
                COPANY_REPOSITORY_KEY,
                sorted(touched_repository_ids),
            )
        except PersistenceError as exc:
            logger.error(
                "Could not load projects for repositories %s: %s",
                sorted(touched_repository_ids),
                exc,
            )
            return

        for row in rows:
            copany = Copany.model_validate(row)
            if copany.github_repository_id is None:
                continue
            try:
                covering = await self.count_installations_covering(
                    copany.github_repository_id
                )
                connected = covering > 0
                await self._gateway.update(
                    self.copany_table, "id", copany.id, {COPANY_CONNECTED: connected}
                )
            except PersistenceError as exc:
                logger.error(
                    "Could not reconcile project %s (repository %s): %s",
                    copany.id,
                    copany.github_repository_id,
                    exc,
                )
                continue
            logger.info(
                "Project %s (repository %s) is_connected_github=%s",
                copany.id,
                copany.github_repository_id,
                connected,
            )
