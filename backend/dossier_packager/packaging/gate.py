"""
Coarse run-level lock.

The lock record is the persisted PROCESSING status itself: while any
dossier in any partition is PROCESSING, a new batch is refused.  It does
not serialise dossiers within an accepted batch; claiming a dossier is the
guarded PROCESSING transition in the status store.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from dossier_packager.core.logging import get_logger
from dossier_packager.packaging.errors import GateError
from dossier_packager.repositories.statuses import StatusStore

logger = get_logger(__name__)


class RunGate:
    def __init__(self, status_store: StatusStore) -> None:
        self.status_store = status_store

    async def is_running(self) -> bool:
        """
        Raises:
            GateError: the store could not be queried.
        """
        try:
            return await self.status_store.is_running()
        except SQLAlchemyError as exc:
            logger.error("Run lock check failed", error=str(exc))
            raise GateError(f"Failed to check for a running packaging batch: {exc}") from exc
