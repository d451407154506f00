"""
Status repository: packaging status transitions, artifact registration
and the startup recovery sweep.

State machine (NULL = Unset):

    Unset ──► PROCESSING ──► PACKAGED
                        └──► PACKAGING_FAILED

Every transition is a single guarded UPDATE of (status, modified) scoped to
the dossier's partition.  Entering PROCESSING succeeds only from Unset, which
makes it the claim on a dossier: a second runner is refused.  Re-applying a
terminal transition is accepted, so a replayed write yields the same end state.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import exists, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dossier_packager.core.constants import PackagingStatus
from dossier_packager.core.logging import get_logger
from dossier_packager.db.models import Dossier as DossierRow
from dossier_packager.db.models import Package
from dossier_packager.db.models.base import utcnow
from dossier_packager.packaging.errors import InvalidTransitionError, RegistrationError
from dossier_packager.packaging.records import Dossier, PackageArtifact

logger = get_logger(__name__)

# target status → statuses it may be entered from (None = Unset)
ALLOWED_SOURCES: dict[PackagingStatus, tuple[PackagingStatus | None, ...]] = {
    PackagingStatus.PROCESSING: (None,),
    PackagingStatus.PACKAGED: (PackagingStatus.PROCESSING, PackagingStatus.PACKAGED),
    PackagingStatus.PACKAGING_FAILED: (PackagingStatus.PROCESSING, PackagingStatus.PACKAGING_FAILED),
}


async def update_packaging_status(
    db: AsyncSession,
    dossier: Dossier,
    status: PackagingStatus,
) -> None:
    """
    Replace the dossier's status and modified timestamp.

    Raises:
        InvalidTransitionError: the dossier is not in a state ``status`` may follow,
            or it does not exist in its partition.
    """
    sources = ALLOWED_SOURCES[status]
    conditions = [DossierRow.packaging_status == s.value for s in sources if s is not None]
    if None in sources:
        conditions.append(DossierRow.packaging_status.is_(None))

    stmt = (
        update(DossierRow)
        .where(
            DossierRow.id == uuid.UUID(dossier.id),
            DossierRow.graph == dossier.graph,
            or_(*conditions),
        )
        .values(packaging_status=status.value, modified=utcnow())
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    if result.rowcount != 1:
        raise InvalidTransitionError(
            f"Dossier {dossier.id} cannot move to {status.name}",
            dossier_id=dossier.id,
            graph=dossier.graph,
            target_status=status.value,
        )
    await db.flush()


async def insert_package(
    db: AsyncSession,
    dossier: Dossier,
    artifact: PackageArtifact,
    *,
    file_graph: str,
) -> None:
    """Describe the artifact in the file partition and link it from the dossier."""
    db.add(Package(
        id=uuid.UUID(artifact.id),
        uri=artifact.uri,
        graph=file_graph,
        filename=artifact.filename,
        format=artifact.format,
        file_extension=artifact.file_extension,
        created=artifact.created,
    ))
    await db.flush()

    result = await db.execute(
        update(DossierRow)
        .where(
            DossierRow.id == uuid.UUID(dossier.id),
            DossierRow.graph == dossier.graph,
        )
        .values(package_id=uuid.UUID(artifact.id))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise RegistrationError(
            f"Dossier {dossier.id} not found in its partition",
            dossier_id=dossier.id,
            graph=dossier.graph,
        )
    await db.flush()


async def clear_processing_statuses(db: AsyncSession) -> int:
    """Clear PROCESSING on every dossier, in every partition."""
    result = await db.execute(
        update(DossierRow)
        .where(DossierRow.packaging_status == PackagingStatus.PROCESSING.value)
        .values(packaging_status=None)
        .execution_options(synchronize_session=False)
    )
    await db.flush()
    return result.rowcount


async def any_processing(db: AsyncSession) -> bool:
    stmt = select(exists().where(DossierRow.packaging_status == PackagingStatus.PROCESSING.value))
    return bool(await db.scalar(stmt))


class StatusStore:
    """Reads and writes dossier packaging state in the store."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        file_graph: str,
    ) -> None:
        self.session_factory = session_factory
        self.file_graph = file_graph

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """One session, committed on success and rolled back on error."""
        async with self.session_factory() as session:
            async with session.begin():
                yield session

    async def _apply(
        self,
        dossier: Dossier,
        status: PackagingStatus,
        session: AsyncSession | None,
    ) -> None:
        if session is not None:
            await update_packaging_status(session, dossier, status)
            return
        async with self.transaction() as own:
            await update_packaging_status(own, dossier, status)

    async def mark_processing(self, dossier: Dossier, *, session: AsyncSession | None = None) -> None:
        await self._apply(dossier, PackagingStatus.PROCESSING, session)

    async def mark_packaged(self, dossier: Dossier, *, session: AsyncSession | None = None) -> None:
        await self._apply(dossier, PackagingStatus.PACKAGED, session)

    async def mark_failed(self, dossier: Dossier, *, session: AsyncSession | None = None) -> None:
        await self._apply(dossier, PackagingStatus.PACKAGING_FAILED, session)

    async def register_artifact(
        self,
        dossier: Dossier,
        artifact: PackageArtifact,
        *,
        session: AsyncSession | None = None,
    ) -> None:
        """
        Raises:
            RegistrationError: the artifact could not be stored or linked.
        """
        try:
            if session is not None:
                await insert_package(session, dossier, artifact, file_graph=self.file_graph)
                return
            async with self.transaction() as own:
                await insert_package(own, dossier, artifact, file_graph=self.file_graph)
        except SQLAlchemyError as exc:
            raise RegistrationError(
                f"Failed to register package {artifact.filename}: {exc}",
                dossier_id=dossier.id,
                graph=dossier.graph,
            ) from exc

    async def reset_stuck_processing(self) -> int:
        """Recovery sweep: make dossiers left in PROCESSING by a crash eligible again."""
        async with self.transaction() as session:
            count = await clear_processing_statuses(session)
        logger.info("Cleared stuck packaging statuses", dossiers=count)
        return count

    async def is_running(self) -> bool:
        async with self.session_factory() as session:
            return await any_processing(session)
