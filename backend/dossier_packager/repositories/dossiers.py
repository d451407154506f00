"""
Selection of dossiers eligible for packaging and
retrieval of their attached files.
"""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import ValidationError
from sqlalchemy import literal, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dossier_packager.core.constants import PACKAGED_DECISION_TYPES, SUBMISSION_STATUS_SENT
from dossier_packager.core.logging import get_logger
from dossier_packager.db.models import AuthenticityType, DecisionType, Organization
from dossier_packager.db.models import Dossier as DossierRow
from dossier_packager.db.models import DossierFile as DossierFileRow
from dossier_packager.packaging.errors import SelectionError
from dossier_packager.packaging.records import Dossier, DossierFile

logger = get_logger(__name__)


async def select_eligible_dossiers(
    db: AsyncSession,
    *,
    graph_prefix: str,
    graph_suffix: str,
    decision_types: Sequence[str] = PACKAGED_DECISION_TYPES,
) -> list[Dossier]:
    """
    Dossiers that were sent, have an allowed decision type, carry no
    packaging status yet and live in their own organization's partition.

    Ordered by last modification, oldest first.
    """
    organization_graph = literal(graph_prefix) + Organization.group_id + literal(graph_suffix)
    stmt = (
        select(
            DossierRow.id,
            DossierRow.uri,
            DossierRow.graph,
            DossierRow.fiscal_year,
            DossierRow.session_date,
            DecisionType.label.label("decision_type_label"),
            AuthenticityType.label.label("authenticity_status"),
            Organization.name.label("organization_name"),
            Organization.kbo_number,
            Organization.classification_label,
        )
        .join(Organization, DossierRow.organization_id == Organization.id)
        .join(DecisionType, DossierRow.decision_type_uri == DecisionType.uri)
        .outerjoin(AuthenticityType, DossierRow.authenticity_type_uri == AuthenticityType.uri)
        .where(
            DossierRow.submission_status == SUBMISSION_STATUS_SENT,
            DossierRow.decision_type_uri.in_(list(decision_types)),
            DossierRow.packaging_status.is_(None),
            DossierRow.graph == organization_graph,
        )
        .order_by(DossierRow.modified.asc())
    )
    result = await db.execute(stmt)
    return [
        Dossier(
            id=str(row.id),
            uri=row.uri,
            graph=row.graph,
            decision_type_label=row.decision_type_label,
            organization_name=row.organization_name,
            classification_label=row.classification_label,
            kbo_number=row.kbo_number,
            authenticity_status=row.authenticity_status,
            fiscal_year=row.fiscal_year,
            decision_date=row.session_date,
        )
        for row in result
    ]


async def fetch_files_for_dossier(
    db: AsyncSession,
    dossier: Dossier,
    *,
    file_graph: str,
) -> list[DossierFile]:
    """Files linked to the dossier in its own partition, described in the file partition."""
    stmt = (
        select(DossierFileRow)
        .join(DossierRow, DossierFileRow.dossier_id == DossierRow.id)
        .where(
            DossierRow.uri == dossier.uri,
            DossierRow.graph == dossier.graph,
            DossierFileRow.graph == file_graph,
        )
        .order_by(DossierFileRow.filename)
    )
    result = await db.execute(stmt)
    return [
        DossierFile(
            id=str(row.id),
            uri=row.uri,
            filename=row.filename,
            format=row.format,
            size=row.size,
        )
        for row in result.scalars()
    ]


class DossierSelector:
    """Queries the store for dossiers to package and their files."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        file_graph: str,
        graph_prefix: str,
        graph_suffix: str,
    ) -> None:
        self.session_factory = session_factory
        self.file_graph = file_graph
        self.graph_prefix = graph_prefix
        self.graph_suffix = graph_suffix

    async def select_eligible(self) -> list[Dossier]:
        """
        Raises:
            SelectionError: the store failed or returned a malformed row.
        """
        try:
            async with self.session_factory() as session:
                return await select_eligible_dossiers(
                    session,
                    graph_prefix=self.graph_prefix,
                    graph_suffix=self.graph_suffix,
                )
        except (SQLAlchemyError, ValidationError) as exc:
            logger.error("Dossier selection failed", error=str(exc))
            raise SelectionError(f"Failed to select dossiers to package: {exc}") from exc

    async def fetch_files(self, dossier: Dossier) -> list[DossierFile]:
        async with self.session_factory() as session:
            return await fetch_files_for_dossier(session, dossier, file_graph=self.file_graph)
