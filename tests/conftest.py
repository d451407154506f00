"""
Shared pytest fixtures for the packaging service tests.

Every test gets its own aiosqlite file database and storage root under
``tmp_path``.  ``StoreSeeder`` writes rows the way the upstream services
would leave them: reference data, organizations, sent dossiers and their
attached files (both the row and the physical file).
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy import select

from dossier_packager.core.constants import PACKAGED_DECISION_TYPES, SUBMISSION_STATUS_SENT
from dossier_packager.db.models import (
    AuthenticityType,
    DecisionType,
    Dossier,
    DossierFile,
    Organization,
    Package,
)
from dossier_packager.db.session import build_engine, build_session_factory, create_schema

GRAPH_PREFIX = "http://mu.semte.ch/graphs/organizations/"
GRAPH_SUFFIX = "/LoketLB-toezichtGebruiker"
FILE_GRAPH = "http://mu.semte.ch/graphs/public"

ANNUAL_ACCOUNTS = PACKAGED_DECISION_TYPES[0]
OTHER_DECISION_TYPE = "http://data.lblod.info/DecisionType/not-financial"
AUTHENTIC = "http://data.lblod.info/authenticity-type/authentic"

DECISION_TYPE_LABELS = {
    PACKAGED_DECISION_TYPES[0]: "Jaarrekening",
    PACKAGED_DECISION_TYPES[1]: "Meerjarenplan(aanpassing)",
    PACKAGED_DECISION_TYPES[2]: "Budget(wijziging)",
    OTHER_DECISION_TYPE: "Reglementen en verordeningen",
}

BASE_TIME = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


def organization_graph(group_id: str) -> str:
    return f"{GRAPH_PREFIX}{group_id}{GRAPH_SUFFIX}"


class StoreSeeder:
    """Writes upstream rows and physical files for a test scenario."""

    def __init__(self, session_factory, storage_root: Path) -> None:
        self.session_factory = session_factory
        self.storage_root = storage_root
        self._counter = 0

    async def reference_data(self) -> None:
        async with self.session_factory() as session, session.begin():
            for uri, label in DECISION_TYPE_LABELS.items():
                session.add(DecisionType(uri=uri, label=label))
            session.add(AuthenticityType(uri=AUTHENTIC, label="Authentiek"))

    async def organization(
        self,
        group_id: str = "gent",
        *,
        name: str = "Gent",
        classification: str = "Gemeente",
        kbo_number: str = "0207451227",
    ) -> uuid.UUID:
        org = Organization(
            group_id=group_id,
            uri=f"http://data.lblod.info/id/bestuurseenheden/{group_id}",
            name=name,
            kbo_number=kbo_number,
            classification_label=classification,
        )
        async with self.session_factory() as session, session.begin():
            session.add(org)
        return org.id

    async def dossier(
        self,
        organization_id: uuid.UUID,
        group_id: str = "gent",
        *,
        graph: str | None = None,
        files: Sequence[tuple[str, bytes]] = (),
        submission_status: str | None = SUBMISSION_STATUS_SENT,
        decision_type: str = ANNUAL_ACCOUNTS,
        authenticity: str | None = AUTHENTIC,
        fiscal_year: str | None = "2023",
        session_date: datetime | None = datetime(2024, 5, 28, tzinfo=timezone.utc),
        packaging_status: str | None = None,
        modified: datetime | None = None,
        write_files: bool = True,
        uri: str | None = None,
    ) -> uuid.UUID:
        """Insert a dossier; each ``(filename, content)`` becomes a file row and, by default, a file on disk."""
        self._counter += 1
        dossier_id = uuid.uuid4()
        row = Dossier(
            id=dossier_id,
            uri=uri if uri is not None else f"http://data.lblod.info/submissions/{dossier_id}",
            graph=graph or organization_graph(group_id),
            submission_status=submission_status,
            decision_type_uri=decision_type,
            organization_id=organization_id,
            authenticity_type_uri=authenticity,
            fiscal_year=fiscal_year,
            session_date=session_date,
            modified=modified or BASE_TIME + timedelta(minutes=self._counter),
            packaging_status=packaging_status,
        )
        async with self.session_factory() as session, session.begin():
            session.add(row)
            await session.flush()
            for filename, content in files:
                relative = f"{dossier_id}/{filename}"
                if write_files:
                    path = self.storage_root / relative
                    path.parent.mkdir(parents=True, exist_ok=True)
                    path.write_bytes(content)
                session.add(DossierFile(
                    dossier_id=dossier_id,
                    graph=FILE_GRAPH,
                    uri=f"share://{relative}",
                    filename=filename,
                    format="application/pdf",
                    size=len(content),
                ))
        return dossier_id

    async def status_of(self, dossier_id: uuid.UUID) -> str | None:
        async with self.session_factory() as session:
            return await session.scalar(
                select(Dossier.packaging_status).where(Dossier.id == dossier_id)
            )

    async def package_of(self, dossier_id: uuid.UUID) -> Package | None:
        async with self.session_factory() as session:
            return await session.scalar(
                select(Package).join(Dossier, Dossier.package_id == Package.id).where(Dossier.id == dossier_id)
            )

    async def packages(self) -> list[Package]:
        async with self.session_factory() as session:
            return list((await session.scalars(select(Package))).all())


@pytest.fixture()
def storage_root(tmp_path: Path) -> Path:
    root = tmp_path / "share"
    root.mkdir()
    return root


@pytest.fixture()
def work_dir(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'store.db'}"


@pytest_asyncio.fixture()
async def session_factory(db_url: str):
    engine = build_engine(db_url)
    await create_schema(engine)
    try:
        yield build_session_factory(engine)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def seeder(session_factory, storage_root: Path) -> StoreSeeder:
    store = StoreSeeder(session_factory, storage_root)
    await store.reference_data()
    return store


@pytest.fixture()
def run_against_store(db_url: str, storage_root: Path) -> Callable[[Callable[[StoreSeeder], Awaitable[Any]]], Any]:
    """
    Run ``fn(seeder)`` on a private event loop and engine.

    For synchronous tests (TestClient) that must seed or inspect the store
    outside the application's own loop.
    """

    def run(fn: Callable[[StoreSeeder], Awaitable[Any]]) -> Any:
        async def _run() -> Any:
            engine = build_engine(db_url)
            try:
                await create_schema(engine)
                return await fn(StoreSeeder(build_session_factory(engine), storage_root))
            finally:
                await engine.dispose()

        return asyncio.run(_run())

    return run
