"""FastAPI application entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dossier_packager.api.v1 import packaging
from dossier_packager.core.config import Settings
from dossier_packager.core.config import settings as default_settings
from dossier_packager.core.exceptions import register_exception_handlers
from dossier_packager.core.logging import get_logger, setup_logging
from dossier_packager.db.session import create_schema, get_session_factory
from dossier_packager.packaging.archive import ArchiveAssembler
from dossier_packager.packaging.descriptors import DescriptorBuilder
from dossier_packager.packaging.gate import RunGate
from dossier_packager.packaging.orchestrator import PackagingOrchestrator
from dossier_packager.packaging.storage import FileStorage
from dossier_packager.repositories.dossiers import DossierSelector
from dossier_packager.repositories.statuses import StatusStore

API_PREFIX = "/api/v1"


def build_orchestrator(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> PackagingOrchestrator:
    """Wire the packaging components for one process."""
    status_store = StatusStore(session_factory, file_graph=settings.FILE_GRAPH)
    return PackagingOrchestrator(
        gate=RunGate(status_store),
        selector=DossierSelector(
            session_factory,
            file_graph=settings.FILE_GRAPH,
            graph_prefix=settings.ORGANIZATION_GRAPH_PREFIX,
            graph_suffix=settings.ORGANIZATION_GRAPH_SUFFIX,
        ),
        status_store=status_store,
        descriptor_builder=DescriptorBuilder(settings.descriptor_work_dir),
        assembler=ArchiveAssembler(FileStorage(settings.FILE_PATH)),
        max_concurrency=settings.PACKAGING_MAX_CONCURRENCY,
    )


def create_app(
    settings: Settings | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown lifecycle hooks."""
        development = settings.APP_ENV == "development"
        setup_logging("DEBUG" if development else "INFO", json_format=not development)
        logger = get_logger("startup")
        logger.info("Application starting", env=settings.APP_ENV)

        factory = session_factory or get_session_factory()
        if settings.CREATE_SCHEMA_ON_STARTUP:
            await create_schema(factory.kw["bind"])

        orchestrator = build_orchestrator(settings, factory)
        app.state.orchestrator = orchestrator

        # Clears PROCESSING left behind by a previous process before any trigger is served
        cleared = await orchestrator.recover()
        logger.info("Startup recovery finished", cleared=cleared)

        yield

        logger.info("Application shutting down", in_flight=orchestrator.in_flight)
        await orchestrator.drain()

    app = FastAPI(
        title="Toezicht Dossier Packaging API",
        description="Packages sent financial Toezicht dossiers into zip bundles",
        version="0.1.0",
        lifespan=lifespan,
    )
    register_exception_handlers(app)
    app.include_router(packaging.router, prefix=API_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        """Public health-check endpoint."""
        return {"status": "ok", "env": settings.APP_ENV}

    return app


app = create_app()
