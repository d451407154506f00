"""
PackagingOrchestrator — drives one packaging batch per trigger.

Responsibilities:
    - Refuse a batch while a previous one is still in flight (RunGate)
    - Select eligible dossiers
    - Package every selected dossier concurrently, as detached tasks
    - Contain failures per dossier: any error marks that dossier failed
      and never touches its siblings
    - Recover dossiers left PROCESSING by a crash (startup sweep)

Per-dossier outcomes are only observable through the stored status; the
trigger returns as soon as the batch has been accepted.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from dossier_packager.core.constants import TriggerOutcome
from dossier_packager.core.logging import get_logger
from dossier_packager.packaging.archive import ArchiveAssembler
from dossier_packager.packaging.descriptors import DescriptorBuilder, descriptor_files
from dossier_packager.packaging.errors import InvalidTransitionError
from dossier_packager.packaging.gate import RunGate
from dossier_packager.packaging.naming import generate_package_filename
from dossier_packager.packaging.records import Dossier, PackageArtifact
from dossier_packager.repositories.dossiers import DossierSelector
from dossier_packager.repositories.statuses import StatusStore


@dataclass
class TriggerResult:
    """Caller-visible outcome of a trigger; per-dossier results are not included."""

    outcome: TriggerOutcome
    dossier_count: int = 0


class PackagingOrchestrator:
    """
    Composes gate, selector, descriptor builder, assembler and status store.

    Usage::

        orchestrator = PackagingOrchestrator(...)
        await orchestrator.recover()            # once, before accepting triggers
        result = await orchestrator.trigger()   # returns before packaging ends
        await orchestrator.drain()              # shutdown / tests
    """

    def __init__(
        self,
        *,
        gate: RunGate,
        selector: DossierSelector,
        status_store: StatusStore,
        descriptor_builder: DescriptorBuilder,
        assembler: ArchiveAssembler,
        max_concurrency: int = 0,
    ) -> None:
        self.gate = gate
        self.selector = selector
        self.status_store = status_store
        self.descriptor_builder = descriptor_builder
        self.assembler = assembler
        # Unbounded unless configured
        self._semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None
        self._tasks: set[asyncio.Task] = set()
        self.logger = get_logger(__name__)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def recover(self) -> int:
        """Reset dossiers stuck in PROCESSING; run once at process start."""
        return await self.status_store.reset_stuck_processing()

    async def trigger(self) -> TriggerResult:
        """
        Start a batch.

        Raises:
            GateError: the run lock could not be checked.
            SelectionError: selection failed; no dossier was touched.
        """
        if await self.gate.is_running():
            self.logger.info("Packaging batch refused, previous batch still running")
            return TriggerResult(outcome=TriggerOutcome.ALREADY_RUNNING)

        dossiers = await self.selector.select_eligible()
        if not dossiers:
            self.logger.info("No Toezicht dossiers found that need to be packaged")
            return TriggerResult(outcome=TriggerOutcome.NOTHING_TO_DO)

        self.logger.info("Found Toezicht dossiers to package", count=len(dossiers))
        for dossier in dossiers:
            task = asyncio.create_task(
                self._run_bounded(dossier),
                name=f"package-dossier-{dossier.id}",
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        return TriggerResult(outcome=TriggerOutcome.ACCEPTED, dossier_count=len(dossiers))

    async def drain(self) -> None:
        """Wait until every in-flight dossier task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run_bounded(self, dossier: Dossier) -> None:
        if self._semaphore is None:
            await self.package_dossier(dossier)
            return
        async with self._semaphore:
            await self.package_dossier(dossier)

    async def package_dossier(self, dossier: Dossier) -> bool:
        """
        Package one dossier.  Never raises; returns True when packaged.
        """
        log = self.logger.bind(dossier_id=dossier.id, graph=dossier.graph)
        log.info("Start packaging Toezicht dossier")
        archive_uri: str | None = None

        try:
            await self.status_store.mark_processing(dossier)
        except InvalidTransitionError as exc:
            # Already past Unset: leave its status alone
            log.warning("Dossier no longer eligible, skipping", error=str(exc))
            return False
        except Exception as exc:
            log.exception("Failed to mark dossier as processing", error=str(exc))
            await self._mark_failed(dossier, log)
            return False

        try:
            files = await self.selector.fetch_files(dossier)

            if not files:
                log.warning("Failed to package Toezicht dossier: at least 1 attached file is expected")
                await self.status_store.mark_failed(dossier)
                return False

            package_id = str(uuid.uuid4())
            filename = generate_package_filename(dossier, package_id)

            with descriptor_files(self.descriptor_builder, dossier, files) as descriptors:
                archive_uri = await self.assembler.assemble(
                    filename,
                    files,
                    descriptors.manifest,
                    descriptors.publication,
                )

            artifact = PackageArtifact(
                id=package_id,
                filename=filename,
                uri=archive_uri,
                created=datetime.now(timezone.utc),
            )
            async with self.status_store.transaction() as session:
                await self.status_store.register_artifact(dossier, artifact, session=session)
                await self.status_store.mark_packaged(dossier, session=session)

            log.info("Packaged Toezicht dossier successfully", package_id=package_id, filename=filename)
            return True

        except Exception as exc:
            log.exception("Failed to package Toezicht dossier", error=str(exc))
            self._discard_archive(archive_uri, log)
            await self._mark_failed(dossier, log)
            return False

    async def _mark_failed(self, dossier: Dossier, log: structlog.stdlib.BoundLogger) -> None:
        try:
            await self.status_store.mark_failed(dossier)
        except Exception as exc:
            log.error("Could not mark dossier as failed", error=str(exc))

    def _discard_archive(self, archive_uri: str | None, log: structlog.stdlib.BoundLogger) -> None:
        """Remove an archive that was written but never registered."""
        if archive_uri is None:
            return
        try:
            self.assembler.storage.to_path(archive_uri).unlink(missing_ok=True)
        except Exception as exc:
            log.warning("Unregistered archive could not be removed", uri=archive_uri, error=str(exc))
