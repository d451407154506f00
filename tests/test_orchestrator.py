"""Batch scenarios against a real store and storage root."""

import asyncio
import xml.etree.ElementTree as ET
import zipfile

import pytest
from sqlalchemy.exc import OperationalError
from structlog.testing import capture_logs

from conftest import FILE_GRAPH, GRAPH_PREFIX, GRAPH_SUFFIX, organization_graph
from dossier_packager.core.constants import PackagingStatus, TriggerOutcome
from dossier_packager.packaging.archive import ArchiveAssembler
from dossier_packager.packaging.descriptors import DescriptorBuilder
from dossier_packager.packaging.errors import GateError, RegistrationError, SelectionError
from dossier_packager.packaging.gate import RunGate
from dossier_packager.packaging.orchestrator import PackagingOrchestrator
from dossier_packager.packaging.storage import FileStorage
from dossier_packager.repositories.dossiers import DossierSelector
from dossier_packager.repositories.statuses import StatusStore


def _build(session_factory, storage_root, work_dir, max_concurrency: int = 0) -> PackagingOrchestrator:
    status_store = StatusStore(session_factory, file_graph=FILE_GRAPH)
    return PackagingOrchestrator(
        gate=RunGate(status_store),
        selector=DossierSelector(
            session_factory,
            file_graph=FILE_GRAPH,
            graph_prefix=GRAPH_PREFIX,
            graph_suffix=GRAPH_SUFFIX,
        ),
        status_store=status_store,
        descriptor_builder=DescriptorBuilder(work_dir),
        assembler=ArchiveAssembler(FileStorage(storage_root)),
        max_concurrency=max_concurrency,
    )


@pytest.fixture()
def orchestrator(session_factory, storage_root, work_dir) -> PackagingOrchestrator:
    return _build(session_factory, storage_root, work_dir)


async def _run_batch(orchestrator: PackagingOrchestrator):
    result = await orchestrator.trigger()
    await orchestrator.drain()
    return result


@pytest.mark.asyncio
async def test_dossier_with_two_files_is_packaged(seeder, orchestrator, storage_root, work_dir):
    dossier_id = await seeder.dossier(
        await seeder.organization(),
        files=[("jaarrekening.pdf", b"%PDF accounts"), ("toelichting.pdf", b"%PDF notes")],
    )

    result = await _run_batch(orchestrator)

    assert result.outcome == TriggerOutcome.ACCEPTED
    assert result.dossier_count == 1
    assert await seeder.status_of(dossier_id) == PackagingStatus.PACKAGED

    [package] = await seeder.packages()
    assert (await seeder.package_of(dossier_id)).id == package.id
    assert package.uri == f"share://{package.filename}"
    assert package.filename.startswith("Inzending_financieel_GemeenteGent_Jaarrekening_Authentiek_2023_20240528_")
    assert package.filename.endswith(f"_{package.id}.zip")

    with zipfile.ZipFile(storage_root / package.filename) as bundle:
        assert sorted(bundle.namelist()) == sorted(
            ["jaarrekening.pdf", "toelichting.pdf", "Borderel.xml", "Publicatie.xml"]
        )
        manifest = ET.fromstring(bundle.read("Borderel.xml"))
    listed = [el.text for el in manifest.iter("Bestandsnaam")]
    assert listed == ["jaarrekening.pdf", "toelichting.pdf", "Publicatie.xml"]

    # Temporary descriptors never outlive the dossier's processing
    assert list(work_dir.iterdir()) == []
    assert await orchestrator.gate.is_running() is False


@pytest.mark.asyncio
async def test_dossier_without_files_fails_without_artifact(seeder, orchestrator, storage_root):
    dossier_id = await seeder.dossier(await seeder.organization())

    result = await _run_batch(orchestrator)

    assert result.outcome == TriggerOutcome.ACCEPTED
    assert await seeder.status_of(dossier_id) == PackagingStatus.PACKAGING_FAILED
    assert await seeder.packages() == []
    assert list(storage_root.glob("*.zip")) == []


@pytest.mark.asyncio
async def test_failing_dossier_does_not_affect_sibling(seeder, orchestrator, storage_root, work_dir):
    org = await seeder.organization()
    broken = await seeder.dossier(org, files=[("missing.pdf", b"x")], write_files=False)
    healthy = await seeder.dossier(org, files=[("a.pdf", b"a"), ("b.pdf", b"b")])

    result = await _run_batch(orchestrator)

    assert result.dossier_count == 2
    assert await seeder.status_of(broken) == PackagingStatus.PACKAGING_FAILED
    assert await seeder.status_of(healthy) == PackagingStatus.PACKAGED
    assert await seeder.package_of(broken) is None
    assert len(list(storage_root.glob("*.zip"))) == 1
    assert list(work_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_trigger_refused_while_batch_in_flight(seeder, orchestrator):
    org = await seeder.organization()
    running = await seeder.dossier(org, packaging_status=PackagingStatus.PROCESSING.value)
    waiting = await seeder.dossier(org, files=[("a.pdf", b"a")])

    result = await _run_batch(orchestrator)

    assert result.outcome == TriggerOutcome.ALREADY_RUNNING
    assert await seeder.status_of(running) == PackagingStatus.PROCESSING
    assert await seeder.status_of(waiting) is None
    assert orchestrator.in_flight == 0


@pytest.mark.asyncio
async def test_nothing_to_do(seeder, orchestrator):
    await seeder.dossier(await seeder.organization(), packaging_status=PackagingStatus.PACKAGED.value)

    result = await _run_batch(orchestrator)

    assert result.outcome == TriggerOutcome.NOTHING_TO_DO
    assert result.dossier_count == 0


@pytest.mark.asyncio
async def test_recovery_makes_stuck_dossier_eligible_again(seeder, orchestrator):
    stuck = await seeder.dossier(
        await seeder.organization(),
        files=[("a.pdf", b"a")],
        packaging_status=PackagingStatus.PROCESSING.value,
    )

    assert await orchestrator.recover() == 1
    assert await seeder.status_of(stuck) is None

    result = await _run_batch(orchestrator)

    assert result.outcome == TriggerOutcome.ACCEPTED
    assert await seeder.status_of(stuck) == PackagingStatus.PACKAGED


@pytest.mark.asyncio
async def test_registration_failure_removes_archive(seeder, orchestrator, storage_root, monkeypatch):
    dossier_id = await seeder.dossier(await seeder.organization(), files=[("a.pdf", b"a")])

    async def refuse(dossier, artifact, *, session=None):
        raise RegistrationError("store unavailable", dossier_id=dossier.id, graph=dossier.graph)

    monkeypatch.setattr(orchestrator.status_store, "register_artifact", refuse)

    await _run_batch(orchestrator)

    assert await seeder.status_of(dossier_id) == PackagingStatus.PACKAGING_FAILED
    assert await seeder.packages() == []
    assert list(storage_root.glob("*.zip")) == []


@pytest.mark.asyncio
async def test_failure_to_mark_failed_is_contained(seeder, orchestrator, monkeypatch):
    dossier_id = await seeder.dossier(await seeder.organization())

    async def broken(dossier, *, session=None):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(orchestrator.status_store, "mark_failed", broken)

    assert await orchestrator.package_dossier((await orchestrator.selector.select_eligible())[0]) is False
    assert await seeder.status_of(dossier_id) == PackagingStatus.PROCESSING


@pytest.mark.asyncio
async def test_selection_failure_propagates_before_fan_out(seeder, orchestrator, monkeypatch):
    async def fail():
        raise SelectionError("store unreachable")

    monkeypatch.setattr(orchestrator.selector, "select_eligible", fail)

    with pytest.raises(SelectionError):
        await orchestrator.trigger()
    assert orchestrator.in_flight == 0


@pytest.mark.asyncio
async def test_bounded_concurrency_packages_every_dossier(seeder, session_factory, storage_root, work_dir):
    orchestrator = _build(session_factory, storage_root, work_dir, max_concurrency=1)
    org = await seeder.organization()
    ids = [await seeder.dossier(org, files=[(f"{n}.pdf", b"x")]) for n in range(3)]

    result = await _run_batch(orchestrator)

    assert result.dossier_count == 3
    for dossier_id in ids:
        assert await seeder.status_of(dossier_id) == PackagingStatus.PACKAGED
    assert len(await seeder.packages()) == 3


@pytest.mark.asyncio
async def test_concurrent_runners_package_a_dossier_once(seeder, session_factory, storage_root, work_dir):
    dossier_id = await seeder.dossier(await seeder.organization(), files=[("a.pdf", b"a")])
    first = _build(session_factory, storage_root, work_dir)
    second = _build(session_factory, storage_root, work_dir)
    [seen_by_first] = await first.selector.select_eligible()
    [seen_by_second] = await second.selector.select_eligible()

    outcomes = await asyncio.gather(
        first.package_dossier(seen_by_first),
        second.package_dossier(seen_by_second),
    )

    assert sorted(outcomes) == [False, True]
    assert await seeder.status_of(dossier_id) == PackagingStatus.PACKAGED
    assert len(await seeder.packages()) == 1
    assert len(list(storage_root.glob("*.zip"))) == 1


@pytest.mark.asyncio
async def test_gate_store_failure_is_a_packaging_error(seeder, orchestrator, monkeypatch):
    async def unreachable():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(orchestrator.status_store, "is_running", unreachable)

    with pytest.raises(GateError):
        await orchestrator.trigger()
    assert orchestrator.in_flight == 0


@pytest.mark.asyncio
async def test_dossier_failure_is_logged_with_dossier_and_partition(seeder, orchestrator):
    dossier_id = await seeder.dossier(await seeder.organization())

    with capture_logs() as events:
        await _run_batch(orchestrator)

    failure = next(e for e in events if e["event"].startswith("Failed to package Toezicht dossier"))
    assert failure["log_level"] == "warning"
    assert failure["dossier_id"] == str(dossier_id)
    assert failure["graph"] == organization_graph("gent")
