"""
Renders the two XML descriptors embedded in every bundle.

    Borderel.xml    manifest of the bundle's files plus routing metadata
    Publicatie.xml  publication metadata (fixed-order key/value pairs)

The receiving side validates both against fixed XSDs, so element names,
namespace prefixes, schema locations and element order are part of the
contract.  Prefixed names are written literally; ElementTree performs no
namespace rewriting on them.
"""

from __future__ import annotations

import os
import tempfile
import xml.etree.ElementTree as ET
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from dossier_packager.core.constants import PUBLICATION_ENTRY_NAME
from dossier_packager.core.logging import get_logger
from dossier_packager.packaging.errors import DescriptorError
from dossier_packager.packaging.records import Dossier, DossierFile

logger = get_logger(__name__)

XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"

MANIFEST_ROOT = "ns1:Borderel"
MANIFEST_NAMESPACE = "http://MFT-01-00.abb.vlaanderen.be/Borderel"
MANIFEST_SCHEMA_LOCATION = "http://MFT-01-00.abb.vlaanderen.be/Borderel Borderel.xsd"

PUBLICATION_ROOT = "n1:PublicatieBeleidsrapport"
PUBLICATION_NAMESPACE = "http://PUB_Beleidsrapport-01-00.abb.vlaanderen.be/Borderel"
PUBLICATION_SCHEMA_LOCATION = "http://PUB_Beleidsrapport-01-00.abb.vlaanderen.be/Borderel/Publicatie.xsd"

ROUTING_ENTITY = "ABB"
ROUTING_APPLICATION = "DIGITAAL TOEZICHT"
ROUTING_FLOW = "PUBLICATIE"


def _root(name: str, schema_location: str, prefix: str, namespace: str) -> ET.Element:
    return ET.Element(
        name,
        {
            "xsi:schemaLocation": schema_location,
            "xmlns:xsi": XSI_NAMESPACE,
            f"xmlns:{prefix}": namespace,
        },
    )


def _text(parent: ET.Element, tag: str, value: str) -> ET.Element:
    child = ET.SubElement(parent, tag)
    child.text = value
    return child


def _parameter(parent: ET.Element, tag: str, name: str, value: str) -> None:
    """Append ``<tag><ParameterParameterWaarde>`` holding one key/value pair."""
    pair = ET.SubElement(ET.SubElement(parent, tag), "ParameterParameterWaarde")
    _text(pair, "Parameter", name)
    _text(pair, "ParameterWaarde", value)


def render_manifest(
    dossier: Dossier,
    files: Sequence[DossierFile],
    has_publication: bool = True,
) -> bytes:
    """Serialise the Borderel document."""
    root = _root(MANIFEST_ROOT, MANIFEST_SCHEMA_LOCATION, "ns1", MANIFEST_NAMESPACE)

    entry_names = [f.filename for f in files]
    if has_publication:
        entry_names.append(PUBLICATION_ENTRY_NAME)
    for entry_name in entry_names:
        bestand = ET.SubElement(ET.SubElement(root, "ns1:Bestanden"), "Bestand")
        _text(bestand, "Bestandsnaam", entry_name)

    routing = ET.SubElement(root, "ns1:RouteringsMetadata")
    _text(routing, "Entiteit", ROUTING_ENTITY)
    _text(routing, "Toepassing", ROUTING_APPLICATION)
    _parameter(routing, "ParameterSet", "SLEUTEL", dossier.kbo_number)
    _parameter(routing, "ParameterSet", "FLOW", ROUTING_FLOW)

    return _serialise(root)


def publication_parameters(dossier: Dossier) -> list[tuple[str, str]]:
    """Fixed-order publication key/value pairs; absent values render empty."""
    return [
        ("Ondernemingsnummer", dossier.kbo_number),
        ("MaatschappelijkeNaam", dossier.organization_name),
        ("TypeBestuur", dossier.classification_label),
        ("RapportCode", dossier.decision_type_label),
        ("Boekjaar", dossier.fiscal_year or ""),
        ("Status", dossier.authenticity_status or ""),
        ("DatumGoedkeuring", dossier.decision_date.strftime("%Y-%m-%d") if dossier.decision_date else ""),
    ]


def render_publication_metadata(dossier: Dossier) -> bytes:
    """Serialise the PublicatieBeleidsrapport document."""
    root = _root(PUBLICATION_ROOT, PUBLICATION_SCHEMA_LOCATION, "n1", PUBLICATION_NAMESPACE)
    for name, value in publication_parameters(dossier):
        _parameter(root, "n1:ParameterSet", name, value)
    return _serialise(root)


def _serialise(root: ET.Element) -> bytes:
    ET.indent(root, space="  ")
    return ET.tostring(root, encoding="UTF-8", xml_declaration=True)


class DescriptorBuilder:
    """
    Writes descriptor documents to uniquely named files in ``work_dir``.

    Each build method returns the path of the written file; the caller owns
    its deletion (see :func:`descriptor_files` for scoped handling).
    """

    def __init__(self, work_dir: str | Path) -> None:
        self.work_dir = Path(work_dir)

    def build_manifest(
        self,
        dossier: Dossier,
        files: Sequence[DossierFile],
        has_publication: bool = True,
    ) -> Path:
        return self._write(dossier, "borderel", render_manifest(dossier, files, has_publication))

    def build_publication_metadata(self, dossier: Dossier) -> Path:
        return self._write(dossier, "publicatie", render_publication_metadata(dossier))

    def _write(self, dossier: Dossier, kind: str, document: bytes) -> Path:
        try:
            self.work_dir.mkdir(parents=True, exist_ok=True)
            fd, name = tempfile.mkstemp(
                prefix=f"{dossier.id}-",
                suffix=f"-{kind}.xml",
                dir=self.work_dir,
            )
            with os.fdopen(fd, "wb") as handle:
                handle.write(document)
        except OSError as exc:
            raise DescriptorError(
                f"Failed to write {kind} descriptor: {exc}",
                dossier_id=dossier.id,
                graph=dossier.graph,
            ) from exc
        logger.debug("Descriptor written", dossier_id=dossier.id, kind=kind, path=name)
        return Path(name)


@dataclass(frozen=True)
class DescriptorPaths:
    manifest: Path
    publication: Path


@contextmanager
def descriptor_files(
    builder: DescriptorBuilder,
    dossier: Dossier,
    files: Sequence[DossierFile],
) -> Iterator[DescriptorPaths]:
    """Build both descriptors and remove them on every exit path."""
    created: list[Path] = []
    try:
        publication = builder.build_publication_metadata(dossier)
        created.append(publication)
        manifest = builder.build_manifest(dossier, files, has_publication=True)
        created.append(manifest)
        yield DescriptorPaths(manifest=manifest, publication=publication)
    finally:
        for path in created:
            path.unlink(missing_ok=True)
