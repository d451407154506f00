"""
Writes the delivery bundle.

Layout of every bundle:
    <stored filename>   one entry per attached file
    Borderel.xml        manifest descriptor
    Publicatie.xml      publication descriptor

Assembly is strict: a missing source, a duplicate entry name (which the
zip layer would only warn about) or any I/O error fails the whole bundle
and the partial archive is removed.
"""

from __future__ import annotations

import asyncio
import zipfile
from collections.abc import Sequence
from pathlib import Path

from dossier_packager.core.constants import MANIFEST_ENTRY_NAME, PUBLICATION_ENTRY_NAME
from dossier_packager.core.logging import get_logger
from dossier_packager.packaging.errors import ArchiveError, StorageError
from dossier_packager.packaging.records import DossierFile
from dossier_packager.packaging.storage import FileStorage

logger = get_logger(__name__)

COMPRESSION_LEVEL = 9


class ArchiveAssembler:
    """Streams source files and descriptors into a max-compression zip."""

    def __init__(self, storage: FileStorage) -> None:
        self.storage = storage

    async def assemble(
        self,
        target_name: str,
        files: Sequence[DossierFile],
        manifest_path: Path,
        publication_path: Path,
    ) -> str:
        """
        Write ``<storage root>/<target_name>`` and return its ``share://`` reference.

        The two descriptor files are deleted once the archive is complete.

        Raises:
            ArchiveError: on any failure; no archive is left behind.
        """
        target = self.storage.root / target_name
        entries = self._plan_entries(files, manifest_path, publication_path)

        try:
            size = await asyncio.to_thread(self._write, target, entries)
        except Exception as exc:
            target.unlink(missing_ok=True)
            raise ArchiveError(
                f"Failed to write archive {target_name}: {exc}",
                details={"target": str(target)},
            ) from exc

        manifest_path.unlink(missing_ok=True)
        publication_path.unlink(missing_ok=True)

        logger.info("Archive created", path=str(target), bytes=size, entries=len(entries))
        return self.storage.to_uri(target)

    def _plan_entries(
        self,
        files: Sequence[DossierFile],
        manifest_path: Path,
        publication_path: Path,
    ) -> list[tuple[Path, str]]:
        """Resolve (source path, entry name) pairs; reject duplicate entry names."""
        try:
            entries = [(self.storage.to_path(f.uri), f.filename) for f in files]
        except StorageError as exc:
            raise ArchiveError(f"Cannot resolve bundle source: {exc}") from exc
        entries.append((manifest_path, MANIFEST_ENTRY_NAME))
        entries.append((publication_path, PUBLICATION_ENTRY_NAME))

        seen: set[str] = set()
        for _, name in entries:
            if name in seen:
                raise ArchiveError(f"Duplicate archive entry name: '{name}'")
            seen.add(name)
        return entries

    @staticmethod
    def _write(target: Path, entries: list[tuple[Path, str]]) -> int:
        target.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(
            target,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=COMPRESSION_LEVEL,
        ) as bundle:
            for source, name in entries:
                if not source.is_file():
                    raise FileNotFoundError(f"Source file not found: {source}")
                bundle.write(source, arcname=name)
        return target.stat().st_size
