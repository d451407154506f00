"""
Logical file references (``share://the/path``) ↔ local paths under the
storage root.
"""

from __future__ import annotations

from pathlib import Path

from dossier_packager.core.constants import SHARE_URI_SCHEME
from dossier_packager.packaging.errors import StorageError


class FileStorage:
    """Resolves ``share://`` references against a local storage root."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def to_path(self, uri: str) -> Path:
        """Convert ``share://a/b.pdf`` to ``<root>/a/b.pdf``."""
        if not uri.startswith(SHARE_URI_SCHEME):
            raise StorageError(f"Not a share:// reference: '{uri}'")
        relative = uri[len(SHARE_URI_SCHEME):]
        candidate = (self.root / relative).resolve()
        if not candidate.is_relative_to(self.root.resolve()):
            raise StorageError(f"Reference escapes the storage root: '{uri}'")
        return candidate

    def to_uri(self, path: str | Path) -> str:
        """Convert a path under the storage root back to its ``share://`` reference."""
        resolved = Path(path).resolve()
        try:
            relative = resolved.relative_to(self.root.resolve())
        except ValueError as exc:
            raise StorageError(f"Path is outside the storage root: '{path}'") from exc
        return f"{SHARE_URI_SCHEME}{relative.as_posix()}"
