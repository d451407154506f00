"""
The registered delivery bundle (zip) produced for a dossier.

Stored in the shared file partition.  At most one per dossier; linked from
`dossiers.package_id`.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from dossier_packager.core.constants import PACKAGE_EXTENSION, PACKAGE_FORMAT
from dossier_packager.db.models.base import Base, utcnow


class Package(Base):
    """A packaged zip archive and its file metadata."""

    __tablename__ = "packages"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    uri: Mapped[str] = mapped_column(String(1000), unique=True, nullable=False)
    graph: Mapped[str] = mapped_column(String(500), nullable=False)
    filename: Mapped[str] = mapped_column(String(500), nullable=False)
    format: Mapped[str] = mapped_column(String(255), nullable=False, default=PACKAGE_FORMAT)
    file_extension: Mapped[str] = mapped_column(String(16), nullable=False, default=PACKAGE_EXTENSION)
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Package {self.id} {self.filename}>"
