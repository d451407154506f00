"""
One row per file attached to a dossier.

File metadata lives in the shared file partition; the link to the dossier
(`dossier_id`) belongs to the dossier's own partition.
"""

from __future__ import annotations

import uuid

from sqlalchemy import BigInteger, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dossier_packager.db.models.base import Base, generate_uuid


class DossierFile(Base):
    """A physical file attached to a dossier."""

    __tablename__ = "dossier_files"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    dossier_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("dossiers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    graph: Mapped[str] = mapped_column(String(500), nullable=False, index=True)

    # ── File identity ─────────────────────────
    uri: Mapped[str] = mapped_column(String(1000), nullable=False)   # share://...
    filename: Mapped[str] = mapped_column(String(500), nullable=False)
    format: Mapped[str] = mapped_column(String(255), nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    dossier = relationship("Dossier", back_populates="files")

    def __repr__(self) -> str:
        return f"<DossierFile {self.filename} uri={self.uri}>"
