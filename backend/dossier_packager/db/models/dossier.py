"""
Dossier — a submission for supervision (InzendingVoorToezicht).

One row per submission, stored in the submitting organization's partition.
`packaging_status` is NULL until the packaging service picks the dossier up.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dossier_packager.db.models.base import Base, generate_uuid, utcnow


class Dossier(Base):
    """A Toezicht submission and its packaging state."""

    __tablename__ = "dossiers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    uri: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)
    graph: Mapped[str] = mapped_column(String(500), nullable=False, index=True)

    # ── Upstream submission ───────────────────
    submission_status: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    decision_type_uri: Mapped[str] = mapped_column(
        String(500), ForeignKey("decision_types.uri"), nullable=False
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id"), nullable=False, index=True
    )
    authenticity_type_uri: Mapped[Optional[str]] = mapped_column(
        String(500), ForeignKey("authenticity_types.uri"), nullable=True
    )
    fiscal_year: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    session_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    modified: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    # ── Packaging ─────────────────────────────
    packaging_status: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, index=True)
    package_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("packages.id"), nullable=True
    )

    # ── Relationships ─────────────────────────
    files = relationship("DossierFile", back_populates="dossier", cascade="all, delete-orphan")
    package = relationship("Package")

    def __repr__(self) -> str:
        return f"<Dossier {self.id} graph={self.graph} status={self.packaging_status}>"
