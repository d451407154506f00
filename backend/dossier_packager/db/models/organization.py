"""
Reference data living in the public partition: administrative units
(organizations), decision types and authenticity types.
"""

from __future__ import annotations

import uuid

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from dossier_packager.db.models.base import Base, generate_uuid


class Organization(Base):
    """An administrative unit (bestuurseenheid) submitting dossiers."""

    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    # mu:uuid of the unit; its organization partition is derived from it
    group_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    uri: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    kbo_number: Mapped[str] = mapped_column(String(32), nullable=False)
    classification_label: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Organization {self.group_id} {self.classification_label} {self.name}>"


class DecisionType(Base):
    """Decision type concept with its preferred label."""

    __tablename__ = "decision_types"

    uri: Mapped[str] = mapped_column(String(500), primary_key=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False)


class AuthenticityType(Base):
    """Authenticity type concept with its preferred label."""

    __tablename__ = "authenticity_types"

    uri: Mapped[str] = mapped_column(String(500), primary_key=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
