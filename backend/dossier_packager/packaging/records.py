"""
Typed records exchanged at the store boundary.

Rows coming out of the store are validated on construction: a missing
required field raises ``pydantic.ValidationError`` instead of flowing
through the pipeline as an undefined value.  Optional upstream attributes
stay ``None`` rather than being defaulted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from dossier_packager.core.constants import PACKAGE_EXTENSION, PACKAGE_FORMAT
from dossier_packager.db.models.base import utcnow


class Dossier(BaseModel):
    """A dossier selected for packaging, joined with its naming metadata."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    uri: str = Field(min_length=1)
    graph: str = Field(min_length=1)
    decision_type_label: str
    organization_name: str
    classification_label: str
    kbo_number: str
    authenticity_status: str | None = None
    fiscal_year: str | None = None
    decision_date: datetime | None = None
    status: str | None = None


class DossierFile(BaseModel):
    """A file attached to a dossier; read-only input to packaging."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    uri: str = Field(min_length=1)
    filename: str = Field(min_length=1)
    format: str
    size: int = Field(ge=0)


@dataclass
class PackageArtifact:
    """A produced delivery bundle, ready to be registered."""

    id: str
    filename: str
    uri: str
    created: datetime = field(default_factory=utcnow)
    format: str = PACKAGE_FORMAT
    file_extension: str = PACKAGE_EXTENSION
