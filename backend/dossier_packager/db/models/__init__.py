"""
Models package — re-exports Base and all models.

Import models here so `Base.metadata` picks up every table automatically.

When adding a new model:
    1. Create `dossier_packager/db/models/<table_name>.py`
    2. Import it here
"""

from dossier_packager.db.models.base import Base
from dossier_packager.db.models.organization import AuthenticityType, DecisionType, Organization
from dossier_packager.db.models.package import Package
from dossier_packager.db.models.dossier import Dossier
from dossier_packager.db.models.file import DossierFile

__all__ = [
    "Base",
    "AuthenticityType",
    "DecisionType",
    "Organization",
    "Package",
    "Dossier",
    "DossierFile",
]
