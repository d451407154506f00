"""
SQLAlchemy declarative base and shared utilities for all models.

Convention:
    - Each table lives in its own file under `dossier_packager/db/models/`
    - Every model file imports `Base` from here
    - The `__init__.py` re-exports all models so `Base.metadata` sees them
    - Every store partition ("graph") is an explicit `graph` column
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


# ─── Shared helpers ───────────────────────────
def generate_uuid() -> uuid.UUID:
    """Generate a new UUID v4."""
    return uuid.uuid4()


def utcnow() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)
