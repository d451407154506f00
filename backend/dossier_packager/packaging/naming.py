"""Deterministic filenames for delivery bundles."""

from __future__ import annotations

import re
from datetime import datetime, timezone

from dossier_packager.core.constants import PACKAGE_EXTENSION, PACKAGE_FILENAME_PREFIX
from dossier_packager.packaging.records import Dossier

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def strip_non_alphanumeric(value: str) -> str:
    """Drop every character outside ASCII letters and digits."""
    return _NON_ALPHANUMERIC.sub("", value)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC instant with milliseconds, ``:`` and ``.`` replaced by ``_``."""
    moment = moment.astimezone(timezone.utc)
    iso = moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"
    return re.sub(r"[.:]", "_", iso)


def compact_date(value: datetime | None) -> str:
    return value.strftime("%Y%m%d") if value else ""


def generate_package_filename(
    dossier: Dossier,
    package_id: str,
    *,
    now: datetime | None = None,
) -> str:
    """
    Build ``Inzending_financieel_<org>_<type>_<status>_<year>_<date>_<ts>_<id>.zip``.

    Absent optional attributes render as empty segments.
    """
    organization = strip_non_alphanumeric(
        f"{dossier.classification_label}_{dossier.organization_name}"
    )
    decision_type = strip_non_alphanumeric(dossier.decision_type_label)
    timestamp = format_timestamp(now or datetime.now(timezone.utc))
    segments = [
        PACKAGE_FILENAME_PREFIX,
        organization,
        decision_type,
        dossier.authenticity_status or "",
        dossier.fiscal_year or "",
        compact_date(dossier.decision_date),
        timestamp,
        package_id,
    ]
    return "_".join(segments) + f".{PACKAGE_EXTENSION}"
