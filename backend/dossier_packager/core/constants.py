"""Shared constants and enums used across the application."""

from enum import StrEnum


class PackagingStatus(StrEnum):
    """Internal packaging status of a Toezicht dossier.

    Unset is represented by the absence of a status (NULL column).
    """

    PROCESSING = "http://mu.semte.ch/vocabularies/ext/toezicht-status/PACKAGING"
    PACKAGED = "http://mu.semte.ch/vocabularies/ext/toezicht-status/PACKAGED"
    PACKAGING_FAILED = "http://mu.semte.ch/vocabularies/ext/toezicht-status/PACKAGING_FAILED"


class TriggerOutcome(StrEnum):
    """Result of a batch trigger."""

    ALREADY_RUNNING = "ALREADY_RUNNING"
    NOTHING_TO_DO = "NOTHING_TO_DO"
    ACCEPTED = "ACCEPTED"


# Upstream document status a dossier must carry to be packaged
SUBMISSION_STATUS_SENT = "http://data.lblod.info/document-statuses/verstuurd"

# Decision types that produce a financial delivery bundle
PACKAGED_DECISION_TYPES: tuple[str, ...] = (
    "http://data.lblod.info/DecisionType/80536574a0ec8ea88685510b713aa566a5f16cfd575fabd8f7943bccaaad00e4",
    "http://data.lblod.info/DecisionType/d6e90eb6e3ceda4f9a47b214b3ab47274670d3621f34bf8984f4c7d99f97dcc2",
    "http://data.lblod.info/DecisionType/26697366c439cac0fd35581416baffec2368d765d61888bfb4bafd22ddbc8b33",
)

# ── Archive layout ───────────────────────────
# Entry names are validated case-sensitively by the receiving schema.
MANIFEST_ENTRY_NAME = "Borderel.xml"
PUBLICATION_ENTRY_NAME = "Publicatie.xml"

PACKAGE_FORMAT = "application/zip"
PACKAGE_EXTENSION = "zip"
PACKAGE_FILENAME_PREFIX = "Inzending_financieel"

SHARE_URI_SCHEME = "share://"
