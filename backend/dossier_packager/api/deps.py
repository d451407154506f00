"""Shared dependencies for API routes."""

from __future__ import annotations

from fastapi import Request

from dossier_packager.packaging.orchestrator import PackagingOrchestrator


def get_orchestrator(request: Request) -> PackagingOrchestrator:
    """Return the process-wide orchestrator built during application startup."""
    return request.app.state.orchestrator
