"""Application-level FastAPI exception handlers."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from dossier_packager.core.logging import get_logger
from dossier_packager.packaging.errors import PackagingError, SelectionError

logger = get_logger(__name__)


def _error_body(code: int, title: str) -> dict:
    return {"status": code, "title": title}


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""

    @app.exception_handler(SelectionError)
    async def selection_error_handler(request: Request, exc: SelectionError) -> JSONResponse:
        logger.error("Packaging batch not started", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(500, str(exc)),
        )

    @app.exception_handler(PackagingError)
    async def packaging_error_handler(request: Request, exc: PackagingError) -> JSONResponse:
        logger.error("Packaging request failed", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(500, str(exc)),
        )
