"""
Packaging trigger endpoint.

Synchronous accept, asynchronous work: the response only reports whether
a batch was started.  Per-dossier outcomes are recorded on the dossiers.
"""

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from dossier_packager.api.deps import get_orchestrator
from dossier_packager.core.constants import TriggerOutcome
from dossier_packager.packaging.orchestrator import PackagingOrchestrator

router = APIRouter(tags=["Packaging"])


@router.post(
    "/package-toezicht-dossiers/",
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        204: {"description": "No eligible dossiers found"},
        500: {"description": "Batch not started (selection failed)"},
        503: {"description": "A previous batch is still in flight"},
    },
)
async def package_toezicht_dossiers(
    orchestrator: PackagingOrchestrator = Depends(get_orchestrator),
) -> Response:
    """
    Start packaging every eligible dossier.

    503 while a previous batch is running, 204 when nothing is eligible,
    202 once the batch is accepted.
    """
    result = await orchestrator.trigger()

    if result.outcome == TriggerOutcome.ALREADY_RUNNING:
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    if result.outcome == TriggerOutcome.NOTHING_TO_DO:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content={"status": 202, "title": "processing"},
    )
