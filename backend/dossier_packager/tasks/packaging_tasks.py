"""
Celery tasks — periodic packaging trigger.

Beat fires `trigger_packaging` on the configured cron pattern; the task
POSTs to the packaging endpoint, so the run gate in the API process stays
the single place that decides whether a batch may start.
"""

from __future__ import annotations

import httpx

from dossier_packager.core.config import settings
from dossier_packager.core.logging import get_logger
from dossier_packager.tasks import celery_app

logger = get_logger(__name__)


def post_trigger(
    url: str,
    *,
    client: httpx.Client | None = None,
    timeout: float = 30.0,
) -> int:
    """POST to the trigger endpoint and return its status code.

    202, 204 and 503 are all normal outcomes of a tick.  Anything else
    (including any other 2xx, or a transport failure) is raised.
    """
    owns_client = client is None
    client = client or httpx.Client(timeout=timeout)
    try:
        response = client.post(url)
    finally:
        if owns_client:
            client.close()

    code = response.status_code
    if code == httpx.codes.ACCEPTED:
        logger.info("Packaging batch started", url=url, body=response.json())
    elif code == httpx.codes.NO_CONTENT:
        logger.info("No dossiers to package", url=url)
    elif code == httpx.codes.SERVICE_UNAVAILABLE:
        logger.info("Packaging batch still running, tick skipped", url=url)
    else:
        logger.error("Packaging trigger failed", url=url, status_code=code)
        response.raise_for_status()
        raise httpx.HTTPStatusError(
            f"Unexpected status {code} from packaging trigger {url}",
            request=response.request,
            response=response,
        )
    return code


@celery_app.task(bind=True, name="dossier_packager.tasks.packaging_tasks.trigger_packaging")
def trigger_packaging(self) -> int:
    """Periodic tick: ask the API process to start a packaging batch."""
    logger.info("Packaging tick", task_id=self.request.id)
    return post_trigger(
        settings.PACKAGING_TRIGGER_URL,
        timeout=settings.PACKAGING_TRIGGER_TIMEOUT,
    )
