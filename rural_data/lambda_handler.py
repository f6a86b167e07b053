"""
Serverless entry point for scheduled data updates.

Deployed as the target of a platform schedule (e.g. an EventBridge rule);
each invocation runs one refresh of every source.
"""

import asyncio
import json
import logging

from .application.domain import utcnow
from .application.exceptions import RuralDataError
from .application.service import RuralDataService
from .infrastructure.cache_models import SummaryFile
from .infrastructure.containers import Container

logger = logging.getLogger()
logger.setLevel(logging.INFO)

_SOURCE = "aws-scheduled"


def _response(status_code: int, body: dict) -> dict:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


async def run_scheduled_update(service: RuralDataService) -> dict:
    """Runs one refresh and shapes the outcome as an HTTP-style response."""
    try:
        summary = await service.refresh()
    except (RuralDataError, OSError) as e:
        logger.error(f"Scheduled update failed: {e}")
        return _response(500, {
            "success": False,
            "error": str(e),
            "timestamp": utcnow().isoformat(),
            "source": _SOURCE,
        })

    results = SummaryFile.from_domain(summary).model_dump(
        mode="json", by_alias=True, exclude_none=True
    )["results"]
    logger.info(f"Scheduled update completed: {results}")

    return _response(200, {
        "success": True,
        "message": "Scheduled data update completed successfully",
        "timestamp": utcnow().isoformat(),
        "results": results,
        "source": _SOURCE,
    })


async def _handle() -> dict:
    container = Container()
    try:
        return await run_scheduled_update(container.rural_data_service())
    finally:
        await container.http_client().aclose()


def handler(event, context):
    logger.info("Starting scheduled data update...")
    logger.info(f"Event source: {(event or {}).get('source', 'EventBridge')}")
    return asyncio.run(_handle())
