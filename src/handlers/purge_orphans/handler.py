"""
Scheduled Lambda handler retrying removal of orphaned objects.

Invoked by an EventBridge schedule rather than API Gateway; failures are
raised so the invocation is reported as failed and retried.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.services.factory import get_image_service
from core.utils.events import request_deadline

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    logger.info(
        "Starting orphan cleanup",
        extra={
            "request_id": getattr(context, "aws_request_id", None),
            "source": event.get("source"),
            "scheduled_at": event.get("time"),
        },
    )

    service = get_image_service()
    removed = service.purge_orphans(deadline=request_deadline(context, service))

    metrics.add_metric(name="OrphansRemoved", unit=MetricUnit.Count, value=removed)
    logger.info("Orphan cleanup finished", extra={"removed": removed})

    return {"removed": removed}
