"""
Thumbnail — controller layer.

Turns delivered payloads (Event Grid batches, S3/SQS records) into
CreationEvents, runs them through the generator and summarises the results
for the delivery surface.
"""
from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from thumbnailer.exceptions import MalformedEventError
from thumbnailer.thumbnail.constants import (
    BLOB_CREATED_EVENT,
    SUBSCRIPTION_VALIDATION_EVENT,
    ThumbnailStatus,
)
from thumbnailer.thumbnail.schemas import CreationEvent, EventGridEvent, ThumbnailResult

if TYPE_CHECKING:
    from thumbnailer.thumbnail.generator import ThumbnailGenerator

logger = logging.getLogger(__name__)


def parse_event_grid(payload: list[dict[str, Any]] | dict[str, Any]) -> list[EventGridEvent]:
    """Validate a single Event Grid event or a batch of them."""
    items = payload if isinstance(payload, list) else [payload]
    try:
        return [EventGridEvent.model_validate(item) for item in items]
    except ValidationError as exc:
        raise MalformedEventError(str(exc)) from exc


def validation_code(events: list[EventGridEvent]) -> str | None:
    """Return the handshake code if the batch is a subscription validation."""
    for event in events:
        if event.event_type == SUBSCRIPTION_VALIDATION_EVENT:
            return event.data.get("validationCode")
    return None


def process_event_grid(
    events: list[EventGridEvent], generator: ThumbnailGenerator,
) -> list[ThumbnailResult]:
    results = []
    for event in events:
        if event.event_type != BLOB_CREATED_EVENT:
            logger.info("Ignoring Event Grid event %s (%s)", event.id, event.event_type)
            results.append(
                ThumbnailResult(
                    status=ThumbnailStatus.SKIPPED,
                    source_url=event.data.get("url", ""),
                    reason=f"ignored event type {event.event_type}",
                )
            )
            continue
        results.append(generator.run(event))
    return results


def process_s3_records(
    records: list[dict[str, Any]], generator: ThumbnailGenerator,
) -> list[ThumbnailResult]:
    """Run S3 notification records, unwrapping SQS-delivered batches."""
    results = []
    for record in records:
        # SQS wrapper: the S3 notification is the message body
        if record.get("eventSource") == "aws:sqs":
            body = json.loads(record.get("body", "{}"))
            s3_records = body.get("Records", [])
        else:
            s3_records = [record]

        for s3_record in s3_records:
            try:
                event = CreationEvent.from_s3_record(s3_record)
            except MalformedEventError as exc:
                logger.error("Bad S3 record %s: %s", s3_record, exc)
                results.append(
                    ThumbnailResult(status=ThumbnailStatus.RETRYABLE_ERROR, error=exc)
                )
                continue
            results.append(generator.run(event))
    return results


def first_failure(results: list[ThumbnailResult]) -> ThumbnailResult | None:
    """Fatal failures win over retryable ones."""
    failures = [r for r in results if not r.ok]
    for result in failures:
        if result.status is ThumbnailStatus.FATAL_ERROR:
            return result
    return failures[0] if failures else None
