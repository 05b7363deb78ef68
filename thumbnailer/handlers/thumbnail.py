"""
AWS Lambda handler — Thumbnail generation

Triggered by:
  1. S3 ObjectCreated notification (direct invoke or SQS-wrapped)
  2. Event Grid BlobCreated event(s) forwarded as the invoke payload

Flow:
  1. Unwraps the payload into one CreationEvent per created object.
  2. Runs each through the ThumbnailGenerator.
  3. Re-raises the first failure so the runtime marks the invocation failed
     and the event source (S3 async invoke, SQS, Event Grid) redelivers.

Environment variables:
  THUMBNAIL_WIDTH    — target width in pixels (required)
  NAMING_CONVENTION  — split | prefix (default split)
  STORAGE_BACKEND    — s3 | azure (default s3)
  AWS_REGION         — AWS region (set by Lambda runtime)
"""
from __future__ import annotations

import logging
from typing import Any

from thumbnailer.config import load_settings
from thumbnailer.storage import build_blob_store
from thumbnailer.thumbnail import controller
from thumbnailer.thumbnail.generator import ThumbnailGenerator

logger = logging.getLogger()
logger.setLevel(logging.INFO)

_generator: ThumbnailGenerator | None = None


def get_generator() -> ThumbnailGenerator:
    """Build the generator on first use and keep it for warm invocations."""
    global _generator
    if _generator is None:
        settings = load_settings()
        logger.setLevel(settings.log_level.upper())
        _generator = ThumbnailGenerator(settings, build_blob_store(settings))
    return _generator


def handler(event: dict[str, Any] | list[dict[str, Any]], context: object) -> dict:
    """Lambda entry point — processes S3, SQS or Event Grid payloads."""
    generator = get_generator()

    if isinstance(event, dict) and "Records" in event:
        results = controller.process_s3_records(event["Records"], generator)
    else:
        events = controller.parse_event_grid(event)
        results = controller.process_event_grid(events, generator)

    failure = controller.first_failure(results)
    if failure is not None:
        failure.raise_for_status()

    return {"statusCode": 200, "results": [r.to_dict() for r in results]}
