"""
Thumbnail — Event Grid webhook route.

Event Grid pushes batches of events to this endpoint.  The status code tells
Event Grid what to do with the batch:

  200  processed or skipped
  400  unparseable batch or a fatal failure (bad name, upscale); dead-lettered
  503  a transient failure; Event Grid redelivers with backoff
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from thumbnailer.exceptions import MalformedEventError
from thumbnailer.thumbnail import controller
from thumbnailer.thumbnail.constants import ThumbnailStatus
from thumbnailer.thumbnail.generator import ThumbnailGenerator

router = APIRouter(prefix="/events", tags=["events"])

_STATUS_CODES = {
    ThumbnailStatus.FATAL_ERROR: status.HTTP_400_BAD_REQUEST,
    ThumbnailStatus.RETRYABLE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_generator(request: Request) -> ThumbnailGenerator:
    return request.app.state.generator


@router.post(
    "/storage",
    summary="Receive Event Grid storage events",
    description=(
        "Accepts a single Event Grid event or a batch. Answers the subscription "
        "validation handshake and generates a thumbnail for every "
        "Microsoft.Storage.BlobCreated event."
    ),
)
def receive_storage_events(
    payload: list[dict[str, Any]] | dict[str, Any] = Body(...),
    generator: ThumbnailGenerator = Depends(get_generator),
) -> JSONResponse:
    try:
        events = controller.parse_event_grid(payload)
    except MalformedEventError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    code = controller.validation_code(events)
    if code is not None:
        return JSONResponse({"validationResponse": code})

    results = controller.process_event_grid(events, generator)
    failure = controller.first_failure(results)
    return JSONResponse(
        {"results": [r.to_dict() for r in results]},
        status_code=_STATUS_CODES[failure.status] if failure else status.HTTP_200_OK,
    )
