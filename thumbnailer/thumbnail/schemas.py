"""
Thumbnail — Pydantic V2 event payloads and value objects.
"""
from __future__ import annotations

import urllib.parse
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from thumbnailer.exceptions import MalformedEventError
from thumbnailer.thumbnail.constants import ThumbnailStatus


# ── Base ─────────────────────────────────────────────────────────────────────

class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ── Event payloads ───────────────────────────────────────────────────────────

class EventGridEvent(BaseModel):
    """Event Grid schema envelope. Only the fields used here are modelled."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = ""
    event_type: str
    subject: str = ""
    data: dict[str, Any] = Field(default_factory=dict)


class CreationEvent(_Frozen):
    """A newly created storage object, identified by its URL."""
    url: str = Field(min_length=1)

    @classmethod
    def from_event_grid(cls, payload: dict[str, Any] | EventGridEvent) -> CreationEvent:
        """Read ``data.url`` from an Event Grid BlobCreated event."""
        try:
            event = (
                payload
                if isinstance(payload, EventGridEvent)
                else EventGridEvent.model_validate(payload)
            )
            return cls(url=event.data.get("url", ""))
        except ValidationError as exc:
            raise MalformedEventError(str(exc)) from exc

    @classmethod
    def from_s3_record(cls, record: dict[str, Any]) -> CreationEvent:
        """Build an ``s3://bucket/key`` event from an S3 notification record."""
        s3_info = record.get("s3", {})
        bucket = s3_info.get("bucket", {}).get("name", "")
        # S3 notifications form-encode keys ("my photo.jpg" -> "my+photo.jpg")
        key = urllib.parse.unquote_plus(s3_info.get("object", {}).get("key", ""))
        if not bucket or not key:
            raise MalformedEventError("missing bucket or key in S3 record")
        return cls(url=f"s3://{bucket}/{urllib.parse.quote(key)}")


# ── Value objects ────────────────────────────────────────────────────────────

class BlobLocation(_Frozen):
    container: str
    key: str


class ParsedName(_Frozen):
    destination_container: str
    destination_key: str


class DimensionPlan(_Frozen):
    width: int
    height: int
    divisor: int = 1


# ── Result ───────────────────────────────────────────────────────────────────

@dataclass
class ThumbnailResult:
    """Outcome of one ThumbnailGenerator.run invocation."""

    status: ThumbnailStatus
    source_url: str = ""
    destination: ParsedName | None = None
    plan: DimensionPlan | None = None
    reason: str | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.status in (ThumbnailStatus.COMPLETED, ThumbnailStatus.SKIPPED)

    def raise_for_status(self) -> None:
        """Re-raise the captured exception, unchanged, for failed results."""
        if self.error is not None and not self.ok:
            raise self.error

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "status": self.status.value,
            "source_url": self.source_url,
        }
        if self.destination is not None:
            result["container"] = self.destination.destination_container
            result["key"] = self.destination.destination_key
        if self.plan is not None:
            result["width"] = self.plan.width
            result["height"] = self.plan.height
        if self.reason:
            result["reason"] = self.reason
        if self.error is not None:
            result["message"] = str(self.error)
        return result
