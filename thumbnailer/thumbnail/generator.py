"""
ThumbnailGenerator — one pass per blob-created event.

Flow:
  1. Parse the event and the blob URL; pick an encoder from the extension
     (unsupported extension -> SKIPPED).
  2. Read the source bytes (absent blob -> SKIPPED).
  3. Derive the destination container/key and make sure the container exists.
  4. Decode with Pillow, plan dimensions, resize, encode in the original format.
  5. Upload, overwriting any previous thumbnail.

Every failure is logged and captured in the returned ThumbnailResult; the
caller decides whether to re-raise it (ThumbnailResult.raise_for_status).
"""
from __future__ import annotations

import io
import logging
from typing import Any

from PIL import Image, ImageSequence

from thumbnailer.config import Settings
from thumbnailer.exceptions import ConfigurationError, InvalidNameError, UpscaleNotSupported
from thumbnailer.storage import BlobStore
from thumbnailer.thumbnail.constants import ENCODER_MODES, Encoder, ResampleFilter, ThumbnailStatus
from thumbnailer.thumbnail.schemas import CreationEvent, DimensionPlan, EventGridEvent, ThumbnailResult
from thumbnailer.thumbnail.service import (
    derive_destination,
    extension_of,
    parse_blob_url,
    plan_dimensions,
    select_encoder,
)

logger = logging.getLogger(__name__)

_RESAMPLE = {
    ResampleFilter.NEAREST: Image.Resampling.NEAREST,
    ResampleFilter.BILINEAR: Image.Resampling.BILINEAR,
    ResampleFilter.BICUBIC: Image.Resampling.BICUBIC,
    ResampleFilter.LANCZOS: Image.Resampling.LANCZOS,
}

# Retrying these cannot succeed; everything else is treated as transient
_FATAL_ERRORS = (ConfigurationError, InvalidNameError, UpscaleNotSupported)


class ThumbnailGenerator:
    """Resize newly created image blobs to the configured width."""

    def __init__(self, settings: Settings, store: BlobStore) -> None:
        self._settings = settings
        self._store = store

    def run(self, event: CreationEvent | EventGridEvent | dict[str, Any]) -> ThumbnailResult:
        source_url = ""
        try:
            creation = (
                event if isinstance(event, CreationEvent) else CreationEvent.from_event_grid(event)
            )
            source_url = creation.url
            return self._process(creation)
        except Exception as exc:
            logger.exception("Thumbnail generation failed for %s: %s", source_url or event, exc)
            status = (
                ThumbnailStatus.FATAL_ERROR
                if isinstance(exc, _FATAL_ERRORS)
                else ThumbnailStatus.RETRYABLE_ERROR
            )
            return ThumbnailResult(status=status, source_url=source_url, error=exc)

    def _process(self, event: CreationEvent) -> ThumbnailResult:
        source = parse_blob_url(event.url)
        encoder = select_encoder(extension_of(source.key))
        if encoder is None:
            logger.info("No encoder support for: %s", event.url)
            return ThumbnailResult(
                status=ThumbnailStatus.SKIPPED,
                source_url=event.url,
                reason="unsupported extension",
            )

        data = self._store.read(event.url)
        if data is None:
            logger.info("Source blob is absent, nothing to do: %s", event.url)
            return ThumbnailResult(
                status=ThumbnailStatus.SKIPPED,
                source_url=event.url,
                reason="source blob not found",
            )

        destination = derive_destination(
            source, self._settings.naming_convention, self._settings.thumbnail_prefix,
        )
        logger.info(
            "Source %s/%s -> thumbnail %s/%s (width %d)",
            source.container,
            source.key,
            destination.destination_container,
            destination.destination_key,
            self._settings.thumbnail_width,
        )
        self._store.ensure_container(destination.destination_container)

        plan, output = self._render(data, encoder)

        self._store.upload(
            destination.destination_container,
            destination.destination_key,
            output,
            content_type=encoder.content_type,
        )
        logger.info(
            "Uploaded %dx%d %s thumbnail to %s/%s",
            plan.width,
            plan.height,
            encoder.value,
            destination.destination_container,
            destination.destination_key,
        )
        return ThumbnailResult(
            status=ThumbnailStatus.COMPLETED,
            source_url=event.url,
            destination=destination,
            plan=plan,
        )

    def _render(self, data: bytes, encoder: Encoder) -> tuple[DimensionPlan, bytes]:
        """Decode, resize and re-encode. Returns (plan, encoded bytes)."""
        with io.BytesIO(data) as source, Image.open(source) as image:
            logger.info("Image size: %dx%d", image.width, image.height)
            plan = plan_dimensions(image.width, image.height, self._settings.thumbnail_width)
            logger.info("Divisor: %d", plan.divisor)
            logger.info("New size: %dx%d", plan.width, plan.height)

            size = (plan.width, plan.height)
            resample = _RESAMPLE[self._settings.resample_filter]
            if encoder is Encoder.GIF and getattr(image, "n_frames", 1) > 1:
                return plan, _encode_animation(image, size, resample)

            with image.resize(size, resample) as resized:
                with _writable(resized, encoder) as prepared:
                    return plan, _encode(prepared, encoder)


def _writable(image: Image.Image, encoder: Encoder) -> Image.Image:
    """Return ``image`` or an RGB/RGBA copy the encoder can write."""
    if image.mode in ENCODER_MODES[encoder]:
        return image.copy()
    has_alpha = "A" in image.getbands() or "transparency" in image.info
    if encoder is Encoder.JPEG or not has_alpha:
        return image.convert("RGB")
    return image.convert("RGBA")


def _encode(image: Image.Image, encoder: Encoder) -> bytes:
    with io.BytesIO() as output:
        image.save(output, format=encoder.value)
        return output.getvalue()


def _encode_animation(image: Image.Image, size: tuple[int, int], resample: int) -> bytes:
    """Resize every frame of an animated GIF and write them back as one animation."""
    options = {key: image.info[key] for key in ("duration", "loop") if key in image.info}
    frames = []
    for frame in ImageSequence.Iterator(image):
        with frame.resize(size, resample) as resized:
            frames.append(_writable(resized, Encoder.GIF))
    try:
        with io.BytesIO() as output:
            frames[0].save(
                output,
                format=Encoder.GIF.value,
                save_all=True,
                append_images=frames[1:],
                **options,
            )
            return output.getvalue()
    finally:
        for frame in frames:
            frame.close()
