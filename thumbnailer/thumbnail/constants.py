"""
Thumbnail — static constants and enum types.
"""
import enum


class Encoder(str, enum.Enum):
    """Output encoders, valued by their Pillow format name."""
    PNG = "PNG"
    JPEG = "JPEG"
    GIF = "GIF"

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES[self]


class NamingConvention(str, enum.Enum):
    SPLIT = "split"    # <code>_<filename> -> container <code>, key <filename>
    PREFIX = "prefix"  # <key> -> same container, key thumb_<key>


class ResampleFilter(str, enum.Enum):
    NEAREST = "nearest"
    BILINEAR = "bilinear"
    BICUBIC = "bicubic"
    LANCZOS = "lanczos"


class StorageBackend(str, enum.Enum):
    S3 = "s3"
    AZURE = "azure"


class ThumbnailStatus(str, enum.Enum):
    COMPLETED = "COMPLETED"
    SKIPPED = "SKIPPED"
    RETRYABLE_ERROR = "RETRYABLE_ERROR"
    FATAL_ERROR = "FATAL_ERROR"


# Normalised extension -> encoder
ENCODERS_BY_EXTENSION: dict[str, Encoder] = {
    "png": Encoder.PNG,
    "jpg": Encoder.JPEG,
    "jpeg": Encoder.JPEG,
    "gif": Encoder.GIF,
}

CONTENT_TYPES: dict[Encoder, str] = {
    Encoder.PNG: "image/png",
    Encoder.JPEG: "image/jpeg",
    Encoder.GIF: "image/gif",
}

# Pillow modes each encoder writes directly; anything else is converted first
ENCODER_MODES: dict[Encoder, set[str]] = {
    Encoder.JPEG: {"RGB", "L", "CMYK"},
    Encoder.PNG: {"1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"},
    Encoder.GIF: {"1", "L", "P", "RGB", "RGBA"},
}

# Event Grid event types
BLOB_CREATED_EVENT = "Microsoft.Storage.BlobCreated"
SUBSCRIPTION_VALIDATION_EVENT = "Microsoft.EventGrid.SubscriptionValidationEvent"
