"""
Thumbnailer — domain exceptions.

Raised by the pure helpers and storage backends and captured by the
ThumbnailGenerator into a ThumbnailResult.  The delivery surfaces (Lambda
handler, Event Grid webhook) re-raise or map them to a status code so the
platform applies its own retry policy.
"""


class ThumbnailerError(Exception):
    """Base class for all thumbnailer errors."""


# ── Configuration ────────────────────────────────────────────────────────────

class ConfigurationError(ThumbnailerError):
    """Settings are missing or invalid (e.g. THUMBNAIL_WIDTH unset)."""


# ── Input validation ─────────────────────────────────────────────────────────

class MalformedEventError(ThumbnailerError, ValueError):
    def __init__(self, message: str) -> None:
        super().__init__(f"Malformed storage event: {message}")


class InvalidNameError(ThumbnailerError, ValueError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Blob name {name!r} does not match the <code>_<filename> convention."
        )


class UpscaleNotSupported(ThumbnailerError, ValueError):
    def __init__(self, source_width: int, target_width: int) -> None:
        self.source_width = source_width
        self.target_width = target_width
        super().__init__(
            f"Target width {target_width}px exceeds source width {source_width}px; "
            "upscaling is not supported."
        )


# ── Storage ──────────────────────────────────────────────────────────────────

class BlobAlreadyExists(ThumbnailerError):
    def __init__(self, container: str, key: str) -> None:
        self.container = container
        self.key = key
        super().__init__(f"Blob already exists: {container}/{key}")
