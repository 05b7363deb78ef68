"""
Thumbnail — pure helpers.

Encoder selection, blob URL parsing, destination naming and dimension math.
No I/O happens here; the ThumbnailGenerator wires these to storage and Pillow.
"""
from __future__ import annotations

import posixpath
import re
import urllib.parse
from decimal import ROUND_HALF_UP, Decimal

from thumbnailer.exceptions import InvalidNameError, MalformedEventError, UpscaleNotSupported
from thumbnailer.thumbnail.constants import ENCODERS_BY_EXTENSION, Encoder, NamingConvention
from thumbnailer.thumbnail.schemas import BlobLocation, DimensionPlan, ParsedName

NAME_SEPARATOR = "_"
DEFAULT_THUMBNAIL_PREFIX = "thumb_"

# bucket.s3.amazonaws.com, bucket.s3.eu-west-1.amazonaws.com, bucket.s3-eu-west-1.amazonaws.com
_S3_VIRTUAL_HOST = re.compile(r"^(?P<bucket>.+)\.s3(?:[.-][a-z0-9-]+)?\.amazonaws\.com$")


# ── Encoder selection ────────────────────────────────────────────────────────

def select_encoder(extension: str) -> Encoder | None:
    """Map a file extension (".JPG", "png", ...) to an encoder, or None if unsupported."""
    normalized = extension.lstrip(".").lower()
    return ENCODERS_BY_EXTENSION.get(normalized)


def extension_of(key: str) -> str:
    return posixpath.splitext(key)[1]


# ── Blob URLs ────────────────────────────────────────────────────────────────

def parse_blob_url(url: str) -> BlobLocation:
    """Split a blob URL into container and key.

    Understands s3:// URLs, virtual-hosted S3 hosts, Azure and other
    path-style hosts (``https://host/container/key``) and bare
    ``container/key`` paths. Query strings such as SAS tokens are ignored.
    """
    parts = urllib.parse.urlsplit(url.strip())

    if parts.scheme == "s3":
        container, key = parts.netloc, parts.path.lstrip("/")
    else:
        match = _S3_VIRTUAL_HOST.match(parts.hostname or "")
        if match:
            container, key = match.group("bucket"), parts.path.lstrip("/")
        else:
            container, _, key = parts.path.lstrip("/").partition("/")

    container = urllib.parse.unquote(container)
    key = urllib.parse.unquote(key)
    if not container or not key:
        raise MalformedEventError(f"cannot derive container and key from url {url!r}")
    return BlobLocation(container=container, key=key)


# ── Destination naming ───────────────────────────────────────────────────────

def split_name(key: str) -> ParsedName:
    """``<code>_<filename>`` -> container ``<code>``, key ``<filename>``.

    Only the first separator is significant.
    """
    code, separator, filename = key.partition(NAME_SEPARATOR)
    if not separator or not code or not filename:
        raise InvalidNameError(key)
    return ParsedName(destination_container=code, destination_key=filename)


def prefix_name(container: str, key: str, prefix: str = DEFAULT_THUMBNAIL_PREFIX) -> ParsedName:
    return ParsedName(destination_container=container, destination_key=f"{prefix}{key}")


def derive_destination(
    source: BlobLocation,
    convention: NamingConvention,
    prefix: str = DEFAULT_THUMBNAIL_PREFIX,
) -> ParsedName:
    if convention is NamingConvention.SPLIT:
        return split_name(source.key)
    return prefix_name(source.container, source.key, prefix)


# ── Dimensions ───────────────────────────────────────────────────────────────

def plan_dimensions(source_width: int, source_height: int, target_width: int) -> DimensionPlan:
    """Downscale to ``target_width`` by the integer ratio of the widths.

    height = round_half_up(source_height / (source_width // target_width)).
    A target wider than the source gives a zero divisor and is rejected.
    """
    if source_width <= 0 or source_height <= 0 or target_width <= 0:
        raise ValueError(
            f"Dimensions must be positive: source {source_width}x{source_height}, "
            f"target width {target_width}"
        )

    divisor = source_width // target_width
    if divisor == 0:
        raise UpscaleNotSupported(source_width, target_width)

    height = (Decimal(source_height) / Decimal(divisor)).quantize(
        Decimal(1), rounding=ROUND_HALF_UP,
    )
    # Very flat images can round to zero rows
    return DimensionPlan(width=target_width, height=max(1, int(height)), divisor=divisor)
