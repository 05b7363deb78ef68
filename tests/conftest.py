import io

import pytest
from PIL import Image

from thumbnailer.config import Settings
from thumbnailer.exceptions import BlobAlreadyExists
from thumbnailer.thumbnail.constants import NamingConvention
from thumbnailer.thumbnail.generator import ThumbnailGenerator
from thumbnailer.thumbnail.service import parse_blob_url


_SETTINGS_ENV = (
    "THUMBNAIL_WIDTH",
    "NAMING_CONVENTION",
    "THUMBNAIL_PREFIX",
    "RESAMPLE_FILTER",
    "STORAGE_BACKEND",
    "AZURE_STORAGE_CONNECTION_STRING",
    "AzureWebJobsStorage",
    "LOG_LEVEL",
)


class FakeBlobStore:
    """In-memory BlobStore keyed by (container, key)."""

    def __init__(self) -> None:
        self.blobs: dict[tuple[str, str], bytes] = {}
        self.content_types: dict[tuple[str, str], str] = {}
        self.containers: set[str] = set()
        self.reads: list[str] = []

    def put(self, container: str, key: str, data: bytes) -> None:
        self.containers.add(container)
        self.blobs[(container, key)] = data

    def read(self, url: str) -> bytes | None:
        self.reads.append(url)
        location = parse_blob_url(url)
        return self.blobs.get((location.container, location.key))

    def ensure_container(self, name: str) -> None:
        self.containers.add(name)

    def upload(
        self,
        container: str,
        key: str,
        data: bytes,
        *,
        content_type: str,
        overwrite: bool = True,
    ) -> None:
        if not overwrite and (container, key) in self.blobs:
            raise BlobAlreadyExists(container, key)
        self.blobs[(container, key)] = data
        self.content_types[(container, key)] = content_type


def make_image(width: int, height: int, fmt: str = "JPEG", mode: str = "RGB") -> bytes:
    color = {"RGBA": (200, 30, 30, 128), "CMYK": (0, 200, 200, 0), "LA": (120, 128)}.get(
        mode, (200, 30, 30),
    )
    if mode == "P":
        image = Image.new("RGB", (width, height), color).convert("P")
    else:
        image = Image.new(mode, (width, height), color)
    buf = io.BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


def open_image(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


def blob_created(url: str, event_id: str = "evt-1") -> dict:
    return {
        "id": event_id,
        "eventType": "Microsoft.Storage.BlobCreated",
        "subject": "/blobServices/default/containers/photos/blobs/x",
        "data": {"api": "PutBlob", "url": url},
    }


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def settings() -> Settings:
    return Settings(thumbnail_width=480)


@pytest.fixture
def prefix_settings() -> Settings:
    return Settings(thumbnail_width=480, naming_convention=NamingConvention.PREFIX)


@pytest.fixture
def generator(settings: Settings, store: FakeBlobStore) -> ThumbnailGenerator:
    return ThumbnailGenerator(settings, store)
