import pytest

from thumbnailer.config import load_settings
from thumbnailer.exceptions import ConfigurationError
from thumbnailer.storage import AzureBlobStore, S3BlobStore, build_blob_store
from thumbnailer.thumbnail.constants import NamingConvention, ResampleFilter, StorageBackend


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("THUMBNAIL_WIDTH", "480")
    monkeypatch.setenv("NAMING_CONVENTION", "prefix")
    settings = load_settings()
    assert settings.thumbnail_width == 480
    assert settings.naming_convention is NamingConvention.PREFIX
    assert settings.thumbnail_prefix == "thumb_"
    assert settings.resample_filter is ResampleFilter.LANCZOS
    assert settings.storage_backend is StorageBackend.S3


def test_missing_width_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="thumbnail_width"):
        load_settings()


@pytest.mark.parametrize("value", ["abc", "", "0", "-5", "12.5"])
def test_invalid_width_is_a_configuration_error(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("THUMBNAIL_WIDTH", value)
    with pytest.raises(ConfigurationError):
        load_settings()


def test_unknown_naming_convention_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("THUMBNAIL_WIDTH", "480")
    monkeypatch.setenv("NAMING_CONVENTION", "suffix")
    with pytest.raises(ConfigurationError):
        load_settings()


def test_azure_backend_requires_connection_string(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("THUMBNAIL_WIDTH", "480")
    monkeypatch.setenv("STORAGE_BACKEND", "azure")
    with pytest.raises(ConfigurationError, match="AZURE_STORAGE_CONNECTION_STRING"):
        load_settings()


def test_azure_functions_storage_setting_is_accepted(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("THUMBNAIL_WIDTH", "480")
    monkeypatch.setenv("STORAGE_BACKEND", "azure")
    monkeypatch.setenv("AzureWebJobsStorage", "UseDevelopmentStorage=true")
    settings = load_settings()
    assert settings.azure_storage_connection_string == "UseDevelopmentStorage=true"


def test_build_blob_store_s3() -> None:
    settings = load_settings(thumbnail_width=480, aws_region="eu-west-1")
    store = build_blob_store(settings)
    assert isinstance(store, S3BlobStore)


def test_build_blob_store_azure() -> None:
    settings = load_settings(
        thumbnail_width=480,
        storage_backend="azure",
        azure_storage_connection_string="UseDevelopmentStorage=true",
    )
    assert isinstance(build_blob_store(settings), AzureBlobStore)
