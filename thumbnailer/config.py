from pydantic import AliasChoices, Field, PositiveInt, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from thumbnailer.exceptions import ConfigurationError
from thumbnailer.thumbnail.constants import NamingConvention, ResampleFilter, StorageBackend


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Thumbnail ────────────────────────────────────────────────────────────
    thumbnail_width: PositiveInt
    naming_convention: NamingConvention = NamingConvention.SPLIT
    thumbnail_prefix: str = "thumb_"  # only used by the prefix convention
    resample_filter: ResampleFilter = ResampleFilter.LANCZOS

    # ── Storage ──────────────────────────────────────────────────────────────
    storage_backend: StorageBackend = StorageBackend.S3

    # Empty keys fall back to the boto3 default credential chain (Lambda role)
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "us-east-1"
    s3_endpoint_url: str = ""

    azure_storage_connection_string: str = Field(
        default="",
        validation_alias=AliasChoices(
            "azure_storage_connection_string", "AzureWebJobsStorage",
        ),
    )

    # ── Logging ──────────────────────────────────────────────────────────────
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _check_storage_credentials(self) -> "Settings":
        if (
            self.storage_backend is StorageBackend.AZURE
            and not self.azure_storage_connection_string
        ):
            raise ValueError(
                "AZURE_STORAGE_CONNECTION_STRING is required for the azure storage backend"
            )
        return self


def load_settings(**overrides) -> Settings:
    """Build Settings from the environment, raising ConfigurationError when invalid."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
