"""Settings for the S3 plumbing around the codec.

decode/encode read no configuration. Everything here feeds manifest
sources, the normalizer Lambda and retry behaviour, and is taken from
environment variables validated once per process.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven settings.

    Example:
        >>> settings = Settings(OUTPUT_BUCKET="canonical", OUTPUT_PREFIX="dash/")
        >>> settings.output_key("live/ch1.mpd")
        'dash/live/ch1.mpd'
    """

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    aws_region: str = Field(default="us-east-1", alias="AWS_REGION")

    # Normalizer buckets: uploads land in the input bucket, canonical
    # copies are written to the output bucket under output_prefix.
    input_bucket: str = Field(default="", alias="INPUT_BUCKET")
    output_bucket: str = Field(default="", alias="OUTPUT_BUCKET")
    output_prefix: str = Field(
        default="normalized",
        alias="OUTPUT_PREFIX",
        description="Key prefix for canonical manifests; empty keeps source keys",
    )

    # Transient S3 failures
    max_retries: int = Field(default=3, ge=0, le=10, alias="MAX_RETRIES")
    retry_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=30.0,
        alias="RETRY_DELAY_SECONDS",
        description="Delay before the first retry; doubles per attempt",
    )
    retry_max_delay_seconds: float = Field(
        default=30.0,
        ge=0.0,
        le=300.0,
        alias="RETRY_MAX_DELAY_SECONDS",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
    )

    @field_validator("output_prefix", mode="before")
    @classmethod
    def strip_prefix_slashes(cls, v: str) -> str:
        """Normalize the prefix so keys never contain '//'."""
        return v.strip("/") if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_no_trigger_loop(self) -> "Settings":
        """Writing back under the source key would re-trigger the Lambda forever."""
        if (
            self.input_bucket
            and self.input_bucket == self.output_bucket
            and not self.output_prefix
        ):
            raise ValueError(
                "OUTPUT_PREFIX is required when INPUT_BUCKET and OUTPUT_BUCKET are the same"
            )
        return self

    def output_key(self, key: str) -> str:
        """Key of the canonical copy of ``key`` in the output bucket."""
        if not self.output_prefix:
            return key
        return f"{self.output_prefix}/{key}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process.

    Raises:
        ValidationError: If environment variables are invalid
    """
    return Settings()


def clear_settings_cache() -> None:
    """Forget loaded settings; the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
