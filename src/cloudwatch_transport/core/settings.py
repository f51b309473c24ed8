"""
Configuration models for the CloudWatch transport using Pydantic v2.

``CloudWatchSettings`` carries the transport options. It accepts the
camelCase option names callers pass programmatically (``logGroupName``,
``remoteRegion`` and so on) as well as the snake_case field names used in
environment variables.

``Settings`` is the environment-driven top level: ``CWTRANSPORT_`` prefix,
``__`` as nested delimiter, e.g. ``CWTRANSPORT_CLOUDWATCH__LOG_GROUP_NAME``.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
)
from pydantic_settings import (  # type: ignore[import-not-found]
    BaseSettings,
    SettingsConfigDict,
)

from .errors import ConfigurationError

# CloudWatch Logs limits
# https://docs.aws.amazon.com/AmazonCloudWatch/latest/logs/cloudwatch_limits_cwl.html
# https://docs.aws.amazon.com/AmazonCloudWatchLogs/latest/APIReference/API_PutLogEvents.html
MAX_EVENT_SIZE = 256 * 1024
MAX_BATCH_COUNT = 10_000
MAX_BATCH_BYTES = 1_048_576
EVENT_OVERHEAD_BYTES = 26

DEFAULT_INTERVAL_MS = 1000
DEFAULT_FLUSH_MIN_INTERVAL_MS = 1000


class CoreSettings(BaseModel):
    """Ambient behaviour shared by every transport in the process."""

    internal_logging_enabled: bool = Field(
        default=False,
        description="Emit structured diagnostics to stderr for internal errors",
    )
    enable_metrics: bool = Field(
        default=False,
        description="Export Prometheus counters for shipped and dropped records",
    )


class CloudWatchSettings(BaseModel):
    """Options for a single log group/stream destination."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    log_group_name: str = Field(
        validation_alias=AliasChoices("log_group_name", "logGroupName"),
    )
    log_stream_name: str = Field(
        validation_alias=AliasChoices("log_stream_name", "logStreamName"),
    )
    region: str | None = Field(
        default=None,
        validation_alias=AliasChoices("region", "remoteRegion", "awsRegion"),
    )
    access_key_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "access_key_id", "accessKeyId", "awsAccessKeyId"
        ),
    )
    secret_access_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "secret_access_key", "secretAccessKey", "awsSecretAccessKey"
        ),
    )
    interval: int = Field(
        default=DEFAULT_INTERVAL_MS,
        description="Milliseconds between periodic flushes",
    )
    flush_min_interval_ms: int = Field(
        default=DEFAULT_FLUSH_MIN_INTERVAL_MS,
        ge=0,
        validation_alias=AliasChoices("flush_min_interval_ms", "flushMinIntervalMs"),
        description="Minimum spacing between the starts of two flushes",
    )
    endpoint_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("endpoint_url", "endpointUrl"),
        description="Override the CloudWatch Logs endpoint (e.g. LocalStack)",
    )

    @field_validator("log_group_name", "log_stream_name")
    @classmethod
    def _ensure_non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("log group and stream names must not be empty")
        return value

    @field_validator("interval", mode="before")
    @classmethod
    def _default_interval(cls, value: Any) -> Any:
        # A missing or zero interval means the default cadence
        if value is None or value == 0:
            return DEFAULT_INTERVAL_MS
        return value

    @field_validator("interval")
    @classmethod
    def _positive_interval(cls, value: int) -> int:
        if value < 0:
            raise ValueError("interval must be a positive number of milliseconds")
        return value

    def credentials(self) -> dict[str, str]:
        """Explicit boto3 credentials, or nothing to use the default chain."""
        if self.access_key_id and self.secret_access_key:
            return {
                "aws_access_key_id": self.access_key_id,
                "aws_secret_access_key": self.secret_access_key.get_secret_value(),
            }
        return {}

    @classmethod
    def from_options(
        cls, options: CloudWatchSettings | Mapping[str, Any] | None, **kwargs: Any
    ) -> CloudWatchSettings:
        """Build settings from options, falling back to the environment."""
        if isinstance(options, CloudWatchSettings):
            if not kwargs:
                return options
            options = options.model_dump()
        raw: dict[str, Any] = dict(options or {})
        raw.update(kwargs)
        if not raw:
            env_settings = Settings().cloudwatch
            if env_settings is None:
                raise ConfigurationError(
                    "logGroupName and logStreamName are required"
                )
            return env_settings
        try:
            return cls.model_validate(raw)
        except ValueError as e:
            raise ConfigurationError(f"Invalid transport options: {e}", cause=e) from e


class Settings(BaseSettings):
    """Top-level, environment-driven configuration."""

    core: CoreSettings = Field(default_factory=CoreSettings)
    cloudwatch: CloudWatchSettings | None = None

    model_config = SettingsConfigDict(
        env_prefix="CWTRANSPORT_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )
