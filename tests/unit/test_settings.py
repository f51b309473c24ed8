from __future__ import annotations

import pytest

from cloudwatch_transport.core.errors import ConfigurationError
from cloudwatch_transport.core.settings import CloudWatchSettings, Settings


def test_camel_case_options_are_accepted() -> None:
    settings = CloudWatchSettings.from_options(
        {
            "logGroupName": "group",
            "logStreamName": "stream",
            "remoteRegion": "eu-west-1",
            "accessKeyId": "AKIA",
            "secretAccessKey": "shh",
            "interval": 2500,
        }
    )
    assert settings.log_group_name == "group"
    assert settings.log_stream_name == "stream"
    assert settings.region == "eu-west-1"
    assert settings.interval == 2500
    assert settings.credentials() == {
        "aws_access_key_id": "AKIA",
        "aws_secret_access_key": "shh",
    }


def test_snake_case_and_aws_prefixed_names() -> None:
    settings = CloudWatchSettings(
        log_group_name="g",
        log_stream_name="s",
        awsRegion="us-west-2",
    )
    assert settings.region == "us-west-2"


def test_defaults() -> None:
    settings = CloudWatchSettings.from_options(
        {"logGroupName": "g", "logStreamName": "s"}
    )
    assert settings.interval == 1000
    assert settings.flush_min_interval_ms == 1000
    assert settings.region is None
    assert settings.endpoint_url is None
    assert settings.credentials() == {}


@pytest.mark.parametrize("value", [0, None])
def test_zero_or_missing_interval_uses_default(value) -> None:
    settings = CloudWatchSettings.from_options(
        {"logGroupName": "g", "logStreamName": "s", "interval": value}
    )
    assert settings.interval == 1000


def test_partial_credentials_fall_back_to_default_chain() -> None:
    settings = CloudWatchSettings.from_options(
        {"logGroupName": "g", "logStreamName": "s", "accessKeyId": "AKIA"}
    )
    assert settings.credentials() == {}


def test_secret_is_not_exposed_in_repr() -> None:
    settings = CloudWatchSettings.from_options(
        {
            "logGroupName": "g",
            "logStreamName": "s",
            "accessKeyId": "AKIA",
            "secretAccessKey": "topsecret",
        }
    )
    assert "topsecret" not in repr(settings)


@pytest.mark.parametrize(
    "options",
    [
        {"logStreamName": "s"},
        {"logGroupName": "g"},
        {"logGroupName": "  ", "logStreamName": "s"},
        {"logGroupName": "g", "logStreamName": "s", "interval": -5},
    ],
)
def test_invalid_options_raise_configuration_error(options) -> None:
    with pytest.raises(ConfigurationError):
        CloudWatchSettings.from_options(options)


def test_kwargs_override_existing_settings() -> None:
    base = CloudWatchSettings.from_options({"logGroupName": "g", "logStreamName": "s"})
    assert CloudWatchSettings.from_options(base) is base
    updated = CloudWatchSettings.from_options(base, interval=50)
    assert updated.interval == 50
    assert updated.log_group_name == "g"


def test_environment_fallback(monkeypatch) -> None:
    monkeypatch.setenv("CWTRANSPORT_CLOUDWATCH__LOG_GROUP_NAME", "env-group")
    monkeypatch.setenv("CWTRANSPORT_CLOUDWATCH__LOG_STREAM_NAME", "env-stream")
    monkeypatch.setenv("CWTRANSPORT_CLOUDWATCH__INTERVAL", "3000")
    settings = CloudWatchSettings.from_options(None)
    assert settings.log_group_name == "env-group"
    assert settings.log_stream_name == "env-stream"
    assert settings.interval == 3000


def test_missing_environment_raises(monkeypatch) -> None:
    monkeypatch.delenv("CWTRANSPORT_CLOUDWATCH__LOG_GROUP_NAME", raising=False)
    monkeypatch.delenv("CWTRANSPORT_CLOUDWATCH__LOG_STREAM_NAME", raising=False)
    with pytest.raises(ConfigurationError):
        CloudWatchSettings.from_options(None)


def test_core_settings_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("CWTRANSPORT_CORE__INTERNAL_LOGGING_ENABLED", "true")
    monkeypatch.setenv("CWTRANSPORT_CORE__ENABLE_METRICS", "1")
    core = Settings().core
    assert core.internal_logging_enabled is True
    assert core.enable_metrics is True
