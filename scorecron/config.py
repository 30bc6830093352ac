"""Configuration values for the scorecard cron job.

Each value is read from an environment variable when it is set, and from the
bundled YAML configuration otherwise.
"""

from __future__ import annotations

import dataclasses
import os
import re
from dataclasses import dataclass, field
from typing import Any

import yaml

# Metadata for a created shard.
SHARD_METADATA_FILENAME = ".shard_metadata"
# Number of shards created for a job (legacy marker file).
SHARD_NUM_FILENAME = ".shard_num"
# Marks that the shard transfer to BigQuery has completed.
TRANSFER_STATUS_FILENAME = ".transfer_complete"

PROJECT_ID_ENV = "SCORECARD_PROJECT_ID"
RESULT_DATA_BUCKET_URL_ENV = "SCORECARD_DATA_BUCKET_URL"
REQUEST_TOPIC_URL_ENV = "SCORECARD_REQUEST_TOPIC_URL"
REQUEST_SUBSCRIPTION_URL_ENV = "SCORECARD_REQUEST_SUBSCRIPTION_URL"
BIGQUERY_DATASET_ENV = "SCORECARD_BIGQUERY_DATASET"
BIGQUERY_TABLE_ENV = "SCORECARD_BIGQUERY_TABLE"
SHARD_SIZE_ENV = "SCORECARD_SHARD_SIZE"
WEBHOOK_URL_ENV = "SCORECARD_WEBHOOK_URL"
METRIC_EXPORTER_ENV = "SCORECARD_METRIC_EXPORTER"
BIGQUERY_TABLE_V2_ENV = "SCORECARD_BIGQUERY_TABLEV2"
RESULT_DATA_BUCKET_URL_V2_ENV = "SCORECARD_DATA_BUCKET_URLV2"

CONFIG_YAML = """\
project-id: openssf
request-topic-url: gcppubsub://projects/openssf/topics/scorecard-batch-requests
request-subscription-url: gcppubsub://projects/openssf/subscriptions/scorecard-batch-worker
bigquery-dataset: scorecardcron
bigquery-table: scorecard
result-data-bucket-url: gs://ossf-scorecard-data
webhook-url:
shard-size: 10
metric-exporter: stackdriver
result-data-bucket-url-v2: gs://ossf-scorecard-data2
bigquery-table-v2: scorecard2
"""

_INT_PATTERN = re.compile(r"[+-]?\d+")


class ConfigError(Exception):
    """Raised when a configuration value cannot be obtained."""


class EmptyConfigValueError(ConfigError):
    """The value for the configuration option was empty."""


class ValueConversionError(ConfigError):
    """The configuration value has an unexpected type."""


def _key(name: str) -> Any:
    return field(default="", metadata={"yaml": name})


@dataclass(frozen=True)
class CronConfig:
    """Parsed contents of a cron configuration file."""

    project_id: str = _key("project-id")
    result_data_bucket_url: str = _key("result-data-bucket-url")
    request_topic_url: str = _key("request-topic-url")
    request_subscription_url: str = _key("request-subscription-url")
    bigquery_dataset: str = _key("bigquery-dataset")
    bigquery_table: str = _key("bigquery-table")
    webhook_url: str = _key("webhook-url")
    metric_exporter: str = _key("metric-exporter")
    shard_size: int = field(default=0, metadata={"yaml": "shard-size"})
    result_data_bucket_url_v2: str = _key("result-data-bucket-url-v2")
    bigquery_table_v2: str = _key("bigquery-table-v2")


_FIELDS = {f.name: f for f in dataclasses.fields(CronConfig)}


def _as_string(key: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise ConfigError(f"cannot decode {key!r} as a string: {value!r}")


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"cannot decode {key!r} as an int: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ConfigError(f"cannot decode {key!r} as an int: {value!r}")


def parse_config(data: bytes | str | None) -> CronConfig:
    """Parse YAML configuration text into a CronConfig; unknown keys are ignored."""
    if not data:
        return CronConfig()
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ConfigError(f"error parsing config: {exc}") from exc
    if document is None:
        return CronConfig()
    if not isinstance(document, dict):
        raise ConfigError("error parsing config: top level is not a mapping")
    values: dict[str, Any] = {}
    for name, spec in _FIELDS.items():
        key = spec.metadata["yaml"]
        raw = document.get(key)
        if raw is None:
            continue
        if isinstance(spec.default, int):
            values[name] = _as_int(key, raw)
        else:
            values[name] = _as_string(key, raw)
    return CronConfig(**values)


def _get_config_value(env_var: str, data: bytes | str | None, field_name: str) -> Any:
    value = os.environ.get(env_var)
    if value is not None:
        return value
    parsed = parse_config(data)
    if field_name not in _FIELDS:
        raise ConfigError(f"unknown config field: {field_name}")
    return getattr(parsed, field_name)


def get_string_config_value(
    env_var: str, data: bytes | str | None, field_name: str, config_name: str
) -> str:
    """Return a non-empty string value, from the environment or the config."""
    try:
        value = _get_config_value(env_var, data, field_name)
    except ConfigError as exc:
        raise ConfigError(f"error getting config value {config_name}: {exc}") from exc
    if not isinstance(value, str):
        raise ValueConversionError(
            f"unexpected type, cannot convert value: {type(value).__name__}, {config_name}"
        )
    if not value:
        raise EmptyConfigValueError(f"config value set to empty: {config_name}")
    return value


def get_int_config_value(
    env_var: str, data: bytes | str | None, field_name: str, config_name: str
) -> int:
    """Return an integer value, from the environment or the config."""
    try:
        value = _get_config_value(env_var, data, field_name)
    except ConfigError as exc:
        raise ConfigError(f"error getting config value {config_name}: {exc}") from exc
    if isinstance(value, str):
        if not _INT_PATTERN.fullmatch(value):
            raise ValueConversionError(f"invalid integer {value!r} for {config_name}")
        return int(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise ValueConversionError(
        f"unexpected type, cannot convert value: {type(value).__name__}, {config_name}"
    )


def get_project_id() -> str:
    """Cloud project ID for the cron job."""
    return get_string_config_value(PROJECT_ID_ENV, CONFIG_YAML, "project_id", "project-id")


def get_result_data_bucket_url() -> str:
    """Bucket URL for storing cron job results."""
    return get_string_config_value(
        RESULT_DATA_BUCKET_URL_ENV, CONFIG_YAML, "result_data_bucket_url", "result-data-bucket-url"
    )


def get_request_topic_url() -> str:
    """Topic URL for sending cron job requests."""
    return get_string_config_value(
        REQUEST_TOPIC_URL_ENV, CONFIG_YAML, "request_topic_url", "request-topic-url"
    )


def get_request_subscription_url() -> str:
    """Subscription URL of the request topic."""
    return get_string_config_value(
        REQUEST_SUBSCRIPTION_URL_ENV,
        CONFIG_YAML,
        "request_subscription_url",
        "request-subscription-url",
    )


def get_bigquery_dataset() -> str:
    """BigQuery dataset receiving cron job results."""
    return get_string_config_value(
        BIGQUERY_DATASET_ENV, CONFIG_YAML, "bigquery_dataset", "bigquery-dataset"
    )


def get_bigquery_table() -> str:
    """BigQuery table receiving cron job results."""
    return get_string_config_value(
        BIGQUERY_TABLE_ENV, CONFIG_YAML, "bigquery_table", "bigquery-table"
    )


def get_bigquery_table_v2() -> str:
    """BigQuery table receiving v2 cron job results."""
    return get_string_config_value(
        BIGQUERY_TABLE_V2_ENV, CONFIG_YAML, "bigquery_table_v2", "bigquery-table-v2"
    )


def get_result_data_bucket_url_v2() -> str:
    """Bucket URL for storing v2 cron job results."""
    return get_string_config_value(
        RESULT_DATA_BUCKET_URL_V2_ENV,
        CONFIG_YAML,
        "result_data_bucket_url_v2",
        "result-data-bucket-url-v2",
    )


def get_shard_size() -> int:
    """Number of repositories per shard."""
    return get_int_config_value(SHARD_SIZE_ENV, CONFIG_YAML, "shard_size", "shard-size")


def get_webhook_url() -> str:
    """Webhook URL pinged after a successful job; empty when unset."""
    try:
        return get_string_config_value(WEBHOOK_URL_ENV, CONFIG_YAML, "webhook_url", "webhook-url")
    except EmptyConfigValueError:
        return ""


def get_metric_exporter() -> str:
    """Type of metrics exporter to use."""
    return get_string_config_value(
        METRIC_EXPORTER_ENV, CONFIG_YAML, "metric_exporter", "metric-exporter"
    )