import pytest

from scorecron import config
from scorecron.config import (
    ConfigError,
    CronConfig,
    EmptyConfigValueError,
    ValueConversionError,
    get_int_config_value,
    get_string_config_value,
    parse_config,
)

TEST_ENV_VAR = "TEST_ENV_VAR"

BASIC_YAML = """\
result-data-bucket-url: gs://ossf-scorecard-data
request-topic-url: gcppubsub://projects/openssf/topics/scorecard-batch-requests
shard-size: 250
"""

MISSING_FIELD_YAML = """\
result-data-bucket-url: gs://ossf-scorecard-data
request-topic-url: gcppubsub://projects/openssf/topics/scorecard-batch-requests
shard-size: 250
unknown-field: something
"""

PROD_CONFIG = CronConfig(
    project_id="openssf",
    result_data_bucket_url="gs://ossf-scorecard-data",
    request_topic_url="gcppubsub://projects/openssf/topics/scorecard-batch-requests",
    request_subscription_url="gcppubsub://projects/openssf/subscriptions/scorecard-batch-worker",
    bigquery_dataset="scorecardcron",
    bigquery_table="scorecard",
    webhook_url="",
    shard_size=10,
    metric_exporter="stackdriver",
    result_data_bucket_url_v2="gs://ossf-scorecard-data2",
    bigquery_table_v2="scorecard2",
)

BASIC_CONFIG = CronConfig(
    result_data_bucket_url="gs://ossf-scorecard-data",
    request_topic_url="gcppubsub://projects/openssf/topics/scorecard-batch-requests",
    shard_size=250,
)


@pytest.mark.parametrize(
    "data, expected",
    [
        (config.CONFIG_YAML, PROD_CONFIG),
        (BASIC_YAML, BASIC_CONFIG),
        (MISSING_FIELD_YAML, BASIC_CONFIG),
    ],
    ids=["validate", "basic", "missingField"],
)
def test_yaml_parsing(data, expected):
    assert parse_config(data) == expected


def test_parse_empty_gives_defaults():
    assert parse_config(b"") == CronConfig()
    assert parse_config(None) == CronConfig()


def test_parse_bytes():
    assert parse_config(BASIC_YAML.encode()) == BASIC_CONFIG


def test_parse_invalid_yaml():
    with pytest.raises(ConfigError):
        parse_config("key: [unclosed")


def test_parse_wrong_int_type():
    with pytest.raises(ConfigError):
        parse_config("shard-size: many")


def test_string_from_env(monkeypatch):
    monkeypatch.setenv(TEST_ENV_VAR, "test")
    assert get_string_config_value(TEST_ENV_VAR, None, "", "test-config") == "test"


def test_string_from_parsed_value(monkeypatch):
    monkeypatch.delenv(TEST_ENV_VAR, raising=False)
    value = get_string_config_value(TEST_ENV_VAR, BASIC_YAML, "result_data_bucket_url", "test-config")
    assert value == "gs://ossf-scorecard-data"


def test_string_empty_value(monkeypatch):
    monkeypatch.setenv(TEST_ENV_VAR, "")
    with pytest.raises(EmptyConfigValueError):
        get_string_config_value(TEST_ENV_VAR, None, "", "test-config")


def test_string_of_int_field_is_conversion_error(monkeypatch):
    monkeypatch.delenv(TEST_ENV_VAR, raising=False)
    with pytest.raises(ValueConversionError):
        get_string_config_value(TEST_ENV_VAR, BASIC_YAML, "shard_size", "test-config")


def test_unknown_field(monkeypatch):
    monkeypatch.delenv(TEST_ENV_VAR, raising=False)
    with pytest.raises(ConfigError):
        get_string_config_value(TEST_ENV_VAR, BASIC_YAML, "no_such_field", "test-config")


def test_int_from_env(monkeypatch):
    monkeypatch.setenv(TEST_ENV_VAR, "11")
    assert get_int_config_value(TEST_ENV_VAR, None, "", "test-config") == 11


def test_int_from_parsed_value(monkeypatch):
    monkeypatch.delenv(TEST_ENV_VAR, raising=False)
    assert get_int_config_value(TEST_ENV_VAR, BASIC_YAML, "shard_size", "test-config") == 250


def test_int_from_bad_env(monkeypatch):
    monkeypatch.setenv(TEST_ENV_VAR, "eleven")
    with pytest.raises(ValueConversionError):
        get_int_config_value(TEST_ENV_VAR, None, "", "test-config")


def test_int_of_string_field(monkeypatch):
    monkeypatch.delenv(TEST_ENV_VAR, raising=False)
    with pytest.raises(ValueConversionError):
        get_int_config_value(TEST_ENV_VAR, BASIC_YAML, "result_data_bucket_url", "test-config")


@pytest.mark.parametrize(
    "getter, env_var, expected",
    [
        (config.get_project_id, config.PROJECT_ID_ENV, "openssf"),
        (config.get_result_data_bucket_url, config.RESULT_DATA_BUCKET_URL_ENV, "gs://ossf-scorecard-data"),
        (
            config.get_request_topic_url,
            config.REQUEST_TOPIC_URL_ENV,
            "gcppubsub://projects/openssf/topics/scorecard-batch-requests",
        ),
        (
            config.get_request_subscription_url,
            config.REQUEST_SUBSCRIPTION_URL_ENV,
            "gcppubsub://projects/openssf/subscriptions/scorecard-batch-worker",
        ),
        (config.get_bigquery_dataset, config.BIGQUERY_DATASET_ENV, "scorecardcron"),
        (config.get_bigquery_table, config.BIGQUERY_TABLE_ENV, "scorecard"),
        (config.get_bigquery_table_v2, config.BIGQUERY_TABLE_V2_ENV, "scorecard2"),
        (
            config.get_result_data_bucket_url_v2,
            config.RESULT_DATA_BUCKET_URL_V2_ENV,
            "gs://ossf-scorecard-data2",
        ),
        (config.get_shard_size, config.SHARD_SIZE_ENV, 10),
        (config.get_metric_exporter, config.METRIC_EXPORTER_ENV, "stackdriver"),
        (config.get_webhook_url, config.WEBHOOK_URL_ENV, ""),
    ],
)
def test_production_values(monkeypatch, getter, env_var, expected):
    monkeypatch.delenv(env_var, raising=False)
    assert getter() == expected


def test_env_overrides_production(monkeypatch):
    monkeypatch.setenv(config.PROJECT_ID_ENV, "other-project")
    assert config.get_project_id() == "other-project"


def test_webhook_from_env(monkeypatch):
    monkeypatch.setenv(config.WEBHOOK_URL_ENV, "http://localhost:8080/hook")
    assert config.get_webhook_url() == "http://localhost:8080/hook"