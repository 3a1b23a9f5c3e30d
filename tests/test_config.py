import dataclasses

import pytest

from shared.config import StorageConfig
from shared.constants import DEFAULT_REGION
from shared.exceptions import ConfigError


FULL_ENV = {
    "AWS_ACCESS_KEY_ID": "AKIATEST",
    "AWS_SECRET_ACCESS_KEY": "secret",
    "AWS_REGION": "eu-west-1",
    "S3_BUCKET_NAME": "clips",
    "S3_BASE_URL": "https://cdn.example.com/",
}


def test_from_env_reads_all_settings():
    config = StorageConfig.from_env(FULL_ENV, load_env_file=False)
    assert config.access_key_id == "AKIATEST"
    assert config.secret_access_key == "secret"
    assert config.region == "eu-west-1"
    assert config.bucket_name == "clips"
    assert config.endpoint_url is None


def test_base_url_trailing_slash_is_stripped():
    config = StorageConfig.from_env(FULL_ENV, load_env_file=False)
    assert config.base_url == "https://cdn.example.com"


def test_region_defaults_when_unset():
    env = {k: v for k, v in FULL_ENV.items() if k != "AWS_REGION"}
    config = StorageConfig.from_env(env, load_env_file=False)
    assert config.region == DEFAULT_REGION == "ap-south-1"


def test_endpoint_url_is_optional():
    env = dict(FULL_ENV, S3_ENDPOINT_URL="http://localhost:9000")
    config = StorageConfig.from_env(env, load_env_file=False)
    assert config.endpoint_url == "http://localhost:9000"


def test_missing_settings_are_enumerated():
    env = {k: v for k, v in FULL_ENV.items() if k not in ("S3_BUCKET_NAME", "S3_BASE_URL")}
    with pytest.raises(ConfigError) as exc_info:
        StorageConfig.from_env(env, load_env_file=False)

    assert exc_info.value.missing == ["S3_BUCKET_NAME", "S3_BASE_URL"]
    assert str(exc_info.value) == "Missing required environment variables: S3_BUCKET_NAME, S3_BASE_URL"


def test_empty_values_count_as_missing():
    env = dict(FULL_ENV, AWS_ACCESS_KEY_ID="")
    with pytest.raises(ConfigError) as exc_info:
        StorageConfig.from_env(env, load_env_file=False)
    assert exc_info.value.missing == ["AWS_ACCESS_KEY_ID"]


def test_direct_construction_is_validated():
    with pytest.raises(ConfigError) as exc_info:
        StorageConfig(access_key_id="", secret_access_key="", bucket_name="b", base_url="u")
    assert exc_info.value.missing == ["AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY"]


def test_config_error_is_a_value_error():
    assert issubclass(ConfigError, ValueError)


def test_config_is_immutable():
    config = StorageConfig.from_env(FULL_ENV, load_env_file=False)
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.bucket_name = "other"


def test_from_env_uses_process_environment(monkeypatch):
    for name, value in FULL_ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.delenv("S3_ENDPOINT_URL", raising=False)

    config = StorageConfig.from_env(load_env_file=False)
    assert config.bucket_name == "clips"
