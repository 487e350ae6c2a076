from __future__ import annotations

import pytest

from keyfs import config as config_module
from keyfs.config import (
    DEFAULT_BUCKET_NAME,
    S3ConnectionConfig,
    build_boto3_client,
    build_s3_connection_config_from_env,
    get_s3_bucket_name,
    load_s3_connection_config,
)


def test_build_s3_connection_config_from_explicit_env() -> None:
    env = {
        "S3_ENDPOINT_URL": "https://minio.example.local:9000",
        "S3_ACCESS_KEY_ID": "access",
        "S3_SECRET_ACCESS_KEY": "secret",
        "S3_REGION": "us-west-2",
        "S3_USE_SSL": "true",
        "S3_URL_STYLE": "virtual",
        "S3_SESSION_TOKEN": "token",
        "S3_MAX_ATTEMPTS": "5",
    }

    config = build_s3_connection_config_from_env(env)

    assert config == S3ConnectionConfig(
        endpoint_url="https://minio.example.local:9000",
        access_key="access",
        secret_key="secret",
        region="us-west-2",
        use_ssl=True,
        url_style="virtual",
        session_token="token",
        max_attempts=5,
    )


def test_use_ssl_defaults_from_endpoint_scheme() -> None:
    env = {
        "S3_ENDPOINT_URL": "http://minio:9000",
        "S3_ACCESS_KEY_ID": "minio",
        "S3_SECRET_ACCESS_KEY": "secret",
    }

    config = build_s3_connection_config_from_env(env)

    assert config.use_ssl is False
    assert config.url_style == "path"
    assert config.region == "us-east-1"
    assert config.max_attempts == 3


def test_empty_env_leaves_credentials_to_boto3() -> None:
    assert build_s3_connection_config_from_env({}) is None


def test_build_s3_connection_config_missing_env() -> None:
    env = {
        "S3_ENDPOINT_URL": "http://minio:9000",
        "S3_ACCESS_KEY_ID": "minio",
    }

    with pytest.raises(ValueError, match="S3_SECRET_ACCESS_KEY"):
        build_s3_connection_config_from_env(env)


@pytest.mark.parametrize("value", ["zero", "0"])
def test_invalid_max_attempts(value: str) -> None:
    env = {
        "S3_ACCESS_KEY_ID": "a",
        "S3_SECRET_ACCESS_KEY": "b",
        "S3_MAX_ATTEMPTS": value,
    }

    with pytest.raises(ValueError, match="max_attempts"):
        build_s3_connection_config_from_env(env)


def test_load_s3_connection_config_from_yaml(tmp_path) -> None:
    path = tmp_path / "keyfs.yaml"
    path.write_text(
        "s3:\n"
        "  endpoint_url: http://localhost:9000\n"
        "  access_key: minio\n"
        "  secret_key: minio123\n"
        "  use_ssl: false\n"
        "  max_attempts: 7\n",
        encoding="utf-8",
    )

    config = load_s3_connection_config(path)

    assert config.endpoint_url == "http://localhost:9000"
    assert config.access_key == "minio"
    assert config.use_ssl is False
    assert config.max_attempts == 7


def test_load_s3_connection_config_without_section(tmp_path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("other: 1\n", encoding="utf-8")

    assert load_s3_connection_config(path) is None


def test_load_s3_connection_config_rejects_non_mapping(tmp_path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")

    with pytest.raises(ValueError, match="YAML mapping"):
        load_s3_connection_config(path)


def test_get_s3_bucket_name() -> None:
    assert get_s3_bucket_name({"S3_BUCKET_NAME": "lake"}) == "lake"
    assert get_s3_bucket_name({}) == DEFAULT_BUCKET_NAME


def test_build_boto3_client_passes_addressing_and_retries(monkeypatch) -> None:
    captured: dict[str, object] = {}

    def _fake_client(service_name, **kwargs):  # noqa: ANN001, ANN003, ANN202
        captured["service_name"] = service_name
        captured.update(kwargs)
        return object()

    monkeypatch.setattr(config_module.boto3, "client", _fake_client)

    build_boto3_client(
        S3ConnectionConfig(
            endpoint_url="http://minio:9000",
            access_key="a",
            secret_key="b",
            use_ssl=False,
            max_attempts=4,
        )
    )

    assert captured["service_name"] == "s3"
    assert captured["endpoint_url"] == "http://minio:9000"
    assert captured["use_ssl"] is False
    boto_config = captured["config"]
    assert boto_config.s3 == {"addressing_style": "path"}
    assert boto_config.retries == {"max_attempts": 4, "mode": "standard"}
