"""S3 connection configuration (env-first, YAML file optional)."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import boto3
import yaml
from botocore.config import Config

from keyfs.observability import log_event

logger = logging.getLogger(__name__)

DEFAULT_BUCKET_NAME = "keyfs"


@dataclass(frozen=True)
class S3ConnectionConfig:
    """Connection settings for S3-compatible storage (AWS S3, MinIO, ...)."""

    endpoint_url: str | None
    access_key: str | None
    secret_key: str | None
    region: str = "us-east-1"
    use_ssl: bool = True
    url_style: str = "path"
    session_token: str | None = None
    max_attempts: int = 3


def _parse_bool(value: object, *, default: bool | None = None) -> bool | None:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "y"}:
        return True
    if text in {"0", "false", "no", "n"}:
        return False
    return default


def _parse_int(value: object, *, name: str, default: int) -> int:
    if value is None or not str(value).strip():
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if parsed < 1:
        raise ValueError(f"{name} must be >= 1")
    return parsed


def _config_from_values(values: Mapping[str, Any], *, source: str) -> S3ConnectionConfig | None:
    endpoint = values.get("endpoint_url")
    access_key = values.get("access_key")
    secret_key = values.get("secret_key")

    if not any([endpoint, access_key, secret_key]):
        return None

    if bool(access_key) != bool(secret_key):
        raise ValueError(f"{source}: access key and secret key must be set together")

    endpoint_text = str(endpoint).strip() if endpoint else None
    use_ssl = _parse_bool(values.get("use_ssl"))
    if use_ssl is None:
        use_ssl = not endpoint_text or endpoint_text.startswith("https")

    return S3ConnectionConfig(
        endpoint_url=endpoint_text,
        access_key=str(access_key) if access_key else None,
        secret_key=str(secret_key) if secret_key else None,
        region=str(values.get("region") or "us-east-1"),
        use_ssl=bool(use_ssl),
        url_style=str(values.get("url_style") or "path"),
        session_token=str(values.get("session_token") or "") or None,
        max_attempts=_parse_int(values.get("max_attempts"), name=f"{source}.max_attempts", default=3),
    )


def build_s3_connection_config_from_env(
    env: Mapping[str, str] | None = None,
) -> S3ConnectionConfig | None:
    """Resolve S3 connection config from ``S3_*`` environment variables.

    Returns None when none of ``S3_ENDPOINT_URL``, ``S3_ACCESS_KEY_ID`` and
    ``S3_SECRET_ACCESS_KEY`` is set, leaving credentials to boto3's default chain.
    """

    env = dict(os.environ) if env is None else env
    config = _config_from_values(
        {
            "endpoint_url": env.get("S3_ENDPOINT_URL"),
            "access_key": env.get("S3_ACCESS_KEY_ID"),
            "secret_key": env.get("S3_SECRET_ACCESS_KEY"),
            "region": env.get("S3_REGION"),
            "use_ssl": env.get("S3_USE_SSL"),
            "url_style": env.get("S3_URL_STYLE"),
            "session_token": env.get("S3_SESSION_TOKEN"),
            "max_attempts": env.get("S3_MAX_ATTEMPTS"),
        },
        source="S3_ACCESS_KEY_ID/S3_SECRET_ACCESS_KEY",
    )
    if config is not None:
        log_event(logger, "config.loaded", source="env", endpoint=config.endpoint_url, region=config.region)
    return config


def load_s3_connection_config(path: str | Path) -> S3ConnectionConfig | None:
    """Load connection settings from the ``s3:`` section of a YAML file."""

    yaml_path = Path(path)
    with yaml_path.open("r", encoding="utf-8") as f:
        payload = yaml.safe_load(f) or {}

    if not isinstance(payload, dict):
        raise ValueError(f"{yaml_path} must contain a YAML mapping")
    section = payload.get("s3") or {}
    if not isinstance(section, dict):
        raise ValueError(f"{yaml_path}: 's3' must be a mapping")

    config = _config_from_values(section, source=f"{yaml_path}:s3")
    if config is not None:
        log_event(logger, "config.loaded", source=str(yaml_path), endpoint=config.endpoint_url, region=config.region)
    return config


def get_s3_bucket_name(env: Mapping[str, str] | None = None) -> str:
    env = dict(os.environ) if env is None else env
    return str(env.get("S3_BUCKET_NAME") or DEFAULT_BUCKET_NAME)


def build_boto3_client(config: S3ConnectionConfig | None = None):  # noqa: ANN201
    """Create a boto3 S3 client; retries and backoff are configured here, not in keyfs."""

    if config is None:
        return boto3.client("s3", config=Config(retries={"max_attempts": 3, "mode": "standard"}))

    boto_config = Config(
        s3={"addressing_style": config.url_style},
        retries={"max_attempts": config.max_attempts, "mode": "standard"},
    )
    return boto3.client(
        "s3",
        endpoint_url=config.endpoint_url,
        aws_access_key_id=config.access_key,
        aws_secret_access_key=config.secret_key,
        aws_session_token=config.session_token,
        region_name=config.region,
        use_ssl=config.use_ssl,
        config=boto_config,
    )
