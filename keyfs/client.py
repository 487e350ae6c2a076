from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path as LocalPath

from keyfs.bucket import Bucket
from keyfs.config import (
    S3ConnectionConfig,
    build_s3_connection_config_from_env,
    load_s3_connection_config,
)
from keyfs.errors import NoSuchBucketError
from keyfs.handle import Handle
from keyfs.io.uri import parse_s3_uri
from keyfs.observability import log_event
from keyfs.store.boto3_store import Boto3S3Store
from keyfs.store.object_store import ObjectStore

logger = logging.getLogger(__name__)


class S3Client:
    """Bucket factory over one :class:`~keyfs.store.object_store.ObjectStore`."""

    def __init__(self, store: ObjectStore) -> None:
        self.store = store

    @classmethod
    def from_config(cls, config: S3ConnectionConfig | None) -> S3Client:
        return cls(Boto3S3Store(config=config))

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> S3Client:
        return cls.from_config(build_s3_connection_config_from_env(env))

    @classmethod
    def from_yaml(cls, path: str | LocalPath) -> S3Client:
        return cls.from_config(load_s3_connection_config(path))

    def get_bucket(self, name: str) -> Bucket:
        """Bucket by name, checked for existence first."""

        if not self.store.bucket_exists(name):
            raise NoSuchBucketError(name)
        return Bucket(name, self.store)

    def bucket(self, name: str) -> Bucket:
        """Bucket by name without any store call."""

        return Bucket(name, self.store)

    def buckets(self) -> list[Bucket]:
        return [Bucket(name, self.store) for name in self.store.list_buckets()]

    def create_bucket(self, name: str) -> Bucket:
        self.store.create_bucket(name)
        log_event(logger, "bucket.created", bucket=name)
        return Bucket(name, self.store)

    def open_uri(self, uri: str) -> Handle:
        """Handle for ``s3://bucket/key``; ``s3://bucket`` gives the bucket root.

        No store call is made; the handle resolves lazily.
        """

        bucket_name, key = parse_s3_uri(uri, require_key=False)
        return self.bucket(bucket_name).file(key)

    def __repr__(self) -> str:
        return f"S3Client(store={type(self.store).__name__})"
