from __future__ import annotations

import io
import logging
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path as LocalPath
from typing import Any, TypeVar

from boto3.s3.transfer import TransferConfig
from botocore.exceptions import ClientError

from keyfs.config import S3ConnectionConfig, build_boto3_client
from keyfs.errors import NoSuchBucketError, NotFoundError
from keyfs.observability import log_event, store_log_fields
from keyfs.store.models import (
    ListingPage,
    ListRequest,
    ObjectMetadata,
    ObjectSummary,
    StoredObject,
    WriteAck,
    normalize_etag,
)
from keyfs.store.object_store import Body, ObjectStore
from keyfs.store.transfer import Transfer, finishing

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
_NO_SUCH_BUCKET_CODES = {"NoSuchBucket"}


def _error_code(exc: ClientError) -> str:
    response = getattr(exc, "response", None) or {}
    error = response.get("Error") or {}
    return str(error.get("Code") or "")


def _metadata_from_response(response: Mapping[str, Any]) -> ObjectMetadata:
    return ObjectMetadata(
        etag=normalize_etag(response.get("ETag")),
        size=response.get("ContentLength"),
        last_modified=response.get("LastModified"),
        content_type=response.get("ContentType"),
        version_id=response.get("VersionId"),
        storage_class=response.get("StorageClass"),
        user_metadata=dict(response.get("Metadata") or {}),
    )


def _summary_from_entry(entry: Mapping[str, Any]) -> ObjectSummary:
    return ObjectSummary(
        key=entry["Key"],
        etag=normalize_etag(entry.get("ETag")),
        size=entry.get("Size"),
        last_modified=entry.get("LastModified"),
        storage_class=entry.get("StorageClass"),
    )


class Boto3S3Store(ObjectStore):
    """S3/MinIO adapter using boto3.

    Bulk transfers go through boto3's managed transfer (multipart above the
    configured threshold) on a private worker pool.
    """

    def __init__(
        self,
        client: Any | None = None,
        *,
        config: S3ConnectionConfig | None = None,
        transfer_config: TransferConfig | None = None,
        max_transfer_workers: int = 10,
    ) -> None:
        self._client = client or build_boto3_client(config)
        self._transfer_config = transfer_config or TransferConfig()
        self._max_transfer_workers = max_transfer_workers
        self._executor: ThreadPoolExecutor | None = None

    @property
    def client(self) -> Any:
        return self._client

    def _translate(self, bucket: str, key: str | None, call: Callable[[], T]) -> T:
        try:
            return call()
        except ClientError as exc:
            code = _error_code(exc)
            if code in _NOT_FOUND_CODES and key is not None:
                raise NotFoundError(bucket, key) from exc
            if code in _NO_SUCH_BUCKET_CODES:
                raise NoSuchBucketError(bucket) from exc
            raise

    def fetch_object(self, bucket: str, key: str) -> StoredObject:
        log_event(logger, "store.fetch_object", level=logging.DEBUG, **store_log_fields(bucket, key))
        response = self._translate(
            bucket, key, lambda: self._client.get_object(Bucket=bucket, Key=key)
        )
        return StoredObject(key=key, metadata=_metadata_from_response(response), body=response["Body"])

    def fetch_metadata(self, bucket: str, key: str) -> ObjectMetadata:
        log_event(logger, "store.fetch_metadata", level=logging.DEBUG, **store_log_fields(bucket, key))
        response = self._translate(
            bucket, key, lambda: self._client.head_object(Bucket=bucket, Key=key)
        )
        return _metadata_from_response(response)

    def put_object(
        self,
        bucket: str,
        key: str,
        body: Body,
        *,
        content_type: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> WriteAck:
        kwargs: dict[str, Any] = {"Bucket": bucket, "Key": key}
        if content_type:
            kwargs["ContentType"] = content_type
        if metadata:
            kwargs["Metadata"] = dict(metadata)

        if isinstance(body, LocalPath):
            size: int | None = body.stat().st_size
            with body.open("rb") as handle:
                response = self._put(bucket, key, size, Body=handle, **kwargs)
        elif isinstance(body, (bytes, bytearray)):
            size = len(body)
            response = self._put(bucket, key, size, Body=bytes(body), **kwargs)
        else:
            size = None
            response = self._put(bucket, key, size, Body=body, **kwargs)

        return WriteAck(
            etag=normalize_etag(response.get("ETag")),
            size=size,
            version_id=response.get("VersionId"),
        )

    def _put(self, bucket: str, key: str, size: int | None, **kwargs: Any) -> Mapping[str, Any]:
        log_event(
            logger, "store.put_object", level=logging.DEBUG, **store_log_fields(bucket, key, size=size)
        )
        return self._translate(bucket, None, lambda: self._client.put_object(**kwargs))

    def delete_object(self, bucket: str, key: str) -> None:
        log_event(logger, "store.delete_object", level=logging.DEBUG, **store_log_fields(bucket, key))
        self._translate(bucket, None, lambda: self._client.delete_object(Bucket=bucket, Key=key))

    def list_page(
        self,
        bucket: str,
        request: ListRequest,
        continuation_token: str | None = None,
    ) -> ListingPage:
        kwargs: dict[str, Any] = {"Bucket": bucket}
        if request.prefix:
            kwargs["Prefix"] = request.prefix
        if request.delimiter:
            kwargs["Delimiter"] = request.delimiter
        if request.start_after:
            kwargs["StartAfter"] = request.start_after
        if request.max_keys is not None:
            kwargs["MaxKeys"] = request.max_keys
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token

        log_event(
            logger,
            "store.list_page",
            level=logging.DEBUG,
            **store_log_fields(
                bucket,
                prefix=request.prefix,
                delimiter=request.delimiter,
                continued=bool(continuation_token),
            ),
        )
        response = self._translate(bucket, None, lambda: self._client.list_objects_v2(**kwargs))
        return ListingPage(
            object_summaries=tuple(
                _summary_from_entry(entry) for entry in response.get("Contents", []) or []
            ),
            common_prefixes=tuple(
                entry["Prefix"] for entry in response.get("CommonPrefixes", []) or [] if entry.get("Prefix")
            ),
            is_truncated=bool(response.get("IsTruncated")),
            next_continuation_token=response.get("NextContinuationToken"),
        )

    def _submit(self, fn: Callable[[], Any]):  # noqa: ANN202
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_transfer_workers,
                thread_name_prefix="keyfs-transfer",
            )
        return self._executor.submit(fn)

    def begin_upload(
        self,
        bucket: str,
        key: str,
        source: Body,
        *,
        metadata: Mapping[str, str] | None = None,
        on_finish: Callable[[], object] | None = None,
    ) -> Transfer:
        extra_args = {"Metadata": dict(metadata)} if metadata else None

        def _run() -> None:
            log_event(logger, "store.transfer", kind="upload", stage="start", bucket=bucket, key=key)
            if isinstance(source, LocalPath):
                self._translate(
                    bucket,
                    None,
                    lambda: self._client.upload_file(
                        str(source), bucket, key, ExtraArgs=extra_args, Config=self._transfer_config
                    ),
                )
            else:
                fileobj = io.BytesIO(bytes(source)) if isinstance(source, (bytes, bytearray)) else source
                self._translate(
                    bucket,
                    None,
                    lambda: self._client.upload_fileobj(
                        fileobj, bucket, key, ExtraArgs=extra_args, Config=self._transfer_config
                    ),
                )
            log_event(logger, "store.transfer", kind="upload", stage="done", bucket=bucket, key=key)

        return Transfer("upload", bucket, key, self._submit(finishing(_run, on_finish)))

    def begin_download(
        self,
        bucket: str,
        key: str,
        destination: LocalPath,
        *,
        on_finish: Callable[[], object] | None = None,
    ) -> Transfer:
        destination = LocalPath(destination)

        def _run() -> LocalPath:
            log_event(logger, "store.transfer", kind="download", stage="start", bucket=bucket, key=key)
            destination.parent.mkdir(parents=True, exist_ok=True)
            try:
                self._translate(
                    bucket,
                    key,
                    lambda: self._client.download_file(
                        bucket, key, str(destination), Config=self._transfer_config
                    ),
                )
            except Exception:
                destination.unlink(missing_ok=True)
                raise
            log_event(logger, "store.transfer", kind="download", stage="done", bucket=bucket, key=key)
            return destination

        return Transfer("download", bucket, key, self._submit(finishing(_run, on_finish)))

    def bucket_exists(self, bucket: str) -> bool:
        try:
            self._client.head_bucket(Bucket=bucket)
            return True
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES | _NO_SUCH_BUCKET_CODES:
                return False
            raise

    def list_buckets(self) -> list[str]:
        response = self._client.list_buckets()
        return [entry["Name"] for entry in response.get("Buckets", []) or []]

    def create_bucket(self, bucket: str) -> None:
        kwargs: dict[str, Any] = {"Bucket": bucket}
        region = getattr(getattr(self._client, "meta", None), "region_name", None)
        if isinstance(region, str) and region and region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}
        log_event(logger, "store.create_bucket", bucket=bucket, region=region)
        self._client.create_bucket(**kwargs)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> Boto3S3Store:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
