from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

SEPARATOR = "/"


@dataclass(frozen=True)
class ParsedUri:
    scheme: str
    authority: str
    path: str


def parse_uri(uri: str) -> ParsedUri:
    if not uri:
        raise ValueError("uri is required")
    parsed = urlparse(uri)
    if not parsed.scheme:
        raise ValueError(f"URI missing scheme: {uri}")
    authority = parsed.netloc
    path = parsed.path.lstrip(SEPARATOR)
    return ParsedUri(scheme=parsed.scheme, authority=authority, path=path)


def parse_s3_uri(uri: str, *, require_key: bool = True) -> tuple[str, str]:
    """Split an ``s3://`` URI into bucket and key components.

    With ``require_key=False`` a bare ``s3://bucket`` (or ``s3://bucket/``) is
    accepted and the key comes back empty, which addresses the bucket root.
    """

    parsed = parse_uri(uri)
    if parsed.scheme != "s3":
        raise ValueError(f"Invalid S3 URI: {uri}")
    if not parsed.authority:
        raise ValueError(f"S3 URI missing bucket: {uri}")
    if require_key and not parsed.path:
        raise ValueError(f"S3 URI missing key: {uri}")
    return parsed.authority, parsed.path


def build_s3_uri(bucket: str, key: str) -> str:
    if not bucket:
        raise ValueError("bucket is required")
    return f"s3://{bucket}/{key.lstrip(SEPARATOR)}"


def strip_trailing_separators(value: str) -> str:
    """Remove every trailing separator from ``value``."""

    end = len(value)
    while end > 0 and value[end - 1] == SEPARATOR:
        end -= 1
    return value[:end]


def is_directory_key(key: str) -> bool:
    """A trailing separator marks a key as a pseudo-directory prefix."""

    return key.endswith(SEPARATOR)
