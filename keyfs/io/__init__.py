"""Key and URI helpers (no I/O)."""

from keyfs.io.uri import (
    SEPARATOR,
    ParsedUri,
    build_s3_uri,
    is_directory_key,
    parse_s3_uri,
    parse_uri,
    strip_trailing_separators,
)

__all__ = [
    "SEPARATOR",
    "ParsedUri",
    "build_s3_uri",
    "is_directory_key",
    "parse_s3_uri",
    "parse_uri",
    "strip_trailing_separators",
]
