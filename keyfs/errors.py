from __future__ import annotations


class KeyfsError(Exception):
    """Base error for keyfs."""


class NotFoundError(KeyfsError):
    """Raised when a key is confirmed absent from its bucket."""

    def __init__(self, bucket: str, key: str) -> None:
        super().__init__(f"Key '{key}' not found in bucket '{bucket}'")
        self.bucket = bucket
        self.key = key


class WrongKindOfHandleError(KeyfsError):
    """Raised when a value operation hits a directory, or a child operation hits an object."""

    def __init__(self, path: str, message: str, *, child: str | None = None) -> None:
        super().__init__(message)
        self.path = path
        self.child = child

    @classmethod
    def not_a_value(cls, path: str) -> WrongKindOfHandleError:
        return cls(path, f"'{path}' refers to a directory, not a value")

    @classmethod
    def not_a_directory(cls, path: str, child: str | None = None) -> WrongKindOfHandleError:
        if child is None:
            return cls(path, f"'{path}' is not a directory")
        return cls(
            path,
            f"'{path}' is not a directory and cannot have child '{child}'",
            child=child,
        )


class RootPathError(KeyfsError):
    """Raised when the parent of the root path is requested."""


class NoSuchBucketError(KeyfsError):
    """Raised when a bucket cannot be found by name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Bucket '{name}' does not exist")
        self.name = name
