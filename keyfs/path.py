"""Normalized, immutable view of a bucket key.

Keys are flat strings; ``/`` is only a naming convention. A :class:`Path`
decomposes a key into its last segment (``name``), the full normalized key
(``absolute_name``) and the raw parent prefix (``parent``). Equality, hashing
and ordering look at ``absolute_name`` alone.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from keyfs.errors import RootPathError
from keyfs.io.uri import SEPARATOR, strip_trailing_separators


@dataclass(frozen=True, order=True)
class Path:
    absolute_name: str
    name: str = field(compare=False)
    parent: str | None = field(compare=False, default=None)

    @classmethod
    def from_key(cls, key: str) -> Path:
        key = strip_trailing_separators(key or "")
        if not key:
            return ROOT
        last_slash = key.rfind(SEPARATOR) + 1
        if last_slash == 0:
            return cls(absolute_name=key, name=key, parent=None)
        return cls(absolute_name=key, name=key[last_slash:], parent=key[:last_slash])

    @classmethod
    def root(cls) -> Path:
        return ROOT

    @property
    def is_root(self) -> bool:
        return self.absolute_name == ""

    @property
    def search_prefix(self) -> str | None:
        """Listing prefix scoping a query to this path's descendants (None for ROOT)."""

        if self.is_root:
            return None
        return self.absolute_name + SEPARATOR

    def parent_path(self) -> Path:
        if self.is_root:
            raise RootPathError("ROOT has no parent")
        if self.parent is None:
            return ROOT
        return Path.from_key(self.parent)

    def get_child(self, name: str) -> Path:
        if self.is_root:
            return Path.from_key(name)
        if not name or SEPARATOR in name:
            return Path.from_key(self.absolute_name + SEPARATOR + name)
        return Path(
            absolute_name=self.absolute_name + SEPARATOR + name,
            name=name,
            parent=self.absolute_name + SEPARATOR,
        )

    def segments(self) -> list[str]:
        if self.is_root:
            return []
        return self.absolute_name.split(SEPARATOR)

    def __str__(self) -> str:
        return self.absolute_name


ROOT = Path(absolute_name="", name="", parent=None)
