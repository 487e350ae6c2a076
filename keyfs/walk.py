"""Depth-bounded traversal of the pseudo-directory tree of a bucket.

S3 only offers flat, paginated listings. With ``delimiter="/"`` one listing
returns a single level: objects directly under a prefix plus the common
prefixes one level down. :func:`walk` stitches such listings into a tree
traversal: the current level is yielded first, then the subtree of every
pseudo-directory found on it, in listing order.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from keyfs.io.uri import SEPARATOR
from keyfs.store.models import ListRequest

if TYPE_CHECKING:
    from keyfs.handle import Handle


@dataclass
class _Level:
    directory: Handle
    remaining: int | None
    depth: int


def _level_request(directory: Handle) -> ListRequest:
    return ListRequest(prefix=directory.path.search_prefix, delimiter=SEPARATOR)


def walk(start: Handle, max_depth: int | None = None, min_depth: int = 0) -> Iterator[Handle]:
    """Yield handles below ``start`` lazily.

    ``max_depth=None`` is unbounded; ``0`` and ``1`` both mean "list the
    immediate children only". Handles less than ``min_depth`` levels below
    ``start`` are not yielded, but their subtrees are still explored.
    Listing happens as the generator is consumed; re-invoke to restart.
    """

    if max_depth is not None and max_depth < 0:
        raise ValueError(f"max_depth must be >= 0 or None, got {max_depth}")
    if min_depth < 0:
        raise ValueError(f"min_depth must be >= 0, got {min_depth}")
    return _walk(start, None if max_depth is None else max_depth - 1, min_depth)


def _walk(start: Handle, remaining: int | None, min_depth: int) -> Iterator[Handle]:
    stack = [_Level(start, remaining, 1)]
    while stack:
        level = stack.pop()
        children: list[_Level] = []
        for handle in start.bucket._handles(_level_request(level.directory)):
            if level.depth >= min_depth:
                yield handle
            if handle.is_directory() and (level.remaining is None or level.remaining > 0):
                next_remaining = None if level.remaining is None else level.remaining - 1
                children.append(_Level(handle, next_remaining, level.depth + 1))
        stack.extend(reversed(children))


def depth_of(handle: Handle, start: Handle) -> int:
    """Number of levels ``handle`` sits below ``start``; -1 if it is not a descendant."""

    prefix = start.path.search_prefix
    name = handle.absolute_name
    if prefix is None:
        base = ""
    elif name.startswith(prefix):
        base = prefix
    else:
        return -1
    relative = name[len(base):]
    if not relative:
        return -1
    return relative.count(SEPARATOR) + 1
