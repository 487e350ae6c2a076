from __future__ import annotations

import pytest

from keyfs.errors import RootPathError
from keyfs.path import ROOT, Path


@pytest.mark.parametrize(
    ("key", "absolute_name", "name", "parent"),
    [
        ("a/b/c.txt", "a/b/c.txt", "c.txt", "a/b/"),
        ("a/b/", "a/b", "b", "a/"),
        ("a/b///", "a/b", "b", "a/"),
        ("top", "top", "top", None),
        ("top/", "top", "top", None),
    ],
)
def test_from_key_normalizes_trailing_separators(
    key: str, absolute_name: str, name: str, parent: str | None
) -> None:
    path = Path.from_key(key)

    assert path.absolute_name == absolute_name
    assert path.name == name
    assert path.parent == parent


@pytest.mark.parametrize("key", ["", "/", "///"])
def test_from_key_empty_is_root(key: str) -> None:
    path = Path.from_key(key)

    assert path is ROOT
    assert path.is_root
    assert path.search_prefix is None


@pytest.mark.parametrize("key", ["a", "a/b", "a/b/", "x//y/", "deep/er/still/"])
def test_normalization_is_a_fixed_point(key: str) -> None:
    once = Path.from_key(key)
    twice = Path.from_key(once.absolute_name)

    assert once == twice
    assert not once.absolute_name.endswith("/")


def test_search_prefix_scopes_descendants() -> None:
    assert Path.from_key("colors").search_prefix == "colors/"
    assert Path.from_key("a/b/").search_prefix == "a/b/"


def test_parent_path_of_top_level_is_root() -> None:
    assert Path.from_key("top").parent_path() is ROOT


def test_parent_path_of_nested_key() -> None:
    parent = Path.from_key("a/b/c.txt").parent_path()

    assert parent.absolute_name == "a/b"
    assert parent.name == "b"


def test_root_has_no_parent() -> None:
    with pytest.raises(RootPathError):
        ROOT.parent_path()


@pytest.mark.parametrize("base", ["a", "a/b", "x/y/z"])
@pytest.mark.parametrize("child", ["c", "c.txt", "sub/leaf"])
def test_child_parent_round_trip(base: str, child: str) -> None:
    path = Path.from_key(base)

    child_path = path.get_child(child)

    assert child_path.absolute_name == f"{base}/{child}"
    assert child_path.parent_path().absolute_name.startswith(path.absolute_name)
    if "/" not in child:
        assert child_path.parent_path().absolute_name == path.absolute_name


def test_child_of_root_is_parsed_from_key() -> None:
    child = ROOT.get_child("a/b/")

    assert child.absolute_name == "a/b"
    assert child.name == "b"
    assert child.parent == "a/"


@pytest.mark.parametrize(("base", "child"), [("a", "b"), ("a/b", "c.txt"), ("x/y/z", "leaf")])
def test_child_parent_matches_parsed_key(base: str, child: str) -> None:
    built = Path.from_key(base).get_child(child)
    parsed = Path.from_key(f"{base}/{child}")

    assert built.parent == parsed.parent == f"{base}/"
    assert built.name == parsed.name
    assert built.parent_path() == Path.from_key(base)


def test_child_with_trailing_separator_is_normalized() -> None:
    child = Path.from_key("a").get_child("b/")

    assert child.absolute_name == "a/b"
    assert child.name == "b"


def test_equality_and_ordering_use_absolute_name_only() -> None:
    built = Path(absolute_name="a/b", name="b", parent="a")
    parsed = Path.from_key("a/b/")

    assert built == parsed
    assert hash(built) == hash(parsed)
    assert sorted([Path.from_key("b"), Path.from_key("a/z"), ROOT]) == [
        ROOT,
        Path.from_key("a/z"),
        Path.from_key("b"),
    ]


def test_segments_and_str() -> None:
    path = Path.from_key("a/b/c")

    assert path.segments() == ["a", "b", "c"]
    assert ROOT.segments() == []
    assert str(path) == "a/b/c"
