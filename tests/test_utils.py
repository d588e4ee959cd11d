import pytest

from inkpress.utils import (
    copy_tree,
    deep_merge,
    ensure_clean_dir,
    parse_yaml,
    slugify,
    slugify_segment,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Hello World", "hello-world"),
        ("hello-world", "hello-world"),
        ("  Spaces & Symbols!! ", "spaces-symbols"),
        ("Post_1", "post-1"),
        ("***", "index"),
    ],
)
def test_slugify(name, expected):
    assert slugify(name) == expected


@pytest.mark.parametrize("name", ["Hello World", "Über Cool", "a--b", "2024 Recap", "x"])
def test_slugify_is_idempotent(name):
    once = slugify(name)
    assert slugify(once) == once


def test_slugify_segment_leaves_index_segments_alone():
    assert slugify_segment("index") == "index"
    assert slugify_segment("My_index Page") == "My_index Page"
    assert slugify_segment("My Page") == "my-page"


def test_deep_merge_recurses_into_mappings():
    base = {"a": {"x": 1, "y": 1}, "b": 1, "c": [1]}
    other = {"a": {"y": 2, "z": 3}, "c": [2]}
    merged = deep_merge(base, other)
    assert merged == {"a": {"x": 1, "y": 2, "z": 3}, "b": 1, "c": [2]}
    # inputs are untouched
    assert base == {"a": {"x": 1, "y": 1}, "b": 1, "c": [1]}


def test_deep_merge_other_wins_on_type_conflict():
    assert deep_merge({"a": {"x": 1}}, {"a": "flat"}) == {"a": "flat"}
    assert deep_merge({"a": "flat"}, {"a": {"x": 1}}) == {"a": {"x": 1}}
    assert deep_merge(None, {"a": 1}) == {"a": 1}
    assert deep_merge({"a": 1}, None) is None


def test_deep_merge_with_empty_mapping_is_noop():
    base = {"a": {"b": [1, 2]}, "c": None}
    assert deep_merge(base, {}) == base


def test_deep_merge_is_associative():
    a = {"k": {"x": 1}, "m": 1}
    b = {"k": {"y": 2}}
    c = {"k": {"x": 3}, "m": {"n": 1}}
    assert deep_merge(deep_merge(a, b), c) == deep_merge(a, deep_merge(b, c))


def test_parse_yaml():
    assert parse_yaml("title: Hi\ntags: [a, b]") == {"title": "Hi", "tags": ["a", "b"]}
    assert parse_yaml("") is None


def test_ensure_clean_dir(tmp_path):
    target = tmp_path / "out"
    (target / "nested").mkdir(parents=True)
    (target / "nested" / "file.txt").write_text("x", encoding="utf-8")
    ensure_clean_dir(target)
    assert target.exists()
    assert list(target.iterdir()) == []


def test_copy_tree(tmp_path):
    source = tmp_path / "public"
    (source / "css").mkdir(parents=True)
    (source / "robots.txt").write_text("custom", encoding="utf-8")
    (source / "css" / "site.css").write_text("a{}", encoding="utf-8")

    assert copy_tree(source, tmp_path / "out") == 2
    assert (tmp_path / "out" / "css" / "site.css").read_text(encoding="utf-8") == "a{}"
    assert copy_tree(tmp_path / "missing", tmp_path / "out") == 0


@pytest.mark.parametrize(
    "name, expected",
    [
        ("日本", "日本"),
        ("Café Menu", "café-menu"),
        ("Привет Мир", "привет-мир"),
    ],
)
def test_slugify_keeps_letters_of_any_script(name, expected):
    assert slugify(name) == expected
    assert slugify(expected) == expected
