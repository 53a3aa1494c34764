"""Tests for method descriptors and the registry."""

import pytest

from extensible.descriptor import MethodRegistry, parse_args


def test_parse_args_string():
    assert parse_args("arg1, arg2,arg3 , cb") == ("arg1", "arg2", "arg3", "cb")


def test_parse_args_list():
    assert parse_args([" a", "b "]) == ("a", "b")


def test_parse_args_empty():
    assert parse_args("") == ()
    assert parse_args(None) == ()
    assert parse_args([]) == ()


def test_parse_args_invalid_name():
    with pytest.raises(ValueError, match="invalid parameter name"):
        parse_args("a, b c")


def test_define_and_get():
    r = MethodRegistry()
    d = r.define("m", "a, b", {"doc": "adds"})
    assert r.get("m") is d
    assert d.args == ("a", "b")
    assert d.arity == 2
    assert d.metadata["doc"] == "adds"
    assert r.get("missing") is None


def test_as_dict_merges_metadata():
    r = MethodRegistry()
    d = r.define("m", "a", {"doc": "x", "name": "ignored"})
    assert d.as_dict() == {"name": "m", "args": ["a"], "doc": "x"}


def test_redefinition_creates_new_generation():
    """Same name, same args: still a distinct descriptor."""
    r = MethodRegistry()
    first = r.define("m", "a")
    second = r.define("m", "a")
    assert first is not second
    assert first != second
    assert r.get("m") is second
    assert len(r) == 1


def test_copy_is_independent():
    r = MethodRegistry()
    d = r.define("m", "a")
    c = r.copy()
    c.define("y")
    r.define("z")
    assert c.get("m") is d
    assert "y" in c and "y" not in r
    assert "z" in r and "z" not in c


def test_child_reads_through():
    r = MethodRegistry()
    r.define("m", "a")
    child = r.child()
    assert child.get("m") is r.get("m")
    child.define("y")
    assert "y" not in r
    # later parent definitions stay visible to the child
    r.define("z")
    assert "z" in child


def test_child_override_does_not_touch_parent():
    r = MethodRegistry()
    original = r.define("m", "a")
    child = r.child()
    child.define("m", "a, b")
    assert r.get("m") is original
    assert child.get("m").args == ("a", "b")
    assert len(child) == 1


def test_each_visits_every_descriptor():
    r = MethodRegistry()
    r.define("m", "a, b")
    r.define("state", "arg")
    seen = []
    r.each(seen.append)
    assert sorted((d.name, d.args) for d in seen) == [("m", ("a", "b")), ("state", ("arg",))]


def test_parse_args_rejects_hook_names():
    for args in ("key, state", "node, next", ["layer"]):
        with pytest.raises(ValueError, match="reserved for layer hooks"):
            parse_args(args)
