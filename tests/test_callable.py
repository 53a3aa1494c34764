"""Tests for extensible objects invoked as functions."""

import pytest

from extensible import (
    CALL,
    CallableExtensible,
    CallNotSupported,
    MethodNotImplemented,
    create_extensible,
    instance_of,
)


@pytest.fixture
def func():
    f = create_extensible().fork(callable=True)
    f.define_method(CALL, "name")
    f.use({CALL: lambda self, name: f"Hello {name} from {self.origin}"})
    f.origin = "greeter"
    return f


def test_fork_callable_kind():
    plain = create_extensible()
    f = plain.fork(callable=True)
    assert isinstance(f, CallableExtensible)
    assert callable(f)
    assert not callable(plain)
    assert isinstance(f.fork(), CallableExtensible)
    assert not callable(f.fork(callable=False))


def test_called_like_a_function(func):
    assert func("world") == "Hello world from greeter"


def test_keyword_arguments(func):
    assert func(name="kw") == "Hello kw from greeter"


def test_extended_with_upgraded_signature(func):
    func.define_method(CALL, "name, origin")
    func.use({CALL: lambda self, name, another, next: f"{next(name)}, extended by {another}"})
    assert func("world", "foo") == "Hello world from greeter, extended by foo"


def test_instance_shares_layers(func):
    f2 = func.instance()
    # installing on the instance also changes func: they share layers
    f2.use({CALL: lambda self, name, next: next("constant")})
    f2.origin = "another"
    assert callable(f2)
    assert f2("world") == "Hello constant from another"
    assert func("world") == "Hello constant from greeter"


def test_fork_is_isolated(func):
    f2 = func.fork()
    f2.use({CALL: lambda self, name, next: next("constant")})
    f2.origin = "another"
    assert f2("world") == "Hello constant from another"
    assert func("world") == "Hello world from greeter"


def test_self_is_the_invoked_object(func):
    func.use({CALL: lambda self, name: self})
    assert func("x") is func
    forked = func.fork()
    child = func.instance()
    delegated = func.fork(delegate=True)
    assert forked("x") is forked
    assert child("x") is child
    assert delegated("x") is delegated
    assert func("x") is func
    assert instance_of(child, func)
    assert instance_of(delegated, func)


def test_without_call_method():
    f = create_extensible().fork(callable=True)
    with pytest.raises(CallNotSupported):
        f()


def test_call_defined_but_not_implemented():
    f = create_extensible().fork(callable=True)
    f.define_method(CALL)
    with pytest.raises(CallNotSupported):
        f()
    f.use({"other": lambda self: None})
    with pytest.raises(MethodNotImplemented):
        f()


def test_call_redefined_without_layer(func):
    func.define_method(CALL, "name, greeting")
    with pytest.raises(CallNotSupported):
        func("world")
