"""Dispatch through the layer chain.

Calling a generated entry point walks the chain from the top, skipping
layers that don't implement the method, and calls the first one found:

    fn(receiver, *args, next=..., layer=..., state=...)

Positional arguments are fitted to the generation the layer captured at
install time, so a layer installed before a signature upgrade keeps
seeing the old parameter list. The layer above is responsible for
calling ``next`` with whatever the layer below expects.

``next``, ``layer`` and ``state`` are only passed to functions that
declare them. ``next(*args, state=...)`` continues below the current
layer; without ``state`` the current auxiliary value is forwarded.
"""

from __future__ import annotations

import inspect
import logging
from functools import lru_cache
from typing import Any, Callable

from extensible.chain import Layer, lookup
from extensible.descriptor import HOOKS, MethodDescriptor
from extensible.errors import CallNotSupported, MethodNotImplemented, NoLayers

logger = logging.getLogger(__name__)

_UNSET = object()


def accepted_hooks(fn: Callable) -> frozenset[str]:
    """Which of next/layer/state ``fn`` can take as keyword arguments."""
    try:
        return _cached_hooks(fn)
    except TypeError:
        # unhashable callable
        return _hooks(fn)


@lru_cache(maxsize=256)
def _cached_hooks(fn: Callable) -> frozenset[str]:
    return _hooks(fn)


def _hooks(fn: Callable) -> frozenset[str]:
    try:
        params = inspect.signature(fn).parameters
    except (TypeError, ValueError):
        return frozenset()
    if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in params.values()):
        return HOOKS
    keyword_kinds = (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)
    return frozenset(n for n in HOOKS if n in params and params[n].kind in keyword_kinds)


def bind_arguments(descriptor: MethodDescriptor, args: tuple, kwargs: dict[str, Any]) -> tuple:
    """Map call-site arguments onto the descriptor's parameter list.

    Missing trailing parameters become None.
    """
    name, names = descriptor.name, descriptor.args
    if len(args) > len(names):
        raise TypeError(
            f"{name}() takes {len(names)} positional arguments but {len(args)} were given"
        )
    values = list(args) + [_UNSET] * (len(names) - len(args))
    for key, value in kwargs.items():
        if key not in names:
            raise TypeError(f"{name}() got an unexpected keyword argument {key!r}")
        i = names.index(key)
        if values[i] is not _UNSET:
            raise TypeError(f"{name}() got multiple values for argument {key!r}")
        values[i] = value
    return tuple(None if v is _UNSET else v for v in values)


def fit(args: tuple, arity: int) -> tuple:
    """Truncate or pad with None to ``arity`` arguments."""
    args = tuple(args[:arity])
    return args + (None,) * (arity - len(args))


def resolve(name: str, descriptor: MethodDescriptor, top: Layer | None) -> Layer:
    """The layer a top-level call of ``name`` enters.

    Raises NoLayers or MethodNotImplemented. The first implementing layer
    must have been installed against the current generation; a redefined
    method without a matching layer has nothing to call.
    """
    if top is None:
        raise NoLayers(name)
    layer = top.find(name)
    if layer is None:
        raise MethodNotImplemented(name)
    if layer.generations[name] is not descriptor:
        raise MethodNotImplemented(
            name,
            f"Layer implementation missing for {name!r} with arguments "
            f"({', '.join(descriptor.args)})",
        )
    return layer


def call_layer(receiver: Any, layer: Layer, name: str, args: tuple, state: Any, strict: bool) -> Any:
    generation = layer.generations[name]
    fn = lookup(layer.implementation, name)
    if fn is None:
        raise MethodNotImplemented(name, f"Layer {layer!r} no longer provides {name!r}")

    current = state

    def next_(*next_args, state=_UNSET):
        if state is _UNSET:
            state = current
        below = layer.next.find(name) if layer.next is not None else None
        if below is None:
            if strict:
                raise MethodNotImplemented(name)
            logger.debug("next() past the bottom of %r dropped", name)
            return None
        return call_layer(receiver, below, name, next_args, state, strict)

    hooks = accepted_hooks(fn)
    kwargs = {}
    if "next" in hooks:
        kwargs["next"] = next_
    if "layer" in hooks:
        kwargs["layer"] = layer
    if "state" in hooks:
        kwargs["state"] = state
    return fn(receiver, *fit(args, generation.arity), **kwargs)


class EntryPoint:
    """The callable returned for ``obj.<method>``.

    Bound to one receiver; the descriptor and chain are read at call time,
    so definitions and layers added later are picked up.
    """

    def __init__(self, receiver: Any, name: str):
        self.receiver = receiver
        self.name = name

    def __call__(self, *args, **kwargs):
        return self.invoke(args, kwargs)

    def invoke(self, args: tuple, kwargs: dict[str, Any], required: bool = False) -> Any:
        receiver, name = self.receiver, self.name
        descriptor = receiver.get_method_descriptor(name)
        if descriptor is None:
            if required:
                raise CallNotSupported(name)
            raise AttributeError(f"method {name!r} is not defined")
        bound = bind_arguments(descriptor, args, kwargs)
        strict = bool(receiver.debug)
        try:
            layer = resolve(name, descriptor, receiver.layers.top)
        except (NoLayers, MethodNotImplemented) as e:
            if required:
                raise CallNotSupported(name) from e
            if strict:
                raise
            logger.debug("call to %r dropped: %s", name, e)
            return None
        return call_layer(receiver, layer, name, bound, receiver.default_state, strict)

    def __repr__(self) -> str:
        descriptor = self.receiver.get_method_descriptor(self.name)
        params = ", ".join(descriptor.args) if descriptor is not None else "?"
        return f"<entry point {self.name}({params})>"
