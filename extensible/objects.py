"""Extensible objects: methods assembled from a stack of layers.

    obj = create_extensible()
    obj.define_method("m", "a, b, cb")
    obj.use({"m": lambda self, a, b, cb: cb(None, a + b)})
    obj.use({"m": lambda self, a, b, cb, next: next(a * 2, b, cb)})
    obj.m(2, 3, done)  # done(None, 7)

The object itself holds only a method registry, a layer chain and plain
attributes. Method names resolve through ``__getattr__`` to entry points
that dispatch through the chain (see ``extensible.dispatch``).

Duplicates come in two flavours:

    obj.fork()        own registry and chain copies, nothing shared
    obj.instance()    same registry and chain as obj, attributes read
                      through to obj unless set on the instance

``fork(delegate=True)`` sits in between: it reads through to the origin
like an instance, but its first ``define_method``/``use`` makes a local
override instead of changing the origin.
"""

from __future__ import annotations

import functools
import inspect
import keyword
import logging
from typing import Any, Callable, Mapping

from extensible.chain import Layer, LayerChain, lookup
from extensible.descriptor import CALL, CONSTRUCT, RESERVED, MethodDescriptor, MethodRegistry
from extensible.dispatch import EntryPoint

logger = logging.getLogger(__name__)

# set in __init__ on root objects, read through by delegated children
SETTINGS = ("debug", "default_state")


def _is_factory(value: Any) -> bool:
    if isinstance(value, Mapping):
        return False
    return inspect.isroutine(value) or inspect.isclass(value) or isinstance(value, functools.partial)


class ExtensibleObject:
    """An object whose methods come from installed layers.

    Args:
        debug: raise NoLayers/MethodNotImplemented instead of silently
            returning None when a call finds no implementation.
        default_state: auxiliary state every top-level call starts with.
    """

    def __init__(
        self,
        debug: bool = False,
        default_state: Any = None,
        *,
        registry: MethodRegistry | None = None,
        chain: LayerChain | None = None,
        parent: ExtensibleObject | None = None,
    ):
        object.__setattr__(self, "_registry", registry if registry is not None else MethodRegistry())
        object.__setattr__(self, "_chain", chain if chain is not None else LayerChain())
        object.__setattr__(self, "_parent", parent)
        object.__setattr__(self, "_entry_points", {})
        if parent is None:
            self.debug = debug
            self.default_state = default_state

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._registry:
            return self._entry_point(name)
        if self._parent is not None:
            return getattr(self._parent, name)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __dir__(self):
        return sorted(set(super().__dir__()) | {d.name for d in self._registry if d.name not in RESERVED})

    def _attributes(self) -> dict[str, Any]:
        """Plain attributes, including those read through from parents."""
        attrs = {} if self._parent is None else self._parent._attributes()
        attrs.update((k, v) for k, v in vars(self).items() if not k.startswith("_"))
        return attrs

    def _entry_point(self, name: str) -> EntryPoint:
        entry = self._entry_points.get(name)
        if entry is None:
            entry = self._entry_points[name] = EntryPoint(self, name)
        return entry

    # -- registry -----------------------------------------------------------

    def define_method(self, name: str, args=None, **metadata) -> None:
        """Declare (or redeclare) a method's parameter list.

        Redefinition is how a signature is upgraded: layers installed from
        now on see the new parameters, earlier layers keep theirs.

        Attributes set on the object take precedence over methods, so a
        name already used as an attribute is rejected; setting an attribute
        after the method is defined hides the method on that object.
        """
        if not isinstance(name, str):
            raise TypeError(f"method name must be a string, not {type(name).__name__}")
        if name not in RESERVED:
            if not name.isidentifier() or keyword.iskeyword(name) or name.startswith("_"):
                raise ValueError(f"invalid method name: {name!r}")
            if hasattr(type(self), name) or name in SETTINGS:
                raise ValueError(f"method name {name!r} would shadow an ExtensibleObject attribute")
            if name in vars(self):
                raise ValueError(f"method name {name!r} is already an attribute of this object")
        descriptor = self._registry.define(name, args, metadata)
        logger.debug("defined %r", descriptor)

    def get_method_descriptor(self, name: str) -> MethodDescriptor | None:
        return self._registry.get(name)

    def each_method_descriptor(self, visitor: Callable[[MethodDescriptor], Any]) -> None:
        """Visit every current descriptor, in no particular order."""
        self._registry.each(visitor)

    @property
    def descriptors(self) -> Mapping[str, MethodDescriptor]:
        return self._registry.snapshot()

    # -- layers -------------------------------------------------------------

    def use(self, implementation, options=None) -> None:
        """Install a layer on top of the chain.

        ``implementation`` is a mapping of method name to function, an
        object carrying the functions as attributes, or a factory (function
        or class) called as ``factory(self, options)`` that returns one.
        A factory may call ``define_method`` before returning; the new layer
        captures the descriptors current after it returns.
        """
        if _is_factory(implementation):
            implementation = implementation(self, options)
        generations = {
            d.name: d for d in self._registry if lookup(implementation, d.name) is not None
        }
        layer = self._chain.push(implementation, generations)
        logger.debug("installed %r", layer)

    def each_layer(self, visitor: Callable[[Layer], Any]) -> None:
        """Visit layers bottom to top, the first installed first."""
        self._chain.each(visitor)

    @property
    def layers(self) -> LayerChain:
        return self._chain

    # -- duplication --------------------------------------------------------

    def fork(self, callable: bool | None = None, delegate: bool = False) -> ExtensibleObject:
        """Duplicate this object.

        Args:
            callable: make the duplicate invocable as a function. None keeps
                this object's kind.
            delegate: read registry, chain and attributes through to this
                object instead of copying them.

        Without ``delegate`` the fork takes a snapshot of this object's plain
        attributes, including those read through from parents. Later changes
        to this object's attributes are not seen by the fork, and the fork is
        not ``instance_of`` this object.
        """
        if callable is None:
            cls = type(self)
        else:
            cls = CallableExtensible if callable else ExtensibleObject
        if delegate:
            dup = cls(registry=self._registry.child(), chain=self._chain.child(), parent=self)
        else:
            dup = cls(registry=self._registry.copy(), chain=self._chain.copy())
            for key, value in self._attributes().items():
                setattr(dup, key, value)
        logger.debug("forked %r (delegate=%s)", self, delegate)
        return dup

    def instance(self, *args, **kwargs) -> ExtensibleObject:
        """Create a child sharing this object's registry and chain.

        Methods defined and layers installed on the child are visible on
        this object too. If ``__construct__`` is defined it is called on the
        child with the given arguments.
        """
        child = type(self)(registry=self._registry, chain=self._chain, parent=self)
        logger.debug("instance of %r", self)
        if CONSTRUCT in self._registry:
            child._entry_point(CONSTRUCT)(*args, **kwargs)
        return child

    def __repr__(self) -> str:
        methods = ", ".join(sorted(d.name for d in self._registry))
        return f"<{type(self).__name__} methods=[{methods}] layers={len(self._chain)}>"


class CallableExtensible(ExtensibleObject):
    """An extensible object invoked through its ``__call__`` method.

    Layers implementing ``__call__`` receive this object as their first
    argument, like any other layer function.
    """

    def __call__(self, *args, **kwargs):
        return self._entry_point(CALL).invoke(args, kwargs, required=True)


def create_extensible(debug: bool = False, default_state: Any = None) -> ExtensibleObject:
    return ExtensibleObject(debug, default_state)


def instance_of(candidate: Any, origin: ExtensibleObject) -> bool:
    """True if candidate is origin or descends from it by delegation."""
    while candidate is not None:
        if candidate is origin:
            return True
        if not isinstance(candidate, ExtensibleObject):
            return False
        candidate = candidate._parent
    return False
