"""The layer chain: a singly linked stack of implementations.

Each Layer wraps one implementation and points at the layer installed
before it, like an overlay wrapping ``prev``:

    chain.push(bottom_impl, {...})   # first installed
    chain.push(top_impl, {...})      # chain.top, top.next is bottom

Layer nodes never change once created. Duplicating a chain either builds
new nodes around the same implementations (``copy``) or reads through to
the original chain until the duplicate pushes its own layer (``child``).
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping

from extensible.descriptor import MethodDescriptor


def lookup(implementation: Any, name: str) -> Callable | None:
    """Find the function an implementation provides for ``name``.

    Mappings are indexed. Other objects are searched without binding, so a
    function defined on a class receives the composed object as its first
    argument instead of the implementation instance.
    """
    if isinstance(implementation, Mapping):
        fn = implementation.get(name)
    else:
        try:
            fn = inspect.getattr_static(implementation, name)
        except AttributeError:
            return None
        if isinstance(fn, staticmethod):
            fn = fn.__func__
    return fn if callable(fn) else None


@dataclass(frozen=True, eq=False)
class Layer:
    """One installed implementation.

    ``generations`` maps every method this layer implements to the
    descriptor that was current when the layer was installed.
    """

    implementation: Any
    generations: Mapping[str, MethodDescriptor]
    next: Layer | None = None

    def implements(self, name: str) -> bool:
        return name in self.generations

    def find(self, name: str) -> Layer | None:
        """This layer or the first one below it that implements ``name``."""
        layer = self
        while layer is not None and name not in layer.generations:
            layer = layer.next
        return layer

    def __repr__(self) -> str:
        methods = ", ".join(sorted(self.generations))
        return f"Layer({type(self.implementation).__name__}: {methods})"


class LayerChain:
    def __init__(self, top: Layer | None = None, parent: LayerChain | None = None):
        self._top = top
        self._parent = parent

    @property
    def top(self) -> Layer | None:
        if self._parent is not None:
            return self._parent.top
        return self._top

    def push(self, implementation: Any, generations: Mapping[str, MethodDescriptor]) -> Layer:
        layer = Layer(implementation, MappingProxyType(dict(generations)), self.top)
        # first push on a child detaches it from the parent chain
        self._parent = None
        self._top = layer
        return layer

    def __iter__(self) -> Iterator[Layer]:
        """Bottom to top: the first installed layer comes first."""
        layers = []
        layer = self.top
        while layer is not None:
            layers.append(layer)
            layer = layer.next
        return reversed(layers)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def each(self, visitor: Callable[[Layer], Any]) -> None:
        for layer in self:
            visitor(layer)

    def copy(self) -> LayerChain:
        """New nodes, same implementations and captured generations."""
        top = None
        for layer in self:
            top = Layer(layer.implementation, layer.generations, top)
        return LayerChain(top)

    def child(self) -> LayerChain:
        return LayerChain(parent=self)
