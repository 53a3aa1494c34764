"""Method descriptors and the registry that maps names to them.

A descriptor is the calling convention of one method:

    MethodDescriptor(name="m", args=("a", "b", "cb"), metadata={})

Defining a method again under the same name stores a new descriptor
(a new *generation*). Layers keep the generation they saw when they were
installed, so the registry only ever answers with the current one.
"""

from __future__ import annotations

from collections import ChainMap
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Iterable, Iterator, Mapping

CALL = "__call__"
CONSTRUCT = "__construct__"
RESERVED = frozenset({CALL, CONSTRUCT})

# passed to layer functions by keyword, so never usable as parameters
HOOKS = frozenset({"next", "layer", "state"})


def parse_args(args: str | Iterable[str] | None) -> tuple[str, ...]:
    """Normalize a parameter list.

    Accepts "a, b, cb" or ["a", "b", "cb"]; names are stripped and empty
    entries dropped, so "" and None both mean no parameters.
    """
    if args is None:
        return ()
    if isinstance(args, str):
        args = args.split(",")
    names = tuple(a.strip() for a in args if a and a.strip())
    for a in names:
        if not a.isidentifier():
            raise ValueError(f"invalid parameter name: {a!r}")
        if a in HOOKS:
            raise ValueError(f"parameter name {a!r} is reserved for layer hooks")
    return names


@dataclass(frozen=True, eq=False)
class MethodDescriptor:
    """One generation of a method's calling convention.

    Equality is identity: two definitions with the same parameter list are
    still distinct generations.
    """

    name: str
    args: tuple[str, ...]
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def arity(self) -> int:
        return len(self.args)

    def as_dict(self) -> dict[str, Any]:
        """Metadata merged under {name, args}; name and args always win."""
        return {**self.metadata, "name": self.name, "args": list(self.args)}

    def __repr__(self) -> str:
        return f"MethodDescriptor({self.name}({', '.join(self.args)}))"


class MethodRegistry:
    """Name -> current MethodDescriptor.

    Backed by a ChainMap so a child registry can read through to its
    parent while keeping its own definitions local (see ``child``).
    """

    def __init__(self, maps: ChainMap | None = None):
        self._maps = maps if maps is not None else ChainMap()

    def define(self, name: str, args=None, metadata: Mapping[str, Any] | None = None) -> MethodDescriptor:
        descriptor = MethodDescriptor(name, parse_args(args), MappingProxyType(dict(metadata or {})))
        self._maps[name] = descriptor
        return descriptor

    def get(self, name: str) -> MethodDescriptor | None:
        return self._maps.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._maps

    def __iter__(self) -> Iterator[MethodDescriptor]:
        # ChainMap iteration order is not part of the contract
        return iter([self._maps[name] for name in self._maps])

    def __len__(self) -> int:
        return len(self._maps)

    def each(self, visitor: Callable[[MethodDescriptor], Any]) -> None:
        for descriptor in self:
            visitor(descriptor)

    def snapshot(self) -> Mapping[str, MethodDescriptor]:
        return MappingProxyType(dict(self._maps))

    def copy(self) -> MethodRegistry:
        """Independent registry holding the same descriptor values."""
        return MethodRegistry(ChainMap(dict(self._maps)))

    def child(self) -> MethodRegistry:
        """Registry that reads through to this one.

        Definitions made on the child land in its own front map and never
        reach the parent; names the child never defined keep tracking the
        parent, including definitions the parent makes later.
        """
        return MethodRegistry(self._maps.new_child())
