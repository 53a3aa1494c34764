"""Objects whose methods are composed from an ordered stack of layers.

Each layer can intercept, transform, short-circuit or delegate to the
layer beneath it via ``next``. See ``extensible.objects`` for the object
model and ``extensible.dispatch`` for the calling convention.
"""

from extensible.chain import Layer, LayerChain
from extensible.descriptor import CALL, CONSTRUCT, MethodDescriptor, MethodRegistry
from extensible.errors import CallNotSupported, ExtensibleError, MethodNotImplemented, NoLayers
from extensible.objects import CallableExtensible, ExtensibleObject, create_extensible, instance_of

__all__ = [
    "create_extensible", "instance_of",
    "ExtensibleObject", "CallableExtensible",
    "MethodDescriptor", "MethodRegistry",
    "Layer", "LayerChain",
    "CALL", "CONSTRUCT",
    "ExtensibleError", "NoLayers", "MethodNotImplemented", "CallNotSupported",
]
