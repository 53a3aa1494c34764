"""Errors raised by the composition engine.

All of them are raised synchronously at the call site of a generated
entry point, or of a ``next`` call that runs off the bottom of the chain.
"""


class ExtensibleError(Exception):
    pass


class NoLayers(ExtensibleError):
    """A method was invoked on an object with no installed layers."""

    def __init__(self, method: str):
        super().__init__(f"Method {method!r} invoked on an object with no layers")
        self.method = method


class MethodNotImplemented(ExtensibleError):
    """The chain was exhausted without finding an implementation."""

    def __init__(self, method: str, message: str | None = None):
        super().__init__(message or f"Method {method!r} has no more layers")
        self.method = method


class CallNotSupported(MethodNotImplemented):
    """A callable object was invoked but no layer implements ``__call__``."""

    def __init__(self, method: str = "__call__"):
        super().__init__(method, "object is not callable: no layer implements '__call__'")
