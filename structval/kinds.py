"""Runtime kinds and type extraction.

Python has no reflection-level notion of "pointer" or "custom type", so
both are expressed as explicit registries of unwrap strategies, keyed by
type and looked up along the value's MRO (a registration for a base class
covers its subclasses):

    indirections   pointer-like references. The strategy returns the
                   referent, or None when the reference is nil. Anything
                   that went through one is reported as nullable.
    custom types   wrappers around a plain value (numpy scalars, ctypes
                   simple data, user types). The strategy returns the
                   underlying value, which is then extracted again.

TypeRegistry.extract() is total: it never raises on its own, whatever it
is handed. A nil anywhere along the chain resolves to Kind.INVALID.
"""

import ctypes
import dataclasses
import numbers
import weakref
from collections.abc import Mapping, Set
from decimal import Decimal
from enum import Enum, auto
from typing import Any, Callable

import numpy as np


class Kind(Enum):
    """What a value fundamentally is, after unwrapping.

    INVALID is reserved for "nothing there": None, a dead weak reference,
    a NULL ctypes pointer. Values of kind INVALID carry no type.
    """
    INVALID = auto()

    # --- Scalars ---
    BOOL    = auto()
    INT     = auto()
    FLOAT   = auto()
    COMPLEX = auto()
    STRING  = auto()
    BYTES   = auto()

    # --- Containers ---
    LIST  = auto()
    TUPLE = auto()
    ARRAY = auto()       # numpy.ndarray
    MAP   = auto()
    SET   = auto()

    # --- Everything else ---
    STRUCT = auto()      # dataclass instance
    FUNC   = auto()
    OBJECT = auto()


# Dereference: (reference) -> referent, or None if the reference is nil
Dereferencer = Callable[[Any], Any]

# Custom type unwrapper: (wrapped) -> underlying value
CustomTypeFunc = Callable[[Any], Any]

# Longest unwrap chain followed before giving up. A chain that long is
# almost certainly a reference cycle.
MAX_UNWRAP_DEPTH = 64


def is_struct(value: Any) -> bool:
    """True for dataclass instances (not dataclass types)."""
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def kind_of(value: Any) -> Kind:
    """Classify a plain value. Does not unwrap anything.

    A value that cannot be inspected at all (a dead weakref.proxy raises
    ReferenceError on any attribute access) is INVALID.
    """
    try:
        return _classify(value)
    except ReferenceError:
        return Kind.INVALID


def _classify(value: Any) -> Kind:
    if value is None:
        return Kind.INVALID
    # bool is an Integral, check it first
    if isinstance(value, bool):
        return Kind.BOOL
    if isinstance(value, numbers.Integral):
        return Kind.INT
    if isinstance(value, (numbers.Real, Decimal)):
        return Kind.FLOAT
    if isinstance(value, numbers.Complex):
        return Kind.COMPLEX
    if isinstance(value, str):
        return Kind.STRING
    if isinstance(value, (bytes, bytearray, memoryview)):
        return Kind.BYTES
    if isinstance(value, np.ndarray):
        return Kind.ARRAY
    if is_struct(value):
        return Kind.STRUCT
    if isinstance(value, Mapping):
        return Kind.MAP
    if isinstance(value, tuple):
        return Kind.TUPLE
    if isinstance(value, list):
        return Kind.LIST
    if isinstance(value, (Set, frozenset)):
        return Kind.SET
    if callable(value):
        return Kind.FUNC
    return Kind.OBJECT


# ---------------------------------------------------------------------------
# Default strategies
# ---------------------------------------------------------------------------

def _deref_weakref(ref: weakref.ref) -> Any:
    return ref()


def _deref_ctypes_pointer(ptr: Any) -> Any:
    # NULL pointers are falsy; .contents on one raises ValueError
    return ptr.contents if ptr else None


def _deref_weakproxy(proxy: Any) -> Any:
    # Attribute access on a proxy is forwarded to the referent, so the
    # bound method's __self__ is the referent itself. Classes bind
    # __call__ rather than __getattribute__.
    try:
        for name in ("__getattribute__", "__call__"):
            referent = getattr(getattr(proxy, name, None), "__self__", None)
            if referent is not None:
                return referent
    except ReferenceError:
        return None
    return None


def _unwrap_numpy_scalar(value: np.generic) -> Any:
    return value.item()


def _unwrap_ctypes_simple(value: Any) -> Any:
    # A NULL py_object raises instead of returning None
    try:
        return value.value
    except ValueError:
        return None


DEFAULT_INDIRECTIONS: dict[type, Dereferencer] = {
    weakref.ReferenceType: _deref_weakref,
    weakref.ProxyType: _deref_weakproxy,
    weakref.CallableProxyType: _deref_weakproxy,
    ctypes._Pointer: _deref_ctypes_pointer,
}

DEFAULT_CUSTOM_TYPES: dict[type, CustomTypeFunc] = {
    np.generic: _unwrap_numpy_scalar,
    ctypes._SimpleCData: _unwrap_ctypes_simple,
}


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TypeRegistry:
    """Unwrap strategies for pointer-like and custom-wrapped types.

    Each Validate owns one. Registration replaces any previous strategy
    for the same type.
    """

    def __init__(self, defaults: bool = True) -> None:
        self._indirections: dict[type, Dereferencer] = {}
        self._custom: dict[type, CustomTypeFunc] = {}
        if defaults:
            self._indirections.update(DEFAULT_INDIRECTIONS)
            self._custom.update(DEFAULT_CUSTOM_TYPES)

    def register_indirection(self, fn: Dereferencer, *types: type) -> None:
        """Treat instances of `types` as references followed through `fn`."""
        for t in types:
            self._indirections[t] = fn

    def register_custom_type(self, fn: CustomTypeFunc, *types: type) -> None:
        """Unwrap instances of `types` to the value returned by `fn`."""
        for t in types:
            self._custom[t] = fn

    def extract(self, value: Any) -> tuple[Any, Kind, bool]:
        """Dereference and unwrap `value` down to a plain value.

        Returns (value, kind, nullable). `nullable` is True when the
        original value was None or passed through at least one
        indirection. A nil anywhere yields (None, Kind.INVALID, True).
        """
        nullable = False
        for _ in range(MAX_UNWRAP_DEPTH):
            if value is None:
                return None, Kind.INVALID, True

            deref = _lookup(self._indirections, value)
            if deref is not None:
                nullable = True
                value = deref(value)
                continue

            unwrap = _lookup(self._custom, value)
            if unwrap is not None:
                value = unwrap(value)
                continue

            return value, kind_of(value), nullable

        return None, Kind.INVALID, nullable


def _lookup(table: dict[type, Callable[[Any], Any]], value: Any) -> Callable[[Any], Any] | None:
    if not table:
        return None
    for klass in type(value).__mro__:
        fn = table.get(klass)
        if fn is not None:
            return fn
    return None
