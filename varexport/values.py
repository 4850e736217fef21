"""
Classification of runtime values.

Every formatting stage dispatches on ``ValueKind`` instead of inspecting
types itself, so the set of exportable shapes is closed and listed here.
"""
import io
import mmap
import socket
import types
from enum import Enum


class ValueKind(str, Enum):
    NONE = "none"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    BYTES = "bytes"
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    CALLABLE = "callable"
    OBJECT = "object"
    RESOURCE = "resource"
    UNSUPPORTED = "unsupported"


CONTAINER_KINDS = frozenset({ValueKind.MAPPING, ValueKind.SEQUENCE})

RESOURCE_TYPES = (io.IOBase, socket.socket, mmap.mmap)

KEY_KINDS = frozenset({
    ValueKind.NONE,
    ValueKind.BOOL,
    ValueKind.INT,
    ValueKind.FLOAT,
    ValueKind.STRING,
    ValueKind.BYTES,
})


def classify(value) -> ValueKind:
    """Return the kind of ``value``."""
    # bool before int: bool is an int subclass
    if value is None:
        return ValueKind.NONE
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int):
        return ValueKind.INT
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, bytes):
        return ValueKind.BYTES
    if isinstance(value, dict):
        return ValueKind.MAPPING
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    if isinstance(value, (types.FunctionType, types.MethodType)):
        return ValueKind.CALLABLE
    if isinstance(value, RESOURCE_TYPES):
        return ValueKind.RESOURCE
    if _is_user_instance(value):
        return ValueKind.OBJECT
    return ValueKind.UNSUPPORTED


def is_key(value) -> bool:
    """Whether ``value`` can be rendered as a dict key."""
    kind = classify(value)
    if kind in KEY_KINDS:
        return True
    if isinstance(value, tuple):
        return all(is_key(item) for item in value)
    return False


def _is_user_instance(value):
    cls = type(value)
    if isinstance(value, (type, types.ModuleType)):
        return False
    return cls.__module__ != "builtins"
