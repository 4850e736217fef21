"""
Formatting of containers and scalars as Python literals.
"""
import math

from varexport.config import DEFAULT_CONFIG
from varexport.errors import DepthExceeded, Unexportable, UnsupportedType
from varexport.values import ValueKind, classify, is_key

# Tokens emitted for floats without a literal form
NAN_TOKEN = "NAN"
INF_TOKEN = "INF"

_ESCAPES = {
    ord("\\"): "\\\\",
    ord("'"): "\\'",
    ord("\n"): "\\n",
    ord("\r"): "\\r",
    ord("\t"): "\\t",
}
_ESCAPES.update({cp: f"\\x{cp:02x}" for cp in list(range(0x20)) + [0x7F] if cp not in _ESCAPES})
# Lone surrogates cannot be written out as UTF-8
_ESCAPES.update({cp: f"\\u{cp:04x}" for cp in range(0xD800, 0xE000)})


def quote_string(value):
    """Single-quoted Python string literal for ``value``."""
    return "'" + value.translate(_ESCAPES) + "'"


def format_number(value):
    """Literal for an int or float; NaN and infinities become named tokens."""
    if isinstance(value, float):
        if math.isnan(value):
            return NAN_TOKEN
        if math.isinf(value):
            return INF_TOKEN if value > 0 else f"-{INF_TOKEN}"
        return float.__repr__(value)
    # Subclasses such as IntEnum override __str__ and __repr__
    return int.__repr__(value)


def sorted_keys(keys):
    """Integer keys ascending, then string keys ascending, then the rest in order."""
    def order(item):
        index, key = item
        if isinstance(key, int) and not isinstance(key, bool):
            return (0, key, 0)
        if isinstance(key, str):
            return (1, key, 0)
        return (2, "", index)

    return [key for _, key in sorted(enumerate(keys), key=order)]


class ValueFormatter:
    """
    Renders a value tree as one Python expression.

    Callables are handed to ``closure_exporter.export_literal`` together with
    the depth of the entry they appear in.
    """

    def __init__(self, config=None, closure_exporter=None):
        self.config = config or DEFAULT_CONFIG
        self.closure_exporter = closure_exporter
        self.special_tokens = set()
        self._handlers = {
            ValueKind.NONE: lambda value, depth, path: "None",
            ValueKind.BOOL: lambda value, depth, path: "True" if value else "False",
            ValueKind.INT: self._format_number,
            ValueKind.FLOAT: self._format_number,
            ValueKind.STRING: lambda value, depth, path: quote_string(value),
            ValueKind.BYTES: lambda value, depth, path: repr(value),
            ValueKind.MAPPING: self._format_mapping,
            ValueKind.SEQUENCE: self._format_sequence,
            ValueKind.CALLABLE: self._format_callable,
            ValueKind.OBJECT: self._reject_object,
            ValueKind.RESOURCE: self._reject_resource,
            ValueKind.UNSUPPORTED: self._reject_unsupported,
        }

    def format(self, value):
        """
        Format ``value``.

        Raises:
            Unexportable: An object instance or resource handle was found.
            DepthExceeded: Containers nest deeper than ``max_depth``.
            UnsupportedType: A value or key has no literal form.
        """
        return self.format_value(value, 0, ())

    def format_value(self, value, depth, path):
        return self._handlers[classify(value)](value, depth, path)

    def _format_number(self, value, depth, path):
        text = format_number(value)
        if text.lstrip("-") in (NAN_TOKEN, INF_TOKEN):
            self.special_tokens.add(text.lstrip("-"))
        return text

    def _format_key(self, key, path):
        if not is_key(key):
            raise UnsupportedType(
                f"Key of type {type(key).__name__} cannot be exported",
                value=key,
                path=path,
            )
        if isinstance(key, tuple):
            # Keys stay on one line in every mode
            items = [self._format_key(item, path) for item in key]
            return "(" + ", ".join(items) + ("," if len(items) == 1 else "") + ")"
        return self.format_value(key, 0, path)

    def _check_depth(self, value, depth, path):
        # The root container is level 1
        if depth + 1 > self.config.max_depth:
            raise DepthExceeded(
                f"Maximum depth of {self.config.max_depth} exceeded",
                value=value,
                path=path,
                suggestion="Raise max_depth or check the value for reference cycles",
            )

    def _format_mapping(self, value, depth, path):
        self._check_depth(value, depth, path)
        if not value:
            return "{}"
        keys = sorted_keys(list(value)) if self.config.sort_keys else list(value)
        items = []
        for key in keys:
            entry_path = path + (key,)
            formatted_key = self._format_key(key, entry_path)
            formatted_value = self.format_value(value[key], depth + 1, entry_path)
            items.append(f"{formatted_key}: {formatted_value}")
        return self._join("{", items, "}", depth)

    def _format_sequence(self, value, depth, path):
        self._check_depth(value, depth, path)
        is_tuple = isinstance(value, tuple)
        opener, closer = ("(", ")") if is_tuple else ("[", "]")
        if not value:
            return opener + closer
        items = [
            self.format_value(item, depth + 1, path + (index,))
            for index, item in enumerate(value)
        ]
        return self._join(opener, items, closer, depth, force_trailing_comma=is_tuple and len(items) == 1)

    def _join(self, opener, items, closer, depth, force_trailing_comma=False):
        if not self.config.pretty:
            trailing = "," if force_trailing_comma else ""
            return opener + ", ".join(items) + trailing + closer

        indent = self.config.indent * depth
        next_indent = self.config.indent * (depth + 1)
        body = ",\n".join(next_indent + item for item in items)
        if self.config.trailing_comma or force_trailing_comma:
            body += ","
        return f"{opener}\n{body}\n{indent}{closer}"

    def _format_callable(self, value, depth, path):
        if self.closure_exporter is None:
            raise UnsupportedType("No closure exporter configured", value=value, path=path)
        return self.closure_exporter.export_literal(value, depth)

    def _reject_object(self, value, depth, path):
        raise Unexportable(
            f"Object of type {type(value).__qualname__} cannot be exported at depth {depth}",
            value=value,
            path=path,
            suggestion="Convert it to a dict or another literal type first",
        )

    def _reject_resource(self, value, depth, path):
        raise Unexportable(
            f"Resource of type {type(value).__qualname__} cannot be exported at depth {depth}",
            value=value,
            path=path,
        )

    def _reject_unsupported(self, value, depth, path):
        raise UnsupportedType(
            f"Unsupported type {type(value).__qualname__} at depth {depth}",
            value=value,
            path=path,
        )
