"""
Error types for the varexport exporter.

Closure pipeline failures (``ClosureExportError`` and its subclasses) are
recoverable: the closure exporter turns them into a placeholder. Container and
scalar failures propagate to the caller.
"""


class ExportError(Exception):
    """Base exception for export errors with the offending value and its location."""
    def __init__(self, message, value=None, path=None, suggestion=None):
        self.message = message
        self.value = value
        self.path = path
        self.suggestion = suggestion  # How to fix it
        super().__init__(self._format_error())

    def _format_error(self):
        """Format the error message with location and suggestion."""
        lines = [self.message]
        if self.path:
            lines.append(f"   at {format_path(self.path)}")
        if self.suggestion:
            lines.append(f"   💡 {self.suggestion}")
        return "\n".join(lines)


class ClosureExportError(ExportError):
    """A function literal could not be exported from its source."""


class SourceUnavailable(ClosureExportError):
    """The declaring file of a function literal cannot be read."""


class ParseError(ClosureExportError):
    """The declaring file is not valid Python source."""
    def __init__(self, message, value=None, line_number=None, column=None):
        self.line_number = line_number
        self.column = column
        if line_number:
            message = f"{message} (line {line_number}" + (f", column {column})" if column else ")")
        super().__init__(message, value=value)


class NodeNotFound(ClosureExportError):
    """No function literal starts at the recorded line."""


class SymbolResolutionError(ClosureExportError):
    """A reference inside the literal has no context-independent form."""


class Unexportable(ExportError):
    """Object instances and OS resource handles have no literal form."""


class DepthExceeded(ExportError):
    """Containers are nested deeper than the configured maximum."""


class UnsupportedType(ExportError):
    """The value's type has no literal form."""


def format_path(path):
    """Render a container path such as ``('a', 0)`` as ``value['a'][0]``."""
    parts = ["value"]
    for key in path:
        parts.append(f"[{key!r}]")
    return "".join(parts)
