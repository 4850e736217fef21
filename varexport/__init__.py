# varexport - Python values as Python source
"""
Core modules of the exporter:
- errors: Exception taxonomy
- config: Immutable formatter configuration
- values: Classification of runtime values
- source: Function literal handles, source lookup and parsing
- finder: Locating literal nodes in a parsed file
- context: Import table and enclosing module of a file
- resolver: Rewriting references into fully-qualified form
- renderer: Printing and re-indenting resolved literals
- closures: The function literal export pipeline
- formatter: Containers and scalars
"""

from .errors import (
    ExportError,
    ClosureExportError,
    SourceUnavailable,
    ParseError,
    NodeNotFound,
    SymbolResolutionError,
    Unexportable,
    DepthExceeded,
    UnsupportedType,
)
from .config import DEFAULT_CONFIG, FormatterConfig, FormatterMode
from .source import FunctionLiteralHandle
from .closures import ClosureExporter
from .formatter import ValueFormatter

__all__ = [
    'ExportError',
    'ClosureExportError',
    'SourceUnavailable',
    'ParseError',
    'NodeNotFound',
    'SymbolResolutionError',
    'Unexportable',
    'DepthExceeded',
    'UnsupportedType',
    'DEFAULT_CONFIG',
    'FormatterConfig',
    'FormatterMode',
    'FunctionLiteralHandle',
    'ClosureExporter',
    'ValueFormatter',
]
