"""
Function literal export.

``ClosureExporter`` runs the whole pipeline for one callable: find its
source, parse the file, locate the literal, resolve its references and render
it. ``export_literal`` is the entry point used by the value formatter; it
never raises for a closure that cannot be exported and returns a placeholder
lambda instead.
"""
from varexport.config import DEFAULT_CONFIG
from varexport.context import build_context
from varexport.errors import ClosureExportError, NodeNotFound
from varexport.finder import NodeFinder, find_literal
from varexport.log import debug_log
from varexport.renderer import CodeRenderer, normalize_indentation
from varexport.resolver import ResolutionContext, SymbolResolver
from varexport.source import (
    FunctionLiteralHandle,
    locate_source,
    parameter_tokens,
    parse_source,
    read_source,
)


class ClosureExporter:
    """
    Exports Python functions and lambdas as self-contained lambda expressions.

    Args:
        config: ``FormatterConfig``; pretty mode keeps the literal's line
            breaks and re-indents them.
        finder: ``NodeFinder`` used to search parsed files. It holds no state
            and can be shared between exporters.
        renderer: ``CodeRenderer`` used to print resolved literals.
    """

    def __init__(self, config=None, finder=None, renderer=None):
        self.config = config or DEFAULT_CONFIG
        self.finder = finder or NodeFinder()
        self.renderer = renderer or CodeRenderer()

    def with_config(self, config):
        return ClosureExporter(config, finder=self.finder, renderer=self.renderer)

    def export_literal(self, value, depth=0):
        """
        Export ``value`` (a callable or ``FunctionLiteralHandle``); never raises
        for export failures.

        Args:
            value: The closure to export.
            depth: Nesting depth of the surrounding container entry, used to
                indent multi-line literals in pretty mode.

        Returns:
            Source of an equivalent lambda, or a placeholder lambda whose body
            is ``...`` when the source cannot be recovered.
        """
        try:
            return self.export_closure(value, depth)
        except ClosureExportError as e:
            debug_log(f"Cannot export {_describe_target(value)}: {e.message}")
            return describe_closure(value)

    def export_closure(self, value, depth=0):
        """
        Export ``value`` or raise.

        Raises:
            SourceUnavailable: The declaring file is gone or unreadable.
            ParseError: The declaring file does not parse.
            NodeNotFound: No literal starts at the recorded line.
            SymbolResolutionError: A reference cannot be made context-free.
        """
        handle = value if isinstance(value, FunctionLiteralHandle) else FunctionLiteralHandle.from_callable(value)
        location = locate_source(handle)
        source = read_source(location.file_path)
        tree = parse_source(source, location.file_path)

        try:
            located = find_literal(tree, location.start_line, self.finder, handle.name)
        except NodeNotFound:
            if handle.is_bound_method:
                return forwarding_literal(handle)
            raise

        imports, namespace = build_context(tree, location.file_path, handle.module, self.finder)
        resolver = SymbolResolver(ResolutionContext(
            imports=imports,
            namespace=namespace,
            file_path=location.file_path,
            ancestors=located.ancestors,
            captured=frozenset(handle.captured_names),
        ))
        resolved = resolver.resolve(located.node, source)

        if self.config.pretty:
            code = self.renderer.render_layout(resolved)
            return normalize_indentation(code, self.config.indent, depth)
        return self.renderer.render(resolved)


def forwarding_literal(handle):
    """
    Lambda forwarding every call to the method a bound-method handle points at.

    Raises:
        NodeNotFound: If the bound type cannot be named from outside (it is
            local to a function).
    """
    if not handle.bound_type or "<locals>" in handle.bound_type:
        raise NodeNotFound(f"Cannot forward to {handle.qualname}: its class is not importable")
    target = f"{handle.bound_type}.{handle.method_name}"
    debug_log(f"Forwarding bound method to {target}")
    return f"lambda *args, **kwargs: {target}(*args, **kwargs)"


def describe_closure(value):
    """
    Placeholder lambda with the callable's parameters and an elided body.

    Uses only signature introspection, never the source file, and cannot
    fail: without a readable signature it returns ``lambda: ...``.
    """
    if isinstance(value, FunctionLiteralHandle):
        params = value.parameters
    else:
        params = parameter_tokens(value)
    if not params:
        return "lambda: ..."
    return f"lambda {', '.join(params)}: ..."


def _describe_target(value):
    if isinstance(value, FunctionLiteralHandle):
        return value.qualname
    return getattr(value, "__qualname__", None) or repr(value)
