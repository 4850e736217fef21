"""
Symbol resolution for exported function literals.

``SymbolResolver`` rewrites a copy of a literal so that every global
reference inside it names its target by full dotted path, and compile-time
placeholders (``__file__``, ``__name__``, ``__class__``) become literals or
qualified type references. The rewritten literal evaluates the same way in
any module that has the referenced packages imported.
"""
import ast
import builtins
import copy
import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Tuple

from varexport.context import (
    ImportTable,
    NamespaceContext,
    comprehension_scope,
    function_scope,
)
from varexport.errors import SymbolResolutionError
from varexport.log import debug_log

BUILTIN_NAMES = frozenset(dir(builtins))

_FUNCTION_NODES = (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda)


@dataclass(frozen=True)
class Rewrite:
    """A replaced source span (file coordinates) and its new text."""
    lineno: int
    col_offset: int
    end_lineno: int
    end_col_offset: int
    text: str


@dataclass
class ResolvedLiteral:
    node: ast.AST
    original: ast.AST
    source: str = ""
    rewrites: List[Rewrite] = field(default_factory=list)


@dataclass(frozen=True)
class ResolutionContext:
    """Everything a resolver may consult besides the literal itself."""
    imports: ImportTable
    namespace: NamespaceContext
    file_path: str
    ancestors: Tuple[ast.AST, ...] = ()
    captured: FrozenSet[str] = frozenset()


class SymbolResolver(ast.NodeTransformer):
    """
    Rewrites names inside one function literal into context-free references.

    Resolution order for a free name: placeholders (``__file__``,
    ``__name__``, ``__class__``), imports, captured closure variables,
    builtins, then the enclosing module.
    Names bound by the literal itself, or by the functions around it, are
    left untouched.
    """

    def __init__(self, context):
        super().__init__()
        self.context = context
        self._parents = []
        self._scopes = []
        self._rewrites = []

    def resolve(self, node, source=""):
        """Return a ``ResolvedLiteral`` for ``node``; the input tree is not modified."""
        self._parents = list(self.context.ancestors)
        self._scopes = [
            function_scope(ancestor)
            for ancestor in self.context.ancestors
            if isinstance(ancestor, _FUNCTION_NODES)
        ]
        self._rewrites = []
        resolved = self.visit(copy.deepcopy(node))
        debug_log(f"Resolved {len(self._rewrites)} reference(s) in {self.context.file_path}")
        return ResolvedLiteral(node=resolved, original=node, source=source, rewrites=list(self._rewrites))

    def visit(self, node):
        self._parents.append(node)
        try:
            return super().visit(node)
        finally:
            self._parents.pop()

    @contextmanager
    def _scope(self, names):
        self._scopes.append(names)
        try:
            yield
        finally:
            self._scopes.pop()

    # --- scopes ---

    def visit_Lambda(self, node):
        # Defaults belong to the enclosing scope
        node.args = self.visit(node.args)
        with self._scope(function_scope(node)):
            node.body = self.visit(node.body)
        return node

    def visit_FunctionDef(self, node):
        node.decorator_list = [self.visit(d) for d in node.decorator_list]
        node.args = self.visit(node.args)
        if node.returns is not None:
            node.returns = self.visit(node.returns)
        with self._scope(function_scope(node)):
            node.body = [self.visit(stmt) for stmt in node.body]
        return node

    def _visit_comprehension(self, node):
        with self._scope(comprehension_scope(node)):
            return self.generic_visit(node)

    visit_ListComp = _visit_comprehension
    visit_SetComp = _visit_comprehension
    visit_DictComp = _visit_comprehension
    visit_GeneratorExp = _visit_comprehension

    # --- references ---

    def visit_Call(self, node):
        if self._is_dirname_of_file(node):
            directory = os.path.dirname(os.path.abspath(self.context.file_path))
            return self._replace(node, _constant(directory))
        return self.generic_visit(node)

    def visit_Name(self, node):
        if not isinstance(node.ctx, ast.Load) or self._is_local(node.id):
            return node
        dotted = self.resolve_name(node.id, in_call=self._in_call_position(node))
        if isinstance(dotted, ast.AST):
            return self._replace(node, dotted)
        if dotted is None or dotted == node.id:
            return node
        return self._replace(node, dotted_name(dotted))

    def resolve_name(self, name, in_call=False):
        """
        Resolve a free name.

        Returns a dotted path, a replacement node for placeholders, or None
        when the name stays as written.
        """
        imports, namespace = self.context.imports, self.context.namespace
        if name == "__file__":
            return _constant(os.path.abspath(self.context.file_path))
        if name == "__name__" and namespace.module:
            return _constant(namespace.module)
        if name == "__class__":
            # Resolved like a type reference, not a string
            return namespace.qualify(self.enclosing_type())

        entry = imports.lookup(name)
        if entry is not None:
            return entry.path
        if name in self.context.captured:
            return None

        if name in BUILTIN_NAMES and not namespace.defines(name):
            # Builtins resolve the same way in every module
            kind = "function" if in_call else "constant"
            debug_log(f"Keeping builtin {kind} {name}")
            return None

        if namespace.module:
            return namespace.qualify(name)
        return None

    def enclosing_type(self):
        """
        Qualified name of the nearest class around the current node.

        Raises:
            SymbolResolutionError: Outside a class, or for a class that is
                local to a function and so cannot be imported.
        """
        for index in range(len(self._parents) - 1, -1, -1):
            if isinstance(self._parents[index], ast.ClassDef):
                break
        else:
            raise SymbolResolutionError("__class__ used outside of a class body")

        parts = []
        for ancestor in self._parents[: index + 1]:
            if isinstance(ancestor, ast.ClassDef):
                parts.append(ancestor.name)
            elif isinstance(ancestor, _FUNCTION_NODES):
                raise SymbolResolutionError(
                    f"Class {self._parents[index].name} is defined inside a function",
                    suggestion="Move the class to module level to export closures that use it",
                )
        return ".".join(parts)

    # --- helpers ---

    def _is_local(self, name):
        return any(name in scope for scope in self._scopes)

    def _in_call_position(self, node):
        # _parents[-1] is the node itself
        parent = self._parents[-2] if len(self._parents) > 1 else None
        return isinstance(parent, ast.Call) and parent.func is node

    def _is_dirname_of_file(self, node):
        if len(node.args) != 1 or node.keywords:
            return False
        arg = node.args[0]
        if not (isinstance(arg, ast.Name) and arg.id == "__file__") or self._is_local(arg.id):
            return False
        dotted = _dotted(node.func)
        if dotted is None or self._is_local(dotted.split(".")[0]):
            return False
        return self.context.imports.expand(dotted) == "os.path.dirname"

    def _replace(self, original, replacement):
        ast.copy_location(replacement, original)
        text = ast.unparse(replacement)
        self._rewrites.append(Rewrite(
            original.lineno,
            original.col_offset,
            original.end_lineno,
            original.end_col_offset,
            text,
        ))
        return replacement


def dotted_name(dotted):
    """Build a ``Name``/``Attribute`` chain for ``a.b.c``."""
    head, *rest = dotted.split(".")
    node = ast.Name(id=head, ctx=ast.Load())
    for attr in rest:
        node = ast.Attribute(value=node, attr=attr, ctx=ast.Load())
    return node


def _constant(value):
    return ast.Constant(value=value, kind=None)


def _dotted(node) -> Optional[str]:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        base = _dotted(node.value)
        return f"{base}.{node.attr}" if base else None
    return None
