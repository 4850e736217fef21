"""
Per-file resolution context: the import table and the enclosing module.

Both are built once from a parsed module and only read afterwards.
"""
import ast
import os
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple

from varexport.finder import NodeFinder

_SCOPE_BOUNDARIES = (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef, ast.Lambda)
_COMPREHENSIONS = (ast.ListComp, ast.SetComp, ast.DictComp, ast.GeneratorExp)


@dataclass(frozen=True)
class ImportEntry:
    """One name bound by an import statement."""
    alias: str
    path: str
    prefix: Optional[str] = None  # shared module of a ``from prefix import (...)`` group


@dataclass(frozen=True)
class ImportTable:
    entries: Tuple[ImportEntry, ...] = ()
    _by_alias: Dict[str, ImportEntry] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        # Later imports rebind earlier ones
        for entry in self.entries:
            self._by_alias[entry.alias] = entry

    def lookup(self, name):
        return self._by_alias.get(name)

    def expand(self, dotted):
        """Replace the leading segment of ``dotted`` with its imported path, if any."""
        head, _, rest = dotted.partition(".")
        entry = self.lookup(head)
        if entry is None:
            return dotted
        return f"{entry.path}.{rest}" if rest else entry.path


@dataclass(frozen=True)
class NamespaceContext:
    """The module a parsed file is imported as, if known."""
    module: Optional[str] = None
    package: Optional[str] = None
    file_path: Optional[str] = None
    globals: FrozenSet[str] = frozenset()

    def qualify(self, name):
        return f"{self.module}.{name}" if self.module else name

    def defines(self, name):
        return name in self.globals


def build_context(tree, file_path=None, module=None, finder=None):
    """
    Collect the import table and namespace of a parsed module in one pass.

    Args:
        tree: The parsed ``ast.Module``.
        file_path: Path of the file, used to derive the module name when
            ``module`` is not given and to tell packages from modules.
        module: Dotted module name (usually the function's ``__module__``).
        finder: Optional ``NodeFinder`` to walk the tree with.

    Returns:
        ``(ImportTable, NamespaceContext)``
    """
    finder = finder or NodeFinder()
    if module is None and file_path:
        module = module_name_from_path(file_path)
    is_package = bool(file_path) and os.path.basename(file_path) == "__init__.py"
    package = module if is_package else (module.rpartition(".")[0] if module else None)

    entries = []
    for located in finder.walk(tree):
        node = located.node
        if isinstance(node, ast.Import):
            for alias in node.names:
                if alias.asname:
                    entries.append(ImportEntry(alias.asname, alias.name))
                else:
                    head = alias.name.split(".")[0]
                    entries.append(ImportEntry(head, head))
        elif isinstance(node, ast.ImportFrom):
            base = _import_base(node, package)
            if base is None or base == "__future__":
                continue
            for alias in node.names:
                if alias.name == "*":
                    continue
                entries.append(ImportEntry(alias.asname or alias.name, f"{base}.{alias.name}", prefix=base))

    namespace = NamespaceContext(
        module=module,
        package=package or None,
        file_path=file_path,
        globals=bound_names(tree.body),
    )
    return ImportTable(tuple(entries)), namespace


def module_name_from_path(file_path):
    """Dotted module name of a file, found by walking up ``__init__.py`` packages."""
    directory, filename = os.path.split(os.path.abspath(file_path))
    stem = os.path.splitext(filename)[0]
    parts = [] if stem == "__init__" else [stem]
    while os.path.isfile(os.path.join(directory, "__init__.py")):
        directory, name = os.path.split(directory)
        if not name:
            break
        parts.insert(0, name)
    return ".".join(parts) or None


def bound_names(statements):
    """
    Names bound by ``statements`` in their own scope.

    Nested functions and classes bind their name but are not entered.
    Imports are left out; they resolve through the import table instead.
    Names declared ``global`` are excluded.
    """
    names = set()
    declared_global = set()
    pending = list(statements)
    while pending:
        node = pending.pop()
        if isinstance(node, ast.Name):
            if isinstance(node.ctx, (ast.Store, ast.Del)):
                names.add(node.id)
            continue
        if isinstance(node, _SCOPE_BOUNDARIES):
            if not isinstance(node, ast.Lambda):
                names.add(node.name)
                pending.extend(node.decorator_list)
            continue
        if isinstance(node, _COMPREHENSIONS):
            continue
        if isinstance(node, ast.Global):
            declared_global.update(node.names)
        elif isinstance(node, ast.ExceptHandler) and node.name:
            names.add(node.name)
        elif isinstance(node, (ast.MatchAs, ast.MatchStar)) and node.name:
            names.add(node.name)
        elif isinstance(node, ast.MatchMapping) and node.rest:
            names.add(node.rest)
        pending.extend(ast.iter_child_nodes(node))
    return frozenset(names - declared_global)


def function_scope(node):
    """Parameters and local bindings of a lambda or function definition."""
    args = node.args
    names = {arg.arg for arg in args.posonlyargs + args.args + args.kwonlyargs}
    for arg in (args.vararg, args.kwarg):
        if arg is not None:
            names.add(arg.arg)
    body = node.body if isinstance(node.body, list) else [node.body]
    return frozenset(names) | bound_names(body)


def comprehension_scope(node):
    """Target names of a comprehension's ``for`` clauses."""
    names = set()
    for generator in node.generators:
        for target in ast.walk(generator.target):
            if isinstance(target, ast.Name):
                names.add(target.id)
    return frozenset(names)


def _import_base(node, package):
    if not node.level:
        return node.module
    if not package:
        return None
    parts = package.split(".")
    if node.level - 1 >= len(parts):
        return None
    base = ".".join(parts[: len(parts) - (node.level - 1)])
    return f"{base}.{node.module}" if node.module else base
