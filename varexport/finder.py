"""
Locating function literals inside a parsed module.

The search is a pre-order, depth-first walk with an explicit stack. Every
match comes back with the tuple of its ancestors, so later stages can look
at enclosing classes and functions without parent pointers on the tree.
"""
import ast
from dataclasses import dataclass
from typing import Tuple

from varexport.errors import NodeNotFound
from varexport.log import debug_log

LAMBDA_NAME = "<lambda>"


@dataclass(frozen=True)
class LocatedNode:
    node: ast.AST
    ancestors: Tuple[ast.AST, ...] = ()

    @property
    def parent(self):
        return self.ancestors[-1] if self.ancestors else None


class NodeFinder:
    """Stateless search helper; one instance can serve any number of trees."""

    def walk(self, tree):
        """Yield ``LocatedNode`` for every node of ``tree`` in source (pre-)order."""
        stack = [(tree, ())]
        while stack:
            node, ancestors = stack.pop()
            yield LocatedNode(node, ancestors)
            path = ancestors + (node,)
            for child in reversed(list(ast.iter_child_nodes(node))):
                stack.append((child, path))

    def find_first(self, tree, predicate):
        """First located node for which ``predicate(node, ancestors)`` holds, or None."""
        for located in self.walk(tree):
            if predicate(located.node, located.ancestors):
                return located
        return None


def literal_start_line(node):
    """First source line of a literal, counting decorators as ``co_firstlineno`` does."""
    lines = [node.lineno]
    for decorator in getattr(node, "decorator_list", ()):
        lines.append(decorator.lineno)
    return min(lines)


def is_expression_def(node, parent=None):
    """
    Whether ``node`` is a plain ``def`` whose body is one ``return <expr>``.

    Such a function is a block-bodied literal that can be rewritten as a
    lambda. Methods (defs directly inside a class body) never qualify.
    """
    if not isinstance(node, ast.FunctionDef) or isinstance(parent, ast.ClassDef):
        return False
    body = node.body
    if body and _is_docstring(body[0]):
        body = body[1:]
    return len(body) == 1 and isinstance(body[0], ast.Return) and body[0].value is not None


def is_function_literal(node, parent=None):
    return isinstance(node, ast.Lambda) or is_expression_def(node, parent)


def matches_name(node, name):
    """
    Whether ``node`` can be the code object called ``name``.

    ``<lambda>`` matches only lambdas; any other name only a ``def`` of that
    name. A None name matches every literal.
    """
    if name is None:
        return True
    if name == LAMBDA_NAME:
        return isinstance(node, ast.Lambda)
    return isinstance(node, ast.FunctionDef) and node.name == name


def find_literal(tree, start_line, finder=None, name=None):
    """
    Locate the function literal starting at ``start_line``.

    ``name`` is the last segment of the callable's ``__qualname__`` and
    keeps a lambda default on a ``def`` line, or a ``def`` returning a lambda
    on one line, from standing in for each other. When several literals of
    the same kind start on the same line the first one in source order wins.

    Raises:
        NodeNotFound: If no matching literal starts on that line.
    """
    finder = finder or NodeFinder()

    def matches(node, ancestors):
        parent = ancestors[-1] if ancestors else None
        return (
            is_function_literal(node, parent)
            and matches_name(node, name)
            and literal_start_line(node) == start_line
        )

    located = finder.find_first(tree, matches)
    if located is None:
        what = f"function literal {name}" if name else "function literal"
        raise NodeNotFound(f"No {what} starts at line {start_line}")
    debug_log(f"Found {type(located.node).__name__} at line {start_line}")
    return located


def _is_docstring(stmt):
    return (
        isinstance(stmt, ast.Expr)
        and isinstance(stmt.value, ast.Constant)
        and isinstance(stmt.value.value, str)
    )
