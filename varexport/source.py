"""
Source discovery for function literals.

Turns a Python callable into a ``FunctionLiteralHandle`` (file, line span,
parameter and capture metadata), checks that its declaring file can still be
read, and parses that file with ``ast``.
"""
import ast
import inspect
import os
import tokenize
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

from varexport.errors import ParseError, SourceUnavailable
from varexport.log import debug_log


class FunctionLiteralHandle(BaseModel):
    """Read-only metadata about a function literal, as reported by the runtime."""
    model_config = ConfigDict(frozen=True)

    file_path: str = ""
    start_line: int = 0
    end_line: int = 0
    module: Optional[str] = None
    qualname: str = "<lambda>"
    captured_names: Tuple[str, ...] = ()
    parameters: Tuple[str, ...] = ()
    bound_type: Optional[str] = None
    method_name: Optional[str] = None

    @property
    def is_bound_method(self) -> bool:
        return self.method_name is not None

    @property
    def name(self) -> str:
        """Last segment of ``qualname``: ``<lambda>`` or the ``def`` name."""
        return self.qualname.rpartition(".")[2]

    @classmethod
    def from_callable(cls, func):
        """
        Build a handle from a Python function, lambda or bound method.

        Raises:
            SourceUnavailable: If the callable has no Python code object.
        """
        bound_type = method_name = None
        target = func
        if inspect.ismethod(func):
            receiver = func.__self__
            owner = receiver if isinstance(receiver, type) else type(receiver)
            bound_type = qualified_type_name(owner)
            method_name = func.__func__.__name__
            target = func.__func__

        code = getattr(target, "__code__", None)
        if code is None:
            raise SourceUnavailable(f"{func!r} has no Python source", value=func)

        lines = [line for _, _, line in code.co_lines() if line is not None]
        return cls(
            file_path=code.co_filename or "",
            start_line=code.co_firstlineno,
            end_line=max(lines, default=code.co_firstlineno),
            module=getattr(target, "__module__", None),
            qualname=getattr(target, "__qualname__", target.__name__),
            captured_names=tuple(code.co_freevars),
            parameters=parameter_tokens(func),
            bound_type=bound_type,
            method_name=method_name,
        )


class SourceLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    file_path: str
    start_line: int


def qualified_type_name(cls):
    """Dotted import path of a class, e.g. ``pkg.mod.Outer.Inner``."""
    if cls.__module__ in ("builtins", None):
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def parameter_tokens(func):
    """
    Parameter list of ``func`` as source tokens, without defaults or annotations.

    ``def f(a, /, b, *, c, **kw)`` gives ``('a', '/', 'b', '*', 'c', '**kw')``.
    Returns an empty tuple when the signature cannot be read.
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return ()

    tokens = []
    kind = inspect.Parameter
    seen_var_positional = False
    previous = None
    for param in signature.parameters.values():
        if previous is kind.POSITIONAL_ONLY and param.kind is not kind.POSITIONAL_ONLY:
            tokens.append("/")
        if param.kind is kind.VAR_POSITIONAL:
            tokens.append(f"*{param.name}")
            seen_var_positional = True
        elif param.kind is kind.VAR_KEYWORD:
            tokens.append(f"**{param.name}")
        else:
            if param.kind is kind.KEYWORD_ONLY and not seen_var_positional:
                tokens.append("*")
                seen_var_positional = True
            tokens.append(param.name)
        previous = param.kind
    if previous is kind.POSITIONAL_ONLY:
        tokens.append("/")
    return tuple(tokens)


def locate_source(handle):
    """
    Return where the literal is declared.

    Raises:
        SourceUnavailable: If the file is unknown or no longer on disk
            (lambdas created by ``eval``/``exec``, interactive sessions).
    """
    path = handle.file_path
    if not path or (path.startswith("<") and path.endswith(">")):
        raise SourceUnavailable(
            f"{handle.qualname} was not defined in a file ({path or 'no file name'})",
            suggestion="Literals created with eval() or exec() cannot be exported",
        )
    if not os.path.isfile(path):
        raise SourceUnavailable(f"Source file not found: {path}")
    return SourceLocation(file_path=os.path.abspath(path), start_line=handle.start_line)


def read_source(file_path):
    """Read a Python source file, honouring its encoding declaration."""
    try:
        with tokenize.open(file_path) as f:
            return f.read()
    except (OSError, UnicodeDecodeError, SyntaxError) as e:
        # tokenize.open raises SyntaxError for a bad coding cookie
        raise SourceUnavailable(f"Cannot read {file_path}: {e}") from e


def parse_source(code, filename="<unknown>"):
    """
    Parse Python source into an ``ast.Module``.

    Raises:
        ParseError: If the text is not valid Python.
    """
    debug_log(f"Parsing {filename}")
    try:
        return ast.parse(code, filename=filename)
    except SyntaxError as e:
        raise ParseError(
            f"Syntax error in {filename}: {e.msg}",
            line_number=e.lineno,
            column=e.offset,
        ) from e
    except ValueError as e:
        raise ParseError(f"Cannot parse {filename}: {e}") from e
