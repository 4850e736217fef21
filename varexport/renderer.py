"""
Rendering resolved function literals back to source text.

``CodeRenderer.render`` prints the canonical one-line form with
``ast.unparse``. ``CodeRenderer.render_layout`` keeps the line breaks the
author wrote, splicing the resolved references into the original text, as long
as the result differs from the compact form in whitespace alone. It is used by
pretty output together with ``normalize_indentation``.
"""
import ast
import io
import itertools
import re
import tokenize

from varexport.log import debug_log

_LINE_RE = re.compile(r"[^\r\n]*(?:\r\n|\r|\n)|[^\r\n]+\Z")

_OPENERS = "([{"
_CLOSERS = ")]}"
_LAYOUT_TOKENS = frozenset({
    tokenize.NL,
    tokenize.NEWLINE,
    tokenize.COMMENT,
    tokenize.INDENT,
    tokenize.DEDENT,
    tokenize.ENDMARKER,
})
_STRING_RE = re.compile(r"""(?:[rbuf]{0,2})('(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")""", re.IGNORECASE)


class CodeRenderer:
    """Turns a ``ResolvedLiteral`` into a single expression."""

    def render(self, resolved):
        """Compact one-line rendering."""
        return ast.unparse(to_expression(resolved.node))

    def render_layout(self, resolved):
        """
        Rendering that keeps the original line breaks of the literal.

        Comments are dropped. The layout is only kept when it differs from
        ``render`` in whitespace and trailing commas alone; otherwise (a
        ``def``, a multi-line string, other quotes, extra parentheses, a
        different number spelling) the compact form is returned.
        """
        compact = self.render(resolved)
        if not isinstance(resolved.original, ast.Lambda) or not resolved.source:
            return compact

        text = splice(resolved.source, resolved.original, resolved.rewrites)
        text = strip_comments(text)
        if text is None:
            return compact

        try:
            parsed = ast.parse(text, mode="eval")
        except SyntaxError:
            debug_log("Layout of literal is not a standalone expression, using compact form")
            return compact
        same_tree = ast.dump(parsed.body) == ast.dump(resolved.node)
        if not same_tree or significant_tokens(text) != significant_tokens(compact):
            debug_log("Layout rendering differs from compact form, using compact form")
            return compact
        return text


def to_expression(node):
    """
    Expression form of a literal node.

    A ``def`` whose body is a single ``return`` becomes the equivalent
    lambda; decorators and annotations have no lambda counterpart and are
    dropped.
    """
    if isinstance(node, ast.Lambda):
        return node
    args = node.args
    for arg in args.posonlyargs + args.args + args.kwonlyargs + [args.vararg, args.kwarg]:
        if arg is not None:
            arg.annotation = None
    return ast.Lambda(args=args, body=node.body[-1].value)


def splice(source, node, rewrites):
    """Source text of ``node`` with every rewrite applied."""
    lines = [line.encode("utf-8") for line in _LINE_RE.findall(source)]
    first = node.lineno - 1
    region = lines[first:node.end_lineno]
    starts = list(itertools.accumulate([0] + [len(line) for line in region]))

    def offset(lineno, col):
        # ast columns are UTF-8 byte offsets
        return starts[lineno - 1 - first] + col

    buf = b"".join(region)
    begin = offset(node.lineno, node.col_offset)
    end = offset(node.end_lineno, node.end_col_offset)
    for rewrite in sorted(rewrites, key=lambda r: (r.lineno, r.col_offset), reverse=True):
        s = offset(rewrite.lineno, rewrite.col_offset)
        e = offset(rewrite.end_lineno, rewrite.end_col_offset)
        replacement = rewrite.text.encode("utf-8")
        buf = buf[:s] + replacement + buf[e:]
        end += len(replacement) - (e - s)
    return buf[begin:end].decode("utf-8")


def strip_comments(text):
    """
    Remove comments and comment-only lines from an expression's text.

    Returns None when the text cannot be re-indented safely: it does not
    tokenize, or it contains a string spanning several lines.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    wrapped = f"({text}\n)"
    try:
        tokens = list(tokenize.generate_tokens(io.StringIO(wrapped).readline))
    except (tokenize.TokenError, SyntaxError):
        return None

    lines = wrapped.split("\n")
    for tok in tokens:
        if tok.start[0] != tok.end[0]:
            return None
        if tok.type == tokenize.COMMENT:
            row, col = tok.start
            lines[row - 1] = lines[row - 1][:col].rstrip()
    kept = [line for line in lines[:-1] if line.strip()]
    return "\n".join(kept)[1:].rstrip()


def significant_tokens(text):
    """
    Token strings of an expression without layout, comments or trailing commas.

    Two texts with equal token lists differ only in whitespace and in commas
    written before a closing bracket.
    """
    tokens = [
        tok.string
        for tok in tokenize.generate_tokens(io.StringIO(f"({text}\n)").readline)
        if tok.type not in _LAYOUT_TOKENS
    ]
    return [
        tok for index, tok in enumerate(tokens)
        if not (tok == "," and index + 1 < len(tokens) and tokens[index + 1] in _CLOSERS)
    ]


def count_delimiters(line):
    """``(opened, closed)`` bracket counts of a line, ignoring strings and comments."""
    code = _STRING_RE.sub("''", line)
    code = code.split("#", 1)[0]
    opened = sum(code.count(ch) for ch in _OPENERS)
    closed = sum(code.count(ch) for ch in _CLOSERS)
    return opened, closed


def normalize_indentation(code, indent, depth):
    """
    Re-indent a multi-line expression so it nests at ``depth`` levels.

    The first line is the literal's header and keeps its place after the
    key or list marker written by the caller. Every following line is
    indented by ``depth`` plus its bracket nesting inside the literal.
    """
    lines = code.split("\n")
    if len(lines) == 1:
        return code.strip()

    depth = max(0, depth)
    header = lines[0].strip()
    opened, closed = count_delimiters(header)
    level = max(0, opened - closed)
    result = [header]
    for line in lines[1:]:
        stripped = line.strip()
        if not stripped:
            result.append("")
            continue
        if stripped[0] in _CLOSERS:
            level = max(0, level - 1)
        result.append(indent * (depth + level) + stripped)
        opened, closed = count_delimiters(stripped)
        if stripped[0] in _CLOSERS:
            # The leading closer was already applied
            closed -= 1
        level = max(0, level + opened - closed)
    return "\n".join(result)
