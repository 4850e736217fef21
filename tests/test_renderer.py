"""
Unit tests for varexport/renderer.py.
"""
import ast

import pytest

from varexport.renderer import (
    CodeRenderer,
    count_delimiters,
    normalize_indentation,
    significant_tokens,
    splice,
    strip_comments,
    to_expression,
)
from varexport.resolver import ResolvedLiteral, Rewrite


def first(tree, node_type):
    return next(node for node in ast.walk(tree) if isinstance(node, node_type))


def rewrite_for(node, text):
    return Rewrite(node.lineno, node.col_offset, node.end_lineno, node.end_col_offset, text)


class TestNormalizeIndentation:
    """Tests for normalize_indentation."""

    def test_single_line(self):
        """A one-line literal is only stripped."""
        assert normalize_indentation("  lambda: 1  ", "    ", 3) == "lambda: 1"

    def test_nested_brackets(self):
        """Lines follow their bracket nesting on top of the base depth."""
        code = "lambda x: f(\na,\n   g(\n b,\n),\n)"
        expected = (
            "lambda x: f(\n"
            "        a,\n"
            "        g(\n"
            "            b,\n"
            "        ),\n"
            "    )"
        )
        assert normalize_indentation(code, "    ", 1) == expected

    def test_level_never_negative(self):
        """Extra closers clamp the level at zero."""
        assert normalize_indentation("f(\n)\n)\nz", "  ", 0) == "f(\n)\n)\nz"

    def test_negative_depth_treated_as_zero(self):
        assert normalize_indentation("f(\nx\n)", "  ", -2) == "f(\n  x\n)"

    def test_blank_lines_kept_empty(self):
        """Blank lines get no indentation."""
        assert normalize_indentation("f(\n\nx\n)", "\t", 0) == "f(\n\n\tx\n)"

    def test_brackets_in_strings_ignored(self):
        """Brackets inside string literals do not change the level."""
        code = "lambda: f(\n'(',\n\"[[\"\n)"
        assert normalize_indentation(code, "  ", 0) == "lambda: f(\n  '(',\n  \"[[\"\n)"


class TestCountDelimiters:
    """Tests for count_delimiters."""

    @pytest.mark.parametrize("line, expected", [
        ("f(a, [b], {c: d})", (4, 4)),
        ("f('(', \"[\")", (1, 1)),
        ("x = (  # ( not counted", (1, 0)),
        ("'it\\'s (' + g(", (1, 0)),
        ("", (0, 0)),
    ])
    def test_counts(self, line, expected):
        assert count_delimiters(line) == expected


class TestStripComments:
    """Tests for strip_comments."""

    def test_trailing_and_full_line_comments(self):
        """Trailing comments are cut and comment-only lines dropped."""
        assert strip_comments("a +  # c\n  # only\n  b") == "a +\n  b"

    def test_hash_in_string_kept(self):
        """A # inside a string is not a comment."""
        assert strip_comments("f('#x')  # real") == "f('#x')"

    def test_multi_line_string(self):
        """Strings spanning lines cannot be re-indented."""
        assert strip_comments('x + """a\nb"""') is None

    def test_unbalanced(self):
        """Text that does not tokenize is rejected."""
        assert strip_comments("f(") is None

    def test_crlf_normalized(self):
        assert strip_comments("f(\r\n  x)") == "f(\n  x)"


class TestSplice:
    """Tests for splice."""

    def test_rewrite_applied(self):
        """Rewrites replace their span inside the node's text."""
        source = "f = lambda x: LIMIT + x\n"
        tree = ast.parse(source)
        node = first(tree, ast.Lambda)
        name = next(n for n in ast.walk(node) if isinstance(n, ast.Name) and n.id == "LIMIT")
        assert splice(source, node, [rewrite_for(name, "pkg.mod.LIMIT")]) == "lambda x: pkg.mod.LIMIT + x"

    def test_multiple_rewrites_on_several_lines(self):
        """Later rewrites do not shift earlier ones."""
        source = "f = (lambda: A +\n    B + A)\n"
        tree = ast.parse(source)
        node = first(tree, ast.Lambda)
        rewrites = [
            rewrite_for(n, f"m.{n.id}") for n in ast.walk(node) if isinstance(n, ast.Name)
        ]
        assert splice(source, node, rewrites) == "lambda: m.A +\n    m.B + m.A"

    def test_non_ascii_offsets(self):
        """Column offsets are UTF-8 byte offsets."""
        source = "s = lambda: 'é' + LIMIT\n"
        tree = ast.parse(source)
        node = first(tree, ast.Lambda)
        name = next(n for n in ast.walk(node) if isinstance(n, ast.Name))
        assert splice(source, node, [rewrite_for(name, "pkg.LIMIT")]) == "lambda: 'é' + pkg.LIMIT"


class TestCodeRenderer:
    """Tests for CodeRenderer."""

    @pytest.fixture
    def renderer(self):
        return CodeRenderer()

    def test_render_compact(self, renderer):
        node = first(ast.parse("f = lambda x: (x +\n  1)\n"), ast.Lambda)
        assert renderer.render(ResolvedLiteral(node, node)) == "lambda x: x + 1"

    def test_layout_kept(self, renderer):
        """Line breaks inside brackets are kept, trailing comma included."""
        source = "f = lambda x: g(\n    x,\n    1,\n)\n"
        node = first(ast.parse(source), ast.Lambda)
        assert renderer.render_layout(ResolvedLiteral(node, node, source)) == "lambda x: g(\n    x,\n    1,\n)"

    def test_layout_outside_brackets_falls_back(self, renderer):
        """A literal that only parses inside the caller's brackets is printed compactly."""
        source = "f = (lambda x: x +\n    1)\n"
        node = first(ast.parse(source), ast.Lambda)
        assert renderer.render_layout(ResolvedLiteral(node, node, source)) == "lambda x: x + 1"

    @pytest.mark.parametrize("source", [
        "f = lambda: \"hi\"\n",
        "f = lambda: 0x10\n",
        "f = lambda x: (x)\n",
    ])
    def test_layout_differing_beyond_whitespace_falls_back(self, renderer, source):
        """Quotes, number spelling and extra parentheses follow the compact form."""
        node = first(ast.parse(source), ast.Lambda)
        resolved = ResolvedLiteral(node, node, source)
        assert renderer.render_layout(resolved) == renderer.render(resolved)

    def test_significant_tokens(self):
        """Whitespace, comments and trailing commas are not significant."""
        assert significant_tokens("f(\n  a,  # note\n)") == significant_tokens("f(a)")
        assert significant_tokens("f(\"a\")") != significant_tokens("f('a')")

    def test_layout_mismatch_falls_back(self, renderer):
        """When the spliced text differs from the resolved tree, the compact form wins."""
        source = "f = lambda: a\n"
        original = first(ast.parse(source), ast.Lambda)
        resolved = first(ast.parse("lambda: b"), ast.Lambda)
        assert renderer.render_layout(ResolvedLiteral(resolved, original, source)) == "lambda: b"

    def test_layout_without_source(self, renderer):
        node = first(ast.parse("f = lambda: (1,\n 2)\n"), ast.Lambda)
        assert renderer.render_layout(ResolvedLiteral(node, node)) == "lambda: (1, 2)"

    def test_to_expression_def(self):
        """A def with a docstring and one return becomes a lambda."""
        source = 'def f(a, *, b: int = 2) -> int:\n    "doc"\n    return a + b\n'
        node = first(ast.parse(source), ast.FunctionDef)
        assert ast.unparse(to_expression(node)) == "lambda a, *, b=2: a + b"
