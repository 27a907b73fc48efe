"""Tests for the lexical helpers shared by the extractors."""

import pytest

from callmap.core.exceptions import ParseError
from callmap.core.models import ClassDecl
from callmap.languages.scanning import (
    BlockTracker,
    SourceText,
    Syntax,
    leading_indent,
    mask_source,
    read_parenthesized,
    scan_calls,
    split_target,
    split_top_level,
)

PY_SYNTAX = Syntax(line_comments=("#",), block_comments=(), triple_quotes=True)
C_SYNTAX = Syntax()


class TestMasking:
    """Tests for comment and string masking."""

    def test_masks_string_and_comment_keeping_columns(self) -> None:
        """Masked text has the same shape as the source."""
        content = 'x = "a # b(1)"  # call(2)\ny = 1'
        masked, problems = mask_source(content, PY_SYNTAX)

        assert problems == []
        assert len(masked) == len(content)
        assert masked.count("\n") == 1
        assert "#" not in masked
        assert "(" not in masked
        assert masked.count('"') == 2

    def test_block_comment_spanning_lines(self) -> None:
        """Newlines inside a block comment are kept."""
        content = "a();\n/* b();\n c(); */\nd();"
        masked, _ = mask_source(content, C_SYNTAX)

        lines = masked.split("\n")
        assert len(lines) == 4
        assert lines[1].strip() == ""
        assert lines[2].strip() == ""
        assert lines[3] == "d();"

    def test_triple_quoted_string(self) -> None:
        """Python docstrings are masked across lines."""
        content = 'def f():\n    """Call g() here.\n    And h()."""\n    k()'
        masked, _ = mask_source(content, PY_SYNTAX)

        assert "g(" not in masked
        assert "h(" not in masked
        assert "k()" in masked

    def test_escaped_quote_does_not_end_string(self) -> None:
        """A backslash-escaped quote stays inside the literal."""
        content = "s = 'it\\'s f()'; g()"
        masked, problems = mask_source(content, C_SYNTAX)

        assert problems == []
        assert "f(" not in masked
        assert "g()" in masked

    def test_unterminated_comment_reported(self) -> None:
        """An unterminated block comment is a problem, not an error."""
        masked, problems = mask_source("a();\n/* never closed\nb();", C_SYNTAX)

        assert len(problems) == 1
        assert "unterminated comment" in problems[0]
        assert "b(" not in masked

    def test_unterminated_string_stops_at_line_end(self) -> None:
        """A single-line string that never closes is masked to the line end only."""
        masked, problems = mask_source("x = 'oops\ny()", C_SYNTAX)

        assert problems and "unterminated string" in problems[0]
        assert masked.split("\n")[1] == "y()"


class TestCallScan:
    """Tests for call-site scanning."""

    def scan(self, content: str, keywords: frozenset[str] = frozenset({"if"})) -> list:
        source = SourceText.from_content(content, C_SYNTAX)
        return scan_calls(source, "/src/a.js", keywords, set())

    def test_bare_and_member_calls(self) -> None:
        """Plain and dotted calls are recorded in line order."""
        calls = self.scan("foo(1, 2);\nobj.bar();\na?.b?.c(x)")

        assert [(c.callee, c.line) for c in calls] == [("foo", 1), ("obj.bar", 2), ("a?.b?.c", 3)]
        assert calls[0].arguments == "1, 2"
        assert calls[0].caller == "/src/a.js"

    def test_keywords_are_not_calls(self) -> None:
        """``if (`` is control flow."""
        calls = self.scan("if (ready) { go(); }")

        assert [c.callee for c in calls] == ["go"]

    def test_call_on_call_result_is_dropped(self) -> None:
        """Only the first link of ``foo().bar()`` is recorded."""
        calls = self.scan("foo().bar();")

        assert [c.callee for c in calls] == ["foo"]

    def test_php_style_chains(self) -> None:
        """Arrow and scope-resolution chains are kept whole."""
        calls = self.scan("$this->repo->save($x);\nFoo::create();\n$fn($x);")

        assert [c.callee for c in calls] == ["$this->repo->save", "Foo::create"]

    def test_declared_name_on_signature_line(self) -> None:
        """A declaration's own name is not a call on its signature line."""
        source = SourceText.from_content("function go(a) { go(a - 1); }", C_SYNTAX)
        calls = scan_calls(source, "f", frozenset({"function"}), {(1, "go")})

        assert calls == []

    def test_arguments_spanning_lines_are_truncated(self) -> None:
        """Arguments not closed on the call line end with an ellipsis."""
        calls = self.scan("build(a,\n  b);")

        assert calls[0].arguments == "a, ..."


class TestHelpers:
    """Tests for the small text helpers."""

    def test_split_target(self) -> None:
        assert split_target("$this->repo->save") == ["$this", "repo", "save"]
        assert split_target("a?.b.c") == ["a", "b", "c"]
        assert split_target("Foo::bar") == ["Foo", "bar"]

    def test_split_top_level_respects_brackets(self) -> None:
        parts = split_top_level("a, b: Dict[str, int], c=(1, 2)")

        assert parts == ["a", "b: Dict[str, int]", "c=(1, 2)"]

    def test_read_parenthesized_multiline(self) -> None:
        source = SourceText.from_content("def f(a,\n      b=1):\n    pass", PY_SYNTAX)

        assert read_parenthesized(source, 0, 5) == "a, b=1"

    def test_read_parenthesized_unterminated(self) -> None:
        source = SourceText.from_content("def f(a,\n", PY_SYNTAX)

        with pytest.raises(ParseError) as exc_info:
            read_parenthesized(source, 0, 5)

        assert "line 1" in str(exc_info.value)

    def test_leading_indent(self) -> None:
        assert leading_indent("    x") == 4
        assert leading_indent("\tx") == 4
        assert leading_indent("x") == 0


class TestBlockTracker:
    """Tests for brace tracking."""

    def test_expected_block_kind(self) -> None:
        """A pending kind is attached to the next opening brace."""
        blocks = BlockTracker()
        cls = ClassDecl(name="A", line=1)

        blocks.expect("class", cls)
        blocks.feed("class A")
        blocks.feed("{")
        assert blocks.in_class_body()
        assert blocks.nearest_class() is cls

        blocks.expect("function")
        blocks.feed("  run() {")
        assert not blocks.in_class_body()
        assert blocks.enclosing().kind == "function"
        assert blocks.nearest_class() is cls

        blocks.feed("  }")
        blocks.feed("}")
        assert blocks.top is None
        assert blocks.problems() == []

    def test_semicolon_drops_pending_kind(self) -> None:
        """A bodiless declaration does not claim the next block."""
        blocks = BlockTracker()
        blocks.expect("function")
        blocks.feed("abstract run();")
        blocks.feed("if (x) {")

        assert blocks.top.kind == "block"
        assert blocks.enclosing() is None

    def test_problems(self) -> None:
        """Unbalanced braces are reported."""
        blocks = BlockTracker()
        blocks.feed("{ {")
        blocks.feed("} } }")

        assert blocks.problems() == ["1 unmatched closing brace(s)"]
