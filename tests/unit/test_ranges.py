"""Tests for declaration range approximation."""

from callmap.core.models import CallSite, ClassDecl, FunctionDecl, MethodDecl, ParsedFile
from callmap.core.ranges import calls_in_range, declaration_range, next_declaration_line


def make_parsed() -> ParsedFile:
    return ParsedFile(
        path="/a.py",
        language="python",
        classes=[ClassDecl(name="A", line=3)],
        methods=[MethodDecl(class_name="A", name="run", line=4)],
        functions=[FunctionDecl(name="foo", line=10), FunctionDecl(name="bar", line=20)],
    )


class TestNextDeclarationLine:
    """Tests for the next-declaration proxy."""

    def test_strictly_greater(self) -> None:
        parsed = make_parsed()

        assert next_declaration_line(parsed, 10) == 20
        assert next_declaration_line(parsed, 11) == 20
        assert next_declaration_line(parsed, 3) == 4
        assert next_declaration_line(parsed, 0) == 3

    def test_none_after_last(self) -> None:
        assert next_declaration_line(make_parsed(), 20) is None

    def test_empty_file(self) -> None:
        assert next_declaration_line(ParsedFile(path="/e.py", language="python"), 1) is None


class TestDeclarationRange:
    """Tests for half-open body ranges."""

    def test_range(self) -> None:
        parsed = make_parsed()

        assert declaration_range(parsed, 10) == (10, 20)
        assert declaration_range(parsed, 20) == (20, None)

    def test_calls_in_range_half_open(self) -> None:
        """Line ``end`` belongs to the next declaration."""
        calls = [CallSite(caller="/a.py", callee=f"c{n}", line=n) for n in (9, 10, 15, 19, 20)]

        assert [c.line for c in calls_in_range(calls, 10, 20)] == [10, 15, 19]

    def test_calls_in_range_open_end(self) -> None:
        calls = [CallSite(caller="/a.py", callee="x", line=n) for n in (5, 50, 500)]

        assert [c.line for c in calls_in_range(calls, 50, None)] == [50, 500]
