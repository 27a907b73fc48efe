"""Data models for execution traces."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any


@dataclass
class TraceCall:
    """An outgoing call of a traced symbol, after normalization."""

    target: str
    line: int
    raw: str
    arguments: str | None = None
    back_reference: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "target": self.target,
            "line": self.line,
            "raw": self.raw,
            "back_reference": self.back_reference,
        }
        if self.arguments is not None:
            data["arguments"] = self.arguments
        return data


@dataclass
class TraceStep:
    """One symbol on the execution path.

    ``depth`` counts down from the trace's max depth; a step at depth 0 is
    listed but not expanded. A back-reference step names a symbol already on
    the path and is never expanded.
    """

    symbol: str
    depth: int
    resolved: bool = True
    back_reference: bool = False
    calls: list[TraceCall] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "depth": self.depth,
            "resolved": self.resolved,
            "back_reference": self.back_reference,
            "calls": [c.to_dict() for c in self.calls],
        }


@dataclass
class ExecutionTrace:
    """Ordered (pre-order) path of symbols reached from an entry point."""

    entry: str
    max_depth: int
    steps: list[TraceStep] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[TraceStep]:
        return iter(self.steps)

    @property
    def is_empty(self) -> bool:
        return not self.steps

    def symbols(self) -> list[str]:
        """Expanded symbols in visiting order; back-references left out."""
        return [s.symbol for s in self.steps if not s.back_reference]

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry": self.entry,
            "max_depth": self.max_depth,
            "visited": len(self.symbols()),
            "steps": [s.to_dict() for s in self.steps],
        }

    def render(self) -> str:
        """Indented text form, one step per line."""
        lines = []
        for step in self.steps:
            indent = "  " * (self.max_depth - step.depth)
            suffix = ""
            if step.back_reference:
                suffix = "  (cycle)"
            elif not step.resolved:
                suffix = "  (unresolved)"
            lines.append(f"{indent}{step.symbol}{suffix}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        names = " -> ".join(self.symbols())
        return f"ExecutionTrace({names})"
