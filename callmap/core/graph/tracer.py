"""Bounded, cycle-safe walk of the call graph from an entry symbol."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from callmap.core.exceptions import InvalidArgumentError
from callmap.core.graph.models import ExecutionTrace, TraceCall, TraceStep
from callmap.core.models import CallSite, SymbolEntry, SymbolType
from callmap.core.ranges import calls_in_range, declaration_range

if TYPE_CHECKING:
    from callmap.core.normalizer import CallTargetNormalizer
    from callmap.core.storage.context import IndexContext

logger = logging.getLogger(__name__)


def resolve_symbol(context: IndexContext, symbol: str) -> list[SymbolEntry]:
    """Entries a traced symbol stands for.

    ``Class::method`` and full keys resolve exactly; a bare name prefers
    function entries and falls back to anything with that name.
    """
    table = context.symbols
    if "::" in symbol or table.get(symbol) is not None:
        return table.find(symbol)
    functions = table.find(symbol, kind=SymbolType.FUNCTION)
    return functions or table.find(symbol)


def owner_class(entry: SymbolEntry) -> str | None:
    """Class a self-reference inside ``entry`` refers to."""
    if entry.kind == SymbolType.METHOD:
        return entry.class_name
    if entry.kind == SymbolType.CLASS:
        return entry.name
    return None


def calls_of(context: IndexContext, entry: SymbolEntry) -> list[CallSite]:
    """Call sites inside the approximate body of ``entry``."""
    parsed = context.files.get(entry.path)
    if parsed is None:
        return []
    start, end = declaration_range(parsed, entry.line)
    return calls_in_range(context.calls.get(entry.path), start, end)


def trace_execution_path(
    context: IndexContext,
    normalizer: CallTargetNormalizer,
    entry: str,
    max_depth: int = 5,
    include_parameters: bool = False,
) -> ExecutionTrace:
    """Trace what ``entry`` calls, up to ``max_depth`` hops.

    DFS with a visited set shared across the whole walk: every symbol is
    expanded at most once. A call to an already visited symbol is kept in the
    caller's outgoing calls as a back-reference; the first one per symbol also
    becomes a step.

    Raises:
        InvalidArgumentError: If ``entry`` is empty or ``max_depth`` negative.
    """
    if not entry or not entry.strip():
        raise InvalidArgumentError("Entry symbol must not be empty")
    if max_depth < 0:
        raise InvalidArgumentError(f"max_depth must be >= 0, got {max_depth}")

    entry = entry.strip()
    trace = ExecutionTrace(entry=entry, max_depth=max_depth)
    entries = resolve_symbol(context, entry)
    if not entries:
        logger.debug("Entry %s not in the symbol table", entry)
        return trace

    # calls come back as qualified names, whatever form the entry was given in
    visited: set[str] = {entry}
    visited.update(e.qualified_name for e in entries)
    back_referenced: set[str] = set()

    def expand(step: TraceStep) -> None:
        if step.depth <= 0:
            return
        for symbol_entry in resolve_symbol(context, step.symbol):
            owner = owner_class(symbol_entry)
            for call in calls_of(context, symbol_entry):
                target = normalizer.normalize(call.raw, owner)
                if target is None:
                    continue
                seen = target in visited
                step.calls.append(
                    TraceCall(
                        target=target,
                        line=call.line,
                        raw=call.raw,
                        arguments=call.arguments if include_parameters else None,
                        back_reference=seen,
                    )
                )
                if seen:
                    if target not in back_referenced:
                        back_referenced.add(target)
                        trace.steps.append(
                            TraceStep(symbol=target, depth=step.depth - 1, back_reference=True)
                        )
                    continue

                visited.add(target)
                child = TraceStep(
                    symbol=target,
                    depth=step.depth - 1,
                    resolved=bool(resolve_symbol(context, target)),
                )
                trace.steps.append(child)
                if child.resolved:
                    expand(child)

    root = TraceStep(symbol=entry, depth=max_depth)
    trace.steps.append(root)
    expand(root)
    return trace
