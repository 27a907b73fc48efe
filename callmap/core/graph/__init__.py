"""
Call graph traversal.

The graph is implicit: nodes are symbol-table entries, edges are the call
sites inside each entry's approximate body after normalization.

Data Structures:
    - ExecutionTrace: Ordered path of TraceSteps from an entry point
    - TraceStep: One symbol on the path with its outgoing TraceCalls
    - TraceCall: A normalized outgoing call

Algorithms:
    - trace_execution_path(): depth-bounded DFS with a global visited set
    - resolve_symbol(): map a traced name back to symbol-table entries
"""

from callmap.core.graph.models import ExecutionTrace, TraceCall, TraceStep
from callmap.core.graph.tracer import calls_of, owner_class, resolve_symbol, trace_execution_path

__all__ = [
    "ExecutionTrace",
    "TraceCall",
    "TraceStep",
    "calls_of",
    "owner_class",
    "resolve_symbol",
    "trace_execution_path",
]
