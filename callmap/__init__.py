"""
Callmap: heuristic multi-file symbol and call indexer.

Callmap scans Python, JavaScript/TypeScript and PHP sources without a parser
to build a symbol table and an approximate call graph, enabling you to:
- Look up classes, functions and methods across files
- List what a method calls, with self-calls resolved to its class
- Trace execution paths from an entry point within N hops

Usage:
    from callmap.core import IndexContext
    from callmap.core.indexer import Indexer

    with IndexContext() as context:
        indexer = Indexer(context)
        indexer.index_directory(Path("."))
        print(indexer.trace_execution_path("App::main").render())
"""

__version__ = "0.1.0"
