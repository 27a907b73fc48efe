"""MCP server implementation for Callmap."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from callmap.core.exceptions import CallmapError
from callmap.core.indexer import Indexer
from callmap.core.models import CallSite, ParsedFile, SymbolEntry, SymbolType

logger = logging.getLogger(__name__)

server = Server("callmap")

_indexer: Indexer | None = None


def get_indexer() -> Indexer:
    """Server-owned indexer, shared by every tool call."""
    global _indexer
    if _indexer is None:
        _indexer = Indexer()
    return _indexer


def _symbol_to_dict(entry: SymbolEntry) -> dict[str, Any]:
    """Convert a SymbolEntry to a JSON-serializable dict."""
    return {
        "key": entry.key,
        "name": entry.name,
        "qualified_name": entry.qualified_name,
        "type": entry.kind.value,
        "file": entry.path,
        "line": entry.line,
    }


def _call_to_dict(call: CallSite) -> dict[str, Any]:
    return {
        "caller": call.caller,
        "callee": call.callee,
        "raw": call.raw,
        "line": call.line,
        "arguments": call.arguments,
    }


def _parsed_to_dict(parsed: ParsedFile) -> dict[str, Any]:
    """Summary of a ParsedFile; call sites are counted, not listed."""
    return {
        "path": parsed.path,
        "language": parsed.language,
        "classes": [
            {
                "name": c.name,
                "line": c.line,
                "methods": c.method_names,
                "properties": c.property_names,
                "bases": c.bases,
            }
            for c in parsed.classes
        ],
        "functions": [
            {"name": f.name, "line": f.line, "parameters": f.parameters} for f in parsed.functions
        ],
        "methods": [
            {"class": m.class_name, "name": m.name, "line": m.line, "parameters": m.parameters}
            for m in parsed.methods
        ],
        "imports": parsed.imports,
        "exports": parsed.exports,
        "calls": len(parsed.calls),
    }


@server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="callmap_analyze",
            description=(
                "Analyze one source file (Python, JavaScript, TypeScript or PHP) into the "
                "index. Returns its classes, functions, methods, imports and exports."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {"type": "string", "description": "Path of the file to analyze"},
                },
                "required": ["path"],
            },
        ),
        Tool(
            name="callmap_index",
            description=(
                "Analyze every supported source file below a directory. "
                "Unchanged files are skipped unless force is set."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {"type": "string", "description": "Directory to index"},
                    "exclude": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Additional glob patterns to exclude",
                    },
                    "force": {
                        "type": "boolean",
                        "description": "Re-analyze unchanged files",
                        "default": False,
                    },
                },
                "required": ["path"],
            },
        ),
        Tool(
            name="callmap_find",
            description=(
                "Find classes, functions and methods. The query may be a bare name, "
                "Class::method, Class:: (class and its methods) or a full path:Class::method key."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Symbol query"},
                    "type": {
                        "type": "string",
                        "enum": ["function", "class", "method"],
                        "description": "Filter by symbol type (optional)",
                    },
                },
                "required": ["query"],
            },
        ),
        Tool(
            name="callmap_calls",
            description=(
                "List the calls made inside a method or function body, with self-calls "
                "resolved to the owning class and platform calls left out."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "method": {"type": "string", "description": "Method or function name"},
                    "class_name": {
                        "type": "string",
                        "description": "Owning class (omit for free functions)",
                    },
                },
                "required": ["method"],
            },
        ),
        Tool(
            name="callmap_trace",
            description=(
                "Trace the execution path from an entry symbol such as Class::method, "
                "following calls up to max_depth hops. Cycles are reported, not followed."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "entry": {"type": "string", "description": "Entry symbol"},
                    "max_depth": {
                        "type": "integer",
                        "description": "Maximum depth to trace (default: 5)",
                        "minimum": 0,
                    },
                    "include_parameters": {
                        "type": "boolean",
                        "description": "Include call arguments in the result",
                        "default": False,
                    },
                },
                "required": ["entry"],
            },
        ),
        Tool(
            name="callmap_relationships",
            description=(
                "List the import, extends and implements edges of an analyzed file. "
                "Relative imports are resolved to absolute paths."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {"type": "string", "description": "Analyzed file"},
                },
                "required": ["path"],
            },
        ),
        Tool(
            name="callmap_dependents",
            description="List the analyzed files that import a given file.",
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {"type": "string", "description": "Imported file"},
                },
                "required": ["path"],
            },
        ),
        Tool(
            name="callmap_signature",
            description=(
                "Check the calls a file makes to Class::method against the method's "
                "declared parameters. Reports calls passing too many arguments."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "file": {"type": "string", "description": "Calling file"},
                    "class_name": {"type": "string", "description": "Class of the method"},
                    "method": {"type": "string", "description": "Method name"},
                },
                "required": ["file", "class_name", "method"],
            },
        ),
        Tool(
            name="callmap_graph",
            description="Dump the raw call sites of every analyzed file.",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="callmap_clear",
            description="Forget one analyzed file, or the whole index when no path is given.",
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {"type": "string", "description": "File to forget (optional)"},
                },
            },
        ),
        Tool(
            name="callmap_stats",
            description="Get statistics about the index.",
            inputSchema={"type": "object", "properties": {}},
        ),
    ]


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    indexer = get_indexer()
    try:
        if name == "callmap_analyze":
            result = _handle_analyze(indexer, arguments["path"])
        elif name == "callmap_index":
            result = _handle_index(
                indexer,
                arguments["path"],
                arguments.get("exclude"),
                arguments.get("force", False),
            )
        elif name == "callmap_find":
            result = _handle_find(indexer, arguments["query"], arguments.get("type"))
        elif name == "callmap_calls":
            result = _handle_calls(indexer, arguments.get("class_name"), arguments["method"])
        elif name == "callmap_trace":
            result = _handle_trace(
                indexer,
                arguments["entry"],
                arguments.get("max_depth"),
                arguments.get("include_parameters", False),
            )
        elif name == "callmap_relationships":
            result = _handle_relationships(indexer, arguments["path"])
        elif name == "callmap_dependents":
            result = _handle_dependents(indexer, arguments["path"])
        elif name == "callmap_signature":
            result = _handle_signature(
                indexer, arguments["file"], arguments["class_name"], arguments["method"]
            )
        elif name == "callmap_graph":
            result = _handle_graph(indexer)
        elif name == "callmap_clear":
            result = _handle_clear(indexer, arguments.get("path"))
        elif name == "callmap_stats":
            result = _handle_stats(indexer)
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(type="text", text=json.dumps(result, indent=2))]

    except CallmapError as e:
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]
    except KeyError as e:
        return [TextContent(type="text", text=json.dumps({"error": f"Missing argument: {e}"}))]
    except Exception as e:
        logger.exception("Tool %s failed", name)
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]


def _handle_analyze(indexer: Indexer, path: str) -> dict[str, Any]:
    """Handle callmap_analyze tool."""
    return _parsed_to_dict(indexer.analyze_file(path))


def _handle_index(
    indexer: Indexer, path: str, exclude: list[str] | None, force: bool
) -> dict[str, Any]:
    """Handle callmap_index tool."""
    stats = indexer.index_directory(Path(path), exclude_patterns=exclude, force=force)
    return {
        "files": stats.files,
        "symbols": stats.symbols,
        "calls": stats.calls,
        "skipped": stats.skipped,
        "unchanged": stats.unchanged,
        "errors": stats.errors,
    }


def _handle_find(indexer: Indexer, query: str, symbol_type: str | None) -> dict[str, Any]:
    """Handle callmap_find tool."""
    try:
        type_filter = SymbolType(symbol_type) if symbol_type else None
    except ValueError:
        return {"error": f"Unknown symbol type '{symbol_type}'", "results": []}
    symbols = indexer.find_symbol(query, kind=type_filter)
    return {"results": [_symbol_to_dict(s) for s in symbols]}


def _handle_calls(indexer: Indexer, class_name: str | None, method: str) -> dict[str, Any]:
    """Handle callmap_calls tool."""
    calls = indexer.find_calls_from_method(class_name, method)
    return {"results": [_call_to_dict(c) for c in calls]}


def _handle_trace(
    indexer: Indexer, entry: str, max_depth: int | None, include_parameters: bool
) -> dict[str, Any]:
    """Handle callmap_trace tool."""
    trace = indexer.trace_execution_path(entry, max_depth, include_parameters)
    result = trace.to_dict()
    result["rendered"] = trace.render()
    return result


def _handle_relationships(indexer: Indexer, path: str) -> dict[str, Any]:
    """Handle callmap_relationships tool."""
    return {
        "results": [
            {"source": r.source, "target": r.target, "type": r.kind.value}
            for r in indexer.get_file_relationships(path)
        ]
    }


def _handle_dependents(indexer: Indexer, path: str) -> dict[str, Any]:
    """Handle callmap_dependents tool."""
    return {"results": indexer.get_dependents(path)}


def _handle_signature(
    indexer: Indexer, file: str, class_name: str, method: str
) -> dict[str, Any]:
    """Handle callmap_signature tool."""
    check = indexer.compare_method_signatures(file, class_name, method)
    expected = None
    if check.expected is not None:
        expected = {
            "name": check.expected.qualified_name,
            "line": check.expected.line,
            "parameters": check.expected.parameters,
        }
    return {
        "match": check.match,
        "expected": expected,
        "calls": [_call_to_dict(c) for c in check.calls],
        "issues": check.issues,
    }


def _handle_graph(indexer: Indexer) -> dict[str, Any]:
    """Handle callmap_graph tool."""
    return {
        path: [_call_to_dict(c) for c in calls]
        for path, calls in indexer.get_call_graph().items()
    }


def _handle_clear(indexer: Indexer, path: str | None) -> dict[str, Any]:
    """Handle callmap_clear tool."""
    indexer.clear_cache(path)
    return {"cleared": path if path is not None else "all"}


def _handle_stats(indexer: Indexer) -> dict[str, Any]:
    """Handle callmap_stats tool."""
    stats = indexer.get_stats()
    return {
        "files": stats["files"],
        "symbols": stats["symbols"],
        "calls": stats["calls"],
        "relationships": stats["relationships"],
        "last_analyzed": str(stats["last_analyzed"]) if stats["last_analyzed"] else None,
    }


async def serve() -> None:
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
