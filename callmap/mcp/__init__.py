"""
MCP server for Callmap.

Exposes the in-memory symbol and call index to LLMs via the Model Context
Protocol. The index lives as long as the server process.

Tools:
    - callmap_analyze: Analyze one file into the index
    - callmap_index: Analyze a whole directory
    - callmap_find: Search for symbols
    - callmap_calls: List what a method or function calls
    - callmap_trace: Trace the execution path from an entry symbol
    - callmap_graph: Dump raw call sites per file
    - callmap_relationships: List import and inheritance edges of a file
    - callmap_dependents: List files importing a file
    - callmap_signature: Check call arguments against a method's parameters
    - callmap_clear: Forget one file or everything
    - callmap_stats: Get index statistics

Usage:
    Run: mcp-server-callmap
"""

import asyncio
import logging

from rich.console import Console
from rich.logging import RichHandler

from callmap.config import Settings
from callmap.mcp.server import serve as _serve


def serve() -> None:
    """Entry point for the MCP server."""
    # stdout carries the protocol; logs go to stderr.
    logging.basicConfig(
        level=Settings().log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    asyncio.run(_serve())


__all__ = ["serve"]
