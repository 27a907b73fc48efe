"""CLI entry point for Callmap."""

import json
import logging
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.tree import Tree

from callmap.config import Settings
from callmap.core.exceptions import CallmapError
from callmap.core.graph import ExecutionTrace, TraceStep
from callmap.core.indexer import Indexer
from callmap.core.models import CallSite, IndexStats, SymbolEntry, SymbolType

app = typer.Typer(
    name="callmap",
    help="Heuristic symbol and call indexer for Python, JavaScript/TypeScript and PHP.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

PathOption = Annotated[
    Path, typer.Option("--path", "-p", help="Directory to index before querying")
]
ExcludeOption = Annotated[
    list[str] | None, typer.Option("--exclude", "-e", help="Patterns to exclude")
]
JsonOption = Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Configure logging for every command."""
    level = "DEBUG" if verbose else Settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def build_index(
    path: Path,
    exclude: list[str] | None = None,
    force: bool = False,
    show_progress: bool = False,
) -> tuple[Indexer, Path, IndexStats]:
    """Index a directory into a fresh in-memory Indexer."""
    path = path.resolve()
    indexer = Indexer()
    try:
        if not show_progress:
            stats = indexer.index_directory(path, exclude_patterns=exclude or [], force=force)
            return indexer, path, stats

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            task = progress.add_task(f"Indexing [cyan]{path.name}[/]", total=None)

            def on_progress(file: Path, current: int, total: int) -> None:
                progress.update(task, total=total, completed=current)
                try:
                    rel_path: Path | str = file.relative_to(path)
                except ValueError:
                    rel_path = file.name
                progress.update(task, description=f"[cyan]{rel_path}[/]")

            stats = indexer.index_directory(
                path, exclude_patterns=exclude or [], force=force, on_progress=on_progress
            )
    except CallmapError as e:
        fail(str(e))
    return indexer, path, stats


def fail(message: str) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(1)


def rel(file: str, root: Path) -> str:
    try:
        return str(Path(file).relative_to(root))
    except ValueError:
        return Path(file).name


def symbol_to_dict(entry: SymbolEntry) -> dict[str, object]:
    return {
        "key": entry.key,
        "name": entry.name,
        "qualified_name": entry.qualified_name,
        "type": entry.kind.value,
        "file": entry.path,
        "line": entry.line,
    }


def call_to_dict(call: CallSite) -> dict[str, object]:
    return {
        "caller": call.caller,
        "callee": call.callee,
        "raw": call.raw,
        "line": call.line,
        "arguments": call.arguments,
    }


@app.command()
def index(
    path: Annotated[Path, typer.Argument(help="Directory to index")] = Path("."),
    force: Annotated[bool, typer.Option("--force", "-f", help="Re-analyze all files")] = False,
    exclude: ExcludeOption = None,
) -> None:
    """Index a directory and report what was found."""
    _, _, result = build_index(path, exclude, force, show_progress=True)

    console.print("[green]Done![/green]")
    console.print(f"  Files analyzed: {result.files}")
    console.print(f"  Symbols found: {result.symbols}")
    console.print(f"  Call sites: {result.calls}")

    if result.skipped:
        console.print(f"  [dim]Skipped: {result.skipped}[/]")
    if result.unchanged:
        console.print(f"  [dim]Unchanged: {result.unchanged}[/]")
    if result.errors:
        console.print(f"  [red]Errors: {len(result.errors)}[/red]")
        for error in result.errors:
            console.print(f"    {error}")


@app.command()
def stats(
    path: PathOption = Path("."),
    exclude: ExcludeOption = None,
    output_json: JsonOption = False,
) -> None:
    """Show index statistics."""
    indexer, _, _ = build_index(path, exclude)
    result = indexer.get_stats()

    if output_json:
        print(json.dumps(result, default=str))
    else:
        console.print(f"Files analyzed: {result['files']}")
        console.print(f"Symbols: {result['symbols']}")
        console.print(f"Call sites: {result['calls']}")
        if result["last_analyzed"]:
            console.print(f"Last analyzed: {result['last_analyzed']}")


@app.command()
def find(
    query: Annotated[str, typer.Argument(help="Name, Class::method, Class:: or full key")],
    symbol_type: Annotated[
        str | None, typer.Option("--type", "-t", help="Filter by type: function, class, method")
    ] = None,
    path: PathOption = Path("."),
    exclude: ExcludeOption = None,
    output_json: JsonOption = False,
) -> None:
    """Search for functions, classes, and methods."""
    try:
        type_filter = SymbolType(symbol_type) if symbol_type else None
    except ValueError:
        fail(f"Unknown symbol type '{symbol_type}'")

    indexer, root, _ = build_index(path, exclude)
    symbols = indexer.find_symbol(query, kind=type_filter)

    if output_json:
        print(json.dumps([symbol_to_dict(s) for s in symbols]))
        return
    if not symbols:
        console.print(f"No matches for '[cyan]{query}[/cyan]'")
        return
    for symbol in symbols:
        console.print(f"[cyan]{symbol.qualified_name}[/cyan] ({symbol.kind.value})")
        console.print(f"  {rel(symbol.path, root)}:{symbol.line}")


@app.command()
def calls(
    method: Annotated[str, typer.Argument(help="Method or function name")],
    class_name: Annotated[
        str | None, typer.Option("--class", "-c", help="Owning class of the method")
    ] = None,
    path: PathOption = Path("."),
    exclude: ExcludeOption = None,
    output_json: JsonOption = False,
) -> None:
    """Show what a method or function calls."""
    indexer, _, _ = build_index(path, exclude)
    try:
        results = indexer.find_calls_from_method(class_name, method)
    except CallmapError as e:
        fail(str(e))

    if output_json:
        print(json.dumps([call_to_dict(c) for c in results]))
        return

    label = f"{class_name}::{method}" if class_name else method
    if not results:
        console.print(f"No calls found from '[cyan]{label}[/cyan]'")
        return
    console.print(f"[bold cyan]{label}[/] [green]calls:[/]")
    for call in results:
        suffix = f" [dim](was {call.raw})[/]" if call.raw != call.callee else ""
        console.print(f"  [cyan]{call.callee}[/] [dim](line {call.line})[/]{suffix}")


@app.command()
def trace(
    entry: Annotated[str, typer.Argument(help="Entry symbol, e.g. Class::method")],
    max_depth: Annotated[
        int | None, typer.Option("--depth", "-d", help="Maximum trace depth", min=0)
    ] = None,
    params: Annotated[
        bool, typer.Option("--params", help="Include call arguments in the output")
    ] = False,
    path: PathOption = Path("."),
    exclude: ExcludeOption = None,
    output_json: JsonOption = False,
) -> None:
    """Trace the execution path reachable from an entry symbol."""
    indexer, _, _ = build_index(path, exclude)
    try:
        result = indexer.trace_execution_path(entry, max_depth, include_parameters=params)
    except CallmapError as e:
        fail(str(e))

    if output_json:
        print(json.dumps(result.to_dict()))
        return
    if result.is_empty:
        console.print(f"No matches for '[cyan]{entry}[/cyan]'")
        return
    console.print(render_trace(result, params))
    console.print(f"\n[dim]Visited: {len(result.symbols())} | Depth: {result.max_depth}[/]")


def render_trace(result: ExecutionTrace, params: bool = False) -> Tree:
    """Build a rich tree from the pre-order steps of a trace."""
    root_step = result.steps[0]
    tree = Tree(f"[bold yellow]{root_step.symbol}[/]")
    # Steps are pre-order and depth drops by one per level, so a step hangs
    # under the nearest open step one level up.
    stack: list[tuple[TraceStep, Tree]] = [(root_step, tree)]
    for step in result.steps[1:]:
        while len(stack) > 1 and stack[-1][0].depth <= step.depth:
            stack.pop()
        parent_step, parent_node = stack[-1]

        label = f"[cyan]{step.symbol}[/]"
        if step.back_reference:
            label = f"[dim]{step.symbol} (cycle)[/]"
        elif not step.resolved:
            label = f"[blue]{step.symbol}[/] [dim](unresolved)[/]"
        if params:
            arguments = next(
                (c.arguments for c in parent_step.calls if c.target == step.symbol), None
            )
            if arguments is not None:
                label += f"[dim]({escape(arguments)})[/]"
        stack.append((step, parent_node.add(label)))
    return tree


@app.command()
def dependents(
    file: Annotated[Path, typer.Argument(help="File whose importers to list")],
    path: PathOption = Path("."),
    exclude: ExcludeOption = None,
    output_json: JsonOption = False,
) -> None:
    """List the indexed files that import a file."""
    indexer, root, _ = build_index(path, exclude)
    importers = indexer.get_dependents(file)

    if output_json:
        print(json.dumps(importers))
        return
    if not importers:
        console.print(f"No files import '[cyan]{file}[/cyan]'")
        return
    for importer in importers:
        console.print(rel(importer, root))


@app.command()
def graph(
    path: PathOption = Path("."),
    exclude: ExcludeOption = None,
    output_json: JsonOption = False,
) -> None:
    """Dump every file's raw call sites."""
    indexer, root, _ = build_index(path, exclude)
    call_graph = indexer.get_call_graph()

    if output_json:
        print(
            json.dumps(
                {file: [call_to_dict(c) for c in sites] for file, sites in call_graph.items()}
            )
        )
        return
    for file, sites in call_graph.items():
        console.print(f"[bold]{rel(file, root)}[/] [dim]({len(sites)} calls)[/]")
        for call in sites:
            console.print(f"  {call.line:>5}  [cyan]{call.callee}[/]")


if __name__ == "__main__":
    app()
