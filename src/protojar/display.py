"""Rich-based summaries printed by the CLI once a run is over.

Compile summary (verbose mode adds the tables):

    Staged files      3 (1 failed)
    Include paths     /proj/src/main/resources
                      /proj/target/protos
    Sources           /proj/src/main/proto/orders.proto
    ✓ protoc exited with 0
"""

from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .pipeline import PipelineResult


def _paths_cell(paths: list[Path]) -> Text:
    if not paths:
        return Text("(none)", style="dim")
    return Text("\n".join(str(p) for p in paths))


def status_line(result: PipelineResult) -> Text:
    """One-line verdict for a pipeline run."""
    if not result.compiled:
        return Text("- nothing compiled", style="yellow")
    compile_result = result.compile_result
    assert compile_result is not None
    if result.success:
        return Text(f"✓ protoc exited with {compile_result.exit_code}", style="bold green")
    if compile_result.exit_code is None:
        return Text(f"✗ {compile_result.error}", style="bold red")
    return Text(f"✗ protoc exited with {compile_result.exit_code}", style="bold red")


def summary_table(result: PipelineResult) -> Table:
    """Table of what the run staged and handed to the compiler."""
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("key", style="cyan", no_wrap=True)
    table.add_column("value")

    stage = result.stage
    staged = f"{len(stage.staged)}"
    if stage.failed:
        staged += f" ({len(stage.failed)} failed)"
    if stage.collisions:
        staged += f" ({len(stage.collisions)} overwritten)"
    table.add_row("Staged files", staged)
    table.add_row("Include paths", _paths_cell(result.include_paths))
    table.add_row("Sources", _paths_cell(result.sources))
    if result.output_dir is not None:
        table.add_row("Output", str(result.output_dir))
    return table


def print_result(result: PipelineResult, console: Console, verbose: bool) -> None:
    """Print the compile summary."""
    console.print()
    if verbose:
        console.print(summary_table(result))
    console.print(status_line(result))


def entries_table(entries: dict[Path, list[str]]) -> Table:
    """Table of schema files per archive, for the scan command."""
    table = Table(title="Schema files in dependency archives")
    table.add_column("Archive", style="cyan", no_wrap=True)
    table.add_column("Entry")
    for archive, names in entries.items():
        for i, name in enumerate(names):
            table.add_row(archive.name if i == 0 else "", name)
    return table
