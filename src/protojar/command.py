"""Command Builder - assemble the protoc argument vector."""

import shlex
from pathlib import Path
from typing import Iterable


def build_protoc_command(
    include_paths: Iterable[Path],
    sources: Iterable[Path],
    output_dir: Path,
    language: str = "java",
) -> list[str]:
    """Build protoc arguments from include paths, sources and an output directory.

    Layout: one --proto_path per include path, one --<language>_out, then one
    bare argument per source file. Nothing else is added.

    Args:
        include_paths: Resolved include directories
        sources: Resolved schema source files
        output_dir: Resolved output directory
        language: Code generator selecting the output flag (e.g. "java", "python")

    Returns:
        Argument list, without the executable
    """
    command = [f"--proto_path={path}" for path in include_paths]
    command.append(f"--{language}_out={output_dir}")
    command.extend(str(source) for source in sources)
    return command


def format_command(executable: str, args: list[str]) -> str:
    """Render a command line for logging, quoted so it can be pasted into a shell."""
    return shlex.join([executable, *args])
