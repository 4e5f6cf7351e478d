"""
Command-line interface for protojar.

This module provides the `protojar` CLI tool for compiling protocol buffers
bundled in dependency archives.
"""

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, TextIO

from rich.console import Console

from protojar import __version__
from protojar.artifacts import collect_artifacts
from protojar.config import ConfigError, ProtocConfig, load_config
from protojar.display import entries_table, print_result
from protojar.output import ConsoleSink, TimedLogger, log, log_error, log_staged, set_output_file, set_verbose
from protojar.pipeline import ProtocPipeline
from protojar.scanner import ArchiveScanner

EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


@dataclass
class ArtifactArgs:
    """Where the dependency artifacts come from."""

    project_dir: Path
    artifacts: list[str] = field(default_factory=list)
    classpath_files: list[str] = field(default_factory=list)
    artifact_dirs: list[str] = field(default_factory=list)


@dataclass
class CompileArgs(ArtifactArgs):
    """Arguments for the compile command."""

    sources: Optional[list[str]] = None
    include_paths: Optional[list[str]] = None
    output: Optional[str] = None
    protoc: Optional[str] = None
    language: Optional[str] = None
    timeout: Optional[float] = None
    clear: Optional[bool] = None
    always_extract: Optional[bool] = None
    verbose: Optional[bool] = None


@dataclass
class ScanArgs(ArtifactArgs):
    """Arguments for the scan command."""

    table: bool = False


def _gather_artifacts(args: ArtifactArgs) -> list[Path]:
    return collect_artifacts(
        args.project_dir,
        paths=args.artifacts,
        classpath_files=args.classpath_files,
        artifact_dirs=args.artifact_dirs,
    )


def compile_command(args: CompileArgs, console: Optional[Console] = None) -> int:
    """Stage bundled protos and run protoc.

    Examples:
        protojar compile -s src/main/proto/orders.proto --classpath-file cp.txt
        protojar compile --artifact-dir target/dependency -s api.proto -l python -o gen/
        protojar compile -v --no-clear ...

    Returns:
        Process exit code
    """
    console = console or Console()
    try:
        config: ProtocConfig = load_config(
            args.project_dir,
            overrides={
                "sources": args.sources,
                "include_paths": args.include_paths,
                "output": args.output,
                "protoc": args.protoc,
                "language": args.language,
                "timeout": args.timeout,
                "clear": args.clear,
                "always_extract": args.always_extract,
                "verbose": args.verbose,
            },
        )
        artifacts = _gather_artifacts(args)
    except ConfigError as e:
        log_error(str(e))
        return EXIT_USAGE
    except OSError as e:
        log_error(f"Could not read artifact list: {e}")
        return EXIT_USAGE

    set_verbose(config.verbose)
    log(f"protojar v{__version__}")
    log(f"Project: {args.project_dir}", verbose_only=True)
    log(f"Artifacts: {len(artifacts)}", verbose_only=True)

    pipeline = ProtocPipeline(args.project_dir, config, ConsoleSink())
    try:
        with TimedLogger("Compiling protocol buffers"):
            result = pipeline.execute(artifacts)
    except KeyboardInterrupt:
        log_error("Interrupted")
        return EXIT_INTERRUPTED

    print_result(result, console, config.verbose)
    if result.success:
        return 0
    if result.exit_code is None:
        return 1
    if result.exit_code < 0:
        # Killed by a signal: report it the way a shell does
        return 128 - result.exit_code
    return result.exit_code


def scan_command(args: ScanArgs, console: Optional[Console] = None) -> int:
    """List protos bundled in dependency archives without extracting them.

    Returns:
        Process exit code (0 even when nothing is found)
    """
    try:
        artifacts = _gather_artifacts(args)
    except OSError as e:
        log_error(f"Could not read artifact list: {e}")
        return EXIT_USAGE

    entries = ArchiveScanner(ConsoleSink()).list_entries(artifacts)
    if args.table:
        (console or Console()).print(entries_table(entries))
    else:
        for archive, names in entries.items():
            for name in names:
                log_staged(archive.name, name, verbose_only=False)
    log(f"{sum(len(names) for names in entries.values())} proto file(s) in {len(entries)} archive(s)")
    return 0


def _add_artifact_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    parser.add_argument(
        "-a",
        "--artifact",
        dest="artifacts",
        action="append",
        default=[],
        help="Dependency archive to search (repeatable)",
    )
    parser.add_argument(
        "--classpath-file",
        dest="classpath_files",
        action="append",
        default=[],
        help="File holding a classpath string, e.g. from mvn dependency:build-classpath (repeatable)",
    )
    parser.add_argument(
        "--artifact-dir",
        dest="artifact_dirs",
        action="append",
        default=[],
        help="Directory whose .jar/.zip files are all searched (repeatable)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write the timestamped log to this file",
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="protojar",
        description="Compile protocol buffers bundled in dependency archives",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"protojar {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Compile command
    compile_parser = subparsers.add_parser(
        "compile",
        help="Stage bundled protos and run protoc",
    )
    _add_artifact_arguments(compile_parser)
    compile_parser.add_argument(
        "-s",
        "--source",
        dest="sources",
        action="append",
        default=None,
        help="Project-relative proto file to compile (repeatable)",
    )
    compile_parser.add_argument(
        "-I",
        "--include",
        dest="include_paths",
        action="append",
        default=None,
        help="Project-relative include directory (repeatable, default: src/main/resources + staged protos)",
    )
    compile_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output directory (default: src/main/<lang>/)",
    )
    compile_parser.add_argument(
        "-l",
        "--lang",
        dest="language",
        default=None,
        help="Generator for the --<lang>_out flag (default: java)",
    )
    compile_parser.add_argument(
        "--protoc",
        default=None,
        help="Compiler executable (default: protoc on PATH)",
    )
    compile_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Kill protoc after this many seconds (default: no timeout)",
    )
    compile_parser.add_argument(
        "--no-clear",
        dest="clear",
        action="store_false",
        default=None,
        help="Keep previously staged files",
    )
    compile_parser.add_argument(
        "--always-extract",
        action="store_true",
        default=None,
        help="Stage bundled protos even when no sources are configured",
    )
    compile_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=None,
        help="Show verbose output",
    )

    # Scan command
    scan_parser = subparsers.add_parser(
        "scan",
        help="List protos bundled in dependency archives",
    )
    _add_artifact_arguments(scan_parser)
    scan_parser.add_argument(
        "--table",
        action="store_true",
        help="Render the listing as a table",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """protojar - compile protocol buffers bundled in dependency archives."""
    parser = build_parser()
    parsed_args = parser.parse_args(argv)

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    if not parsed_args.project_dir.is_dir():
        log_error(f"Path is not a directory: {parsed_args.project_dir}")
        sys.exit(EXIT_USAGE)

    artifact_kwargs = {
        "project_dir": parsed_args.project_dir,
        "artifacts": parsed_args.artifacts,
        "classpath_files": parsed_args.classpath_files,
        "artifact_dirs": parsed_args.artifact_dirs,
    }

    log_file: Optional[TextIO] = None
    if parsed_args.log_file is not None:
        try:
            log_file = open(parsed_args.log_file, "w", encoding="utf-8")
        except OSError as e:
            log_error(f"Could not open log file {parsed_args.log_file}: {e}")
            sys.exit(EXIT_USAGE)
        set_output_file(log_file)

    try:
        if parsed_args.command == "compile":
            args = CompileArgs(
                **artifact_kwargs,
                sources=parsed_args.sources,
                include_paths=parsed_args.include_paths,
                output=parsed_args.output,
                protoc=parsed_args.protoc,
                language=parsed_args.language,
                timeout=parsed_args.timeout,
                clear=parsed_args.clear,
                always_extract=parsed_args.always_extract,
                verbose=parsed_args.verbose,
            )
            code = compile_command(args)
        else:
            code = scan_command(ScanArgs(**artifact_kwargs, table=parsed_args.table))
    finally:
        if log_file is not None:
            set_output_file(None)
            log_file.close()
    sys.exit(code)


if __name__ == "__main__":
    main()
