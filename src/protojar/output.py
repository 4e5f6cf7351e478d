"""
Centralized logging and output module for protojar.

All console output is prefixed with the elapsed time since program launch in
MM:SS.cc format (minutes:seconds.centiseconds), so a slow archive scan or a
slow compiler run is easy to spot.

Example output:
    00:00.02 protojar v0.1.0
    00:00.02 Compiling protocol buffers...
    00:00.31       Found proto file google/type/date.proto
    00:01.12       Done (1.10s)

Usage:
    from protojar.output import log, log_detail, set_verbose

    set_verbose(True)
    log("Compiling protocol buffers...")
    log_detail("Found proto file foo/a.proto", verbose_only=True)

The pipeline itself never calls these functions directly; it reports through
a LogSink (see below). ConsoleSink is the sink that lands here.
"""

import sys
import time
from types import TracebackType
from typing import Optional, Protocol, TextIO

# Global state for the timer
_start_time: Optional[float] = None
_output_stream: TextIO = sys.stdout
_verbose: bool = False
_output_file: Optional[TextIO] = None


def init_timer(output_stream: Optional[TextIO] = None) -> None:
    """
    Initialize the program timer.

    If not called explicitly, it is called automatically on first log.

    Args:
        output_stream: Optional output stream (defaults to sys.stdout)
    """
    global _start_time, _output_stream
    _start_time = time.time()
    if output_stream is not None:
        _output_stream = output_stream


def set_verbose(verbose: bool) -> None:
    """
    Set verbose mode for logging.

    Args:
        verbose: If True, verbose_only messages are printed as well.
    """
    global _verbose
    _verbose = verbose


def set_output_file(output_file: Optional[TextIO]) -> None:
    """
    Set a file to receive all log output (in addition to the console).

    Args:
        output_file: File object to receive output, or None to disable file output
    """
    global _output_file
    _output_file = output_file


def get_elapsed() -> float:
    """Elapsed seconds since timer initialization."""
    if _start_time is None:
        init_timer()
    return time.time() - _start_time  # type: ignore


def format_timestamp() -> str:
    """
    Format the current elapsed time as MM:SS.cc.

    Returns:
        Formatted timestamp string
    """
    elapsed = get_elapsed()
    minutes = int(elapsed // 60)
    seconds = elapsed % 60
    return f"{minutes:02d}:{seconds:05.2f}"


def _print(message: str) -> None:
    line = f"{format_timestamp()} {message}\n"
    _output_stream.write(line)
    _output_stream.flush()

    if _output_file is not None:
        _output_file.write(line)
        _output_file.flush()


def log(message: str, verbose_only: bool = False) -> None:
    """
    Log a message with timestamp.

    Args:
        message: Message to log
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(message)


def log_detail(message: str, indent: int = 6, verbose_only: bool = False) -> None:
    """
    Log a detail message (indented).

    Args:
        message: Detail message
        indent: Number of spaces to indent (default 6)
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(f"{' ' * indent}{message}")


def log_staged(archive_name: str, entry_name: str, verbose_only: bool = True) -> None:
    """
    Log a staged schema file.

    Format: [archive] entry
    """
    if verbose_only and not _verbose:
        return
    _print(f"      [{archive_name}] {entry_name}")


def log_error(message: str) -> None:
    """Log an error message."""
    _print(f"ERROR: {message}")


def log_warning(message: str) -> None:
    """Log a warning message."""
    _print(f"WARNING: {message}")


class LogSink(Protocol):
    """Where the pipeline reports what it is doing.

    Anything with info/warn/error methods works, so an embedding host can
    hand in an adapter around its own reporting facility.
    """

    def info(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class ConsoleSink:
    """LogSink writing timestamped lines to the console."""

    def info(self, message: str) -> None:
        log_detail(message)

    def warn(self, message: str) -> None:
        log_warning(message)

    def error(self, message: str) -> None:
        log_error(message)


class RecordingSink:
    """LogSink that keeps every message in memory.

    Attributes:
        records: (severity, message) tuples in emission order
    """

    def __init__(self) -> None:
        self.records: list[tuple[str, str]] = []

    def info(self, message: str) -> None:
        self.records.append(("info", message))

    def warn(self, message: str) -> None:
        self.records.append(("warn", message))

    def error(self, message: str) -> None:
        self.records.append(("error", message))

    def messages(self, severity: str) -> list[str]:
        """Messages recorded at the given severity."""
        return [message for level, message in self.records if level == severity]


class TimedLogger:
    """
    Context manager logging an operation and how long it took.

    Usage:
        with TimedLogger("Compiling protocol buffers"):
            result = pipeline.execute(artifacts)
    """

    def __init__(self, operation: str, verbose_only: bool = False):
        self.operation = operation
        self.verbose_only = verbose_only
        self.start_time = 0.0

    def __enter__(self) -> "TimedLogger":
        self.start_time = time.time()
        log(f"{self.operation}...", self.verbose_only)
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        del exc_val, exc_tb  # Unused
        elapsed = time.time() - self.start_time
        if exc_type is None:
            log_detail(f"Done ({elapsed:.2f}s)", verbose_only=self.verbose_only)
        return None
