"""Process Runner - execute protoc and report its outcome.

protoc is a black box: the runner hands it an argument vector, waits for it to
exit, and captures stdout/stderr as text. Nothing it prints is parsed.
"""

import os
import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .command import format_command
from .output import LogSink

DEFAULT_PROTOC = "protoc"


class CompilerNotFoundError(Exception):
    """Raised when the compiler executable cannot be located."""

    pass


@dataclass(frozen=True)
class CompileResult:
    """Outcome of a single compiler invocation.

    Attributes:
        command: Full argv, executable first
        exit_code: Process exit code, or None if the process never ran to completion
        stdout: Captured standard output
        stderr: Captured standard error
        error: Why the process could not be run, if it could not
    """

    command: list[str]
    exit_code: Optional[int]
    stdout: str = ""
    stderr: str = ""
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def _platform_subprocess_kwargs() -> dict[str, Any]:
    """Return platform-specific kwargs for subprocess calls.

    On Windows, adds CREATE_NO_WINDOW to prevent console flashing.
    """
    if sys.platform == "win32":
        return {"creationflags": subprocess.CREATE_NO_WINDOW}
    return {}


def resolve_executable(executable: str) -> str:
    """Locate the compiler executable.

    Bare names are looked up on PATH. Anything containing a path separator
    is used as given, provided it exists.

    Args:
        executable: Configured executable name or path

    Returns:
        Path to the executable

    Raises:
        CompilerNotFoundError: If it cannot be found
    """
    if os.sep in executable or (os.altsep and os.altsep in executable):
        if Path(executable).is_file():
            return executable
        raise CompilerNotFoundError(f"Compiler executable not found: {executable}")

    found = shutil.which(executable)
    if found is None:
        raise CompilerNotFoundError(f"Compiler executable '{executable}' not found on PATH")
    return found


def run_protoc(
    executable: str,
    args: list[str],
    sink: LogSink,
    verbose: bool = False,
    timeout: Optional[float] = None,
) -> CompileResult:
    """Run the compiler once and capture its output.

    Never raises for process-level failures: a missing executable, a failure
    to start, or a timeout all come back as a CompileResult with exit_code
    None and the reason in ``error``.

    Args:
        executable: Compiler name or path
        args: Arguments from build_protoc_command()
        sink: Where the command line, stdout and errors are reported
        verbose: Report the command line and captured stdout
        timeout: Kill the compiler after this many seconds (None = wait forever)

    Returns:
        CompileResult for this invocation
    """
    command = [executable, *args]
    try:
        command[0] = resolve_executable(executable)
    except CompilerNotFoundError as e:
        sink.error(str(e))
        return CompileResult(command=command, exit_code=None, error=str(e))

    if verbose:
        sink.info(format_command(command[0], args))

    try:
        completed = subprocess.run(
            command,
            capture_output=True,
            text=True,
            stdin=subprocess.DEVNULL,
            timeout=timeout,
            check=False,
            **_platform_subprocess_kwargs(),
        )
    except subprocess.TimeoutExpired as e:
        message = f"{executable} did not finish within {timeout}s and was killed"
        sink.error(message)
        return CompileResult(
            command=command,
            exit_code=None,
            stdout=_as_text(e.stdout),
            stderr=_as_text(e.stderr),
            error=message,
        )
    except OSError as e:
        message = f"Error executing command: {e}"
        sink.error(message)
        return CompileResult(command=command, exit_code=None, error=message)

    if verbose:
        sink.info(completed.stdout)
    if completed.returncode != 0:
        sink.error(completed.stderr or f"{executable} exited with code {completed.returncode}")

    return CompileResult(
        command=command,
        exit_code=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
    )


def _as_text(stream: str | bytes | None) -> str:
    if stream is None:
        return ""
    if isinstance(stream, bytes):
        return stream.decode("utf-8", errors="replace")
    return stream
