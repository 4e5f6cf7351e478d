"""Pytest configuration and fixtures for protojar tests."""

import sys
import zipfile
from pathlib import Path
from typing import Callable, Union

import pytest

from protojar.output import RecordingSink

EntryContent = Union[bytes, str, None]


@pytest.fixture(autouse=True)
def isolate_output_globals():
    """Reset output.py global state before/after each test.

    Prevents cross-test contamination of module-level verbose/stream settings.
    """
    from protojar import output

    original_start_time = output._start_time
    original_output_stream = output._output_stream
    original_verbose = output._verbose
    original_output_file = output._output_file

    output._start_time = None
    output._output_stream = sys.stdout
    output._verbose = False
    output._output_file = None

    yield

    output._start_time = original_start_time
    output._output_stream = original_output_stream
    output._verbose = original_verbose
    output._output_file = original_output_file


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


def write_jar(path: Path, entries: dict[str, EntryContent]) -> Path:
    """Write a zip archive.

    Args:
        path: Archive path
        entries: Member name -> content; None makes a directory entry

    Returns:
        The archive path
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, content in entries.items():
            if content is None:
                zf.writestr(zipfile.ZipInfo(name.rstrip("/") + "/"), b"")
            else:
                zf.writestr(name, content)
    return path


@pytest.fixture
def make_jar(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing archives under tmp_path/repo."""

    def _make(name: str, entries: dict[str, EntryContent]) -> Path:
        return write_jar(tmp_path / "repo" / name, entries)

    return _make


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A project root with the conventional resources directory."""
    root = tmp_path / "project"
    (root / "src" / "main" / "resources").mkdir(parents=True)
    return root
