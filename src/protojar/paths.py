"""Path Resolver - turn configured project-relative strings into checked paths.

Include paths and source files come from configuration as strings relative to
the project root. They are made absolute, normalized, deduplicated and checked
against the filesystem; anything missing is reported and dropped rather than
failing the run.
"""

import os
from pathlib import Path
from typing import Iterable, Sequence

from .output import LogSink
from .stager import STAGING_DIR

RESOURCES_DIR = Path("src") / "main" / "resources"


def _dedupe(paths: Iterable[Path]) -> list[Path]:
    return list(dict.fromkeys(paths))


class PathResolver:
    """Resolves include paths, source files and the output directory."""

    def __init__(self, project_dir: Path, sink: LogSink, verbose: bool = False):
        """Initialize the resolver.

        Args:
            project_dir: Project root every configured path is relative to
            sink: Where dropped paths are reported
            verbose: Report the synthesized default include paths
        """
        self.project_dir = Path(os.path.abspath(project_dir))
        self.sink = sink
        self.verbose = verbose

    def absolute(self, path: str | Path) -> Path:
        """Resolve a configured path against the project root.

        Absolute inputs stay as they are. The result is normalized, so
        'a/./b/' and 'a/b' compare equal.
        """
        return Path(os.path.abspath(self.project_dir / path))

    def default_include_paths(self, did_extract: bool) -> list[str]:
        """Include paths used when none are configured.

        Args:
            did_extract: Whether the stager wrote anything this run

        Returns:
            The resources directory, plus the staging directory if it was used
        """
        defaults = [RESOURCES_DIR.as_posix() + "/"]
        if did_extract:
            defaults.append(STAGING_DIR.as_posix() + "/")
        if self.verbose:
            self.sink.info(f"Setting default include paths: {defaults}")
        return defaults

    def include_paths(self, configured: Sequence[str], did_extract: bool) -> list[Path]:
        """Resolve the include paths handed to the compiler.

        A non-empty configured list is authoritative and is never merged with
        the defaults.

        Args:
            configured: Configured include path strings (may be empty)
            did_extract: Whether the stager wrote anything this run

        Returns:
            Existing directories, deduplicated
        """
        candidates = list(configured) if configured else self.default_include_paths(did_extract)
        resolved = []
        for path in candidates:
            full_path = self.absolute(path)
            if full_path.is_dir():
                resolved.append(full_path)
            else:
                self.sink.warn(f"Could not find path {full_path}")
        return _dedupe(resolved)

    def source_files(self, configured: Sequence[str]) -> list[Path]:
        """Resolve the schema source files handed to the compiler.

        Args:
            configured: Configured source file strings

        Returns:
            Existing regular files, deduplicated
        """
        resolved = []
        for path in configured:
            full_path = self.absolute(path)
            if full_path.is_file():
                resolved.append(full_path)
            else:
                self.sink.warn(f"Can't find file {full_path}")
        return _dedupe(resolved)

    def output_directory(self, configured: str | Path) -> Path:
        """Resolve the output directory, creating it (and parents) if absent."""
        output_dir = self.absolute(configured)
        output_dir.mkdir(parents=True, exist_ok=True)
        return output_dir

    def staging_directory(self) -> Path:
        """Absolute staging directory for this project."""
        return self.absolute(STAGING_DIR)
