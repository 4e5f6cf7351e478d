"""Gather the dependency artifact list handed to the scanner.

Inside a build tool the artifact list comes from its resolved dependency
graph. Standalone, it can be given in three forms:

- explicit artifact paths
- classpath files, as written by
  ``mvn dependency:build-classpath -Dmdep.outputFile=cp.txt``
- artifact directories, as filled by ``mvn dependency:copy-dependencies``
"""

import os
from pathlib import Path
from typing import Iterable

ARCHIVE_SUFFIXES = (".jar", ".zip")


def parse_classpath(text: str) -> list[str]:
    """Split classpath text into entries.

    Entries are separated by os.pathsep and/or newlines. Blank entries are
    dropped.
    """
    entries = []
    for line in text.splitlines():
        entries.extend(part.strip() for part in line.split(os.pathsep))
    return [entry for entry in entries if entry]


def read_classpath_file(path: Path) -> list[str]:
    """Read a classpath file written by the host build tool."""
    return parse_classpath(path.read_text(encoding="utf-8"))


def archives_in(directory: Path) -> list[Path]:
    """Archives directly inside a directory, sorted by name.

    Returns an empty list if the directory does not exist.
    """
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.is_file() and p.name.endswith(ARCHIVE_SUFFIXES))


def collect_artifacts(
    project_dir: Path,
    paths: Iterable[str | Path] = (),
    classpath_files: Iterable[str | Path] = (),
    artifact_dirs: Iterable[str | Path] = (),
) -> list[Path]:
    """Build the deduplicated artifact list.

    Relative entries are resolved against the project root. Entries that do
    not exist are kept; the scanner's candidate check filters them.

    Args:
        project_dir: Project root
        paths: Explicit artifact paths
        classpath_files: Files holding classpath strings
        artifact_dirs: Directories whose archives are all included

    Returns:
        Absolute artifact paths in the order first seen

    Raises:
        OSError: If a classpath file cannot be read
    """

    def absolute(path: str | Path) -> Path:
        return Path(os.path.abspath(project_dir / path))

    artifacts = [absolute(p) for p in paths]
    for classpath_file in classpath_files:
        artifacts.extend(absolute(entry) for entry in read_classpath_file(absolute(classpath_file)))
    for directory in artifact_dirs:
        artifacts.extend(archives_in(absolute(directory)))
    return list(dict.fromkeys(artifacts))
