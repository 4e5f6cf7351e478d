"""Archive Scanner - find schema files bundled in dependency archives.

Dependency artifacts (jars) are zip containers. Any member whose name ends in
``.proto`` is a candidate for staging. Dependency descriptors (``.xml``, e.g.
a resolved pom) share the artifact list but are not archives and are never
opened.
"""

import logging
import os
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .output import LogSink

logger = logging.getLogger(__name__)

SCHEMA_SUFFIX = ".proto"
DESCRIPTOR_SUFFIX = ".xml"


@dataclass(frozen=True)
class ScannedEntry:
    """A schema file found inside a dependency archive.

    Attributes:
        archive: Path of the archive holding the entry
        name: Entry path inside the archive (forward slashes, as stored)
    """

    archive: Path
    name: str


def is_schema_entry(name: str) -> bool:
    """Case-sensitive suffix match against the schema suffix."""
    return name.endswith(SCHEMA_SUFFIX)


def is_candidate(path: Path) -> bool:
    """Check whether an artifact path should be opened as an archive.

    Args:
        path: Artifact file path

    Returns:
        True for a readable regular file not ending in the descriptor suffix
    """
    if not path.is_file() or not os.access(path, os.R_OK):
        return False
    return not path.name.endswith(DESCRIPTOR_SUFFIX)


class ArchiveScanner:
    """Lists schema entries across a set of dependency archives."""

    def __init__(self, sink: LogSink):
        """Initialize the scanner.

        Args:
            sink: Where per-archive failures are reported
        """
        self.sink = sink

    def scan(self, candidates: Iterable[Path]) -> list[ScannedEntry]:
        """Collect every schema entry from every usable candidate.

        Archives that cannot be opened are reported and skipped; the scan
        carries on with the rest. Within one archive, entries keep the
        archive's own enumeration order.

        Args:
            candidates: Artifact paths, typically the resolved dependency list

        Returns:
            Matching entries, one per archive member
        """
        entries: list[ScannedEntry] = []
        for archive in candidates:
            if not is_candidate(archive):
                logger.debug("Skipping non-archive artifact %s", archive)
                continue
            try:
                entries.extend(self._scan_archive(archive))
            except (zipfile.BadZipFile, OSError) as e:
                self.sink.error(f"Could not process classpath file {archive}: {e}")
        return entries

    def list_entries(self, candidates: Iterable[Path]) -> dict[Path, list[str]]:
        """Group scan results by archive.

        Archives without any schema entry are left out.
        """
        grouped: dict[Path, list[str]] = {}
        for entry in self.scan(candidates):
            grouped.setdefault(entry.archive, []).append(entry.name)
        return grouped

    def _scan_archive(self, archive: Path) -> list[ScannedEntry]:
        with zipfile.ZipFile(archive, "r") as zf:
            names = zf.namelist()
        matches = [ScannedEntry(archive=archive, name=name) for name in names if is_schema_entry(name)]
        logger.debug("Scanned %s: %d members, %d schema files", archive, len(names), len(matches))
        return matches
